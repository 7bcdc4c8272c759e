"""
Refresh-token persistence: issue, lookup and revoke.

issue() and revoke() are the only code paths that write refresh_tokens rows.
lookup() returns the row whatever its state, so revoked and expired tokens
stay inspectable; callers decide liveness with RefreshToken.is_live(now).
"""
from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from models.refresh_token import RefreshToken
from utils.auth_errors import AuthInternalError, RefreshTokenNotFound
from utils.security import Clock, generate_refresh_token, utcnow

logger = logging.getLogger(__name__)


class RefreshTokenStore:
    def __init__(self, storage, ttl: timedelta, clock: Clock = utcnow):
        self._storage = storage
        self.ttl = ttl
        self._clock = clock

    def now(self):
        return self._clock()

    def issue(self, subject: str) -> str:
        """Persist a new live token for `subject` and return its value.

        Existing tokens of the subject are left untouched (one per session).
        """
        now = self._clock()
        token = generate_refresh_token()
        record = RefreshToken(
            token=token,
            user_id=str(subject),
            created_at=now,
            updated_at=now,
            expires_at=now + self.ttl,
            revoked_at=None,
        )
        self._storage.new(record)
        try:
            self._storage.save()
        except SQLAlchemyError as exc:
            self._storage.rollback()
            logger.exception("Could not persist refresh token for user %s", subject)
            raise AuthInternalError("refresh token persistence failed") from exc
        logger.debug("Issued refresh token %s for user %s", record.id, subject)
        return token

    def lookup(self, token: str) -> RefreshToken:
        """Exact-match lookup; raises RefreshTokenNotFound when absent."""
        session = self._storage.get_session()
        try:
            record = (
                session.query(RefreshToken)
                .populate_existing()
                .filter(RefreshToken.token == token)
                .first()
            )
        except SQLAlchemyError as exc:
            self._storage.rollback()
            logger.exception("Refresh token lookup failed")
            raise AuthInternalError("refresh token lookup failed") from exc
        if record is None:
            raise RefreshTokenNotFound("unknown refresh token")
        return record

    def revoke(self, token: str) -> None:
        """Set revoked_at on the matching row if it is not revoked yet.

        A single conditional UPDATE, so a concurrent lookup sees either the
        old or the new row, never a partial one. Revoking twice keeps the
        first timestamp and succeeds.
        """
        session = self._storage.get_session()
        now = self._clock()
        try:
            updated = (
                session.query(RefreshToken)
                .filter(RefreshToken.token == token, RefreshToken.revoked_at.is_(None))
                .update(
                    {RefreshToken.revoked_at: now, RefreshToken.updated_at: now},
                    synchronize_session="fetch",
                )
            )
            exists = bool(updated) or (
                session.query(RefreshToken.id).filter(RefreshToken.token == token).first() is not None
            )
            self._storage.save()
        except SQLAlchemyError as exc:
            self._storage.rollback()
            logger.exception("Refresh token revocation failed")
            raise AuthInternalError("refresh token revocation failed") from exc
        if not exists:
            raise RefreshTokenNotFound("unknown refresh token")
        if updated:
            logger.info("Refresh token revoked")
