"""
security helpers:
- Argon2id password hashing via argon2-cffi
- JWT access-token issue/validation via PyJWT (HS256, one shared secret)
- opaque refresh-token generation

Components are built once by the app factory from an immutable AuthSettings
and hold their secret/cost parameters for the process lifetime.
"""
from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable

import argon2
import jwt
from argon2.exceptions import (
    HashingError,
    InvalidHashError,
    VerificationError,
    VerifyMismatchError,
)

from utils.auth_errors import (
    AuthInternalError,
    Expired,
    InvalidSignature,
    MalformedHash,
    WrongIssuer,
)

logger = logging.getLogger(__name__)

DEFAULT_ISSUER = "foley-bookkeeper"
JWT_ALGORITHM = "HS256"
REFRESH_TOKEN_BYTES = 32

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PasswordHasher:
    """Argon2id hashing with self-describing encoded output.

    The encoded string carries algorithm, version, cost parameters and salt
    (``$argon2id$v=19$m=65536,t=3,p=4$<salt>$<digest>``), so verify() always
    uses the parameters stored in the hash, never the current defaults.
    """

    def __init__(
        self,
        time_cost: int = argon2.DEFAULT_TIME_COST,
        memory_cost: int = argon2.DEFAULT_MEMORY_COST,
        parallelism: int = argon2.DEFAULT_PARALLELISM,
    ):
        self._ph = argon2.PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            type=argon2.Type.ID,
        )
        self._dummy_hash = None

    def hash(self, password: str) -> str:
        try:
            return self._ph.hash(password)
        except (HashingError, OSError) as exc:
            logger.exception("Password hashing failed")
            raise AuthInternalError("password hashing failed") from exc

    def verify(self, password: str, encoded: str) -> bool:
        """Return True on match, False on a wrong password.

        Raises MalformedHash when `encoded` cannot be parsed.
        """
        try:
            return self._ph.verify(encoded, password)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError, ValueError, TypeError) as exc:
            raise MalformedHash("stored password hash is not a valid argon2 hash") from exc

    def verify_dummy(self, password: str) -> bool:
        """Run a full verify against a throwaway hash made with the current parameters.

        Used when there is no stored hash to check, so the caller spends the
        same time as for a real account. Always returns False.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(secrets.token_hex(16))
        self.verify(password, self._dummy_hash)
        return False

    def needs_rehash(self, encoded: str) -> bool:
        """True when `encoded` was produced with other cost parameters."""
        try:
            return self._ph.check_needs_rehash(encoded)
        except (InvalidHashError, ValueError, TypeError) as exc:
            raise MalformedHash("stored password hash is not a valid argon2 hash") from exc


class AccessTokenCodec:
    """Issues and validates short-lived signed access tokens.

    Claims: sub, iss, iat, exp (epoch seconds, fractional part kept). A token is valid only
    while ``now < exp``; no clock skew is tolerated.
    """

    def __init__(
        self,
        secret: str,
        ttl: timedelta,
        issuer: str = DEFAULT_ISSUER,
        clock: Clock = utcnow,
    ):
        if not secret:
            raise ValueError("an access-token secret is required")
        self._secret = secret
        self.ttl = ttl
        self.issuer = issuer
        self._clock = clock

    def __repr__(self) -> str:
        return f"AccessTokenCodec(issuer={self.issuer!r}, ttl={self.ttl!r})"

    def issue(self, subject: str) -> str:
        now = self._clock()
        payload = {
            "sub": str(subject),
            "iss": self.issuer,
            "iat": now.timestamp(),
            "exp": (now + self.ttl).timestamp(),
        }
        try:
            return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            logger.exception("Access token signing failed")
            raise AuthInternalError("could not sign access token") from exc

    def validate(self, token: str) -> str:
        """Return the subject of a valid token.

        Checks run in order signature -> issuer -> expiry and the first
        failure raises InvalidSignature, WrongIssuer or Expired.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                issuer=self.issuer,
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": ["sub", "iss", "iat", "exp"],
                },
            )
        except jwt.InvalidIssuerError as exc:
            raise WrongIssuer("token issuer mismatch") from exc
        except jwt.MissingRequiredClaimError as exc:
            if exc.claim == "iss":
                raise WrongIssuer("token has no issuer") from exc
            raise InvalidSignature(f"token lacks claim {exc.claim}") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidSignature("token signature could not be verified") from exc

        exp = claims["exp"]
        if not isinstance(exp, (int, float)) or not self._clock().timestamp() < exp:
            raise Expired("access token expired")
        return claims["sub"]


def generate_refresh_token() -> str:
    """Return 256 bits of randomness, hex encoded."""
    try:
        return secrets.token_hex(REFRESH_TOKEN_BYTES)
    except OSError as exc:
        logger.exception("Entropy source unavailable")
        raise AuthInternalError("could not generate refresh token") from exc
