"""
auth error taxonomy:
- MalformedInput: client-caused, unparseable data (400)
- Unauthenticated: every rejection of a credential (401). The specific
  reason is kept on the exception for logging only; the HTTP layer answers
  with one fixed message so callers cannot tell "expired" from "forged".
- AuthInternalError: entropy, hashing, signing or persistence failures (500)
"""
from __future__ import annotations


class AuthError(Exception):
    """Base class; `reason` is a stable machine-readable tag."""

    reason = "auth_error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.reason)


class MalformedInput(AuthError):
    reason = "malformed_input"


class MalformedHash(MalformedInput):
    reason = "malformed_hash"


class Unauthenticated(AuthError):
    reason = "unauthenticated"


class MissingHeader(Unauthenticated):
    reason = "missing_header"


class MalformedHeader(Unauthenticated):
    reason = "malformed_header"


class InvalidSignature(Unauthenticated):
    reason = "invalid_signature"


class WrongIssuer(Unauthenticated):
    reason = "wrong_issuer"


class Expired(Unauthenticated):
    reason = "expired"


class InvalidCredentials(Unauthenticated):
    reason = "invalid_credentials"


class RefreshTokenNotFound(Unauthenticated):
    reason = "refresh_token_not_found"


class RefreshTokenRevoked(Unauthenticated):
    reason = "refresh_token_revoked"


class RefreshTokenExpired(Unauthenticated):
    reason = "refresh_token_expired"


class AuthInternalError(AuthError):
    reason = "internal"
