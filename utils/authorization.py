"""
Bearer header parsing and the authorization gate shared by every protected view.

Gate states, each short-circuiting on the first failure:
    Unauthenticated -> HeaderExtracted -> SignatureChecked -> ExpiryChecked -> Authorized
"""
from __future__ import annotations

import logging
from typing import Mapping

from utils.auth_errors import MalformedHeader, MissingHeader, Unauthenticated
from utils.security import AccessTokenCodec

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer "


def extract_bearer_token(headers: Mapping[str, str]) -> str:
    """Return the raw token from ``Authorization: Bearer <token>``.

    The remainder after the prefix is returned verbatim; checking it is the
    codec's job.
    """
    value = headers.get(AUTHORIZATION_HEADER)
    if value is None:
        raise MissingHeader("no Authorization header")
    if not value.startswith(BEARER_PREFIX):
        raise MalformedHeader("Authorization header is not a Bearer credential")
    return value[len(BEARER_PREFIX):]


class AuthorizationGate:
    def __init__(self, codec: AccessTokenCodec):
        self.codec = codec

    def authorize(self, headers: Mapping[str, str]) -> str:
        """Return the authenticated subject id or raise an Unauthenticated subclass."""
        try:
            token = extract_bearer_token(headers)
            return self.codec.validate(token)
        except Unauthenticated as exc:
            logger.info("Request rejected by authorization gate: %s", exc.reason)
            raise
