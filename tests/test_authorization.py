import logging
from datetime import timedelta

import pytest

from utils.auth_errors import Expired, MalformedHeader, MissingHeader, Unauthenticated
from utils.authorization import AuthorizationGate, extract_bearer_token
from utils.security import AccessTokenCodec

SECRET = "gate-test-secret-that-is-long-enough-42"


class RecordingCodec:
    """Stands in for the codec and remembers whether parsing was attempted."""

    def __init__(self):
        self.calls = []

    def validate(self, token):
        self.calls.append(token)
        return "user-1"


class TestExtractBearerToken:
    def test_returns_remainder_verbatim(self):
        assert extract_bearer_token({"Authorization": "Bearer abc.def.ghi"}) == "abc.def.ghi"

    def test_remainder_not_validated(self):
        assert extract_bearer_token({"Authorization": "Bearer  spaced out "}) == " spaced out "
        assert extract_bearer_token({"Authorization": "Bearer "}) == ""

    def test_missing(self):
        with pytest.raises(MissingHeader):
            extract_bearer_token({})

    @pytest.mark.parametrize("value", ["", "Bearer", "bearer abc", "Basic dXNlcjpwYXNz", "Token abc", "Bearerabc"])
    def test_malformed(self, value):
        with pytest.raises(MalformedHeader) as info:
            extract_bearer_token({"Authorization": value})
        assert isinstance(info.value, Unauthenticated)


class TestAuthorizationGate:
    def test_missing_header_rejected_before_parsing(self):
        codec = RecordingCodec()
        with pytest.raises(MissingHeader):
            AuthorizationGate(codec).authorize({})
        assert codec.calls == []

    def test_malformed_header_rejected_before_parsing(self):
        codec = RecordingCodec()
        with pytest.raises(MalformedHeader):
            AuthorizationGate(codec).authorize({"Authorization": "Basic abc"})
        assert codec.calls == []

    def test_authorized(self, clock):
        codec = AccessTokenCodec(SECRET, ttl=timedelta(minutes=5), clock=clock)
        gate = AuthorizationGate(codec)
        token = codec.issue("user-42")
        assert gate.authorize({"Authorization": f"Bearer {token}"}) == "user-42"

    def test_expired_token(self, clock):
        codec = AccessTokenCodec(SECRET, ttl=timedelta(minutes=5), clock=clock)
        gate = AuthorizationGate(codec)
        token = codec.issue("user-42")
        clock.advance(minutes=5, seconds=1)
        with pytest.raises(Expired):
            gate.authorize({"Authorization": f"Bearer {token}"})

    def test_rejection_reason_is_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="utils.authorization"):
            with pytest.raises(MissingHeader):
                AuthorizationGate(RecordingCodec()).authorize({})
        assert "missing_header" in caplog.text
