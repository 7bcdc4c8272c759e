from datetime import timedelta

import pytest

from models import storage
from models.refresh_token import RefreshToken
from models.refresh_token_store import RefreshTokenStore
from models.user import User
from tests.helpers import BrokenSession, database_down
from utils import security
from utils.auth_errors import AuthInternalError, RefreshTokenNotFound


@pytest.fixture
def subject(app):
    u = User(username="grace", email="grace@example.com", password_hash="$argon2id$placeholder")
    storage.new(u)
    storage.save()
    return u.id


@pytest.fixture
def store(app, clock):
    return RefreshTokenStore(storage, ttl=timedelta(days=1), clock=clock)


def test_issue_then_lookup(store, subject, clock):
    token = store.issue(subject)
    record = store.lookup(token)
    assert record.user_id == subject
    assert record.token == token
    assert record.revoked_at is None
    assert record.is_live(clock.now)


def test_expires_after_ttl(store, subject, clock):
    token = store.issue(subject)
    clock.advance(days=1, seconds=-1)
    assert store.lookup(token).is_live(clock.now)
    clock.advance(seconds=1)
    record = store.lookup(token)
    assert record.is_expired(clock.now)
    assert not record.is_live(clock.now)


def test_unknown_token(store, subject):
    with pytest.raises(RefreshTokenNotFound):
        store.lookup("0" * 64)


def test_multiple_live_tokens_per_subject(store, subject, clock):
    first = store.issue(subject)
    second = store.issue(subject)
    assert first != second
    assert store.lookup(first).is_live(clock.now)
    assert store.lookup(second).is_live(clock.now)
    assert storage.count(RefreshToken) == 2


def test_revoke_is_permanent(store, subject, clock):
    token = store.issue(subject)
    store.revoke(token)
    record = store.lookup(token)
    assert record.revoked
    assert not record.is_live(clock.now)
    clock.advance(hours=1)
    assert not store.lookup(token).is_live(clock.now)


def test_revoke_twice_keeps_first_timestamp(store, subject, clock):
    token = store.issue(subject)
    store.revoke(token)
    first = store.lookup(token).revoked_at
    clock.advance(minutes=10)
    store.revoke(token)
    assert store.lookup(token).revoked_at == first


def test_revoke_leaves_other_tokens_alone(store, subject, clock):
    kept = store.issue(subject)
    gone = store.issue(subject)
    store.revoke(gone)
    assert store.lookup(kept).is_live(clock.now)


def test_revoke_unknown_token(store, subject):
    with pytest.raises(RefreshTokenNotFound):
        store.revoke("f" * 64)


@pytest.fixture
def rollbacks(monkeypatch):
    calls = []
    real_rollback = storage.rollback

    def spy():
        calls.append(True)
        real_rollback()

    monkeypatch.setattr(storage, "rollback", spy)
    return calls


def test_issue_persistence_failure_is_internal(store, subject, rollbacks, monkeypatch):
    monkeypatch.setattr(storage, "save", database_down)
    with pytest.raises(AuthInternalError):
        store.issue(subject)
    assert rollbacks == [True]
    assert storage.count(RefreshToken) == 0


def test_issue_entropy_failure_is_internal(store, subject, monkeypatch):
    def no_entropy(nbytes=None):
        raise OSError("no randomness available")

    monkeypatch.setattr(security.secrets, "token_hex", no_entropy)
    with pytest.raises(AuthInternalError):
        store.issue(subject)
    assert storage.count(RefreshToken) == 0


def test_lookup_persistence_failure_is_internal(store, subject, rollbacks, monkeypatch):
    token = store.issue(subject)
    monkeypatch.setattr(storage, "get_session", BrokenSession)
    with pytest.raises(AuthInternalError):
        store.lookup(token)
    assert rollbacks == [True]


def test_revoke_persistence_failure_is_internal(store, subject, rollbacks, monkeypatch, clock):
    token = store.issue(subject)
    monkeypatch.setattr(storage, "get_session", BrokenSession)
    with pytest.raises(AuthInternalError):
        store.revoke(token)
    assert rollbacks == [True]

    monkeypatch.undo()
    assert store.lookup(token).is_live(clock.now)
