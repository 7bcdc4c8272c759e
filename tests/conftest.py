"""Shared fixtures: a fresh app and in-memory database per test."""
import pytest

from api import create_app
from models import storage
from tests.helpers import FakeClock, bearer, login, register


@pytest.fixture
def app():
    app = create_app("testing")
    yield app
    storage.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def auth(app):
    """The AuthComponents wired by create_app()."""
    return app.extensions["auth"]


@pytest.fixture
def user(client):
    resp = register(client)
    assert resp.status_code == 201
    return resp.get_json()["data"]


@pytest.fixture
def tokens(client, user):
    resp = login(client)
    assert resp.status_code == 200
    return resp.get_json()


@pytest.fixture
def headers(tokens):
    return bearer(tokens["access_token"])
