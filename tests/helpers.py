from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import OperationalError

PASSWORD = "correct horse battery"


class FakeClock:
    """Injectable clock; tests move time with advance() instead of sleeping."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def register(client, email="ada@example.com", username="ada", password=PASSWORD):
    return client.post(
        "/api/v1/auth/register",
        json={"username": username, "email": email, "password": password},
    )


def login(client, email="ada@example.com", password=PASSWORD):
    return client.post("/api/v1/auth/login", json={"email": email, "password": password})


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def database_down(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("database is locked"))


class BrokenSession:
    """Session stand-in whose every query fails like an unreachable database."""

    def query(self, *args, **kwargs):
        database_down()
