from datetime import date, timedelta

import pytest

from tests.helpers import register


@pytest.fixture
def episode_ids(client, headers):
    """Two projects, one episode each: returns (project_id, episode_id) pairs."""
    c = client.post("/api/v1/clients", json={"client_name": "Northlight"}, headers=headers).get_json()["data"]
    pairs = []
    for title in ("Harbour Lights", "Cold Open"):
        p = client.post("/api/v1/projects", json={"title": title, "client_id": c["id"]}, headers=headers).get_json()["data"]
        e = client.post(
            "/api/v1/episodes", json={"project_id": p["id"], "episode_number": 1}, headers=headers
        ).get_json()["data"]
        pairs.append((p["id"], e["id"]))
    return pairs


def session_payload(episode_id, **overrides):
    payload = {
        "duration": 90,
        "session_date": "2024-02-10",
        "episode_id": episode_id,
        "part_worked_on": "footsteps",
        "activity_done": "record",
    }
    payload.update(overrides)
    return payload


def create(client, headers, payload):
    return client.post("/api/v1/sessions", json=payload, headers=headers)


def test_create_defaults_to_current_user(client, user, headers, episode_ids):
    _, episode_id = episode_ids[0]
    resp = create(client, headers, session_payload(episode_id))
    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["duration"] == 90
    assert data["session_date"] == "2024-02-10"
    assert data["part_worked_on"] == "footsteps"
    assert data["activity_done"] == "record"
    assert [u["id"] for u in data["users"]] == [user["id"]]


def test_create_with_users(client, user, headers, episode_ids):
    bob = register(client, email="bob@example.com", username="bob").get_json()["data"]
    _, episode_id = episode_ids[0]
    resp = create(client, headers, session_payload(episode_id, user_ids=[user["id"], bob["id"]]))
    assert resp.status_code == 201
    assert {u["username"] for u in resp.get_json()["data"]["users"]} == {"ada", "bob"}


def test_enum_values_are_case_insensitive(client, headers, episode_ids):
    _, episode_id = episode_ids[0]
    resp = create(client, headers, session_payload(episode_id, part_worked_on="ADR", activity_done="Spotting"))
    assert resp.status_code == 201
    assert resp.get_json()["data"]["part_worked_on"] == "adr"


@pytest.mark.parametrize(
    "overrides",
    [
        {"duration": 0},
        {"duration": -5},
        {"part_worked_on": "cloth"},
        {"activity_done": "nap"},
        {"session_date": "10/02/2024"},
        {"session_date": (date.today() + timedelta(days=2)).isoformat()},
    ],
)
def test_invalid_payload(client, headers, episode_ids, overrides):
    _, episode_id = episode_ids[0]
    assert create(client, headers, session_payload(episode_id, **overrides)).status_code == 422


def test_unknown_episode(client, headers):
    resp = create(client, headers, session_payload("missing"))
    assert resp.status_code == 400


def test_unknown_user(client, headers, episode_ids):
    _, episode_id = episode_ids[0]
    resp = create(client, headers, session_payload(episode_id, user_ids=["ghost"]))
    assert resp.status_code == 400
    assert "ghost" in resp.get_json()["message"]


def test_get_includes_users(client, user, headers, episode_ids):
    _, episode_id = episode_ids[0]
    ws = create(client, headers, session_payload(episode_id)).get_json()["data"]
    resp = client.get(f"/api/v1/sessions/{ws['id']}", headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["users"][0]["email"] == "ada@example.com"


def test_get_missing(client, headers):
    assert client.get("/api/v1/sessions/missing", headers=headers).status_code == 404


def test_list_filters(client, headers, episode_ids):
    (p1, e1), (p2, e2) = episode_ids
    create(client, headers, session_payload(e1, session_date="2024-01-01"))
    create(client, headers, session_payload(e1, session_date="2024-01-03", part_worked_on="props"))
    create(client, headers, session_payload(e2, session_date="2024-01-02"))

    everything = client.get("/api/v1/sessions", headers=headers).get_json()
    assert [s["session_date"] for s in everything["data"]] == ["2024-01-03", "2024-01-02", "2024-01-01"]

    by_project = client.get(f"/api/v1/sessions?project_id={p1}", headers=headers).get_json()
    assert by_project["meta"]["total"] == 2
    assert {s["episode_id"] for s in by_project["data"]} == {e1}

    by_episode = client.get(f"/api/v1/sessions?episode_id={e2}", headers=headers).get_json()
    assert [s["session_date"] for s in by_episode["data"]] == ["2024-01-02"]

    limited = client.get("/api/v1/sessions?limit=1", headers=headers).get_json()
    assert len(limited["data"]) == 1
    assert limited["meta"]["total"] == 3

    by_part = client.get("/api/v1/sessions?part=props", headers=headers).get_json()
    assert by_part["meta"]["total"] == 1

    ranged = client.get("/api/v1/sessions?date_from=2024-01-02&date_to=2024-01-02", headers=headers).get_json()
    assert ranged["meta"]["total"] == 1


def test_list_bad_filters(client, headers):
    assert client.get("/api/v1/sessions?part=cloth", headers=headers).status_code == 422
    assert client.get("/api/v1/sessions?activity=nap", headers=headers).status_code == 422
    assert client.get("/api/v1/sessions?date_from=yesterday", headers=headers).status_code == 400


def test_add_users(client, user, headers, episode_ids):
    bob = register(client, email="bob@example.com", username="bob").get_json()["data"]
    _, episode_id = episode_ids[0]
    ws = create(client, headers, session_payload(episode_id)).get_json()["data"]

    resp = client.post(f"/api/v1/sessions/{ws['id']}/users", json={"user_ids": [bob["id"], user["id"]]}, headers=headers)
    assert resp.status_code == 200
    assert sorted(u["username"] for u in resp.get_json()["data"]["users"]) == ["ada", "bob"]


def test_add_users_validation(client, headers, episode_ids):
    _, episode_id = episode_ids[0]
    ws = create(client, headers, session_payload(episode_id)).get_json()["data"]
    url = f"/api/v1/sessions/{ws['id']}/users"
    assert client.post(url, json={"user_ids": []}, headers=headers).status_code == 422
    assert client.post(url, json={"user_ids": ["ghost"]}, headers=headers).status_code == 400
    assert client.post("/api/v1/sessions/missing/users", json={"user_ids": ["x"]}, headers=headers).status_code == 404


def test_delete(client, headers, episode_ids):
    _, episode_id = episode_ids[0]
    ws = create(client, headers, session_payload(episode_id)).get_json()["data"]
    assert client.delete(f"/api/v1/sessions/{ws['id']}", headers=headers).status_code == 204
    assert client.get(f"/api/v1/sessions/{ws['id']}", headers=headers).status_code == 404


def test_deleting_episode_removes_its_sessions(client, headers, episode_ids):
    _, episode_id = episode_ids[0]
    ws = create(client, headers, session_payload(episode_id)).get_json()["data"]
    client.delete(f"/api/v1/episodes/{episode_id}", headers=headers)
    assert client.get(f"/api/v1/sessions/{ws['id']}", headers=headers).status_code == 404


def test_requires_token(client, user):
    assert client.get("/api/v1/sessions").status_code == 401
