from __future__ import annotations

import random
from datetime import UTC, datetime
from pathlib import Path

from fastapi.testclient import TestClient

from daydreams.adapters.runtime_config import RuntimeSettings
from daydreams.api.app import create_app

NOW = datetime(2026, 10, 16, 15, 0, tzinfo=UTC)
PASSWORD = "Daydream123"


def _client(tmp_path: Path) -> TestClient:
    return TestClient(
        create_app(
            db_path=tmp_path / "daydreams.db",
            settings=RuntimeSettings(),
            clock=lambda: NOW,
            rng=random.Random(11),
        )
    )


def _auth_headers(client: TestClient, email: str, display_name: str) -> dict[str, str]:
    register = client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": PASSWORD, "display_name": display_name},
    )
    assert register.status_code == 201
    login = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    assert login.status_code == 200
    token = login.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def _partnered(client: TestClient) -> tuple[dict[str, str], dict[str, str], str]:
    alice = _auth_headers(client, "alice@example.com", "Alice")
    bob = _auth_headers(client, "bob@example.com", "Bob")
    invitation = client.post("/api/v1/invitations", headers=alice)
    assert invitation.status_code == 201
    accepted = client.post(
        "/api/v1/invitations/accept",
        json={"invitation_code": invitation.json()["invitation_code"]},
        headers=bob,
    )
    assert accepted.status_code == 201
    return alice, bob, accepted.json()["partnership_id"]


def test_health_and_api_root(tmp_path: Path) -> None:
    client = _client(tmp_path)
    assert client.get("/healthz").json() == {"status": "ok", "service": "daydreams"}
    root = client.get("/api/v1").json()
    assert root["auth"] == "bearer-token"
    assert "/api/v1/partnerships/{partnership_id}/prompts/today" in root["endpoints"]


def test_auth_requires_token_and_rejects_weak_passwords(tmp_path: Path) -> None:
    client = _client(tmp_path)
    assert client.get("/api/v1/me").status_code == 401
    assert client.get("/api/v1/partnerships").status_code == 401

    weak = client.post(
        "/api/v1/auth/register",
        json={"email": "weak@example.com", "password": "password", "display_name": "Weak"},
    )
    assert weak.status_code == 422
    assert weak.json()["reason"] == "password_too_weak"

    headers = _auth_headers(client, "alice@example.com", "Alice")
    duplicate = client.post(
        "/api/v1/auth/register",
        json={"email": "ALICE@example.com", "password": PASSWORD, "display_name": "Alice"},
    )
    assert duplicate.status_code == 409
    bad_login = client.post(
        "/api/v1/auth/login", json={"email": "alice@example.com", "password": "Wrong1234"}
    )
    assert bad_login.status_code == 401

    me = client.get("/api/v1/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["display_name"] == "Alice"

    assert client.post("/api/v1/auth/logout", headers=headers).status_code == 204
    assert client.get("/api/v1/me", headers=headers).status_code == 401


def test_invitation_flow_and_partnership_listing(tmp_path: Path) -> None:
    client = _client(tmp_path)
    alice = _auth_headers(client, "alice@example.com", "Alice")
    bob = _auth_headers(client, "bob@example.com", "Bob")

    invitation = client.post("/api/v1/invitations", headers=alice).json()
    code = invitation["invitation_code"]
    assert invitation["status"] == "pending"
    lookup = client.get(f"/api/v1/invitations/{code.lower()}", headers=bob)
    assert lookup.status_code == 200
    assert lookup.json()["from_user_name"] == "Alice"

    own = client.post("/api/v1/invitations/accept", json={"invitation_code": code}, headers=alice)
    assert own.status_code == 409
    malformed = client.post(
        "/api/v1/invitations/accept", json={"invitation_code": "abc"}, headers=bob
    )
    assert malformed.status_code == 422
    assert malformed.json()["reason"] == "invalid_invitation_code"

    accepted = client.post(
        "/api/v1/invitations/accept", json={"invitation_code": code}, headers=bob
    ).json()
    alice_id = client.get("/api/v1/me", headers=alice).json()["user_id"]
    assert accepted["user1_id"] == alice_id
    assert accepted["next_author_id"] == alice_id
    assert accepted["enabled_categories"] == ["park", "ride", "food"]
    assert client.get(f"/api/v1/invitations/{code}", headers=bob).status_code == 404

    listed = client.get("/api/v1/partnerships", headers=alice).json()
    assert [item["partnership_id"] for item in listed] == [accepted["partnership_id"]]
    assert listed[0]["partner_id"] == accepted["user2_id"]

    declined_target = client.post("/api/v1/invitations", headers=alice).json()
    declined = client.post(
        f"/api/v1/invitations/{declined_target['invitation_id']}/decline", headers=bob
    )
    assert declined.status_code == 200
    assert declined.json()["status"] == "declined"


def test_today_prompt_is_shared_and_created_once(tmp_path: Path) -> None:
    client = _client(tmp_path)
    alice, bob, partnership_id = _partnered(client)
    url = f"/api/v1/partnerships/{partnership_id}/prompts/today"

    first = client.post(url, headers=alice)
    assert first.status_code == 200
    created = first.json()
    assert created["created"] is True
    assert created["state"] == "prompt_persisted"
    assert created["story"]["date_assigned"] == "2026-10-16"
    assert set(created["story"]["items"]) == {"park", "ride", "food"}
    assert created["story"]["assigned_author"] == "Jon"
    assert created["story"]["is_my_turn"] is True

    second = client.get(url, headers=bob).json()
    assert second["created"] is False
    assert second["story"]["story_id"] == created["story"]["story_id"]
    assert second["story"]["is_my_turn"] is False

    notifications = client.get("/api/v1/me/notifications", headers=bob).json()
    assert [item["data"]["type"] for item in notifications] == ["new_prompt"]
    assert client.get("/api/v1/me/notifications", headers=bob).json() == []
    assert client.get("/api/v1/me/notifications", headers=alice).json() == []

    partnership = client.get(f"/api/v1/partnerships/{partnership_id}", headers=bob).json()
    assert partnership["last_story_date"] == "2026-10-16"
    assert partnership["next_author_id"] == partnership["user2_id"]

    regenerated = client.post(
        f"/api/v1/partnerships/{partnership_id}/prompts/next", headers=bob
    ).json()
    assert regenerated["created"] is True
    assert regenerated["story"]["story_id"] != created["story"]["story_id"]
    assert regenerated["story"]["assigned_author"] == "Jon"
    assert client.get(url, headers=alice).json()["story"]["story_id"] == (
        regenerated["story"]["story_id"]
    )


def test_non_members_cannot_see_the_partnership(tmp_path: Path) -> None:
    client = _client(tmp_path)
    _, _, partnership_id = _partnered(client)
    carol = _auth_headers(client, "carol@example.com", "Carol")

    assert client.get(f"/api/v1/partnerships/{partnership_id}", headers=carol).status_code == 404
    response = client.post(f"/api/v1/partnerships/{partnership_id}/prompts/today", headers=carol)
    assert response.status_code == 404
    assert response.json() == {"detail": "Partnership not found"}
    missing = client.get("/api/v1/partnerships/missing/history", headers=carol)
    assert missing.status_code == 404


def test_error_bodies_are_documented_in_openapi(tmp_path: Path) -> None:
    schema = _client(tmp_path).get("/openapi.json").json()
    assert set(schema["components"]["schemas"]["ErrorResponse"]["properties"]) == {
        "detail",
        "reason",
    }
    today = schema["paths"]["/api/v1/partnerships/{partnership_id}/prompts/today"]["post"]
    assert {"404", "409", "503"} <= set(today["responses"])


def test_story_text_favorites_and_history(tmp_path: Path) -> None:
    client = _client(tmp_path)
    alice, bob, partnership_id = _partnered(client)
    story = client.post(
        f"/api/v1/partnerships/{partnership_id}/prompts/today", headers=alice
    ).json()["story"]
    client.get("/api/v1/me/notifications", headers=bob)
    text_url = f"/api/v1/partnerships/{partnership_id}/stories/{story['story_id']}/text"

    empty = client.put(text_url, json={"story_text": ""}, headers=alice)
    assert empty.status_code == 200
    assert empty.json()["saved"] is False

    rejected = client.put(text_url, json={"story_text": "call me at 555-123-4567"}, headers=alice)
    assert rejected.status_code == 422
    assert rejected.json()["reason"] == "contains_personal_info"

    client.put(f"/api/v1/drafts/{story['story_id']}", json={"text": "We rode"}, headers=alice)
    saved = client.put(
        text_url, json={"story_text": "We rode the carousel twice"}, headers=alice
    ).json()
    assert saved["saved"] is True
    assert saved["story"]["story_text"] == "We rode the carousel twice"
    assert saved["touched"][0] == "shared"
    assert client.get(f"/api/v1/drafts/{story['story_id']}", headers=alice).status_code == 404

    completed = client.get("/api/v1/me/notifications", headers=bob).json()
    assert [item["data"]["type"] for item in completed] == ["story_completed"]

    favorite_url = f"/api/v1/partnerships/{partnership_id}/stories/{story['story_id']}/favorite"
    toggled = client.post(favorite_url, headers=bob).json()
    assert toggled == {"story_id": story["story_id"], "is_favorite": True}
    favorites = client.get("/api/v1/favorites", headers=bob).json()
    assert [item["story_text"] for item in favorites] == ["We rode the carousel twice"]
    assert client.get("/api/v1/favorites", headers=alice).json() == []

    history = client.get(f"/api/v1/partnerships/{partnership_id}/history", headers=bob).json()
    assert len(history) == 1
    assert history[0]["is_favorite"] is True
    assert history[0]["story_text"] == "We rode the carousel twice"

    removed = client.delete(
        f"/api/v1/partnerships/{partnership_id}/favorites/{story['story_id']}", headers=bob
    )
    assert removed.status_code == 204
    assert client.get("/api/v1/favorites", headers=bob).json() == []

    cleared = client.delete(f"/api/v1/partnerships/{partnership_id}/history", headers=bob)
    assert cleared.json() == {"removed": 0}

    missing = client.put(
        f"/api/v1/partnerships/{partnership_id}/stories/missing/text",
        json={"story_text": "A lovely day"},
        headers=alice,
    )
    assert missing.status_code == 404


def test_settings_reminders_drafts_and_config(tmp_path: Path) -> None:
    client = _client(tmp_path)
    alice, bob, partnership_id = _partnered(client)
    settings_url = f"/api/v1/partnerships/{partnership_id}/settings"

    chosen = client.put(
        settings_url,
        json={"enabled_categories": ["hotel", "event"], "shared_trip_date": "2026-12-24"},
        headers=alice,
    ).json()
    assert chosen["enabled_categories"] == ["hotel", "event"]
    assert chosen["days_until_trip"] == 69
    story = client.post(
        f"/api/v1/partnerships/{partnership_id}/prompts/today", headers=bob
    ).json()["story"]
    assert set(story["items"]) == {"hotel", "event"}

    reset = client.put(settings_url, json={"enabled_categories": []}, headers=bob).json()
    assert reset["enabled_categories"] == ["park", "ride", "food"]
    assert reset["shared_trip_date"] == "2026-12-24"
    cleared = client.put(settings_url, json={"clear_trip_date": True}, headers=bob).json()
    assert cleared["shared_trip_date"] is None
    invalid = client.put(settings_url, json={"enabled_categories": ["castle"]}, headers=bob)
    assert invalid.status_code == 422

    reminder = client.put("/api/v1/me/reminder", json={"hour": 20}, headers=alice)
    assert reminder.status_code == 200
    assert reminder.json()["next_fire_at"].startswith("2026-10-16T20:00")
    assert client.put("/api/v1/me/reminder", json={"hour": 24}, headers=alice).status_code == 422
    assert client.delete("/api/v1/me/reminder", headers=alice).status_code == 204

    draft = client.put("/api/v1/drafts/s1", json={"text": "half a thought "}, headers=alice)
    assert draft.json()["text"] == "half a thought "
    assert client.get("/api/v1/drafts/s1", headers=alice).json()["text"] == "half a thought "
    assert client.get("/api/v1/drafts/s1", headers=bob).status_code == 404
    assert client.put("/api/v1/drafts/s1", json={"text": "  "}, headers=alice).json() is None
    assert client.get("/api/v1/drafts/s1", headers=alice).status_code == 404

    device = client.put(
        "/api/v1/me/device-token", json={"device_token": "device-abc"}, headers=alice
    )
    assert device.status_code == 204
    assert client.get("/api/v1/config", headers=alice).json() == {"weather_api_key": ""}

    assert client.delete(f"/api/v1/partnerships/{partnership_id}", headers=bob).status_code == 204
    assert client.get("/api/v1/partnerships", headers=alice).json() == []
