from __future__ import annotations

from vehicle_docs_api.app.core.config import settings
from vehicle_docs_api.app.services import keys


def test_signup_returns_the_created_user(client) -> None:
    response = client.post("/signup", json={"email": "Ana@Example.com", "password": "secret123", "name": "Ana"})

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["email"] == "ana@example.com"
    assert user["user_metadata"] == {"name": "Ana"}
    assert user["id"]


def test_signup_defaults_display_name(client) -> None:
    response = client.post("/signup", json={"email": "anon@example.com", "password": "secret123"})

    assert response.json()["user"]["user_metadata"] == {"name": "User"}


def test_duplicate_signup_is_bad_request(client, user) -> None:
    response = client.post("/signup", json={"email": "driver@example.com", "password": "secret123"})

    assert response.status_code == 400
    assert "already been registered" in response.json()["error"]


def test_weak_password_is_bad_request(client) -> None:
    response = client.post("/signup", json={"email": "weak@example.com", "password": "123"})

    assert response.status_code == 400


def test_signin_with_wrong_password_is_unauthorized(client, user) -> None:
    response = client.post("/signin", json={"email": "driver@example.com", "password": "wrong-one"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid login credentials"}


def test_profile_merges_identity_and_defaults(client, user) -> None:
    response = client.get("/profile", headers=user["headers"])

    assert response.status_code == 200
    assert response.json() == {
        "user": {
            "id": user["id"],
            "email": "driver@example.com",
            "name": "Ana",
            "avatar": settings.default_avatar,
        }
    }


def test_profile_update_merges_with_previous_values(client, user) -> None:
    first = client.put("/profile", json={"phone": "+351 910 000 000", "city": "Porto"}, headers=user["headers"])
    second = client.put("/profile", json={"name": "Ana Silva", "licenseNumber": "P-123"}, headers=user["headers"])

    assert first.json() == {"success": True, "profile": {"phone": "+351 910 000 000", "city": "Porto"}}
    assert second.json() == {"success": True, "profile": {"name": "Ana Silva", "licenseNumber": "P-123"}}
    profile = client.get("/profile", headers=user["headers"]).json()["user"]
    assert profile["name"] == "Ana Silva"
    assert profile["city"] == "Porto"
    assert profile["phone"] == "+351 910 000 000"
    assert profile["licenseNumber"] == "P-123"


def test_overlay_wins_over_identity_but_never_the_id(client, user, record_store) -> None:
    record_store.set(keys.profile_key(user["id"]), {"id": "forged", "name": "Overlay Name", "favouriteColour": "green"})

    profile = client.get("/profile", headers=user["headers"]).json()["user"]

    assert profile["id"] == user["id"]
    assert profile["name"] == "Overlay Name"
    assert profile["favouriteColour"] == "green"


def test_profile_update_reaches_identity_metadata(client, user, identity) -> None:
    client.put("/profile", json={"name": "New Name"}, headers=user["headers"])

    session = identity.sign_in("driver@example.com", "secret123")

    assert session["user"]["user_metadata"]["name"] == "New Name"


def test_profile_requires_token(client) -> None:
    assert client.get("/profile").status_code == 401
    assert client.put("/profile", json={"name": "x"}).status_code == 401


def test_token_of_deleted_account_is_rejected(client, user, record_store) -> None:
    record_store.delete(f"auth_user_{user['id']}")

    assert client.get("/profile", headers=user["headers"]).status_code == 401
