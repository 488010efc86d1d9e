from __future__ import annotations

from datetime import date, timedelta

from vehicle_docs_api.app.core.config import settings
from vehicle_docs_api.app.services import keys

CIVIC = {
    "name": "Civic",
    "plate": "AA-11-BB",
    "make": "Honda",
    "model": "Civic",
    "year": "2022",
    "insurance": {"date": "2020-01-01"},
    "inspection": {"date": "2030-01-01"},
    "taxes": {"date": ""},
}


def _days(n: int) -> str:
    return (date.today() + timedelta(days=n)).isoformat()


def test_requests_without_token_are_rejected(client) -> None:
    response = client.get("/vehicles")

    assert response.status_code == 401
    assert response.json() == {"error": "No access token provided"}


def test_anonymous_key_is_not_a_user_token(client, monkeypatch) -> None:
    monkeypatch.setattr(settings, "anon_key", "public-anon-key")

    response = client.get("/vehicles", headers={"Authorization": "Bearer public-anon-key"})

    assert response.status_code == 401


def test_garbage_token_is_rejected(client) -> None:
    response = client.get("/vehicles", headers={"Authorization": "Bearer not.a.token"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid access token"


def test_create_vehicle_derives_statuses(client, user, record_store) -> None:
    response = client.post("/vehicles", json=CIVIC, headers=user["headers"])

    assert response.status_code == 200, response.text
    vehicle = response.json()["vehicle"]
    assert vehicle["insurance"]["status"] == "expired"
    assert vehicle["inspection"]["status"] == "valid"
    assert vehicle["taxes"]["status"] == "expired"

    stored = record_store.get(keys.vehicle_key(user["id"], vehicle["id"]))
    assert stored["insurance"]["status"] == "expired"
    assert stored["inspection"]["status"] == "valid"
    assert stored["taxes"]["status"] == "expired"
    assert stored["userId"] == user["id"]


def test_created_vehicle_round_trips_through_list(client, user) -> None:
    payload = {**CIVIC, "color": "Blue", "nickname": "Daily"}
    created = client.post("/vehicles", json=payload, headers=user["headers"]).json()["vehicle"]

    vehicles = client.get("/vehicles", headers=user["headers"]).json()["vehicles"]

    assert vehicles == [created]
    assert created["color"] == "Blue"
    assert created["nickname"] == "Daily"
    assert created["createdAt"] == created["updatedAt"]
    assert created["createdAt"].endswith("Z")


def test_missing_compliance_items_are_stored_as_expired(client, user) -> None:
    vehicle = client.post("/vehicles", json={"name": "Golf", "plate": "ZZ-00-ZZ"}, headers=user["headers"]).json()[
        "vehicle"
    ]

    for item in ("insurance", "inspection", "taxes"):
        assert vehicle[item] == {"date": "", "status": "expired"}


def test_client_cannot_spoof_status_or_ownership(client, user) -> None:
    payload = {**CIVIC, "id": "mine", "userId": "someone-else", "insurance": {"date": "2020-01-01", "status": "valid"}}

    vehicle = client.post("/vehicles", json=payload, headers=user["headers"]).json()["vehicle"]

    assert vehicle["id"] != "mine"
    assert vehicle["userId"] == user["id"]
    assert vehicle["insurance"]["status"] == "expired"


def test_create_vehicle_requires_name_and_plate(client, user) -> None:
    response = client.post("/vehicles", json={"make": "Honda"}, headers=user["headers"])

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request body"


def test_update_merges_and_recomputes(client, user) -> None:
    vehicle = client.post("/vehicles", json=CIVIC, headers=user["headers"]).json()["vehicle"]

    response = client.put(
        f"/vehicles/{vehicle['id']}",
        json={"color": "Red", "taxes": {"date": _days(10), "amount": 120}},
        headers=user["headers"],
    )

    assert response.status_code == 200, response.text
    updated = response.json()["vehicle"]
    assert updated["color"] == "Red"
    assert updated["name"] == "Civic"
    assert updated["taxes"] == {"date": _days(10), "amount": 120, "status": "warning"}
    assert updated["insurance"]["status"] == "expired"
    assert updated["createdAt"] == vehicle["createdAt"]


def test_update_unknown_vehicle_is_not_found(client, user) -> None:
    response = client.put("/vehicles/nope", json={"color": "Red"}, headers=user["headers"])

    assert response.status_code == 404
    assert response.json() == {"error": "Vehicle not found"}


def test_vehicles_are_isolated_between_users(client, make_user) -> None:
    alice = make_user("alice@example.com")
    bob = make_user("bob@example.com")
    vehicle = client.post("/vehicles", json=CIVIC, headers=alice["headers"]).json()["vehicle"]

    assert client.get("/vehicles", headers=bob["headers"]).json() == {"vehicles": []}
    assert client.put(f"/vehicles/{vehicle['id']}", json={"color": "X"}, headers=bob["headers"]).status_code == 404
    assert client.delete(f"/vehicles/{vehicle['id']}", headers=bob["headers"]).status_code == 404
    assert len(client.get("/vehicles", headers=alice["headers"]).json()["vehicles"]) == 1


def test_delete_twice_is_not_found(client, user) -> None:
    vehicle = client.post("/vehicles", json=CIVIC, headers=user["headers"]).json()["vehicle"]

    first = client.delete(f"/vehicles/{vehicle['id']}", headers=user["headers"])
    second = client.delete(f"/vehicles/{vehicle['id']}", headers=user["headers"])

    assert first.status_code == 200
    assert first.json() == {"success": True}
    assert second.status_code == 404
    assert client.get("/vehicles", headers=user["headers"]).json() == {"vehicles": []}


def test_statuses_are_refreshed_on_read(client, user, record_store) -> None:
    vehicle = client.post(
        "/vehicles", json={**CIVIC, "inspection": {"date": _days(100)}}, headers=user["headers"]
    ).json()["vehicle"]
    key = keys.vehicle_key(user["id"], vehicle["id"])
    stored = record_store.get(key)
    # Simulate time passing: the stored status is stale.
    stored["inspection"] = {"date": _days(-1), "status": "valid"}
    record_store.set(key, stored)

    listed = client.get("/vehicles", headers=user["headers"]).json()["vehicles"][0]

    assert listed["inspection"]["status"] == "expired"


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_unknown_client_status_is_ignored(client, user) -> None:
    payload = {"name": "Civic", "plate": "AA", "insurance": {"date": "2030-01-01", "status": "unknown"}}

    response = client.post("/vehicles", json=payload, headers=user["headers"])

    assert response.status_code == 200, response.text
    assert response.json()["vehicle"]["insurance"] == {"date": "2030-01-01", "status": "valid"}


def test_unknown_client_status_is_ignored_on_update(client, user) -> None:
    vehicle = client.post("/vehicles", json=CIVIC, headers=user["headers"]).json()["vehicle"]

    response = client.put(
        f"/vehicles/{vehicle['id']}", json={"inspection": {"date": "2020-01-01", "status": 42}}, headers=user["headers"]
    )

    assert response.status_code == 200, response.text
    assert response.json()["vehicle"]["inspection"] == {"date": "2020-01-01", "status": "expired"}


def test_null_date_counts_as_missing(client, user, record_store) -> None:
    payload = {"name": "Civic", "plate": "AA", "insurance": {"date": None}}

    response = client.post("/vehicles", json=payload, headers=user["headers"])

    assert response.status_code == 200, response.text
    vehicle = response.json()["vehicle"]
    assert vehicle["insurance"] == {"date": "", "status": "expired"}
    stored = record_store.get(keys.vehicle_key(user["id"], vehicle["id"]))
    assert stored["insurance"] == {"date": "", "status": "expired"}
