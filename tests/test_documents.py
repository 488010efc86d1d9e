from __future__ import annotations

import json
from urllib.parse import urlsplit

import pytest

from vehicle_docs_api.app.core.backends import configure_backends
from vehicle_docs_api.app.core.blobs import LocalBlobStore
from vehicle_docs_api.app.core.config import settings
from vehicle_docs_api.app.core.exceptions import StorageError
from vehicle_docs_api.app.services import keys

PDF = b"%PDF-1.4 test policy"
POLICY = {"type": "insurance", "name": "Policy 2025", "expiryDate": "2026-01-31"}


class BrokenBlobStore(LocalBlobStore):
    def upload(self, path: str, data: bytes, content_type: str) -> str:
        raise StorageError("Failed to upload file", detail="disk full")


@pytest.fixture()
def vehicle(client, user):
    response = client.post("/vehicles", json={"name": "Civic", "plate": "AA-11-BB"}, headers=user["headers"])
    return response.json()["vehicle"]


def _upload(client, user, vehicle_id, content=PDF, filename="policy.pdf", content_type="application/pdf", data=POLICY):
    return client.post(
        f"/vehicles/{vehicle_id}/documents/upload",
        files={"file": (filename, content, content_type)},
        data={"documentData": json.dumps(data)},
        headers=user["headers"],
    )


def _relative(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.path}?{parts.query}"


def test_add_document_without_file(client, user, vehicle) -> None:
    response = client.post(f"/vehicles/{vehicle['id']}/documents", json=POLICY, headers=user["headers"])

    assert response.status_code == 200, response.text
    document = response.json()["document"]
    assert document["vehicleId"] == vehicle["id"]
    assert document["userId"] == user["id"]
    assert document["description"] == ""
    assert document["expiryDate"] == "2026-01-31"
    assert "filePath" not in document

    listed = client.get(f"/vehicles/{vehicle['id']}/documents", headers=user["headers"]).json()["documents"]
    assert listed == [document]


def test_add_document_to_unknown_vehicle_is_not_found(client, user) -> None:
    response = client.post("/vehicles/missing/documents", json=POLICY, headers=user["headers"])

    assert response.status_code == 404


def test_add_document_rejects_unknown_type(client, user, vehicle) -> None:
    response = client.post(
        f"/vehicles/{vehicle['id']}/documents", json={"type": "passport", "name": "x"}, headers=user["headers"]
    )

    assert response.status_code == 400


def test_upload_stores_file_and_metadata(client, user, vehicle, blob_store) -> None:
    response = _upload(client, user, vehicle["id"])

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Document uploaded successfully"
    document = body["document"]
    assert document["fileName"] == "policy.pdf"
    assert document["fileType"] == "application/pdf"
    assert document["fileSize"] == len(PDF)
    assert document["filePath"] == f"{user['id']}/{vehicle['id']}/{document['id']}.pdf"
    assert document["fileUrl"].startswith("http://testserver/files/")
    assert blob_store.resolve(document["filePath"]).read_bytes() == PDF


def test_upload_without_file_is_bad_request(client, user, vehicle) -> None:
    response = client.post(
        f"/vehicles/{vehicle['id']}/documents/upload",
        data={"documentData": json.dumps(POLICY)},
        headers=user["headers"],
    )

    assert response.status_code == 400
    assert response.json() == {"error": "File and document data are required"}


def test_upload_without_metadata_is_bad_request(client, user, vehicle) -> None:
    response = client.post(
        f"/vehicles/{vehicle['id']}/documents/upload",
        files={"file": ("policy.pdf", PDF, "application/pdf")},
        headers=user["headers"],
    )

    assert response.status_code == 400


def test_upload_with_malformed_metadata_is_bad_request(client, user, vehicle) -> None:
    response = client.post(
        f"/vehicles/{vehicle['id']}/documents/upload",
        files={"file": ("policy.pdf", PDF, "application/pdf")},
        data={"documentData": "{not json"},
        headers=user["headers"],
    )

    assert response.status_code == 400
    assert response.json() == {"error": "documentData is not valid JSON"}


def test_upload_rejects_disallowed_mime_type(client, user, vehicle) -> None:
    response = _upload(client, user, vehicle["id"], filename="run.sh", content_type="text/x-shellscript")

    assert response.status_code == 400
    assert "not allowed" in response.json()["error"]


def test_upload_to_foreign_vehicle_is_not_found(client, make_user, vehicle) -> None:
    intruder = make_user("intruder@example.com")

    response = _upload(client, intruder, vehicle["id"])

    assert response.status_code == 404


def test_failed_blob_write_leaves_no_document(client, user, vehicle, tmp_path) -> None:
    configure_backends(blob_store=BrokenBlobStore(root=str(tmp_path / "broken"), base_url="http://testserver"))

    response = _upload(client, user, vehicle["id"])

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to upload file"}
    assert client.get(f"/vehicles/{vehicle['id']}/documents", headers=user["headers"]).json() == {"documents": []}


def test_signed_url_downloads_the_file(client, user, vehicle) -> None:
    document = _upload(client, user, vehicle["id"]).json()["document"]

    response = client.get(f"/documents/{document['id']}/url", headers=user["headers"])

    assert response.status_code == 200
    download = client.get(_relative(response.json()["url"]))
    assert download.status_code == 200
    assert download.content == PDF


def test_tampered_signature_is_refused(client, user, vehicle) -> None:
    document = _upload(client, user, vehicle["id"]).json()["document"]
    url = client.get(f"/documents/{document['id']}/url", headers=user["headers"]).json()["url"]
    parts = urlsplit(url)

    response = client.get(parts.path, params={"expires": "9999999999", "signature": "forged"})

    assert response.status_code == 403


def test_signed_url_for_metadata_only_document_is_not_found(client, user, vehicle) -> None:
    document = client.post(f"/vehicles/{vehicle['id']}/documents", json=POLICY, headers=user["headers"]).json()[
        "document"
    ]

    response = client.get(f"/documents/{document['id']}/url", headers=user["headers"])

    assert response.status_code == 404


def test_signed_url_of_another_users_document_is_not_found(client, user, make_user, vehicle) -> None:
    document = _upload(client, user, vehicle["id"]).json()["document"]
    other = make_user("other@example.com")

    response = client.get(f"/documents/{document['id']}/url", headers=other["headers"])

    assert response.status_code == 404


def test_delete_document_removes_blob(client, user, vehicle, blob_store, record_store) -> None:
    document = _upload(client, user, vehicle["id"]).json()["document"]

    response = client.delete(f"/vehicles/{vehicle['id']}/documents/{document['id']}", headers=user["headers"])

    assert response.json() == {"success": True}
    assert not blob_store.resolve(document["filePath"]).exists()
    assert record_store.get(keys.document_ref_key(user["id"], document["id"])) is None
    again = client.delete(f"/vehicles/{vehicle['id']}/documents/{document['id']}", headers=user["headers"])
    assert again.status_code == 404


def test_deleting_vehicle_cascades_to_documents(client, user, vehicle, blob_store, record_store) -> None:
    uploaded = _upload(client, user, vehicle["id"]).json()["document"]
    client.post(f"/vehicles/{vehicle['id']}/documents", json=POLICY, headers=user["headers"])

    client.delete(f"/vehicles/{vehicle['id']}", headers=user["headers"])

    assert record_store.get_by_prefix(keys.document_prefix(user["id"])) == []
    assert not blob_store.resolve(uploaded["filePath"]).exists()
    assert client.get(f"/documents/{uploaded['id']}/url", headers=user["headers"]).status_code == 404


def test_oversized_upload_is_rejected_without_storing(client, user, vehicle, monkeypatch) -> None:
    monkeypatch.setattr(settings, "max_upload_bytes", 8)

    response = _upload(client, user, vehicle["id"], content=b"0123456789abcdef")

    assert response.status_code == 400
    assert "exceeds" in response.json()["error"]
    assert client.get(f"/vehicles/{vehicle['id']}/documents", headers=user["headers"]).json() == {"documents": []}


def test_upload_at_the_size_limit_is_accepted(client, user, vehicle, monkeypatch) -> None:
    monkeypatch.setattr(settings, "max_upload_bytes", len(PDF))

    response = _upload(client, user, vehicle["id"])

    assert response.status_code == 200, response.text
    assert response.json()["document"]["fileSize"] == len(PDF)
