from __future__ import annotations

from typing import Callable, Dict

import pytest
from fastapi.testclient import TestClient

from vehicle_docs_api.app.core.backends import configure_backends, reset_backends
from vehicle_docs_api.app.core.blobs import LocalBlobStore
from vehicle_docs_api.app.core.db import SQLiteRecordStore
from vehicle_docs_api.app.core.identity import LocalIdentityProvider
from vehicle_docs_api.app.main import app

TEST_BASE_URL = "http://testserver"


@pytest.fixture()
def record_store(tmp_path) -> SQLiteRecordStore:
    store = SQLiteRecordStore(str(tmp_path / "records.db"))
    store.init()
    return store


@pytest.fixture()
def blob_store(tmp_path) -> LocalBlobStore:
    store = LocalBlobStore(root=str(tmp_path / "blobs"), base_url=TEST_BASE_URL)
    store.ensure_bucket()
    return store


@pytest.fixture()
def identity(record_store) -> LocalIdentityProvider:
    return LocalIdentityProvider(record_store)


@pytest.fixture(autouse=True)
def backends(record_store, blob_store, identity):
    configure_backends(record_store=record_store, blob_store=blob_store, identity_provider=identity)
    yield
    reset_backends()


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def make_user(client) -> Callable[..., Dict[str, str]]:
    """Sign up and sign in a user; return ``{"id", "headers"}``."""

    def _make(email: str = "driver@example.com", password: str = "secret123", name: str = "Ana") -> Dict[str, str]:
        created = client.post("/signup", json={"email": email, "password": password, "name": name})
        assert created.status_code == 200, created.text
        session = client.post("/signin", json={"email": email, "password": password})
        assert session.status_code == 200, session.text
        token = session.json()["access_token"]
        return {"id": created.json()["user"]["id"], "headers": {"Authorization": f"Bearer {token}"}}

    return _make


@pytest.fixture()
def user(make_user) -> Dict[str, str]:
    return make_user()
