"""
Adapters for the managed Supabase backend.

Records live in a two‑column ``key``/``value`` table reached through
PostgREST, files in a private Storage bucket and accounts in GoTrue.
All three talk plain HTTP through ``httpx`` using the service role key;
only token verification forwards the caller's own token.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from .blobs import BlobStore, normalize_blob_path
from .config import settings
from .db import RecordStore
from .exceptions import BlobConflictError, IdentityError, StorageError, UnauthorizedError
from .identity import IdentityProvider, IdentityUser


logger = logging.getLogger(__name__)


def _error_text(response: httpx.Response) -> str:
    """Extract the provider's error message from a JSON or text body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return str(body)


class SupabaseClient:
    """Shared HTTP plumbing for the Supabase adapters."""

    def __init__(
        self,
        url: Optional[str] = None,
        service_key: Optional[str] = None,
        anon_key: Optional[str] = None,
        http: Optional[httpx.Client] = None,
    ) -> None:
        self.url = (url or settings.supabase_url).rstrip("/")
        self.service_key = service_key or settings.supabase_service_key
        self.anon_key = anon_key or settings.supabase_anon_key or self.service_key
        if not self.url or not self.service_key:
            raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set for the supabase backend")
        self.http = http or httpx.Client(timeout=settings.supabase_timeout)

    def service_headers(self, **extra: str) -> Dict[str, str]:
        headers = {"apikey": self.service_key, "Authorization": f"Bearer {self.service_key}"}
        headers.update(extra)
        return headers

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self.http.request(method, f"{self.url}{path}", **kwargs)
        except httpx.HTTPError as exc:
            raise StorageError(detail=f"{method} {path}: {exc}") from exc


class SupabaseRecordStore(RecordStore):
    """Record store over a PostgREST ``key``/``value`` table."""

    def __init__(self, client: SupabaseClient, table: Optional[str] = None) -> None:
        self.client = client
        self.path = f"/rest/v1/{table or settings.kv_table}"

    def _check(self, response: httpx.Response, action: str) -> httpx.Response:
        if response.is_error:
            raise StorageError(detail=f"{action} failed: {_error_text(response)}")
        return response

    def get(self, key: str) -> Optional[Any]:
        response = self._check(
            self.client.request(
                "GET",
                self.path,
                params={"key": f"eq.{key}", "select": "value"},
                headers=self.client.service_headers(),
            ),
            "get",
        )
        rows = response.json()
        return rows[0]["value"] if rows else None

    def set(self, key: str, value: Any) -> None:
        self._check(
            self.client.request(
                "POST",
                self.path,
                json={"key": key, "value": value},
                headers=self.client.service_headers(Prefer="resolution=merge-duplicates"),
            ),
            "set",
        )

    def delete(self, key: str) -> bool:
        response = self._check(
            self.client.request(
                "DELETE",
                self.path,
                params={"key": f"eq.{key}"},
                headers=self.client.service_headers(Prefer="return=representation"),
            ),
            "delete",
        )
        return bool(response.json())

    def get_by_prefix(self, prefix: str) -> List[Any]:
        response = self._check(
            self.client.request(
                "GET",
                self.path,
                params={"key": f"like.{prefix}*", "select": "key,value"},
                headers=self.client.service_headers(),
            ),
            "prefix scan",
        )
        # LIKE treats "_" as a wildcard, so re-check the prefix exactly.
        return [row["value"] for row in response.json() if row["key"].startswith(prefix)]


class SupabaseBlobStore(BlobStore):
    """Blob store over a private Supabase Storage bucket."""

    def __init__(self, client: SupabaseClient, bucket: Optional[str] = None) -> None:
        self.client = client
        self.bucket = bucket or settings.bucket_name

    def ensure_bucket(self) -> None:
        response = self.client.request("GET", "/storage/v1/bucket", headers=self.client.service_headers())
        if response.is_error:
            raise StorageError(detail=f"list buckets failed: {_error_text(response)}")
        if any(bucket.get("name") == self.bucket for bucket in response.json()):
            logger.info("Storage bucket %s already exists", self.bucket)
            return
        logger.info("Creating storage bucket %s", self.bucket)
        response = self.client.request(
            "POST",
            "/storage/v1/bucket",
            json={
                "id": self.bucket,
                "name": self.bucket,
                "public": False,
                "allowed_mime_types": list(settings.allowed_mime_types),
                "file_size_limit": settings.max_upload_bytes,
            },
            headers=self.client.service_headers(),
        )
        if response.is_error:
            raise StorageError(detail=f"create bucket failed: {_error_text(response)}")

    def _object_path(self, path: str) -> str:
        return f"{self.bucket}/{quote(normalize_blob_path(path))}"

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        response = self.client.request(
            "POST",
            f"/storage/v1/object/{self._object_path(path)}",
            content=data,
            headers=self.client.service_headers(
                **{"Content-Type": content_type or "application/octet-stream", "x-upsert": "false", "cache-control": "3600"}
            ),
        )
        if response.status_code == 409 or (response.is_error and "exists" in _error_text(response).lower()):
            raise BlobConflictError(detail=f"Object already exists at {path}")
        if response.is_error:
            raise StorageError("Failed to upload file", detail=_error_text(response))
        return normalize_blob_path(path)

    def create_signed_url(self, path: str, expires_in: int) -> str:
        response = self.client.request(
            "POST",
            f"/storage/v1/object/sign/{self._object_path(path)}",
            json={"expiresIn": expires_in},
            headers=self.client.service_headers(),
        )
        if response.is_error:
            raise StorageError("Failed to generate download URL", detail=_error_text(response))
        signed = response.json().get("signedURL") or response.json().get("signedUrl")
        if not signed:
            raise StorageError("Failed to generate download URL", detail="empty signed URL")
        return f"{self.client.url}/storage/v1{signed}" if signed.startswith("/") else signed

    def delete(self, path: str) -> None:
        response = self.client.request(
            "DELETE",
            f"/storage/v1/object/{self.bucket}",
            json={"prefixes": [normalize_blob_path(path)]},
            headers=self.client.service_headers(),
        )
        if response.is_error:
            raise StorageError("Failed to delete file", detail=_error_text(response))


class SupabaseIdentityProvider(IdentityProvider):
    """Accounts and tokens managed by Supabase Auth (GoTrue)."""

    def __init__(self, client: SupabaseClient) -> None:
        self.client = client

    @staticmethod
    def _to_identity(body: Dict[str, Any]) -> IdentityUser:
        return IdentityUser(
            id=body.get("id", ""),
            email=body.get("email"),
            metadata=dict(body.get("user_metadata") or {}),
            created_at=body.get("created_at"),
        )

    def _call(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self.client.request(method, path, **kwargs)
        except StorageError as exc:
            raise IdentityError(detail=exc.detail) from exc

    def get_user(self, token: str) -> IdentityUser:
        response = self._call(
            "GET",
            "/auth/v1/user",
            headers={"apikey": self.client.anon_key, "Authorization": f"Bearer {token}"},
        )
        if response.status_code in (401, 403):
            raise UnauthorizedError("Invalid access token")
        if response.is_error:
            raise IdentityError(detail=_error_text(response))
        return self._to_identity(response.json())

    def create_user(self, email: str, password: str, metadata: Dict[str, Any]) -> IdentityUser:
        response = self._call(
            "POST",
            "/auth/v1/admin/users",
            # No mail server is configured, so accounts are confirmed on creation.
            json={"email": email, "password": password, "user_metadata": metadata, "email_confirm": True},
            headers=self.client.service_headers(),
        )
        if response.is_error:
            raise IdentityError(_error_text(response))
        body = response.json()
        return self._to_identity(body.get("user", body))

    def update_user_metadata(self, user_id: str, metadata: Dict[str, Any]) -> IdentityUser:
        response = self._call(
            "PUT",
            f"/auth/v1/admin/users/{quote(user_id)}",
            json={"user_metadata": metadata},
            headers=self.client.service_headers(),
        )
        if response.is_error:
            raise IdentityError("Failed to update profile", detail=_error_text(response))
        body = response.json()
        return self._to_identity(body.get("user", body))

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        response = self._call(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            headers={"apikey": self.client.anon_key},
        )
        if response.status_code in (400, 401):
            raise UnauthorizedError(_error_text(response))
        if response.is_error:
            raise IdentityError(detail=_error_text(response))
        body = response.json()
        return {
            "access_token": body["access_token"],
            "token_type": body.get("token_type", "bearer"),
            "user": self._to_identity(body.get("user") or {}).to_dict(),
        }
