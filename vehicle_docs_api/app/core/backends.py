"""
Registry of the external collaborators used by the services.

The record store, blob store and identity provider are built lazily
from ``settings.backend`` the first time they are requested and then
shared by every request.  Tests and embedding applications can swap
them with ``configure_backends``.
"""

import logging
from typing import Optional

from .blobs import BlobStore, LocalBlobStore
from .config import settings
from .db import RecordStore, SQLiteRecordStore
from .identity import IdentityProvider, LocalIdentityProvider


logger = logging.getLogger(__name__)

_record_store: Optional[RecordStore] = None
_blob_store: Optional[BlobStore] = None
_identity_provider: Optional[IdentityProvider] = None


def _build_defaults() -> None:
    global _record_store, _blob_store, _identity_provider
    if settings.backend == "supabase":
        from .supabase import (
            SupabaseBlobStore,
            SupabaseClient,
            SupabaseIdentityProvider,
            SupabaseRecordStore,
        )

        client = SupabaseClient()
        _record_store = _record_store or SupabaseRecordStore(client)
        _blob_store = _blob_store or SupabaseBlobStore(client)
        _identity_provider = _identity_provider or SupabaseIdentityProvider(client)
    elif settings.backend == "local":
        _record_store = _record_store or SQLiteRecordStore()
        _blob_store = _blob_store or LocalBlobStore()
        _identity_provider = _identity_provider or LocalIdentityProvider(_record_store)
    else:
        raise RuntimeError(f"Unknown STORAGE_BACKEND {settings.backend!r}; expected 'local' or 'supabase'")
    logger.info("Using %s storage backend", settings.backend)


def get_record_store() -> RecordStore:
    if _record_store is None:
        _build_defaults()
    return _record_store


def get_blob_store() -> BlobStore:
    if _blob_store is None:
        _build_defaults()
    return _blob_store


def get_identity_provider() -> IdentityProvider:
    if _identity_provider is None:
        _build_defaults()
    return _identity_provider


def configure_backends(
    record_store: Optional[RecordStore] = None,
    blob_store: Optional[BlobStore] = None,
    identity_provider: Optional[IdentityProvider] = None,
) -> None:
    """Install explicit adapters; omitted ones keep their current value."""
    global _record_store, _blob_store, _identity_provider
    if record_store is not None:
        _record_store = record_store
    if blob_store is not None:
        _blob_store = blob_store
    if identity_provider is not None:
        _identity_provider = identity_provider


def reset_backends() -> None:
    """Forget all adapters so the next call rebuilds them from settings."""
    global _record_store, _blob_store, _identity_provider
    _record_store = None
    _blob_store = None
    _identity_provider = None


def init_backends() -> None:
    """Prepare storage at start-up (tables, bucket)."""
    get_record_store().init()
    get_blob_store().ensure_bucket()
