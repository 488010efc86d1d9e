"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts with a self-contained local backend (SQLite record
store, filesystem blob store and locally issued tokens).  Set
``STORAGE_BACKEND=supabase`` together with the ``SUPABASE_*``
variables to delegate storage and identity to a managed backend.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Tuple


DEFAULT_ALLOWED_MIME_TYPES = (
    "image/jpeg,image/png,application/pdf,application/msword,"
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)


def parse_warning_windows(raw: str) -> Dict[str, int]:
    """Parse ``"insurance=7,inspection=14"`` into ``{"insurance": 7, ...}``.

    Malformed entries raise ``ValueError`` so that a bad deployment
    fails at start‑up rather than silently falling back to defaults.
    """
    windows: Dict[str, int] = {}
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        name, sep, days = chunk.partition("=")
        if not sep:
            raise ValueError(f"Invalid warning window entry: {chunk!r}")
        windows[name.strip().lower()] = int(days)
    return windows


def _split_csv(raw: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Vehicle Docs API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    # Prefix under which all routes are mounted.  Empty means routes live
    # at the root (``/vehicles``, ``/profile`` …).
    api_prefix: str = os.getenv("API_PREFIX", "")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    cors_origins: Tuple[str, ...] = _split_csv(os.getenv("CORS_ORIGINS", "*"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
    algorithm: str = os.getenv("ALGORITHM", "HS256")

    # The public anonymous key handed to browsers.  It identifies the
    # project, not a user, so it is always refused on user endpoints.
    anon_key: str = os.getenv("ANON_KEY", os.getenv("SUPABASE_ANON_KEY", ""))

    # ``local`` keeps records in SQLite and blobs on disk; ``supabase``
    # talks to the managed backend over HTTP.
    backend: str = os.getenv("STORAGE_BACKEND", "local").lower()

    # Path to the SQLite database file.  Relative paths are resolved
    # relative to the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "vehicle_docs.db")
    blob_root: str = os.getenv("BLOB_ROOT", "blobs")
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")

    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_service_key: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
    supabase_anon_key: str = os.getenv("SUPABASE_ANON_KEY", "")
    supabase_timeout: float = float(os.getenv("SUPABASE_TIMEOUT", "10"))
    kv_table: str = os.getenv("KV_TABLE", "kv_store")
    bucket_name: str = os.getenv("BUCKET_NAME", "vehicle-documents")

    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
    allowed_mime_types: Tuple[str, ...] = _split_csv(
        os.getenv("ALLOWED_MIME_TYPES", DEFAULT_ALLOWED_MIME_TYPES)
    )

    # Days before expiry at which a compliance item turns to ``warning``.
    warning_windows: Dict[str, int] = field(
        default_factory=lambda: parse_warning_windows(
            os.getenv("WARNING_WINDOWS", "insurance=7,inspection=14,taxes=30")
        )
    )
    default_warning_days: int = int(os.getenv("DEFAULT_WARNING_DAYS", "30"))

    # Lifetimes of signed blob URLs, in seconds.
    download_url_ttl: int = int(os.getenv("DOWNLOAD_URL_TTL", "3600"))
    embed_url_ttl: int = int(os.getenv("EMBED_URL_TTL", str(60 * 60 * 24 * 365)))

    default_avatar: str = os.getenv(
        "DEFAULT_AVATAR",
        "https://images.unsplash.com/photo-1494790108755-2616b612b11c?w=100&h=100&fit=crop&crop=face",
    )


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# should be set before importing this module.
settings = Settings()
