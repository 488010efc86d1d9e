"""
Record key layout, identifiers and timestamps.

Every record is scoped by composing the owner's user id into its key,
so a lookup can never reach another user's data:

* ``vehicle_<userId>_<vehicleId>``
* ``document_<userId>_<vehicleId>_<documentId>``
* ``document_ref_<userId>_<documentId>`` → ``{"vehicleId": ...}``
  (lets a document be fetched by id alone without a scan)
* ``user_profile_<userId>``

Blob paths follow ``<userId>/<vehicleId>/<documentId>.<ext>``.
"""

import uuid
from datetime import datetime, timezone


def new_id() -> str:
    """URL‑safe unique identifier for vehicles and documents."""
    return uuid.uuid4().hex


def utc_now() -> str:
    """Current time as an ISO 8601 string in UTC with a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def vehicle_prefix(user_id: str) -> str:
    return f"vehicle_{user_id}_"


def vehicle_key(user_id: str, vehicle_id: str) -> str:
    return f"{vehicle_prefix(user_id)}{vehicle_id}"


def document_prefix(user_id: str, vehicle_id: str = "") -> str:
    """Prefix of one vehicle's documents, or of all the user's documents."""
    if vehicle_id:
        return f"document_{user_id}_{vehicle_id}_"
    return f"document_{user_id}_"


def document_key(user_id: str, vehicle_id: str, document_id: str) -> str:
    return f"{document_prefix(user_id, vehicle_id)}{document_id}"


def document_ref_key(user_id: str, document_id: str) -> str:
    return f"document_ref_{user_id}_{document_id}"


def profile_key(user_id: str) -> str:
    return f"user_profile_{user_id}"


def blob_path(user_id: str, vehicle_id: str, document_id: str, filename: str) -> str:
    _, dot, extension = (filename or "").rpartition(".")
    extension = extension.lower() if dot and extension.isalnum() else "bin"
    return f"{user_id}/{vehicle_id}/{document_id}.{extension}"
