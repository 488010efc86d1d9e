"""
Service layer for vehicles.

Vehicles are stored as JSON records under ``vehicle_<userId>_<id>``.
Descriptive fields are kept exactly as the client sent them; the
status of each compliance item is recomputed from its date on every
write and again when records are read, so a status never goes stale
while the record sits unchanged in the store.

Deleting a vehicle cascades to its documents and their files.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from vehicle_docs_api.app.core.backends import get_record_store
from vehicle_docs_api.app.core.exceptions import NotFoundError
from vehicle_docs_api.app.schemas.vehicle import COMPLIANCE_ITEMS, VehicleCreate, VehicleRead, VehicleUpdate
from vehicle_docs_api.app.services import keys
from vehicle_docs_api.app.services.status_service import apply_compliance_statuses


logger = logging.getLogger(__name__)

# Fields owned by the server; a payload can never overwrite them.
PROTECTED_FIELDS = ("id", "userId", "createdAt", "updatedAt")


class VehicleService:
    """CRUD for vehicle records scoped to one user."""

    @classmethod
    async def load_vehicles(cls, user_id: str) -> List[Dict[str, Any]]:
        """Return the raw vehicle records of ``user_id`` with fresh statuses.

        Records whose ``userId`` does not match are dropped; the prefix
        scan alone would accept a user id that merely starts with ours.
        """
        records = get_record_store().get_by_prefix(keys.vehicle_prefix(user_id))
        return [apply_compliance_statuses(dict(r)) for r in records if isinstance(r, dict) and r.get("userId") == user_id]

    @classmethod
    async def list_vehicles(cls, user_id: str) -> List[VehicleRead]:
        return [VehicleRead.model_validate(record) for record in await cls.load_vehicles(user_id)]

    @classmethod
    async def get_vehicle_record(cls, user_id: str, vehicle_id: str) -> Dict[str, Any]:
        """Return one raw record or raise ``NotFoundError``."""
        record = get_record_store().get(keys.vehicle_key(user_id, vehicle_id))
        if not record or record.get("userId") != user_id:
            raise NotFoundError("Vehicle not found")
        return apply_compliance_statuses(dict(record))

    @classmethod
    async def get_vehicle(cls, user_id: str, vehicle_id: str) -> VehicleRead:
        return VehicleRead.model_validate(await cls.get_vehicle_record(user_id, vehicle_id))

    @classmethod
    async def create_vehicle(cls, user_id: str, data: VehicleCreate) -> VehicleRead:
        """Store a new vehicle and return it.

        Compliance items the client left out are stored with an empty
        date, which makes them count as expired until filled in.
        """
        payload = {k: v for k, v in data.to_record().items() if k not in PROTECTED_FIELDS}
        now = keys.utc_now()
        vehicle_id = keys.new_id()
        record: Dict[str, Any] = {"id": vehicle_id, "userId": user_id, **payload}
        for item_type in COMPLIANCE_ITEMS:
            if not record.get(item_type):
                record[item_type] = {"date": ""}
        apply_compliance_statuses(record)
        record["createdAt"] = now
        record["updatedAt"] = now
        get_record_store().set(keys.vehicle_key(user_id, vehicle_id), record)
        logger.info("User %s created vehicle %s", user_id, vehicle_id)
        return VehicleRead.model_validate(record)

    @classmethod
    async def update_vehicle(cls, user_id: str, vehicle_id: str, data: VehicleUpdate) -> VehicleRead:
        """Shallow‑merge the fields sent by the client onto the stored record.

        A compliance item sent in the payload replaces the stored item
        as a whole; its status is recomputed from its date.
        """
        existing = await cls.get_vehicle_record(user_id, vehicle_id)
        changes = {k: v for k, v in data.to_record().items() if k not in PROTECTED_FIELDS}
        record = {**existing, **changes}
        for item_type in COMPLIANCE_ITEMS:
            if record.get(item_type) is None:
                record[item_type] = {"date": ""}
        apply_compliance_statuses(record)
        record["updatedAt"] = keys.utc_now()
        get_record_store().set(keys.vehicle_key(user_id, vehicle_id), record)
        logger.info("User %s updated vehicle %s (%s)", user_id, vehicle_id, ", ".join(sorted(changes)) or "no fields")
        return VehicleRead.model_validate(record)

    @classmethod
    async def delete_vehicle(cls, user_id: str, vehicle_id: str) -> None:
        """Delete a vehicle together with its documents and their files."""
        await cls.get_vehicle_record(user_id, vehicle_id)
        from vehicle_docs_api.app.services.document_service import DocumentService

        removed = await DocumentService.delete_vehicle_documents(user_id, vehicle_id)
        get_record_store().delete(keys.vehicle_key(user_id, vehicle_id))
        logger.info("User %s deleted vehicle %s and %d document(s)", user_id, vehicle_id, removed)
