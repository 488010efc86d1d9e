"""
Service layer for vehicle documents.

Documents are stored under ``document_<userId>_<vehicleId>_<id>`` with
a ``document_ref_<userId>_<id>`` pointer to the owning vehicle, so
signed URLs can be produced from a document id with direct key
lookups instead of scanning every document of the user.

File uploads write the blob first and the metadata second: if the blob
store refuses or fails the upload, no document record is created.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from vehicle_docs_api.app.core.backends import get_blob_store, get_record_store
from vehicle_docs_api.app.core.config import settings
from vehicle_docs_api.app.core.exceptions import BadRequestError, NotFoundError, StorageError
from vehicle_docs_api.app.schemas.document import DocumentCreate, DocumentRead
from vehicle_docs_api.app.services import keys


logger = logging.getLogger(__name__)

PROTECTED_FIELDS = (
    "id",
    "userId",
    "vehicleId",
    "filePath",
    "fileName",
    "fileType",
    "fileSize",
    "fileUrl",
    "createdAt",
    "updatedAt",
)


class DocumentService:
    """CRUD for documents scoped to one user and vehicle."""

    @staticmethod
    def _owned(records: List[Any], user_id: str, vehicle_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            r
            for r in records
            if isinstance(r, dict)
            and r.get("userId") == user_id
            and "id" in r
            and (vehicle_id is None or r.get("vehicleId") == vehicle_id)
        ]

    @classmethod
    async def list_documents(cls, user_id: str, vehicle_id: str) -> List[DocumentRead]:
        records = get_record_store().get_by_prefix(keys.document_prefix(user_id, vehicle_id))
        return [DocumentRead.model_validate(r) for r in cls._owned(records, user_id, vehicle_id)]

    @classmethod
    async def list_all_documents(cls, user_id: str) -> List[Dict[str, Any]]:
        """Raw records of every document of ``user_id``, across vehicles."""
        records = get_record_store().get_by_prefix(keys.document_prefix(user_id))
        return cls._owned(records, user_id)

    @classmethod
    def _store(cls, record: Dict[str, Any]) -> None:
        store = get_record_store()
        user_id, vehicle_id, document_id = record["userId"], record["vehicleId"], record["id"]
        store.set(keys.document_key(user_id, vehicle_id, document_id), record)
        store.set(keys.document_ref_key(user_id, document_id), {"vehicleId": vehicle_id})

    @classmethod
    def _new_record(cls, user_id: str, vehicle_id: str, data: DocumentCreate, document_id: str) -> Dict[str, Any]:
        payload = {k: v for k, v in data.to_record().items() if k not in PROTECTED_FIELDS}
        now = keys.utc_now()
        record: Dict[str, Any] = {"id": document_id, "userId": user_id, "vehicleId": vehicle_id, **payload}
        record.setdefault("description", "")
        record.setdefault("expiryDate", None)
        record["createdAt"] = now
        record["updatedAt"] = now
        return record

    @classmethod
    async def add_document_metadata(cls, user_id: str, vehicle_id: str, data: DocumentCreate) -> DocumentRead:
        """Persist a document that has no file attached."""
        from vehicle_docs_api.app.services.vehicle_service import VehicleService

        await VehicleService.get_vehicle_record(user_id, vehicle_id)
        record = cls._new_record(user_id, vehicle_id, data, keys.new_id())
        cls._store(record)
        logger.info("User %s added document %s to vehicle %s", user_id, record["id"], vehicle_id)
        return DocumentRead.model_validate(record)

    @classmethod
    def validate_file(cls, filename: str, content_type: str, size: int) -> None:
        if not filename or size <= 0:
            raise BadRequestError("File is empty")
        if size > settings.max_upload_bytes:
            raise BadRequestError(f"File exceeds the {settings.max_upload_bytes // (1024 * 1024)} MB limit")
        if settings.allowed_mime_types and content_type not in settings.allowed_mime_types:
            raise BadRequestError(f"File type {content_type or 'unknown'} is not allowed")

    @classmethod
    async def upload_document(
        cls,
        user_id: str,
        vehicle_id: str,
        filename: str,
        content_type: str,
        content: bytes,
        data: DocumentCreate,
    ) -> DocumentRead:
        """Store a file for a vehicle and record its metadata.

        The vehicle must belong to the caller.  The blob is written
        with upload‑if‑absent semantics; only after it succeeds is the
        document record written.  The long‑lived signed URL stored in
        ``fileUrl`` is a convenience for embedding; clients should ask
        for a fresh short‑lived URL to download.
        """
        from vehicle_docs_api.app.services.vehicle_service import VehicleService

        await VehicleService.get_vehicle_record(user_id, vehicle_id)
        cls.validate_file(filename, content_type, len(content))

        document_id = keys.new_id()
        path = keys.blob_path(user_id, vehicle_id, document_id, filename)
        blobs = get_blob_store()
        stored_path = blobs.upload(path, content, content_type)

        try:
            file_url: Optional[str] = blobs.create_signed_url(stored_path, settings.embed_url_ttl)
        except StorageError as exc:
            logger.warning("Could not sign %s after upload: %s", stored_path, exc.detail or exc.message)
            file_url = None

        record = cls._new_record(user_id, vehicle_id, data, document_id)
        record.update(
            {
                "filePath": stored_path,
                "fileName": filename,
                "fileType": content_type,
                "fileSize": len(content),
                "fileUrl": file_url,
            }
        )
        cls._store(record)
        logger.info("User %s uploaded %s (%d bytes) as document %s", user_id, filename, len(content), document_id)
        return DocumentRead.model_validate(record)

    @classmethod
    async def get_document_record(cls, user_id: str, document_id: str) -> Dict[str, Any]:
        store = get_record_store()
        ref = store.get(keys.document_ref_key(user_id, document_id))
        if not ref or not ref.get("vehicleId"):
            raise NotFoundError("Document not found")
        record = store.get(keys.document_key(user_id, ref["vehicleId"], document_id))
        if not record or record.get("userId") != user_id:
            raise NotFoundError("Document not found")
        return record

    @classmethod
    async def get_signed_url(cls, user_id: str, document_id: str) -> str:
        """Return a short‑lived download URL for the document's file."""
        record = await cls.get_document_record(user_id, document_id)
        if not record.get("filePath"):
            raise NotFoundError("Document or file not found")
        return get_blob_store().create_signed_url(record["filePath"], settings.download_url_ttl)

    @classmethod
    def _remove(cls, record: Dict[str, Any]) -> None:
        store = get_record_store()
        user_id, vehicle_id, document_id = record["userId"], record["vehicleId"], record["id"]
        store.delete(keys.document_key(user_id, vehicle_id, document_id))
        store.delete(keys.document_ref_key(user_id, document_id))
        if record.get("filePath"):
            try:
                get_blob_store().delete(record["filePath"])
            except StorageError as exc:
                # The metadata is gone either way; the orphaned file is only logged.
                logger.warning("Could not delete file %s: %s", record["filePath"], exc.detail or exc.message)

    @classmethod
    async def delete_document(cls, user_id: str, vehicle_id: str, document_id: str) -> None:
        record = get_record_store().get(keys.document_key(user_id, vehicle_id, document_id))
        if not record or record.get("userId") != user_id:
            raise NotFoundError("Document not found")
        cls._remove(record)
        logger.info("User %s deleted document %s", user_id, document_id)

    @classmethod
    async def delete_vehicle_documents(cls, user_id: str, vehicle_id: str) -> int:
        """Remove every document of a vehicle; return how many were removed."""
        records = cls._owned(
            get_record_store().get_by_prefix(keys.document_prefix(user_id, vehicle_id)), user_id, vehicle_id
        )
        for record in records:
            cls._remove(record)
        return len(records)
