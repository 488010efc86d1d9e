"""
Document endpoints for API v1.

Documents are listed and created under their vehicle.  A document can
be metadata only (JSON body) or carry a file (multipart body with a
``file`` part and a ``documentData`` part holding the metadata as
JSON).  Download URLs are short‑lived and requested per document.
"""

import json
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import ValidationError

from vehicle_docs_api.app.core.config import settings
from vehicle_docs_api.app.core.exceptions import BadRequestError
from vehicle_docs_api.app.core.security import AuthenticatedUser, get_current_user
from vehicle_docs_api.app.schemas.document import (
    DocumentCreate,
    DocumentEnvelope,
    DocumentList,
    DocumentUploadResult,
    SignedUrl,
)
from vehicle_docs_api.app.services.document_service import DocumentService

router = APIRouter()


@router.get("/vehicles/{vehicle_id}/documents", response_model=DocumentList, response_model_exclude_unset=True)
async def list_documents(
    vehicle_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    return {"documents": await DocumentService.list_documents(current_user.id, vehicle_id)}


@router.post("/vehicles/{vehicle_id}/documents", response_model=DocumentEnvelope, response_model_exclude_unset=True)
async def add_document(
    vehicle_id: str,
    payload: DocumentCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    """Add a document without a file."""
    return {"document": await DocumentService.add_document_metadata(current_user.id, vehicle_id, payload)}


def _parse_document_data(raw: str) -> DocumentCreate:
    try:
        return DocumentCreate.model_validate(json.loads(raw))
    except json.JSONDecodeError as e:
        raise BadRequestError("documentData is not valid JSON") from e
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise BadRequestError(f"Invalid document data: {fields}") from e


@router.post(
    "/vehicles/{vehicle_id}/documents/upload",
    response_model=DocumentUploadResult,
    response_model_exclude_unset=True,
)
async def upload_document(
    vehicle_id: str,
    file: Optional[UploadFile] = File(None),
    document_data: Optional[str] = Form(None, alias="documentData"),
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    """Upload a file and record it as a document of the vehicle.

    Returns 400 when the file or its metadata is missing or invalid and
    404 when the vehicle does not belong to the caller.  A failed file
    upload leaves no document behind.
    """
    if file is None or not document_data:
        raise BadRequestError("File and document data are required")
    data = _parse_document_data(document_data)
    filename = file.filename or ""
    content_type = file.content_type or "application/octet-stream"
    if file.size is not None and file.size > settings.max_upload_bytes:
        DocumentService.validate_file(filename, content_type, file.size)
    # One byte past the limit is enough to tell that the file is too big.
    content = await file.read(settings.max_upload_bytes + 1)
    document = await DocumentService.upload_document(
        current_user.id,
        vehicle_id,
        filename=filename,
        content_type=content_type,
        content=content,
        data=data,
    )
    return {"success": True, "document": document, "message": "Document uploaded successfully"}


@router.delete("/vehicles/{vehicle_id}/documents/{document_id}")
async def delete_document(
    vehicle_id: str,
    document_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    """Delete a document and its file."""
    await DocumentService.delete_document(current_user.id, vehicle_id, document_id)
    return {"success": True}


@router.get("/documents/{document_id}/url", response_model=SignedUrl)
async def get_document_url(
    document_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    """Return a download URL valid for one hour."""
    return {"url": await DocumentService.get_signed_url(current_user.id, document_id)}
