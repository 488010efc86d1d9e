"""
Pydantic schemas for vehicle documents.

A document belongs to one vehicle of one user.  It may be metadata
only, or reference an uploaded file through ``file_path`` together
with the file's original name, MIME type and size in bytes.
"""

from typing import List, Literal, Optional

from pydantic import Field

from .base import CamelModel


DocumentType = Literal["insurance", "inspection", "taxes", "registration", "other"]


class DocumentCreate(CamelModel):
    """Schema for adding a document (with or without a file)."""

    type: DocumentType = Field(..., examples=["insurance"])
    name: str = Field(..., min_length=1, examples=["Apólice 2025"])
    description: Optional[str] = None
    expiry_date: Optional[str] = Field(None, description="ISO date the document stops being valid")


class DocumentRead(CamelModel):
    id: str
    user_id: str
    vehicle_id: str
    type: DocumentType
    name: str
    description: Optional[str] = None
    expiry_date: Optional[str] = None
    file_path: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    file_url: Optional[str] = None
    created_at: str
    updated_at: str


class DocumentEnvelope(CamelModel):
    document: DocumentRead


class DocumentUploadResult(CamelModel):
    success: bool = True
    document: DocumentRead
    message: str = "Document uploaded successfully"


class DocumentList(CamelModel):
    documents: List[DocumentRead]


class SignedUrl(CamelModel):
    url: str
