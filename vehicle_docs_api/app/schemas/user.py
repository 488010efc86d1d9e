"""
Pydantic models for accounts and profiles.

Core identity (id, email, display name) belongs to the identity
provider; the remaining profile fields are an overlay kept in the
record store.  ``ProfileUpdate`` accepts both kinds and any extra
fields the client wants to keep.
"""

from typing import Any, Dict, Optional

from pydantic import Field

from .base import CamelModel


class SignUpRequest(CamelModel):
    email: str = Field(..., examples=["driver@example.com"])
    password: str = Field(..., examples=["strongpassword"])
    name: Optional[str] = Field(None, examples=["Ana Silva"])


class SignInRequest(CamelModel):
    email: str
    password: str


class ProfileFields(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    avatar: Optional[str] = None
    license_number: Optional[str] = None
    license_expiry: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None


class ProfileUpdate(ProfileFields):
    """Fields to change; omitted fields keep their stored values."""


class Profile(ProfileFields):
    """The merged view returned by ``GET /profile``."""

    id: str
    name: str = "User"


class ProfileEnvelope(CamelModel):
    user: Profile


class ProfileUpdateResult(CamelModel):
    success: bool = True
    profile: Dict[str, Any]
