"""
Pydantic schemas for vehicles and their compliance items.

A vehicle embeds three compliance items (insurance, inspection and
taxes).  Each item carries the expiry/renewal ``date`` and a derived
``status``; the status sent by a client is never trusted and is
recomputed from the date whenever the vehicle is written.
"""

from typing import Any, List, Literal, Optional, Union

from pydantic import Field

from .base import CamelModel


ComplianceStatus = Literal["valid", "warning", "expired"]
COMPLIANCE_ITEMS = ("insurance", "inspection", "taxes")


class ComplianceItem(CamelModel):
    # Both fields are loose on input: a null date counts as missing and
    # whatever status the client sends is replaced by the derived one.
    date: Optional[str] = Field("", description="ISO expiry/renewal date; empty means not recorded")
    status: Optional[Any] = None


class Insurance(ComplianceItem):
    company: Optional[str] = None
    policy_number: Optional[str] = None


class Inspection(ComplianceItem):
    center: Optional[str] = None


class Taxes(ComplianceItem):
    amount: Optional[Union[str, float]] = None


class InsuranceRead(Insurance):
    date: str = ""
    status: Optional[ComplianceStatus] = None


class InspectionRead(Inspection):
    date: str = ""
    status: Optional[ComplianceStatus] = None


class TaxesRead(Taxes):
    date: str = ""
    status: Optional[ComplianceStatus] = None


class VehicleBase(CamelModel):
    make: Optional[str] = Field(None, examples=["Honda"])
    model: Optional[str] = Field(None, examples=["Civic"])
    year: Optional[Union[str, int]] = Field(None, examples=["2022"])
    vin: Optional[str] = None
    color: Optional[str] = None
    type: Optional[str] = Field(None, description="Body type: suv, sedan, hatchback, pickup, minivan, coupe, van, other")
    image_url: Optional[str] = None
    insurance: Optional[Insurance] = None
    inspection: Optional[Inspection] = None
    taxes: Optional[Taxes] = None


class VehicleCreate(VehicleBase):
    """Schema for registering a vehicle."""

    name: str = Field(..., min_length=1, examples=["Civic"])
    plate: str = Field(..., min_length=1, examples=["AA-11-BB"])


class VehicleUpdate(VehicleBase):
    """Partial update; omitted fields keep their stored values."""

    name: Optional[str] = None
    plate: Optional[str] = None


class VehicleRead(VehicleBase):
    """A stored vehicle as returned by the API."""

    id: str
    user_id: str
    name: Optional[str] = None
    plate: Optional[str] = None
    created_at: str
    updated_at: str
    insurance: Optional[InsuranceRead] = None
    inspection: Optional[InspectionRead] = None
    taxes: Optional[TaxesRead] = None


class VehicleEnvelope(CamelModel):
    vehicle: VehicleRead


class VehicleList(CamelModel):
    vehicles: List[VehicleRead]
