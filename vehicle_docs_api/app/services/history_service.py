"""
Service building the activity feed of a user.

The feed mixes creation events with compliance deadlines:

* one ``vehicle`` event per vehicle at its ``createdAt``;
* one ``insurance``/``inspection``/``taxes`` event per compliance item
  that has a date, keyed on that date and carrying the item status;
* one ``document`` event per document at its ``createdAt``, labelled
  with the parent vehicle's name and plate.

Items are ordered by date, most recent first.  Items with the same
date keep the order in which they were generated.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from vehicle_docs_api.app.schemas.history import HistoryItem
from vehicle_docs_api.app.services.document_service import DocumentService
from vehicle_docs_api.app.services.vehicle_service import VehicleService


logger = logging.getLogger(__name__)

MISSING_VEHICLE_NAME = "Vehicle"

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)

# type -> (title, fallback description, field holding the description)
COMPLIANCE_EVENTS = {
    "insurance": ("Insurance", "Insurance renewal", "company"),
    "inspection": ("Inspection", "Technical inspection", "center"),
    "taxes": ("Taxes", "Tax payment", None),
}


def event_timestamp(value: Any) -> datetime:
    """Sort key for an event date; unreadable dates sort last."""
    if not value or not isinstance(value, str):
        return _OLDEST
    try:
        moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return _OLDEST
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _vehicle_events(vehicle: Dict[str, Any]) -> List[Dict[str, Any]]:
    base = {
        "vehicleId": vehicle.get("id"),
        "vehicleName": vehicle.get("name"),
        "vehiclePlate": vehicle.get("plate"),
    }
    events = [
        {
            "id": f"vehicle_{vehicle.get('id')}",
            "date": vehicle.get("createdAt") or "",
            "type": "vehicle",
            "title": "Vehicle added",
            "description": f"{vehicle.get('name') or ''} ({vehicle.get('plate') or ''})",
            **base,
        }
    ]
    for item_type, (title, fallback, field) in COMPLIANCE_EVENTS.items():
        item = vehicle.get(item_type)
        if not isinstance(item, dict) or not item.get("date"):
            continue
        event = {
            "id": f"{item_type}_{vehicle.get('id')}",
            "date": item["date"],
            "type": item_type,
            "title": title,
            "description": (item.get(field) if field else None) or fallback,
            "dateRange": item["date"],
            "status": item.get("status"),
            **base,
        }
        if item_type == "taxes":
            event["amount"] = item.get("amount")
        events.append(event)
    return events


def _document_event(document: Dict[str, Any], vehicles: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    vehicle = vehicles.get(document.get("vehicleId"), {})
    return {
        "id": f"document_{document.get('id')}",
        "date": document.get("createdAt") or "",
        "type": "document",
        "title": "Document added",
        "description": document.get("name"),
        "vehicleId": document.get("vehicleId"),
        "vehicleName": vehicle.get("name") or MISSING_VEHICLE_NAME,
        "vehiclePlate": vehicle.get("plate") or "",
        "documentType": document.get("type"),
    }


class HistoryService:
    """Aggregates vehicles and documents into one time‑sorted feed."""

    @classmethod
    async def build_history(cls, user_id: str) -> List[HistoryItem]:
        vehicles = await VehicleService.load_vehicles(user_id)
        documents = await DocumentService.list_all_documents(user_id)

        items: List[Dict[str, Any]] = []
        for vehicle in vehicles:
            items.extend(_vehicle_events(vehicle))
        by_id = {v.get("id"): v for v in vehicles}
        items.extend(_document_event(document, by_id) for document in documents)

        # list.sort is stable, also with reverse=True.
        items.sort(key=lambda item: event_timestamp(item["date"]), reverse=True)
        logger.debug("Built history of %d item(s) for user %s", len(items), user_id)
        return [HistoryItem.model_validate(item) for item in items]
