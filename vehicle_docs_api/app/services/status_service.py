"""
Compliance status derivation.

Every compliance item (insurance, inspection, taxes) has an expiry
date.  Its status is one of:

* ``expired`` – the date is in the past, missing or unreadable;
* ``warning`` – the date falls within the item's warning window;
* ``valid``   – the date is further away than the window.

Warning windows are configured per item type through
``settings.warning_windows`` (insurance 7 days, inspection 14 days and
taxes 30 days by default).  All call sites, including the client's
notification builder, use this single policy.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional

from vehicle_docs_api.app.core.config import settings
from vehicle_docs_api.app.schemas.vehicle import COMPLIANCE_ITEMS


VALID = "valid"
WARNING = "warning"
EXPIRED = "expired"


def parse_date(value: Any) -> Optional[date]:
    """Return the calendar date of an ISO date or datetime string, or ``None``."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def warning_window(item_type: Optional[str]) -> int:
    """Number of days before expiry at which ``item_type`` turns to warning."""
    if item_type:
        days = settings.warning_windows.get(item_type.lower())
        if days is not None:
            return days
    return settings.default_warning_days


def days_until(value: Any, today: Optional[date] = None) -> Optional[int]:
    expiry = parse_date(value)
    if expiry is None:
        return None
    return (expiry - (today or date.today())).days


def derive_status(value: Any, item_type: Optional[str] = None, today: Optional[date] = None) -> str:
    """Map an expiry date to ``valid``, ``warning`` or ``expired``.

    A missing or unparseable date is treated as non‑compliant.
    """
    remaining = days_until(value, today)
    if remaining is None or remaining < 0:
        return EXPIRED
    if remaining <= warning_window(item_type):
        return WARNING
    return VALID


def apply_compliance_statuses(record: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """Recompute ``status`` of every compliance item present in ``record``.

    The record is modified in place and returned for convenience.
    Items that are not dictionaries are replaced by an empty item.
    """
    for item_type in COMPLIANCE_ITEMS:
        if item_type not in record:
            continue
        item = record[item_type]
        if not isinstance(item, dict):
            item = {"date": ""}
        item = dict(item)
        if item.get("date") is None:
            item["date"] = ""
        item["status"] = derive_status(item.get("date"), item_type, today)
        record[item_type] = item
    return record
