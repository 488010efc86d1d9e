from __future__ import annotations

from datetime import date, timedelta

import pytest

from vehicle_docs_api.app.core.config import parse_warning_windows
from vehicle_docs_api.app.services.status_service import (
    EXPIRED,
    VALID,
    WARNING,
    apply_compliance_statuses,
    days_until,
    derive_status,
    parse_date,
    warning_window,
)

TODAY = date(2025, 6, 15)


def _in(days: int) -> str:
    return (TODAY + timedelta(days=days)).isoformat()


@pytest.mark.parametrize("value", ["", None, "not a date", "2025-13-45", 42])
def test_missing_or_unreadable_date_is_expired(value) -> None:
    assert derive_status(value, "insurance", TODAY) == EXPIRED


@pytest.mark.parametrize("days", [-1, -30, -3650])
def test_past_dates_are_expired(days: int) -> None:
    for item_type in ("insurance", "inspection", "taxes", None):
        assert derive_status(_in(days), item_type, TODAY) == EXPIRED


def test_expiry_today_is_a_warning_not_expired() -> None:
    assert derive_status(_in(0), "insurance", TODAY) == WARNING


@pytest.mark.parametrize(
    "item_type,window",
    [("insurance", 7), ("inspection", 14), ("taxes", 30), ("registration", 30), (None, 30)],
)
def test_window_boundaries_per_item_type(item_type, window: int) -> None:
    assert warning_window(item_type) == window
    assert derive_status(_in(window), item_type, TODAY) == WARNING
    assert derive_status(_in(window + 1), item_type, TODAY) == VALID


def test_datetime_strings_use_their_calendar_day() -> None:
    assert parse_date("2025-06-20T23:59:00.000Z") == date(2025, 6, 20)
    assert days_until("2025-06-20T08:00:00Z", TODAY) == 5
    assert days_until("", TODAY) is None


def test_apply_compliance_statuses_overrides_client_status() -> None:
    record = {
        "insurance": {"date": _in(-2), "status": "valid", "company": "Fidelidade"},
        "inspection": {"date": None},
        "taxes": "garbage",
    }

    apply_compliance_statuses(record, TODAY)

    assert record["insurance"] == {"date": _in(-2), "status": EXPIRED, "company": "Fidelidade"}
    assert record["inspection"] == {"date": "", "status": EXPIRED}
    assert record["taxes"] == {"date": "", "status": EXPIRED}


def test_apply_compliance_statuses_leaves_absent_items_alone() -> None:
    record = {"name": "Civic", "insurance": {"date": _in(100)}}

    apply_compliance_statuses(record, TODAY)

    assert record["insurance"]["status"] == VALID
    assert "inspection" not in record and "taxes" not in record


def test_parse_warning_windows() -> None:
    assert parse_warning_windows("Insurance=3, taxes=60,") == {"insurance": 3, "taxes": 60}
    with pytest.raises(ValueError):
        parse_warning_windows("insurance")
