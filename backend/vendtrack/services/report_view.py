# Overview: Report list configuration of the view engine, plus derived report counts.

from __future__ import annotations

import re
from collections import Counter
from typing import Any, Iterable, Mapping

from vendtrack.models import REPORT_STATUSES
from vendtrack.time_utils import EPOCH, coerce_datetime, end_of_day, is_date_only
from .view_pipeline import (
    DESC,
    FilterSpec,
    ListView,
    SortConfig,
    ViewError,
    casefold_key,
    is_blank,
    text_value,
)


ICE_CREAM = "iceCream"
FRIDGE = "fridge"
ALL = "all"

# Dashboard tabs: 0 all, 1 ice cream cleaning, 2 fresh fridge fill
TABS = (ALL, ICE_CREAM, FRIDGE)

FRIDGE_SLOT_COUNT = 58

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def report_type_of(record: Mapping[str, Any]) -> str:
    """Reports created before fridge reports existed have no type; they are ice cream reports."""
    report_type = record.get("reportType")
    if not report_type:
        return ICE_CREAM
    return report_type


# =============================================================================
# FILTERS
# =============================================================================

def _parse_report_type(raw: Any) -> str:
    value = str(raw).strip()
    if value not in TABS:
        raise ViewError(f"reportType must be one of: {', '.join(TABS)}")
    return value


def _match_report_type(record: Mapping[str, Any], value: str) -> bool:
    if value == ALL:
        return True
    return report_type_of(record) == value


def _parse_tab(raw: Any) -> str:
    value = str(raw).strip()
    if value.isdigit():
        index = int(value)
        if index >= len(TABS):
            raise ViewError(f"tab must be between 0 and {len(TABS) - 1}")
        return TABS[index]
    if value not in TABS:
        raise ViewError(f"tab must be one of: {', '.join(TABS)}")
    return value


def _parse_date_range(raw: Any):
    if not isinstance(raw, Mapping):
        raise ViewError("dateRange must be an object with start and/or end")
    unknown = set(raw) - {"start", "end"}
    if unknown:
        raise ViewError(f"Unknown dateRange field: {', '.join(sorted(unknown))}")

    bounds = []
    for name in ("start", "end"):
        value = raw.get(name)
        if is_blank(value):
            bounds.append(None)
            continue
        dt = coerce_datetime(value)
        if dt is None:
            raise ViewError(f"dateRange.{name} must be an ISO-8601 date")
        if name == "end" and is_date_only(value):
            dt = end_of_day(dt)
        bounds.append(dt)

    start, end = bounds
    if start is None and end is None:
        return None
    return start, end


def created_at_of(record: Mapping[str, Any]):
    """createdAt as a datetime; missing or unreadable values sort as the epoch."""
    return coerce_datetime(record.get("createdAt")) or EPOCH


def _match_date_range(record: Mapping[str, Any], bounds) -> bool:
    start, end = bounds
    created = created_at_of(record)
    if start is not None and created < start:
        return False
    if end is not None and created > end:
        return False
    return True


def _match_location(record: Mapping[str, Any], needle: str) -> bool:
    return needle in text_value(record, "location").lower()


def _match_serial(record: Mapping[str, Any], needle: str) -> bool:
    # Case-sensitive, unlike location
    return needle in text_value(record, "machineSerialNumber")


def _parse_status(raw: Any) -> str:
    value = str(raw).strip()
    if value not in REPORT_STATUSES:
        raise ViewError(f"status must be one of: {', '.join(REPORT_STATUSES)}")
    return value


REPORT_FILTERS = (
    FilterSpec("reportType", _match_report_type, _parse_report_type),
    FilterSpec("tab", _match_report_type, _parse_tab),
    FilterSpec("dateRange", _match_date_range, _parse_date_range),
    FilterSpec("location", _match_location, lambda raw: str(raw).strip().lower()),
    FilterSpec("machineSerialNumber", _match_serial, lambda raw: str(raw).strip()),
    FilterSpec("status", lambda record, value: record.get("status") == value, _parse_status),
    FilterSpec("userId", lambda record, value: text_value(record, "userId") == value, lambda raw: str(raw).strip()),
)

REPORT_SORT_KEYS = {
    "createdAt": created_at_of,
    "location": casefold_key("location"),
    "machineSerialNumber": casefold_key("machineSerialNumber"),
    "userName": casefold_key("userName"),
    "status": casefold_key("status"),
    "reportType": lambda record: report_type_of(record).lower(),
}

DEFAULT_REPORT_SORT = SortConfig("createdAt", DESC)

REPORT_VIEW = ListView(
    filters=REPORT_FILTERS,
    sort_keys=REPORT_SORT_KEYS,
    default_sort=DEFAULT_REPORT_SORT,
)


# =============================================================================
# DERIVED COUNTS
# =============================================================================

def leading_int(value: Any) -> int:
    """Integer prefix of a quantity ("12 pcs" -> 12); anything else is 0."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and abs(value) != float("inf") else 0
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


def _slots(record: Mapping[str, Any]) -> list:
    slots = record.get("slots") or []
    if isinstance(slots, Mapping):
        slots = list(slots.values())
    return [slot for slot in slots if isinstance(slot, Mapping)]


def slot_fill_count(record: Mapping[str, Any]) -> int:
    return sum(1 for slot in _slots(record) if slot.get("commodity"))


def total_slot_quantity(record: Mapping[str, Any]) -> int:
    return sum(leading_int(slot.get("quantity")) for slot in _slots(record))


def checklist_progress(items: Any) -> dict:
    items = [item for item in (items or []) if isinstance(item, Mapping)]
    return {
        "completed": sum(1 for item in items if item.get("completed")),
        "total": len(items),
    }


def report_summary(record: Mapping[str, Any]) -> dict:
    """Counts shown next to a report row; always derived, never stored."""
    summary = {
        "reportType": report_type_of(record),
        "equipment": checklist_progress(record.get("equipmentChecklist")),
        "photos": {
            "before": len(record.get("beforePhotos") or []),
            "after": len(record.get("afterPhotos") or []),
            "issue": len(record.get("issuePhotos") or []),
        },
    }
    if summary["reportType"] == FRIDGE:
        summary["slots"] = {
            "filled": slot_fill_count(record),
            "capacity": FRIDGE_SLOT_COUNT,
            "totalQuantity": total_slot_quantity(record),
        }
    else:
        summary["cleaning"] = checklist_progress(record.get("cleaningChecklist"))
    return summary


def tab_counts(records: Iterable[Mapping[str, Any]]) -> dict:
    """Per-tab and per-status totals over an unfiltered report list."""
    records = list(records)
    types = Counter(report_type_of(record) for record in records)
    statuses = Counter(record.get("status") or "" for record in records)
    return {
        ALL: len(records),
        ICE_CREAM: types.get(ICE_CREAM, 0),
        FRIDGE: types.get(FRIDGE, 0),
        "byStatus": {status: statuses.get(status, 0) for status in REPORT_STATUSES},
    }
