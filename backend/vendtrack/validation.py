from __future__ import annotations
from datetime import datetime
from vendtrack.time_utils import parse_iso_datetime

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .models import REPORT_STATUSES, REPORT_TYPES


SERIAL_NUMBER_RE = re.compile(r"^[0-9]{10}$")
MAX_SLOT_ID = 58
SLOT_FIELDS = ("commodity", "quantity", "expiryDate", "batchNumber")
ITEM_FIELDS = ("name", "brand", "amount", "unit")
WASTE_ITEM_FIELDS = ("productName", "productCode", "quantity", "unit", "reason")

# Turkish letters that NFKD does not reduce to ASCII on its own (e.g. dotless i)
_TURKISH_ASCII = str.maketrans({
    "ğ": "g", "Ğ": "G",
    "ü": "u", "Ü": "U",
    "ş": "s", "Ş": "S",
    "ı": "i", "İ": "I",
    "ö": "o", "Ö": "O",
    "ç": "c", "Ç": "C",
})
_LOCATION_DISALLOWED = re.compile(r"[^a-zA-Z0-9\s\-_]")
_WHITESPACE = re.compile(r"\s+")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate commodity code)."""


class NotFoundError(LookupError):
    """404-level: the addressed record does not exist."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - field_map: wire key -> column key, for payloads that do not use column names
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    field_map: dict[str, str] = field(default_factory=dict)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any, label: str):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or not re.fullmatch(r"-?\d+", stripped):
                raise ValidationError(f"{label} must be an integer")
            return int(stripped)
        raise ValidationError(f"{label} must be an integer")

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in {"true", "1", "yes"}:
                return True
            if lowered in {"false", "0", "no"}:
                return False
            raise ValidationError(f"{label} must be a boolean")
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{label} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{label} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{label} must be a datetime")

    # Strings / Text; supplier sheets send prices as numbers
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{label} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields, in wire keys)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column name.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(
            f for f in policy.required_on_create
            if payload.get(f) is None or str(payload.get(f)).strip() == ""
        )
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if policy.field_map.get(k, k) not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        key = policy.field_map.get(k, k)
        col = cols[key]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[key] = None
            continue

        val = _coerce_value(col, raw, k)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[key] = val

    return patch


# =============================================================================
# REPORT SUBMISSION RULES
# =============================================================================

def clean_location(location: str) -> str:
    """
    ASCII-safe location text: Turkish letters and other diacritics are folded
    to their base letter, anything but letters, digits, spaces, '-' and '_'
    is dropped, and runs of whitespace collapse to one space.
    """
    text = (location or "").translate(_TURKISH_ASCII)
    text = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = _LOCATION_DISALLOWED.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def is_valid_serial_number(value: Any) -> bool:
    """Machine serial numbers are exactly ten ASCII digits (e.g. 2403290003)."""
    if not isinstance(value, str):
        return False
    return bool(SERIAL_NUMBER_RE.fullmatch(value.strip()))


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _require_list(payload: dict, key: str) -> list:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{key} must be a list")
    return value


def _normalize_photos(payload: dict, key: str) -> list[str]:
    photos = _require_list(payload, key)
    for photo in photos:
        if not isinstance(photo, str) or not photo.startswith("data:image/"):
            raise ValidationError(f"{key} must contain encoded images (data:image/... strings)")
    return photos


def normalize_checklist(items: Any, key: str) -> list[dict]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValidationError(f"{key} must be a list")
    normalized = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError(f"{key} items must be objects")
        completed = bool(item.get("completed"))
        normalized.append({
            "id": item.get("id"),
            "text": _text(item.get("text")),
            "completed": completed,
            "completedAt": item.get("completedAt") if completed else None,
        })
    return normalized


def _normalize_items(items: Any, key: str, fields: tuple[str, ...]) -> list[dict]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValidationError(f"{key} must be a list")
    normalized = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError(f"{key} items must be objects")
        normalized.append({name: _text(item.get(name)) for name in fields})
    return normalized


def normalize_filling_details(details: Any) -> dict:
    if details is None:
        details = {}
    if not isinstance(details, dict):
        raise ValidationError("fillingDetails must be an object")
    base = details.get("iceCreamBase") or {}
    if not isinstance(base, dict):
        raise ValidationError("fillingDetails.iceCreamBase must be an object")
    return {
        "iceCreamBase": {
            "amount": _text(base.get("amount")),
            "unit": _text(base.get("unit")),
            "unitType": _text(base.get("unitType")),
        },
        "toppings": _normalize_items(details.get("toppings"), "fillingDetails.toppings", ITEM_FIELDS),
        "sauces": _normalize_items(details.get("sauces"), "fillingDetails.sauces", ITEM_FIELDS),
    }


def normalize_slots(slots: Any) -> list[dict]:
    """
    Keep only slots with at least one non-empty field, ordered by slot id.
    Slot ids must be 1..58 and unique.
    """
    if slots is None:
        return []
    if isinstance(slots, dict):
        slots = [dict(value, id=value.get("id", key)) for key, value in slots.items() if isinstance(value, dict)]
    if not isinstance(slots, list):
        raise ValidationError("slots must be a list")

    kept: dict[int, dict] = {}
    for slot in slots:
        if not isinstance(slot, dict):
            raise ValidationError("slots items must be objects")
        try:
            slot_id = int(slot.get("id"))
        except (TypeError, ValueError):
            raise ValidationError("slot id must be an integer")
        if not 1 <= slot_id <= MAX_SLOT_ID:
            raise ValidationError(f"slot id must be between 1 and {MAX_SLOT_ID}")
        values = {name: _text(slot.get(name)) for name in SLOT_FIELDS}
        if not any(values.values()):
            continue
        if slot_id in kept:
            raise ValidationError(f"slot {slot_id} appears more than once")
        kept[slot_id] = {"id": slot_id, **values}

    return [kept[slot_id] for slot_id in sorted(kept)]


def validate_report_submission(payload: dict) -> dict:
    """
    Check a field submission and return the normalized report data.

    Raises ValidationError on the first problem; nothing is created in that case.
    """
    if payload is None or not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    location = _text(payload.get("location"))
    serial = _text(payload.get("machineSerialNumber"))
    if not location or not serial:
        raise ValidationError("location and machineSerialNumber are required")

    if not is_valid_serial_number(serial):
        raise ValidationError("machineSerialNumber must be a 10 digit number (e.g. 2403290003)")

    cleaned_location = clean_location(location)
    if not cleaned_location:
        raise ValidationError("location must contain letters or digits")

    before = _normalize_photos(payload, "beforePhotos")
    after = _normalize_photos(payload, "afterPhotos")
    issue = _normalize_photos(payload, "issuePhotos")
    if not before:
        raise ValidationError("At least one before photo is required")
    if not after:
        raise ValidationError("At least one after photo is required")

    report_type = payload.get("reportType") or "iceCream"
    if report_type not in REPORT_TYPES:
        raise ValidationError(f"reportType must be one of: {', '.join(REPORT_TYPES)}")

    status = payload.get("status") or "completed"
    if status not in REPORT_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(REPORT_STATUSES)}")

    data = {
        "report_type": report_type,
        "status": status,
        "location": cleaned_location,
        "machine_serial_number": serial,
        "notes": _text(payload.get("notes")),
        "equipment_checklist": normalize_checklist(payload.get("equipmentChecklist"), "equipmentChecklist"),
        "before_photos": before,
        "after_photos": after,
        "issue_photos": issue,
        "has_issue": bool(payload.get("hasIssue")),
        "issue_description": _text(payload.get("issueDescription")) or None,
        "issue_date": _text(payload.get("issueDate")) or None,
    }

    if data["has_issue"] and not data["issue_description"]:
        raise ValidationError("issueDescription is required when hasIssue is set")

    if report_type == "fridge":
        data["slots"] = normalize_slots(payload.get("slots"))
    else:
        has_waste = bool(payload.get("hasWaste"))
        waste_items = _normalize_items(payload.get("wasteItems"), "wasteItems", WASTE_ITEM_FIELDS)
        if has_waste and not waste_items:
            raise ValidationError("wasteItems are required when hasWaste is set")
        data.update({
            "cleaning_checklist": normalize_checklist(payload.get("cleaningChecklist"), "cleaningChecklist"),
            "filling_details": normalize_filling_details(payload.get("fillingDetails")),
            "cup_stock": _text(payload.get("cupStock")) or None,
            "waste": _text(payload.get("waste")) or None,
            "stock_info": _text(payload.get("stockInfo")) or None,
            "has_waste": has_waste,
            "waste_items": waste_items,
            "waste_date": _text(payload.get("wasteDate")) or None,
        })

    return data
