# Overview: Service-layer operations for the commodity catalog; CRUD and bulk import.

"""
Commodity Service

The catalog is keyed by the supplier's commodity code. Single creates
reject a duplicate code; bulk imports overwrite the existing entry for a
code, so re-importing the same sheet is idempotent.

Supports CSV, JSON, and Excel (.xlsx) uploads for import.
"""

import csv
import io
import json

from flask import current_app

from ..extensions import db
from ..models import Commodity, COMMODITY_FIELD_MAP
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)
from vendtrack.time_utils import utcnow


CODE_KEY = "Commodity code"
NAME_KEY = "Product name"

COMMODITY_POLICY = ModelValidationPolicy(
    writable_fields=set(COMMODITY_FIELD_MAP),
    required_on_create={CODE_KEY, NAME_KEY},
    field_map=COMMODITY_FIELD_MAP,
)

EXCEL_EXTENSIONS = {"xlsx", "xlsm", "xltx", "xltm"}


class CommodityImportError(ValueError):
    """The upload as a whole could not be read."""


def list_commodities() -> list[Commodity]:
    return db.session.query(Commodity).order_by(Commodity.product_name.asc(), Commodity.id.asc()).all()


def commodity_records() -> list[dict]:
    return [commodity.to_dict() for commodity in list_commodities()]


def find_by_code(code: str) -> Commodity | None:
    return db.session.query(Commodity).filter_by(code=code).first()


def get_commodity(code: str) -> Commodity:
    commodity = find_by_code(code)
    if not commodity:
        raise NotFoundError("Commodity not found")
    return commodity


def create_commodity(payload: dict) -> Commodity:
    """
    Raises:
        ValidationError: missing code/name, unknown field, bad value
        ConflictError: the code is already in the catalog
    """
    patch = validate_payload(model=Commodity, payload=payload, policy=COMMODITY_POLICY, partial=False)

    if find_by_code(patch["code"]):
        raise ConflictError(f"Commodity code already exists: {patch['code']}")

    now = utcnow()
    commodity = Commodity(**patch, created_at=now, updated_at=now)
    db.session.add(commodity)
    db.session.commit()
    return commodity


def update_commodity(code: str, payload: dict) -> Commodity:
    commodity = get_commodity(code)
    patch = validate_payload(model=Commodity, payload=payload, policy=COMMODITY_POLICY, partial=True)

    new_code = patch.get("code")
    if new_code and new_code != commodity.code and find_by_code(new_code):
        raise ConflictError(f"Commodity code already exists: {new_code}")

    for key, value in patch.items():
        setattr(commodity, key, value)
    commodity.updated_at = utcnow()
    db.session.commit()
    return commodity


def delete_commodity(code: str) -> None:
    commodity = get_commodity(code)
    db.session.delete(commodity)
    db.session.commit()


def _commodity_items(payload) -> list:
    """
    Accepts {"commodityList": {key: item, ...}}, {"commodityList": [...]}, or
    a bare list of items.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        if "commodityList" not in payload:
            raise CommodityImportError("commodityList not found in payload")
        items = payload["commodityList"]
        if isinstance(items, dict):
            return list(items.values())
        if isinstance(items, list):
            return items
    raise CommodityImportError("commodityList must be an object or a list")


def _upsert(item: dict, now) -> None:
    known = {key: value for key, value in item.items() if key in COMMODITY_FIELD_MAP}
    patch = validate_payload(model=Commodity, payload=known, policy=COMMODITY_POLICY, partial=False)

    commodity = find_by_code(patch["code"])
    if commodity is None:
        commodity = Commodity(created_at=now)
        db.session.add(commodity)
    for key, value in patch.items():
        setattr(commodity, key, value)
    commodity.updated_at = now


def import_commodities(payload) -> dict:
    """
    Best-effort bulk import. Each item is handled on its own: items without
    a code or product name, or with invalid values, are counted as errors
    and skipped; the rest are created or overwritten by code.

    Returns {"successCount", "errorCount", "total"}.

    Raises:
        CommodityImportError: the payload has no item list at all
    """
    items = _commodity_items(payload)
    logger = current_app.logger
    logger.info("Importing %d commodities", len(items))

    success_count = 0
    error_count = 0
    now = utcnow()

    for item in items:
        if not isinstance(item, dict) or not item.get(CODE_KEY) or not item.get(NAME_KEY):
            logger.warning("Skipping commodity with missing code or name: %r", item)
            error_count += 1
            continue
        try:
            _upsert(item, now)
        except ValidationError as e:
            logger.warning("Skipping commodity %r: %s", item.get(CODE_KEY), e)
            error_count += 1
            continue
        success_count += 1

    db.session.commit()
    logger.info("Commodity import finished: %d imported, %d failed", success_count, error_count)

    return {
        "successCount": success_count,
        "errorCount": error_count,
        "total": len(items),
    }


def _rows_from_workbook(stream) -> list[dict]:
    from openpyxl import load_workbook
    wb = load_workbook(stream, data_only=True, read_only=True)
    try:
        data = list(wb.active.values)
    finally:
        wb.close()
    if not data:
        return []
    headers = [str(h).strip() if h is not None else "" for h in data[0]]
    rows = []
    for row in data[1:]:
        if row is None or all(cell is None for cell in row):
            continue
        rows.append({
            headers[i]: row[i]
            for i in range(min(len(headers), len(row)))
            if headers[i] and row[i] is not None
        })
    return rows


def parse_commodity_upload(filename: str, stream):
    """
    Read an uploaded catalog file into an import payload.

    CSV and Excel sheets need a header row using the catalog keys
    ("Commodity code", "Product name", ...). JSON files are passed through.
    """
    ext = (filename or "").rsplit(".", 1)[-1].lower()

    try:
        if ext == "csv":
            text = stream.read().decode("utf-8-sig")
            reader = csv.DictReader(io.StringIO(text))
            return [
                {key.strip(): value for key, value in row.items() if key and value not in (None, "")}
                for row in reader
            ]
        if ext == "json":
            return json.load(stream)
        if ext in EXCEL_EXTENSIONS:
            return _rows_from_workbook(stream)
    except Exception as e:
        # openpyxl raises zipfile/KeyError variants for corrupt workbooks
        raise CommodityImportError(f"Failed to parse upload: {e}") from e

    raise CommodityImportError("Unsupported file format")
