# Overview: Commodity catalog configuration of the view engine.

from __future__ import annotations

import math
import re
from typing import Any, Mapping

from .view_pipeline import (
    ASC,
    FilterSpec,
    ListView,
    SortConfig,
    casefold_key,
    contains_ci,
    text_value,
)


CODE = "Commodity code"
PRODUCT_NAME = "Product name"
UNIT_PRICE = "Unit price"
COST_PRICE = "Cost price"
SUPPLIER = "Supplier"
SPECS = "Specs"
TYPE = "Type"
DESCRIPTION = "Description"

SEARCH_FIELDS = (PRODUCT_NAME, CODE, SUPPLIER, TYPE)

_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def price_value(value: Any) -> float:
    """Leading decimal of a price ("12.5 TL" -> 12.5); non-numeric is 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _LEADING_FLOAT.match(str(value))
        if not match:
            return 0.0
        number = float(match.group(1))
    return number if math.isfinite(number) else 0.0


def _price_key(field: str):
    def extract(record: Mapping[str, Any]) -> float:
        return price_value(record.get(field))
    return extract


def _match_search(record: Mapping[str, Any], needle: str) -> bool:
    return any(needle in text_value(record, field).lower() for field in SEARCH_FIELDS)


COMMODITY_FILTERS = (
    FilterSpec("search", _match_search, lambda raw: str(raw).strip().lower()),
    contains_ci(SUPPLIER, "supplier"),
    contains_ci(TYPE, "type"),
    contains_ci(PRODUCT_NAME, "productName"),
    contains_ci(CODE, "commodityCode"),
)

COMMODITY_SORT_KEYS = {
    PRODUCT_NAME: casefold_key(PRODUCT_NAME),
    CODE: casefold_key(CODE),
    SUPPLIER: casefold_key(SUPPLIER),
    TYPE: casefold_key(TYPE),
    UNIT_PRICE: _price_key(UNIT_PRICE),
    COST_PRICE: _price_key(COST_PRICE),
}

COMMODITY_VIEW = ListView(
    filters=COMMODITY_FILTERS,
    sort_keys=COMMODITY_SORT_KEYS,
    default_sort=SortConfig(PRODUCT_NAME, ASC),
)
