# Overview: Query-string parsing shared by the list routes.

import re

from flask import current_app

from ..services.view_pipeline import SortConfig, ViewError, ViewResult


_NON_NEGATIVE_INT = re.compile(r"^\d+$")

TRUE_VALUES = {"1", "true", "yes", "on"}


def flag(value: str | None) -> bool:
    return (value or "").strip().lower() in TRUE_VALUES


def _int_arg(args, name: str, default: int) -> int:
    raw = args.get(name)
    if raw is None or raw.strip() == "":
        return default
    if not _NON_NEGATIVE_INT.match(raw.strip()):
        raise ViewError(f"{name} must be a non-negative integer")
    return int(raw)


def page_args(args) -> tuple[int, int]:
    """
    page (zero-based) and pageSize from the query string.

    pageSize defaults to DEFAULT_PAGE_SIZE and is capped at MAX_PAGE_SIZE.
    """
    page = _int_arg(args, "page", 0)
    page_size = _int_arg(args, "pageSize", current_app.config["DEFAULT_PAGE_SIZE"])
    if page_size < 1:
        raise ViewError("pageSize must be at least 1")
    return page, min(page_size, current_app.config["MAX_PAGE_SIZE"])


def sort_args(args, default: SortConfig) -> SortConfig:
    return SortConfig.parse(args.get("sort"), args.get("direction"), default)


def pick(args, names) -> dict:
    """Filter values present in the query string, keyed by filter name."""
    return {name: args.get(name) for name in names if args.get(name) is not None}


def list_payload(result: ViewResult, items: list) -> dict:
    return {
        "success": True,
        "items": items,
        "totalCount": result.total_count,
        "pagination": result.pagination(),
    }
