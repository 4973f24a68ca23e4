# Overview: Generic in-memory list view: filter, stable sort, paginate.

"""
List View Engine

One parametrized filter -> sort -> paginate routine shared by every list the
API renders (reports, commodities). A view is configured with:

- an ordered list of named filters (FilterSpec); each filter value is parsed
  once per call, then tested against every record, all filters ANDed;
- a table of sort-key extractors; sorting is stable, so records with equal
  keys keep their filtered input order in both directions;
- a default SortConfig used when the caller gives none.

Records are plain dicts. A record missing a field is compared as if the
field held an empty/zero value and is never dropped unless a filter rejects
it. Inputs are not mutated and there are no clock reads, so identical inputs
always give identical output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence


ASC = "asc"
DESC = "desc"
DIRECTIONS = (ASC, DESC)


class ViewError(ValueError):
    """Raised for invalid view parameters (unknown key, bad page, bad filter value)."""


@dataclass(frozen=True)
class SortConfig:
    key: str
    direction: str = ASC

    @classmethod
    def parse(cls, key: str | None, direction: str | None, default: "SortConfig") -> "SortConfig":
        """Build from request arguments; a missing key falls back to the default."""
        if not key:
            return default
        return cls(key=key, direction=(direction or ASC).lower())


@dataclass(frozen=True)
class FilterSpec:
    """
    A named filter.

    predicate(record, parsed_value) -> bool
    parse(raw_value) -> parsed_value; raise ViewError for unusable input.
    """
    name: str
    predicate: Callable[[Mapping[str, Any], Any], bool]
    parse: Callable[[Any], Any] | None = None


@dataclass(frozen=True)
class ViewResult:
    items: list
    total_count: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.total_count == 0:
            return 1
        return (self.total_count + self.page_size - 1) // self.page_size

    def pagination(self) -> dict:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "totalPages": self.total_pages,
            "hasNext": self.page + 1 < self.total_pages,
            "hasPrev": self.page > 0,
        }


def is_blank(value: Any) -> bool:
    """Unset filter values: None, blank strings, and mappings with only blank values."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, Mapping):
        return all(is_blank(v) for v in value.values())
    return False


def text_value(record: Mapping[str, Any], field: str) -> str:
    """Field as text; missing/None is the empty string."""
    value = record.get(field)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def casefold_key(field: str) -> Callable[[Mapping[str, Any]], str]:
    """Sort-key extractor comparing a field as case-insensitive text."""
    def extract(record: Mapping[str, Any]) -> str:
        return text_value(record, field).lower()
    return extract


def contains_ci(field: str, name: str | None = None) -> FilterSpec:
    """Case-insensitive substring filter on one field, exposed under name (default: the field)."""
    return FilterSpec(
        name=name or field,
        predicate=lambda record, needle: needle in text_value(record, field).lower(),
        parse=lambda raw: str(raw).strip().lower(),
    )


class ListView:
    def __init__(
        self,
        *,
        filters: Sequence[FilterSpec],
        sort_keys: Mapping[str, Callable[[Mapping[str, Any]], Any]],
        default_sort: SortConfig,
    ):
        if default_sort.key not in sort_keys:
            raise ValueError(f"default sort key {default_sort.key!r} is not a sort key")
        self._filters = tuple(filters)
        self._filter_names = {spec.name for spec in self._filters}
        self._sort_keys = dict(sort_keys)
        self.default_sort = default_sort

    @property
    def filter_names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self._filters)

    @property
    def sort_key_names(self) -> tuple[str, ...]:
        return tuple(self._sort_keys)

    def _active_filters(self, filters: Mapping[str, Any] | None) -> list[tuple[FilterSpec, Any]]:
        filters = filters or {}
        unknown = sorted(set(filters) - self._filter_names)
        if unknown:
            raise ViewError(f"Unknown filter: {', '.join(unknown)}")

        active = []
        # Configured order, not caller order
        for spec in self._filters:
            raw = filters.get(spec.name)
            if is_blank(raw):
                continue
            value = spec.parse(raw) if spec.parse else raw
            if is_blank(value):
                continue
            active.append((spec, value))
        return active

    def filter(self, records: Iterable[Mapping[str, Any]], filters: Mapping[str, Any] | None = None) -> list:
        result = list(records)
        for spec, value in self._active_filters(filters):
            result = [record for record in result if spec.predicate(record, value)]
        return result

    def sort(self, records: Iterable[Mapping[str, Any]], sort: SortConfig | None = None) -> list:
        sort = sort or self.default_sort
        extract = self._sort_keys.get(sort.key)
        if extract is None:
            raise ViewError(f"Unknown sort key: {sort.key} (expected one of: {', '.join(self.sort_key_names)})")
        if sort.direction not in DIRECTIONS:
            raise ViewError("direction must be asc or desc")
        # sorted() is stable for reverse=True as well
        return sorted(records, key=extract, reverse=sort.direction == DESC)

    def select(
        self,
        records: Iterable[Mapping[str, Any]],
        filters: Mapping[str, Any] | None = None,
        sort: SortConfig | None = None,
    ) -> list:
        """Every record passing the filters, sorted. Used where pagination does not apply (exports)."""
        return self.sort(self.filter(records, filters), sort)

    def apply(
        self,
        records: Iterable[Mapping[str, Any]],
        filters: Mapping[str, Any] | None = None,
        sort: SortConfig | None = None,
        page: int = 0,
        page_size: int = 10,
    ) -> ViewResult:
        """
        Filter, sort and slice one page.

        page is zero-based; a page past the end yields no items rather than
        an error. total_count counts every record passing the filters.
        """
        if isinstance(page, bool) or not isinstance(page, int) or page < 0:
            raise ViewError("page must be a non-negative integer")
        if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
            raise ViewError("page_size must be a positive integer")

        ordered = self.select(records, filters, sort)
        start = page * page_size
        return ViewResult(
            items=ordered[start:start + page_size],
            total_count=len(ordered),
            page=page,
            page_size=page_size,
        )
