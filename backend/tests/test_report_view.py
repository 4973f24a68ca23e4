"""
Report list view tests.

Verifies:
- Type/tab, date range, location and serial filters
- Sort keys, missing values, and the createdAt desc default
- Derived counts (slot fill, total quantity, checklist progress, tabs)
"""

import pytest

from vendtrack.services.report_view import (
    REPORT_VIEW,
    checklist_progress,
    leading_int,
    report_summary,
    report_type_of,
    slot_fill_count,
    tab_counts,
    total_slot_quantity,
)
from vendtrack.services.view_pipeline import SortConfig, ViewError


ISTANBUL = {"id": 1, "location": "Istanbul", "createdAt": "2024-01-01", "reportType": "fridge"}
ANKARA = {"id": 2, "location": "Ankara", "createdAt": "2024-02-01", "reportType": "iceCream"}


def ids(records):
    return [record["id"] for record in records]


@pytest.fixture
def reports():
    return [
        {"id": "a", "location": "Kadikoy Iskele", "machineSerialNumber": "2403290003", "userName": "ali",
         "status": "completed", "createdAt": "2024-03-01T08:00:00Z", "userId": 1},
        {"id": "b", "location": "kadikoy carsi", "machineSerialNumber": "2403290004", "userName": "Berk",
         "status": "issue", "createdAt": "2024-03-02T23:59:59Z", "reportType": "fridge", "userId": 2},
        {"id": "c", "location": "Besiktas", "machineSerialNumber": "1100000000", "userName": "Can",
         "status": "completed", "createdAt": "2024-03-03T00:00:00Z", "reportType": "iceCream", "userId": 1},
        {"id": "d", "location": "Uskudar", "machineSerialNumber": "2403290005", "status": "pending",
         "reportType": "fridge"},
    ]


class TestScenarios:
    def test_type_filter_with_date_sort(self):
        result = REPORT_VIEW.apply(
            [ISTANBUL, ANKARA],
            {"reportType": "fridge"},
            SortConfig("createdAt", "desc"),
            page=0,
            page_size=10,
        )
        assert result.total_count == 1
        assert ids(result.items) == [1]

    def test_location_sort_ascending(self):
        result = REPORT_VIEW.apply([ISTANBUL, ANKARA], None, SortConfig("location", "asc"), 0, 10)
        assert ids(result.items) == [2, 1]


class TestTypeFilters:
    def test_ice_cream_includes_untyped_reports(self, reports):
        assert ids(REPORT_VIEW.filter(reports, {"reportType": "iceCream"})) == ["a", "c"]

    def test_all_keeps_everything(self, reports):
        assert ids(REPORT_VIEW.filter(reports, {"reportType": "all"})) == ["a", "b", "c", "d"]

    @pytest.mark.parametrize("tab,expected", [
        (0, ["a", "b", "c", "d"]),
        ("1", ["a", "c"]),
        (2, ["b", "d"]),
        ("fridge", ["b", "d"]),
    ])
    def test_dashboard_tabs(self, reports, tab, expected):
        assert ids(REPORT_VIEW.filter(reports, {"tab": tab})) == expected

    @pytest.mark.parametrize("tab", ["3", "frozen"])
    def test_unknown_tab_raises(self, reports, tab):
        with pytest.raises(ViewError):
            REPORT_VIEW.filter(reports, {"tab": tab})

    @pytest.mark.parametrize("report_type", ["fridgee", "Fridge", "1"])
    def test_unknown_report_type_raises(self, reports, report_type):
        with pytest.raises(ViewError):
            REPORT_VIEW.filter(reports, {"reportType": report_type})

    def test_report_type_of_defaults_to_ice_cream(self):
        assert report_type_of({}) == "iceCream"
        assert report_type_of({"reportType": ""}) == "iceCream"
        assert report_type_of({"reportType": "fridge"}) == "fridge"


class TestDateRange:
    def test_end_date_covers_whole_day(self, reports):
        result = REPORT_VIEW.filter(reports, {"dateRange": {"start": "2024-03-02", "end": "2024-03-02"}})
        assert ids(result) == ["b"]

    def test_bounds_are_inclusive(self, reports):
        result = REPORT_VIEW.filter(reports, {"dateRange": {"start": "2024-03-01T08:00:00Z", "end": "2024-03-03T00:00:00Z"}})
        assert ids(result) == ["a", "b", "c"]

    def test_open_ended_start(self, reports):
        result = REPORT_VIEW.filter(reports, {"dateRange": {"start": "2024-03-02"}})
        assert ids(result) == ["b", "c"]

    def test_missing_created_at_is_epoch(self, reports):
        assert "d" in ids(REPORT_VIEW.filter(reports, {"dateRange": {"end": "2000-01-01"}}))
        assert "d" not in ids(REPORT_VIEW.filter(reports, {"dateRange": {"start": "2000-01-01"}}))

    def test_empty_range_is_ignored(self, reports):
        assert len(REPORT_VIEW.filter(reports, {"dateRange": {"start": None, "end": ""}})) == 4

    def test_unparseable_date_raises(self, reports):
        with pytest.raises(ViewError):
            REPORT_VIEW.filter(reports, {"dateRange": {"start": "yesterday"}})


class TestTextFilters:
    def test_location_is_case_insensitive(self, reports):
        assert ids(REPORT_VIEW.filter(reports, {"location": "KADIKOY"})) == ["a", "b"]

    def test_serial_is_substring(self, reports):
        assert ids(REPORT_VIEW.filter(reports, {"machineSerialNumber": "240329"})) == ["a", "b", "d"]

    def test_serial_is_case_sensitive(self):
        records = [{"id": 1, "machineSerialNumber": "AB12"}]
        assert ids(REPORT_VIEW.filter(records, {"machineSerialNumber": "AB"})) == [1]
        assert ids(REPORT_VIEW.filter(records, {"machineSerialNumber": "ab"})) == []

    def test_status_and_user(self, reports):
        assert ids(REPORT_VIEW.filter(reports, {"status": "completed", "userId": "1"})) == ["a", "c"]

    def test_unknown_status_raises(self, reports):
        with pytest.raises(ViewError):
            REPORT_VIEW.filter(reports, {"status": "archived"})


class TestSorting:
    def test_default_is_newest_first(self, reports):
        assert ids(REPORT_VIEW.select(reports)) == ["c", "b", "a", "d"]

    def test_user_name_ignores_case_and_missing_sorts_first(self, reports):
        assert ids(REPORT_VIEW.select(reports, sort=SortConfig("userName", "asc"))) == ["d", "a", "b", "c"]

    def test_report_type_sort_is_stable(self, reports):
        result = REPORT_VIEW.select(reports, sort=SortConfig("reportType", "asc"))
        assert ids(result) == ["b", "d", "a", "c"]

    def test_filter_is_idempotent(self, reports):
        filters = {"location": "kadikoy"}
        once = REPORT_VIEW.filter(reports, filters)
        assert REPORT_VIEW.filter(once, filters) == once

    def test_unknown_sort_key(self, reports):
        with pytest.raises(ViewError):
            REPORT_VIEW.select(reports, sort=SortConfig("title", "asc"))


class TestDerivedCounts:
    def test_leading_int(self):
        assert leading_int("12") == 12
        assert leading_int("5 pcs") == 5
        assert leading_int(" 7") == 7
        assert leading_int("pcs 5") == 0
        assert leading_int("") == 0
        assert leading_int(None) == 0
        assert leading_int(3.9) == 3

    def test_slot_counts(self):
        record = {"slots": [
            {"id": 1, "commodity": "Water", "quantity": "12"},
            {"id": 2, "commodity": "", "quantity": "3"},
            {"id": 9, "commodity": "Sandwich", "quantity": "5 pcs"},
        ]}
        assert slot_fill_count(record) == 2
        assert total_slot_quantity(record) == 20

    def test_slots_keyed_by_number(self):
        record = {"slots": {"1": {"commodity": "Water", "quantity": "2"}, "4": {"commodity": "Cola", "quantity": "x"}}}
        assert slot_fill_count(record) == 2
        assert total_slot_quantity(record) == 2

    def test_checklist_progress(self):
        items = [{"completed": True}, {"completed": False}, {"completed": True}]
        assert checklist_progress(items) == {"completed": 2, "total": 3}
        assert checklist_progress(None) == {"completed": 0, "total": 0}

    def test_summary_for_fridge_report(self):
        summary = report_summary({
            "reportType": "fridge",
            "slots": [{"id": 3, "commodity": "Water", "quantity": "4"}],
            "beforePhotos": ["x", "y"],
            "afterPhotos": ["z"],
        })
        assert summary["slots"] == {"filled": 1, "capacity": 58, "totalQuantity": 4}
        assert summary["photos"] == {"before": 2, "after": 1, "issue": 0}
        assert "cleaning" not in summary

    def test_summary_for_ice_cream_report(self):
        summary = report_summary({"cleaningChecklist": [{"completed": True}]})
        assert summary["reportType"] == "iceCream"
        assert summary["cleaning"] == {"completed": 1, "total": 1}
        assert "slots" not in summary

    def test_tab_counts(self, reports):
        counts = tab_counts(reports)
        assert counts["all"] == 4
        assert counts["iceCream"] == 2
        assert counts["fridge"] == 2
        assert counts["byStatus"]["completed"] == 2
        assert counts["byStatus"]["waste"] == 0
