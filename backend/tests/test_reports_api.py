"""
Report API tests.

Verifies:
- Routemen submit reports and see only their own
- Admins and viewers see every report through the list view
- Issue resolution toggle, hard delete, CSV export
"""

import csv
import io
from datetime import date, datetime

import pytest

from vendtrack.extensions import db
from vendtrack.models import Report
from vendtrack.services import report_service
from vendtrack.services.export_service import export_filename, reports_to_csv
from conftest import fridge_payload, ice_cream_payload


def _create(client, headers, payload):
    resp = client.post("/api/reports", json=payload, headers=headers)
    assert resp.status_code == 201, resp.json
    return resp.json["report"]


def _set_created_at(report_id, value: datetime):
    report = db.session.get(Report, report_id)
    report.created_at = value
    db.session.commit()


@pytest.fixture
def seeded(client, routeman_headers, other_routeman_headers):
    """Three reports: two by the first technician, one by the second."""
    first = _create(client, routeman_headers, ice_cream_payload())
    second = _create(client, routeman_headers, fridge_payload())
    third = _create(client, other_routeman_headers, ice_cream_payload(
        location="Bakırköy Marina", machineSerialNumber="1100000001", status="issue",
        hasIssue=True, issueDescription="Compressor noise",
    ))
    _set_created_at(first["id"], datetime(2024, 3, 1, 9, 0))
    _set_created_at(second["id"], datetime(2024, 3, 2, 9, 0))
    _set_created_at(third["id"], datetime(2024, 3, 3, 9, 0))
    return first, second, third


class TestCreate:
    def test_create_ice_cream_report(self, client, routeman_headers, routeman_user):
        report = _create(client, routeman_headers, ice_cream_payload())
        assert report["reportType"] == "iceCream"
        assert report["status"] == "completed"
        assert report["location"] == "Kadikoy Iskele"
        assert report["userId"] == routeman_user.id
        assert report["userName"] == "Ali Tech"
        assert report["title"].startswith("Kadikoy Iskele-2403290003-")
        assert len(report["title"].rsplit("-", 1)[1]) == 14
        assert len(report["beforePhotos"]) == 1

    def test_submitter_comes_from_session(self, client, routeman_headers, routeman_user):
        report = _create(client, routeman_headers, ice_cream_payload(userId=999, userName="Someone"))
        assert report["userId"] == routeman_user.id
        assert report["userName"] == "Ali Tech"

    def test_create_fridge_report(self, client, routeman_headers):
        report = _create(client, routeman_headers, fridge_payload())
        assert report["reportType"] == "fridge"
        assert [slot["id"] for slot in report["slots"]] == [1, 7]
        assert "cleaningChecklist" not in report

    def test_invalid_submission_is_not_stored(self, client, routeman_headers):
        resp = client.post("/api/reports", json=ice_cream_payload(machineSerialNumber="12345"), headers=routeman_headers)
        assert resp.status_code == 400
        assert resp.json["success"] is False
        assert db.session.query(Report).count() == 0

    @pytest.mark.parametrize("headers_fixture", ["admin_headers", "viewer_headers"])
    def test_only_routemen_submit(self, client, request, headers_fixture):
        headers = request.getfixturevalue(headers_fixture)
        resp = client.post("/api/reports", json=ice_cream_payload(), headers=headers)
        assert resp.status_code == 403
        assert resp.json["required_capability"] == "CREATE_REPORTS"


class TestList:
    def test_admin_sees_all_newest_first(self, client, admin_headers, seeded):
        first, second, third = seeded
        resp = client.get("/api/reports", headers=admin_headers)
        assert resp.status_code == 200
        body = resp.json
        assert [item["id"] for item in body["items"]] == [third["id"], second["id"], first["id"]]
        assert body["totalCount"] == 3
        assert body["counts"]["all"] == 3
        assert body["counts"]["fridge"] == 1
        assert body["pagination"]["totalPages"] == 1

    def test_routeman_sees_only_own(self, client, routeman_headers, seeded):
        first, second, _ = seeded
        body = client.get("/api/reports", headers=routeman_headers).json
        assert sorted(item["id"] for item in body["items"]) == sorted([first["id"], second["id"]])
        assert body["counts"]["all"] == 2

    def test_list_omits_photos_by_default(self, client, viewer_headers, seeded):
        item = client.get("/api/reports", headers=viewer_headers).json["items"][0]
        assert "beforePhotos" not in item
        assert item["photoCounts"] == {"beforePhotos": 1, "afterPhotos": 1, "issuePhotos": 0}
        assert item["summary"]["photos"]["before"] == 1

        item = client.get("/api/reports?photos=1", headers=viewer_headers).json["items"][0]
        assert len(item["beforePhotos"]) == 1

    def test_filters(self, client, admin_headers, seeded):
        first, second, third = seeded

        def listed(query):
            resp = client.get(f"/api/reports?{query}", headers=admin_headers)
            assert resp.status_code == 200, resp.json
            return [item["id"] for item in resp.json["items"]]

        assert listed("reportType=fridge") == [second["id"]]
        assert listed("tab=1") == [third["id"], first["id"]]
        assert listed("location=bakirkoy") == [third["id"]]
        assert listed("machineSerialNumber=11000") == [third["id"]]
        assert listed("status=issue") == [third["id"]]
        assert listed("start=2024-03-02&end=2024-03-02") == [second["id"]]
        assert listed("sort=location&direction=asc") == [second["id"], third["id"], first["id"]]

    def test_fridge_summary(self, client, admin_headers, seeded):
        items = client.get("/api/reports?reportType=fridge", headers=admin_headers).json["items"]
        assert items[0]["summary"]["slots"] == {"filled": 2, "capacity": 58, "totalQuantity": 17}

    def test_pagination(self, client, admin_headers, seeded):
        body = client.get("/api/reports?page=1&pageSize=2", headers=admin_headers).json
        assert len(body["items"]) == 1
        assert body["totalCount"] == 3
        assert body["pagination"] == {"page": 1, "pageSize": 2, "totalPages": 2, "hasNext": False, "hasPrev": True}

        body = client.get("/api/reports?page=7&pageSize=2", headers=admin_headers).json
        assert body["items"] == []
        assert body["totalCount"] == 3

    def test_page_size_is_capped(self, client, admin_headers, seeded):
        body = client.get("/api/reports?pageSize=5000", headers=admin_headers).json
        assert body["pagination"]["pageSize"] == 100

    @pytest.mark.parametrize("query", ["page=-1", "pageSize=0", "page=abc", "sort=title", "direction=up&sort=status", "tab=9", "reportType=fridgee", "start=soon"])
    def test_bad_query(self, client, admin_headers, seeded, query):
        resp = client.get(f"/api/reports?{query}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["success"] is False


class TestGet:
    def test_owner_can_read(self, client, routeman_headers, seeded):
        first = seeded[0]
        resp = client.get(f"/api/reports/{first['id']}", headers=routeman_headers)
        assert resp.status_code == 200
        assert resp.json["report"]["id"] == first["id"]
        assert resp.json["report"]["summary"]["equipment"] == {"completed": 1, "total": 2}

    def test_other_technicians_report_is_hidden(self, client, routeman_headers, seeded):
        third = seeded[2]
        assert client.get(f"/api/reports/{third['id']}", headers=routeman_headers).status_code == 404

    def test_missing(self, client, viewer_headers, db_session):
        assert client.get("/api/reports/doesnotexist", headers=viewer_headers).status_code == 404


class TestIssueResolution:
    def test_admin_resolves_and_reopens(self, client, admin_headers, seeded):
        third = seeded[2]
        resp = client.patch(f"/api/reports/{third['id']}/issue", json={"issueResolved": True}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["report"]["issueResolved"] is True
        assert resp.json["report"]["issueResolvedDate"]

        resp = client.patch(f"/api/reports/{third['id']}/issue", json={"issueResolved": False}, headers=admin_headers)
        assert resp.json["report"]["issueResolved"] is False
        assert resp.json["report"]["issueResolvedDate"] is None

    def test_report_without_issue(self, client, admin_headers, seeded):
        first = seeded[0]
        resp = client.patch(f"/api/reports/{first['id']}/issue", json={"issueResolved": True}, headers=admin_headers)
        assert resp.status_code == 400

    def test_value_must_be_boolean(self, client, admin_headers, seeded):
        third = seeded[2]
        resp = client.patch(f"/api/reports/{third['id']}/issue", json={"issueResolved": "yes"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_viewer_cannot_resolve(self, client, viewer_headers, seeded):
        third = seeded[2]
        resp = client.patch(f"/api/reports/{third['id']}/issue", json={"issueResolved": True}, headers=viewer_headers)
        assert resp.status_code == 403


class TestDelete:
    def test_admin_deletes(self, client, admin_headers, seeded):
        first = seeded[0]
        assert client.delete(f"/api/reports/{first['id']}", headers=admin_headers).status_code == 200
        assert db.session.get(Report, first["id"]) is None
        assert client.delete(f"/api/reports/{first['id']}", headers=admin_headers).status_code == 404

    def test_routeman_cannot_delete_own(self, client, routeman_headers, seeded):
        first = seeded[0]
        assert client.delete(f"/api/reports/{first['id']}", headers=routeman_headers).status_code == 403


class TestExport:
    def test_export_contains_every_filtered_report(self, client, admin_headers, seeded):
        resp = client.get("/api/reports/export.csv?reportType=iceCream&pageSize=1", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert 'filename="reports_' in resp.headers["Content-Disposition"]
        lines = resp.get_data(as_text=True).strip().split("\n")
        assert lines[0] == '"ID","Report Type","Location","Machine Serial No","User","Date","Status","Notes"'
        assert len(lines) == 3
        assert '"Bakirkoy Marina","1100000001","Berk Tech","03.03.2024","issue"' in lines[1]

    def test_viewer_cannot_export(self, client, viewer_headers, seeded):
        assert client.get("/api/reports/export.csv", headers=viewer_headers).status_code == 403

    def test_quotes_commas_and_newlines_are_escaped(self):
        record = {
            "id": "r1",
            "reportType": "fridge",
            "location": "Kadikoy, Pier 2",
            "machineSerialNumber": "2403290003",
            "userName": "Ali Tech",
            "status": "completed",
            "notes": 'He said "ok", then left\nline2',
        }
        text = reports_to_csv([record])
        assert '"He said ""ok"", then left\nline2"' in text

        header, row = list(csv.reader(io.StringIO(text)))
        assert row == [
            "r1", "Fresh Fridge", "Kadikoy, Pier 2", "2403290003", "Ali Tech",
            "", "completed", 'He said "ok", then left\nline2',
        ]
        assert header[5] == "Date"

    def test_filename_uses_the_day(self):
        assert export_filename(date(2024, 3, 9)) == "reports_2024-03-09.csv"


def test_title_format():
    assert report_service.build_title("Kadikoy", "2403290003", datetime(2024, 3, 29, 14, 30, 5)) == \
        "Kadikoy-2403290003-20240329143005"
