# Overview: Flask API routes for maintenance reports; parses input and returns JSON responses.

# backend/vendtrack/routes/reports.py
"""
Report routes.

SECURITY: All routes require authentication.
- Admins and viewers read every report; routemen read only their own
- Routemen submit reports
- Admins export, delete, and toggle issue resolution
"""

from flask import Blueprint, Response, request, jsonify, current_app, g

from ..decorators import require_auth, require_capability, require_any_capability
from ..permissions import Capability, SCOPE_OWN, report_scope
from ..services import report_service
from ..services.export_service import export_filename, reports_to_csv
from ..services.report_view import REPORT_VIEW, report_summary, tab_counts
from ..services.view_pipeline import ViewError
from ..validation import NotFoundError, ValidationError
from .query import flag, list_payload, page_args, pick, sort_args
from vendtrack.time_utils import utcnow


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")

REPORT_FILTER_ARGS = ("reportType", "tab", "location", "machineSerialNumber", "status", "userId")


def _filters_from_args(args) -> dict:
    filters = pick(args, REPORT_FILTER_ARGS)
    date_range = {"start": args.get("start"), "end": args.get("end")}
    if any(date_range.values()):
        filters["dateRange"] = date_range
    return filters


def _visible_records(include_photos: bool = False) -> list[dict]:
    """Reports the caller may read, as wire records."""
    user_id = g.current_user.id if report_scope(g.capabilities) == SCOPE_OWN else None
    return report_service.report_records(user_id=user_id, include_photos=include_photos)


def _can_read(report) -> bool:
    if report_scope(g.capabilities) == SCOPE_OWN:
        return report.user_id == g.current_user.id
    return True


@reports_bp.get("")
@require_auth
@require_any_capability(Capability.VIEW_ALL_REPORTS, Capability.VIEW_OWN_REPORTS)
def list_reports_route():
    """
    Filtered, sorted, paginated report list.

    Query params:
    - reportType: all | iceCream | fridge
    - tab: 0 | 1 | 2 (dashboard tabs: all, ice cream, fridge)
    - start, end: ISO-8601 createdAt bounds (inclusive; a date-only end covers the whole day)
    - location: case-insensitive substring
    - machineSerialNumber: case-sensitive substring
    - status, userId: exact match
    - sort, direction: sort key and asc|desc (default createdAt desc)
    - page (zero-based), pageSize (default 10, max 100)
    - photos: 1 to include inline photos
    """
    args = request.args
    try:
        filters = _filters_from_args(args)
        sort = sort_args(args, REPORT_VIEW.default_sort)
        page, page_size = page_args(args)
        records = _visible_records(include_photos=flag(args.get("photos")))
        result = REPORT_VIEW.apply(records, filters, sort, page, page_size)
    except ViewError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list reports")
        return jsonify({"success": False, "error": "Internal server error"}), 500

    items = [dict(record, summary=report_summary(record)) for record in result.items]
    payload = list_payload(result, items)
    payload["counts"] = tab_counts(records)
    return jsonify(payload), 200


@reports_bp.get("/export.csv")
@require_auth
@require_capability(Capability.EXPORT_REPORTS)
def export_reports_route():
    """Every report matching the list filters (not just one page), as CSV."""
    args = request.args
    try:
        records = REPORT_VIEW.select(
            _visible_records(),
            _filters_from_args(args),
            sort_args(args, REPORT_VIEW.default_sort),
        )
    except ViewError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to export reports")
        return jsonify({"success": False, "error": "Internal server error"}), 500

    return Response(
        reports_to_csv(records),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(utcnow().date())}"'},
    )


@reports_bp.get("/<report_id>")
@require_auth
@require_any_capability(Capability.VIEW_ALL_REPORTS, Capability.VIEW_OWN_REPORTS)
def get_report_route(report_id: str):
    try:
        report = report_service.get_report(report_id)
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404

    # Other technicians' reports look absent rather than forbidden
    if not _can_read(report):
        return jsonify({"success": False, "error": "Report not found"}), 404

    record = report.to_dict()
    return jsonify({"success": True, "report": dict(record, summary=report_summary(record))}), 200


@reports_bp.post("")
@require_auth
@require_capability(Capability.CREATE_REPORTS)
def create_report_route():
    """
    Submit a report. Photos must already be compressed data URIs
    (see POST /api/photos/compress).
    """
    payload = request.get_json(silent=True)
    try:
        report = report_service.create_report(payload, g.current_user)
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create report")
        return jsonify({"success": False, "error": "Internal server error"}), 500

    return jsonify({"success": True, "report": report.to_dict()}), 201


@reports_bp.patch("/<report_id>/issue")
@require_auth
@require_capability(Capability.RESOLVE_ISSUES)
def set_issue_resolution_route(report_id: str):
    data = request.get_json(silent=True) or {}
    if "issueResolved" not in data:
        return jsonify({"success": False, "error": "issueResolved is required"}), 400

    try:
        report = report_service.set_issue_resolution(report_id, data["issueResolved"])
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    return jsonify({"success": True, "report": report.to_dict(include_photos=False)}), 200


@reports_bp.delete("/<report_id>")
@require_auth
@require_capability(Capability.DELETE_REPORTS)
def delete_report_route(report_id: str):
    try:
        report_service.delete_report(report_id)
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404

    return jsonify({"success": True}), 200
