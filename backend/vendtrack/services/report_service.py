# Overview: Service-layer operations for maintenance reports.

"""
Report Service

Reports are written once by the technician who performed the visit. After
creation the only permitted change is the issue-resolution toggle; admins
may also hard delete. Listing returns plain wire records so the view
pipeline can filter/sort/paginate them in memory.
"""

from ..extensions import db
from ..models import Report, User
from ..validation import NotFoundError, ValidationError, validate_report_submission
from vendtrack.time_utils import utcnow


TITLE_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def build_title(location: str, serial: str, created_at) -> str:
    """<cleaned location>-<serial>-<YYYYMMDDHHMMSS>, e.g. "Mall of Istanbul-2403290003-20240329143000"."""
    return f"{location}-{serial}-{created_at.strftime(TITLE_TIMESTAMP_FORMAT)}"


def _report_query():
    return db.session.query(Report).order_by(Report.created_at.desc(), Report.id.asc())


def list_reports() -> list[Report]:
    return _report_query().all()


def list_reports_by_user(user_id: int) -> list[Report]:
    return _report_query().filter(Report.user_id == user_id).all()


def report_records(user_id: int | None = None, include_photos: bool = False) -> list[dict]:
    """
    Wire records for the list view. user_id restricts to one submitter.

    Photos are heavy (inline data URIs) and left out unless asked for;
    photoCounts is emitted instead.
    """
    reports = list_reports() if user_id is None else list_reports_by_user(user_id)
    return [report.to_dict(include_photos=include_photos) for report in reports]


def get_report(report_id: str) -> Report:
    report = db.session.get(Report, report_id)
    if not report:
        raise NotFoundError("Report not found")
    return report


def create_report(payload: dict, user: User) -> Report:
    """
    Validate a submission and store it.

    The submitter's id and name are copied from the session, never taken
    from the payload.

    Raises:
        ValidationError: the submission is rejected; nothing is stored
    """
    data = validate_report_submission(payload)

    now = utcnow()
    report = Report(
        **data,
        title=build_title(data["location"], data["machine_serial_number"], now),
        user_id=user.id,
        user_name=user.name,
        created_at=now,
        updated_at=now,
    )

    db.session.add(report)
    db.session.commit()
    return report


def set_issue_resolution(report_id: str, resolved: bool) -> Report:
    """
    Mark a reported issue resolved (stamps the date) or reopen it (clears it).
    """
    if not isinstance(resolved, bool):
        raise ValidationError("issueResolved must be a boolean")

    report = get_report(report_id)
    if not report.has_issue:
        raise ValidationError("Report has no issue to resolve")

    now = utcnow()
    report.issue_resolved = resolved
    report.issue_resolved_date = now if resolved else None
    report.updated_at = now
    db.session.commit()
    return report


def delete_report(report_id: str) -> None:
    report = get_report(report_id)
    db.session.delete(report)
    db.session.commit()
