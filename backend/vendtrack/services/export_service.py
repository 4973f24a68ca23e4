# Overview: CSV export of the filtered report list.

import csv
import io
from datetime import date
from typing import Iterable, Mapping

from vendtrack.time_utils import coerce_datetime
from .report_view import report_type_of


EXPORT_COLUMNS = (
    "ID",
    "Report Type",
    "Location",
    "Machine Serial No",
    "User",
    "Date",
    "Status",
    "Notes",
)

REPORT_TYPE_LABELS = {
    "iceCream": "Ice Cream Machine",
    "fridge": "Fresh Fridge",
}


def format_date(value) -> str:
    """dd.mm.yyyy; unreadable dates export as an empty cell."""
    dt = coerce_datetime(value)
    return dt.strftime("%d.%m.%Y") if dt else ""


def _row(record: Mapping) -> list[str]:
    report_type = report_type_of(record)
    return [
        str(record.get("id") or ""),
        REPORT_TYPE_LABELS.get(report_type, report_type),
        record.get("location") or "",
        record.get("machineSerialNumber") or "",
        record.get("userName") or "",
        format_date(record.get("createdAt")),
        record.get("status") or "",
        record.get("notes") or "",
    ]


def reports_to_csv(records: Iterable[Mapping]) -> str:
    """
    Every column for every record given; callers pass the filtered list, not
    one page. All fields are quoted and embedded quotes are doubled.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for record in records:
        writer.writerow(_row(record))
    return buffer.getvalue()


def export_filename(today: date) -> str:
    return f"reports_{today.isoformat()}.csv"
