from __future__ import annotations

import csv
import io
import re

import pandas as pd

from .service import ReportData

REPORT_COLUMNS = ["Name", "Roll Number", "Email", "Marked At"]

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def report_filename(title: str, day: str, extension: str) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "-", title or "event").strip("-").lower() or "event"
    return f"attendance-{slug}-{day}.{extension}"


def report_to_csv(report: ReportData) -> bytes:
    """Summary lines, a blank line, then one row per attendee (Excel-friendly BOM)."""

    out = io.StringIO()
    plain = csv.writer(out)
    for item in report.summary:
        plain.writerow([item["Field"], item["Value"]])
    plain.writerow([])

    writer = csv.DictWriter(out, fieldnames=REPORT_COLUMNS)
    writer.writeheader()
    for row in report.rows:
        writer.writerow(row)
    return out.getvalue().encode("utf-8-sig")


def report_to_xlsx(report: ReportData) -> bytes:
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        pd.DataFrame(report.rows, columns=REPORT_COLUMNS).to_excel(writer, index=False, sheet_name="Attendance")
        pd.DataFrame(report.summary, columns=["Field", "Value"]).to_excel(writer, index=False, sheet_name="Summary")
    return output.getvalue()
