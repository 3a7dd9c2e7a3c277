"""
Report Exporters

Two renderers consume report data:

1. Spreadsheet: flat records -> .xlsx (pandas + openpyxl)
2. PDF: flat records or budget report rows -> paginated A4 document (reportlab)

Both return bytes so the UI can hand them straight to a download
button.

IMPORTANT: An empty data set is "nothing to export". Renderers raise
NoDataToExportError instead of producing an empty file.
"""

from decimal import Decimal
from datetime import date
from io import BytesIO
from typing import Any, Iterable, Optional, Sequence
from xml.sax.saxutils import escape

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from church_ledger.models.report import (
    AccountRow,
    FlatReport,
    ReportRow,
    SectionHeaderRow,
    SourceRow,
    TransactionTableRow,
)
from church_ledger.reports.formatting import (
    export_file_stem,
    format_currency,
    format_percent,
    format_report_date,
    or_placeholder,
)

SPREADSHEET_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MIME = "application/pdf"

# PDF column layout per flat report type
PDF_COLUMNS = {
    "income": ["Date", "Category", "Amount", "Member Name", "Description"],
    "expenses": ["Date", "Category", "Amount", "Payee", "Payment Method", "Description"],
    "tithes": ["Date", "Member Name", "Amount"],
    "summary": ["Category", "Amount"],
}

BUDGET_COLUMNS = ["Code", "Name", "Budget", "Realized", "% Realized"]
TRANSACTION_COLUMNS = ["Date", "Name", "Member / Payee", "Amount"]

HEADER_BACKGROUND = colors.HexColor("#f2f2f2")
STRIPE_BACKGROUND = colors.HexColor("#f9f9f9")
SECTION_BACKGROUND = colors.HexColor("#dde6f0")
GRID_COLOR = colors.HexColor("#dddddd")


class ExportError(Exception):
    """Base exception for report export."""
    pass


class NoDataToExportError(ExportError):
    """The report has no rows; the caller should alert and abort."""
    pass


# =============================================================================
# FILE NAMES
# =============================================================================

def spreadsheet_file_name(title: str) -> str:
    return f"{export_file_stem(title)}.xlsx"


def pdf_file_name(title: str) -> str:
    return f"{title.strip().replace('/', '_')}.pdf"


# =============================================================================
# SPREADSHEET
# =============================================================================

def _cell_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return value


def to_spreadsheet_bytes(records: Sequence[dict], sheet_name: str = "Report") -> bytes:
    """
    Serialize flat records to an .xlsx workbook.

    Column order follows the keys of the first record.
    """
    if not records:
        raise NoDataToExportError("No data to download.")

    frame = pd.DataFrame.from_records(
        [{key: _cell_value(value) for key, value in record.items()} for record in records],
        columns=list(records[0].keys()),
    )
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()


def flatten_report_rows(rows: Iterable[ReportRow]) -> list[dict]:
    """
    Flatten budget report rows into spreadsheet records.

    Transaction sub-tables expand to one record per transaction.
    """
    records = []
    for row in rows:
        if isinstance(row, SectionHeaderRow):
            records.append(_budget_record("Section", "", row.title))
        elif isinstance(row, (AccountRow, SourceRow)):
            records.append(
                _budget_record(
                    "Account" if isinstance(row, AccountRow) else "Source",
                    row.code,
                    row.name,
                    budget=float(row.budget),
                    realized=float(row.realized),
                    percent=row.percent,
                )
            )
        elif isinstance(row, TransactionTableRow):
            for line in row.lines:
                record = _budget_record("Transaction", "", line.name)
                record.update({
                    "Date": line.date,
                    "Member / Payee": line.counterpart,
                    "Amount": line.amount,
                })
                records.append(record)
    return records


def _budget_record(
    level: str,
    code: str,
    name: str,
    budget: Optional[float] = None,
    realized: Optional[float] = None,
    percent: Optional[float] = None,
) -> dict:
    return {
        "Level": level,
        "Code": code,
        "Name": name,
        "Budget": budget,
        "Realized": realized,
        "% Realized": percent,
        "Date": None,
        "Member / Payee": None,
        "Amount": None,
    }


# =============================================================================
# PDF
# =============================================================================

def _styles() -> dict[str, ParagraphStyle]:
    sample = getSampleStyleSheet()
    body = ParagraphStyle("LedgerBody", parent=sample["BodyText"], fontSize=8, leading=10)
    return {
        "title": sample["Title"],
        "subtitle": ParagraphStyle("LedgerSubtitle", parent=sample["Normal"], fontSize=9,
                                   textColor=colors.grey, alignment=1),
        "body": body,
        "bold": ParagraphStyle("LedgerBold", parent=body, fontName="Helvetica-Bold"),
        "source": ParagraphStyle("LedgerSource", parent=body, leftIndent=4 * mm),
        "number": ParagraphStyle("LedgerNumber", parent=body, alignment=TA_RIGHT),
        "number_bold": ParagraphStyle("LedgerNumberBold", parent=body, alignment=TA_RIGHT,
                                      fontName="Helvetica-Bold"),
        "section": ParagraphStyle("LedgerSection", parent=body, fontName="Helvetica-Bold",
                                  fontSize=10, leading=12),
    }


def _cell(text: Any, style: ParagraphStyle) -> Paragraph:
    return Paragraph(escape(str(text)), style)


def _draw_page_number(canvas, doc) -> None:
    canvas.saveState()
    canvas.setFont("Helvetica", 8)
    canvas.drawRightString(A4[0] - 20 * mm, 10 * mm, f"Page {doc.page}")
    canvas.restoreState()


def _build_pdf(title: str, story: list, subtitle: Optional[str] = None) -> bytes:
    styles = _styles()
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        topMargin=20 * mm,
        bottomMargin=20 * mm,
        title=title,
    )
    header = [_cell(title, styles["title"])]
    if subtitle:
        header.append(_cell(subtitle, styles["subtitle"]))
    header.append(Spacer(1, 6 * mm))

    doc.build(header + story, onFirstPage=_draw_page_number, onLaterPages=_draw_page_number)
    return buffer.getvalue()


def _flat_cell(column: str, value: Any, currency: str) -> str:
    if value is None or value == "":
        return "N/A"
    if isinstance(value, date):
        return format_report_date(value)
    if column == "Amount" and isinstance(value, (Decimal, int, float)):
        return format_currency(value, currency)
    return str(value)


def render_flat_pdf(report: FlatReport, currency: str = "XAF", subtitle: Optional[str] = None) -> bytes:
    """Draw a flat report as a titled, paginated, striped table."""
    if report.is_empty:
        raise NoDataToExportError("No data available to generate PDF.")

    styles = _styles()
    columns = PDF_COLUMNS[report.report_type]
    data = [columns] + [
        [_cell(_flat_cell(column, record.get(column), currency), styles["body"])
         for column in columns]
        for record in report.records
    ]

    width = A4[0] - 40 * mm
    table = Table(data, colWidths=[width / len(columns)] * len(columns), repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_BACKGROUND),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 9),
        ("GRID", (0, 0), (-1, -1), 0.5, GRID_COLOR),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, STRIPE_BACKGROUND]),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    return _build_pdf(report.title, [table], subtitle)


def render_budget_report_pdf(
    rows: Sequence[ReportRow],
    title: str,
    currency: str = "XAF",
    subtitle: Optional[str] = None,
) -> bytes:
    """
    Draw the budget/actuals report.

    Section headers span the table, account rows are bold, source rows
    are indented and transaction sub-tables are nested under their source.
    """
    if not rows:
        raise NoDataToExportError("No data available to generate PDF.")

    styles = _styles()
    width = A4[0] - 40 * mm
    col_widths = [0.14 * width, 0.38 * width, 0.17 * width, 0.17 * width, 0.14 * width]

    data = [BUDGET_COLUMNS]
    commands = [
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_BACKGROUND),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 9),
        ("GRID", (0, 0), (-1, -1), 0.5, GRID_COLOR),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]

    for row in rows:
        index = len(data)
        if isinstance(row, SectionHeaderRow):
            data.append([_cell(row.title, styles["section"]), "", "", "", ""])
            commands += [
                ("SPAN", (0, index), (-1, index)),
                ("BACKGROUND", (0, index), (-1, index), SECTION_BACKGROUND),
            ]
        elif isinstance(row, AccountRow):
            data.append([
                _cell(row.code, styles["bold"]),
                _cell(row.name, styles["bold"]),
                _cell(format_currency(row.budget, currency), styles["number_bold"]),
                _cell(format_currency(row.realized, currency), styles["number_bold"]),
                _cell(format_percent(row.percent), styles["number_bold"]),
            ])
        elif isinstance(row, SourceRow):
            data.append([
                _cell(row.code, styles["source"]),
                _cell(row.name, styles["source"]),
                _cell(format_currency(row.budget, currency), styles["number"]),
                _cell(format_currency(row.realized, currency), styles["number"]),
                _cell(format_percent(row.percent), styles["number"]),
            ])
        elif isinstance(row, TransactionTableRow):
            data.append([_transaction_table(row, width - 14 * mm, styles), "", "", "", ""])
            commands += [
                ("SPAN", (0, index), (-1, index)),
                ("LEFTPADDING", (0, index), (-1, index), 8 * mm),
            ]

    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(TableStyle(commands))
    return _build_pdf(title, [table], subtitle)


def _transaction_table(row: TransactionTableRow, width: float, styles: dict) -> Table:
    data = [TRANSACTION_COLUMNS] + [
        [
            _cell(line.date, styles["body"]),
            _cell(line.name, styles["body"]),
            _cell(or_placeholder(line.counterpart), styles["body"]),
            _cell(line.amount, styles["number"]),
        ]
        for line in row.lines
    ]
    nested = Table(
        data,
        colWidths=[0.2 * width, 0.35 * width, 0.25 * width, 0.2 * width],
        repeatRows=1,
    )
    nested.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_BACKGROUND),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Oblique"),
        ("FONTSIZE", (0, 0), (-1, 0), 7),
        ("LINEBELOW", (0, 0), (-1, -1), 0.25, GRID_COLOR),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, STRIPE_BACKGROUND]),
    ]))
    return nested
