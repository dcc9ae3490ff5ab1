"""Sales report: aggregation by customer plus PDF/spreadsheet export."""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from billmaster.core.config import APP_NAME
from billmaster.core.errors import ValidationError
from billmaster.services.billing import to_money
from billmaster.services.pdf import format_currency

logger = logging.getLogger(__name__)

REPORT_FORMATS = ("pdf", "spreadsheet")
PDF_INVOICE_LIMIT = 50
UNKNOWN_CUSTOMER = "Unknown Customer"

PDF_MEDIA_TYPE = "application/pdf"
SPREADSHEET_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(frozen=True)
class CustomerSales:
    customer_id: Optional[str]
    customer_name: str
    invoice_count: int
    total_revenue: Decimal
    paid_revenue: Decimal

    @property
    def collection_rate(self) -> float:
        return collection_rate(self.paid_revenue, self.total_revenue)


@dataclass(frozen=True)
class SalesSummary:
    total_revenue: Decimal
    paid_revenue: Decimal
    pending_revenue: Decimal
    invoice_count: int

    @property
    def collection_rate(self) -> float:
        return collection_rate(self.paid_revenue, self.total_revenue)


@dataclass(frozen=True)
class SalesReport:
    summary: SalesSummary
    by_customer: tuple[CustomerSales, ...]


def collection_rate(paid_revenue: Any, total_revenue: Any) -> float:
    """Percentual recebido com uma casa decimal; 0.0 quando não há receita."""
    total = Decimal(str(total_revenue or 0))
    if total <= 0:
        return 0.0
    paid = Decimal(str(paid_revenue or 0))
    return round(float(paid / total * 100), 1)


def _customer_names(customers: Iterable[Any]) -> dict[str, str]:
    return {str(customer.id): customer.name for customer in customers}


def aggregate_sales(invoices: Sequence[Any], customers: Iterable[Any]) -> SalesReport:
    names = _customer_names(customers)
    buckets: dict[Optional[str], dict[str, Any]] = {}
    total = paid = pending = Decimal("0")

    for invoice in invoices:
        amount = to_money(invoice.total or 0)
        status = (invoice.status or "").lower()
        bucket = buckets.setdefault(
            invoice.customer_id,
            {"count": 0, "total": Decimal("0"), "paid": Decimal("0")},
        )
        bucket["count"] += 1
        bucket["total"] += amount
        total += amount
        if status == "paid":
            bucket["paid"] += amount
            paid += amount
        elif status == "pending":
            pending += amount

    rows = tuple(
        CustomerSales(
            customer_id=customer_id,
            customer_name=names.get(str(customer_id), UNKNOWN_CUSTOMER),
            invoice_count=bucket["count"],
            total_revenue=to_money(bucket["total"]),
            paid_revenue=to_money(bucket["paid"]),
        )
        for customer_id, bucket in buckets.items()
    )
    rows = tuple(sorted(rows, key=lambda row: (-row.total_revenue, row.customer_name)))

    summary = SalesSummary(
        total_revenue=to_money(total),
        paid_revenue=to_money(paid),
        pending_revenue=to_money(pending),
        invoice_count=len(invoices),
    )
    return SalesReport(summary=summary, by_customer=rows)


def _short_date(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return str(value or "")


def _render_pdf(report: SalesReport, invoices: Sequence[Any], names: dict[str, str], generated_on: date) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=28,
        rightMargin=28,
        topMargin=28,
        bottomMargin=28,
        title="Sales Report",
        author=APP_NAME,
    )
    styles = getSampleStyleSheet()
    summary = report.summary

    story: list[Any] = [
        Paragraph(f"<b>{APP_NAME} - Sales Report</b>", styles["Title"]),
        Paragraph(f"Generated on: {generated_on:%Y-%m-%d}", styles["Normal"]),
        Spacer(1, 12),
        Paragraph("Summary Statistics", styles["Heading2"]),
        Paragraph(f"Total Revenue: {format_currency(summary.total_revenue)}", styles["Normal"]),
        Paragraph(f"Paid Revenue: {format_currency(summary.paid_revenue)}", styles["Normal"]),
        Paragraph(f"Pending Revenue: {format_currency(summary.pending_revenue)}", styles["Normal"]),
        Paragraph(f"Collection Rate: {summary.collection_rate:.1f}%", styles["Normal"]),
        Spacer(1, 12),
    ]

    header_style = [
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("BACKGROUND", (0, 0), (-1, 0), colors.Color(66 / 255, 139 / 255, 202 / 255)),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
    ]

    if report.by_customer:
        story.append(Paragraph("Sales by Customer", styles["Heading2"]))
        table_data = [["Customer Name", "Invoice Count", "Total Revenue", "Paid Revenue", "Collection Rate"]]
        for row in report.by_customer:
            table_data.append(
                [
                    row.customer_name,
                    str(row.invoice_count),
                    format_currency(row.total_revenue),
                    format_currency(row.paid_revenue),
                    f"{row.collection_rate:.1f}%",
                ]
            )
        tbl = Table(table_data, repeatRows=1)
        tbl.setStyle(TableStyle(header_style))
        story.append(tbl)

    if invoices:
        story.append(PageBreak())
        story.append(Paragraph("Invoice Details", styles["Heading2"]))
        table_data = [["Invoice #", "Customer", "Date", "Status", "Total"]]
        for invoice in invoices[:PDF_INVOICE_LIMIT]:
            table_data.append(
                [
                    invoice.invoice_number,
                    names.get(str(invoice.customer_id), UNKNOWN_CUSTOMER),
                    _short_date(invoice.date),
                    (invoice.status or "").capitalize(),
                    format_currency(invoice.total),
                ]
            )
        tbl = Table(table_data, repeatRows=1)
        tbl.setStyle(TableStyle(header_style))
        story.append(tbl)
        if len(invoices) > PDF_INVOICE_LIMIT:
            story.append(Spacer(1, 8))
            story.append(
                Paragraph(
                    f"Note: Showing first {PDF_INVOICE_LIMIT} of {len(invoices)} invoices",
                    styles["Italic"],
                )
            )

    doc.build(story)
    return buffer.getvalue()


def _autosize(ws, widths: Sequence[int]) -> None:
    for idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width


def _render_spreadsheet(report: SalesReport, invoices: Sequence[Any], names: dict[str, str], generated_on: date) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Summary"
    summary = report.summary

    ws.append([f"{APP_NAME} - Sales Report"])
    ws.append(["Generated on:", generated_on.isoformat()])
    ws.append([])
    ws.append(["Summary Statistics"])
    ws.append(["Total Revenue:", float(summary.total_revenue)])
    ws.append(["Paid Revenue:", float(summary.paid_revenue)])
    ws.append(["Pending Revenue:", float(summary.pending_revenue)])
    ws.append(["Collection Rate (%):", summary.collection_rate])
    ws.append([])
    ws.append(["Sales by Customer"])
    header_row = ws.max_row + 1
    ws.append(["Customer Name", "Invoice Count", "Total Revenue", "Paid Revenue", "Collection Rate (%)"])
    for row in report.by_customer:
        ws.append(
            [
                row.customer_name,
                row.invoice_count,
                float(row.total_revenue),
                float(row.paid_revenue),
                row.collection_rate,
            ]
        )
    for cell in ws[1] + ws[4] + ws[10] + ws[header_row]:
        cell.font = Font(bold=True)
    _autosize(ws, (24, 16, 16, 16, 20))

    if invoices:
        detail = wb.create_sheet("Invoices")
        detail.append(["Invoice Number", "Customer", "Date", "Due Date", "Status", "Subtotal", "Tax", "Total"])
        for invoice in invoices:
            detail.append(
                [
                    invoice.invoice_number,
                    names.get(str(invoice.customer_id), UNKNOWN_CUSTOMER),
                    _short_date(invoice.date),
                    _short_date(invoice.due_date),
                    (invoice.status or "").capitalize(),
                    float(invoice.subtotal or 0),
                    float(invoice.tax or 0),
                    float(invoice.total or 0),
                ]
            )
        for cell in detail[1]:
            cell.font = Font(bold=True)
        _autosize(detail, (18, 24, 12, 12, 12, 14, 12, 14))

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def render_sales_report(
    invoices: Sequence[Any],
    customers: Iterable[Any],
    fmt: str,
    *,
    generated_on: Optional[date] = None,
) -> bytes:
    fmt = (fmt or "").strip().lower()
    if fmt not in REPORT_FORMATS:
        raise ValidationError(f"Unsupported report format. Use one of: {', '.join(REPORT_FORMATS)}")

    customers = list(customers)
    names = _customer_names(customers)
    report = aggregate_sales(invoices, customers)
    generated_on = generated_on or date.today()

    if fmt == "pdf":
        payload = _render_pdf(report, invoices, names, generated_on)
    else:
        payload = _render_spreadsheet(report, invoices, names, generated_on)

    logger.info(
        "sales report rendered invoices=%s bytes=%s",
        len(invoices),
        len(payload),
        extra={"report_format": fmt},
    )
    return payload


def report_media_type(fmt: str) -> tuple[str, str]:
    """(content-type, extensão) do arquivo exportado."""
    if fmt == "pdf":
        return PDF_MEDIA_TYPE, "pdf"
    return SPREADSHEET_MEDIA_TYPE, "xlsx"
