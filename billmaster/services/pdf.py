from __future__ import annotations

import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from billmaster.core.config import APP_NAME, INVOICE_TAX_RATE

PAGE_WIDTH, PAGE_HEIGHT = A4

BRAND_BLUE = (30, 58, 138)
TEXT_GRAY = (75, 85, 99)
BORDER_GRAY = (209, 213, 219)
PANEL_GRAY = (243, 244, 246)
ROW_SHADE = (249, 250, 251)
ROW_LINE = (229, 231, 235)

STATUS_COLORS = {
    "paid": (22, 163, 74),
    "pending": (251, 146, 60),
    "overdue": (239, 68, 68),
    "cancelled": (107, 114, 128),
}

# Limite inferior da tabela de itens antes de quebrar página (mm a partir do topo)
TABLE_BOTTOM_MM = 250
# Base da caixa de notas; o rodapé começa em 270
NOTES_BOTTOM_MM = 265
DESCRIPTION_WIDTH_MM = 92
DESCRIPTION_MAX_LINES = 4
ELLIPSIS = "..."


def format_currency(value: Any) -> str:
    amount = Decimal(str(value or 0))
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_long_date(value: Any) -> str:
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return value
    if isinstance(value, datetime):
        value = value.date()
    return f"{value:%B} {value.day}, {value.year}"


def format_tax_label(rate: Any) -> str:
    percent = (Decimal(str(rate)) * 100).normalize()
    return f"Tax ({percent:f}%):"


class _InvoiceCanvas:
    """Wrapper fino sobre o canvas com coordenadas em mm a partir do topo."""

    def __init__(self, buffer: io.BytesIO, title: str) -> None:
        self.c = canvas.Canvas(buffer, pagesize=A4, invariant=1)
        self.c.setTitle(title)
        self.c.setAuthor(APP_NAME)

    @staticmethod
    def y(top_mm: float) -> float:
        return PAGE_HEIGHT - top_mm * mm

    def fill(self, rgb: tuple[int, int, int]) -> None:
        self.c.setFillColorRGB(*(channel / 255 for channel in rgb))

    def stroke(self, rgb: tuple[int, int, int]) -> None:
        self.c.setStrokeColorRGB(*(channel / 255 for channel in rgb))

    def font(self, size: float, bold: bool = False) -> None:
        self.c.setFont("Helvetica-Bold" if bold else "Helvetica", size)

    def rect(self, x_mm: float, top_mm: float, w_mm: float, h_mm: float, fill=None, border=None) -> None:
        if fill is not None:
            self.fill(fill)
        if border is not None:
            self.stroke(border)
        self.c.rect(
            x_mm * mm,
            self.y(top_mm + h_mm),
            w_mm * mm,
            h_mm * mm,
            stroke=1 if border is not None else 0,
            fill=1 if fill is not None else 0,
        )

    def text(self, x_mm: float, top_mm: float, value: str, align: str = "left") -> None:
        if align == "right":
            self.c.drawRightString(x_mm * mm, self.y(top_mm), value)
        elif align == "center":
            self.c.drawCentredString(x_mm * mm, self.y(top_mm), value)
        else:
            self.c.drawString(x_mm * mm, self.y(top_mm), value)


def _draw_header(pdf: _InvoiceCanvas, company: Any, status: str) -> None:
    pdf.rect(0, 0, PAGE_WIDTH / mm, 80, fill=(248, 250, 252))
    pdf.rect(0, 0, PAGE_WIDTH / mm, 25, fill=BRAND_BLUE)

    pdf.fill((255, 255, 255))
    pdf.font(22, bold=True)
    pdf.text(20, 18, (getattr(company, "name", "") or "").upper())

    pdf.fill(BRAND_BLUE)
    pdf.font(28, bold=True)
    pdf.text(PAGE_WIDTH / mm - 20, 18, "INVOICE", align="right")

    badge = STATUS_COLORS.get(status, STATUS_COLORS["pending"])
    pdf.fill(badge)
    pdf.c.roundRect(
        (PAGE_WIDTH / mm - 65) * mm,
        pdf.y(28),
        40 * mm,
        8 * mm,
        2 * mm,
        stroke=0,
        fill=1,
    )
    pdf.fill((255, 255, 255))
    pdf.font(9, bold=True)
    pdf.text(PAGE_WIDTH / mm - 45, 25.5, status.upper(), align="center")


def _draw_detail_boxes(pdf: _InvoiceCanvas, invoice: Any, company: Any) -> None:
    pdf.rect(20, 35, 85, 45, fill=PANEL_GRAY, border=BORDER_GRAY)
    pdf.fill(TEXT_GRAY)
    pdf.font(10)
    line_y = 45
    for label, attr in (("", "address"), ("Phone: ", "phone"), ("Email: ", "email"), ("Web: ", "website")):
        value = getattr(company, attr, None)
        if value:
            pdf.text(25, line_y, f"{label}{value}")
            line_y += 8

    pdf.rect(115, 35, 75, 45, fill=(254, 242, 242), border=(252, 165, 165))
    pdf.fill((153, 27, 27))
    pdf.font(11, bold=True)
    pdf.text(120, 45, "INVOICE DETAILS")
    pdf.fill(TEXT_GRAY)
    pdf.font(10)
    pdf.text(120, 55, f"Invoice #: {getattr(invoice, 'invoice_number', '')}")
    pdf.text(120, 63, f"Date: {format_long_date(getattr(invoice, 'date', None))}")
    pdf.text(120, 71, f"Due Date: {format_long_date(getattr(invoice, 'due_date', None))}")


def _draw_bill_to(pdf: _InvoiceCanvas, customer: Any) -> None:
    pdf.fill(BRAND_BLUE)
    pdf.font(14, bold=True)
    pdf.text(20, 100, "BILL TO:")

    pdf.rect(20, 105, 170, 30, fill=(240, 253, 244), border=(167, 243, 208))
    pdf.fill((22, 101, 52))
    pdf.font(13, bold=True)
    pdf.text(25, 115, getattr(customer, "name", "") or "")

    pdf.fill(TEXT_GRAY)
    pdf.font(10)
    line_y = 123
    for attr in ("email", "address", "phone"):
        value = getattr(customer, attr, None)
        if value and line_y <= 131:
            pdf.text(25, line_y, str(value))
            line_y += 7


def _draw_table_header(pdf: _InvoiceCanvas, top: float) -> None:
    pdf.rect(20, top, 170, 15, fill=BRAND_BLUE)
    pdf.fill((255, 255, 255))
    pdf.font(11, bold=True)
    pdf.text(25, top + 10, "DESCRIPTION")
    pdf.text(125, top + 10, "QTY", align="center")
    pdf.text(150, top + 10, "RATE", align="center")
    pdf.text(185, top + 10, "AMOUNT", align="right")


def description_lines(description: str) -> list[str]:
    """Quebra a descrição na largura da coluna; o excedente vira reticências."""
    width = DESCRIPTION_WIDTH_MM * mm
    lines = simpleSplit(description, "Helvetica", 10, width) or [""]
    if len(lines) <= DESCRIPTION_MAX_LINES:
        return lines

    lines = lines[:DESCRIPTION_MAX_LINES]
    last = lines[-1].rstrip()
    while last and stringWidth(last + ELLIPSIS, "Helvetica", 10) > width:
        last = last[:-1].rstrip()
    lines[-1] = last + ELLIPSIS
    return lines


def _draw_items(pdf: _InvoiceCanvas, items: list[Any]) -> float:
    table_top = 150
    _draw_table_header(pdf, table_top)
    y_pos = table_top + 25

    for index, item in enumerate(items):
        lines = description_lines(str(getattr(item, "description", "") or ""))
        extra = 5 * (len(lines) - 1)
        if y_pos + extra > TABLE_BOTTOM_MM:
            pdf.c.showPage()
            _draw_table_header(pdf, 20)
            y_pos = 45

        if index % 2 == 0:
            pdf.rect(20, y_pos - 8, 170, 12 + extra, fill=ROW_SHADE)
        pdf.stroke(ROW_LINE)
        pdf.c.line(20 * mm, pdf.y(y_pos + 4 + extra), 190 * mm, pdf.y(y_pos + 4 + extra))

        pdf.fill(TEXT_GRAY)
        pdf.font(10)
        for offset, line in enumerate(lines):
            pdf.text(25, y_pos + offset * 5, line)
        pdf.text(125, y_pos, str(getattr(item, "quantity", 0)), align="center")
        pdf.text(150, y_pos, format_currency(getattr(item, "unit_price", 0)), align="center")
        pdf.text(185, y_pos, format_currency(getattr(item, "total", 0)), align="right")
        y_pos += 12 + extra

    return y_pos


def _draw_totals(pdf: _InvoiceCanvas, invoice: Any, top: float, tax_rate: Any) -> None:
    pdf.rect(120, top - 5, 70, 45, fill=PANEL_GRAY, border=BORDER_GRAY)

    pdf.fill(TEXT_GRAY)
    pdf.font(11)
    pdf.text(125, top + 5, "Subtotal:")
    pdf.text(185, top + 5, format_currency(getattr(invoice, "subtotal", 0)), align="right")
    pdf.text(125, top + 15, format_tax_label(tax_rate))
    pdf.text(185, top + 15, format_currency(getattr(invoice, "tax", 0)), align="right")

    pdf.fill(BRAND_BLUE)
    pdf.font(14, bold=True)
    pdf.text(125, top + 30, "TOTAL:")
    pdf.text(185, top + 30, format_currency(getattr(invoice, "total", 0)), align="right")


def _notes_height(line_count: int) -> float:
    return max(25, 18 + 5 * line_count)


def _draw_notes(pdf: _InvoiceCanvas, lines: list[str], top: float) -> None:
    # notas longas continuam nas páginas seguintes
    title = "NOTES:"
    while True:
        capacity = max(1, int((NOTES_BOTTOM_MM - 13 - top) // 5))
        chunk, lines = lines[:capacity], lines[capacity:]
        pdf.rect(20, top - 5, 170, _notes_height(len(chunk)), fill=(254, 243, 199), border=(251, 191, 36))

        pdf.fill((146, 64, 14))
        pdf.font(11, bold=True)
        pdf.text(25, top + 5, title)

        pdf.fill(TEXT_GRAY)
        pdf.font(10)
        for offset, line in enumerate(chunk):
            pdf.text(25, top + 13 + offset * 5, line)

        if not lines:
            return
        pdf.c.showPage()
        top = 30
        title = "NOTES (continued):"


def _draw_footer(pdf: _InvoiceCanvas, generated_at: datetime) -> None:
    footer_top = 270
    pdf.rect(0, footer_top, PAGE_WIDTH / mm, 27, fill=BRAND_BLUE)
    pdf.fill((255, 255, 255))
    pdf.font(12, bold=True)
    pdf.text(PAGE_WIDTH / mm / 2, footer_top + 10, "Thank you for your business!", align="center")
    pdf.font(8)
    stamp = f"{format_long_date(generated_at)} {generated_at:%I:%M %p}"
    pdf.text(PAGE_WIDTH / mm / 2, footer_top + 18, f"Generated on {stamp}", align="center")


def render_invoice_pdf(
    invoice: Any,
    *,
    tax_rate: Any = INVOICE_TAX_RATE,
    generated_at: Optional[datetime] = None,
) -> bytes:
    """
    Gera o PDF da fatura em memória e retorna os bytes.
    Campos opcionais ausentes (endereço, telefone, notas) só omitem a linha.
    """
    company = getattr(invoice, "company", None)
    customer = getattr(invoice, "customer", None)
    items = list(getattr(invoice, "items", None) or [])
    status = (getattr(invoice, "status", "") or "pending").lower()
    notes = (getattr(invoice, "notes", "") or "").strip()

    buffer = io.BytesIO()
    pdf = _InvoiceCanvas(buffer, title=f"Invoice {getattr(invoice, 'invoice_number', '')}")

    _draw_header(pdf, company, status)
    _draw_detail_boxes(pdf, invoice, company)
    _draw_bill_to(pdf, customer)
    y_pos = _draw_items(pdf, items)

    totals_top = y_pos + 15
    if totals_top + 40 > TABLE_BOTTOM_MM + 15:
        pdf.c.showPage()
        totals_top = 30
    _draw_totals(pdf, invoice, totals_top, tax_rate)

    if notes:
        note_lines = simpleSplit(notes, "Helvetica", 10, 160 * mm)
        notes_top = totals_top + 50
        if notes_top - 5 + _notes_height(len(note_lines)) > NOTES_BOTTOM_MM:
            pdf.c.showPage()
            notes_top = 30
        _draw_notes(pdf, note_lines, notes_top)

    _draw_footer(pdf, generated_at or datetime.now())
    pdf.c.showPage()
    pdf.c.save()
    return buffer.getvalue()
