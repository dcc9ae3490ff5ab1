"""Invoice totals and invoice lifecycle.

All money math runs on ``Decimal`` quantized to cents (ROUND_HALF_UP):
line total = quantity x unit price, subtotal = sum of line totals,
tax = subtotal x flat rate, total = subtotal + tax.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from billmaster.core.config import INVOICE_TAX_RATE
from billmaster.core.errors import ConflictError, EmptyInvoice, InvalidLineItem, ValidationError
from billmaster.models.invoice import INVOICE_STATUSES, Invoice, InvoiceItem
from billmaster.repositories import CustomerRepository, InvoiceRepository, ProductRepository

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
INITIAL_STATUS = "pending"


def to_money(value: Any) -> Decimal:
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValidationError(f"Invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineInput:
    product_id: Optional[str]
    description: str
    quantity: int
    unit_price: Any


@dataclass(frozen=True)
class LineTotal:
    product_id: Optional[str]
    description: str
    quantity: int
    unit_price: Decimal
    total: Decimal


@dataclass(frozen=True)
class InvoiceTotals:
    lines: tuple[LineTotal, ...]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    tax_rate: Decimal


def _line_total(index: int, line: LineInput) -> LineTotal:
    quantity = line.quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidLineItem(f"Item {index}: quantity must be a positive integer")
    try:
        unit_price = line.unit_price if isinstance(line.unit_price, Decimal) else Decimal(str(line.unit_price))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InvalidLineItem(f"Item {index}: unit price is not a number") from exc
    if not unit_price.is_finite():
        raise InvalidLineItem(f"Item {index}: unit price is not a number")
    if unit_price < 0:
        raise InvalidLineItem(f"Item {index}: unit price must be >= 0")
    # unit_price é gravado com 2 casas (Numeric(12,2))
    if unit_price != unit_price.quantize(CENT):
        raise InvalidLineItem(f"Item {index}: unit price must have at most 2 decimal places")
    unit_price = unit_price.quantize(CENT)
    return LineTotal(
        product_id=line.product_id,
        description=(line.description or "").strip(),
        quantity=quantity,
        unit_price=unit_price,
        total=to_money(unit_price * quantity),
    )


def compute_invoice(lines: Sequence[LineInput], tax_rate: Any = INVOICE_TAX_RATE) -> InvoiceTotals:
    if not lines:
        raise EmptyInvoice()

    rate = Decimal(str(tax_rate))
    if not rate.is_finite() or rate < 0:
        raise ValidationError("Tax rate must be >= 0")

    computed = tuple(_line_total(index, line) for index, line in enumerate(lines, start=1))
    subtotal = to_money(sum((line.total for line in computed), Decimal("0")))
    tax = to_money(subtotal * rate)
    return InvoiceTotals(
        lines=computed,
        subtotal=subtotal,
        tax=tax,
        total=to_money(subtotal + tax),
        tax_rate=rate,
    )


def _validate_dates(invoice_date: date, due_date: date) -> None:
    if due_date < invoice_date:
        raise ValidationError("Due date must be on or after the invoice date")


def _validate_status(status: str) -> str:
    normalized = (status or "").strip().lower()
    if normalized not in INVOICE_STATUSES:
        raise ValidationError(f"Invalid status. Use one of: {', '.join(INVOICE_STATUSES)}")
    return normalized


def _resolve_customer(db: Session, company_id: str, customer_id: str):
    customer = CustomerRepository(db).get(customer_id)
    if customer is None or customer.company_id != company_id:
        raise ValidationError("Customer not found for this company")
    return customer


def _resolve_lines(db: Session, company_id: str, lines: Sequence[LineInput]) -> list[LineInput]:
    """Confere que os produtos são da empresa e completa a descrição vazia."""
    products = ProductRepository(db).get_many(line.product_id for line in lines)
    resolved: list[LineInput] = []
    for index, line in enumerate(lines, start=1):
        description = (line.description or "").strip()
        if line.product_id:
            product = products.get(line.product_id)
            if product is None or product.company_id != company_id:
                raise InvalidLineItem(f"Item {index}: product not found for this company")
            description = description or product.name
        if not description:
            raise InvalidLineItem(f"Item {index}: description is required")
        resolved.append(
            LineInput(
                product_id=line.product_id,
                description=description,
                quantity=line.quantity,
                unit_price=line.unit_price,
            )
        )
    return resolved


def _build_items(totals: InvoiceTotals) -> list[InvoiceItem]:
    return [
        InvoiceItem(
            product_id=line.product_id,
            position=position,
            description=line.description,
            quantity=line.quantity,
            unit_price=line.unit_price,
            total=line.total,
        )
        for position, line in enumerate(totals.lines)
    ]


def create_invoice(
    db: Session,
    *,
    company_id: str,
    customer_id: str,
    invoice_number: str,
    invoice_date: date,
    due_date: date,
    lines: Sequence[LineInput],
    notes: Optional[str] = None,
    tax_rate: Any = INVOICE_TAX_RATE,
) -> Invoice:
    # valida antes de qualquer leitura/escrita: fatura vazia ou item inválido param aqui
    compute_invoice(lines, tax_rate)

    number = (invoice_number or "").strip()
    if not number:
        raise ValidationError("Invoice number is required")
    _validate_dates(invoice_date, due_date)
    _resolve_customer(db, company_id, customer_id)
    totals = compute_invoice(_resolve_lines(db, company_id, lines), tax_rate)

    repo = InvoiceRepository(db)
    if repo.number_taken(company_id, number):
        raise ConflictError(f"Invoice number {number} already exists")

    invoice = Invoice(
        company_id=company_id,
        customer_id=customer_id,
        invoice_number=number,
        date=invoice_date,
        due_date=due_date,
        subtotal=totals.subtotal,
        tax=totals.tax,
        total=totals.total,
        status=INITIAL_STATUS,
        notes=notes,
        items=_build_items(totals),
    )
    repo.add(invoice)
    logger.info(
        "invoice created id=%s company_id=%s number=%s items=%s total=%s",
        invoice.id,
        company_id,
        number,
        len(totals.lines),
        totals.total,
    )
    return invoice


def update_invoice(
    db: Session,
    invoice: Invoice,
    changes: Mapping[str, Any],
    *,
    lines: Optional[Sequence[LineInput]] = None,
    expected_version: Optional[int] = None,
    tax_rate: Any = INVOICE_TAX_RATE,
) -> Invoice:
    repo = InvoiceRepository(db)
    if expected_version is not None and int(expected_version) != int(invoice.version):
        raise ConflictError("Invoice was modified by another request")
    updates: dict[str, Any] = {}

    if "invoice_number" in changes:
        number = (changes["invoice_number"] or "").strip()
        if not number:
            raise ValidationError("Invoice number is required")
        if repo.number_taken(invoice.company_id, number, exclude_id=invoice.id):
            raise ConflictError(f"Invoice number {number} already exists")
        updates["invoice_number"] = number

    if "customer_id" in changes:
        _resolve_customer(db, invoice.company_id, changes["customer_id"])
        updates["customer_id"] = changes["customer_id"]

    if "status" in changes:
        updates["status"] = _validate_status(changes["status"])

    if "notes" in changes:
        updates["notes"] = changes["notes"]

    invoice_date = changes.get("date") or invoice.date
    due_date = changes.get("due_date") or invoice.due_date
    if "date" in changes or "due_date" in changes:
        _validate_dates(invoice_date, due_date)
        updates["date"] = invoice_date
        updates["due_date"] = due_date

    if lines is not None:
        totals = compute_invoice(_resolve_lines(db, invoice.company_id, lines), tax_rate)
        updates.update(
            items=_build_items(totals),
            subtotal=totals.subtotal,
            tax=totals.tax,
            total=totals.total,
        )

    repo.update(invoice, updates)
    logger.info("invoice updated id=%s fields=%s", invoice.id, ",".join(sorted(updates)))
    return invoice


def lines_from_payload(items: Iterable[Mapping[str, Any]]) -> list[LineInput]:
    return [
        LineInput(
            product_id=item.get("product_id"),
            description=item.get("description") or "",
            quantity=item.get("quantity"),
            unit_price=item.get("unit_price"),
        )
        for item in items
    ]
