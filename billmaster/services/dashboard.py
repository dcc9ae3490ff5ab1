from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from billmaster.models.customer import Customer
from billmaster.models.invoice import Invoice, InvoiceItem
from billmaster.services.billing import to_money


def get_dashboard_stats(db: Session, company_id: str) -> dict:
    """Indicadores da tela inicial, sempre de uma única empresa."""
    total_revenue = (
        db.query(func.coalesce(func.sum(Invoice.total), 0))
        .filter(Invoice.company_id == company_id, Invoice.status == "paid")
        .scalar()
    )
    active_customers = (
        db.query(func.count(Customer.id))
        .filter(Customer.company_id == company_id, Customer.is_active.is_(True))
        .scalar()
    )
    pending_invoices = (
        db.query(func.count(Invoice.id))
        .filter(Invoice.company_id == company_id, Invoice.status == "pending")
        .scalar()
    )
    products_sold = (
        db.query(func.coalesce(func.sum(InvoiceItem.quantity), 0))
        .join(Invoice, InvoiceItem.invoice_id == Invoice.id)
        .filter(Invoice.company_id == company_id, Invoice.status == "paid")
        .scalar()
    )

    return {
        "totalRevenue": float(to_money(total_revenue or Decimal("0"))),
        "activeCustomers": int(active_customers or 0),
        "pendingInvoices": int(pending_invoices or 0),
        "productsSold": int(products_sold or 0),
    }
