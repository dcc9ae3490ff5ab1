from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from billmaster.core.database import get_db
from billmaster.core.errors import ValidationError
from billmaster.deps import (
    get_scoped_or_404,
    require_permission,
    resolve_company_filter,
    resolve_company_for_write,
)
from billmaster.repositories import InvoiceRepository
from billmaster.schemas.common import collect_changes
from billmaster.schemas.invoice import (
    InvoiceCreate,
    InvoiceDetail,
    InvoiceEmailResult,
    InvoiceRead,
    InvoiceUpdate,
)
from billmaster.services.authorization_service import Action, Module, Principal
from billmaster.services.billing import create_invoice, lines_from_payload, update_invoice
from billmaster.services.email import SendGridMailer, get_mailer, send_invoice_email
from billmaster.services.pdf import render_invoice_pdf
from billmaster.utils.downloads import attachment_disposition

router = APIRouter(prefix="/api/invoices", tags=["invoices"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[InvoiceRead])
def list_invoices(
    request: Request,
    company_id: Optional[str] = Query(None, alias="companyId"),
    status_filter: Optional[str] = Query(None, alias="status"),
    customer_id: Optional[str] = Query(None, alias="customerId"),
    principal: Principal = Depends(require_permission(Module.INVOICES, Action.READ)),
    db: Session = Depends(get_db),
):
    return InvoiceRepository(db).list_filtered(
        resolve_company_filter(principal, company_id, request),
        status=status_filter,
        customer_id=customer_id,
    )


@router.get("/{invoice_id}", response_model=InvoiceDetail)
def get_invoice(
    invoice_id: str,
    request: Request,
    principal: Principal = Depends(require_permission(Module.INVOICES, Action.READ)),
    db: Session = Depends(get_db),
):
    return get_scoped_or_404(InvoiceRepository(db), invoice_id, principal, request)


@router.post("", response_model=InvoiceDetail, status_code=status.HTTP_201_CREATED)
def create_invoice_endpoint(
    payload: InvoiceCreate,
    request: Request,
    principal: Principal = Depends(require_permission(Module.INVOICES, Action.CREATE)),
    db: Session = Depends(get_db),
):
    company_id = resolve_company_for_write(principal, payload.company_id, request)
    invoice = create_invoice(
        db,
        company_id=company_id,
        customer_id=payload.customer_id,
        invoice_number=payload.invoice_number,
        invoice_date=payload.date,
        due_date=payload.due_date,
        lines=lines_from_payload(item.model_dump() for item in payload.items),
        notes=payload.notes,
    )
    db.commit()
    db.refresh(invoice)
    return invoice


@router.put("/{invoice_id}", response_model=InvoiceDetail)
def update_invoice_endpoint(
    invoice_id: str,
    payload: InvoiceUpdate,
    request: Request,
    principal: Principal = Depends(require_permission(Module.INVOICES, Action.UPDATE)),
    db: Session = Depends(get_db),
):
    invoice = get_scoped_or_404(InvoiceRepository(db), invoice_id, principal, request)
    changes = collect_changes(
        payload,
        "customer_id",
        "invoice_number",
        "date",
        "due_date",
        "status",
        exclude=("version", "items"),
    )
    lines = None
    if "items" in payload.model_fields_set:
        if payload.items is None:
            raise ValidationError("items cannot be null")
        lines = lines_from_payload(item.model_dump() for item in payload.items)
    update_invoice(db, invoice, changes, lines=lines, expected_version=payload.version)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(
    invoice_id: str,
    request: Request,
    principal: Principal = Depends(require_permission(Module.INVOICES, Action.DELETE)),
    db: Session = Depends(get_db),
):
    repo = InvoiceRepository(db)
    invoice = get_scoped_or_404(repo, invoice_id, principal, request)
    repo.delete(invoice)
    db.commit()
    logger.info("invoice deleted id=%s", invoice_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{invoice_id}/pdf")
def invoice_pdf(
    invoice_id: str,
    request: Request,
    principal: Principal = Depends(require_permission(Module.INVOICES, Action.READ)),
    db: Session = Depends(get_db),
):
    invoice = get_scoped_or_404(InvoiceRepository(db), invoice_id, principal, request)
    content = render_invoice_pdf(invoice)
    logger.info("invoice pdf rendered bytes=%s", len(content), extra={"invoice_id": invoice.id})
    filename = f"invoice-{invoice.invoice_number}.pdf"
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": attachment_disposition(filename)},
    )


@router.post("/{invoice_id}/email", response_model=InvoiceEmailResult)
def email_invoice(
    invoice_id: str,
    request: Request,
    principal: Principal = Depends(require_permission(Module.INVOICES, Action.READ)),
    db: Session = Depends(get_db),
    mailer: SendGridMailer = Depends(get_mailer),
):
    invoice = get_scoped_or_404(InvoiceRepository(db), invoice_id, principal, request)
    message = send_invoice_email(invoice, mailer)
    logger.info("invoice emailed", extra={"invoice_id": invoice.id})
    return InvoiceEmailResult(sent=True, to=message.to)
