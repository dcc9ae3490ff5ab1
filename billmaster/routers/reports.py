from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from billmaster.core.database import get_db
from billmaster.deps import require_permission, resolve_company_for_write
from billmaster.repositories import CustomerRepository, InvoiceRepository
from billmaster.schemas.report import CustomerSalesRead, SalesReportRead, SalesSummaryRead
from billmaster.services.authorization_service import Action, Module, Principal
from billmaster.services.reports import aggregate_sales, render_sales_report, report_media_type
from billmaster.utils.downloads import attachment_disposition

router = APIRouter(prefix="/api/reports", tags=["reports"])


def _load(
    db: Session,
    company_id: str,
    status: Optional[str],
    customer_id: Optional[str],
):
    invoices = InvoiceRepository(db).list_filtered(company_id, status=status, customer_id=customer_id)
    customers = CustomerRepository(db).list(company_id)
    return invoices, customers


@router.get("/sales", response_model=SalesReportRead)
def sales_report(
    request: Request,
    company_id: Optional[str] = Query(None, alias="companyId"),
    status: Optional[str] = Query(None),
    customer_id: Optional[str] = Query(None, alias="customerId"),
    principal: Principal = Depends(require_permission(Module.REPORTS, Action.READ)),
    db: Session = Depends(get_db),
):
    target_company = resolve_company_for_write(principal, company_id, request)
    invoices, customers = _load(db, target_company, status, customer_id)
    report = aggregate_sales(invoices, customers)
    return SalesReportRead(
        summary=SalesSummaryRead.model_validate(report.summary),
        by_customer=[CustomerSalesRead.model_validate(row) for row in report.by_customer],
    )


@router.get("/sales/export")
def export_sales_report(
    request: Request,
    format: str = Query("pdf"),
    company_id: Optional[str] = Query(None, alias="companyId"),
    status: Optional[str] = Query(None),
    customer_id: Optional[str] = Query(None, alias="customerId"),
    principal: Principal = Depends(require_permission(Module.REPORTS, Action.READ)),
    db: Session = Depends(get_db),
):
    target_company = resolve_company_for_write(principal, company_id, request)
    invoices, customers = _load(db, target_company, status, customer_id)
    content = render_sales_report(invoices, customers, format)
    media_type, extension = report_media_type(format.strip().lower())
    filename = f"sales-report-{date.today().isoformat()}.{extension}"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": attachment_disposition(filename)},
    )
