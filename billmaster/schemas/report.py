from __future__ import annotations

from typing import List, Optional

from billmaster.schemas.common import ApiModel


class DashboardStats(ApiModel):
    total_revenue: float
    active_customers: int
    pending_invoices: int
    products_sold: int


class CustomerSalesRead(ApiModel):
    customer_id: Optional[str] = None
    customer_name: str
    invoice_count: int
    total_revenue: float
    paid_revenue: float
    collection_rate: float


class SalesSummaryRead(ApiModel):
    total_revenue: float
    paid_revenue: float
    pending_revenue: float
    invoice_count: int
    collection_rate: float


class SalesReportRead(ApiModel):
    summary: SalesSummaryRead
    by_customer: List[CustomerSalesRead]
