from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from billmaster.schemas.catalog import CustomerRead
from billmaster.schemas.common import ApiModel


class InvoiceItemInput(ApiModel):
    product_id: Optional[str] = None
    description: Optional[str] = None
    # faixa (> 0, >= 0) validada no cálculo da fatura: erro vira InvalidLineItem
    quantity: int
    unit_price: Decimal


class InvoiceCreate(ApiModel):
    company_id: Optional[str] = None
    customer_id: str
    invoice_number: str = Field(..., min_length=1, max_length=60)
    date: dt.date
    due_date: dt.date
    notes: Optional[str] = None
    items: List[InvoiceItemInput]


class InvoiceUpdate(ApiModel):
    customer_id: Optional[str] = None
    invoice_number: Optional[str] = Field(None, min_length=1, max_length=60)
    date: Optional[dt.date] = None
    due_date: Optional[dt.date] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    items: Optional[List[InvoiceItemInput]] = None
    version: Optional[int] = None


class InvoiceItemRead(ApiModel):
    id: str
    product_id: Optional[str] = None
    description: str
    quantity: int
    unit_price: float
    total: float


class InvoiceRead(ApiModel):
    id: str
    company_id: str
    customer_id: str
    invoice_number: str
    date: dt.date
    due_date: dt.date
    subtotal: float
    tax: float
    total: float
    status: str
    notes: Optional[str] = None
    version: int
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class InvoiceDetail(InvoiceRead):
    customer: Optional[CustomerRead] = None
    items: List[InvoiceItemRead] = []


class InvoiceEmailResult(ApiModel):
    sent: bool
    to: str
