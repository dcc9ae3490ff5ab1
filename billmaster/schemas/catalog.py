from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import EmailStr, Field

from billmaster.schemas.common import ApiModel


class ProductCreate(ApiModel):
    company_id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=160)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    unit: Optional[str] = Field(None, max_length=30)
    category: Optional[str] = Field(None, max_length=80)
    tax_rate: Decimal = Field(Decimal("0"), ge=0)
    is_active: bool = True


class ProductUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=160)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    unit: Optional[str] = Field(None, max_length=30)
    category: Optional[str] = Field(None, max_length=80)
    tax_rate: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None
    version: Optional[int] = None


class ProductRead(ApiModel):
    id: str
    company_id: str
    name: str
    description: Optional[str] = None
    price: float
    unit: Optional[str] = None
    category: Optional[str] = None
    tax_rate: float
    is_active: bool
    version: int
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class CustomerCreate(ApiModel):
    company_id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=160)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=40)
    address: Optional[str] = None
    tax_id: Optional[str] = Field(None, max_length=40)
    is_active: bool = True


class CustomerUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=160)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=40)
    address: Optional[str] = None
    tax_id: Optional[str] = Field(None, max_length=40)
    is_active: Optional[bool] = None
    version: Optional[int] = None


class CustomerRead(ApiModel):
    id: str
    company_id: str
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    tax_id: Optional[str] = None
    is_active: bool
    version: int
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
