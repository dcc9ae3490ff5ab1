from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import EmailStr, Field

from billmaster.schemas.common import ApiModel
from billmaster.schemas.user import UserRead


class CompanyBase(ApiModel):
    logo_url: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=40)
    email: Optional[EmailStr] = None
    website: Optional[str] = None


class CompanyCreate(CompanyBase):
    name: str = Field(..., min_length=1, max_length=160)
    slug: Optional[str] = Field(None, max_length=120)
    is_active: bool = True
    admin_email: Optional[EmailStr] = None
    admin_name: Optional[str] = None
    admin_password: Optional[str] = Field(None, min_length=6)


class CompanyUpdate(CompanyBase):
    name: Optional[str] = Field(None, min_length=1, max_length=160)
    slug: Optional[str] = Field(None, max_length=120)
    is_active: Optional[bool] = None
    version: Optional[int] = None


class CompanyRead(CompanyBase):
    id: str
    name: str
    slug: str
    email: Optional[str] = None
    is_active: bool
    version: int
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class CompanyCreated(CompanyRead):
    admin_user: Optional[UserRead] = None
