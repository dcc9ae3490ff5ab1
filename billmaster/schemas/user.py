from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import EmailStr, Field

from billmaster.schemas.common import ApiModel


class UserCreate(ApiModel):
    company_id: Optional[str] = None
    role_id: str
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    is_active: bool = True


class UserUpdate(ApiModel):
    company_id: Optional[str] = None
    role_id: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)
    is_active: Optional[bool] = None
    version: Optional[int] = None


class UserRead(ApiModel):
    # password_hash fica de fora de propósito
    id: str
    company_id: str
    role_id: str
    name: str
    email: str
    is_active: bool
    version: int
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
