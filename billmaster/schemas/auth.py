from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from billmaster.schemas.common import ApiModel
from billmaster.schemas.company import CompanyRead
from billmaster.schemas.role import PermissionRead, RoleRead


class LoginRequest(ApiModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SessionUser(ApiModel):
    id: str
    email: str
    name: str
    company_id: str
    role: RoleRead
    company: Optional[CompanyRead] = None
    permissions: List[PermissionRead] = []


class LoginResponse(ApiModel):
    token: str
    user: SessionUser


class MeResponse(ApiModel):
    user: SessionUser
