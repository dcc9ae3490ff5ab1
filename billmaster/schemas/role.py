from __future__ import annotations

from typing import List, Optional

from billmaster.schemas.common import ApiModel


class PermissionRead(ApiModel):
    module: str
    can_create: bool
    can_read: bool
    can_update: bool
    can_delete: bool


class RoleRead(ApiModel):
    id: str
    name: str
    description: Optional[str] = None


class RoleWithPermissions(RoleRead):
    permissions: List[PermissionRead] = []
