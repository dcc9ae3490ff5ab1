from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from billmaster.core.database import get_db
from billmaster.deps import get_current_principal
from billmaster.repositories import RoleRepository
from billmaster.schemas.role import RoleWithPermissions
from billmaster.services.authorization_service import Principal

router = APIRouter(prefix="/api/roles", tags=["roles"])


@router.get("", response_model=List[RoleWithPermissions])
def list_roles(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return RoleRepository(db).list()
