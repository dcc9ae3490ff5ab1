from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from billmaster.core.database import get_db
from billmaster.deps import get_current_principal, resolve_company_for_write
from billmaster.schemas.report import DashboardStats
from billmaster.services.authorization_service import Principal
from billmaster.services.dashboard import get_dashboard_stats

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
def dashboard_stats(
    request: Request,
    company_id: Optional[str] = Query(None, alias="companyId"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    # sempre uma empresa: a do usuário, ou a escolhida pelo Super Admin
    target_company = resolve_company_for_write(principal, company_id, request)
    return get_dashboard_stats(db, target_company)
