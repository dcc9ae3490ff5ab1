from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from billmaster.core.database import get_db
from billmaster.deps import get_scoped_or_404, require_permission
from billmaster.repositories import CompanyRepository
from billmaster.schemas.common import collect_changes
from billmaster.schemas.company import CompanyCreate, CompanyCreated, CompanyRead, CompanyUpdate
from billmaster.schemas.user import UserRead
from billmaster.services.authorization_service import Action, AuthorizationService, Module, Principal
from billmaster.services.companies import create_company, delete_company, update_company

router = APIRouter(prefix="/api/companies", tags=["companies"])


@router.get("", response_model=List[CompanyRead])
def list_companies(
    principal: Principal = Depends(require_permission(Module.COMPANIES, Action.READ)),
    db: Session = Depends(get_db),
):
    return CompanyRepository(db).list(AuthorizationService.effective_company_id(principal, None))


@router.get("/{company_id}", response_model=CompanyRead)
def get_company(
    company_id: str,
    request: Request,
    principal: Principal = Depends(require_permission(Module.COMPANIES, Action.READ)),
    db: Session = Depends(get_db),
):
    return get_scoped_or_404(CompanyRepository(db), company_id, principal, request)


@router.post("", response_model=CompanyCreated, status_code=status.HTTP_201_CREATED)
def create_company_endpoint(
    payload: CompanyCreate,
    principal: Principal = Depends(require_permission(Module.COMPANIES, Action.CREATE)),
    db: Session = Depends(get_db),
):
    data = payload.model_dump(exclude={"admin_email", "admin_name", "admin_password"})
    company, admin = create_company(
        db,
        data,
        admin_email=payload.admin_email,
        admin_name=payload.admin_name,
        admin_password=payload.admin_password,
    )
    db.commit()
    db.refresh(company)
    response = CompanyCreated.model_validate(company)
    if admin is not None:
        db.refresh(admin)
        response.admin_user = UserRead.model_validate(admin)
    return response


@router.put("/{company_id}", response_model=CompanyRead)
def update_company_endpoint(
    company_id: str,
    payload: CompanyUpdate,
    request: Request,
    principal: Principal = Depends(require_permission(Module.COMPANIES, Action.UPDATE)),
    db: Session = Depends(get_db),
):
    company = get_scoped_or_404(CompanyRepository(db), company_id, principal, request)
    update_company(
        db,
        company,
        collect_changes(payload, "name", "slug", "is_active"),
        expected_version=payload.version,
    )
    db.commit()
    db.refresh(company)
    return company


@router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_company_endpoint(
    company_id: str,
    request: Request,
    principal: Principal = Depends(require_permission(Module.COMPANIES, Action.DELETE)),
    db: Session = Depends(get_db),
):
    company = get_scoped_or_404(CompanyRepository(db), company_id, principal, request)
    delete_company(db, company)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
