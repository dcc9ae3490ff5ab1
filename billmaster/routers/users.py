from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from billmaster.core.database import get_db
from billmaster.deps import (
    get_scoped_or_404,
    require_permission,
    resolve_company_filter,
    resolve_company_for_write,
)
from billmaster.repositories import UserRepository
from billmaster.schemas.common import collect_changes
from billmaster.schemas.user import UserCreate, UserRead, UserUpdate
from billmaster.services.authorization_service import Action, AuthorizationService, Module, Principal
from billmaster.services.users import create_user, delete_user, update_user

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=List[UserRead])
def list_users(
    request: Request,
    company_id: Optional[str] = Query(None, alias="companyId"),
    principal: Principal = Depends(require_permission(Module.USERS, Action.READ)),
    db: Session = Depends(get_db),
):
    return UserRepository(db).list(resolve_company_filter(principal, company_id, request))


@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: str,
    request: Request,
    principal: Principal = Depends(require_permission(Module.USERS, Action.READ)),
    db: Session = Depends(get_db),
):
    return get_scoped_or_404(UserRepository(db), user_id, principal, request)


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user_endpoint(
    payload: UserCreate,
    request: Request,
    principal: Principal = Depends(require_permission(Module.USERS, Action.CREATE)),
    db: Session = Depends(get_db),
):
    data = payload.model_dump()
    data["company_id"] = resolve_company_for_write(principal, payload.company_id, request)
    user = create_user(db, principal, data)
    db.commit()
    db.refresh(user)
    return user


@router.put("/{user_id}", response_model=UserRead)
def update_user_endpoint(
    user_id: str,
    payload: UserUpdate,
    request: Request,
    principal: Principal = Depends(require_permission(Module.USERS, Action.UPDATE)),
    db: Session = Depends(get_db),
):
    user = get_scoped_or_404(UserRepository(db), user_id, principal, request)
    changes = collect_changes(payload, "company_id", "role_id", "name", "email", "is_active")
    if "company_id" in changes:
        # mover usuário de empresa exige escopo sobre a empresa de destino
        AuthorizationService.ensure_scope(principal=principal, company_id=changes["company_id"], request=request)
    user = update_user(db, principal, user, changes, expected_version=payload.version)
    db.commit()
    db.refresh(user)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user_endpoint(
    user_id: str,
    request: Request,
    principal: Principal = Depends(require_permission(Module.USERS, Action.DELETE)),
    db: Session = Depends(get_db),
):
    user = get_scoped_or_404(UserRepository(db), user_id, principal, request)
    delete_user(db, principal, user)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
