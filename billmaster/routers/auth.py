from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from billmaster.core.database import get_db
from billmaster.core.request_context import set_request_context
from billmaster.deps import get_current_principal
from billmaster.models.user import User
from billmaster.repositories import UserRepository
from billmaster.schemas.auth import LoginRequest, LoginResponse, MeResponse, SessionUser
from billmaster.schemas.company import CompanyRead
from billmaster.schemas.role import PermissionRead, RoleRead
from billmaster.services.auth import authenticate
from billmaster.services.authorization_service import Principal

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session_user(user: User) -> SessionUser:
    return SessionUser(
        id=user.id,
        email=user.email,
        name=user.name,
        company_id=user.company_id,
        role=RoleRead.model_validate(user.role),
        company=CompanyRead.model_validate(user.company) if user.company else None,
        permissions=[PermissionRead.model_validate(row) for row in user.role.permissions],
    )


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user, token = authenticate(db, payload.email.strip(), payload.password)
    set_request_context(company_id=user.company_id, user_id=user.id)
    return LoginResponse(token=token, user=_session_user(user))


@router.get("/me", response_model=MeResponse)
def me(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    user = UserRepository(db).get_or_404(principal.user_id)
    return MeResponse(user=_session_user(user))
