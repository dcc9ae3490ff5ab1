from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from billmaster.core.database import get_db
from billmaster.core.errors import InvalidToken
from billmaster.core.request_context import set_request_context
from billmaster.services.auth import SessionClaims, verify_session
from billmaster.services.authorization_service import (
    Action,
    AuthorizationService,
    Module,
    Principal,
    load_principal,
)

# auto_error=False: a ausência do header vira InvalidToken (401), não o 403 padrão
bearer_scheme = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)


def get_session_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> SessionClaims:
    if credentials is None or (credentials.scheme or "").lower() != "bearer":
        raise InvalidToken()
    return verify_session(credentials.credentials)


def get_current_principal(
    request: Request,
    claims: SessionClaims = Depends(get_session_claims),
    db: Session = Depends(get_db),
) -> Principal:
    """Principal da requisição: claims do JWT + papel/permissões atuais."""
    principal = load_principal(db, claims)
    request.state.principal = principal
    set_request_context(company_id=principal.company_id, user_id=principal.user_id)
    return principal


def require_permission(module: Module, action: Action):
    def _dependency(
        request: Request,
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        AuthorizationService.ensure_permission(
            principal=principal,
            module=module,
            action=action,
            request=request,
        )
        return principal

    return _dependency


def get_scoped_or_404(repo, entity_id: str, principal: Principal, request: Optional[Request] = None):
    """Busca por id (404 se não existe) e aplica o escopo de empresa na linha encontrada (403)."""
    entity = repo.get_or_404(entity_id)
    company_id = entity.id if repo.entity_name == "Company" else entity.company_id
    AuthorizationService.ensure_scope(principal=principal, company_id=company_id, request=request)
    return entity


def resolve_company_for_write(principal: Principal, requested_company_id: Optional[str], request: Optional[Request] = None) -> str:
    """Empresa gravada em registros novos: o Super Admin escolhe; os demais usam a própria."""
    AuthorizationService.ensure_scope(principal=principal, company_id=requested_company_id, request=request)
    if principal.is_super_admin and requested_company_id:
        return requested_company_id
    return principal.company_id


def resolve_company_filter(principal: Principal, requested_company_id: Optional[str], request: Optional[Request] = None) -> Optional[str]:
    AuthorizationService.ensure_scope(principal=principal, company_id=requested_company_id, request=request)
    return AuthorizationService.effective_company_id(principal, requested_company_id)
