from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping

from fastapi import Request
from sqlalchemy.orm import Session

from billmaster.core.errors import InvalidToken, PermissionDenied
from billmaster.models.role import Permission, Role
from billmaster.services.auth import SessionClaims

logger = logging.getLogger(__name__)

SUPER_ADMIN_ROLE = "Super Admin"
COMPANY_ADMIN_ROLE = "Company Admin"
MANAGER_ROLE = "Manager"
USER_ROLE = "User"


class Module(str, Enum):
    COMPANIES = "companies"
    USERS = "users"
    PRODUCTS = "products"
    CUSTOMERS = "customers"
    INVOICES = "invoices"
    REPORTS = "reports"


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def flag(self) -> str:
        return f"can_{self.value}"


@dataclass(frozen=True)
class CapabilityMap:
    """Módulo -> ações liberadas. Módulo ausente = nada liberado."""

    grants: Mapping[Module, frozenset[Action]] = field(default_factory=dict)

    @classmethod
    def from_permissions(cls, permissions: Iterable[Permission]) -> "CapabilityMap":
        grants: dict[Module, frozenset[Action]] = {}
        for row in permissions:
            try:
                module = Module(row.module)
            except ValueError:
                logger.warning("ignoring permission for unknown module=%s role_id=%s", row.module, row.role_id)
                continue
            grants[module] = frozenset(action for action in Action if getattr(row, action.flag, False))
        return cls(grants=grants)

    def allows(self, module: Module, action: Action) -> bool:
        return action in self.grants.get(module, frozenset())


@dataclass(frozen=True)
class Principal:
    user_id: str
    company_id: str
    role_id: str
    role_name: str
    email: str
    capabilities: CapabilityMap

    @property
    def is_super_admin(self) -> bool:
        return self.role_name == SUPER_ADMIN_ROLE


def load_principal(db: Session, claims: SessionClaims) -> Principal:
    """Monta o principal a partir dos claims + role/permissões atuais.

    O usuário em si não é relido: um usuário desativado depois da emissão
    continua válido até o token expirar.
    """
    role = db.query(Role).filter(Role.id == claims.role_id).first()
    if role is None:
        raise InvalidToken()
    permissions = db.query(Permission).filter(Permission.role_id == role.id).all()
    return Principal(
        user_id=claims.user_id,
        company_id=claims.company_id,
        role_id=role.id,
        role_name=role.name,
        email=claims.email,
        capabilities=CapabilityMap.from_permissions(permissions),
    )


def authorize(principal: Principal, module: Module, action: Action) -> bool:
    return principal.capabilities.allows(module, action)


def scope_check(principal: Principal, requested_company_id: str | None) -> bool:
    if principal.is_super_admin:
        return True
    if requested_company_id is None or requested_company_id == "":
        return True
    return str(requested_company_id) == str(principal.company_id)


class AuthorizationService:
    """Centralize company-scope and permission checks for API endpoints."""

    @staticmethod
    def log_access_denied(
        *,
        reason: str,
        principal: Principal,
        company_id: str | None,
        request: Request | None,
    ) -> None:
        endpoint = f"{request.method} {request.url.path}" if request is not None else None
        logger.warning(
            "Access denied (%s): user_id=%s user_role=%s user_company=%s company_id=%s endpoint=%s",
            reason,
            principal.user_id,
            principal.role_name,
            principal.company_id,
            company_id,
            endpoint,
        )

    @classmethod
    def ensure_permission(
        cls,
        *,
        principal: Principal,
        module: Module,
        action: Action,
        request: Request | None = None,
    ) -> None:
        if not authorize(principal, module, action):
            cls.log_access_denied(
                reason=f"missing {module.value}:{action.value}",
                principal=principal,
                company_id=None,
                request=request,
            )
            raise PermissionDenied("Insufficient permissions")

    @classmethod
    def ensure_scope(
        cls,
        *,
        principal: Principal,
        company_id: str | None,
        request: Request | None = None,
    ) -> None:
        if not scope_check(principal, company_id):
            cls.log_access_denied(
                reason="company_mismatch",
                principal=principal,
                company_id=company_id,
                request=request,
            )
            raise PermissionDenied("Access denied to company data")

    @staticmethod
    def effective_company_id(principal: Principal, requested_company_id: str | None) -> str | None:
        """Filtro de listagem: Super Admin vê tudo (ou o que pediu); demais, só a própria empresa."""
        if principal.is_super_admin:
            return requested_company_id or None
        return principal.company_id
