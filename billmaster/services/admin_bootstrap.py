from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from billmaster.models.company import Company
from billmaster.models.role import Permission, Role
from billmaster.models.user import User
from billmaster.services.auth import hash_password
from billmaster.services.authorization_service import (
    COMPANY_ADMIN_ROLE,
    MANAGER_ROLE,
    SUPER_ADMIN_ROLE,
    USER_ROLE,
    Module,
)
from billmaster.utils.slug import normalize_slug

logger = logging.getLogger(__name__)

CRUD = "crud"

# role -> módulo -> letras liberadas (c/r/u/d). Módulo ausente = sem acesso.
ROLE_MATRIX: dict[str, dict[Module, str]] = {
    SUPER_ADMIN_ROLE: {
        Module.COMPANIES: CRUD,
        Module.USERS: CRUD,
        Module.PRODUCTS: CRUD,
        Module.CUSTOMERS: CRUD,
        Module.INVOICES: CRUD,
        Module.REPORTS: "r",
    },
    COMPANY_ADMIN_ROLE: {
        Module.COMPANIES: "r",
        Module.USERS: CRUD,
        Module.PRODUCTS: CRUD,
        Module.CUSTOMERS: CRUD,
        Module.INVOICES: CRUD,
        Module.REPORTS: "r",
    },
    MANAGER_ROLE: {
        Module.USERS: "r",
        Module.PRODUCTS: "cru",
        Module.CUSTOMERS: "cru",
        Module.INVOICES: "cru",
        Module.REPORTS: "r",
    },
    USER_ROLE: {
        Module.PRODUCTS: "r",
        Module.CUSTOMERS: "r",
        Module.INVOICES: "cr",
    },
}

ROLE_DESCRIPTIONS = {
    SUPER_ADMIN_ROLE: "Platform administrator with access to every company",
    COMPANY_ADMIN_ROLE: "Full access to a single company",
    MANAGER_ROLE: "Manages catalog, customers and invoices",
    USER_ROLE: "Read catalog and issue invoices",
}


def seed_roles(db: Session) -> dict[str, Role]:
    """Cria papéis e permissões que faltarem. Idempotente: não altera linhas existentes."""
    roles: dict[str, Role] = {}
    created = 0
    for role_name, grants in ROLE_MATRIX.items():
        role = db.query(Role).filter(Role.name == role_name).first()
        if role is None:
            role = Role(name=role_name, description=ROLE_DESCRIPTIONS.get(role_name))
            db.add(role)
            db.flush()
            created += 1

        existing = {row.module for row in db.query(Permission).filter(Permission.role_id == role.id).all()}
        for module, letters in grants.items():
            if module.value in existing:
                continue
            db.add(
                Permission(
                    role_id=role.id,
                    module=module.value,
                    can_create="c" in letters,
                    can_read="r" in letters,
                    can_update="u" in letters,
                    can_delete="d" in letters,
                )
            )
        roles[role_name] = role

    db.commit()
    if created:
        logger.info("seeded roles created=%s", created)
    return roles


def _ensure_platform_company(db: Session, company_name: str) -> Company:
    slug = normalize_slug(company_name) or "platform"
    company = db.query(Company).filter(Company.slug == slug).first()
    if company is None:
        company = Company(name=company_name, slug=slug, is_active=True)
        db.add(company)
        db.flush()
        logger.info("bootstrap company created slug=%s", slug)
    return company


def upsert_super_admin(
    db: Session,
    *,
    email: str,
    name: str,
    password: str | None,
    company_name: str,
) -> tuple[User, bool]:
    """Garante um Super Admin ativo. Retorna (usuário, criado?)."""
    roles = seed_roles(db)
    role = roles[SUPER_ADMIN_ROLE]
    email = email.strip()

    existing = db.query(User).filter(User.email == email).first()
    if existing:
        existing.name = name
        existing.role_id = role.id
        existing.is_active = True
        if password:
            existing.password_hash = hash_password(password)
        db.commit()
        db.refresh(existing)
        return existing, False

    if not password:
        raise ValueError("Password is required to create a new admin.")

    company = _ensure_platform_company(db, company_name)
    admin = User(
        company_id=company.id,
        role_id=role.id,
        name=name,
        email=email,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("bootstrap super admin created user_id=%s", admin.id)
    return admin, True
