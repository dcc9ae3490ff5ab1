from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from billmaster.core.errors import ConflictError, ValidationError
from billmaster.models.company import Company
from billmaster.models.user import User
from billmaster.repositories import CompanyRepository, RoleRepository, UserRepository
from billmaster.services.auth import hash_password
from billmaster.services.authorization_service import COMPANY_ADMIN_ROLE
from billmaster.utils.slug import normalize_slug

logger = logging.getLogger(__name__)


def _resolve_slug(repo: CompanyRepository, name: str, slug: Optional[str], exclude_id: Optional[str] = None) -> str:
    candidate = normalize_slug(slug or name)
    if not candidate:
        raise ValidationError("Slug is required")
    existing = repo.get_by_slug(candidate)
    if existing is not None and existing.id != exclude_id:
        raise ConflictError(f"Slug {candidate} already in use")
    return candidate


def create_company(
    db: Session,
    data: Mapping[str, Any],
    *,
    admin_email: Optional[str] = None,
    admin_name: Optional[str] = None,
    admin_password: Optional[str] = None,
) -> tuple[Company, Optional[User]]:
    """Cria a empresa e, se vierem os dados, o primeiro Company Admin na mesma transação."""
    repo = CompanyRepository(db)
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Company name is required")

    fields = dict(data)
    fields["name"] = name
    fields["slug"] = _resolve_slug(repo, name, data.get("slug"))
    company = repo.add(Company(**fields))

    admin: Optional[User] = None
    if admin_email or admin_password:
        if not (admin_email and admin_password):
            raise ValidationError("adminEmail and adminPassword are required together")
        users = UserRepository(db)
        if users.get_by_email(admin_email) is not None:
            raise ConflictError("Email already in use")
        role = RoleRepository(db).get_by_name(COMPANY_ADMIN_ROLE)
        if role is None:
            raise ValidationError(f"Role {COMPANY_ADMIN_ROLE} is not configured")
        admin = users.add(
            User(
                company_id=company.id,
                role_id=role.id,
                name=(admin_name or "").strip() or admin_email,
                email=admin_email,
                password_hash=hash_password(admin_password),
                is_active=True,
            )
        )

    logger.info(
        "company created id=%s slug=%s admin_user_id=%s",
        company.id,
        company.slug,
        admin.id if admin else None,
    )
    return company, admin


def update_company(
    db: Session,
    company: Company,
    changes: Mapping[str, Any],
    *,
    expected_version: Optional[int] = None,
) -> Company:
    repo = CompanyRepository(db)
    updates = dict(changes)
    if "name" in updates:
        updates["name"] = (updates["name"] or "").strip()
        if not updates["name"]:
            raise ValidationError("Company name is required")
    if "slug" in updates:
        updates["slug"] = _resolve_slug(
            repo,
            updates.get("name") or company.name,
            updates["slug"],
            exclude_id=company.id,
        )
    return repo.update(company, updates, expected_version=expected_version)


def delete_company(db: Session, company: Company) -> None:
    repo = CompanyRepository(db)
    if repo.has_dependents(company.id):
        raise ConflictError("Company still has users, customers, products or invoices")
    repo.delete(company)
    logger.info("company deleted id=%s", company.id)
