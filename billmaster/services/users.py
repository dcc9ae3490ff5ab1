from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from billmaster.core.errors import ConflictError, PermissionDenied, ValidationError
from billmaster.models.user import User
from billmaster.repositories import CompanyRepository, RoleRepository, UserRepository
from billmaster.services.auth import hash_password
from billmaster.services.authorization_service import SUPER_ADMIN_ROLE, Principal

logger = logging.getLogger(__name__)


def _check_role(db: Session, principal: Principal, role_id: str) -> None:
    role = RoleRepository(db).get(role_id)
    if role is None:
        raise ValidationError("Role not found")
    # só o Super Admin pode conceder o papel de Super Admin
    if role.name == SUPER_ADMIN_ROLE and not principal.is_super_admin:
        raise PermissionDenied("Insufficient permissions")


def _check_target(principal: Principal, user: User) -> None:
    # conta de Super Admin só é alterada/removida por outro Super Admin
    if user.role is not None and user.role.name == SUPER_ADMIN_ROLE and not principal.is_super_admin:
        logger.warning("super admin account change denied target_user_id=%s user_id=%s", user.id, principal.user_id)
        raise PermissionDenied("Insufficient permissions")


def _check_email(repo: UserRepository, email: str, exclude_id: Optional[str] = None) -> str:
    email = (email or "").strip()
    existing = repo.get_by_email(email)
    if existing is not None and existing.id != exclude_id:
        raise ConflictError("Email already in use")
    return email


def create_user(db: Session, principal: Principal, data: Mapping[str, Any]) -> User:
    repo = UserRepository(db)
    if CompanyRepository(db).get(data["company_id"]) is None:
        raise ValidationError("Company not found")
    _check_role(db, principal, data["role_id"])
    email = _check_email(repo, data["email"])

    user = repo.add(
        User(
            company_id=data["company_id"],
            role_id=data["role_id"],
            name=data["name"].strip(),
            email=email,
            password_hash=hash_password(data["password"]),
            is_active=data.get("is_active", True),
        )
    )
    logger.info("user created id=%s company_id=%s role_id=%s", user.id, user.company_id, user.role_id)
    return user


def update_user(
    db: Session,
    principal: Principal,
    user: User,
    changes: Mapping[str, Any],
    *,
    expected_version: Optional[int] = None,
) -> User:
    _check_target(principal, user)
    repo = UserRepository(db)
    updates = dict(changes)

    if "email" in updates:
        updates["email"] = _check_email(repo, updates["email"], exclude_id=user.id)
    if "role_id" in updates:
        _check_role(db, principal, updates["role_id"])
    if "company_id" in updates and CompanyRepository(db).get(updates["company_id"]) is None:
        raise ValidationError("Company not found")
    if updates.get("is_active") is False and user.id == principal.user_id:
        raise ValidationError("You cannot deactivate your own account")
    if "password" in updates:
        password = updates.pop("password")
        if password:
            updates["password_hash"] = hash_password(password)

    return repo.update(user, updates, expected_version=expected_version)


def delete_user(db: Session, principal: Principal, user: User) -> None:
    _check_target(principal, user)
    if user.id == principal.user_id:
        raise ValidationError("You cannot delete your own account")
    UserRepository(db).delete(user)
    logger.info("user deleted id=%s", user.id)
