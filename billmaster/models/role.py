from uuid import uuid4

from sqlalchemy import Boolean, Column, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from billmaster.core.database import Base


class Role(Base):
    __tablename__ = "roles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name = Column(String(60), unique=True, nullable=False)
    description = Column(String, nullable=True)

    permissions = relationship("Permission", back_populates="role", cascade="all, delete-orphan")


class Permission(Base):
    __tablename__ = "permissions"
    # uma linha por (role, módulo)
    __table_args__ = (UniqueConstraint("role_id", "module", name="uq_permissions_role_module"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    role_id = Column(String(36), ForeignKey("roles.id"), nullable=False, index=True)
    module = Column(String(40), nullable=False)
    can_create = Column(Boolean, nullable=False, default=False)
    can_read = Column(Boolean, nullable=False, default=False)
    can_update = Column(Boolean, nullable=False, default=False)
    can_delete = Column(Boolean, nullable=False, default=False)

    role = relationship("Role", back_populates="permissions")
