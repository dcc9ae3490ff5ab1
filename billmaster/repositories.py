"""Per-entity persistence over a SQLAlchemy session.

Routers and services only talk to these classes, so swapping the backing
store does not touch callers. Writes are flushed, never committed: the
caller owns the transaction.
"""
from __future__ import annotations

from typing import Any, Generic, Iterable, Mapping, Optional, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from billmaster.core.errors import ConflictError, NotFoundError
from billmaster.core.database import Base
from billmaster.models.company import Company
from billmaster.models.customer import Customer
from billmaster.models.invoice import Invoice, InvoiceItem
from billmaster.models.product import Product
from billmaster.models.role import Role
from billmaster.models.user import User

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    model: Type[ModelT]
    entity_name: str = "Resource"
    default_order: Any = None

    def __init__(self, db: Session) -> None:
        self.db = db

    def _query(self):
        return self.db.query(self.model)

    def list(self, company_id: Optional[str] = None) -> list[ModelT]:
        query = self._query()
        if company_id is not None:
            query = query.filter(self.model.company_id == company_id)
        if self.default_order is not None:
            query = query.order_by(self.default_order)
        return query.all()

    def get(self, entity_id: str) -> Optional[ModelT]:
        return self._query().filter(self.model.id == entity_id).first()

    def get_or_404(self, entity_id: str) -> ModelT:
        entity = self.get(entity_id)
        if entity is None:
            raise NotFoundError(f"{self.entity_name} not found")
        return entity

    def add(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        self.db.flush()
        return entity

    def update(
        self,
        entity: ModelT,
        changes: Mapping[str, Any],
        expected_version: Optional[int] = None,
    ) -> ModelT:
        current_version = getattr(entity, "version", None)
        if expected_version is not None and current_version is not None and int(expected_version) != int(current_version):
            raise ConflictError(f"{self.entity_name} was modified by another request")
        for key, value in changes.items():
            setattr(entity, key, value)
        self.db.flush()
        return entity

    def delete(self, entity: ModelT) -> None:
        self.db.delete(entity)
        self.db.flush()


class CompanyRepository(Repository[Company]):
    model = Company
    entity_name = "Company"
    default_order = Company.name.asc()

    def list(self, company_id: Optional[str] = None) -> list[Company]:
        query = self._query()
        if company_id is not None:
            query = query.filter(Company.id == company_id)
        return query.order_by(self.default_order).all()

    def get_by_slug(self, slug: str) -> Optional[Company]:
        return self._query().filter(Company.slug == slug).first()

    def has_dependents(self, company_id: str) -> bool:
        for model in (User, Customer, Product, Invoice):
            if self.db.query(model.id).filter(model.company_id == company_id).first() is not None:
                return True
        return False


class RoleRepository(Repository[Role]):
    model = Role
    entity_name = "Role"
    default_order = Role.name.asc()

    def list(self, company_id: Optional[str] = None) -> list[Role]:
        return self._query().order_by(self.default_order).all()

    def get_by_name(self, name: str) -> Optional[Role]:
        return self._query().filter(Role.name == name).first()


class UserRepository(Repository[User]):
    model = User
    entity_name = "User"
    default_order = User.name.asc()

    def get_by_email(self, email: str) -> Optional[User]:
        return self._query().filter(User.email == email).first()


class ProductRepository(Repository[Product]):
    model = Product
    entity_name = "Product"
    default_order = Product.name.asc()

    def get_many(self, product_ids: Iterable[str]) -> dict[str, Product]:
        ids = {pid for pid in product_ids if pid}
        if not ids:
            return {}
        rows = self._query().filter(Product.id.in_(ids)).all()
        return {row.id: row for row in rows}

    def delete(self, entity: Product) -> None:
        # itens de fatura guardam snapshot (descrição/preço); só solta a referência
        self.db.query(InvoiceItem).filter(InvoiceItem.product_id == entity.id).update(
            {InvoiceItem.product_id: None}, synchronize_session=False
        )
        super().delete(entity)


class CustomerRepository(Repository[Customer]):
    model = Customer
    entity_name = "Customer"
    default_order = Customer.name.asc()

    def has_invoices(self, customer_id: str) -> bool:
        return self.db.query(Invoice.id).filter(Invoice.customer_id == customer_id).first() is not None


class InvoiceRepository(Repository[Invoice]):
    model = Invoice
    entity_name = "Invoice"
    default_order = Invoice.date.desc()

    def _query(self):
        return self.db.query(Invoice).options(selectinload(Invoice.items))

    def list_filtered(
        self,
        company_id: Optional[str] = None,
        *,
        status: Optional[str] = None,
        customer_id: Optional[str] = None,
    ) -> list[Invoice]:
        query = self._query()
        if company_id is not None:
            query = query.filter(Invoice.company_id == company_id)
        if status:
            query = query.filter(Invoice.status == status)
        if customer_id:
            query = query.filter(Invoice.customer_id == customer_id)
        return query.order_by(Invoice.date.desc(), Invoice.invoice_number.desc()).all()

    def number_taken(self, company_id: str, invoice_number: str, exclude_id: Optional[str] = None) -> bool:
        query = self.db.query(Invoice.id).filter(
            Invoice.company_id == company_id,
            func.lower(Invoice.invoice_number) == invoice_number.strip().lower(),
        )
        if exclude_id is not None:
            query = query.filter(Invoice.id != exclude_id)
        return query.first() is not None
