from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from billmaster.core.database import get_db
from billmaster.core.errors import ConflictError
from billmaster.deps import (
    get_scoped_or_404,
    require_permission,
    resolve_company_filter,
    resolve_company_for_write,
)
from billmaster.models.customer import Customer
from billmaster.repositories import CustomerRepository
from billmaster.schemas.catalog import CustomerCreate, CustomerRead, CustomerUpdate
from billmaster.schemas.common import collect_changes
from billmaster.services.authorization_service import Action, Module, Principal

router = APIRouter(prefix="/api/customers", tags=["customers"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[CustomerRead])
def list_customers(
    request: Request,
    company_id: Optional[str] = Query(None, alias="companyId"),
    principal: Principal = Depends(require_permission(Module.CUSTOMERS, Action.READ)),
    db: Session = Depends(get_db),
):
    return CustomerRepository(db).list(resolve_company_filter(principal, company_id, request))


@router.get("/{customer_id}", response_model=CustomerRead)
def get_customer(
    customer_id: str,
    request: Request,
    principal: Principal = Depends(require_permission(Module.CUSTOMERS, Action.READ)),
    db: Session = Depends(get_db),
):
    return get_scoped_or_404(CustomerRepository(db), customer_id, principal, request)


@router.post("", response_model=CustomerRead, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreate,
    request: Request,
    principal: Principal = Depends(require_permission(Module.CUSTOMERS, Action.CREATE)),
    db: Session = Depends(get_db),
):
    data = payload.model_dump()
    data["company_id"] = resolve_company_for_write(principal, payload.company_id, request)
    customer = CustomerRepository(db).add(Customer(**data))
    db.commit()
    db.refresh(customer)
    logger.info("customer created id=%s company_id=%s", customer.id, customer.company_id)
    return customer


@router.put("/{customer_id}", response_model=CustomerRead)
def update_customer(
    customer_id: str,
    payload: CustomerUpdate,
    request: Request,
    principal: Principal = Depends(require_permission(Module.CUSTOMERS, Action.UPDATE)),
    db: Session = Depends(get_db),
):
    repo = CustomerRepository(db)
    customer = get_scoped_or_404(repo, customer_id, principal, request)
    changes = collect_changes(payload, "name", "email", "is_active")
    repo.update(customer, changes, expected_version=payload.version)
    db.commit()
    db.refresh(customer)
    return customer


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: str,
    request: Request,
    principal: Principal = Depends(require_permission(Module.CUSTOMERS, Action.DELETE)),
    db: Session = Depends(get_db),
):
    repo = CustomerRepository(db)
    customer = get_scoped_or_404(repo, customer_id, principal, request)
    if repo.has_invoices(customer.id):
        raise ConflictError("Customer has invoices and cannot be deleted")
    repo.delete(customer)
    db.commit()
    logger.info("customer deleted id=%s", customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
