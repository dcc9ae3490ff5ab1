from __future__ import annotations

import logging
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
from billmaster.models.product import Product
from billmaster.repositories import ProductRepository
from billmaster.schemas.catalog import ProductCreate, ProductRead, ProductUpdate
from billmaster.schemas.common import collect_changes
from billmaster.services.authorization_service import Action, Module, Principal

router = APIRouter(prefix="/api/products", tags=["products"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[ProductRead])
def list_products(
    request: Request,
    company_id: Optional[str] = Query(None, alias="companyId"),
    principal: Principal = Depends(require_permission(Module.PRODUCTS, Action.READ)),
    db: Session = Depends(get_db),
):
    return ProductRepository(db).list(resolve_company_filter(principal, company_id, request))


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: str,
    request: Request,
    principal: Principal = Depends(require_permission(Module.PRODUCTS, Action.READ)),
    db: Session = Depends(get_db),
):
    return get_scoped_or_404(ProductRepository(db), product_id, principal, request)


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    request: Request,
    principal: Principal = Depends(require_permission(Module.PRODUCTS, Action.CREATE)),
    db: Session = Depends(get_db),
):
    data = payload.model_dump()
    data["company_id"] = resolve_company_for_write(principal, payload.company_id, request)
    product = ProductRepository(db).add(Product(**data))
    db.commit()
    db.refresh(product)
    logger.info("product created id=%s company_id=%s", product.id, product.company_id)
    return product


@router.put("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: str,
    payload: ProductUpdate,
    request: Request,
    principal: Principal = Depends(require_permission(Module.PRODUCTS, Action.UPDATE)),
    db: Session = Depends(get_db),
):
    repo = ProductRepository(db)
    product = get_scoped_or_404(repo, product_id, principal, request)
    changes = collect_changes(payload, "name", "price", "tax_rate", "is_active")
    repo.update(product, changes, expected_version=payload.version)
    db.commit()
    db.refresh(product)
    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: str,
    request: Request,
    principal: Principal = Depends(require_permission(Module.PRODUCTS, Action.DELETE)),
    db: Session = Depends(get_db),
):
    repo = ProductRepository(db)
    product = get_scoped_or_404(repo, product_id, principal, request)
    repo.delete(product)
    db.commit()
    logger.info("product deleted id=%s", product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
