from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.api.deps import CurrentSession, DBSession, require_capability
from app.schemas.exports import ExportTableOut
from app.schemas.products import ProductCreate, ProductUpdate, ProductOut
from app.services import catalog_service
from app.services.exports import products_table
from app.services.permissions import Capability
from app.services.retry import run_with_retry

router = APIRouter(dependencies=[CurrentSession])

manage_products = Depends(require_capability(Capability.MANAGE_PRODUCTS))


@router.get("", response_model=list[ProductOut])
def list_products(
    db: Session = DBSession,
    q: Optional[str] = Query(default=None, description="Busca por nome ou código"),
):
    return catalog_service.list_products(db, q)


@router.get("/export", response_model=ExportTableOut)
def export_products(db: Session = DBSession, q: Optional[str] = Query(default=None)):
    return products_table(catalog_service.list_products(db, q))


@router.post("", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, db: Session = DBSession, _ctx=manage_products):
    data = payload.model_dump()
    return run_with_retry(db, lambda s: catalog_service.create_product(s, data))


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = DBSession):
    return catalog_service.get_product(db, product_id)


@router.put("/{product_id}", response_model=ProductOut)
def update_product(product_id: int, payload: ProductUpdate, db: Session = DBSession, _ctx=manage_products):
    data = payload.model_dump(exclude_unset=True)
    return run_with_retry(db, lambda s: catalog_service.update_product(s, product_id, data))


@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: int, db: Session = DBSession, _ctx=manage_products):
    run_with_retry(db, lambda s: catalog_service.delete_product(s, product_id))
