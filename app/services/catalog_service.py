from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.infra.models import ClientORM, ProductORM
from app.services.errors import NotFoundError, ValidationError


CLIENT_FIELDS = ("name", "phone", "email", "address")
PRODUCT_FIELDS = ("code", "name", "price", "category", "unit", "stock")


def normalize_phone(phone: str) -> str:
    return (
        phone.strip()
        .replace(" ", "")
        .replace("-", "")
        .replace("(", "")
        .replace(")", "")
    )


def _clean_str(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    return v.strip() or None


LIKE_ESCAPE = "\\"


def like_pattern(text: str) -> str:
    """Substring literal para ILIKE: % e _ digitados pelo usuário não viram curinga."""
    text = text.strip()
    for ch in (LIKE_ESCAPE, "%", "_"):
        text = text.replace(ch, LIKE_ESCAPE + ch)
    return f"%{text}%"


# clientes
def _clean_client(data: Mapping[str, Any]) -> dict:
    out = {k: data[k] for k in CLIENT_FIELDS if k in data}
    if "name" in out:
        name = (out["name"] or "").strip()
        if not name:
            raise ValidationError("Nome do cliente é obrigatório.")
        out["name"] = name
    if "phone" in out:
        out["phone"] = normalize_phone(out["phone"]) if out["phone"] else None
    if "email" in out:
        email = _clean_str(out["email"])
        out["email"] = email.lower() if email else None
    if "address" in out:
        out["address"] = _clean_str(out["address"])
    return out


def list_clients(db: Session, filter_text: Optional[str] = None) -> Sequence[ClientORM]:
    stmt = select(ClientORM).order_by(ClientORM.name.asc(), ClientORM.id.asc())
    if filter_text and filter_text.strip():
        stmt = stmt.where(ClientORM.name.ilike(like_pattern(filter_text), escape=LIKE_ESCAPE))
    return db.execute(stmt).scalars().all()


def get_client(db: Session, client_id: int) -> ClientORM:
    client = db.get(ClientORM, client_id)
    if not client:
        raise NotFoundError("Cliente não encontrado.")
    return client


def create_client(db: Session, data: Mapping[str, Any]) -> ClientORM:
    values = _clean_client(data)
    if "name" not in values:
        raise ValidationError("Nome do cliente é obrigatório.")
    client = ClientORM(**values)
    db.add(client)
    db.flush()
    return client


def update_client(db: Session, client_id: int, data: Mapping[str, Any]) -> ClientORM:
    client = get_client(db, client_id)
    for k, v in _clean_client(data).items():
        setattr(client, k, v)
    db.flush()
    return client


def delete_client(db: Session, client_id: int) -> None:
    client = get_client(db, client_id)
    # sem cascade: o ORM zera client_id das vendas antigas ("Cliente removido")
    db.delete(client)
    db.flush()


# produtos
def _clean_product(data: Mapping[str, Any]) -> dict:
    out = {k: data[k] for k in PRODUCT_FIELDS if k in data}
    for k in ("code", "name"):
        if k in out:
            v = (out[k] or "").strip()
            if not v:
                raise ValidationError(f"Campo obrigatório: {k}.")
            out[k] = v
    if "price" in out:
        price = Decimal(out["price"] if out["price"] is not None else 0)
        if price < 0:
            raise ValidationError("Preço não pode ser negativo.")
        out["price"] = price.quantize(Decimal("0.01"))
    if "stock" in out:
        out["stock"] = Decimal(out["stock"] if out["stock"] is not None else 0)
    if "category" in out:
        out["category"] = _clean_str(out["category"])
    if "unit" in out:
        out["unit"] = _clean_str(out["unit"]) or "un"
    return out


def list_products(db: Session, filter_text: Optional[str] = None) -> Sequence[ProductORM]:
    stmt = select(ProductORM).order_by(ProductORM.name.asc(), ProductORM.id.asc())
    if filter_text and filter_text.strip():
        pattern = like_pattern(filter_text)
        stmt = stmt.where(
            ProductORM.name.ilike(pattern, escape=LIKE_ESCAPE)
            | ProductORM.code.ilike(pattern, escape=LIKE_ESCAPE)
        )
    return db.execute(stmt).scalars().all()


def get_product(db: Session, product_id: int) -> ProductORM:
    product = db.get(ProductORM, product_id)
    if not product:
        raise NotFoundError("Produto não encontrado.")
    return product


def create_product(db: Session, data: Mapping[str, Any]) -> ProductORM:
    values = _clean_product(data)
    for k in ("code", "name"):
        if k not in values:
            raise ValidationError(f"Campo obrigatório: {k}.")
    product = ProductORM(**values)
    db.add(product)
    db.flush()
    return product


def update_product(db: Session, product_id: int, data: Mapping[str, Any]) -> ProductORM:
    product = get_product(db, product_id)
    for k, v in _clean_product(data).items():
        setattr(product, k, v)
    db.flush()
    return product


def delete_product(db: Session, product_id: int) -> None:
    product = get_product(db, product_id)
    # itens de venda ficam com product_id nulo; snapshot de código/nome/preço continua
    db.delete(product)
    db.flush()
