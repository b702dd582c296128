from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import DBSession, current_cart
from app.schemas.cart import CartClientIn, CartLineIn, CartOut, CartQuantityIn
from app.services import catalog_service
from app.services.cart import Cart
from app.services.errors import NotFoundError

router = APIRouter()


def _out(cart: Cart) -> CartOut:
    return CartOut.model_validate(
        {"client_id": cart.client_id, "lines": cart.lines, "total": cart.total()},
        from_attributes=True,
    )


@router.get("", response_model=CartOut)
def get_cart(cart: Cart = Depends(current_cart)):
    return _out(cart)


@router.delete("", response_model=CartOut)
def clear_cart(cart: Cart = Depends(current_cart)):
    cart.clear()
    return _out(cart)


@router.post("/lines", response_model=CartOut)
def add_line(payload: CartLineIn, db: Session = DBSession, cart: Cart = Depends(current_cart)):
    product = catalog_service.get_product(db, payload.product_id)
    cart.add_line(product)
    return _out(cart)


@router.put("/lines/{product_id}", response_model=CartOut)
def set_quantity(product_id: int, payload: CartQuantityIn, cart: Cart = Depends(current_cart)):
    # quantidade < 1 é ignorada; produto fora do carrinho é 404
    if not cart.set_quantity(product_id, payload.quantity) and payload.quantity >= 1:
        raise NotFoundError("Item não está no carrinho.")
    return _out(cart)


@router.delete("/lines/{product_id}", response_model=CartOut)
def remove_line(product_id: int, cart: Cart = Depends(current_cart)):
    cart.remove_line(product_id)
    return _out(cart)


@router.put("/client", response_model=CartOut)
def select_client(payload: CartClientIn, db: Session = DBSession, cart: Cart = Depends(current_cart)):
    if payload.client_id is not None:
        catalog_service.get_client(db, payload.client_id)
    cart.select_client(payload.client_id)
    return _out(cart)
