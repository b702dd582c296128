from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class CartLineIn(BaseModel):
    product_id: int


class CartQuantityIn(BaseModel):
    quantity: int


class CartClientIn(BaseModel):
    client_id: Optional[int] = None


class CartLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    code: str
    name: str
    unit: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal


class CartOut(BaseModel):
    client_id: Optional[int]
    lines: List[CartLineOut]
    total: Decimal
