from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.infra.models import SaleType, PaymentMethod
from app.schemas.payments import PaymentOut


class CheckoutIn(BaseModel):
    sale_type: SaleType
    # se não vier, usa o cliente selecionado no carrinho
    client_id: Optional[int] = None

    # à vista
    payment_method: Optional[PaymentMethod] = None
    received_amount: Optional[Decimal] = Field(default=None, ge=0)

    # parcelado
    installments: Optional[int] = Field(default=None, ge=2, le=60)


class SaleItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: Optional[int]
    product_code: Optional[str]
    product_name: Optional[str]
    quantity: int
    price: Decimal


class SaleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    public_id: str
    client_id: Optional[int]
    user_id: int
    total_amount: Decimal
    sale_type: SaleType
    created_at: datetime


class SaleDetailOut(SaleOut):
    items: List[SaleItemOut] = []
    payments: List[PaymentOut] = []


class ReceiptLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    quantity: int
    name: str
    unit_price: Decimal
    subtotal: Decimal


class ReceiptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sale_public_id: str
    client_name: str
    sale_date: date
    sale_type: SaleType
    total: Decimal
    lines: List[ReceiptLineOut]
    method: Optional[PaymentMethod] = None
    received_amount: Optional[Decimal] = None
    change: Optional[Decimal] = None
    filename: str
    text: str


class CheckoutOut(BaseModel):
    sale: SaleOut
    payments: List[PaymentOut]
    receipt: ReceiptOut
