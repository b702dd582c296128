from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from decimal import Decimal


class ProductCreate(BaseModel):
    code: str = Field(min_length=1, max_length=60)
    name: str = Field(min_length=1, max_length=140)
    price: Decimal = Field(default=Decimal("0.00"), ge=0)
    category: Optional[str] = Field(default=None, max_length=80)
    unit: str = Field(default="un", max_length=10)
    stock: Decimal = Decimal("0")  # pode ser negativo


class ProductUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=60)
    name: Optional[str] = Field(default=None, min_length=1, max_length=140)
    price: Optional[Decimal] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, max_length=80)
    unit: Optional[str] = Field(default=None, max_length=10)
    stock: Optional[Decimal] = None


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    price: Decimal
    category: Optional[str]
    unit: str
    stock: Decimal
    created_at: datetime
