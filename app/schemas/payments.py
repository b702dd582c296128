from __future__ import annotations
from pydantic import BaseModel, ConfigDict
from typing import Optional
from decimal import Decimal
from datetime import date, datetime

from app.infra.models import PaymentStatus, PaymentMethod

class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    sale_id: int
    amount: Decimal
    due_date: date
    status: PaymentStatus
    paid_at: Optional[datetime]
    method: Optional[PaymentMethod]
    installment_number: int
    total_installments: int

class PaymentLedgerOut(PaymentOut):
    client_name: Optional[str]
    client_label: str
    overdue: bool

class PaymentPay(BaseModel):
    method: PaymentMethod

class ReceivablesSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    total_received: Decimal
    total_pending: Decimal
    overdue_count: int
