from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, date, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from app.infra.models import PaymentORM, PaymentStatus, PaymentMethod, SaleORM
from app.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

REMOVED_CLIENT_LABEL = "Cliente removido"


def _today_utc() -> date:
    return datetime.now(timezone.utc).date()


def is_overdue(payment: PaymentORM, today: Optional[date] = None) -> bool:
    # estado derivado, não é gravado
    today = today or _today_utc()
    return payment.status == PaymentStatus.PENDING and payment.due_date < today


def client_name_of(payment: PaymentORM) -> Optional[str]:
    sale = payment.sale
    if sale is None or sale.client is None:
        return None
    return sale.client.name


@dataclass
class PaymentView:
    payment: PaymentORM
    client_name: Optional[str]
    overdue: bool

    @property
    def client_label(self) -> str:
        return self.client_name or REMOVED_CLIENT_LABEL


def list_payments(
    db: Session,
    *,
    status: Optional[PaymentStatus] = None,
    due_prefix: Optional[str] = None,
    today: Optional[date] = None,
) -> List[PaymentView]:
    """
    Todas as parcelas (com venda -> cliente), ordenadas por vencimento.
    Filtros aplicados aqui: status exato e prefixo da data de vencimento
    em ISO ("2026-11" pega o mês inteiro).
    """
    stmt = (
        select(PaymentORM)
        .options(selectinload(PaymentORM.sale).selectinload(SaleORM.client))
        .order_by(PaymentORM.due_date.asc(), PaymentORM.id.asc())
    )
    rows = db.execute(stmt).scalars().all()

    today = today or _today_utc()
    prefix = (due_prefix or "").strip()

    out: List[PaymentView] = []
    for p in rows:
        if status is not None and p.status != status:
            continue
        if prefix and not p.due_date.isoformat().startswith(prefix):
            continue
        out.append(PaymentView(payment=p, client_name=client_name_of(p), overdue=is_overdue(p, today)))
    return out


def mark_paid(
    db: Session,
    payment_id: int,
    *,
    method: PaymentMethod,
    now: Optional[datetime] = None,
) -> PaymentORM:
    # pending -> paid numa única UPDATE condicional; quem chegar depois não sobrescreve
    result = db.execute(
        update(PaymentORM)
        .where(PaymentORM.id == payment_id, PaymentORM.status == PaymentStatus.PENDING)
        .values(status=PaymentStatus.PAID, paid_at=now or datetime.now(timezone.utc), method=method)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        if db.get(PaymentORM, payment_id) is None:
            raise NotFoundError("Parcela não encontrada.")
        raise ValidationError("Parcela já recebida.")

    payment = db.get(PaymentORM, payment_id, populate_existing=True)

    logger.info(
        "parcela %s (venda %s, %s/%s) recebida via %s",
        payment.id, payment.sale_id, payment.installment_number,
        payment.total_installments, method.value,
    )
    return payment


@dataclass
class ReceivablesSummary:
    total_received: Decimal
    total_pending: Decimal
    overdue_count: int


def summary(db: Session, *, today: Optional[date] = None) -> ReceivablesSummary:
    today = today or _today_utc()
    rows = db.execute(select(PaymentORM)).scalars().all()

    received = Decimal("0.00")
    pending = Decimal("0.00")
    overdue = 0
    for p in rows:
        if p.status == PaymentStatus.PAID:
            received += p.amount
        else:
            pending += p.amount
            if is_overdue(p, today):
                overdue += 1

    return ReceivablesSummary(total_received=received, total_pending=pending, overdue_count=overdue)
