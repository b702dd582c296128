from __future__ import annotations
from fastapi import APIRouter, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.api.deps import CurrentSession, DBSession
from app.infra.models import PaymentStatus
from app.schemas.exports import ExportTableOut
from app.schemas.payments import PaymentLedgerOut, PaymentOut, PaymentPay, ReceivablesSummaryOut
from app.services import receivables_service
from app.services.exports import payments_table
from app.services.retry import run_with_retry

router = APIRouter(dependencies=[CurrentSession])


def _ledger_out(view: receivables_service.PaymentView) -> PaymentLedgerOut:
    base = PaymentOut.model_validate(view.payment).model_dump()
    return PaymentLedgerOut(
        **base,
        client_name=view.client_name,
        client_label=view.client_label,
        overdue=view.overdue,
    )


@router.get("", response_model=list[PaymentLedgerOut])
def list_payments(
    db: Session = DBSession,
    status: Optional[PaymentStatus] = Query(default=None),
    due: Optional[str] = Query(default=None, description="Prefixo do vencimento (ex.: 2026-11)"),
):
    views = receivables_service.list_payments(db, status=status, due_prefix=due)
    return [_ledger_out(v) for v in views]


@router.get("/summary", response_model=ReceivablesSummaryOut)
def payments_summary(db: Session = DBSession):
    return receivables_service.summary(db)


@router.get("/export", response_model=ExportTableOut)
def export_payments(
    db: Session = DBSession,
    status: Optional[PaymentStatus] = Query(default=None),
    due: Optional[str] = Query(default=None),
):
    return payments_table(receivables_service.list_payments(db, status=status, due_prefix=due))


@router.post("/{payment_id}/pay", response_model=PaymentOut)
def pay(payment_id: int, payload: PaymentPay, db: Session = DBSession):
    return run_with_retry(
        db, lambda s: receivables_service.mark_paid(s, payment_id, method=payload.method)
    )
