from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, date, timedelta, timezone
from decimal import Decimal, ROUND_HALF_EVEN
from typing import List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from app.infra.models import (
    SaleORM,
    SaleItemORM,
    ProductORM,
    ClientORM,
    PaymentORM,
    SaleType,
    PaymentStatus,
    PaymentMethod,
)
from app.services.cart import Cart
from app.services.errors import NotFoundError, ValidationError
from app.services.receipts import Receipt, build_receipt
from app.services.session import SessionContext

logger = logging.getLogger(__name__)

PUBLIC_ID_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"

TERM_DAYS = 30
INSTALLMENT_INTERVAL_DAYS = 30
MAX_INSTALLMENTS = 60


# helpers
def _today_utc() -> date:
    return datetime.now(timezone.utc).date()


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def generate_public_id(prefix: str, length: int = 8) -> str:
    token = "".join(secrets.choice(PUBLIC_ID_ALPHABET) for _ in range(length))
    return f"{prefix}-{token}"


def _unique_public_id(db: Session, model, prefix: str) -> str:
    for _ in range(30):
        pid = generate_public_id(prefix)
        exists = db.scalar(select(model.id).where(model.public_id == pid))
        if not exists:
            return pid
    raise RuntimeError(f"Falha ao gerar public_id único para prefix={prefix}.")


def quantize_money(v: Decimal) -> Decimal:
    return Decimal(v).quantize(Decimal("0.01"), rounding=ROUND_HALF_EVEN)


@dataclass
class ScheduledPayment:
    installment_number: int
    total_installments: int
    amount: Decimal
    due_date: date
    status: PaymentStatus = PaymentStatus.PENDING
    method: Optional[PaymentMethod] = None
    paid_at: Optional[datetime] = None


def split_installments(total: Decimal, count: int) -> List[Decimal]:
    """
    Divide `total` em `count` parcelas iguais (centavos, arredondamento
    bancário). A última parcela absorve a diferença, então a soma bate
    exatamente com o total. Ex.: 100,00 / 3 -> 33,33 + 33,33 + 33,34.
    """
    if count < 1:
        raise ValidationError("Quantidade de parcelas inválida.")
    total = quantize_money(total)
    per = quantize_money(total / Decimal(count))
    diff = total - per * count
    amounts = [per] * count
    amounts[-1] = quantize_money(per + diff)
    return amounts


def build_payment_schedule(
    *,
    total: Decimal,
    sale_type: SaleType,
    today: date,
    now: Optional[datetime] = None,
    method: Optional[PaymentMethod] = None,
    installments_count: Optional[int] = None,
) -> List[ScheduledPayment]:
    total = quantize_money(total)

    if sale_type == SaleType.IMMEDIATE:
        if method is None:
            raise ValidationError("Informe a forma de pagamento para venda à vista.")
        return [
            ScheduledPayment(
                installment_number=1,
                total_installments=1,
                amount=total,
                due_date=today,
                status=PaymentStatus.PAID,
                method=method,
                paid_at=now or _now_utc(),
            )
        ]

    if sale_type == SaleType.TERM:
        return [
            ScheduledPayment(
                installment_number=1,
                total_installments=1,
                amount=total,
                due_date=today + timedelta(days=TERM_DAYS),
            )
        ]

    if sale_type == SaleType.INSTALLMENT:
        n = installments_count or 0
        if n < 2 or n > MAX_INSTALLMENTS:
            raise ValidationError(f"Parcelado exige de 2 a {MAX_INSTALLMENTS} parcelas.")
        return [
            ScheduledPayment(
                installment_number=i,
                total_installments=n,
                amount=amount,
                due_date=today + timedelta(days=INSTALLMENT_INTERVAL_DAYS * i),
            )
            for i, amount in enumerate(split_installments(total, n), start=1)
        ]

    raise ValidationError(f"Tipo de venda inválido: {sale_type}")


def validate_checkout(
    *,
    client_id: Optional[int],
    cart: Cart,
    sale_type: SaleType,
    method: Optional[PaymentMethod],
    installments_count: Optional[int],
) -> None:
    if client_id is None:
        raise ValidationError("Selecione um cliente primeiro.")
    if cart.is_empty():
        raise ValidationError("Carrinho vazio.")
    if sale_type == SaleType.IMMEDIATE and method is None:
        raise ValidationError("Informe a forma de pagamento para venda à vista.")
    if sale_type == SaleType.INSTALLMENT:
        n = installments_count or 0
        if n < 2 or n > MAX_INSTALLMENTS:
            raise ValidationError(f"Parcelado exige de 2 a {MAX_INSTALLMENTS} parcelas.")


def decrement_stock(db: Session, product_id: int, quantity: int) -> None:
    # UPDATE ... SET stock = stock - :q (atômico no banco, sem ler-e-gravar)
    result = db.execute(
        update(ProductORM)
        .where(ProductORM.id == product_id)
        .values(stock=ProductORM.stock - quantity)
    )
    if result.rowcount != 1:
        raise NotFoundError(f"Produto {product_id} não encontrado.")


@dataclass
class FinalizedSale:
    sale: SaleORM
    payments: List[PaymentORM]
    receipt: Receipt


def finalize_sale(
    db: Session,
    ctx: SessionContext,
    cart: Cart,
    *,
    sale_type: SaleType,
    client_id: Optional[int] = None,
    method: Optional[PaymentMethod] = None,
    installments_count: Optional[int] = None,
    received_amount: Optional[Decimal] = None,
    today: Optional[date] = None,
) -> FinalizedSale:
    """
    Grava cabeçalho, itens, baixa de estoque e pagamentos na MESMA transação.
    Não faz commit: quem chama (run_with_retry / rota) decide.
    O carrinho não é alterado aqui; limpe depois do commit.
    """
    client_id = client_id if client_id is not None else cart.client_id
    validate_checkout(
        client_id=client_id,
        cart=cart,
        sale_type=sale_type,
        method=method,
        installments_count=installments_count,
    )

    client = db.get(ClientORM, client_id)
    if not client:
        raise ValidationError("client_id inválido.")

    total = quantize_money(cart.total())

    change = None
    if sale_type == SaleType.IMMEDIATE and method == PaymentMethod.MONEY:
        received = quantize_money(received_amount) if received_amount is not None else total
        if received < total:
            raise ValidationError("Valor recebido menor que o total.")
        change = received - total
        received_amount = received
    else:
        received_amount = None

    today = today or _today_utc()
    now = _now_utc()

    # 1. cabeçalho
    sale = SaleORM(
        public_id=_unique_public_id(db, SaleORM, "VEN"),
        client_id=client.id,
        user_id=ctx.user_id,
        total_amount=total,
        sale_type=sale_type,
    )
    db.add(sale)
    db.flush()

    # 2. itens (preço congelado)
    for line in cart.lines:
        db.add(SaleItemORM(
            sale_id=sale.id,
            product_id=line.product_id,
            quantity=line.quantity,
            price=line.unit_price,
            product_code=line.code,
            product_name=line.name,
        ))

    # 3. estoque
    for line in cart.lines:
        decrement_stock(db, line.product_id, line.quantity)

    # 4/5. pagamentos
    schedule = build_payment_schedule(
        total=total,
        sale_type=sale_type,
        today=today,
        now=now,
        method=method,
        installments_count=installments_count,
    )
    payments = [
        PaymentORM(
            sale_id=sale.id,
            amount=p.amount,
            due_date=p.due_date,
            status=p.status,
            method=p.method,
            paid_at=p.paid_at,
            installment_number=p.installment_number,
            total_installments=p.total_installments,
        )
        for p in schedule
    ]
    db.add_all(payments)
    db.flush()

    receipt = build_receipt(
        sale_public_id=sale.public_id,
        client_name=client.name,
        sale_date=today,
        sale_type=sale_type,
        lines=cart.lines,
        total=total,
        method=method,
        received_amount=received_amount,
        change=change,
    )

    logger.info(
        "venda %s: cliente=%s tipo=%s total=%s itens=%s parcelas=%s",
        sale.public_id, client.id, sale_type.value, total, len(cart.lines), len(payments),
    )
    return FinalizedSale(sale=sale, payments=payments, receipt=receipt)


def list_sales(
    db: Session,
    *,
    client_id: Optional[int] = None,
    sale_type: Optional[SaleType] = None,
) -> Sequence[SaleORM]:
    stmt = (
        select(SaleORM)
        .options(selectinload(SaleORM.client))
        .order_by(SaleORM.created_at.desc(), SaleORM.id.desc())
    )
    if client_id is not None:
        stmt = stmt.where(SaleORM.client_id == client_id)
    if sale_type is not None:
        stmt = stmt.where(SaleORM.sale_type == sale_type)
    return db.execute(stmt).scalars().all()


def get_sale(db: Session, sale_id: int) -> SaleORM:
    stmt = (
        select(SaleORM)
        .options(
            selectinload(SaleORM.client),
            selectinload(SaleORM.items),
            selectinload(SaleORM.payments),
        )
        .where(SaleORM.id == sale_id)
    )
    sale = db.execute(stmt).scalars().first()
    if not sale:
        raise NotFoundError("Venda não encontrada.")
    return sale
