from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import CurrentSession, DBSession, current_cart
from app.infra.models import SaleType
from app.schemas.payments import PaymentOut
from app.schemas.sales import CheckoutIn, CheckoutOut, ReceiptOut, SaleDetailOut, SaleOut
from app.services.cart import Cart
from app.services.receipts import render_receipt_text
from app.services.retry import run_with_retry
from app.services.sales_service import finalize_sale, get_sale, list_sales
from app.services.session import SessionContext

router = APIRouter(dependencies=[CurrentSession])


@router.post("", response_model=CheckoutOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    db: Session = DBSession,
    ctx: SessionContext = CurrentSession,
    cart: Cart = Depends(current_cart),
):
    """
    Finaliza a venda com o carrinho da sessão.
    user_id vem da sessão, não do front.
    """
    result = run_with_retry(
        db,
        lambda s: finalize_sale(
            s,
            ctx,
            cart,
            sale_type=payload.sale_type,
            client_id=payload.client_id,
            method=payload.payment_method,
            installments_count=payload.installments,
            received_amount=payload.received_amount,
        ),
    )

    # só limpa depois do commit
    cart.clear()

    receipt = ReceiptOut.model_validate(
        {**result.receipt.__dict__, "filename": result.receipt.filename, "text": render_receipt_text(result.receipt)},
        from_attributes=True,
    )
    return CheckoutOut(
        sale=SaleOut.model_validate(result.sale),
        payments=[PaymentOut.model_validate(p) for p in result.payments],
        receipt=receipt,
    )


@router.get("", response_model=list[SaleOut])
def list_sales_endpoint(
    db: Session = DBSession,
    client_id: Optional[int] = Query(None),
    sale_type: Optional[SaleType] = Query(None),
):
    return list_sales(db, client_id=client_id, sale_type=sale_type)


@router.get("/{sale_id}", response_model=SaleDetailOut)
def get_sale_endpoint(sale_id: int, db: Session = DBSession):
    return get_sale(db, sale_id)
