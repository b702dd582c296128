from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.infra.models import (
    PaymentMethod,
    PaymentORM,
    PaymentStatus,
    ProductORM,
    SaleItemORM,
    SaleORM,
    SaleType,
)
from app.services.errors import NotFoundError, ValidationError
from app.services.receipts import render_receipt_text
from app.services.retry import run_with_retry
from app.services.sales_service import (
    build_payment_schedule,
    finalize_sale,
    split_installments,
)
from tests.conftest import TODAY


def count(db, model) -> int:
    return db.scalar(select(func.count()).select_from(model))


class TestSplitInstallments:
    def test_hundred_in_three_last_absorbs_remainder(self):
        amounts = split_installments(Decimal("100.00"), 3)
        assert amounts == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
        assert sum(amounts) == Decimal("100.00")

    def test_even_split(self):
        assert split_installments(Decimal("25.00"), 2) == [Decimal("12.50"), Decimal("12.50")]

    def test_bankers_rounding_on_half_cent(self):
        # 0.05 / 2 = 0.025 -> 0.02 (half-even), última fica com 0.03
        assert split_installments(Decimal("0.05"), 2) == [Decimal("0.02"), Decimal("0.03")]

    @pytest.mark.parametrize("total,n", [("10.00", 3), ("99.99", 7), ("1234.56", 12), ("0.01", 2)])
    def test_sum_always_matches_total(self, total, n):
        amounts = split_installments(Decimal(total), n)
        assert len(amounts) == n
        assert sum(amounts) == Decimal(total)


class TestPaymentSchedule:
    def test_installment_due_dates_every_thirty_days(self):
        schedule = build_payment_schedule(
            total=Decimal("90.00"), sale_type=SaleType.INSTALLMENT, today=TODAY, installments_count=3
        )
        assert [p.due_date for p in schedule] == [TODAY + timedelta(days=30 * i) for i in (1, 2, 3)]
        assert [p.installment_number for p in schedule] == [1, 2, 3]
        assert {p.total_installments for p in schedule} == {3}
        assert {p.status for p in schedule} == {PaymentStatus.PENDING}

    @pytest.mark.parametrize("n", [None, 0, 1, 61])
    def test_installment_count_out_of_range_is_rejected(self, n):
        with pytest.raises(ValidationError):
            build_payment_schedule(
                total=Decimal("90.00"), sale_type=SaleType.INSTALLMENT, today=TODAY, installments_count=n
            )

    def test_immediate_requires_method(self):
        with pytest.raises(ValidationError):
            build_payment_schedule(total=Decimal("10.00"), sale_type=SaleType.IMMEDIATE, today=TODAY)


class TestFinalizeSale:
    def test_scenario_ana_installment_two(self, db, ctx, ana, caneta, caderno, cart):
        cart.add_line(caneta)
        cart.set_quantity(caneta.id, 4)
        cart.add_line(caderno)
        cart.select_client(ana.id)

        result = run_with_retry(
            db,
            lambda s: finalize_sale(s, ctx, cart, sale_type=SaleType.INSTALLMENT, installments_count=2, today=TODAY),
        )

        sale = result.sale
        assert sale.total_amount == Decimal("25.00")
        assert sale.client_id == ana.id
        assert sale.user_id == ctx.user_id
        assert sale.public_id.startswith("VEN-")

        payments = result.payments
        assert [p.amount for p in payments] == [Decimal("12.50"), Decimal("12.50")]
        assert [p.due_date for p in payments] == [TODAY + timedelta(days=30), TODAY + timedelta(days=60)]
        assert all(p.status == PaymentStatus.PENDING for p in payments)
        assert all(p.paid_at is None and p.method is None for p in payments)

        db.refresh(caneta)
        db.refresh(caderno)
        assert caneta.stock == Decimal("96")
        assert caderno.stock == Decimal("39")

    def test_line_items_freeze_price_and_match_total(self, db, ctx, ana, caneta, caderno, cart):
        cart.add_line(caneta)
        cart.set_quantity(caneta.id, 3)
        cart.add_line(caderno)

        result = run_with_retry(
            db, lambda s: finalize_sale(s, ctx, cart, client_id=ana.id, sale_type=SaleType.TERM, today=TODAY)
        )

        items = db.execute(select(SaleItemORM).where(SaleItemORM.sale_id == result.sale.id)).scalars().all()
        assert {(i.product_name, i.quantity, i.price) for i in items} == {
            ("Caneta", 3, Decimal("2.50")),
            ("Caderno", 1, Decimal("15.00")),
        }
        assert sum(i.price * i.quantity for i in items) == result.sale.total_amount

        # preço do produto muda depois; o item continua com o snapshot
        caneta.price = Decimal("3.00")
        db.commit()
        item = next(i for i in items if i.product_name == "Caneta")
        db.refresh(item)
        assert item.price == Decimal("2.50")

    def test_installment_hundred_in_three(self, db, ctx, ana, cart):
        product = ProductORM(code="X", name="Item 100", price=Decimal("100.00"), unit="un", stock=Decimal("5"))
        db.add(product)
        db.commit()
        cart.add_line(product)

        result = run_with_retry(
            db,
            lambda s: finalize_sale(
                s, ctx, cart, client_id=ana.id, sale_type=SaleType.INSTALLMENT, installments_count=3, today=TODAY
            ),
        )

        assert len(result.payments) == 3
        assert sum(p.amount for p in result.payments) == Decimal("100.00")
        assert result.payments[-1].amount == Decimal("33.34")

    def test_immediate_sale_is_paid_with_method(self, db, ctx, ana, caderno, cart):
        cart.add_line(caderno)

        result = run_with_retry(
            db,
            lambda s: finalize_sale(
                s, ctx, cart, client_id=ana.id, sale_type=SaleType.IMMEDIATE, method=PaymentMethod.PIX, today=TODAY
            ),
        )

        assert len(result.payments) == 1
        payment = result.payments[0]
        assert payment.status == PaymentStatus.PAID
        assert payment.paid_at is not None
        assert payment.method == PaymentMethod.PIX
        assert payment.due_date == TODAY
        assert payment.amount == Decimal("15.00")
        assert (payment.installment_number, payment.total_installments) == (1, 1)

    def test_term_sale_single_pending_payment_in_thirty_days(self, db, ctx, ana, caderno, cart):
        cart.add_line(caderno)

        result = run_with_retry(
            db, lambda s: finalize_sale(s, ctx, cart, client_id=ana.id, sale_type=SaleType.TERM, today=TODAY)
        )

        assert len(result.payments) == 1
        payment = result.payments[0]
        assert payment.status == PaymentStatus.PENDING
        assert payment.due_date == TODAY + timedelta(days=30)
        assert payment.amount == Decimal("15.00")

    def test_stock_decreases_by_quantity_and_may_go_negative(self, db, ctx, ana, cart):
        product = ProductORM(code="P", name="Pouco estoque", price=Decimal("1.00"), unit="un", stock=Decimal("2"))
        db.add(product)
        db.commit()
        cart.add_line(product)
        cart.set_quantity(product.id, 3)

        run_with_retry(db, lambda s: finalize_sale(s, ctx, cart, client_id=ana.id, sale_type=SaleType.TERM, today=TODAY))

        db.refresh(product)
        assert product.stock == Decimal("-1")

    def test_cash_receipt_has_received_and_change(self, db, ctx, ana, caneta, caderno, cart):
        cart.add_line(caneta)
        cart.set_quantity(caneta.id, 4)
        cart.add_line(caderno)

        result = run_with_retry(
            db,
            lambda s: finalize_sale(
                s, ctx, cart,
                client_id=ana.id,
                sale_type=SaleType.IMMEDIATE,
                method=PaymentMethod.MONEY,
                received_amount=Decimal("30.00"),
                today=TODAY,
            ),
        )

        receipt = result.receipt
        assert receipt.client_name == "Ana"
        assert receipt.total == Decimal("25.00")
        assert receipt.received_amount == Decimal("30.00")
        assert receipt.change == Decimal("5.00")
        assert [(line.quantity, line.name, line.subtotal) for line in receipt.lines] == [
            (4, "Caneta", Decimal("10.00")),
            (1, "Caderno", Decimal("15.00")),
        ]

        text = render_receipt_text(receipt)
        assert "Cliente: Ana" in text
        assert "TOTAL: R$25,00" in text
        assert "Troco: R$5,00" in text

    def test_non_cash_receipt_has_no_change(self, db, ctx, ana, caderno, cart):
        cart.add_line(caderno)
        result = run_with_retry(
            db,
            lambda s: finalize_sale(
                s, ctx, cart, client_id=ana.id, sale_type=SaleType.IMMEDIATE,
                method=PaymentMethod.CREDIT, received_amount=Decimal("50.00"), today=TODAY,
            ),
        )
        assert result.receipt.received_amount is None
        assert result.receipt.change is None
        assert "Troco" not in render_receipt_text(result.receipt)

    def test_cash_received_below_total_is_rejected(self, db, ctx, ana, caderno, cart):
        cart.add_line(caderno)
        with pytest.raises(ValidationError):
            finalize_sale(
                db, ctx, cart, client_id=ana.id, sale_type=SaleType.IMMEDIATE,
                method=PaymentMethod.MONEY, received_amount=Decimal("10.00"), today=TODAY,
            )
        assert count(db, SaleORM) == 0


class TestFinalizeSaleValidation:
    def test_missing_client_blocks_before_any_write(self, db, ctx, caderno, cart):
        cart.add_line(caderno)
        with pytest.raises(ValidationError, match="cliente"):
            finalize_sale(db, ctx, cart, sale_type=SaleType.TERM, today=TODAY)
        assert count(db, SaleORM) == 0

    def test_empty_cart_blocks_before_any_write(self, db, ctx, ana, cart):
        with pytest.raises(ValidationError, match="Carrinho vazio"):
            finalize_sale(db, ctx, cart, client_id=ana.id, sale_type=SaleType.TERM, today=TODAY)
        assert count(db, SaleORM) == 0

    def test_unknown_client_is_rejected(self, db, ctx, caderno, cart):
        cart.add_line(caderno)
        with pytest.raises(ValidationError):
            finalize_sale(db, ctx, cart, client_id=9999, sale_type=SaleType.TERM, today=TODAY)

    def test_installment_needs_at_least_two(self, db, ctx, ana, caderno, cart):
        cart.add_line(caderno)
        with pytest.raises(ValidationError):
            finalize_sale(
                db, ctx, cart, client_id=ana.id, sale_type=SaleType.INSTALLMENT, installments_count=1, today=TODAY
            )


class TestFinalizeSaleAtomicity:
    def test_failure_after_header_rolls_back_everything(self, db, ctx, ana, caderno, cart):
        cart.add_line(caderno)
        # produto que não existe no banco: a baixa de estoque falha depois do cabeçalho
        ghost = ProductORM(id=9999, code="GHOST", name="Fantasma", price=Decimal("1.00"), unit="un", stock=Decimal("0"))
        cart.add_line(ghost)

        with pytest.raises(NotFoundError):
            run_with_retry(
                db, lambda s: finalize_sale(s, ctx, cart, client_id=ana.id, sale_type=SaleType.TERM, today=TODAY)
            )

        assert count(db, SaleORM) == 0
        assert count(db, SaleItemORM) == 0
        assert count(db, PaymentORM) == 0
        db.refresh(caderno)
        assert caderno.stock == Decimal("40")
        # carrinho continua intacto para tentar de novo
        assert len(cart.lines) == 2
