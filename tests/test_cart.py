from decimal import Decimal

import pytest

from app.infra.models import ProductORM
from app.services.cart import Cart, CartStore


def make_product(pid: int, price: str, name: str = "Produto") -> ProductORM:
    return ProductORM(id=pid, code=f"{pid:03d}", name=f"{name} {pid}", price=Decimal(price), unit="un", stock=Decimal("10"))


def expected_total(cart: Cart) -> Decimal:
    return sum((line.unit_price * line.quantity for line in cart.lines), Decimal("0"))


class TestCartLines:
    def test_add_new_product_appends_line_with_quantity_one(self):
        cart = Cart()
        cart.add_line(make_product(1, "2.50"))

        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 1
        assert cart.total() == Decimal("2.50")

    def test_add_same_product_increments_quantity(self):
        cart = Cart()
        p = make_product(1, "2.50")
        cart.add_line(p)
        cart.add_line(p)
        cart.add_line(p)

        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 3
        assert cart.total() == Decimal("7.50")

    def test_remove_line(self):
        cart = Cart()
        cart.add_line(make_product(1, "2.50"))
        cart.add_line(make_product(2, "15.00"))

        cart.remove_line(1)

        assert [line.product_id for line in cart.lines] == [2]
        assert cart.total() == Decimal("15.00")

    def test_remove_unknown_line_is_noop(self):
        cart = Cart()
        cart.add_line(make_product(1, "2.50"))
        cart.remove_line(99)
        assert len(cart.lines) == 1

    def test_set_quantity_replaces(self):
        cart = Cart()
        cart.add_line(make_product(1, "2.50"))

        assert cart.set_quantity(1, 4) is True
        assert cart.lines[0].quantity == 4
        assert cart.total() == Decimal("10.00")

    @pytest.mark.parametrize("qty", [0, -1, -10])
    def test_set_quantity_below_one_leaves_cart_unchanged(self, qty):
        cart = Cart()
        cart.add_line(make_product(1, "2.50"))
        cart.set_quantity(1, 3)

        assert cart.set_quantity(1, qty) is False
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 3
        assert cart.total() == Decimal("7.50")

    def test_unit_price_is_frozen_when_added(self):
        cart = Cart()
        p = make_product(1, "2.50")
        cart.add_line(p)
        p.price = Decimal("9.99")
        cart.add_line(p)

        assert cart.lines[0].unit_price == Decimal("2.50")
        assert cart.total() == Decimal("5.00")

    def test_total_matches_sum_after_mixed_operations(self):
        cart = Cart()
        a, b, c = make_product(1, "2.50"), make_product(2, "15.00"), make_product(3, "0.99")
        ops = [
            lambda: cart.add_line(a),
            lambda: cart.add_line(b),
            lambda: cart.add_line(a),
            lambda: cart.set_quantity(2, 5),
            lambda: cart.add_line(c),
            lambda: cart.set_quantity(3, 0),
            lambda: cart.remove_line(1),
            lambda: cart.set_quantity(3, 7),
            lambda: cart.add_line(a),
        ]
        for op in ops:
            op()
            assert cart.total() == expected_total(cart)

        assert cart.total() == Decimal("2.50") + Decimal("75.00") + Decimal("6.93")

    def test_clear_drops_lines_and_selected_client(self):
        cart = Cart()
        cart.add_line(make_product(1, "2.50"))
        cart.select_client(7)

        cart.clear()

        assert cart.is_empty()
        assert cart.client_id is None
        assert cart.total() == Decimal("0.00")


class TestCartStore:
    def test_one_cart_per_session(self):
        store = CartStore()
        a = store.get("sess-a")
        b = store.get("sess-b")

        assert a is not b
        assert store.get("sess-a") is a

    def test_drop_discards_cart(self):
        store = CartStore()
        cart = store.get("sess-a")
        cart.add_line(make_product(1, "2.50"))

        store.drop("sess-a")

        assert store.get("sess-a").is_empty()

    def test_expired_session_cart_is_evicted(self):
        now = [1000.0]
        store = CartStore(clock=lambda: now[0])
        old = store.get("sess-old", expires_at=1100.0)
        old.add_line(make_product(1, "2.50"))
        live = store.get("sess-live", expires_at=5000.0)
        assert len(store) == 2

        # o token da sessão antiga venceu; qualquer get() limpa o que ficou para trás
        now[0] = 1100.0
        assert store.get("sess-live", expires_at=5000.0) is live
        assert len(store) == 1

        fresh = store.get("sess-old")
        assert fresh is not old
        assert fresh.is_empty()

    def test_cart_without_expiry_is_kept(self):
        now = [0.0]
        store = CartStore(clock=lambda: now[0])
        cart = store.get("sess-a")

        now[0] = 10 ** 9
        assert store.get("sess-a") is cart
