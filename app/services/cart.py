from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from app.infra.models import ProductORM


def _money(v) -> Decimal:
    return Decimal(v).quantize(Decimal("0.01"))


@dataclass
class CartLine:
    product_id: int
    code: str
    name: str
    unit: str
    unit_price: Decimal
    quantity: int = 1

    @property
    def subtotal(self) -> Decimal:
        return _money(self.unit_price * self.quantity)


class Cart:
    """
    Carrinho em memória de uma sessão de venda.
    Não persiste: some no restart, no logout e depois de finalizar a venda.
    """

    def __init__(self) -> None:
        self._lines: List[CartLine] = []
        self._total = Decimal("0.00")
        self.client_id: Optional[int] = None

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def _find(self, product_id: int) -> Optional[CartLine]:
        for line in self._lines:
            if line.product_id == product_id:
                return line
        return None

    def _recompute(self) -> None:
        self._total = _money(sum((line.unit_price * line.quantity for line in self._lines), Decimal("0")))

    def add_line(self, product: ProductORM) -> CartLine:
        line = self._find(product.id)
        if line:
            line.quantity += 1
        else:
            line = CartLine(
                product_id=product.id,
                code=product.code,
                name=product.name,
                unit=product.unit,
                unit_price=_money(product.price),
            )
            self._lines.append(line)
        self._recompute()
        return line

    def remove_line(self, product_id: int) -> None:
        self._lines = [line for line in self._lines if line.product_id != product_id]
        self._recompute()

    def set_quantity(self, product_id: int, qty: int) -> bool:
        # quantidade < 1 é ignorada (não remove a linha)
        if qty < 1:
            return False
        line = self._find(product_id)
        if not line:
            return False
        line.quantity = qty
        self._recompute()
        return True

    def total(self) -> Decimal:
        return self._total

    def select_client(self, client_id: Optional[int]) -> None:
        self.client_id = client_id

    def clear(self) -> None:
        self._lines = []
        self.client_id = None
        self._recompute()


class CartStore:
    """
    Um carrinho por sessão (jti do token).
    Guarda o exp do token junto; carrinhos de sessões expiradas são descartados no próximo get().
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._carts: Dict[str, Cart] = {}
        self._expires: Dict[str, float] = {}
        self._clock = clock
        self._lock = threading.Lock()

    def _purge_expired(self, now: float) -> None:
        for session_id in [sid for sid, exp in self._expires.items() if exp <= now]:
            self._carts.pop(session_id, None)
            del self._expires[session_id]

    def get(self, session_id: str, expires_at: Optional[float] = None) -> Cart:
        with self._lock:
            self._purge_expired(self._clock())
            cart = self._carts.get(session_id)
            if cart is None:
                cart = Cart()
                self._carts[session_id] = cart
            if expires_at is not None:
                self._expires[session_id] = expires_at
            return cart

    def drop(self, session_id: str) -> None:
        with self._lock:
            self._carts.pop(session_id, None)
            self._expires.pop(session_id, None)

    def clear(self) -> None:
        with self._lock:
            self._carts.clear()
            self._expires.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._carts)


cart_store = CartStore()
