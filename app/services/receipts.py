from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

from app.infra.models import SaleType, PaymentMethod


SALE_TYPE_LABELS = {
    SaleType.IMMEDIATE: "À VISTA",
    SaleType.INSTALLMENT: "PARCELADO",
    SaleType.TERM: "A PRAZO (30D)",
}


def format_brl(value) -> str:
    if value is None:
        return "R$0,00"
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    value = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    s = f"{value:,.2f}"
    s = s.replace(",", "X").replace(".", ",").replace("X", ".")
    return f"R${s}"


@dataclass
class ReceiptLine:
    quantity: int
    name: str
    unit_price: Decimal
    subtotal: Decimal


@dataclass
class Receipt:
    sale_public_id: str
    client_name: str
    sale_date: date
    sale_type: SaleType
    total: Decimal
    lines: List[ReceiptLine] = field(default_factory=list)
    method: Optional[PaymentMethod] = None
    # só para dinheiro à vista
    received_amount: Optional[Decimal] = None
    change: Optional[Decimal] = None

    @property
    def filename(self) -> str:
        return f"cupom_{self.sale_public_id}.pdf"


def build_receipt(
    *,
    sale_public_id: str,
    client_name: str,
    sale_date: date,
    sale_type: SaleType,
    lines: Iterable,
    total: Decimal,
    method: Optional[PaymentMethod] = None,
    received_amount: Optional[Decimal] = None,
    change: Optional[Decimal] = None,
) -> Receipt:
    return Receipt(
        sale_public_id=sale_public_id,
        client_name=client_name,
        sale_date=sale_date,
        sale_type=sale_type,
        total=total,
        lines=[
            ReceiptLine(
                quantity=line.quantity,
                name=line.name,
                unit_price=line.unit_price,
                subtotal=line.subtotal,
            )
            for line in lines
        ],
        method=method,
        received_amount=received_amount,
        change=change,
    )


def render_receipt_text(receipt: Receipt) -> str:
    """Versão texto do comprovante (o PDF é gerado fora daqui)."""
    out = [
        "Comprovante de Venda",
        f"Venda: {receipt.sale_public_id}",
        f"Cliente: {receipt.client_name}",
        f"Data: {receipt.sale_date.strftime('%d/%m/%Y')}",
        f"Tipo: {SALE_TYPE_LABELS.get(receipt.sale_type, receipt.sale_type.value)}",
        "",
        "Produtos:",
    ]
    for line in receipt.lines:
        out.append(f"{line.quantity}x {line.name} - {format_brl(line.subtotal)}")
    out.append("-" * 40)
    out.append(f"TOTAL: {format_brl(receipt.total)}")
    if receipt.received_amount is not None:
        out.append(f"Recebido: {format_brl(receipt.received_amount)}")
        out.append(f"Troco: {format_brl(receipt.change)}")
    return "\n".join(out)
