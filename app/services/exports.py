from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Union

from app.infra.models import ClientORM, ProductORM, PaymentStatus
from app.services.receipts import format_brl
from app.services.receivables_service import PaymentView

Cell = Union[str, int, float]


@dataclass
class ExportTable:
    """
    Tabela (título + cabeçalho + linhas) entregue ao gerador de PDF/planilha.
    """
    title: str
    head: List[str]
    rows: List[List[Cell]] = field(default_factory=list)


def _s(v) -> str:
    return "" if v is None else str(v)


def clients_table(clients: Iterable[ClientORM]) -> ExportTable:
    return ExportTable(
        title="Relatório de Clientes",
        head=["Nome", "Telefone", "Email", "Endereço"],
        rows=[[c.name, _s(c.phone), _s(c.email), _s(c.address)] for c in clients],
    )


def products_table(products: Iterable[ProductORM]) -> ExportTable:
    return ExportTable(
        title="Relatório de Estoque e Produtos",
        head=["Código", "Nome", "Categoria", "Preço", "Estoque"],
        rows=[
            [p.code, p.name, _s(p.category), format_brl(p.price), f"{p.stock.normalize():f} {p.unit}"]
            for p in products
        ],
    )


def payments_table(views: Sequence[PaymentView]) -> ExportTable:
    rows: List[List[Cell]] = []
    for v in views:
        p = v.payment
        status = "PAGO" if p.status == PaymentStatus.PAID else ("ATRASADO" if v.overdue else "A PAGAR")
        rows.append([
            p.due_date.strftime("%d/%m/%Y"),
            v.client_label,
            f"{p.installment_number}/{p.total_installments}",
            format_brl(p.amount),
            status,
            p.method.value if p.method else "-",
        ])
    return ExportTable(
        title="Fluxo de Caixa & Contas",
        head=["Vencimento", "Cliente", "Parcela", "Valor", "Status", "Método"],
        rows=rows,
    )
