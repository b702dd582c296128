from __future__ import annotations

import enum
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List

from sqlalchemy import (
    String, Integer, DateTime, Date, Numeric, ForeignKey,
    Enum as SAEnum, UniqueConstraint, Index, func
)

from sqlalchemy.orm import (
    DeclarativeBase, Mapped, mapped_column, relationship
)


# base
class Base(DeclarativeBase):
    pass

# enums = status
class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    USER = "USER"

class SaleType(str, enum.Enum):
    IMMEDIATE = "IMMEDIATE"      # à vista
    INSTALLMENT = "INSTALLMENT"  # parcelado
    TERM = "TERM"                # a prazo (30 dias)

class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"

class PaymentMethod(str, enum.Enum):
    MONEY = "MONEY"
    PIX = "PIX"
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"

# models
class UserORM(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(160), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, name="user_role"), nullable=False, default=UserRole.USER
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    sales: Mapped[List["SaleORM"]] = relationship(back_populates="user")

class RevokedTokenORM(Base):
    __tablename__ = "revoked_tokens"

    # jti do JWT invalidado no logout
    jti: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    revoked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    # exp do token; depois disso a linha pode ser apagada
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

class ClientORM(Base):
    __tablename__ = "clients"
    __table_args__ = (
        Index("ix_clients_name", "name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(140), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # sem cascade: apagar o cliente deixa a venda com client_id nulo
    sales: Mapped[List["SaleORM"]] = relationship(back_populates="client")

class ProductORM(Base):
    __tablename__ = "products"
    __table_args__ = (
        Index("ix_products_name", "name"),
        Index("ix_products_code", "code"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # código definido pelo usuário, não é único
    code: Mapped[str] = mapped_column(String(60), nullable=False)
    name: Mapped[str] = mapped_column(String(140), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    category: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    unit: Mapped[str] = mapped_column(String(10), nullable=False, default="un")

    # pode ficar negativo (sem piso)
    stock: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    sale_items: Mapped[List["SaleItemORM"]] = relationship(back_populates="product")

class SaleORM(Base):
    __tablename__ = "sales"
    __table_args__ = (
        UniqueConstraint("public_id", name="uq_sales_public_id"),
        Index("ix_sales_sale_type", "sale_type"),
        Index("ix_sales_client_id", "client_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    public_id: Mapped[str] = mapped_column(String(32), nullable=False)

    client_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id", ondelete="SET NULL"), nullable=True
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    sale_type: Mapped[SaleType] = mapped_column(
        SAEnum(SaleType, name="sale_type"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # relações
    client: Mapped[Optional["ClientORM"]] = relationship(back_populates="sales")
    user: Mapped["UserORM"] = relationship(back_populates="sales")

    items: Mapped[List["SaleItemORM"]] = relationship(
        back_populates="sale", cascade="all, delete-orphan", order_by="SaleItemORM.id"
    )
    payments: Mapped[List["PaymentORM"]] = relationship(
        back_populates="sale", cascade="all, delete-orphan", order_by="PaymentORM.installment_number"
    )

class SaleItemORM(Base):
    __tablename__ = "sale_items"
    __table_args__ = (
        Index("ix_sale_items_sale_id", "sale_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    sale_id: Mapped[int] = mapped_column(ForeignKey("sales.id"), nullable=False)
    product_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("products.id", ondelete="SET NULL"), nullable=True
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    # ============================================================
    # SNAPSHOT - preço e identificação do produto no momento da venda
    # ============================================================
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    product_code: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    product_name: Mapped[Optional[str]] = mapped_column(String(140), nullable=True)

    sale: Mapped["SaleORM"] = relationship(back_populates="items")
    product: Mapped[Optional["ProductORM"]] = relationship(back_populates="sale_items")

class PaymentORM(Base):
    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("sale_id", "installment_number", name="uq_payments_sale_number"),
        Index("ix_payments_due", "due_date", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sale_id: Mapped[int] = mapped_column(ForeignKey("sales.id"), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(PaymentStatus, name="payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
    )

    # preenchidos só no recebimento
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    method: Mapped[Optional[PaymentMethod]] = mapped_column(
        SAEnum(PaymentMethod, name="payment_method"), nullable=True
    )

    installment_number: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..N
    total_installments: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    sale: Mapped["SaleORM"] = relationship(back_populates="payments")
