"""
Modelos base del punto de venta
===============================

- Client: cliente con saldo a crédito y contador de créditos abiertos
- Warehouse: almacén (conjunto fijo creado al iniciar la temporada)
- Product: producto con precio de venta y costo de compra
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Integer, String, Numeric, DateTime, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base


class Client(Base):
    """
    Cliente del punto de venta.
    balance y credits_count solo los modifica el gestor de crédito.
    """
    __tablename__ = "clients"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_client_balance_non_negative"),
        CheckConstraint("credits_count >= 0", name="ck_client_credits_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), index=True)
    zone: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)  # Texto libre (ej. "Teatro al A. L.")
    business_type: Mapped[str | None] = mapped_column(String(120), nullable=True)
    contact_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    balance: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"))
    credits_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    sales = relationship("Sale", back_populates="client")
    orders = relationship("Order", back_populates="client")
    payments = relationship("ClientPayment", back_populates="client")


class Warehouse(Base):
    __tablename__ = "warehouses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    stocks = relationship("Stock", back_populates="warehouse")


class Product(Base):
    """
    Producto de venta.
    price: precio unitario de venta
    purchase_price: costo de compra (se copia a cada línea de venta al registrarla)
    color: etiqueta visual, el núcleo no la usa
    """
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
        CheckConstraint("purchase_price >= 0", name="ck_product_cost_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), unique=True)
    category: Mapped[str | None] = mapped_column(String(120), nullable=True)
    presentation: Mapped[str | None] = mapped_column(String(120), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"))
    purchase_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"))
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    stocks = relationship("Stock", back_populates="product", cascade="all, delete-orphan")
