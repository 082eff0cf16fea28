"""
Modelos de Pedidos y Ventas
===========================

Pedido: Pendiente -> Entregado | Cancelado
Venta:  Completada -> Cancelada -> Eliminada

Las líneas de venta guardan unit_cost como copia del costo de compra
vigente al momento de registrarlas. Nunca se recalcula.
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Integer, String, Numeric, ForeignKey, DateTime, Boolean, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base
from .enums import OrderStatus, SaleStatus


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    folio: Mapped[str] = mapped_column(String(20), unique=True)  # ORD-0001
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), index=True)
    warehouse_id: Mapped[int] = mapped_column(ForeignKey("warehouses.id"), index=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"))
    status: Mapped[str] = mapped_column(String(20), default=OrderStatus.PENDIENTE.value, index=True)
    sale_id: Mapped[int | None] = mapped_column(ForeignKey("sales.id"), nullable=True)  # Venta generada al entregar
    request_key: Mapped[str | None] = mapped_column(String(100), unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)

    client = relationship("Client", back_populates="orders")
    warehouse = relationship("Warehouse")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")
    sale = relationship("Sale", foreign_keys=[sale_id])


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_order_item_quantity_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    quantity: Mapped[int] = mapped_column(Integer)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2))

    order = relationship("Order", back_populates="items")
    product = relationship("Product")


class Sale(Base):
    __tablename__ = "sales"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), index=True)
    warehouse_id: Mapped[int] = mapped_column(ForeignKey("warehouses.id"), index=True)
    order_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)  # Pedido de origen (si aplica)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"))
    payment_method: Mapped[str] = mapped_column(String(20))  # contado | credito
    status: Mapped[str] = mapped_column(String(20), default=SaleStatus.COMPLETADA.value, index=True)
    stock_consumed: Mapped[bool] = mapped_column(Boolean, default=False)  # Si se descontó inventario al registrarla
    credit_slot_released: Mapped[bool] = mapped_column(Boolean, default=False)
    seller_role: Mapped[str | None] = mapped_column(String(50), nullable=True)
    request_key: Mapped[str | None] = mapped_column(String(100), unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)

    client = relationship("Client", back_populates="sales")
    warehouse = relationship("Warehouse")
    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan", order_by="SaleItem.id")

    @property
    def total_cost(self) -> Decimal:
        return sum((item.line_cost for item in self.items), Decimal("0.00"))


class SaleItem(Base):
    __tablename__ = "sale_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_sale_item_quantity_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sale_id: Mapped[int] = mapped_column(ForeignKey("sales.id", ondelete="CASCADE"), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    quantity: Mapped[int] = mapped_column(Integer)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"))  # Snapshot de purchase_price

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")

    @property
    def line_cost(self) -> Decimal:
        return Decimal(self.unit_cost) * self.quantity
