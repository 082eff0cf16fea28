"""
Modelos para Abonos de Clientes
===============================

Cada abono reduce el saldo del cliente al momento de insertarse.
Solo INSERT: un abono registrado no se edita ni se elimina.
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Integer, String, Numeric, ForeignKey, DateTime, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base


class ClientPayment(Base):
    __tablename__ = "client_payments"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_payment_amount_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    payment_method: Mapped[str] = mapped_column(String(50), default="efectivo")  # efectivo, transferencia, etc.
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    request_key: Mapped[str | None] = mapped_column(String(100), unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)

    client = relationship("Client", back_populates="payments")
