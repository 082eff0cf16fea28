"""
Auditoría de Acciones - Secure Sales
====================================
Registro inmutable de todas las operaciones que cambian estado.
"""
from datetime import datetime
from typing import Any, Dict
from sqlalchemy import Integer, String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from ..db import Base


class AuditLog(Base):
    """
    Log de auditoría. Solo INSERT.
    La eliminación de un registro queda reservada al rol Master y se
    registra en AuditDeletion.
    """
    __tablename__ = "audit_logs"
    __table_args__ = {"comment": "Auditoría de operaciones - solo insert"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    actor_role: Mapped[str] = mapped_column(String(50), index=True)
    event_type: Mapped[str] = mapped_column(String(60), index=True)  # "Nueva Venta", "Abono de Cliente", ...
    description: Mapped[str] = mapped_column(String(500))
    entity_type: Mapped[str | None] = mapped_column(String(50), nullable=True)  # Venta, Pedido, Cliente, Producto
    entity_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    metadata_: Mapped[Dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)


class AuditDeletion(Base):
    """
    Bitácora de registros de auditoría eliminados.
    No existe operación que modifique o elimine filas de esta tabla.
    """
    __tablename__ = "audit_deletions"
    __table_args__ = {"comment": "Eliminaciones de auditoría - no eliminable"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    deleted_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    deleted_by_role: Mapped[str] = mapped_column(String(50))
    audit_log_id: Mapped[int] = mapped_column(Integer, index=True)
    original_created_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    original_actor_role: Mapped[str | None] = mapped_column(String(50), nullable=True)
    original_event_type: Mapped[str | None] = mapped_column(String(60), nullable=True)
    original_description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    original_metadata: Mapped[Dict[str, Any] | None] = mapped_column(JSON, nullable=True)
