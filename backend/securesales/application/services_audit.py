"""
Auditoría de Acciones - Secure Sales
====================================
Registro inmutable de todas las operaciones que cambian estado.
- Se escribe en la MISMA sesión del comando: si la auditoría no se puede
  guardar, el comando completo se revierte (una entrada por mutación)
- Solo INSERT. La eliminación queda reservada al rol Master y se copia a
  audit_deletions antes de borrar
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from sqlalchemy import desc, or_
from sqlalchemy.exc import IntegrityError, DBAPIError

from ..domain.enums import ActorRole
from ..domain.models_audit import AuditLog, AuditDeletion
from ..infrastructure.unit_of_work import UnitOfWork
from .errors import ConstraintViolationError, PermissionDeniedError, StorageUnavailableError

logger = logging.getLogger(__name__)

# Tipos de evento (textos que ve el usuario en la bitácora)
EVENT_CLIENT_CREATED = "Alta de Cliente"
EVENT_CLIENT_UPDATED = "Edición de Cliente"
EVENT_PAYMENT = "Abono de Cliente"
EVENT_PRODUCT_CREATED = "Alta Producto"
EVENT_PRODUCT_UPDATED = "Edición Producto"
EVENT_PRODUCT_DELETED = "Eliminación Producto"
EVENT_WAREHOUSE_CREATED = "Alta de Almacén"
EVENT_RESUPPLY = "Resurtido / Entrada"
EVENT_ADJUSTMENT = "Ajuste / Merma"
EVENT_ORDER_CREATED = "Nuevo Pedido"
EVENT_ORDER_DELIVERED = "Pedido Entregado"
EVENT_ORDER_CANCELLED = "Cancelación de Pedido"
EVENT_SALE_CREATED = "Nueva Venta"
EVENT_SALE_CANCELLED = "Cancelación de Venta"
EVENT_SALE_DELETED = "Eliminación de Venta"

# Tipos de entidad
ENTITY_CLIENT = "Cliente"
ENTITY_PRODUCT = "Producto"
ENTITY_WAREHOUSE = "Almacén"
ENTITY_STOCK_MOVEMENT = "Movimiento"
ENTITY_ORDER = "Pedido"
ENTITY_SALE = "Venta"
ENTITY_PAYMENT = "Abono"

Actor = Union[ActorRole, str, None]


def role_of(actor: Actor) -> str:
    """Normaliza el actor a su rol textual; sin actor se registra como Sistema."""
    if actor is None:
        return ActorRole.SISTEMA.value
    if isinstance(actor, ActorRole):
        return actor.value
    text = str(actor).strip()
    for role in ActorRole:
        if role.value.lower() == text.lower():
            return role.value
    return text or ActorRole.SISTEMA.value


def is_master(actor: Actor) -> bool:
    return role_of(actor) == ActorRole.MASTER.value


def record(
    uow: UnitOfWork,
    actor: Actor,
    event_type: str,
    description: str,
    metadata: Optional[Dict[str, Any]] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
) -> AuditLog:
    """
    Registra un evento de auditoría dentro de la transacción del comando.
    Falla con StorageUnavailableError si no se puede escribir; una
    restricción violada en el mismo flush sale como ConstraintViolationError.
    """
    log = AuditLog(
        actor_role=role_of(actor),
        event_type=event_type,
        description=description[:500],
        metadata_=metadata,
        entity_type=entity_type,
        entity_id=entity_id,
    )
    try:
        uow.audit.add(log)
        uow.db.flush()
    except IntegrityError as e:
        # Restricción violada por otra fila pendiente del mismo flush
        raise ConstraintViolationError(str(e.orig)) from e
    except DBAPIError as e:
        logger.error("No se pudo registrar auditoría '%s': %s", event_type, e)
        raise StorageUnavailableError(f"No se pudo registrar la auditoría: {e.orig}") from e
    return log


class AuditService:
    """Consulta y depuración de la bitácora de auditoría."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def list_entries(
        self,
        event_type: Optional[str] = None,
        actor_role: Optional[str] = None,
        search: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Dict[str, Any]:
        q = self.uow.db.query(AuditLog)
        if event_type:
            q = q.filter(AuditLog.event_type == event_type)
        if actor_role:
            q = q.filter(AuditLog.actor_role == role_of(actor_role))
        if search:
            like = f"%{search}%"
            q = q.filter(or_(AuditLog.description.ilike(like), AuditLog.event_type.ilike(like)))
        if since:
            q = q.filter(AuditLog.created_at >= since)
        if until:
            q = q.filter(AuditLog.created_at <= until)

        total = q.count()
        items = q.order_by(desc(AuditLog.created_at), desc(AuditLog.id)).offset(offset).limit(limit).all()
        return {"total": total, "items": items}

    def event_types(self) -> List[str]:
        rows = self.uow.db.query(AuditLog.event_type).distinct().order_by(AuditLog.event_type).all()
        return [r[0] for r in rows]

    def delete_entry(self, actor: Actor, audit_id: int) -> AuditDeletion:
        """
        Elimina un registro de auditoría. Solo Master.
        La copia queda en audit_deletions, que no tiene operación de borrado.
        """
        if not is_master(actor):
            logger.warning("Rol %s intentó eliminar auditoría %s", role_of(actor), audit_id)
            raise PermissionDeniedError("Solo el perfil Master puede eliminar registros de auditoría.")

        with self.uow.transaction():
            log = self.uow.audit.get_or_raise(audit_id)
            deletion = AuditDeletion(
                deleted_by_role=role_of(actor),
                audit_log_id=log.id,
                original_created_at=log.created_at,
                original_actor_role=log.actor_role,
                original_event_type=log.event_type,
                original_description=log.description,
                original_metadata=log.metadata_,
            )
            self.uow.audit.add_deletion(deletion)
            self.uow.audit.delete(log)
            self.uow.flush()

        logger.info("Auditoría %s eliminada por %s", audit_id, role_of(actor))
        return deletion

    def deletions(self) -> List[AuditDeletion]:
        return self.uow.audit.deletions()
