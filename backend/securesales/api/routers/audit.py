"""
API de Auditoría
================

Consulta de la bitácora (Master y Administrador) y depuración (solo Master).
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ...dependencies import get_actor, get_uow
from ...domain.enums import ActorRole
from ...application.errors import PermissionDeniedError
from ...application.services_audit import AuditService
from ...infrastructure.unit_of_work import UnitOfWork

router = APIRouter(prefix="/auditoria", tags=["auditoria"])

READ_ROLES = {ActorRole.MASTER.value, ActorRole.ADMINISTRADOR.value}


class AuditLogOut(BaseModel):
    id: int
    created_at: datetime
    actor_role: str
    event_type: str
    description: str
    entity_type: str | None
    entity_id: int | None
    metadata: Dict[str, Any] | None = Field(None, validation_alias="metadata_")

    class Config:
        from_attributes = True


class AuditListOut(BaseModel):
    total: int
    items: List[AuditLogOut]


class AuditDeletionOut(BaseModel):
    id: int
    deleted_at: datetime
    deleted_by_role: str
    audit_log_id: int
    original_created_at: datetime | None
    original_actor_role: str | None
    original_event_type: str | None
    original_description: str | None

    class Config:
        from_attributes = True


def _require_reader(actor: str = Depends(get_actor)) -> str:
    if actor not in READ_ROLES:
        raise PermissionDeniedError("Solo Master y Administrador pueden consultar la auditoría.")
    return actor


@router.get("", response_model=AuditListOut)
def list_entries(
    event_type: Optional[str] = Query(None),
    actor_role: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    since: Optional[datetime] = Query(None),
    until: Optional[datetime] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    _: str = Depends(_require_reader),
    uow: UnitOfWork = Depends(get_uow),
):
    return AuditService(uow).list_entries(event_type, actor_role, search, since, until, limit, offset)


@router.get("/tipos", response_model=List[str])
def event_types(_: str = Depends(_require_reader), uow: UnitOfWork = Depends(get_uow)):
    return AuditService(uow).event_types()


@router.delete("/{audit_id}", response_model=AuditDeletionOut)
def delete_entry(audit_id: int, actor: str = Depends(get_actor), uow: UnitOfWork = Depends(get_uow)):
    return AuditService(uow).delete_entry(actor, audit_id)


@router.get("/eliminaciones", response_model=List[AuditDeletionOut])
def deletions(_: str = Depends(_require_reader), uow: UnitOfWork = Depends(get_uow)):
    return AuditService(uow).deletions()
