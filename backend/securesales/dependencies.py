from typing import Generator
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from .db import SessionLocal
from .domain.enums import ActorRole
from .application.policies import BusinessPolicies
from .application.services_audit import role_of
from .infrastructure.unit_of_work import UnitOfWork


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_uow(db: Session = Depends(get_db)) -> UnitOfWork:
    return UnitOfWork(db)


def get_policies() -> BusinessPolicies:
    return BusinessPolicies.from_settings()


def get_actor(x_actor_role: str | None = Header(default=None, alias="X-Actor-Role")) -> str:
    """
    Rol que ejecuta la operación. Solo se usa para auditoría y para las
    operaciones reservadas a Master; la autenticación ocurre fuera del núcleo.
    """
    return role_of(x_actor_role or ActorRole.SISTEMA.value)
