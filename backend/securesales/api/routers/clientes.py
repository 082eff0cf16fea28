"""
API de Clientes, Crédito y Abonos
=================================
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ...dependencies import get_actor, get_policies, get_uow
from ...application.dtos import ClientIn, ClientUpdate, PaymentIn
from ...application.policies import BusinessPolicies
from ...application.services_clientes import ClientService
from ...infrastructure.unit_of_work import UnitOfWork

router = APIRouter(prefix="/clientes", tags=["clientes"])


class ClientOut(BaseModel):
    id: int
    name: str
    zone: str | None
    business_type: str | None
    contact_name: str | None
    phone: str | None
    balance: Decimal
    credits_count: int
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentOut(BaseModel):
    id: int
    client_id: int
    amount: Decimal
    payment_method: str
    notes: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class StatementLine(BaseModel):
    type: str
    id: int
    amount: Decimal
    created_at: datetime
    description: Optional[str] = None


class StatementOut(BaseModel):
    client_id: int
    name: str
    balance: Decimal
    credits_count: int
    credit_limit: int
    credits_available: int
    movements: List[StatementLine]


def _service(uow: UnitOfWork = Depends(get_uow), policies: BusinessPolicies = Depends(get_policies)) -> ClientService:
    return ClientService(uow, policies)


@router.post("", response_model=ClientOut, status_code=201)
def register_client(payload: ClientIn, actor: str = Depends(get_actor), service: ClientService = Depends(_service)):
    """Alta de cliente con saldo cero y sin créditos usados."""
    return service.register_client(actor, payload)


@router.get("", response_model=List[ClientOut])
def list_clients(service: ClientService = Depends(_service)):
    return service.list_clients()


@router.get("/{client_id}", response_model=ClientOut)
def get_client(client_id: int, service: ClientService = Depends(_service)):
    return service.get_client(client_id)


@router.patch("/{client_id}", response_model=ClientOut)
def update_client(client_id: int, payload: ClientUpdate, actor: str = Depends(get_actor),
                  service: ClientService = Depends(_service)):
    return service.update_client(actor, client_id, payload)


@router.post("/{client_id}/abonos", response_model=PaymentOut, status_code=201)
def register_payment(client_id: int, payload: PaymentIn, actor: str = Depends(get_actor),
                     service: ClientService = Depends(_service)):
    """Registra un abono. Un abono mayor al saldo se rechaza o se recorta según la política."""
    return service.register_payment(
        actor, client_id, payload.amount,
        payment_method=payload.payment_method, notes=payload.notes, request_key=payload.request_key,
    )


@router.get("/{client_id}/estado-cuenta", response_model=StatementOut)
def client_statement(client_id: int, service: ClientService = Depends(_service)):
    """Cargos (ventas a crédito) y abonos del cliente"""
    return service.client_statement(client_id)
