"""
API de Pedidos
==============

Pendiente -> Entregado (genera venta a crédito) | Cancelado
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ...dependencies import get_actor, get_policies, get_uow
from ...application.dtos import OrderIn
from ...application.policies import BusinessPolicies
from ...application.services_ventas import VentasService
from ...infrastructure.unit_of_work import UnitOfWork
from .ventas import SaleOut

router = APIRouter(prefix="/pedidos", tags=["pedidos"])


class OrderItemOut(BaseModel):
    product_id: int
    quantity: int
    unit_price: Decimal

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: int
    folio: str
    client_id: int
    warehouse_id: int
    total_amount: Decimal
    status: str
    sale_id: int | None
    created_at: datetime
    items: List[OrderItemOut]

    class Config:
        from_attributes = True


def _service(uow: UnitOfWork = Depends(get_uow), policies: BusinessPolicies = Depends(get_policies)) -> VentasService:
    return VentasService(uow, policies)


@router.post("", response_model=OrderOut, status_code=201)
def create_order(payload: OrderIn, actor: str = Depends(get_actor), service: VentasService = Depends(_service)):
    """Levanta un pedido Pendiente"""
    return service.create_order(actor, payload)


@router.get("", response_model=List[OrderOut])
def list_orders(status: Optional[str] = Query(None), service: VentasService = Depends(_service)):
    return service.list_orders(status)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, service: VentasService = Depends(_service)):
    return service.get_order(order_id)


@router.post("/{order_id}/entregar", response_model=SaleOut)
def confirm_delivery(order_id: int, actor: str = Depends(get_actor), service: VentasService = Depends(_service)):
    """Confirma la entrega y registra la venta a crédito"""
    return service.confirm_delivery(actor, order_id)


@router.post("/{order_id}/cancelar", response_model=OrderOut)
def cancel_order(order_id: int, actor: str = Depends(get_actor), service: VentasService = Depends(_service)):
    return service.cancel_order(actor, order_id)
