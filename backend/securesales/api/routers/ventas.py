"""
API de Ventas
=============
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ...dependencies import get_actor, get_policies, get_uow
from ...application.dtos import SaleIn
from ...application.policies import BusinessPolicies
from ...application.services_ventas import VentasService
from ...infrastructure.unit_of_work import UnitOfWork

router = APIRouter(prefix="/ventas", tags=["ventas"])


class SaleItemOut(BaseModel):
    product_id: int
    quantity: int
    unit_price: Decimal
    unit_cost: Decimal

    class Config:
        from_attributes = True


class SaleOut(BaseModel):
    id: int
    client_id: int
    warehouse_id: int
    order_id: int | None
    total_amount: Decimal
    payment_method: str
    status: str
    stock_consumed: bool
    credit_slot_released: bool
    created_at: datetime
    items: List[SaleItemOut]

    class Config:
        from_attributes = True


def _service(uow: UnitOfWork = Depends(get_uow), policies: BusinessPolicies = Depends(get_policies)) -> VentasService:
    return VentasService(uow, policies)


@router.post("", response_model=SaleOut, status_code=201)
def create_direct_sale(payload: SaleIn, actor: str = Depends(get_actor), service: VentasService = Depends(_service)):
    return service.create_direct_sale(actor, payload)


@router.get("", response_model=List[SaleOut])
def list_sales(
    status: Optional[str] = Query(None),
    client_id: Optional[int] = Query(None),
    service: VentasService = Depends(_service),
):
    return service.list_sales(status, client_id)


@router.get("/{sale_id}", response_model=SaleOut)
def get_sale(sale_id: int, service: VentasService = Depends(_service)):
    return service.get_sale(sale_id)


@router.post("/{sale_id}/cancelar", response_model=SaleOut)
def cancel_sale(sale_id: int, actor: str = Depends(get_actor), service: VentasService = Depends(_service)):
    """Cancela la venta; revierte saldo e inventario"""
    return service.cancel_sale(actor, sale_id)


@router.delete("/{sale_id}", response_model=SaleOut)
def delete_sale(sale_id: int, actor: str = Depends(get_actor), service: VentasService = Depends(_service)):
    """Elimina una venta cancelada (solo Master)"""
    return service.delete_sale(actor, sale_id)
