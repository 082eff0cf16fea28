"""
API de Inventarios
==================

Productos, almacenes, existencias y movimientos.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ...dependencies import get_actor, get_policies, get_uow
from ...application.dtos import ProductIn, ProductUpdate, StockAdjustmentIn
from ...application.policies import BusinessPolicies
from ...application.services_inventario import InventarioService
from ...infrastructure.unit_of_work import UnitOfWork

router = APIRouter(prefix="/inventarios", tags=["inventarios"])


class ProductOut(BaseModel):
    id: int
    name: str
    category: str | None
    presentation: str | None
    description: str | None
    price: Decimal
    purchase_price: Decimal
    color: str | None

    class Config:
        from_attributes = True


class WarehouseIn(BaseModel):
    name: str


class WarehouseOut(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class StockRowOut(BaseModel):
    stock_id: int
    product_id: int
    product_name: str | None
    warehouse_id: int
    quantity: int
    low_stock: bool


class MovementOut(BaseModel):
    id: int
    product_id: int
    warehouse_id: int
    quantity: int
    movement_type: str
    description: str | None
    reference_type: str | None
    reference_id: int | None
    created_at: datetime

    class Config:
        from_attributes = True


def _service(uow: UnitOfWork = Depends(get_uow), policies: BusinessPolicies = Depends(get_policies)) -> InventarioService:
    return InventarioService(uow, policies)


# ===== ALMACENES =====

@router.get("/almacenes", response_model=List[WarehouseOut])
def list_warehouses(service: InventarioService = Depends(_service)):
    return service.uow.warehouses.list()


@router.post("/almacenes", response_model=WarehouseOut, status_code=201)
def create_warehouse(payload: WarehouseIn, actor: str = Depends(get_actor),
                     service: InventarioService = Depends(_service)):
    return service.create_warehouse(actor, payload.name)


# ===== PRODUCTOS =====

@router.post("/productos", response_model=ProductOut, status_code=201)
def create_product(payload: ProductIn, actor: str = Depends(get_actor),
                   service: InventarioService = Depends(_service)):
    """
    Crea un producto e inicializa existencia cero en todos los almacenes.
    """
    return service.create_product(actor, payload)


@router.get("/productos", response_model=List[ProductOut])
def list_products(service: InventarioService = Depends(_service)):
    return service.list_products()


@router.get("/productos/{product_id}", response_model=ProductOut)
def get_product(product_id: int, service: InventarioService = Depends(_service)):
    return service.get_product(product_id)


@router.patch("/productos/{product_id}", response_model=ProductOut)
def update_product(product_id: int, payload: ProductUpdate, actor: str = Depends(get_actor),
                   service: InventarioService = Depends(_service)):
    """Actualiza un producto"""
    return service.update_product(actor, product_id, payload)


@router.delete("/productos/{product_id}", status_code=204)
def delete_product(product_id: int, actor: str = Depends(get_actor),
                   service: InventarioService = Depends(_service)):
    """Elimina un producto sin historial (solo Master)"""
    service.delete_product(actor, product_id)


# ===== EXISTENCIAS =====

@router.get("/almacenes/{warehouse_id}/stock", response_model=List[StockRowOut])
def stock_for_warehouse(warehouse_id: int, service: InventarioService = Depends(_service)):
    return service.stock_for_warehouse(warehouse_id)


@router.get("/stock-bajo", response_model=List[StockRowOut])
def low_stock(warehouse_id: Optional[int] = Query(None), service: InventarioService = Depends(_service)):
    """Existencias en o por debajo del umbral configurado"""
    return [
        {
            "stock_id": s.id,
            "product_id": s.product_id,
            "product_name": s.product.name if s.product else None,
            "warehouse_id": s.warehouse_id,
            "quantity": s.quantity,
            "low_stock": True,
        }
        for s in service.low_stock(warehouse_id)
    ]


@router.post("/ajustes", response_model=MovementOut, status_code=201)
def adjust_stock(payload: StockAdjustmentIn, actor: str = Depends(get_actor),
                 service: InventarioService = Depends(_service)):
    """Resurtido (cantidad positiva) o ajuste / merma (negativa)"""
    return service.adjust_stock(actor, payload.product_id, payload.warehouse_id, payload.delta, payload.reason)


@router.get("/movimientos", response_model=List[MovementOut])
def movement_history(
    product_id: Optional[int] = Query(None),
    warehouse_id: Optional[int] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    service: InventarioService = Depends(_service),
):
    return service.movement_history(product_id, warehouse_id, limit)
