"""
Servicios de Inventario
=======================

Existencias por producto y almacén, con bitácora de movimientos.

PRINCIPIOS:
- Toda variación de existencia deja un StockMovement (solo INSERT)
- Ningún ajuste deja la existencia en negativo (InsufficientStockError)
- Los ajustes manuales generan su propia auditoría; los consumos por venta
  los audita el comando de venta que los origina
- Crear un producto inicializa existencia cero en TODOS los almacenes dentro
  de la misma transacción
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from ..config import settings as app_settings
from ..domain.enums import MovementType
from ..domain.models import Product, Warehouse
from ..domain.models_inventario import Stock, StockMovement
from ..domain.models_ventas import OrderItem, SaleItem
from ..infrastructure.locks import stock_key
from ..infrastructure.unit_of_work import UnitOfWork
from . import services_audit as audit
from .dtos import ProductIn, ProductUpdate
from .errors import (
    ConstraintViolationError, InsufficientStockError, InvalidAmountError,
    PermissionDeniedError,
)
from .policies import BusinessPolicies

logger = logging.getLogger(__name__)


class InventarioService:
    """
    Servicio principal del módulo de inventario.
    """

    def __init__(self, uow: UnitOfWork, policies: Optional[BusinessPolicies] = None):
        self.uow = uow
        self.policies = policies or BusinessPolicies.from_settings()

    # ===== ALMACENES =====

    def create_warehouse(self, actor: audit.Actor, name: str) -> Warehouse:
        """Crea un almacén e inicializa existencia cero para todos los productos."""
        name = (name or "").strip()
        if not name:
            raise ConstraintViolationError("El nombre del almacén es obligatorio")

        with self.uow.transaction():
            if self.uow.warehouses.by_name(name):
                raise ConstraintViolationError(f"Ya existe un almacén con nombre {name}")
            warehouse = self.uow.warehouses.add(Warehouse(name=name))
            self.uow.flush()
            for product in self.uow.products.list():
                self.uow.stock.add(Stock(product_id=product.id, warehouse_id=warehouse.id, quantity=0))
            self.uow.flush()
            audit.record(
                self.uow, actor, audit.EVENT_WAREHOUSE_CREATED,
                f"Se dio de alta el almacén {name}",
                metadata={"warehouse_id": warehouse.id, "name": name},
                entity_type=audit.ENTITY_WAREHOUSE, entity_id=warehouse.id,
            )

        logger.info("Almacén %s creado (id=%s)", name, warehouse.id)
        return warehouse

    def ensure_default_warehouses(self, names: Optional[Iterable[str]] = None) -> List[Warehouse]:
        """Crea los almacenes configurados que falten. Uso al iniciar la temporada."""
        wanted = list(names) if names is not None else app_settings.default_warehouses_list
        created = []
        with self.uow.transaction():
            for name in wanted:
                if self.uow.warehouses.by_name(name):
                    continue
                warehouse = self.uow.warehouses.add(Warehouse(name=name))
                self.uow.flush()
                for product in self.uow.products.list():
                    self.uow.stock.add(Stock(product_id=product.id, warehouse_id=warehouse.id, quantity=0))
                created.append(warehouse)
            if created:
                self.uow.flush()
                audit.record(
                    self.uow, None, audit.EVENT_WAREHOUSE_CREATED,
                    "Almacenes iniciales: " + ", ".join(w.name for w in created),
                    metadata={"warehouse_ids": [w.id for w in created]},
                    entity_type=audit.ENTITY_WAREHOUSE,
                )
        return self.uow.warehouses.list()

    # ===== PRODUCTOS =====

    def create_product(self, actor: audit.Actor, payload: ProductIn) -> Product:
        """
        Crea un producto y su existencia inicial (cero) en cada almacén.
        Si algo falla no queda ni el producto ni existencias parciales.
        """
        with self.uow.transaction():
            if self.uow.products.by_name(payload.name):
                raise ConstraintViolationError(f"Ya existe un producto con nombre {payload.name}")

            product = self.uow.products.add(Product(**payload.model_dump()))
            self.uow.flush()

            warehouses = self.uow.warehouses.list()
            for wh in warehouses:
                self.uow.stock.add(Stock(product_id=product.id, warehouse_id=wh.id, quantity=0))
            self.uow.flush()

            audit.record(
                self.uow, actor, audit.EVENT_PRODUCT_CREATED,
                f"Se creó el nuevo producto: {product.name}",
                metadata={
                    "product_id": product.id,
                    "initial_form": payload.model_dump(mode="json"),
                    "warehouses": [wh.id for wh in warehouses],
                },
                entity_type=audit.ENTITY_PRODUCT, entity_id=product.id,
            )

        logger.info("Producto %s creado (id=%s)", product.name, product.id)
        return product

    def update_product(self, actor: audit.Actor, product_id: int, payload: ProductUpdate) -> Product:
        """Edita precio, costo y descripción. Las ventas ya registradas conservan su costo."""
        changes = payload.model_dump(exclude_unset=True)
        with self.uow.transaction():
            product = self.uow.products.get_or_raise(product_id)

            if "name" in changes and changes["name"] != product.name:
                existing = self.uow.products.by_name(changes["name"])
                if existing and existing.id != product.id:
                    raise ConstraintViolationError(f"Ya existe otro producto con nombre {changes['name']}")

            for key, value in changes.items():
                setattr(product, key, value)
            self.uow.flush()

            audit.record(
                self.uow, actor, audit.EVENT_PRODUCT_UPDATED,
                f"Se modificó el producto: {product.name}",
                metadata={"product_id": product.id, "changes": payload.model_dump(mode="json", exclude_unset=True)},
                entity_type=audit.ENTITY_PRODUCT, entity_id=product.id,
            )
        return product

    def delete_product(self, actor: audit.Actor, product_id: int) -> None:
        """
        Elimina un producto sin historial. Solo Master.
        Con ventas, pedidos o movimientos asociados se rechaza.
        """
        if not audit.is_master(actor):
            raise PermissionDeniedError("Solo el perfil Master puede eliminar productos.")

        with self.uow.transaction():
            product = self.uow.products.get_or_raise(product_id)
            db = self.uow.db
            referenced = (
                db.query(SaleItem.id).filter(SaleItem.product_id == product_id).first()
                or db.query(OrderItem.id).filter(OrderItem.product_id == product_id).first()
                or db.query(StockMovement.id).filter(StockMovement.product_id == product_id).first()
            )
            if referenced:
                raise ConstraintViolationError(
                    f"El producto {product.name} tiene ventas, pedidos o movimientos registrados"
                )
            name = product.name
            db.delete(product)  # Sus existencias se eliminan en cascada
            self.uow.flush()

            audit.record(
                self.uow, actor, audit.EVENT_PRODUCT_DELETED,
                f"Se eliminó permanentemente el producto: {name}",
                metadata={"product_id": product_id},
                entity_type=audit.ENTITY_PRODUCT, entity_id=product_id,
            )
        logger.info("Producto %s eliminado", product_id)

    def get_product(self, product_id: int) -> Product:
        return self.uow.products.get_or_raise(product_id)

    def list_products(self) -> List[Product]:
        return self.uow.products.list()

    # ===== EXISTENCIAS =====

    def _apply_delta(
        self,
        product_id: int,
        warehouse_id: int,
        delta: int,
        movement_type: MovementType,
        description: Optional[str],
        reference_type: Optional[str] = None,
        reference_id: Optional[int] = None,
    ) -> StockMovement:
        """Aplica delta a la existencia con la fila bloqueada. Sin auditoría."""
        self.uow.locks.hold(stock_key(product_id, warehouse_id))
        stock = self.uow.stock.get(product_id, warehouse_id, for_update=True)
        if stock is None:
            # Validar referencias antes de crear la fila faltante
            self.uow.products.get_or_raise(product_id)
            self.uow.warehouses.get_or_raise(warehouse_id)
            stock = self.uow.stock.add(Stock(product_id=product_id, warehouse_id=warehouse_id, quantity=0))
            self.uow.flush()

        current = stock.quantity or 0
        if current + delta < 0:
            raise InsufficientStockError(product_id, warehouse_id, current, -delta)

        stock.quantity = current + delta
        movement = self.uow.stock.add_movement(StockMovement(
            product_id=product_id,
            warehouse_id=warehouse_id,
            quantity=delta,
            movement_type=movement_type.value,
            description=description,
            reference_type=reference_type,
            reference_id=reference_id,
        ))
        self.uow.flush()
        return movement

    def adjust_stock(
        self,
        actor: audit.Actor,
        product_id: int,
        warehouse_id: int,
        delta: int,
        reason: str,
    ) -> StockMovement:
        """
        Resurtido (delta > 0) o ajuste / merma (delta < 0).

        Args:
            actor: rol que ejecuta la operación (solo para auditoría)
            product_id: ID del producto
            warehouse_id: ID del almacén
            delta: cantidad con signo
            reason: motivo (ej. "Compra a proveedor", "Merma")

        Returns:
            StockMovement registrado
        """
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise InvalidAmountError("La cantidad del ajuste debe ser un entero")
        if delta == 0:
            raise InvalidAmountError("La cantidad del ajuste no puede ser cero")
        reason = (reason or "").strip()
        if not reason:
            raise InvalidAmountError("El motivo del ajuste es obligatorio")

        with self.uow.transaction():
            product = self.uow.products.get_or_raise(product_id)
            warehouse = self.uow.warehouses.get_or_raise(warehouse_id)

            movement_type = MovementType.RESURTIDO if delta > 0 else MovementType.AJUSTE
            movement = self._apply_delta(product_id, warehouse_id, delta, movement_type, reason)

            event = audit.EVENT_RESUPPLY if delta > 0 else audit.EVENT_ADJUSTMENT
            action = "Entrada" if delta > 0 else "Salida"
            audit.record(
                self.uow, actor, event,
                f"{action} de {abs(delta)} unidades de {product.name} en {warehouse.name}. Motivo: {reason}",
                metadata={"product_id": product_id, "qty": delta, "warehouse": warehouse.name, "movement_id": movement.id},
                entity_type=audit.ENTITY_STOCK_MOVEMENT, entity_id=movement.id,
            )

        logger.info("Stock ajustado: producto=%s almacén=%s delta=%s", product_id, warehouse_id, delta)
        return movement

    def consume(self, product_id: int, warehouse_id: int, quantity: int,
                reference_type: str, reference_id: int, description: Optional[str] = None) -> StockMovement:
        """Descuenta existencia por una venta. Debe llamarse dentro de la transacción del comando."""
        return self._apply_delta(
            product_id, warehouse_id, -quantity, MovementType.VENTA,
            description or f"Consumo por {reference_type} {reference_id}",
            reference_type, reference_id,
        )

    def restore(self, product_id: int, warehouse_id: int, quantity: int,
                reference_type: str, reference_id: int, description: Optional[str] = None) -> StockMovement:
        """Repone existencia al cancelar una venta."""
        return self._apply_delta(
            product_id, warehouse_id, quantity, MovementType.DEVOLUCION,
            description or f"Reposición por cancelación de {reference_type} {reference_id}",
            reference_type, reference_id,
        )

    def get_quantity(self, product_id: int, warehouse_id: int) -> int:
        stock = self.uow.stock.get(product_id, warehouse_id)
        return stock.quantity if stock else 0

    def stock_for_warehouse(self, warehouse_id: int) -> List[Dict[str, Any]]:
        """Existencias de un almacén con la marca de stock bajo."""
        self.uow.warehouses.get_or_raise(warehouse_id)
        threshold = self.policies.low_stock_threshold
        return [
            {
                "stock_id": s.id,
                "product_id": s.product_id,
                "product_name": s.product.name if s.product else None,
                "warehouse_id": s.warehouse_id,
                "quantity": s.quantity,
                "low_stock": s.quantity <= threshold,
            }
            for s in self.uow.stock.for_warehouse(warehouse_id)
        ]

    def low_stock(self, warehouse_id: Optional[int] = None) -> List[Stock]:
        return self.uow.stock.low(self.policies.low_stock_threshold, warehouse_id)

    def movement_history(self, product_id: Optional[int] = None, warehouse_id: Optional[int] = None,
                         limit: int = 200) -> List[StockMovement]:
        return self.uow.stock.movements(product_id, warehouse_id, limit)

