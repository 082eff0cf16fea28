from typing import List, Optional
from sqlalchemy import desc
from sqlalchemy.orm import Session, selectinload

from ..application.errors import NotFoundError
from ..domain.models import Client, Product, Warehouse
from ..domain.models_inventario import Stock, StockMovement
from ..domain.models_ventas import Order, Sale
from ..domain.models_payments import ClientPayment
from ..domain.models_audit import AuditLog, AuditDeletion


class _BaseRepository:
    model = None
    entity_name = ""

    def __init__(self, db: Session): self.db = db
    def add(self, obj): self.db.add(obj); return obj
    def get(self, id: int): return self.db.get(self.model, id)

    def get_or_raise(self, id: int):
        obj = self.db.get(self.model, id)
        if obj is None:
            raise NotFoundError(self.entity_name, id)
        return obj

    def get_for_update(self, id: int):
        """Bloquea la fila hasta el fin de la transacción (SELECT ... FOR UPDATE)"""
        obj = (
            self.db.query(self.model)
            .filter(self.model.id == id)
            .populate_existing()
            .with_for_update()
            .first()
        )
        if obj is None:
            raise NotFoundError(self.entity_name, id)
        return obj

    def by_request_key(self, key: Optional[str]):
        if not key:
            return None
        return self.db.query(self.model).filter(self.model.request_key == key).first()


class ClientRepository(_BaseRepository):
    model = Client
    entity_name = "Cliente"

    def list(self) -> List[Client]:
        return self.db.query(Client).order_by(Client.name).all()

    def with_balance(self) -> List[Client]:
        return (
            self.db.query(Client)
            .filter(Client.balance > 0)
            .order_by(desc(Client.balance), Client.id)
            .all()
        )


class ProductRepository(_BaseRepository):
    model = Product
    entity_name = "Producto"

    def by_name(self, name: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.name == name).first()

    def list(self) -> List[Product]:
        return self.db.query(Product).order_by(Product.name).all()


class WarehouseRepository(_BaseRepository):
    model = Warehouse
    entity_name = "Almacén"

    def by_name(self, name: str) -> Optional[Warehouse]:
        return self.db.query(Warehouse).filter(Warehouse.name == name).first()

    def list(self) -> List[Warehouse]:
        return self.db.query(Warehouse).order_by(Warehouse.id).all()


class StockRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, s: Stock): self.db.add(s); return s

    def get(self, product_id: int, warehouse_id: int, for_update: bool = False) -> Optional[Stock]:
        q = self.db.query(Stock).filter(Stock.product_id == product_id, Stock.warehouse_id == warehouse_id)
        if for_update:
            q = q.populate_existing().with_for_update()
        return q.first()

    def for_warehouse(self, warehouse_id: int) -> List[Stock]:
        return (
            self.db.query(Stock)
            .options(selectinload(Stock.product))
            .filter(Stock.warehouse_id == warehouse_id)
            .order_by(Stock.product_id)
            .all()
        )

    def low(self, threshold: int, warehouse_id: Optional[int] = None) -> List[Stock]:
        q = self.db.query(Stock).filter(Stock.quantity <= threshold)
        if warehouse_id is not None:
            q = q.filter(Stock.warehouse_id == warehouse_id)
        return q.order_by(Stock.quantity, Stock.product_id).all()

    def add_movement(self, m: StockMovement): self.db.add(m); return m

    def movements(self, product_id: Optional[int] = None, warehouse_id: Optional[int] = None,
                  limit: int = 200) -> List[StockMovement]:
        q = self.db.query(StockMovement)
        if product_id is not None:
            q = q.filter(StockMovement.product_id == product_id)
        if warehouse_id is not None:
            q = q.filter(StockMovement.warehouse_id == warehouse_id)
        return q.order_by(desc(StockMovement.created_at), desc(StockMovement.id)).limit(limit).all()


class OrderRepository(_BaseRepository):
    model = Order
    entity_name = "Pedido"

    def by_folio(self, folio: str) -> Optional[Order]:
        return self.db.query(Order).filter(Order.folio == folio).first()

    def list(self, status: Optional[str] = None) -> List[Order]:
        q = self.db.query(Order).options(selectinload(Order.items))
        if status:
            q = q.filter(Order.status == status)
        return q.order_by(desc(Order.created_at), desc(Order.id)).all()

    def count_by_status(self, status: str) -> int:
        return self.db.query(Order).filter(Order.status == status).count()


class SaleRepository(_BaseRepository):
    model = Sale
    entity_name = "Venta"

    def list(self, status: Optional[str] = None, client_id: Optional[int] = None) -> List[Sale]:
        q = self.db.query(Sale).options(selectinload(Sale.items))
        if status:
            q = q.filter(Sale.status == status)
        if client_id is not None:
            q = q.filter(Sale.client_id == client_id)
        return q.order_by(desc(Sale.created_at), desc(Sale.id)).all()


class PaymentRepository(_BaseRepository):
    model = ClientPayment
    entity_name = "Abono"

    def for_client(self, client_id: int) -> List[ClientPayment]:
        return (
            self.db.query(ClientPayment)
            .filter(ClientPayment.client_id == client_id)
            .order_by(desc(ClientPayment.created_at), desc(ClientPayment.id))
            .all()
        )


class AuditRepository(_BaseRepository):
    model = AuditLog
    entity_name = "Registro de auditoría"

    def add_deletion(self, d: AuditDeletion): self.db.add(d); return d
    def delete(self, log: AuditLog): self.db.delete(log)

    def deletions(self) -> List[AuditDeletion]:
        return self.db.query(AuditDeletion).order_by(desc(AuditDeletion.deleted_at), desc(AuditDeletion.id)).all()
