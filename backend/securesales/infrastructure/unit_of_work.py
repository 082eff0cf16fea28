import logging
from contextlib import contextmanager
from sqlalchemy.exc import IntegrityError, DBAPIError
from sqlalchemy.orm import Session

from ..db import SessionLocal
from ..application.errors import ConstraintViolationError, StorageUnavailableError
from .locks import LockScope, registry
from .repositories import (
    ClientRepository, ProductRepository, WarehouseRepository, StockRepository,
    OrderRepository, SaleRepository, PaymentRepository, AuditRepository,
)

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, db: Session = None):
        self._owns_session = db is None
        self.db: Session = db if db is not None else SessionLocal()
        self.clients = ClientRepository(self.db)
        self.products = ProductRepository(self.db)
        self.warehouses = WarehouseRepository(self.db)
        self.stock = StockRepository(self.db)
        self.orders = OrderRepository(self.db)
        self.sales = SaleRepository(self.db)
        self.payments = PaymentRepository(self.db)
        self.audit = AuditRepository(self.db)
        self.locks = LockScope(registry)
        self._depth = 0

    def commit(self): self.db.commit()
    def rollback(self): self.db.rollback()

    def close(self):
        self.locks.release_all()
        if self._owns_session:
            self.db.close()

    def flush(self):
        """flush traduciendo errores de la BD a errores del dominio"""
        try:
            self.db.flush()
        except IntegrityError as e:
            raise ConstraintViolationError(str(e.orig)) from e
        except DBAPIError as e:
            raise StorageUnavailableError(str(e.orig)) from e

    @contextmanager
    def transaction(self):
        """
        Una transacción por comando. Las llamadas anidadas se unen a la
        transacción exterior; solo la exterior hace commit o rollback.
        """
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield self
            self.commit()
        except IntegrityError as e:
            self.rollback()
            raise ConstraintViolationError(str(e.orig)) from e
        except DBAPIError as e:
            self.rollback()
            logger.error("Almacenamiento no disponible: %s", e)
            raise StorageUnavailableError(str(e.orig)) from e
        except Exception:
            self.rollback()
            raise
        finally:
            self._depth = 0
            self.close()
