"""
Configuración global de pytest para los tests del núcleo transaccional.

Cada test recibe su propia BD SQLite en memoria (StaticPool: una sola
conexión compartida), con las tablas creadas desde los modelos.
"""
import os
import sys
import tempfile
from decimal import Decimal
from pathlib import Path

import pytest

# Agregar el directorio raíz al path para imports
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

# Antes de importar securesales: BD y logs fuera del directorio de trabajo
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "securesales-tests-logs"))

from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from securesales.db import build_engine, init_db
from securesales.application.dtos import ClientIn, ProductIn
from securesales.application.policies import BusinessPolicies
from securesales.application.services_clientes import ClientService
from securesales.application.services_inventario import InventarioService
from securesales.application.services_ventas import VentasService
from securesales.domain.models_audit import AuditLog
from securesales.infrastructure.unit_of_work import UnitOfWork


@pytest.fixture
def engine():
    eng = build_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def uow(db):
    return UnitOfWork(db)


@pytest.fixture
def policies():
    """Políticas por defecto, independientes del entorno"""
    return BusinessPolicies()


@pytest.fixture
def clientes(uow, policies):
    return ClientService(uow, policies)


@pytest.fixture
def inventario(uow, policies):
    return InventarioService(uow, policies)


@pytest.fixture
def ventas(uow, policies):
    return VentasService(uow, policies)


@pytest.fixture
def almacenes(inventario):
    """Principal y Bodega"""
    return inventario.ensure_default_warehouses(["Principal", "Bodega"])


@pytest.fixture
def principal(almacenes):
    return next(w for w in almacenes if w.name == "Principal")


@pytest.fixture
def bodega(almacenes):
    return next(w for w in almacenes if w.name == "Bodega")


@pytest.fixture
def producto(inventario, almacenes):
    """Producto de 100.00 (costo 60.00) con 10 unidades en Principal"""
    p = inventario.create_product("Master", ProductIn(
        name="Perfume Floral 100ml", category="Perfumería", price=Decimal("100.00"),
        purchase_price=Decimal("60.00"),
    ))
    principal = next(w for w in almacenes if w.name == "Principal")
    inventario.adjust_stock("Master", p.id, principal.id, 10, "Inventario inicial")
    return p


@pytest.fixture
def producto_b(inventario, almacenes):
    """Producto de 50.00 (costo 20.00) con 20 unidades en Principal"""
    p = inventario.create_product("Master", ProductIn(
        name="Crema Corporal", category="Cuidado", price=Decimal("50.00"),
        purchase_price=Decimal("20.00"),
    ))
    principal = next(w for w in almacenes if w.name == "Principal")
    inventario.adjust_stock("Master", p.id, principal.id, 20, "Inventario inicial")
    return p


@pytest.fixture
def cliente(clientes):
    return clientes.register_client("Administrador", ClientIn(name="Farmacia Central", zone="Centro"))


@pytest.fixture
def audit_count(db):
    """Cuenta entradas de auditoría, opcionalmente por tipo de evento"""
    def _count(event_type=None):
        q = db.query(AuditLog)
        if event_type:
            q = q.filter(AuditLog.event_type == event_type)
        return q.count()
    return _count
