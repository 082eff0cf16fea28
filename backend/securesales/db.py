import os
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import settings

Base = declarative_base()


def build_engine(database_url: str, **kwargs) -> Engine:
    """Crea el engine; en SQLite activa claves foráneas en cada conexión."""
    connect_args = kwargs.pop("connect_args", {})
    if database_url.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)
        if database_url.startswith("sqlite:///./data/"):
            os.makedirs("./data", exist_ok=True)
    eng = create_engine(database_url, echo=False, future=True, connect_args=connect_args, **kwargs)
    if eng.dialect.name == "sqlite":
        @event.listens_for(eng, "connect")
        def _enable_sqlite_fk(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    return eng


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True, expire_on_commit=False)


def _import_all_models():
    """Importa todos los modelos para que Base.metadata los registre."""
    from .domain import models  # noqa: F401 - Client, Warehouse, Product
    from .domain import models_inventario  # noqa: F401 - Stock, StockMovement
    from .domain import models_ventas  # noqa: F401 - Order, OrderItem, Sale, SaleItem
    from .domain import models_payments  # noqa: F401 - ClientPayment
    from .domain import models_audit  # noqa: F401 - AuditLog, AuditDeletion


def init_db(bind: Engine = None):
    """Crear tablas si no existen (arranque normal)."""
    _import_all_models()
    Base.metadata.create_all(bind=bind or engine)
