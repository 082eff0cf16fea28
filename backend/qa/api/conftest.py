"""
Fixtures para tests de integración API.
Usa TestClient de FastAPI contra la app real, con get_db apuntando a una
BD SQLite en memoria por test.
"""
import pytest
import sys
from pathlib import Path

# Asegurar que el path permita imports de securesales
root_dir = Path(__file__).parent.parent.parent
sys.path.insert(0, str(root_dir))

from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

# Import app después de path
from securesales.main import app
from securesales.dependencies import get_db, get_policies
from securesales.application.policies import BusinessPolicies
from securesales.application.services_inventario import InventarioService
from securesales.infrastructure.unit_of_work import UnitOfWork


@pytest.fixture
def client(engine):
    """Cliente HTTP con la BD de prueba y políticas por defecto."""
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)

    def _get_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_policies] = lambda: BusinessPolicies()

    seed = Session()
    InventarioService(UnitOfWork(seed)).ensure_default_warehouses(["Principal", "Bodega"])
    seed.close()

    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def master():
    return {"X-Actor-Role": "Master"}


@pytest.fixture
def vendedor():
    return {"X-Actor-Role": "Vendedor"}
