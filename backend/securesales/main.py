import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from .db import init_db
from .api.errors import register_exception_handlers
from .api.routers import health, clientes, inventarios, pedidos, ventas, reportes, audit
from .application.services_inventario import InventarioService
from .infrastructure.logging_config import setup_logging
from .infrastructure.unit_of_work import UnitOfWork
from .config import settings as app_settings

# Configurar logging al iniciar la aplicación
setup_logging()
logger = logging.getLogger(__name__)

# Inicializar BD y almacenes por defecto (no fallar si la BD no está disponible)
try:
    init_db()
    InventarioService(UnitOfWork()).ensure_default_warehouses()
except Exception as e:
    logger.warning("No se pudo inicializar la base de datos: %s. Puede requerir configuración inicial.", e)

app = FastAPI(
    title="SecureSales - Punto de Venta",
    version="0.1.0",
    description="Núcleo transaccional de ventas, crédito, inventario y auditoría",
    docs_url="/docs" if app_settings.environment != "production" else None,
    redoc_url="/redoc" if app_settings.environment != "production" else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With", "X-Actor-Role"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    # Solo HSTS en producción con HTTPS
    if app_settings.environment == "production":
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    return response


register_exception_handlers(app)

app.include_router(health.router)
app.include_router(clientes.router)
app.include_router(inventarios.router)
app.include_router(pedidos.router)
app.include_router(ventas.router)
app.include_router(reportes.router)
app.include_router(audit.router)
