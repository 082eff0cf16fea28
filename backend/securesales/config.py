from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator, model_validator

BASE_DIR = Path(__file__).resolve().parent.parent  # backend/

OVERPAYMENT_POLICIES = ("reject", "clamp")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # ===== ENTORNO =====
    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    # ===== DATABASE =====
    database_url: str = Field(default="sqlite:///./data/securesales.db")

    # ===== LOGS =====
    log_dir: str = Field(default="logs")

    # ===== CORS =====
    allowed_origins: str = Field(default="http://localhost:5173,http://localhost:3000")

    # ===== REGLAS DE NEGOCIO =====
    # Máximo de ventas a crédito abiertas por cliente
    credit_limit: int = Field(default=2, ge=0)
    # Descontar inventario al registrar una venta o entregar un pedido
    decrement_stock_on_sale: bool = Field(default=True)
    # Liberar el cupo de crédito al cancelar una venta a crédito
    release_credit_on_cancel: bool = Field(default=False)
    # "reject": un abono mayor al saldo se rechaza; "clamp": se recorta al saldo
    overpayment_policy: str = Field(default="reject")
    # Existencia igual o menor se marca como stock bajo (solo informativo)
    low_stock_threshold: int = Field(default=10, ge=0)

    # ===== ALMACENES =====
    default_warehouses: str = Field(default="Principal,Bodega")

    @field_validator("overpayment_policy", mode="after")
    @classmethod
    def validate_overpayment_policy(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in OVERPAYMENT_POLICIES:
            raise ValueError(f"OVERPAYMENT_POLICY debe ser uno de {OVERPAYMENT_POLICIES}")
        return v

    @model_validator(mode="after")
    def validate_production(self):
        if self.environment == "production" and self.database_url.startswith("sqlite:///:memory:"):
            raise ValueError("DATABASE_URL en memoria no está permitido en producción.")
        return self

    @property
    def allowed_origins_list(self) -> List[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def default_warehouses_list(self) -> List[str]:
        return [w.strip() for w in self.default_warehouses.split(",") if w.strip()]

    @property
    def log_path(self) -> Path:
        path = Path(self.log_dir)
        return path if path.is_absolute() else BASE_DIR / path


settings = Settings()
