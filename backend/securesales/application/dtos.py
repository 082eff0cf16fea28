from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, constr, field_validator

from ..domain.enums import PaymentMethod


class ClientIn(BaseModel):
    name: constr(strip_whitespace=True, min_length=1)
    zone: Optional[str] = None
    business_type: Optional[str] = None
    contact_name: Optional[str] = None
    phone: Optional[str] = None


class ClientUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1)] = None
    zone: Optional[str] = None
    business_type: Optional[str] = None
    contact_name: Optional[str] = None
    phone: Optional[str] = None


class PaymentIn(BaseModel):
    amount: Decimal = Field(..., description="Monto del abono")
    payment_method: str = "efectivo"
    notes: Optional[str] = None
    request_key: Optional[str] = Field(None, max_length=100, description="Clave de idempotencia")


class ProductIn(BaseModel):
    name: constr(strip_whitespace=True, min_length=1)
    category: Optional[str] = None
    presentation: Optional[str] = None
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    purchase_price: Decimal = Field(Decimal("0"), ge=0)
    color: Optional[str] = None


class ProductUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1)] = None
    category: Optional[str] = None
    presentation: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    purchase_price: Optional[Decimal] = Field(None, ge=0)
    color: Optional[str] = None


class StockAdjustmentIn(BaseModel):
    product_id: int
    warehouse_id: int
    delta: int = Field(..., description="Positivo = resurtido, negativo = ajuste / merma")
    reason: constr(strip_whitespace=True, min_length=1)


class LineItemIn(BaseModel):
    product_id: int
    quantity: int


class OrderIn(BaseModel):
    client_id: int
    warehouse_id: int
    items: List[LineItemIn]
    request_key: Optional[str] = Field(None, max_length=100)


class SaleIn(BaseModel):
    client_id: int
    warehouse_id: int
    items: List[LineItemIn]
    payment_method: PaymentMethod = PaymentMethod.CONTADO
    request_key: Optional[str] = Field(None, max_length=100)

    @field_validator("payment_method", mode="before")
    @classmethod
    def normalize_method(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            # Alias en inglés
            return {"cash": "contado", "credit": "credito", "crédito": "credito"}.get(v, v)
        return v
