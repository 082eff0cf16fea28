"""
Políticas de negocio configurables.

Las reglas con comportamiento abierto (descuento de inventario en ventas,
liberación de cupo de crédito al cancelar, sobrepago) se eligen aquí y no
dentro de los servicios.
"""
from dataclasses import dataclass, replace

from ..config import settings as app_settings
from ..domain.enums import OverpaymentPolicy


@dataclass(frozen=True)
class BusinessPolicies:
    credit_limit: int = 2
    decrement_stock_on_sale: bool = True
    release_credit_on_cancel: bool = False
    overpayment_policy: OverpaymentPolicy = OverpaymentPolicy.REJECT
    low_stock_threshold: int = 10

    @classmethod
    def from_settings(cls, s=None) -> "BusinessPolicies":
        s = s or app_settings
        return cls(
            credit_limit=s.credit_limit,
            decrement_stock_on_sale=s.decrement_stock_on_sale,
            release_credit_on_cancel=s.release_credit_on_cancel,
            overpayment_policy=OverpaymentPolicy(s.overpayment_policy),
            low_stock_threshold=s.low_stock_threshold,
        )

    def with_overrides(self, **changes) -> "BusinessPolicies":
        return replace(self, **changes)
