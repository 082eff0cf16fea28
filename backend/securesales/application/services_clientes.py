"""
Servicios de Clientes, Crédito y Abonos
=======================================

Gestor de saldo y cupo de crédito:
- Una venta a crédito suma el total al saldo y ocupa un cupo (máximo
  BusinessPolicies.credit_limit, 2 por defecto)
- Un abono reduce el saldo; nunca lo deja negativo (se rechaza o se recorta
  según overpayment_policy)
- Cancelar una venta a crédito descuenta su total del saldo; el cupo solo se
  libera si release_credit_on_cancel está activo

Toda modificación de un cliente toma el lock del cliente y bloquea su fila
hasta el final de la transacción: dos ventas a crédito simultáneas no
pueden pasar ambas la validación del cupo.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from ..domain.enums import OverpaymentPolicy, PaymentMethod, SaleStatus
from ..domain.models import Client
from ..domain.models_payments import ClientPayment
from ..infrastructure.locks import client_key
from ..infrastructure.unit_of_work import UnitOfWork
from . import services_audit as audit
from .dtos import ClientIn, ClientUpdate
from .errors import CreditLimitExceededError, InvalidAmountError
from .policies import BusinessPolicies

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Convierte a Decimal con 2 decimales; rechaza valores no numéricos."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmountError(f"Monto inválido: {value!r}")
    if not amount.is_finite():
        raise InvalidAmountError(f"Monto inválido: {value!r}")
    return amount.quantize(CENT)


class ClientService:
    """
    Alta de clientes, control de cupo de crédito y registro de abonos.
    """

    def __init__(self, uow: UnitOfWork, policies: Optional[BusinessPolicies] = None):
        self.uow = uow
        self.policies = policies or BusinessPolicies.from_settings()

    # ===== CLIENTES =====

    def register_client(self, actor: audit.Actor, payload: ClientIn) -> Client:
        with self.uow.transaction():
            client = self.uow.clients.add(Client(
                **payload.model_dump(),
                balance=Decimal("0.00"),
                credits_count=0,
            ))
            self.uow.flush()
            audit.record(
                self.uow, actor, audit.EVENT_CLIENT_CREATED,
                f"Nuevo cliente registrado: {client.name} ({client.zone or 'Sin Zona'})",
                metadata={"client_id": client.id, "client_name": client.name},
                entity_type=audit.ENTITY_CLIENT, entity_id=client.id,
            )
        logger.info("Cliente %s registrado (id=%s)", client.name, client.id)
        return client

    def update_client(self, actor: audit.Actor, client_id: int, payload: ClientUpdate) -> Client:
        """Edita datos de contacto. Saldo y cupo no se editan por aquí."""
        changes = payload.model_dump(exclude_unset=True)
        with self.uow.transaction():
            client = self.lock_client(client_id)
            for key, value in changes.items():
                setattr(client, key, value)
            self.uow.flush()
            audit.record(
                self.uow, actor, audit.EVENT_CLIENT_UPDATED,
                f"Se modificaron los datos del cliente {client.name}",
                metadata={"client_id": client.id, "changes": changes},
                entity_type=audit.ENTITY_CLIENT, entity_id=client.id,
            )
        return client

    def get_client(self, client_id: int) -> Client:
        return self.uow.clients.get_or_raise(client_id)

    def list_clients(self) -> List[Client]:
        return self.uow.clients.list()

    def lock_client(self, client_id: int) -> Client:
        """Toma el lock del cliente y relee su fila con FOR UPDATE."""
        self.uow.locks.hold(client_key(client_id))
        return self.uow.clients.get_for_update(client_id)

    # ===== CRÉDITO =====

    def can_extend_credit(self, client: Client) -> bool:
        return (client.credits_count or 0) < self.policies.credit_limit

    def apply_credit_sale(self, client: Client, amount) -> Client:
        """
        Ocupa un cupo y suma el monto al saldo.
        Debe llamarse con el cliente bloqueado (lock_client) dentro de la transacción.
        """
        amount = to_money(amount)
        if amount < 0:
            raise InvalidAmountError("El total de una venta no puede ser negativo")
        if not self.can_extend_credit(client):
            raise CreditLimitExceededError(client.id, client.credits_count, self.policies.credit_limit)
        client.credits_count = (client.credits_count or 0) + 1
        client.balance = to_money(client.balance or 0) + amount
        self.uow.flush()
        return client

    def reverse_sale(self, client: Client, amount, was_credit: bool) -> Dict[str, Any]:
        """
        Compensa una venta cancelada.
        Solo las ventas a crédito afectan el saldo; el saldo nunca queda negativo.
        """
        result = {"balance_reversed": Decimal("0.00"), "credit_released": False}
        if not was_credit:
            return result

        amount = to_money(amount)
        current = to_money(client.balance or 0)
        reversed_amount = min(amount, current)
        if reversed_amount < amount:
            logger.warning(
                "Cancelación de %s para cliente %s excede su saldo %s; se deja en cero",
                amount, client.id, current,
            )
        client.balance = current - reversed_amount
        result["balance_reversed"] = reversed_amount

        if self.policies.release_credit_on_cancel and (client.credits_count or 0) > 0:
            client.credits_count -= 1
            result["credit_released"] = True

        self.uow.flush()
        return result

    # ===== ABONOS =====

    def register_payment(
        self,
        actor: audit.Actor,
        client_id: int,
        amount,
        payment_method: str = "efectivo",
        notes: Optional[str] = None,
        request_key: Optional[str] = None,
    ) -> ClientPayment:
        """
        Registra un abono del cliente.

        Args:
            actor: rol que registra el abono
            client_id: ID del cliente
            amount: monto (> 0)
            payment_method: efectivo, transferencia, etc.
            notes: observaciones
            request_key: clave de idempotencia; si ya se usó se devuelve el abono existente

        Returns:
            ClientPayment registrado (con el monto efectivamente aplicado)
        """
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidAmountError("El monto del abono debe ser mayor a cero")

        with self.uow.transaction():
            previous = self.uow.payments.by_request_key(request_key)
            if previous is not None:
                logger.info("Abono con clave %s ya registrado (id=%s)", request_key, previous.id)
                return previous

            client = self.lock_client(client_id)
            balance = to_money(client.balance or 0)
            requested = amount

            if amount > balance:
                if self.policies.overpayment_policy == OverpaymentPolicy.CLAMP and balance > 0:
                    amount = balance
                else:
                    logger.warning("Abono de %s rechazado: saldo del cliente %s es %s", amount, client_id, balance)
                    raise InvalidAmountError(
                        f"El abono ({amount}) excede el saldo pendiente ({balance}) del cliente {client.name}"
                    )

            payment = self.uow.payments.add(ClientPayment(
                client_id=client.id,
                amount=amount,
                payment_method=payment_method,
                notes=notes or "Abono manual desde módulo clientes",
                request_key=request_key,
            ))
            client.balance = balance - amount
            self.uow.flush()

            metadata = {"client_id": client.id, "amount": str(amount), "payment_id": payment.id,
                        "balance_after": str(client.balance)}
            if requested != amount:
                metadata["requested_amount"] = str(requested)
            audit.record(
                self.uow, actor, audit.EVENT_PAYMENT,
                f"Abono de ${amount} recibido de {client.name}",
                metadata=metadata,
                entity_type=audit.ENTITY_PAYMENT, entity_id=payment.id,
            )

        logger.info("Abono %s registrado para cliente %s", amount, client_id)
        return payment

    # ===== ESTADO DE CUENTA =====

    def client_statement(self, client_id: int) -> Dict[str, Any]:
        """
        Historial combinado de cargos (ventas a crédito completadas) y abonos,
        del más reciente al más antiguo.
        """
        client = self.uow.clients.get_or_raise(client_id)
        sales = self.uow.sales.list(status=SaleStatus.COMPLETADA.value, client_id=client_id)
        payments = self.uow.payments.for_client(client_id)

        movements = [
            {"type": "CARGO", "id": s.id, "amount": to_money(s.total_amount), "created_at": s.created_at,
             "description": f"Venta #{s.id}"}
            for s in sales if s.payment_method == PaymentMethod.CREDITO.value
        ] + [
            {"type": "ABONO", "id": p.id, "amount": to_money(p.amount), "created_at": p.created_at,
             "description": p.notes}
            for p in payments
        ]
        movements.sort(key=lambda m: (m["created_at"], m["type"] == "ABONO", m["id"]), reverse=True)

        return {
            "client_id": client.id,
            "name": client.name,
            "balance": to_money(client.balance or 0),
            "credits_count": client.credits_count,
            "credit_limit": self.policies.credit_limit,
            "credits_available": max(self.policies.credit_limit - (client.credits_count or 0), 0),
            "movements": movements,
        }
