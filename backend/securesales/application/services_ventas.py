"""
Servicios de Pedidos y Ventas
=============================

Máquina de estados:
- Pedido: Pendiente -> Entregado | Cancelado (estados finales)
- Venta:  Completada -> Cancelada -> Eliminada (Eliminada solo desde Cancelada)

Cada comando es una transacción con UNA entrada de auditoría:
- create_order: registra el pedido, sin tocar saldo ni inventario
- confirm_delivery: convierte el pedido en venta a crédito
- cancel_order: solo pedidos pendientes
- create_direct_sale: venta de mostrador (contado o crédito)
- cancel_sale: revierte saldo y, si la venta descontó inventario, lo repone
- delete_sale: solo Master y solo ventas canceladas; la fila se conserva
  con estado Eliminada para que los reportes cuadren

El costo de cada línea (unit_cost) se copia de Product.purchase_price al
escribir la línea y no vuelve a calcularse.
"""
import logging
import random
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from ..domain.enums import (
    ORDER_TRANSITIONS, SALE_TRANSITIONS, OrderStatus, PaymentMethod, SaleStatus,
)
from ..domain.models import Product
from ..domain.models_ventas import Order, OrderItem, Sale, SaleItem
from ..infrastructure.locks import stock_key
from ..infrastructure.unit_of_work import UnitOfWork
from . import services_audit as audit
from .dtos import LineItemIn, OrderIn, SaleIn
from .errors import (
    ConstraintViolationError, CreditLimitExceededError, InvalidAmountError,
    InvalidStateTransitionError, PermissionDeniedError,
)
from .policies import BusinessPolicies
from .services_clientes import ClientService, to_money
from .services_inventario import InventarioService

logger = logging.getLogger(__name__)

REF_SALE = "VENTA"
FOLIO_ATTEMPTS = 20


def _check_order_transition(order: Order, target: OrderStatus) -> None:
    current = OrderStatus(order.status)
    if target not in ORDER_TRANSITIONS[current]:
        raise InvalidStateTransitionError("Pedido", order.id, current.value, target.value)


def _check_sale_transition(sale: Sale, target: SaleStatus) -> None:
    current = SaleStatus(sale.status)
    if target not in SALE_TRANSITIONS[current]:
        raise InvalidStateTransitionError("Venta", sale.id, current.value, target.value)


class VentasService:
    """
    Flujo de pedidos y ventas. Coordina saldo (ClientService) e
    inventario (InventarioService) dentro de la misma UnitOfWork.
    """

    def __init__(self, uow: UnitOfWork, policies: Optional[BusinessPolicies] = None):
        self.uow = uow
        self.policies = policies or BusinessPolicies.from_settings()
        self.clients = ClientService(uow, self.policies)
        self.inventario = InventarioService(uow, self.policies)

    # ===== Helpers =====

    def _priced_lines(self, items: List[LineItemIn]) -> Tuple[List[Tuple[Product, int]], Decimal]:
        """Valida las líneas y calcula el total con los precios vigentes."""
        if not items:
            raise InvalidAmountError("La operación no tiene productos")

        lines = []
        total = Decimal("0.00")
        for item in items:
            if isinstance(item.quantity, bool) or item.quantity <= 0:
                raise InvalidAmountError(f"Cantidad inválida para producto {item.product_id}: {item.quantity}")
            product = self.uow.products.get_or_raise(item.product_id)
            lines.append((product, item.quantity))
            total += to_money(product.price) * item.quantity
        return lines, to_money(total)

    def _next_folio(self) -> str:
        """Folio legible ORD-NNNN, único."""
        for _ in range(FOLIO_ATTEMPTS):
            folio = f"ORD-{random.randint(0, 9999):04d}"
            if self.uow.orders.by_folio(folio) is None:
                return folio
        # Rango de 4 dígitos saturado: ampliar
        for _ in range(FOLIO_ATTEMPTS):
            folio = f"ORD-{random.randint(10000, 999999):06d}"
            if self.uow.orders.by_folio(folio) is None:
                return folio
        raise ConstraintViolationError("No se pudo generar un folio único")

    def _lock_stock_rows(self, warehouse_id: int, product_ids) -> None:
        """
        Toma los locks de existencia antes de cualquier escritura del comando.
        Orden: cliente, existencias ordenadas, escrituras en BD.
        """
        self.uow.locks.hold_many(stock_key(pid, warehouse_id) for pid in product_ids)

    def _consume_sale_stock(self, sale: Sale) -> None:
        for item in sale.items:
            self.inventario.consume(item.product_id, sale.warehouse_id, item.quantity, REF_SALE, sale.id)
        sale.stock_consumed = True

    # ===== PEDIDOS =====

    def create_order(self, actor: audit.Actor, payload: OrderIn) -> Order:
        """
        Levanta un pedido Pendiente. No afecta saldo ni inventario hasta la entrega.
        """
        with self.uow.transaction():
            previous = self.uow.orders.by_request_key(payload.request_key)
            if previous is not None:
                logger.info("Pedido con clave %s ya registrado (%s)", payload.request_key, previous.folio)
                return previous

            client = self.uow.clients.get_or_raise(payload.client_id)
            warehouse = self.uow.warehouses.get_or_raise(payload.warehouse_id)
            lines, total = self._priced_lines(payload.items)

            order = self.uow.orders.add(Order(
                folio=self._next_folio(),
                client_id=client.id,
                warehouse_id=warehouse.id,
                total_amount=total,
                status=OrderStatus.PENDIENTE.value,
                request_key=payload.request_key,
            ))
            for product, qty in lines:
                order.items.append(OrderItem(product_id=product.id, quantity=qty, unit_price=to_money(product.price)))
            self.uow.flush()

            audit.record(
                self.uow, actor, audit.EVENT_ORDER_CREATED,
                f"Se levantó el pedido {order.folio} para {client.name} por ${total}",
                metadata={"order_id": order.id, "folio": order.folio, "client": client.name, "amount": str(total)},
                entity_type=audit.ENTITY_ORDER, entity_id=order.id,
            )

        logger.info("Pedido %s creado para cliente %s", order.folio, client.id)
        return order

    def confirm_delivery(self, actor: audit.Actor, order_id: int) -> Sale:
        """
        Entrega un pedido Pendiente: lo marca Entregado y lo registra como venta a crédito.

        Returns:
            Sale generada
        """
        with self.uow.transaction():
            order = self.uow.orders.get_for_update(order_id)
            _check_order_transition(order, OrderStatus.ENTREGADO)

            client = self.clients.lock_client(order.client_id)
            if not self.clients.can_extend_credit(client):
                logger.warning("Entrega de %s rechazada: cliente %s sin cupo", order.folio, client.id)
                raise CreditLimitExceededError(client.id, client.credits_count, self.policies.credit_limit)
            if self.policies.decrement_stock_on_sale:
                self._lock_stock_rows(order.warehouse_id, [i.product_id for i in order.items])

            total = to_money(order.total_amount)
            sale = self.uow.sales.add(Sale(
                client_id=client.id,
                warehouse_id=order.warehouse_id,
                order_id=order.id,
                total_amount=total,
                payment_method=PaymentMethod.CREDITO.value,
                status=SaleStatus.COMPLETADA.value,
                seller_role=audit.role_of(actor),
            ))
            for item in order.items:
                product = self.uow.products.get_or_raise(item.product_id)
                sale.items.append(SaleItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=to_money(item.unit_price),
                    unit_cost=to_money(product.purchase_price or 0),
                ))
            self.uow.flush()

            self.clients.apply_credit_sale(client, total)
            if self.policies.decrement_stock_on_sale:
                self._consume_sale_stock(sale)

            order.status = OrderStatus.ENTREGADO.value
            order.sale_id = sale.id
            self.uow.flush()

            audit.record(
                self.uow, actor, audit.EVENT_ORDER_DELIVERED,
                f"Se entregó y procesó como venta el pedido {order.folio} del cliente {client.name}",
                metadata={"order_id": order.id, "sale_id": sale.id, "folio": order.folio,
                          "amount": str(total), "stock_consumed": sale.stock_consumed},
                entity_type=audit.ENTITY_ORDER, entity_id=order.id,
            )

        logger.info("Pedido %s entregado; venta %s", order.folio, sale.id)
        return sale

    def cancel_order(self, actor: audit.Actor, order_id: int) -> Order:
        """Cancela un pedido Pendiente. Sin efecto en saldo ni inventario."""
        with self.uow.transaction():
            order = self.uow.orders.get_for_update(order_id)
            _check_order_transition(order, OrderStatus.CANCELADO)
            order.status = OrderStatus.CANCELADO.value
            self.uow.flush()

            client_name = order.client.name if order.client else None
            audit.record(
                self.uow, actor, audit.EVENT_ORDER_CANCELLED,
                f"Se canceló el pedido {order.folio} del cliente {client_name}",
                metadata={"order_id": order.id, "folio": order.folio},
                entity_type=audit.ENTITY_ORDER, entity_id=order.id,
            )
        logger.info("Pedido %s cancelado", order.folio)
        return order

    def get_order(self, order_id: int) -> Order:
        return self.uow.orders.get_or_raise(order_id)

    def list_orders(self, status: Optional[str] = None) -> List[Order]:
        return self.uow.orders.list(status)

    # ===== VENTAS =====

    def create_direct_sale(self, actor: audit.Actor, payload: SaleIn) -> Sale:
        """
        Venta de mostrador.
        A crédito exige cupo disponible (CreditLimitExceededError en otro caso).
        """
        method = PaymentMethod(payload.payment_method)
        is_credit = method == PaymentMethod.CREDITO

        with self.uow.transaction():
            previous = self.uow.sales.by_request_key(payload.request_key)
            if previous is not None:
                logger.info("Venta con clave %s ya registrada (id=%s)", payload.request_key, previous.id)
                return previous

            client = self.clients.lock_client(payload.client_id)
            if is_credit and not self.clients.can_extend_credit(client):
                logger.warning("Venta a crédito rechazada: cliente %s sin cupo", client.id)
                raise CreditLimitExceededError(client.id, client.credits_count, self.policies.credit_limit)
            if self.policies.decrement_stock_on_sale:
                self._lock_stock_rows(payload.warehouse_id, [i.product_id for i in payload.items])

            warehouse = self.uow.warehouses.get_or_raise(payload.warehouse_id)
            lines, total = self._priced_lines(payload.items)

            sale = self.uow.sales.add(Sale(
                client_id=client.id,
                warehouse_id=warehouse.id,
                total_amount=total,
                payment_method=method.value,
                status=SaleStatus.COMPLETADA.value,
                seller_role=audit.role_of(actor),
                request_key=payload.request_key,
            ))
            for product, qty in lines:
                sale.items.append(SaleItem(
                    product_id=product.id,
                    quantity=qty,
                    unit_price=to_money(product.price),
                    unit_cost=to_money(product.purchase_price or 0),
                ))
            self.uow.flush()

            if is_credit:
                self.clients.apply_credit_sale(client, total)
            if self.policies.decrement_stock_on_sale:
                self._consume_sale_stock(sale)
            self.uow.flush()

            audit.record(
                self.uow, actor, audit.EVENT_SALE_CREATED,
                f"Venta registrada para {client.name} por ${total} ({method.value.upper()})",
                metadata={"sale_id": sale.id, "client": client.name, "amount": str(total),
                          "method": method.value, "stock_consumed": sale.stock_consumed},
                entity_type=audit.ENTITY_SALE, entity_id=sale.id,
            )

        logger.info("Venta %s registrada (%s, %s)", sale.id, method.value, total)
        return sale

    def cancel_sale(self, actor: audit.Actor, sale_id: int) -> Sale:
        """
        Cancela una venta Completada.
        - Crédito: descuenta el total del saldo (sin bajar de cero)
        - Si la venta descontó inventario, repone cada línea
        """
        with self.uow.transaction():
            sale = self.uow.sales.get_for_update(sale_id)
            _check_sale_transition(sale, SaleStatus.CANCELADA)

            was_credit = sale.payment_method == PaymentMethod.CREDITO.value
            client = self.clients.lock_client(sale.client_id)
            if sale.stock_consumed:
                self._lock_stock_rows(sale.warehouse_id, [i.product_id for i in sale.items])
            reversal = self.clients.reverse_sale(client, sale.total_amount, was_credit)

            restored: Dict[int, int] = {}
            if sale.stock_consumed:
                for item in sale.items:
                    self.inventario.restore(item.product_id, sale.warehouse_id, item.quantity, REF_SALE, sale.id)
                    restored[item.product_id] = restored.get(item.product_id, 0) + item.quantity

            sale.status = SaleStatus.CANCELADA.value
            sale.credit_slot_released = reversal["credit_released"]
            self.uow.flush()

            audit.record(
                self.uow, actor, audit.EVENT_SALE_CANCELLED,
                f"Se canceló la venta #{sale.id} del cliente {client.name} por un monto de ${to_money(sale.total_amount)}",
                metadata={
                    "sale_id": sale.id,
                    "client": client.name,
                    "amount": str(to_money(sale.total_amount)),
                    "balance_reversed": str(reversal["balance_reversed"]),
                    "credit_released": reversal["credit_released"],
                    "stock_restored": {str(k): v for k, v in restored.items()},
                },
                entity_type=audit.ENTITY_SALE, entity_id=sale.id,
            )

        logger.info("Venta %s cancelada", sale_id)
        return sale

    def delete_sale(self, actor: audit.Actor, sale_id: int) -> Sale:
        """
        Elimina una venta. Solo Master y solo desde Cancelada, así los
        efectos de saldo e inventario ya fueron compensados.
        """
        if not audit.is_master(actor):
            logger.warning("Rol %s intentó eliminar la venta %s", audit.role_of(actor), sale_id)
            raise PermissionDeniedError("Solo el perfil Master puede eliminar ventas.")

        with self.uow.transaction():
            sale = self.uow.sales.get_for_update(sale_id)
            _check_sale_transition(sale, SaleStatus.ELIMINADA)
            sale.status = SaleStatus.ELIMINADA.value
            self.uow.flush()

            audit.record(
                self.uow, actor, audit.EVENT_SALE_DELETED,
                f"Se eliminó permanentemente el registro de la venta #{sale.id}",
                metadata={"sale_id": sale.id},
                entity_type=audit.ENTITY_SALE, entity_id=sale.id,
            )
        logger.info("Venta %s eliminada", sale_id)
        return sale

    def get_sale(self, sale_id: int) -> Sale:
        return self.uow.sales.get_or_raise(sale_id)

    def list_sales(self, status: Optional[str] = None, client_id: Optional[int] = None) -> List[Sale]:
        return self.uow.sales.list(status, client_id)
