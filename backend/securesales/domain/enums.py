from enum import Enum


class ActorRole(str, Enum):
    MASTER = "Master"
    ADMINISTRADOR = "Administrador"
    VENDEDOR = "Vendedor"
    PROMOTOR = "Promotor"
    SISTEMA = "Sistema"  # Procesos internos / sin usuario identificado


class PaymentMethod(str, Enum):
    CONTADO = "contado"
    CREDITO = "credito"


class OrderStatus(str, Enum):
    PENDIENTE = "Pendiente"
    ENTREGADO = "Entregado"
    CANCELADO = "Cancelado"


class SaleStatus(str, Enum):
    COMPLETADA = "Completada"
    CANCELADA = "Cancelada"
    ELIMINADA = "Eliminada"  # Terminal, solo desde Cancelada


class MovementType(str, Enum):
    RESURTIDO = "resurtido"    # Entrada manual (delta > 0)
    AJUSTE = "ajuste"          # Corrección / merma (delta < 0)
    VENTA = "venta"            # Consumo por venta o entrega de pedido
    DEVOLUCION = "devolucion"  # Reposición al cancelar una venta


class OverpaymentPolicy(str, Enum):
    REJECT = "reject"
    CLAMP = "clamp"


# Transiciones permitidas de la máquina de estados
ORDER_TRANSITIONS = {
    OrderStatus.PENDIENTE: {OrderStatus.ENTREGADO, OrderStatus.CANCELADO},
    OrderStatus.ENTREGADO: set(),
    OrderStatus.CANCELADO: set(),
}

SALE_TRANSITIONS = {
    SaleStatus.COMPLETADA: {SaleStatus.CANCELADA},
    SaleStatus.CANCELADA: {SaleStatus.ELIMINADA},
    SaleStatus.ELIMINADA: set(),
}
