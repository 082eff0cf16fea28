"""
Errores del núcleo transaccional.

Todos se propagan al llamador; el núcleo no reintenta ni los silencia.
"""


class LedgerError(Exception):
    """Excepción base para errores de operaciones del punto de venta"""
    pass


class NotFoundError(LedgerError):
    """Cliente, producto, almacén, pedido o venta inexistente"""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} no encontrado")


class ConstraintViolationError(LedgerError):
    """Violación de unicidad o de integridad referencial"""
    pass


class InsufficientStockError(LedgerError):
    """El ajuste dejaría la existencia en negativo"""

    def __init__(self, product_id: int, warehouse_id: int, available: int, requested: int):
        self.product_id = product_id
        self.warehouse_id = warehouse_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Stock insuficiente para producto {product_id} en almacén {warehouse_id}. "
            f"Disponible: {available}, Solicitado: {requested}"
        )


class CreditLimitExceededError(LedgerError):
    """El cliente ya tiene el máximo de créditos permitidos"""

    def __init__(self, client_id: int, credits_count: int, credit_limit: int):
        self.client_id = client_id
        self.credits_count = credits_count
        self.credit_limit = credit_limit
        super().__init__(
            f"El cliente {client_id} alcanzó el límite de crédito ({credits_count}/{credit_limit})"
        )


class InvalidAmountError(LedgerError):
    """Monto o cantidad no permitidos (cero, negativos o sobrepago)"""
    pass


class InvalidStateTransitionError(LedgerError):
    """Transición no permitida en la máquina de estados de pedidos o ventas"""

    def __init__(self, entity: str, entity_id: int, current: str, target: str):
        self.entity = entity
        self.entity_id = entity_id
        self.current = current
        self.target = target
        super().__init__(f"{entity} {entity_id}: no se puede pasar de '{current}' a '{target}'")


class PermissionDeniedError(LedgerError):
    """Operación reservada a un rol superior"""
    pass


class StorageUnavailableError(LedgerError):
    """Falla del almacenamiento. Aborta toda la operación."""
    pass
