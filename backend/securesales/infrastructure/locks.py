"""
Locks por clave para serializar escrituras dentro del proceso.

Complementa el bloqueo de fila (SELECT ... FOR UPDATE) que en SQLite no
existe: dos comandos sobre el mismo cliente o el mismo (producto, almacén)
nunca se intercalan. Cada UnitOfWork libera sus locks al terminar la
transacción.
"""
import threading
from typing import Dict, Hashable, List


class KeyedLocks:
    """Registro de RLock por clave (cliente, existencia)"""

    def __init__(self):
        self._locks: Dict[Hashable, threading.RLock] = {}
        self._global_lock = threading.Lock()

    def _get_lock(self, key: Hashable) -> threading.RLock:
        """Obtiene o crea el lock de una clave"""
        with self._global_lock:
            if key not in self._locks:
                self._locks[key] = threading.RLock()
            return self._locks[key]

    def acquire(self, key: Hashable) -> threading.RLock:
        lock = self._get_lock(key)
        lock.acquire()
        return lock


class LockScope:
    """Locks tomados por una transacción; se liberan en orden inverso."""

    def __init__(self, registry: KeyedLocks):
        self.registry = registry
        self._held: List[threading.RLock] = []

    def hold(self, key: Hashable) -> None:
        self._held.append(self.registry.acquire(key))

    def hold_many(self, keys) -> None:
        # Orden fijo para evitar interbloqueos entre comandos
        for key in sorted(set(keys)):
            self.hold(key)

    def release_all(self) -> None:
        while self._held:
            self._held.pop().release()


def client_key(client_id: int):
    return ("client", client_id)


def stock_key(product_id: int, warehouse_id: int):
    return ("stock", product_id, warehouse_id)


# Registro compartido por todo el proceso
registry = KeyedLocks()
