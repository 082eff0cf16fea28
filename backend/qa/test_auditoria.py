"""
Tests del registro de auditoría

Cubre:
- Una entrada por comando exitoso, atribuida al rol que lo ejecuta
- Fallo al escribir auditoría: el comando completo se revierte
- Consulta con filtros
- Eliminación solo por Master, registrada en audit_deletions
"""
import pytest
from decimal import Decimal
from sqlalchemy.exc import OperationalError

from securesales.application.dtos import LineItemIn, OrderIn, SaleIn
from securesales.application.errors import (
    ConstraintViolationError, NotFoundError, PermissionDeniedError, StorageUnavailableError,
)
from securesales.application import services_audit as audit
from securesales.application.services_audit import AuditService, role_of
from securesales.domain.enums import ActorRole
from securesales.domain.models import Warehouse
from securesales.domain.models_audit import AuditDeletion, AuditLog
from securesales.domain.models_payments import ClientPayment


@pytest.fixture
def auditoria(uow):
    return AuditService(uow)


def _venta(ventas, cliente, almacen, producto, metodo="credito"):
    return ventas.create_direct_sale("Vendedor", SaleIn(
        client_id=cliente.id, warehouse_id=almacen.id,
        items=[LineItemIn(product_id=producto.id, quantity=1)],
        payment_method=metodo,
    ))


class TestUnaEntradaPorComando:

    def test_cada_comando_deja_su_evento(self, ventas, clientes, cliente, principal, producto, db):
        """Test: cada comando exitoso agrega exactamente una entrada de su tipo"""
        def ultimo_y_total():
            return db.query(AuditLog).order_by(AuditLog.id.desc()).first(), db.query(AuditLog).count()

        _, total = ultimo_y_total()
        sale = _venta(ventas, cliente, principal, producto)
        entry, nuevo_total = ultimo_y_total()
        assert (entry.event_type, nuevo_total) == (audit.EVENT_SALE_CREATED, total + 1)
        assert entry.actor_role == "Vendedor"
        assert entry.entity_type == audit.ENTITY_SALE
        assert entry.entity_id == sale.id

        total = nuevo_total
        clientes.register_payment("Vendedor", cliente.id, Decimal("10"))
        entry, nuevo_total = ultimo_y_total()
        assert (entry.event_type, nuevo_total) == (audit.EVENT_PAYMENT, total + 1)

        total = nuevo_total
        ventas.cancel_sale("Administrador", sale.id)
        entry, nuevo_total = ultimo_y_total()
        assert (entry.event_type, nuevo_total) == (audit.EVENT_SALE_CANCELLED, total + 1)
        assert entry.actor_role == "Administrador"

        total = nuevo_total
        order = ventas.create_order("Promotor", OrderIn(
            client_id=cliente.id, warehouse_id=principal.id,
            items=[LineItemIn(product_id=producto.id, quantity=1)],
        ))
        entry, nuevo_total = ultimo_y_total()
        assert (entry.event_type, nuevo_total) == (audit.EVENT_ORDER_CREATED, total + 1)
        assert entry.metadata_["folio"] == order.folio

    def test_comando_fallido_no_deja_entrada(self, ventas, cliente, principal, producto, audit_count):
        antes = audit_count()
        with pytest.raises(NotFoundError):
            ventas.cancel_sale("Administrador", 404)
        assert audit_count() == antes

    def test_sin_actor_se_registra_como_sistema(self, almacenes, db):
        entry = db.query(AuditLog).filter_by(event_type=audit.EVENT_WAREHOUSE_CREATED).one()
        assert entry.actor_role == ActorRole.SISTEMA.value


class TestFalloDeAuditoria:

    def test_auditoria_no_disponible_revierte_el_abono(self, uow, clientes, ventas, cliente, principal,
                                                     producto, db, monkeypatch):
        """Test: si la auditoría no se puede escribir, el abono no se aplica"""
        _venta(ventas, cliente, principal, producto)
        balance = clientes.get_client(cliente.id).balance

        def falla(obj):
            raise OperationalError("INSERT INTO audit_logs", {}, Exception("disk I/O error"))

        monkeypatch.setattr(uow.audit, "add", falla)
        with pytest.raises(StorageUnavailableError):
            clientes.register_payment("Vendedor", cliente.id, Decimal("10"))

        assert clientes.get_client(cliente.id).balance == balance
        assert db.query(ClientPayment).count() == 0

    def test_auditoria_no_disponible_revierte_la_venta(self, uow, ventas, inventario, cliente, principal,
                                                     producto, monkeypatch):
        def falla(obj):
            raise OperationalError("INSERT INTO audit_logs", {}, Exception("database is locked"))

        monkeypatch.setattr(uow.audit, "add", falla)
        with pytest.raises(StorageUnavailableError):
            _venta(ventas, cliente, principal, producto)

        monkeypatch.undo()
        assert ventas.list_sales() == []
        assert inventario.get_quantity(producto.id, principal.id) == 10

    def test_restriccion_violada_no_es_falla_de_almacenamiento(self, uow, almacenes, db, audit_count):
        """Test: un duplicado pendiente en el mismo flush sale como ConstraintViolationError"""
        antes = audit_count()
        with pytest.raises(ConstraintViolationError):
            with uow.transaction():
                uow.warehouses.add(Warehouse(name="Principal"))
                audit.record(uow, "Master", "Alta de Almacén", "Almacén Principal duplicado")

        assert audit_count() == antes
        assert db.query(Warehouse).filter_by(name="Principal").count() == 1


class TestConsulta:

    def test_filtros(self, auditoria, ventas, clientes, cliente, principal, producto):
        _venta(ventas, cliente, principal, producto)
        clientes.register_payment("Vendedor", cliente.id, Decimal("5"))

        ventas_log = auditoria.list_entries(event_type=audit.EVENT_SALE_CREATED)
        assert ventas_log["total"] == 1
        assert ventas_log["items"][0].event_type == audit.EVENT_SALE_CREATED

        por_rol = auditoria.list_entries(actor_role="vendedor")
        assert {e.event_type for e in por_rol["items"]} == {audit.EVENT_SALE_CREATED, audit.EVENT_PAYMENT}

        busqueda = auditoria.list_entries(search="Abono")
        assert busqueda["total"] == 1

        pagina = auditoria.list_entries(limit=1)
        assert len(pagina["items"]) == 1
        assert pagina["total"] > 1

    def test_tipos_de_evento(self, auditoria, producto):
        tipos = auditoria.event_types()
        assert audit.EVENT_PRODUCT_CREATED in tipos
        assert audit.EVENT_RESUPPLY in tipos
        assert tipos == sorted(tipos)


class TestEliminacion:

    def test_solo_master(self, auditoria, cliente, db):
        entry = db.query(AuditLog).first()
        with pytest.raises(PermissionDeniedError):
            auditoria.delete_entry("Administrador", entry.id)
        assert db.query(AuditLog).filter_by(id=entry.id).count() == 1
        assert db.query(AuditDeletion).count() == 0

    def test_eliminacion_queda_registrada(self, auditoria, cliente, db):
        """Test: la entrada eliminada se copia a audit_deletions"""
        entry = db.query(AuditLog).filter_by(event_type=audit.EVENT_CLIENT_CREATED).one()
        entry_id, description = entry.id, entry.description

        deletion = auditoria.delete_entry(ActorRole.MASTER, entry_id)

        assert db.query(AuditLog).filter_by(id=entry_id).count() == 0
        assert deletion.deleted_by_role == "Master"
        assert deletion.audit_log_id == entry_id
        assert deletion.original_event_type == audit.EVENT_CLIENT_CREATED
        assert deletion.original_description == description
        assert [d.id for d in auditoria.deletions()] == [deletion.id]

    def test_entrada_inexistente(self, auditoria):
        with pytest.raises(NotFoundError):
            auditoria.delete_entry("Master", 9999)


class TestRoles:

    @pytest.mark.parametrize("actor,esperado", [
        (None, "Sistema"),
        ("", "Sistema"),
        ("master", "Master"),
        (" VENDEDOR ", "Vendedor"),
        (ActorRole.PROMOTOR, "Promotor"),
        ("Cajero", "Cajero"),
    ])
    def test_role_of(self, actor, esperado):
        assert role_of(actor) == esperado
