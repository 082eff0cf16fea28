"""
Tests de las consultas del tablero
"""
import pytest
from datetime import date, timedelta
from decimal import Decimal

from securesales.application.dtos import ClientIn, LineItemIn, OrderIn, SaleIn
from securesales.application.queries_reports import ReportQuery


@pytest.fixture
def reportes(uow):
    return ReportQuery(uow)


def _venta(ventas, cliente, almacen, producto, qty=1, metodo="contado"):
    return ventas.create_direct_sale("Vendedor", SaleIn(
        client_id=cliente.id, warehouse_id=almacen.id,
        items=[LineItemIn(product_id=producto.id, quantity=qty)],
        payment_method=metodo,
    ))


class TestSinDatos:
    """Sin ventas ni clientes: ceros y listas vacías"""

    def test_tablero_vacio(self, reportes):
        summary = reportes.dashboard_summary()
        assert summary == {
            "total_sales": Decimal("0.00"),
            "total_cost": Decimal("0.00"),
            "utility": Decimal("0.00"),
            "sales_count": 0,
            "receivables_total": Decimal("0.00"),
            "pending_orders": 0,
        }
        assert reportes.sales_by_zone() == []
        assert reportes.daily_sales() == []
        assert reportes.top_clients() == []
        assert reportes.top_products() == []
        assert reportes.debtor_clients() == []
        assert reportes.sales_history() == []


class TestTotales:

    def test_solo_ventas_completadas(self, reportes, ventas, cliente, principal, producto, producto_b):
        _venta(ventas, cliente, principal, producto, qty=2)          # 200, costo 120
        _venta(ventas, cliente, principal, producto_b, qty=1)        # 50, costo 20
        cancelada = _venta(ventas, cliente, principal, producto, qty=1)
        ventas.cancel_sale("Administrador", cancelada.id)

        summary = reportes.dashboard_summary()
        assert summary["total_sales"] == Decimal("250.00")
        assert summary["total_cost"] == Decimal("140.00")
        assert summary["utility"] == Decimal("110.00")
        assert summary["sales_count"] == 2

    def test_eliminadas_fuera_de_totales(self, reportes, ventas, cliente, principal, producto):
        sale = _venta(ventas, cliente, principal, producto)
        ventas.cancel_sale("Administrador", sale.id)
        ventas.delete_sale("Master", sale.id)
        assert reportes.total_sales() == Decimal("0.00")
        assert [s["status"] for s in reportes.sales_history()] == ["Eliminada"]

    def test_cuentas_por_cobrar(self, reportes, ventas, clientes, cliente, principal, producto, producto_b):
        otro = clientes.register_client("Promotor", ClientIn(name="Tienda Sin Zona"))
        _venta(ventas, cliente, principal, producto, metodo="credito")
        _venta(ventas, otro, principal, producto_b, metodo="credito")
        clientes.register_payment("Vendedor", otro.id, Decimal("50"))

        assert reportes.receivables_total() == Decimal("100.00")
        debtors = reportes.debtor_clients()
        assert [d["client_id"] for d in debtors] == [cliente.id]

    def test_pedidos_pendientes(self, reportes, ventas, cliente, principal, producto):
        ventas.create_order("Promotor", OrderIn(client_id=cliente.id, warehouse_id=principal.id,
                                                items=[LineItemIn(product_id=producto.id, quantity=1)]))
        assert reportes.dashboard_summary()["pending_orders"] == 1


class TestAgrupaciones:

    def test_por_zona(self, reportes, ventas, clientes, cliente, principal, producto, producto_b):
        otro = clientes.register_client("Promotor", ClientIn(name="Tienda Sin Zona"))
        _venta(ventas, cliente, principal, producto)
        _venta(ventas, otro, principal, producto_b)

        assert reportes.sales_by_zone() == [
            {"name": "Centro", "value": Decimal("100.00")},
            {"name": "Sin Zona", "value": Decimal("50.00")},
        ]

    def test_por_dia(self, reportes, ventas, cliente, principal, producto, producto_b):
        _venta(ventas, cliente, principal, producto)
        _venta(ventas, cliente, principal, producto_b)
        today = date.today()

        assert reportes.daily_sales() == [{"date": today.isoformat(), "amount": Decimal("150.00")}]
        assert reportes.daily_sales(since=today + timedelta(days=1)) == []

    def test_rankings(self, reportes, ventas, clientes, cliente, principal, producto, producto_b):
        otro = clientes.register_client("Promotor", ClientIn(name="Tienda Norte", zone="Norte"))
        _venta(ventas, cliente, principal, producto_b, qty=1)
        _venta(ventas, otro, principal, producto, qty=1)
        _venta(ventas, otro, principal, producto_b, qty=3)

        top = reportes.top_clients()
        assert [(c["client_id"], c["amount"]) for c in top] == [(otro.id, Decimal("250.00")),
                                                               (cliente.id, Decimal("50.00"))]

        products = reportes.top_products(limit=1)
        assert products == [{"product_id": producto_b.id, "name": producto_b.name,
                             "sales": Decimal("200.00"), "units": 4}]
