"""
Tests de API - Clientes, inventario, pedidos, ventas, reportes y auditoría
"""
import pytest


@pytest.fixture
def almacen_id(client):
    r = client.get("/inventarios/almacenes")
    return next(w["id"] for w in r.json() if w["name"] == "Principal")


@pytest.fixture
def producto_id(client, master, almacen_id):
    r = client.post("/inventarios/productos", json={
        "name": "Labial Rojo", "price": "10.00", "purchase_price": "4.00",
    }, headers=master)
    assert r.status_code == 201
    pid = r.json()["id"]
    r = client.post("/inventarios/ajustes", json={
        "product_id": pid, "warehouse_id": almacen_id, "delta": 5, "reason": "Resurtido inicial",
    }, headers=master)
    assert r.status_code == 201
    return pid


@pytest.fixture
def cliente_id(client, vendedor):
    r = client.post("/clientes", json={"name": "Estética Rosa", "zone": "Centro"}, headers=vendedor)
    assert r.status_code == 201
    return r.json()["id"]


def _venta(client, headers, cliente_id, almacen_id, producto_id, qty=1, metodo="credito"):
    return client.post("/ventas", json={
        "client_id": cliente_id, "warehouse_id": almacen_id,
        "items": [{"product_id": producto_id, "quantity": qty}],
        "payment_method": metodo,
    }, headers=headers)


class TestFlujoCredito:

    def test_venta_abono_y_estado_de_cuenta(self, client, vendedor, cliente_id, almacen_id, producto_id):
        r = _venta(client, vendedor, cliente_id, almacen_id, producto_id, qty=2)
        assert r.status_code == 201
        assert r.json()["total_amount"] == "20.00"
        assert r.json()["items"][0]["unit_cost"] == "4.00"

        r = client.post(f"/clientes/{cliente_id}/abonos", json={"amount": "5"}, headers=vendedor)
        assert r.status_code == 201

        r = client.get(f"/clientes/{cliente_id}/estado-cuenta")
        body = r.json()
        assert body["balance"] == "15.00"
        assert body["credits_available"] == 1
        assert len(body["movements"]) == 2

    def test_tercer_credito_409(self, client, vendedor, cliente_id, almacen_id, producto_id):
        assert _venta(client, vendedor, cliente_id, almacen_id, producto_id).status_code == 201
        assert _venta(client, vendedor, cliente_id, almacen_id, producto_id).status_code == 201
        r = _venta(client, vendedor, cliente_id, almacen_id, producto_id)
        assert r.status_code == 409
        assert r.json()["error"] == "CreditLimitExceededError"

    def test_sobrepago_422(self, client, vendedor, cliente_id):
        r = client.post(f"/clientes/{cliente_id}/abonos", json={"amount": "1"}, headers=vendedor)
        assert r.status_code == 422
        assert r.json()["error"] == "InvalidAmountError"


class TestErrores:

    def test_no_encontrado_404(self, client):
        r = client.get("/clientes/9999")
        assert r.status_code == 404
        assert r.json()["error"] == "NotFoundError"

    def test_existencia_insuficiente_409(self, client, master, almacen_id, producto_id):
        r = client.post("/inventarios/ajustes", json={
            "product_id": producto_id, "warehouse_id": almacen_id, "delta": -6, "reason": "Merma",
        }, headers=master)
        assert r.status_code == 409
        assert r.json()["error"] == "InsufficientStockError"

    def test_eliminar_venta_requiere_master(self, client, vendedor, master, cliente_id, almacen_id, producto_id):
        sale_id = _venta(client, vendedor, cliente_id, almacen_id, producto_id, metodo="contado").json()["id"]
        assert client.post(f"/ventas/{sale_id}/cancelar", headers=vendedor).status_code == 200
        assert client.delete(f"/ventas/{sale_id}", headers=vendedor).status_code == 403

        r = client.delete(f"/ventas/{sale_id}", headers=master)
        assert r.status_code == 200
        assert r.json()["status"] == "Eliminada"

    def test_transicion_invalida_409(self, client, vendedor, cliente_id, almacen_id, producto_id):
        sale_id = _venta(client, vendedor, cliente_id, almacen_id, producto_id, metodo="contado").json()["id"]
        client.post(f"/ventas/{sale_id}/cancelar", headers=vendedor)
        r = client.post(f"/ventas/{sale_id}/cancelar", headers=vendedor)
        assert r.status_code == 409
        assert r.json()["error"] == "InvalidStateTransitionError"


class TestPedidosAPI:

    def test_pedido_entregado(self, client, vendedor, cliente_id, almacen_id, producto_id):
        r = client.post("/pedidos", json={
            "client_id": cliente_id, "warehouse_id": almacen_id,
            "items": [{"product_id": producto_id, "quantity": 3}],
        }, headers=vendedor)
        assert r.status_code == 201
        order = r.json()
        assert order["status"] == "Pendiente"
        assert order["total_amount"] == "30.00"

        r = client.post(f"/pedidos/{order['id']}/entregar", headers=vendedor)
        assert r.status_code == 200
        assert r.json()["payment_method"] == "credito"

        assert client.get(f"/pedidos/{order['id']}").json()["status"] == "Entregado"
        stock = client.get(f"/inventarios/almacenes/{almacen_id}/stock").json()
        assert next(s for s in stock if s["product_id"] == producto_id)["quantity"] == 2


class TestReportesYAuditoria:

    def test_tablero(self, client, vendedor, cliente_id, almacen_id, producto_id):
        _venta(client, vendedor, cliente_id, almacen_id, producto_id, qty=2)
        body = client.get("/reportes/tablero").json()
        assert body["total_sales"] == 20
        assert body["receivables_total"] == 20
        assert body["sales_by_zone"][0]["name"] == "Centro"

    def test_auditoria_requiere_rol(self, client, vendedor, master, cliente_id):
        assert client.get("/auditoria", headers=vendedor).status_code == 403
        r = client.get("/auditoria", headers=master)
        assert r.status_code == 200
        assert r.json()["total"] >= 1

    def test_eliminar_auditoria(self, client, master, cliente_id):
        entry = client.get("/auditoria", params={"event_type": "Alta de Cliente"}, headers=master).json()["items"][0]
        assert client.delete(f"/auditoria/{entry['id']}", headers={"X-Actor-Role": "Administrador"}).status_code == 403

        r = client.delete(f"/auditoria/{entry['id']}", headers=master)
        assert r.status_code == 200
        assert r.json()["audit_log_id"] == entry["id"]

        deletions = client.get("/auditoria/eliminaciones", headers=master).json()
        assert [d["audit_log_id"] for d in deletions] == [entry["id"]]
