"""
Queries para el Tablero y Reportes
Solo consultas - NO modifican datos

Solo cuentan ventas Completadas: las canceladas y eliminadas quedan fuera
de todos los totales. Sin datos se devuelven ceros y listas vacías.
"""
from collections import OrderedDict
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Optional
from sqlalchemy import func, desc

from ..domain.enums import OrderStatus, SaleStatus
from ..domain.models import Client, Product
from ..domain.models_ventas import Sale, SaleItem
from ..infrastructure.unit_of_work import UnitOfWork

ZERO = Decimal("0.00")
NO_ZONE = "Sin Zona"


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(Decimal("0.01"))


class ReportQuery:
    """
    Agregaciones de solo lectura para el tablero.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.db

    def _completed_sales(self):
        return self.db.query(Sale).filter(Sale.status == SaleStatus.COMPLETADA.value)

    def total_sales(self) -> Decimal:
        total = (
            self.db.query(func.sum(Sale.total_amount))
            .filter(Sale.status == SaleStatus.COMPLETADA.value)
            .scalar()
        )
        return _money(total)

    def total_cost(self) -> Decimal:
        """Costo de lo vendido con el costo copiado en cada línea."""
        total = (
            self.db.query(func.sum(SaleItem.unit_cost * SaleItem.quantity))
            .join(Sale, Sale.id == SaleItem.sale_id)
            .filter(Sale.status == SaleStatus.COMPLETADA.value)
            .scalar()
        )
        return _money(total)

    def receivables_total(self) -> Decimal:
        total = self.db.query(func.sum(Client.balance)).filter(Client.balance > 0).scalar()
        return _money(total)

    def dashboard_summary(self) -> Dict[str, Any]:
        total_sales = self.total_sales()
        total_cost = self.total_cost()
        return {
            "total_sales": total_sales,
            "total_cost": total_cost,
            "utility": total_sales - total_cost,
            "sales_count": self._completed_sales().count(),
            "receivables_total": self.receivables_total(),
            "pending_orders": self.uow.orders.count_by_status(OrderStatus.PENDIENTE.value),
        }

    def sales_by_zone(self) -> List[Dict[str, Any]]:
        rows = (
            self.db.query(Client.zone, func.sum(Sale.total_amount))
            .join(Client, Client.id == Sale.client_id)
            .filter(Sale.status == SaleStatus.COMPLETADA.value)
            .group_by(Client.zone)
            .all()
        )
        zones: Dict[str, Decimal] = {}
        for zone, amount in rows:
            name = zone or NO_ZONE
            zones[name] = zones.get(name, ZERO) + _money(amount)
        return sorted(
            ({"name": name, "value": value} for name, value in zones.items()),
            key=lambda r: (-r["value"], r["name"]),
        )

    def daily_sales(self, since: Optional[date] = None, until: Optional[date] = None) -> List[Dict[str, Any]]:
        q = self._completed_sales()
        if since:
            q = q.filter(Sale.created_at >= datetime.combine(since, time.min))
        if until:
            q = q.filter(Sale.created_at <= datetime.combine(until, time.max))

        daily: "OrderedDict[date, Decimal]" = OrderedDict()
        for sale in q.order_by(Sale.created_at).all():
            day = sale.created_at.date()
            daily[day] = daily.get(day, ZERO) + _money(sale.total_amount)
        return [{"date": d.isoformat(), "amount": amount} for d, amount in daily.items()]

    def top_clients(self, limit: int = 5) -> List[Dict[str, Any]]:
        total = func.sum(Sale.total_amount).label("total")
        rows = (
            self.db.query(Client.id, Client.name, total)
            .join(Sale, Sale.client_id == Client.id)
            .filter(Sale.status == SaleStatus.COMPLETADA.value)
            .group_by(Client.id, Client.name)
            .order_by(desc(total), Client.id)
            .limit(limit)
            .all()
        )
        return [{"client_id": r.id, "name": r.name, "amount": _money(r.total)} for r in rows]

    def top_products(self, limit: int = 5) -> List[Dict[str, Any]]:
        revenue = func.sum(SaleItem.unit_price * SaleItem.quantity).label("revenue")
        units = func.sum(SaleItem.quantity).label("units")
        rows = (
            self.db.query(Product.id, Product.name, revenue, units)
            .join(SaleItem, SaleItem.product_id == Product.id)
            .join(Sale, Sale.id == SaleItem.sale_id)
            .filter(Sale.status == SaleStatus.COMPLETADA.value)
            .group_by(Product.id, Product.name)
            .order_by(desc(revenue), Product.id)
            .limit(limit)
            .all()
        )
        return [
            {"product_id": r.id, "name": r.name, "sales": _money(r.revenue), "units": int(r.units or 0)}
            for r in rows
        ]

    def debtor_clients(self) -> List[Dict[str, Any]]:
        return [
            {"client_id": c.id, "name": c.name, "zone": c.zone, "balance": _money(c.balance),
             "credits_count": c.credits_count}
            for c in self.uow.clients.with_balance()
        ]

    def sales_history(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            {
                "id": s.id,
                "client_id": s.client_id,
                "client_name": s.client.name if s.client else None,
                "zone": s.client.zone if s.client else None,
                "warehouse": s.warehouse.name if s.warehouse else None,
                "total_amount": _money(s.total_amount),
                "payment_method": s.payment_method,
                "status": s.status,
                "order_id": s.order_id,
                "created_at": s.created_at,
            }
            for s in self.uow.sales.list(status)
        ]
