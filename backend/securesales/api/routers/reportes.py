from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query

from ...dependencies import get_uow
from ...application.queries_reports import ReportQuery
from ...infrastructure.unit_of_work import UnitOfWork

router = APIRouter(prefix="/reportes", tags=["reportes"])


@router.get("/tablero")
def dashboard(uow: UnitOfWork = Depends(get_uow)):
    """Totales, costo, utilidad, cuentas por cobrar y rankings"""
    q = ReportQuery(uow)
    return {
        **q.dashboard_summary(),
        "sales_by_zone": q.sales_by_zone(),
        "daily_sales": q.daily_sales(),
        "top_clients": q.top_clients(),
        "top_products": q.top_products(),
        "debtor_clients": q.debtor_clients(),
    }


@router.get("/ventas-diarias")
def daily_sales(
    since: Optional[date] = Query(None),
    until: Optional[date] = Query(None),
    uow: UnitOfWork = Depends(get_uow),
):
    return ReportQuery(uow).daily_sales(since, until)


@router.get("/cuentas-por-cobrar")
def receivables(uow: UnitOfWork = Depends(get_uow)):
    q = ReportQuery(uow)
    return {"total": q.receivables_total(), "clients": q.debtor_clients()}


@router.get("/historial-ventas")
def sales_history(status: Optional[str] = Query(None), uow: UnitOfWork = Depends(get_uow)):
    return ReportQuery(uow).sales_history(status)
