from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dental_clinic.database import get_db
from dental_clinic.routes.appointment_routes import AppointmentResponse
from dental_clinic.routes.inventory_routes import InventoryItemResponse
from dental_clinic.routes.common import database_unavailable
from dental_clinic.services import dashboard

router = APIRouter()


class DashboardStatsResponse(BaseModel):
    today_appointments: int
    total_patients: int
    total_revenue: float
    procedures: int


class MonthlyRevenueResponse(BaseModel):
    month: str
    revenue: float


@router.get('/dashboard/stats', response_model=DashboardStatsResponse, tags=['dashboard'])
def get_dashboard_stats(db: Session = Depends(get_db)):
    try:
        return dashboard.dashboard_stats(db, date.today())
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/dashboard/today', response_model=list[AppointmentResponse], tags=['dashboard'])
def get_todays_appointments(db: Session = Depends(get_db)):
    try:
        return dashboard.todays_appointments(db, date.today())
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/reports/monthly-revenue', response_model=list[MonthlyRevenueResponse], tags=['reports'])
def get_monthly_revenue(
    months: int = Query(default=6, ge=1, le=24),
    db: Session = Depends(get_db),
):
    try:
        return dashboard.monthly_revenue(db, date.today(), months)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/reports/low-stock', response_model=list[InventoryItemResponse], tags=['reports'])
def get_low_stock_report(db: Session = Depends(get_db)):
    try:
        return dashboard.low_stock_items(db)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc
