from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from dental_clinic.models.appointment import STATUS_CANCELLED, Appointment
from dental_clinic.models.billing import Payment
from dental_clinic.models.clinical import Procedure
from dental_clinic.models.inventory import InventoryItem
from dental_clinic.models.patient import Patient

UNTRACKED_STOCK_CATEGORIES = ('procedure', 'examination')


def total_revenue(db: Session, start: date | None = None, end: date | None = None) -> float:
    query = db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(Payment.status == 'completed')
    if start is not None:
        query = query.filter(Payment.date >= start)
    if end is not None:
        query = query.filter(Payment.date <= end)
    return float(query.scalar())


def dashboard_stats(db: Session, today: date) -> dict:
    return {
        'today_appointments': db.query(Appointment).filter(Appointment.date == today).count(),
        'total_patients': db.query(Patient).count(),
        'total_revenue': total_revenue(db),
        'procedures': db.query(Procedure).count(),
    }


def todays_appointments(db: Session, today: date) -> list[Appointment]:
    return db.query(Appointment).filter(
        Appointment.date == today,
        Appointment.status != STATUS_CANCELLED,
    ).order_by(Appointment.time.asc()).all()


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def monthly_revenue(db: Session, today: date, months: int = 6) -> list[dict]:
    """Completed-payment revenue per calendar month, oldest first, ending with the current month."""
    report = []
    for back in range(months - 1, -1, -1):
        year, month = _shift_month(today.year, today.month, -back)
        next_year, next_month = _shift_month(year, month, 1)
        start = date(year, month, 1)
        end = date.fromordinal(date(next_year, next_month, 1).toordinal() - 1)
        report.append({'month': f'{year:04d}-{month:02d}', 'revenue': total_revenue(db, start, end)})
    return report


def low_stock_items(db: Session, category: str | None = None) -> list[InventoryItem]:
    query = db.query(InventoryItem).filter(
        InventoryItem.stock <= InventoryItem.reorder_level,
        InventoryItem.category.notin_(UNTRACKED_STOCK_CATEGORIES),
    )
    if category is not None:
        query = query.filter(InventoryItem.category == category)
    return query.order_by(InventoryItem.stock.asc(), InventoryItem.name.asc()).all()
