"""Appointment model definitions."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, func, text
from dental_clinic.database import Base

STATUS_SCHEDULED = "scheduled"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
STATUS_NO_SHOW = "no-show"
APPOINTMENT_STATUSES = (STATUS_SCHEDULED, STATUS_COMPLETED, STATUS_CANCELLED, STATUS_NO_SHOW)

APPOINTMENT_TYPES = (
    "checkup",
    "cleaning",
    "filling",
    "extraction",
    "root-canal",
    "consultation",
    "follow-up",
)

_LIVE_BOOKING = text("status != 'cancelled'")


class Appointment(Base):
    """Represents a booked appointment."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_doctor_slot",
            "doctor_id",
            "date",
            "time",
            unique=True,
            sqlite_where=_LIVE_BOOKING,
            postgresql_where=_LIVE_BOOKING,
        ),
    )

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    family_member_id = Column(Integer, ForeignKey("family_members.id"))
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)
    duration = Column(Integer, default=30)
    type = Column(String, default="consultation")
    status = Column(String, nullable=False, default=STATUS_SCHEDULED)
    notes = Column(String)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
