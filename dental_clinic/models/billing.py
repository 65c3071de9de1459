"""Payment and enquiry model definitions."""

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String, func
from dental_clinic.database import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"))
    amount = Column(Float, nullable=False)
    method = Column(String, nullable=False, default="cash")
    status = Column(String, nullable=False, default="pending")
    date = Column(Date, nullable=False)
    description = Column(String)
    created_at = Column(DateTime, server_default=func.now())


class Enquiry(Base):
    """An inbound contact request from a prospective patient."""
    __tablename__ = "enquiries"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String)
    message = Column(String, nullable=False)
    status = Column(String, nullable=False, default="new")
    created_at = Column(DateTime, server_default=func.now())
