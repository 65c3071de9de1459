"""Prescription and procedure model definitions."""

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from dental_clinic.database import Base


class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"))
    diagnosis = Column(String, nullable=False)
    instructions = Column(String, default="")
    date = Column(Date, nullable=False)
    dentist_name = Column(String, default="")
    created_at = Column(DateTime, server_default=func.now())

    medications = relationship(
        "PrescriptionMedication",
        cascade="all, delete-orphan",
        order_by="PrescriptionMedication.id",
    )


class PrescriptionMedication(Base):
    """One line of a prescription."""
    __tablename__ = "prescription_medications"

    id = Column(Integer, primary_key=True)
    prescription_id = Column(Integer, ForeignKey("prescriptions.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    dosage = Column(String, nullable=False)
    frequency = Column(String, default="")
    duration = Column(String, default="")
    quantity = Column(Integer, default=1)


class Procedure(Base):
    """A planned or performed dental procedure."""
    __tablename__ = "procedures"

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"))
    name = Column(String, nullable=False)
    description = Column(String, default="")
    status = Column(String, default="planned")
    cost = Column(Float, default=0)
    date = Column(Date, nullable=False)
    notes = Column(String)
    created_at = Column(DateTime, server_default=func.now())
