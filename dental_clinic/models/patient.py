"""Patient record model definitions."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, func
from dental_clinic.database import Base


class Patient(Base):
    """A clinic patient, optionally linked to a login."""
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String)
    date_of_birth = Column(Date)
    address = Column(String)
    medical_history = Column(String)
    allergies = Column(String)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class FamilyMember(Base):
    """A dependant the patient may book appointments for."""
    __tablename__ = "family_members"

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    relationship = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class PatientAllergy(Base):
    __tablename__ = "patient_allergies"

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    allergen = Column(String, nullable=False)
    severity = Column(String, default="mild")
    action_to_take = Column(String)
    created_at = Column(DateTime, server_default=func.now())
