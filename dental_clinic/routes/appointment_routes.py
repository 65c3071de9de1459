from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dental_clinic.database import get_db
from dental_clinic.errors import BookingError, NoDoctorAvailableError, RecordNotFoundError, SlotUnavailableError
from dental_clinic.models.appointment import (
    APPOINTMENT_STATUSES,
    APPOINTMENT_TYPES,
    STATUS_CANCELLED,
    Appointment,
)
from dental_clinic.routes.common import (
    database_unavailable,
    ensure_database_ready,
    normalize_choice,
    not_found,
    validate_time_string,
)
from dental_clinic.services import booking

router = APIRouter(tags=['appointments'])

MAX_APPOINTMENT_NOTES_LENGTH = 600


class BookAppointmentRequest(BaseModel):
    patient_id: int
    date: date
    time: str
    type: str = 'consultation'
    doctor_id: int | None = None
    family_member_id: int | None = None
    duration: int | None = Field(default=None, gt=0)
    notes: str | None = None

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: str) -> str:
        return validate_time_string(value)

    @field_validator('type')
    @classmethod
    def validate_type(cls, value: str) -> str:
        return normalize_choice(value, APPOINTMENT_TYPES, 'appointment type')

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

        return normalized


class UpdateStatusRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        return normalize_choice(value, APPOINTMENT_STATUSES, 'appointment status')


class AppointmentResponse(BaseModel):
    id: int
    doctor_id: int
    patient_id: int
    family_member_id: int | None = None
    date: date
    time: str
    duration: int
    type: str
    status: str
    notes: str | None = None

    class Config:
        from_attributes = True


def _get_appointment(db: Session, appointment_id: int) -> Appointment:
    appointment = db.get(Appointment, appointment_id)
    if not appointment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Appointment not found.',
        )
    return appointment


@router.post('/book', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(data: BookAppointmentRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return booking.book_appointment(db, booking.BookingRequest(**data.model_dump()))
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except (SlotUnavailableError, NoDoctorAvailableError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except BookingError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    doctor_id: int | None = Query(default=None),
    patient_id: int | None = Query(default=None),
    on_date: date | None = Query(default=None, alias='date'),
    appointment_status: str | None = Query(default=None, alias='status'),
    db: Session = Depends(get_db),
):
    try:
        query = db.query(Appointment)
        if doctor_id is not None:
            query = query.filter(Appointment.doctor_id == doctor_id)
        if patient_id is not None:
            query = query.filter(Appointment.patient_id == patient_id)
        if on_date is not None:
            query = query.filter(Appointment.date == on_date)
        if appointment_status is not None:
            query = query.filter(Appointment.status == appointment_status.strip().lower())

        return query.order_by(Appointment.date.asc(), Appointment.time.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    try:
        return _get_appointment(db, appointment_id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.patch('/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: UpdateStatusRequest,
    db: Session = Depends(get_db),
):
    try:
        appointment = _get_appointment(db, appointment_id)
        return booking.change_status(db, appointment, data.status)
    except SlotUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.post('/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_appointment(appointment_id: int, db: Session = Depends(get_db)):
    try:
        appointment = _get_appointment(db, appointment_id)
        return booking.change_status(db, appointment, STATUS_CANCELLED)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(appointment_id: int, db: Session = Depends(get_db)):
    try:
        appointment = _get_appointment(db, appointment_id)
        db.delete(appointment)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc
