"""Appointment booking against the doctor's computed availability."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from threading import Lock

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dental_clinic.core import config
from dental_clinic.errors import BookingError, NoDoctorAvailableError, RecordNotFoundError, SlotUnavailableError
from dental_clinic.models.appointment import STATUS_CANCELLED, STATUS_SCHEDULED, Appointment
from dental_clinic.models.availability import AvailabilityRule
from dental_clinic.models.patient import FamilyMember, Patient
from dental_clinic.scheduling.slots import compute_available_slots, drop_elapsed_slots

logger = logging.getLogger(__name__)

# One lock per doctor id, never evicted; bounded by the clinic's doctor count.
_doctor_locks: defaultdict[int, Lock] = defaultdict(Lock)
_doctor_locks_guard = Lock()


@dataclass
class BookingRequest:
    patient_id: int
    date: date
    time: str
    type: str = 'consultation'
    doctor_id: int | None = None
    family_member_id: int | None = None
    notes: str | None = None
    duration: int | None = None


def _doctor_lock(doctor_id: int) -> Lock:
    with _doctor_locks_guard:
        return _doctor_locks[doctor_id]


def get_doctor_rules(db: Session, doctor_id: int) -> list[AvailabilityRule]:
    return db.query(AvailabilityRule).filter(
        AvailabilityRule.doctor_id == doctor_id,
    ).order_by(AvailabilityRule.day_of_week.asc(), AvailabilityRule.start_time.asc()).all()


def get_doctor_bookings(db: Session, doctor_id: int, on_date: date | None = None) -> list[Appointment]:
    query = db.query(Appointment).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.status != STATUS_CANCELLED,
    )
    if on_date is not None:
        query = query.filter(Appointment.date == on_date)
    return query.all()


def resolve_doctor_id(db: Session, doctor_id: int | None) -> int:
    """The requested doctor, or the first doctor with active availability."""
    if doctor_id is not None:
        return doctor_id

    rule = db.query(AvailabilityRule).filter(
        AvailabilityRule.is_active.is_(True),
    ).order_by(AvailabilityRule.doctor_id.asc()).first()
    if rule is None:
        raise NoDoctorAvailableError()
    return rule.doctor_id


def list_open_slots(db: Session, doctor_id: int, target_date: date, now: datetime) -> list[str]:
    slots = compute_available_slots(
        target_date,
        get_doctor_rules(db, doctor_id),
        get_doctor_bookings(db, doctor_id, on_date=target_date),
    )
    return drop_elapsed_slots(slots, target_date, now)


def _validate_booking_date(target_date: date, now: datetime) -> None:
    if target_date < now.date():
        raise BookingError('Appointments cannot be booked in the past.')
    if target_date >= now.date() + timedelta(days=config.BOOKING_HORIZON_DAYS):
        raise BookingError(
            f'Appointments can only be booked within the next {config.BOOKING_HORIZON_DAYS} days.'
        )


def book_appointment(db: Session, request: BookingRequest, now: datetime | None = None) -> Appointment:
    now = now or datetime.now()

    patient = db.get(Patient, request.patient_id)
    if patient is None:
        raise RecordNotFoundError('Patient', request.patient_id)

    if request.family_member_id is not None:
        member = db.get(FamilyMember, request.family_member_id)
        if member is None or member.patient_id != patient.id:
            raise BookingError('Family member does not belong to this patient.')

    _validate_booking_date(request.date, now)
    doctor_id = resolve_doctor_id(db, request.doctor_id)

    with _doctor_lock(doctor_id):
        if request.time not in list_open_slots(db, doctor_id, request.date, now):
            logger.info('Rejected booking for doctor %s at %s %s: slot not open', doctor_id, request.date, request.time)
            raise SlotUnavailableError()

        appointment = Appointment(
            doctor_id=doctor_id,
            patient_id=patient.id,
            family_member_id=request.family_member_id,
            date=request.date,
            time=request.time,
            duration=request.duration or config.DEFAULT_APPOINTMENT_DURATION,
            type=request.type,
            status=STATUS_SCHEDULED,
            notes=request.notes,
        )
        db.add(appointment)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            logger.warning('Booking conflict for doctor %s at %s %s', doctor_id, request.date, request.time)
            raise SlotUnavailableError(
                'This time slot just became unavailable. Please select another time.'
            ) from exc

    db.refresh(appointment)
    logger.info('Booked appointment %s for doctor %s at %s %s', appointment.id, doctor_id, request.date, request.time)
    return appointment


def change_status(db: Session, appointment: Appointment, status: str) -> Appointment:
    """Set an appointment's status; reviving a cancelled one re-checks the slot."""
    appointment.status = status
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise SlotUnavailableError('This time slot has been booked by someone else.') from exc
    db.refresh(appointment)
    return appointment
