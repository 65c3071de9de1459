import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dental_clinic.core import config
from dental_clinic.database import get_db
from dental_clinic.models.availability import AvailabilityRule
from dental_clinic.routes.common import database_unavailable, ensure_database_ready, validate_time_string
from dental_clinic.scheduling.slots import available_days, validate_rule_window
from dental_clinic.services.booking import get_doctor_rules, list_open_slots

router = APIRouter(tags=['availability'])

logger = logging.getLogger(__name__)

DEFAULT_RULE_START = '09:00'
DEFAULT_RULE_END = '17:00'
DEFAULT_SLOT_DURATION_MINUTES = 30


class CreateAvailabilityRuleRequest(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: str = DEFAULT_RULE_START
    end_time: str = DEFAULT_RULE_END
    slot_duration: int = Field(default=DEFAULT_SLOT_DURATION_MINUTES, gt=0)
    is_active: bool = True

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_times(cls, value: str) -> str:
        return validate_time_string(value)

    @model_validator(mode='after')
    def validate_window(self):
        validate_rule_window(self.start_time, self.end_time, self.slot_duration)
        return self


class UpdateAvailabilityRuleRequest(BaseModel):
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    start_time: str | None = None
    end_time: str | None = None
    slot_duration: int | None = Field(default=None, gt=0)
    is_active: bool | None = None

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_times(cls, value: str | None) -> str | None:
        return validate_time_string(value)


class AvailabilityRuleResponse(BaseModel):
    id: int
    doctor_id: int
    day_of_week: int
    start_time: str
    end_time: str
    slot_duration: int
    is_active: bool

    class Config:
        from_attributes = True


class AvailableSlotsResponse(BaseModel):
    doctor_id: int
    date: date
    slots: list[str]


def _get_rule(db: Session, doctor_id: int, rule_id: int) -> AvailabilityRule:
    rule = db.query(AvailabilityRule).filter(
        AvailabilityRule.id == rule_id,
        AvailabilityRule.doctor_id == doctor_id,
    ).first()
    if not rule:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Availability rule not found.',
        )
    return rule


@router.get('/{doctor_id}/availability', response_model=list[AvailabilityRuleResponse])
def list_availability_rules(doctor_id: int, db: Session = Depends(get_db)):
    try:
        return get_doctor_rules(db, doctor_id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post(
    '/{doctor_id}/availability',
    response_model=AvailabilityRuleResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_availability_rule(
    doctor_id: int,
    data: CreateAvailabilityRuleRequest,
    db: Session = Depends(get_db),
):
    try:
        rule = AvailabilityRule(doctor_id=doctor_id, **data.model_dump())
        db.add(rule)
        db.commit()
        db.refresh(rule)
        logger.info('Doctor %s added availability rule %s', doctor_id, rule.id)
        return rule
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.patch('/{doctor_id}/availability/{rule_id}', response_model=AvailabilityRuleResponse)
def update_availability_rule(
    doctor_id: int,
    rule_id: int,
    data: UpdateAvailabilityRuleRequest,
    db: Session = Depends(get_db),
):
    try:
        rule = _get_rule(db, doctor_id, rule_id)
        updates = data.model_dump(exclude_unset=True, exclude_none=True)

        try:
            validate_rule_window(
                updates.get('start_time', rule.start_time),
                updates.get('end_time', rule.end_time),
                updates.get('slot_duration', rule.slot_duration),
            )
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

        for field_name, value in updates.items():
            setattr(rule, field_name, value)
        db.commit()
        db.refresh(rule)
        return rule
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/{doctor_id}/availability/{rule_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_availability_rule(doctor_id: int, rule_id: int, db: Session = Depends(get_db)):
    try:
        rule = _get_rule(db, doctor_id, rule_id)
        db.delete(rule)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/{doctor_id}/slots', response_model=AvailableSlotsResponse)
def list_available_slots(
    doctor_id: int,
    slot_date: date = Query(..., alias='date'),
    db: Session = Depends(get_db),
):
    now = datetime.now()
    if slot_date < now.date():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Cannot list slots for a past date.',
        )

    ensure_database_ready()

    try:
        slots = list_open_slots(db, doctor_id, slot_date, now)
        return AvailableSlotsResponse(doctor_id=doctor_id, date=slot_date, slots=slots)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/{doctor_id}/available-days', response_model=list[date])
def list_available_days(
    doctor_id: int,
    days: int = Query(default=14, ge=1, le=config.BOOKING_HORIZON_DAYS),
    db: Session = Depends(get_db),
):
    try:
        return available_days(get_doctor_rules(db, doctor_id), date.today(), days)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc
