from datetime import date, timedelta

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from dental_clinic.models.appointment import Appointment
from dental_clinic.routes.availability_routes import (
    CreateAvailabilityRuleRequest,
    UpdateAvailabilityRuleRequest,
    create_availability_rule,
    delete_availability_rule,
    list_availability_rules,
    list_available_days,
    list_available_slots,
    update_availability_rule,
)
from dental_clinic.scheduling.slots import day_of_week


def upcoming(weekday: int) -> date:
    """The next date strictly after today falling on a Sunday=0 weekday."""
    candidate = date.today() + timedelta(days=1)
    while day_of_week(candidate) != weekday:
        candidate += timedelta(days=1)
    return candidate


def test_create_rule_request_defaults_match_settings_screen() -> None:
    request = CreateAvailabilityRuleRequest(day_of_week=2)

    assert request.start_time == '09:00'
    assert request.end_time == '17:00'
    assert request.slot_duration == 30
    assert request.is_active is True


def test_create_rule_request_trims_seconds_from_times() -> None:
    request = CreateAvailabilityRuleRequest(day_of_week=2, start_time='08:30:00', end_time=' 12:00 ')

    assert request.start_time == '08:30'
    assert request.end_time == '12:00'


@pytest.mark.parametrize(
    'overrides',
    [
        {'day_of_week': 7},
        {'day_of_week': -1},
        {'slot_duration': 0},
        {'slot_duration': -30},
        {'start_time': '9am'},
        {'start_time': '24:00'},
        {'start_time': '12:00', 'end_time': '12:00'},
        {'start_time': '13:00', 'end_time': '09:00'},
    ],
)
def test_create_rule_request_rejects_invalid_rules(overrides) -> None:
    values = {'day_of_week': 1}
    values.update(overrides)

    with pytest.raises(ValidationError):
        CreateAvailabilityRuleRequest(**values)


def test_create_and_list_rules_for_doctor(db, doctor) -> None:
    create_availability_rule(
        doctor_id=doctor.id,
        data=CreateAvailabilityRuleRequest(day_of_week=3, start_time='14:00', end_time='18:00', slot_duration=15),
        db=db,
    )
    create_availability_rule(doctor_id=doctor.id, data=CreateAvailabilityRuleRequest(day_of_week=1), db=db)

    rules = list_availability_rules(doctor_id=doctor.id, db=db)

    assert [(rule.day_of_week, rule.start_time) for rule in rules] == [(1, '09:00'), (3, '14:00')]
    assert list_availability_rules(doctor_id=doctor.id + 1, db=db) == []


def test_update_rule_revalidates_merged_window(db, doctor) -> None:
    rule = create_availability_rule(doctor_id=doctor.id, data=CreateAvailabilityRuleRequest(day_of_week=1), db=db)

    with pytest.raises(HTTPException) as exception_info:
        update_availability_rule(
            doctor_id=doctor.id,
            rule_id=rule.id,
            data=UpdateAvailabilityRuleRequest(end_time='08:00'),
            db=db,
        )

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Start time must be before end time.'


def test_update_rule_toggles_active_flag(db, doctor) -> None:
    rule = create_availability_rule(doctor_id=doctor.id, data=CreateAvailabilityRuleRequest(day_of_week=1), db=db)

    updated = update_availability_rule(
        doctor_id=doctor.id,
        rule_id=rule.id,
        data=UpdateAvailabilityRuleRequest(is_active=False, slot_duration=20),
        db=db,
    )

    assert updated.is_active is False
    assert updated.slot_duration == 20


def test_update_rule_of_other_doctor_is_not_found(db, doctor) -> None:
    rule = create_availability_rule(doctor_id=doctor.id, data=CreateAvailabilityRuleRequest(day_of_week=1), db=db)

    with pytest.raises(HTTPException) as exception_info:
        update_availability_rule(
            doctor_id=doctor.id + 1,
            rule_id=rule.id,
            data=UpdateAvailabilityRuleRequest(is_active=False),
            db=db,
        )

    assert exception_info.value.status_code == 404


def test_delete_rule_removes_it(db, doctor) -> None:
    rule = create_availability_rule(doctor_id=doctor.id, data=CreateAvailabilityRuleRequest(day_of_week=1), db=db)

    delete_availability_rule(doctor_id=doctor.id, rule_id=rule.id, db=db)

    assert list_availability_rules(doctor_id=doctor.id, db=db) == []
    with pytest.raises(HTTPException) as exception_info:
        delete_availability_rule(doctor_id=doctor.id, rule_id=rule.id, db=db)
    assert exception_info.value.status_code == 404


def test_list_available_slots_excludes_booked_times(db, doctor, patient_record, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('dental_clinic.routes.availability_routes.ensure_database_ready', lambda: None)
    target = upcoming(1)
    create_availability_rule(
        doctor_id=doctor.id,
        data=CreateAvailabilityRuleRequest(day_of_week=1, start_time='09:00', end_time='10:00'),
        db=db,
    )
    create_availability_rule(
        doctor_id=doctor.id,
        data=CreateAvailabilityRuleRequest(day_of_week=1, start_time='14:00', end_time='15:00', slot_duration=15),
        db=db,
    )
    db.add(Appointment(doctor_id=doctor.id, patient_id=patient_record.id, date=target, time='14:15'))
    db.add(
        Appointment(doctor_id=doctor.id, patient_id=patient_record.id, date=target, time='09:00', status='cancelled')
    )
    db.commit()

    response = list_available_slots(doctor_id=doctor.id, slot_date=target, db=db)

    assert response.date == target
    assert response.slots == ['09:00', '09:30', '14:00', '14:30', '14:45']


def test_list_available_slots_rejects_past_date(db, doctor) -> None:
    with pytest.raises(HTTPException) as exception_info:
        list_available_slots(doctor_id=doctor.id, slot_date=date.today() - timedelta(days=1), db=db)

    assert exception_info.value.status_code == 400


def test_list_available_days_skips_inactive_rules(db, doctor) -> None:
    create_availability_rule(doctor_id=doctor.id, data=CreateAvailabilityRuleRequest(day_of_week=2), db=db)
    create_availability_rule(
        doctor_id=doctor.id,
        data=CreateAvailabilityRuleRequest(day_of_week=4, is_active=False),
        db=db,
    )

    days = list_available_days(doctor_id=doctor.id, days=14, db=db)

    assert len(days) == 2
    assert all(day_of_week(day) == 2 for day in days)
    assert days[0] >= date.today()
