import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

from dental_clinic import database
from dental_clinic.errors import RecordNotFoundError
from dental_clinic.models.billing import Enquiry
from dental_clinic.repository import Repository


def test_repository_crud_and_filters(db) -> None:
    enquiries = Repository(db, Enquiry)
    first = enquiries.add(name='Anil', phone='555-0500', message='Timings?')
    second = enquiries.add(name='Bela', phone='555-0501', message='Cost?', status='closed')

    assert [e.id for e in enquiries.list(order_by=Enquiry.name.desc())] == [second.id, first.id]
    assert [e.id for e in enquiries.list(status='closed')] == [second.id]
    assert [e.id for e in enquiries.list(status=None)] == [first.id, second.id]

    enquiries.update(first.id, status='converted')
    assert enquiries.get(first.id).status == 'converted'

    enquiries.delete(first.id)
    with pytest.raises(RecordNotFoundError) as exception_info:
        enquiries.get(first.id)
    assert exception_info.value.model_name == 'Enquiry'


def test_repositories_share_the_injected_session(db) -> None:
    writer = Repository(db, Enquiry)
    reader = Repository(db, Enquiry)

    created = writer.add(name='Chitra', phone='555-0502', message='Open Sunday?')

    assert reader.get(created.id) is created


def test_ensure_appointment_schema_upgrades_legacy_table(monkeypatch: pytest.MonkeyPatch) -> None:
    engine = create_engine('sqlite://')
    with engine.begin() as connection:
        connection.execute(
            text(
                'CREATE TABLE appointments ('
                'id INTEGER PRIMARY KEY, doctor_id INTEGER, patient_id INTEGER, '
                'date DATE, time VARCHAR(5), type VARCHAR, status VARCHAR)'
            )
        )
    monkeypatch.setattr(database, '_appointment_schema_checked', False)

    database.ensure_appointment_schema(bind=engine)

    inspector = inspect(engine)
    columns = {column['name'] for column in inspector.get_columns('appointments')}
    indexes = {index['name'] for index in inspector.get_indexes('appointments')}
    assert {'family_member_id', 'duration', 'notes'} <= columns
    assert 'uq_appointments_doctor_slot' in indexes

    insert = text(
        "INSERT INTO appointments (doctor_id, patient_id, date, time, status) "
        "VALUES (1, 1, :day, '09:00', :status)"
    )
    with engine.begin() as connection:
        connection.execute(insert, {'day': '2026-01-05', 'status': 'cancelled'})
        connection.execute(insert, {'day': '2026-01-05', 'status': 'scheduled'})
    with pytest.raises(IntegrityError):
        with engine.begin() as connection:
            connection.execute(insert, {'day': '2026-01-05', 'status': 'scheduled'})
