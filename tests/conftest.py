import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from dental_clinic.database import Base  # noqa: E402
from dental_clinic.models import appointment, availability, billing, clinical, inventory, patient, user  # noqa: E402,F401


@pytest.fixture
def db():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def doctor(db):
    record = user.User(email='dr.mehta@clinic.example', full_name='Dr. Mehta', role='doctor')
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def patient_record(db):
    record = patient.Patient(name='Asha Rao', phone='555-0101', email='asha@example.com')
    db.add(record)
    db.commit()
    db.refresh(record)
    return record
