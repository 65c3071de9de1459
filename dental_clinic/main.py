import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from dental_clinic.core import config
from dental_clinic.database import Base, engine, ensure_appointment_schema
from dental_clinic.models import appointment, availability, billing, clinical, inventory, patient, user  # noqa: F401
from dental_clinic.routes import (
    appointment_routes,
    availability_routes,
    billing_routes,
    clinical_routes,
    dashboard_routes,
    inventory_routes,
    patient_routes,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

app = FastAPI(title='Dental Clinic API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL.')


@app.get('/')
def root():
    return {'status': 'Dental Clinic API Running'}


app.include_router(availability_routes.router, prefix='/doctors')
app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(patient_routes.router, prefix='/patients')
app.include_router(clinical_routes.router)
app.include_router(inventory_routes.router, prefix='/inventory')
app.include_router(billing_routes.router)
app.include_router(dashboard_routes.router)
