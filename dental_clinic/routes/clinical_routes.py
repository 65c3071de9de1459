import datetime as dt

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError

from dental_clinic.errors import RecordNotFoundError
from dental_clinic.models.clinical import Prescription, PrescriptionMedication, Procedure
from dental_clinic.models.patient import Patient
from dental_clinic.repository import Repository, repository_for
from dental_clinic.routes.common import database_unavailable, normalize_choice, not_found

router = APIRouter()

PROCEDURE_STATUSES = ('planned', 'in-progress', 'completed')

prescriptions_repository = repository_for(Prescription)
procedures_repository = repository_for(Procedure)


class MedicationItem(BaseModel):
    name: str
    dosage: str
    frequency: str = ''
    duration: str = ''
    quantity: int = Field(default=1, ge=1)

    class Config:
        from_attributes = True


class CreatePrescriptionRequest(BaseModel):
    patient_id: int
    diagnosis: str
    instructions: str = ''
    date: dt.date
    dentist_name: str = ''
    appointment_id: int | None = None
    medications: list[MedicationItem] = Field(min_length=1)


class UpdatePrescriptionRequest(BaseModel):
    diagnosis: str | None = None
    instructions: str | None = None
    dentist_name: str | None = None
    medications: list[MedicationItem] | None = None


class PrescriptionResponse(BaseModel):
    id: int
    patient_id: int
    appointment_id: int | None = None
    diagnosis: str
    instructions: str
    date: dt.date
    dentist_name: str
    medications: list[MedicationItem]

    class Config:
        from_attributes = True


class ProcedureFields(BaseModel):
    description: str | None = None
    notes: str | None = None
    appointment_id: int | None = None
    cost: float | None = Field(default=None, ge=0)
    status: str | None = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return normalize_choice(value, PROCEDURE_STATUSES, 'procedure status')


class CreateProcedureRequest(ProcedureFields):
    patient_id: int
    name: str
    date: dt.date


class UpdateProcedureRequest(ProcedureFields):
    name: str | None = None
    date: dt.date | None = None


class ProcedureResponse(BaseModel):
    id: int
    patient_id: int
    appointment_id: int | None = None
    name: str
    description: str | None = None
    status: str
    cost: float
    date: dt.date
    notes: str | None = None

    class Config:
        from_attributes = True


def _medication_rows(items: list[MedicationItem]) -> list[PrescriptionMedication]:
    return [PrescriptionMedication(**item.model_dump()) for item in items]


@router.get('/prescriptions', response_model=list[PrescriptionResponse], tags=['prescriptions'])
def list_prescriptions(
    patient_id: int | None = Query(default=None),
    prescriptions: Repository[Prescription] = Depends(prescriptions_repository),
):
    try:
        return prescriptions.list(
            order_by=(Prescription.date.desc(), Prescription.id.desc()),
            patient_id=patient_id,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post(
    '/prescriptions',
    response_model=PrescriptionResponse,
    status_code=status.HTTP_201_CREATED,
    tags=['prescriptions'],
)
def create_prescription(
    data: CreatePrescriptionRequest,
    prescriptions: Repository[Prescription] = Depends(prescriptions_repository),
):
    try:
        Repository(prescriptions.db, Patient).get(data.patient_id)
        values = data.model_dump(exclude={'medications'})
        return prescriptions.add(medications=_medication_rows(data.medications), **values)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        prescriptions.db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/prescriptions/{prescription_id}', response_model=PrescriptionResponse, tags=['prescriptions'])
def get_prescription(
    prescription_id: int,
    prescriptions: Repository[Prescription] = Depends(prescriptions_repository),
):
    try:
        return prescriptions.get(prescription_id)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.patch('/prescriptions/{prescription_id}', response_model=PrescriptionResponse, tags=['prescriptions'])
def update_prescription(
    prescription_id: int,
    data: UpdatePrescriptionRequest,
    prescriptions: Repository[Prescription] = Depends(prescriptions_repository),
):
    try:
        updates = data.model_dump(exclude_unset=True, exclude_none=True, exclude={'medications'})
        if data.medications is not None:
            updates['medications'] = _medication_rows(data.medications)
        return prescriptions.update(prescription_id, **updates)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        prescriptions.db.rollback()
        raise database_unavailable(exc) from exc


@router.delete(
    '/prescriptions/{prescription_id}',
    status_code=status.HTTP_204_NO_CONTENT,
    tags=['prescriptions'],
)
def delete_prescription(
    prescription_id: int,
    prescriptions: Repository[Prescription] = Depends(prescriptions_repository),
):
    try:
        prescriptions.delete(prescription_id)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        prescriptions.db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/procedures', response_model=list[ProcedureResponse], tags=['procedures'])
def list_procedures(
    patient_id: int | None = Query(default=None),
    procedure_status: str | None = Query(default=None, alias='status'),
    procedures: Repository[Procedure] = Depends(procedures_repository),
):
    try:
        return procedures.list(
            order_by=(Procedure.date.desc(), Procedure.id.desc()),
            patient_id=patient_id,
            status=procedure_status,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post(
    '/procedures',
    response_model=ProcedureResponse,
    status_code=status.HTTP_201_CREATED,
    tags=['procedures'],
)
def create_procedure(
    data: CreateProcedureRequest,
    procedures: Repository[Procedure] = Depends(procedures_repository),
):
    try:
        Repository(procedures.db, Patient).get(data.patient_id)
        values = data.model_dump(exclude_none=True)
        values.setdefault('status', 'planned')
        return procedures.add(**values)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        procedures.db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/procedures/{procedure_id}', response_model=ProcedureResponse, tags=['procedures'])
def get_procedure(procedure_id: int, procedures: Repository[Procedure] = Depends(procedures_repository)):
    try:
        return procedures.get(procedure_id)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.patch('/procedures/{procedure_id}', response_model=ProcedureResponse, tags=['procedures'])
def update_procedure(
    procedure_id: int,
    data: UpdateProcedureRequest,
    procedures: Repository[Procedure] = Depends(procedures_repository),
):
    try:
        return procedures.update(procedure_id, **data.model_dump(exclude_unset=True, exclude_none=True))
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        procedures.db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/procedures/{procedure_id}', status_code=status.HTTP_204_NO_CONTENT, tags=['procedures'])
def delete_procedure(
    procedure_id: int,
    procedures: Repository[Procedure] = Depends(procedures_repository),
):
    try:
        procedures.delete(procedure_id)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        procedures.db.rollback()
        raise database_unavailable(exc) from exc
