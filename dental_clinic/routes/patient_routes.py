from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from dental_clinic.errors import RecordNotFoundError
from dental_clinic.models.patient import FamilyMember, Patient, PatientAllergy
from dental_clinic.repository import Repository, repository_for
from dental_clinic.routes.common import database_unavailable, normalize_choice, not_found

router = APIRouter(tags=['patients'])

ALLERGY_SEVERITIES = ('mild', 'moderate', 'severe')

patients_repository = repository_for(Patient)
family_repository = repository_for(FamilyMember)
allergy_repository = repository_for(PatientAllergy)


class PatientFields(BaseModel):
    email: str | None = None
    date_of_birth: date | None = None
    address: str | None = None
    medical_history: str | None = None
    allergies: str | None = None
    user_id: int | None = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip().lower()


class CreatePatientRequest(PatientFields):
    name: str
    phone: str

    @field_validator('name', 'phone')
    @classmethod
    def validate_required(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field is required.')
        return normalized


class UpdatePatientRequest(PatientFields):
    name: str | None = None
    phone: str | None = None

    @field_validator('name', 'phone')
    @classmethod
    def validate_not_blank(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field cannot be blank.')
        return normalized


class PatientResponse(BaseModel):
    id: int
    user_id: int | None = None
    name: str
    phone: str
    email: str | None = None
    date_of_birth: date | None = None
    address: str | None = None
    medical_history: str | None = None
    allergies: str | None = None

    class Config:
        from_attributes = True


class CreateFamilyMemberRequest(BaseModel):
    name: str
    relationship: str


class FamilyMemberResponse(BaseModel):
    id: int
    patient_id: int
    name: str
    relationship: str

    class Config:
        from_attributes = True


class CreateAllergyRequest(BaseModel):
    allergen: str
    severity: str = 'mild'
    action_to_take: str | None = None

    @field_validator('severity')
    @classmethod
    def validate_severity(cls, value: str) -> str:
        return normalize_choice(value, ALLERGY_SEVERITIES, 'severity')


class AllergyResponse(BaseModel):
    id: int
    patient_id: int
    allergen: str
    severity: str
    action_to_take: str | None = None

    class Config:
        from_attributes = True


@router.get('', response_model=list[PatientResponse])
def list_patients(
    search: str | None = Query(default=None),
    patients: Repository[Patient] = Depends(patients_repository),
):
    try:
        query = patients.db.query(Patient)
        if search and search.strip():
            pattern = f'%{search.strip()}%'
            query = query.filter(or_(Patient.name.ilike(pattern), Patient.phone.ilike(pattern)))
        return query.order_by(Patient.name.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('', response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
def create_patient(data: CreatePatientRequest, patients: Repository[Patient] = Depends(patients_repository)):
    try:
        return patients.add(**data.model_dump())
    except SQLAlchemyError as exc:
        patients.db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/{patient_id}', response_model=PatientResponse)
def get_patient(patient_id: int, patients: Repository[Patient] = Depends(patients_repository)):
    try:
        return patients.get(patient_id)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.patch('/{patient_id}', response_model=PatientResponse)
def update_patient(
    patient_id: int,
    data: UpdatePatientRequest,
    patients: Repository[Patient] = Depends(patients_repository),
):
    try:
        return patients.update(patient_id, **data.model_dump(exclude_unset=True, exclude_none=True))
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        patients.db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/{patient_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_patient(patient_id: int, patients: Repository[Patient] = Depends(patients_repository)):
    try:
        patients.delete(patient_id)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except IntegrityError as exc:
        patients.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='Patient has appointments or records and cannot be deleted.',
        ) from exc
    except SQLAlchemyError as exc:
        patients.db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/{patient_id}/family-members', response_model=list[FamilyMemberResponse])
def list_family_members(patient_id: int, family: Repository[FamilyMember] = Depends(family_repository)):
    try:
        return family.list(order_by=FamilyMember.name.asc(), patient_id=patient_id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post(
    '/{patient_id}/family-members',
    response_model=FamilyMemberResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_family_member(
    patient_id: int,
    data: CreateFamilyMemberRequest,
    family: Repository[FamilyMember] = Depends(family_repository),
):
    try:
        Repository(family.db, Patient).get(patient_id)
        return family.add(patient_id=patient_id, **data.model_dump())
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        family.db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/{patient_id}/family-members/{member_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_family_member(
    patient_id: int,
    member_id: int,
    family: Repository[FamilyMember] = Depends(family_repository),
):
    try:
        member = family.get(member_id)
        if member.patient_id != patient_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='FamilyMember not found.')
        family.delete(member_id)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        family.db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/{patient_id}/allergies', response_model=list[AllergyResponse])
def list_allergies(patient_id: int, allergies: Repository[PatientAllergy] = Depends(allergy_repository)):
    try:
        return allergies.list(order_by=PatientAllergy.created_at.desc(), patient_id=patient_id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/{patient_id}/allergies', response_model=AllergyResponse, status_code=status.HTTP_201_CREATED)
def add_allergy(
    patient_id: int,
    data: CreateAllergyRequest,
    allergies: Repository[PatientAllergy] = Depends(allergy_repository),
):
    try:
        Repository(allergies.db, Patient).get(patient_id)
        return allergies.add(patient_id=patient_id, **data.model_dump())
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        allergies.db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/{patient_id}/allergies/{allergy_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_allergy(
    patient_id: int,
    allergy_id: int,
    allergies: Repository[PatientAllergy] = Depends(allergy_repository),
):
    try:
        allergy = allergies.get(allergy_id)
        if allergy.patient_id != patient_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='PatientAllergy not found.')
        allergies.delete(allergy_id)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        allergies.db.rollback()
        raise database_unavailable(exc) from exc
