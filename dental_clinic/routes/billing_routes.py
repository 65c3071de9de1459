import datetime as dt

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError

from dental_clinic.errors import RecordNotFoundError
from dental_clinic.models.billing import Enquiry, Payment
from dental_clinic.models.patient import Patient
from dental_clinic.repository import Repository, repository_for
from dental_clinic.routes.common import database_unavailable, normalize_choice, not_found

router = APIRouter()

PAYMENT_METHODS = ('cash', 'card', 'upi', 'insurance')
PAYMENT_STATUSES = ('pending', 'completed', 'refunded')
ENQUIRY_STATUSES = ('new', 'contacted', 'converted', 'closed')

payments_repository = repository_for(Payment)
enquiries_repository = repository_for(Enquiry)


class CreatePaymentRequest(BaseModel):
    patient_id: int
    amount: float = Field(gt=0)
    method: str = 'cash'
    status: str = 'pending'
    date: dt.date
    description: str | None = None
    appointment_id: int | None = None

    @field_validator('method')
    @classmethod
    def validate_method(cls, value: str) -> str:
        return normalize_choice(value, PAYMENT_METHODS, 'payment method')

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        return normalize_choice(value, PAYMENT_STATUSES, 'payment status')


class UpdatePaymentRequest(BaseModel):
    amount: float | None = Field(default=None, gt=0)
    method: str | None = None
    status: str | None = None
    date: dt.date | None = None
    description: str | None = None

    @field_validator('method')
    @classmethod
    def validate_method(cls, value: str | None) -> str | None:
        return None if value is None else normalize_choice(value, PAYMENT_METHODS, 'payment method')

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str | None) -> str | None:
        return None if value is None else normalize_choice(value, PAYMENT_STATUSES, 'payment status')


class PaymentResponse(BaseModel):
    id: int
    patient_id: int
    appointment_id: int | None = None
    amount: float
    method: str
    status: str
    date: dt.date
    description: str | None = None

    class Config:
        from_attributes = True


class CreateEnquiryRequest(BaseModel):
    name: str
    phone: str
    email: str | None = None
    message: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip().lower()

    @field_validator('name', 'phone', 'message')
    @classmethod
    def validate_required(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field is required.')
        return normalized


class UpdateEnquiryRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        return normalize_choice(value, ENQUIRY_STATUSES, 'enquiry status')


class EnquiryResponse(BaseModel):
    id: int
    name: str
    phone: str
    email: str | None = None
    message: str
    status: str

    class Config:
        from_attributes = True


@router.get('/payments', response_model=list[PaymentResponse], tags=['payments'])
def list_payments(
    patient_id: int | None = Query(default=None),
    payment_status: str | None = Query(default=None, alias='status'),
    payments: Repository[Payment] = Depends(payments_repository),
):
    try:
        return payments.list(
            order_by=(Payment.date.desc(), Payment.id.desc()),
            patient_id=patient_id,
            status=payment_status,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/payments', response_model=PaymentResponse, status_code=status.HTTP_201_CREATED, tags=['payments'])
def create_payment(data: CreatePaymentRequest, payments: Repository[Payment] = Depends(payments_repository)):
    try:
        Repository(payments.db, Patient).get(data.patient_id)
        return payments.add(**data.model_dump())
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        payments.db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/payments/{payment_id}', response_model=PaymentResponse, tags=['payments'])
def get_payment(payment_id: int, payments: Repository[Payment] = Depends(payments_repository)):
    try:
        return payments.get(payment_id)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.patch('/payments/{payment_id}', response_model=PaymentResponse, tags=['payments'])
def update_payment(
    payment_id: int,
    data: UpdatePaymentRequest,
    payments: Repository[Payment] = Depends(payments_repository),
):
    try:
        return payments.update(payment_id, **data.model_dump(exclude_unset=True, exclude_none=True))
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        payments.db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/payments/{payment_id}', status_code=status.HTTP_204_NO_CONTENT, tags=['payments'])
def delete_payment(payment_id: int, payments: Repository[Payment] = Depends(payments_repository)):
    try:
        payments.delete(payment_id)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        payments.db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/enquiries', response_model=list[EnquiryResponse], tags=['enquiries'])
def list_enquiries(
    enquiry_status: str | None = Query(default=None, alias='status'),
    enquiries: Repository[Enquiry] = Depends(enquiries_repository),
):
    try:
        return enquiries.list(order_by=Enquiry.id.desc(), status=enquiry_status)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/enquiries', response_model=EnquiryResponse, status_code=status.HTTP_201_CREATED, tags=['enquiries'])
def create_enquiry(data: CreateEnquiryRequest, enquiries: Repository[Enquiry] = Depends(enquiries_repository)):
    try:
        return enquiries.add(**data.model_dump())
    except SQLAlchemyError as exc:
        enquiries.db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/enquiries/{enquiry_id}', response_model=EnquiryResponse, tags=['enquiries'])
def get_enquiry(enquiry_id: int, enquiries: Repository[Enquiry] = Depends(enquiries_repository)):
    try:
        return enquiries.get(enquiry_id)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.patch('/enquiries/{enquiry_id}', response_model=EnquiryResponse, tags=['enquiries'])
def update_enquiry(
    enquiry_id: int,
    data: UpdateEnquiryRequest,
    enquiries: Repository[Enquiry] = Depends(enquiries_repository),
):
    try:
        return enquiries.update(enquiry_id, status=data.status)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        enquiries.db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/enquiries/{enquiry_id}', status_code=status.HTTP_204_NO_CONTENT, tags=['enquiries'])
def delete_enquiry(enquiry_id: int, enquiries: Repository[Enquiry] = Depends(enquiries_repository)):
    try:
        enquiries.delete(enquiry_id)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        enquiries.db.rollback()
        raise database_unavailable(exc) from exc
