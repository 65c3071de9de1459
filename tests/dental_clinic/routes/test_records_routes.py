from datetime import date

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from dental_clinic.models.billing import Enquiry, Payment
from dental_clinic.models.clinical import Prescription, Procedure
from dental_clinic.models.inventory import InventoryItem
from dental_clinic.repository import Repository
from dental_clinic.routes.billing_routes import (
    CreateEnquiryRequest,
    CreatePaymentRequest,
    UpdateEnquiryRequest,
    create_enquiry,
    create_payment,
    get_enquiry,
    get_payment,
    list_enquiries,
    list_payments,
    update_enquiry,
)
from dental_clinic.routes.clinical_routes import (
    CreatePrescriptionRequest,
    CreateProcedureRequest,
    MedicationItem,
    UpdatePrescriptionRequest,
    UpdateProcedureRequest,
    create_prescription,
    create_procedure,
    get_prescription,
    get_procedure,
    list_procedures,
    update_prescription,
    update_procedure,
)
from dental_clinic.routes.inventory_routes import (
    CreateInventoryItemRequest,
    InventoryItemResponse,
    UpdateInventoryItemRequest,
    create_inventory_item,
    list_inventory,
    list_low_stock,
    update_inventory_item,
)


def amoxicillin(**overrides) -> MedicationItem:
    values = {'name': 'Amoxicillin', 'dosage': '500mg', 'frequency': 'thrice daily', 'duration': '5 days'}
    values.update(overrides)
    return MedicationItem(**values)


def test_prescription_requires_at_least_one_medication() -> None:
    with pytest.raises(ValidationError):
        CreatePrescriptionRequest(patient_id=1, diagnosis='Abscess', date=date(2026, 1, 5), medications=[])


def test_create_prescription_stores_medications(db, patient_record) -> None:
    prescriptions = Repository(db, Prescription)

    created = create_prescription(
        data=CreatePrescriptionRequest(
            patient_id=patient_record.id,
            diagnosis='Periapical abscess',
            instructions='Take after meals',
            date=date(2026, 1, 5),
            dentist_name='Dr. Mehta',
            medications=[amoxicillin(quantity=15), amoxicillin(name='Ibuprofen', dosage='400mg')],
        ),
        prescriptions=prescriptions,
    )

    fetched = get_prescription(prescription_id=created.id, prescriptions=prescriptions)
    assert [medication.name for medication in fetched.medications] == ['Amoxicillin', 'Ibuprofen']
    assert fetched.medications[0].quantity == 15


def test_update_prescription_replaces_medications(db, patient_record) -> None:
    prescriptions = Repository(db, Prescription)
    created = create_prescription(
        data=CreatePrescriptionRequest(
            patient_id=patient_record.id,
            diagnosis='Pulpitis',
            date=date(2026, 1, 5),
            medications=[amoxicillin()],
        ),
        prescriptions=prescriptions,
    )

    updated = update_prescription(
        prescription_id=created.id,
        data=UpdatePrescriptionRequest(medications=[amoxicillin(name='Paracetamol', dosage='650mg')]),
        prescriptions=prescriptions,
    )

    assert updated.diagnosis == 'Pulpitis'
    assert [medication.name for medication in updated.medications] == ['Paracetamol']


def test_prescription_for_unknown_patient_is_404(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        create_prescription(
            data=CreatePrescriptionRequest(
                patient_id=77,
                diagnosis='Caries',
                date=date(2026, 1, 5),
                medications=[amoxicillin()],
            ),
            prescriptions=Repository(db, Prescription),
        )

    assert exception_info.value.status_code == 404


def test_procedure_defaults_to_planned_and_moves_through_statuses(db, patient_record) -> None:
    procedures = Repository(db, Procedure)

    created = create_procedure(
        data=CreateProcedureRequest(patient_id=patient_record.id, name='Root canal', date=date(2026, 1, 5), cost=4500),
        procedures=procedures,
    )
    assert created.status == 'planned'

    with pytest.raises(ValidationError):
        UpdateProcedureRequest(status='abandoned')

    updated = update_procedure(
        procedure_id=created.id,
        data=UpdateProcedureRequest(status='In-Progress', date=date(2026, 1, 12)),
        procedures=procedures,
    )
    assert updated.status == 'in-progress'
    assert updated.date == date(2026, 1, 12)
    assert [p.id for p in list_procedures(patient_id=None, procedure_status='in-progress', procedures=procedures)] == [
        created.id
    ]


def test_low_stock_excludes_procedure_and_examination_categories(db) -> None:
    items = Repository(db, InventoryItem)
    create_inventory_item(data=CreateInventoryItemRequest(name='Lidocaine', stock=2, reorder_level=5), items=items)
    create_inventory_item(data=CreateInventoryItemRequest(name='Gloves', category='consumable', stock=50), items=items)
    create_inventory_item(
        data=CreateInventoryItemRequest(name='Scaling', category='procedure', stock=0, reorder_level=10),
        items=items,
    )
    create_inventory_item(
        data=CreateInventoryItemRequest(name='Oral exam', category='examination', stock=0),
        items=items,
    )

    assert [item.name for item in list_low_stock(category=None, items=items)] == ['Lidocaine']
    assert {item.name for item in list_inventory(category=None, stock_status='low', items=items)} == {
        'Lidocaine',
        'Scaling',
        'Oral exam',
    }
    assert [item.name for item in list_inventory(category=None, stock_status='in-stock', items=items)] == ['Gloves']


def test_inventory_response_flags_low_stock(db) -> None:
    item = create_inventory_item(
        data=CreateInventoryItemRequest(name='Composite resin', category='material', stock=3, reorder_level=3),
        items=Repository(db, InventoryItem),
    )

    assert InventoryItemResponse.model_validate(item).is_low_stock is True


def test_payment_request_validates_method_and_amount() -> None:
    with pytest.raises(ValidationError):
        CreatePaymentRequest(patient_id=1, amount=0, date=date(2026, 1, 5))
    with pytest.raises(ValidationError):
        CreatePaymentRequest(patient_id=1, amount=100, method='cheque', date=date(2026, 1, 5))

    request = CreatePaymentRequest(patient_id=1, amount=100, method='UPI', date=date(2026, 1, 5))
    assert request.method == 'upi'
    assert request.status == 'pending'


def test_payments_filter_by_status(db, patient_record) -> None:
    payments = Repository(db, Payment)
    create_payment(
        data=CreatePaymentRequest(patient_id=patient_record.id, amount=1200, status='completed', date=date(2026, 1, 5)),
        payments=payments,
    )
    create_payment(
        data=CreatePaymentRequest(patient_id=patient_record.id, amount=300, date=date(2026, 1, 6)),
        payments=payments,
    )

    completed = list_payments(patient_id=patient_record.id, payment_status='completed', payments=payments)

    assert [payment.amount for payment in completed] == [1200]


def test_enquiry_lifecycle(db) -> None:
    enquiries = Repository(db, Enquiry)
    created = create_enquiry(
        data=CreateEnquiryRequest(name='Leela', phone='555-0400', email=' LEELA@example.com ', message='Braces cost?'),
        enquiries=enquiries,
    )
    assert created.status == 'new'
    assert created.email == 'leela@example.com'

    update_enquiry(enquiry_id=created.id, data=UpdateEnquiryRequest(status='Contacted'), enquiries=enquiries)

    assert [e.id for e in list_enquiries(enquiry_status='contacted', enquiries=enquiries)] == [created.id]
    with pytest.raises(ValidationError):
        UpdateEnquiryRequest(status='spam')


def test_update_inventory_item_ignores_explicit_nulls(db) -> None:
    items = Repository(db, InventoryItem)
    created = create_inventory_item(
        data=CreateInventoryItemRequest(name='Alginate', category='material', stock=8, unit='pack'),
        items=items,
    )

    updated = update_inventory_item(
        item_id=created.id,
        data=UpdateInventoryItemRequest(name=None, stock=None, unit=None, price=250),
        items=items,
    )

    assert updated.name == 'Alginate'
    assert updated.stock == 8
    assert updated.unit == 'pack'
    assert updated.price == 250


def test_records_are_fetched_by_id(db, patient_record) -> None:
    procedures = Repository(db, Procedure)
    payments = Repository(db, Payment)
    enquiries = Repository(db, Enquiry)
    procedure = create_procedure(
        data=CreateProcedureRequest(patient_id=patient_record.id, name='Extraction', date=date(2026, 1, 5)),
        procedures=procedures,
    )
    payment = create_payment(
        data=CreatePaymentRequest(patient_id=patient_record.id, amount=800, date=date(2026, 1, 5)),
        payments=payments,
    )
    enquiry = create_enquiry(
        data=CreateEnquiryRequest(name='Farah', phone='555-0410', message='Do you do implants?'),
        enquiries=enquiries,
    )

    assert get_procedure(procedure_id=procedure.id, procedures=procedures).name == 'Extraction'
    assert get_payment(payment_id=payment.id, payments=payments).amount == 800
    assert get_enquiry(enquiry_id=enquiry.id, enquiries=enquiries).name == 'Farah'

    with pytest.raises(HTTPException) as exception_info:
        get_payment(payment_id=payment.id + 100, payments=payments)
    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Payment not found.'
