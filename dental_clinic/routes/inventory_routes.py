import datetime as dt

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, computed_field
from sqlalchemy.exc import SQLAlchemyError

from dental_clinic.errors import RecordNotFoundError
from dental_clinic.models.inventory import InventoryItem
from dental_clinic.repository import Repository, repository_for
from dental_clinic.routes.common import database_unavailable, not_found
from dental_clinic.services.dashboard import low_stock_items

router = APIRouter(tags=['inventory'])

inventory_repository = repository_for(InventoryItem)


class CreateInventoryItemRequest(BaseModel):
    name: str
    category: str = 'medicine'
    description: str | None = None
    stock: int = Field(default=0, ge=0)
    unit: str = 'unit'
    reorder_level: int = Field(default=10, ge=0)
    price: float = Field(default=0, ge=0)
    expiry_date: dt.date | None = None
    doctor_id: int | None = None


class UpdateInventoryItemRequest(BaseModel):
    name: str | None = None
    category: str | None = None
    description: str | None = None
    stock: int | None = Field(default=None, ge=0)
    unit: str | None = None
    reorder_level: int | None = Field(default=None, ge=0)
    price: float | None = Field(default=None, ge=0)
    expiry_date: dt.date | None = None


class InventoryItemResponse(BaseModel):
    id: int
    doctor_id: int | None = None
    name: str
    category: str
    description: str | None = None
    stock: int
    unit: str
    reorder_level: int
    price: float
    expiry_date: dt.date | None = None

    class Config:
        from_attributes = True

    @computed_field
    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.reorder_level


@router.get('', response_model=list[InventoryItemResponse])
def list_inventory(
    category: str | None = Query(default=None),
    stock_status: str | None = Query(default=None, alias='status', pattern='^(low|in-stock)$'),
    items: Repository[InventoryItem] = Depends(inventory_repository),
):
    try:
        query = items.db.query(InventoryItem)
        if category is not None:
            query = query.filter(InventoryItem.category == category)
        if stock_status == 'low':
            query = query.filter(InventoryItem.stock <= InventoryItem.reorder_level)
        elif stock_status == 'in-stock':
            query = query.filter(InventoryItem.stock > InventoryItem.reorder_level)
        return query.order_by(InventoryItem.name.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/low-stock', response_model=list[InventoryItemResponse])
def list_low_stock(
    category: str | None = Query(default=None),
    items: Repository[InventoryItem] = Depends(inventory_repository),
):
    try:
        return low_stock_items(items.db, category)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('', response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
def create_inventory_item(
    data: CreateInventoryItemRequest,
    items: Repository[InventoryItem] = Depends(inventory_repository),
):
    try:
        return items.add(**data.model_dump())
    except SQLAlchemyError as exc:
        items.db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/{item_id}', response_model=InventoryItemResponse)
def get_inventory_item(item_id: int, items: Repository[InventoryItem] = Depends(inventory_repository)):
    try:
        return items.get(item_id)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.patch('/{item_id}', response_model=InventoryItemResponse)
def update_inventory_item(
    item_id: int,
    data: UpdateInventoryItemRequest,
    items: Repository[InventoryItem] = Depends(inventory_repository),
):
    try:
        return items.update(item_id, **data.model_dump(exclude_unset=True, exclude_none=True))
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        items.db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/{item_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory_item(item_id: int, items: Repository[InventoryItem] = Depends(inventory_repository)):
    try:
        items.delete(item_id)
    except RecordNotFoundError as exc:
        raise not_found(exc) from exc
    except SQLAlchemyError as exc:
        items.db.rollback()
        raise database_unavailable(exc) from exc
