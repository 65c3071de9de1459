"""Inventory model definitions."""

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String, func
from dental_clinic.database import Base


class InventoryItem(Base):
    """A stocked medicine, consumable or billable service."""
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), index=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False, default="medicine")
    description = Column(String)
    stock = Column(Integer, nullable=False, default=0)
    unit = Column(String, default="unit")
    reorder_level = Column(Integer, nullable=False, default=10)
    price = Column(Float, nullable=False, default=0)
    expiry_date = Column(Date)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
