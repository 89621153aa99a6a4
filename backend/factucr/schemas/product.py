"""Pydantic schemas for the products & services catalogue."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from factucr.models.tenant.product_service import ItemType


class ProductCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    item_type: ItemType
    unit_measure: str = Field("Unid", max_length=20)
    unit_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    tax_rate: Decimal = Field(Decimal("13.00"), ge=0, le=100, decimal_places=2)


class ProductUpdate(BaseModel):
    code: str | None = Field(None, min_length=1, max_length=50)
    name: str | None = Field(None, min_length=1, max_length=255)
    item_type: ItemType | None = None
    unit_measure: str | None = Field(None, max_length=20)
    unit_price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    tax_rate: Decimal | None = Field(None, ge=0, le=100, decimal_places=2)
    is_active: bool | None = None


class ProductOut(BaseModel):
    id: str
    code: str
    name: str
    item_type: str
    unit_measure: str
    unit_price: Decimal
    tax_rate: Decimal
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
