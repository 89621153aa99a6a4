"""Pydantic schemas for Customer CRUD operations."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from factucr.models.tenant.customer import IdentificationType


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    commercial_name: str | None = Field(None, max_length=200)
    identification_type: IdentificationType
    identification_number: str = Field(..., min_length=9, max_length=20, pattern=r"^[0-9\- ]+$")
    phone1: str | None = Field(None, max_length=20)
    phone2: str | None = Field(None, max_length=20)
    email: EmailStr | None = None
    province: str | None = Field(None, pattern=r"^[1-7]$")
    canton: str | None = Field(None, pattern=r"^\d{2}$")
    district: str | None = Field(None, pattern=r"^\d{2}$")
    neighborhood: str | None = Field(None, pattern=r"^\d{2}$")
    address: str | None = None


class CustomerUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    commercial_name: str | None = Field(None, max_length=200)
    identification_type: IdentificationType | None = None
    identification_number: str | None = Field(None, min_length=9, max_length=20, pattern=r"^[0-9\- ]+$")
    phone1: str | None = Field(None, max_length=20)
    phone2: str | None = Field(None, max_length=20)
    email: EmailStr | None = None
    province: str | None = Field(None, pattern=r"^[1-7]$")
    canton: str | None = Field(None, pattern=r"^\d{2}$")
    district: str | None = Field(None, pattern=r"^\d{2}$")
    neighborhood: str | None = Field(None, pattern=r"^\d{2}$")
    address: str | None = None
    is_active: bool | None = None


class CustomerOut(BaseModel):
    id: str
    name: str
    commercial_name: str | None
    identification_type: str
    identification_number: str
    phone1: str | None
    phone2: str | None
    email: str | None
    province: str | None
    canton: str | None
    district: str | None
    neighborhood: str | None
    address: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
