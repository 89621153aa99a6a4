"""Pydantic schemas for the company (issuer) profile."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from factucr.config import settings


class CompanyProfileIn(BaseModel):
    business_name: str = Field(..., min_length=1, max_length=200)
    commercial_name: str | None = Field(None, max_length=200)
    # Digits with optional dashes/spaces, e.g. 3-101-123456
    legal_id: str = Field(..., min_length=9, max_length=20, pattern=r"^[0-9\- ]+$")
    activity_code: str = Field(settings.einvoice_activity_code, pattern=r"^\d{6,12}$")
    province: str = Field("1", pattern=r"^[1-7]$")
    canton: str = Field("01", pattern=r"^\d{2}$")
    district: str = Field("01", pattern=r"^\d{2}$")
    neighborhood: str | None = Field(None, pattern=r"^\d{2}$")
    address: str = Field(..., min_length=1)
    phone: str | None = Field(None, max_length=20)
    email: EmailStr | None = None


class CompanyProfileOut(BaseModel):
    id: str
    business_name: str
    commercial_name: str | None
    legal_id: str
    activity_code: str
    province: str
    canton: str
    district: str
    neighborhood: str | None
    address: str
    phone: str | None
    email: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
