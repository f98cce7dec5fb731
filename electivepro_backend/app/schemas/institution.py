from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.common import not_null

Plan = Literal["free", "standard", "professional", "enterprise"]
_SUBDOMAIN_PATTERN = r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$"


class InstitutionCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    subdomain: str = Field(..., min_length=2, max_length=63, pattern=_SUBDOMAIN_PATTERN)
    domain: str | None = None
    plan: Plan = "free"
    primary_color: str | None = None
    logo_url: str | None = None


class InstitutionUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1)
    domain: str | None = None
    plan: Plan | None = None
    primary_color: str | None = None
    logo_url: str | None = None

    @field_validator("name", "plan")
    @classmethod
    def reject_null(cls, value):
        return not_null(value)


class InstitutionResponse(BaseModel):
    id: int
    name: str
    subdomain: str
    domain: str | None = None
    plan: str
    is_active: bool
    primary_color: str | None = None
    logo_url: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class InstitutionAdminCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8)


class BrandingUpdateRequest(BaseModel):
    """Fields an institution admin may change on their own tenant."""

    name: str | None = Field(None, min_length=1)
    primary_color: str | None = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    logo_url: str | None = None

    @field_validator("name")
    @classmethod
    def reject_null(cls, value):
        return not_null(value)
