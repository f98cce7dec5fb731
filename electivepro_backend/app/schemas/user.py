from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.common import not_null

Role = Literal["student", "program_manager", "admin", "super_admin"]
InstitutionRole = Literal["student", "program_manager", "admin"]


class ProfileCreateRequest(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1)
    role: InstitutionRole = "student"
    password: str | None = Field(None, min_length=8)
    degree_id: int | None = None
    group_id: int | None = None
    program_id: int | None = None
    student_number: str | None = None
    academic_year: str | None = None


class ProfileUpdateRequest(BaseModel):
    """All fields optional; only provided fields are written."""

    full_name: str | None = Field(None, min_length=1)
    role: InstitutionRole | None = None
    degree_id: int | None = None
    group_id: int | None = None
    program_id: int | None = None
    student_number: str | None = None
    academic_year: str | None = None
    password: str | None = Field(None, min_length=8)

    @field_validator("full_name", "role", "password")
    @classmethod
    def reject_null(cls, value):
        return not_null(value)


class ProfileResponse(BaseModel):
    id: int
    institution_id: int | None = None
    email: str
    full_name: str
    role: str
    is_active: bool
    degree_id: int | None = None
    group_id: int | None = None
    program_id: int | None = None
    student_number: str | None = None
    academic_year: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class ProfileRow(ProfileResponse):
    degree_name: str | None = None
    group_name: str | None = None
    program_name: str | None = None
