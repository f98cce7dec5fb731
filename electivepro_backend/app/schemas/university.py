from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import not_null
from app.schemas.degree import RecordStatus


class UniversityCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    name_ru: str | None = None
    country: str = Field(..., min_length=1)
    city: str | None = None
    website: str | None = None
    description: str | None = None
    language: str | None = None
    max_students: int | None = Field(None, ge=1)
    status: RecordStatus = "active"


class UniversityUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1)
    name_ru: str | None = None
    country: str | None = Field(None, min_length=1)
    city: str | None = None
    website: str | None = None
    description: str | None = None
    language: str | None = None
    max_students: int | None = Field(None, ge=1)

    @field_validator("name", "country")
    @classmethod
    def reject_null(cls, value):
        return not_null(value)


class UniversityResponse(UniversityCreateRequest):
    id: int
    institution_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
