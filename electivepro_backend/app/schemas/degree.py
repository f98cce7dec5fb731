from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import not_null

RecordStatus = Literal["active", "inactive"]


class DegreeCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    name_ru: str | None = None
    code: str = Field(..., min_length=1)
    duration_years: int | None = Field(None, ge=1, le=10)
    status: RecordStatus = "active"


class DegreeUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1)
    name_ru: str | None = None
    code: str | None = Field(None, min_length=1)
    duration_years: int | None = Field(None, ge=1, le=10)
    status: RecordStatus | None = None

    @field_validator("name", "code", "status")
    @classmethod
    def reject_null(cls, value):
        return not_null(value)


class DegreeResponse(DegreeCreateRequest):
    id: int
    institution_id: int
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
