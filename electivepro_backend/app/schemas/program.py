from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import not_null
from app.schemas.degree import RecordStatus


class ProgramCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    name_ru: str | None = None
    code: str | None = None
    description: str | None = None
    degree_id: int | None = None
    status: RecordStatus = "active"


class ProgramUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1)
    name_ru: str | None = None
    code: str | None = None
    description: str | None = None
    degree_id: int | None = None
    status: RecordStatus | None = None

    @field_validator("name", "status")
    @classmethod
    def reject_null(cls, value):
        return not_null(value)


class ProgramResponse(ProgramCreateRequest):
    id: int
    institution_id: int
    created_at: datetime | None = None

    model_config = {
        "from_attributes": True,
    }


class ProgramRow(ProgramResponse):
    degree_name: str | None = None
