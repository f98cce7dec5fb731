from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import not_null
from app.schemas.degree import RecordStatus


class GroupCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    degree_id: int | None = None
    program_id: int | None = None
    academic_year: str | None = None
    status: RecordStatus = "active"


class GroupUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1)
    degree_id: int | None = None
    program_id: int | None = None
    academic_year: str | None = None
    status: RecordStatus | None = None

    @field_validator("name", "status")
    @classmethod
    def reject_null(cls, value):
        return not_null(value)


class GroupResponse(GroupCreateRequest):
    id: int
    institution_id: int
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class GroupRow(GroupResponse):
    degree_name: str | None = None
    program_name: str | None = None
    student_count: int = 0
