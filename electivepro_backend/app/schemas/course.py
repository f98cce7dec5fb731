from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import not_null

CourseStatus = Literal["active", "inactive", "draft"]


class CourseCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    name_ru: str | None = None
    code: str = Field(..., min_length=1)
    credits: int | None = Field(None, ge=0)
    instructor: str | None = None
    description: str | None = None
    degree_id: int | None = None
    max_students: int | None = Field(None, ge=1)
    status: CourseStatus = "active"


class CourseUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1)
    name_ru: str | None = None
    code: str | None = Field(None, min_length=1)
    credits: int | None = Field(None, ge=0)
    instructor: str | None = None
    description: str | None = None
    degree_id: int | None = None
    max_students: int | None = Field(None, ge=1)

    @field_validator("name", "code")
    @classmethod
    def reject_null(cls, value):
        return not_null(value)


class CourseStatusUpdate(BaseModel):
    status: CourseStatus


class CourseResponse(CourseCreateRequest):
    id: int
    institution_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {
        "from_attributes": True,
    }


class CourseRow(CourseResponse):
    degree_name: str | None = None
