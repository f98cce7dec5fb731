from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

PackKind = Literal["course", "exchange"]
PackStatus = Literal["draft", "published", "closed", "archived"]


class PackBuilderBase(BaseModel):
    """Everything the multi-step builder collected, submitted in one request."""

    name: str | None = None
    name_ru: str | None = None
    description: str | None = None
    semester: Literal["fall", "spring"] | None = None
    year: int | None = Field(None, ge=2000, le=2100)
    deadline: datetime
    max_selections: int = Field(1, ge=1)
    template_url: str | None = None
    status: Literal["draft", "published"] = "draft"


class CourseBuilderRequest(PackBuilderBase):
    course_ids: list[int] = Field(..., min_length=1)


class ExchangeBuilderRequest(PackBuilderBase):
    university_ids: list[int] = Field(..., min_length=1)


class PackUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1)
    name_ru: str | None = None
    description: str | None = None
    deadline: datetime | None = None
    max_selections: int | None = Field(None, ge=1)
    template_url: str | None = None
    # Replaces the pack's course or university list when provided
    item_ids: list[int] | None = Field(None, min_length=1)


class PackStatusUpdate(BaseModel):
    status: PackStatus


class PackResponse(BaseModel):
    id: int
    institution_id: int
    kind: str
    name: str
    name_ru: str | None = None
    description: str | None = None
    status: str
    deadline: datetime
    max_selections: int
    template_url: str | None = None
    created_at: datetime | None = None
    item_count: int = 0
    selection_count: int = 0

    model_config = {"from_attributes": True}


class PackItemOut(BaseModel):
    """A course or partner university offered in a pack."""

    id: int
    name: str
    name_ru: str | None = None
    code: str | None = None
    instructor: str | None = None
    country: str | None = None
    city: str | None = None
    max_students: int | None = None
    enrollment_count: int = 0
    remaining: int | None = None


class PackDetailResponse(PackResponse):
    items: list[PackItemOut] = []
