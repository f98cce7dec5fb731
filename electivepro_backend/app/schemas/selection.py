from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.pack import PackDetailResponse

SelectionStatus = Literal["pending", "approved", "rejected"]


class SelectionSubmitRequest(BaseModel):
    item_ids: list[int] = Field(..., min_length=1)


class SelectionStatusUpdate(BaseModel):
    status: SelectionStatus


class SelectedItemOut(BaseModel):
    id: int
    name: str


class SelectionResponse(BaseModel):
    id: int
    student_id: int
    pack_id: int
    status: str
    statement_path: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    items: list[SelectedItemOut] = []


class SelectionRow(SelectionResponse):
    """Manager view of a selection, joined with the student's profile."""

    student_name: str | None = None
    student_email: str | None = None
    student_number: str | None = None
    group_name: str | None = None
    program_name: str | None = None


class StudentPackOut(BaseModel):
    id: int
    kind: str
    name: str
    name_ru: str | None = None
    description: str | None = None
    status: str
    deadline: datetime
    max_selections: int
    template_url: str | None = None
    is_open: bool
    selection_id: int | None = None
    selection_status: str | None = None  # pending / approved / rejected
    selected_item_ids: list[int] = []


class StudentPackDetail(BaseModel):
    pack: PackDetailResponse
    is_open: bool
    selection: SelectionResponse | None = None
