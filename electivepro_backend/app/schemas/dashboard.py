from pydantic import BaseModel


class AdminDashboard(BaseModel):
    users_by_role: dict[str, int]
    active_users: int
    courses: int
    universities: int
    packs_by_status: dict[str, int]


class ManagerDashboard(BaseModel):
    packs_by_status: dict[str, int]
    pending_selections: int
    approved_selections: int
    rejected_selections: int


class StudentDashboard(BaseModel):
    open_packs: int
    selections_by_status: dict[str, int]
    upcoming_deadlines: list[dict]
