from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.models.profile import Profile
from app.schemas.course import (
    CourseCreateRequest,
    CourseResponse,
    CourseRow,
    CourseStatusUpdate,
    CourseUpdateRequest,
)
from app.schemas.dashboard import AdminDashboard
from app.schemas.degree import DegreeCreateRequest, DegreeResponse, DegreeUpdateRequest
from app.schemas.group import GroupCreateRequest, GroupResponse, GroupRow, GroupUpdateRequest
from app.schemas.institution import BrandingUpdateRequest, InstitutionResponse, InstitutionUpdateRequest
from app.schemas.page import Page
from app.schemas.program import ProgramCreateRequest, ProgramResponse, ProgramRow, ProgramUpdateRequest
from app.schemas.university import UniversityCreateRequest, UniversityResponse, UniversityUpdateRequest
from app.schemas.user import ProfileCreateRequest, ProfileResponse, ProfileRow, ProfileUpdateRequest
from app.services import courses, references, universities, users
from app.services.auth import require_roles
from app.services.dashboard import admin_dashboard
from app.services.institutions import get_institution, update_institution
from app.services.listing import paginate

router = APIRouter(prefix="/admin", tags=["admin"])

_admin = require_roles("admin")


@router.get("/dashboard", response_model=AdminDashboard)
def dashboard_endpoint(admin: Profile = Depends(_admin), db: Session = Depends(get_db)):
    return admin_dashboard(db, admin.institution_id)


# ── Institution settings ──────────────────────────────────────────────────────

@router.get("/institution", response_model=InstitutionResponse)
def get_institution_endpoint(admin: Profile = Depends(_admin), db: Session = Depends(get_db)):
    return get_institution(db, admin.institution_id)


@router.put("/institution", response_model=InstitutionResponse)
def update_branding_endpoint(
    payload: BrandingUpdateRequest,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    values = InstitutionUpdateRequest(**payload.model_dump(exclude_unset=True))
    return update_institution(db, admin.institution_id, values)


# ── Users ─────────────────────────────────────────────────────────────────────

@router.get("/users", response_model=Page[ProfileRow])
def list_users_endpoint(
    q: str | None = None,
    role: str | None = None,
    status: str | None = Query(None, description="active | inactive"),
    group_id: int | None = None,
    program_id: int | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.page_size, ge=1, le=100),
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    rows = users.list_users(db, admin.institution_id, q, role, status, group_id, program_id)
    return paginate(rows, page, per_page)


@router.post("/users", response_model=ProfileResponse, status_code=201)
def create_user_endpoint(
    payload: ProfileCreateRequest,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return users.create_user(db, admin.institution_id, payload)


@router.get("/users/{user_id}", response_model=ProfileRow)
def get_user_endpoint(user_id: int, admin: Profile = Depends(_admin), db: Session = Depends(get_db)):
    return users.to_row(users.get_user(db, admin.institution_id, user_id))


@router.put("/users/{user_id}", response_model=ProfileResponse)
def update_user_endpoint(
    user_id: int,
    payload: ProfileUpdateRequest,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return users.update_user(db, admin.institution_id, user_id, payload)


@router.post("/users/{user_id}/toggle-status", response_model=ProfileResponse)
def toggle_user_endpoint(user_id: int, admin: Profile = Depends(_admin), db: Session = Depends(get_db)):
    return users.toggle_user_status(db, admin.institution_id, user_id, admin.id)


@router.delete("/users/{user_id}", status_code=204)
def delete_user_endpoint(user_id: int, admin: Profile = Depends(_admin), db: Session = Depends(get_db)):
    users.delete_user(db, admin.institution_id, user_id, admin.id)


# ── Degrees ───────────────────────────────────────────────────────────────────

@router.get("/degrees", response_model=list[DegreeResponse])
def list_degrees_endpoint(
    q: str | None = None,
    status: str | None = None,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return references.list_degrees(db, admin.institution_id, q, status)


@router.post("/degrees", response_model=DegreeResponse, status_code=201)
def create_degree_endpoint(
    payload: DegreeCreateRequest,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return references.create_degree(db, admin.institution_id, payload)


@router.put("/degrees/{degree_id}", response_model=DegreeResponse)
def update_degree_endpoint(
    degree_id: int,
    payload: DegreeUpdateRequest,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return references.update_degree(db, admin.institution_id, degree_id, payload)


@router.delete("/degrees/{degree_id}", status_code=204)
def delete_degree_endpoint(degree_id: int, admin: Profile = Depends(_admin), db: Session = Depends(get_db)):
    references.delete_degree(db, admin.institution_id, degree_id)


# ── Programs ──────────────────────────────────────────────────────────────────

@router.get("/programs", response_model=list[ProgramRow])
def list_programs_endpoint(
    q: str | None = None,
    degree_id: int | None = None,
    status: str | None = None,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return references.list_programs(db, admin.institution_id, q, degree_id, status)


@router.post("/programs", response_model=ProgramResponse, status_code=201)
def create_program_endpoint(
    payload: ProgramCreateRequest,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return references.create_program(db, admin.institution_id, payload)


@router.get("/programs/{program_id}", response_model=ProgramResponse)
def get_program_endpoint(program_id: int, admin: Profile = Depends(_admin), db: Session = Depends(get_db)):
    return references.get_program(db, admin.institution_id, program_id)


@router.get("/programs/{program_id}/students", response_model=list[ProfileRow])
def program_students_endpoint(
    program_id: int,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return users.list_program_students(db, admin.institution_id, program_id)


@router.put("/programs/{program_id}", response_model=ProgramResponse)
def update_program_endpoint(
    program_id: int,
    payload: ProgramUpdateRequest,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return references.update_program(db, admin.institution_id, program_id, payload)


@router.delete("/programs/{program_id}", status_code=204)
def delete_program_endpoint(program_id: int, admin: Profile = Depends(_admin), db: Session = Depends(get_db)):
    references.delete_program(db, admin.institution_id, program_id)


# ── Groups ────────────────────────────────────────────────────────────────────

@router.get("/groups", response_model=list[GroupRow])
def list_groups_endpoint(
    q: str | None = None,
    program_id: int | None = None,
    degree_id: int | None = None,
    academic_year: str | None = None,
    status: str | None = None,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return references.list_groups(db, admin.institution_id, q, program_id, degree_id, academic_year, status)


@router.post("/groups", response_model=GroupResponse, status_code=201)
def create_group_endpoint(
    payload: GroupCreateRequest,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return references.create_group(db, admin.institution_id, payload)


@router.put("/groups/{group_id}", response_model=GroupResponse)
def update_group_endpoint(
    group_id: int,
    payload: GroupUpdateRequest,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return references.update_group(db, admin.institution_id, group_id, payload)


@router.delete("/groups/{group_id}", status_code=204)
def delete_group_endpoint(group_id: int, admin: Profile = Depends(_admin), db: Session = Depends(get_db)):
    references.delete_group(db, admin.institution_id, group_id)


# ── Courses ───────────────────────────────────────────────────────────────────

@router.get("/courses", response_model=Page[CourseRow])
def list_courses_endpoint(
    q: str | None = None,
    status: str | None = None,
    degree_id: int | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.page_size, ge=1, le=100),
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    rows = courses.list_courses(db, admin.institution_id, q, status, degree_id)
    return paginate(rows, page, per_page)


@router.post("/courses", response_model=CourseResponse, status_code=201)
def create_course_endpoint(
    payload: CourseCreateRequest,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return courses.create_course(db, admin.institution_id, payload)


@router.get("/courses/{course_id}", response_model=CourseResponse)
def get_course_endpoint(course_id: int, admin: Profile = Depends(_admin), db: Session = Depends(get_db)):
    return courses.get_course(db, admin.institution_id, course_id)


@router.put("/courses/{course_id}", response_model=CourseResponse)
def update_course_endpoint(
    course_id: int,
    payload: CourseUpdateRequest,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return courses.update_course(db, admin.institution_id, course_id, payload)


@router.patch("/courses/{course_id}/status", response_model=CourseResponse)
def set_course_status_endpoint(
    course_id: int,
    payload: CourseStatusUpdate,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return courses.set_course_status(db, admin.institution_id, course_id, payload.status)


@router.delete("/courses/{course_id}", status_code=204)
def delete_course_endpoint(course_id: int, admin: Profile = Depends(_admin), db: Session = Depends(get_db)):
    courses.delete_course(db, admin.institution_id, course_id)


# ── Universities ──────────────────────────────────────────────────────────────
# NOTE: /universities/countries must be registered before /universities/{university_id}

@router.get("/universities", response_model=Page[UniversityResponse])
def list_universities_endpoint(
    q: str | None = None,
    country: str | None = None,
    status: str | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.page_size, ge=1, le=100),
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    rows = universities.list_universities(db, admin.institution_id, q, country, status)
    return paginate(rows, page, per_page)


@router.get("/universities/countries", response_model=list[str])
def list_countries_endpoint(admin: Profile = Depends(_admin), db: Session = Depends(get_db)):
    return universities.list_countries(db, admin.institution_id)


@router.post("/universities", response_model=UniversityResponse, status_code=201)
def create_university_endpoint(
    payload: UniversityCreateRequest,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return universities.create_university(db, admin.institution_id, payload)


@router.get("/universities/{university_id}", response_model=UniversityResponse)
def get_university_endpoint(university_id: int, admin: Profile = Depends(_admin), db: Session = Depends(get_db)):
    return universities.get_university(db, admin.institution_id, university_id)


@router.put("/universities/{university_id}", response_model=UniversityResponse)
def update_university_endpoint(
    university_id: int,
    payload: UniversityUpdateRequest,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return universities.update_university(db, admin.institution_id, university_id, payload)


@router.post("/universities/{university_id}/toggle-status", response_model=UniversityResponse)
def toggle_university_endpoint(
    university_id: int,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    return universities.toggle_university_status(db, admin.institution_id, university_id)


@router.delete("/universities/{university_id}", status_code=204)
def delete_university_endpoint(
    university_id: int,
    admin: Profile = Depends(_admin),
    db: Session = Depends(get_db),
):
    universities.delete_university(db, admin.institution_id, university_id)
