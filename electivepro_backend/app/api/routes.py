from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api import admin, manager, student, super_admin
from app.core.database import get_db
from app.core.tenancy import get_current_institution
from app.models.institution import Institution
from app.models.profile import Profile
from app.schemas.auth import LoginRequest, PasswordChangeRequest, RegisterRequest, TokenResponse
from app.schemas.institution import InstitutionResponse
from app.schemas.user import ProfileRow
from app.services.auth import change_password, get_current_user, login_user, register_student
from app.services.users import to_row

router = APIRouter(prefix="/api")


# ── Tenant ────────────────────────────────────────────────────────────────────

@router.get("/institution", response_model=InstitutionResponse)
def current_institution_endpoint(institution: Institution = Depends(get_current_institution)):
    """Branding for the tenant named by the request host."""
    return institution


# ── Auth ──────────────────────────────────────────────────────────────────────

@router.post("/auth/register", response_model=TokenResponse, status_code=201)
def register_endpoint(
    payload: RegisterRequest,
    institution: Institution = Depends(get_current_institution),
    db: Session = Depends(get_db),
):
    return register_student(db, institution, payload)


@router.post("/auth/login", response_model=TokenResponse)
def login_endpoint(payload: LoginRequest, db: Session = Depends(get_db)):
    return login_user(db, payload)


@router.get("/me", response_model=ProfileRow)
def me_endpoint(current_user: Profile = Depends(get_current_user)):
    return to_row(current_user)


@router.put("/me/password", status_code=204)
def change_password_endpoint(
    payload: PasswordChangeRequest,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    change_password(db, current_user, payload)


router.include_router(super_admin.router)
router.include_router(admin.router)
router.include_router(manager.router)
router.include_router(student.router)
