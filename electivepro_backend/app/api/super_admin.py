from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.models.profile import Profile
from app.schemas.institution import (
    InstitutionAdminCreate,
    InstitutionCreateRequest,
    InstitutionResponse,
    InstitutionUpdateRequest,
)
from app.schemas.page import Page
from app.schemas.user import ProfileResponse
from app.services import institutions
from app.services.auth import require_roles
from app.services.listing import paginate

router = APIRouter(prefix="/super-admin", tags=["super-admin"])

_super_admin = require_roles("super_admin")


@router.get("/institutions", response_model=Page[InstitutionResponse])
def list_institutions_endpoint(
    q: str | None = None,
    active: bool | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.page_size, ge=1, le=100),
    _: Profile = Depends(_super_admin),
    db: Session = Depends(get_db),
):
    return paginate(institutions.list_institutions(db, q, active), page, per_page)


@router.post("/institutions", response_model=InstitutionResponse, status_code=201)
def create_institution_endpoint(
    payload: InstitutionCreateRequest,
    _: Profile = Depends(_super_admin),
    db: Session = Depends(get_db),
):
    return institutions.create_institution(db, payload)


@router.get("/institutions/{institution_id}", response_model=InstitutionResponse)
def get_institution_endpoint(
    institution_id: int,
    _: Profile = Depends(_super_admin),
    db: Session = Depends(get_db),
):
    return institutions.get_institution(db, institution_id)


@router.put("/institutions/{institution_id}", response_model=InstitutionResponse)
def update_institution_endpoint(
    institution_id: int,
    payload: InstitutionUpdateRequest,
    _: Profile = Depends(_super_admin),
    db: Session = Depends(get_db),
):
    return institutions.update_institution(db, institution_id, payload)


@router.post("/institutions/{institution_id}/toggle-status", response_model=InstitutionResponse)
def toggle_institution_endpoint(
    institution_id: int,
    _: Profile = Depends(_super_admin),
    db: Session = Depends(get_db),
):
    return institutions.toggle_institution(db, institution_id)


@router.post("/institutions/{institution_id}/admins", response_model=ProfileResponse, status_code=201)
def create_admin_endpoint(
    institution_id: int,
    payload: InstitutionAdminCreate,
    _: Profile = Depends(_super_admin),
    db: Session = Depends(get_db),
):
    return institutions.create_institution_admin(db, institution_id, payload)
