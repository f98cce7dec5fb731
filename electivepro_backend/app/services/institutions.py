import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.core.cache import GLOBAL_SCOPE, data_cache
from app.core.security import hash_password
from app.models.institution import Institution
from app.models.profile import Profile
from app.schemas.institution import (
    InstitutionAdminCreate,
    InstitutionCreateRequest,
    InstitutionResponse,
    InstitutionUpdateRequest,
)
from app.services.listing import filter_eq, search, sort_rows

logger = logging.getLogger(__name__)


def list_institutions(db: Session, q: str | None = None, active: bool | None = None) -> list[dict]:
    def load():
        rows = [
            InstitutionResponse.model_validate(i).model_dump(mode="json")
            for i in db.query(Institution).all()
        ]
        return sort_rows(rows, "name")

    rows = data_cache.get_or_load("institutions", GLOBAL_SCOPE, load)
    rows = search(rows, q, ["name", "subdomain", "domain"])
    return filter_eq(rows, is_active=active)


def get_institution(db: Session, institution_id: int) -> Institution:
    institution = db.get(Institution, institution_id)
    if institution is None:
        raise HTTPException(status_code=404, detail="Institution not found.")
    return institution


def create_institution(db: Session, payload: InstitutionCreateRequest) -> Institution:
    if db.query(Institution).filter(Institution.subdomain == payload.subdomain).first():
        raise HTTPException(status_code=409, detail="Subdomain is already taken.")
    institution = Institution(**payload.model_dump())
    db.add(institution)
    db.commit()
    db.refresh(institution)
    data_cache.invalidate("institutions")
    logger.info("Created institution %s (%s)", institution.id, institution.subdomain)
    return institution


def update_institution(
    db: Session, institution_id: int, payload: InstitutionUpdateRequest
) -> Institution:
    institution = get_institution(db, institution_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(institution, field, value)
    db.commit()
    db.refresh(institution)
    data_cache.invalidate("institutions")
    return institution


def toggle_institution(db: Session, institution_id: int) -> Institution:
    institution = get_institution(db, institution_id)
    institution.is_active = not institution.is_active
    db.commit()
    db.refresh(institution)
    data_cache.invalidate("institutions")
    logger.info("Institution %s is_active -> %s", institution_id, institution.is_active)
    return institution


def create_institution_admin(
    db: Session, institution_id: int, payload: InstitutionAdminCreate
) -> Profile:
    get_institution(db, institution_id)
    if db.query(Profile).filter(Profile.email == payload.email).first():
        raise HTTPException(status_code=409, detail="Email already registered.")
    admin = Profile(
        institution_id=institution_id,
        email=payload.email,
        full_name=payload.full_name,
        hashed_password=hash_password(payload.password),
        role="admin",
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    data_cache.invalidate("users", institution_id)
    logger.info("Created admin %s for institution %s", admin.id, institution_id)
    return admin
