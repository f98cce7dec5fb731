import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.cache import data_cache
from app.core.database import get_db
from app.core.security import create_access_token, decode_access_token, hash_password, verify_password
from app.models.institution import Institution
from app.models.profile import Profile
from app.schemas.auth import LoginRequest, PasswordChangeRequest, RegisterRequest, TokenResponse
from app.services.references import ensure_in_institution

logger = logging.getLogger(__name__)

_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _token_for(profile: Profile) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(profile.id, profile.role, profile.institution_id),
        user_id=profile.id,
        role=profile.role,
        institution_id=profile.institution_id,
    )


def register_student(db: Session, institution: Institution, payload: RegisterRequest) -> TokenResponse:
    if db.query(Profile).filter(Profile.email == payload.email).first():
        raise HTTPException(status_code=409, detail="Email already registered.")
    ensure_in_institution(db, institution.id, payload.degree_id, payload.group_id, payload.program_id)
    profile = Profile(
        institution_id=institution.id,
        email=payload.email,
        hashed_password=hash_password(payload.password),
        full_name=payload.full_name,
        role="student",
        student_number=payload.student_number,
        degree_id=payload.degree_id,
        group_id=payload.group_id,
        program_id=payload.program_id,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    data_cache.invalidate("users", institution.id)
    logger.info("Registered student %s in institution %s", profile.id, institution.subdomain)
    return _token_for(profile)


def _check_active(profile: Profile) -> None:
    if not profile.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated.")
    # super admins have no institution
    if profile.institution is not None and not profile.institution.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Institution is deactivated.")


def login_user(db: Session, payload: LoginRequest) -> TokenResponse:
    profile = db.query(Profile).filter(Profile.email == payload.email).first()
    if not profile or not verify_password(payload.password, profile.hashed_password):
        logger.warning("Failed login for %s", payload.email)
        raise HTTPException(status_code=401, detail="Invalid email or password.")
    _check_active(profile)
    return _token_for(profile)


def get_current_user(
    token: str | None = Depends(_oauth2_scheme),
    db: Session = Depends(get_db),
) -> Profile:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated.")
    profile_id = decode_access_token(token)
    if profile_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token.")
    profile = db.get(Profile, profile_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found.")
    _check_active(profile)
    return profile


def require_roles(*roles: str):
    """Dependency factory: the caller must hold one of ``roles`` and belong to an institution
    unless they are a super admin."""

    def dependency(current_user: Profile = Depends(get_current_user)) -> Profile:
        if current_user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions.")
        if current_user.role != "super_admin" and current_user.institution_id is None:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No institution assigned.")
        return current_user

    return dependency


def change_password(db: Session, profile: Profile, payload: PasswordChangeRequest) -> None:
    if not verify_password(payload.current_password, profile.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect.")
    profile.hashed_password = hash_password(payload.new_password)
    db.commit()
    logger.info("Profile %s changed their password", profile.id)
