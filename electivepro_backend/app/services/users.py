import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.core.cache import data_cache
from app.core.security import hash_password
from app.models.profile import Profile
from app.models.selection import Selection
from app.schemas.user import ProfileCreateRequest, ProfileRow, ProfileUpdateRequest
from app.services.listing import filter_eq, search, sort_rows
from app.services.references import ensure_in_institution, get_owned, get_program

logger = logging.getLogger(__name__)


def to_row(profile: Profile) -> dict:
    return ProfileRow.model_validate(profile).model_copy(
        update={
            "degree_name": profile.degree.name if profile.degree else None,
            "group_name": profile.group.name if profile.group else None,
            "program_name": profile.program.name if profile.program else None,
        }
    ).model_dump(mode="json")


def _load_users(db: Session, institution_id: int) -> list[dict]:
    profiles = db.query(Profile).filter(Profile.institution_id == institution_id).all()
    return sort_rows([to_row(p) for p in profiles], "full_name")


def list_users(
    db: Session,
    institution_id: int,
    q: str | None = None,
    role: str | None = None,
    status: str | None = None,
    group_id: int | None = None,
    program_id: int | None = None,
) -> list[dict]:
    rows = data_cache.get_or_load("users", institution_id, lambda: _load_users(db, institution_id))
    rows = search(rows, q, ["full_name", "email", "student_number"])
    is_active = {"active": True, "inactive": False}.get(status or "")
    return filter_eq(rows, role=role, is_active=is_active, group_id=group_id, program_id=program_id)


def list_program_students(db: Session, institution_id: int, program_id: int) -> list[dict]:
    get_program(db, institution_id, program_id)

    def load():
        students = (
            db.query(Profile)
            .filter(Profile.program_id == program_id, Profile.role == "student")
            .all()
        )
        return sort_rows([to_row(s) for s in students], "full_name")

    return data_cache.get_or_load("program_students", program_id, load)


def get_user(db: Session, institution_id: int, user_id: int) -> Profile:
    return get_owned(db, Profile, user_id, institution_id, "User")


def _invalidate(institution_id: int, *program_ids: int | None) -> None:
    data_cache.invalidate("users", institution_id)
    data_cache.invalidate("groups", institution_id)  # student counts
    for program_id in program_ids:
        if program_id is not None:
            data_cache.invalidate("program_students", program_id)


def create_user(db: Session, institution_id: int, payload: ProfileCreateRequest) -> Profile:
    if db.query(Profile).filter(Profile.email == payload.email).first():
        raise HTTPException(status_code=409, detail="Email already registered.")
    ensure_in_institution(db, institution_id, payload.degree_id, payload.group_id, payload.program_id)
    values = payload.model_dump(exclude={"password"})
    profile = Profile(
        institution_id=institution_id,
        hashed_password=hash_password(payload.password) if payload.password else None,
        **values,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    _invalidate(institution_id, profile.program_id)
    logger.info("Created %s %s in institution %s", profile.role, profile.id, institution_id)
    return profile


def update_user(
    db: Session, institution_id: int, user_id: int, payload: ProfileUpdateRequest
) -> Profile:
    profile = get_owned(db, Profile, user_id, institution_id, "User")
    values = payload.model_dump(exclude_unset=True)
    password = values.pop("password", None)
    ensure_in_institution(
        db,
        institution_id,
        values.get("degree_id"),
        values.get("group_id"),
        values.get("program_id"),
    )
    if password:
        # sets the first password for invited users too
        profile.hashed_password = hash_password(password)
    previous_program = profile.program_id
    for field, value in values.items():
        setattr(profile, field, value)
    db.commit()
    db.refresh(profile)
    _invalidate(institution_id, previous_program, profile.program_id)
    return profile


def toggle_user_status(db: Session, institution_id: int, user_id: int, acting_user_id: int) -> Profile:
    profile = get_owned(db, Profile, user_id, institution_id, "User")
    if profile.id == acting_user_id:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account.")
    profile.is_active = not profile.is_active
    db.commit()
    db.refresh(profile)
    _invalidate(institution_id, profile.program_id)
    logger.info("User %s is_active -> %s", user_id, profile.is_active)
    return profile


def delete_user(db: Session, institution_id: int, user_id: int, acting_user_id: int) -> None:
    profile = get_owned(db, Profile, user_id, institution_id, "User")
    if profile.id == acting_user_id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account.")
    for selection in db.query(Selection).filter(Selection.student_id == user_id).all():
        db.delete(selection)
    db.delete(profile)
    db.commit()
    _invalidate(institution_id, profile.program_id)
    data_cache.invalidate("student_selections", user_id)
    logger.info("Deleted user %s", user_id)
