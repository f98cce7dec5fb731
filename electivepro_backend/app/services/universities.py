import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.core.cache import data_cache
from app.models.pack import PackUniversity
from app.models.university import University
from app.schemas.university import UniversityCreateRequest, UniversityResponse, UniversityUpdateRequest
from app.services.listing import filter_eq, search, sort_rows
from app.services.references import get_owned

logger = logging.getLogger(__name__)


def _load_universities(db: Session, institution_id: int) -> list[dict]:
    universities = db.query(University).filter(University.institution_id == institution_id).all()
    rows = [UniversityResponse.model_validate(u).model_dump(mode="json") for u in universities]
    return sort_rows(rows, "name")


def list_universities(
    db: Session,
    institution_id: int,
    q: str | None = None,
    country: str | None = None,
    status: str | None = None,
) -> list[dict]:
    rows = data_cache.get_or_load(
        "universities", institution_id, lambda: _load_universities(db, institution_id)
    )
    rows = search(rows, q, ["name", "name_ru", "city"])
    return filter_eq(rows, country=country, status=status)


def list_countries(db: Session, institution_id: int) -> list[str]:
    return sorted({row["country"] for row in list_universities(db, institution_id) if row["country"]})


def get_university(db: Session, institution_id: int, university_id: int) -> University:
    return get_owned(db, University, university_id, institution_id, "University")


def create_university(db: Session, institution_id: int, payload: UniversityCreateRequest) -> University:
    university = University(institution_id=institution_id, **payload.model_dump())
    db.add(university)
    db.commit()
    db.refresh(university)
    data_cache.invalidate("universities", institution_id)
    logger.info("Created university %s (%s) for institution %s", university.id, university.name, institution_id)
    return university


def update_university(
    db: Session, institution_id: int, university_id: int, payload: UniversityUpdateRequest
) -> University:
    university = get_owned(db, University, university_id, institution_id, "University")
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(university, field, value)
    db.commit()
    db.refresh(university)
    data_cache.invalidate("universities", institution_id)
    return university


def toggle_university_status(db: Session, institution_id: int, university_id: int) -> University:
    university = get_owned(db, University, university_id, institution_id, "University")
    university.status = "inactive" if university.status == "active" else "active"
    db.commit()
    db.refresh(university)
    data_cache.invalidate("universities", institution_id)
    logger.info("University %s status -> %s", university_id, university.status)
    return university


def delete_university(db: Session, institution_id: int, university_id: int) -> None:
    university = get_owned(db, University, university_id, institution_id, "University")
    if db.query(PackUniversity).filter(PackUniversity.university_id == university_id).count():
        raise HTTPException(status_code=400, detail="University is part of an exchange pack.")
    db.delete(university)
    db.commit()
    data_cache.invalidate("universities", institution_id)
    logger.info("Deleted university %s", university_id)
