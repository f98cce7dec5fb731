import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.core.cache import data_cache
from app.models.course import Course
from app.models.pack import PackCourse
from app.schemas.course import CourseCreateRequest, CourseRow, CourseUpdateRequest
from app.services.listing import filter_eq, search
from app.services.references import ensure_in_institution, get_owned

logger = logging.getLogger(__name__)


def _load_courses(db: Session, institution_id: int) -> list[dict]:
    courses = (
        db.query(Course)
        .filter(Course.institution_id == institution_id)
        .order_by(Course.created_at.desc(), Course.id.desc())
        .all()
    )
    return [
        CourseRow.model_validate(c).model_copy(
            update={"degree_name": c.degree.name if c.degree else None}
        ).model_dump(mode="json")
        for c in courses
    ]


def list_courses(
    db: Session,
    institution_id: int,
    q: str | None = None,
    status: str | None = None,
    degree_id: int | None = None,
) -> list[dict]:
    rows = data_cache.get_or_load("courses", institution_id, lambda: _load_courses(db, institution_id))
    rows = search(rows, q, ["name", "name_ru", "code", "instructor"])
    return filter_eq(rows, status=status, degree_id=degree_id)


def get_course(db: Session, institution_id: int, course_id: int) -> Course:
    return get_owned(db, Course, course_id, institution_id, "Course")


def _check_code(db: Session, institution_id: int, code: str, course_id: int | None = None) -> None:
    query = db.query(Course).filter(Course.institution_id == institution_id, Course.code == code)
    if course_id is not None:
        query = query.filter(Course.id != course_id)
    if query.first():
        raise HTTPException(status_code=409, detail=f"Course code '{code}' already exists.")


def create_course(db: Session, institution_id: int, payload: CourseCreateRequest) -> Course:
    ensure_in_institution(db, institution_id, degree_id=payload.degree_id)
    _check_code(db, institution_id, payload.code)
    course = Course(institution_id=institution_id, **payload.model_dump())
    db.add(course)
    db.commit()
    db.refresh(course)
    data_cache.invalidate("courses", institution_id)
    logger.info("Created course %s (%s) for institution %s", course.id, course.code, institution_id)
    return course


def update_course(
    db: Session, institution_id: int, course_id: int, payload: CourseUpdateRequest
) -> Course:
    course = get_owned(db, Course, course_id, institution_id, "Course")
    values = payload.model_dump(exclude_unset=True)
    ensure_in_institution(db, institution_id, degree_id=values.get("degree_id"))
    if "code" in values:
        _check_code(db, institution_id, values["code"], course.id)
    for field, value in values.items():
        setattr(course, field, value)
    db.commit()
    db.refresh(course)
    data_cache.invalidate("courses", institution_id)
    return course


def set_course_status(db: Session, institution_id: int, course_id: int, status: str) -> Course:
    course = get_owned(db, Course, course_id, institution_id, "Course")
    course.status = status
    db.commit()
    db.refresh(course)
    data_cache.invalidate("courses", institution_id)
    logger.info("Course %s status -> %s", course_id, status)
    return course


def delete_course(db: Session, institution_id: int, course_id: int) -> None:
    course = get_owned(db, Course, course_id, institution_id, "Course")
    if db.query(PackCourse).filter(PackCourse.course_id == course_id).count():
        raise HTTPException(status_code=400, detail="Course is part of an elective pack.")
    db.delete(course)
    db.commit()
    data_cache.invalidate("courses", institution_id)
    logger.info("Deleted course %s", course_id)
