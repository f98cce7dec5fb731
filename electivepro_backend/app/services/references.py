import logging

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.cache import data_cache
from app.models.course import Course
from app.models.degree import Degree
from app.models.group import Group
from app.models.profile import Profile
from app.models.program import Program
from app.schemas.degree import DegreeCreateRequest, DegreeResponse, DegreeUpdateRequest
from app.schemas.group import GroupCreateRequest, GroupRow, GroupUpdateRequest
from app.schemas.program import ProgramCreateRequest, ProgramRow, ProgramUpdateRequest
from app.services.listing import filter_eq, search, sort_rows

logger = logging.getLogger(__name__)


def get_owned(db: Session, model, row_id: int, institution_id: int, label: str):
    """Fetch a tenant-owned row, treating rows of other institutions as missing."""
    row = db.get(model, row_id)
    if row is None or row.institution_id != institution_id:
        raise HTTPException(status_code=404, detail=f"{label} not found.")
    return row


def ensure_in_institution(
    db: Session,
    institution_id: int,
    degree_id: int | None = None,
    group_id: int | None = None,
    program_id: int | None = None,
) -> None:
    if degree_id is not None:
        get_owned(db, Degree, degree_id, institution_id, "Degree")
    if group_id is not None:
        get_owned(db, Group, group_id, institution_id, "Group")
    if program_id is not None:
        get_owned(db, Program, program_id, institution_id, "Program")


def _apply(row, values: dict) -> None:
    for field, value in values.items():
        setattr(row, field, value)


def _invalidate_names(institution_id: int) -> None:
    """Listing rows carry degree, program and group names."""
    for key in ("degrees", "programs", "groups", "courses", "users"):
        data_cache.invalidate(key, institution_id)
    data_cache.invalidate("program_students")


# ── Degrees ───────────────────────────────────────────────────────────────────

def _load_degrees(db: Session, institution_id: int) -> list[dict]:
    degrees = (
        db.query(Degree)
        .filter(Degree.institution_id == institution_id)
        .order_by(Degree.created_at.desc(), Degree.id.desc())
        .all()
    )
    return [DegreeResponse.model_validate(d).model_dump(mode="json") for d in degrees]


def list_degrees(
    db: Session,
    institution_id: int,
    q: str | None = None,
    status: str | None = None,
) -> list[dict]:
    rows = data_cache.get_or_load("degrees", institution_id, lambda: _load_degrees(db, institution_id))
    rows = search(rows, q, ["name", "name_ru", "code"])
    return filter_eq(rows, status=status)


def create_degree(db: Session, institution_id: int, payload: DegreeCreateRequest) -> Degree:
    degree = Degree(institution_id=institution_id, **payload.model_dump())
    db.add(degree)
    db.commit()
    db.refresh(degree)
    data_cache.invalidate("degrees", institution_id)
    logger.info("Created degree %s (%s) for institution %s", degree.id, degree.code, institution_id)
    return degree


def update_degree(
    db: Session, institution_id: int, degree_id: int, payload: DegreeUpdateRequest
) -> Degree:
    degree = get_owned(db, Degree, degree_id, institution_id, "Degree")
    _apply(degree, payload.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(degree)
    _invalidate_names(institution_id)
    return degree


def delete_degree(db: Session, institution_id: int, degree_id: int) -> None:
    degree = get_owned(db, Degree, degree_id, institution_id, "Degree")
    in_use = (
        db.query(Group).filter(Group.degree_id == degree_id).count()
        + db.query(Program).filter(Program.degree_id == degree_id).count()
        + db.query(Profile).filter(Profile.degree_id == degree_id).count()
        + db.query(Course).filter(Course.degree_id == degree_id).count()
    )
    if in_use:
        raise HTTPException(status_code=400, detail="Degree is still referenced by programs, groups, courses or users.")
    db.delete(degree)
    db.commit()
    data_cache.invalidate("degrees", institution_id)
    logger.info("Deleted degree %s", degree_id)


# ── Programs ──────────────────────────────────────────────────────────────────

def _load_programs(db: Session, institution_id: int) -> list[dict]:
    programs = (
        db.query(Program)
        .filter(Program.institution_id == institution_id)
        .order_by(Program.name)
        .all()
    )
    return [
        ProgramRow.model_validate(p).model_copy(
            update={"degree_name": p.degree.name if p.degree else None}
        ).model_dump(mode="json")
        for p in programs
    ]


def list_programs(
    db: Session,
    institution_id: int,
    q: str | None = None,
    degree_id: int | None = None,
    status: str | None = None,
) -> list[dict]:
    rows = data_cache.get_or_load("programs", institution_id, lambda: _load_programs(db, institution_id))
    rows = search(rows, q, ["name", "name_ru", "code"])
    return filter_eq(rows, degree_id=degree_id, status=status)


def get_program(db: Session, institution_id: int, program_id: int) -> Program:
    return get_owned(db, Program, program_id, institution_id, "Program")


def create_program(db: Session, institution_id: int, payload: ProgramCreateRequest) -> Program:
    ensure_in_institution(db, institution_id, degree_id=payload.degree_id)
    program = Program(institution_id=institution_id, **payload.model_dump())
    db.add(program)
    db.commit()
    db.refresh(program)
    data_cache.invalidate("programs", institution_id)
    logger.info("Created program %s for institution %s", program.id, institution_id)
    return program


def update_program(
    db: Session, institution_id: int, program_id: int, payload: ProgramUpdateRequest
) -> Program:
    program = get_owned(db, Program, program_id, institution_id, "Program")
    values = payload.model_dump(exclude_unset=True)
    ensure_in_institution(db, institution_id, degree_id=values.get("degree_id"))
    _apply(program, values)
    db.commit()
    db.refresh(program)
    _invalidate_names(institution_id)
    return program


def delete_program(db: Session, institution_id: int, program_id: int) -> None:
    program = get_owned(db, Program, program_id, institution_id, "Program")
    db.query(Group).filter(Group.program_id == program_id).update({Group.program_id: None})
    db.query(Profile).filter(Profile.program_id == program_id).update({Profile.program_id: None})
    db.delete(program)
    db.commit()
    _invalidate_names(institution_id)
    logger.info("Deleted program %s", program_id)


# ── Groups ────────────────────────────────────────────────────────────────────

def _load_groups(db: Session, institution_id: int) -> list[dict]:
    counts = dict(
        db.query(Profile.group_id, func.count(Profile.id))
        .filter(Profile.institution_id == institution_id, Profile.group_id.isnot(None))
        .group_by(Profile.group_id)
        .all()
    )
    groups = db.query(Group).filter(Group.institution_id == institution_id).all()
    rows = [
        GroupRow.model_validate(g).model_copy(
            update={
                "degree_name": g.degree.name if g.degree else None,
                "program_name": g.program.name if g.program else None,
                "student_count": counts.get(g.id, 0),
            }
        ).model_dump(mode="json")
        for g in groups
    ]
    return sort_rows(rows, "name")


def list_groups(
    db: Session,
    institution_id: int,
    q: str | None = None,
    program_id: int | None = None,
    degree_id: int | None = None,
    academic_year: str | None = None,
    status: str | None = None,
) -> list[dict]:
    rows = data_cache.get_or_load("groups", institution_id, lambda: _load_groups(db, institution_id))
    rows = search(rows, q, ["name", "program_name", "degree_name"])
    return filter_eq(
        rows,
        program_id=program_id,
        degree_id=degree_id,
        academic_year=academic_year,
        status=status,
    )


def _check_group_name(db: Session, institution_id: int, name: str, group_id: int | None = None) -> None:
    query = db.query(Group).filter(Group.institution_id == institution_id, Group.name == name)
    if group_id is not None:
        query = query.filter(Group.id != group_id)
    if query.first():
        raise HTTPException(status_code=409, detail="A group with this name already exists.")


def create_group(db: Session, institution_id: int, payload: GroupCreateRequest) -> Group:
    ensure_in_institution(db, institution_id, degree_id=payload.degree_id, program_id=payload.program_id)
    _check_group_name(db, institution_id, payload.name)
    group = Group(institution_id=institution_id, **payload.model_dump())
    db.add(group)
    db.commit()
    db.refresh(group)
    data_cache.invalidate("groups", institution_id)
    logger.info("Created group %s for institution %s", group.name, institution_id)
    return group


def update_group(
    db: Session, institution_id: int, group_id: int, payload: GroupUpdateRequest
) -> Group:
    group = get_owned(db, Group, group_id, institution_id, "Group")
    values = payload.model_dump(exclude_unset=True)
    ensure_in_institution(
        db, institution_id, degree_id=values.get("degree_id"), program_id=values.get("program_id")
    )
    if "name" in values:
        _check_group_name(db, institution_id, values["name"], group.id)
    _apply(group, values)
    db.commit()
    db.refresh(group)
    _invalidate_names(institution_id)
    return group


def delete_group(db: Session, institution_id: int, group_id: int) -> None:
    group = get_owned(db, Group, group_id, institution_id, "Group")
    db.query(Profile).filter(Profile.group_id == group_id).update({Profile.group_id: None})
    db.delete(group)
    db.commit()
    _invalidate_names(institution_id)
    logger.info("Deleted group %s", group_id)
