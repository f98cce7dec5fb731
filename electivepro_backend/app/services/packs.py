import logging
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.core.cache import data_cache
from app.models.course import Course
from app.models.pack import ElectivePack, PackCourse, PackUniversity
from app.models.selection import Selection, SelectionItem
from app.models.university import University
from app.schemas.pack import (
    CourseBuilderRequest,
    ExchangeBuilderRequest,
    PackBuilderBase,
    PackDetailResponse,
    PackItemOut,
    PackResponse,
    PackUpdateRequest,
)
from app.services import storage
from app.services.listing import filter_eq, search
from app.services.references import get_owned

logger = logging.getLogger(__name__)

# Selections in these states hold a place in a course or university
COUNTED_STATUSES = ("pending", "approved")

_DEFAULT_NAME_SUFFIX = {"course": "Course Selection", "exchange": "Exchange Program"}


def utc_naive(value: datetime) -> datetime:
    """Deadlines are stored as naive UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def is_open(pack: ElectivePack, now: datetime | None = None) -> bool:
    now = now or datetime.utcnow()
    return pack.status == "published" and now <= pack.deadline


def item_ids(pack: ElectivePack) -> list[int]:
    if pack.kind == "course":
        return [link.course_id for link in pack.courses]
    return [link.university_id for link in pack.universities]


def _item_model(kind: str):
    return Course if kind == "course" else University


def _dedupe(ids: list[int]) -> list[int]:
    return list(dict.fromkeys(ids))


def _check_items(db: Session, institution_id: int, kind: str, ids: list[int]) -> list[int]:
    ids = _dedupe(ids)
    model = _item_model(kind)
    found = {
        row.id
        for row in db.query(model)
        .filter(model.id.in_(ids), model.institution_id == institution_id)
        .all()
    }
    missing = [i for i in ids if i not in found]
    if missing:
        label = "courses" if kind == "course" else "universities"
        raise HTTPException(status_code=400, detail=f"Unknown {label}: {missing}")
    return ids


def _check_limit(max_selections: int, available: int) -> None:
    if max_selections > available:
        raise HTTPException(
            status_code=400,
            detail=f"max_selections ({max_selections}) exceeds the number of items in the pack ({available}).",
        )


def _link(pack: ElectivePack, ids: list[int]) -> None:
    if pack.kind == "course":
        pack.courses = [PackCourse(course_id=i) for i in ids]
    else:
        pack.universities = [PackUniversity(university_id=i) for i in ids]


def _default_name(kind: str, payload: PackBuilderBase) -> str:
    if payload.name:
        return payload.name
    if payload.semester and payload.year:
        return f"{payload.semester.capitalize()} {payload.year} {_DEFAULT_NAME_SUFFIX[kind]}"
    raise HTTPException(status_code=400, detail="Provide a name, or a semester and year.")


def _build_pack(
    db: Session,
    institution_id: int,
    created_by: int | None,
    kind: str,
    payload: PackBuilderBase,
    ids: list[int],
) -> ElectivePack:
    ids = _check_items(db, institution_id, kind, ids)
    _check_limit(payload.max_selections, len(ids))
    pack = ElectivePack(
        institution_id=institution_id,
        kind=kind,
        name=_default_name(kind, payload),
        name_ru=payload.name_ru,
        description=payload.description,
        status=payload.status,
        deadline=utc_naive(payload.deadline),
        max_selections=payload.max_selections,
        template_url=payload.template_url,
        created_by=created_by,
    )
    _link(pack, ids)
    # pack and its links land in one commit
    db.add(pack)
    db.commit()
    db.refresh(pack)
    data_cache.invalidate("packs", institution_id)
    logger.info("Created %s pack %s (%s) with %d items", kind, pack.id, pack.status, len(ids))
    return pack


def create_course_pack(
    db: Session, institution_id: int, created_by: int | None, payload: CourseBuilderRequest
) -> ElectivePack:
    return _build_pack(db, institution_id, created_by, "course", payload, payload.course_ids)


def create_exchange_pack(
    db: Session, institution_id: int, created_by: int | None, payload: ExchangeBuilderRequest
) -> ElectivePack:
    return _build_pack(db, institution_id, created_by, "exchange", payload, payload.university_ids)


def get_pack(db: Session, institution_id: int, pack_id: int, kind: str | None = None) -> ElectivePack:
    pack = get_owned(db, ElectivePack, pack_id, institution_id, "Elective pack")
    if kind is not None and pack.kind != kind:
        raise HTTPException(status_code=404, detail="Elective pack not found.")
    return pack


def to_response(pack: ElectivePack) -> PackResponse:
    return PackResponse.model_validate(pack).model_copy(
        update={"item_count": len(item_ids(pack)), "selection_count": len(pack.selections)}
    )


def list_packs(
    db: Session,
    institution_id: int,
    kind: str | None = None,
    q: str | None = None,
    status: str | None = None,
) -> list[dict]:
    def load():
        packs = (
            db.query(ElectivePack)
            .filter(ElectivePack.institution_id == institution_id)
            .order_by(ElectivePack.created_at.desc(), ElectivePack.id.desc())
            .all()
        )
        return [to_response(p).model_dump(mode="json") for p in packs]

    rows = data_cache.get_or_load("packs", institution_id, load)
    rows = search(rows, q, ["name", "name_ru", "description"])
    return filter_eq(rows, kind=kind, status=status)


def enrollment_counts(db: Session, pack: ElectivePack) -> dict[int, int]:
    column = SelectionItem.course_id if pack.kind == "course" else SelectionItem.university_id
    counts: dict[int, int] = {}
    rows = (
        db.query(column)
        .join(Selection, SelectionItem.selection_id == Selection.id)
        .filter(Selection.pack_id == pack.id, Selection.status.in_(COUNTED_STATUSES))
        .all()
    )
    for (item_id,) in rows:
        counts[item_id] = counts.get(item_id, 0) + 1
    return counts


def pack_items(db: Session, pack: ElectivePack) -> list[PackItemOut]:
    counts = enrollment_counts(db, pack)
    items = []
    if pack.kind == "course":
        for link in pack.courses:
            c = link.course
            items.append(
                PackItemOut(
                    id=c.id,
                    name=c.name,
                    name_ru=c.name_ru,
                    code=c.code,
                    instructor=c.instructor,
                    max_students=c.max_students,
                    enrollment_count=counts.get(c.id, 0),
                )
            )
    else:
        for link in pack.universities:
            u = link.university
            items.append(
                PackItemOut(
                    id=u.id,
                    name=u.name,
                    name_ru=u.name_ru,
                    country=u.country,
                    city=u.city,
                    max_students=u.max_students,
                    enrollment_count=counts.get(u.id, 0),
                )
            )
    for item in items:
        if item.max_students is not None:
            item.remaining = max(item.max_students - item.enrollment_count, 0)
    return items


def pack_detail(db: Session, institution_id: int, pack_id: int, kind: str | None = None) -> PackDetailResponse:
    pack = get_pack(db, institution_id, pack_id, kind)
    return PackDetailResponse(**to_response(pack).model_dump(), items=pack_items(db, pack))


def update_pack(
    db: Session, institution_id: int, pack_id: int, payload: PackUpdateRequest
) -> ElectivePack:
    pack = get_pack(db, institution_id, pack_id)
    values = payload.model_dump(exclude_unset=True)
    new_ids = values.pop("item_ids", None)
    if values.get("deadline") is not None:
        values["deadline"] = utc_naive(values["deadline"])
    for field, value in values.items():
        if value is not None or field in ("name_ru", "description", "template_url"):
            setattr(pack, field, value)

    statements: list[str] = []
    touched: set[int] = set()
    if new_ids is not None:
        new_ids = _check_items(db, institution_id, pack.kind, new_ids)
        dropped = set(item_ids(pack)) - set(new_ids)
        _link(pack, new_ids)
        if dropped:
            touched, statements = _prune_selections(db, pack, dropped)
    _check_limit(pack.max_selections, len(item_ids(pack)))
    largest = max((len(s.items) for s in pack.selections), default=0)
    if pack.max_selections < largest:
        raise HTTPException(
            status_code=400,
            detail=f"A student has already selected {largest} items; max_selections cannot be lower.",
        )
    db.commit()
    db.refresh(pack)
    for path in statements:
        storage.delete_file(path)
    data_cache.invalidate("packs", institution_id)
    for student_id in touched:
        data_cache.invalidate("student_selections", student_id)
    logger.info("Updated pack %s", pack_id)
    return pack


def _prune_selections(db: Session, pack: ElectivePack, dropped: set[int]) -> tuple[set[int], list[str]]:
    """Strip items no longer offered from selections.

    Trimmed selections go back to pending and emptied ones are deleted. Returns the
    affected student ids and the statement files of deleted selections.
    """
    column = "course_id" if pack.kind == "course" else "university_id"
    students: set[int] = set()
    statements: list[str] = []
    for selection in list(pack.selections):
        kept = [i for i in selection.items if getattr(i, column) not in dropped]
        if len(kept) == len(selection.items):
            continue
        students.add(selection.student_id)
        if kept:
            selection.items = kept
            selection.status = "pending"
            selection.updated_at = datetime.utcnow()
        else:
            if selection.statement_path:
                statements.append(selection.statement_path)
            pack.selections.remove(selection)
            db.delete(selection)
    logger.info("Pruned selections of %d students in pack %s", len(students), pack.id)
    return students, statements


def set_pack_status(db: Session, institution_id: int, pack_id: int, status: str) -> ElectivePack:
    pack = get_pack(db, institution_id, pack_id)
    pack.status = status
    db.commit()
    db.refresh(pack)
    data_cache.invalidate("packs", institution_id)
    logger.info("Pack %s status -> %s", pack_id, status)
    return pack


def delete_pack(db: Session, institution_id: int, pack_id: int) -> None:
    pack = get_pack(db, institution_id, pack_id)
    statements = [s.statement_path for s in pack.selections if s.statement_path]
    students = {s.student_id for s in pack.selections}
    db.delete(pack)
    db.commit()
    for path in statements:
        storage.delete_file(path)
    data_cache.invalidate("packs", institution_id)
    for student_id in students:
        data_cache.invalidate("student_selections", student_id)
    logger.info("Deleted pack %s", pack_id)
