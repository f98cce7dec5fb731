import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.cache import data_cache
from app.models.pack import ElectivePack
from app.models.profile import Profile
from app.models.selection import Selection, SelectionItem
from app.schemas.selection import (
    SelectedItemOut,
    SelectionResponse,
    SelectionRow,
    StudentPackDetail,
    StudentPackOut,
)
from app.services import storage
from app.services.documents import require_pdf
from app.services.listing import filter_eq, search
from app.services.packs import (
    enrollment_counts,
    get_pack,
    is_open,
    item_ids,
    pack_detail,
)

logger = logging.getLogger(__name__)

# Packs students can see; closed ones stay visible so results can be read
_STUDENT_VISIBLE = ("published", "closed")


def _item_name(item: SelectionItem) -> tuple[int, str]:
    if item.course_id is not None:
        return item.course_id, item.course.name
    return item.university_id, item.university.name


def to_response(selection: Selection) -> SelectionResponse:
    return SelectionResponse(
        id=selection.id,
        student_id=selection.student_id,
        pack_id=selection.pack_id,
        status=selection.status,
        statement_path=selection.statement_path,
        created_at=selection.created_at,
        updated_at=selection.updated_at,
        items=[SelectedItemOut(id=i, name=n) for i, n in map(_item_name, selection.items)],
    )


def to_row(selection: Selection) -> SelectionRow:
    student = selection.student
    return SelectionRow(
        **to_response(selection).model_dump(),
        student_name=student.full_name,
        student_email=student.email,
        student_number=student.student_number,
        group_name=student.group.name if student.group else None,
        program_name=student.program.name if student.program else None,
    )


def _find(db: Session, student_id: int, pack_id: int) -> Selection | None:
    return (
        db.query(Selection)
        .filter(Selection.student_id == student_id, Selection.pack_id == pack_id)
        .first()
    )


def _invalidate(student_id: int, institution_id: int) -> None:
    data_cache.invalidate("student_selections", student_id)
    data_cache.invalidate("packs", institution_id)  # selection counts


def _check_items(
    db: Session,
    pack: ElectivePack,
    chosen: list[int],
    student_id: int,
) -> list[int]:
    chosen = list(dict.fromkeys(chosen))
    offered = set(item_ids(pack))
    invalid = [i for i in chosen if i not in offered]
    if invalid:
        raise HTTPException(status_code=400, detail=f"Items not offered in this pack: {invalid}")
    if len(chosen) > pack.max_selections:
        raise HTTPException(
            status_code=400,
            detail=f"You can only select up to {pack.max_selections} items.",
        )

    counts = enrollment_counts(db, pack)
    existing = _find(db, student_id, pack.id)
    if existing is not None and existing.status in ("pending", "approved"):
        # the student's own current choice does not count against them
        for item_id in {_item_name(i)[0] for i in existing.items}:
            counts[item_id] = counts.get(item_id, 0) - 1
    for row in _capacity_rows(pack):
        if row.id in chosen and row.max_students is not None and counts.get(row.id, 0) >= row.max_students:
            raise HTTPException(status_code=400, detail=f"'{row.name}' has no places left.")
    return chosen


def _capacity_rows(pack: ElectivePack):
    if pack.kind == "course":
        return [link.course for link in pack.courses]
    return [link.university for link in pack.universities]


def _write_items(selection: Selection, kind: str, chosen: list[int]) -> None:
    if kind == "course":
        selection.items = [SelectionItem(course_id=i) for i in chosen]
    else:
        selection.items = [SelectionItem(university_id=i) for i in chosen]


def _save(db: Session, selection: Selection) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="A selection for this pack already exists.")
    db.refresh(selection)


# ── Student ───────────────────────────────────────────────────────────────────

def _student_selection_index(db: Session, student_id: int) -> list[dict]:
    def load():
        selections = db.query(Selection).filter(Selection.student_id == student_id).all()
        return [
            {
                "id": s.id,
                "pack_id": s.pack_id,
                "status": s.status,
                "item_ids": [_item_name(i)[0] for i in s.items],
            }
            for s in selections
        ]

    return data_cache.get_or_load("student_selections", student_id, load)


def list_student_packs(
    db: Session, student: Profile, kind: str | None = None, q: str | None = None
) -> list[StudentPackOut]:
    query = db.query(ElectivePack).filter(
        ElectivePack.institution_id == student.institution_id,
        ElectivePack.status.in_(_STUDENT_VISIBLE),
    )
    if kind:
        query = query.filter(ElectivePack.kind == kind)
    packs = query.order_by(ElectivePack.deadline).all()
    mine = {row["pack_id"]: row for row in _student_selection_index(db, student.id)}
    now = datetime.utcnow()
    result = [
        StudentPackOut(
            id=p.id,
            kind=p.kind,
            name=p.name,
            name_ru=p.name_ru,
            description=p.description,
            status=p.status,
            deadline=p.deadline,
            max_selections=p.max_selections,
            template_url=p.template_url,
            is_open=is_open(p, now),
            selection_id=mine.get(p.id, {}).get("id"),
            selection_status=mine.get(p.id, {}).get("status"),
            selected_item_ids=mine.get(p.id, {}).get("item_ids", []),
        )
        for p in packs
    ]
    return search(result, q, ["name", "name_ru", "description"])


def _student_pack(db: Session, student: Profile, pack_id: int, kind: str | None = None) -> ElectivePack:
    pack = get_pack(db, student.institution_id, pack_id, kind)
    if pack.status not in _STUDENT_VISIBLE:
        raise HTTPException(status_code=404, detail="Elective pack not found.")
    return pack


def get_student_pack(db: Session, student: Profile, pack_id: int, kind: str | None = None) -> StudentPackDetail:
    pack = _student_pack(db, student, pack_id, kind)
    selection = _find(db, student.id, pack.id)
    return StudentPackDetail(
        pack=pack_detail(db, student.institution_id, pack.id),
        is_open=is_open(pack),
        selection=to_response(selection) if selection else None,
    )


def _require_open(pack: ElectivePack) -> None:
    if pack.status != "published":
        raise HTTPException(status_code=400, detail="This elective pack is not open for selection.")
    if datetime.utcnow() > pack.deadline:
        raise HTTPException(status_code=400, detail="The selection deadline has passed.")


def submit_selection(
    db: Session, student: Profile, pack_id: int, chosen: list[int], kind: str | None = None
) -> Selection:
    pack = _student_pack(db, student, pack_id, kind)
    _require_open(pack)
    chosen = _check_items(db, pack, chosen, student.id)

    selection = _find(db, student.id, pack.id)
    if selection is None:
        selection = Selection(student_id=student.id, pack_id=pack.id)
        db.add(selection)
    # resubmitting goes back to review
    selection.status = "pending"
    selection.updated_at = datetime.utcnow()
    _write_items(selection, pack.kind, chosen)
    _save(db, selection)
    _invalidate(student.id, pack.institution_id)
    logger.info("Student %s selected %s in pack %s", student.id, chosen, pack.id)
    return selection


def cancel_selection(db: Session, student: Profile, pack_id: int, kind: str | None = None) -> None:
    pack = _student_pack(db, student, pack_id, kind)
    _require_open(pack)
    selection = _find(db, student.id, pack.id)
    if selection is None:
        raise HTTPException(status_code=404, detail="Selection not found.")
    statement = selection.statement_path
    db.delete(selection)
    db.commit()
    storage.delete_file(statement)
    _invalidate(student.id, pack.institution_id)
    logger.info("Student %s cancelled selection in pack %s", student.id, pack.id)


def upload_statement(
    db: Session,
    student: Profile,
    pack_id: int,
    filename: str | None,
    data: bytes,
) -> Selection:
    pack = _student_pack(db, student, pack_id)
    _require_open(pack)
    selection = _find(db, student.id, pack.id)
    if selection is None:
        raise HTTPException(status_code=400, detail="You must make a selection before uploading a statement.")
    require_pdf(data, filename)
    previous = selection.statement_path
    selection.statement_path = storage.save_file("statements", filename, data, prefix=f"{student.id}_{pack.id}")
    selection.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(selection)
    storage.delete_file(previous)
    logger.info("Student %s uploaded statement for pack %s", student.id, pack.id)
    return selection


def list_student_selections(db: Session, student: Profile) -> list[SelectionResponse]:
    selections = (
        db.query(Selection)
        .filter(Selection.student_id == student.id)
        .order_by(Selection.created_at.desc())
        .all()
    )
    return [to_response(s) for s in selections]


# ── Manager ───────────────────────────────────────────────────────────────────

def get_selection(db: Session, institution_id: int, selection_id: int) -> Selection:
    selection = db.get(Selection, selection_id)
    if selection is None or selection.pack.institution_id != institution_id:
        raise HTTPException(status_code=404, detail="Selection not found.")
    return selection


def list_pack_selections(
    db: Session,
    institution_id: int,
    pack_id: int,
    q: str | None = None,
    status: str | None = None,
) -> list[SelectionRow]:
    pack = get_pack(db, institution_id, pack_id)
    selections = (
        db.query(Selection)
        .filter(Selection.pack_id == pack.id)
        .order_by(Selection.created_at.desc(), Selection.id.desc())
        .all()
    )
    rows = [to_row(s) for s in selections]
    rows = search(rows, q, ["student_name", "student_email", "student_number", "group_name"])
    return filter_eq(rows, status=status)


def set_selection_status(db: Session, institution_id: int, selection_id: int, status: str) -> Selection:
    selection = get_selection(db, institution_id, selection_id)
    previous = selection.status
    selection.status = status
    selection.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(selection)
    _invalidate(selection.student_id, institution_id)
    logger.info("Selection %s status %s -> %s", selection_id, previous, status)
    return selection


def edit_selection_items(
    db: Session, institution_id: int, selection_id: int, chosen: list[int]
) -> Selection:
    """Manager correction of a student's choice; the selection window does not apply."""
    selection = get_selection(db, institution_id, selection_id)
    chosen = _check_items(db, selection.pack, chosen, selection.student_id)
    _write_items(selection, selection.pack.kind, chosen)
    selection.updated_at = datetime.utcnow()
    _save(db, selection)
    _invalidate(selection.student_id, institution_id)
    logger.info("Selection %s items changed by manager to %s", selection_id, chosen)
    return selection


def statement_file(selection: Selection):
    if not selection.statement_path:
        raise HTTPException(status_code=404, detail="No statement uploaded for this selection.")
    return storage.resolve_path(selection.statement_path)
