from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.profile import Profile
from app.schemas.dashboard import StudentDashboard
from app.schemas.selection import (
    SelectionResponse,
    SelectionSubmitRequest,
    StudentPackDetail,
    StudentPackOut,
)
from app.schemas.user import ProfileRow
from app.services import selections, storage
from app.services.auth import require_roles
from app.services.dashboard import student_dashboard
from app.services.documents import read_upload
from app.services.users import to_row

router = APIRouter(prefix="/student", tags=["student"])

_student = require_roles("student")


@router.get("/dashboard", response_model=StudentDashboard)
def dashboard_endpoint(student: Profile = Depends(_student), db: Session = Depends(get_db)):
    return student_dashboard(db, student)


@router.get("/profile", response_model=ProfileRow)
def profile_endpoint(student: Profile = Depends(_student)):
    return to_row(student)


# ── Packs ─────────────────────────────────────────────────────────────────────

@router.get("/packs", response_model=list[StudentPackOut])
def list_packs_endpoint(
    kind: str | None = Query(None, description="course | exchange"),
    q: str | None = None,
    student: Profile = Depends(_student),
    db: Session = Depends(get_db),
):
    return selections.list_student_packs(db, student, kind, q)


@router.get("/packs/{pack_id}", response_model=StudentPackDetail)
def get_pack_endpoint(pack_id: int, student: Profile = Depends(_student), db: Session = Depends(get_db)):
    return selections.get_student_pack(db, student, pack_id)


@router.get("/packs/{pack_id}/template")
def download_template_endpoint(
    pack_id: int,
    student: Profile = Depends(_student),
    db: Session = Depends(get_db),
):
    pack = selections.get_student_pack(db, student, pack_id).pack
    # uploads are stored as documents/<institution id>_...
    own_prefix = f"documents/{student.institution_id}_"
    if not pack.template_url or not pack.template_url.startswith(own_prefix):
        raise HTTPException(status_code=404, detail="This pack has no stored template.")
    path = storage.resolve_path(pack.template_url)
    return FileResponse(path, filename=path.name)


# ── Selections ────────────────────────────────────────────────────────────────

@router.put("/packs/{pack_id}/selection", response_model=SelectionResponse)
def submit_selection_endpoint(
    pack_id: int,
    payload: SelectionSubmitRequest,
    student: Profile = Depends(_student),
    db: Session = Depends(get_db),
):
    selection = selections.submit_selection(db, student, pack_id, payload.item_ids)
    return selections.to_response(selection)


@router.delete("/packs/{pack_id}/selection", status_code=204)
def cancel_selection_endpoint(pack_id: int, student: Profile = Depends(_student), db: Session = Depends(get_db)):
    selections.cancel_selection(db, student, pack_id)


@router.post("/packs/{pack_id}/statement", response_model=SelectionResponse)
def upload_statement_endpoint(
    pack_id: int,
    file: UploadFile = File(...),
    student: Profile = Depends(_student),
    db: Session = Depends(get_db),
):
    data = read_upload(file)
    selection = selections.upload_statement(db, student, pack_id, file.filename, data)
    return selections.to_response(selection)


@router.get("/selections", response_model=list[SelectionResponse])
def my_selections_endpoint(student: Profile = Depends(_student), db: Session = Depends(get_db)):
    return selections.list_student_selections(db, student)


@router.get("/selections/{selection_id}/statement")
def download_statement_endpoint(
    selection_id: int,
    student: Profile = Depends(_student),
    db: Session = Depends(get_db),
):
    selection = selections.get_selection(db, student.institution_id, selection_id)
    if selection.student_id != student.id:
        raise HTTPException(status_code=404, detail="Selection not found.")
    path = selections.statement_file(selection)
    return FileResponse(path, media_type="application/pdf", filename=f"statement_{selection.id}.pdf")
