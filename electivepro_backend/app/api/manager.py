from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, Response, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.models.profile import Profile
from app.schemas.course import CourseRow
from app.schemas.dashboard import ManagerDashboard
from app.schemas.page import Page
from app.schemas.pack import (
    CourseBuilderRequest,
    ExchangeBuilderRequest,
    PackDetailResponse,
    PackResponse,
    PackStatusUpdate,
    PackUpdateRequest,
)
from app.schemas.selection import (
    SelectionResponse,
    SelectionRow,
    SelectionStatusUpdate,
    SelectionSubmitRequest,
)
from app.schemas.university import UniversityResponse
from app.services import exports, packs, selections, storage
from app.services.auth import require_roles
from app.services.courses import list_courses
from app.services.dashboard import manager_dashboard
from app.services.documents import read_upload, require_pdf
from app.services.listing import paginate
from app.services.universities import list_universities

router = APIRouter(prefix="/manager", tags=["manager"])

# Admins run the same elective workflows as program managers
_manager = require_roles("program_manager", "admin")

_TEMPLATE_EXTENSIONS = (".pdf", ".doc", ".docx")


@router.get("/dashboard", response_model=ManagerDashboard)
def dashboard_endpoint(manager: Profile = Depends(_manager), db: Session = Depends(get_db)):
    return manager_dashboard(db, manager.institution_id)


# ── Builder catalogue ─────────────────────────────────────────────────────────

@router.get("/courses", response_model=list[CourseRow])
def available_courses_endpoint(
    q: str | None = None,
    degree_id: int | None = None,
    manager: Profile = Depends(_manager),
    db: Session = Depends(get_db),
):
    return list_courses(db, manager.institution_id, q, "active", degree_id)


@router.get("/universities", response_model=list[UniversityResponse])
def available_universities_endpoint(
    q: str | None = None,
    country: str | None = None,
    manager: Profile = Depends(_manager),
    db: Session = Depends(get_db),
):
    return list_universities(db, manager.institution_id, q, country, "active")


@router.post("/templates")
def upload_template_endpoint(
    file: UploadFile = File(...),
    manager: Profile = Depends(_manager),
):
    filename = file.filename or ""
    if not filename.lower().endswith(_TEMPLATE_EXTENSIONS):
        raise HTTPException(status_code=422, detail="Templates must be PDF or Word documents.")
    data = read_upload(file)
    if filename.lower().endswith(".pdf"):
        require_pdf(data, filename)
    path = storage.save_file("documents", filename, data, prefix=str(manager.institution_id))
    return {"template_url": path, "filename": filename, "size_bytes": len(data)}


# ── Packs ─────────────────────────────────────────────────────────────────────

@router.get("/packs", response_model=Page[PackResponse])
def list_packs_endpoint(
    kind: str | None = Query(None, description="course | exchange"),
    q: str | None = None,
    status: str | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.page_size, ge=1, le=100),
    manager: Profile = Depends(_manager),
    db: Session = Depends(get_db),
):
    rows = packs.list_packs(db, manager.institution_id, kind, q, status)
    return paginate(rows, page, per_page)


@router.post("/packs/course", response_model=PackResponse, status_code=201)
def create_course_pack_endpoint(
    payload: CourseBuilderRequest,
    manager: Profile = Depends(_manager),
    db: Session = Depends(get_db),
):
    pack = packs.create_course_pack(db, manager.institution_id, manager.id, payload)
    return packs.to_response(pack)


@router.post("/packs/exchange", response_model=PackResponse, status_code=201)
def create_exchange_pack_endpoint(
    payload: ExchangeBuilderRequest,
    manager: Profile = Depends(_manager),
    db: Session = Depends(get_db),
):
    pack = packs.create_exchange_pack(db, manager.institution_id, manager.id, payload)
    return packs.to_response(pack)


@router.get("/packs/{pack_id}", response_model=PackDetailResponse)
def get_pack_endpoint(pack_id: int, manager: Profile = Depends(_manager), db: Session = Depends(get_db)):
    return packs.pack_detail(db, manager.institution_id, pack_id)


@router.put("/packs/{pack_id}", response_model=PackResponse)
def update_pack_endpoint(
    pack_id: int,
    payload: PackUpdateRequest,
    manager: Profile = Depends(_manager),
    db: Session = Depends(get_db),
):
    return packs.to_response(packs.update_pack(db, manager.institution_id, pack_id, payload))


@router.patch("/packs/{pack_id}/status", response_model=PackResponse)
def set_pack_status_endpoint(
    pack_id: int,
    payload: PackStatusUpdate,
    manager: Profile = Depends(_manager),
    db: Session = Depends(get_db),
):
    return packs.to_response(packs.set_pack_status(db, manager.institution_id, pack_id, payload.status))


@router.delete("/packs/{pack_id}", status_code=204)
def delete_pack_endpoint(pack_id: int, manager: Profile = Depends(_manager), db: Session = Depends(get_db)):
    packs.delete_pack(db, manager.institution_id, pack_id)


# ── Selections ────────────────────────────────────────────────────────────────

@router.get("/packs/{pack_id}/selections", response_model=list[SelectionRow])
def list_selections_endpoint(
    pack_id: int,
    q: str | None = None,
    status: str | None = None,
    manager: Profile = Depends(_manager),
    db: Session = Depends(get_db),
):
    return selections.list_pack_selections(db, manager.institution_id, pack_id, q, status)


@router.patch("/selections/{selection_id}/status", response_model=SelectionResponse)
def set_selection_status_endpoint(
    selection_id: int,
    payload: SelectionStatusUpdate,
    manager: Profile = Depends(_manager),
    db: Session = Depends(get_db),
):
    selection = selections.set_selection_status(db, manager.institution_id, selection_id, payload.status)
    return selections.to_response(selection)


@router.put("/selections/{selection_id}/items", response_model=SelectionResponse)
def edit_selection_endpoint(
    selection_id: int,
    payload: SelectionSubmitRequest,
    manager: Profile = Depends(_manager),
    db: Session = Depends(get_db),
):
    selection = selections.edit_selection_items(db, manager.institution_id, selection_id, payload.item_ids)
    return selections.to_response(selection)


@router.get("/selections/{selection_id}/statement")
def download_statement_endpoint(
    selection_id: int,
    manager: Profile = Depends(_manager),
    db: Session = Depends(get_db),
):
    selection = selections.get_selection(db, manager.institution_id, selection_id)
    path = selections.statement_file(selection)
    return FileResponse(path, media_type="application/pdf", filename=f"statement_{selection.id}.pdf")


# ── Exports ───────────────────────────────────────────────────────────────────

def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": exports.content_disposition(filename)},
    )


@router.get("/packs/{pack_id}/export")
def export_selections_endpoint(
    pack_id: int,
    request: Request,
    lang: str = Query("en", pattern="^(en|ru)$"),
    manager: Profile = Depends(_manager),
    db: Session = Depends(get_db),
):
    pack = packs.get_pack(db, manager.institution_id, pack_id)
    rows = selections.list_pack_selections(db, manager.institution_id, pack_id)
    base = str(request.base_url).rstrip("/")
    content = exports.selections_csv(
        pack.kind, rows, lang, statement_url=base + "/api/manager/selections/{}/statement"
    )
    return _csv_response(content, exports.export_filename(pack.name, "all", lang))


@router.get("/packs/{pack_id}/items/{item_id}/export")
def export_enrollments_endpoint(
    pack_id: int,
    item_id: int,
    lang: str = Query("en", pattern="^(en|ru)$"),
    manager: Profile = Depends(_manager),
    db: Session = Depends(get_db),
):
    pack = packs.get_pack(db, manager.institution_id, pack_id)
    offered = {item.id: item.name for item in packs.pack_items(db, pack)}
    if item_id not in offered:
        raise HTTPException(status_code=404, detail="Item is not offered in this pack.")
    rows = selections.list_pack_selections(db, manager.institution_id, pack_id)
    content = exports.enrollments_csv(rows, item_id, lang)
    return _csv_response(content, exports.export_filename(offered[item_id], "enrollments", lang))
