from io import BytesIO

from fastapi import HTTPException, UploadFile
from pypdf import PdfReader
from pypdf.errors import DependencyError, PdfReadError

from app.core.config import settings


def read_upload(file: UploadFile) -> bytes:
    """Read an upload, refusing anything over the configured size cap."""
    limit = settings.max_upload_bytes
    data = file.file.read(limit + 1)
    if len(data) > limit:
        raise HTTPException(status_code=413, detail=f"File exceeds {limit // (1024 * 1024)} MB limit.")
    if not data:
        raise HTTPException(status_code=422, detail="Uploaded file is empty.")
    return data


def count_pdf_pages(data: bytes) -> int | None:
    """Number of pages in a readable PDF, or None when the bytes are not one."""
    try:
        reader = PdfReader(BytesIO(data))
        if reader.is_encrypted:
            reader.decrypt("")
        return len(reader.pages)
    except (PdfReadError, DependencyError, ValueError, NotImplementedError):
        return None


def require_pdf(data: bytes, filename: str | None) -> int:
    if not (filename or "").lower().endswith(".pdf"):
        raise HTTPException(status_code=422, detail="Only PDF files are accepted.")
    pages = count_pdf_pages(data)
    if not pages:
        raise HTTPException(status_code=422, detail="File is not a readable PDF document.")
    return pages
