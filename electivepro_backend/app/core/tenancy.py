import logging

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.models.institution import Institution

logger = logging.getLogger(__name__)

_RESERVED_SUBDOMAINS = {"www", "app", ""}


def extract_subdomain(host: str | None, base_domain: str | None = None) -> str | None:
    """``mit.electivepro.net`` -> ``mit``; the bare domain, www, app and localhost -> None."""
    if not host:
        return None
    base_domain = (base_domain or settings.base_domain).lower()
    hostname = host.split(":", 1)[0].strip().lower()
    if hostname in ("localhost", "127.0.0.1") or not hostname.endswith("." + base_domain):
        return None
    subdomain = hostname[: -len(base_domain) - 1]
    # nested labels (a.b.electivepro.net) are not tenants
    if "." in subdomain or subdomain in _RESERVED_SUBDOMAINS:
        return None
    return subdomain


def get_request_subdomain(request: Request) -> str | None:
    if settings.environment == "development":
        override = request.query_params.get("subdomain")
        if override:
            return override.strip().lower()
    return extract_subdomain(request.headers.get("host"))


def resolve_institution(db: Session, subdomain: str | None) -> Institution:
    if not subdomain:
        raise HTTPException(status_code=400, detail="Institution subdomain is required.")
    institution = (
        db.query(Institution)
        .filter(Institution.subdomain == subdomain, Institution.is_active.is_(True))
        .first()
    )
    if institution is None:
        logger.info("Rejected unknown or inactive subdomain %r", subdomain)
        raise HTTPException(status_code=404, detail="Institution not found.")
    return institution


def get_current_institution(request: Request, db: Session = Depends(get_db)) -> Institution:
    return resolve_institution(db, get_request_subdomain(request))
