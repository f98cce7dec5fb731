"""
Pytest fixtures for the ElectivePro API tests.
"""

import os
from datetime import datetime, timedelta
from io import BytesIO

# Set environment variables BEFORE any imports from app so Settings picks
# them up when first loaded. Development mode enables the ?subdomain= override.
os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-key"
os.environ.pop("CACHE_FILE", None)

import pytest
from fastapi.testclient import TestClient
from pypdf import PdfWriter
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.cache import data_cache
from app.core.config import settings
from app.core.database import get_db
from app.core.security import create_access_token, hash_password
from app.main import app
from app.models import (
    Base,
    Course,
    Degree,
    ElectivePack,
    Group,
    Institution,
    PackCourse,
    PackUniversity,
    Profile,
    Program,
    University,
)

PASSWORD = "password123"


# =============================================================================
# DATABASE / CLIENT
# =============================================================================


@pytest.fixture
def db():
    """Fresh in-memory database per test, shared by the test and the app."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def client(db):
    def override_get_db():
        try:
            yield db
        finally:
            # discard whatever a failed request left pending
            db.rollback()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def isolated_state(tmp_path, monkeypatch):
    """Every test gets its own storage directory and an empty data cache."""
    monkeypatch.setattr(settings, "storage_dir", str(tmp_path / "storage"))
    data_cache.clear()
    yield
    data_cache.clear()


@pytest.fixture(scope="session")
def password_hash():
    return hash_password(PASSWORD)


def auth_headers(profile: Profile) -> dict:
    token = create_access_token(profile.id, profile.role, profile.institution_id)
    return {"Authorization": f"Bearer {token}"}


def _add(db, row):
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


# =============================================================================
# TENANTS AND PEOPLE
# =============================================================================


@pytest.fixture
def institution(db):
    return _add(db, Institution(name="Graduate School of Management", subdomain="gsom", plan="standard"))


@pytest.fixture
def other_institution(db):
    return _add(db, Institution(name="Other School", subdomain="other"))


@pytest.fixture
def super_admin(db, password_hash):
    return _add(
        db,
        Profile(email="root@electivepro.net", full_name="Platform Owner", role="super_admin",
                hashed_password=password_hash),
    )


@pytest.fixture
def admin(db, institution, password_hash):
    return _add(
        db,
        Profile(institution_id=institution.id, email="admin@gsom.edu", full_name="Alice Admin",
                role="admin", hashed_password=password_hash),
    )


@pytest.fixture
def manager(db, institution):
    return _add(
        db,
        Profile(institution_id=institution.id, email="manager@gsom.edu", full_name="Mark Manager",
                role="program_manager"),
    )


@pytest.fixture
def catalog(db, institution):
    """Degree, program, group, three courses and two partner universities."""
    degree = _add(db, Degree(institution_id=institution.id, name="Master in Management", code="MIM"))
    program = _add(db, Program(institution_id=institution.id, degree_id=degree.id, name="Strategy", code="ST"))
    group = _add(
        db,
        Group(institution_id=institution.id, degree_id=degree.id, program_id=program.id,
              name="24.MIM-1", academic_year="2024"),
    )
    courses = [
        _add(db, Course(institution_id=institution.id, degree_id=degree.id, name="Digital Strategy",
                        name_ru="Цифровая стратегия", code="MGT-501", instructor="Petrova", max_students=20)),
        _add(db, Course(institution_id=institution.id, degree_id=degree.id, name="Corporate Finance",
                        code="FIN-510", instructor="Smirnov", max_students=20)),
        _add(db, Course(institution_id=institution.id, name="Negotiations", code="MGT-520",
                        instructor="Volkova", max_students=1)),
    ]
    universities = [
        _add(db, University(institution_id=institution.id, name="HEC Paris", country="France",
                            city="Paris", max_students=2)),
        _add(db, University(institution_id=institution.id, name="Bocconi University", country="Italy",
                            city="Milan", max_students=1)),
    ]
    return {"degree": degree, "program": program, "group": group, "courses": courses, "universities": universities}


@pytest.fixture
def student(db, institution, catalog, password_hash):
    return _add(
        db,
        Profile(institution_id=institution.id, email="anna@gsom.edu", full_name="Anna Ivanova",
                role="student", hashed_password=password_hash, student_number="ST-0001",
                degree_id=catalog["degree"].id, group_id=catalog["group"].id,
                program_id=catalog["program"].id),
    )


@pytest.fixture
def student2(db, institution, catalog):
    return _add(
        db,
        Profile(institution_id=institution.id, email="boris@gsom.edu", full_name="Boris Kuznetsov",
                role="student", student_number="ST-0002", group_id=catalog["group"].id,
                program_id=catalog["program"].id),
    )


# =============================================================================
# PACKS AND FILES
# =============================================================================


@pytest.fixture
def course_pack(db, institution, catalog, manager):
    pack = ElectivePack(
        institution_id=institution.id,
        kind="course",
        name="Fall 2025 Course Selection",
        status="published",
        deadline=datetime.utcnow() + timedelta(days=7),
        max_selections=2,
        created_by=manager.id,
    )
    pack.courses = [PackCourse(course_id=c.id) for c in catalog["courses"]]
    return _add(db, pack)


@pytest.fixture
def exchange_pack(db, institution, catalog, manager):
    pack = ElectivePack(
        institution_id=institution.id,
        kind="exchange",
        name="Spring 2026 Exchange Program",
        status="published",
        deadline=datetime.utcnow() + timedelta(days=7),
        max_selections=1,
        created_by=manager.id,
    )
    pack.universities = [PackUniversity(university_id=u.id) for u in catalog["universities"]]
    return _add(db, pack)


@pytest.fixture
def pdf_bytes():
    """A valid one-page PDF."""
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def as_user():
    """``as_user(profile)`` -> Authorization header for that profile."""
    return auth_headers


@pytest.fixture
def password():
    """Plain-text password of every profile seeded with ``password_hash``."""
    return PASSWORD
