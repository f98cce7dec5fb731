from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.course import Course
from app.models.pack import ElectivePack
from app.models.profile import Profile
from app.models.selection import Selection
from app.models.university import University
from app.schemas.dashboard import AdminDashboard, ManagerDashboard, StudentDashboard
from app.services.packs import is_open


def _grouped(query) -> dict[str, int]:
    return {key: count for key, count in query.all()}


def _packs_by_status(db: Session, institution_id: int) -> dict[str, int]:
    return _grouped(
        db.query(ElectivePack.status, func.count(ElectivePack.id))
        .filter(ElectivePack.institution_id == institution_id)
        .group_by(ElectivePack.status)
    )


def admin_dashboard(db: Session, institution_id: int) -> AdminDashboard:
    return AdminDashboard(
        users_by_role=_grouped(
            db.query(Profile.role, func.count(Profile.id))
            .filter(Profile.institution_id == institution_id)
            .group_by(Profile.role)
        ),
        active_users=db.query(Profile)
        .filter(Profile.institution_id == institution_id, Profile.is_active.is_(True))
        .count(),
        courses=db.query(Course).filter(Course.institution_id == institution_id).count(),
        universities=db.query(University).filter(University.institution_id == institution_id).count(),
        packs_by_status=_packs_by_status(db, institution_id),
    )


def manager_dashboard(db: Session, institution_id: int) -> ManagerDashboard:
    by_status = _grouped(
        db.query(Selection.status, func.count(Selection.id))
        .join(ElectivePack, Selection.pack_id == ElectivePack.id)
        .filter(ElectivePack.institution_id == institution_id)
        .group_by(Selection.status)
    )
    return ManagerDashboard(
        packs_by_status=_packs_by_status(db, institution_id),
        pending_selections=by_status.get("pending", 0),
        approved_selections=by_status.get("approved", 0),
        rejected_selections=by_status.get("rejected", 0),
    )


def student_dashboard(db: Session, student: Profile) -> StudentDashboard:
    now = datetime.utcnow()
    packs = (
        db.query(ElectivePack)
        .filter(
            ElectivePack.institution_id == student.institution_id,
            ElectivePack.status == "published",
        )
        .order_by(ElectivePack.deadline)
        .all()
    )
    open_packs = [p for p in packs if is_open(p, now)]
    return StudentDashboard(
        open_packs=len(open_packs),
        selections_by_status=_grouped(
            db.query(Selection.status, func.count(Selection.id))
            .filter(Selection.student_id == student.id)
            .group_by(Selection.status)
        ),
        upcoming_deadlines=[
            {"pack_id": p.id, "name": p.name, "kind": p.kind, "deadline": p.deadline.isoformat()}
            for p in open_packs[:5]
        ],
    )
