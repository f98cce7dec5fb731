"""
Seed a demo tenant for local development.

Run from electivepro_backend/:  python scripts/seed_demo_data.py

1. Create the "demo" institution and a super admin (idempotent on email / subdomain)
2. Add a degree, program, group and a handful of courses and partner universities
3. Add an admin, a program manager and two students (password: demo12345)
4. Publish one course pack and one exchange pack with a deadline 30 days out
"""
from datetime import datetime, timedelta

from app.core.database import SessionLocal, engine
from app.core.security import hash_password
from app.models.base import Base
from app.models import (
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

PASSWORD = "demo12345"


def _profile(db, email, full_name, role, institution_id=None, **extra):
    profile = db.query(Profile).filter(Profile.email == email).first()
    if profile:
        return profile
    profile = Profile(
        email=email,
        full_name=full_name,
        role=role,
        institution_id=institution_id,
        hashed_password=hash_password(PASSWORD),
        **extra,
    )
    db.add(profile)
    db.flush()
    print(f"  {role}: {email}")
    return profile


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        _profile(db, "root@electivepro.net", "Platform Owner", "super_admin")

        institution = db.query(Institution).filter(Institution.subdomain == "demo").first()
        if institution:
            print("Institution 'demo' already exists; nothing to do.")
            db.commit()
            return
        institution = Institution(name="Demo University", subdomain="demo", plan="standard", primary_color="#1d4ed8")
        db.add(institution)
        db.flush()
        print(f"Created institution {institution.id} (demo)")

        degree = Degree(institution_id=institution.id, name="Master in Management", code="MIM")
        db.add(degree)
        db.flush()
        program = Program(institution_id=institution.id, degree_id=degree.id, name="Strategic Management", code="SM")
        db.add(program)
        db.flush()
        group = Group(
            institution_id=institution.id,
            degree_id=degree.id,
            program_id=program.id,
            name="24.MIM-SM-1",
            academic_year="2024",
        )
        db.add(group)
        db.flush()

        courses = [
            Course(institution_id=institution.id, degree_id=degree.id, name=name, name_ru=name_ru, code=code,
                   credits=3, instructor=instructor, max_students=seats)
            for name, name_ru, code, instructor, seats in [
                ("Digital Strategy", "Цифровая стратегия", "MGT-501", "A. Petrova", 25),
                ("Corporate Finance", "Корпоративные финансы", "FIN-510", "I. Smirnov", 30),
                ("Negotiations", "Переговоры", "MGT-520", "E. Volkova", 20),
                ("Business Analytics", "Бизнес-аналитика", "ANL-530", "D. Orlov", 2),
            ]
        ]
        universities = [
            University(institution_id=institution.id, name=name, country=country, city=city, max_students=seats)
            for name, country, city, seats in [
                ("HEC Paris", "France", "Jouy-en-Josas", 3),
                ("Bocconi University", "Italy", "Milan", 2),
                ("Copenhagen Business School", "Denmark", "Copenhagen", 2),
            ]
        ]
        db.add_all(courses + universities)
        db.flush()
        print(f"  {len(courses)} courses, {len(universities)} universities")

        _profile(db, "admin@demo.edu", "Demo Admin", "admin", institution.id)
        manager = _profile(db, "manager@demo.edu", "Demo Manager", "program_manager", institution.id)
        for number, (email, name) in enumerate(
            [("student1@demo.edu", "Anna Ivanova"), ("student2@demo.edu", "Boris Kuznetsov")], start=1
        ):
            _profile(
                db, email, name, "student", institution.id,
                degree_id=degree.id, group_id=group.id, program_id=program.id,
                student_number=f"ST-{number:04d}", academic_year="2024",
            )

        deadline = datetime.utcnow() + timedelta(days=30)
        course_pack = ElectivePack(
            institution_id=institution.id, kind="course", name="Fall 2025 Course Selection",
            name_ru="Выбор курсов, осень 2025", status="published", deadline=deadline,
            max_selections=2, created_by=manager.id,
        )
        course_pack.courses = [PackCourse(course_id=c.id) for c in courses]
        exchange_pack = ElectivePack(
            institution_id=institution.id, kind="exchange", name="Spring 2026 Exchange Program",
            status="published", deadline=deadline, max_selections=2, created_by=manager.id,
        )
        exchange_pack.universities = [PackUniversity(university_id=u.id) for u in universities]
        db.add_all([course_pack, exchange_pack])

        db.commit()
        print(f"Done. Log in with any demo account and password {PASSWORD!r}.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
