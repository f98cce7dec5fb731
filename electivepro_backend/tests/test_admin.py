"""
Tests for the institution admin API: users, reference data, courses,
universities and tenant settings.
"""

import pytest

from app.models import Selection, SelectionItem


# =============================================================================
# USERS
# =============================================================================


class TestUsers:

    def test_list_filters_and_pages(self, client, admin, manager, student, student2, as_user):
        response = client.get("/api/admin/users?role=student&per_page=1", headers=as_user(admin))
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert body["pages"] == 2
        assert [u["full_name"] for u in body["items"]] == ["Anna Ivanova"]

    def test_search_by_student_number(self, client, admin, student, student2, as_user):
        body = client.get("/api/admin/users?q=st-0002", headers=as_user(admin)).json()
        assert [u["email"] for u in body["items"]] == ["boris@gsom.edu"]

    def test_users_of_other_tenants_are_hidden(self, client, db, admin, other_institution, as_user):
        from app.models import Profile

        db.add(Profile(institution_id=other_institution.id, email="x@other.edu", full_name="X", role="student"))
        db.commit()
        emails = [u["email"] for u in client.get("/api/admin/users", headers=as_user(admin)).json()["items"]]
        assert "x@other.edu" not in emails

    def test_create_without_password(self, client, admin, catalog, as_user):
        response = client.post(
            "/api/admin/users",
            json={"email": "pm@gsom.edu", "full_name": "New Manager", "role": "program_manager",
                  "program_id": catalog["program"].id},
            headers=as_user(admin),
        )
        assert response.status_code == 201
        assert response.json()["role"] == "program_manager"

    def test_create_super_admin_is_rejected(self, client, admin, as_user):
        response = client.post(
            "/api/admin/users",
            json={"email": "boss@gsom.edu", "full_name": "Boss", "role": "super_admin"},
            headers=as_user(admin),
        )
        assert response.status_code == 422

    def test_create_duplicate_email(self, client, admin, student, as_user):
        response = client.post(
            "/api/admin/users",
            json={"email": student.email, "full_name": "Dup"},
            headers=as_user(admin),
        )
        assert response.status_code == 409

    def test_new_user_shows_up_after_cached_listing(self, client, admin, as_user):
        headers = as_user(admin)
        assert client.get("/api/admin/users", headers=headers).json()["total"] == 1
        client.post("/api/admin/users", json={"email": "n@gsom.edu", "full_name": "N"}, headers=headers)
        assert client.get("/api/admin/users", headers=headers).json()["total"] == 2

    def test_update(self, client, admin, student, catalog, as_user):
        response = client.put(
            f"/api/admin/users/{student.id}",
            json={"full_name": "Anna I. Ivanova", "academic_year": "2025"},
            headers=as_user(admin),
        )
        assert response.status_code == 200
        assert response.json()["full_name"] == "Anna I. Ivanova"
        assert response.json()["group_id"] == catalog["group"].id

    @pytest.mark.parametrize("field", ["full_name", "role"])
    def test_null_for_required_field_is_rejected(self, client, admin, student, field, as_user):
        response = client.put(f"/api/admin/users/{student.id}", json={field: None}, headers=as_user(admin))
        assert response.status_code == 422

    def test_optional_field_can_be_cleared(self, client, admin, student, as_user):
        response = client.put(f"/api/admin/users/{student.id}", json={"group_id": None}, headers=as_user(admin))
        assert response.status_code == 200
        assert response.json()["group_id"] is None

    def test_admin_sets_password_for_invited_user(self, client, admin, manager, as_user):
        response = client.put(
            f"/api/admin/users/{manager.id}", json={"password": "first-pass-1"}, headers=as_user(admin)
        )
        assert response.status_code == 200
        login = client.post("/api/auth/login", json={"email": manager.email, "password": "first-pass-1"})
        assert login.status_code == 200

    def test_toggle_status(self, client, admin, student, as_user):
        response = client.post(f"/api/admin/users/{student.id}/toggle-status", headers=as_user(admin))
        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert response.json()["role"] == "student"

        listed = client.get("/api/admin/users?status=inactive", headers=as_user(admin)).json()
        assert [u["id"] for u in listed["items"]] == [student.id]

    def test_cannot_deactivate_self(self, client, admin, as_user):
        response = client.post(f"/api/admin/users/{admin.id}/toggle-status", headers=as_user(admin))
        assert response.status_code == 400

    def test_delete_removes_selections(self, client, db, admin, student, course_pack, catalog, as_user):
        db.add(Selection(student_id=student.id, pack_id=course_pack.id,
                         items=[SelectionItem(course_id=catalog["courses"][0].id)]))
        db.commit()
        response = client.delete(f"/api/admin/users/{student.id}", headers=as_user(admin))
        assert response.status_code == 204
        assert db.query(Selection).count() == 0

    def test_cannot_delete_self(self, client, admin, as_user):
        assert client.delete(f"/api/admin/users/{admin.id}", headers=as_user(admin)).status_code == 400

    def test_user_of_other_tenant_is_not_found(self, client, db, admin, other_institution, as_user):
        from app.models import Profile

        stranger = Profile(institution_id=other_institution.id, email="s@other.edu", full_name="S", role="student")
        db.add(stranger)
        db.commit()
        assert client.get(f"/api/admin/users/{stranger.id}", headers=as_user(admin)).status_code == 404


# =============================================================================
# DEGREES, PROGRAMS, GROUPS
# =============================================================================


class TestReferenceData:

    def test_degree_lifecycle(self, client, admin, as_user):
        headers = as_user(admin)
        created = client.post(
            "/api/admin/degrees", json={"name": "Bachelor in Management", "code": "BM"}, headers=headers
        )
        assert created.status_code == 201
        degree_id = created.json()["id"]

        updated = client.put(f"/api/admin/degrees/{degree_id}", json={"status": "inactive"}, headers=headers)
        assert updated.json()["status"] == "inactive"

        listed = client.get("/api/admin/degrees?status=inactive", headers=headers).json()
        assert [d["code"] for d in listed] == ["BM"]

        assert client.delete(f"/api/admin/degrees/{degree_id}", headers=headers).status_code == 204
        assert client.get("/api/admin/degrees", headers=headers).json() == []

    def test_degree_in_use_cannot_be_deleted(self, client, admin, catalog, as_user):
        response = client.delete(f"/api/admin/degrees/{catalog['degree'].id}", headers=as_user(admin))
        assert response.status_code == 400

    def test_degree_used_only_by_a_course_cannot_be_deleted(self, client, admin, catalog, as_user):
        headers = as_user(admin)
        degree_id = client.post(
            "/api/admin/degrees", json={"name": "Executive MBA", "code": "EMBA"}, headers=headers
        ).json()["id"]
        course_id = catalog["courses"][2].id
        client.put(f"/api/admin/courses/{course_id}", json={"degree_id": degree_id}, headers=headers)

        assert client.delete(f"/api/admin/degrees/{degree_id}", headers=headers).status_code == 400
        course = client.get(f"/api/admin/courses/{course_id}", headers=headers).json()
        assert course["degree_id"] == degree_id

    def test_renamed_degree_shows_in_cached_listings(self, client, admin, catalog, as_user):
        headers = as_user(admin)
        client.get("/api/admin/courses", headers=headers)
        client.get("/api/admin/programs", headers=headers)

        client.put(f"/api/admin/degrees/{catalog['degree'].id}", json={"name": "MSc Management"}, headers=headers)

        courses = client.get(f"/api/admin/courses?degree_id={catalog['degree'].id}", headers=headers).json()
        assert {c["degree_name"] for c in courses["items"]} == {"MSc Management"}
        programs = client.get("/api/admin/programs", headers=headers).json()
        assert programs[0]["degree_name"] == "MSc Management"

    def test_renamed_group_and_program_show_in_cached_user_rows(self, client, admin, student, catalog, as_user):
        headers = as_user(admin)
        program_id = catalog["program"].id
        client.get("/api/admin/users", headers=headers)
        client.get(f"/api/admin/programs/{program_id}/students", headers=headers)

        client.put(f"/api/admin/groups/{catalog['group'].id}", json={"name": "24.MIM-A"}, headers=headers)
        client.put(f"/api/admin/programs/{program_id}", json={"name": "Strategy and Innovation"}, headers=headers)

        users = client.get("/api/admin/users?role=student", headers=headers).json()["items"]
        assert users[0]["group_name"] == "24.MIM-A"
        students = client.get(f"/api/admin/programs/{program_id}/students", headers=headers).json()
        assert students[0]["program_name"] == "Strategy and Innovation"

    def test_programs_carry_degree_name(self, client, admin, catalog, as_user):
        programs = client.get("/api/admin/programs", headers=as_user(admin)).json()
        assert programs[0]["degree_name"] == "Master in Management"

    def test_program_students(self, client, admin, student, student2, catalog, as_user):
        response = client.get(f"/api/admin/programs/{catalog['program'].id}/students", headers=as_user(admin))
        assert [s["full_name"] for s in response.json()] == ["Anna Ivanova", "Boris Kuznetsov"]

    def test_deleting_program_unassigns_students(self, client, db, admin, student, catalog, as_user):
        response = client.delete(f"/api/admin/programs/{catalog['program'].id}", headers=as_user(admin))
        assert response.status_code == 204
        db.refresh(student)
        assert student.program_id is None

    def test_groups_count_students(self, client, admin, student, student2, as_user):
        groups = client.get("/api/admin/groups?academic_year=2024", headers=as_user(admin)).json()
        assert groups[0]["student_count"] == 2
        assert groups[0]["program_name"] == "Strategy"

    def test_duplicate_group_name(self, client, admin, catalog, as_user):
        response = client.post("/api/admin/groups", json={"name": "24.MIM-1"}, headers=as_user(admin))
        assert response.status_code == 409

    def test_rename_group_to_existing_name(self, client, admin, catalog, as_user):
        headers = as_user(admin)
        client.post("/api/admin/groups", json={"name": "24.MIM-2"}, headers=headers)
        group_id = catalog["group"].id
        response = client.put(f"/api/admin/groups/{group_id}", json={"name": "24.MIM-2"}, headers=headers)
        assert response.status_code == 409
        response = client.put(f"/api/admin/groups/{group_id}", json={"name": "24.MIM-1"}, headers=headers)
        assert response.status_code == 200

    def test_null_group_name_is_rejected(self, client, admin, catalog, as_user):
        response = client.put(
            f"/api/admin/groups/{catalog['group'].id}", json={"name": None}, headers=as_user(admin)
        )
        assert response.status_code == 422

    def test_group_with_foreign_program(self, client, db, admin, catalog, other_institution, as_user):
        from app.models import Program

        foreign = Program(institution_id=other_institution.id, name="Foreign")
        db.add(foreign)
        db.commit()
        response = client.post(
            "/api/admin/groups", json={"name": "X-1", "program_id": foreign.id}, headers=as_user(admin)
        )
        assert response.status_code == 404


# =============================================================================
# COURSES
# =============================================================================


class TestCourses:

    def test_list_search_and_filter(self, client, admin, catalog, as_user):
        headers = as_user(admin)
        body = client.get("/api/admin/courses?q=цифровая", headers=headers).json()
        assert [c["code"] for c in body["items"]] == ["MGT-501"]

        body = client.get(f"/api/admin/courses?degree_id={catalog['degree'].id}", headers=headers).json()
        assert body["total"] == 2
        assert body["items"][0]["degree_name"] == "Master in Management"

    def test_create_and_duplicate_code(self, client, admin, catalog, as_user):
        headers = as_user(admin)
        payload = {"name": "Marketing", "code": "MKT-100", "credits": 3, "max_students": 30}
        assert client.post("/api/admin/courses", json=payload, headers=headers).status_code == 201
        assert client.post("/api/admin/courses", json=payload, headers=headers).status_code == 409
        assert client.get("/api/admin/courses", headers=headers).json()["total"] == 4

    def test_update_to_existing_code(self, client, admin, catalog, as_user):
        headers = as_user(admin)
        course_id = catalog["courses"][0].id
        response = client.put(f"/api/admin/courses/{course_id}", json={"code": "FIN-510"}, headers=headers)
        assert response.status_code == 409
        response = client.put(f"/api/admin/courses/{course_id}", json={"code": "MGT-501"}, headers=headers)
        assert response.status_code == 200

    @pytest.mark.parametrize("field", ["name", "code"])
    def test_null_for_required_field_is_rejected(self, client, admin, catalog, field, as_user):
        course_id = catalog["courses"][0].id
        response = client.put(f"/api/admin/courses/{course_id}", json={field: None}, headers=as_user(admin))
        assert response.status_code == 422

    def test_capacity_can_be_cleared(self, client, admin, catalog, as_user):
        course_id = catalog["courses"][0].id
        response = client.put(
            f"/api/admin/courses/{course_id}", json={"max_students": None}, headers=as_user(admin)
        )
        assert response.status_code == 200
        assert response.json()["max_students"] is None

    def test_status_change(self, client, admin, catalog, as_user):
        course_id = catalog["courses"][0].id
        response = client.patch(
            f"/api/admin/courses/{course_id}/status", json={"status": "draft"}, headers=as_user(admin)
        )
        assert response.json()["status"] == "draft"
        body = client.get("/api/admin/courses?status=draft", headers=as_user(admin)).json()
        assert [c["id"] for c in body["items"]] == [course_id]

    def test_course_in_pack_cannot_be_deleted(self, client, admin, course_pack, catalog, as_user):
        response = client.delete(f"/api/admin/courses/{catalog['courses'][0].id}", headers=as_user(admin))
        assert response.status_code == 400

    def test_unused_course_is_deleted(self, client, admin, catalog, as_user):
        course_id = catalog["courses"][2].id
        assert client.delete(f"/api/admin/courses/{course_id}", headers=as_user(admin)).status_code == 204
        assert client.get(f"/api/admin/courses/{course_id}", headers=as_user(admin)).status_code == 404

    def test_course_of_other_tenant_is_not_found(self, client, db, catalog, other_institution, as_user):
        from app.models import Profile

        outsider = Profile(institution_id=other_institution.id, email="a@other.edu", full_name="A", role="admin")
        db.add(outsider)
        db.commit()
        response = client.get(f"/api/admin/courses/{catalog['courses'][0].id}", headers=as_user(outsider))
        assert response.status_code == 404


# =============================================================================
# UNIVERSITIES
# =============================================================================


class TestUniversities:

    def test_countries_are_unique_and_sorted(self, client, admin, catalog, as_user):
        client.post(
            "/api/admin/universities", json={"name": "Sorbonne", "country": "France"}, headers=as_user(admin)
        )
        response = client.get("/api/admin/universities/countries", headers=as_user(admin))
        assert response.json() == ["France", "Italy"]

    def test_filter_by_country(self, client, admin, catalog, as_user):
        body = client.get("/api/admin/universities?country=Italy", headers=as_user(admin)).json()
        assert [u["name"] for u in body["items"]] == ["Bocconi University"]

    def test_toggle_status(self, client, admin, catalog, as_user):
        university_id = catalog["universities"][0].id
        first = client.post(f"/api/admin/universities/{university_id}/toggle-status", headers=as_user(admin))
        second = client.post(f"/api/admin/universities/{university_id}/toggle-status", headers=as_user(admin))
        assert first.json()["status"] == "inactive"
        assert second.json()["status"] == "active"

    def test_university_in_pack_cannot_be_deleted(self, client, admin, exchange_pack, catalog, as_user):
        university_id = catalog["universities"][0].id
        assert client.delete(f"/api/admin/universities/{university_id}", headers=as_user(admin)).status_code == 400


# =============================================================================
# SETTINGS AND DASHBOARD
# =============================================================================


class TestInstitutionSettings:

    def test_branding_update(self, client, admin, as_user):
        response = client.put(
            "/api/admin/institution", json={"primary_color": "#ff0000"}, headers=as_user(admin)
        )
        assert response.status_code == 200
        assert response.json()["primary_color"] == "#ff0000"
        assert response.json()["plan"] == "standard"

    def test_bad_color(self, client, admin, as_user):
        response = client.put("/api/admin/institution", json={"primary_color": "red"}, headers=as_user(admin))
        assert response.status_code == 422

    def test_null_name_is_rejected(self, client, admin, as_user):
        response = client.put("/api/admin/institution", json={"name": None}, headers=as_user(admin))
        assert response.status_code == 422

    def test_dashboard(self, client, admin, manager, student, course_pack, as_user):
        body = client.get("/api/admin/dashboard", headers=as_user(admin)).json()
        assert body["users_by_role"] == {"admin": 1, "program_manager": 1, "student": 1}
        assert body["courses"] == 3
        assert body["packs_by_status"] == {"published": 1}
