"""
Tests for the platform level institution API (/api/super-admin).
"""

import pytest


@pytest.fixture
def headers(super_admin, as_user):
    return as_user(super_admin)


class TestInstitutions:

    def test_create(self, client, headers):
        response = client.post(
            "/api/super-admin/institutions",
            json={"name": "Moscow Business School", "subdomain": "mbs", "plan": "professional"},
            headers=headers,
        )
        assert response.status_code == 201
        assert response.json()["is_active"] is True

    def test_subdomain_taken(self, client, institution, headers):
        response = client.post(
            "/api/super-admin/institutions", json={"name": "Clone", "subdomain": "gsom"}, headers=headers
        )
        assert response.status_code == 409

    @pytest.mark.parametrize("subdomain", ["Bad_Name", "-start", "a"])
    def test_invalid_subdomain(self, client, headers, subdomain):
        response = client.post(
            "/api/super-admin/institutions", json={"name": "X", "subdomain": subdomain}, headers=headers
        )
        assert response.status_code == 422

    def test_list_search_and_filter(self, client, institution, other_institution, headers):
        body = client.get("/api/super-admin/institutions?q=graduate", headers=headers).json()
        assert [i["subdomain"] for i in body["items"]] == ["gsom"]

        client.post(f"/api/super-admin/institutions/{other_institution.id}/toggle-status", headers=headers)
        inactive = client.get("/api/super-admin/institutions?active=false", headers=headers).json()
        assert [i["subdomain"] for i in inactive["items"]] == ["other"]

    def test_update_plan(self, client, institution, headers):
        response = client.put(
            f"/api/super-admin/institutions/{institution.id}", json={"plan": "enterprise"}, headers=headers
        )
        assert response.json()["plan"] == "enterprise"

    def test_toggle_blocks_tenant_resolution(self, client, institution, headers):
        response = client.post(f"/api/super-admin/institutions/{institution.id}/toggle-status", headers=headers)
        assert response.json()["is_active"] is False
        assert client.get("/api/institution?subdomain=gsom").status_code == 404

    def test_create_admin_who_can_log_in(self, client, institution, headers):
        response = client.post(
            f"/api/super-admin/institutions/{institution.id}/admins",
            json={"email": "head@gsom.edu", "full_name": "Head Admin", "password": "secret123"},
            headers=headers,
        )
        assert response.status_code == 201
        assert response.json()["role"] == "admin"
        assert response.json()["institution_id"] == institution.id

        login = client.post("/api/auth/login", json={"email": "head@gsom.edu", "password": "secret123"})
        assert login.status_code == 200
        assert login.json()["role"] == "admin"

    def test_missing_institution(self, client, headers):
        assert client.get("/api/super-admin/institutions/999", headers=headers).status_code == 404
