"""HTTP tests for the template gallery and template administration."""
from sitebuilder.core.dependencies import get_caller
from sitebuilder.main import app
from tests.conftest import OTHER, OWNER, make_zip, template_row

API = "/api/v1"

NEW_TEMPLATE = {
    "name": "Coffee Shop",
    "description": "Landing page for a cafe",
    "business_category": "restaurant",
    "template_type": "landing-page",
    "tags": ["food"],
}


class TestAdminTemplates:
    def test_create_template(self, client, db, as_admin):
        resp = client.post(f"{API}/admin/templates", json=NEW_TEMPLATE)

        assert resp.status_code == 201
        body = resp.json()
        assert body["id"].startswith("template_")
        assert body["s3_path"] == f"web-templates/{body['id']}"
        assert body["file_count"] == 0
        assert body["has_index_html"] is False
        assert body["preview_url"] is None
        assert db.rows("web_templates")[0]["created_by"] == "admin-1"

    def test_private_template_needs_identity(self, client, as_admin):
        resp = client.post(f"{API}/admin/templates", json={**NEW_TEMPLATE, "is_public": False})
        assert resp.status_code == 422
        assert "Mobile number is required" in resp.json()["error"]

    def test_identity_must_be_ten_digits(self, client, as_admin):
        resp = client.post(
            f"{API}/admin/templates",
            json={**NEW_TEMPLATE, "is_public": False, "custom_identity": "12345"},
        )
        assert resp.status_code == 422

    def test_regular_user_is_forbidden(self, client):
        resp = client.post(f"{API}/admin/templates", json=NEW_TEMPLATE)
        assert resp.status_code == 403
        assert resp.json() == {"error": "Access denied"}

    def test_update_to_public_clears_identity(self, client, db, as_admin):
        db.rows("web_templates").append(template_row(is_public=False, custom_identity=OWNER))
        resp = client.put(f"{API}/admin/templates/template_1_abc", json={"is_public": True, "name": "Renamed"})
        assert resp.status_code == 200
        assert resp.json()["name"] == "Renamed"
        assert resp.json()["custom_identity"] is None

    def test_update_unknown_template(self, client, as_admin):
        resp = client.put(f"{API}/admin/templates/nope", json={"name": "x"})
        assert resp.status_code == 404
        assert resp.json() == {"error": "Template not found"}

    def test_soft_delete_keeps_files(self, client, db, s3, as_admin):
        db.rows("web_templates").append(template_row())
        s3.put("web-templates/template_1_abc/index.html", b"x")

        resp = client.delete(f"{API}/admin/templates/template_1_abc")

        assert resp.status_code == 200
        assert db.rows("web_templates")[0]["is_active"] is False
        assert s3.keys("web-templates/") == ["web-templates/template_1_abc/index.html"]

    def test_hard_delete_removes_record_and_files(self, client, db, s3, as_admin):
        db.rows("web_templates").append(template_row())
        s3.put("web-templates/template_1_abc/index.html", b"x")
        s3.put("web-templates/template_1_abc/a.css", b"x")

        resp = client.delete(f"{API}/admin/templates/template_1_abc?hard=true")

        assert resp.status_code == 200
        assert resp.json()["files_deleted"] == 2
        assert db.rows("web_templates") == []
        assert s3.keys("web-templates/") == []

    def test_admin_list_filters(self, client, db, as_admin):
        db.rows("web_templates").extend([
            template_row("t1", name="Alpha", created_at="2024-01-01T00:00:00+00:00"),
            template_row("t2", name="Beta", is_active=False, created_at="2024-01-02T00:00:00+00:00"),
            template_row("t3", name="Gamma", created_at="2024-01-03T00:00:00+00:00"),
        ])
        resp = client.get(f"{API}/admin/templates", params={"is_active": "true"})
        body = resp.json()
        assert [t["id"] for t in body["templates"]] == ["t3", "t1"]
        assert body["pagination"]["total"] == 2

        resp = client.get(f"{API}/admin/templates", params={"search": "bet"})
        assert [t["id"] for t in resp.json()["templates"]] == ["t2"]

    def test_upload_archive(self, client, db, s3, as_admin):
        db.rows("web_templates").append(template_row())
        data = make_zip({"index.html": "<h1>hi</h1>", "js/app.js": "1"})

        resp = client.post(
            f"{API}/admin/templates/template_1_abc/upload-archive",
            files={"zip_file": ("template.zip", data, "application/zip")},
        )

        assert resp.status_code == 200
        assert resp.json()["file_count"] == 2
        row = db.rows("web_templates")[0]
        assert row["has_index_html"] is True
        assert row["file_count"] == 2

        detail = client.get(f"{API}/admin/templates/template_1_abc").json()
        assert detail["preview_url"].endswith("web-templates/template_1_abc/index.html")

    def test_upload_archive_without_index(self, client, db, s3, as_admin):
        db.rows("web_templates").append(template_row())
        resp = client.post(
            f"{API}/admin/templates/template_1_abc/upload-archive",
            files={"zip_file": ("template.zip", make_zip({"page.html": "x"}), "application/zip")},
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "The ZIP must contain an index.html file"}
        assert s3.keys("web-templates/") == []


class TestTemplateGallery:
    def test_only_active_public_templates_are_listed(self, client, db):
        db.rows("web_templates").extend([
            template_row("t1", business_category="restaurant"),
            template_row("t2", is_active=False),
            template_row("t3", is_public=False, custom_identity=OWNER),
            template_row("t4", business_category="portfolio", template_type="portfolio"),
        ])

        body = client.get(f"{API}/templates").json()

        assert sorted(t["id"] for t in body["templates"]) == ["t1", "t4"]
        assert body["categories"] == ["portfolio", "restaurant"]
        assert body["types"] == ["landing-page", "portfolio"]

    def test_category_filter_and_pagination(self, client, db):
        db.rows("web_templates").extend(
            template_row(f"t{i}", created_at=f"2024-01-{i + 1:02d}T00:00:00+00:00") for i in range(5)
        )
        body = client.get(f"{API}/templates", params={"category": "restaurant", "limit": 2, "page": 2}).json()
        assert [t["id"] for t in body["templates"]] == ["t2", "t1"]
        assert body["pagination"] == {
            "current": 2, "pages": 3, "total": 5, "has_next": True, "has_prev": True,
        }

    def test_private_template_visible_to_its_identity_only(self, client, db, caller_holder):
        db.rows("web_templates").append(template_row("t1", is_public=False, custom_identity=OWNER))
        assert client.get(f"{API}/templates/t1").status_code == 200

        db.rows("web_templates")[0]["custom_identity"] = OTHER
        resp = client.get(f"{API}/templates/t1")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Template not found or not available"}

    def test_requires_login(self, client):
        app.dependency_overrides.pop(get_caller)
        resp = client.get(f"{API}/templates")
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized - Please log in"}
