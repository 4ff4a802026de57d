"""
API tests for the case import / export blueprint.

Covers:
  - GET  /api/v1/projects/<id>/cases/export           attachment download
  - POST /api/v1/projects/<id>/cases/import           JSON interchange payload
  - POST /api/v1/projects/<id>/cases/import/testrail  multipart TestRail XML
  - GET/POST /api/v1/case-dictionaries[/seed]
  - error mapping: 400 parse / size / missing body, 404 project, 422 validation
"""

import io
import json

from testhub.models.catalog import TestCase


def _upload(client, project_id, content, filename="suite.xml", query=""):
    return client.post(
        f"/api/v1/projects/{project_id}/cases/import/testrail{query}",
        data={"file": (io.BytesIO(content), filename)},
        content_type="multipart/form-data",
    )


# ── Export ───────────────────────────────────────────────────────────────────


def test_export_download(client, project):
    client.post(f"/api/v1/projects/{project.id}/cases/import", json={"cases": [{"title": "A"}]})

    res = client.get(f"/api/v1/projects/{project.id}/cases/export")

    assert res.status_code == 200
    assert res.mimetype == "application/json"
    disposition = res.headers["Content-Disposition"]
    assert disposition.startswith(f"attachment; filename=testcases_project_{project.id}_")
    assert disposition.endswith(".json")
    body = json.loads(res.data)
    assert body["total"] == 1
    assert body["cases"][0]["title"] == "A"


def test_export_unknown_project(client):
    res = client.get("/api/v1/projects/999/cases/export")

    assert res.status_code == 404
    assert res.get_json()["code"] == "ERR_NOT_FOUND"


# ── JSON import ──────────────────────────────────────────────────────────────


class TestJsonImport:

    def test_import_then_skip_then_overwrite(self, client, project):
        payload = {"suites": [{"name": "Smoke"}],
                   "cases": [{"title": "Login", "suiteName": "Smoke"}]}
        url = f"/api/v1/projects/{project.id}/cases/import"

        res = client.post(url, json=payload)
        assert res.status_code == 200
        assert res.get_json() == {"imported": 1, "skipped": 0, "updated": 0}

        res = client.post(url, json=payload)
        assert res.get_json() == {"imported": 0, "skipped": 1, "updated": 0}

        res = client.post(f"{url}?overwriteExisting=true", json=payload)
        assert res.get_json() == {"imported": 0, "skipped": 0, "updated": 1}

    def test_empty_payload(self, client, project):
        res = client.post(f"/api/v1/projects/{project.id}/cases/import", json={})

        assert res.status_code == 200
        assert res.get_json() == {"imported": 0, "skipped": 0, "updated": 0}

    def test_actor_header_recorded(self, client, project):
        client.post(
            f"/api/v1/projects/{project.id}/cases/import",
            json={"cases": [{"title": "Audited"}]},
            headers={"X-User": "alice"},
        )
        assert TestCase.query.filter_by(title="Audited").one().created_by == "alice"

    def test_default_actor(self, client, project):
        client.post(f"/api/v1/projects/{project.id}/cases/import", json={"cases": [{"title": "Anon"}]})
        assert TestCase.query.filter_by(title="Anon").one().created_by == "system"

    def test_missing_body(self, client, project):
        res = client.post(f"/api/v1/projects/{project.id}/cases/import",
                          data="not json", content_type="text/plain")

        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"

    def test_invalid_field(self, client, project):
        res = client.post(f"/api/v1/projects/{project.id}/cases/import",
                          json={"cases": [{"title": "A", "status": "DONE"}]})

        assert res.status_code == 422
        body = res.get_json()
        assert body["code"] == "ERR_VALIDATION_INVALID"
        assert "cases[0].status" in body["details"]

    def test_unknown_project(self, client):
        res = client.post("/api/v1/projects/999/cases/import", json={"cases": [{"title": "A"}]})
        assert res.status_code == 404

    def test_oversized_body(self, client, project, app, monkeypatch):
        monkeypatch.setitem(app.config, "MAX_IMPORT_BYTES", 10)

        res = client.post(f"/api/v1/projects/{project.id}/cases/import",
                          json={"cases": [{"title": "Too long for the limit"}]})

        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_SIZE_LIMIT"


# ── TestRail import ──────────────────────────────────────────────────────────


class TestTestrailImport:

    def test_upload(self, client, project, dictionaries, testrail_xml):
        res = _upload(client, project.id, testrail_xml)

        assert res.status_code == 200
        assert res.get_json() == {"imported": 3, "skipped": 0, "updated": 0}

        res = _upload(client, project.id, testrail_xml, query="?overwriteExisting=1")
        assert res.get_json() == {"imported": 0, "skipped": 0, "updated": 3}

    def test_missing_file(self, client, project):
        res = client.post(f"/api/v1/projects/{project.id}/cases/import/testrail",
                          data={}, content_type="multipart/form-data")

        assert res.status_code == 422
        assert res.get_json()["error"] == "File is required"

    def test_wrong_extension(self, client, project, testrail_xml):
        res = _upload(client, project.id, testrail_xml, filename="suite.txt")

        assert res.status_code == 422
        assert res.get_json()["error"] == "File must be XML format"

    def test_malformed_xml(self, client, project):
        res = _upload(client, project.id, b"<suite><name>broken</suite>")

        assert res.status_code == 400
        body = res.get_json()
        assert body["code"] == "ERR_PARSE_FAILED"
        assert body["error"].startswith("Failed to parse TestRail XML: ")

    def test_too_large(self, client, project, app, monkeypatch, testrail_xml):
        monkeypatch.setitem(app.config, "MAX_IMPORT_BYTES", 100)

        res = _upload(client, project.id, testrail_xml)

        assert res.status_code == 400
        body = res.get_json()
        assert body["code"] == "ERR_SIZE_LIMIT"
        assert body["details"]["limit"] == 100
        assert body["error"] == "File size exceeds maximum allowed size of 100 bytes"


# ── Dictionaries ─────────────────────────────────────────────────────────────


def test_seed_dictionaries_is_idempotent(client):
    res = client.post("/api/v1/case-dictionaries/seed")
    assert res.status_code == 200
    body = res.get_json()
    assert body["added"] == 10
    assert [p["name"] for p in body["priorities"]] == ["Low", "Medium", "High", "Critical"]

    res = client.post("/api/v1/case-dictionaries/seed")
    assert res.get_json()["added"] == 0


def test_list_dictionaries(client, dictionaries):
    res = client.get("/api/v1/case-dictionaries")

    assert res.status_code == 200
    assert len(res.get_json()["types"]) == 6


def test_health(client):
    res = client.get("/api/v1/health")
    assert res.status_code == 200
    assert res.get_json()["status"] == "ok"
