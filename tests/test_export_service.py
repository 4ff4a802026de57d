"""
Tests for the export service.

Covers:
  - build_export shape and camelCase case keys
  - archived cases / suites are left out, names still resolve
  - suite entries carry the parent path for re-import
  - serialize_export filename, content type and JSON body
"""

import json
from datetime import datetime, timezone

from testhub.models import db
from testhub.models.catalog import CasePriority, CaseType, Suite, TestCase
from testhub.services.export_service import (
    EXPORT_CONTENT_TYPE,
    build_export,
    export_cases,
    serialize_export,
)


# ── Helpers ─────────────────────────────────────────────────────────────────


def _make_suite(project_id, name, parent=None, archived=False):
    suite = Suite(
        project_id=project_id,
        parent_id=parent.id if parent else None,
        depth=parent.depth + 1 if parent else 0,
        name=name,
        description=f"{name} suite",
        is_archived=archived,
    )
    db.session.add(suite)
    db.session.flush()
    return suite


def _make_case(project_id, title, suite=None, **kwargs):
    case = TestCase(project_id=project_id, suite_id=suite.id if suite else None, title=title, **kwargs)
    db.session.add(case)
    db.session.flush()
    return case


# ── build_export ────────────────────────────────────────────────────────────


def test_empty_project(project):
    data = build_export(project.id)

    assert data["projectId"] == project.id
    assert data["total"] == 0
    assert data["suites"] == []
    assert data["cases"] == []
    assert data["exportedAt"].endswith("Z")


def test_case_fields(project, dictionaries):
    ui = _make_suite(project.id, "UI")
    chrome = _make_suite(project.id, "Chrome", parent=ui)
    high = CasePriority.query.filter_by(name="High").one()
    smoke = CaseType.query.filter_by(name="Smoke").one()
    _make_case(
        project.id, "Login", chrome,
        priority_id=high.id,
        type_id=smoke.id,
        tags=["AUTO-1"],
        steps=[{"action": "Open", "expected": None, "notes": None, "attachments": []}],
        autotest_mapping={"testClass": "LoginTest"},
        created_by="alice",
    )

    data = build_export(project.id)

    assert data["total"] == 1
    case = data["cases"][0]
    assert case["title"] == "Login"
    assert case["suiteId"] == chrome.id
    assert case["suiteName"] == "Chrome"
    assert case["suitePath"] == "UI/Chrome"
    assert case["priorityName"] == "High"
    assert case["typeName"] == "Smoke"
    assert case["tags"] == ["AUTO-1"]
    assert case["steps"][0]["action"] == "Open"
    assert case["autotestMapping"] == {"testClass": "LoginTest"}
    assert case["status"] == "DRAFT"
    assert case["archived"] is False
    assert case["createdBy"] == "alice"


def test_root_case_has_no_suite(project):
    _make_case(project.id, "Loose")

    case = build_export(project.id)["cases"][0]
    assert case["suiteId"] is None
    assert case["suiteName"] is None
    assert case["suitePath"] is None


def test_suite_entries_carry_parent_path(project):
    ui = _make_suite(project.id, "UI")
    sync = _make_suite(project.id, "Sync", parent=ui)
    _make_suite(project.id, "Chrome", parent=sync)

    suites = build_export(project.id)["suites"]

    assert [(s["name"], s["parentName"]) for s in suites] == [
        ("UI", None), ("Sync", "UI"), ("Chrome", "UI/Sync"),
    ]
    assert suites[0]["description"] == "UI suite"


def test_archived_rows_excluded(project):
    old = _make_suite(project.id, "Old", archived=True)
    _make_case(project.id, "Still active", old)
    _make_case(project.id, "Retired", is_archived=True)

    data = build_export(project.id)

    assert data["suites"] == []
    assert [c["title"] for c in data["cases"]] == ["Still active"]
    assert data["cases"][0]["suiteName"] == "Old"


# ── serialize_export ────────────────────────────────────────────────────────


def test_serialize_export_filename_and_body():
    now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    data = {"projectId": 7, "total": 0, "suites": [], "cases": [{"title": "Zürich"}]}

    export_file = serialize_export(data, 7, now=now)

    assert export_file.filename == f"testcases_project_7_{int(now.timestamp() * 1000)}.json"
    assert export_file.content_type == EXPORT_CONTENT_TYPE
    assert json.loads(export_file.content.decode("utf-8")) == data
    assert "Zürich" in export_file.content.decode("utf-8")


def test_export_cases(project):
    _make_case(project.id, "One")
    _make_case(project.id, "Two")

    export_file = export_cases(project.id)

    assert export_file.filename.startswith(f"testcases_project_{project.id}_")
    assert json.loads(export_file.content)["total"] == 2


def test_export_file_name_matches_exported_at(project):
    _make_case(project.id, "One")

    export_file = export_cases(project.id)

    exported_at = json.loads(export_file.content)["exportedAt"]
    instant = datetime.fromisoformat(exported_at.replace("Z", "+00:00"))
    assert export_file.filename == f"testcases_project_{project.id}_{int(instant.timestamp() * 1000)}.json"


def test_build_export_uses_given_instant(project):
    now = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
    assert build_export(project.id, now)["exportedAt"] == "2024-05-06T07:08:09Z"
