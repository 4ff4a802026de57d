"""
Tests for the catalog snapshot loader.

Covers:
  - empty project yields empty (not missing) maps
  - canonical / full-path / simple-name suite keys, simple name first-wins
  - archived suites and cases are excluded
  - case grouping by suite key and normalised title
  - priority / type resolution (valid id, name fallback, unknown)
"""

from testhub.models import db
from testhub.models.catalog import CasePriority, CaseType, Suite, TestCase
from testhub.services.catalog_snapshot import (
    CatalogSnapshot,
    canonical_key,
    load_snapshot,
    path_key,
)


# ── Helpers ─────────────────────────────────────────────────────────────────


def _make_suite(project_id, name, parent=None, archived=False):
    suite = Suite(
        project_id=project_id,
        parent_id=parent.id if parent else None,
        depth=parent.depth + 1 if parent else 0,
        name=name,
        is_archived=archived,
    )
    db.session.add(suite)
    db.session.flush()
    return suite


def _make_case(project_id, title, suite=None, archived=False):
    case = TestCase(
        project_id=project_id,
        suite_id=suite.id if suite else None,
        title=title,
        is_archived=archived,
    )
    db.session.add(case)
    db.session.flush()
    return case


# ── Key helpers ─────────────────────────────────────────────────────────────


def test_key_helpers():
    assert canonical_key(None, " Smoke ") == "null/smoke"
    assert canonical_key(12, "Chrome") == "12/chrome"
    assert path_key("UI/ Sync /Chrome") == "ui/sync/chrome"
    assert path_key(None) == ""


# ── load_snapshot ───────────────────────────────────────────────────────────


def test_empty_project_has_empty_maps(project):
    snapshot = load_snapshot(project.id)

    assert snapshot.project_id == project.id
    assert snapshot.existing_cases == {}
    assert snapshot.suite_ids == {}
    assert snapshot.priority_ids == {}
    assert snapshot.type_ids == {}


def test_suite_key_schemes(project):
    ui = _make_suite(project.id, "UI")
    sync = _make_suite(project.id, "Sync", parent=ui)
    chrome = _make_suite(project.id, "Chrome", parent=sync)

    snapshot = load_snapshot(project.id)

    assert snapshot.canonical_ids["null/ui"] == ui.id
    assert snapshot.suite_ids["ui"] == ui.id
    assert snapshot.canonical_ids[f"{ui.id}/sync"] == sync.id
    assert snapshot.suite_ids["ui/sync"] == sync.id
    assert snapshot.suite_ids["sync"] == sync.id
    assert snapshot.suite_ids["ui/sync/chrome"] == chrome.id
    assert snapshot.suite_depths[chrome.id] == 2
    assert snapshot.lookup_suite("UI/Sync/Chrome") == chrome.id
    assert snapshot.child_suite(sync.id, "CHROME") == chrome.id


def test_simple_name_first_registrant_wins(project):
    ui = _make_suite(project.id, "UI")
    sync = _make_suite(project.id, "Sync", parent=ui)
    umh = _make_suite(project.id, "UMH", parent=ui)
    first = _make_suite(project.id, "Chrome", parent=sync)
    second = _make_suite(project.id, "Chrome", parent=umh)

    snapshot = load_snapshot(project.id)

    assert snapshot.suite_ids["chrome"] == first.id
    assert snapshot.lookup_suite("ui/umh/chrome") == second.id
    assert snapshot.child_suite(umh.id, "Chrome") == second.id


def test_path_key_never_shadows_canonical_key(project):
    a = _make_suite(project.id, "A")
    login_under_a = _make_suite(project.id, "Login", parent=a)
    numeric_root = _make_suite(project.id, str(a.id))
    login_under_numeric = _make_suite(project.id, "Login", parent=numeric_root)

    snapshot = load_snapshot(project.id)

    assert snapshot.child_suite(a.id, "Login") == login_under_a.id
    assert snapshot.child_suite(numeric_root.id, "Login") == login_under_numeric.id
    assert snapshot.lookup_suite(f"{a.id}/login") == login_under_numeric.id
    assert snapshot.lookup_suite("a/login") == login_under_a.id


def test_archived_rows_excluded(project):
    _make_suite(project.id, "Old", archived=True)
    live = _make_suite(project.id, "Live")
    _make_case(project.id, "Gone", live, archived=True)
    _make_case(project.id, "Here", live)

    snapshot = load_snapshot(project.id)

    assert "old" not in snapshot.suite_ids
    assert snapshot.find_case(live.id, "Gone") is None
    assert snapshot.find_case(live.id, "  here ") is not None


def test_cases_grouped_by_suite_key(project):
    suite = _make_suite(project.id, "Smoke")
    in_suite = _make_case(project.id, "Login", suite)
    at_root = _make_case(project.id, "Login")

    snapshot = load_snapshot(project.id)

    assert snapshot.existing_cases[str(suite.id)]["login"] is in_suite
    assert snapshot.existing_cases["null"]["login"] is at_root
    assert snapshot.find_case(None, "LOGIN") is at_root


def test_other_projects_not_loaded(project):
    from testhub.models.project import Project

    other = Project(code="OTHER", name="Other")
    db.session.add(other)
    db.session.flush()
    _make_suite(other.id, "Foreign")

    snapshot = load_snapshot(project.id)
    assert snapshot.suite_ids == {}


def test_dictionaries_loaded(project, dictionaries):
    snapshot = load_snapshot(project.id)

    high = CasePriority.query.filter_by(name="High").one()
    smoke = CaseType.query.filter_by(name="Smoke").one()
    assert snapshot.priority_ids["high"] == high.id
    assert snapshot.type_ids["smoke"] == smoke.id


# ── Dictionary resolution ───────────────────────────────────────────────────


class TestResolve:

    def _snapshot(self):
        return CatalogSnapshot(
            project_id=1,
            priority_ids={"high": 3},
            valid_priority_ids={3, 4},
            type_ids={"smoke": 2},
            valid_type_ids={2},
        )

    def test_valid_id_kept(self):
        assert self._snapshot().resolve_priority(4, "High") == 4

    def test_unknown_id_falls_back_to_name(self):
        assert self._snapshot().resolve_priority(99, " HIGH ") == 3

    def test_unknown_name(self):
        assert self._snapshot().resolve_type(None, "Exploratory") is None

    def test_nothing_given(self):
        assert self._snapshot().resolve_type(None, None) is None
        assert self._snapshot().resolve_type(None, "  ") is None
