"""
Catalog snapshot: the single read pass of an import.

``load_snapshot(project_id)`` reads the project's current suites, cases and
the global priority/type dictionaries once. For the rest of the import the
snapshot is the only source of truth for "does X already exist": the
reconciler and merger never re-query storage for existence checks, they
append to the snapshot as they create things.

Suite key schemes (all normalised):
    canonical   "{parent_id|null}/{name}"   unique, used for create-or-reuse;
                                            kept apart in ``canonical_ids``
    full path   "ui/sync/chrome"             lets path-like references resolve
    simple name "chrome"                     first registrant wins

Full-path and simple-name keys share ``suite_ids``. A path such as "1/login"
(root suite named "1") must never shadow a canonical key.

Case keys: ``existing_cases[str(suite_id) | "null"][normalised title]``.
"""

import logging
from dataclasses import dataclass, field

from testhub.models import db
from testhub.models.catalog import MAX_SUITE_DEPTH, CasePriority, CaseType, Suite, TestCase
from testhub.utils.strings import normalize_key

logger = logging.getLogger(__name__)

ROOT_KEY = "null"


def canonical_key(parent_id: int | None, name: str) -> str:
    return f"{parent_id if parent_id is not None else ROOT_KEY}/{normalize_key(name)}"


def path_key(path: str | None) -> str:
    """Normalise every segment of a "/"-joined suite path."""
    if path is None:
        return ""
    return "/".join(normalize_key(part) for part in path.split("/"))


def case_suite_key(suite_id: int | None) -> str:
    return str(suite_id) if suite_id is not None else ROOT_KEY


@dataclass
class CatalogSnapshot:
    project_id: int
    existing_cases: dict[str, dict[str, TestCase]] = field(default_factory=dict)
    suite_ids: dict[str, int] = field(default_factory=dict)
    canonical_ids: dict[str, int] = field(default_factory=dict)
    suite_depths: dict[int, int] = field(default_factory=dict)
    priority_ids: dict[str, int] = field(default_factory=dict)
    type_ids: dict[str, int] = field(default_factory=dict)
    valid_priority_ids: set[int] = field(default_factory=set)
    valid_type_ids: set[int] = field(default_factory=set)

    # ── Suites ───────────────────────────────────────────────────────────

    def register_suite(self, suite_id: int, parent_id: int | None, depth: int,
                       name: str, full_path: str) -> None:
        """Register a suite under all three key schemes."""
        self.canonical_ids[canonical_key(parent_id, name)] = suite_id
        self.suite_ids[path_key(full_path)] = suite_id
        self.suite_ids.setdefault(normalize_key(name), suite_id)
        self.suite_depths[suite_id] = depth

    def lookup_suite(self, key: str | None) -> int | None:
        if key is None:
            return None
        return self.suite_ids.get(path_key(key))

    def child_suite(self, parent_id: int | None, name: str) -> int | None:
        return self.canonical_ids.get(canonical_key(parent_id, name))

    # ── Cases ────────────────────────────────────────────────────────────

    def find_case(self, suite_id: int | None, title: str) -> TestCase | None:
        return self.existing_cases.get(case_suite_key(suite_id), {}).get(normalize_key(title))

    def add_case(self, suite_id: int | None, title: str, case: TestCase) -> None:
        self.existing_cases.setdefault(case_suite_key(suite_id), {})[normalize_key(title)] = case

    # ── Dictionaries ─────────────────────────────────────────────────────

    def resolve_priority(self, priority_id: int | None, name: str | None) -> int | None:
        return _resolve(priority_id, name, self.valid_priority_ids, self.priority_ids)

    def resolve_type(self, type_id: int | None, name: str | None) -> int | None:
        return _resolve(type_id, name, self.valid_type_ids, self.type_ids)


def _resolve(given_id: int | None, name: str | None,
             valid_ids: set[int], by_name: dict[str, int]) -> int | None:
    """Keep a supplied id that still exists, else fall back to the name, else None."""
    if given_id is not None and given_id in valid_ids:
        return given_id
    if name and name.strip():
        return by_name.get(normalize_key(name))
    return None


def _suite_paths(suites: list[Suite]) -> dict[int, str]:
    """Full normalised path per suite, walking parents iteratively."""
    by_id = {s.id: s for s in suites}
    paths: dict[int, str] = {}
    for suite in suites:
        parts = []
        current = suite
        # Bounded walk: a valid chain is at most MAX_SUITE_DEPTH + 1 long
        for _ in range(MAX_SUITE_DEPTH + 1):
            parts.append(normalize_key(current.name))
            if current.parent_id is None or current.parent_id not in by_id:
                break
            current = by_id[current.parent_id]
        paths[suite.id] = "/".join(reversed(parts))
    return paths


def load_snapshot(project_id: int) -> CatalogSnapshot:
    """Build the snapshot for one project. Every map is present, possibly empty."""
    snapshot = CatalogSnapshot(project_id=project_id)

    suites = (
        db.session.query(Suite)
        .filter(Suite.project_id == project_id, Suite.is_archived.is_(False))
        .order_by(Suite.id)
        .all()
    )
    paths = _suite_paths(suites)
    for suite in suites:
        snapshot.register_suite(suite.id, suite.parent_id, suite.depth, suite.name, paths[suite.id])

    cases = (
        db.session.query(TestCase)
        .filter(TestCase.project_id == project_id, TestCase.is_archived.is_(False))
        .order_by(TestCase.id)
        .all()
    )
    for case in cases:
        bucket = snapshot.existing_cases.setdefault(case_suite_key(case.suite_id), {})
        bucket.setdefault(normalize_key(case.title), case)

    for priority in db.session.query(CasePriority).order_by(CasePriority.id):
        snapshot.priority_ids.setdefault(normalize_key(priority.name), priority.id)
        snapshot.valid_priority_ids.add(priority.id)
    for case_type in db.session.query(CaseType).order_by(CaseType.id):
        snapshot.type_ids.setdefault(normalize_key(case_type.name), case_type.id)
        snapshot.valid_type_ids.add(case_type.id)

    logger.debug(
        "Loaded catalog snapshot for project %s: %d suites, %d cases, %d priorities, %d types",
        project_id, len(suites), len(cases), len(snapshot.priority_ids), len(snapshot.type_ids),
    )
    return snapshot
