"""
Suite reconciler: materialises missing suites for an import.

Two input shapes are accepted in the same batch (hierarchical first, then flat):

    SuiteDescriptor               flat; created at root unless the simple name
                                  is already a known key
    HierarchicalSuiteDescriptor   parent linkage by the parent's full path key;
                                  created under the resolved parent unless a
                                  sibling with the same name already exists

Every suite created here is registered in the CatalogSnapshot under its
canonical, full-path and (first-wins) simple-name keys, so later descriptors
and the case merger resolve it without touching the database again.

Nodes that would land deeper than MAX_SUITE_DEPTH are skipped together with
their subtree and logged as a warning; the import itself continues.

Transaction policy: functions here add + flush (ids are needed immediately);
the orchestrator (case_import_service) owns commit/rollback.
"""

import logging
from collections import defaultdict

from testhub.models import db
from testhub.models.catalog import MAX_SUITE_DEPTH, Suite
from testhub.services.catalog_snapshot import CatalogSnapshot, path_key
from testhub.services.import_types import HierarchicalSuiteDescriptor, SuiteDescriptor
from testhub.utils.strings import is_blank, normalize_key, trim_to_empty, trim_to_none

logger = logging.getLogger(__name__)

DEFAULT_SUITE_DESCRIPTION = "Imported suite"


def create_suite(project_id: int, parent_id: int | None, depth: int,
                 name: str, description: str | None = None) -> Suite:
    suite = Suite(
        project_id=project_id,
        parent_id=parent_id,
        depth=depth,
        name=name,
        description=description if not is_blank(description) else DEFAULT_SUITE_DESCRIPTION,
        is_archived=False,
    )
    db.session.add(suite)
    db.session.flush()
    return suite


def ensure_root_suite(project_id: int, name: str, snapshot: CatalogSnapshot,
                      description: str | None = None) -> int:
    """Return the suite known under ``name``'s simple key, creating a root suite if absent."""
    key = normalize_key(name)
    suite_id = snapshot.suite_ids.get(key)
    if suite_id is not None:
        return suite_id
    suite = create_suite(project_id, None, 0, name, description)
    snapshot.register_suite(suite.id, None, 0, name, name)
    logger.debug("Created root suite '%s' (id=%s)", name, suite.id)
    return suite.id


# ═════════════════════════════════════════════════════════════════════════════
# Hierarchical walk
# ═════════════════════════════════════════════════════════════════════════════


class _HierarchyWalk:
    """Explicit-stack walk over descriptors grouped by parent path key."""

    def __init__(self, project_id: int, snapshot: CatalogSnapshot,
                 children_by_parent: dict[str, list[HierarchicalSuiteDescriptor]]):
        self.project_id = project_id
        self.snapshot = snapshot
        self.children_by_parent = children_by_parent
        self.visited: set[str] = set()
        self.created = 0
        self.skipped = 0

    def run(self, roots, parent_id: int | None, depth: int, parent_path: str) -> None:
        stack = [(d, parent_id, depth, parent_path) for d in reversed(roots)]
        while stack:
            descriptor, parent_id, depth, parent_path = stack.pop()
            name = trim_to_empty(descriptor.name)
            if not name:
                logger.warning("Skipping suite with empty name under '%s'", parent_path or "<root>")
                self.skipped += 1
                continue

            path = f"{parent_path}/{normalize_key(name)}" if parent_path else normalize_key(name)
            self.visited.add(path)
            if depth > MAX_SUITE_DEPTH:
                logger.warning("Skipping suite '%s' - max depth (%d levels) exceeded",
                               path, MAX_SUITE_DEPTH + 1)
                self.skipped += 1
                continue

            suite_id = self.snapshot.child_suite(parent_id, name)
            if suite_id is None:
                suite = create_suite(self.project_id, parent_id, depth, name, descriptor.description)
                suite_id = suite.id
                self.snapshot.register_suite(suite_id, parent_id, depth, name, path)
                self.created += 1
                logger.debug("Created suite '%s' (id=%s, parent=%s, depth=%d)",
                             path, suite_id, parent_id, depth)

            children = self.children_by_parent.get(path, [])
            stack.extend((child, suite_id, depth + 1, path) for child in reversed(children))


def _reconcile_hierarchy(project_id: int, descriptors: list[HierarchicalSuiteDescriptor],
                         snapshot: CatalogSnapshot) -> None:
    roots: list[HierarchicalSuiteDescriptor] = []
    children_by_parent: dict[str, list[HierarchicalSuiteDescriptor]] = defaultdict(list)
    for descriptor in descriptors:
        parent = trim_to_none(descriptor.parent_name)
        if parent is None:
            roots.append(descriptor)
        else:
            children_by_parent[path_key(parent)].append(descriptor)

    walk = _HierarchyWalk(project_id, snapshot, children_by_parent)
    walk.run(roots, None, 0, "")

    # Groups whose parent is not in this batch: attach under an existing suite
    # when the parent path resolves, shallowest paths first.
    for parent_path in sorted(children_by_parent, key=lambda p: p.count("/")):
        if parent_path in walk.visited:
            continue
        group = children_by_parent[parent_path]
        parent_id = snapshot.lookup_suite(parent_path)
        if parent_id is None:
            logger.warning("Skipping %d suites under unknown parent '%s'", len(group), parent_path)
            walk.skipped += len(group)
            continue
        walk.visited.add(parent_path)
        walk.run(group, parent_id, snapshot.suite_depths[parent_id] + 1, parent_path)

    logger.info("Hierarchical suites reconciled: %d created, %d skipped", walk.created, walk.skipped)


# ═════════════════════════════════════════════════════════════════════════════
# Public API
# ═════════════════════════════════════════════════════════════════════════════


def reconcile_suites(project_id: int, suites, snapshot: CatalogSnapshot) -> dict[str, int]:
    """Create missing suites and return the (updated) suite key → id map.

    Args:
        project_id: Target project.
        suites: Mixed list of SuiteDescriptor / HierarchicalSuiteDescriptor.
        snapshot: Catalog snapshot; new suites are registered into it.
    """
    if not suites:
        return snapshot.suite_ids

    hierarchical = [s for s in suites if isinstance(s, HierarchicalSuiteDescriptor)]
    flat = [s for s in suites if isinstance(s, SuiteDescriptor)]

    if hierarchical:
        _reconcile_hierarchy(project_id, hierarchical, snapshot)

    for descriptor in flat:
        name = trim_to_empty(descriptor.name)
        if name:
            ensure_root_suite(project_id, name, snapshot, descriptor.description)

    return snapshot.suite_ids
