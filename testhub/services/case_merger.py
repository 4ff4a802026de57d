"""
Case merger: create-or-update of test cases against the catalog snapshot.

For each descriptor, in input order:
    1. blank title                → ignored (not counted)
    2. suite                      → suite_path, then suite_name, resolved through the
                                    snapshot; an unknown name creates a root suite
    3. priority / type            → supplied id if it still exists, else by name, else unset
    4. (suite, normalised title)  → existing: overwrite (updated) or leave (skipped)
                                    missing:  build new entity (created)

New entities are registered in the snapshot immediately, so a second
descriptor with the same suite + title in the same batch collides with the
first instead of creating a twin. They are written in one ``add_all`` at the
end; updates are flushed as they happen.

Transaction policy: flush only; the orchestrator commits or rolls back.
"""

import logging
from datetime import datetime, timezone

from testhub.models import db
from testhub.models.catalog import (
    DEFAULT_AUTOMATION_STATUS,
    DEFAULT_SEVERITY,
    DEFAULT_STATUS,
    TestCase,
)
from testhub.services.catalog_snapshot import CatalogSnapshot
from testhub.services.import_types import CaseDescriptor, ImportStats
from testhub.services.suite_reconciler import ensure_root_suite
from testhub.utils.strings import is_blank, trim_to_empty

logger = logging.getLogger(__name__)


def resolve_suite_id(project_id: int, descriptor: CaseDescriptor,
                     snapshot: CatalogSnapshot) -> int | None:
    if not is_blank(descriptor.suite_path):
        suite_id = snapshot.lookup_suite(descriptor.suite_path.strip())
        if suite_id is not None:
            return suite_id

    if is_blank(descriptor.suite_name):
        return None

    name = descriptor.suite_name.strip()
    suite_id = snapshot.lookup_suite(name)
    if suite_id is not None:
        return suite_id
    return ensure_root_suite(project_id, name, snapshot)


def apply_overwrite(case: TestCase, descriptor: CaseDescriptor,
                    snapshot: CatalogSnapshot, now: datetime) -> None:
    """Overwrite content fields; identity and created_by/created_at stay untouched."""
    case.type_id = snapshot.resolve_type(descriptor.type_id, descriptor.type_name)
    case.priority_id = snapshot.resolve_priority(descriptor.priority_id, descriptor.priority_name)
    case.estimate_seconds = descriptor.estimate_seconds
    case.preconditions = descriptor.preconditions
    case.expected_result = descriptor.expected_result
    case.actual_result = descriptor.actual_result
    case.test_data = descriptor.test_data
    case.steps = [s.to_dict() for s in descriptor.steps]
    case.attachments = [a.to_dict() for a in descriptor.attachments]
    case.tags = list(descriptor.tags)
    case.autotest_mapping = dict(descriptor.autotest_mapping)
    if descriptor.status:
        case.status = descriptor.status
    if descriptor.severity:
        case.severity = descriptor.severity
    if descriptor.automation_status:
        case.automation_status = descriptor.automation_status
    case.updated_at = now


def build_case(descriptor: CaseDescriptor, project_id: int, suite_id: int | None,
               author: str | None, now: datetime, snapshot: CatalogSnapshot) -> TestCase:
    return TestCase(
        project_id=project_id,
        suite_id=suite_id,
        title=trim_to_empty(descriptor.title),
        type_id=snapshot.resolve_type(descriptor.type_id, descriptor.type_name),
        priority_id=snapshot.resolve_priority(descriptor.priority_id, descriptor.priority_name),
        estimate_seconds=descriptor.estimate_seconds,
        preconditions=descriptor.preconditions,
        sort_index=descriptor.sort_index if descriptor.sort_index is not None else 0,
        expected_result=descriptor.expected_result,
        actual_result=descriptor.actual_result,
        test_data=descriptor.test_data,
        steps=[s.to_dict() for s in descriptor.steps],
        attachments=[a.to_dict() for a in descriptor.attachments],
        status=descriptor.status or DEFAULT_STATUS,
        severity=descriptor.severity or DEFAULT_SEVERITY,
        automation_status=descriptor.automation_status or DEFAULT_AUTOMATION_STATUS,
        tags=list(descriptor.tags),
        autotest_mapping=dict(descriptor.autotest_mapping),
        created_by=author,
        created_at=now,
        updated_at=now,
        is_archived=False,
    )


def merge_cases(
    project_id: int,
    cases: list[CaseDescriptor],
    snapshot: CatalogSnapshot,
    *,
    overwrite_existing: bool = False,
    author: str | None = None,
    now: datetime | None = None,
) -> ImportStats:
    """Create or update test cases; returns created/skipped/updated counts."""
    if not cases:
        return ImportStats()

    now = now or datetime.now(timezone.utc)
    created = skipped = updated = 0
    new_cases: list[TestCase] = []

    for descriptor in cases:
        title = trim_to_empty(descriptor.title)
        if not title:
            logger.debug("Ignoring case descriptor with blank title")
            continue

        suite_id = resolve_suite_id(project_id, descriptor, snapshot)
        existing = snapshot.find_case(suite_id, title)

        if existing is not None:
            if overwrite_existing:
                apply_overwrite(existing, descriptor, snapshot, now)
                db.session.flush()
                updated += 1
            else:
                skipped += 1
            continue

        case = build_case(descriptor, project_id, suite_id, author, now, snapshot)
        new_cases.append(case)
        snapshot.add_case(suite_id, title, case)
        created += 1

    if new_cases:
        db.session.add_all(new_cases)
        db.session.flush()
        logger.debug("Saved %d new test cases", len(new_cases))

    return ImportStats(created=created, skipped=skipped, updated=updated)
