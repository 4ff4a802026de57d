"""
Test case export: the inverse of the import path.

build_export:      catalog slice → interchange dict
                   {projectId, exportedAt, total, suites[], cases[]}
                   suites carry parentName (parent path, null at root) so a
                   re-import rebuilds the same hierarchy
serialize_export:  interchange dict → downloadable JSON file
export_cases:      both, for the blueprint

Case dicts use the same camelCase keys the importer reads, so an export file
can be posted back to the import endpoint unchanged. Lookup names (suite,
type, priority) are resolved with one query per table, never per case.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from testhub.models import db
from testhub.models.catalog import MAX_SUITE_DEPTH, CasePriority, CaseType, Suite, TestCase

logger = logging.getLogger(__name__)

EXPORT_CONTENT_TYPE = "application/json"


@dataclass
class ExportFile:
    filename: str
    content_type: str
    content: bytes


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat().replace("+00:00", "Z")


def _display_paths(suites: dict[int, Suite]) -> dict[int, str]:
    paths = {}
    for suite_id, suite in suites.items():
        parts = []
        current = suite
        for _ in range(MAX_SUITE_DEPTH + 1):
            parts.append(current.name)
            if current.parent_id is None or current.parent_id not in suites:
                break
            current = suites[current.parent_id]
        paths[suite_id] = "/".join(reversed(parts))
    return paths


def case_to_export(case: TestCase, suites: dict[int, Suite], paths: dict[int, str],
                   type_names: dict[int, str], priority_names: dict[int, str]) -> dict:
    suite = suites.get(case.suite_id) if case.suite_id is not None else None
    return {
        "id": case.id,
        "projectId": case.project_id,
        "suiteId": case.suite_id,
        "suiteName": suite.name if suite else None,
        "suitePath": paths.get(case.suite_id) if suite else None,
        "title": case.title,
        "typeId": case.type_id,
        "typeName": type_names.get(case.type_id),
        "priorityId": case.priority_id,
        "priorityName": priority_names.get(case.priority_id),
        "estimateSeconds": case.estimate_seconds,
        "preconditions": case.preconditions,
        "sortIndex": case.sort_index,
        "archived": bool(case.is_archived),
        "expectedResult": case.expected_result,
        "actualResult": case.actual_result,
        "testData": case.test_data,
        "steps": case.steps or [],
        "attachments": case.attachments or [],
        "status": case.status,
        "severity": case.severity,
        "automationStatus": case.automation_status,
        "tags": case.tags or [],
        "autotestMapping": case.autotest_mapping or {},
        "createdAt": _iso(case.created_at),
        "updatedAt": _iso(case.updated_at),
        "createdBy": case.created_by,
    }


def build_export(project_id: int, now: datetime | None = None) -> dict:
    """Load the project's active suites and cases into the interchange shape."""
    now = now or datetime.now(timezone.utc)
    cases = (
        TestCase.query
        .filter(TestCase.project_id == project_id, TestCase.is_archived.is_(False))
        .order_by(TestCase.id)
        .all()
    )
    # All suites (archived included) so every case can still name its suite
    suites = {s.id: s for s in Suite.query.filter(Suite.project_id == project_id)}
    paths = _display_paths(suites)
    type_names = {t.id: t.name for t in db.session.query(CaseType)}
    priority_names = {p.id: p.name for p in db.session.query(CasePriority)}

    exported_cases = [
        case_to_export(c, suites, paths, type_names, priority_names) for c in cases
    ]
    exported_suites = [
        {
            "id": s.id,
            "name": s.name,
            "description": s.description or "",
            "parentName": paths.get(s.parent_id) if s.parent_id is not None else None,
        }
        for s in sorted(suites.values(), key=lambda s: s.id)
        if not s.is_archived
    ]

    logger.debug("Export data built for project %s: %d cases, %d suites",
                 project_id, len(exported_cases), len(exported_suites))
    return {
        "projectId": project_id,
        "exportedAt": _iso(now),
        "total": len(exported_cases),
        "suites": exported_suites,
        "cases": exported_cases,
    }


def serialize_export(data: dict, project_id: int, now: datetime | None = None) -> ExportFile:
    now = now or datetime.now(timezone.utc)
    filename = f"testcases_project_{project_id}_{int(now.timestamp() * 1000)}.json"
    content = json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")
    return ExportFile(filename=filename, content_type=EXPORT_CONTENT_TYPE, content=content)


def export_cases(project_id: int) -> ExportFile:
    logger.info("Starting export for project_id=%s", project_id)
    # exportedAt and the file name carry the same instant
    now = datetime.now(timezone.utc)
    data = build_export(project_id, now)
    export_file = serialize_export(data, project_id, now)
    logger.info("Export completed: project_id=%s total=%d file=%s",
                project_id, data["total"], export_file.filename)
    return export_file
