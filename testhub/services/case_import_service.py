"""
Test case import orchestrator.

Pipelines:
    import_testrail   validate upload → parse XML → convert → import_cases
    import_payload    decode JSON interchange payload → import_cases
    import_cases      snapshot → reconcile suites → merge cases → commit

One call is one transaction. Structural problems (ParseError,
SizeLimitError, ValidationError) are raised before anything is written;
per-record problems are absorbed into the skip counters. Any failure after
writing has started rolls the whole import back; database failures surface
as ImportPersistenceError.

Cross-call races (two imports into the same project at once) are not
guarded here; they rely on the database's own locking and unique index.

Transaction policy: this module owns commit/rollback. Everything it calls
only flushes.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from testhub.core.exceptions import (
    ImportPersistenceError,
    NotFoundError,
    SizeLimitError,
    ValidationError,
)
from testhub.models import db
from testhub.models.project import Project
from testhub.services import testrail_converter, testrail_parser
from testhub.services.case_merger import merge_cases
from testhub.services.catalog_snapshot import load_snapshot
from testhub.services.import_types import EMPTY, ImportRequest, ImportStats, request_from_dict
from testhub.services.suite_reconciler import reconcile_suites

logger = logging.getLogger(__name__)

DEFAULT_MAX_IMPORT_BYTES = 50 * 1024 * 1024


def get_project(project_id: int) -> Project:
    """Return the target project or raise NotFoundError (missing or archived)."""
    project = db.session.get(Project, project_id)
    if project is None or project.is_archived:
        raise NotFoundError(resource="Project", resource_id=project_id)
    return project


def check_size(size: int | None, limit: int = DEFAULT_MAX_IMPORT_BYTES) -> None:
    if size is not None and size > limit:
        raise SizeLimitError(size, limit)


def validate_upload(filename: str | None, size: int, limit: int = DEFAULT_MAX_IMPORT_BYTES) -> None:
    """Reject missing, non-XML or oversized uploads before any parsing."""
    if not filename or not size:
        raise ValidationError("File is required", details={"file": "missing or empty"})
    if not filename.lower().endswith(".xml"):
        raise ValidationError("File must be XML format", details={"file": filename})
    check_size(size, limit)
    logger.debug("Upload validation passed: %s, size=%d bytes", filename, size)


def import_cases(
    project_id: int,
    request: ImportRequest,
    *,
    overwrite_existing: bool = False,
    author: str | None = None,
) -> ImportStats:
    """Import suites and cases into one project atomically.

    Returns:
        ImportStats; the shared ``EMPTY`` instance when nothing was created,
        skipped or updated.

    Raises:
        ImportPersistenceError: a database error occurred; everything was rolled back.
    """
    logger.info("Starting import for project_id=%s overwrite=%s", project_id, overwrite_existing,
                extra={"project_id": project_id, "actor": author})

    if not request.has_data:
        logger.info("Nothing to import for project_id=%s", project_id)
        return EMPTY

    try:
        snapshot = load_snapshot(project_id)
        reconcile_suites(project_id, request.suites, snapshot)
        stats = merge_cases(
            project_id,
            request.cases,
            snapshot,
            overwrite_existing=overwrite_existing,
            author=author,
        )
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Import failed for project_id=%s, rolled back", project_id)
        raise ImportPersistenceError(
            f"Import into project {project_id} failed; no changes were saved"
        ) from exc
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Import completed: project_id=%s imported=%d updated=%d skipped=%d",
        project_id, stats.created, stats.updated, stats.skipped,
        extra={"project_id": project_id, "actor": author},
    )
    return EMPTY if stats.is_empty else stats


def import_payload(
    project_id: int,
    payload,
    *,
    overwrite_existing: bool = False,
    author: str | None = None,
) -> ImportStats:
    """Import a JSON interchange payload (the export format)."""
    request = request_from_dict(payload, project_id)
    return import_cases(project_id, request, overwrite_existing=overwrite_existing, author=author)


def import_testrail(
    project_id: int,
    filename: str | None,
    data: bytes,
    *,
    overwrite_existing: bool = False,
    author: str | None = None,
    max_bytes: int = DEFAULT_MAX_IMPORT_BYTES,
) -> ImportStats:
    """Import a TestRail XML suite export."""
    logger.info("Starting TestRail import for project_id=%s file=%s", project_id, filename)

    validate_upload(filename, len(data or b""), max_bytes)
    parsed = testrail_parser.parse(data)
    request = testrail_converter.convert(parsed, project_id)

    return import_cases(project_id, request, overwrite_existing=overwrite_existing, author=author)
