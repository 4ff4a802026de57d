"""
Test case import / export endpoints.

Endpoint groups:
  Export              GET  /api/v1/projects/<project_id>/cases/export
  JSON import         POST /api/v1/projects/<project_id>/cases/import
  TestRail import     POST /api/v1/projects/<project_id>/cases/import/testrail   (multipart "file")
  Dictionaries        GET  /api/v1/case-dictionaries
                      POST /api/v1/case-dictionaries/seed

Query params (imports):
  overwriteExisting   true | false (default false)

The actor recorded as created_by on new cases comes from the X-User header.
Service layer owns all business logic and commits.
"""

import logging

from flask import Blueprint, Response, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from testhub.core.exceptions import (
    ImportPersistenceError,
    NotFoundError,
    ParseError,
    SizeLimitError,
    ValidationError,
)
from testhub.models import db
from testhub.services import case_import_service
from testhub.services.case_dictionary_service import list_case_dictionaries, seed_case_dictionaries
from testhub.services.export_service import export_cases
from testhub.utils.errors import E, api_error

logger = logging.getLogger(__name__)

case_transfer_bp = Blueprint("case_transfer", __name__, url_prefix="/api/v1")


def _actor() -> str:
    """Extract actor name from request headers."""
    return request.headers.get("X-User", "system")


def _overwrite_flag() -> bool:
    raw = request.args.get("overwriteExisting", "false")
    return raw.strip().lower() in ("1", "true", "yes")


def _max_import_bytes() -> int:
    return current_app.config.get("MAX_IMPORT_BYTES", case_import_service.DEFAULT_MAX_IMPORT_BYTES)


# ── Error handlers ────────────────────────────────────────────────────────────


@case_transfer_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, str(error))


@case_transfer_bp.errorhandler(ValidationError)
def _handle_validation(error: ValidationError):
    return api_error(E.VALIDATION_INVALID, str(error), details=error.details)


@case_transfer_bp.errorhandler(ParseError)
def _handle_parse(error: ParseError):
    return api_error(E.PARSE_FAILED, str(error))


@case_transfer_bp.errorhandler(SizeLimitError)
def _handle_size(error: SizeLimitError):
    return api_error(E.SIZE_LIMIT, str(error), details={"size": error.size, "limit": error.limit})


@case_transfer_bp.errorhandler(ImportPersistenceError)
def _handle_persistence(error: ImportPersistenceError):
    return api_error(E.DATABASE, str(error))


@case_transfer_bp.errorhandler(Exception)
def _handle_unexpected(error: Exception):
    if isinstance(error, HTTPException):
        return error
    logger.exception("Unexpected error in case_transfer_bp endpoint=%s", request.endpoint)
    return api_error(E.INTERNAL, "Internal server error")


# ═════════════════════════════════════════════════════════════════════════
# Export
# ═════════════════════════════════════════════════════════════════════════


@case_transfer_bp.route("/projects/<int:project_id>/cases/export", methods=["GET"])
def export_project_cases(project_id: int):
    """Download all active cases and suites of a project as a JSON file.

    Returns:
        application/json attachment named testcases_project_<id>_<epochMillis>.json
    """
    case_import_service.get_project(project_id)
    export_file = export_cases(project_id)
    return Response(
        export_file.content,
        mimetype=export_file.content_type,
        headers={"Content-Disposition": f"attachment; filename={export_file.filename}"},
    )


# ═════════════════════════════════════════════════════════════════════════
# Import
# ═════════════════════════════════════════════════════════════════════════


@case_transfer_bp.route("/projects/<int:project_id>/cases/import", methods=["POST"])
def import_project_cases(project_id: int):
    """Import cases from a JSON interchange payload (the export format).

    Body: {projectId?, suites?: [...], cases: [...]}
    Returns: {imported, skipped, updated} (200).
    """
    case_import_service.get_project(project_id)
    case_import_service.check_size(request.content_length, _max_import_bytes())

    payload = request.get_json(silent=True)
    if payload is None:
        return api_error(E.VALIDATION_REQUIRED, "JSON body is required")

    stats = case_import_service.import_payload(
        project_id,
        payload,
        overwrite_existing=_overwrite_flag(),
        author=_actor(),
    )
    return jsonify(stats.to_response()), 200


@case_transfer_bp.route("/projects/<int:project_id>/cases/import/testrail", methods=["POST"])
def import_project_testrail(project_id: int):
    """Import a TestRail XML suite export.

    Form: file=<suite.xml> (multipart/form-data)
    Returns: {imported, skipped, updated} (200).
    """
    case_import_service.get_project(project_id)

    upload = request.files.get("file")
    data = upload.read() if upload else b""
    stats = case_import_service.import_testrail(
        project_id,
        upload.filename if upload else None,
        data,
        overwrite_existing=_overwrite_flag(),
        author=_actor(),
        max_bytes=_max_import_bytes(),
    )
    return jsonify(stats.to_response()), 200


# ═════════════════════════════════════════════════════════════════════════
# Dictionaries
# ═════════════════════════════════════════════════════════════════════════


@case_transfer_bp.route("/case-dictionaries", methods=["GET"])
def get_case_dictionaries():
    return jsonify(list_case_dictionaries()), 200


@case_transfer_bp.route("/case-dictionaries/seed", methods=["POST"])
def seed_dictionaries():
    """Insert the default priorities and case types that are missing."""
    added = seed_case_dictionaries()
    db.session.commit()
    return jsonify({"added": added, **list_case_dictionaries()}), 200
