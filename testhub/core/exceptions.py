"""
Platform-wide exception hierarchy.

Services raise these types; blueprints register handlers against them once
and get consistent HTTP status codes everywhere.

Per-record import problems (blank titles, blank section names, suites
nested too deep, unresolved priority/type names) are NOT exceptions. They
are skipped or degraded inside the engine and only show up in the logs and
in the import counters.

Usage:
    from testhub.core.exceptions import NotFoundError, ParseError

    raise NotFoundError(resource="Project", resource_id=42)
    raise ParseError("Failed to parse TestRail XML", cause=exc)
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist (or is archived).

    Maps to HTTP 404 in blueprint error handlers.

    Args:
        resource: Human-readable model/entity name (e.g. "Project").
        resource_id: The PK that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is well-formed but violates a business rule.

    Examples: an import payload whose ``status`` is not a known value,
    an upload without a file, a file that is not ``.xml``.

    Maps to HTTP 422 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ParseError(Exception):
    """Raised when a source document cannot be decoded.

    The message always embeds the underlying cause so the client can see
    what was wrong with the file. Nothing has been persisted when this is
    raised. Maps to HTTP 400.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class SizeLimitError(Exception):
    """Raised before parsing when the input exceeds the accepted size.

    Maps to HTTP 400.
    """

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        if limit >= 1024 * 1024:
            shown = f"{limit // (1024 * 1024)} MB"
        else:
            shown = f"{limit} bytes"
        super().__init__(f"File size exceeds maximum allowed size of {shown}")


class ImportPersistenceError(Exception):
    """Raised when writing the import failed and the transaction was rolled back.

    Maps to HTTP 500. The original database error is chained as ``__cause__``.
    """
