"""
Transient import/export types.

Descriptors are produced by the TestRail converter or decoded from the JSON
interchange payload, consumed once by the reconciler/merger, then discarded.
They are never persisted as-is.

The JSON interchange shape is the one written by the export service
(camelCase keys), so an export file can be re-imported unchanged:

    {
      "projectId": 1,
      "suites": [{"name": "Smoke", "description": "..."},
                 {"name": "Chrome", "description": "", "parentName": "ui/sync"}],
      "cases":  [{"title": "...", "suiteName": "Smoke", "priorityName": "High",
                  "steps": [{"action": "...", "expected": null}], "tags": [...]}]
    }

A suite entry carrying a ``parentName`` key (even null) is hierarchical;
entries without it are flat.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from testhub.core.exceptions import ValidationError
from testhub.models.catalog import AUTOMATION_STATUSES, CASE_SEVERITIES, CASE_STATUSES
from testhub.utils.strings import trim_to_empty, trim_to_none

MAX_TAGS = 50
MAX_TAG_LENGTH = 50


def clean_tags(tokens) -> list[str]:
    """Trim, drop blanks and over-long tokens, keep the first MAX_TAGS in order."""
    tags = []
    for token in tokens or []:
        tag = trim_to_empty(token)
        if not tag or len(tag) > MAX_TAG_LENGTH:
            continue
        tags.append(tag)
        if len(tags) == MAX_TAGS:
            break
    return tags


# ═════════════════════════════════════════════════════════════════════════════
# Suite descriptors
# ═════════════════════════════════════════════════════════════════════════════


@dataclass
class SuiteDescriptor:
    """Flat suite: always created at root level."""
    name: str
    description: str | None = None


@dataclass
class HierarchicalSuiteDescriptor:
    """Suite with parent linkage.

    ``parent_name`` holds the parent's full path key (``"ui/sync"``), not
    just its leaf name. ``None`` means root.
    """
    name: str
    description: str | None = None
    parent_name: str | None = None


# ═════════════════════════════════════════════════════════════════════════════
# Case descriptor
# ═════════════════════════════════════════════════════════════════════════════


@dataclass
class Attachment:
    name: str | None = None
    url: str | None = None
    size: int | None = None
    mime: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Step:
    """One structured step. Action-only and expected-only steps are both valid."""
    action: str | None = None
    expected: str | None = None
    notes: str | None = None
    attachments: list[Attachment] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "expected": self.expected,
            "notes": self.notes,
            "attachments": [a.to_dict() for a in self.attachments],
        }


@dataclass
class CaseDescriptor:
    """Incoming test case, matched against the catalog by (suite, normalised title)."""
    title: str
    suite_name: str | None = None
    suite_path: str | None = None
    type_id: int | None = None
    type_name: str | None = None
    priority_id: int | None = None
    priority_name: str | None = None
    estimate_seconds: int | None = None
    preconditions: str | None = None
    sort_index: int | None = None
    expected_result: str | None = None
    actual_result: str | None = None
    test_data: str | None = None
    steps: list[Step] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)
    status: str | None = None
    severity: str | None = None
    automation_status: str | None = None
    tags: list[str] = field(default_factory=list)
    autotest_mapping: dict[str, str] = field(default_factory=dict)


@dataclass
class ImportRequest:
    project_id: int | None = None
    suites: list[SuiteDescriptor | HierarchicalSuiteDescriptor] = field(default_factory=list)
    cases: list[CaseDescriptor] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return bool(self.suites) or bool(self.cases)


@dataclass(frozen=True)
class ImportStats:
    created: int = 0
    skipped: int = 0
    updated: int = 0

    @property
    def is_empty(self) -> bool:
        return self.created == 0 and self.skipped == 0 and self.updated == 0

    def to_response(self) -> dict:
        return {"imported": self.created, "skipped": self.skipped, "updated": self.updated}


EMPTY = ImportStats()


# ═════════════════════════════════════════════════════════════════════════════
# JSON interchange decoding
# ═════════════════════════════════════════════════════════════════════════════


class _Reader:
    """Collects field-level errors while decoding one payload."""

    def __init__(self):
        self.errors: dict[str, str] = {}

    def text(self, data: dict, key: str, path: str) -> str | None:
        value = data.get(key)
        if value is None:
            return None
        if isinstance(value, (dict, list)):
            self.errors[f"{path}.{key}"] = "must be a string"
            return None
        return str(value)

    def integer(self, data: dict, key: str, path: str) -> int | None:
        value = data.get(key)
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            self.errors[f"{path}.{key}"] = "must be an integer"
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value.strip())
        self.errors[f"{path}.{key}"] = "must be an integer"
        return None

    def choice(self, data: dict, key: str, path: str, allowed: tuple[str, ...]) -> str | None:
        value = trim_to_none(self.text(data, key, path))
        if value is None:
            return None
        upper = value.upper()
        if upper not in allowed:
            self.errors[f"{path}.{key}"] = f"must be one of {', '.join(allowed)}"
            return None
        return upper

    def items(self, data: dict, key: str, path: str) -> list:
        value = data.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            self.errors[f"{path}.{key}"] = "must be a list"
            return []
        return value

    def attachments(self, data: dict, key: str, path: str) -> list[Attachment]:
        result = []
        for i, raw in enumerate(self.items(data, key, path)):
            item_path = f"{path}.{key}[{i}]"
            if not isinstance(raw, dict):
                self.errors[item_path] = "must be an object"
                continue
            result.append(Attachment(
                name=self.text(raw, "name", item_path),
                url=self.text(raw, "url", item_path),
                size=self.integer(raw, "size", item_path),
                mime=self.text(raw, "mime", item_path),
            ))
        return result

    def steps(self, data: dict, path: str) -> list[Step]:
        result = []
        for i, raw in enumerate(self.items(data, "steps", path)):
            step_path = f"{path}.steps[{i}]"
            if not isinstance(raw, dict):
                self.errors[step_path] = "must be an object"
                continue
            result.append(Step(
                action=self.text(raw, "action", step_path),
                expected=self.text(raw, "expected", step_path),
                notes=self.text(raw, "notes", step_path),
                attachments=self.attachments(raw, "attachments", step_path),
            ))
        return result

    def mapping(self, data: dict, key: str, path: str) -> dict[str, str]:
        value = data.get(key)
        if value is None:
            return {}
        if not isinstance(value, dict):
            self.errors[f"{path}.{key}"] = "must be an object"
            return {}
        return {str(k): str(v) for k, v in value.items() if v is not None}


def suite_from_dict(raw: dict, reader: _Reader, path: str):
    name = reader.text(raw, "name", path) or ""
    description = reader.text(raw, "description", path)
    if "parentName" in raw:
        return HierarchicalSuiteDescriptor(
            name=name,
            description=description,
            parent_name=trim_to_none(reader.text(raw, "parentName", path)),
        )
    return SuiteDescriptor(name=name, description=description)


def case_from_dict(raw: dict, reader: _Reader, path: str) -> CaseDescriptor:
    return CaseDescriptor(
        title=reader.text(raw, "title", path) or "",
        suite_name=reader.text(raw, "suiteName", path),
        suite_path=reader.text(raw, "suitePath", path),
        type_id=reader.integer(raw, "typeId", path),
        type_name=reader.text(raw, "typeName", path),
        priority_id=reader.integer(raw, "priorityId", path),
        priority_name=reader.text(raw, "priorityName", path),
        estimate_seconds=reader.integer(raw, "estimateSeconds", path),
        preconditions=reader.text(raw, "preconditions", path),
        sort_index=reader.integer(raw, "sortIndex", path),
        expected_result=reader.text(raw, "expectedResult", path),
        actual_result=reader.text(raw, "actualResult", path),
        test_data=reader.text(raw, "testData", path),
        steps=reader.steps(raw, path),
        attachments=reader.attachments(raw, "attachments", path),
        status=reader.choice(raw, "status", path, CASE_STATUSES),
        severity=reader.choice(raw, "severity", path, CASE_SEVERITIES),
        automation_status=reader.choice(raw, "automationStatus", path, AUTOMATION_STATUSES),
        tags=clean_tags(str(t) for t in reader.items(raw, "tags", path) if t is not None),
        autotest_mapping=reader.mapping(raw, "autotestMapping", path),
    )


def request_from_dict(payload, project_id: int) -> ImportRequest:
    """Decode a JSON interchange payload into an ImportRequest.

    Raises:
        ValidationError: payload is not an object, or any field has the
            wrong type / an unknown enum value. ``details`` maps the JSON
            path of every offending field to a message.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Import payload must be a JSON object")

    reader = _Reader()
    suites = []
    for i, raw in enumerate(reader.items(payload, "suites", "payload")):
        if not isinstance(raw, dict):
            reader.errors[f"suites[{i}]"] = "must be an object"
            continue
        suites.append(suite_from_dict(raw, reader, f"suites[{i}]"))

    cases = []
    for i, raw in enumerate(reader.items(payload, "cases", "payload")):
        if not isinstance(raw, dict):
            reader.errors[f"cases[{i}]"] = "must be an object"
            continue
        cases.append(case_from_dict(raw, reader, f"cases[{i}]"))

    if reader.errors:
        raise ValidationError("Invalid import payload", details=reader.errors)

    return ImportRequest(project_id=project_id, suites=suites, cases=cases)
