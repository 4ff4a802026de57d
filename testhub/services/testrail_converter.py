"""
TestRail → import request converter.

Flattens a parsed TestRail tree (see testrail_parser) into:
    - hierarchical suite descriptors, one per section, whose ``parent_name``
      is the parent's path-qualified key ("ui/sync"), so identically named
      sections under different parents stay distinct;
    - case descriptors whose ``suite_name`` is the leaf section name and
      whose ``suite_path`` is the full path of the declaring section.

Rules:
    - the top-level "Test Cases" section is TestRail's synthetic container:
      no suite is created for it, its cases land at project root and its
      child sections are treated as roots
    - sections with a blank name are dropped together with their subtree
    - cases with a blank title are dropped
    - [STEP n] / [VERIFY] markers become action-only / expected-only steps
    - references become tags (split on , ; whitespace; ≤ 50 tags of ≤ 50 chars)
    - type / priority free text is mapped onto a fixed vocabulary with
      Functional / Medium as fallbacks
"""

import logging
import re

from testhub.models.catalog import DEFAULT_SEVERITY, DEFAULT_STATUS
from testhub.services.import_types import (
    CaseDescriptor,
    HierarchicalSuiteDescriptor,
    ImportRequest,
    Step,
    clean_tags,
)
from testhub.services.testrail_parser import ParsedCase, ParsedSection, ParsedSuite
from testhub.utils.strings import is_blank, normalize_key, trim_to_empty, trim_to_none

logger = logging.getLogger(__name__)

VIRTUAL_ROOT_NAME = "Test Cases"
PATH_SEPARATOR = "/"

STEP_PATTERN = re.compile(r"\[STEP\s+(\d+)\]\s*(.+?)(?=\[(?:STEP|VERIFY)|$)", re.DOTALL)
VERIFY_PATTERN = re.compile(r"\[VERIFY\]\s*(.+?)(?=\[(?:STEP|VERIFY)|$)", re.DOTALL)

_HTML_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")
_TAG_SEPARATORS = re.compile(r"[,;\s]+")

TYPE_MAP = {
    "functional": "Functional",
    "smoke": "Smoke",
    "regression": "Regression",
    "security": "Security",
    "performance": "Performance",
    "usability": "Usability",
    "other": "Functional",
}
DEFAULT_TYPE = "Functional"

PRIORITY_MAP = {
    "low": "Low",
    "medium": "Medium",
    "high": "High",
    "critical": "Critical",
}
DEFAULT_PRIORITY = "Medium"


# ═════════════════════════════════════════════════════════════════════════════
# Field rules
# ═════════════════════════════════════════════════════════════════════════════


def map_type(value: str | None) -> str:
    return TYPE_MAP.get(normalize_key(value), DEFAULT_TYPE)


def map_priority(value: str | None) -> str:
    return PRIORITY_MAP.get(normalize_key(value), DEFAULT_PRIORITY)


def parse_tags(references: str | None) -> list[str]:
    """Split a references string ("AUTO-517, AUTO-518") into tags."""
    if is_blank(references):
        return []
    return clean_tags(_TAG_SEPARATORS.split(references))


def parse_steps(text: str | None) -> list[Step]:
    """Extract structured steps from TestRail step markup.

    ``[STEP n] action`` yields an action-only step, ``[VERIFY] result`` an
    expected-only step. All STEP matches come first (in text order), then
    all VERIFY matches. Text outside the markers is discarded.
    """
    if is_blank(text):
        return []

    clean = _HTML_TAG.sub("\n", text).replace("&nbsp;", " ")
    clean = _WHITESPACE.sub(" ", clean).strip()

    steps = [Step(action=m.group(2).strip()) for m in STEP_PATTERN.finditer(clean)]
    steps += [Step(expected=m.group(1).strip()) for m in VERIFY_PATTERN.finditer(clean)]
    logger.debug("Parsed %d steps from TestRail markup", len(steps))
    return steps


def determine_automation_status(custom: dict) -> str:
    """AUTOMATED when automation_type mentions "automated" or a test class is set."""
    if "automated" in trim_to_empty(custom.get("automation_type")).lower():
        return "AUTOMATED"
    if not is_blank(custom.get("testclass")):
        return "AUTOMATED"
    return "NOT_AUTOMATED"


def build_autotest_mapping(custom: dict) -> dict[str, str]:
    mapping = {}
    for source, target in (("testclass", "testClass"),
                           ("testmethod", "testMethod"),
                           ("scenario", "scenario")):
        value = custom.get(source)
        if not is_blank(value):
            mapping[target] = value
    return mapping


def convert_case(case: ParsedCase, suite_name: str | None,
                 suite_path: str | None) -> CaseDescriptor | None:
    """Convert one TestRail case; returns None for a blank title."""
    title = trim_to_empty(case.title)
    if not title:
        logger.warning("Skipping TestRail case id=%s with empty title", case.id)
        return None

    custom = case.custom or {}
    return CaseDescriptor(
        title=title,
        suite_name=suite_name,
        suite_path=suite_path,
        type_name=map_type(case.type),
        priority_name=map_priority(case.priority),
        estimate_seconds=0,
        preconditions=trim_to_none(custom.get("preconds")),
        sort_index=0,
        steps=parse_steps(custom.get("steps")),
        status=DEFAULT_STATUS,
        severity=DEFAULT_SEVERITY,
        automation_status=determine_automation_status(custom),
        tags=parse_tags(case.references),
        autotest_mapping=build_autotest_mapping(custom),
    )


# ═════════════════════════════════════════════════════════════════════════════
# Tree walk
# ═════════════════════════════════════════════════════════════════════════════


def convert(parsed: ParsedSuite, project_id: int | None = None) -> ImportRequest:
    """Flatten a parsed TestRail suite into an ImportRequest.

    Sections are visited depth-first in document order using an explicit
    stack of ``(section, parent_path)`` pairs.
    """
    logger.info("Converting TestRail suite '%s' (%d root sections)",
                parsed.name, len(parsed.sections))

    suites: list[HierarchicalSuiteDescriptor] = []
    seen: set[tuple[str, str | None]] = set()
    cases: list[CaseDescriptor] = []

    stack: list[tuple[ParsedSection, str | None]] = [
        (section, None) for section in reversed(parsed.sections)
    ]
    while stack:
        section, parent_path = stack.pop()
        name = trim_to_empty(section.name)
        if not name:
            logger.warning("Skipping section with empty name under '%s'", parent_path or "<root>")
            continue

        if name == VIRTUAL_ROOT_NAME and parent_path is None:
            logger.info("Unwrapping '%s' container: %d cases at root, %d child sections",
                        VIRTUAL_ROOT_NAME, len(section.cases), len(section.sections))
            suite_name = path = None
        else:
            path = f"{parent_path}{PATH_SEPARATOR}{name}" if parent_path else name
            key = (name.lower(), parent_path)
            if key not in seen:
                seen.add(key)
                suites.append(HierarchicalSuiteDescriptor(
                    name=name,
                    description=trim_to_empty(section.description),
                    parent_name=parent_path,
                ))
                logger.debug("Suite descriptor '%s' (parent: '%s')", name, parent_path or "none")
            suite_name = name

        for parsed_case in section.cases:
            descriptor = convert_case(parsed_case, suite_name, path)
            if descriptor is not None:
                cases.append(descriptor)

        stack.extend((child, path) for child in reversed(section.sections))

    logger.info("TestRail conversion complete: %d suites, %d cases", len(suites), len(cases))
    _log_hierarchy(suites)
    return ImportRequest(project_id=project_id, suites=suites, cases=cases)


def _log_hierarchy(suites: list[HierarchicalSuiteDescriptor]) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    for suite in suites:
        level = suite.parent_name.count(PATH_SEPARATOR) + 1 if suite.parent_name else 0
        logger.debug("%s- %s", "  " * level, suite.name)
