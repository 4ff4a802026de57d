"""
TestRail XML parser.

Purely structural decoding of a TestRail suite export into a generic tree:

    <suite>
      <id/> <name/> <description/>
      <sections>
        <section>
          <name/> <description/>
          <cases>
            <case>
              <id/> <title/> <template/> <type/> <priority/> <estimate/> <references/>
              <custom>
                <automation_type><id/><value/></automation_type>
                <testclass/> <testmethod/> <scenario/> <preconds/> <steps/> ...
              </custom>
            </case>
          </cases>
          <sections> ... nested sections ... </sections>
        </section>
      </sections>
    </suite>

No business rules live here (no virtual-root handling, no type mapping);
see testrail_converter for those. Unknown elements are ignored.
"""

import logging
from dataclasses import dataclass, field
from xml.etree import ElementTree as ET

from testhub.core.exceptions import ParseError

logger = logging.getLogger(__name__)


@dataclass
class ParsedCase:
    id: str | None = None
    title: str | None = None
    template: str | None = None
    type: str | None = None
    priority: str | None = None
    estimate: str | None = None
    references: str | None = None
    custom: dict[str, str | None] = field(default_factory=dict)


@dataclass
class ParsedSection:
    name: str | None = None
    description: str | None = None
    cases: list[ParsedCase] = field(default_factory=list)
    sections: list["ParsedSection"] = field(default_factory=list)


@dataclass
class ParsedSuite:
    id: str | None = None
    name: str | None = None
    description: str | None = None
    sections: list[ParsedSection] = field(default_factory=list)


# ── Element helpers ──────────────────────────────────────────────────────


def _text(element: ET.Element | None) -> str | None:
    if element is None:
        return None
    # itertext keeps inline markup (<p>, <br/>) from swallowing the content
    return "".join(element.itertext())


def _child_text(parent: ET.Element, tag: str) -> str | None:
    return _text(parent.find(tag))


def _wrapped(parent: ET.Element, wrapper: str, tag: str) -> list[ET.Element]:
    container = parent.find(wrapper)
    if container is None:
        return []
    return container.findall(tag)


def _custom_fields(element: ET.Element | None) -> dict[str, str | None]:
    if element is None:
        return {}
    fields = {}
    for child in element:
        if child.tag == "automation_type" and child.find("value") is not None:
            fields[child.tag] = _child_text(child, "value")
        else:
            fields[child.tag] = _text(child)
    return fields


def _case(element: ET.Element) -> ParsedCase:
    return ParsedCase(
        id=_child_text(element, "id"),
        title=_child_text(element, "title"),
        template=_child_text(element, "template"),
        type=_child_text(element, "type"),
        priority=_child_text(element, "priority"),
        estimate=_child_text(element, "estimate"),
        references=_child_text(element, "references"),
        custom=_custom_fields(element.find("custom")),
    )


# ═════════════════════════════════════════════════════════════════════════════
# Public API
# ═════════════════════════════════════════════════════════════════════════════


def parse(data) -> ParsedSuite:
    """Decode a TestRail XML export.

    Args:
        data: ``bytes``/``str`` buffer or a binary file-like object.

    Raises:
        ParseError: the document is not well-formed XML or its root element
            is not ``<suite>``. The message includes the underlying cause.
    """
    if hasattr(data, "read"):
        data = data.read()

    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        logger.warning("TestRail XML is not well-formed: %s", exc)
        raise ParseError("Failed to parse TestRail XML", cause=exc) from exc

    if root.tag != "suite":
        cause = ValueError(f"expected <suite> root element, got <{root.tag}>")
        raise ParseError("Failed to parse TestRail XML", cause=cause)

    suite = ParsedSuite(
        id=_child_text(root, "id"),
        name=_child_text(root, "name"),
        description=_child_text(root, "description"),
    )

    # Explicit stack: (element whose <sections> to expand, list receiving the children)
    stack = [(root, suite.sections)]
    section_count = case_count = 0
    while stack:
        element, target = stack.pop()
        for section_el in _wrapped(element, "sections", "section"):
            section = ParsedSection(
                name=_child_text(section_el, "name"),
                description=_child_text(section_el, "description"),
                cases=[_case(c) for c in _wrapped(section_el, "cases", "case")],
            )
            target.append(section)
            stack.append((section_el, section.sections))
            section_count += 1
            case_count += len(section.cases)

    logger.info("Parsed TestRail suite '%s': %d sections, %d cases",
                suite.name, section_count, case_count)
    return suite
