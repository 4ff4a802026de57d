"""
Tests for the TestRail XML parser.

Covers:
  - suite metadata, nested sections and cases are decoded in document order
  - custom fields (automation_type reduced to its <value>)
  - missing optional elements decode as None
  - file-like input
  - malformed XML and wrong root element raise ParseError with the cause
"""

import io

import pytest

from testhub.core.exceptions import ParseError
from testhub.services.testrail_parser import parse


def test_parse_suite_metadata(testrail_xml):
    suite = parse(testrail_xml)

    assert suite.id == "S1"
    assert suite.name == "Master"
    assert suite.description == "Exported suite"
    assert [s.name for s in suite.sections] == ["Test Cases"]


def test_parse_nested_sections_in_document_order(testrail_xml):
    suite = parse(testrail_xml)

    container = suite.sections[0]
    assert [c.title for c in container.cases] == ["Root level case"]
    ui = container.sections[0]
    assert ui.name == "UI"
    assert ui.description == "User interface"
    assert [s.name for s in ui.sections] == ["Sync", "UMH"]
    assert ui.sections[0].sections[0].name == "Chrome"
    assert ui.sections[1].sections[0].name == "Chrome"


def test_parse_case_fields_and_custom(testrail_xml):
    suite = parse(testrail_xml)
    case = suite.sections[0].sections[0].sections[0].sections[0].cases[0]

    assert case.id == "C1"
    assert case.title == "Login works"
    assert case.type == "Smoke"
    assert case.priority == "High"
    assert case.estimate == "1m"
    assert case.references == "AUTO-517, AUTO-518"
    assert case.custom["automation_type"] == "Automated"
    assert case.custom["testclass"] == "LoginTest"
    assert case.custom["testmethod"] == "testLogin"
    assert case.custom["preconds"] == "User exists"
    assert case.custom["steps"].startswith("[STEP 1]")


def test_parse_missing_elements_are_none():
    suite = parse(b"<suite><sections><section><cases><case/></cases></section></sections></suite>")

    assert suite.id is None
    assert suite.name is None
    section = suite.sections[0]
    assert section.name is None
    case = section.cases[0]
    assert case.title is None
    assert case.references is None
    assert case.custom == {}


def test_parse_keeps_inline_markup_text():
    xml = b"<suite><sections><section><name>S</name><cases><case><title>T</title>" \
          b"<custom><steps><p>[STEP 1] Open</p><p>[VERIFY] Done</p></steps></custom>" \
          b"</case></cases></section></sections></suite>"
    case = parse(xml).sections[0].cases[0]
    assert "[STEP 1] Open" in case.custom["steps"]
    assert "[VERIFY] Done" in case.custom["steps"]


def test_parse_accepts_file_like_object(testrail_xml):
    suite = parse(io.BytesIO(testrail_xml))
    assert suite.name == "Master"


def test_parse_suite_without_sections():
    suite = parse("<suite><name>Empty</name></suite>")
    assert suite.name == "Empty"
    assert suite.sections == []


class TestParseErrors:

    def test_malformed_xml(self):
        with pytest.raises(ParseError) as exc_info:
            parse(b"<suite><name>Broken</suite>")

        assert str(exc_info.value).startswith("Failed to parse TestRail XML: ")
        assert exc_info.value.cause is not None

    def test_empty_document(self):
        with pytest.raises(ParseError):
            parse(b"")

    def test_wrong_root_element(self):
        with pytest.raises(ParseError) as exc_info:
            parse(b"<project><name>Nope</name></project>")

        assert "<project>" in str(exc_info.value)
