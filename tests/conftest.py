"""
Shared pytest fixtures for the Test Hub test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - project: Pre-created, committed Project
    - dictionaries: Default priorities and case types, committed
    - testrail_xml: A small TestRail suite export (bytes)
"""

import pytest

from testhub import create_app
from testhub.models import db as _db


# A TestRail export with the synthetic "Test Cases" container, two sections
# named "Chrome" under different parents and a case title shared by both.
TESTRAIL_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<suite>
  <id>S1</id>
  <name>Master</name>
  <description>Exported suite</description>
  <sections>
    <section>
      <name>Test Cases</name>
      <cases>
        <case>
          <id>C372</id>
          <title>Root level case</title>
          <type>Other</type>
          <priority>Low</priority>
          <references>AUTO-1</references>
        </case>
      </cases>
      <sections>
        <section>
          <name>UI</name>
          <description>User interface</description>
          <sections>
            <section>
              <name>Sync</name>
              <sections>
                <section>
                  <name>Chrome</name>
                  <cases>
                    <case>
                      <id>C1</id>
                      <title>Login works</title>
                      <type>Smoke</type>
                      <priority>High</priority>
                      <estimate>1m</estimate>
                      <references>AUTO-517, AUTO-518</references>
                      <custom>
                        <automation_type><id>1</id><value>Automated</value></automation_type>
                        <testclass>LoginTest</testclass>
                        <testmethod>testLogin</testmethod>
                        <preconds>User exists</preconds>
                        <steps>[STEP 1] Open login page[STEP 2] Enter credentials[VERIFY] User is logged in</steps>
                      </custom>
                    </case>
                  </cases>
                </section>
              </sections>
            </section>
            <section>
              <name>UMH</name>
              <sections>
                <section>
                  <name>Chrome</name>
                  <cases>
                    <case>
                      <id>C2</id>
                      <title>Login works</title>
                      <type>Regression</type>
                      <priority>Critical</priority>
                    </case>
                  </cases>
                </section>
              </sections>
            </section>
          </sections>
        </section>
      </sections>
    </section>
  </sections>
</suite>
"""


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def project():
    """Create and commit a Project to import into."""
    from testhub.models.project import Project

    proj = Project(code="DEMO", name="Demo Project")
    _db.session.add(proj)
    _db.session.commit()
    return proj


@pytest.fixture()
def dictionaries():
    """Seed the default priorities and case types."""
    from testhub.services.case_dictionary_service import seed_case_dictionaries

    seed_case_dictionaries()
    _db.session.commit()


@pytest.fixture()
def testrail_xml():
    return TESTRAIL_XML
