"""
Test Hub
Catalog domain models.

Models:
    - Suite:         named, optionally nested container for test cases (max 5 levels)
    - TestCase:      individual test case with structured steps and automation metadata
    - CasePriority:  global priority dictionary (Low / Medium / High / Critical)
    - CaseType:      global case type dictionary (Functional / Smoke / ...)

Architecture ref:
    Project ──1:N──▶ Suite ──1:N──▶ Suite (children, depth + 1)
    Project ──1:N──▶ TestCase ──N:1──▶ Suite (nullable = project root)
    TestCase ──N:1──▶ CasePriority / CaseType (nullable, resolved by name on import)
"""

from datetime import datetime, timezone

from testhub.models import db


# ── Constants ────────────────────────────────────────────────────────────

MAX_SUITE_DEPTH = 4  # 0 = root, 4 = fifth level

CASE_STATUSES = ("DRAFT", "READY", "IN_PROGRESS", "BLOCKED", "PASSED", "FAILED")

CASE_SEVERITIES = ("TRIVIAL", "MINOR", "NORMAL", "MAJOR", "CRITICAL")

AUTOMATION_STATUSES = ("NOT_AUTOMATED", "IN_PROGRESS", "AUTOMATED")

DEFAULT_STATUS = "DRAFT"
DEFAULT_SEVERITY = "NORMAL"
DEFAULT_AUTOMATION_STATUS = "NOT_AUTOMATED"

DEFAULT_PRIORITIES = ("Low", "Medium", "High", "Critical")

DEFAULT_CASE_TYPES = (
    "Functional", "Smoke", "Regression", "Security", "Performance", "Usability",
)


def _utcnow():
    return datetime.now(timezone.utc)


# ═════════════════════════════════════════════════════════════════════════════
# DICTIONARIES
# ═════════════════════════════════════════════════════════════════════════════


class CasePriority(db.Model):
    """Global priority dictionary shared by all projects."""

    __tablename__ = "case_priorities"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False, unique=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self):
        return {"id": self.id, "name": self.name, "sort_order": self.sort_order}

    def __repr__(self):
        return f"<CasePriority {self.id}: {self.name}>"


class CaseType(db.Model):
    """Global test case type dictionary shared by all projects."""

    __tablename__ = "case_types"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False, unique=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self):
        return {"id": self.id, "name": self.name, "sort_order": self.sort_order}

    def __repr__(self):
        return f"<CaseType {self.id}: {self.name}>"


# ═════════════════════════════════════════════════════════════════════════════
# SUITE
# ═════════════════════════════════════════════════════════════════════════════


class Suite(db.Model):
    """
    Hierarchical container of test cases within a project.

    Invariants:
        depth == 0        iff parent_id is NULL
        depth(child)  ==  depth(parent) + 1
        depth        <=  MAX_SUITE_DEPTH
        name is unique among non-archived siblings of the same parent
    """

    __tablename__ = "suites"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    parent_id = db.Column(
        db.Integer, db.ForeignKey("suites.id", ondelete="CASCADE"),
        nullable=True, index=True, comment="Parent suite; NULL = root level",
    )
    depth = db.Column(
        db.Integer, nullable=False, default=0, index=True,
        comment="Nesting level: 0=root, max 4=5th level",
    )
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, default="")
    is_archived = db.Column(db.Boolean, nullable=False, default=False)
    archived_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # ── Audit
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        db.CheckConstraint(
            f"depth >= 0 AND depth <= {MAX_SUITE_DEPTH}", name="chk_suite_max_depth",
        ),
    )

    # ── Relationships
    parent = db.relationship("Suite", remote_side=[id], backref="children")

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "parent_id": self.parent_id,
            "depth": self.depth,
            "name": self.name,
            "description": self.description,
            "is_archived": self.is_archived,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Suite {self.id}: [d{self.depth}] {self.name}>"


# Sibling names are unique per (project, parent); NULL parents collapse to 0.
db.Index(
    "uq_suites_name_parent_project",
    Suite.project_id,
    db.func.coalesce(Suite.parent_id, 0),
    Suite.name,
    unique=True,
    postgresql_where=db.text("is_archived = false"),
    sqlite_where=db.text("is_archived = 0"),
)


# ═════════════════════════════════════════════════════════════════════════════
# TEST CASE
# ═════════════════════════════════════════════════════════════════════════════


class TestCase(db.Model):
    """
    Test case in a project catalog.

    Import identity is (suite_id-or-NULL, normalised title), not the primary key.
    JSON columns:
        steps            [{action, expected, notes, attachments}]
        attachments      [{name, url, size, mime}]
        tags             ["AUTO-517", ...]   (≤ 50 entries, ≤ 50 chars each)
        autotest_mapping {"testClass": ..., "testMethod": ..., "scenario": ...}
    """

    __tablename__ = "test_cases"
    __test__ = False  # not a pytest class

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    suite_id = db.Column(
        db.Integer, db.ForeignKey("suites.id", ondelete="SET NULL"),
        nullable=True, index=True, comment="NULL = project root",
    )
    title = db.Column(db.String(500), nullable=False)
    preconditions = db.Column(db.Text, nullable=True)
    type_id = db.Column(
        db.Integer, db.ForeignKey("case_types.id", ondelete="SET NULL"), nullable=True,
    )
    priority_id = db.Column(
        db.Integer, db.ForeignKey("case_priorities.id", ondelete="SET NULL"), nullable=True,
    )
    estimate_seconds = db.Column(db.Integer, nullable=True)
    sort_index = db.Column(db.Integer, nullable=True, default=0)

    steps = db.Column(db.JSON, nullable=False, default=list)
    expected_result = db.Column(db.Text, nullable=True)
    actual_result = db.Column(db.Text, nullable=True)
    test_data = db.Column(db.Text, nullable=True)
    attachments = db.Column(db.JSON, nullable=False, default=list)
    tags = db.Column(db.JSON, nullable=False, default=list)
    autotest_mapping = db.Column(db.JSON, nullable=False, default=dict)

    status = db.Column(
        db.String(20), nullable=False, default=DEFAULT_STATUS,
        comment="DRAFT | READY | IN_PROGRESS | BLOCKED | PASSED | FAILED",
    )
    severity = db.Column(
        db.String(20), nullable=False, default=DEFAULT_SEVERITY,
        comment="TRIVIAL | MINOR | NORMAL | MAJOR | CRITICAL",
    )
    automation_status = db.Column(
        db.String(20), nullable=False, default=DEFAULT_AUTOMATION_STATUS,
        comment="NOT_AUTOMATED | IN_PROGRESS | AUTOMATED",
    )

    # ── Audit
    created_by = db.Column(db.String(100), nullable=True, comment="Actor that created the case")
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    is_archived = db.Column(db.Boolean, nullable=False, default=False)
    archived_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # ── Relationships
    suite = db.relationship("Suite", foreign_keys=[suite_id])

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "suite_id": self.suite_id,
            "title": self.title,
            "preconditions": self.preconditions,
            "type_id": self.type_id,
            "priority_id": self.priority_id,
            "estimate_seconds": self.estimate_seconds,
            "sort_index": self.sort_index,
            "steps": self.steps or [],
            "expected_result": self.expected_result,
            "actual_result": self.actual_result,
            "test_data": self.test_data,
            "attachments": self.attachments or [],
            "tags": self.tags or [],
            "autotest_mapping": self.autotest_mapping or {},
            "status": self.status,
            "severity": self.severity,
            "automation_status": self.automation_status,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "is_archived": self.is_archived,
        }

    def __repr__(self):
        return f"<TestCase {self.id}: {self.title[:40]}>"
