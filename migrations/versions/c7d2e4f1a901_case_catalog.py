"""case_catalog

Projects, hierarchical suites (max 5 levels), test cases and the global
priority / case type dictionaries used by the import engine.

Revision ID: c7d2e4f1a901
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "c7d2e4f1a901"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ── Project
    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(50), nullable=False, unique=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    # ── Dictionaries
    op.create_table(
        "case_priorities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(50), nullable=False, unique=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_table(
        "case_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(50), nullable=False, unique=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    )

    # ── Suite
    op.create_table(
        "suites",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(),
                  sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("parent_id", sa.Integer(),
                  sa.ForeignKey("suites.id", ondelete="CASCADE"), nullable=True,
                  comment="Parent suite; NULL = root level"),
        sa.Column("depth", sa.Integer(), nullable=False, server_default="0",
                  comment="Nesting level: 0=root, max 4=5th level"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), server_default=""),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("depth >= 0 AND depth <= 4", name="chk_suite_max_depth"),
    )
    op.create_index("ix_suites_project_id", "suites", ["project_id"])
    op.create_index("ix_suites_parent_id", "suites", ["parent_id"])
    op.create_index("ix_suites_depth", "suites", ["depth"])
    op.create_index(
        "uq_suites_name_parent_project",
        "suites",
        ["project_id", sa.text("COALESCE(parent_id, 0)"), "name"],
        unique=True,
        postgresql_where=sa.text("is_archived = false"),
        sqlite_where=sa.text("is_archived = 0"),
    )

    # ── TestCase
    op.create_table(
        "test_cases",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(),
                  sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("suite_id", sa.Integer(),
                  sa.ForeignKey("suites.id", ondelete="SET NULL"), nullable=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("preconditions", sa.Text(), nullable=True),
        sa.Column("type_id", sa.Integer(),
                  sa.ForeignKey("case_types.id", ondelete="SET NULL"), nullable=True),
        sa.Column("priority_id", sa.Integer(),
                  sa.ForeignKey("case_priorities.id", ondelete="SET NULL"), nullable=True),
        sa.Column("estimate_seconds", sa.Integer(), nullable=True),
        sa.Column("sort_index", sa.Integer(), nullable=True, server_default="0"),
        sa.Column("steps", sa.JSON(), nullable=False),
        sa.Column("expected_result", sa.Text(), nullable=True),
        sa.Column("actual_result", sa.Text(), nullable=True),
        sa.Column("test_data", sa.Text(), nullable=True),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("autotest_mapping", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.Column("severity", sa.String(20), nullable=False, server_default="NORMAL"),
        sa.Column("automation_status", sa.String(20), nullable=False, server_default="NOT_AUTOMATED"),
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_test_cases_project_id", "test_cases", ["project_id"])
    op.create_index("ix_test_cases_suite_id", "test_cases", ["suite_id"])


def downgrade():
    op.drop_index("ix_test_cases_suite_id", table_name="test_cases")
    op.drop_index("ix_test_cases_project_id", table_name="test_cases")
    op.drop_table("test_cases")
    op.drop_index("uq_suites_name_parent_project", table_name="suites")
    op.drop_index("ix_suites_depth", table_name="suites")
    op.drop_index("ix_suites_parent_id", table_name="suites")
    op.drop_index("ix_suites_project_id", table_name="suites")
    op.drop_table("suites")
    op.drop_table("case_types")
    op.drop_table("case_priorities")
    op.drop_table("projects")
