"""qms_initial_schema

Business areas, users and grants; the twelve QMS record tables with their
file version tables; the deletion audit table.

Revision ID: 0001a2b3c4d5
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001a2b3c4d5"
down_revision = None
branch_labels = None
depends_on = None


# record table → (version table, domain columns)
RECORD_TABLES = {
    "business_processes": ("business_process_file_versions", lambda: [
        sa.Column("sub_business_area", sa.String(150)),
        sa.Column("process_name", sa.String(300), nullable=False),
        sa.Column("document_name", sa.String(300)),
        sa.Column("progress", sa.String(50)),
        sa.Column("doc_status", sa.String(50)),
        sa.Column("status_percentage", sa.Integer()),
        sa.Column("priority", sa.String(20)),
        sa.Column("target_date", sa.Date()),
        sa.Column("process_owner", sa.String(150)),
        sa.Column("remarks", sa.Text()),
        sa.Column("review_date", sa.Date()),
    ]),
    "risk_matrix_entries": ("risk_matrix_file_versions", lambda: [
        sa.Column("process_name", sa.String(300), nullable=False),
        sa.Column("activity_description", sa.Text()),
        sa.Column("issue_description", sa.Text(), nullable=False),
        sa.Column("issue_type", sa.String(50)),
        sa.Column("likelihood", sa.Integer()),
        sa.Column("impact", sa.Integer()),
        sa.Column("risk_score", sa.Integer()),
        sa.Column("control_description", sa.Text()),
        sa.Column("control_type", sa.String(50)),
        sa.Column("control_owner", sa.String(150)),
        sa.Column("control_effectiveness", sa.String(50)),
        sa.Column("residual_risk", sa.String(50)),
        sa.Column("status", sa.String(30)),
    ]),
    "quality_objectives": ("quality_objective_file_versions", lambda: [
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("target", sa.Float()),
        sa.Column("current_value", sa.Float()),
        sa.Column("unit", sa.String(30)),
        sa.Column("target_date", sa.Date()),
        sa.Column("status", sa.String(30)),
    ]),
    "performance_monitoring_controls": ("performance_monitoring_control_file_versions", lambda: [
        sa.Column("sub_business_area", sa.String(150)),
        sa.Column("name_reports", sa.String(300), nullable=False),
        sa.Column("doc_type", sa.String(50)),
        sa.Column("priority", sa.String(20)),
        sa.Column("doc_status", sa.String(50)),
        sa.Column("progress", sa.String(50)),
        sa.Column("status_percentage", sa.Integer()),
        sa.Column("target_date", sa.Date()),
        sa.Column("proof", sa.String(300)),
        sa.Column("frequency", sa.String(50)),
        sa.Column("responsible_persons", sa.String(300)),
        sa.Column("remarks", sa.Text()),
    ]),
    "training_sessions": ("training_session_file_versions", lambda: [
        sa.Column("sessions", sa.String(300), nullable=False),
        sa.Column("session_date", sa.Date(), nullable=False),
        sa.Column("remarks", sa.Text()),
    ]),
    "third_party_evaluations": ("third_party_evaluation_file_versions", lambda: [
        sa.Column("supplier_name", sa.String(300), nullable=False),
        sa.Column("evaluation_system_in_place", sa.Boolean()),
        sa.Column("document_reference", sa.String(300)),
        sa.Column("last_evaluation_date", sa.Date()),
        sa.Column("status_percentage", sa.Integer()),
        sa.Column("doc_status", sa.String(50)),
        sa.Column("progress", sa.String(50)),
        sa.Column("notes", sa.Text()),
    ]),
    "customer_feedback_systems": ("customer_feedback_system_file_versions", lambda: [
        sa.Column("has_feedback_system", sa.Boolean()),
        sa.Column("document_reference", sa.String(300)),
        sa.Column("last_review_date", sa.Date()),
        sa.Column("status_percentage", sa.Integer()),
        sa.Column("doc_status", sa.String(50)),
        sa.Column("progress", sa.String(50)),
        sa.Column("notes", sa.Text()),
    ]),
    "qms_assessments": ("qms_assessment_file_versions", lambda: [
        sa.Column("assessor_name", sa.String(150), nullable=False),
        sa.Column("assessment_date", sa.Date(), nullable=False),
    ]),
    "business_documents": ("business_document_file_versions", lambda: [
        sa.Column("sub_business_area", sa.String(150)),
        sa.Column("document_name", sa.String(300), nullable=False),
        sa.Column("name_and_numbering", sa.String(300)),
        sa.Column("document_type", sa.String(50)),
        sa.Column("progress", sa.String(50)),
        sa.Column("doc_status", sa.String(50)),
        sa.Column("status_percentage", sa.Integer()),
        sa.Column("priority", sa.String(20)),
        sa.Column("target_date", sa.Date()),
        sa.Column("document_owner", sa.String(150)),
        sa.Column("update_date", sa.Date()),
        sa.Column("remarks", sa.Text()),
        sa.Column("review_date", sa.Date()),
    ]),
    "non_conformities": ("non_conformity_file_versions", lambda: [
        sa.Column("sub_business_area", sa.String(150)),
        sa.Column("nc_number", sa.String(50)),
        sa.Column("nc_type", sa.String(50)),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("root_cause", sa.Text()),
        sa.Column("corrective_action", sa.Text()),
        sa.Column("responsible_person", sa.String(150)),
        sa.Column("target_date", sa.Date()),
        sa.Column("completion_date", sa.Date()),
        sa.Column("status", sa.String(30)),
        sa.Column("priority", sa.String(20)),
        sa.Column("impact_level", sa.String(30)),
        sa.Column("verification_method", sa.Text()),
        sa.Column("effectiveness_review", sa.Text()),
        sa.Column("lessons_learned", sa.Text()),
        sa.Column("related_documents", sa.Text()),
    ]),
    "record_keeping_systems": ("record_keeping_system_file_versions", lambda: [
        sa.Column("sub_business_area", sa.String(150)),
        sa.Column("record_type", sa.String(100)),
        sa.Column("system_name", sa.String(300), nullable=False),
        sa.Column("system_description", sa.Text()),
        sa.Column("retention_period", sa.String(100)),
        sa.Column("storage_location", sa.String(300)),
        sa.Column("access_controls", sa.Text()),
        sa.Column("backup_procedures", sa.Text()),
        sa.Column("disposal_procedures", sa.Text()),
        sa.Column("compliance_status", sa.String(50)),
        sa.Column("last_audit_date", sa.Date()),
        sa.Column("next_audit_date", sa.Date()),
        sa.Column("audit_findings", sa.Text()),
        sa.Column("corrective_actions", sa.Text()),
        sa.Column("responsible_person", sa.String(150)),
        sa.Column("status_percentage", sa.Float()),
        sa.Column("doc_status", sa.String(50)),
        sa.Column("progress", sa.String(50)),
        sa.Column("notes", sa.Text()),
    ]),
    "business_improvements": ("business_improvement_file_versions", lambda: [
        sa.Column("sub_business_area", sa.String(150)),
        sa.Column("improvement_title", sa.String(300), nullable=False),
        sa.Column("improvement_type", sa.String(50)),
        sa.Column("description", sa.Text()),
        sa.Column("business_case", sa.Text()),
        sa.Column("expected_benefits", sa.Text()),
        sa.Column("implementation_plan", sa.Text()),
        sa.Column("success_criteria", sa.Text()),
        sa.Column("responsible_person", sa.String(150)),
        sa.Column("start_date", sa.Date()),
        sa.Column("target_completion_date", sa.Date()),
        sa.Column("actual_completion_date", sa.Date()),
        sa.Column("status", sa.String(30)),
        sa.Column("priority", sa.String(20)),
        sa.Column("budget_allocated", sa.Float()),
        sa.Column("actual_cost", sa.Float()),
        sa.Column("roi_calculation", sa.Text()),
        sa.Column("lessons_learned", sa.Text()),
        sa.Column("next_steps", sa.Text()),
        sa.Column("related_processes", sa.Text()),
        sa.Column("status_percentage", sa.Float()),
        sa.Column("doc_status", sa.String(50)),
        sa.Column("progress", sa.String(50)),
        sa.Column("notes", sa.Text()),
    ]),
}


def _table_names(bind) -> set[str]:
    insp = sa.inspect(bind)
    return set(insp.get_table_names())


def _create_record_table(name, domain_columns):
    op.create_table(
        name,
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "business_area", sa.String(100),
            sa.ForeignKey("businessareas.business_area"), nullable=False,
        ),
        *domain_columns,
        sa.Column("file_url", sa.String(1000)),
        sa.Column("file_name", sa.String(255)),
        sa.Column("file_size", sa.BigInteger()),
        sa.Column("file_type", sa.String(100)),
        sa.Column("version", sa.String(20)),
        sa.Column("deleted_at", sa.DateTime()),
        sa.Column("deleted_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
        sa.CheckConstraint(
            "(deleted_at IS NULL AND deleted_by IS NULL) OR "
            "(deleted_at IS NOT NULL AND deleted_by IS NOT NULL)",
            name=f"ck_{name}_deletion_pair",
        ),
    )
    op.create_index(f"ix_{name}_business_area", name, ["business_area"])
    op.create_index(f"ix_{name}_deleted_at", name, ["deleted_at"])


def _create_version_table(name, record_table):
    op.create_table(
        name,
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "record_id", sa.Integer(),
            sa.ForeignKey(f"{record_table}.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("version_label", sa.String(20), nullable=False),
        sa.Column("file_url", sa.String(1000), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_size", sa.BigInteger()),
        sa.Column("file_type", sa.String(100)),
        sa.Column("uploaded_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(f"ix_{name}_record_id", name, ["record_id"])


def upgrade():
    bind = op.get_bind()
    tables = _table_names(bind)

    if "businessareas" not in tables:
        op.create_table(
            "businessareas",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("business_area", sa.String(100), nullable=False, unique=True),
            sa.Column("created_at", sa.DateTime()),
        )

    if "users" not in tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("username", sa.String(100), nullable=False),
            sa.Column("email", sa.String(200), nullable=False, unique=True),
            sa.Column("password_hash", sa.String(256)),
            sa.Column(
                "business_area", sa.String(100),
                sa.ForeignKey("businessareas.business_area", ondelete="SET NULL"),
            ),
            sa.Column("created_at", sa.DateTime()),
            sa.Column("updated_at", sa.DateTime()),
        )

    if "user_business_areas" not in tables:
        op.create_table(
            "user_business_areas",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "user_id", sa.Integer(),
                sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
            ),
            sa.Column(
                "business_area", sa.String(100),
                sa.ForeignKey("businessareas.business_area", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("created_at", sa.DateTime()),
            sa.UniqueConstraint("user_id", "business_area", name="uq_user_business_area"),
        )
        op.create_index("ix_user_business_areas_user_id", "user_business_areas", ["user_id"])

    for record_table, (version_table, columns) in RECORD_TABLES.items():
        if record_table not in tables:
            _create_record_table(record_table, columns())
        if version_table not in tables:
            _create_version_table(version_table, record_table)

    if "audit_entries" not in tables:
        op.create_table(
            "audit_entries",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("table_name", sa.String(80), nullable=False),
            sa.Column("record_id", sa.Integer(), nullable=False),
            sa.Column("action", sa.String(20), nullable=False),
            sa.Column("deleted_at", sa.DateTime(), nullable=False),
            sa.Column("deleted_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
            sa.Column("business_area", sa.String(100)),
            sa.Column("file_name", sa.String(255)),
            sa.Column("file_url", sa.String(1000)),
            sa.Column("file_cleanup_success", sa.Boolean(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
        )
        op.create_index("idx_audit_record", "audit_entries", ["table_name", "record_id"])
        op.create_index("idx_audit_business_area", "audit_entries", ["business_area"])
        op.create_index("idx_audit_deleted_at", "audit_entries", ["deleted_at"])
        op.create_index("ix_audit_entries_deleted_by", "audit_entries", ["deleted_by"])


def downgrade():
    op.drop_table("audit_entries")
    for record_table, (version_table, _) in reversed(list(RECORD_TABLES.items())):
        op.drop_table(version_table)
        op.drop_table(record_table)
    op.drop_table("user_business_areas")
    op.drop_table("users")
    op.drop_table("businessareas")
