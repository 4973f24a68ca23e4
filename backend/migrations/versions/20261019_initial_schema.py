"""Initial schema: users, sessions, reports, commodities

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "session_tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token_hash", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", sa.String(length=255), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_session_tokens_user_id", "session_tokens", ["user_id"])
    op.create_index("ix_session_tokens_token_hash", "session_tokens", ["token_hash"], unique=True)
    op.create_index("ix_session_tokens_expires_at", "session_tokens", ["expires_at"])
    op.create_index("ix_session_tokens_is_revoked", "session_tokens", ["is_revoked"])
    op.create_index("ix_session_tokens_user_active", "session_tokens", ["user_id", "is_revoked"])

    op.create_table(
        "reports",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("report_type", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("machine_serial_number", sa.String(length=10), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("user_name", sa.String(length=120), nullable=True),
        sa.Column("equipment_checklist", sa.JSON(), nullable=True),
        sa.Column("cleaning_checklist", sa.JSON(), nullable=True),
        sa.Column("filling_details", sa.JSON(), nullable=True),
        sa.Column("cup_stock", sa.String(length=64), nullable=True),
        sa.Column("waste", sa.String(length=64), nullable=True),
        sa.Column("stock_info", sa.Text(), nullable=True),
        sa.Column("has_issue", sa.Boolean(), nullable=False),
        sa.Column("issue_description", sa.Text(), nullable=True),
        sa.Column("issue_date", sa.String(length=32), nullable=True),
        sa.Column("issue_resolved", sa.Boolean(), nullable=False),
        sa.Column("issue_resolved_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("has_waste", sa.Boolean(), nullable=False),
        sa.Column("waste_items", sa.JSON(), nullable=True),
        sa.Column("waste_date", sa.String(length=32), nullable=True),
        sa.Column("slots", sa.JSON(), nullable=True),
        sa.Column("before_photos", sa.JSON(), nullable=False),
        sa.Column("after_photos", sa.JSON(), nullable=False),
        sa.Column("issue_photos", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_reports_report_type", "reports", ["report_type"])
    op.create_index("ix_reports_status", "reports", ["status"])
    op.create_index("ix_reports_machine_serial_number", "reports", ["machine_serial_number"])
    op.create_index("ix_reports_user_id", "reports", ["user_id"])
    op.create_index("ix_reports_user_created", "reports", ["user_id", "created_at"])

    op.create_table(
        "commodities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("product_name", sa.String(length=255), nullable=False),
        sa.Column("unit_price", sa.String(length=32), nullable=True),
        sa.Column("cost_price", sa.String(length=32), nullable=True),
        sa.Column("supplier", sa.String(length=255), nullable=True),
        sa.Column("specs", sa.String(length=255), nullable=True),
        sa.Column("type", sa.String(length=120), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_commodities_code", "commodities", ["code"], unique=True)
    op.create_index("ix_commodities_supplier_name", "commodities", ["supplier", "product_name"])


def downgrade():
    op.drop_table("commodities")
    op.drop_table("reports")
    op.drop_table("session_tokens")
    op.drop_table("users")
