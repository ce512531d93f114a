"""downtime reporting tables and id counters

Revision ID: 0001_downtime_reporting
Revises:
Create Date: 2026-10-17 09:00:00
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_downtime_reporting"
down_revision = None
branch_labels = None
depends_on = None

ID_SEQUENCES = ("downtime_id", "admin_notification", "user_notification")


def upgrade() -> None:
    op.create_table(
        "downtime_report_v2",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("downtime_id", sa.String(length=32), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("issue_title", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=128), nullable=False),
        sa.Column("affected_channel", sa.String(length=255), nullable=True),
        sa.Column("affected_persona", sa.String(length=255), nullable=True),
        sa.Column("affected_mno", sa.String(length=255), nullable=True),
        sa.Column("affected_portal", sa.String(length=255), nullable=True),
        sa.Column("affected_type", sa.String(length=255), nullable=True),
        sa.Column("affected_service", sa.String(length=255), nullable=True),
        sa.Column("impact_type", sa.String(length=32), nullable=False),
        sa.Column("modality", sa.String(length=32), nullable=False),
        sa.Column("reliability_impacted", sa.String(length=16), nullable=True),
        sa.Column("start_date_time", sa.String(length=19), nullable=False),
        sa.Column("end_date_time", sa.String(length=19), nullable=False),
        sa.Column("duration", sa.String(length=16), nullable=False),
        sa.Column("concern", sa.String(length=64), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("resolution", sa.Text(), nullable=False),
        sa.Column("service_desk_ticket_id", sa.String(length=128), nullable=True),
        sa.Column("system_unavailability", sa.String(length=128), nullable=False),
        sa.Column("tracked_by", sa.String(length=128), nullable=False),
        sa.Column("service_desk_ticket_link", sa.Text(), nullable=True),
        sa.Column("remark", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_downtime_report_v2_downtime_id", "downtime_report_v2", ["downtime_id"], unique=False)
    op.create_index("ix_downtime_report_v2_issue_date", "downtime_report_v2", ["issue_date"], unique=False)
    op.create_index("ix_downtime_report_v2_issue_title", "downtime_report_v2", ["issue_title"], unique=False)
    op.create_index("ix_downtime_report_v2_category", "downtime_report_v2", ["category"], unique=False)

    op.create_table(
        "admin_notification_details",
        sa.Column("serial", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("notification_id", sa.String(length=32), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Unread"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("status IN ('Unread', 'Read')", name="ck_admin_notification_status_values"),
        sa.PrimaryKeyConstraint("serial"),
        sa.UniqueConstraint("notification_id"),
    )

    op.create_table(
        "user_notification_details",
        sa.Column("serial", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("notification_id", sa.String(length=32), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Unread"),
        sa.Column("soc_portal_id", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("status IN ('Unread', 'Read')", name="ck_user_notification_status_values"),
        sa.PrimaryKeyConstraint("serial"),
        sa.UniqueConstraint("notification_id"),
    )
    op.create_index(
        "ix_user_notification_details_soc_portal_id", "user_notification_details", ["soc_portal_id"], unique=False
    )

    op.create_table(
        "user_activity_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("soc_portal_id", sa.String(length=64), nullable=False),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("eid", sa.String(length=64), nullable=True),
        sa.Column("sid", sa.String(length=128), nullable=True),
        sa.Column("ip_address", sa.String(length=128), nullable=True),
        sa.Column("device_info", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_activity_log_soc_portal_id", "user_activity_log", ["soc_portal_id"], unique=False)
    op.create_index("ix_user_activity_log_action", "user_activity_log", ["action"], unique=False)

    id_sequences = op.create_table(
        "id_sequences",
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("value", sa.BigInteger(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("name"),
    )
    op.bulk_insert(id_sequences, [{"name": name, "value": 0} for name in ID_SEQUENCES])


def downgrade() -> None:
    op.drop_table("id_sequences")
    op.drop_index("ix_user_activity_log_action", table_name="user_activity_log")
    op.drop_index("ix_user_activity_log_soc_portal_id", table_name="user_activity_log")
    op.drop_table("user_activity_log")
    op.drop_index("ix_user_notification_details_soc_portal_id", table_name="user_notification_details")
    op.drop_table("user_notification_details")
    op.drop_table("admin_notification_details")
    op.drop_index("ix_downtime_report_v2_category", table_name="downtime_report_v2")
    op.drop_index("ix_downtime_report_v2_issue_title", table_name="downtime_report_v2")
    op.drop_index("ix_downtime_report_v2_issue_date", table_name="downtime_report_v2")
    op.drop_index("ix_downtime_report_v2_downtime_id", table_name="downtime_report_v2")
    op.drop_table("downtime_report_v2")
