"""initial schema: checkpoints, documents, sync runs

Revision ID: 0001_initial
Revises:
Create Date: 2023-01-02 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

BIGINT_PK = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade():
    op.create_table(
        "log_entries",
        sa.Column("id", BIGINT_PK, primary_key=True, autoincrement=True),
        sa.Column("index_name", sa.String(255), nullable=False),
        sa.Column("inserted_at", sa.DateTime(), nullable=False),
    )
    op.create_index("uidx_index_name", "log_entries", ["index_name"], unique=True)

    op.create_table(
        "documents",
        sa.Column("id", BIGINT_PK, primary_key=True, autoincrement=True),
        sa.Column("document_id", sa.String(255), nullable=False),
        sa.Column("index_name", sa.String(255), nullable=False),
        sa.Column("event_category", sa.String(255)),
        sa.Column("event_timestamp", sa.DateTime(), nullable=False),
        sa.Column("event_type", sa.String(255)),
        sa.Column("host", sa.String(255)),
        sa.Column("syslog_hostname", sa.String(255)),
        sa.Column("source_zone", sa.String(255)),
        sa.Column("application", sa.String(255)),
        sa.Column("reason", sa.Text()),
        sa.Column("category", sa.String(255)),
        sa.Column("url", sa.Text()),
        sa.Column("attack_name", sa.String(255)),
        sa.Column("threat_severity", sa.String(32)),
        sa.Column("inserted_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "uidx_document_id_index_name", "documents", ["document_id", "index_name"], unique=True
    )
    op.create_index("ix_documents_index_name", "documents", ["index_name"])
    op.create_index("ix_documents_event_category", "documents", ["event_category"])
    op.create_index("ix_documents_event_timestamp", "documents", ["event_timestamp"])

    op.create_table(
        "sync_runs",
        sa.Column("id", BIGINT_PK, primary_key=True, autoincrement=True),
        sa.Column("run_id", sa.Uuid(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("RUNNING", "SUCCESS", "PARTIAL", "FAILED", name="syncstatus"),
            nullable=False,
        ),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime()),
        sa.Column("duration_seconds", sa.Float()),
        sa.Column("horizon", sa.String(255)),
        sa.Column("partitions_eligible", sa.Integer()),
        sa.Column("partitions_completed", sa.Integer()),
        sa.Column("partitions_failed", sa.Integer()),
        sa.Column("documents_scraped", sa.Integer()),
        sa.Column("documents_written", sa.Integer()),
        sa.Column("error_message", sa.Text()),
        sa.Column("failed_partitions", sa.Text()),
    )
    op.create_index("ix_sync_runs_run_id", "sync_runs", ["run_id"], unique=True)
    op.create_index("ix_sync_runs_status", "sync_runs", ["status"])
    op.create_index("ix_sync_runs_started_at", "sync_runs", ["started_at"])
    op.create_index("idx_sync_run_status", "sync_runs", ["status", "started_at"])


def downgrade():
    op.drop_table("sync_runs")
    sa.Enum(name="syncstatus").drop(op.get_bind(), checkfirst=True)
    op.drop_table("documents")
    op.drop_table("log_entries")
