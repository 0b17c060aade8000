"""Initial schema: users, token blocklist, journal entries, versions, outbox.

Revision ID: 20261019_initial_schema
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=16), server_default="user", nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "jwt_blocklist",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("jti", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_jwt_blocklist_jti", "jwt_blocklist", ["jti"], unique=True)
    op.create_index("ix_jwt_blocklist_user_id", "jwt_blocklist", ["user_id"])

    op.create_table(
        "journal_entry",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("mood", sa.String(length=16), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_journal_entry_user_id", "journal_entry", ["user_id"])
    op.create_index("ix_journal_entry_user_created_at", "journal_entry", ["user_id", "created_at"])
    op.create_index("ix_journal_entry_user_mood", "journal_entry", ["user_id", "mood"])

    # entry_id is deliberately not a foreign key: history outlives the entry.
    op.create_table(
        "entry_version",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("entry_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("note", sa.String(length=255), nullable=True),
        sa.Column(
            "source",
            sa.String(length=16),
            server_default="auto",
            nullable=False,
            comment="auto, manual, restore",
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_entry_version_entry_id", "entry_version", ["entry_id"])
    op.create_index("ix_entry_version_user_id", "entry_version", ["user_id"])
    op.create_index("ix_entry_version_entry_created_at", "entry_version", ["entry_id", "created_at"])
    op.create_index("ix_entry_version_user_created_at", "entry_version", ["user_id", "created_at"])

    op.create_table(
        "platform_outbox",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("event_type", sa.String(length=128), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=32), server_default="pending", nullable=False),
        sa.Column("attempts", sa.Integer(), server_default="0", nullable=False),
        sa.Column("available_at", sa.DateTime(), nullable=False),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_platform_outbox_user_id", "platform_outbox", ["user_id"])
    op.create_index("ix_platform_outbox_event_type", "platform_outbox", ["event_type"])
    op.create_index(
        "ix_platform_outbox_user_status",
        "platform_outbox",
        ["user_id", "status", "available_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_platform_outbox_user_status", table_name="platform_outbox")
    op.drop_index("ix_platform_outbox_event_type", table_name="platform_outbox")
    op.drop_index("ix_platform_outbox_user_id", table_name="platform_outbox")
    op.drop_table("platform_outbox")

    op.drop_index("ix_entry_version_user_created_at", table_name="entry_version")
    op.drop_index("ix_entry_version_entry_created_at", table_name="entry_version")
    op.drop_index("ix_entry_version_user_id", table_name="entry_version")
    op.drop_index("ix_entry_version_entry_id", table_name="entry_version")
    op.drop_table("entry_version")

    op.drop_index("ix_journal_entry_user_mood", table_name="journal_entry")
    op.drop_index("ix_journal_entry_user_created_at", table_name="journal_entry")
    op.drop_index("ix_journal_entry_user_id", table_name="journal_entry")
    op.drop_table("journal_entry")

    op.drop_index("ix_jwt_blocklist_user_id", table_name="jwt_blocklist")
    op.drop_index("ix_jwt_blocklist_jti", table_name="jwt_blocklist")
    op.drop_table("jwt_blocklist")

    op.drop_index("ix_user_email", table_name="user")
    op.drop_table("user")
