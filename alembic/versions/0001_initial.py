"""Initial ledger schema.

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-16 00:00:00.000000

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the access and presence ledger tables."""
    op.create_table(
        "rfid_access",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("person_name", sa.String(length=200), nullable=False),
        sa.Column("badge_id", sa.String(length=64), nullable=False),
        sa.Column("granted", sa.Boolean(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time", sa.Time(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_rfid_access_date_time", "rfid_access", ["date", "time"])
    op.create_table(
        "rfid_presence",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("person_name", sa.String(length=200), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("entry_time", sa.Time(), nullable=False),
        sa.Column("entry_valid", sa.Boolean(), nullable=False),
        sa.Column("exit_time", sa.Time(), nullable=True),
        sa.Column("exit_valid", sa.Boolean(), nullable=True),
        sqlite_autoincrement=True,
    )
    op.create_index(
        "ix_rfid_presence_person_date",
        "rfid_presence",
        ["person_name", "date"],
    )
    op.create_index(
        "ix_rfid_presence_date_entry",
        "rfid_presence",
        ["date", "entry_time"],
    )


def downgrade() -> None:
    """Drop the ledger tables."""
    op.drop_index("ix_rfid_presence_date_entry", table_name="rfid_presence")
    op.drop_index("ix_rfid_presence_person_date", table_name="rfid_presence")
    op.drop_table("rfid_presence")
    op.drop_index("ix_rfid_access_date_time", table_name="rfid_access")
    op.drop_table("rfid_access")
