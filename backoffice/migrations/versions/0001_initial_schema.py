"""Create approvable records table

Revision ID: 0001
Revises:
Create Date: 2026-10-16

Tables added:
- approvable_records: Records of every approvable entity kind
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the approvable records table."""
    op.create_table(
        "approvable_records",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("kind", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("fields", sa.JSON(), nullable=False),
        sa.Column("pending_change", sa.JSON(), nullable=False),
        sa.Column("activity_log", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.String(255), nullable=True),
        sa.Column("updated_by", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_approvable_records"),
    )
    op.create_index("ix_approvable_records_kind", "approvable_records", ["kind"])
    op.create_index("ix_approvable_records_status", "approvable_records", ["status"])
    op.create_index("ix_approvable_records_created_at", "approvable_records", ["created_at"])
    op.create_index("ix_approvable_records_kind_name", "approvable_records", ["kind", "name"])
    op.create_index("ix_approvable_records_kind_status", "approvable_records", ["kind", "status"])


def downgrade() -> None:
    """Drop the approvable records table."""
    op.drop_index("ix_approvable_records_kind_status", table_name="approvable_records")
    op.drop_index("ix_approvable_records_kind_name", table_name="approvable_records")
    op.drop_index("ix_approvable_records_created_at", table_name="approvable_records")
    op.drop_index("ix_approvable_records_status", table_name="approvable_records")
    op.drop_index("ix_approvable_records_kind", table_name="approvable_records")
    op.drop_table("approvable_records")
