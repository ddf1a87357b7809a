"""add_contract_terminated_at

Revision ID: b2d4f6a8c0e1
Revises: a1c2e3f4b5d6
Create Date: 2026-10-26

Record the day a contract became TERMINATED so occupancy reports stop the
lease there instead of at its last edit. Existing terminated contracts are
backfilled from updated_at.
"""
from alembic import op
import sqlalchemy as sa

revision = "b2d4f6a8c0e1"
down_revision = "a1c2e3f4b5d6"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "contracts",
        sa.Column("terminated_at", sa.Date(), nullable=True),
    )
    op.execute(
        "UPDATE contracts SET terminated_at = CAST(updated_at AS DATE) "
        "WHERE status = 'TERMINATED'"
    )


def downgrade() -> None:
    op.drop_column("contracts", "terminated_at")
