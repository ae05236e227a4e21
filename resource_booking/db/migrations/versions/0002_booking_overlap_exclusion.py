"""Forbid overlapping live bookings on the same resource

Revision ID: 0002_booking_overlap_exclusion
Revises: 0001_initial
Create Date: 2026-10-17
"""

from alembic import op

# revision identifiers, used by Alembic.
revision = "0002_booking_overlap_exclusion"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    op.execute(
        """
        ALTER TABLE bookings
        ADD CONSTRAINT ex_booking_resource_no_overlap
        EXCLUDE USING gist (
            resource_id WITH =,
            tstzrange(start_time, end_time, '[)') WITH &&
        )
        WHERE (status IN ('pending', 'approved', 'checked_in'))
        """
    )


def downgrade() -> None:
    op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS ex_booking_resource_no_overlap")
