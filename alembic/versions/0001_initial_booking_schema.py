"""initial_booking_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # btree_gist lets the exclusion constraint combine `=` on UUIDs with `&&` on ranges
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    op.create_table(
        "properties",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("property_type", sa.String(50), nullable=True),
        sa.Column("max_guests", sa.Integer(), server_default="1", nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("max_guests > 0", name="check_max_guests"),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "property_id",
            sa.UUID(),
            sa.ForeignKey("properties.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_by", sa.UUID(), nullable=True),
        sa.Column("guest_name", sa.String(100), nullable=False),
        sa.Column("guest_id_card", sa.String(50), nullable=False),
        sa.Column("guest_contact_number", sa.String(20), nullable=False),
        sa.Column("guest_email", sa.String(100), nullable=True),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("number_of_guests", sa.Integer(), server_default="1", nullable=False),
        sa.Column("booking_notes", sa.Text(), nullable=True),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("booking_status", sa.String(20), server_default="confirmed", nullable=False),
        sa.Column("booking_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("payment_status", sa.String(20), server_default="pending", nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("check_out_date > check_in_date", name="check_dates"),
        sa.CheckConstraint("number_of_guests > 0", name="check_guests"),
        sa.CheckConstraint(
            "booking_status IN ('pending', 'confirmed', 'cancelled', 'completed')",
            name="check_booking_status",
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'partial', 'refunded')",
            name="check_payment_status",
        ),
    )
    op.create_index("ix_bookings_property_id", "bookings", ["property_id"])
    op.create_index("ix_bookings_created_by", "bookings", ["created_by"])
    op.create_index("ix_bookings_guest_name", "bookings", ["guest_name"])
    op.create_index("ix_bookings_booking_status", "bookings", ["booking_status"])
    op.create_index("ix_bookings_check_in_date", "bookings", ["check_in_date"])
    op.create_index("ix_bookings_check_out_date", "bookings", ["check_out_date"])

    # Half-open '[)' ranges: a checkout on the same day as the next check-in is not a conflict
    op.execute(
        """
        ALTER TABLE bookings ADD CONSTRAINT bookings_no_active_overlap
        EXCLUDE USING gist (
            property_id WITH =,
            daterange(check_in_date, check_out_date, '[)') WITH &&
        ) WHERE (booking_status IN ('pending', 'confirmed'))
        """
    )

    op.create_table(
        "booking_guests",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "booking_id",
            sa.UUID(),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("guest_name", sa.String(100), nullable=False),
        sa.Column("guest_id_card", sa.String(50), nullable=True),
        sa.Column("guest_contact_number", sa.String(20), nullable=True),
        sa.Column("guest_age", sa.Integer(), nullable=True),
        sa.Column("relationship_to_main_guest", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_booking_guests_booking_id", "booking_guests", ["booking_id"])

    op.create_table(
        "booking_history",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "booking_id",
            sa.UUID(),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("modified_by", sa.UUID(), nullable=True),
        sa.Column("modification_type", sa.String(20), nullable=False),
        sa.Column("old_values", sa.JSON(), nullable=True),
        sa.Column("new_values", sa.JSON(), nullable=True),
        sa.Column("modification_notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("clock_timestamp()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "modification_type IN ('created', 'updated', 'cancelled', 'completed')",
            name="check_modification_type",
        ),
    )
    op.create_index("ix_booking_history_booking_id", "booking_history", ["booking_id"])


def downgrade() -> None:
    op.drop_index("ix_booking_history_booking_id", table_name="booking_history")
    op.drop_table("booking_history")
    op.drop_index("ix_booking_guests_booking_id", table_name="booking_guests")
    op.drop_table("booking_guests")
    op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS bookings_no_active_overlap")
    op.drop_table("bookings")
    op.drop_table("properties")
    # btree_gist is intentionally kept: other indexes may depend on it.
