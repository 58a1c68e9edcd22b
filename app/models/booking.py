"""Booking models: reservations, their additional guests, and audit history."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    DDL,
    JSON,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    event,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

OVERLAP_CONSTRAINT_NAME = "bookings_no_active_overlap"


class Booking(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A reservation of one property for the half-open stay [check_in_date, check_out_date)."""

    __tablename__ = "bookings"

    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by: Mapped[uuid.UUID | None] = mapped_column(default=None, index=True)

    # Primary guest contact
    guest_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    guest_id_card: Mapped[str] = mapped_column(String(50), nullable=False)
    guest_contact_number: Mapped[str] = mapped_column(String(20), nullable=False)
    guest_email: Mapped[str | None] = mapped_column(String(100), default=None)

    # Stay
    check_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    check_out_date: Mapped[date] = mapped_column(Date, nullable=False)
    number_of_guests: Mapped[int] = mapped_column(Integer, default=1, server_default="1")

    booking_notes: Mapped[str | None] = mapped_column(Text, default=None)
    special_requests: Mapped[str | None] = mapped_column(Text, default=None)

    booking_status: Mapped[str] = mapped_column(
        String(20),
        default="confirmed",
        server_default="confirmed",
        index=True,
    )  # pending, confirmed, cancelled, completed
    booking_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), default=None)
    payment_status: Mapped[str] = mapped_column(
        String(20),
        default="pending",
        server_default="pending",
    )  # pending, paid, partial, refunded

    # Must stay above the `property` relationship, which shadows the builtin
    @property
    def total_nights(self) -> int:
        """Nights in the stay; always derived from the two dates."""
        return (self.check_out_date - self.check_in_date).days

    # Relationships
    property: Mapped["Property"] = relationship(back_populates="bookings", lazy="raise")  # type: ignore[name-defined]  # noqa: F821
    additional_guests: Mapped[list["BookingGuest"]] = relationship(
        back_populates="booking",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="BookingGuest.guest_name",
    )

    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="check_dates"),
        CheckConstraint("number_of_guests > 0", name="check_guests"),
        CheckConstraint(
            "booking_status IN ('pending', 'confirmed', 'cancelled', 'completed')",
            name="check_booking_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'paid', 'partial', 'refunded')",
            name="check_payment_status",
        ),
        Index("ix_bookings_check_in_date", "check_in_date"),
        Index("ix_bookings_check_out_date", "check_out_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, property_id={self.property_id}, "
            f"stay={self.check_in_date}..{self.check_out_date}, status={self.booking_status})>"
        )


class BookingGuest(UUIDPrimaryKeyMixin, Base):
    """An additional occupant listed on a booking."""

    __tablename__ = "booking_guests"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    guest_name: Mapped[str] = mapped_column(String(100), nullable=False)
    guest_id_card: Mapped[str | None] = mapped_column(String(50), default=None)
    guest_contact_number: Mapped[str | None] = mapped_column(String(20), default=None)
    guest_age: Mapped[int | None] = mapped_column(default=None)
    relationship_to_main_guest: Mapped[str | None] = mapped_column(String(50), default=None)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    booking: Mapped["Booking"] = relationship(back_populates="additional_guests", lazy="raise")

    def __repr__(self) -> str:
        return f"<BookingGuest(id={self.id}, booking_id={self.booking_id}, name={self.guest_name!r})>"


class BookingHistory(UUIDPrimaryKeyMixin, Base):
    """Audit row written for every booking mutation."""

    __tablename__ = "booking_history"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    modified_by: Mapped[uuid.UUID | None] = mapped_column(default=None)
    modification_type: Mapped[str] = mapped_column(String(20), nullable=False)
    old_values: Mapped[dict | None] = mapped_column(JSON, default=None)
    new_values: Mapped[dict | None] = mapped_column(JSON, default=None)
    modification_notes: Mapped[str | None] = mapped_column(Text, default=None)
    # Wall-clock time, so entries written in one transaction still sort in order
    created_at: Mapped[datetime] = mapped_column(server_default=func.clock_timestamp())

    __table_args__ = (
        CheckConstraint(
            "modification_type IN ('created', 'updated', 'cancelled', 'completed')",
            name="check_modification_type",
        ),
    )

    def __repr__(self) -> str:
        return f"<BookingHistory(booking_id={self.booking_id}, type={self.modification_type})>"


# No two active bookings of one property may share a night. Same DDL as the
# initial Alembic migration, so metadata.create_all() gets it too.
event.listen(
    Base.metadata,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Booking.__table__,
    "after_create",
    DDL(
        f"ALTER TABLE bookings ADD CONSTRAINT {OVERLAP_CONSTRAINT_NAME} "
        "EXCLUDE USING gist ("
        "property_id WITH =, "
        "daterange(check_in_date, check_out_date, '[)') WITH &&"
        ") WHERE (booking_status IN ('pending', 'confirmed'))"
    ).execute_if(dialect="postgresql"),
)
