"""Booking service: overlap-safe create/update/cancel plus read queries.

Every mutation runs inside the caller's session transaction. Writers lock the
property row (``SELECT ... FOR UPDATE``) before checking for overlaps, so two
concurrent requests for the same property are serialized and cannot both
insert conflicting stays. The ``bookings_no_active_overlap`` exclusion
constraint backs this up at the database level.
"""

import logging
import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.booking import OVERLAP_CONSTRAINT_NAME, Booking, BookingGuest, BookingHistory
from app.models.property import Property
from app.schemas.booking import BookingCreate, BookingUpdate
from app.services.errors import (
    InvalidStateError,
    NotFoundError,
    OverlapError,
    StoreError,
    ValidationError,
)
from app.services.stay import ACTIVE_STATUSES, StayRange, add_months, find_conflicts, is_active

logger = logging.getLogger(__name__)

OVERLAP_MESSAGE = "Booking dates overlap with an existing booking for this property"

# Changing any of these can break the non-overlap invariant.
OVERLAP_FIELDS = frozenset({"property_id", "check_in_date", "check_out_date", "booking_status"})

# Columns that may be updated but never set to NULL.
NON_NULLABLE_FIELDS = frozenset(
    {
        "property_id",
        "guest_name",
        "guest_id_card",
        "guest_contact_number",
        "check_in_date",
        "check_out_date",
        "number_of_guests",
        "booking_status",
        "payment_status",
    }
)

_SNAPSHOT_FIELDS = (
    "property_id",
    "guest_name",
    "guest_id_card",
    "guest_contact_number",
    "guest_email",
    "check_in_date",
    "check_out_date",
    "number_of_guests",
    "booking_notes",
    "special_requests",
    "booking_status",
    "booking_amount",
    "payment_status",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    """Classify SQLAlchemy failures raised while performing ``action``."""
    try:
        yield
    except IntegrityError as exc:
        if OVERLAP_CONSTRAINT_NAME in str(exc.orig):
            logger.warning("Exclusion constraint rejected overlapping booking during %s", action)
            raise OverlapError(OVERLAP_MESSAGE) from exc
        logger.exception("Integrity error during %s", action)
        raise StoreError(f"Could not {action}: constraint violation") from exc
    except SQLAlchemyError as exc:
        logger.exception("Database error during %s", action)
        raise StoreError(f"Could not {action}") from exc


def _json_value(value: Any) -> Any:
    if isinstance(value, (date, uuid.UUID)):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    return value


def _snapshot(booking: Booking) -> dict[str, Any]:
    """JSON-safe copy of the booking's business columns for the history log."""
    return {field: _json_value(getattr(booking, field)) for field in _SNAPSHOT_FIELDS}


def merge_changes(booking: Booking, update_data: Mapping[str, Any]) -> dict[str, Any]:
    """Return only the supplied fields whose value differs from the stored one."""
    return {field: value for field, value in update_data.items() if getattr(booking, field) != value}


def _record_history(
    db: AsyncSession,
    booking: Booking,
    modification_type: str,
    actor_id: uuid.UUID | None,
    old_values: dict | None = None,
    new_values: dict | None = None,
    notes: str | None = None,
) -> None:
    db.add(
        BookingHistory(
            booking_id=booking.id,
            modified_by=actor_id,
            modification_type=modification_type,
            old_values=old_values,
            new_values=new_values,
            modification_notes=notes,
        )
    )


async def _lock_property(db: AsyncSession, property_id: uuid.UUID) -> Property:
    """Lock the property row for the rest of the transaction."""
    result = await db.execute(select(Property).where(Property.id == property_id).with_for_update())
    prop = result.scalar_one_or_none()
    if prop is None:
        raise NotFoundError(f"Property {property_id} not found")
    return prop


async def _get_booking_for_update(db: AsyncSession, booking_id: uuid.UUID) -> Booking:
    """Lock and reload the booking row so the latest committed state is used."""
    result = await db.execute(
        select(Booking)
        .where(Booking.id == booking_id)
        .with_for_update(of=Booking)
        .execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if booking is None:
        raise NotFoundError(f"Booking {booking_id} not found")
    return booking


async def ensure_no_overlap(
    db: AsyncSession,
    property_id: uuid.UUID,
    stay: StayRange,
    exclude_booking_id: uuid.UUID | None = None,
) -> None:
    """Raise ``OverlapError`` if an active booking on the property overlaps ``stay``.

    Must be called while holding the property lock.
    """
    result = await db.execute(
        select(
            Booking.id,
            Booking.check_in_date,
            Booking.check_out_date,
            Booking.booking_status,
        ).where(
            Booking.property_id == property_id,
            Booking.booking_status.in_(ACTIVE_STATUSES),
            Booking.check_out_date > stay.check_in,
        )
    )
    conflicts = find_conflicts(result.all(), stay, exclude_id=exclude_booking_id)
    if conflicts:
        conflicting_ids = [row.id for row in conflicts]
        logger.warning(
            "Rejected stay %s..%s on property %s: overlaps %s",
            stay.check_in,
            stay.check_out,
            property_id,
            ", ".join(str(i) for i in conflicting_ids),
        )
        raise OverlapError(OVERLAP_MESSAGE, conflicting_ids=conflicting_ids)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def create_booking(
    db: AsyncSession,
    body: BookingCreate,
    actor_id: uuid.UUID | None = None,
) -> Booking:
    """Insert a booking and its additional guests if the stay is free."""
    stay = StayRange(body.check_in_date, body.check_out_date)
    if body.number_of_guests < 1:
        raise ValidationError("number_of_guests must be greater than zero")

    with _store_errors("create booking"):
        await _lock_property(db, body.property_id)
        if is_active(body.booking_status):
            await ensure_no_overlap(db, body.property_id, stay)

        booking = Booking(
            **body.model_dump(exclude={"additional_guests"}),
            created_by=actor_id,
            additional_guests=[BookingGuest(**guest.model_dump()) for guest in body.additional_guests],
        )
        db.add(booking)
        await db.flush()
        await db.refresh(booking)

        _record_history(db, booking, "created", actor_id, new_values=_snapshot(booking))
        await db.flush()

    logger.info(
        "Created booking %s on property %s for %s..%s (%d nights)",
        booking.id,
        booking.property_id,
        booking.check_in_date,
        booking.check_out_date,
        booking.total_nights,
    )
    return booking


async def update_booking(
    db: AsyncSession,
    booking_id: uuid.UUID,
    body: BookingUpdate,
    actor_id: uuid.UUID | None = None,
) -> Booking:
    """Apply a sparse update, re-checking overlaps when the stay could move.

    Only fields present in the request are considered. The overlap check runs
    when the dates, property, or status actually change and the resulting
    booking is active.
    """
    update_data = body.model_dump(exclude_unset=True)
    if not update_data:
        raise ValidationError("No fields to update")

    null_fields = sorted(f for f in NON_NULLABLE_FIELDS if f in update_data and update_data[f] is None)
    if null_fields:
        raise ValidationError(f"Fields cannot be null: {', '.join(null_fields)}")

    with _store_errors("update booking"):
        booking = await _get_booking_for_update(db, booking_id)
        changes = merge_changes(booking, update_data)

        if OVERLAP_FIELDS.intersection(changes):
            stay = StayRange(
                changes.get("check_in_date", booking.check_in_date),
                changes.get("check_out_date", booking.check_out_date),
            )
            target_property_id = changes.get("property_id", booking.property_id)
            # Sorted to keep lock order stable across concurrent updates
            for property_id in sorted({booking.property_id, target_property_id}):
                await _lock_property(db, property_id)

            if is_active(changes.get("booking_status", booking.booking_status)):
                await ensure_no_overlap(db, target_property_id, stay, exclude_booking_id=booking.id)

        old_values = _snapshot(booking)
        for field, value in changes.items():
            setattr(booking, field, value)
        booking.updated_at = func.now()

        await db.flush()
        await db.refresh(booking)

        _record_history(
            db,
            booking,
            "updated",
            actor_id,
            old_values=old_values,
            new_values=_snapshot(booking),
        )
        await db.flush()

    logger.info("Updated booking %s (changed: %s)", booking.id, ", ".join(sorted(changes)) or "nothing")
    return booking


async def cancel_booking(
    db: AsyncSession,
    booking_id: uuid.UUID,
    actor_id: uuid.UUID | None = None,
    today: date | None = None,
) -> Booking:
    """Cancel an active booking whose check-in is today or later."""
    today = today or date.today()

    with _store_errors("cancel booking"):
        booking = await _get_booking_for_update(db, booking_id)

        if not is_active(booking.booking_status):
            raise InvalidStateError(
                f"Booking {booking_id} is {booking.booking_status} and cannot be cancelled"
            )
        if booking.check_in_date < today:
            raise InvalidStateError(
                f"Booking {booking_id} checked in on {booking.check_in_date} and can no longer be cancelled"
            )

        old_values = _snapshot(booking)
        booking.booking_status = "cancelled"
        booking.updated_at = func.now()
        await db.flush()
        await db.refresh(booking)

        _record_history(
            db,
            booking,
            "cancelled",
            actor_id,
            old_values=old_values,
            new_values=_snapshot(booking),
        )
        await db.flush()

    logger.info("Cancelled booking %s on property %s", booking.id, booking.property_id)
    return booking


async def complete_finished_bookings(db: AsyncSession, today: date | None = None) -> int:
    """Mark confirmed bookings whose checkout day has arrived as completed.

    Intended for a periodic job (see ``scripts/complete_bookings.py``).
    Returns the number of bookings transitioned.
    """
    today = today or date.today()

    with _store_errors("complete bookings"):
        result = await db.execute(
            select(Booking)
            .where(
                Booking.booking_status == "confirmed",
                Booking.check_out_date <= today,
            )
            .order_by(Booking.check_out_date)
            .with_for_update(of=Booking, skip_locked=True)
        )
        bookings = list(result.scalars().all())

        for booking in bookings:
            old_values = _snapshot(booking)
            booking.booking_status = "completed"
            booking.updated_at = func.now()
            _record_history(
                db,
                booking,
                "completed",
                None,
                old_values=old_values,
                new_values={**old_values, "booking_status": "completed"},
                notes=f"Checkout on {booking.check_out_date} reached by {today}",
            )
        await db.flush()

    logger.info("Completed %d booking(s) with checkout on or before %s", len(bookings), today)
    return len(bookings)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_booking(db: AsyncSession, booking_id: uuid.UUID) -> Booking:
    """Return a booking with its additional guests."""
    result = await db.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()
    if booking is None:
        raise NotFoundError(f"Booking {booking_id} not found")
    return booking


async def get_booking_history(db: AsyncSession, booking_id: uuid.UUID) -> list[BookingHistory]:
    """Return the audit trail of a booking, oldest first."""
    await get_booking(db, booking_id)
    result = await db.execute(
        select(BookingHistory)
        .where(BookingHistory.booking_id == booking_id)
        .order_by(BookingHistory.created_at, BookingHistory.id)
    )
    return list(result.scalars().all())


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def search_bookings_by_guest_name(
    db: AsyncSession,
    property_id: uuid.UUID,
    guest_name: str,
) -> list[Booking]:
    """Case-insensitive substring match on the primary guest name, any status."""
    term = guest_name.strip()
    if not term:
        raise ValidationError("guest_name must not be empty")

    result = await db.execute(
        select(Booking)
        .where(
            Booking.property_id == property_id,
            Booking.guest_name.ilike(f"%{_escape_like(term)}%", escape="\\"),
        )
        .order_by(Booking.check_in_date.desc())
    )
    return list(result.scalars().all())


async def list_upcoming_bookings(
    db: AsyncSession,
    property_id: uuid.UUID,
    up_to_date: date | None = None,
    today: date | None = None,
) -> list[Booking]:
    """Active bookings checking in between today and ``up_to_date`` inclusive."""
    today = today or date.today()
    if up_to_date is None:
        up_to_date = add_months(today, settings.upcoming_window_months)

    result = await db.execute(
        select(Booking)
        .where(
            Booking.property_id == property_id,
            Booking.booking_status.in_(ACTIVE_STATUSES),
            Booking.check_in_date >= today,
            Booking.check_in_date <= up_to_date,
        )
        .order_by(Booking.check_in_date.asc())
    )
    return list(result.scalars().all())


async def list_previous_bookings(
    db: AsyncSession,
    property_id: uuid.UUID,
    back_to_date: date | None = None,
    today: date | None = None,
) -> list[Booking]:
    """Bookings of any status that checked out before today, back to ``back_to_date``."""
    today = today or date.today()
    if back_to_date is None:
        back_to_date = add_months(today, -settings.previous_window_months)

    result = await db.execute(
        select(Booking)
        .where(
            Booking.property_id == property_id,
            Booking.check_out_date < today,
            Booking.check_out_date >= back_to_date,
        )
        .order_by(Booking.check_out_date.desc())
    )
    return list(result.scalars().all())
