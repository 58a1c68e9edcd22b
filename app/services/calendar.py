"""Calendar projection: per-day occupancy of a property for one month."""

import logging
import uuid
from collections.abc import Iterable
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking
from app.schemas.booking import CalendarDay, MonthCalendar
from app.services.stay import ACTIVE_STATUSES, StayRecord, is_active, iter_days, month_bounds

logger = logging.getLogger(__name__)


def project_month(bookings: Iterable[StayRecord], year: int, month: int) -> MonthCalendar:
    """Build the day-by-day view of ``year``/``month`` from a set of bookings.

    Two passes: first map every occupied day inside the month to the booking
    covering it, then walk the month so the output has exactly one entry per
    day no matter how many bookings were supplied. Inactive bookings are
    ignored; if two active bookings ever covered the same day the first one
    seen wins.
    """
    first_day, last_day = month_bounds(year, month)

    booked: dict[date, uuid.UUID] = {}
    for booking in bookings:
        if not is_active(booking.booking_status):
            continue
        # Only the nights of the stay that fall inside the month
        start = max(booking.check_in_date, first_day)
        end = min(booking.check_out_date - timedelta(days=1), last_day)
        for day in iter_days(start, end):
            booked.setdefault(day, booking.id)

    days = [
        CalendarDay(date=day, is_booked=day in booked, booking_id=booked.get(day))
        for day in iter_days(first_day, last_day)
    ]
    return MonthCalendar(year=year, month=month, days=days)


async def get_month_calendar(
    db: AsyncSession,
    property_id: uuid.UUID,
    year: int,
    month: int,
) -> MonthCalendar:
    """Load the active bookings touching the month and project them."""
    first_day, last_day = month_bounds(year, month)

    result = await db.execute(
        select(Booking)
        .where(
            Booking.property_id == property_id,
            Booking.booking_status.in_(ACTIVE_STATUSES),
            Booking.check_in_date <= last_day,
            Booking.check_out_date > first_day,
        )
        .order_by(Booking.check_in_date)
    )
    bookings = list(result.scalars().all())

    logger.debug(
        "Projecting %d booking(s) onto %04d-%02d for property %s",
        len(bookings),
        year,
        month,
        property_id,
    )
    return project_month(bookings, year, month)
