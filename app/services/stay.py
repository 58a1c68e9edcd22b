"""Date-range logic for stays: pure functions, no database access.

A stay is the half-open interval ``[check_in, check_out)``: the checkout day
itself is free for the next guest to check in.
"""

from __future__ import annotations

import calendar
import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol

from app.services.errors import ValidationError

BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "completed")
ACTIVE_STATUSES = ("pending", "confirmed")
PAYMENT_STATUSES = ("pending", "paid", "partial", "refunded")


class StayRecord(Protocol):
    """Anything shaped like a booking row (ORM object or test double)."""

    id: uuid.UUID
    check_in_date: date
    check_out_date: date
    booking_status: str


@dataclass(frozen=True)
class StayRange:
    """A validated half-open stay."""

    check_in: date
    check_out: date

    def __post_init__(self) -> None:
        if self.check_out <= self.check_in:
            raise ValidationError("check_out_date must be after check_in_date")

    @classmethod
    def of(cls, record: StayRecord) -> StayRange:
        return cls(record.check_in_date, record.check_out_date)

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def overlaps(self, other: StayRange) -> bool:
        return ranges_overlap(self, other)


def ranges_overlap(a: StayRange, b: StayRange) -> bool:
    """True when the two half-open stays share at least one night."""
    return a.check_in < b.check_out and b.check_in < a.check_out


def is_active(status: str) -> bool:
    return status in ACTIVE_STATUSES


def find_conflicts(
    candidates: Iterable[StayRecord],
    stay: StayRange,
    exclude_id: uuid.UUID | None = None,
) -> list[StayRecord]:
    """Return the active candidates whose stay overlaps ``stay``.

    ``exclude_id`` skips the booking being updated so it cannot conflict
    with itself.
    """
    return [
        record
        for record in candidates
        if record.id != exclude_id
        and is_active(record.booking_status)
        and ranges_overlap(StayRange.of(record), stay)
    ]


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return the first and last day of a calendar month."""
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month: {month}")
    try:
        first_day = date(year, month, 1)
    except ValueError:
        raise ValidationError(f"Invalid year: {year}") from None
    last_day = first_day.replace(day=calendar.monthrange(year, month)[1])
    return first_day, last_day


def iter_days(first: date, last: date) -> Iterator[date]:
    """Yield each day from ``first`` to ``last`` inclusive."""
    for offset in range((last - first).days + 1):
        yield first + timedelta(days=offset)


def add_months(day: date, months: int) -> date:
    """Shift ``day`` by whole months, clamping to the end of shorter months."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))
