"""Pydantic v2 request/response schemas for booking endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from app.config import settings

_CREATE_STATUS_PATTERN = "^(pending|confirmed)$"
_STATUS_PATTERN = "^(pending|confirmed|cancelled|completed)$"
_PAYMENT_STATUS_PATTERN = "^(pending|paid|partial|refunded)$"

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class BookingGuestCreate(BaseModel):
    """An additional occupant submitted with a new booking."""

    guest_name: str = Field(..., min_length=1, max_length=100)
    guest_id_card: str | None = Field(None, max_length=50)
    guest_contact_number: str | None = Field(None, max_length=20)
    guest_age: int | None = Field(None, ge=0)
    relationship_to_main_guest: str | None = Field(None, max_length=50)


class BookingCreate(BaseModel):
    """Schema for creating a new booking."""

    property_id: uuid.UUID
    guest_name: str = Field(..., min_length=1, max_length=100)
    guest_id_card: str = Field(..., min_length=1, max_length=50)
    guest_contact_number: str = Field(..., min_length=1, max_length=20)
    guest_email: EmailStr | None = None
    check_in_date: date
    check_out_date: date
    number_of_guests: int = Field(1, ge=1)
    booking_notes: str | None = None
    special_requests: str | None = None
    booking_amount: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    booking_status: str = Field(
        default_factory=lambda: settings.default_booking_status,
        pattern=_CREATE_STATUS_PATTERN,
    )
    payment_status: str = Field("pending", pattern=_PAYMENT_STATUS_PATTERN)
    additional_guests: list[BookingGuestCreate] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_dates(self) -> "BookingCreate":
        """Validate that check_out_date is strictly after check_in_date."""
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date")
        return self


class BookingUpdate(BaseModel):
    """Schema for partially updating a booking. All fields optional.

    Only fields present in the request body are applied; see
    ``booking_service.update_booking``.
    """

    property_id: uuid.UUID | None = None
    guest_name: str | None = Field(None, min_length=1, max_length=100)
    guest_id_card: str | None = Field(None, min_length=1, max_length=50)
    guest_contact_number: str | None = Field(None, min_length=1, max_length=20)
    guest_email: EmailStr | None = None
    check_in_date: date | None = None
    check_out_date: date | None = None
    number_of_guests: int | None = Field(None, ge=1)
    booking_notes: str | None = None
    special_requests: str | None = None
    booking_amount: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    booking_status: str | None = Field(None, pattern=_STATUS_PATTERN)
    payment_status: str | None = Field(None, pattern=_PAYMENT_STATUS_PATTERN)

    @model_validator(mode="after")
    def check_dates(self) -> "BookingUpdate":
        """If both dates are provided, validate check_out_date > check_in_date."""
        if (
            self.check_in_date is not None
            and self.check_out_date is not None
            and self.check_out_date <= self.check_in_date
        ):
            raise ValueError("check_out_date must be after check_in_date")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BookingGuestResponse(BaseModel):
    """Additional occupant as returned by the API."""

    id: uuid.UUID
    booking_id: uuid.UUID
    guest_name: str
    guest_id_card: str | None = None
    guest_contact_number: str | None = None
    guest_age: int | None = None
    relationship_to_main_guest: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingResponse(BaseModel):
    """Booking with its derived night count and additional guests."""

    id: uuid.UUID
    property_id: uuid.UUID
    created_by: uuid.UUID | None = None
    guest_name: str
    guest_id_card: str
    guest_contact_number: str
    guest_email: str | None = None
    check_in_date: date
    check_out_date: date
    number_of_guests: int
    total_nights: int
    booking_notes: str | None = None
    special_requests: str | None = None
    booking_status: str
    booking_amount: Decimal | None = None
    payment_status: str
    created_at: datetime
    updated_at: datetime
    additional_guests: list[BookingGuestResponse] = []

    model_config = ConfigDict(from_attributes=True)


class BookingHistoryResponse(BaseModel):
    """One audit entry for a booking."""

    id: uuid.UUID
    booking_id: uuid.UUID
    modified_by: uuid.UUID | None = None
    modification_type: str
    old_values: dict | None = None
    new_values: dict | None = None
    modification_notes: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CalendarDay(BaseModel):
    """Occupancy of a single day."""

    date: date
    is_booked: bool
    booking_id: uuid.UUID | None = None


class MonthCalendar(BaseModel):
    """Day-by-day occupancy of a property for one month."""

    year: int
    month: int
    days: list[CalendarDay]
