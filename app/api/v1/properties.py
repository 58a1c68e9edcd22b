"""Properties API router: property CRUD plus property-scoped booking queries."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.models.booking import Booking
from app.models.property import Property
from app.schemas.booking import BookingResponse, MonthCalendar
from app.schemas.property import PropertyCreate, PropertyResponse
from app.services import booking_service, property_service
from app.services.calendar import get_month_calendar

router = APIRouter(prefix="/api/v1/properties", tags=["properties"])


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=list[PropertyResponse],
    summary="List all properties",
)
async def list_properties(db: AsyncSession = Depends(get_db)) -> list[Property]:
    """Return every property ordered by name."""
    return await property_service.list_properties(db)


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new property",
)
async def create_property(
    body: PropertyCreate,
    db: AsyncSession = Depends(get_db),
) -> Property:
    return await property_service.create_property(db, body)


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Get a property by ID",
)
async def get_property(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Property:
    return await property_service.get_property(db, property_id)


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a property",
)
async def delete_property(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Delete a property and cascade-delete its bookings."""
    await property_service.delete_property(db, property_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Calendar and booking queries
# ---------------------------------------------------------------------------


@router.get(
    "/{property_id}/calendar/{year}/{month}",
    response_model=MonthCalendar,
    summary="Day-by-day occupancy for a month",
)
async def get_calendar(
    property_id: uuid.UUID,
    year: int = Path(..., ge=1, le=9999),
    month: int = Path(..., ge=1, le=12),
    db: AsyncSession = Depends(get_db),
) -> MonthCalendar:
    """Mark each day of the month booked or free from the active bookings."""
    return await get_month_calendar(db, property_id, year, month)


@router.get(
    "/{property_id}/bookings/upcoming",
    response_model=list[BookingResponse],
    summary="Active bookings checking in between today and a date",
)
async def list_upcoming_bookings(
    property_id: uuid.UUID,
    up_to_date: date | None = Query(None, description="Last check-in date to include (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
) -> list[Booking]:
    """Defaults to a window of ``UPCOMING_WINDOW_MONTHS`` from today."""
    return await booking_service.list_upcoming_bookings(db, property_id, up_to_date)


@router.get(
    "/{property_id}/bookings/previous",
    response_model=list[BookingResponse],
    summary="Bookings that checked out before today",
)
async def list_previous_bookings(
    property_id: uuid.UUID,
    back_to_date: date | None = Query(None, description="Earliest checkout date to include (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
) -> list[Booking]:
    """Includes cancelled and completed bookings. Newest checkout first."""
    return await booking_service.list_previous_bookings(db, property_id, back_to_date)


@router.get(
    "/{property_id}/bookings/search",
    response_model=list[BookingResponse],
    summary="Search bookings by guest name",
)
async def search_bookings(
    property_id: uuid.UUID,
    guest_name: str = Query(..., min_length=1, description="Case-insensitive substring of the guest name"),
    db: AsyncSession = Depends(get_db),
) -> list[Booking]:
    return await booking_service.search_bookings_by_guest_name(db, property_id, guest_name)
