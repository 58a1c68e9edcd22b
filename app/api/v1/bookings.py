"""Bookings API router: commands and single-booking reads.

Property-scoped queries (calendar, upcoming, previous, search) live in
``app.api.v1.properties``. All business rules are in
``app.services.booking_service``; service errors are mapped to HTTP status
codes by ``app.api.errors``.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_actor_id, get_db
from app.models.booking import Booking, BookingHistory
from app.schemas.booking import (
    BookingCreate,
    BookingHistoryResponse,
    BookingResponse,
    BookingUpdate,
)
from app.services import booking_service

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new booking",
)
async def create_booking(
    body: BookingCreate,
    db: AsyncSession = Depends(get_db),
    actor_id: uuid.UUID | None = Depends(get_actor_id),
) -> Booking:
    """Create a booking together with its additional guests.

    Fails with 409 if an active booking on the same property overlaps the
    requested stay; nothing is written in that case.
    """
    return await booking_service.create_booking(db, body, actor_id=actor_id)


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking by ID",
)
async def get_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Booking:
    return await booking_service.get_booking(db, booking_id)


@router.put(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Update a booking",
)
async def update_booking(
    booking_id: uuid.UUID,
    body: BookingUpdate,
    db: AsyncSession = Depends(get_db),
    actor_id: uuid.UUID | None = Depends(get_actor_id),
) -> Booking:
    """Partially update a booking. Only fields present in the body change.

    Date, property, and status changes re-run the overlap check.
    """
    return await booking_service.update_booking(db, booking_id, body, actor_id=actor_id)


@router.put(
    "/{booking_id}/cancel",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Cancel an upcoming booking",
)
async def cancel_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor_id: uuid.UUID | None = Depends(get_actor_id),
) -> Response:
    """Cancel a pending or confirmed booking that has not started yet."""
    await booking_service.cancel_booking(db, booking_id, actor_id=actor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{booking_id}/history",
    response_model=list[BookingHistoryResponse],
    summary="Get the audit trail of a booking",
)
async def get_booking_history(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> list[BookingHistory]:
    return await booking_service.get_booking_history(db, booking_id)
