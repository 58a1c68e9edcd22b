"""Seed the database with demo properties and bookings.

Bookings go through ``booking_service.create_booking`` so the seeded data
respects the same overlap rules as the API. Past stays are then closed out
with the completion sweep.

Run from the project root:
    python -m scripts.seed_data
"""

import asyncio
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

# Add project root to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import delete, select

from app.database import async_session_factory, engine
from app.models.property import Property
from app.schemas.booking import BookingCreate, BookingGuestCreate
from app.services.booking_service import complete_finished_bookings, create_booking

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

PROPERTIES = [
    {
        "name": "Harbour View Apartment",
        "address": "12 Quay Street, Auckland",
        "property_type": "Apartment",
        "max_guests": 4,
        "description": "Two-bedroom apartment overlooking the harbour, walking distance to the ferry terminal.",
    },
    {
        "name": "Garden Cottage",
        "address": "3 Orchard Lane, Hawke's Bay",
        "property_type": "Cottage",
        "max_guests": 2,
        "description": "Quiet one-bedroom cottage in a working orchard. Breakfast basket on arrival.",
    },
    {
        "name": "Lakeside Cabin",
        "address": "88 Shore Road, Taupo",
        "property_type": "Cabin",
        "max_guests": 6,
        "description": "Timber cabin with a private jetty, wood burner, and kayaks.",
    },
]

GUESTS = [
    ("Emma Thompson", "P1234567", "+61412345678", "emma.thompson@example.com"),
    ("James Wilson", "P2345678", "+447911123456", "j.wilson@example.com"),
    ("Sarah Chen", "P3456789", "+14155551234", None),
    ("Klaus Mueller", "P4567890", "+491711234567", "k.mueller@example.com"),
    ("Marie Dubois", "P5678901", "+33612345678", None),
    ("Yuki Tanaka", "P6789012", "+819012345678", "yuki.tanaka@example.com"),
]

# (offset of check-in from today, nights, guest count, status, rate per night)
STAY_PLAN = [
    (-40, 4, 2, "confirmed", Decimal("180.00")),
    (-20, 3, 1, "confirmed", Decimal("180.00")),
    (-5, 3, 2, "confirmed", Decimal("180.00")),
    (2, 5, 3, "confirmed", Decimal("180.00")),
    (7, 2, 2, "pending", Decimal("180.00")),  # checks in on the previous checkout day
    (21, 7, 4, "confirmed", Decimal("165.00")),
]


def _build_bookings(prop: Property, today: date, guest_offset: int) -> list[BookingCreate]:
    bookings = []
    for index, (offset, nights, guests, status, rate) in enumerate(STAY_PLAN):
        name, id_card, phone, email = GUESTS[(index + guest_offset) % len(GUESTS)]
        guest_count = min(guests, prop.max_guests)
        check_in = today + timedelta(days=offset)
        bookings.append(
            BookingCreate(
                property_id=prop.id,
                guest_name=name,
                guest_id_card=id_card,
                guest_contact_number=phone,
                guest_email=email,
                check_in_date=check_in,
                check_out_date=check_in + timedelta(days=nights),
                number_of_guests=guest_count,
                booking_status=status,
                booking_amount=rate * nights,
                additional_guests=[
                    BookingGuestCreate(guest_name=f"{name.split()[0]}'s companion {n}", guest_age=30 + n)
                    for n in range(1, guest_count)
                ],
            )
        )
    return bookings


async def seed() -> None:
    """Populate the database with demo data.

    Idempotent: deletes the demo properties (cascading to their bookings)
    before re-creating them.
    """
    async with async_session_factory() as session:
        names = [p["name"] for p in PROPERTIES]
        existing = await session.execute(select(Property.id).where(Property.name.in_(names)))
        if existing.first() is not None:
            print("⚠️  Demo properties already exist. Deleting and re-seeding...")
            await session.execute(delete(Property).where(Property.name.in_(names)))
            await session.flush()

        today = date.today()
        booking_count = 0
        created_properties: list[Property] = []
        for index, prop_data in enumerate(PROPERTIES):
            prop = Property(**prop_data)
            session.add(prop)
            await session.flush()
            created_properties.append(prop)
            print(f"   🏠 {prop.name}, {prop.address} (max {prop.max_guests} guests)")

            for body in _build_bookings(prop, today, guest_offset=index):
                await create_booking(session, body)
                booking_count += 1

        completed = await complete_finished_bookings(session, today=today)
        await session.commit()

        print(f"✅ Created {booking_count} bookings ({completed} already completed)")
        print()
        print("=" * 60)
        print("📊 Seed Summary")
        print("=" * 60)
        print(f"   Properties:    {len(created_properties)}")
        print(f"   Bookings:      {booking_count}")
        print("=" * 60)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
