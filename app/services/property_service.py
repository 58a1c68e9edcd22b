"""Property service: plain CRUD for bookable units."""

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.property import Property
from app.schemas.property import PropertyCreate
from app.services.errors import NotFoundError

logger = logging.getLogger(__name__)


async def list_properties(db: AsyncSession) -> list[Property]:
    result = await db.execute(select(Property).order_by(Property.name))
    return list(result.scalars().all())


async def get_property(db: AsyncSession, property_id: uuid.UUID) -> Property:
    result = await db.execute(select(Property).where(Property.id == property_id))
    prop = result.scalar_one_or_none()
    if prop is None:
        raise NotFoundError(f"Property {property_id} not found")
    return prop


async def create_property(db: AsyncSession, body: PropertyCreate) -> Property:
    prop = Property(**body.model_dump())
    db.add(prop)
    await db.flush()
    await db.refresh(prop)
    logger.info("Created property %s (%s)", prop.id, prop.name)
    return prop


async def delete_property(db: AsyncSession, property_id: uuid.UUID) -> None:
    """Delete a property; the database cascades to its bookings and their guests."""
    result = await db.execute(delete(Property).where(Property.id == property_id))
    if result.rowcount == 0:
        raise NotFoundError(f"Property {property_id} not found")
    logger.info("Deleted property %s and its bookings", property_id)
