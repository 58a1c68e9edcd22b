"""Shared API dependencies: single import point for all routers.

Re-exports the database session dependency and provides the acting-user
dependency so router modules can import everything they need from one place::

    from app.api.deps import get_actor_id, get_db
"""

import uuid

from fastapi import Header

from app.database import get_db


async def get_actor_id(
    x_user_id: uuid.UUID | None = Header(
        None,
        description="UUID of the acting user, supplied by the identity layer in front of this service",
    ),
) -> uuid.UUID | None:
    """Return the acting user's id, or ``None`` when the caller is anonymous.

    Staybook does not authenticate callers; an upstream gateway is expected
    to verify identity and forward it in ``X-User-ID``.
    """
    return x_user_id


__all__ = [
    "get_actor_id",
    "get_db",
]
