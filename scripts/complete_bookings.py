"""Mark confirmed bookings whose checkout day has arrived as completed.

Meant to run once a day from cron or a scheduler, from the project root:
    python -m scripts.complete_bookings
    python -m scripts.complete_bookings --as-of 2026-01-31
"""

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

# Add project root to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.config import settings
from app.database import async_session_factory, engine
from app.services.booking_service import complete_finished_bookings

logger = logging.getLogger("scripts.complete_bookings")


async def run(as_of: date | None) -> int:
    async with async_session_factory() as session:
        try:
            count = await complete_finished_bookings(session, today=as_of)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
    await engine.dispose()
    return count


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Treat this YYYY-MM-DD as today (defaults to the current date)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    count = asyncio.run(run(args.as_of))
    logger.info("Sweep finished: %d booking(s) completed", count)


if __name__ == "__main__":
    main()
