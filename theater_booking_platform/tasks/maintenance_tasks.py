"""
Periodic maintenance tasks.
"""

import asyncio
import logging

from .celery_app import celery_app
from ..database import close_database, get_db_session, init_database
from ..services.retention_service import RetentionService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="purge_expired_bookings_task")
def purge_expired_bookings_task(self):
    """
    Periodic task removing visitor data of shows past the retention window.

    Runs once a day from the beat schedule. Shows stay; their bookings,
    seat assignments and history go. Nobody is notified.
    """

    async def _purge():
        await init_database()
        try:
            logger.info("Starting retention purge task")
            async with get_db_session() as session:
                result = await RetentionService(session).purge_expired_bookings()
            logger.info(
                f"Retention purge removed {result['deletedBookings']} bookings and "
                f"{result['deletedSeats']} seats of {len(result['affectedShows'])} shows"
            )
            return {
                "deleted_bookings": result["deletedBookings"],
                "deleted_seats": result["deletedSeats"],
                "affected_shows": len(result["affectedShows"]),
            }
        finally:
            await close_database()

    # Engine and pool belong to this loop and are disposed with it
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(_purge())
    finally:
        loop.close()
