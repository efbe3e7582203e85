import asyncio
import logging

from .service import BookingService

# Get the logger
logger = logging.getLogger("booking_scheduler")


async def check_and_expire_pending_bookings(service: BookingService) -> int:
    """
    Runs one expiry pass: bookings still pending after the timeout are canceled.
    """
    logger.info("Checking for pending bookings past their timeout...")

    expired_count = service.expire_pending_bookings()

    if expired_count == 0:
        logger.info("No expired bookings found.")
    else:
        logger.info(f"Auto-canceled {expired_count} expired bookings.")
    return expired_count


async def run_booking_scheduler(service: BookingService, poll_interval: float = 60):
    """
    Main background loop for the expiry sweep. Runs until the task is cancelled.
    """
    try:
        while True:
            # The first pass happens one interval after startup, not at boot
            await asyncio.sleep(poll_interval)

            logger.info("Scheduler waking up to check for expired bookings...")
            try:
                await check_and_expire_pending_bookings(service)
            except Exception as e:
                logger.error(f"Error in booking scheduler loop: {e}")
    except asyncio.CancelledError:
        logger.info("Booking scheduler task cancelled.")
        raise
