import asyncio
import datetime
from unittest.mock import MagicMock

import pytest

from booking_service import booking_scheduler
from booking_service.models import Booking, BookingStatus, utcnow
from booking_service.service import BookingService


@pytest.mark.asyncio
async def test_check_and_expire_returns_count():
    mock_service = MagicMock(spec=BookingService)
    mock_service.expire_pending_bookings.return_value = 3

    expired = await booking_scheduler.check_and_expire_pending_bookings(mock_service)

    assert expired == 3
    mock_service.expire_pending_bookings.assert_called_once_with()


@pytest.mark.asyncio
async def test_scheduler_keeps_running_after_errors(caplog):
    """A failing pass is logged and the loop goes on to the next one."""
    calls = []

    def expire():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("sweep exploded")
        return 0

    mock_service = MagicMock(spec=BookingService)
    mock_service.expire_pending_bookings.side_effect = expire

    task = asyncio.create_task(booking_scheduler.run_booking_scheduler(mock_service, poll_interval=0.01))
    await asyncio.sleep(0.1)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(calls) >= 2
    assert "Error in booking scheduler loop: sweep exploded" in caplog.text


@pytest.mark.asyncio
async def test_scheduler_waits_one_interval_before_first_pass():
    """Nothing is expired at startup; the first pass comes after poll_interval."""
    mock_service = MagicMock(spec=BookingService)
    mock_service.expire_pending_bookings.return_value = 0

    task = asyncio.create_task(booking_scheduler.run_booking_scheduler(mock_service, poll_interval=3600))
    await asyncio.sleep(0.05)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    mock_service.expire_pending_bookings.assert_not_called()


@pytest.mark.asyncio
async def test_scheduler_expires_old_bookings(service: BookingService, store):
    long_ago = utcnow() - datetime.timedelta(minutes=10)
    old_pending = store.create(Booking(user_id=1, service_id=2, price=100, created_at=long_ago, updated_at=long_ago))
    fresh = store.create(Booking(user_id=1, service_id=2, price=100))

    expired = await booking_scheduler.check_and_expire_pending_bookings(service)

    assert expired == 1
    assert store.get_by_id(old_pending.id).status == BookingStatus.CANCELED
    assert store.get_by_id(fresh.id).status == BookingStatus.PENDING
