import asyncio
import datetime
import logging
import math
import random
import threading
from typing import List, Optional, Set

from . import queries
from .cache import BOOKING_KEY_PREFIX, InMemoryCache, booking_cache_key
from .config import Settings
from .exceptions import InternalError, InvalidTransitionError, ValidationError
from .models import Booking, BookingStatus, utcnow
from .store import BookingStore

logger = logging.getLogger("booking_service")

CANNOT_CANCEL_CONFIRMED = "cannot cancel a confirmed booking"


class BookingService:
    """
    Coordinates the store and the cache for the four booking operations and
    owns the credit check tasks.

    Every status change (cancel, credit check, expiry) runs under one lock
    that spans the store write and the cache write, so the two never disagree
    about a booking's status once the lock is released. Cache misses fill the
    cache under the same lock, which keeps a slow reader from putting back a
    value that a status change has already replaced.
    """

    def __init__(
            self,
            store: BookingStore,
            cache: InMemoryCache,
            high_value_threshold: float = 50000,
            credit_check_delay: float = 5.0,
            credit_rejection_rate: float = 0.3,
            pending_timeout: float = 300,
            rng: Optional[random.Random] = None,
    ):
        self._store = store
        self._cache = cache
        self.high_value_threshold = high_value_threshold
        self.credit_check_delay = credit_check_delay
        self.credit_rejection_rate = credit_rejection_rate
        self.pending_timeout = datetime.timedelta(seconds=pending_timeout)
        self._rng = rng or random.Random()

        self._status_lock = threading.RLock()
        self._credit_tasks: Set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, store: BookingStore, cache: InMemoryCache, config: Settings) -> "BookingService":
        return cls(
            store,
            cache,
            high_value_threshold=config.HIGH_VALUE_THRESHOLD,
            credit_check_delay=config.CREDIT_CHECK_DELAY_SECONDS,
            credit_rejection_rate=config.CREDIT_REJECTION_RATE,
            pending_timeout=config.PENDING_TIMEOUT_SECONDS,
        )

    @property
    def pending_credit_checks(self) -> int:
        return len(self._credit_tasks)

    # --- Foreground operations ---

    async def create_booking(self, user_id: int, service_id: int, price: float) -> Booking:
        if user_id <= 0 or service_id <= 0 or not (price > 0) or not math.isfinite(price):
            raise ValidationError("UserID, ServiceID, and Price are required and must be positive values")

        now = utcnow()
        booking = self._store.create(
            Booking(user_id=user_id, service_id=service_id, price=price, created_at=now, updated_at=now)
        )
        self._cache.set(booking_cache_key(booking.id), booking.copy())
        logger.info(f"Created booking {booking.id} for user {user_id} (price {price}).")

        if booking.is_high_value(self.high_value_threshold):
            self._spawn_credit_check(booking.id)

        return booking

    async def get_booking_by_id(self, booking_id: int) -> Booking:
        return self._lookup(booking_id)

    async def get_all_bookings(self, sort: str = "", high_value_only: bool = False) -> List[Booking]:
        store_bookings = self._store.get_all()

        cached_bookings = []
        for key, value in self._cache.get_all().items():
            if not key.startswith(BOOKING_KEY_PREFIX):
                continue
            if not isinstance(value, Booking):
                raise InternalError(f"Cache entry {key} does not hold a booking")
            cached_bookings.append(value.copy())

        bookings = queries.merge_bookings(store_bookings, cached_bookings)

        if high_value_only:
            bookings = queries.filter_high_value_bookings(bookings, self.high_value_threshold)

        return queries.sort_bookings(bookings, sort)

    async def cancel_booking(self, booking_id: int) -> Booking:
        with self._status_lock:
            booking = self._lookup(booking_id)

            # Rejected and already-canceled bookings may still be canceled
            if booking.status == BookingStatus.CONFIRMED:
                raise InvalidTransitionError(CANNOT_CANCEL_CONFIRMED)

            booking.status = BookingStatus.CANCELED
            booking.updated_at = utcnow()
            canceled = self._write_through(booking)

        logger.info(f"Booking {booking_id} canceled.")
        return canceled

    # --- Background work ---

    async def run_credit_check(self, booking_id: int) -> Optional[Booking]:
        """
        Simulates an external credit check: waits, then confirms the booking
        or (with probability credit_rejection_rate) rejects it.

        Only a booking that is still pending is resolved. If the user or the
        expiry sweep canceled it in the meantime the result is dropped.
        Errors are logged and never reach a caller.
        """
        await asyncio.sleep(self.credit_check_delay)

        outcome = BookingStatus.CONFIRMED
        if self._rng.random() < self.credit_rejection_rate:
            outcome = BookingStatus.REJECTED

        try:
            resolved = self._resolve_pending(booking_id, outcome)
        except Exception as e:
            logger.error(f"Credit check failed for booking {booking_id}: {e}")
            return None

        if resolved is None:
            logger.info(f"Credit check for booking {booking_id} skipped: booking is no longer pending.")
        else:
            logger.info(f"Credit check completed for booking {booking_id}. Status: {outcome.value}")
        return resolved

    def expire_pending_bookings(self, now: Optional[datetime.datetime] = None) -> int:
        """
        Cancels every booking that has been pending for longer than the
        timeout. Walks the store only; the cache is refreshed per booking as
        part of the same update. Returns how many bookings were expired.
        """
        now = now or utcnow()
        expired_count = 0

        for booking in self._store.get_all():
            if booking.status != BookingStatus.PENDING:
                continue
            if now - booking.created_at <= self.pending_timeout:
                continue

            try:
                if self._resolve_pending(booking.id, BookingStatus.CANCELED, now=now) is None:
                    continue
            except Exception as e:
                logger.error(f"Error updating expired booking {booking.id}: {e}")
                continue

            expired_count += 1
            logger.info(f"Booking {booking.id} expired after staying pending since {booking.created_at}.")

        return expired_count

    async def shutdown(self) -> None:
        """Cancels the credit checks that are still waiting and waits for them to finish."""
        tasks = list(self._credit_tasks)
        if not tasks:
            return

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"Cancelled {len(tasks)} in-flight credit checks.")

    # --- Internals ---

    def _spawn_credit_check(self, booking_id: int) -> None:
        task = asyncio.create_task(self.run_credit_check(booking_id), name=f"credit-check-{booking_id}")
        # Keep a strong reference until the task is done
        self._credit_tasks.add(task)
        task.add_done_callback(self._credit_tasks.discard)
        logger.info(f"Scheduled credit check for high-value booking {booking_id}.")

    def _cached(self, booking_id: int) -> Optional[Booking]:
        key = booking_cache_key(booking_id)
        value, found = self._cache.get(key)
        if not found:
            return None
        if not isinstance(value, Booking):
            raise InternalError(f"Cache entry {key} does not hold a booking")
        return value.copy()

    def _lookup(self, booking_id: int) -> Booking:
        booking = self._cached(booking_id)
        if booking is not None:
            logger.debug(f"Cache hit for booking {booking_id}")
            return booking

        with self._status_lock:
            # Another reader may have filled it while we waited
            booking = self._cached(booking_id)
            if booking is not None:
                return booking

            logger.debug(f"Cache miss for booking {booking_id}, reading store")
            booking = self._store.get_by_id(booking_id)
            self._cache.set(booking_cache_key(booking_id), booking.copy())
            return booking

    def _write_through(self, booking: Booking) -> Booking:
        # Caller holds _status_lock
        updated = self._store.update(booking)
        self._cache.set(booking_cache_key(updated.id), updated.copy())
        return updated

    def _resolve_pending(
            self,
            booking_id: int,
            status: BookingStatus,
            now: Optional[datetime.datetime] = None,
    ) -> Optional[Booking]:
        with self._status_lock:
            booking = self._store.get_by_id(booking_id)
            if booking.status != BookingStatus.PENDING:
                return None

            booking.status = status
            booking.updated_at = now or utcnow()
            return self._write_through(booking)
