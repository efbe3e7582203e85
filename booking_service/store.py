import datetime
import threading
from typing import Dict, List, Optional

from .exceptions import NotFoundError
from .models import Booking, BookingStatus, utcnow

DEMO_BOOKING_COUNT = 10


class BookingStore:
    """
    Authoritative in-memory table of bookings keyed by id.

    A single lock covers the whole table. Every record handed in or out is
    a copy, so callers can never mutate stored state behind the lock.
    """

    def __init__(self):
        self._records: Dict[int, Booking] = {}
        self._lock = threading.Lock()
        self._next_id = 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def create(self, booking: Booking) -> Booking:
        """
        Stores a new booking under the next sequential id.
        The status is always forced to pending.
        """
        with self._lock:
            stored = booking.copy()
            stored.id = self._next_id
            stored.status = BookingStatus.PENDING
            self._next_id += 1
            self._records[stored.id] = stored
            return stored.copy()

    def get_by_id(self, booking_id: int) -> Booking:
        with self._lock:
            booking = self._records.get(booking_id)
            if booking is None:
                raise NotFoundError(booking_id)
            return booking.copy()

    def get_all(self) -> List[Booking]:
        with self._lock:
            return [b.copy() for b in self._records.values()]

    def update(self, booking: Booking) -> Booking:
        """
        Replaces the stored booking with the same id.
        The original created_at is kept whatever the caller passes in.
        """
        with self._lock:
            existing = self._records.get(booking.id)
            if existing is None:
                raise NotFoundError(booking.id)

            stored = booking.copy()
            stored.created_at = existing.created_at
            self._records[stored.id] = stored
            return stored.copy()

    def load_demo_bookings(self, now: Optional[datetime.datetime] = None) -> List[Booking]:
        """
        Loads bookings 1-10 with prices 10000..100000.
        Every third one is confirmed, every fifth one rejected, the rest pending.
        """
        now = now or utcnow()
        with self._lock:
            if self._records:
                raise RuntimeError("Demo bookings can only be loaded into an empty store")

            for i in range(1, DEMO_BOOKING_COUNT + 1):
                status = BookingStatus.PENDING
                if i % 3 == 0:
                    status = BookingStatus.CONFIRMED
                elif i % 5 == 0:
                    status = BookingStatus.REJECTED

                self._records[i] = Booking(
                    id=i,
                    user_id=100 + i,
                    service_id=200 + i,
                    price=float(i * 10000),
                    status=status,
                    created_at=now - datetime.timedelta(hours=i),
                    updated_at=now,
                )

            self._next_id = DEMO_BOOKING_COUNT + 1
            return [b.copy() for b in self._records.values()]
