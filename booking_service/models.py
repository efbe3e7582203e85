import datetime
from dataclasses import dataclass, field, replace
from enum import Enum


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class BookingStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    CANCELED = "canceled"


@dataclass
class Booking:
    # These are just IDs from other services.
    user_id: int
    service_id: int
    price: float

    # Assigned by the store on create
    id: int = 0
    status: BookingStatus = BookingStatus.PENDING

    created_at: datetime.datetime = field(default_factory=utcnow)
    updated_at: datetime.datetime = field(default_factory=utcnow)

    def copy(self) -> "Booking":
        return replace(self)

    def is_high_value(self, threshold: float) -> bool:
        return self.price > threshold
