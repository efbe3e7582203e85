class BookingError(Exception):
    """Base class for every error raised by the booking core."""


class ValidationError(BookingError):
    """Caller input is malformed (non-positive ids or price)."""


class NotFoundError(BookingError):
    """The referenced booking does not exist."""

    def __init__(self, booking_id: int):
        self.booking_id = booking_id
        super().__init__("booking not found")


class InvalidTransitionError(BookingError):
    """A status change breaks a business rule."""


class InternalError(BookingError):
    """Store or cache returned something it should not have."""
