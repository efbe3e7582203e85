from typing import Dict, Iterable, List

from .models import Booking


def merge_bookings(store_bookings: Iterable[Booking], cached_bookings: Iterable[Booking]) -> List[Booking]:
    """
    Merges store and cache listings into one list without duplicate ids.

    When an id is present in both, the store's copy wins: the store is the
    source of truth and the cache only ever holds what the service last wrote.
    The result is ordered by id.
    """
    merged: Dict[int, Booking] = {b.id: b for b in cached_bookings}
    merged.update({b.id: b for b in store_bookings})
    return [merged[booking_id] for booking_id in sorted(merged)]


def filter_high_value_bookings(bookings: Iterable[Booking], threshold: float) -> List[Booking]:
    # Strictly greater: a booking priced exactly at the threshold is not high value
    return [b for b in bookings if b.is_high_value(threshold)]


def sort_bookings_by_price(bookings: List[Booking]) -> List[Booking]:
    return sorted(bookings, key=lambda b: b.price)


def sort_bookings_by_date(bookings: List[Booking]) -> List[Booking]:
    return sorted(bookings, key=lambda b: b.created_at)


SORTERS = {
    "price": sort_bookings_by_price,
    "date": sort_bookings_by_date,
}


def sort_bookings(bookings: List[Booking], sort: str) -> List[Booking]:
    """Sorts ascending by the named field; unknown or empty keys leave the order alone."""
    sorter = SORTERS.get(sort or "")
    if sorter is None:
        return list(bookings)
    return sorter(bookings)
