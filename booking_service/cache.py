import threading
from typing import Any, Dict, Tuple

BOOKING_KEY_PREFIX = "booking:"


def booking_cache_key(booking_id: int) -> str:
    return f"{BOOKING_KEY_PREFIX}{booking_id}"


class InMemoryCache:
    """
    Plain key -> value table guarded by one lock.
    It has no expiry or eviction of its own; the service decides what lives here.
    """

    def __init__(self):
        self._data: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def get(self, key: str) -> Tuple[Any, bool]:
        with self._lock:
            if key in self._data:
                return self._data[key], True
            return None, False

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def get_all(self) -> Dict[str, Any]:
        # Snapshot, so callers can iterate while other tasks keep writing
        with self._lock:
            return dict(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
