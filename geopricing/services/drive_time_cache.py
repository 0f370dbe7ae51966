"""In-memory drive-time cache with a fixed TTL.

Owned by the caller and passed to the maps service; there is no
module-level instance.
"""

import time
from typing import Callable, Dict, Optional, Tuple

from geopricing.models.geometry import Coordinate
from geopricing.models.location import DriveTimeResult

DEFAULT_TTL_SECONDS = 900


def cache_key(origin: Coordinate, destination: Coordinate) -> str:
    """Key rounded to 4 decimal places (~11 m) so nearby lookups share entries."""
    return (
        f"drivetime:{origin.lat:.4f},{origin.lng:.4f}:"
        f"{destination.lat:.4f},{destination.lng:.4f}"
    )


class DriveTimeCache:
    """TTL cache for DriveTimeResult keyed by origin/destination."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, DriveTimeResult]] = {}

    def get(self, origin: Coordinate, destination: Coordinate) -> Optional[DriveTimeResult]:
        """Cached result marked from_cache, or None if absent or expired."""
        key = cache_key(origin, destination)
        entry = self._entries.get(key)
        if entry is None:
            return None

        stored_at, result = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return result.model_copy(update={"from_cache": True})

    def set(self, origin: Coordinate, destination: Coordinate, result: DriveTimeResult) -> None:
        self._entries[cache_key(origin, destination)] = (self._clock(), result)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
