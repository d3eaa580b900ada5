"""In-memory cache of resolved locations keyed by quantized coordinate"""
import logging
from typing import Dict, Optional

from ..models import ResolvedLocation

logger = logging.getLogger(__name__)


class ResolutionCache:
    """
    Unbounded, process-lifetime mapping from cache key to resolved location.

    Only successful resolutions are stored. The resolver runs on a single
    event loop, so get/put need no locking.
    """

    def __init__(self):
        self._entries: Dict[str, ResolvedLocation] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[ResolvedLocation]:
        location = self._entries.get(key)
        if location is None:
            self.misses += 1
        else:
            self.hits += 1
        return location

    def put(self, key: str, location: ResolvedLocation) -> None:
        self._entries[key] = location
        logger.debug(f"Cached location for {key}: {location.label}")

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get_statistics(self) -> Dict:
        lookups = self.hits + self.misses
        return {
            "entries": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": (self.hits / lookups) * 100 if lookups else 0.0,
        }
