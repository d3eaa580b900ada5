"""
Forward address search for the pin form.

Free-text queries are sent to Nominatim's search endpoint and turned into
(display name, coordinate) suggestions. Search is best effort: short
queries, transport problems and malformed answers all yield an empty list.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings, get_settings
from ..exceptions import InvalidCoordinateError
from ..models.coordinates import Coordinate, validate_coordinate
from .admission_limiter import ConcurrencyLimiter
from .providers import ProviderRequest, default_headers

logger = logging.getLogger(__name__)

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"


@dataclass(frozen=True)
class AddressMatch:
    """One search suggestion"""
    display_name: str
    coordinate: Coordinate


def nominatim_search_request(query: str, user_agent: str, limit: int = 5,
                             url: str = NOMINATIM_SEARCH_URL) -> ProviderRequest:
    return ProviderRequest(
        url=url,
        params={"q": query, "format": "json", "limit": limit},
        headers=default_headers(user_agent),
    )


def extract_search_results(payload: Any) -> List[AddressMatch]:
    """
    Read a Nominatim search answer.

    Entries without a display name or with an unusable lat/lon are skipped.

    Raises:
        ValueError: if the payload is not a JSON array
    """
    if not isinstance(payload, list):
        raise ValueError(f"expected a JSON array, got {type(payload).__name__}")

    matches = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        name = item.get("display_name")
        if not isinstance(name, str) or not name.strip():
            continue
        try:
            coordinate = validate_coordinate(item.get("lat"), item.get("lon"))
        except InvalidCoordinateError as e:
            logger.debug(f"Skipping search result {name!r}: {e.reason}")
            continue
        matches.append(AddressMatch(display_name=name.strip(), coordinate=coordinate))
    return matches


class AddressSearch:
    """Nominatim address lookup with a minimum query length and debounced suggestions"""

    def __init__(
        self,
        user_agent: str,
        limit: int = 5,
        min_query_length: int = 3,
        debounce: float = 0.5,
        timeout: float = 5.0,
        limiter: Optional[ConcurrencyLimiter] = None,
        url: str = NOMINATIM_SEARCH_URL,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.user_agent = user_agent
        self.limit = limit
        self.min_query_length = min_query_length
        self.debounce = debounce
        self.timeout = timeout
        self.limiter = limiter if limiter is not None else ConcurrencyLimiter()
        self.url = url
        self._client = client
        self._owns_client = client is None
        self._generation = 0
        self.stats = {"searches": 0, "skipped": 0, "superseded": 0, "failures": 0}

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None,
                      client: Optional[httpx.AsyncClient] = None,
                      limiter: Optional[ConcurrencyLimiter] = None) -> "AddressSearch":
        """Pass the resolver's limiter to share its request budget"""
        settings = settings or get_settings()
        if limiter is None:
            limiter = ConcurrencyLimiter(
                max_concurrent=settings.GEOCODING_MAX_CONCURRENT,
                retry_delay=settings.retry_delay,
            )
        return cls(
            settings.GEOCODING_USER_AGENT,
            limit=settings.GEOCODING_SEARCH_LIMIT,
            min_query_length=settings.GEOCODING_SEARCH_MIN_QUERY_LENGTH,
            debounce=settings.GEOCODING_SEARCH_DEBOUNCE,
            timeout=settings.GEOCODING_TIMEOUT_SECONDS,
            limiter=limiter,
            url=settings.GEOCODING_SEARCH_URL,
            client=client,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy initialization of HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def search(self, query: Any) -> List[AddressMatch]:
        """Look up a query right away; returns [] on any failure"""
        if not isinstance(query, str) or len(query.strip()) < self.min_query_length:
            self.stats["skipped"] += 1
            return []

        query = query.strip()
        request = nominatim_search_request(query, self.user_agent, self.limit, self.url)
        self.stats["searches"] += 1

        try:
            async with self.limiter.slot():
                response = await asyncio.wait_for(
                    self.client.get(request.url, params=request.params, headers=request.headers),
                    timeout=self.timeout,
                )
            response.raise_for_status()
            matches = extract_search_results(response.json())
        except (asyncio.TimeoutError, httpx.HTTPError, ValueError) as e:
            self.stats["failures"] += 1
            logger.warning(f"Address search failed for {query!r}: {e}")
            return []

        logger.debug(f"Address search for {query!r} returned {len(matches)} results")
        return matches

    async def suggest(self, query: Any) -> List[AddressMatch]:
        """
        Debounced search for search-as-you-type input.

        Waits `debounce` seconds first; if a newer suggest() call arrives in
        the meantime this one returns [] without touching the network.
        """
        self._generation += 1
        generation = self._generation
        if self.debounce > 0:
            await asyncio.sleep(self.debounce)
        if generation != self._generation:
            self.stats["superseded"] += 1
            return []
        return await self.search(query)

    def get_statistics(self) -> Dict[str, int]:
        return dict(self.stats)

    async def close(self):
        """Close the HTTP client if this search created it"""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
