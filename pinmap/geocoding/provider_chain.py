"""
Ordered fallback chain over reverse geocoding providers.

Providers are tried strictly one after another, never in parallel. Every
per-provider failure is logged and swallowed; only total exhaustion is
reported to the caller.
"""
import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..exceptions import (
    AllProvidersExhausted,
    ProviderError,
    ProviderHttpError,
    ProviderParseError,
    ProviderTimeoutError,
)
from ..location_names import DEFAULT_UNKNOWN_LABEL, normalize_location_name
from ..logging_config import get_provider_logger
from ..models import ResolvedLocation
from ..models.coordinates import Coordinate
from .admission_limiter import ConcurrencyLimiter
from .providers import ProviderSpec

logger = logging.getLogger(__name__)


class ProviderChain:
    """Walks providers in priority order until one yields a location"""

    def __init__(
        self,
        providers: Sequence[ProviderSpec],
        limiter: Optional[ConcurrencyLimiter] = None,
        timeout: float = 5.0,
        advance_delay: float = 1.0,
        unknown_label: str = DEFAULT_UNKNOWN_LABEL,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            providers: Providers to try, highest priority first
            limiter: Admission limiter; each attempt holds one slot
            timeout: Per-attempt timeout in seconds
            advance_delay: Pause before moving on to the next provider
            unknown_label: Sentinel for place names a provider leaves empty
            client: Shared HTTP client; created lazily when omitted
        """
        self.providers = list(providers)
        self.limiter = limiter if limiter is not None else ConcurrencyLimiter()
        self.timeout = timeout
        self.advance_delay = advance_delay
        self.unknown_label = unknown_label
        self._client = client
        self._owns_client = client is None
        self.provider_stats = {p.name: {"attempts": 0, "successes": 0} for p in self.providers}

        logger.info(f"ProviderChain initialized with {len(self.providers)} providers: "
                    f"{[p.name for p in self.providers]}")

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy initialization of HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def resolve(self, coordinate: Coordinate) -> ResolvedLocation:
        """
        Resolve a coordinate through the first provider that succeeds.

        Raises:
            AllProvidersExhausted: if every provider failed
        """
        failures: List[ProviderError] = []

        for i, provider in enumerate(self.providers):
            if i > 0 and self.advance_delay > 0:
                await asyncio.sleep(self.advance_delay)

            self.provider_stats[provider.name]["attempts"] += 1
            plog = get_provider_logger(provider.name, coordinate.as_tuple())
            plog.debug(f"Trying provider {i + 1}/{len(self.providers)}: {provider.name}")

            try:
                location = await self._attempt(provider, coordinate)
            except ProviderError as e:
                plog.warning(str(e))
                failures.append(e)
                continue
            except Exception as e:
                plog.warning(f"Provider {provider.name} failed unexpectedly: {e}")
                failures.append(ProviderError(f"Provider {provider.name} failed: {e}", provider=provider.name))
                continue

            self.provider_stats[provider.name]["successes"] += 1
            plog.info(f"Resolved ({coordinate.latitude}, {coordinate.longitude}) to {location.label}")
            return location

        logger.info(f"All {len(self.providers)} providers failed for coordinate "
                    f"({coordinate.latitude}, {coordinate.longitude})")
        raise AllProvidersExhausted(coordinate.latitude, coordinate.longitude, failures)

    async def _attempt(self, provider: ProviderSpec, coordinate: Coordinate) -> ResolvedLocation:
        request = provider.build_request(coordinate)

        async with self.limiter.slot():
            start_time = time.perf_counter()
            try:
                response = await asyncio.wait_for(
                    self.client.get(request.url, params=request.params, headers=request.headers),
                    timeout=self.timeout,
                )
            except (asyncio.TimeoutError, httpx.TimeoutException):
                raise ProviderTimeoutError(provider.name, self.timeout)
            except httpx.HTTPError as e:
                raise ProviderHttpError(provider.name, detail=str(e))
            elapsed_ms = (time.perf_counter() - start_time) * 1000

        logger.debug(
            f"{provider.name} answered HTTP {response.status_code}",
            extra={"provider": provider.name, "response_time_ms": round(elapsed_ms, 1)}
        )

        if not response.is_success:
            raise ProviderHttpError(provider.name, status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderParseError(provider.name, f"invalid JSON ({e})")

        try:
            city, country = provider.extract(payload)
        except Exception as e:
            raise ProviderParseError(provider.name, str(e))

        return ResolvedLocation(
            city=normalize_location_name(city, self.unknown_label),
            country=normalize_location_name(country, self.unknown_label),
        )

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "total_providers": len(self.providers),
            "provider_stats": self.provider_stats,
            "success_rates": {
                name: (stats["successes"] / max(stats["attempts"], 1)) * 100
                for name, stats in self.provider_stats.items()
            },
        }

    async def close(self):
        """Close the HTTP client if this chain created it"""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
