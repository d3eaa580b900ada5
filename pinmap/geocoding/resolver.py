"""
Geocoding resolver: validation, cache, admission control and provider
fallback combined into one subscribable lookup.
"""
import asyncio
import functools
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Set, Tuple

import httpx

from ..config import Settings, get_settings
from ..exceptions import AllProvidersExhausted, GeocodingError, InvalidCoordinateError
from ..models import ResolvedLocation
from ..models.coordinates import Coordinate, make_cache_key, validate_coordinate
from .admission_limiter import ConcurrencyLimiter
from .provider_chain import ProviderChain
from .providers import default_providers
from .resolution_cache import ResolutionCache

logger = logging.getLogger(__name__)

LOADING_LABEL = "Loading..."
UNAVAILABLE_LABEL = "Location unavailable"
INVALID_COORDINATES_LABEL = "Invalid coordinates"


class ResolutionStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class ResolutionState:
    status: ResolutionStatus
    location: Optional[ResolvedLocation] = None
    error: Optional[GeocodingError] = None

    @classmethod
    def idle(cls) -> "ResolutionState":
        return cls(ResolutionStatus.IDLE)

    @classmethod
    def loading(cls) -> "ResolutionState":
        return cls(ResolutionStatus.LOADING)

    @classmethod
    def resolved(cls, location: ResolvedLocation) -> "ResolutionState":
        return cls(ResolutionStatus.RESOLVED, location=location)

    @classmethod
    def failed(cls, error: GeocodingError) -> "ResolutionState":
        return cls(ResolutionStatus.FAILED, error=error)

    @property
    def is_settled(self) -> bool:
        return self.status in (ResolutionStatus.RESOLVED, ResolutionStatus.FAILED)

    @property
    def label(self) -> str:
        """User-facing text; never exposes raw provider errors"""
        if self.status == ResolutionStatus.RESOLVED:
            return self.location.label
        if self.status == ResolutionStatus.FAILED:
            if isinstance(self.error, InvalidCoordinateError):
                return INVALID_COORDINATES_LABEL
            return UNAVAILABLE_LABEL
        if self.status == ResolutionStatus.LOADING:
            return LOADING_LABEL
        return ""


Listener = Callable[[ResolutionState], None]


class LocationSubscription:
    """
    Observable result of one resolve_location call.

    Starts Idle, moves to Loading and settles exactly once to Resolved or
    Failed. After dispose() listeners are no longer called; background work
    keeps running so its result still lands in the cache.
    """

    def __init__(self):
        self._state = ResolutionState.idle()
        self._listeners: List[Listener] = []
        self._disposed = False
        self._settled = asyncio.Event()

    @property
    def state(self) -> ResolutionState:
        return self._state

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; it is called at once with the current state"""
        if self._disposed:
            return lambda: None
        self._listeners.append(listener)
        self._notify(listener, self._state)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispose(self) -> None:
        self._disposed = True
        self._listeners.clear()

    async def settled(self) -> ResolutionState:
        """Wait for the terminal state"""
        await self._settled.wait()
        return self._state

    def _update(self, state: ResolutionState) -> None:
        if self._state.is_settled:
            return
        self._state = state
        if state.is_settled:
            self._settled.set()
        if self._disposed:
            return
        for listener in list(self._listeners):
            self._notify(listener, state)

    def _notify(self, listener: Listener, state: ResolutionState) -> None:
        try:
            listener(state)
        except Exception:
            logger.exception("Resolution listener raised")


class GeocodingResolver:
    """
    Reverse geocoding service.

    Owns one cache and one admission limiter for its lifetime; construct it
    once at startup and share it.
    """

    def __init__(
        self,
        chain: ProviderChain,
        cache: Optional[ResolutionCache] = None,
        precision: int = 4,
        settle_delay: Tuple[float, float] = (1.0, 3.0),
    ):
        self._chain = chain
        self._cache = cache if cache is not None else ResolutionCache()
        self._precision = precision
        self._settle_delay = settle_delay
        self._pending: Set[asyncio.Task] = set()
        self.stats = {"requests": 0, "invalid": 0, "cache_hits": 0, "resolved": 0, "failed": 0}

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None,
                      client: Optional[httpx.AsyncClient] = None,
                      settle_delay: Optional[Tuple[float, float]] = None) -> "GeocodingResolver":
        settings = settings or get_settings()
        limiter = ConcurrencyLimiter(
            max_concurrent=settings.GEOCODING_MAX_CONCURRENT,
            retry_delay=settings.retry_delay,
        )
        chain = ProviderChain(
            default_providers(settings),
            limiter=limiter,
            timeout=settings.GEOCODING_TIMEOUT_SECONDS,
            advance_delay=settings.GEOCODING_ADVANCE_DELAY,
            unknown_label=settings.UNKNOWN_LABEL,
            client=client,
        )
        return cls(
            chain,
            precision=settings.GEOCODING_CACHE_PRECISION,
            settle_delay=settle_delay if settle_delay is not None else settings.settle_delay,
        )

    @property
    def cache(self) -> ResolutionCache:
        return self._cache

    @property
    def chain(self) -> ProviderChain:
        return self._chain

    def resolve_location(self, latitude, longitude) -> LocationSubscription:
        """
        Start resolving a coordinate and return its subscription.

        Invalid input and cache hits settle before this returns. A miss
        schedules background work on the running event loop.
        """
        self.stats["requests"] += 1
        subscription = LocationSubscription()
        subscription._update(ResolutionState.loading())

        try:
            coordinate = validate_coordinate(latitude, longitude)
        except InvalidCoordinateError as e:
            self.stats["invalid"] += 1
            logger.info(str(e))
            subscription._update(ResolutionState.failed(e))
            return subscription

        key = make_cache_key(coordinate, self._precision)
        cached = self._cache.get(key)
        if cached is not None:
            self.stats["cache_hits"] += 1
            subscription._update(ResolutionState.resolved(cached))
            return subscription

        task = asyncio.get_running_loop().create_task(self._resolve_remote(coordinate, key, subscription))
        self._pending.add(task)
        task.add_done_callback(functools.partial(self._finish, subscription))
        return subscription

    def _finish(self, subscription: LocationSubscription, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            # Also covers tasks cancelled before their first step
            subscription._update(ResolutionState.failed(GeocodingError("Resolution cancelled")))

    async def resolve(self, latitude, longitude) -> ResolutionState:
        """Resolve a coordinate and wait for the terminal state"""
        return await self.resolve_location(latitude, longitude).settled()

    async def _resolve_remote(self, coordinate: Coordinate, key: str,
                              subscription: LocationSubscription) -> None:
        try:
            try:
                delay = random.uniform(*self._settle_delay)
                if delay > 0:
                    await asyncio.sleep(delay)
                location = await self._chain.resolve(coordinate)
            except AllProvidersExhausted as e:
                self.stats["failed"] += 1
                subscription._update(ResolutionState.failed(e))
                return
            except Exception as e:
                logger.error(f"Unexpected error resolving {key}: {e}", exc_info=True)
                self.stats["failed"] += 1
                subscription._update(ResolutionState.failed(GeocodingError(str(e))))
                return

            self._cache.put(key, location)
            self.stats["resolved"] += 1
            subscription._update(ResolutionState.resolved(location))
        finally:
            # settled() awaiters must never observe this task as pending
            self._pending.discard(asyncio.current_task())

    @property
    def pending(self) -> int:
        return len(self._pending)

    def get_statistics(self) -> Dict:
        return {
            "resolver": dict(self.stats),
            "pending": len(self._pending),
            "cache": self._cache.get_statistics(),
            "limiter": self._chain.limiter.get_statistics(),
            "providers": self._chain.get_statistics(),
        }

    async def close(self):
        """Cancel outstanding resolutions and close the HTTP client"""
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self._chain.close()
