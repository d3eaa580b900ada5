"""
Shared test fixtures for the pinmap test suite.
Provides fast settings, a scripted HTTP backend for the geocoding providers
and reusable provider payloads.
"""
import asyncio
import inspect
import logging

import httpx
import pytest

from pinmap.config import Settings
from pinmap.geocoding import AddressSearch, GeocodingResolver


class TestCoordinates:
    """Reference coordinates used across tests."""
    PARIS = (48.8566, 2.3522)
    PARIS_NEARBY_A = (48.85661, 2.35221)
    PARIS_NEARBY_B = (48.85664, 2.35223)
    BRISBANE = (-27.4698, 153.0251)
    LYON = (45.7640, 4.8357)


class FakeGeocodingBackend:
    """
    Scripted stand-in for the geocoding providers, routed by host name.

    Records every request and tracks how many requests are in flight at once.
    """

    BIGDATACLOUD = "api.bigdatacloud.net"
    MAPS_CO = "geocode.maps.co"
    LOCATIONIQ = "eu1.locationiq.com"
    NOMINATIM = "nominatim.openstreetmap.org"

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.active = 0
        self.max_active = 0

    def route(self, host: str, handler):
        self.routes[host] = handler
        return self

    def respond(self, host: str, status_code: int = 200, json=None, delay: float = 0.0):
        async def handler(request):
            if delay:
                await asyncio.sleep(delay)
            return httpx.Response(status_code, json=json)
        return self.route(host, handler)

    def calls_to(self, host: str) -> int:
        return sum(1 for call in self.calls if call.url.host == host)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            handler = self.routes.get(request.url.host)
            if handler is None:
                return httpx.Response(404, json={"error": "no route"})
            response = handler(request)
            if inspect.isawaitable(response):
                response = await response
            return response
        finally:
            self.active -= 1

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def coords():
    return TestCoordinates()


@pytest.fixture
def test_settings():
    """Settings with every delay shrunk to keep tests fast."""
    return Settings(
        APP_ENV="development",
        GEOCODING_MAX_CONCURRENT=1,
        GEOCODING_RETRY_DELAY_MIN=0.005,
        GEOCODING_RETRY_DELAY_MAX=0.01,
        GEOCODING_SETTLE_DELAY_MIN=0.0,
        GEOCODING_SETTLE_DELAY_MAX=0.0,
        GEOCODING_ADVANCE_DELAY=0.0,
        GEOCODING_TIMEOUT_SECONDS=0.2,
        GEOCODING_SEARCH_DEBOUNCE=0.0,
        GEOCODING_USER_AGENT="pinmap-tests/1.0",
        LOCATIONIQ_API_KEY="test-locationiq-key",
        UNKNOWN_LABEL="Unknown",
    )


@pytest.fixture
def backend():
    return FakeGeocodingBackend()


@pytest.fixture
def make_resolver(test_settings, backend):
    """Factory for resolvers wired to the fake backend."""
    def factory(settings=None, **overrides):
        settings = settings or test_settings
        if overrides:
            settings = settings.model_copy(update=overrides)
        return GeocodingResolver.from_settings(settings, client=backend.client())
    return factory


@pytest.fixture
def bigdatacloud_paris():
    return {
        "latitude": 48.8566,
        "longitude": 2.3522,
        "city": "Paris",
        "locality": "Paris 4e Arrondissement",
        "principalSubdivision": "Île-de-France",
        "countryName": "France",
        "countryCode": "FR",
    }


@pytest.fixture
def nominatim_paris():
    return {
        "place_id": 123456,
        "display_name": "Paris, Île-de-France, France métropolitaine, France",
        "address": {
            "city": "Paris",
            "county": "Paris",
            "state": "Île-de-France",
            "country": "France",
            "country_code": "fr",
        },
    }


@pytest.fixture(autouse=True)
def suppress_logging():
    """Suppress logging during tests to reduce noise."""
    logging.disable(logging.CRITICAL)
    yield
    logging.disable(logging.NOTSET)


@pytest.fixture
def make_address_search(test_settings, backend):
    """Factory for address searches wired to the fake backend."""
    def factory(settings=None, **overrides):
        settings = settings or test_settings
        if overrides:
            settings = settings.model_copy(update=overrides)
        return AddressSearch.from_settings(settings, client=backend.client())
    return factory


@pytest.fixture
def nominatim_search_eiffel():
    return [
        {
            "place_id": 98765,
            "display_name": "Tour Eiffel, 5, Avenue Anatole France, Paris, France",
            "lat": "48.8582599",
            "lon": "2.2945006",
        },
        {
            "place_id": 98766,
            "display_name": "Tour Eiffel, Rue de la Tour, Lyon, France",
            "lat": "45.7578",
            "lon": "4.832",
        },
    ]
