"""
Reverse geocoding provider definitions.

Providers are plain data: a name, a request builder and a response extractor.
The chain walks them in order and never needs to know which one it is
talking to.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

from ..models.coordinates import Coordinate

logger = logging.getLogger(__name__)

# City-like fields in Nominatim-style "address" objects, most specific first
NOMINATIM_CITY_FIELDS = ("city", "town", "village", "county")


@dataclass(frozen=True)
class ProviderRequest:
    """HTTP GET request descriptor for one provider attempt"""
    url: str
    params: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)


RawLocation = Tuple[Optional[str], Optional[str]]


@dataclass(frozen=True)
class ProviderSpec:
    """One geocoding provider: how to ask it and how to read its answer"""
    name: str
    build_request: Callable[[Coordinate], ProviderRequest]
    extract: Callable[[Any], RawLocation]


def first_present(data: Dict[str, Any], candidates) -> Optional[str]:
    """Return the first candidate field holding a non-blank string."""
    for key in candidates:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _require_object(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


def extract_bigdatacloud(payload: Any) -> RawLocation:
    data = _require_object(payload)
    city = first_present(data, ("city", "locality", "principalSubdivision"))
    return city, data.get("countryName")


def extract_nominatim_address(payload: Any) -> RawLocation:
    """Extractor for Nominatim-compatible responses (geocode.maps.co, LocationIQ)"""
    data = _require_object(payload)
    address = data.get("address") or {}
    if not isinstance(address, dict):
        raise ValueError("address is not an object")
    return first_present(address, NOMINATIM_CITY_FIELDS), address.get("country")


def default_headers(user_agent: str) -> Dict[str, str]:
    return {"Accept": "application/json", "User-Agent": user_agent}


def bigdatacloud_provider(user_agent: str, language: str = "en") -> ProviderSpec:
    def build(coordinate: Coordinate) -> ProviderRequest:
        return ProviderRequest(
            url="https://api.bigdatacloud.net/data/reverse-geocode-client",
            params={
                "latitude": coordinate.latitude,
                "longitude": coordinate.longitude,
                "localityLanguage": language,
            },
            headers=default_headers(user_agent),
        )

    return ProviderSpec(name="bigdatacloud", build_request=build, extract=extract_bigdatacloud)


def geocode_maps_co_provider(user_agent: str) -> ProviderSpec:
    def build(coordinate: Coordinate) -> ProviderRequest:
        return ProviderRequest(
            url="https://geocode.maps.co/reverse",
            params={"lat": coordinate.latitude, "lon": coordinate.longitude, "format": "json"},
            headers=default_headers(user_agent),
        )

    return ProviderSpec(name="geocode_maps_co", build_request=build, extract=extract_nominatim_address)


def locationiq_provider(api_key: str, user_agent: str) -> ProviderSpec:
    def build(coordinate: Coordinate) -> ProviderRequest:
        return ProviderRequest(
            url="https://eu1.locationiq.com/v1/reverse.php",
            params={
                "key": api_key,
                "lat": coordinate.latitude,
                "lon": coordinate.longitude,
                "format": "json",
            },
            headers=default_headers(user_agent),
        )

    return ProviderSpec(name="locationiq", build_request=build, extract=extract_nominatim_address)


def default_providers(settings) -> List[ProviderSpec]:
    """Build the provider chain in priority order from settings"""
    providers = [
        bigdatacloud_provider(settings.GEOCODING_USER_AGENT, settings.GEOCODING_LANGUAGE),
        geocode_maps_co_provider(settings.GEOCODING_USER_AGENT),
    ]
    if settings.LOCATIONIQ_API_KEY:
        providers.append(locationiq_provider(settings.LOCATIONIQ_API_KEY, settings.GEOCODING_USER_AGENT))
    else:
        logger.warning("LocationIQ API key not configured - provider unavailable")
    return providers
