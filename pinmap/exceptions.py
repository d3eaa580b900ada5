"""
Exception hierarchy for the pinmap geocoding core.

Provider-level errors are raised per attempt and always handled inside the
provider chain. Only InvalidCoordinateError and AllProvidersExhausted ever
reach a caller, and then only wrapped in a Failed resolution state.
"""
from typing import List, Optional


class GeocodingError(Exception):
    """Base exception for all geocoding related errors"""

    def __init__(self, message: str, provider: str = None):
        super().__init__(message)
        self.provider = provider
        self.message = message


class InvalidCoordinateError(GeocodingError):
    """Raised when a latitude/longitude pair is missing, non-numeric or out of range"""

    def __init__(self, latitude, longitude, reason: str):
        message = f"Invalid coordinate ({latitude!r}, {longitude!r}): {reason}"
        super().__init__(message)
        self.latitude = latitude
        self.longitude = longitude
        self.reason = reason


class ProviderError(GeocodingError):
    """Base class for a single failed provider attempt"""
    pass


class ProviderTimeoutError(ProviderError):
    """Raised when a provider attempt exceeds its timeout"""

    def __init__(self, provider: str, timeout_seconds: float):
        message = f"Provider timeout after {timeout_seconds}s: {provider}"
        super().__init__(message, provider=provider)
        self.timeout_seconds = timeout_seconds


class ProviderHttpError(ProviderError):
    """Raised on a non-success HTTP status or a transport failure"""

    def __init__(self, provider: str, status_code: Optional[int] = None, detail: str = None):
        if status_code is not None:
            message = f"Provider {provider} responded with HTTP {status_code}"
        else:
            message = f"Provider {provider} request failed"
        if detail:
            message += f": {detail}"
        super().__init__(message, provider=provider)
        self.status_code = status_code


class ProviderParseError(ProviderError):
    """Raised when a provider response cannot be decoded or extracted"""

    def __init__(self, provider: str, detail: str):
        super().__init__(f"Could not parse response from {provider}: {detail}", provider=provider)
        self.detail = detail


class AllProvidersExhausted(GeocodingError):
    """Raised when every provider in the chain failed for a coordinate"""

    def __init__(self, latitude: float, longitude: float, attempts: List[ProviderError]):
        names = ", ".join(a.provider for a in attempts) or "none"
        message = f"All providers failed for ({latitude}, {longitude}); attempted: {names}"
        super().__init__(message)
        self.latitude = latitude
        self.longitude = longitude
        self.attempts = attempts


class ConfigurationError(GeocodingError):
    """Raised when geocoding configuration is invalid"""

    def __init__(self, config_field: str, reason: str):
        message = f"Configuration error in {config_field}: {reason}"
        super().__init__(message)
        self.config_field = config_field
        self.reason = reason
