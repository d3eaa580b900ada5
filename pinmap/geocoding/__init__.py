"""
Reverse geocoding and address search for map pins.

Exports the resolver service, the address search and their building blocks.
"""

from .address_search import AddressMatch, AddressSearch
from .admission_limiter import ConcurrencyLimiter
from .provider_chain import ProviderChain
from .providers import ProviderRequest, ProviderSpec, default_providers
from .resolution_cache import ResolutionCache
from .resolver import GeocodingResolver, LocationSubscription, ResolutionState, ResolutionStatus

__all__ = [
    'AddressMatch',
    'AddressSearch',
    'ConcurrencyLimiter',
    'ProviderChain',
    'ProviderRequest',
    'ProviderSpec',
    'default_providers',
    'ResolutionCache',
    'GeocodingResolver',
    'LocationSubscription',
    'ResolutionState',
    'ResolutionStatus',
]
