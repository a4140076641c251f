"""
Geocoding module for CRM contact addresses.

Provides the lookup interface used by the enrichment sweep:
- BaseGeocoder: provider interface returning a result or a tagged failure
- GoogleGeocoder: Google Geocoding API (paid, accurate)
- RateLimiter: minimum spacing between outbound lookups

Usage:
    from geoenrich.geocoding import GoogleGeocoder, RateLimiter

    limiter = RateLimiter(min_interval=0.2)
    async with GoogleGeocoder(region_qualifier=", PA") as geocoder:
        await limiter.throttle()
        result = await geocoder.lookup("123 Main St")
"""

from geoenrich.geocoding.base import (
    GeocodingResult,
    LookupFailure,
    LookupOutcome,
    LookupStatus,
    BaseGeocoder,
)
from geoenrich.geocoding.rate_limit import RateLimiter, NoopRateLimiter
from geoenrich.geocoding.providers.google import GoogleGeocoder

__all__ = [
    # Base classes
    "GeocodingResult",
    "LookupFailure",
    "LookupOutcome",
    "LookupStatus",
    "BaseGeocoder",
    # Throttling
    "RateLimiter",
    "NoopRateLimiter",
    # Providers
    "GoogleGeocoder",
]
