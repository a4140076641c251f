"""
Base classes and interfaces for geocoding providers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, Union


@dataclass
class GeocodingResult:
    """Coordinate returned by a successful lookup."""

    latitude: float
    longitude: float
    query: str = ""  # address string actually sent to the provider
    matched_address: str = ""
    provider: str = ""
    match_type: str = ""  # e.g., "ROOFTOP", "RANGE_INTERPOLATED"
    place_id: str = ""
    raw_response: Optional[Dict[str, Any]] = None
    geocoded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def as_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "query": self.query,
            "matched_address": self.matched_address,
            "provider": self.provider,
            "match_type": self.match_type,
            "place_id": self.place_id,
            "geocoded_at": self.geocoded_at.isoformat(),
        }


class LookupStatus(str, Enum):
    """Why a lookup did not produce a coordinate."""
    NOT_FOUND = "not_found"
    TRANSIENT_ERROR = "transient_error"


@dataclass
class LookupFailure:
    """Tagged failure returned instead of raising."""

    status: LookupStatus
    reason: str
    query: str = ""
    provider: str = ""
    provider_status: Optional[str] = None  # e.g., "ZERO_RESULTS"
    error_message: Optional[str] = None  # provider's own error_message field

    @property
    def is_transient(self) -> bool:
        return self.status == LookupStatus.TRANSIENT_ERROR

    def __str__(self) -> str:
        text = f"{self.status.value}: {self.reason}"
        if self.error_message:
            text += f" ({self.error_message})"
        return text


LookupOutcome = Union[GeocodingResult, LookupFailure]


class BaseGeocoder(ABC):
    """
    Abstract base class for geocoding providers.

    Subclasses must implement:
    - lookup(): Resolve one address to a coordinate or a LookupFailure
    - provider_name: Name of the provider

    Providers that hold a network session override open()/close();
    the geocoder can then be used as an async context manager.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Name of the geocoding provider."""
        pass

    @abstractmethod
    async def lookup(self, address: str) -> LookupOutcome:
        """
        Geocode a single address.

        Args:
            address: Non-empty postal address

        Returns:
            GeocodingResult if successful, LookupFailure otherwise

        Raises:
            ValueError: If address is empty
        """
        pass

    async def open(self) -> None:
        """Acquire any resources held across lookups."""
        pass

    async def close(self) -> None:
        """Release resources acquired by open()."""
        pass

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
