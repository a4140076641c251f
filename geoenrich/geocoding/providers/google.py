"""
Google Geocoding API provider.

Paid, accurate geocoding service.
https://developers.google.com/maps/documentation/geocoding
"""

import asyncio
import logging
from typing import Optional, Tuple, Any

import aiohttp

from geoenrich.core import settings
from geoenrich.core.utils.address import apply_region_qualifier
from geoenrich.core.utils.geo import is_valid_coordinate
from geoenrich.geocoding.base import (
    BaseGeocoder,
    GeocodingResult,
    LookupFailure,
    LookupOutcome,
    LookupStatus,
)

logger = logging.getLogger(__name__)

GOOGLE_GEOCODING_URL = "https://maps.googleapis.com/maps/api/geocode/json"

# Statuses that mean the address itself did not resolve. Anything else that
# is not "OK" (quota, denied key, server error) may succeed on a later run.
NOT_FOUND_STATUSES = {"ZERO_RESULTS", "INVALID_REQUEST"}


class GoogleGeocoder(BaseGeocoder):
    """
    Google Geocoding API provider.

    Usage:
        geocoder = GoogleGeocoder()  # Uses GOOGLE_GEOCODING_API_KEY from env
        result = await geocoder.lookup("123 Main St")

        # Reuse one HTTP session for a whole sweep
        async with GoogleGeocoder(region_qualifier=", PA") as geocoder:
            result = await geocoder.lookup("123 Main St")

    Lookups never raise for provider, network, timeout or parse problems;
    they return a LookupFailure tagged NOT_FOUND or TRANSIENT_ERROR.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        region_qualifier: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize Google Geocoder.

        Args:
            api_key: Google API key (uses settings if not provided)
            region_qualifier: Suffix appended to addresses that lack it
                (uses settings if None; "" disables normalization)
            timeout: Per-lookup timeout in seconds (uses settings if None)

        Raises:
            ConfigurationError: If no API key is available
        """
        self.api_key = api_key or settings.require_google_api_key()
        self.region_qualifier = (
            settings.GEOCODE_REGION_QUALIFIER if region_qualifier is None else region_qualifier
        )
        self.timeout = settings.GEOCODER_TIMEOUT if timeout is None else timeout
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def provider_name(self) -> str:
        return "google"

    @property
    def client_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.timeout)

    async def open(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self.client_timeout)

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    def format_query(self, address: str) -> str:
        """Return the address string that will be sent to the provider."""
        return apply_region_qualifier(address.strip(), self.region_qualifier)

    async def lookup(self, address: str) -> LookupOutcome:
        """
        Geocode an address using Google Geocoding API.

        Args:
            address: Street address as stored on the contact

        Returns:
            GeocodingResult if successful, LookupFailure otherwise
        """
        if not address or not address.strip():
            raise ValueError("address must be a non-empty string")

        query = self.format_query(address)
        params = {
            "address": query,
            "key": self.api_key,
        }

        logger.debug(f"Google: Geocoding {query}")

        try:
            if self._session is not None:
                http_status, data = await self._fetch(self._session, params)
            else:
                async with aiohttp.ClientSession(timeout=self.client_timeout) as session:
                    http_status, data = await self._fetch(session, params)

        except asyncio.TimeoutError:
            logger.warning(f"Google: Timeout for {query}")
            return self._failure(LookupStatus.TRANSIENT_ERROR, "timeout", query)
        except aiohttp.ClientError as e:
            logger.warning(f"Google: Network error for {query}: {e}")
            return self._failure(LookupStatus.TRANSIENT_ERROR, f"network error: {e}", query)
        except ValueError as e:
            logger.warning(f"Google: Could not parse response for {query}: {e}")
            return self._failure(LookupStatus.TRANSIENT_ERROR, f"invalid JSON: {e}", query)
        except Exception as e:
            logger.error(f"Google: Error geocoding {query}: {e}")
            return self._failure(LookupStatus.TRANSIENT_ERROR, str(e), query)

        if http_status != 200:
            logger.warning(f"Google API HTTP {http_status} for {query}")
            return self._failure(
                LookupStatus.TRANSIENT_ERROR, f"HTTP {http_status}", query
            )

        return self.parse_response(data, query)

    async def _fetch(
        self,
        session: aiohttp.ClientSession,
        params: dict,
    ) -> Tuple[int, Any]:
        async with session.get(
            GOOGLE_GEOCODING_URL,
            params=params,
            timeout=self.client_timeout,
        ) as response:
            if response.status != 200:
                return response.status, None

            # Google sometimes answers with a text/plain content type
            data = await response.json(content_type=None)
            return response.status, data

    def parse_response(self, data: Any, query: str) -> LookupOutcome:
        """
        Turn a decoded Geocoding API payload into a result or a failure.

        Success requires status "OK", a non-empty results array and a numeric
        geometry.location on the first result.
        """
        if not isinstance(data, dict):
            logger.warning(f"Google: Malformed response for {query}")
            return self._failure(LookupStatus.TRANSIENT_ERROR, "malformed response", query)

        status = data.get("status")
        error_message = data.get("error_message")

        if status != "OK":
            failure_status = (
                LookupStatus.NOT_FOUND if status in NOT_FOUND_STATUSES
                else LookupStatus.TRANSIENT_ERROR
            )
            logger.warning(
                f"Google: Geocoding failed for \"{query}\": "
                f"{status} - {error_message or 'Unknown error'}"
            )
            return self._failure(
                failure_status,
                f"provider status {status}",
                query,
                provider_status=status,
                error_message=error_message,
            )

        results = data.get("results") or []
        if not isinstance(results, list):
            logger.warning(f"Google: Malformed results for {query}")
            return self._failure(LookupStatus.TRANSIENT_ERROR, "malformed response", query)

        if not results:
            logger.debug(f"Google: No results for {query}")
            return self._failure(
                LookupStatus.NOT_FOUND, "no results", query, provider_status=status
            )

        # Get first result
        result = results[0]
        geometry = None
        location = None
        if isinstance(result, dict):
            geometry = result.get("geometry") or {}
        if isinstance(geometry, dict):
            location = geometry.get("location") or {}

        if not isinstance(location, dict):
            logger.warning(f"Google: Malformed result for {query}: {result!r}")
            return self._failure(LookupStatus.TRANSIENT_ERROR, "malformed response", query)

        lat = location.get("lat")
        lng = location.get("lng")

        if not is_valid_coordinate(lat, lng):
            logger.warning(f"Google: Unusable location for {query}: {location}")
            return self._failure(
                LookupStatus.NOT_FOUND, "result has no usable location", query,
                provider_status=status,
            )

        logger.debug(f"Google: Geocoded {query} -> {lat}, {lng}")

        return GeocodingResult(
            latitude=float(lat),
            longitude=float(lng),
            query=query,
            matched_address=result.get("formatted_address", ""),
            provider=self.provider_name,
            match_type=geometry.get("location_type", ""),
            place_id=result.get("place_id", ""),
            raw_response=result,
        )

    def _failure(
        self,
        status: LookupStatus,
        reason: str,
        query: str,
        provider_status: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> LookupFailure:
        return LookupFailure(
            status=status,
            reason=reason,
            query=query,
            provider=self.provider_name,
            provider_status=provider_status,
            error_message=error_message,
        )
