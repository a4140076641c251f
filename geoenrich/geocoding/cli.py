#!/usr/bin/env python3
"""
Command-line interface for the geocoding module.

Usage:
    python -m geoenrich.geocoding.cli --address "123 Main St"
    python -m geoenrich.geocoding.cli --address "123 Main St" --region ", OH"
    python -m geoenrich.geocoding.cli --address "123 Main St" --verbose
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from geoenrich.core import ConfigurationError
from geoenrich.geocoding import GoogleGeocoder, GeocodingResult

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def geocode_single_address(
    address: str,
    region: Optional[str] = None,
    verbose: bool = False
) -> bool:
    """Geocode one address and print the outcome."""
    async with GoogleGeocoder(region_qualifier=region) as geocoder:
        query = geocoder.format_query(address)
        print(f"\nGeocoding: {query}")
        print(f"Provider: {geocoder.provider_name}")
        print("-" * 50)

        result = await geocoder.lookup(address)

    if isinstance(result, GeocodingResult):
        print(f"✓ Success!")
        print(f"  Latitude:   {result.latitude:.6f}")
        print(f"  Longitude:  {result.longitude:.6f}")
        print(f"  Matched:    {result.matched_address}")
        print(f"  Match Type: {result.match_type}")
        if verbose and result.raw_response:
            print(f"  Raw Response: {result.raw_response}")
        return True

    print(f"✗ {result}")
    return False


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Geocode a single contact address"
    )

    parser.add_argument(
        "--address", "-a",
        type=str,
        required=True,
        help="Address to geocode"
    )
    parser.add_argument(
        "--region", "-r",
        type=str,
        help="Region qualifier appended when missing (default: GEOCODE_REGION_QUALIFIER)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging and the raw provider response"
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.address.strip():
        parser.error("--address must not be empty")

    try:
        found = asyncio.run(geocode_single_address(args.address, args.region, args.verbose))
    except ConfigurationError as e:
        logger.error(str(e))
        return 2

    return 0 if found else 1


if __name__ == "__main__":
    sys.exit(main())
