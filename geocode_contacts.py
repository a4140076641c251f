#!/usr/bin/env python3
"""
Add latitude/longitude to CRM contacts that have an address but no coordinates.

This script:
1. Reads every contact from the Supabase contacts table
2. Skips contacts that already have coordinates or have no address
3. Geocodes the rest with the Google Geocoding API, one request at a time
4. Writes latitude, longitude and geocoded_at back to each contact

Usage:
    python geocode_contacts.py                      # Geocode all contacts
    python geocode_contacts.py --limit 100          # Only the first 100 contacts
    python geocode_contacts.py --dry-run            # Show what would be updated
    python geocode_contacts.py --region ", OH"      # Different region qualifier
"""
import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from geoenrich.core import settings, ConfigurationError
from geoenrich.enrichment import (
    DryRunRecordSource,
    EnrichmentPipeline,
    RunStatistics,
    SupabaseRecordSource,
)
from geoenrich.geocoding import GoogleGeocoder, RateLimiter

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_file or settings.LOG_FILE)
        ]
    )


def install_cancel_handler(cancel_event: asyncio.Event) -> None:
    """Let Ctrl-C finish the current contact and then stop the run."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
    except (NotImplementedError, RuntimeError):
        # Windows event loops do not support signal handlers
        logger.debug("SIGINT handler not installed; Ctrl-C will abort immediately")


async def geocode_contacts(
    limit: Optional[int] = None,
    dry_run: bool = False,
    region: Optional[str] = None,
    delay: Optional[float] = None,
    timeout: Optional[float] = None,
    retries: Optional[int] = None,
    table: Optional[str] = None,
) -> RunStatistics:
    """Run one enrichment sweep over the contacts table."""
    # Fail on a missing API key before touching the store
    geocoder = GoogleGeocoder(region_qualifier=region, timeout=timeout)

    source = SupabaseRecordSource(table=table)
    logger.info("Connected to Supabase")

    if dry_run:
        source = DryRunRecordSource(source)
        logger.info("DRY RUN - no updates will be written")

    rate_limiter = RateLimiter(settings.GEOCODER_DELAY if delay is None else delay)

    cancel_event = asyncio.Event()
    install_cancel_handler(cancel_event)

    async with geocoder:
        pipeline = EnrichmentPipeline(
            source,
            geocoder,
            rate_limiter=rate_limiter,
            transient_retries=retries,
            limit=limit,
        )
        stats = await pipeline.run(cancel_event=cancel_event)

    if dry_run:
        logger.info(f"DRY RUN - {len(source.would_update)} contacts would have been updated")

    return stats


def write_summary(stats: RunStatistics, path: str) -> None:
    summary_path = Path(path)
    summary_path.parent.mkdir(parents=True, exist_ok=True)
    with open(summary_path, "w") as f:
        json.dump(stats.as_dict, f, indent=2)
    logger.info(f"Summary written to {summary_path}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Geocode CRM contacts that have an address but no coordinates'
    )
    parser.add_argument('--limit', type=int, help='Limit number of contacts to consider')
    parser.add_argument('--dry-run', action='store_true', help='Show what would be updated without making changes')
    parser.add_argument('--region', type=str, help='Region qualifier appended to addresses (default: GEOCODE_REGION_QUALIFIER)')
    parser.add_argument('--delay', type=float, help='Minimum seconds between lookups (default: GEOCODER_DELAY)')
    parser.add_argument('--timeout', type=float, help='Per-lookup timeout in seconds (default: GEOCODER_TIMEOUT)')
    parser.add_argument('--retries', type=int, help='Extra attempts for transient lookup failures (default: GEOCODER_RETRIES)')
    parser.add_argument('--table', type=str, help='Contacts table name (default: CONTACTS_TABLE)')
    parser.add_argument('--summary-json', type=str, help='Write the run summary to this JSON file')
    parser.add_argument('--log-file', type=str, help='Log file (default: LOG_FILE)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')

    args = parser.parse_args(argv)

    if args.limit is not None and args.limit < 0:
        parser.error("--limit must be >= 0")
    if args.delay is not None and args.delay < 0:
        parser.error("--delay must be >= 0")
    if args.retries is not None and args.retries < 0:
        parser.error("--retries must be >= 0")

    configure_logging(args.verbose, args.log_file)

    try:
        stats = asyncio.run(geocode_contacts(
            limit=args.limit,
            dry_run=args.dry_run,
            region=args.region,
            delay=args.delay,
            timeout=args.timeout,
            retries=args.retries,
            table=args.table,
        ))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    if args.summary_json:
        write_summary(stats, args.summary_json)

    return 0


if __name__ == '__main__':
    sys.exit(main())
