"""
Batch geocoding sweep over CRM contacts.

Takes one snapshot of the contacts, skips those that already have
coordinates or have no address, looks the rest up one at a time behind a
rate limiter, and writes successful results back. A failed lookup or a
rejected write is counted and logged; it never stops the run.

Usage:
    async with GoogleGeocoder() as geocoder:
        pipeline = EnrichmentPipeline(SupabaseRecordSource(), geocoder)
        stats = await pipeline.run()
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from geoenrich.core import settings, ConfigurationError
from geoenrich.core.database import StoreError
from geoenrich.enrichment.models import (
    AddressRecord,
    EventKind,
    ProgressEvent,
    RecordOutcome,
    RecordState,
    RunStatistics,
    SkipReason,
)
from geoenrich.enrichment.records import RecordSource
from geoenrich.geocoding.base import BaseGeocoder, GeocodingResult, LookupOutcome
from geoenrich.geocoding.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

EventCallback = Callable[[ProgressEvent], None]


def log_event(event: ProgressEvent) -> None:
    """Default event sink: write progress and the final summary to the log."""
    if event.kind == EventKind.PROGRESS:
        logger.info(f"Progress: {event.processed}/{event.total} processed")

    elif event.kind == EventKind.SUMMARY and event.statistics is not None:
        stats = event.statistics
        logger.info("=" * 60)
        logger.info("GEOCODING COMPLETE" if not stats.cancelled else "GEOCODING CANCELLED")
        logger.info("=" * 60)
        logger.info(f"Total contacts:        {stats.total}")
        logger.info(f"Processed:             {stats.processed}")
        logger.info(f"Successfully geocoded: {stats.geocoded}")
        logger.info(f"Failed:                {stats.failed}")
        logger.info(f"Skipped:               {stats.skipped}")
        logger.info(f"Time elapsed:          {stats.elapsed:.1f}s")


class EnrichmentPipeline:
    """
    Sequential address-to-coordinate enrichment over one record source.

    Each record ends in exactly one of SKIPPED, GEOCODED or LOOKUP_FAILED.
    Only ConfigurationError escapes run(); everything that goes wrong for a
    single record is absorbed into the returned RunStatistics.
    """

    def __init__(
        self,
        source: RecordSource,
        geocoder: BaseGeocoder,
        rate_limiter: Optional[RateLimiter] = None,
        progress_every: Optional[int] = None,
        transient_retries: Optional[int] = None,
        limit: Optional[int] = None,
        on_event: Optional[EventCallback] = None,
    ):
        """
        Args:
            source: Where contacts are read from and written to
            geocoder: Address lookup client
            rate_limiter: Spacing between lookups (default: settings.GEOCODER_DELAY)
            progress_every: Emit a progress event every N processed records
            transient_retries: Extra attempts after a TRANSIENT_ERROR lookup
            limit: Only consider the first N records of the snapshot
            on_event: Receives record, progress and summary events (default: log them)
        """
        self.source = source
        self.geocoder = geocoder
        self.rate_limiter = rate_limiter or RateLimiter(settings.GEOCODER_DELAY)
        self.progress_every = settings.PROGRESS_EVERY if progress_every is None else progress_every
        self.transient_retries = (
            settings.GEOCODER_RETRIES if transient_retries is None else transient_retries
        )
        self.limit = limit
        self.on_event = on_event or log_event

        if self.progress_every < 1:
            raise ValueError("progress_every must be >= 1")
        if self.transient_retries < 0:
            raise ValueError("transient_retries must be >= 0")

    async def run(self, cancel_event: Optional[asyncio.Event] = None) -> RunStatistics:
        """
        Process every record in the snapshot once.

        Args:
            cancel_event: When set, the run stops before the next record and
                returns the statistics gathered so far

        Returns:
            RunStatistics for this run

        Raises:
            ConfigurationError: If the store cannot be read at startup
        """
        logger.info("Starting contact geocoding run...")

        records = self.snapshot()
        stats = RunStatistics(total=len(records))

        logger.info(f"Found {stats.total} contacts to process")

        for record in records:
            if cancel_event is not None and cancel_event.is_set():
                stats.cancelled = True
                logger.warning(
                    f"Cancellation requested; stopping after "
                    f"{stats.processed + stats.skipped}/{stats.total} contacts"
                )
                break

            outcome = await self.process_record(record)
            self._tally(stats, outcome)

        stats.finished_at = datetime.now(timezone.utc)
        self._emit(EventKind.SUMMARY, stats, statistics=stats.snapshot())

        return stats

    def snapshot(self) -> List[AddressRecord]:
        """Read all candidate records once, in store order."""
        try:
            records = list(self.source.list_enrichable())
        except StoreError as e:
            raise ConfigurationError(f"Record store unreachable: {e}") from e

        if self.limit is not None:
            records = records[:self.limit]
            logger.info(f"Limited to {len(records)} contacts")

        return records

    async def process_record(self, record: AddressRecord) -> RecordOutcome:
        """Drive one record from PENDING to a terminal state."""
        logger.info(f"Processing contact {record.id}")

        skipped = self.classify(record)
        if skipped is not None:
            return skipped

        result = await self.lookup(record.clean_address)

        if not isinstance(result, GeocodingResult):
            logger.warning(f"Failed to geocode address for {record.id}: {result}")
            return RecordOutcome(record.id, RecordState.LOOKUP_FAILED, reason=str(result))

        return self.persist(record, result)

    def classify(self, record: AddressRecord) -> Optional[RecordOutcome]:
        """Return a SKIPPED outcome, or None if the record needs a lookup."""
        if record.has_coordinates:
            logger.info(
                f"Skipping {record.id} - already has coordinates: "
                f"{record.latitude}, {record.longitude}"
            )
            return RecordOutcome(
                record.id, RecordState.SKIPPED, reason=SkipReason.ALREADY_GEOCODED.value
            )

        if record.clean_address is None:
            logger.info(f"Skipping {record.id} - no address")
            return RecordOutcome(record.id, RecordState.SKIPPED, reason=SkipReason.NO_ADDRESS.value)

        return None

    async def lookup(self, address: str) -> LookupOutcome:
        """Throttled lookup, retried on transient failures if configured."""
        attempts = 1 + self.transient_retries
        result: LookupOutcome

        for attempt in range(1, attempts + 1):
            await self.rate_limiter.throttle()
            result = await self.geocoder.lookup(address)

            if isinstance(result, GeocodingResult):
                return result
            if not result.is_transient or attempt == attempts:
                return result

            logger.info(f"Transient failure for {address!r}, retrying ({attempt}/{self.transient_retries})")

        return result

    def persist(self, record: AddressRecord, result: GeocodingResult) -> RecordOutcome:
        """Write a successful lookup; a store rejection counts as a failure."""
        try:
            self.source.persist_coordinates(
                record.id,
                result.latitude,
                result.longitude,
                datetime.now(timezone.utc),
            )
        except StoreError as e:
            logger.error(f"Failed to update {record.id}: {e}")
            return RecordOutcome(record.id, RecordState.LOOKUP_FAILED, reason=f"persist failed: {e}")

        logger.info(f"Updated {record.id} with coordinates: {result.latitude}, {result.longitude}")
        return RecordOutcome(
            record.id,
            RecordState.GEOCODED,
            latitude=result.latitude,
            longitude=result.longitude,
        )

    def _tally(self, stats: RunStatistics, outcome: RecordOutcome) -> None:
        if outcome.state == RecordState.SKIPPED:
            stats.skipped += 1
            self._emit(EventKind.RECORD, stats, outcome=outcome)
            return

        if outcome.state == RecordState.GEOCODED:
            stats.geocoded += 1
        else:
            stats.failed += 1

        stats.processed += 1
        self._emit(EventKind.RECORD, stats, outcome=outcome)

        if stats.processed % self.progress_every == 0:
            self._emit(EventKind.PROGRESS, stats)

    def _emit(
        self,
        kind: EventKind,
        stats: RunStatistics,
        outcome: Optional[RecordOutcome] = None,
        statistics: Optional[RunStatistics] = None,
    ) -> None:
        self.on_event(ProgressEvent(
            kind=kind,
            processed=stats.processed,
            total=stats.total,
            outcome=outcome,
            statistics=statistics,
        ))
