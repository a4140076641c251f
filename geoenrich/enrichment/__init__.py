"""
Contact enrichment: attach geocoordinates to CRM contacts that have an
address but no location yet.

Usage:
    from geoenrich.enrichment import EnrichmentPipeline, SupabaseRecordSource
    from geoenrich.geocoding import GoogleGeocoder

    async with GoogleGeocoder() as geocoder:
        stats = await EnrichmentPipeline(SupabaseRecordSource(), geocoder).run()
"""

from geoenrich.enrichment.models import (
    AddressRecord,
    EventKind,
    ProgressEvent,
    RecordOutcome,
    RecordState,
    RunStatistics,
    SkipReason,
)
from geoenrich.enrichment.records import (
    RecordSource,
    SupabaseRecordSource,
    DryRunRecordSource,
)
from geoenrich.enrichment.pipeline import EnrichmentPipeline, log_event

__all__ = [
    # Models
    "AddressRecord",
    "EventKind",
    "ProgressEvent",
    "RecordOutcome",
    "RecordState",
    "RunStatistics",
    "SkipReason",
    # Record sources
    "RecordSource",
    "SupabaseRecordSource",
    "DryRunRecordSource",
    # Pipeline
    "EnrichmentPipeline",
    "log_event",
]
