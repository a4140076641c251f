"""Tests for the contact enrichment sweep."""

import asyncio
from datetime import datetime

import pytest

from conftest import (
    FakeGeocoder,
    FakeRecordSource,
    contact,
    not_found,
    transient,
)
from geoenrich.core import ConfigurationError
from geoenrich.core.database import StoreError
from geoenrich.enrichment.models import EventKind, RecordState
from geoenrich.enrichment.pipeline import EnrichmentPipeline
from geoenrich.geocoding.base import GeocodingResult
from geoenrich.geocoding.rate_limit import NoopRateLimiter


def make_pipeline(source, geocoder, events=None, **kwargs):
    return EnrichmentPipeline(
        source,
        geocoder,
        rate_limiter=NoopRateLimiter(),
        on_event=events.append if events is not None else None,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_records_with_coordinates_are_skipped_without_lookup():
    source = FakeRecordSource([
        contact(1, latitude=40.1, longitude=-80.1),
        contact(2, latitude=41.0, longitude=-79.5),
    ])
    geocoder = FakeGeocoder()

    stats = await make_pipeline(source, geocoder).run()

    assert geocoder.calls == []
    assert stats.skipped == 2
    assert stats.processed == 0
    assert source.updates == []


@pytest.mark.asyncio
@pytest.mark.parametrize("address", [None, "", "   ", "\t\n"])
async def test_records_without_address_are_skipped_without_lookup(address):
    source = FakeRecordSource([contact(1, address=address)])
    geocoder = FakeGeocoder()

    stats = await make_pipeline(source, geocoder).run()

    assert geocoder.calls == []
    assert stats.skipped == 1
    assert stats.total == 1


@pytest.mark.asyncio
async def test_successful_lookup_is_persisted_with_timestamp():
    result = GeocodingResult(latitude=40.41958959999999, longitude=-80.06117669999999)
    source = FakeRecordSource([contact(1)])
    geocoder = FakeGeocoder({"123 Main St": result})

    stats = await make_pipeline(source, geocoder).run()

    assert stats.geocoded == 1
    assert stats.processed == 1
    record_id, lat, lng, timestamp = source.updates[0]
    assert record_id == "c1"
    assert lat == 40.41958959999999
    assert lng == -80.06117669999999
    assert isinstance(timestamp, datetime)
    assert timestamp.tzinfo is not None


@pytest.mark.asyncio
async def test_address_is_trimmed_before_lookup():
    source = FakeRecordSource([contact(1, address="  123 Main St  ")])
    geocoder = FakeGeocoder()

    await make_pipeline(source, geocoder).run()

    assert geocoder.calls == ["123 Main St"]


@pytest.mark.asyncio
async def test_zero_results_does_not_stop_next_record():
    source = FakeRecordSource([
        contact(1, address="1 Nowhere Rd"),
        contact(2, address="2 Main St"),
    ])
    geocoder = FakeGeocoder({"1 Nowhere Rd": not_found()})

    stats = await make_pipeline(source, geocoder).run()

    assert geocoder.calls == ["1 Nowhere Rd", "2 Main St"]
    assert source.row("c1")["latitude"] is None
    assert "geocoded_at" not in source.row("c1")
    assert source.row("c2")["latitude"] == 40.0
    assert stats.failed == 1
    assert stats.geocoded == 1
    assert stats.processed == 2


@pytest.mark.asyncio
async def test_transport_failure_is_isolated_like_zero_results():
    source = FakeRecordSource([
        contact(1, address="1 Flaky Ave"),
        contact(2, address="2 Main St"),
    ])
    geocoder = FakeGeocoder({"1 Flaky Ave": transient()})

    stats = await make_pipeline(source, geocoder).run()

    assert geocoder.calls == ["1 Flaky Ave", "2 Main St"]
    assert source.row("c1")["latitude"] is None
    assert stats.failed == 1
    assert stats.geocoded == 1


@pytest.mark.asyncio
async def test_persist_failure_counts_as_failed_and_run_continues():
    # A rejected write is treated exactly like a failed lookup
    source = FakeRecordSource([contact(1), contact(2), contact(3)], fail_ids={"c2"})
    geocoder = FakeGeocoder()
    events = []

    stats = await make_pipeline(source, geocoder, events).run()

    assert len(geocoder.calls) == 3
    assert stats.geocoded == 2
    assert stats.failed == 1
    assert stats.processed == 3
    assert [u[0] for u in source.updates] == ["c1", "c3"]

    outcomes = {e.outcome.record_id: e.outcome for e in events if e.kind == EventKind.RECORD}
    assert outcomes["c2"].state == RecordState.LOOKUP_FAILED
    assert outcomes["c2"].reason.startswith("persist failed")


@pytest.mark.asyncio
async def test_second_run_over_enriched_store_makes_no_lookups():
    source = FakeRecordSource([contact(i) for i in range(5)])
    geocoder = FakeGeocoder()

    first = await make_pipeline(source, geocoder).run()
    assert first.geocoded == 5

    geocoder.calls.clear()
    second = await make_pipeline(source, geocoder).run()

    assert geocoder.calls == []
    assert second.geocoded == 0
    assert second.failed == 0
    assert second.processed == 0
    assert second.skipped == second.total == 5


@pytest.mark.asyncio
async def test_zero_coordinates_count_as_already_geocoded():
    source = FakeRecordSource([contact(1, latitude=0, longitude=0)])
    geocoder = FakeGeocoder()

    stats = await make_pipeline(source, geocoder).run()

    assert geocoder.calls == []
    assert stats.skipped == 1


@pytest.mark.asyncio
async def test_half_populated_coordinates_are_looked_up_and_completed():
    source = FakeRecordSource([contact(1, latitude=40.5, longitude=None)])
    geocoder = FakeGeocoder()

    stats = await make_pipeline(source, geocoder).run()

    assert geocoder.calls == ["123 Main St"]
    assert stats.geocoded == 1
    assert source.row("c1")["longitude"] == -80.0


@pytest.mark.asyncio
async def test_records_visited_in_store_order():
    addresses = ["9 Z St", "1 A St", "5 M St"]
    source = FakeRecordSource([contact(i, address=a) for i, a in enumerate(addresses)])
    geocoder = FakeGeocoder()

    await make_pipeline(source, geocoder).run()

    assert geocoder.calls == addresses


@pytest.mark.asyncio
async def test_progress_emitted_every_tenth_processed_record():
    rows = [contact(i) for i in range(25)]
    rows.insert(3, contact(100, address=""))  # skipped rows do not advance progress
    source = FakeRecordSource(rows)
    events = []

    stats = await make_pipeline(source, FakeGeocoder(), events).run()

    progress = [(e.processed, e.total) for e in events if e.kind == EventKind.PROGRESS]
    assert progress == [(10, 26), (20, 26)]
    assert stats.processed == 25
    assert stats.skipped == 1


@pytest.mark.asyncio
async def test_summary_event_carries_all_counters():
    source = FakeRecordSource([
        contact(1),
        contact(2, address="bad"),
        contact(3, address=None),
        contact(4, latitude=1.0, longitude=2.0),
    ])
    events = []

    stats = await make_pipeline(source, FakeGeocoder({"bad": not_found()}), events).run()

    summaries = [e for e in events if e.kind == EventKind.SUMMARY]
    assert len(summaries) == 1
    assert events[-1] is summaries[0]
    summary = summaries[0].statistics
    assert (summary.total, summary.processed, summary.geocoded, summary.failed, summary.skipped) == (4, 2, 1, 1, 2)
    assert summary.finished_at is not None
    assert stats.as_dict["success_rate"] == 50.0


@pytest.mark.asyncio
async def test_every_record_reaches_one_terminal_state():
    source = FakeRecordSource([
        contact(1),
        contact(2, address="bad"),
        contact(3, address=""),
    ])
    events = []

    await make_pipeline(source, FakeGeocoder({"bad": transient()}), events).run()

    outcomes = [e.outcome for e in events if e.kind == EventKind.RECORD]
    assert [o.record_id for o in outcomes] == ["c1", "c2", "c3"]
    assert [o.state for o in outcomes] == [
        RecordState.GEOCODED,
        RecordState.LOOKUP_FAILED,
        RecordState.SKIPPED,
    ]
    assert all(o.state.is_terminal for o in outcomes)


@pytest.mark.asyncio
async def test_cancellation_stops_before_next_record():
    source = FakeRecordSource([contact(i) for i in range(5)])
    cancel = asyncio.Event()
    geocoder = FakeGeocoder()

    def on_event(event):
        if event.kind == EventKind.RECORD and event.processed == 2:
            cancel.set()

    pipeline = EnrichmentPipeline(source, geocoder, rate_limiter=NoopRateLimiter(), on_event=on_event)
    stats = await pipeline.run(cancel_event=cancel)

    assert stats.cancelled is True
    assert len(geocoder.calls) == 2
    assert stats.processed == 2
    assert stats.total == 5
    assert len(source.updates) == 2


@pytest.mark.asyncio
async def test_store_unreachable_at_startup_is_configuration_error():
    source = FakeRecordSource([], list_error=StoreError("connection refused"))
    geocoder = FakeGeocoder()

    with pytest.raises(ConfigurationError):
        await make_pipeline(source, geocoder).run()

    assert geocoder.calls == []


@pytest.mark.asyncio
async def test_limit_restricts_snapshot():
    source = FakeRecordSource([contact(i) for i in range(10)])
    geocoder = FakeGeocoder()

    stats = await make_pipeline(source, geocoder, limit=3).run()

    assert stats.total == 3
    assert len(geocoder.calls) == 3


@pytest.mark.asyncio
async def test_transient_failure_retried_when_configured():
    geocoder = FakeGeocoder({"123 Main St": [transient(), transient()]})
    source = FakeRecordSource([contact(1)])

    stats = await make_pipeline(source, geocoder, transient_retries=2).run()

    assert geocoder.calls == ["123 Main St"] * 3
    assert stats.geocoded == 1
    assert stats.processed == 1


@pytest.mark.asyncio
async def test_not_found_is_never_retried():
    geocoder = FakeGeocoder({"123 Main St": not_found()})
    source = FakeRecordSource([contact(1)])

    stats = await make_pipeline(source, geocoder, transient_retries=3).run()

    assert geocoder.calls == ["123 Main St"]
    assert stats.failed == 1


@pytest.mark.asyncio
async def test_each_lookup_attempt_is_throttled():
    class CountingLimiter(NoopRateLimiter):
        def __init__(self):
            super().__init__()
            self.calls = 0

        async def throttle(self):
            self.calls += 1

    limiter = CountingLimiter()
    source = FakeRecordSource([
        contact(1),
        contact(2, address=""),
        contact(3, address="flaky"),
    ])
    geocoder = FakeGeocoder({"flaky": [transient(), transient()]})

    pipeline = EnrichmentPipeline(
        source, geocoder, rate_limiter=limiter, transient_retries=1, on_event=lambda e: None
    )
    await pipeline.run()

    # c1 once, c2 skipped, c3 initial attempt + one retry
    assert limiter.calls == 3
    assert limiter.calls == len(geocoder.calls)


def test_invalid_pipeline_options_rejected():
    with pytest.raises(ValueError):
        EnrichmentPipeline(FakeRecordSource([]), FakeGeocoder(), transient_retries=-1)


@pytest.mark.parametrize("progress_every", [0, -5])
def test_non_positive_progress_interval_rejected(progress_every):
    with pytest.raises(ValueError):
        EnrichmentPipeline(FakeRecordSource([]), FakeGeocoder(), progress_every=progress_every)
