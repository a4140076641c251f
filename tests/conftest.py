from datetime import datetime
from types import SimpleNamespace
from typing import Dict, List, Optional, Union

import pytest

from geoenrich.core import settings
from geoenrich.core.database import StoreError
from geoenrich.enrichment.models import AddressRecord
from geoenrich.enrichment.records import RecordSource
from geoenrich.geocoding.base import (
    BaseGeocoder,
    GeocodingResult,
    LookupFailure,
    LookupOutcome,
    LookupStatus,
)


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch):
    # Keep tests offline and independent of any local .env
    monkeypatch.setattr(settings, "GOOGLE_GEOCODING_API_KEY", "test_google_key")
    monkeypatch.setattr(settings, "SUPABASE_URL", "")
    monkeypatch.setattr(settings, "SUPABASE_KEY", "")
    monkeypatch.setattr(settings, "GEOCODE_REGION_QUALIFIER", ", PA")
    monkeypatch.setattr(settings, "GEOCODER_DELAY", 0.0)
    monkeypatch.setattr(settings, "GEOCODER_RETRIES", 0)
    monkeypatch.setattr(settings, "PROGRESS_EVERY", 10)


def contact(i, address="123 Main St", latitude=None, longitude=None, **extra):
    row = {
        "id": f"c{i}",
        "address": address,
        "latitude": latitude,
        "longitude": longitude,
        "firstName": "Pat",
        "lastName": f"Doe{i}",
    }
    row.update(extra)
    return row


class FakeRecordSource(RecordSource):
    """In-memory contacts; applies updates to the rows it was given."""

    def __init__(self, rows: List[dict], fail_ids=(), list_error: Optional[Exception] = None):
        self.rows = rows
        self.fail_ids = set(fail_ids)
        self.list_error = list_error
        self.list_calls = 0
        self.updates: List[tuple] = []

    def list_enrichable(self) -> List[AddressRecord]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return [AddressRecord.model_validate(row) for row in self.rows]

    def persist_coordinates(self, record_id, latitude, longitude, timestamp: datetime) -> None:
        if record_id in self.fail_ids:
            raise StoreError("write rejected", record_id=record_id)

        for row in self.rows:
            if row["id"] == record_id:
                row.update(latitude=latitude, longitude=longitude, geocoded_at=timestamp)
                self.updates.append((record_id, latitude, longitude, timestamp))
                return

        raise StoreError("No record matched the id", record_id=record_id)

    def row(self, record_id) -> dict:
        return next(r for r in self.rows if r["id"] == record_id)


class FakeGeocoder(BaseGeocoder):
    """Returns scripted outcomes keyed by address; everything else resolves."""

    def __init__(self, outcomes: Optional[Dict[str, Union[LookupOutcome, List[LookupOutcome]]]] = None):
        self.outcomes = outcomes or {}
        self.calls: List[str] = []

    @property
    def provider_name(self) -> str:
        return "fake"

    async def lookup(self, address: str) -> LookupOutcome:
        if not address or not address.strip():
            raise ValueError("address must be a non-empty string")

        self.calls.append(address)
        outcome = self.outcomes.get(address)

        if isinstance(outcome, list):
            # scripted sequence; once exhausted the address resolves
            outcome = outcome.pop(0) if outcome else None
        if outcome is not None:
            return outcome

        return GeocodingResult(latitude=40.0, longitude=-80.0, query=address, provider="fake")


def not_found(query=""):
    return LookupFailure(LookupStatus.NOT_FOUND, "provider status ZERO_RESULTS",
                         query=query, provider_status="ZERO_RESULTS")


def transient(query=""):
    return LookupFailure(LookupStatus.TRANSIENT_ERROR, "network error: connection reset", query=query)


class FakeResponse:
    def __init__(self, status: int = 200, payload=None, json_error: Optional[Exception] = None):
        self.status = status
        self._payload = payload
        self._json_error = json_error

    async def json(self, content_type=None):
        if self._json_error is not None:
            raise self._json_error
        return self._payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Stands in for aiohttp.ClientSession; replays responses or errors in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: List[dict] = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    async def close(self):
        self.closed = True


def ok_payload(lat=40.41958959999999, lng=-80.06117669999999):
    return {
        "status": "OK",
        "results": [
            {
                "formatted_address": "123 Main St, Pittsburgh, PA 15205, USA",
                "place_id": "ChIJtest",
                "geometry": {
                    "location": {"lat": lat, "lng": lng},
                    "location_type": "ROOFTOP",
                },
            }
        ],
    }


class FakeSupabaseQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.op = None
        self.payload = None
        self.filter = None
        self.bounds = (0, None)

    def select(self, columns):
        self.op = "select"
        self.client.selected_columns = columns
        return self

    def order(self, column):
        self.client.ordered_by = column
        return self

    def range(self, start, end):
        self.bounds = (start, end)
        return self

    def update(self, payload):
        self.op = "update"
        self.payload = payload
        return self

    def eq(self, column, value):
        self.filter = (column, value)
        return self

    def execute(self):
        if self.client.error is not None:
            raise self.client.error

        if self.op == "select":
            start, end = self.bounds
            self.client.pages_read += 1
            return SimpleNamespace(data=self.client.rows[start:end + 1])

        column, value = self.filter
        matched = [row for row in self.client.rows if row.get(column) == value]
        for row in matched:
            row.update(self.payload)
        self.client.updates.append((value, dict(self.payload)))
        return SimpleNamespace(data=[dict(row) for row in matched])


class FakeSupabaseClient:
    def __init__(self, rows=None, error: Optional[Exception] = None):
        self.rows = rows or []
        self.error = error
        self.tables: List[str] = []
        self.updates: List[tuple] = []
        self.pages_read = 0
        self.selected_columns = None
        self.ordered_by = None

    def table(self, name):
        self.tables.append(name)
        return FakeSupabaseQuery(self, name)
