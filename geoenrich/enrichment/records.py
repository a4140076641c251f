"""
Record store boundary for the enrichment sweep.

The pipeline only needs two operations from the store: a full snapshot of
the contacts that might need coordinates, and a single atomic write of the
enrichment fields for one contact.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import ValidationError

from geoenrich.core import settings
from geoenrich.core.database import StoreError, fetch_rows_paginated, get_supabase_client
from geoenrich.enrichment.models import AddressRecord

logger = logging.getLogger(__name__)


class Columns:
    """Contact table columns read and written by the sweep."""
    ID = "id"
    ADDRESS = "address"
    LATITUDE = "latitude"
    LONGITUDE = "longitude"
    GEOCODED_AT = "geocoded_at"

    SELECT = f"{ID}, {ADDRESS}, {LATITUDE}, {LONGITUDE}, {GEOCODED_AT}"


class RecordSource(ABC):
    """Abstract access to the contacts being enriched."""

    @abstractmethod
    def list_enrichable(self) -> List[AddressRecord]:
        """
        Return every candidate record, in store order, as of now.

        Raises:
            StoreError: If the store cannot be read
        """
        pass

    @abstractmethod
    def persist_coordinates(
        self,
        record_id: str,
        latitude: float,
        longitude: float,
        timestamp: datetime,
    ) -> None:
        """
        Write latitude, longitude and the enrichment timestamp to one record.

        The three fields are applied together or not at all.

        Raises:
            StoreError: If the store rejects the write
        """
        pass


class SupabaseRecordSource(RecordSource):
    """
    Contacts stored in a Supabase (PostgREST) table.

    Usage:
        source = SupabaseRecordSource()  # uses SUPABASE_URL / SUPABASE_KEY
        records = source.list_enrichable()
    """

    def __init__(
        self,
        client: Optional["Client"] = None,
        table: Optional[str] = None,
        page_size: Optional[int] = None,
    ):
        """
        Args:
            client: Supabase client (created from settings if not provided)
            table: Contacts table name (default: settings.CONTACTS_TABLE)
            page_size: Rows per request when listing

        Raises:
            SupabaseClientError: If no client is given and one cannot be created
        """
        self.client = client or get_supabase_client()
        self.table = table or settings.CONTACTS_TABLE
        self.page_size = page_size or settings.STORE_PAGE_SIZE

    def list_enrichable(self) -> List[AddressRecord]:
        logger.info(f"Fetching contacts from Supabase table '{self.table}'...")

        records = []
        invalid = 0

        try:
            for batch in fetch_rows_paginated(
                self.client,
                self.table,
                columns=Columns.SELECT,
                batch_size=self.page_size,
                order_by=Columns.ID,
            ):
                for row in batch:
                    try:
                        records.append(AddressRecord.model_validate(row))
                    except ValidationError as e:
                        invalid += 1
                        logger.warning(f"Ignoring unreadable contact row {row.get(Columns.ID)!r}: {e}")

                logger.info(f"Fetched {len(records)} contacts so far...")

        except Exception as e:
            raise StoreError(f"Failed to read table '{self.table}': {e}") from e

        if invalid:
            logger.warning(f"{invalid} contact rows could not be parsed")

        return records

    def persist_coordinates(
        self,
        record_id: str,
        latitude: float,
        longitude: float,
        timestamp: datetime,
    ) -> None:
        payload = {
            Columns.LATITUDE: latitude,
            Columns.LONGITUDE: longitude,
            Columns.GEOCODED_AT: timestamp.isoformat(),
        }

        try:
            result = (
                self.client.table(self.table)
                .update(payload)
                .eq(Columns.ID, record_id)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Update failed: {e}", record_id=record_id) from e

        if not result.data:
            raise StoreError("No record matched the id", record_id=record_id)


class DryRunRecordSource(RecordSource):
    """
    Reads through to another source but never writes.

    Updates that would have been made are logged and kept in `would_update`.
    """

    def __init__(self, source: RecordSource, show_first: int = 10):
        self.source = source
        self.show_first = show_first
        self.would_update: List[Tuple[str, float, float, datetime]] = []

    def list_enrichable(self) -> List[AddressRecord]:
        return self.source.list_enrichable()

    def persist_coordinates(
        self,
        record_id: str,
        latitude: float,
        longitude: float,
        timestamp: datetime,
    ) -> None:
        self.would_update.append((record_id, latitude, longitude, timestamp))

        if len(self.would_update) <= self.show_first:
            logger.info(f"  Would update {record_id}: ({latitude:.6f}, {longitude:.6f})")
