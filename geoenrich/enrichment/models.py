"""
Models for the contact enrichment sweep.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from geoenrich.core.utils.address import clean_address
from geoenrich.core.utils.geo import has_coordinate_pair


class AddressRecord(BaseModel):
    """
    One contact's postal data as read from the store.

    Accepts both the table's snake_case columns and the CRM's camelCase
    field names. Columns unrelated to geocoding are ignored.
    """
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    enriched_at: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("enriched_at", "geocoded_at", "enrichedAt", "geocodedAt"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("record id is required")
        return str(v)

    @field_validator("address", mode="before")
    @classmethod
    def non_text_address(cls, v: Any) -> Optional[str]:
        """Treat a non-string address (number, map, list) as missing."""
        return v if isinstance(v, str) else None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def empty_coordinate(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def has_coordinates(self) -> bool:
        """Both coordinate fields present. (0.0, 0.0) counts as present."""
        return has_coordinate_pair(self.latitude, self.longitude)

    @property
    def clean_address(self) -> Optional[str]:
        return clean_address(self.address)


class RecordState(str, Enum):
    """Per-record state within one run."""
    PENDING = "pending"
    SKIPPED = "skipped"
    LOOKUP_IN_FLIGHT = "lookup_in_flight"
    GEOCODED = "geocoded"
    LOOKUP_FAILED = "lookup_failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RecordState.SKIPPED, RecordState.GEOCODED, RecordState.LOOKUP_FAILED)


class SkipReason(str, Enum):
    ALREADY_GEOCODED = "already_geocoded"
    NO_ADDRESS = "no_address"


@dataclass
class RecordOutcome:
    """Terminal state reached by one record."""
    record_id: str
    state: RecordState
    reason: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass
class RunStatistics:
    """Counters describing one pipeline run."""

    total: int = 0
    processed: int = 0
    geocoded: int = 0
    failed: int = 0
    skipped: int = 0
    cancelled: bool = False
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    @property
    def elapsed(self) -> float:
        """Seconds between start and finish (or now, while running)."""
        end = self.finished_at or datetime.now(timezone.utc)
        return (end - self.started_at).total_seconds()

    @property
    def success_rate(self) -> float:
        """Percentage of processed records that were geocoded."""
        if not self.processed:
            return 0.0
        return self.geocoded / self.processed * 100

    def snapshot(self) -> "RunStatistics":
        return replace(self)

    @property
    def as_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total": self.total,
            "processed": self.processed,
            "geocoded": self.geocoded,
            "failed": self.failed,
            "skipped": self.skipped,
            "cancelled": self.cancelled,
            "success_rate": round(self.success_rate, 1),
            "elapsed_seconds": round(self.elapsed, 3),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


class EventKind(str, Enum):
    RECORD = "record"
    PROGRESS = "progress"
    SUMMARY = "summary"


@dataclass
class ProgressEvent:
    """Notification emitted by the pipeline while it runs."""
    kind: EventKind
    processed: int
    total: int
    outcome: Optional[RecordOutcome] = None
    statistics: Optional[RunStatistics] = None
