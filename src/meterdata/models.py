"""Record types shared by the normalizer, ingestor and views."""

from dataclasses import dataclass, field
from enum import Enum

import pandas as pd

from meterdata.common import BALANCE_TAG, CONSUMPTION_TAG, PRODUCTION_TAG

RECORD_COLUMNS = ["meter_id", "date", "hour", "consumption_in", "production_out", "balance"]
CHANNEL_COLUMNS = ["consumption_in", "production_out", "balance"]

# Channel tag -> EnergyRecord attribute
CHANNEL_FIELDS = {
    CONSUMPTION_TAG: "consumption_in",
    PRODUCTION_TAG: "production_out",
    BALANCE_TAG: "balance",
}

RecordKey = tuple[str, str, int]


class FileOutcome(Enum):
    """How a single source file was handled."""

    PARSED = "parsed"
    NO_DATE_HEADER = "no_date_header"  # No DD line at all, file discarded
    EMPTY_DATE_HEADER = "empty_date_header"  # DD line without a date, file discarded
    UNREADABLE = "unreadable"


class HeaderStatus(Enum):
    """Presence of an optional header line."""

    ABSENT = "absent"
    EMPTY = "empty"
    PRESENT = "present"


@dataclass
class EnergyRecord:
    """One meter, one calendar day, one hour (kWh)."""

    meter_id: str
    date: str
    hour: int
    consumption_in: float = 0.0
    production_out: float = 0.0
    balance: float = 0.0

    @property
    def key(self) -> RecordKey:
        return (self.meter_id, self.date, self.hour)


def sort_records(records: list[EnergyRecord]) -> list[EnergyRecord]:
    """Order records by (date, hour); ties keep their insertion order."""
    return sorted(records, key=lambda r: (r.date, r.hour))


def records_to_frame(records: list[EnergyRecord]) -> pd.DataFrame:
    """Build a DataFrame with one row per record, columns in RECORD_COLUMNS order."""
    return pd.DataFrame(
        [(r.meter_id, r.date, r.hour, r.consumption_in, r.production_out, r.balance) for r in records],
        columns=RECORD_COLUMNS,
    )


class RecordSet:
    """Records keyed by (meter_id, date, hour).

    Each observation writes a single channel, so one file can supply
    consumption and another the production for the same key.
    """

    def __init__(self) -> None:
        self._records: dict[RecordKey, EnergyRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def get(self, key: RecordKey) -> EnergyRecord | None:
        return self._records.get(key)

    def observe(self, meter_id: str, date: str, hour: int, channel: str, value: float) -> EnergyRecord:
        key = (meter_id, date, hour)
        record = self._records.get(key)
        if record is None:
            record = EnergyRecord(meter_id=meter_id, date=date, hour=hour)
            self._records[key] = record
        setattr(record, CHANNEL_FIELDS[channel], value)
        return record

    def purge_meter(self, meter_id: str) -> int:
        """Delete every record of a meter, returning how many were removed."""
        keys = [key for key in self._records if key[0] == meter_id]
        for key in keys:
            del self._records[key]
        return len(keys)

    def meter_ids(self) -> set[str]:
        return {key[0] for key in self._records}

    def sorted_records(self) -> list[EnergyRecord]:
        return sort_records(list(self._records.values()))


@dataclass
class FileReport:
    """Result of normalizing one file."""

    name: str
    outcome: FileOutcome
    date: str | None = None
    cooperative_id: str | None = None
    cooperative_status: HeaderStatus = HeaderStatus.ABSENT
    meter_ids: set[str] = field(default_factory=set)
    rows: int = 0


@dataclass
class IngestSummary:
    total_consumption: float
    total_production: float
    days_count: int
    cooperative_id: str | None = None


@dataclass
class IngestResult:
    """Canonical record set produced by one ingestion batch."""

    records: list[EnergyRecord]
    meter_ids: list[str]
    summary: IngestSummary
    errors: list[str] = field(default_factory=list)
    reports: list[FileReport] = field(default_factory=list)
    purged_records: int = 0

    def to_frame(self) -> pd.DataFrame:
        return records_to_frame(self.records)
