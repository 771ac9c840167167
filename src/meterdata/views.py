"""Filtered and aggregated views over a canonical record set."""

from dataclasses import dataclass
from enum import Enum

from aws_lambda_powertools import Logger

from meterdata.common import AGGREGATE_LABEL_SUFFIX, DEFAULT_COOPERATIVE_LABEL, WHOLE_AGGREGATE_LABEL
from meterdata.models import CHANNEL_COLUMNS, EnergyRecord, records_to_frame, sort_records

logger = Logger(service="meterdata-views", child=True)


class ViewKind(Enum):
    METER = "meter"
    MEMBERS = "members"
    ALL = "all"  # Legacy whole-cooperative sum, includes an uploaded cooperative feed


@dataclass(frozen=True)
class ViewSelector:
    kind: ViewKind = ViewKind.MEMBERS
    meter_id: str | None = None
    date: str | None = None  # None selects every day

    @classmethod
    def for_meter(cls, meter_id: str, date: str | None = None) -> "ViewSelector":
        return cls(ViewKind.METER, meter_id=meter_id, date=date)


@dataclass
class ViewTotals:
    total_consumption: float
    total_production: float


def aggregate_label(kind: ViewKind, cooperative_id: str | None = None) -> str:
    if kind is ViewKind.ALL:
        return f"{WHOLE_AGGREGATE_LABEL}{AGGREGATE_LABEL_SUFFIX}"
    return f"{cooperative_id or DEFAULT_COOPERATIVE_LABEL}{AGGREGATE_LABEL_SUFFIX}"


def sum_by_hour(records: list[EnergyRecord], label: str) -> list[EnergyRecord]:
    """Sum every channel per (date, hour), emitting one record per key under label."""
    if not records:
        return []

    frame = records_to_frame(records)
    grouped = frame.groupby(["date", "hour"], as_index=False, sort=True)[CHANNEL_COLUMNS].sum()

    return [
        EnergyRecord(
            meter_id=label,
            date=str(row.date),
            hour=int(row.hour),
            consumption_in=float(row.consumption_in),
            production_out=float(row.production_out),
            balance=float(row.balance),
        )
        for row in grouped.itertuples(index=False)
    ]


def build_view(
    records: list[EnergyRecord],
    selector: ViewSelector,
    cooperative_id: str | None = None,
) -> list[EnergyRecord]:
    """
    Produce the records shown for a view selection.

    Args:
        records: Canonical records of an ingestion batch
        selector: View kind, meter (for METER views) and optional day
        cooperative_id: Cooperative id of the batch, excluded from the members view

    Returns:
        Records ordered by (date, hour)
    """
    if selector.date is not None:
        records = [r for r in records if r.date == selector.date]

    if selector.kind is ViewKind.METER:
        if not selector.meter_id:
            raise ValueError("A meter view needs a meter_id")
        view = sort_records([r for r in records if r.meter_id == selector.meter_id])
    elif selector.kind is ViewKind.MEMBERS:
        members = [r for r in records if r.meter_id != cooperative_id] if cooperative_id else records
        view = sum_by_hour(members, aggregate_label(ViewKind.MEMBERS, cooperative_id))
    else:
        view = sum_by_hour(records, aggregate_label(ViewKind.ALL))

    logger.debug(
        "View built",
        extra={"kind": selector.kind.value, "meter_id": selector.meter_id, "date": selector.date, "rows": len(view)},
    )
    return view


def view_totals(view_records: list[EnergyRecord]) -> ViewTotals:
    """Totals of the records currently in view."""
    return ViewTotals(
        total_consumption=sum(r.consumption_in for r in view_records),
        total_production=sum(r.production_out for r in view_records),
    )


def available_dates(records: list[EnergyRecord]) -> list[str]:
    return sorted({r.date for r in records})
