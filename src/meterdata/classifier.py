"""Classify single lines of a meter export file."""

from dataclasses import dataclass
from enum import Enum

from meterdata.codec import format_date
from meterdata.common import (
    CHANNEL_TAGS,
    COOPERATIVE_HEADER_TOKEN,
    DATE_HEADER_TOKEN,
    FIELD_SEPARATOR,
    FIRST_HOUR_COLUMN,
    HOURS_PER_DAY,
    METADATA_TOKENS,
)


class LineKind(Enum):
    DATE_HEADER = "date_header"
    COOPERATIVE_HEADER = "cooperative_header"
    DATA_ROW = "data_row"
    IGNORED = "ignored"


@dataclass
class ClassifiedLine:
    kind: LineKind
    fields: list[str]
    # Date header: converted date, "" when the header has no value
    date: str | None = None
    # Cooperative header: stripped identifier, "" when the header is empty
    cooperative_id: str | None = None
    # Data row
    identifier: str | None = None
    channel: str | None = None

    def hour_cells(self) -> list[str | None]:
        """Return the 24 hourly cells of a data row, None where the row is short."""
        cells: list[str | None] = list(self.fields[FIRST_HOUR_COLUMN : FIRST_HOUR_COLUMN + HOURS_PER_DAY])
        cells.extend([None] * (HOURS_PER_DAY - len(cells)))
        return cells


def split_fields(line: str) -> list[str]:
    return line.rstrip("\r\n").split(FIELD_SEPARATOR)


def classify_line(line: str) -> ClassifiedLine:
    fields = split_fields(line)
    head = fields[0].strip()
    second = fields[1].strip() if len(fields) > 1 else ""

    if head == DATE_HEADER_TOKEN and len(fields) > 1:
        return ClassifiedLine(LineKind.DATE_HEADER, fields, date=format_date(fields[1]) if second else "")

    if head == COOPERATIVE_HEADER_TOKEN and len(fields) > 1:
        return ClassifiedLine(LineKind.COOPERATIVE_HEADER, fields, cooperative_id=second)

    if not head or second not in CHANNEL_TAGS or head in METADATA_TOKENS:
        return ClassifiedLine(LineKind.IGNORED, fields)

    return ClassifiedLine(LineKind.DATA_ROW, fields, identifier=head, channel=second)
