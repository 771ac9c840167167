"""
Normalize the text of one meter export file into hourly records.

A file is read in two passes. The first pass resolves the date header and the
cooperative header, which may appear anywhere in the file. The second pass
writes every data row into the shared RecordSet.
"""

from dataclasses import dataclass

from aws_lambda_powertools import Logger

from meterdata.classifier import ClassifiedLine, LineKind, classify_line
from meterdata.codec import parse_value
from meterdata.models import FileOutcome, FileReport, HeaderStatus, RecordSet

logger = Logger(service="meterdata-normalizer", child=True)


@dataclass
class HeaderScan:
    date: str | None
    date_status: HeaderStatus
    cooperative_id: str | None
    cooperative_status: HeaderStatus


def scan_headers(lines: list[ClassifiedLine]) -> HeaderScan:
    """Resolve headers. The last dated DD line wins, the first non-empty kSE line wins."""
    date = None
    date_status = HeaderStatus.ABSENT
    cooperative_id = None
    cooperative_status = HeaderStatus.ABSENT

    for line in lines:
        if line.kind is LineKind.DATE_HEADER:
            if line.date:
                date = line.date
                date_status = HeaderStatus.PRESENT
            elif date_status is HeaderStatus.ABSENT:
                date_status = HeaderStatus.EMPTY
        elif line.kind is LineKind.COOPERATIVE_HEADER:
            if line.cooperative_id:
                if cooperative_id is None:
                    cooperative_id = line.cooperative_id
                    cooperative_status = HeaderStatus.PRESENT
            elif cooperative_status is HeaderStatus.ABSENT:
                cooperative_status = HeaderStatus.EMPTY

    return HeaderScan(date, date_status, cooperative_id, cooperative_status)


def normalize_file(
    name: str,
    text: str,
    records: RecordSet,
    known_cooperative_id: str | None = None,
) -> FileReport:
    """
    Write the data rows of one file into a RecordSet.

    Files without a dated DD header are discarded whole and add nothing.

    Args:
        name: File name, used for reporting only
        text: Decoded file content
        records: Batch-wide record set, updated in place
        known_cooperative_id: Cooperative id resolved by earlier files, if any

    Returns:
        FileReport with the outcome, headers and meter ids found in the file
    """
    lines = [classify_line(line) for line in text.splitlines()]
    headers = scan_headers(lines)

    report = FileReport(
        name=name,
        outcome=FileOutcome.PARSED,
        date=headers.date,
        cooperative_id=headers.cooperative_id,
        cooperative_status=headers.cooperative_status,
    )

    if headers.date_status is HeaderStatus.ABSENT:
        report.outcome = FileOutcome.NO_DATE_HEADER
        logger.info("File has no date header, discarded", extra={"file": name})
        return report

    if headers.date_status is HeaderStatus.EMPTY:
        report.outcome = FileOutcome.EMPTY_DATE_HEADER
        logger.info("File date header is empty, discarded", extra={"file": name})
        return report

    cooperative_id = known_cooperative_id or headers.cooperative_id

    for line in lines:
        if line.kind is not LineKind.DATA_ROW:
            continue

        if cooperative_id and line.identifier == cooperative_id:
            logger.debug("Skipping cooperative feed row", extra={"file": name, "identifier": line.identifier})
            continue

        report.meter_ids.add(line.identifier)
        report.rows += 1

        for hour, cell in enumerate(line.hour_cells(), start=1):
            records.observe(line.identifier, headers.date, hour, line.channel, parse_value(cell))

    logger.debug(
        "File normalized",
        extra={"file": name, "date": headers.date, "rows": report.rows, "meters": len(report.meter_ids)},
    )
    return report
