"""
Batch ingestion of meter export files.

Files are processed strictly one after another. Each file is merged into a
single RecordSet as if every identifier were an ordinary meter; once the whole
batch has been read, reconcile() removes the cooperative feed, which may only
have been recognized after some of its rows were ingested.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from aws_lambda_powertools import Logger

from meterdata.common import PROGRESS_LOG_EVERY
from meterdata.config import SOURCE_ENCODING
from meterdata.errors import UnreadableFileError
from meterdata.models import (
    FileOutcome,
    FileReport,
    IngestResult,
    IngestSummary,
    RecordSet,
)
from meterdata.normalizer import normalize_file

logger = Logger(service="meterdata-ingestor", child=True)

ProgressCallback = Callable[[int], None]


def read_source_file(path: str | Path, encoding: str = SOURCE_ENCODING) -> str:
    """Read and decode one export file, raising UnreadableFileError on failure."""
    path = Path(path)
    try:
        return path.read_bytes().decode(encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise UnreadableFileError(path.name, str(e)) from e


@dataclass
class ReconcileReport:
    cooperative_id: str | None
    purged_records: int
    removed_from_meters: bool


class BatchIngestor:
    """Accumulates records, meter ids and the cooperative id over one batch."""

    def __init__(self) -> None:
        self.records = RecordSet()
        self.meter_ids: set[str] = set()
        self.cooperative_id: str | None = None
        self.errors: list[str] = []
        self.reports: list[FileReport] = []
        self.processed = 0
        self.purged_records = 0

    def add_text(self, name: str, text: str) -> FileReport:
        report = normalize_file(name, text, self.records, self.cooperative_id)
        self.meter_ids.update(report.meter_ids)

        if report.cooperative_id:
            if self.cooperative_id is None:
                self.cooperative_id = report.cooperative_id
                logger.info("Cooperative id discovered", extra={"file": name, "cooperative_id": report.cooperative_id})
            elif report.cooperative_id != self.cooperative_id:
                logger.warning(
                    "Conflicting cooperative id ignored",
                    extra={"file": name, "cooperative_id": self.cooperative_id, "ignored": report.cooperative_id},
                )

        self.reports.append(report)
        return report

    def add_path(self, path: str | Path, encoding: str = SOURCE_ENCODING) -> FileReport:
        name = Path(path).name
        try:
            text = read_source_file(path, encoding)
        except UnreadableFileError as e:
            logger.warning("Unreadable file skipped", extra={"file": name, "error": e.reason})
            self.errors.append(str(e))
            report = FileReport(name=name, outcome=FileOutcome.UNREADABLE)
            self.reports.append(report)
            return report
        return self.add_text(name, text)

    def reconcile(self) -> ReconcileReport:
        """
        Remove phantom records of the cooperative feed.

        Post-condition: neither the meter ids nor any record carry the
        cooperative id.
        """
        cooperative_id = self.cooperative_id
        if not cooperative_id:
            return ReconcileReport(None, 0, False)

        removed = cooperative_id in self.meter_ids
        self.meter_ids.discard(cooperative_id)
        purged = self.records.purge_meter(cooperative_id)
        self.purged_records += purged

        if purged or removed:
            logger.info(
                "Phantom cooperative records purged",
                extra={"cooperative_id": cooperative_id, "purged_records": purged},
            )
        return ReconcileReport(cooperative_id, purged, removed)

    def result(self) -> IngestResult:
        self.reconcile()
        records = self.records.sorted_records()
        summary = IngestSummary(
            total_consumption=sum(r.consumption_in for r in records),
            total_production=sum(r.production_out for r in records),
            days_count=len({r.date for r in records}),
            cooperative_id=self.cooperative_id,
        )
        return IngestResult(
            records=records,
            meter_ids=sorted(self.meter_ids),
            summary=summary,
            errors=list(self.errors),
            reports=list(self.reports),
            purged_records=self.purged_records,
        )

    def advance(self, on_progress: ProgressCallback | None) -> None:
        self.processed += 1
        if on_progress is not None:
            on_progress(self.processed)
        if self.processed % PROGRESS_LOG_EVERY == 0:
            logger.debug("Ingestion progress", extra={"processed": self.processed})


def ingest_paths(
    paths: Iterable[str | Path],
    on_progress: ProgressCallback | None = None,
    encoding: str = SOURCE_ENCODING,
) -> IngestResult:
    """
    Ingest export files from disk, in the given order.

    Args:
        paths: Files to read
        on_progress: Called with the number of files processed so far after each file
        encoding: Source encoding of the files

    Returns:
        IngestResult with reconciled, sorted records
    """
    ingestor = BatchIngestor()
    for path in paths:
        ingestor.add_path(path, encoding)
        ingestor.advance(on_progress)

    result = ingestor.result()
    logger.info(
        "Batch ingested",
        extra={
            "files": ingestor.processed,
            "records": len(result.records),
            "meters": len(result.meter_ids),
            "errors": len(result.errors),
        },
    )
    return result


def ingest_texts(
    sources: Iterable[tuple[str, str]],
    on_progress: ProgressCallback | None = None,
) -> IngestResult:
    """Ingest already decoded (name, text) pairs, in the given order."""
    ingestor = BatchIngestor()
    for name, text in sources:
        ingestor.add_text(name, text)
        ingestor.advance(on_progress)
    return ingestor.result()


def ingest_stored_files(files: list[dict[str, Any]], on_progress: ProgressCallback | None = None) -> IngestResult:
    """Re-hydrate records from a store listing (dicts with name and content)."""
    return ingest_texts(((f["name"], f["content"]) for f in files), on_progress)
