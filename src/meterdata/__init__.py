"""
Meter data ingestion and storage.

This package parses grid operator meter export files into hourly records,
builds aggregated views over them and keeps uploaded files in a deduplicated,
content-addressed store.
"""

from meterdata.errors import (
    DuplicateContentError,
    MeterDataError,
    MissingBackingFileError,
    StorageWriteError,
    UnreadableFileError,
)
from meterdata.ingestor import BatchIngestor, ingest_paths, ingest_stored_files, ingest_texts
from meterdata.models import EnergyRecord, FileOutcome, HeaderStatus, IngestResult
from meterdata.store import ContentAddressedStore, local_store, s3_store
from meterdata.views import ViewKind, ViewSelector, build_view, view_totals

__all__ = [
    "BatchIngestor",
    "ContentAddressedStore",
    "DuplicateContentError",
    "EnergyRecord",
    "FileOutcome",
    "HeaderStatus",
    "IngestResult",
    "MeterDataError",
    "MissingBackingFileError",
    "StorageWriteError",
    "UnreadableFileError",
    "ViewKind",
    "ViewSelector",
    "build_view",
    "ingest_paths",
    "ingest_stored_files",
    "ingest_texts",
    "local_store",
    "s3_store",
    "view_totals",
]
