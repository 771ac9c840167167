"""
Content-addressed store for uploaded meter export files.

Files are keyed by the sha256 digest of their bytes. The manifest index is the
single source of truth for duplicate detection and listing; the object backend
holds the bytes under <meter id>/<sanitized file name>.
"""

import hashlib
import re
import threading
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath
from typing import Any

from aws_lambda_powertools import Logger

from meterdata.classifier import LineKind, classify_line, split_fields
from meterdata.common import METER_ID_MIN_LENGTH, METER_ID_SCAN_LINES, RESERVED_TOKENS, UNKNOWN_METER_ID
from meterdata.config import MANIFEST_FILENAME, SOURCE_ENCODING, STORAGE_BUCKET, STORAGE_DIR, STORAGE_PREFIX
from meterdata.errors import DuplicateContentError, MissingBackingFileError, StorageWriteError
from meterdata.manifest import DynamoDBManifestIndex, JsonFileManifestIndex, ManifestEntry, ManifestIndex
from meterdata.objects import LocalDirectoryObjectStore, ObjectStore, S3ObjectStore

logger = Logger(service="meterdata-store", child=True)

UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


@dataclass(frozen=True)
class StoredFile:
    digest: str
    meter_id: str
    relative_path: str
    stored_name: str


def compute_digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def sanitize_name(name: str, fallback: str = "upload") -> str:
    """Replace every character outside [A-Za-z0-9.-] with an underscore."""
    safe = UNSAFE_CHARS.sub("_", name)
    if safe in ("", ".", ".."):
        return fallback
    return safe


def extract_meter_id(data: bytes, encoding: str = SOURCE_ENCODING) -> str:
    """
    Find the meter a file belongs to from its first lines.

    A non-empty kSE cooperative header wins. Otherwise the first line with at
    least two fields whose first field is longer than five characters and not
    a reserved header token is taken as the meter id.
    """
    lines = data.decode(encoding, errors="replace").splitlines()[:METER_ID_SCAN_LINES]

    candidate = None
    for line in lines:
        classified = classify_line(line)
        if classified.kind is LineKind.COOPERATIVE_HEADER and classified.cooperative_id:
            return classified.cooperative_id

        fields = split_fields(line)
        head = fields[0].strip()
        if (
            candidate is None
            and len(fields) > 1
            and len(head) >= METER_ID_MIN_LENGTH
            and head not in RESERVED_TOKENS
        ):
            candidate = head

    return candidate or UNKNOWN_METER_ID


class ContentAddressedStore:
    """
    Deduplicating file store.

    put() calls are serialized by an in-process lock. Across processes the
    manifest's conditional write decides the winner of a race on the same bytes.
    """

    def __init__(self, objects: ObjectStore, manifest: ManifestIndex, encoding: str = SOURCE_ENCODING) -> None:
        self.objects = objects
        self.manifest = manifest
        self.encoding = encoding
        self._lock = threading.Lock()

    def _free_name(self, meter_dir: str, safe_name: str) -> str:
        """Return safe_name, or safe_name with a millisecond timestamp when it is taken."""
        if not self.objects.exists(f"{meter_dir}/{safe_name}"):
            return safe_name

        parsed = PurePosixPath(safe_name)
        stamp = int(time.time() * 1000)
        candidate = f"{parsed.stem}_{stamp}{parsed.suffix}"
        while self.objects.exists(f"{meter_dir}/{candidate}"):
            stamp += 1
            candidate = f"{parsed.stem}_{stamp}{parsed.suffix}"
        return candidate

    def _discard(self, relative_path: str) -> None:
        """Remove an object that never made it into the manifest."""
        try:
            self.objects.delete(relative_path)
        except StorageWriteError as e:
            logger.warning("Orphan object left behind", extra={"path": relative_path, "error": str(e)})

    def put(self, data: bytes, original_name: str) -> StoredFile:
        """
        Store an uploaded file unless identical bytes are already stored.

        Args:
            data: Raw file bytes
            original_name: File name as uploaded

        Returns:
            StoredFile describing where the bytes were written

        Raises:
            DuplicateContentError: The digest is already in the manifest
            StorageWriteError: Writing the object or the manifest entry failed
        """
        digest = compute_digest(data)

        with self._lock:
            existing = self.manifest.get(digest)
            if existing is not None:
                logger.info("Duplicate upload rejected", extra={"digest": digest, "existing": existing.relative_path})
                raise DuplicateContentError(digest, existing.relative_path)

            meter_id = extract_meter_id(data, self.encoding)
            meter_dir = sanitize_name(meter_id, fallback=UNKNOWN_METER_ID)
            stored_name = self._free_name(meter_dir, sanitize_name(original_name))
            relative_path = f"{meter_dir}/{stored_name}"

            self.objects.write(relative_path, data)

            entry = ManifestEntry(
                digest=digest,
                original_name=original_name,
                stored_name=stored_name,
                meter_id=meter_id,
                relative_path=relative_path,
                uploaded_at=datetime.now(tz=UTC).isoformat(),
            )
            try:
                committed = self.manifest.put_if_absent(entry)
            except StorageWriteError:
                self._discard(relative_path)
                raise

            if not committed:
                # Another writer committed the same bytes first
                self._discard(relative_path)
                winner = self.manifest.get(digest)
                raise DuplicateContentError(digest, winner.relative_path if winner else relative_path)

        logger.info(
            "File stored",
            extra={"digest": digest, "meter_id": meter_id, "path": relative_path, "original_name": original_name},
        )
        return StoredFile(digest=digest, meter_id=meter_id, relative_path=relative_path, stored_name=stored_name)

    def list_files(self) -> list[dict[str, Any]]:
        """
        Load every stored file with its text content.

        Entries whose backing object is gone are skipped with a warning.

        Returns:
            List of {name, content, meterId, digest} ordered by upload time
        """
        files = []
        for entry in sorted(self.manifest.entries(), key=lambda e: (e.uploaded_at, e.digest)):
            try:
                data = self.objects.read(entry.relative_path)
            except MissingBackingFileError:
                logger.warning(
                    "Backing file missing for manifest entry",
                    extra={"digest": entry.digest, "path": entry.relative_path},
                )
                continue

            files.append(
                {
                    "name": entry.original_name,
                    "content": data.decode(self.encoding, errors="replace"),
                    "meterId": entry.meter_id,
                    "digest": entry.digest,
                }
            )
        return files


def s3_store(
    bucket: str = STORAGE_BUCKET,
    prefix: str = STORAGE_PREFIX,
    table_name: str | None = None,
) -> ContentAddressedStore:
    manifest = DynamoDBManifestIndex(table_name) if table_name else DynamoDBManifestIndex()
    return ContentAddressedStore(S3ObjectStore(bucket, prefix), manifest)


def local_store(root: str | Path = STORAGE_DIR) -> ContentAddressedStore:
    root = Path(root)
    return ContentAddressedStore(LocalDirectoryObjectStore(root), JsonFileManifestIndex(root / MANIFEST_FILENAME))
