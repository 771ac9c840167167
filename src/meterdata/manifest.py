"""
Manifest index mapping content digests to stored files.

Entries are written once with an atomic put-if-absent and never rewritten, so
a digest always maps to exactly one stored path.
"""

import json
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import boto3
from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError

from meterdata.config import AWS_REGION, MANIFEST_TABLE
from meterdata.errors import StorageWriteError

logger = Logger(service="meterdata-manifest", child=True)


@dataclass(frozen=True)
class ManifestEntry:
    digest: str
    original_name: str
    stored_name: str
    meter_id: str
    relative_path: str
    uploaded_at: str

    def to_document(self) -> dict[str, str]:
        """Persisted layout, without the digest key."""
        return {
            "originalName": self.original_name,
            "storedName": self.stored_name,
            "meterId": self.meter_id,
            "relativePath": self.relative_path,
            "uploadedAt": self.uploaded_at,
        }

    def to_item(self) -> dict[str, str]:
        return {"digest": self.digest, **self.to_document()}

    @classmethod
    def from_document(cls, digest: str, document: dict[str, Any]) -> "ManifestEntry":
        return cls(
            digest=digest,
            original_name=document["originalName"],
            stored_name=document["storedName"],
            meter_id=document["meterId"],
            relative_path=document["relativePath"],
            uploaded_at=document["uploadedAt"],
        )


class ManifestIndex(Protocol):
    def get(self, digest: str) -> ManifestEntry | None: ...

    def put_if_absent(self, entry: ManifestEntry) -> bool: ...

    def entries(self) -> list[ManifestEntry]: ...


def _error_code(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Code", "")


class DynamoDBManifestIndex:
    """Manifest in a DynamoDB table with partition key "digest"."""

    def __init__(self, table_name: str = MANIFEST_TABLE, resource: Any = None) -> None:
        self.table_name = table_name
        self._resource = resource

    @property
    def table(self) -> Any:
        if self._resource is None:
            self._resource = boto3.resource("dynamodb", region_name=AWS_REGION)
        return self._resource.Table(self.table_name)

    def get(self, digest: str) -> ManifestEntry | None:
        try:
            response = self.table.get_item(Key={"digest": digest})
        except ClientError as e:
            if _error_code(e) == "ResourceNotFoundException":
                return None
            raise
        item = response.get("Item")
        return ManifestEntry.from_document(item["digest"], item) if item else None

    def put_if_absent(self, entry: ManifestEntry) -> bool:
        try:
            self.table.put_item(
                Item=entry.to_item(),
                ConditionExpression="attribute_not_exists(#digest)",
                ExpressionAttributeNames={"#digest": "digest"},
            )
            return True
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                return False
            logger.error("Manifest write failed", exc_info=True, extra={"table": self.table_name, "error": str(e)})
            raise StorageWriteError(f"Unable to write manifest entry {entry.digest}: {e}") from e
        except BotoCoreError as e:
            logger.error("Manifest write failed", exc_info=True, extra={"table": self.table_name, "error": str(e)})
            raise StorageWriteError(f"Unable to write manifest entry {entry.digest}: {e}") from e

    def entries(self) -> list[ManifestEntry]:
        table = self.table
        try:
            response = table.scan()
            items = response.get("Items", [])

            # Handle pagination for large manifests
            while "LastEvaluatedKey" in response:
                response = table.scan(ExclusiveStartKey=response["LastEvaluatedKey"])
                items.extend(response.get("Items", []))
        except ClientError as e:
            if _error_code(e) == "ResourceNotFoundException":
                logger.warning("Manifest table not found", extra={"table": self.table_name})
                return []
            raise

        return [ManifestEntry.from_document(item["digest"], item) for item in items]


class JsonFileManifestIndex:
    """
    Manifest as a single JSON document keyed by digest.

    The document is rewritten whole on every put. Puts are serialized by a lock
    held across the read-modify-write, and the file is replaced atomically.
    The lock covers one process only.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> dict[str, dict[str, Any]]:
        if not self.path.exists():
            return {}
        return json.loads(self.path.read_text(encoding="utf-8"))

    def _save(self, document: dict[str, dict[str, Any]]) -> None:
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            logger.error("Manifest write failed", exc_info=True, extra={"path": str(self.path), "error": str(e)})
            raise StorageWriteError(f"Unable to write manifest {self.path}: {e}") from e

    def get(self, digest: str) -> ManifestEntry | None:
        document = self._load().get(digest)
        return ManifestEntry.from_document(digest, document) if document else None

    def put_if_absent(self, entry: ManifestEntry) -> bool:
        with self._lock:
            manifest = self._load()
            if entry.digest in manifest:
                return False
            manifest[entry.digest] = entry.to_document()
            self._save(manifest)
            return True

    def entries(self) -> list[ManifestEntry]:
        return [ManifestEntry.from_document(digest, document) for digest, document in self._load().items()]
