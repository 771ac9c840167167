"""Object backends holding the bytes of stored files."""

from pathlib import Path
from typing import Any, Protocol

import boto3
from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError

from meterdata.config import AWS_REGION, STORAGE_BUCKET, STORAGE_DIR, STORAGE_PREFIX
from meterdata.errors import MissingBackingFileError, StorageWriteError

logger = Logger(service="meterdata-objects", child=True)

MISSING_OBJECT_CODES = ("NoSuchKey", "NoSuchBucket", "404", "NotFound")


class ObjectStore(Protocol):
    def exists(self, relative_path: str) -> bool: ...

    def write(self, relative_path: str, data: bytes) -> None: ...

    def read(self, relative_path: str) -> bytes: ...

    def delete(self, relative_path: str) -> None: ...


class S3ObjectStore:
    """Stored files as S3 objects under a key prefix."""

    def __init__(self, bucket: str = STORAGE_BUCKET, prefix: str = STORAGE_PREFIX, client: Any = None) -> None:
        self.bucket = bucket
        self.prefix = prefix
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = boto3.client("s3", region_name=AWS_REGION)
        return self._client

    def key(self, relative_path: str) -> str:
        return f"{self.prefix}{relative_path}"

    def exists(self, relative_path: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=self.key(relative_path))
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code", "") in MISSING_OBJECT_CODES:
                return False
            raise StorageWriteError(f"Unable to check {relative_path}: {e}") from e

    def write(self, relative_path: str, data: bytes) -> None:
        key = self.key(relative_path)
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType="text/csv")
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 write failed", exc_info=True, extra={"bucket": self.bucket, "key": key, "error": str(e)})
            raise StorageWriteError(f"Unable to write {relative_path}: {e}") from e

    def read(self, relative_path: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self.key(relative_path))
        except ClientError as e:
            if e.response.get("Error", {}).get("Code", "") in MISSING_OBJECT_CODES:
                raise MissingBackingFileError(relative_path) from e
            raise
        return response["Body"].read()

    def delete(self, relative_path: str) -> None:
        key = self.key(relative_path)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageWriteError(f"Unable to delete {relative_path}: {e}") from e


class LocalDirectoryObjectStore:
    """Stored files under a local root directory."""

    def __init__(self, root: str | Path = STORAGE_DIR) -> None:
        self.root = Path(root)

    def path(self, relative_path: str) -> Path:
        return self.root / relative_path

    def exists(self, relative_path: str) -> bool:
        return self.path(relative_path).exists()

    def write(self, relative_path: str, data: bytes) -> None:
        path = self.path(relative_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.error("Local write failed", exc_info=True, extra={"path": str(path), "error": str(e)})
            raise StorageWriteError(f"Unable to write {relative_path}: {e}") from e

    def read(self, relative_path: str) -> bytes:
        try:
            return self.path(relative_path).read_bytes()
        except FileNotFoundError as e:
            raise MissingBackingFileError(relative_path) from e

    def delete(self, relative_path: str) -> None:
        try:
            self.path(relative_path).unlink(missing_ok=True)
        except OSError as e:
            raise StorageWriteError(f"Unable to delete {relative_path}: {e}") from e
