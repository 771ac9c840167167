"""Tests for the content-addressed store on S3 and DynamoDB (moto)."""

from collections.abc import Callable
from typing import Any

import boto3
import pytest
from moto import mock_aws

from meterdata.errors import DuplicateContentError, StorageWriteError
from meterdata.manifest import DynamoDBManifestIndex, ManifestEntry
from meterdata.objects import S3ObjectStore
from meterdata.store import ContentAddressedStore, s3_store

BUCKET = "meterdata-file-store"
TABLE = "meterdata-manifest"


def export_bytes(text: str) -> bytes:
    return text.encode("windows-1250")


class TestS3Store:
    """Tests for ContentAddressedStore on S3 and DynamoDB."""

    def test_put_writes_object_and_manifest(
        self, mock_storage: dict[str, Any], build_export: Callable, cells: Callable
    ) -> None:
        store = s3_store()
        data = export_bytes(build_export(rows=[("PL0001000", "CP", cells([".5,+"]))]))

        stored = store.put(data, "day 1.csv")

        obj = mock_storage["s3"].get_object(Bucket=BUCKET, Key="storage/PL0001000/day_1.csv")
        assert obj["Body"].read() == data

        item = mock_storage["dynamodb"].Table(TABLE).get_item(Key={"digest": stored.digest})["Item"]
        assert item["relativePath"] == "PL0001000/day_1.csv"
        assert item["meterId"] == "PL0001000"
        assert item["originalName"] == "day 1.csv"

    def test_duplicate_yields_single_manifest_entry(self, mock_storage: dict[str, Any], build_export: Callable) -> None:
        store = s3_store()
        data = export_bytes(build_export(rows=[("PL0001000", "CP", [])]))

        store.put(data, "a.csv")
        with pytest.raises(DuplicateContentError):
            store.put(data, "a.csv")

        assert mock_storage["dynamodb"].Table(TABLE).scan()["Count"] == 1

    def test_same_name_different_content(self, mock_storage: dict[str, Any], build_export: Callable) -> None:
        store = s3_store()

        first = store.put(export_bytes(build_export(rows=[("PL0001000", "CP", ["1,+"])])), "a.csv")
        second = store.put(export_bytes(build_export(rows=[("PL0001000", "CP", ["2,+"])])), "a.csv")

        assert first.relative_path != second.relative_path
        assert second.stored_name.startswith("a_")
        assert second.stored_name.endswith(".csv")

    def test_list_files_skips_missing_objects(
        self, mock_storage: dict[str, Any], build_export: Callable, cells: Callable
    ) -> None:
        store = s3_store()
        gone = store.put(export_bytes(build_export(rows=[("PL0001000", "CP", ["1,+"])])), "gone.csv")
        kept = store.put(export_bytes(build_export(rows=[("PL0002000", "CP", ["2,+"])])), "kept.csv")
        mock_storage["s3"].delete_object(Bucket=BUCKET, Key=f"storage/{gone.relative_path}")

        files = store.list_files()

        assert len(files) == 1
        assert files[0]["digest"] == kept.digest
        assert files[0]["meterId"] == "PL0002000"
        assert files[0]["name"] == "kept.csv"
        assert "PL0002000;CP" in files[0]["content"]

    def test_missing_bucket_is_storage_failure(self, mock_storage: dict[str, Any], build_export: Callable) -> None:
        store = ContentAddressedStore(S3ObjectStore(bucket="no-such-bucket"), DynamoDBManifestIndex(TABLE))

        with pytest.raises(StorageWriteError):
            store.put(export_bytes(build_export()), "a.csv")

        assert DynamoDBManifestIndex(TABLE).entries() == []


class TestS3ObjectStore:
    """Tests for S3ObjectStore class."""

    def test_delete_failure_is_storage_error(self, mock_storage: dict[str, Any]) -> None:
        objects = S3ObjectStore(bucket="no-such-bucket")

        with pytest.raises(StorageWriteError):
            objects.delete("PL0001000/a.csv")


class TestDynamoDBManifestIndex:
    """Tests for DynamoDBManifestIndex class."""

    def test_conditional_put(self, mock_storage: dict[str, Any]) -> None:
        index = DynamoDBManifestIndex(TABLE)
        entry = ManifestEntry("d1", "a.csv", "a.csv", "M1", "M1/a.csv", "2025-10-01T00:00:00+00:00")
        other = ManifestEntry("d1", "b.csv", "b.csv", "M2", "M2/b.csv", "2025-10-02T00:00:00+00:00")

        assert index.put_if_absent(entry) is True
        assert index.put_if_absent(other) is False
        assert index.get("d1") == entry
        assert index.entries() == [entry]

    def test_missing_table_reads_empty(self, aws_credentials: None) -> None:
        with mock_aws():
            index = DynamoDBManifestIndex("no-such-table", resource=boto3.resource("dynamodb", region_name="ap-southeast-2"))

            assert index.entries() == []
            assert index.get("d1") is None
