"""Shared pytest fixtures for meter data tests."""

import os
import sys
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

REGION = "ap-southeast-2"
BUCKET = "meterdata-file-store"
TABLE = "meterdata-manifest"

ExportBuilder = Callable[..., str]


# ==================== Test Data Generators ====================


def hour_cells(values: list[str] | None = None, fill: str = ".000,+") -> list[str]:
    """Return 24 hourly cells, the given values first and fill for the rest."""
    values = values or []
    return values + [fill] * (24 - len(values))


def build_export_text(
    date: str | None = "01-10-2025",
    cooperative_id: str | None = None,
    rows: list[tuple[str, str, list[str]]] | None = None,
    cooperative_first: bool = True,
) -> str:
    """
    Build the text of an export file.

    Args:
        date: DD-MM-YYYY for the DD header, None to leave the header out
        cooperative_id: Value of the kSE header, None to leave it out
        rows: (identifier, tag, cells) data rows
        cooperative_first: Put the kSE header before the data rows
    """
    header = ["kOSD;OSD01;;", "DCW;20251002;;"]
    if date is not None:
        header.append(f"DD;{date};;")
    data = [";".join([meter, tag, "kWh", *cells]) for meter, tag, cells in rows or []]
    cooperative = [f"kSE;{cooperative_id};;"] if cooperative_id is not None else []

    lines = header + cooperative + data if cooperative_first else header + data + cooperative
    return "\r\n".join(lines) + "\r\n"


@pytest.fixture
def build_export() -> ExportBuilder:
    """Builder for export file text."""
    return build_export_text


@pytest.fixture
def cells() -> Callable[..., list[str]]:
    """Builder for 24 hourly cells."""
    return hour_cells


@pytest.fixture
def write_export(tmp_path: Path) -> Callable[..., Path]:
    """Write export text to a file in the legacy encoding and return its path."""

    def _write(name: str, text: str, encoding: str = "windows-1250") -> Path:
        path = tmp_path / "exports" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(text.encode(encoding))
        return path

    return _write


# ==================== AWS Mocks ====================


@pytest.fixture
def aws_credentials() -> Generator[None]:
    """Mock AWS credentials for moto."""
    original_env = os.environ.copy()

    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = REGION
    os.environ["POWERTOOLS_TRACE_DISABLED"] = "true"
    os.environ["POWERTOOLS_METRICS_NAMESPACE"] = "test"

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def mock_storage(aws_credentials: None) -> Generator[dict[str, Any]]:
    """Create mock S3 bucket and DynamoDB manifest table."""
    with mock_aws():
        s3 = boto3.client("s3", region_name=REGION)
        s3.create_bucket(Bucket=BUCKET, CreateBucketConfiguration={"LocationConstraint": REGION})

        dynamodb = boto3.resource("dynamodb", region_name=REGION)
        dynamodb.create_table(
            TableName=TABLE,
            KeySchema=[{"AttributeName": "digest", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "digest", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )

        yield {"s3": s3, "dynamodb": dynamodb}


# ==================== Lambda Context Fixtures ====================


@pytest.fixture
def mock_lambda_context() -> MagicMock:
    """Create mock Lambda context for the storage API."""
    context = MagicMock()
    context.function_name = "meterdata-storage-api"
    context.memory_limit_in_mb = 256
    context.invoked_function_arn = "arn:aws:lambda:ap-southeast-2:123456789012:function:meterdata-storage-api"
    context.aws_request_id = "test-request-id"
    return context
