"""
Storage API Lambda: uploads and lists meter export files.

Routes (API Gateway REST proxy integration):
    POST /upload  multipart/form-data with a "file" part
    GET  /files   every stored file with its text content

The API needs multipart/form-data registered as a binary media type so the
body reaches the function base64 encoded and the legacy encoding survives.
"""

import base64
import json
from email import policy
from email.parser import BytesParser
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.event_handler import APIGatewayRestResolver, Response, content_types
from aws_lambda_powertools.metrics import MetricUnit

from meterdata import ContentAddressedStore, DuplicateContentError, StorageWriteError, s3_store

logger = Logger(service="storage-api")
tracer = Tracer(service="storage-api")
metrics = Metrics(namespace="MeterData/Storage")

app = APIGatewayRestResolver()

UPLOAD_FIELD = "file"

# Store (lazy initialization)
_store = None


def get_store() -> ContentAddressedStore:
    """Get the content-addressed store with lazy initialization."""
    global _store
    if _store is None:
        _store = s3_store()
    return _store


def json_response(status_code: int, body: Any) -> Response:
    return Response(status_code=status_code, content_type=content_types.APPLICATION_JSON, body=json.dumps(body))


def parse_multipart_file(body: bytes, content_type: str, field_name: str = UPLOAD_FIELD) -> tuple[str, bytes] | None:
    """
    Extract one file part from a multipart/form-data body.

    Args:
        body: Raw request body
        content_type: Request Content-Type header, including the boundary
        field_name: Form field holding the file

    Returns:
        (filename, bytes) of the part, or None when there is no such part
    """
    if not content_type.lower().startswith("multipart/form-data"):
        return None

    message = BytesParser(policy=policy.HTTP).parsebytes(
        b"Content-Type: " + content_type.encode("latin-1") + b"\r\n\r\n" + body
    )
    if not message.is_multipart():
        return None

    for part in message.iter_parts():
        if part.get_param("name", header="content-disposition") != field_name:
            continue
        filename = part.get_filename() or field_name
        return filename, part.get_payload(decode=True) or b""
    return None


def request_body() -> bytes:
    event = app.current_event
    body = event.body or ""
    if event.is_base64_encoded:
        return base64.b64decode(body)
    return body.encode("utf-8")


def request_header(name: str) -> str:
    headers = app.current_event.headers or {}
    for key, value in headers.items():
        if key.lower() == name.lower():
            return value
    return ""


@app.post("/upload")
@tracer.capture_method
def upload() -> Response:
    upload_part = parse_multipart_file(request_body(), request_header("content-type"))
    if upload_part is None:
        logger.warning("Upload without file part")
        return json_response(400, {"error": "No file"})

    filename, data = upload_part
    logger.info("Upload received", extra={"file_name": filename, "size_bytes": len(data)})

    try:
        stored = get_store().put(data, filename)
    except DuplicateContentError as e:
        metrics.add_metric(name="DuplicateUploads", unit=MetricUnit.Count, value=1)
        return json_response(
            409,
            {"error": "Duplicate", "message": f"File already stored as: {e.existing_path}", "existingPath": e.existing_path},
        )
    except Exception as e:
        logger.error(
            "Upload failed" if isinstance(e, StorageWriteError) else "Unexpected upload error",
            exc_info=True,
            extra={"file_name": filename, "error": str(e), "error_type": type(e).__name__},
        )
        metrics.add_metric(name="UploadErrors", unit=MetricUnit.Count, value=1)
        return json_response(500, {"error": "ServerError"})

    metrics.add_metric(name="UploadedFiles", unit=MetricUnit.Count, value=1)
    return json_response(200, {"meterId": stored.meter_id, "storedFilename": stored.stored_name, "digest": stored.digest})


@app.get("/files")
@tracer.capture_method
def list_files() -> Response:
    try:
        files = get_store().list_files()
    except Exception as e:
        # Absent backing store reads as an empty listing
        logger.warning("Listing failed, returning empty list", exc_info=True, extra={"error": str(e)})
        files = []

    metrics.add_metric(name="ListedFiles", unit=MetricUnit.Count, value=len(files))
    return json_response(200, files)


@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
@logger.inject_lambda_context
def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    return app.resolve(event, context)
