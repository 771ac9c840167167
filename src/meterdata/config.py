"""Configuration for meter data storage and ingestion."""

import os

# Legacy encoding used by grid operator exports
SOURCE_ENCODING = os.environ.get("METERDATA_SOURCE_ENCODING", "windows-1250")

AWS_REGION = os.environ.get("METERDATA_REGION", "ap-southeast-2")

# S3 storage configuration
STORAGE_BUCKET = os.environ.get("METERDATA_BUCKET", "meterdata-file-store")
STORAGE_PREFIX = os.environ.get("METERDATA_PREFIX", "storage/")

# DynamoDB manifest configuration
MANIFEST_TABLE = os.environ.get("METERDATA_MANIFEST_TABLE", "meterdata-manifest")

# Local storage configuration (scripts and development)
STORAGE_DIR = os.environ.get("METERDATA_STORAGE_DIR", "storage")
MANIFEST_FILENAME = "manifest.json"
