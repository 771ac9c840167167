"""Exceptions raised by the ingestion and storage layers."""


class MeterDataError(Exception):
    """Base class for meter data errors."""


class UnreadableFileError(MeterDataError):
    """A source file could not be read or decoded."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Unable to read file {name}: {reason}")
        self.name = name
        self.reason = reason


class DuplicateContentError(MeterDataError):
    """Uploaded bytes are already present in the store."""

    def __init__(self, digest: str, existing_path: str) -> None:
        super().__init__(f"File already stored as: {existing_path}")
        self.digest = digest
        self.existing_path = existing_path


class StorageWriteError(MeterDataError):
    """Persisting an upload or its manifest entry failed."""


class MissingBackingFileError(MeterDataError):
    """A manifest entry points at an object that no longer exists."""

    def __init__(self, relative_path: str) -> None:
        super().__init__(f"Backing file not found: {relative_path}")
        self.relative_path = relative_path
