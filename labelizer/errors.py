"""
Exception hierarchy for labelizer.

Everything raised on purpose inherits from LabelizerError so pipeline
callers can catch broadly or narrowly.  Each exception carries the stage
name and record path where known.
"""

from __future__ import annotations


class LabelizerError(Exception):
    """Base exception for all labelizer errors."""

    def __init__(
        self,
        message: str,
        *,
        stage: str | None = None,
        path: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.stage = stage
        self.path = path
        self.details = details or {}
        super().__init__(message)


class RecordParseError(LabelizerError):
    """The record file exists but is not a JSON array of strings."""
    pass


class HashComputeError(LabelizerError):
    """Item contents are present but cannot be hashed."""
    pass


class FileWriteError(LabelizerError):
    """Writing the record file failed."""
    pass


class StageError(LabelizerError):
    """A stage function raised something outside this hierarchy."""
    pass


class ConfigError(LabelizerError, ValueError):
    """The YAML config is unreadable or fails schema validation."""
    pass
