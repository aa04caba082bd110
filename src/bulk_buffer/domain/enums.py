"""Typed enumerations for CLI/domain choices."""

from __future__ import annotations

from enum import StrEnum


class CommandName(StrEnum):
    """Represent supported top-level CLI commands."""

    INDEX = "index"
    COMMIT = "commit"
    DOCTOR = "doctor"


class BackendName(StrEnum):
    """Represent supported search backends."""

    ELASTICSEARCH = "elasticsearch"
    OPENSEARCH = "opensearch"
    HTTP = "http"


class BufferEvent(StrEnum):
    """Represent notifications raised by the buffered add workflow."""

    FLUSH_START = "buffered_add_flush_start"
    FLUSH_END = "buffered_add_flush_end"
    COMMIT_START = "buffered_add_commit_start"
    COMMIT_END = "buffered_add_commit_end"
