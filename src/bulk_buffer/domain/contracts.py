"""Domain contracts for buffered document updates."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from bulk_buffer.domain.enums import BackendName, CommandName


class Document(BaseModel):
    """Represent one document submitted to the search backend.

    Field values are stored as given; the buffer never inspects them.
    """

    fields: dict[str, Any] = Field(default_factory=dict)
    boosts: dict[str, float] = Field(default_factory=dict)
    boost: float | None = None

    def document_id(self, id_field: str = "id") -> str | None:
        """Return the identifier used by bulk operations.

        Args:
            id_field (str): Field holding the document identifier.

        Returns:
            str | None: Identifier as string, or `None` when absent.

        """
        value = self.fields.get(id_field)
        return None if value is None else str(value)


class AddCommand(BaseModel):
    """Represent one batch of documents to add or overwrite."""

    documents: list[Document] = Field(default_factory=list)
    overwrite: bool | None = None
    commit_within: int | None = None


class CommitCommand(BaseModel):
    """Represent one commit directive."""

    wait_flush: bool | None = None
    wait_searcher: bool | None = None
    expunge_deletes: bool | None = None


class UpdateResult(BaseModel):
    """Represent the normalized outcome of one submitted update request."""

    status: int = 0
    query_time_ms: int | None = None
    documents: int = 0
    committed: bool = False
    backend: str | None = None
    raw: list[dict[str, Any]] = Field(default_factory=list)


class IndexRunSummary(BaseModel):
    """Summarize one buffered indexing run."""

    schema_version: str = "1.0"
    command: CommandName = CommandName.INDEX
    backend: BackendName
    index: str
    buffer_size: int
    documents: int = 0
    flushes: int = 0
    commits: int = 0
    generated_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
