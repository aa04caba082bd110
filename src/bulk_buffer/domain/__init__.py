"""Domain contracts for bulk-buffer."""

from bulk_buffer.domain.contracts import AddCommand, CommitCommand, Document, IndexRunSummary, UpdateResult
from bulk_buffer.domain.enums import BackendName, BufferEvent, CommandName

__all__ = [
    "AddCommand",
    "BackendName",
    "BufferEvent",
    "CommandName",
    "CommitCommand",
    "Document",
    "IndexRunSummary",
    "UpdateResult",
]
