"""Protocols for transports executing update requests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from bulk_buffer.domain import UpdateResult
    from bulk_buffer.update import UpdateQuery


class UpdateTransport(Protocol):
    """Define a thin interface for submitting update requests."""

    backend_name: str

    def update(self, query: UpdateQuery) -> UpdateResult:
        """Execute every command recorded in an update request.

        Args:
            query (UpdateQuery): Update request to submit.

        Raises:
            TransportError: If the backend rejects or fails the request.

        Returns:
            UpdateResult: Normalized result.

        """

    def close(self) -> None:
        """Release transport resources."""


class CommandExecutor(Protocol):
    """Define the backend calls an update request is mapped onto."""

    backend_name: str
    index: str
    id_field: str

    def bulk(self, operations: list[dict[str, Any]], *, refresh: str | None) -> dict[str, Any]:
        """Send one bulk request and return the raw response."""

    def refresh(self) -> dict[str, Any]:
        """Make indexed documents visible to searches."""

    def flush(self) -> dict[str, Any]:
        """Persist indexed documents to durable storage."""

    def forcemerge(self) -> dict[str, Any]:
        """Merge away segments holding deleted documents."""
