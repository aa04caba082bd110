"""Protocols for update request builders."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from bulk_buffer.domain import Document


class UpdateRequestBuilder(Protocol):
    """Define the builder interface used by the buffered add workflow."""

    def create_document(
        self,
        fields: Mapping[str, Any],
        boosts: Mapping[str, float] | None = None,
    ) -> Document:
        """Create a document instance.

        Args:
            fields (Mapping[str, Any]): Field values.
            boosts (Mapping[str, float] | None): Optional per-field boosts.

        Returns:
            Document: New document.

        """

    def add_documents(
        self,
        documents: Iterable[Document],
        overwrite: bool | None = None,
        commit_within: int | None = None,
    ) -> UpdateRequestBuilder:
        """Add a batch of documents to the request.

        Args:
            documents (Iterable[Document]): Documents in submission order.
            overwrite (bool | None): Whether existing documents are replaced.
            commit_within (int | None): Visibility deadline in milliseconds.

        Returns:
            UpdateRequestBuilder: The builder itself.

        """

    def add_commit(
        self,
        wait_flush: bool | None = None,
        wait_searcher: bool | None = None,
        expunge_deletes: bool | None = None,
    ) -> UpdateRequestBuilder:
        """Add a commit directive to the request.

        Args:
            wait_flush (bool | None): Wait for segments to be flushed.
            wait_searcher (bool | None): Wait for a new searcher to open.
            expunge_deletes (bool | None): Merge away deleted documents.

        Returns:
            UpdateRequestBuilder: The builder itself.

        """
