"""In-memory update request recording add and commit commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from bulk_buffer.domain import AddCommand, CommitCommand, Document

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


class UpdateQuery:
    """Record update commands in submission order.

    Transports read `commands` and execute them one by one, so the order in
    which documents and commit directives were added is the order the
    backend sees them.
    """

    def __init__(self) -> None:
        """Create an empty update request."""
        self._commands: list[AddCommand | CommitCommand] = []

    @property
    def commands(self) -> tuple[AddCommand | CommitCommand, ...]:
        """Return recorded commands in order."""
        return tuple(self._commands)

    @property
    def documents(self) -> list[Document]:
        """Return every document added to this request, flattened."""
        return [
            document
            for command in self._commands
            if isinstance(command, AddCommand)
            for document in command.documents
        ]

    @property
    def has_commit(self) -> bool:
        """Return whether a commit directive was recorded."""
        return any(isinstance(command, CommitCommand) for command in self._commands)

    @property
    def is_empty(self) -> bool:
        """Return whether no command was recorded."""
        return not self._commands

    @staticmethod
    def create_document(
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
        return Document(fields=dict(fields), boosts=dict(boosts or {}))

    def add_documents(
        self,
        documents: Iterable[Document],
        overwrite: bool | None = None,
        commit_within: int | None = None,
    ) -> UpdateQuery:
        """Record one add command.

        Args:
            documents (Iterable[Document]): Documents in submission order.
            overwrite (bool | None): Whether existing documents are replaced.
            commit_within (int | None): Visibility deadline in milliseconds.

        Returns:
            UpdateQuery: The request itself.

        """
        batch = list(documents)
        if batch:
            self._commands.append(
                AddCommand(documents=batch, overwrite=overwrite, commit_within=commit_within),
            )
        return self

    def add_commit(
        self,
        wait_flush: bool | None = None,
        wait_searcher: bool | None = None,
        expunge_deletes: bool | None = None,
    ) -> UpdateQuery:
        """Record one commit directive.

        Args:
            wait_flush (bool | None): Wait for segments to be flushed.
            wait_searcher (bool | None): Wait for a new searcher to open.
            expunge_deletes (bool | None): Merge away deleted documents.

        Returns:
            UpdateQuery: The request itself.

        """
        self._commands.append(
            CommitCommand(
                wait_flush=wait_flush,
                wait_searcher=wait_searcher,
                expunge_deletes=expunge_deletes,
            ),
        )
        return self
