"""Buffered add workflow submitting documents to a search backend in batches.

Adding documents one by one to a search engine is slow; sending them in
batches is much more efficient. `BufferedAdd` accumulates documents and
flushes them automatically once the buffer size is reached. Remaining
documents are sent with an explicit `flush()` or `commit()`.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Literal

from bulk_buffer.domain import BufferEvent
from bulk_buffer.errors import InvalidBufferSizeError, TransportError
from bulk_buffer.events import NullEventSink
from bulk_buffer.update import UpdateQuery

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping
    from types import TracebackType

    from bulk_buffer.domain import Document, UpdateResult
    from bulk_buffer.events import EventSink
    from bulk_buffer.search.protocols import UpdateTransport
    from bulk_buffer.update import UpdateRequestBuilder

DEFAULT_BUFFER_SIZE = 100
_logger = logging.getLogger(__name__)


def validate_buffer_size(size: object) -> int:
    """Validate one buffer size value.

    Args:
        size (object): Candidate buffer size.

    Raises:
        InvalidBufferSizeError: If `size` is not an integer greater than zero.

    Returns:
        int: Validated buffer size.

    """
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise InvalidBufferSizeError(size)
    return size


class BufferedAdd:
    """Accumulate documents and submit them in batches.

    Collaborators are injected: `transport` executes update requests,
    `builder_factory` returns a fresh update request builder for every cycle
    and `events` receives start/end notifications around each submit.
    """

    def __init__(
        self,
        transport: UpdateTransport,
        *,
        builder_factory: Callable[[], UpdateRequestBuilder] = UpdateQuery,
        events: EventSink | None = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ) -> None:
        """Create an empty buffer.

        Args:
            transport (UpdateTransport): Transport submitting update requests.
            builder_factory (Callable[[], UpdateRequestBuilder]): Factory for fresh builders.
            events (EventSink | None): Optional notification sink.
            buffer_size (int): Number of documents triggering an automatic flush.

        """
        self._transport = transport
        self._builder_factory = builder_factory
        self._events: EventSink = events if events is not None else NullEventSink()
        self._buffer_size = validate_buffer_size(buffer_size)
        self._buffer: list[Document] = []
        self._uncommitted = False
        self._update_query = builder_factory()
        self._lock = threading.RLock()

    @property
    def buffer_size(self) -> int:
        """Return the automatic flush threshold."""
        return self._buffer_size

    @property
    def update_query(self) -> UpdateRequestBuilder:
        """Return the builder used for the current cycle."""
        return self._update_query

    def __len__(self) -> int:
        return len(self._buffer)

    def __enter__(self) -> BufferedAdd:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if exc_type is None and (self._buffer or self._uncommitted):
            self.commit()

    def set_buffer_size(self, size: int) -> BufferedAdd:
        """Set the automatic flush threshold.

        Args:
            size (int): Positive number of documents.

        Returns:
            BufferedAdd: The buffer itself.

        """
        self._buffer_size = validate_buffer_size(size)
        return self

    def get_buffer_size(self) -> int:
        """Return the automatic flush threshold."""
        return self._buffer_size

    def create_document(
        self,
        fields: Mapping[str, Any],
        boosts: Mapping[str, float] | None = None,
    ) -> BufferedAdd:
        """Create a document through the current builder and add it.

        Args:
            fields (Mapping[str, Any]): Field values.
            boosts (Mapping[str, float] | None): Optional per-field boosts.

        Returns:
            BufferedAdd: The buffer itself.

        """
        document = self._update_query.create_document(fields, boosts)
        return self.add_document(document)

    def add_document(self, document: Document) -> BufferedAdd:
        """Add one document, flushing when the buffer size is reached.

        Args:
            document (Document): Document to buffer.

        Returns:
            BufferedAdd: The buffer itself.

        """
        with self._lock:
            self._buffer.append(document)
            if len(self._buffer) >= self._buffer_size:
                _logger.debug("Buffer size %d reached, flushing.", self._buffer_size)
                self.flush()
        return self

    def add_documents(self, documents: Iterable[Document]) -> BufferedAdd:
        """Add documents one by one; several flushes may happen in one call.

        Args:
            documents (Iterable[Document]): Documents in insertion order.

        Returns:
            BufferedAdd: The buffer itself.

        """
        for document in documents:
            self.add_document(document)
        return self

    def get_documents(self) -> tuple[Document, ...]:
        """Return documents currently in the buffer.

        Previously flushed documents are not included.
        """
        return tuple(self._buffer)

    def clear(self) -> BufferedAdd:
        """Drop buffered documents and start a fresh update request.

        Returns:
            BufferedAdd: The buffer itself.

        """
        with self._lock:
            self._update_query = self._builder_factory()
            self._buffer = []
        return self

    def flush(
        self,
        overwrite: bool | None = None,
        commit_within: int | None = None,
    ) -> UpdateResult | Literal[False]:
        """Submit buffered documents without a commit directive.

        Args:
            overwrite (bool | None): Whether existing documents are replaced.
            commit_within (int | None): Visibility deadline in milliseconds.

        Returns:
            UpdateResult | Literal[False]: Update result, or `False` when the buffer is empty.

        """
        with self._lock:
            if not self._buffer:
                return False

            batch = tuple(self._buffer)
            self._events.notify(BufferEvent.FLUSH_START, batch)

            self._update_query.add_documents(batch, overwrite, commit_within)
            result = self._submit()
            self.clear()
            self._uncommitted = True

            _logger.info("Flushed %d document(s) to '%s'.", len(batch), self._transport.backend_name)
            self._events.notify(BufferEvent.FLUSH_END, result)
            return result

    def commit(
        self,
        overwrite: bool | None = None,
        wait_flush: bool | None = None,
        wait_searcher: bool | None = None,
        expunge_deletes: bool | None = None,
    ) -> UpdateResult:
        """Submit buffered documents, if any, together with a commit directive.

        An empty buffer still sends a bare commit.

        Args:
            overwrite (bool | None): Whether existing documents are replaced.
            wait_flush (bool | None): Wait for segments to be flushed.
            wait_searcher (bool | None): Wait for a new searcher to open.
            expunge_deletes (bool | None): Merge away deleted documents.

        Returns:
            UpdateResult: Update result.

        """
        with self._lock:
            batch = tuple(self._buffer)
            self._events.notify(BufferEvent.COMMIT_START, batch)

            if batch:
                self._update_query.add_documents(batch, overwrite)
            self._update_query.add_commit(wait_flush, wait_searcher, expunge_deletes)
            result = self._submit()
            self.clear()
            self._uncommitted = False

            _logger.info("Committed %d document(s) to '%s'.", len(batch), self._transport.backend_name)
            self._events.notify(BufferEvent.COMMIT_END, result)
            return result

    def _submit(self) -> UpdateResult:
        try:
            return self._transport.update(self._update_query)
        except Exception as exc:
            pending_positions = exc.pending_positions if isinstance(exc, TransportError) else None
            if pending_positions is not None:
                # Documents the backend already applied are not sent again.
                applied = len(self._buffer) - len(pending_positions)
                self._buffer = [self._buffer[position] for position in pending_positions]
                self._uncommitted = self._uncommitted or applied > 0
            _logger.warning(
                "Submit to '%s' failed, keeping %d pending document(s).",
                self._transport.backend_name,
                len(self._buffer),
            )
            self._update_query = self._builder_factory()
            raise
