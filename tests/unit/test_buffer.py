from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

import pytest

from bulk_buffer.buffer import DEFAULT_BUFFER_SIZE, BufferedAdd
from bulk_buffer.domain import AddCommand, BufferEvent, CommitCommand, Document, UpdateResult
from bulk_buffer.errors import (
    BackendTransportError,
    BulkIndexingError,
    ConfigurationError,
    InvalidBufferSizeError,
)
from bulk_buffer.update import UpdateQuery

_BUFFER_SIZE = 3
_COMMIT_WITHIN_MS = 5000
_THREAD_COUNT = 4
_DOCS_PER_THREAD = 250
_CONCURRENT_BUFFER_SIZE = 10


@dataclass
class _TransportStub:
    queries: list[UpdateQuery] = field(default_factory=list)
    results: list[UpdateResult] = field(default_factory=list)
    fail_with: Exception | None = None
    backend_name: str = "stub"

    def update(self, query: UpdateQuery) -> UpdateResult:
        if self.fail_with is not None:
            raise self.fail_with
        self.queries.append(query)
        result = UpdateResult(
            documents=len(query.documents),
            committed=query.has_commit,
            backend=self.backend_name,
        )
        self.results.append(result)
        return result

    def close(self) -> None:
        return None


@dataclass
class _RecordingSink:
    events: list[tuple[BufferEvent, Any]] = field(default_factory=list)

    def notify(self, event: BufferEvent, payload: Any) -> None:
        self.events.append((event, payload))

    def names(self) -> list[BufferEvent]:
        return [event for event, _payload in self.events]


def _doc(identifier: int | str) -> Document:
    return Document(fields={"id": identifier, "content": f"document {identifier}"})


def _buffer(
    *,
    buffer_size: int = _BUFFER_SIZE,
) -> tuple[BufferedAdd, _TransportStub, _RecordingSink]:
    transport = _TransportStub()
    sink = _RecordingSink()
    return BufferedAdd(transport, events=sink, buffer_size=buffer_size), transport, sink


def test_default_buffer_size_is_one_hundred() -> None:
    buffered_add = BufferedAdd(_TransportStub())

    assert buffered_add.get_buffer_size() == DEFAULT_BUFFER_SIZE == 100
    assert buffered_add.buffer_size == DEFAULT_BUFFER_SIZE


def test_set_buffer_size_is_fluent() -> None:
    buffered_add, _transport, _sink = _buffer()

    assert buffered_add.set_buffer_size(7) is buffered_add
    assert buffered_add.get_buffer_size() == 7


@pytest.mark.parametrize("size", [0, -1, True, 2.5, "3", None])
def test_set_buffer_size_rejects_non_positive_integers(size: object) -> None:
    buffered_add, _transport, _sink = _buffer()

    with pytest.raises(InvalidBufferSizeError, match="positive integer"):
        buffered_add.set_buffer_size(size)  # type: ignore[arg-type]

    assert buffered_add.get_buffer_size() == _BUFFER_SIZE


def test_invalid_buffer_size_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        BufferedAdd(_TransportStub(), buffer_size=0)

    with pytest.raises(ValueError, match="positive integer"):
        BufferedAdd(_TransportStub(), buffer_size=-5)


def test_adding_exactly_buffer_size_documents_flushes_once() -> None:
    buffered_add, transport, sink = _buffer()
    documents = [_doc(index) for index in range(_BUFFER_SIZE)]

    for document in documents:
        buffered_add.add_document(document)
        assert len(buffered_add.get_documents()) <= _BUFFER_SIZE

    assert len(transport.queries) == 1
    assert transport.queries[0].documents == documents
    assert buffered_add.get_documents() == ()
    assert sink.names() == [BufferEvent.FLUSH_START, BufferEvent.FLUSH_END]


def test_automatic_flush_never_adds_commit_directive() -> None:
    buffered_add, transport, _sink = _buffer()

    buffered_add.add_documents(_doc(index) for index in range(_BUFFER_SIZE))

    query = transport.queries[0]
    assert not query.has_commit
    assert all(isinstance(command, AddCommand) for command in query.commands)


def test_add_documents_flushes_mid_sequence() -> None:
    buffered_add, transport, sink = _buffer()
    documents = [_doc(index) for index in range(2 * _BUFFER_SIZE)]

    assert buffered_add.add_documents(documents) is buffered_add

    assert len(transport.queries) == 2
    assert transport.queries[0].documents == documents[:_BUFFER_SIZE]
    assert transport.queries[1].documents == documents[_BUFFER_SIZE:]
    assert sink.names().count(BufferEvent.FLUSH_END) == 2
    assert buffered_add.get_documents() == ()


def test_add_documents_keeps_remainder_pending() -> None:
    buffered_add, transport, _sink = _buffer()
    documents = [_doc(index) for index in range(2 * _BUFFER_SIZE + 1)]

    buffered_add.add_documents(documents)

    assert len(transport.queries) == 2
    assert buffered_add.get_documents() == (documents[-1],)
    assert len(buffered_add) == 1


def test_get_documents_returns_snapshot_in_insertion_order() -> None:
    buffered_add, _transport, _sink = _buffer(buffer_size=10)
    first, second = _doc("a"), _doc("b")

    buffered_add.add_document(first).add_document(second)
    snapshot = buffered_add.get_documents()
    buffered_add.add_document(_doc("c"))

    assert snapshot == (first, second)
    assert snapshot[0] is first
    assert len(buffered_add.get_documents()) == 3


def test_flush_on_empty_buffer_returns_false_without_side_effects() -> None:
    buffered_add, transport, sink = _buffer()
    builder = buffered_add.update_query

    assert buffered_add.flush() is False
    assert transport.queries == []
    assert sink.events == []
    assert buffered_add.update_query is builder


def test_flush_submits_pending_with_options_and_notifies_in_order() -> None:
    buffered_add, transport, sink = _buffer()
    documents = [_doc("a"), _doc("b")]
    buffered_add.add_documents(documents)

    result = buffered_add.flush(overwrite=False, commit_within=_COMMIT_WITHIN_MS)

    assert result is transport.results[0]
    command = transport.queries[0].commands[0]
    assert isinstance(command, AddCommand)
    assert command.overwrite is False
    assert command.commit_within == _COMMIT_WITHIN_MS
    assert not transport.queries[0].has_commit
    assert sink.events == [
        (BufferEvent.FLUSH_START, tuple(documents)),
        (BufferEvent.FLUSH_END, result),
    ]
    assert buffered_add.get_documents() == ()


def test_commit_on_empty_buffer_sends_bare_commit() -> None:
    buffered_add, transport, sink = _buffer()

    result = buffered_add.commit(wait_flush=True, wait_searcher=False, expunge_deletes=True)

    query = transport.queries[0]
    assert query.documents == []
    assert query.commands == (CommitCommand(wait_flush=True, wait_searcher=False, expunge_deletes=True),)
    assert result.committed is True
    assert sink.events == [(BufferEvent.COMMIT_START, ()), (BufferEvent.COMMIT_END, result)]
    assert buffered_add.update_query is not query


def test_commit_sends_pending_documents_before_commit_directive() -> None:
    buffered_add, transport, _sink = _buffer()
    documents = [_doc("a"), _doc("b")]
    buffered_add.add_documents(documents)

    buffered_add.commit(overwrite=True)

    add_command, commit_command = transport.queries[0].commands
    assert isinstance(add_command, AddCommand)
    assert add_command.documents == documents
    assert add_command.overwrite is True
    assert add_command.commit_within is None
    assert isinstance(commit_command, CommitCommand)
    assert buffered_add.get_documents() == ()


def test_clear_discards_pending_and_resets_builder() -> None:
    buffered_add, transport, sink = _buffer()
    buffered_add.add_documents([_doc("a"), _doc("b")])
    previous_builder = buffered_add.update_query

    assert buffered_add.clear() is buffered_add

    assert buffered_add.get_documents() == ()
    assert buffered_add.update_query is not previous_builder
    assert transport.queries == []
    assert sink.events == []


def test_builder_is_fresh_for_every_cycle() -> None:
    buffered_add, transport, _sink = _buffer(buffer_size=1)

    buffered_add.add_document(_doc("a")).add_document(_doc("b"))

    assert len(transport.queries) == 2
    assert transport.queries[0] is not transport.queries[1]
    assert [len(query.commands) for query in transport.queries] == [1, 1]


def test_documented_two_document_scenario() -> None:
    buffered_add, transport, sink = _buffer(buffer_size=2)
    doc_a, doc_b, doc_c = _doc("a"), _doc("b"), _doc("c")

    buffered_add.add_document(doc_a)
    assert buffered_add.get_documents() == (doc_a,)

    buffered_add.add_document(doc_b)
    assert sink.names() == [BufferEvent.FLUSH_START, BufferEvent.FLUSH_END]
    assert buffered_add.get_documents() == ()

    buffered_add.add_document(doc_c)
    assert buffered_add.get_documents() == (doc_c,)

    result = buffered_add.flush()
    assert isinstance(result, UpdateResult)
    assert result.documents == 1
    assert buffered_add.get_documents() == ()
    assert [query.documents for query in transport.queries] == [[doc_a, doc_b], [doc_c]]


def test_create_document_builds_through_builder_and_adds() -> None:
    buffered_add, _transport, _sink = _buffer()

    assert buffered_add.create_document({"id": 1, "title": "hello"}, {"title": 2.0}) is buffered_add

    (document,) = buffered_add.get_documents()
    assert document.fields == {"id": 1, "title": "hello"}
    assert document.boosts == {"title": 2.0}


def test_create_document_can_trigger_automatic_flush() -> None:
    buffered_add, transport, _sink = _buffer(buffer_size=2)

    buffered_add.create_document({"id": 1}).create_document({"id": 2})

    assert len(transport.queries) == 1
    assert [document.fields["id"] for document in transport.queries[0].documents] == [1, 2]


def test_failed_flush_keeps_pending_and_propagates_error() -> None:
    buffered_add, transport, sink = _buffer(buffer_size=10)
    documents = [_doc("a"), _doc("b")]
    buffered_add.add_documents(documents)
    failure = BackendTransportError(backend="stub", operation="bulk", error=ConnectionError("down"))
    transport.fail_with = failure

    with pytest.raises(BackendTransportError) as excinfo:
        buffered_add.flush()

    assert excinfo.value is failure
    assert buffered_add.get_documents() == tuple(documents)
    assert sink.names() == [BufferEvent.FLUSH_START]
    assert buffered_add.update_query.is_empty

    transport.fail_with = None
    buffered_add.flush()

    assert transport.queries[0].documents == documents
    assert buffered_add.get_documents() == ()


def test_failed_commit_keeps_pending_documents() -> None:
    buffered_add, transport, sink = _buffer(buffer_size=10)
    buffered_add.add_document(_doc("a"))
    transport.fail_with = BackendTransportError(backend="stub", operation="refresh", error=TimeoutError())

    with pytest.raises(BackendTransportError):
        buffered_add.commit()

    assert len(buffered_add.get_documents()) == 1
    assert BufferEvent.COMMIT_END not in sink.names()


def test_partially_failed_flush_keeps_only_unapplied_documents() -> None:
    buffered_add, transport, sink = _buffer(buffer_size=10)
    buffered_add.add_documents([_doc("ok"), _doc("bad"), _doc("later")])
    transport.fail_with = BulkIndexingError(backend="stub", failed_items=1, pending_positions=(1, 2))

    with pytest.raises(BulkIndexingError):
        buffered_add.flush(overwrite=False)

    assert [document.fields["id"] for document in buffered_add.get_documents()] == ["bad", "later"]
    assert sink.names() == [BufferEvent.FLUSH_START]

    transport.fail_with = None
    buffered_add.flush(overwrite=False)

    assert [document.fields["id"] for document in transport.queries[0].documents] == ["bad", "later"]
    assert buffered_add.get_documents() == ()


def test_commit_failing_after_documents_were_applied_empties_buffer() -> None:
    buffered_add, transport, _sink = _buffer(buffer_size=10)
    buffered_add.add_documents([_doc("a"), _doc("b")])
    failure = BackendTransportError(backend="stub", operation="refresh", error=TimeoutError())
    failure.pending_positions = ()
    transport.fail_with = failure

    with pytest.raises(BackendTransportError):
        buffered_add.commit()

    assert buffered_add.get_documents() == ()

    transport.fail_with = None
    buffered_add.commit()

    assert transport.queries[0].documents == []
    assert transport.queries[0].has_commit


def test_pending_documents_flush_on_next_add_after_failed_automatic_flush() -> None:
    buffered_add, transport, _sink = _buffer(buffer_size=2)
    transport.fail_with = BackendTransportError(backend="stub", operation="bulk", error=OSError())

    buffered_add.add_document(_doc("a"))
    with pytest.raises(BackendTransportError):
        buffered_add.add_document(_doc("b"))

    transport.fail_with = None
    buffered_add.add_document(_doc("c"))

    assert [document.fields["id"] for document in transport.queries[0].documents] == ["a", "b", "c"]
    assert buffered_add.get_documents() == ()


def test_lowering_buffer_size_below_pending_count_flushes_on_next_add() -> None:
    buffered_add, transport, _sink = _buffer(buffer_size=10)
    buffered_add.add_documents([_doc("a"), _doc("b"), _doc("c")])

    buffered_add.set_buffer_size(2).add_document(_doc("d"))

    assert len(transport.queries[0].documents) == 4
    assert buffered_add.get_documents() == ()


def test_context_manager_commits_remaining_documents() -> None:
    transport = _TransportStub()

    with BufferedAdd(transport, buffer_size=10) as buffered_add:
        buffered_add.add_document(_doc("a"))

    assert len(transport.queries) == 1
    assert transport.queries[0].has_commit
    assert buffered_add.get_documents() == ()


def test_context_manager_commits_after_final_automatic_flush() -> None:
    transport = _TransportStub()

    with BufferedAdd(transport, buffer_size=2) as buffered_add:
        buffered_add.create_document({"id": "a"}).create_document({"id": "b"})

    assert [query.has_commit for query in transport.queries] == [False, True]
    assert transport.queries[1].documents == []


def test_context_manager_commits_documents_left_by_partial_commit_failure() -> None:
    transport = _TransportStub()
    failure = BackendTransportError(backend="stub", operation="refresh", error=TimeoutError())
    failure.pending_positions = ()

    with BufferedAdd(transport, buffer_size=10) as buffered_add:
        buffered_add.add_document(_doc("a"))
        transport.fail_with = failure
        with pytest.raises(BackendTransportError):
            buffered_add.commit()
        transport.fail_with = None

    assert len(transport.queries) == 1
    assert transport.queries[0].has_commit


def test_context_manager_skips_commit_after_explicit_commit() -> None:
    transport = _TransportStub()

    with BufferedAdd(transport, buffer_size=2) as buffered_add:
        buffered_add.create_document({"id": "a"}).commit()

    assert len(transport.queries) == 1


def test_context_manager_keeps_documents_when_block_raises() -> None:
    transport = _TransportStub()
    buffered_add = BufferedAdd(transport, buffer_size=10)

    with pytest.raises(RuntimeError, match="boom"), buffered_add:
        buffered_add.add_document(_doc("a"))
        raise RuntimeError("boom")

    assert transport.queries == []
    assert len(buffered_add.get_documents()) == 1


def test_custom_builder_factory_is_called_for_each_cycle() -> None:
    created: list[UpdateQuery] = []

    def _factory() -> UpdateQuery:
        query = UpdateQuery()
        created.append(query)
        return query

    transport = _TransportStub()
    buffered_add = BufferedAdd(transport, builder_factory=_factory, buffer_size=1)

    buffered_add.add_document(_doc("a"))

    assert len(created) == 2
    assert transport.queries == [created[0]]
    assert buffered_add.update_query is created[1]


def test_concurrent_producers_never_lose_or_duplicate_documents() -> None:
    transport = _TransportStub()
    buffered_add = BufferedAdd(transport, buffer_size=_CONCURRENT_BUFFER_SIZE)

    def _produce(worker: int) -> None:
        for index in range(_DOCS_PER_THREAD):
            buffered_add.add_document(_doc(f"{worker}-{index}"))

    threads = [threading.Thread(target=_produce, args=(worker,)) for worker in range(_THREAD_COUNT)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    flushed = [document.fields["id"] for query in transport.queries for document in query.documents]
    assert all(len(query.documents) == _CONCURRENT_BUFFER_SIZE for query in transport.queries)
    assert len(flushed) == len(set(flushed)) == _THREAD_COUNT * _DOCS_PER_THREAD
    assert buffered_add.get_documents() == ()
