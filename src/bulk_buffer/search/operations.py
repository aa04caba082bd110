"""Map recorded update commands onto backend bulk and index calls."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from bulk_buffer.domain import AddCommand, CommitCommand, UpdateResult
from bulk_buffer.errors import BackendTransportError, BulkIndexingError

if TYPE_CHECKING:
    from collections.abc import Callable

    from bulk_buffer.search.protocols import CommandExecutor
    from bulk_buffer.update import UpdateQuery

_COMMIT_WITHIN_REFRESH = "wait_for"
_logger = logging.getLogger(__name__)


def build_bulk_operations(command: AddCommand, *, index: str, id_field: str) -> list[dict[str, Any]]:
    """Build bulk action/source pairs for one add command.

    Args:
        command (AddCommand): Recorded add command.
        index (str): Target index name.
        id_field (str): Field holding document identifiers.

    Returns:
        list[dict[str, Any]]: Alternating action and source entries.

    """
    action_name = "create" if command.overwrite is False else "index"
    operations: list[dict[str, Any]] = []
    for document in command.documents:
        action: dict[str, Any] = {"_index": index}
        document_id = document.document_id(id_field)
        if document_id is not None:
            action["_id"] = document_id
        if document.boosts or document.boost is not None:
            _logger.debug("Index-time boosts are not supported by the backend and are ignored.")
        operations.extend([{action_name: action}, dict(document.fields)])
    return operations


def failed_item_positions(response: dict[str, Any]) -> tuple[int, ...]:
    """Return positions of failed items in a bulk response.

    Args:
        response (dict[str, Any]): Raw bulk response payload.

    Returns:
        tuple[int, ...]: Zero-based positions of items carrying an error.

    """
    if not response.get("errors"):
        return ()
    return tuple(
        position
        for position, item in enumerate(response.get("items", []))
        if any(isinstance(outcome, dict) and outcome.get("error") for outcome in item.values())
    )


def call_backend(
    *,
    backend: str,
    operation: str,
    call: Callable[[], Any],
) -> dict[str, Any]:
    """Run one backend call and normalize its response.

    Args:
        backend (str): Backend name used in error messages.
        operation (str): Operation name used in error messages.
        call (Callable[[], Any]): Zero-argument client call.

    Raises:
        BackendTransportError: If the client raises.

    Returns:
        dict[str, Any]: Response payload as a plain dictionary.

    """
    try:
        response = call()
    except Exception as exc:
        raise BackendTransportError(backend=backend, operation=operation, error=exc) from exc
    body = getattr(response, "body", response)
    return dict(body) if body is not None else {}


def execute_update(query: UpdateQuery, *, executor: CommandExecutor) -> UpdateResult:
    """Execute recorded commands in order through one executor.

    Failures carry the positions of the documents the backend did not apply,
    so a caller can retry those alone.

    Args:
        query (UpdateQuery): Update request to submit.
        executor (CommandExecutor): Backend-specific call surface.

    Raises:
        BulkIndexingError: If a bulk response reports failed items.
        BackendTransportError: If one client call fails.

    Returns:
        UpdateResult: Normalized result.

    """
    raw: list[dict[str, Any]] = []
    query_time_ms = 0
    documents = 0
    committed = False
    total_documents = len(query.documents)

    try:
        for command in query.commands:
            if isinstance(command, AddCommand):
                operations = build_bulk_operations(command, index=executor.index, id_field=executor.id_field)
                refresh = _COMMIT_WITHIN_REFRESH if command.commit_within is not None else None
                response = executor.bulk(operations, refresh=refresh)
                failed_positions = failed_item_positions(response)
                if failed_positions:
                    pending = tuple(documents + position for position in failed_positions)
                    pending += tuple(range(documents + len(command.documents), total_documents))
                    raise BulkIndexingError(
                        backend=executor.backend_name,
                        failed_items=len(failed_positions),
                        pending_positions=pending,
                    )
                query_time_ms += int(response.get("took", 0))
                documents += len(command.documents)
                raw.append(response)
            elif isinstance(command, CommitCommand):
                if command.wait_flush:
                    raw.append(executor.flush())
                raw.append(executor.refresh())
                if command.expunge_deletes:
                    raw.append(executor.forcemerge())
                if command.wait_searcher is False:
                    _logger.debug(
                        "Refresh is synchronous on '%s'; wait_searcher=False has no effect.",
                        executor.backend_name,
                    )
                committed = True
    except BackendTransportError as exc:
        exc.pending_positions = tuple(range(documents, total_documents))
        raise

    return UpdateResult(
        status=0,
        query_time_ms=query_time_ms,
        documents=documents,
        committed=committed,
        backend=executor.backend_name,
        raw=raw,
    )
