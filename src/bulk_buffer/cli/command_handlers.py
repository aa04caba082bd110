"""CLI command handlers and command-scoped configuration builders."""

from __future__ import annotations

import json
import logging
from collections import Counter
from contextlib import closing
from importlib import import_module
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from bulk_buffer.buffer import BufferedAdd
from bulk_buffer.config import BufferSettings
from bulk_buffer.domain import BufferEvent, CommandName, IndexRunSummary
from bulk_buffer.errors import ConfigurationError, DocumentInputError
from bulk_buffer.events import EventDispatcher
from bulk_buffer.search.factory import build_update_transport

if TYPE_CHECKING:
    import argparse
    from collections.abc import Iterator

    from bulk_buffer.search.protocols import UpdateTransport

_DOCTOR_OPTIONAL_MODULES: dict[str, tuple[str, ...]] = {
    "elasticsearch": ("elasticsearch",),
    "opensearch": ("opensearchpy",),
}
_INVALID_ARGUMENTS_ERROR = "Invalid command-line settings: {error}"
_NOT_AN_OBJECT_ERROR = "line {line} is not a JSON object"
_logger = logging.getLogger(__name__)


def module_available(module_name: str) -> bool:
    """Return whether one module can be imported.

    Args:
        module_name (str): Importable module name.

    Returns:
        bool: `True` when the import succeeds.

    """
    try:
        import_module(module_name)
    except ImportError:
        return False
    return True


def settings_from_args(args: argparse.Namespace) -> BufferSettings:
    """Build validated settings from parsed CLI args.

    Args:
        args (argparse.Namespace): Parsed command-line arguments.

    Raises:
        ConfigurationError: If one argument value is invalid.

    Returns:
        BufferSettings: Validated settings.

    """
    try:
        return BufferSettings(
            buffer_size=args.buffer_size,
            backend=args.backend,
            backend_url=args.backend_url,
            index=args.index,
            timeout_s=args.timeout_s,
            verify_certs=args.verify_certs,
            id_field=args.id_field,
        )
    except ValidationError as exc:
        raise ConfigurationError(_INVALID_ARGUMENTS_ERROR.format(error=exc)) from exc


def build_transport(settings: BufferSettings) -> UpdateTransport:
    """Build the configured transport.

    Args:
        settings (BufferSettings): Validated settings.

    Returns:
        UpdateTransport: Transport adapter.

    """
    return build_update_transport(
        backend=settings.backend,
        index=settings.index,
        url=settings.backend_url,
        timeout_s=settings.timeout_s,
        verify_certs=settings.verify_certs,
        id_field=settings.id_field,
    )


def iter_input_documents(path: Path) -> Iterator[dict[str, Any]]:
    """Yield field maps from a JSON array or JSON Lines file.

    Args:
        path (Path): Input file path.

    Raises:
        DocumentInputError: If the file cannot be read or parsed.

    Yields:
        dict[str, Any]: One document field map.

    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentInputError(str(path), str(exc)) from exc

    if path.suffix.lower() == ".json":
        try:
            items = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DocumentInputError(str(path), str(exc)) from exc
        if not isinstance(items, list):
            raise DocumentInputError(str(path), "expected a JSON array of objects")
        entries = enumerate(items, start=1)
    else:
        entries = enumerate(_parse_json_lines(path, text), start=1)

    for line, item in entries:
        if not isinstance(item, dict):
            raise DocumentInputError(str(path), _NOT_AN_OBJECT_ERROR.format(line=line))
        yield item


def _parse_json_lines(path: Path, text: str) -> Iterator[Any]:
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            yield json.loads(line)
        except json.JSONDecodeError as exc:
            raise DocumentInputError(str(path), f"line {line_number}: {exc}") from exc


def handle_index(args: argparse.Namespace) -> IndexRunSummary:
    """Stream documents from a file through a buffered add.

    Args:
        args (argparse.Namespace): Parsed command-line arguments.

    Returns:
        IndexRunSummary: Run summary payload.

    """
    settings = settings_from_args(args)
    counts: Counter[BufferEvent] = Counter()
    dispatcher = EventDispatcher()
    for event in (BufferEvent.FLUSH_END, BufferEvent.COMMIT_END):
        dispatcher.subscribe(event, lambda name, _payload: counts.update([name]))

    documents = 0
    with closing(build_transport(settings)) as transport:
        buffered_add = BufferedAdd(transport, events=dispatcher, buffer_size=settings.buffer_size)
        for fields in iter_input_documents(Path(args.input).expanduser()):
            buffered_add.create_document(fields)
            documents += 1

        if args.commit:
            buffered_add.commit()
        else:
            buffered_add.flush(commit_within=args.commit_within)

    _logger.info("Indexed %d document(s) into index '%s'.", documents, settings.index)
    return IndexRunSummary(
        backend=settings.backend,
        index=settings.index,
        buffer_size=settings.buffer_size,
        documents=documents,
        flushes=counts[BufferEvent.FLUSH_END],
        commits=counts[BufferEvent.COMMIT_END],
    )


def handle_commit(args: argparse.Namespace) -> dict[str, Any]:
    """Send a bare commit directive to the configured backend.

    Args:
        args (argparse.Namespace): Parsed command-line arguments.

    Returns:
        dict[str, Any]: Commit output payload.

    """
    settings = settings_from_args(args)
    with closing(build_transport(settings)) as transport:
        result = BufferedAdd(transport, buffer_size=settings.buffer_size).commit(
            wait_flush=args.wait_flush,
            wait_searcher=args.wait_searcher,
            expunge_deletes=args.expunge_deletes,
        )
    return {
        "schema_version": "1.0",
        "command": CommandName.COMMIT.value,
        "backend": settings.backend.value,
        "index": settings.index,
        "result": result.model_dump(mode="json", exclude={"raw"}),
    }


def handle_doctor(args: argparse.Namespace) -> dict[str, Any]:
    """Run dependency and backend health checks.

    Args:
        args (argparse.Namespace): Parsed command-line arguments.

    Returns:
        dict[str, Any]: Doctor output payload.

    """
    optional_dependencies: dict[str, dict[str, Any]] = {}
    for group_name, modules in _DOCTOR_OPTIONAL_MODULES.items():
        missing_modules = [module_name for module_name in modules if not module_available(module_name)]
        optional_dependencies[group_name] = {
            "ok": not missing_modules,
            "modules": list(modules),
            "missing_modules": missing_modules,
        }

    backend_connectivity: dict[str, Any] = {
        "checked": bool(args.check_backend),
        "ok": None,
        "error": None,
    }
    if args.check_backend:
        try:
            settings = settings_from_args(args)
            with closing(build_transport(settings)) as transport:
                BufferedAdd(transport).commit()
            backend_connectivity["ok"] = True
        except Exception as exc:
            backend_connectivity["ok"] = False
            backend_connectivity["error"] = f"{exc.__class__.__name__}: {exc}"

    checks_ok = backend_connectivity["ok"] is not False
    return {
        "schema_version": "1.0",
        "command": CommandName.DOCTOR.value,
        "status": "ok" if checks_ok else "error",
        "checks": {
            "optional_dependencies": optional_dependencies,
            "backend_connectivity": backend_connectivity,
        },
    }
