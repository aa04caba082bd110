"""Argument parser construction for all CLI subcommands."""

from __future__ import annotations

import argparse

from bulk_buffer.cli.command_handlers import handle_commit, handle_doctor, handle_index
from bulk_buffer.config import LOG_LEVELS, BufferSettings, settings_from_env
from bulk_buffer.domain import BackendName, CommandName


def add_shared_backend_flags(subparser: argparse.ArgumentParser, defaults: BufferSettings) -> None:
    """Add backend connection flags shared by subcommands, defaulting to `defaults`."""
    subparser.add_argument(
        "--backend",
        default=defaults.backend.value,
        choices=[backend.value for backend in BackendName],
        help="Search backend receiving update requests.",
    )
    subparser.add_argument(
        "--backend-url",
        default=defaults.backend_url,
        help="Backend base URL (Elasticsearch or OpenSearch).",
    )
    subparser.add_argument(
        "--index",
        default=defaults.index,
        help="Target index name.",
    )
    subparser.add_argument(
        "--timeout-s",
        default=defaults.timeout_s,
        type=float,
        help="Backend request timeout in seconds.",
    )
    subparser.add_argument(
        "--verify-certs",
        default=defaults.verify_certs,
        action=argparse.BooleanOptionalAction,
        help="Verify backend TLS certificates.",
    )
    subparser.add_argument(
        "--id-field",
        default=defaults.id_field,
        help="Document field used as backend document identifier.",
    )
    subparser.add_argument(
        "--buffer-size",
        default=defaults.buffer_size,
        type=int,
        help="Number of buffered documents triggering an automatic flush.",
    )


def add_output_flag(subparser: argparse.ArgumentParser) -> None:
    """Add output emission flag used by all subcommands."""
    subparser.add_argument(
        "--output",
        default="-",
        help="Output destination: '-' for stdout or path to file.",
    )


def build_index_parser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    defaults: BufferSettings,
) -> None:
    """Register index subcommand parser."""
    index_parser = subparsers.add_parser(
        CommandName.INDEX.value,
        help="Stream documents from a JSON or JSON Lines file into the backend in batches.",
    )
    index_parser.add_argument(
        "--input",
        required=True,
        help="Path to a JSON array (.json) or JSON Lines file of document field maps.",
    )
    index_parser.add_argument(
        "--commit",
        default=True,
        action=argparse.BooleanOptionalAction,
        help="Finish with a commit; '--no-commit' finishes with a plain flush.",
    )
    index_parser.add_argument(
        "--commit-within",
        default=None,
        type=int,
        help="Visibility deadline in milliseconds for the final flush (ignored with --commit).",
    )
    add_shared_backend_flags(index_parser, defaults)
    add_output_flag(index_parser)
    index_parser.set_defaults(handler=handle_index)


def build_commit_parser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    defaults: BufferSettings,
) -> None:
    """Register commit subcommand parser."""
    commit_parser = subparsers.add_parser(
        CommandName.COMMIT.value,
        help="Send a bare commit directive to the backend.",
    )
    commit_parser.add_argument(
        "--wait-flush",
        default=None,
        action=argparse.BooleanOptionalAction,
        help="Flush index segments before returning.",
    )
    commit_parser.add_argument(
        "--expunge-deletes",
        default=None,
        action=argparse.BooleanOptionalAction,
        help="Merge away segments holding deleted documents.",
    )
    commit_parser.add_argument(
        "--wait-searcher",
        default=None,
        action=argparse.BooleanOptionalAction,
        help="Wait for refreshed segments to become searchable.",
    )
    add_shared_backend_flags(commit_parser, defaults)
    add_output_flag(commit_parser)
    commit_parser.set_defaults(handler=handle_commit)


def build_doctor_parser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    defaults: BufferSettings,
) -> None:
    """Register doctor subcommand parser."""
    doctor_parser = subparsers.add_parser(
        CommandName.DOCTOR.value,
        help="Inspect optional dependency and backend readiness.",
    )
    doctor_parser.add_argument(
        "--check-backend",
        default=False,
        action=argparse.BooleanOptionalAction,
        help="Send one bare commit to validate connectivity and credentials.",
    )
    add_shared_backend_flags(doctor_parser, defaults)
    add_output_flag(doctor_parser)
    doctor_parser.set_defaults(handler=handle_doctor)


def build_parser(defaults: BufferSettings | None = None) -> argparse.ArgumentParser:
    """Build top-level CLI parser with all subcommands.

    Args:
        defaults (BufferSettings | None): Flag defaults, read from `BULK_BUFFER_*` variables when omitted.

    Raises:
        ConfigurationError: If one environment variable is invalid.

    Returns:
        argparse.ArgumentParser: Configured top-level parser.

    """
    if defaults is None:
        defaults = settings_from_env()

    parser = argparse.ArgumentParser(
        prog="bulk-buffer",
        description="Buffered batch indexing into Elasticsearch or OpenSearch.",
    )
    parser.add_argument(
        "--log-level",
        default=defaults.log_level,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level.",
    )
    subparsers = parser.add_subparsers(dest="command")

    build_index_parser(subparsers, defaults)
    build_commit_parser(subparsers, defaults)
    build_doctor_parser(subparsers, defaults)

    return parser
