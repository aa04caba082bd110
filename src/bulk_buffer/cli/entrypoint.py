"""CLI entrypoint execution flow."""

from __future__ import annotations

import logging

from bulk_buffer.cli.argument_parser import build_parser
from bulk_buffer.cli.common_runtime import configure_logging, emit_payload
from bulk_buffer.errors import BulkBufferError, ConfigurationError

_logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return a process exit code.

    Args:
        argv (list[str] | None): Optional command-line arguments.

    Returns:
        int: Process exit code.

    """
    try:
        parser = build_parser()
    except ConfigurationError:
        _logger.exception("Invalid BULK_BUFFER_* environment settings.")
        return 1

    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 1

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 1

    configure_logging(str(args.log_level))
    try:
        payload = handler(args)
    except BulkBufferError:
        _logger.exception("Command '%s' failed.", args.command)
        return 1

    emit_payload(payload=payload, output=args.output)
    return 0
