"""Unified CLI package exports."""

from bulk_buffer.cli.argument_parser import build_parser
from bulk_buffer.cli.entrypoint import main

__all__ = ["build_parser", "main"]
