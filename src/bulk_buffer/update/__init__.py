"""Update request builders."""

from bulk_buffer.update.protocols import UpdateRequestBuilder
from bulk_buffer.update.query import UpdateQuery

__all__ = ["UpdateQuery", "UpdateRequestBuilder"]
