"""Buffered batch indexing for Elasticsearch and OpenSearch."""

from bulk_buffer.buffer import DEFAULT_BUFFER_SIZE, BufferedAdd
from bulk_buffer.config import BufferSettings, settings_from_env
from bulk_buffer.domain import BufferEvent, Document, UpdateResult
from bulk_buffer.events import EventDispatcher, EventSink
from bulk_buffer.search import build_update_transport
from bulk_buffer.update import UpdateQuery

__all__ = [
    "DEFAULT_BUFFER_SIZE",
    "BufferEvent",
    "BufferSettings",
    "BufferedAdd",
    "Document",
    "EventDispatcher",
    "EventSink",
    "UpdateQuery",
    "UpdateResult",
    "build_update_transport",
    "settings_from_env",
]
