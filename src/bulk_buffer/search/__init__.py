"""Update transport interfaces and adapters."""

from bulk_buffer.search.adapters import ElasticBulkAdapter, HttpBulkAdapter, OpenSearchBulkAdapter
from bulk_buffer.search.factory import build_update_transport, supported_backends
from bulk_buffer.search.protocols import UpdateTransport

__all__ = [
    "ElasticBulkAdapter",
    "HttpBulkAdapter",
    "OpenSearchBulkAdapter",
    "UpdateTransport",
    "build_update_transport",
    "supported_backends",
]
