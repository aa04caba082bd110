"""Factory helpers to instantiate the configured update transport."""

from __future__ import annotations

from typing import TYPE_CHECKING

from bulk_buffer.domain import BackendName
from bulk_buffer.errors import MissingBackendUrlError, UnsupportedBackendError
from bulk_buffer.search.adapters import ElasticBulkAdapter, HttpBulkAdapter, OpenSearchBulkAdapter

if TYPE_CHECKING:
    from bulk_buffer.search.protocols import UpdateTransport

_ADAPTERS = {
    BackendName.ELASTICSEARCH.value: ElasticBulkAdapter,
    BackendName.OPENSEARCH.value: OpenSearchBulkAdapter,
    BackendName.HTTP.value: HttpBulkAdapter,
}


def supported_backends() -> tuple[BackendName, ...]:
    """Return backend names supported by the project.

    Returns:
        tuple[BackendName, ...]: Supported backend identifiers.

    """
    return tuple(BackendName)


def build_update_transport(  # noqa: PLR0913
    *,
    backend: BackendName | str,
    index: str,
    client: object | None = None,
    url: str | None = None,
    timeout_s: float = 30.0,
    verify_certs: bool = True,
    id_field: str = "id",
) -> UpdateTransport:
    """Build a concrete transport adapter from user options.

    Args:
        backend (BackendName | str): Backend identifier.
        index (str): Target index name.
        client (object | None): Optional pre-configured backend client.
        url (str | None): Optional backend URL when no client is injected.
        timeout_s (float): Request timeout in seconds.
        verify_certs (bool): Whether TLS certificates are verified.
        id_field (str): Field holding document identifiers.

    Raises:
        MissingBackendUrlError: If `url` is missing when `client` is absent.
        UnsupportedBackendError: If the backend identifier is unsupported.

    Returns:
        UpdateTransport: Transport adapter.

    """
    backend_name = backend.value if isinstance(backend, BackendName) else backend.strip().lower()
    adapter_class = _ADAPTERS.get(backend_name)
    if adapter_class is None:
        supported = ", ".join(item.value for item in supported_backends())
        raw_backend = backend.value if isinstance(backend, BackendName) else backend
        raise UnsupportedBackendError(backend=raw_backend, supported=supported)

    if client is not None:
        return adapter_class(client=client, index=index, id_field=id_field)
    if url is None:
        raise MissingBackendUrlError
    return adapter_class.from_connection(
        url=url,
        index=index,
        timeout_s=timeout_s,
        verify_certs=verify_certs,
        id_field=id_field,
    )
