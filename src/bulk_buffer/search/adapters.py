"""Adapters implementing the thin UpdateTransport interface."""

from __future__ import annotations

import json
from dataclasses import dataclass
from importlib import import_module
from typing import TYPE_CHECKING, Any

import httpx

from bulk_buffer.errors import MissingOptionalDependencyError
from bulk_buffer.search.operations import call_backend, execute_update

if TYPE_CHECKING:
    from bulk_buffer.domain import UpdateResult
    from bulk_buffer.update import UpdateQuery

_ELASTIC_MISSING_DEP_MSG = "Install the optional dependency group 'elasticsearch' to use this backend."
_OPENSEARCH_MISSING_DEP_MSG = "Install the optional dependency group 'opensearch' to use this backend."
_NDJSON_CONTENT_TYPE = "application/x-ndjson"


@dataclass(frozen=True, slots=True)
class ElasticBulkAdapter:
    """Thin adapter around the Elasticsearch Python client."""

    client: Any
    index: str
    id_field: str = "id"
    backend_name: str = "elasticsearch"

    @classmethod
    def from_connection(
        cls,
        *,
        url: str,
        index: str,
        timeout_s: float,
        verify_certs: bool,
        id_field: str = "id",
    ) -> ElasticBulkAdapter:
        """Build an adapter from connection settings.

        Args:
            url (str): Backend URL.
            index (str): Target index name.
            timeout_s (float): Request timeout in seconds.
            verify_certs (bool): Whether TLS certificates are verified.
            id_field (str): Field holding document identifiers.

        Raises:
            MissingOptionalDependencyError: If `elasticsearch` is not installed.

        Returns:
            ElasticBulkAdapter: Configured adapter.

        """
        try:
            module = import_module("elasticsearch")
        except ImportError as exc:
            raise MissingOptionalDependencyError(_ELASTIC_MISSING_DEP_MSG) from exc

        elasticsearch_class = module.Elasticsearch
        client = elasticsearch_class(
            hosts=[url],
            request_timeout=timeout_s,
            verify_certs=verify_certs,
        )
        return cls(client=client, index=index, id_field=id_field)

    def update(self, query: UpdateQuery) -> UpdateResult:
        """Execute every command recorded in an update request.

        Args:
            query (UpdateQuery): Update request to submit.

        Returns:
            UpdateResult: Normalized result.

        """
        return execute_update(query, executor=self)

    def close(self) -> None:
        """Release the underlying client connections."""
        self.client.close()

    def bulk(self, operations: list[dict[str, Any]], *, refresh: str | None) -> dict[str, Any]:
        """Send one bulk request.

        Args:
            operations (list[dict[str, Any]]): Action/source pairs.
            refresh (str | None): Optional refresh policy.

        Returns:
            dict[str, Any]: Raw bulk response.

        """
        params: dict[str, Any] = {"operations": operations, "index": self.index}
        if refresh is not None:
            params["refresh"] = refresh
        return call_backend(
            backend=self.backend_name,
            operation="bulk",
            call=lambda: self.client.bulk(**params),
        )

    def refresh(self) -> dict[str, Any]:
        """Refresh the target index."""
        return call_backend(
            backend=self.backend_name,
            operation="refresh",
            call=lambda: self.client.indices.refresh(index=self.index),
        )

    def flush(self) -> dict[str, Any]:
        """Flush the target index."""
        return call_backend(
            backend=self.backend_name,
            operation="flush",
            call=lambda: self.client.indices.flush(index=self.index, wait_if_ongoing=True),
        )

    def forcemerge(self) -> dict[str, Any]:
        """Expunge deleted documents from the target index."""
        return call_backend(
            backend=self.backend_name,
            operation="forcemerge",
            call=lambda: self.client.indices.forcemerge(index=self.index, only_expunge_deletes=True),
        )


@dataclass(frozen=True, slots=True)
class OpenSearchBulkAdapter:
    """Thin adapter around the OpenSearch Python client."""

    client: Any
    index: str
    id_field: str = "id"
    backend_name: str = "opensearch"

    @classmethod
    def from_connection(
        cls,
        *,
        url: str,
        index: str,
        timeout_s: float,
        verify_certs: bool,
        id_field: str = "id",
    ) -> OpenSearchBulkAdapter:
        """Build an adapter from connection settings.

        Args:
            url (str): Backend URL.
            index (str): Target index name.
            timeout_s (float): Request timeout in seconds.
            verify_certs (bool): Whether TLS certificates are verified.
            id_field (str): Field holding document identifiers.

        Raises:
            MissingOptionalDependencyError: If `opensearch-py` is not installed.

        Returns:
            OpenSearchBulkAdapter: Configured adapter.

        """
        try:
            module = import_module("opensearchpy")
        except ImportError as exc:
            raise MissingOptionalDependencyError(_OPENSEARCH_MISSING_DEP_MSG) from exc

        opensearch_class = module.OpenSearch
        client = opensearch_class(
            hosts=[url],
            timeout=timeout_s,
            use_ssl=url.startswith("https://"),
            verify_certs=verify_certs,
        )
        return cls(client=client, index=index, id_field=id_field)

    def update(self, query: UpdateQuery) -> UpdateResult:
        """Execute every command recorded in an update request.

        Args:
            query (UpdateQuery): Update request to submit.

        Returns:
            UpdateResult: Normalized result.

        """
        return execute_update(query, executor=self)

    def close(self) -> None:
        """Release the underlying client connections."""
        self.client.close()

    def bulk(self, operations: list[dict[str, Any]], *, refresh: str | None) -> dict[str, Any]:
        """Send one bulk request.

        Args:
            operations (list[dict[str, Any]]): Action/source pairs.
            refresh (str | None): Optional refresh policy.

        Returns:
            dict[str, Any]: Raw bulk response.

        """
        params: dict[str, Any] = {"body": operations, "index": self.index}
        if refresh is not None:
            params["refresh"] = refresh
        return call_backend(
            backend=self.backend_name,
            operation="bulk",
            call=lambda: self.client.bulk(**params),
        )

    def refresh(self) -> dict[str, Any]:
        """Refresh the target index."""
        return call_backend(
            backend=self.backend_name,
            operation="refresh",
            call=lambda: self.client.indices.refresh(index=self.index),
        )

    def flush(self) -> dict[str, Any]:
        """Flush the target index."""
        return call_backend(
            backend=self.backend_name,
            operation="flush",
            call=lambda: self.client.indices.flush(index=self.index, wait_if_ongoing=True),
        )

    def forcemerge(self) -> dict[str, Any]:
        """Expunge deleted documents from the target index."""
        return call_backend(
            backend=self.backend_name,
            operation="forcemerge",
            call=lambda: self.client.indices.forcemerge(index=self.index, only_expunge_deletes=True),
        )


@dataclass(frozen=True, slots=True)
class HttpBulkAdapter:
    """Adapter speaking the REST bulk API through `httpx`."""

    client: httpx.Client
    index: str
    id_field: str = "id"
    backend_name: str = "http"

    @classmethod
    def from_connection(
        cls,
        *,
        url: str,
        index: str,
        timeout_s: float,
        verify_certs: bool,
        id_field: str = "id",
    ) -> HttpBulkAdapter:
        """Build an adapter from connection settings.

        Args:
            url (str): Backend URL.
            index (str): Target index name.
            timeout_s (float): Request timeout in seconds.
            verify_certs (bool): Whether TLS certificates are verified.
            id_field (str): Field holding document identifiers.

        Returns:
            HttpBulkAdapter: Configured adapter.

        """
        client = httpx.Client(base_url=url.rstrip("/"), timeout=timeout_s, verify=verify_certs)
        return cls(client=client, index=index, id_field=id_field)

    def update(self, query: UpdateQuery) -> UpdateResult:
        """Execute every command recorded in an update request.

        Args:
            query (UpdateQuery): Update request to submit.

        Returns:
            UpdateResult: Normalized result.

        """
        return execute_update(query, executor=self)

    def close(self) -> None:
        """Release the underlying client connections."""
        self.client.close()

    def _post(self, path: str, *, params: dict[str, Any] | None = None, content: bytes | None = None) -> Any:
        headers = {"Content-Type": _NDJSON_CONTENT_TYPE} if content is not None else None
        response = self.client.post(f"/{self.index}/{path}", params=params, content=content, headers=headers)
        response.raise_for_status()
        return response.json()

    def bulk(self, operations: list[dict[str, Any]], *, refresh: str | None) -> dict[str, Any]:
        """Send one NDJSON bulk request.

        Args:
            operations (list[dict[str, Any]]): Action/source pairs.
            refresh (str | None): Optional refresh policy.

        Returns:
            dict[str, Any]: Raw bulk response.

        """
        lines = [json.dumps(operation, ensure_ascii=False) for operation in operations]
        payload = "\n".join(lines) + "\n"
        params = {"refresh": refresh} if refresh is not None else None
        return call_backend(
            backend=self.backend_name,
            operation="bulk",
            call=lambda: self._post("_bulk", params=params, content=payload.encode("utf-8")),
        )

    def refresh(self) -> dict[str, Any]:
        """Refresh the target index."""
        return call_backend(
            backend=self.backend_name,
            operation="refresh",
            call=lambda: self._post("_refresh"),
        )

    def flush(self) -> dict[str, Any]:
        """Flush the target index."""
        return call_backend(
            backend=self.backend_name,
            operation="flush",
            call=lambda: self._post("_flush", params={"wait_if_ongoing": "true"}),
        )

    def forcemerge(self) -> dict[str, Any]:
        """Expunge deleted documents from the target index."""
        return call_backend(
            backend=self.backend_name,
            operation="forcemerge",
            call=lambda: self._post("_forcemerge", params={"only_expunge_deletes": "true"}),
        )
