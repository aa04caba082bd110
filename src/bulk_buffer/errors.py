"""Project-specific exceptions for bulk-buffer."""


class BulkBufferError(Exception):
    """Base exception for the project."""


class ConfigurationError(ValueError, BulkBufferError):
    """Raised when a configuration value is invalid."""


class InvalidBufferSizeError(ConfigurationError):
    """Raised when the buffer size is not a positive integer."""

    def __init__(self, value: object) -> None:
        """Build exception payload for invalid buffer sizes."""
        super().__init__(f"Buffer size must be a positive integer, got {value!r}.")


class UnsupportedBackendError(ConfigurationError):
    """Raised when the user asks for an unsupported backend."""

    def __init__(self, backend: str, supported: str) -> None:
        """Build exception payload for unsupported backend values."""
        super().__init__(f"Unsupported backend '{backend}'. Supported values: {supported}.")


class MissingBackendUrlError(ConfigurationError):
    """Raised when no backend URL is supplied and no client is injected."""

    def __init__(self) -> None:
        """Build exception payload for missing backend URLs."""
        super().__init__("Backend URL is required when no client instance is provided.")


class MissingOptionalDependencyError(ImportError, BulkBufferError):
    """Raised when an optional dependency is not installed."""


class TransportError(RuntimeError, BulkBufferError):
    """Raised when an update request cannot be executed by the backend.

    `pending_positions` lists, in submit order, the documents of the request
    that the backend did not apply. `None` means it is unknown which were.
    """

    pending_positions: tuple[int, ...] | None = None


class BackendTransportError(TransportError):
    """Raised when the backend client fails while executing a request."""

    def __init__(self, backend: str, operation: str, error: BaseException) -> None:
        """Build exception payload for client-level failures."""
        super().__init__(
            f"Backend '{backend}' failed during '{operation}': {error.__class__.__name__}: {error}",
        )
        self.backend = backend
        self.operation = operation


class BulkIndexingError(TransportError):
    """Raised when a bulk response reports failed items."""

    def __init__(
        self,
        backend: str,
        failed_items: int,
        pending_positions: tuple[int, ...] | None = None,
    ) -> None:
        """Build exception payload for partially failed bulk requests."""
        super().__init__(f"Bulk indexing on backend '{backend}' reported {failed_items} failed item(s).")
        self.backend = backend
        self.failed_items = failed_items
        self.pending_positions = pending_positions


class DocumentInputError(ValueError, BulkBufferError):
    """Raised when a document input file cannot be parsed."""

    def __init__(self, path: str, detail: str) -> None:
        """Build exception payload for unreadable document inputs."""
        super().__init__(f"Cannot read documents from '{path}': {detail}")
