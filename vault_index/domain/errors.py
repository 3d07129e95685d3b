"""Exception hierarchy for indexing and retrieval."""


class VaultIndexError(Exception):
    """Base exception for vault indexing errors."""


class ConfigurationError(VaultIndexError):
    """A required credential or endpoint is missing."""


class EmbeddingUnavailableError(ConfigurationError):
    """No embedding backend is configured."""


class UnauthenticatedError(EmbeddingUnavailableError):
    """The hosted embedding backend has no API key."""


class SearchUnavailableError(ConfigurationError):
    """Semantic search was requested without a configured embedder."""


class BackendError(VaultIndexError):
    """Transport or protocol failure from an external service."""

    def __init__(self, backend: str, message: str) -> None:
        super().__init__(f"{backend}: {message}")
        self.backend = backend
        self.message = message


class BackendTimeoutError(BackendError):
    """An external call did not complete within its timeout."""


class EmptyEmbeddingError(BackendError):
    """The embedding backend answered with an empty vector."""


class BatchEmbeddingError(BackendError):
    """One item of a batch failed; the whole batch is aborted."""

    def __init__(self, backend: str, index: int, cause: Exception) -> None:
        super().__init__(backend, f"failed to embed text {index}: {cause}")
        self.index = index


class DocumentNotFoundError(VaultIndexError):
    """Raised when a document cannot be read from the vault."""


class DimensionMismatchError(VaultIndexError):
    """A collection's vector size differs from the live embedder's."""

    def __init__(self, collection: str, expected: int, actual: int) -> None:
        super().__init__(
            f"collection {collection} has dimension {actual}, embedder produces {expected}"
        )
        self.collection = collection
        self.expected = expected
        self.actual = actual


class StoreCorruptedError(VaultIndexError):
    """The local store file exists but cannot be parsed."""
