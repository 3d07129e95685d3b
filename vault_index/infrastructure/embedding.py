"""HTTP embedding backends: a local Ollama server and a hosted OpenAI-compatible API."""

from typing import Any, Protocol

import httpx

from vault_index.domain.constants import (
    EMBEDDING_TIMEOUT_SECONDS,
    OLLAMA_ENDPOINT,
    OLLAMA_MODEL,
    OPENAI_EMBEDDING_ENDPOINT,
    OPENAI_EMBEDDING_MODEL,
    REACHABILITY_TIMEOUT_SECONDS,
)
from vault_index.domain.errors import (
    BackendError,
    BackendTimeoutError,
    BatchEmbeddingError,
    EmptyEmbeddingError,
    UnauthenticatedError,
    VaultIndexError,
)
from vault_index.logging_config import get_logger

logger = get_logger(__name__)


class Embedder(Protocol):
    """Capability set shared by every embedding backend."""

    name: str

    def embed_text(self, text: str) -> list[float]: ...

    def embed_batch(self, texts: list[str]) -> list[list[float]]: ...

    def is_configured(self) -> bool: ...


class _HttpEmbedder:
    """Shared request/response handling for JSON embedding APIs."""

    name = "http"

    def __init__(self, client: httpx.Client | None, timeout: float) -> None:
        self._client = client or httpx.Client(timeout=timeout)

    def embed_text(self, text: str) -> list[float]:
        raise NotImplementedError

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed texts one at a time; the first failure aborts the batch."""
        embeddings: list[list[float]] = []
        for i, text in enumerate(texts):
            try:
                embeddings.append(self.embed_text(text))
            except VaultIndexError as exc:
                raise BatchEmbeddingError(self.name, i, exc) from exc
        return embeddings

    def close(self) -> None:
        self._client.close()

    def _post(self, url: str, body: dict[str, Any], headers: dict[str, str] | None = None) -> list[float]:
        try:
            response = self._client.post(url, json=body, headers=headers)
        except httpx.TimeoutException as exc:
            raise BackendTimeoutError(self.name, f"embedding request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise BackendError(self.name, f"embedding request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.is_success:
            message = _error_message(payload) or response.text
            raise BackendError(self.name, f"API error (status {response.status_code}): {message}")

        if not isinstance(payload, dict):
            raise BackendError(self.name, "failed to parse response: expected a JSON object")

        message = _error_message(payload)
        if message:
            raise BackendError(self.name, f"API error: {message}")

        return self._extract_embedding(payload)

    def _extract_embedding(self, payload: dict[str, Any]) -> list[float]:
        """Accept both `{data: [{embedding}]}` and `{embedding}` shapes."""
        if "data" in payload:
            data = payload["data"]
            if not isinstance(data, list):
                raise BackendError(self.name, "failed to parse response: 'data' is not a list")
            if not data:
                raise EmptyEmbeddingError(self.name, "no embedding returned")
            first = data[0]
            vector = first.get("embedding") if isinstance(first, dict) else None
        else:
            vector = payload.get("embedding")

        if vector is None:
            raise BackendError(self.name, "failed to parse response: no embedding field")
        if not isinstance(vector, list):
            raise BackendError(self.name, "failed to parse response: embedding is not a list")
        if not vector:
            raise EmptyEmbeddingError(self.name, "no embedding returned")
        try:
            return [float(v) for v in vector]
        except (TypeError, ValueError) as exc:
            raise BackendError(self.name, f"failed to parse response: {exc}") from exc


def _error_message(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if error is None:
        return None
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


class OllamaEmbedder(_HttpEmbedder):
    """Embeddings from a local Ollama server. No credential required."""

    name = "ollama"

    def __init__(
        self,
        endpoint: str = OLLAMA_ENDPOINT,
        model: str = OLLAMA_MODEL,
        client: httpx.Client | None = None,
        timeout: float = EMBEDDING_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(client, timeout)
        self._endpoint = endpoint.rstrip("/")
        self._model = model
        self._reachable: bool | None = None

    def embed_text(self, text: str) -> list[float]:
        return self._post(
            f"{self._endpoint}/api/embeddings",
            {"model": self._model, "prompt": text},
        )

    def is_configured(self) -> bool:
        """Ollama is configured when its endpoint answers. Probed once."""
        if self._reachable is None:
            try:
                response = self._client.get(self._endpoint, timeout=REACHABILITY_TIMEOUT_SECONDS)
                self._reachable = response.status_code == httpx.codes.OK
            except httpx.HTTPError:
                self._reachable = False
            logger.debug("Ollama at %s reachable: %s", self._endpoint, self._reachable)
        return self._reachable


class OpenAIEmbedder(_HttpEmbedder):
    """Embeddings from a hosted OpenAI-compatible API. Requires an API key."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None,
        endpoint: str = OPENAI_EMBEDDING_ENDPOINT,
        model: str = OPENAI_EMBEDDING_MODEL,
        client: httpx.Client | None = None,
        timeout: float = EMBEDDING_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(client, timeout)
        self._api_key = api_key or ""
        self._endpoint = endpoint
        self._model = model

    def embed_text(self, text: str) -> list[float]:
        if not self._api_key:
            raise UnauthenticatedError("no API key configured for embedder")
        return self._post(
            self._endpoint,
            {"input": text, "model": self._model},
            headers={"Authorization": f"Bearer {self._api_key}"},
        )

    def is_configured(self) -> bool:
        return bool(self._api_key)
