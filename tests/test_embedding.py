"""Tests for the HTTP embedding backends and embedder selection."""

import json

import httpx
import pytest

from vault_index.config import Settings
from vault_index.domain.errors import (
    BackendError,
    BackendTimeoutError,
    BatchEmbeddingError,
    EmbeddingUnavailableError,
    EmptyEmbeddingError,
    UnauthenticatedError,
)
from vault_index.infrastructure.embedding import OllamaEmbedder, OpenAIEmbedder
from vault_index.infrastructure.store_factory import create_embedder


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def _settings(**overrides) -> Settings:
    values = {"use_ollama": False, "openai_api_key": None, "qdrant_enabled": False}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestOllamaEmbedder:
    def test_embed_should_post_prompt_and_parse_embedding(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"embedding": [0.1, 0.2, 0.3]})

        embedder = OllamaEmbedder(endpoint="http://ollama:11434/", model="nomic", client=_client(handler))

        vector = embedder.embed_text("hello")

        assert vector == [0.1, 0.2, 0.3]
        assert str(seen[0].url) == "http://ollama:11434/api/embeddings"
        assert json.loads(seen[0].content) == {"model": "nomic", "prompt": "hello"}

    def test_embed_should_raise_backend_error_on_non_2xx(self) -> None:
        embedder = OllamaEmbedder(
            client=_client(lambda r: httpx.Response(500, text="model not loaded"))
        )

        with pytest.raises(BackendError) as exc_info:
            embedder.embed_text("hello")

        assert "500" in str(exc_info.value)
        assert "model not loaded" in exc_info.value.message
        assert exc_info.value.backend == "ollama"

    def test_embed_should_raise_on_empty_vector(self) -> None:
        embedder = OllamaEmbedder(client=_client(lambda r: httpx.Response(200, json={"embedding": []})))

        with pytest.raises(EmptyEmbeddingError):
            embedder.embed_text("hello")

    def test_embed_should_raise_on_malformed_body(self) -> None:
        embedder = OllamaEmbedder(client=_client(lambda r: httpx.Response(200, text="not json")))

        with pytest.raises(BackendError):
            embedder.embed_text("hello")

    def test_embed_should_raise_timeout_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        embedder = OllamaEmbedder(client=_client(handler))

        with pytest.raises(BackendTimeoutError):
            embedder.embed_text("hello")

    def test_is_configured_should_reflect_reachability(self) -> None:
        embedder = OllamaEmbedder(client=_client(lambda r: httpx.Response(200, text="Ollama is running")))
        assert embedder.is_configured() is True

    def test_is_configured_should_be_false_when_unreachable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        embedder = OllamaEmbedder(client=_client(handler))
        assert embedder.is_configured() is False

    def test_is_configured_should_probe_only_once(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        embedder = OllamaEmbedder(client=_client(handler))
        embedder.is_configured()
        embedder.is_configured()

        assert len(calls) == 1


class TestOpenAIEmbedder:
    def test_embed_should_send_bearer_token_and_parse_data(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": [{"embedding": [1, 2, 3]}]})

        embedder = OpenAIEmbedder(api_key="sk-test", model="text-embedding-3-small", client=_client(handler))

        vector = embedder.embed_text("hello")

        assert vector == [1.0, 2.0, 3.0]
        assert seen[0].headers["Authorization"] == "Bearer sk-test"
        assert json.loads(seen[0].content) == {"input": "hello", "model": "text-embedding-3-small"}

    def test_embed_should_surface_error_field_message(self) -> None:
        embedder = OpenAIEmbedder(
            api_key="sk-test",
            client=_client(lambda r: httpx.Response(200, json={"error": {"message": "quota exceeded"}})),
        )

        with pytest.raises(BackendError, match="quota exceeded"):
            embedder.embed_text("hello")

    def test_embed_should_surface_message_of_failed_status(self) -> None:
        embedder = OpenAIEmbedder(
            api_key="sk-bad",
            client=_client(lambda r: httpx.Response(401, json={"error": {"message": "invalid api key"}})),
        )

        with pytest.raises(BackendError, match="invalid api key"):
            embedder.embed_text("hello")

    def test_embed_should_raise_on_empty_data(self) -> None:
        embedder = OpenAIEmbedder(
            api_key="sk-test", client=_client(lambda r: httpx.Response(200, json={"data": []}))
        )

        with pytest.raises(EmptyEmbeddingError):
            embedder.embed_text("hello")

    def test_embed_without_key_should_fail_before_any_request(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"data": [{"embedding": [1.0]}]})

        embedder = OpenAIEmbedder(api_key=None, client=_client(handler))

        assert embedder.is_configured() is False
        with pytest.raises(UnauthenticatedError):
            embedder.embed_text("hello")
        assert calls == []

    def test_unauthenticated_should_be_an_embedding_unavailable_error(self) -> None:
        assert issubclass(UnauthenticatedError, EmbeddingUnavailableError)


class TestEmbedBatch:
    def test_embed_batch_should_preserve_order(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            prompt = json.loads(request.content)["prompt"]
            return httpx.Response(200, json={"embedding": [float(len(prompt))]})

        embedder = OllamaEmbedder(client=_client(handler))

        assert embedder.embed_batch(["a", "bb", "ccc"]) == [[1.0], [2.0], [3.0]]

    def test_embed_batch_should_abort_and_report_failing_index(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            prompt = json.loads(request.content)["prompt"]
            if prompt == "bad":
                return httpx.Response(500, text="boom")
            return httpx.Response(200, json={"embedding": [1.0]})

        embedder = OllamaEmbedder(client=_client(handler))

        with pytest.raises(BatchEmbeddingError) as exc_info:
            embedder.embed_batch(["ok", "bad", "never"])

        assert exc_info.value.index == 1

    def test_embed_batch_should_report_index_of_configuration_failure(self) -> None:
        embedder = OpenAIEmbedder(api_key=None, client=_client(lambda r: httpx.Response(500)))

        with pytest.raises(BatchEmbeddingError) as exc_info:
            embedder.embed_batch(["first", "second"])

        assert exc_info.value.index == 0
        assert isinstance(exc_info.value.__cause__, UnauthenticatedError)

    def test_embed_batch_should_return_empty_for_no_texts(self) -> None:
        embedder = OllamaEmbedder(client=_client(lambda r: httpx.Response(500)))
        assert embedder.embed_batch([]) == []


class TestCreateEmbedder:
    def test_create_embedder_should_use_openai_when_key_present(self) -> None:
        embedder = create_embedder(_settings(openai_api_key="sk-test"))

        assert isinstance(embedder, OpenAIEmbedder)
        assert embedder.is_configured()

    def test_create_embedder_should_prefer_reachable_ollama(self, monkeypatch) -> None:
        monkeypatch.setattr(OllamaEmbedder, "is_configured", lambda self: True)

        embedder = create_embedder(_settings(use_ollama=True, openai_api_key="sk-test"))

        assert isinstance(embedder, OllamaEmbedder)

    def test_create_embedder_should_fall_back_when_ollama_unreachable(self, monkeypatch) -> None:
        monkeypatch.setattr(OllamaEmbedder, "is_configured", lambda self: False)

        embedder = create_embedder(_settings(use_ollama=True, openai_api_key="sk-test"))

        assert isinstance(embedder, OpenAIEmbedder)

    def test_create_embedder_should_return_unconfigured_instance(self) -> None:
        embedder = create_embedder(_settings())

        assert embedder.is_configured() is False
        with pytest.raises(EmbeddingUnavailableError):
            embedder.embed_text("hello")
