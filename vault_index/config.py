"""Runtime configuration, read from explicit values or the environment."""

import os

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from vault_index.domain import constants


def _env(field_name: str, env_name: str) -> AliasChoices:
    return AliasChoices(field_name, env_name)


class Settings(BaseSettings):
    """All tunables of the indexer. Only factories read this; components take arguments."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", validation_alias=_env("log_level", "LOG_LEVEL"))

    vault_path: str = Field(default="/vault", validation_alias=_env("vault_path", "OBSIDIAN_VAULT_PATH"))
    store_path: str | None = Field(default=None, validation_alias=_env("store_path", "VECTOR_STORE_PATH"))

    chunk_max_size: int = Field(
        default=constants.CHUNK_MAX_SIZE, gt=0, validation_alias=_env("chunk_max_size", "CHUNK_MAX_SIZE")
    )
    chunk_overlap: int = Field(
        default=constants.CHUNK_OVERLAP, ge=0, validation_alias=_env("chunk_overlap", "CHUNK_OVERLAP")
    )

    debounce_seconds: float = Field(
        default=constants.DEBOUNCE_SECONDS, gt=0, validation_alias=_env("debounce_seconds", "DEBOUNCE_SECONDS")
    )
    enable_auto_index: bool = Field(default=True, validation_alias=_env("enable_auto_index", "ENABLE_AUTO_INDEX"))

    use_ollama: bool = Field(default=False, validation_alias=_env("use_ollama", "USE_OLLAMA"))
    ollama_endpoint: str = Field(
        default=constants.OLLAMA_ENDPOINT, validation_alias=_env("ollama_endpoint", "OLLAMA_ENDPOINT")
    )
    ollama_model: str = Field(default=constants.OLLAMA_MODEL, validation_alias=_env("ollama_model", "OLLAMA_MODEL"))

    openai_api_key: SecretStr | None = Field(default=None, validation_alias=_env("openai_api_key", "OPENAI_API_KEY"))
    openai_endpoint: str = Field(
        default=constants.OPENAI_EMBEDDING_ENDPOINT,
        validation_alias=_env("openai_endpoint", "OPENAI_EMBEDDING_ENDPOINT"),
    )
    openai_model: str = Field(
        default=constants.OPENAI_EMBEDDING_MODEL,
        validation_alias=_env("openai_model", "OPENAI_EMBEDDING_MODEL"),
    )
    embedding_timeout: float = Field(default=constants.EMBEDDING_TIMEOUT_SECONDS, gt=0)

    qdrant_enabled: bool = Field(default=True, validation_alias=_env("qdrant_enabled", "QDRANT_ENABLED"))
    qdrant_url: str = Field(default=constants.QDRANT_URL, validation_alias=_env("qdrant_url", "QDRANT_URL"))
    qdrant_api_key: SecretStr | None = Field(default=None, validation_alias=_env("qdrant_api_key", "QDRANT_API_KEY"))
    qdrant_collection: str = Field(
        default=constants.QDRANT_COLLECTION_NAME, validation_alias=_env("qdrant_collection", "QDRANT_COLLECTION")
    )
    metadata_timeout: int = Field(default=constants.METADATA_TIMEOUT_SECONDS, gt=0)
    search_timeout: int = Field(default=constants.SEARCH_TIMEOUT_SECONDS, gt=0)

    @property
    def resolved_store_path(self) -> str:
        """Local store file, defaulting to a hidden directory inside the vault."""
        if self.store_path:
            return self.store_path
        return os.path.join(
            self.vault_path, constants.LOCAL_STORE_DIRNAME, constants.LOCAL_STORE_FILENAME
        )
