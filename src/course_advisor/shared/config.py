"""
Configuration Module - Application settings.
============================================

Settings are merged from three layers, lowest priority first:

1. Field defaults on the models below
2. ``config/settings.yaml`` (or the file named by ``COURSE_ADVISOR_CONFIG``)
3. Environment variables, including a ``.env`` file

Nested values are overridden with ``__`` as the delimiter, for example
``RETRIEVAL__TOP_K=8`` or ``CACHE__PERSIST=false``. A few common settings
also have flat aliases: ``GEMINI_API_KEY``, ``EMBEDDING_PROVIDER``,
``VECTOR_BACKEND``, ``TOP_K`` and ``LOG_LEVEL``.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

load_dotenv()

CONFIG_ENV_VAR = "COURSE_ADVISOR_CONFIG"


def _locate_project_root() -> Path:
    """Walk up from this file to the directory holding pyproject.toml."""
    here = Path(__file__).resolve()
    for candidate in here.parents:
        if (candidate / "pyproject.toml").exists():
            return candidate
    return Path.cwd()


PROJECT_ROOT = _locate_project_root()
DEFAULT_CONFIG_FILE = PROJECT_ROOT / "config" / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Section Models
# ─────────────────────────────────────────────────────────────────────────────


class ChunkingConfig(BaseModel):
    """Text chunking settings (sizes in characters)."""

    chunk_size: int = 1000
    chunk_overlap: int = 200


class GeminiEmbeddingConfig(BaseModel):
    """Gemini embeddings settings."""

    model_name: str = "text-embedding-004"
    dimensions: int = 768
    task_type: str = "RETRIEVAL_DOCUMENT"


class EmbeddingsConfig(BaseModel):
    """Embedding provider and generator settings."""

    provider: str = "gemini"
    gemini: GeminiEmbeddingConfig = Field(default_factory=GeminiEmbeddingConfig)

    # Outbound call limits
    request_timeout: float = 30.0

    # Ingestion batching
    batch_size: int = 3
    inter_batch_delay: float = 2.0

    # Rate-limit backoff
    max_retries: int = 3
    retry_min_wait: float = 2.0
    retry_max_wait: float = 30.0


class CacheConfig(BaseModel):
    """Embedding cache persistence settings."""

    embeddings_file: str = "data/cache/embeddings_cache.json"
    persist: bool = True


class VectorStoreConfig(BaseModel):
    """Vector store backend settings."""

    backend: str = "memory"
    collection_name: str = "course_documents"
    persist_directory: str = "data/index"


class RetrievalConfig(BaseModel):
    """Retrieval settings for the semantic and lexical tiers."""

    top_k: int = 5
    lexical_top_n: int = 15
    lenient_top_n: int = 8
    proximity_window: int = 50


class GenerationConfig(BaseModel):
    """Language model settings (structured extraction)."""

    model_name: str = "gemini-2.0-flash"
    temperature: float = 0.1
    max_output_tokens: int = 3000
    request_timeout: float = 30.0


class AnalysisConfig(BaseModel):
    """Document analysis pipeline settings."""

    max_document_chars: int = 6000
    total_credits_needed: int = 220


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    rich_console: bool = True
    file: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────────────────────


class Settings(BaseSettings):
    """Top-level settings; see the module docstring for precedence."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    gemini_api_key: str = Field(default="", validation_alias="GEMINI_API_KEY")

    # Flat overrides; None means "use the section value"
    embedding_provider: Optional[str] = Field(default=None, validation_alias="EMBEDDING_PROVIDER")
    vector_backend: Optional[str] = Field(default=None, validation_alias="VECTOR_BACKEND")
    top_k: Optional[int] = Field(default=None, validation_alias="TOP_K")
    log_level: Optional[str] = Field(default=None, validation_alias="LOG_LEVEL")

    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    embeddings: EmbeddingsConfig = Field(default_factory=EmbeddingsConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML arrives as init kwargs, so the environment must come first
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @field_validator("gemini_api_key", mode="before")
    @classmethod
    def _blank_api_key(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @property
    def project_root(self) -> Path:
        return PROJECT_ROOT

    def resolve_path(self, configured: str) -> Path:
        """Resolve a configured path; relative paths are anchored at the project root."""
        path = Path(configured)
        return path if path.is_absolute() else PROJECT_ROOT / path

    def get_effective_embedding_provider(self) -> str:
        return (self.embedding_provider or self.embeddings.provider).lower()

    def get_effective_vector_backend(self) -> str:
        return (self.vector_backend or self.vector_store.backend).lower()

    def get_effective_top_k(self) -> int:
        return self.top_k if self.top_k is not None else self.retrieval.top_k

    def get_effective_log_level(self) -> str:
        return (self.log_level or self.logging.level).upper()


def _read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML mapping; a missing or empty file yields no overrides."""
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _create_settings(config_path: Optional[Path] = None) -> Settings:
    if config_path is None:
        config_path = Path(os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE)
    return Settings(**_read_yaml(config_path))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the process-wide settings, loading them on first use.

    Call ``get_settings.cache_clear()`` to pick up changed files or
    environment variables.
    """
    return _create_settings()
