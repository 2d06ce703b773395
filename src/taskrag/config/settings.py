"""Application configuration powered by pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineSettings(BaseSettings):
    """Runtime configuration for the task context pipeline."""

    app_name: str = Field(default="Task RAG API", alias="APP_NAME")

    # Completion provider
    llm_provider: Literal["openai", "anthropic"] = Field(
        default="openai",
        alias="LLM_PROVIDER",
        description="Completion provider to use (openai or anthropic)",
    )
    llm_model: str = Field(
        default="gpt-4o-mini",
        alias="LLM_MODEL",
        description="Completion model name",
    )
    openai_api_key: str = Field(
        default="",
        alias="OPENAI_API_KEY",
        description="OpenAI API key (also used for embeddings)",
    )
    anthropic_api_key: str = Field(
        default="",
        alias="ANTHROPIC_API_KEY",
        description="Anthropic API key",
    )
    llm_temperature: float = Field(
        default=0.7,
        alias="LLM_TEMPERATURE",
        description="Temperature for completion sampling (0.0-2.0)",
    )
    completion_max_tokens: int = Field(
        default=500,
        alias="COMPLETION_MAX_TOKENS",
        description="Output-length budget for the final answer",
    )

    # Embeddings
    embedding_model: str = Field(
        default="text-embedding-ada-002",
        alias="EMBEDDING_MODEL",
        description="Embedding model shared by queries and indexed tasks",
    )
    embedding_dim: int = Field(
        default=1536,
        alias="EMBEDDING_DIM",
        description="Vector length produced by the embedding model",
    )

    # Per-call timeouts (seconds); expiry is handled as a provider failure
    llm_timeout_seconds: float = Field(default=30.0, alias="LLM_TIMEOUT_SECONDS")
    embedding_timeout_seconds: float = Field(
        default=15.0, alias="EMBEDDING_TIMEOUT_SECONDS"
    )
    search_timeout_seconds: float = Field(default=10.0, alias="SEARCH_TIMEOUT_SECONDS")
    lookup_timeout_seconds: float = Field(default=10.0, alias="LOOKUP_TIMEOUT_SECONDS")

    # Retrieval and sanitizing bounds
    max_context_records: int = Field(
        default=10,
        alias="MAX_CONTEXT_RECORDS",
        description="Hard upper bound on records rendered into the context",
    )
    max_field_length: int = Field(
        default=1000,
        alias="MAX_FIELD_LENGTH",
        description="Maximum characters kept per sanitized record field",
    )

    # Storage
    database_url: str = Field(
        default="sqlite:///./data/tasks.db",
        alias="DATABASE_URL",
        description="SQLAlchemy URL of the relational task store",
    )
    vector_db_path: str = Field(
        default="./data/lancedb",
        alias="VECTOR_DB_PATH",
        description="Directory of the LanceDB vector index",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        """Validate LLM provider is supported."""
        if v not in ("openai", "anthropic"):
            raise ValueError(f"Unsupported LLM provider: {v}")
        return v

    @field_validator("llm_temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        """Validate temperature is in valid range."""
        if not 0.0 <= v <= 2.0:
            raise ValueError(f"Temperature must be between 0.0 and 2.0, got {v}")
        return v

    @field_validator("max_context_records")
    @classmethod
    def validate_max_context_records(cls, v: int) -> int:
        """Keep the context cap within 1..10."""
        if not 1 <= v <= 10:
            raise ValueError(f"max_context_records must be between 1 and 10, got {v}")
        return v


@lru_cache(maxsize=1)
def get_settings() -> PipelineSettings:
    """Return a cached settings instance."""

    return PipelineSettings()
