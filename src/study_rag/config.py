"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide settings, populated from ``STUDY_RAG_*`` env vars or .env file.

    Components never read these values directly; the factory functions
    (``build_embeddings``, ``get_completion_llm``, ``build_service``,
    …) pass them in as constructor arguments.
    """

    # Completion (primary answer generation)
    completion_api_key: str = Field(default="", description="API key for the completion provider")
    completion_model: str = Field(default="gemini-2.0-flash", description="Completion model identifier")
    completion_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai/",
        description=(
            "Base URL of an OpenAI-compatible chat endpoint. Leave empty to use "
            "the OpenAI cloud API."
        ),
    )
    completion_temperature: float = 0.3

    # Refinement (second pass); refinement is skipped when no key is set
    refinement_api_key: str = Field(default="", description="OpenAI API key used for refinement")
    refinement_model: str = "gpt-4o-mini"
    refinement_base_url: str = ""
    refinement_temperature: float = 0.7

    # Embedding
    embedding_provider: Literal["huggingface", "openai"] = "huggingface"
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_api_key: str = ""
    embedding_base_url: str = ""
    embedding_dimension: int | None = Field(
        default=None,
        description="Expected vector length; when set, every embedding is validated against it",
    )

    # Vector store
    persist_directory: str = ".study_rag/chroma"
    collection_name: str = "study_notes"

    # Ingestion
    chunk_size: int = 1000
    chunk_overlap: int = 200
    max_document_bytes: int = 20 * 1024 * 1024
    embed_retries: int = 0
    retry_backoff_seconds: float = 1.0

    # Retrieval / external calls
    default_top_k: int = 6
    request_timeout_seconds: float = 60.0

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="STUDY_RAG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Singleton, constructed once at startup and handed to the factories.
settings = Settings()
