"""Configuration management using environment variables and pydantic."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from support_assistant.utils.errors import ConfigurationError


class CorpusDocument(BaseModel):
    """A named source document of the support corpus."""
    name: str
    path: str


DEFAULT_CORPUS = [
    CorpusDocument(name="VoltDrive Troubleshooting Guide", path="troubleshooting_md.pdf"),
    CorpusDocument(name="VoltDrive Warranty & Pricing", path="warrantypricing_md.pdf"),
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Vector Database Configuration
    qdrant_url: str
    qdrant_api_key: Optional[str] = None
    qdrant_collection_name: str = "voltdrive_documents"
    embedding_dimension: int = 1024  # mxbai-embed-large
    vector_store_timeout_seconds: int = 10

    # Ollama Configuration
    ollama_base_url: str
    ollama_embedding_model: str = "mxbai-embed-large"
    ollama_chat_model: str = "llama3.2:3b"
    embedding_timeout_seconds: float = 30.0
    generation_timeout_seconds: float = 120.0

    # Response Configuration
    response_temperature: float = 0.7
    max_response_tokens: int = 1000
    conversation_history_turns: int = 3

    # Chunking Configuration
    rag_chunk_size: int = 2000  # ~500 tokens
    rag_min_chunk_length: int = 100
    rag_overlap_sentences: int = 3

    # Retrieval Configuration
    rag_retrieval_top_k: int = 8
    rag_similarity_threshold: float = 0.3
    rag_final_top_n: int = 5
    rag_vector_weight: float = 0.7
    rag_keyword_weight: float = 0.3

    # Ingestion Configuration
    documents_path: str = "data/documents"
    documents_manifest: List[CorpusDocument] = DEFAULT_CORPUS
    ingestion_batch_size: int = 50
    ingestion_embedding_delay_seconds: float = 0.1
    ingestion_artifacts_path: str = "data/ingestion"

    # Logging Configuration
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file_path: str = "logs/support_assistant.log"
    log_max_size_mb: int = 100
    log_backup_count: int = 5


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings() -> Settings:
    """Load settings at startup, failing fast on missing endpoints.

    Raises:
        ConfigurationError: If a required setting is missing or invalid
    """
    try:
        return get_settings()
    except ValidationError as e:
        missing = ", ".join(
            ".".join(str(part) for part in err["loc"]) for err in e.errors()
        )
        raise ConfigurationError(f"Invalid or missing configuration: {missing}") from e


def reset_settings() -> None:
    """Drop the cached settings so the next access re-reads the environment."""
    global _settings
    _settings = None
