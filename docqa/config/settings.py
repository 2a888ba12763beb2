"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Two sources are read, highest priority first:
#
#   1. Environment variables, e.g. CHUNK_TARGET_CHARS=1500
#   2. The .env file in the working directory (local development)
#
# Field ``chunk_target_chars`` maps to env var ``CHUNK_TARGET_CHARS``.
# Defaults below apply when neither source sets a value.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """docqa application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Chunking ===
    chunk_target_chars: int = 2000
    chunk_overlap_chars: int = 200

    # === Hybrid retrieval ===
    retrieval_top_k: int = 100
    fusion_vector_weight: float = 0.6
    fusion_keyword_weight: float = 0.4

    # === Reranking ===
    rerank_max_length: int = 512
    rerank_window_size: int = 480
    rerank_window_overlap: int = 50
    rerank_top_n: int = 50
    # Directory holding model.onnx + tokenizer.json for the cross-encoder.
    rerank_model_dir: str = "./models/reranker"

    # === Embeddings ===
    embedding_provider: str = "fastembed"  # "fastembed" | "openai"
    fastembed_model: str = "BAAI/bge-small-en-v1.5"
    openai_api_key: str = ""
    openai_base_url: str = ""  # Custom base URL for OpenAI-compatible APIs
    openai_embedding_model: str = ""

    # === Answer generation ===
    llm_provider: str = "openai"  # "openai" | "anthropic"
    openai_text_model: str = ""
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    llm_temperature: float = 0.2
    llm_max_tokens: int = 2000

    # === Search index ===
    index_backend: str = "memory"  # "memory" | "chromadb"
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "docqa_chunks"

    # === Catalog / blob storage ===
    catalog_db_path: str = "data/catalog.db"
    blob_dir: str = "data/blobs"

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        """Return the LLM provider names that have non-empty API keys configured."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.anthropic_api_key:
            providers.append("anthropic")
        return providers
