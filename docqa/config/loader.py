"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Layers, later ones win:
#
#   1. config/config.yaml  - static defaults checked into the repo
#   2. .env file           - local developer overrides (not committed)
#   3. Environment vars    - set at deploy time
#
# load_config() reads the YAML first, then deep-merges the values
# resolved by Settings on top.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from docqa.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is read when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "env": settings.app_env,
        },
        "chunking": {
            "target_chars": settings.chunk_target_chars,
            "overlap_chars": settings.chunk_overlap_chars,
        },
        "retrieval": {
            "top_k": settings.retrieval_top_k,
            "vector_weight": settings.fusion_vector_weight,
            "keyword_weight": settings.fusion_keyword_weight,
        },
        "rerank": {
            "max_length": settings.rerank_max_length,
            "window_size": settings.rerank_window_size,
            "window_overlap": settings.rerank_window_overlap,
            "top_n": settings.rerank_top_n,
            "model_dir": settings.rerank_model_dir,
        },
        "embedding": {
            "provider": settings.embedding_provider,
            "fastembed_model": settings.fastembed_model,
        },
        "llm": {
            "provider": settings.llm_provider,
            "temperature": settings.llm_temperature,
            "max_tokens": settings.llm_max_tokens,
            "available_providers": settings.get_available_llm_providers(),
        },
        "index": {
            "backend": settings.index_backend,
            "chromadb_persist_dir": settings.chromadb_persist_dir,
            "chromadb_collection": settings.chromadb_collection,
        },
        "storage": {
            "catalog_db_path": settings.catalog_db_path,
            "blob_dir": settings.blob_dir,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
