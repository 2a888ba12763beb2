"""Configuration module - exports Settings and load_config."""

from docqa.config.loader import load_config
from docqa.config.settings import Settings

__all__ = ["Settings", "load_config"]
