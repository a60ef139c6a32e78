"""Configuration module: exports Settings and load_settings."""

from catalog_crawler.config.loader import load_settings
from catalog_crawler.config.settings import Settings

__all__ = ["Settings", "load_settings"]
