"""Utility modules for the catalog crawler.

- **logging** -- structlog setup (console renderer in development, JSON in
  production) and the ``get_logger`` accessor every module uses.
- **errors** -- exception hierarchy rooted at :class:`CatalogCrawlerError`.
- **atomic** -- temp-file-and-rename writes for the catalog document and
  allocator state.
"""

from catalog_crawler.utils.atomic import atomic_write, atomic_write_text
from catalog_crawler.utils.errors import (
    CatalogCrawlerError,
    CatalogPersistenceError,
    ConfigurationError,
    DownloadError,
    FetchError,
)
from catalog_crawler.utils.logging import configure_logging, get_logger

__all__ = [
    "CatalogCrawlerError",
    "CatalogPersistenceError",
    "ConfigurationError",
    "DownloadError",
    "FetchError",
    "atomic_write",
    "atomic_write_text",
    "configure_logging",
    "get_logger",
]
