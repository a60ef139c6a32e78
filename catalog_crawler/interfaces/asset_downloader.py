"""Abstract base class for asset download collaborators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from catalog_crawler.models.catalog import Record


class IAssetDownloader(ABC):
    """Contract for services that fetch a record's downloadable asset."""

    @abstractmethod
    async def download(self, record: Record) -> bool:
        """Download the asset behind ``record.redirect_asset_url``.

        Returns ``True`` on success and ``False`` on any failure; errors are
        logged, not raised.
        """

    @abstractmethod
    def target_path(self, record: Record) -> Path:
        """Return the local path the asset for *record* is written to."""
