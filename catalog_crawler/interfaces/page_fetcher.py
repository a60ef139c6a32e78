"""Abstract base class for catalog page fetch-and-parse adapters.

The traversal and enrichment services only ever see this contract, so the
HTML heuristics in :mod:`catalog_crawler.providers.catalog` can change (or
be replaced by a fake in tests) without touching pagination or merge logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from catalog_crawler.models.catalog import Record


class IPageFetcher(ABC):
    """Contract for services that turn catalog pages into :class:`Record` lists."""

    @abstractmethod
    async def fetch_page(self, category_key: str, page: int) -> list[Record]:
        """Return the records listed on one page of *category_key*.

        Parameters
        ----------
        category_key:
            Category identifier as it appears in listing URLs.
        page:
            1-based page number.

        Returns
        -------
        list[Record]
            Records in page order, unique by ``source_url``. Empty when the
            page has no items or could not be fetched.
        """

    @abstractmethod
    async def fetch_detail(self, source_url: str) -> Record | None:
        """Fetch a record's detail page, or ``None`` if it yields no record.

        The returned record carries a freshly allocated ``id``. Callers that
        enrich an already-listed record must keep the listing id.
        """

    @abstractmethod
    async def search(self, query: str) -> list[Record]:
        """Return records matching a free-text *query* (empty on failure)."""

    @abstractmethod
    async def list_categories(self) -> list[str]:
        """Return the category slugs the source advertises (empty on failure)."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for this adapter, e.g. ``"html_catalog"``."""
