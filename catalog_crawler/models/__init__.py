"""Catalog crawler domain models.

``catalog.py`` holds everything: the :class:`Record` produced by the page
adapter, and the :class:`PageEntry` / :class:`CategoryDocument` /
:class:`CatalogDocument` hierarchy that is persisted as JSON.
"""

from catalog_crawler.models.catalog import (
    ALL_PAGES,
    AllocatorState,
    CatalogDocument,
    CategoryDocument,
    PageEntry,
    PageLabel,
    Record,
    RelatedRecord,
)

__all__ = [
    "ALL_PAGES",
    "AllocatorState",
    "CatalogDocument",
    "CategoryDocument",
    "PageEntry",
    "PageLabel",
    "Record",
    "RelatedRecord",
]
