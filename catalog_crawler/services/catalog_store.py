"""Merge freshly fetched pages into the persisted catalog document.

The document is read at save time, not when a fetch starts, so a long
traversal never holds a stale copy. Each save is load, merge, write:

    CatalogStore.save_page(category, label, records)
        -> load()          missing/corrupt file => fresh document + warning
        -> merge_page()    pure; returns a new CatalogDocument
        -> save()          temp file + os.replace; OSError => CatalogPersistenceError

A page label that already exists is overwritten wholesale. Fields from an
earlier, richer fetch of the same page are not carried forward.

There is no locking. Two runs writing the same file race, and the last
write wins.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from catalog_crawler.models.catalog import (
    ALL_PAGES,
    CatalogDocument,
    CategoryDocument,
    PageEntry,
    PageLabel,
    Record,
    utc_now,
)
from catalog_crawler.services.traversal import dedupe_records
from catalog_crawler.utils.atomic import atomic_write_text
from catalog_crawler.utils.errors import CatalogPersistenceError
from catalog_crawler.utils.logging import get_logger

logger = get_logger(__name__)


def _page_sort_key(entry: PageEntry) -> tuple[int, int]:
    if entry.page_label == ALL_PAGES:
        return (1, 0)
    return (0, int(entry.page_label))


def merge_page(
    document: CatalogDocument,
    category_key: str,
    page_label: PageLabel,
    records: list[Record],
    now: datetime | None = None,
) -> CatalogDocument:
    """Return a copy of *document* with *records* stored as one page entry.

    An entry with the same ``page_label`` is replaced in place; otherwise
    the entry is appended. Pages are then ordered numerically with the
    ``"all"`` entry last, and every aggregate is recomputed from scratch.
    """
    now = now or utc_now()
    unique = dedupe_records(records)
    entry = PageEntry(
        page_label=page_label,
        record_count=len(unique),
        fetched_at=now,
        records=unique,
    )

    category = document.categories.get(category_key) or CategoryDocument()
    pages = list(category.pages)
    for index, existing in enumerate(pages):
        if existing.page_label == entry.page_label:
            pages[index] = entry
            break
    else:
        pages.append(entry)
    pages.sort(key=_page_sort_key)

    category = category.model_copy(
        update={
            "pages": pages,
            "total_pages": sum(1 for p in pages if p.is_numeric),
            "total_records": sum(p.record_count for p in pages),
            "last_updated": now,
        }
    )
    categories = {**document.categories, category_key: category}
    return document.model_copy(
        update={
            "categories": categories,
            "total_categories": len(categories),
            "last_updated": now,
        }
    )


class CatalogStore:
    """Reads and writes the catalog JSON document at *path*."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._logger = logger

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> CatalogDocument:
        """Load the document, substituting an empty one if missing or corrupt."""
        if not self._path.exists():
            self._logger.warning("catalog_document_missing", path=str(self._path))
            return CatalogDocument()
        try:
            raw = self._path.read_text(encoding="utf-8")
            return CatalogDocument.model_validate(json.loads(raw))
        except (OSError, ValueError, ValidationError) as exc:
            self._logger.warning(
                "catalog_document_corrupt",
                path=str(self._path),
                error=str(exc)[:200],
            )
            return CatalogDocument()

    def save(self, document: CatalogDocument) -> None:
        """Write *document* atomically; raise :class:`CatalogPersistenceError` on failure."""
        payload = document.model_dump_json(by_alias=True, indent=2)
        try:
            atomic_write_text(self._path, payload)
        except OSError as exc:
            self._logger.error("catalog_document_write_failed", path=str(self._path), error=str(exc))
            raise CatalogPersistenceError(f"Could not write {self._path}: {exc}") from exc
        self._logger.info(
            "catalog_document_saved",
            path=str(self._path),
            categories=document.total_categories,
        )

    def save_page(
        self,
        category_key: str,
        page_label: PageLabel,
        records: list[Record],
    ) -> CatalogDocument:
        """Load, merge one page into *category_key*, write back, and return the result."""
        document = self.load()
        replacing = (
            category_key in document.categories
            and document.categories[category_key].page(page_label) is not None
        )
        merged = merge_page(document, category_key, page_label, records)
        self._logger.info(
            "catalog_page_merged",
            category=category_key,
            page=page_label,
            records=len(records),
            action="replaced" if replacing else "added",
        )
        self.save(merged)
        return merged

    def category_records(self, category_key: str) -> list[Record]:
        """All records stored for *category_key*, in page order, unique by URL."""
        category = self.load().categories.get(category_key)
        if category is None:
            return []
        return dedupe_records(r for page in category.pages for r in page.records)
