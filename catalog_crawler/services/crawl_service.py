"""End-to-end crawl of one category page selector.

    fetch ("all" => full traversal, N => single page)
      -> persist allocator           (batch boundary)
      -> enrich via detail pages     (optional)
      -> persist allocator           (batch boundary)
      -> merge + write document      (CatalogPersistenceError propagates)
      -> download assets             (optional, best effort)

Fetch and merge are decoupled: the document is only read inside
:meth:`CatalogStore.save_page`, after all network work for the batch.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from catalog_crawler.models.catalog import ALL_PAGES, PageLabel, Record
from catalog_crawler.services.bulk_download import BulkDownloadService, DownloadSummary
from catalog_crawler.services.catalog_store import CatalogStore
from catalog_crawler.services.enrichment import EnrichmentService
from catalog_crawler.services.id_allocator import IdAllocator
from catalog_crawler.services.traversal import PaginationTraversal, ProgressCallback
from catalog_crawler.utils.logging import get_logger


@dataclass
class CrawlSummary:
    category_key: str
    page_label: PageLabel
    listed: int = 0
    enriched: int = 0
    failed: int = 0
    saved: bool = False
    total_records: int = 0
    records: list[Record] = field(default_factory=list)
    downloads: DownloadSummary | None = None


class CrawlService:
    """Wires traversal, enrichment, persistence and downloads together.

    Parameters
    ----------
    traversal:
        Pagination engine used for listing fetches.
    enrichment:
        Detail-page enrichment service.
    store:
        Catalog document store the results are merged into.
    allocator:
        The run's identifier allocator; persisted at each batch boundary.
    bulk_downloader:
        Optional; required only when ``download=True`` is requested.
    """

    def __init__(
        self,
        traversal: PaginationTraversal,
        enrichment: EnrichmentService,
        store: CatalogStore,
        allocator: IdAllocator,
        bulk_downloader: BulkDownloadService | None = None,
    ) -> None:
        self._traversal = traversal
        self._enrichment = enrichment
        self._store = store
        self._allocator = allocator
        self._bulk_downloader = bulk_downloader
        self._logger = get_logger(__name__)

    async def fetch(
        self,
        category_key: str,
        page_label: PageLabel,
        on_progress: ProgressCallback | None = None,
    ) -> list[Record]:
        """Fetch listing records for *page_label* and persist the allocator."""
        if page_label == ALL_PAGES:
            records = await self._traversal.traverse_all(category_key, on_progress=on_progress)
        else:
            records = await self._traversal.fetch_one(category_key, int(page_label))
        self._allocator.persist()
        return records

    async def run(
        self,
        category_key: str,
        page_label: PageLabel,
        enrich: bool = True,
        download: bool = False,
        on_progress: ProgressCallback | None = None,
        on_enrich_progress: Callable[[int, int, Record], None] | None = None,
    ) -> CrawlSummary:
        """Fetch, optionally enrich, merge and optionally download one selector."""
        summary = CrawlSummary(category_key=category_key, page_label=page_label)

        records = await self.fetch(category_key, page_label, on_progress=on_progress)
        summary.listed = len(records)
        self._logger.info("crawl_listed", category=category_key, page=page_label, records=len(records))

        if enrich and records:
            result = await self._enrichment.enrich(records, on_progress=on_enrich_progress)
            self._allocator.persist()
            records = result.records
            summary.enriched = len(result.records)
            summary.failed = len(result.failed)

        summary.records = records
        if not records:
            self._logger.warning("crawl_nothing_to_save", category=category_key, page=page_label)
            return summary

        document = self._store.save_page(category_key, page_label, records)
        summary.saved = True
        summary.total_records = document.categories[category_key].total_records

        if download:
            if self._bulk_downloader is None:
                self._logger.warning("crawl_download_unavailable", category=category_key)
            else:
                summary.downloads = await self._bulk_downloader.download_records(records)

        return summary
