"""Detail-page enrichment for listed records.

Records are enriched one at a time, in listing order, with a fixed delay
between requests. The adapter allocates a fresh id for every detail fetch;
the enriched record is re-stamped with the listing record's ``id`` and
``category_key`` so enrichment never changes identity.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

from catalog_crawler.interfaces.page_fetcher import IPageFetcher
from catalog_crawler.models.catalog import Record
from catalog_crawler.utils.logging import get_logger

_DEFAULT_DETAIL_DELAY = 0.3


@dataclass
class EnrichmentResult:
    """Outcome of an enrichment batch.

    ``records`` holds only successfully enriched records, in listing order.
    ``failed`` lists the listing records whose detail fetch produced nothing.
    """

    records: list[Record] = field(default_factory=list)
    failed: list[Record] = field(default_factory=list)


class EnrichmentService:
    """Fetches detail pages for listed records via an :class:`IPageFetcher`."""

    def __init__(self, fetcher: IPageFetcher, detail_delay: float = _DEFAULT_DETAIL_DELAY) -> None:
        self._fetcher = fetcher
        self._detail_delay = detail_delay
        self._logger = get_logger(__name__)

    async def enrich_one(self, record: Record) -> Record | None:
        """Return *record* enriched from its detail page, keeping its id."""
        try:
            detail = await self._fetcher.fetch_detail(record.source_url)
        except Exception as exc:
            self._logger.warning("enrichment_detail_failed", url=record.source_url, error=str(exc))
            return None
        if detail is None:
            return None
        return detail.model_copy(update={"id": record.id, "category_key": record.category_key})

    async def enrich(
        self,
        records: list[Record],
        on_progress: Callable[[int, int, Record], None] | None = None,
    ) -> EnrichmentResult:
        """Enrich *records* sequentially.

        ``on_progress`` is called before each fetch with ``(index, total, record)``
        (1-based index).
        """
        result = EnrichmentResult()
        total = len(records)
        for index, record in enumerate(records, start=1):
            if on_progress is not None:
                on_progress(index, total, record)

            enriched = await self.enrich_one(record)
            if enriched is None:
                result.failed.append(record)
            else:
                result.records.append(enriched)

            if index < total:
                await asyncio.sleep(self._detail_delay)

        self._logger.info(
            "enrichment_complete",
            requested=total,
            enriched=len(result.records),
            failed=len(result.failed),
        )
        return result
