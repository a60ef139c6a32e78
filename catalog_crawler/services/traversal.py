"""Pagination traversal over a category's listing pages.

The source has no total-page count, and requesting a page past the end
returns the last real page again rather than an empty one. A full-category
traversal therefore stops on whichever comes first:

  A. a page with no records at all, or
  B. a page whose records have all been seen already (the fallback page).

B is a heuristic. A page that coincidentally repeats earlier content also
ends the traversal. If the source never produces either signal the loop
does not terminate on its own; ``max_pages`` exists as an opt-in ceiling
for that case and is off by default.

Pages are fetched strictly one at a time and in order. Condition B is only
meaningful under that ordering.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable

from catalog_crawler.interfaces.page_fetcher import IPageFetcher
from catalog_crawler.models.catalog import Record
from catalog_crawler.utils.logging import get_logger

ProgressCallback = Callable[[int, int, int, int], None]
"""``(page, returned, new, running_total)``"""

_DEFAULT_PAGE_DELAY = 0.3


def dedupe_records(records: Iterable[Record]) -> list[Record]:
    """Drop records whose ``source_url`` was already seen; first one wins."""
    seen: set[str] = set()
    unique: list[Record] = []
    for record in records:
        if record.source_url not in seen:
            seen.add(record.source_url)
            unique.append(record)
    return unique


class PaginationTraversal:
    """Drives an :class:`IPageFetcher` across pages of one category.

    Parameters
    ----------
    fetcher:
        Adapter returning one page's records.
    page_delay:
        Seconds to sleep between page requests.
    max_pages:
        Optional hard ceiling on pages per traversal. ``None`` means no cap.
    """

    def __init__(
        self,
        fetcher: IPageFetcher,
        page_delay: float = _DEFAULT_PAGE_DELAY,
        max_pages: int | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._page_delay = page_delay
        self._max_pages = max_pages
        self._logger = get_logger(__name__)

    async def traverse_all(
        self,
        category_key: str,
        on_progress: ProgressCallback | None = None,
    ) -> list[Record]:
        """Fetch every page of *category_key* until a stop condition fires.

        Returns the deduplicated records in discovery order. Records keep
        the ids they were given on the page where they first appeared.
        """
        collected: list[Record] = []
        seen: set[str] = set()
        page = 1

        while True:
            if self._max_pages is not None and page > self._max_pages:
                self._logger.warning(
                    "traversal_page_ceiling_reached",
                    category=category_key,
                    max_pages=self._max_pages,
                    total=len(collected),
                )
                break

            records = await self._fetch(category_key, page)
            if not records:
                self._logger.info("traversal_empty_page", category=category_key, page=page)
                break

            fresh = [r for r in dedupe_records(records) if r.source_url not in seen]
            if not fresh:
                self._logger.info(
                    "traversal_fallback_page",
                    category=category_key,
                    page=page,
                    returned=len(records),
                )
                break

            for record in fresh:
                seen.add(record.source_url)
                collected.append(record)

            self._logger.info(
                "traversal_page_fetched",
                category=category_key,
                page=page,
                returned=len(records),
                new=len(fresh),
                total=len(collected),
            )
            if on_progress is not None:
                on_progress(page, len(records), len(fresh), len(collected))

            await asyncio.sleep(self._page_delay)
            page += 1

        return collected

    async def fetch_one(self, category_key: str, page: int) -> list[Record]:
        """Fetch a single page with no cross-page dedup or stop logic."""
        return await self._fetch(category_key, page)

    async def _fetch(self, category_key: str, page: int) -> list[Record]:
        try:
            return list(await self._fetcher.fetch_page(category_key, page))
        except Exception as exc:
            self._logger.warning(
                "traversal_page_failed",
                category=category_key,
                page=page,
                error=str(exc),
            )
            return []
