"""Download every stored asset for a category, best effort.

Each record ends in exactly one of three buckets:

- **skipped**: no ``redirect_asset_url``, or the target file already exists
- **downloaded**: the downloader reported success
- **failed**: the downloader reported failure

A failure, including an exception raised by the downloader, never stops
the loop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

from catalog_crawler.interfaces.asset_downloader import IAssetDownloader
from catalog_crawler.models.catalog import Record
from catalog_crawler.utils.logging import get_logger

_DEFAULT_DOWNLOAD_DELAY = 1.0


@dataclass
class DownloadSummary:
    downloaded: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.downloaded + self.skipped + self.failed


class BulkDownloadService:
    """Runs an :class:`IAssetDownloader` over a list of records."""

    def __init__(
        self,
        downloader: IAssetDownloader,
        delay: float = _DEFAULT_DOWNLOAD_DELAY,
    ) -> None:
        self._downloader = downloader
        self._delay = delay
        self._logger = get_logger(__name__)

    async def download_records(
        self,
        records: list[Record],
        on_result: Callable[[int, int, Record, str], None] | None = None,
    ) -> DownloadSummary:
        """Download *records* in order.

        ``on_result`` receives ``(index, total, record, outcome)`` where
        outcome is ``"downloaded"``, ``"skipped"`` or ``"failed"``.
        """
        summary = DownloadSummary()
        total = len(records)

        for index, record in enumerate(records, start=1):
            if not record.redirect_asset_url:
                outcome = "skipped"
                self._logger.info("download_skipped_no_url", record_id=record.id, title=record.title)
            elif self._downloader.target_path(record).exists():
                outcome = "skipped"
                self._logger.info(
                    "download_skipped_exists",
                    record_id=record.id,
                    path=str(self._downloader.target_path(record)),
                )
            else:
                try:
                    ok = await self._downloader.download(record)
                except Exception as exc:
                    self._logger.warning(
                        "download_raised",
                        record_id=record.id,
                        url=record.redirect_asset_url,
                        error=str(exc),
                    )
                    ok = False
                outcome = "downloaded" if ok else "failed"
                await asyncio.sleep(self._delay)

            if outcome == "downloaded":
                summary.downloaded += 1
            elif outcome == "skipped":
                summary.skipped += 1
            else:
                summary.failed += 1

            if on_result is not None:
                on_result(index, total, record, outcome)

        self._logger.info(
            "bulk_download_complete",
            downloaded=summary.downloaded,
            skipped=summary.skipped,
            failed=summary.failed,
        )
        return summary
