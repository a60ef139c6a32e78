"""Streaming asset downloader over an injected ``httpx.AsyncClient``.

Assets land in ``{download_dir}/{category_key}/{filename}``. The body is
streamed to a ``.part`` sibling and renamed into place only when complete,
so an interrupted download never looks like a finished file to the
"already exists" skip check in :mod:`catalog_crawler.services.bulk_download`.
"""

from __future__ import annotations

import re
from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx

from catalog_crawler.interfaces.asset_downloader import IAssetDownloader
from catalog_crawler.models.catalog import Record
from catalog_crawler.utils.errors import DownloadError
from catalog_crawler.utils.logging import get_logger

_CHUNK_SIZE = 64 * 1024
_UNSAFE_CHARS_RE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def asset_filename(record: Record) -> str:
    """Pick a local filename: ``file_name``, else the URL basename, else ``<title>.zip``."""
    filename = record.file_name or ""
    if not filename and record.redirect_asset_url:
        try:
            filename = unquote(Path(urlparse(record.redirect_asset_url).path).name)
        except ValueError:
            filename = ""
    filename = Path(filename).name  # never let a stored name escape the category dir
    if not filename or "." not in filename:
        filename = f"{_UNSAFE_CHARS_RE.sub('_', record.title)}.zip"
    return filename


class HttpAssetDownloader(IAssetDownloader):
    """Downloads ``record.redirect_asset_url`` to a per-category directory."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        download_dir: str | Path,
        user_agent: str = "catalog-crawler/0.1",
    ) -> None:
        self._http = http_client
        self._download_dir = Path(download_dir)
        self._headers = {"User-Agent": user_agent}
        self._logger = get_logger(__name__)

    @property
    def download_dir(self) -> Path:
        return self._download_dir

    def target_path(self, record: Record) -> Path:
        return self._download_dir / record.category_key / asset_filename(record)

    async def download(self, record: Record) -> bool:
        if not record.redirect_asset_url:
            self._logger.warning("download_no_url", record_id=record.id, title=record.title)
            return False

        target = self.target_path(record)
        try:
            written = await self._stream_to(record.redirect_asset_url, target)
        except (DownloadError, OSError) as exc:
            self._logger.warning(
                "download_failed",
                record_id=record.id,
                url=record.redirect_asset_url,
                error=str(exc),
            )
            return False

        self._logger.info("download_complete", record_id=record.id, path=str(target), bytes=written)
        return True

    async def _stream_to(self, url: str, target: Path) -> int:
        target.parent.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(target.name + ".part")
        written = 0
        try:
            async with self._http.stream(
                "GET", url, headers=self._headers, follow_redirects=True
            ) as response:
                if response.status_code != 200:
                    raise DownloadError(f"{url} returned {response.status_code}")
                with partial.open("wb") as handle:
                    async for chunk in response.aiter_bytes(_CHUNK_SIZE):
                        handle.write(chunk)
                        written += len(chunk)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            partial.unlink(missing_ok=True)
            raise DownloadError(f"{url}: {exc}") from exc
        except BaseException:
            partial.unlink(missing_ok=True)
            raise
        partial.replace(target)
        return written
