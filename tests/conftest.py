"""Shared pytest fixtures for the catalog crawler test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from catalog_crawler.interfaces.asset_downloader import IAssetDownloader
from catalog_crawler.interfaces.page_fetcher import IPageFetcher
from catalog_crawler.models.catalog import Record
from catalog_crawler.services.id_allocator import IdAllocator

BASE_URL = "https://catalog.test"


def make_record(
    record_id: int,
    slug: str,
    category: str = "nintendo",
    title: str | None = None,
    **extra,
) -> Record:
    """Build a listing-style record whose URLs derive from *slug*."""
    url = f"{BASE_URL}/roms/{category}/{slug}"
    return Record(
        id=record_id,
        title=title or slug.replace("-", " ").title(),
        category_key=category,
        source_url=url,
        asset_url=url,
        **extra,
    )


class FakePageFetcher(IPageFetcher):
    """In-memory page fetcher.

    ``pages`` maps page number to the records that page returns; missing
    pages return ``[]``. ``details`` maps source URL to a detail record.
    Every call is recorded for ordering assertions.
    """

    def __init__(
        self,
        pages: dict[int, list[Record]] | None = None,
        details: dict[str, Record | None] | None = None,
        failing_pages: set[int] | None = None,
    ) -> None:
        self.pages = pages or {}
        self.details = details or {}
        self.failing_pages = failing_pages or set()
        self.page_calls: list[tuple[str, int]] = []
        self.detail_calls: list[str] = []

    async def fetch_page(self, category_key: str, page: int) -> list[Record]:
        self.page_calls.append((category_key, page))
        if page in self.failing_pages:
            raise RuntimeError(f"boom on page {page}")
        return list(self.pages.get(page, []))

    async def fetch_detail(self, source_url: str) -> Record | None:
        self.detail_calls.append(source_url)
        detail = self.details.get(source_url)
        if isinstance(detail, Exception):
            raise detail
        return detail

    async def search(self, query: str) -> list[Record]:
        return []

    async def list_categories(self) -> list[str]:
        return sorted({r.category_key for recs in self.pages.values() for r in recs})

    def get_provider_name(self) -> str:
        return "fake"


class FakeAssetDownloader(IAssetDownloader):
    """Downloader that writes a stub file.

    Ids in ``fail_ids`` report failure; ids in ``raise_ids`` raise instead.
    """

    def __init__(
        self,
        root: Path,
        fail_ids: set[int] | None = None,
        raise_ids: set[int] | None = None,
    ) -> None:
        self.root = root
        self.fail_ids = fail_ids or set()
        self.raise_ids = raise_ids or set()
        self.calls: list[int] = []

    def target_path(self, record: Record) -> Path:
        return self.root / record.category_key / f"{record.id}.zip"

    async def download(self, record: Record) -> bool:
        self.calls.append(record.id)
        if record.id in self.raise_ids:
            raise RuntimeError(f"downloader crashed on {record.id}")
        if record.id in self.fail_ids:
            return False
        path = self.target_path(record)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"asset")
        return True


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    return tmp_path / "state.json"


@pytest.fixture
def allocator(state_file: Path) -> IdAllocator:
    return IdAllocator(state_file)


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    return tmp_path / "catalog.json"
