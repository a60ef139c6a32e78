"""HTML catalog adapter: listing, detail, search and category pages.

Implements :class:`IPageFetcher` by fetching server-rendered pages with an
injected ``httpx.AsyncClient`` and picking them apart with BeautifulSoup.

URL scheme (``listing_path`` defaults to ``roms``)::

    {base}/{listing}/{category}               page 1
    {base}/{listing}/{category}/page/{n}      page n > 1
    {base}/{listing}/{category}/{slug}        detail page
    {base}/search?q={query}                   search

Every failure (transport error, non-200 status, unparseable markup) is
logged and surfaces as ``[]`` or ``None``. Nothing here raises to the
caller. Politeness delays belong to the services driving this adapter.
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import quote, quote_plus, urljoin, urlparse

import httpx
from bs4 import BeautifulSoup, Tag

from catalog_crawler.interfaces.page_fetcher import IPageFetcher
from catalog_crawler.models.catalog import Record, RelatedRecord
from catalog_crawler.services.id_allocator import IdAllocator
from catalog_crawler.utils.errors import FetchError
from catalog_crawler.utils.logging import get_logger

_PROVIDER_NAME = "html_catalog"
_MAX_RELATED = 10
_TITLE_SUFFIX_RE = re.compile(r"\s+(?:ROM|Download)\s*$")
_RELATED_RE = re.compile(r"related", re.IGNORECASE)
_PLACEHOLDER_IMAGES = ("spinner.gif", "loading.gif")
_LAZY_IMAGE_ATTRS = ("data-src", "data-srcset", "data-lazy-src", "src")

# Labelled "Key: value" facts on detail pages, matched against the page text.
# "Console: X" or "Console" on its own line followed by the value.
_CONSOLE_RE = re.compile(r"Console(?::|[ \t]*\n)\s*([^\n]+)")
_GENRE_RE = re.compile(r"Category:\s*([^\n]+)")
_REGION_RE = re.compile(r"Region:\s*([^\n]+)")
_RELEASE_RE = re.compile(r"Release\s+(?:Year|Date):\s*([^\n]+)")
_DOWNLOADS_RE = re.compile(r"Downloads:\s*([\d,]+)")
_SIZE_RE = re.compile(r"Size:\s*(\d+(?:\.\d+)?\s*(?:KB|MB|GB))", re.IGNORECASE)
_FILE_NAME_RE = re.compile(r"File Name:\s*([^\n]+?)(?:\s+Size:|$)", re.IGNORECASE | re.MULTILINE)


def _clean_title(text: str) -> str:
    return _TITLE_SUFFIX_RE.sub("", text).strip()


def _first_match(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    if match is None:
        return None
    value = match.group(1).strip()
    return value or None


class HtmlCatalogProvider(IPageFetcher):
    """Scrapes a server-rendered catalog site into :class:`Record` objects.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient`` (connection pooling, testability).
    allocator:
        Identifier source for every record this adapter creates.
    base_url:
        Site root, e.g. ``https://romspedia.com``.
    listing_path:
        First path segment of listing and detail URLs.
    download_host:
        Host that serves assets by file name; used for ``redirect_asset_url``.
    user_agent:
        ``User-Agent`` header sent with every request.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        allocator: IdAllocator,
        base_url: str,
        listing_path: str = "roms",
        download_host: str | None = None,
        user_agent: str = "catalog-crawler/0.1",
    ) -> None:
        self._http = http_client
        self._allocator = allocator
        self._base_url = base_url.rstrip("/")
        self._listing_path = listing_path.strip("/")
        self._download_host = download_host.rstrip("/") if download_host else None
        self._headers = {"User-Agent": user_agent}
        self._logger = get_logger(__name__)

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    # -- URL helpers -----------------------------------------------------------

    def listing_url(self, category_key: str, page: int = 1) -> str:
        root = f"{self._base_url}/{self._listing_path}/{category_key}"
        return root if page <= 1 else f"{root}/page/{page}"

    def _absolute(self, href: str) -> str:
        return urljoin(f"{self._base_url}/", href)

    def _path_parts(self, href: str) -> list[str]:
        return [p for p in urlparse(href).path.split("/") if p]

    # -- HTTP ------------------------------------------------------------------

    async def _fetch_html(self, url: str) -> BeautifulSoup:
        try:
            response = await self._http.get(url, headers=self._headers, follow_redirects=True)
        except httpx.HTTPError as exc:
            raise FetchError(f"{url}: {exc}", provider_name=_PROVIDER_NAME) from exc
        if response.status_code != 200:
            raise FetchError(f"{url} returned {response.status_code}", provider_name=_PROVIDER_NAME)
        return BeautifulSoup(response.text, "html.parser")

    # -- IPageFetcher ----------------------------------------------------------

    async def fetch_page(self, category_key: str, page: int) -> list[Record]:
        url = self.listing_url(category_key, page)
        try:
            soup = await self._fetch_html(url)
        except FetchError as exc:
            self._logger.warning("listing_fetch_failed", url=url, error=str(exc))
            return []

        records = self._parse_listing(soup, category_key)
        self._logger.info("listing_parsed", category=category_key, page=page, records=len(records))
        return records

    async def fetch_detail(self, source_url: str) -> Record | None:
        try:
            soup = await self._fetch_html(source_url)
        except FetchError as exc:
            self._logger.warning("detail_fetch_failed", url=source_url, error=str(exc))
            return None

        try:
            return self._parse_detail(soup, source_url)
        except (ValueError, AttributeError) as exc:
            self._logger.warning("detail_parse_failed", url=source_url, error=str(exc))
            return None

    async def search(self, query: str) -> list[Record]:
        url = f"{self._base_url}/search?q={quote_plus(query)}"
        try:
            soup = await self._fetch_html(url)
        except FetchError as exc:
            self._logger.warning("search_failed", query=query, error=str(exc))
            return []

        records: list[Record] = []
        seen: set[str] = set()
        for item in soup.select(".rom-item, .game-item, article"):
            heading = item.select_one("h2, h3, .title")
            link = item.find("a", href=True)
            if heading is None or link is None:
                continue
            title = _clean_title(heading.get_text(strip=True))
            href = self._absolute(link["href"])
            if not title or href in seen:
                continue
            seen.add(href)
            platform = item.select_one(".platform, .console")
            category = platform.get_text(strip=True) if platform else ""
            if not category:
                parts = self._path_parts(href)
                category = parts[1] if len(parts) >= 3 else "unknown"
            records.append(
                Record(
                    id=self._allocator.allocate(),
                    title=title,
                    category_key=category,
                    source_url=href,
                    asset_url=href,
                )
            )
        self._logger.info("search_parsed", query=query, records=len(records))
        return records

    async def list_categories(self) -> list[str]:
        try:
            soup = await self._fetch_html(f"{self._base_url}/{self._listing_path}")
        except FetchError as exc:
            self._logger.warning("categories_fetch_failed", error=str(exc))
            return []

        categories: list[str] = []
        for link in soup.find_all("a", href=True):
            parts = self._path_parts(link["href"])
            if len(parts) == 2 and parts[0] == self._listing_path and parts[1] not in categories:
                categories.append(parts[1])
        return categories

    # -- Parsing ---------------------------------------------------------------

    def _parse_listing(self, soup: BeautifulSoup, category_key: str) -> list[Record]:
        """Collect ``/{listing}/{category}/{slug}`` links, unique by URL."""
        candidates: dict[str, str] = {}
        for link in soup.find_all("a", href=True):
            href = link["href"]
            title = link.get_text(strip=True)
            if not title or "/page/" in href:
                continue
            parts = self._path_parts(href)
            if len(parts) < 3 or parts[0] != self._listing_path or parts[1] != category_key:
                continue
            url = self._absolute(href)
            title = _clean_title(title)
            if title and url not in candidates:
                candidates[url] = title

        # Ids are allocated after dedup so duplicates do not consume numbers.
        return [
            Record(
                id=self._allocator.allocate(),
                title=title,
                category_key=category_key,
                source_url=url,
                asset_url=url,
            )
            for url, title in candidates.items()
        ]

    def _parse_detail(self, soup: BeautifulSoup, source_url: str) -> Record | None:
        download_link = self._find_download_link(soup)
        if download_link is None:
            self._logger.info("detail_no_download_link", url=source_url)
            return None

        heading = soup.find("h1")
        title = _clean_title(heading.get_text(strip=True)) if heading else ""
        parts = self._path_parts(source_url)
        category_key = parts[-2] if len(parts) >= 2 else "unknown"

        text = soup.get_text("\n")
        fields: dict[str, Any] = {
            "image_url": self._find_image(soup),
            "rating": self._find_rating(soup),
            "console": _first_match(_CONSOLE_RE, text),
            "genre": _first_match(_GENRE_RE, text),
            "region": _first_match(_REGION_RE, text),
            "release_date": _first_match(_RELEASE_RE, text),
            "size": _first_match(_SIZE_RE, text),
            "file_name": _first_match(_FILE_NAME_RE, text),
        }
        downloads = _first_match(_DOWNLOADS_RE, text)
        if downloads:
            count = int(downloads.replace(",", ""))
            fields["download_count"] = count if count > 0 else None
        if fields["file_name"] and self._download_host:
            fields["redirect_asset_url"] = (
                f"{self._download_host}/{self._listing_path}/{quote(fields['file_name'], safe='')}"
            )

        return Record(
            id=self._allocator.allocate(),
            title=title or "Unknown item",
            category_key=category_key,
            source_url=source_url,
            asset_url=self._absolute(download_link),
            related=self._find_related(soup, source_url),
            **{k: v for k, v in fields.items() if v is not None},
        )

    @staticmethod
    def _find_download_link(soup: BeautifulSoup) -> str | None:
        for link in soup.find_all("a", href=True):
            href = link["href"]
            if "download" in href.lower() or "download" in link.get_text().lower():
                return href
        return None

    def _find_image(self, soup: BeautifulSoup) -> str | None:
        img = soup.select_one('img[src*="roms"], img[alt*="ROM"], img[alt*="download"]')
        if img is None or not img.get("src"):
            return None
        return self._absolute(img["src"])

    @staticmethod
    def _find_rating(soup: BeautifulSoup) -> float | None:
        element = soup.select_one("[data-rating]")
        if element is None:
            return None
        try:
            rating = float(element["data-rating"])
        except (TypeError, ValueError):
            return None
        return rating if rating > 0 else None

    def _image_from(self, img: Tag | None) -> str | None:
        if img is None:
            return None
        for attr in _LAZY_IMAGE_ATTRS:
            value = img.get(attr)
            if not value:
                continue
            if any(p in value for p in _PLACEHOLDER_IMAGES):
                return None
            # srcset: keep the first candidate URL
            return self._absolute(re.split(r"[\s,]", value.strip())[0])
        return None

    @staticmethod
    def _nearby_image(link: Tag) -> Tag | None:
        img = link.find("img")
        if img is None and link.parent is not None:
            img = link.parent.find("img")
        if img is None:
            container = link.find_parent(["article", "div"])
            img = container.find("img") if container is not None else None
        return img

    @staticmethod
    def _nearby_title(link: Tag, img: Tag | None) -> str:
        title = link.get_text(strip=True)
        if title and title.lower() != "view" and len(title) >= 3:
            return title
        for scope in (link.parent, link.find_parent(["article", "div"])):
            if scope is None:
                continue
            heading = scope.find(["h3", "h4", "h5"])
            if heading is not None:
                return heading.get_text(strip=True)
        if img is not None and img.get("alt"):
            return img["alt"].strip()
        return title

    def _find_related(self, soup: BeautifulSoup, source_url: str) -> list[RelatedRecord]:
        marker = soup.find(string=_RELATED_RE)
        if marker is None:
            return []

        related: list[RelatedRecord] = []
        seen: set[str] = set()
        for link in marker.find_all_next("a", href=True):
            href = link["href"]
            parts = self._path_parts(href)
            if "/page/" in href or len(parts) < 3 or parts[0] != self._listing_path:
                continue
            url = self._absolute(href)
            if url == source_url or url in seen:
                continue

            img = self._nearby_image(link)
            title = _clean_title(self._nearby_title(link, img))
            if not title or title.lower() == "view" or len(title) < 3:
                continue

            seen.add(url)
            related.append(RelatedRecord(title=title, url=url, image_url=self._image_from(img)))
            if len(related) >= _MAX_RELATED:
                break
        return related
