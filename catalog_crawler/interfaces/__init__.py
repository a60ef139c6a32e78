"""Adapter contracts consumed by the crawler services."""

from catalog_crawler.interfaces.asset_downloader import IAssetDownloader
from catalog_crawler.interfaces.page_fetcher import IPageFetcher

__all__ = ["IAssetDownloader", "IPageFetcher"]
