from catalog_crawler.providers.download.http_asset_downloader import (
    HttpAssetDownloader,
    asset_filename,
)

__all__ = ["HttpAssetDownloader", "asset_filename"]
