from catalog_crawler.providers.catalog.html_catalog_provider import HtmlCatalogProvider

__all__ = ["HtmlCatalogProvider"]
