"""Exception hierarchy for the catalog crawler.

    CatalogCrawlerError          (base)
    +-- FetchError               (listing/detail page could not be fetched or parsed)
    +-- CatalogPersistenceError  (the catalog document could not be written)
    +-- DownloadError            (an asset stream failed)
    +-- ConfigurationError       (invalid settings or CLI input)

Only :class:`CatalogPersistenceError` is expected to reach the CLI.
Fetch and download errors are caught at page or record scope and turned
into empty results or failure counts.
"""


class CatalogCrawlerError(Exception):
    """Base exception carrying an optional ``provider_name``.

    ``str()`` prefixes the provider in brackets, e.g.
    ``[html_catalog] listing page returned 503``.
    """

    default_message = "Catalog crawler error"

    def __init__(self, message: str | None = None, provider_name: str | None = None) -> None:
        self._message = message or self.default_message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


class FetchError(CatalogCrawlerError):
    """Raised when a catalog page cannot be fetched or parsed."""

    default_message = "Catalog page fetch failed"


class CatalogPersistenceError(CatalogCrawlerError):
    """Raised when the catalog document cannot be written to storage."""

    default_message = "Could not write catalog document"


class DownloadError(CatalogCrawlerError):
    """Raised when an asset download stream fails."""

    default_message = "Asset download failed"


class ConfigurationError(CatalogCrawlerError):
    """Raised when configuration or command-line input is invalid."""

    default_message = "Invalid or missing configuration"
