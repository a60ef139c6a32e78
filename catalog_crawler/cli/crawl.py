"""CLI for crawling catalog categories and downloading their assets.

Usage::

    # Crawl page 2 of a category, enrich via detail pages, merge into catalog.json
    python -m catalog_crawler.cli crawl --category nintendo --page 2

    # Crawl every page (until an empty or repeated page) and start ids at 1000
    python -m catalog_crawler.cli crawl --category nintendo --page all --start-id 1000

    # Download every stored asset for a category
    python -m catalog_crawler.cli download --category nintendo --download-dir ./downloads

    # Inspect what has been stored so far
    python -m catalog_crawler.cli status

Runs are best effort: per-page and per-record failures are logged and
counted, and the command still exits 0. Exit 1 is reserved for failures the
run cannot recover from, such as an unwritable output document. Argument
errors (e.g. a missing ``--category``) exit 2 via argparse.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import httpx

from catalog_crawler.config import Settings, load_settings
from catalog_crawler.models.catalog import ALL_PAGES, PageLabel
from catalog_crawler.services.id_allocator import IdAllocator
from catalog_crawler.utils.errors import CatalogPersistenceError
from catalog_crawler.utils.logging import configure_logging

_ALL_ALIASES = {ALL_PAGES, "-1"}


def parse_page_selector(value: str) -> PageLabel:
    """argparse type: ``all``/``-1`` -> ``"all"``, positive integer -> int."""
    normalized = value.strip().lower()
    if normalized in _ALL_ALIASES:
        return ALL_PAGES
    try:
        page = int(normalized)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid page selector: {value!r}") from None
    if page <= 0:
        raise argparse.ArgumentTypeError(f"page must be positive or 'all', got {value!r}")
    return page


def _settings_for(args: argparse.Namespace) -> Settings:
    settings = load_settings(getattr(args, "config", None))
    overrides = {}
    if getattr(args, "output", None):
        overrides["output_file"] = args.output
    if getattr(args, "input", None):
        overrides["output_file"] = args.input
    if getattr(args, "download_dir", None):
        overrides["download_dir"] = args.download_dir
    if overrides:
        settings = settings.model_copy(update=overrides)
    configure_logging(settings.log_level, json_output=settings.app_env == "production")
    return settings


def _http_client(settings: Settings) -> httpx.AsyncClient:
    """Client for listing, detail, search and category pages."""
    return httpx.AsyncClient(
        timeout=settings.request_timeout,
        verify=True,
        headers={"User-Agent": settings.user_agent},
    )


def _download_client(settings: Settings) -> httpx.AsyncClient:
    """Client for asset downloads; the only one that honours ``download_verify_ssl``."""
    return httpx.AsyncClient(
        timeout=settings.request_timeout,
        verify=settings.download_verify_ssl,
        headers={"User-Agent": settings.user_agent},
    )


def _provider(settings: Settings, client: httpx.AsyncClient, allocator: IdAllocator):
    from catalog_crawler.providers.catalog.html_catalog_provider import HtmlCatalogProvider

    return HtmlCatalogProvider(
        http_client=client,
        allocator=allocator,
        base_url=settings.base_url,
        listing_path=settings.listing_path,
        download_host=settings.download_host,
        user_agent=settings.user_agent,
    )


def _bulk_downloader(settings: Settings, client: httpx.AsyncClient):
    from catalog_crawler.providers.download.http_asset_downloader import HttpAssetDownloader
    from catalog_crawler.services.bulk_download import BulkDownloadService

    downloader = HttpAssetDownloader(client, settings.download_dir, user_agent=settings.user_agent)
    return BulkDownloadService(downloader, delay=settings.download_delay)


def _print_downloads(summary) -> None:
    print(f"  Downloaded: {summary.downloaded}")
    print(f"  Skipped:    {summary.skipped}")
    print(f"  Failed:     {summary.failed}")


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_crawl(args: argparse.Namespace) -> int:
    """Fetch a page selector, enrich it, and merge it into the output document."""
    from catalog_crawler.services.catalog_store import CatalogStore
    from catalog_crawler.services.crawl_service import CrawlService
    from catalog_crawler.services.enrichment import EnrichmentService
    from catalog_crawler.services.traversal import PaginationTraversal

    settings = _settings_for(args)
    allocator = IdAllocator(settings.state_file)
    allocator.set_start(args.start_id)

    print(f"Category: {args.category}")
    print(f"Page:     {args.page}")
    print(f"Output:   {settings.output_file}")
    print()

    def on_progress(page: int, returned: int, new: int, total: int) -> None:
        print(f"  page {page}: {returned} record(s), {new} new, {total} total")

    def on_enrich_progress(index: int, total: int, record) -> None:
        print(f"  [{index}/{total}] Fetching: {record.title}")

    async with _http_client(settings) as client, _download_client(settings) as download_client:
        provider = _provider(settings, client, allocator)
        service = CrawlService(
            traversal=PaginationTraversal(
                provider, page_delay=settings.page_delay, max_pages=settings.page_ceiling
            ),
            enrichment=EnrichmentService(provider, detail_delay=settings.detail_delay),
            store=CatalogStore(settings.output_file),
            allocator=allocator,
            bulk_downloader=_bulk_downloader(settings, download_client) if args.download else None,
        )
        try:
            summary = await service.run(
                args.category,
                args.page,
                enrich=not args.no_details,
                download=args.download,
                on_progress=on_progress,
                on_enrich_progress=on_enrich_progress,
            )
        except CatalogPersistenceError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1

    print()
    print(f"Listed:   {summary.listed}")
    if not args.no_details:
        print(f"Enriched: {summary.enriched}")
        print(f"Failed:   {summary.failed}")
    if summary.saved:
        print(f"Saved to {settings.output_file} ({summary.total_records} record(s) in category)")
    else:
        print("Nothing to save.")
    if summary.downloads is not None:
        print("Downloads:")
        _print_downloads(summary.downloads)
    return 0


async def _handle_download(args: argparse.Namespace) -> int:
    """Download every stored asset for one category."""
    from catalog_crawler.services.catalog_store import CatalogStore

    settings = _settings_for(args)
    store = CatalogStore(settings.output_file)
    records = store.category_records(args.category)
    if not records:
        available = ", ".join(sorted(store.load().categories)) or "none"
        print(f"No records for category '{args.category}' in {settings.output_file}.")
        print(f"Available categories: {available}")
        return 0

    print(f"Downloading {len(records)} asset(s) for '{args.category}' into {settings.download_dir}")

    def on_result(index: int, total: int, record, outcome: str) -> None:
        print(f"  [{index}/{total}] {record.title}: {outcome}")

    async with _download_client(settings) as client:
        bulk = _bulk_downloader(settings, client)
        summary = await bulk.download_records(records, on_result=on_result)

    print()
    _print_downloads(summary)
    return 0


async def _handle_search(args: argparse.Namespace) -> int:
    """Search the source and print matching records."""
    settings = _settings_for(args)
    allocator = IdAllocator(settings.state_file)
    async with _http_client(settings) as client:
        records = await _provider(settings, client, allocator).search(args.query)

    for record in records:
        print(f"{record.id:>6}  {record.category_key:<20} {record.title}")
        print(f"        {record.source_url}")
    print(f"\n{len(records)} result(s)")
    return 0


async def _handle_categories(args: argparse.Namespace) -> int:
    """List the categories advertised by the source."""
    settings = _settings_for(args)
    allocator = IdAllocator(settings.state_file)
    async with _http_client(settings) as client:
        categories = await _provider(settings, client, allocator).list_categories()

    for name in categories:
        print(name)
    print(f"\n{len(categories)} categor{'y' if len(categories) == 1 else 'ies'}")
    return 0


def _handle_status(args: argparse.Namespace) -> int:
    """Summarize the stored catalog document."""
    from catalog_crawler.services.catalog_store import CatalogStore

    settings = _settings_for(args)
    document = CatalogStore(settings.output_file).load()

    print(f"Catalog: {settings.output_file}")
    print("=" * 60)
    print(f"{'Category':<24} {'Pages':>6} {'Records':>10} {'All':>5}")
    print("-" * 60)
    total = 0
    for key in sorted(document.categories):
        category = document.categories[key]
        total += category.total_records
        has_all = "yes" if category.page(ALL_PAGES) is not None else "-"
        print(f"{key:<24} {category.total_pages:>6} {category.total_records:>10,} {has_all:>5}")
    print("-" * 60)
    print(f"{'TOTAL':<24} {'':>6} {total:>10,}")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="catalog-crawler",
        description="Crawl a paginated catalog site into a merged JSON document.",
    )
    parser.add_argument("--config", help="Optional YAML settings file")
    subparsers = parser.add_subparsers(dest="command", help="Crawler commands")

    # -- crawl --
    crawl_parser = subparsers.add_parser("crawl", help="Fetch pages and merge them into the catalog")
    crawl_parser.add_argument("--category", required=True, help="Category key, e.g. 'nintendo'")
    crawl_parser.add_argument(
        "--page",
        type=parse_page_selector,
        default=1,
        help="Page number, or 'all' / -1 for every page (default: 1)",
    )
    crawl_parser.add_argument("--output", help="Catalog JSON file (default: settings.output_file)")
    crawl_parser.add_argument(
        "--start-id",
        type=int,
        default=None,
        help="Override the next record id (ignored unless positive)",
    )
    crawl_parser.add_argument(
        "--no-details",
        action="store_true",
        help="Store listing records without fetching detail pages",
    )
    crawl_parser.add_argument(
        "--download", action="store_true", help="Download assets after saving"
    )
    crawl_parser.add_argument("--download-dir", help="Asset directory (default: settings.download_dir)")

    # -- download --
    download_parser = subparsers.add_parser("download", help="Download stored assets for a category")
    download_parser.add_argument("--category", required=True, help="Category key to download")
    download_parser.add_argument("--input", help="Catalog JSON file to read")
    download_parser.add_argument("--download-dir", help="Asset directory")

    # -- search --
    search_parser = subparsers.add_parser("search", help="Search the source catalog")
    search_parser.add_argument("query", help="Free-text query")

    # -- categories --
    subparsers.add_parser("categories", help="List categories advertised by the source")

    # -- status --
    status_parser = subparsers.add_parser("status", help="Summarize the stored catalog")
    status_parser.add_argument("--input", help="Catalog JSON file to read")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "status":
        sys.exit(_handle_status(args))

    handlers = {
        "crawl": _handle_crawl,
        "download": _handle_download,
        "search": _handle_search,
        "categories": _handle_categories,
    }
    sys.exit(asyncio.run(handlers[args.command](args)))


if __name__ == "__main__":
    main()
