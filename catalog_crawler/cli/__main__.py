"""Allow ``python -m catalog_crawler.cli`` execution."""

from catalog_crawler.cli.crawl import main

main()
