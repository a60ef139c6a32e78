"""Command-line interface: ``python -m catalog_crawler.cli <command>``.

Commands live in :mod:`catalog_crawler.cli.crawl`: ``crawl``, ``download``,
``search``, ``categories`` and ``status``. Heavy imports are deferred into
the handlers so ``--help`` stays fast.
"""
