"""Concrete adapters for the interfaces in :mod:`catalog_crawler.interfaces`."""
