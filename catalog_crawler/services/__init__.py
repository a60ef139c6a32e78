"""Crawler services.

- **id_allocator** -- sequential record ids, persisted per batch
- **traversal** -- page-by-page listing traversal with empty/fallback-page stops
- **enrichment** -- detail-page enrichment that keeps listing ids
- **catalog_store** -- load/merge/write of the category-keyed JSON document
- **bulk_download** -- best-effort asset downloads with outcome counts
- **crawl_service** -- ties the above together for one crawl request
"""
