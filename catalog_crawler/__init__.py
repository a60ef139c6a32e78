"""catalog_crawler: incremental crawler for paginated catalog sites.

Listing pages are traversed until the source runs out (an empty page or a
repeated fallback page), records get stable sequential ids, and each fetch
is merged into one JSON document keyed by category.
"""

__version__ = "0.1.0"
