"""Catalog taxonomy and read-side access.

``CatalogService`` lives in ``wallsync.catalog.service``; it is not
re-exported here because provider adapters import the taxonomy from this
package.
"""

from wallsync.catalog.categories import (
    DISPLAY_NAMES,
    SEARCH_TERMS,
    SyncCategory,
    normalize_category_key,
)

__all__ = [
    "SyncCategory",
    "DISPLAY_NAMES",
    "SEARCH_TERMS",
    "normalize_category_key",
]
