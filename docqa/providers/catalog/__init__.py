"""Document catalog providers."""

from docqa.providers.catalog.sqlite_catalog_provider import SQLiteCatalogProvider

__all__ = ["SQLiteCatalogProvider"]
