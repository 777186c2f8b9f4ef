"""Catalog document loading."""

from macroboard.core.catalog.schemas import (
    CatalogDocument,
    catalog_from_dict,
    load_catalog,
)

__all__ = [
    "CatalogDocument",
    "catalog_from_dict",
    "load_catalog",
]
