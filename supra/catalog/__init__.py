"""Catalog access and projection."""

from supra.catalog.projector import project
from supra.catalog.provider import (
    CatalogProvider,
    JsonCatalogProvider,
    PostgresCatalogProvider,
    get_catalog_provider,
)

__all__ = [
    "project",
    "CatalogProvider",
    "JsonCatalogProvider",
    "PostgresCatalogProvider",
    "get_catalog_provider",
]
