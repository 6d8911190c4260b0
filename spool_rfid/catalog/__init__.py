# spool_rfid/catalog/__init__.py

from .tables import CatalogEntry, CatalogSnapshot, CatalogTable, ProductRecord
from .store import DEFAULT_CATALOG_PATH, CatalogStore, get_default_store

__all__ = [
    "CatalogEntry",
    "CatalogTable",
    "ProductRecord",
    "CatalogSnapshot",
    "CatalogStore",
    "DEFAULT_CATALOG_PATH",
    "get_default_store",
]
