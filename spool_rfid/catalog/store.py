# spool_rfid/catalog/store.py

import json
import logging
import os
import threading
from typing import Optional

from spool_rfid.catalog.tables import CatalogSnapshot
from spool_rfid.core.exceptions import CatalogError, CatalogLoadError

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH: str = os.path.join(os.path.dirname(__file__), 'catalog_data.json')


class CatalogStore:
    """
    Holds the currently published CatalogSnapshot.

    Readers call snapshot() and keep using the returned object for the whole
    interpretation; refresh_mappings() builds a new snapshot and swaps the
    published reference, so in-flight readers are never affected.

    Args:
        path: Catalog JSON file. Defaults to the bundled catalog_data.json.
        strict: Raise CatalogLoadError instead of publishing an empty snapshot
                when the file is missing or malformed.
    """

    def __init__(self, path: str = DEFAULT_CATALOG_PATH, strict: bool = False):
        self.path = path
        self.strict = strict
        self._lock = threading.Lock()
        self._snapshot: Optional[CatalogSnapshot] = None

    def _load(self) -> CatalogSnapshot:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            snapshot = CatalogSnapshot.from_dict(data, source=self.path)
            logger.info(f"Successfully loaded catalog from {self.path}: {snapshot!r}")
            return snapshot
        except FileNotFoundError as e:
            if self.strict:
                raise CatalogLoadError(self.path, "File not found.", e) from e
            logger.warning(f"Catalog file not found at {self.path}. Using empty catalog.")
        except json.JSONDecodeError as e:
            if self.strict:
                raise CatalogLoadError(self.path, "Invalid JSON.", e) from e
            logger.error(f"Error decoding catalog JSON from {self.path}: {e}")
        except CatalogError as e:
            if self.strict:
                raise CatalogLoadError(self.path, "Invalid catalog structure.", e) from e
            logger.error(f"Invalid catalog structure in {self.path}: {e}")
        except UnicodeDecodeError as e:
            if self.strict:
                raise CatalogLoadError(self.path, "File is not valid UTF-8.", e) from e
            logger.error(f"Catalog file {self.path} is not valid UTF-8: {e}")
        except OSError as e:
            if self.strict:
                raise CatalogLoadError(self.path, "Cannot read file.", e) from e
            logger.error(f"Cannot read catalog file {self.path}: {e}")
        except Exception as e:
            if self.strict:
                raise CatalogLoadError(self.path, "Unexpected error.", e) from e
            logger.exception(f"Unexpected error loading catalog from {self.path}: {e}")
        return CatalogSnapshot.empty(source=self.path)

    def snapshot(self) -> CatalogSnapshot:
        """Returns the published snapshot, loading it on first use."""
        current = self._snapshot
        if current is not None:
            return current
        with self._lock:
            if self._snapshot is None:
                self._snapshot = self._load()
            return self._snapshot

    def refresh_mappings(self) -> CatalogSnapshot:
        """
        Reloads the catalog file and publishes the result as a new snapshot.

        Idempotent; only catalog state is affected. Snapshots handed out
        earlier remain valid and unchanged.
        """
        new_snapshot = self._load()
        with self._lock:
            previous = self._snapshot
            self._snapshot = new_snapshot
        if previous is not None and previous.version != new_snapshot.version:
            logger.info(f"Catalog refreshed: v{previous.version} -> v{new_snapshot.version}")
        else:
            logger.debug(f"Catalog refreshed from {self.path}")
        return new_snapshot

    def __repr__(self) -> str:
        return f"<CatalogStore path={self.path!r} loaded={self._snapshot is not None}>"


# --- Default Store ---
_default_store: Optional[CatalogStore] = None
_default_store_lock = threading.Lock()


def get_default_store() -> CatalogStore:
    """Returns the process-wide store over the bundled catalog, creating it on first use."""
    global _default_store
    with _default_store_lock:
        if _default_store is None:
            _default_store = CatalogStore()
        return _default_store
