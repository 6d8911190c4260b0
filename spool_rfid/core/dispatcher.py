# spool_rfid/core/dispatcher.py

"""
Interpreter Dispatcher.

Selects the format interpreter for a DecryptedScan by structural signature
and normalises its outcome. Failure is always a return value: None, or a
ScanResult / TagFormat classification in a ScanReport.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from spool_rfid.access.base import BaseSectorAccess
from spool_rfid.catalog.store import CatalogStore, get_default_store
from spool_rfid.catalog.tables import CatalogSnapshot
from spool_rfid.core.authenticator import authenticate
from spool_rfid.core.models import DecryptedScan, InterpretationResult, RawScan
from spool_rfid.core.status import ScanResult, TagFormat
from spool_rfid.formats.registry import list_formats

logger = logging.getLogger(__name__)


def detect_format(scan: DecryptedScan) -> TagFormat:
    """Tests registered signatures in priority order; the first match wins."""
    if not scan.blocks:
        return TagFormat.UNRECOGNIZED
    for handler in list_formats():
        try:
            if handler.matches(scan):
                logger.debug(f"Scan {scan.uid_hex} matched format {handler.tag_format}")
                return handler.tag_format
        except Exception as e:
            logger.exception(f"Signature check for {handler.tag_format} failed on {scan.uid_hex}: {e}")
    return TagFormat.UNRECOGNIZED


def interpret(scan: DecryptedScan, snapshot: Optional[CatalogSnapshot] = None) -> Optional[InterpretationResult]:
    """
    Interprets a decrypted scan against a catalog snapshot.

    Args:
        scan: Output of authenticate().
        snapshot: Catalog snapshot to resolve codes against. Defaults to the
                  snapshot currently published by the default store.

    Returns:
        An InterpretationResult when every required field resolves exactly,
        otherwise None. Never raises for scan content.
    """
    if scan.scan_result is not ScanResult.SUCCESS:
        logger.debug(f"Skipping interpretation of {scan.uid_hex}: {scan.scan_result}")
        return None

    tag_format = detect_format(scan)
    if tag_format is TagFormat.UNRECOGNIZED:
        logger.info(f"No known tag format in scan {scan.uid_hex} ({len(scan.blocks)} blocks): {ScanResult.PARSING_FAILED}")
        return None

    handler = next(h for h in list_formats() if h.tag_format is tag_format)
    if snapshot is None:
        snapshot = get_default_store().snapshot()
    try:
        result = handler.decode(scan, snapshot)
    except Exception as e:
        logger.exception(f"Unexpected error decoding {tag_format} scan {scan.uid_hex}: {e}")
        return None

    if result is None:
        logger.info(f"Scan {scan.uid_hex} ({tag_format}) has no exact catalog match")
    else:
        logger.info(f"Scan {scan.uid_hex} ({tag_format}) interpreted as SKU {result.sku}")
    return result


@dataclass(frozen=True)
class ScanReport:
    """Combined outcome of authenticating and interpreting one RawScan."""
    decrypted: DecryptedScan
    scan_result: ScanResult
    tag_format: TagFormat
    result: Optional[InterpretationResult]

    @property
    def is_catalog_miss(self) -> bool:
        return self.scan_result is ScanResult.SUCCESS and self.result is None


class Interpreter:
    """
    Facade over authentication and interpretation bound to one CatalogStore.

    Args:
        store: Catalog store. Defaults to the process-wide store over the
               bundled catalog file.
    """

    def __init__(self, store: Optional[CatalogStore] = None):
        self._store = store if store is not None else get_default_store()

    @property
    def store(self) -> CatalogStore:
        return self._store

    def interpret(self, scan: DecryptedScan) -> Optional[InterpretationResult]:
        return interpret(scan, self._store.snapshot())

    def refresh_mappings(self) -> CatalogSnapshot:
        """Reloads the catalog; interpretations already running keep their snapshot."""
        return self._store.refresh_mappings()

    def process(self, raw_scan: RawScan, access: Optional[BaseSectorAccess] = None) -> ScanReport:
        """
        Authenticates and interprets a raw scan.

        The report's scan_result is PARSING_FAILED when authentication
        succeeded but no tag format matched.
        """
        decrypted = authenticate(raw_scan, access=access)
        snapshot = self._store.snapshot()
        if decrypted.scan_result is not ScanResult.SUCCESS:
            return ScanReport(decrypted, decrypted.scan_result, TagFormat.UNRECOGNIZED, None)

        tag_format = detect_format(decrypted)
        if tag_format is TagFormat.UNRECOGNIZED:
            return ScanReport(decrypted, ScanResult.PARSING_FAILED, tag_format, None)
        return ScanReport(decrypted, ScanResult.SUCCESS, tag_format, interpret(decrypted, snapshot))
