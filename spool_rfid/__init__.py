"""Spool RFID Library - authenticate, interpret and identify 3D-printer filament spool tags."""

from .core import (
    authenticate,
    interpret,
    detect_format,
    build_id,
    build_scan_entities,
    Interpreter,
    ScanReport,
    RawScan,
    DecryptedScan,
    InterpretationResult,
    ScanResult,
    TagFormat,
    SpoolRfidError,
    InvalidScanError,
    CatalogLoadError,
    IdentityError,
    DumpFormatError
)
from .access import DumpSectorAccess, MockSectorAccess
from .catalog import CatalogStore, CatalogSnapshot
from .formats import list_formats, register_format
from .utils import load_dump

__version__ = '0.1.0'

__all__ = [
    # Entry points
    'authenticate',
    'interpret',
    'detect_format',
    'build_id',
    'build_scan_entities',
    'Interpreter',
    'ScanReport',
    # Records
    'RawScan',
    'DecryptedScan',
    'InterpretationResult',
    'ScanResult',
    'TagFormat',
    # Exceptions
    'SpoolRfidError',
    'InvalidScanError',
    'CatalogLoadError',
    'IdentityError',
    'DumpFormatError',
    # Sector access
    'DumpSectorAccess',
    'MockSectorAccess',
    # Catalog
    'CatalogStore',
    'CatalogSnapshot',
    # Format registry
    'list_formats',
    'register_format',
    # Utilities
    'load_dump',
]
