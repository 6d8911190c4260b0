# spool_rfid/core/exceptions.py

"""
Custom exceptions for the spool_rfid library.

Scan outcomes (failed authentication, too few sectors, unknown layout, catalog
miss) are reported as ScanResult values or None and never raised. The classes
below cover malformed input and programming errors only.
"""

from typing import Optional


def _hex_snippet(data: bytes) -> str:
    return f"{data[:32].hex(' ').upper()}{'...' if len(data) > 32 else ''}"


class SpoolRfidError(Exception):
    """Base exception class for all spool_rfid errors."""
    def __init__(self, message="An unspecified spool RFID error occurred."):
        super().__init__(message)


# --- Scan Input Exceptions ---

class InvalidScanError(SpoolRfidError):
    """Raised when a RawScan cannot be constructed from the supplied bytes."""
    def __init__(self, message="Invalid raw scan.", uid: Optional[bytes] = None):
        super().__init__(message)
        self.uid = uid

    def __str__(self):
        base_msg = super().__str__()
        if self.uid:
            return f"{base_msg} UID: {self.uid.hex().upper()}"
        return base_msg


class KeyDerivationError(SpoolRfidError):
    """Raised when candidate keys cannot be derived for a UID."""
    def __init__(self, uid: bytes, message="Cannot derive keys for UID."):
        super().__init__(message)
        self.uid = uid

    def __str__(self):
        return f"{super().__str__()} UID ({len(self.uid)} bytes): {_hex_snippet(self.uid)}"


# --- Catalog Exceptions ---

class CatalogError(SpoolRfidError):
    """Base exception for catalog loading and lookup errors."""
    def __init__(self, message="Catalog error."):
        super().__init__(message)


class CatalogLoadError(CatalogError):
    """Raised in strict mode when a catalog file cannot be read or is malformed."""
    def __init__(self, path: str, message="Failed to load catalog.", original_exception: Exception | None = None):
        super().__init__(f"Catalog load error for '{path}': {message}")
        self.path = path
        self.original_exception = original_exception

    def __str__(self):
        base_msg = super().__str__()
        if self.original_exception:
            orig_exc_type = type(self.original_exception).__name__
            return f"{base_msg} Original exception: [{orig_exc_type}] {self.original_exception}"
        return base_msg


# --- Identity Exceptions ---

class IdentityError(SpoolRfidError):
    """Raised when a compound identity is requested for an invalid pair sequence."""
    def __init__(self, message="Invalid identity pair sequence."):
        super().__init__(message)


# --- Dump File Exceptions ---

class DumpFormatError(SpoolRfidError):
    """Raised when a tag dump file has an unsupported size or structure."""
    def __init__(self, path: str, message="Unsupported dump format.", data: bytes | None = None):
        msg = f"Dump format error in '{path}': {message}"
        if data:
            msg += f" Near bytes: {_hex_snippet(data)}"
        super().__init__(msg)
        self.path = path
