"""Core components: scan records, authentication, dispatch and identity."""

from .status import KeySlot, ScanResult, TagFormat, TagTechnology
from .exceptions import (
    SpoolRfidError,
    InvalidScanError,
    KeyDerivationError,
    CatalogError,
    CatalogLoadError,
    IdentityError,
    DumpFormatError
)
from .models import (
    AuthenticationOutcome,
    CandidateKey,
    DecryptedScan,
    InterpretationResult,
    RawScan
)
from .authenticator import authenticate
from .dispatcher import Interpreter, ScanReport, detect_format, interpret
from .identity import build_id
from .entities import EdgeRef, EntityPlan, EntityRef, build_scan_entities

__all__ = [
    'KeySlot',
    'ScanResult',
    'TagFormat',
    'TagTechnology',
    'SpoolRfidError',
    'InvalidScanError',
    'KeyDerivationError',
    'CatalogError',
    'CatalogLoadError',
    'IdentityError',
    'DumpFormatError',
    'AuthenticationOutcome',
    'CandidateKey',
    'DecryptedScan',
    'InterpretationResult',
    'RawScan',
    'authenticate',
    'Interpreter',
    'ScanReport',
    'detect_format',
    'interpret',
    'build_id',
    'EdgeRef',
    'EntityPlan',
    'EntityRef',
    'build_scan_entities',
]
