# spool_rfid/access/__init__.py

from .base import BaseSectorAccess
from .dump import DumpSectorAccess
from .mock import MockSectorAccess

__all__ = [
    "BaseSectorAccess",
    "DumpSectorAccess",
    "MockSectorAccess",
]
