# spool_rfid/utils/__init__.py

from .dump_loader import load_dump

__all__ = ["load_dump"]
