# spool_rfid/formats/__init__.py

from .registry import (FormatHandler, get_format_handler, list_formats, register_format,
                       unregister_format)

__all__ = [
    "FormatHandler",
    "register_format",
    "unregister_format",
    "get_format_handler",
    "list_formats",
]
