# spool_rfid/formats/registry.py

import logging
from typing import Callable, Dict, List, NamedTuple, Optional

from spool_rfid.catalog.tables import CatalogSnapshot
from spool_rfid.core.models import DecryptedScan, InterpretationResult
from spool_rfid.core.status import TagFormat
from spool_rfid.formats import bambu, creality, opentag

logger = logging.getLogger(__name__)

Signature = Callable[[DecryptedScan], bool]
Decoder = Callable[[DecryptedScan, CatalogSnapshot], Optional[InterpretationResult]]


class FormatHandler(NamedTuple):
    tag_format: TagFormat
    matches: Signature
    decode: Decoder
    priority: int
    description: str = ""


# Maps TagFormat to its handler. Detection walks handlers by ascending priority.
_format_registry: Dict[TagFormat, FormatHandler] = {}


def register_format(tag_format: TagFormat, matches: Signature, decode: Decoder,
                    priority: Optional[int] = None, description: str = ""):
    """
    Registers a structural signature and decoder for a tag format.

    Args:
        tag_format: The TagFormat the handler produces.
        matches: Pure predicate over a DecryptedScan.
        decode: Pure decoder returning an InterpretationResult or None.
        priority: Detection order, lower first. Defaults to after every registered format.
        description: Human-readable name.

    Raises:
        ValueError: For UNRECOGNIZED or non-callable handlers.
    """
    if not isinstance(tag_format, TagFormat) or tag_format is TagFormat.UNRECOGNIZED:
        raise ValueError(f"Cannot register a handler for {tag_format!r}")
    if not callable(matches) or not callable(decode):
        raise ValueError("matches and decode must be callable")

    if priority is None:
        priority = max((h.priority for h in _format_registry.values()), default=-1) + 1
    if tag_format in _format_registry:
        logger.warning(f"Format '{tag_format}' is already registered. Overwriting.")

    logger.debug(f"Registering format '{tag_format}' with priority {priority}")
    _format_registry[tag_format] = FormatHandler(tag_format, matches, decode, priority, description)


def unregister_format(tag_format: TagFormat) -> Optional[FormatHandler]:
    return _format_registry.pop(tag_format, None)


def get_format_handler(tag_format: TagFormat) -> Optional[FormatHandler]:
    return _format_registry.get(tag_format)


def list_formats() -> List[FormatHandler]:
    """Returns registered handlers in detection order."""
    return sorted(_format_registry.values(), key=lambda h: h.priority)


# --- Auto-register known formats (detection priority order) ---
register_format(TagFormat.BAMBU_PROPRIETARY, bambu.matches, bambu.decode, 0, "Bambu Lab proprietary")
register_format(TagFormat.CREALITY_ASCII, creality.matches, creality.decode, 10, "Creality ASCII")
register_format(TagFormat.OPENTAG_V1, opentag.matches, opentag.decode, 20, "OpenTag v1")
