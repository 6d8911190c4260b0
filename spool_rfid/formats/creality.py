# spool_rfid/formats/creality.py

"""
Creality ASCII layout.

Blocks 4-6 hold whitespace-separated ASCII fields:
    AAA BBBBB CCCC DDDDD #EEEEEE FFFFFF [...]
    batch, date (YYMDD), supplier, material id, colour, spool id
"""

import datetime
import logging
import re
from typing import List, Optional

from spool_rfid.catalog.tables import CatalogSnapshot
from spool_rfid.core.models import DecryptedScan, InterpretationResult
from spool_rfid.core.status import TagFormat
from spool_rfid.formats import blocks as blk

logger = logging.getLogger(__name__)

TAG_FORMAT = TagFormat.CREALITY_ASCII
DATA_BLOCKS = (4, 5, 6)

SIGNATURE_RE = re.compile(
    r"[0-9A-Fa-f]{3}\s+[0-9A-Fa-f]{5}\s+[0-9A-Fa-f]{4}\s+[0-9A-Fa-f]{5}\s+#[0-9A-Fa-f]{6}(?=\s|$)"
)


def _combined_text(scan: DecryptedScan) -> Optional[str]:
    if not blk.has_blocks(scan.blocks, *DATA_BLOCKS):
        return None
    try:
        return "".join(blk.block_slice(scan.blocks, i).decode('ascii') for i in DATA_BLOCKS).replace('\x00', '').strip()
    except UnicodeDecodeError:
        return None


def matches(scan: DecryptedScan) -> bool:
    text = _combined_text(scan)
    return bool(text and SIGNATURE_RE.search(text))


def parse_date(value: str) -> Optional[str]:
    """YYMDD (single-digit hex month) -> 'YYYY-MM-DD'. None when not a calendar date."""
    if len(value) != 5:
        return None
    try:
        date = datetime.date(2000 + int(value[0:2]), int(value[2], 16), int(value[3:5]))
    except ValueError:
        return None
    return date.isoformat()


def split_fields(text: str) -> List[str]:
    match = SIGNATURE_RE.search(text)
    if match is None:
        raise ValueError("Creality field pattern not found")
    return text[match.start():].split()


def decode(scan: DecryptedScan, catalog: CatalogSnapshot) -> Optional[InterpretationResult]:
    """Decodes a Creality tag. Requires known supplier and material codes."""
    text = _combined_text(scan)
    if not text:
        logger.warning(f"No ASCII data in blocks 4-6 of {scan.uid_hex}")
        return None
    try:
        fields = split_fields(text)
    except ValueError as e:
        logger.warning(f"Error parsing Creality data '{text}': {e}")
        return None
    if len(fields) < 6:
        logger.warning(f"Insufficient Creality fields: {len(fields)}, expected at least 6")
        return None

    batch, date_code, supplier_code, material_code, color_field, spool_id = fields[:6]
    logger.debug(f"Creality fields: batch={batch} date={date_code} supplier={supplier_code} "
                 f"material={material_code} colour={color_field} spool={spool_id}")

    supplier = catalog.creality_suppliers.resolve(supplier_code)
    material = catalog.creality_materials.resolve(material_code)
    if supplier is None or material is None:
        logger.warning(f"Unknown Creality code: supplier '{supplier_code}' known={supplier is not None}, "
                       f"material '{material_code}' known={material is not None}")
        return None

    color_hex = "#" + color_field.lstrip('#').upper()
    logger.info(f"Creality material {material_code} ({material.name}) matched for {scan.uid_hex}")
    return InterpretationResult(
        uid=scan.uid_hex,
        sku=material.code,
        tag_format=TAG_FORMAT,
        manufacturer=supplier.name,
        material_id=material.code,
        material_name=material.name,
        color_code=None,
        color_name=blk.color_family(color_hex),
        color_hex=color_hex,
        tray_uid=spool_id,
        production_date=parse_date(date_code),
        serial_number=batch,
    )
