# spool_rfid/formats/bambu.py

"""
Bambu Lab proprietary MIFARE Classic 1K layout.

Block map (data blocks, little-endian binary unless noted):
  1   variant id (ASCII, bytes 0-7, '<series>-<colour>') | material id (ASCII, bytes 8-15)
  5   colour RGBA (0-3) | spool weight g (4-5) | filament diameter mm, float64 (8-15)
  6   drying temp (0) | drying time h (2) | bed temp type (4) | bed temp (6) | max hotend (8) | min hotend (10)
  8   nozzle diameter mm, float32 (12-15)
  9   tray UID (16 bytes, reported as hex)
  10  spool width, mm x 100 (4-5)
  12  production date (ASCII)
  13  short production date (ASCII, YYMMDD)
  14  filament length m (4-5)
  16  colour count (2-3)
"""

import logging
import re
import struct
from typing import Optional

from spool_rfid import constants as const
from spool_rfid.catalog.tables import CatalogSnapshot
from spool_rfid.core.models import DecryptedScan, InterpretationResult
from spool_rfid.core.status import TagFormat, TagTechnology
from spool_rfid.formats import blocks as blk

logger = logging.getLogger(__name__)

TAG_FORMAT = TagFormat.BAMBU_PROPRIETARY
MANUFACTURER = "Bambu Lab"

_VARIANT_RE = re.compile(r"^[A-Z0-9]{3}-[A-Z0-9]{2}$")
_MATERIAL_RE = re.compile(r"^GF[A-Z][0-9]{2}$")

# --- Block indices ---
BLOCK_IDS = 1
BLOCK_SPOOL = 5
BLOCK_TEMPS = 6
BLOCK_NOZZLE = 8
BLOCK_TRAY_UID = 9
BLOCK_WIDTH = 10
BLOCK_DATE = 12
BLOCK_SHORT_DATE = 13
BLOCK_LENGTH = 14
BLOCK_COLOR_COUNT = 16


def _read_ids(scan: DecryptedScan):
    variant_id = blk.read_ascii(scan.blocks, BLOCK_IDS, 0, 8)
    material_id = blk.read_ascii(scan.blocks, BLOCK_IDS, 8, 8)
    return variant_id, material_id


def matches(scan: DecryptedScan) -> bool:
    """Structural signature: MIFARE Classic, leading sectors readable, GFxNN material id in block 1."""
    if scan.tag_technology is not TagTechnology.MIFARE_CLASSIC:
        return False
    if not all(s in scan.authentication.authenticated_sectors for s in range(const.MIN_SECTORS_BAMBU)):
        return False
    try:
        variant_id, material_id = _read_ids(scan)
    except (ValueError, UnicodeDecodeError):
        return False
    return bool(_VARIANT_RE.match(variant_id) and _MATERIAL_RE.match(material_id))


def _optional(reader, *args):
    """Reads a non-identifying field; missing blocks yield None instead of refusing the scan."""
    try:
        return reader(*args)
    except (ValueError, struct.error):
        return None


def _ascii_or_none(blocks, index: int) -> Optional[str]:
    try:
        return blk.read_ascii(blocks, index) or None
    except (ValueError, UnicodeDecodeError):
        return None


def decode(scan: DecryptedScan, catalog: CatalogSnapshot) -> Optional[InterpretationResult]:
    """
    Decodes a Bambu tag. Returns None unless the material, series and colour
    codes are all known and the full tag code maps to a catalog product.
    """
    try:
        variant_id, material_id = _read_ids(scan)
        series_code, _, color_code = variant_id.partition("-")
        rfid_code = f"{material_id}:{variant_id}"
        logger.debug(f"Bambu tag code extracted: {rfid_code}")

        material = catalog.materials.resolve(material_id)
        series = catalog.series.resolve(series_code)
        color = catalog.colors.resolve(color_code)
        if material is None or series is None or color is None:
            logger.warning(f"Unknown code in {rfid_code}: material={material is not None}, "
                           f"series={series is not None}, colour={color is not None}")
            return None

        product = catalog.product_for(rfid_code)
        if product is None:
            logger.warning(f"No exact product mapping for tag code {rfid_code}")
            return None
        logger.info(f"Exact SKU match found: {product.sku} for {rfid_code}")

        blocks = scan.blocks
        tray_uid = _optional(blk.read_hex, blocks, BLOCK_TRAY_UID)
        color_hex = product.hex or _optional(lambda: blk.rgba_to_hex(blk.block_slice(blocks, BLOCK_SPOOL, 0, 4)))
        diameter = _optional(blk.read_float64_le, blocks, BLOCK_SPOOL, 8)
        nozzle = _optional(blk.read_float32_le, blocks, BLOCK_NOZZLE, 12)
        width = _optional(blk.read_uint_le, blocks, BLOCK_WIDTH, 4)
        production_date = _ascii_or_none(blocks, BLOCK_DATE)
        short_production_date = _ascii_or_none(blocks, BLOCK_SHORT_DATE)

        return InterpretationResult(
            uid=scan.uid_hex,
            sku=product.sku,
            tag_format=TAG_FORMAT,
            manufacturer=MANUFACTURER,
            material_id=material_id,
            material_name=product.material,
            color_code=color_code,
            color_name=product.color,
            color_hex=color_hex,
            tray_uid=tray_uid,
            rfid_code=rfid_code,
            series_code=series_code,
            series_name=series.name,
            spool_weight_g=_optional(blk.read_uint_le, blocks, BLOCK_SPOOL, 4),
            filament_diameter_mm=round(diameter, 3) if diameter is not None else None,
            filament_length_m=_optional(blk.read_uint_le, blocks, BLOCK_LENGTH, 4),
            drying_temperature_c=_optional(blk.read_uint_le, blocks, BLOCK_TEMPS, 0),
            drying_time_h=_optional(blk.read_uint_le, blocks, BLOCK_TEMPS, 2),
            bed_temperature_type=_optional(blk.read_uint_le, blocks, BLOCK_TEMPS, 4),
            bed_temperature_c=_optional(blk.read_uint_le, blocks, BLOCK_TEMPS, 6),
            max_temperature_c=_optional(blk.read_uint_le, blocks, BLOCK_TEMPS, 8),
            min_temperature_c=_optional(blk.read_uint_le, blocks, BLOCK_TEMPS, 10),
            nozzle_diameter_mm=round(nozzle, 2) if nozzle is not None else None,
            spool_width_mm=width / 100 if width is not None else None,
            production_date=production_date,
            short_production_date=short_production_date,
            color_count=_optional(blk.read_uint_le, blocks, BLOCK_COLOR_COUNT, 2),
        )
    except (ValueError, struct.error, UnicodeDecodeError) as e:
        logger.warning(f"Error decoding Bambu tag {scan.uid_hex}: {e}")
        return None
