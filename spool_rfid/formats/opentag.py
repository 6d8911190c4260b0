# spool_rfid/formats/opentag.py

"""
OpenTag v1 community layout (typically NTAG215/216).

Offsets below are absolute for the usual placement of the "OT" tag format
marker at 0x10. Tags written with the marker at 0x00 are read with all
offsets shifted down by 0x10.
"""

import logging
import struct
from typing import Optional

from spool_rfid.catalog.tables import CatalogSnapshot
from spool_rfid.core.models import DecryptedScan, InterpretationResult
from spool_rfid.core.status import TagFormat
from spool_rfid.formats import blocks as blk

logger = logging.getLogger(__name__)

TAG_FORMAT = TagFormat.OPENTAG_V1
MAGIC = b"OT"
MARKER_OFFSETS = (0x10, 0x00)

# --- Core fields ---
OFF_MAGIC = 0x10
OFF_VERSION = 0x12
OFF_MANUFACTURER = 0x14
OFF_BASE_MATERIAL = 0x24
OFF_MODIFIERS = 0x29
OFF_COLOR_NAME = 0x2E
OFF_COLOR_RGB = 0x4E
OFF_DIAMETER = 0x51     # micrometres
OFF_WEIGHT = 0x53       # grams
OFF_PRINT_TEMP = 0x55   # degrees / 5
OFF_BED_TEMP = 0x56     # degrees / 5
OFF_DENSITY = 0x57
CORE_END = 0x59

# --- Extended fields ---
OFF_SERIAL = 0xA0
OFF_DATE = 0xB0         # year (BE16), month, day
OFF_CORE_DIAMETER = 0xB7
OFF_LENGTH = 0xC0       # metres
OFF_DRY_TEMP = 0xC4
OFF_DRY_TIME = 0xC5
EXTENDED_END = 0xC6

TEMP_SCALE = 5


def _marker_base(memory: bytes) -> Optional[int]:
    for base in MARKER_OFFSETS:
        if memory[base:base + len(MAGIC)] == MAGIC:
            return base
    return None


def matches(scan: DecryptedScan) -> bool:
    """Structural signature: unprotected page memory (NTAG) with the "OT" marker."""
    if scan.tag_technology.is_sector_protected:
        return False
    return _marker_base(scan.memory()) is not None


def _shifted(memory: bytes, base: int) -> bytes:
    """Normalises the image so the marker sits at OFF_MAGIC."""
    if base == OFF_MAGIC:
        return memory
    return bytes(OFF_MAGIC - base) + memory


def _extended(memory: bytes) -> dict:
    if len(memory) < EXTENDED_END:
        return {}
    year = blk.memory_uint_be(memory, OFF_DATE)
    month = blk.memory_byte(memory, OFF_DATE + 2)
    day = blk.memory_byte(memory, OFF_DATE + 3)
    length = blk.memory_uint_be(memory, OFF_LENGTH)
    return {
        "serial_number": blk.memory_ascii(memory, OFF_SERIAL, 16) or None,
        "production_date": f"{year:04d}-{month:02d}-{day:02d}" if year else None,
        "filament_length_m": length or None,
        "drying_temperature_c": blk.memory_byte(memory, OFF_DRY_TEMP) or None,
        "drying_time_h": blk.memory_byte(memory, OFF_DRY_TIME) or None,
    }


def decode(scan: DecryptedScan, catalog: CatalogSnapshot) -> Optional[InterpretationResult]:
    """
    Decodes an OpenTag v1 tag. Requires the base material to be a known open
    material; the SKU is the combined '<base> <modifiers>' code when that is
    known too, else the base material code.
    """
    if scan.tag_technology.is_sector_protected:
        logger.warning(f"OpenTag layout does not apply to {scan.technology} scan {scan.uid_hex}")
        return None
    memory = scan.memory()
    base = _marker_base(memory)
    if base is None:
        logger.warning(f"OpenTag marker not found in {scan.uid_hex}")
        return None
    memory = _shifted(memory, base)
    if len(memory) < CORE_END:
        logger.warning(f"Insufficient data for OpenTag parsing: {len(memory)} bytes")
        return None

    try:
        version = blk.memory_uint_be(memory, OFF_VERSION)
        manufacturer = blk.memory_ascii(memory, OFF_MANUFACTURER, 16)
        base_material = blk.memory_ascii(memory, OFF_BASE_MATERIAL, 5)
        modifiers = blk.memory_ascii(memory, OFF_MODIFIERS, 5)
        color_name = blk.memory_ascii(memory, OFF_COLOR_NAME, 32)
        color_hex = blk.rgba_to_hex(blk.memory_slice(memory, OFF_COLOR_RGB, 3))
        diameter_um = blk.memory_uint_be(memory, OFF_DIAMETER)
        weight = blk.memory_uint_be(memory, OFF_WEIGHT)
        print_temp = blk.memory_byte(memory, OFF_PRINT_TEMP) * TEMP_SCALE
        bed_temp = blk.memory_byte(memory, OFF_BED_TEMP) * TEMP_SCALE
        density = blk.memory_uint_be(memory, OFF_DENSITY)
        extended = _extended(memory)
    except (ValueError, struct.error, UnicodeDecodeError) as e:
        logger.warning(f"Error decoding OpenTag data of {scan.uid_hex}: {e}")
        return None
    logger.debug(f"OpenTag v{version}: manufacturer='{manufacturer}' material='{base_material}' "
                 f"modifiers='{modifiers}' colour='{color_name}' {color_hex}")

    material = catalog.open_materials.resolve(base_material.upper())
    if material is None or not manufacturer:
        logger.warning(f"OpenTag material '{base_material}' unknown or manufacturer missing")
        return None
    if modifiers:
        variant = catalog.open_materials.resolve(f"{base_material} {modifiers}".upper())
        if variant is not None:
            material = variant

    logger.info(f"OpenTag material {material.code} matched for {scan.uid_hex}")
    return InterpretationResult(
        uid=scan.uid_hex,
        sku=material.code,
        tag_format=TAG_FORMAT,
        manufacturer=manufacturer,
        material_id=base_material,
        material_name=material.name,
        color_code=None,
        color_name=color_name or blk.color_family(color_hex),
        color_hex=color_hex,
        tray_uid=extended.get("serial_number"),
        spool_weight_g=weight or None,
        filament_diameter_mm=diameter_um / 1000 if diameter_um else None,
        filament_length_m=extended.get("filament_length_m"),
        drying_temperature_c=extended.get("drying_temperature_c"),
        drying_time_h=extended.get("drying_time_h"),
        bed_temperature_c=bed_temp or None,
        max_temperature_c=print_temp or None,
        production_date=extended.get("production_date"),
        density=density or None,
        serial_number=extended.get("serial_number"),
    )
