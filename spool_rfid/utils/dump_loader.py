# spool_rfid/utils/dump_loader.py

import json
import logging
import os
from typing import Any, Dict

from spool_rfid import constants as const
from spool_rfid.core.exceptions import DumpFormatError, InvalidScanError
from spool_rfid.core.models import RawScan
from spool_rfid.core.status import TagTechnology

logger = logging.getLogger(__name__)

# Some readers append 128 bytes of metadata to a 1K image
MIFARE_1K_EXTENDED_SIZE = 1152
SUPPORTED_BIN_SIZES = (const.MIFARE_1K_SIZE, MIFARE_1K_EXTENDED_SIZE, const.MIFARE_4K_SIZE)
NTAG_PAGE_SIZE = 4


def _uid_from_image(path: str, data: bytes, technology: str) -> bytes:
    if TagTechnology.from_label(technology) is TagTechnology.MIFARE_CLASSIC:
        return data[0:4]
    # NTAG: UID0-2 in page 0, UID3-6 in page 1 (page 0 byte 3 is a check byte)
    if len(data) < 8:
        raise DumpFormatError(path, "NTAG image too short to hold a UID.", data)
    return data[0:3] + data[4:8]


def _load_bin(path: str, technology: str) -> RawScan:
    with open(path, 'rb') as f:
        data = f.read()

    if TagTechnology.from_label(technology) is TagTechnology.MIFARE_CLASSIC:
        if len(data) not in SUPPORTED_BIN_SIZES:
            raise DumpFormatError(path, f"Unsupported image size {len(data)} bytes "
                                        f"(expected one of {SUPPORTED_BIN_SIZES}).")
        if len(data) == MIFARE_1K_EXTENDED_SIZE:
            logger.debug(f"Trimming {len(data) - const.MIFARE_1K_SIZE} trailing bytes from {path}")
            data = data[:const.MIFARE_1K_SIZE]
    elif not data or len(data) % NTAG_PAGE_SIZE:
        raise DumpFormatError(path, f"Image size {len(data)} is not a multiple of the {NTAG_PAGE_SIZE}-byte page size.")

    uid = _uid_from_image(path, data, technology)
    return RawScan.from_image(uid, data, technology)


def _load_json(path: str, technology: str) -> RawScan:
    with open(path, 'r', encoding='utf-8') as f:
        try:
            doc: Dict[str, Any] = json.load(f)
        except json.JSONDecodeError as e:
            raise DumpFormatError(path, f"Invalid JSON: {e}") from e

    blocks = doc.get("blocks") if isinstance(doc, dict) else None
    if not isinstance(blocks, dict) or not blocks:
        raise DumpFormatError(path, "Missing 'blocks' object.")

    try:
        parsed = {int(index): bytes.fromhex(value) for index, value in blocks.items()}
    except (TypeError, ValueError) as e:
        raise DumpFormatError(path, f"Malformed block entry: {e}") from e
    # MIFARE dumps list 16-byte blocks, NTAG dumps list 4-byte pages
    if TagTechnology.from_label(technology) is TagTechnology.MIFARE_CLASSIC:
        entry_size = const.BLOCK_SIZE
    else:
        entry_size = NTAG_PAGE_SIZE
    bad = [i for i, b in parsed.items() if len(b) != entry_size]
    if bad:
        raise DumpFormatError(path, f"Entries {sorted(bad)[:8]} are not {entry_size} bytes.")

    image = bytearray((max(parsed) + 1) * entry_size)
    for index, value in parsed.items():
        image[index * entry_size:(index + 1) * entry_size] = value
    data = bytes(image)

    card = doc.get("Card") or {}
    uid_hex = card.get("UID") if isinstance(card, dict) else None
    try:
        uid = bytes.fromhex(uid_hex) if uid_hex else _uid_from_image(path, data, technology)
    except ValueError as e:
        raise DumpFormatError(path, f"Malformed UID '{uid_hex}': {e}") from e
    return RawScan.from_image(uid, data, technology)


def load_dump(path: str, technology: str = const.TECH_MIFARE_CLASSIC) -> RawScan:
    """
    Loads a tag memory dump as a RawScan.

    Supports raw binary images (.bin, .dump: MIFARE Classic 1K, 1K with
    reader metadata, 4K, or NTAG page images) and Proxmark-style JSON dumps
    with a 'blocks' object of hex strings: 16-byte blocks for MIFARE
    Classic, 4-byte pages for NTAG.

    Raises:
        DumpFormatError: If the file is not a supported dump.
        OSError: If the file cannot be read.
    """
    extension = os.path.splitext(path)[1].lower()
    logger.info(f"Loading {technology} dump from {path}")
    try:
        if extension == '.json':
            scan = _load_json(path, technology)
        else:
            scan = _load_bin(path, technology)
    except InvalidScanError as e:
        raise DumpFormatError(path, str(e)) from e
    logger.debug(f"Loaded dump {path}: UID {scan.uid_hex}, {scan.sector_count} sectors")
    return scan
