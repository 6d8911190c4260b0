# tests/conftest.py
import datetime
import struct

import pytest

from spool_rfid import constants as const
from spool_rfid.catalog.store import CatalogStore
from spool_rfid.core.models import RawScan, first_block_of_sector, blocks_in_sector
from spool_rfid.keys.derivation import clear_key_cache, derive_keys

# --- Constants shared by the synthetic tag images ---

BAMBU_UID = bytes.fromhex("75886B1D")
CREALITY_UID = bytes.fromhex("1A2B3C4D")
OPENTAG_UID = bytes.fromhex("04A1B2C3D4E5F6")
TRAY_UID_BYTES = bytes.fromhex("A1B2C3D4E5F60718293A4B5C6D7E8F90")
ACCESS_BITS = bytes.fromhex("FF078069")
FIXED_TIME = datetime.datetime(2025, 1, 15, 12, 0, tzinfo=datetime.timezone.utc)


def pad(data: bytes, size: int = const.BLOCK_SIZE) -> bytes:
    return data.ljust(size, b'\x00')


def make_mifare_image(uid: bytes, data_blocks: dict, sector_keys, sector_count: int = const.MIFARE_1K_SECTORS,
                      key_slot: str = "A") -> bytes:
    """
    Builds a MIFARE Classic memory image.

    Args:
        uid: Written to block 0.
        data_blocks: {block_index: 16 bytes}. Trailer blocks are always overwritten.
        sector_keys: Either one key for every sector, or a list/dict indexed by sector.
                     A None entry leaves the sector with keys no candidate matches.
        key_slot: Trailer slot the key is written to ("A" or "B").
    """
    image = bytearray(first_block_of_sector(sector_count) * const.BLOCK_SIZE)
    image[0:const.BLOCK_SIZE] = pad(uid + bytes([0x08, 0x04, 0x00]))
    for index, value in data_blocks.items():
        image[index * const.BLOCK_SIZE:(index + 1) * const.BLOCK_SIZE] = pad(value)
    unmatchable = bytes.fromhex("5A5A5A5A5A5A")
    for sector in range(sector_count):
        if isinstance(sector_keys, (bytes, bytearray)):
            key = sector_keys
        else:
            key = sector_keys[sector] if sector < len(sector_keys) else None
        key = key if key is not None else unmatchable
        if key_slot == "A":
            trailer = key + ACCESS_BITS + unmatchable
        else:
            trailer = unmatchable + ACCESS_BITS + key
        trailer_block = first_block_of_sector(sector) + blocks_in_sector(sector) - 1
        image[trailer_block * const.BLOCK_SIZE:(trailer_block + 1) * const.BLOCK_SIZE] = trailer
    return bytes(image)


def bambu_blocks(variant: bytes = b"A00-K0", material: bytes = b"GFA00") -> dict:
    return {
        1: pad(variant, 8) + pad(material, 8),
        2: pad(b"PLA"),
        4: pad(b"PLA Basic"),
        5: bytes.fromhex("000000FF") + struct.pack('<H', 250) + b'\x00\x00' + struct.pack('<d', 1.75),
        6: struct.pack('<6H', 55, 8, 1, 60, 230, 190) + b'\x00' * 4,
        8: b'\x00' * 12 + struct.pack('<f', 0.4),
        9: TRAY_UID_BYTES,
        10: b'\x00' * 4 + struct.pack('<H', 6600) + b'\x00' * 10,
        12: pad(b"2024_05_10_08_30"),
        13: pad(b"240510"),
        14: b'\x00' * 4 + struct.pack('<H', 330) + b'\x00' * 10,
        16: b'\x00\x00' + struct.pack('<H', 1) + b'\x00' * 12,
    }


def creality_blocks(text: bytes = b"AB1 24120 0276 04001 #0000FF 000330") -> dict:
    data = pad(text, 48)
    return {4: data[0:16], 5: data[16:32], 6: data[32:48]}


def opentag_memory(base_material: bytes = b"PLA", modifiers: bytes = b"SILK",
                   manufacturer: bytes = b"Polymaker", extended: bool = True) -> bytes:
    memory = bytearray(0xD0)
    memory[0x10:0x12] = b"OT"
    memory[0x12:0x14] = struct.pack('>H', 1)
    memory[0x14:0x24] = pad(manufacturer, 16)
    memory[0x24:0x29] = pad(base_material, 5)
    memory[0x29:0x2E] = pad(modifiers, 5)
    memory[0x2E:0x4E] = pad(b"Galaxy Blue", 32)
    memory[0x4E:0x51] = bytes.fromhex("1A2B3C")
    memory[0x51:0x53] = struct.pack('>H', 1750)
    memory[0x53:0x55] = struct.pack('>H', 1000)
    memory[0x55] = 42   # 210 C
    memory[0x56] = 12   # 60 C
    memory[0x57:0x59] = struct.pack('>H', 1240)
    if extended:
        memory[0xA0:0xB0] = pad(b"SN-0001", 16)
        memory[0xB0:0xB4] = struct.pack('>HBB', 2024, 5, 17)
        memory[0xB7] = 52
        memory[0xC0:0xC2] = struct.pack('>H', 330)
        memory[0xC4] = 55
        memory[0xC5] = 8
    return bytes(memory)


# --- Fixtures ---

@pytest.fixture(autouse=True)
def clear_caches():
    """Ensure key derivation memoization does not leak between tests."""
    clear_key_cache()
    yield
    clear_key_cache()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_TIME


@pytest.fixture
def bambu_scan() -> RawScan:
    """A Bambu 1K image whose trailers carry the UID-derived sector keys."""
    keys = derive_keys(BAMBU_UID)
    image = make_mifare_image(BAMBU_UID, bambu_blocks(), keys)
    return RawScan(uid=BAMBU_UID, technology=const.TECH_MIFARE_CLASSIC, data=image,
                   sector_count=const.MIFARE_1K_SECTORS)


@pytest.fixture
def creality_scan() -> RawScan:
    """A Creality image protected only by the factory default key."""
    image = make_mifare_image(CREALITY_UID, creality_blocks(), bytes.fromhex("FFFFFFFFFFFF"))
    return RawScan(uid=CREALITY_UID, technology=const.TECH_MIFARE_CLASSIC, data=image,
                   sector_count=const.MIFARE_1K_SECTORS)


@pytest.fixture
def opentag_scan() -> RawScan:
    return RawScan.from_image(OPENTAG_UID, opentag_memory(), technology=const.TECH_NTAG)


@pytest.fixture
def catalog_store() -> CatalogStore:
    """Store over the bundled catalog file."""
    return CatalogStore()


@pytest.fixture
def catalog(catalog_store):
    return catalog_store.snapshot()
