# spool_rfid/formats/blocks.py

"""
Fixed-offset readers over a decrypted block map or a reassembled memory image.

All readers raise ValueError (or struct.error / UnicodeDecodeError from the
underlying decoders) when the requested bytes are not available. Format
interpreters catch these and refuse the scan instead of guessing.
"""

import colorsys
import struct
from typing import Mapping, Optional

from spool_rfid import constants as const

BlockMap = Mapping[int, bytes]


def block_slice(blocks: BlockMap, index: int, offset: int = 0, length: int = const.BLOCK_SIZE) -> bytes:
    """Returns `length` bytes of block `index` starting at `offset`."""
    data = blocks.get(index)
    if data is None:
        raise ValueError(f"Block {index} is not available")
    if offset < 0 or offset + length > len(data):
        raise ValueError(f"Range {offset}+{length} exceeds block {index} ({len(data)} bytes)")
    return bytes(data[offset:offset + length])


def has_blocks(blocks: BlockMap, *indices: int) -> bool:
    return all(i in blocks for i in indices)


def _clean_text(raw: bytes) -> str:
    return raw.decode('ascii').replace('\x00', '').strip()


def read_ascii(blocks: BlockMap, index: int, offset: int = 0, length: int = const.BLOCK_SIZE) -> str:
    """Reads a NUL-padded ASCII string from a block."""
    return _clean_text(block_slice(blocks, index, offset, length))


def read_hex(blocks: BlockMap, index: int, offset: int = 0, length: int = const.BLOCK_SIZE) -> str:
    """Reads bytes from a block as an uppercase hex string."""
    return block_slice(blocks, index, offset, length).hex().upper()


def read_uint_le(blocks: BlockMap, index: int, offset: int, size: int = 2) -> int:
    return int.from_bytes(block_slice(blocks, index, offset, size), 'little')


def read_float32_le(blocks: BlockMap, index: int, offset: int) -> float:
    return struct.unpack('<f', block_slice(blocks, index, offset, 4))[0]


def read_float64_le(blocks: BlockMap, index: int, offset: int) -> float:
    return struct.unpack('<d', block_slice(blocks, index, offset, 8))[0]


# --- Contiguous memory readers ---

def memory_slice(memory: bytes, offset: int, length: int) -> bytes:
    if offset < 0 or offset + length > len(memory):
        raise ValueError(f"Range 0x{offset:02X}+{length} exceeds memory ({len(memory)} bytes)")
    return memory[offset:offset + length]


def memory_ascii(memory: bytes, offset: int, length: int) -> str:
    return _clean_text(memory_slice(memory, offset, length))


def memory_uint_be(memory: bytes, offset: int, size: int = 2) -> int:
    return int.from_bytes(memory_slice(memory, offset, size), 'big')


def memory_byte(memory: bytes, offset: int) -> int:
    return memory_slice(memory, offset, 1)[0]


# --- Value helpers ---

def rgba_to_hex(rgba: bytes) -> Optional[str]:
    """Converts RGB(A) bytes to '#RRGGBB'. Returns None for fewer than three bytes."""
    if len(rgba) < 3:
        return None
    return f"#{rgba[0]:02X}{rgba[1]:02X}{rgba[2]:02X}"


def color_family(color_hex: str) -> str:
    """
    Names the broad hue family of an '#RRGGBB' colour (Black, White, Grey,
    Red, Yellow, Green, Cyan, Blue, Magenta). Used only as a display name for
    formats that store raw RGB without a colour code.
    """
    value = color_hex.lstrip('#')
    if len(value) != 6:
        raise ValueError(f"Expected #RRGGBB, got '{color_hex}'")
    r, g, b = (int(value[i:i + 2], 16) / 255.0 for i in (0, 2, 4))
    h, s, v = colorsys.rgb_to_hsv(r, g, b)
    hue = h * 360
    if v < 0.2:
        return "Black"
    if v > 0.9 and s < 0.1:
        return "White"
    if s < 0.2:
        return "Grey"
    if hue < 30 or hue > 330:
        return "Red"
    if hue < 90:
        return "Yellow"
    if hue < 150:
        return "Green"
    if hue < 210:
        return "Cyan"
    if hue < 270:
        return "Blue"
    return "Magenta"
