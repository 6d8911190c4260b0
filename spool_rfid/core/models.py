# spool_rfid/core/models.py

"""
Immutable data records passed between the authentication, interpretation and
identity stages.
"""

import datetime
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from spool_rfid import constants as const
from spool_rfid.core.exceptions import InvalidScanError
from spool_rfid.core.status import ScanResult, TagFormat, TagTechnology


# --- Sector Geometry ---

def blocks_in_sector(sector: int) -> int:
    """Number of blocks in a sector (MIFARE Classic 4K has 16-block sectors above 31)."""
    if sector < const.SMALL_SECTOR_COUNT:
        return const.BLOCKS_PER_SMALL_SECTOR
    return const.BLOCKS_PER_LARGE_SECTOR


def first_block_of_sector(sector: int) -> int:
    """Absolute index of the first block in a sector."""
    if sector < const.SMALL_SECTOR_COUNT:
        return sector * const.BLOCKS_PER_SMALL_SECTOR
    return (const.SMALL_SECTOR_COUNT * const.BLOCKS_PER_SMALL_SECTOR +
            (sector - const.SMALL_SECTOR_COUNT) * const.BLOCKS_PER_LARGE_SECTOR)


def sector_of_block(block: int) -> int:
    """Sector containing an absolute block index."""
    small_blocks = const.SMALL_SECTOR_COUNT * const.BLOCKS_PER_SMALL_SECTOR
    if block < small_blocks:
        return block // const.BLOCKS_PER_SMALL_SECTOR
    return const.SMALL_SECTOR_COUNT + (block - small_blocks) // const.BLOCKS_PER_LARGE_SECTOR


def image_size(sector_count: int) -> int:
    """Byte size of a full memory image (trailers included) with the given sector count."""
    return first_block_of_sector(sector_count) * const.BLOCK_SIZE


def is_trailer_block(block: int) -> bool:
    sector = sector_of_block(block)
    return block == first_block_of_sector(sector) + blocks_in_sector(sector) - 1


# --- Scan Records ---

@dataclass(frozen=True)
class RawScan:
    """
    One physical read of a tag: UID, radio technology label and raw memory.

    For MIFARE Classic the payload is the full memory image of `sector_count`
    sectors, trailers included. For unprotected technologies (NTAG) it is the
    page memory, grouped into 64-byte pseudo-sectors.
    """
    uid: bytes
    technology: str
    data: bytes
    sector_count: int

    def __post_init__(self):
        if not isinstance(self.uid, (bytes, bytearray)) or not self.uid:
            raise InvalidScanError("UID must be a non-empty byte string.")
        if not (const.MIN_UID_LENGTH <= len(self.uid) <= const.MAX_UID_LENGTH):
            raise InvalidScanError(
                f"UID length {len(self.uid)} outside {const.MIN_UID_LENGTH}-{const.MAX_UID_LENGTH} bytes.",
                uid=bytes(self.uid)
            )
        if self.sector_count <= 0:
            raise InvalidScanError(f"Sector count must be positive, got {self.sector_count}.", uid=bytes(self.uid))

        if self.tag_technology is TagTechnology.MIFARE_CLASSIC:
            expected = image_size(self.sector_count)
            if len(self.data) != expected:
                raise InvalidScanError(
                    f"Payload is {len(self.data)} bytes but {self.sector_count} sectors require {expected}.",
                    uid=bytes(self.uid)
                )
        else:
            expected_sectors = max(1, math.ceil(len(self.data) / const.SECTOR_SIZE_SMALL))
            if self.sector_count != expected_sectors:
                raise InvalidScanError(
                    f"Payload of {len(self.data)} bytes spans {expected_sectors} sectors, not {self.sector_count}.",
                    uid=bytes(self.uid)
                )
        # Normalise bytearray inputs so the record stays immutable
        object.__setattr__(self, "uid", bytes(self.uid))
        object.__setattr__(self, "data", bytes(self.data))

    @property
    def tag_technology(self) -> TagTechnology:
        return TagTechnology.from_label(self.technology)

    @property
    def uid_hex(self) -> str:
        return self.uid.hex().upper()

    @classmethod
    def from_image(cls, uid: bytes, data: bytes, technology: str = const.TECH_MIFARE_CLASSIC) -> "RawScan":
        """Builds a RawScan inferring the sector count from the image size."""
        if TagTechnology.from_label(technology) is TagTechnology.MIFARE_CLASSIC:
            if len(data) == const.MIFARE_4K_SIZE:
                sector_count = const.MIFARE_4K_SECTORS
            elif len(data) % const.SECTOR_SIZE_SMALL == 0 and len(data) <= image_size(const.SMALL_SECTOR_COUNT):
                sector_count = len(data) // const.SECTOR_SIZE_SMALL
            else:
                raise InvalidScanError(f"Cannot infer sector count from {len(data)}-byte image.", uid=bytes(uid))
        else:
            sector_count = max(1, math.ceil(len(data) / const.SECTOR_SIZE_SMALL))
        return cls(uid=uid, technology=technology, data=data, sector_count=sector_count)


@dataclass(frozen=True)
class CandidateKey:
    """A derived or well-known sector key plus a human-readable label."""
    key: bytes
    label: str

    def __post_init__(self):
        if len(self.key) != const.KEY_LENGTH:
            raise ValueError(f"Candidate key must be {const.KEY_LENGTH} bytes, got {len(self.key)}")

    def __str__(self):
        return f"{self.label}={self.key.hex().upper()}"


@dataclass(frozen=True)
class AuthenticationOutcome:
    """Per-scan authentication metadata. authenticated and failed partition all sectors."""
    candidate_keys: Tuple[CandidateKey, ...]
    authenticated_sectors: FrozenSet[int]
    failed_sectors: FrozenSet[int]
    key_labels: Mapping[int, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "candidate_keys", tuple(self.candidate_keys))
        object.__setattr__(self, "authenticated_sectors", frozenset(self.authenticated_sectors))
        object.__setattr__(self, "failed_sectors", frozenset(self.failed_sectors))
        object.__setattr__(self, "key_labels", MappingProxyType(dict(self.key_labels)))
        overlap = self.authenticated_sectors & self.failed_sectors
        if overlap:
            raise ValueError(f"Sectors {sorted(overlap)} are both authenticated and failed")

    @property
    def all_sectors(self) -> FrozenSet[int]:
        return self.authenticated_sectors | self.failed_sectors


@dataclass(frozen=True)
class DecryptedScan:
    """
    Output of the Sector Authenticator.

    `blocks` only holds blocks of authenticated sectors; `errors` collects
    diagnostic strings produced while decoding.
    """
    uid: bytes
    timestamp: datetime.datetime
    technology: str
    scan_result: ScanResult
    blocks: Mapping[int, bytes]
    authentication: AuthenticationOutcome
    errors: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "blocks", MappingProxyType(dict(self.blocks)))
        object.__setattr__(self, "errors", tuple(self.errors))

    @property
    def uid_hex(self) -> str:
        return self.uid.hex().upper()

    @property
    def tag_technology(self) -> TagTechnology:
        return TagTechnology.from_label(self.technology)

    def block(self, index: int) -> Optional[bytes]:
        return self.blocks.get(index)

    def memory(self, length: Optional[int] = None) -> bytes:
        """
        Reassembles a contiguous memory image from decrypted blocks.

        Missing blocks are zero-filled. The image extends to the highest
        available block unless `length` is given.
        """
        if not self.blocks:
            return b''
        block_count = max(self.blocks) + 1
        image = bytearray(block_count * const.BLOCK_SIZE)
        for index, data in self.blocks.items():
            offset = index * const.BLOCK_SIZE
            image[offset:offset + len(data)] = data
        if length is not None:
            return bytes(image[:length]).ljust(length, b'\x00')
        return bytes(image)

    def as_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation for export and debugging."""
        auth = self.authentication
        return {
            "uid": self.uid_hex,
            "timestamp": self.timestamp.isoformat(),
            "technology": self.technology,
            "scanResult": self.scan_result.name,
            "blocks": {str(i): self.blocks[i].hex().upper() for i in sorted(self.blocks)},
            "authenticatedSectors": sorted(auth.authenticated_sectors),
            "failedSectors": sorted(auth.failed_sectors),
            "usedKeys": {str(s): auth.key_labels[s] for s in sorted(auth.key_labels)},
            "derivedKeys": [k.key.hex().upper() for k in auth.candidate_keys],
            "errors": list(self.errors),
        }


@dataclass(frozen=True)
class InterpretationResult:
    """
    Structured filament facts for a scan that matched the catalog exactly.

    Only the identifying fields are required; layout-specific physical
    properties are None when the format does not carry them.
    """
    uid: str
    sku: str
    tag_format: TagFormat
    manufacturer: str
    material_id: str
    material_name: str
    color_code: Optional[str]
    color_name: str
    color_hex: Optional[str] = None
    tray_uid: Optional[str] = None
    rfid_code: Optional[str] = None
    series_code: Optional[str] = None
    series_name: Optional[str] = None
    spool_weight_g: Optional[int] = None
    filament_diameter_mm: Optional[float] = None
    filament_length_m: Optional[int] = None
    drying_temperature_c: Optional[int] = None
    drying_time_h: Optional[int] = None
    bed_temperature_c: Optional[int] = None
    bed_temperature_type: Optional[int] = None
    min_temperature_c: Optional[int] = None
    max_temperature_c: Optional[int] = None
    nozzle_diameter_mm: Optional[float] = None
    spool_width_mm: Optional[float] = None
    production_date: Optional[str] = None
    short_production_date: Optional[str] = None
    color_count: Optional[int] = None
    density: Optional[int] = None
    serial_number: Optional[str] = None
