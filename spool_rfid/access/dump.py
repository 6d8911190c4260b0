# spool_rfid/access/dump.py

import logging
from typing import List

from spool_rfid import constants as const
from spool_rfid.access.base import BaseSectorAccess
from spool_rfid.core.models import RawScan, blocks_in_sector, first_block_of_sector
from spool_rfid.core.status import KeySlot

logger = logging.getLogger(__name__)


class DumpSectorAccess(BaseSectorAccess):
    """
    Sector access over a captured memory image.

    A key opens a sector when it equals the Key A or Key B stored in that
    sector's trailer block. Images captured by readers that mask the trailer
    keys (all zeros) therefore only open with the zero key.
    """

    def __init__(self, raw_scan: RawScan):
        self._scan = raw_scan
        self._data = raw_scan.data
        logger.debug(f"DumpSectorAccess over {len(self._data)} bytes, {raw_scan.sector_count} sectors "
                     f"(UID {raw_scan.uid_hex})")

    @property
    def sector_count(self) -> int:
        return self._scan.sector_count

    def _check_sector(self, sector: int):
        if not 0 <= sector < self.sector_count:
            raise IndexError(f"Sector {sector} out of range 0-{self.sector_count - 1}")

    def _block(self, index: int) -> bytes:
        offset = index * const.BLOCK_SIZE
        return self._data[offset:offset + const.BLOCK_SIZE].ljust(const.BLOCK_SIZE, b'\x00')

    def trailer(self, sector: int) -> bytes:
        """Returns the trailer block (KeyA | access bits | KeyB) of a sector."""
        self._check_sector(sector)
        return self._block(first_block_of_sector(sector) + blocks_in_sector(sector) - 1)

    def authenticate(self, sector: int, key: bytes, slot: KeySlot) -> bool:
        self._check_sector(sector)
        trailer = self.trailer(sector)
        offset = const.TRAILER_KEY_A_OFFSET if slot is KeySlot.A else const.TRAILER_KEY_B_OFFSET
        return trailer[offset:offset + const.KEY_LENGTH] == key

    def read_sector(self, sector: int) -> List[bytes]:
        self._check_sector(sector)
        first = first_block_of_sector(sector)
        return [self._block(first + i) for i in range(blocks_in_sector(sector))]
