# spool_rfid/access/mock.py

import logging
from typing import Dict, List, Optional, Tuple

from spool_rfid import constants as const
from spool_rfid.access.base import BaseSectorAccess
from spool_rfid.core.models import blocks_in_sector
from spool_rfid.core.status import KeySlot

logger = logging.getLogger(__name__)


class MockSectorAccess(BaseSectorAccess):
    """
    Programmable sector access for testing and simulation.

    Each sector can be given the key (and slot) that opens it and the blocks
    returned once opened. Sectors without a programmed key never open. Every
    authentication attempt is recorded for later inspection.
    """

    def __init__(self, sector_count: int = const.MIFARE_1K_SECTORS, name: str = "Mock"):
        self._sector_count = sector_count
        self._name = name
        self._keys: Dict[int, Tuple[bytes, Optional[KeySlot]]] = {}
        self._blocks: Dict[int, List[bytes]] = {}
        self.attempts: List[Tuple[int, bytes, KeySlot]] = []
        logger.info(f"MockSectorAccess '{self._name}' initialized with {sector_count} sectors.")

    @property
    def sector_count(self) -> int:
        return self._sector_count

    def set_sector(self, sector: int, key: bytes, slot: Optional[KeySlot] = None,
                   blocks: Optional[List[bytes]] = None):
        """
        Programs a sector.

        Args:
            sector: Sector index.
            key: The key that opens the sector.
            slot: Slot the key is valid for. None means both slots.
            blocks: Block contents; defaults to zero-filled blocks.
        """
        self._keys[sector] = (key, slot)
        if blocks is None:
            blocks = [bytes(const.BLOCK_SIZE)] * blocks_in_sector(sector)
        self._blocks[sector] = list(blocks)
        logger.debug(f"[{self._name}] Sector {sector} programmed: key={key.hex().upper()} slot={slot}")

    def clear_attempts(self):
        self.attempts.clear()

    def authenticate(self, sector: int, key: bytes, slot: KeySlot) -> bool:
        self.attempts.append((sector, key, slot))
        programmed = self._keys.get(sector)
        if programmed is None:
            return False
        expected_key, expected_slot = programmed
        return key == expected_key and (expected_slot is None or expected_slot is slot)

    def read_sector(self, sector: int) -> List[bytes]:
        if sector not in self._blocks:
            return [bytes(const.BLOCK_SIZE)] * blocks_in_sector(sector)
        return list(self._blocks[sector])
