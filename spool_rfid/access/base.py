# spool_rfid/access/base.py

from abc import ABC, abstractmethod
from typing import List

from spool_rfid.core.status import KeySlot


class BaseSectorAccess(ABC):
    """
    Abstract base class for sector-level tag memory access.

    The Sector Authenticator only needs two capabilities: checking whether a
    key opens a sector through a given slot, and reading the blocks of a
    sector once opened. Concrete implementations decide where the bytes come
    from (a captured memory image, a programmed mock, a live reader driven by
    the caller).
    """

    @property
    @abstractmethod
    def sector_count(self) -> int:
        """Number of sectors available on the tag."""
        pass

    @abstractmethod
    def authenticate(self, sector: int, key: bytes, slot: KeySlot) -> bool:
        """
        Attempts to open a sector with a key.

        Args:
            sector: Sector index, 0-based.
            key: 6-byte candidate key.
            slot: Key slot to authenticate against (A or B).

        Returns:
            True if the key opens the sector through that slot.
        """
        pass

    @abstractmethod
    def read_sector(self, sector: int) -> List[bytes]:
        """
        Returns the 16-byte blocks of a sector, in block order.
        Only meaningful after a successful authenticate() for that sector.
        """
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} sectors={self.sector_count}>"
