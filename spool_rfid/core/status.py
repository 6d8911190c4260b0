# spool_rfid/core/status.py

from enum import Enum, auto


class ScanResult(Enum):
    """Overall classification of a single scan attempt."""
    SUCCESS = auto()
    AUTHENTICATION_FAILED = auto()
    INSUFFICIENT_DATA = auto()
    PARSING_FAILED = auto()  # Set by the dispatcher, never by the authenticator

    def __str__(self):
        return self.name


class TagTechnology(Enum):
    """Radio technology family of a scanned tag."""
    MIFARE_CLASSIC = auto()
    NTAG = auto()
    UNKNOWN = auto()

    @property
    def is_sector_protected(self) -> bool:
        return self is TagTechnology.MIFARE_CLASSIC

    @classmethod
    def from_label(cls, label: str) -> "TagTechnology":
        """Maps a free-form technology label (e.g. 'MifareClassic', 'NfcA') to a member."""
        lowered = (label or "").lower()
        if "mifareclassic" in lowered or "mifare_classic" in lowered:
            return cls.MIFARE_CLASSIC
        if any(token in lowered for token in ("ntag", "ndef", "nfca", "ultralight")):
            return cls.NTAG
        return cls.UNKNOWN

    def __str__(self):
        return self.name


class TagFormat(Enum):
    """Supported tag data layouts. Determined from decrypted data, never declared."""
    BAMBU_PROPRIETARY = auto()
    CREALITY_ASCII = auto()
    OPENTAG_V1 = auto()
    UNRECOGNIZED = auto()

    def __str__(self):
        return self.name


class KeySlot(Enum):
    """MIFARE Classic sector trailer key slots."""
    A = "A"
    B = "B"

    def __str__(self):
        return self.value
