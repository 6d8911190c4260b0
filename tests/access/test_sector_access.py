# tests/access/test_sector_access.py
import pytest

from conftest import make_mifare_image

from spool_rfid import constants as const
from spool_rfid.access import DumpSectorAccess, MockSectorAccess
from spool_rfid.core.models import RawScan
from spool_rfid.core.status import KeySlot

UID = bytes.fromhex("01020304")
KEY = bytes.fromhex("112233445566")
OTHER = bytes.fromhex("FFFFFFFFFFFF")


# --- DumpSectorAccess ---

@pytest.fixture
def dump_access() -> DumpSectorAccess:
    image = make_mifare_image(UID, {4: b"hello sector one"}, KEY)
    return DumpSectorAccess(RawScan.from_image(UID, image))


def test_dump_accepts_trailer_key_a(dump_access):
    assert dump_access.sector_count == 16
    assert dump_access.authenticate(1, KEY, KeySlot.A)
    assert not dump_access.authenticate(1, KEY, KeySlot.B)
    assert not dump_access.authenticate(1, OTHER, KeySlot.A)


def test_dump_accepts_trailer_key_b():
    image = make_mifare_image(UID, {}, KEY, key_slot="B")
    access = DumpSectorAccess(RawScan.from_image(UID, image))
    assert access.authenticate(0, KEY, KeySlot.B)
    assert not access.authenticate(0, KEY, KeySlot.A)


def test_dump_read_sector_returns_all_blocks(dump_access):
    blocks = dump_access.read_sector(1)
    assert len(blocks) == 4
    assert blocks[0] == b"hello sector one"
    assert blocks[3][:6] == KEY  # Trailer included


def test_dump_rejects_out_of_range_sector(dump_access):
    with pytest.raises(IndexError):
        dump_access.read_sector(16)


def test_dump_4k_large_sector_geometry():
    image = make_mifare_image(UID, {128: b"first large blk"}, KEY, sector_count=const.MIFARE_4K_SECTORS)
    access = DumpSectorAccess(RawScan.from_image(UID, image))
    assert access.sector_count == 40
    blocks = access.read_sector(32)
    assert len(blocks) == 16
    assert blocks[0].rstrip(b'\x00') == b"first large blk"
    assert access.authenticate(39, KEY, KeySlot.A)


# --- MockSectorAccess ---

def test_mock_only_programmed_sectors_open():
    access = MockSectorAccess(sector_count=4)
    access.set_sector(2, KEY, KeySlot.B, blocks=[b"\x01" * 16] * 4)

    assert not access.authenticate(0, KEY, KeySlot.A)
    assert not access.authenticate(2, KEY, KeySlot.A)
    assert access.authenticate(2, KEY, KeySlot.B)
    assert access.read_sector(2)[0] == b"\x01" * 16
    assert access.attempts == [(0, KEY, KeySlot.A), (2, KEY, KeySlot.A), (2, KEY, KeySlot.B)]


def test_mock_slot_none_accepts_both():
    access = MockSectorAccess(sector_count=1)
    access.set_sector(0, KEY)
    assert access.authenticate(0, KEY, KeySlot.A)
    assert access.authenticate(0, KEY, KeySlot.B)
    access.clear_attempts()
    assert access.attempts == []
