# tests/core/test_models.py
import dataclasses
import datetime

import pytest

from spool_rfid import constants as const
from spool_rfid.core.exceptions import InvalidScanError
from spool_rfid.core.models import (AuthenticationOutcome, CandidateKey, DecryptedScan, RawScan,
                                    blocks_in_sector, first_block_of_sector, image_size,
                                    is_trailer_block, sector_of_block)
from spool_rfid.core.status import ScanResult, TagTechnology

UID = bytes.fromhex("01020304")


# --- Geometry ---

@pytest.mark.parametrize("sector, first, count", [
    (0, 0, 4),
    (15, 60, 4),
    (31, 124, 4),
    (32, 128, 16),
    (39, 240, 16),
])
def test_sector_geometry(sector, first, count):
    assert first_block_of_sector(sector) == first
    assert blocks_in_sector(sector) == count
    assert sector_of_block(first) == sector
    assert sector_of_block(first + count - 1) == sector
    assert is_trailer_block(first + count - 1)
    assert not is_trailer_block(first)


def test_image_sizes():
    assert image_size(const.MIFARE_1K_SECTORS) == const.MIFARE_1K_SIZE
    assert image_size(const.MIFARE_4K_SECTORS) == const.MIFARE_4K_SIZE


# --- RawScan ---

def test_raw_scan_valid_and_immutable():
    scan = RawScan(uid=bytearray(UID), technology="MifareClassic", data=bytes(1024), sector_count=16)
    assert isinstance(scan.uid, bytes)
    assert scan.uid_hex == "01020304"
    assert scan.tag_technology is TagTechnology.MIFARE_CLASSIC
    with pytest.raises(dataclasses.FrozenInstanceError):
        scan.sector_count = 5


@pytest.mark.parametrize("uid", [b"", b"\x01\x02\x03", bytes(11)])
def test_raw_scan_rejects_bad_uid(uid):
    with pytest.raises(InvalidScanError):
        RawScan(uid=uid, technology="MifareClassic", data=bytes(1024), sector_count=16)


def test_raw_scan_rejects_inconsistent_payload():
    with pytest.raises(InvalidScanError) as exc_info:
        RawScan(uid=UID, technology="MifareClassic", data=bytes(1000), sector_count=16)
    assert "01020304" in str(exc_info.value)


def test_raw_scan_rejects_zero_sectors():
    with pytest.raises(InvalidScanError):
        RawScan(uid=UID, technology="MifareClassic", data=b"", sector_count=0)


@pytest.mark.parametrize("size, sectors", [(1024, 16), (4096, 40), (320, 5)])
def test_from_image_infers_sector_count(size, sectors):
    assert RawScan.from_image(UID, bytes(size)).sector_count == sectors


def test_from_image_ntag_pseudo_sectors():
    scan = RawScan.from_image(bytes(7), bytes(208), technology="NTAG")
    assert scan.sector_count == 4
    assert scan.tag_technology is TagTechnology.NTAG


def test_from_image_rejects_odd_mifare_size():
    with pytest.raises(InvalidScanError):
        RawScan.from_image(UID, bytes(1000))


@pytest.mark.parametrize("label, expected", [
    ("MifareClassic", TagTechnology.MIFARE_CLASSIC),
    ("android.nfc.tech.MifareClassic", TagTechnology.MIFARE_CLASSIC),
    ("NTAG", TagTechnology.NTAG),
    ("NfcA", TagTechnology.NTAG),
    ("Felica", TagTechnology.UNKNOWN),
    ("", TagTechnology.UNKNOWN),
])
def test_technology_labels(label, expected):
    assert TagTechnology.from_label(label) is expected


# --- CandidateKey / AuthenticationOutcome ---

def test_candidate_key_length_enforced():
    with pytest.raises(ValueError):
        CandidateKey(b"\x00" * 5, "short")
    assert str(CandidateKey(bytes.fromhex("A0A1A2A3A4A5"), "mad")) == "mad=A0A1A2A3A4A5"


def test_outcome_rejects_overlapping_partition():
    with pytest.raises(ValueError):
        AuthenticationOutcome((), {0, 1}, {1, 2})


def test_outcome_all_sectors_and_read_only_labels():
    outcome = AuthenticationOutcome((), {0, 1}, {2}, {0: "derived-0/A", 1: "derived-1/A"})
    assert outcome.all_sectors == frozenset({0, 1, 2})
    with pytest.raises(TypeError):
        outcome.key_labels[2] = "x"


# --- DecryptedScan ---

def _decrypted(blocks) -> DecryptedScan:
    return DecryptedScan(
        uid=UID,
        timestamp=datetime.datetime(2025, 1, 1, tzinfo=datetime.timezone.utc),
        technology="MifareClassic",
        scan_result=ScanResult.SUCCESS,
        blocks=blocks,
        authentication=AuthenticationOutcome((), {0}, set()),
        errors=["note"],
    )


def test_decrypted_blocks_are_read_only_copy():
    source = {1: b"\x01" * 16}
    scan = _decrypted(source)
    source[2] = b"\x02" * 16
    assert 2 not in scan.blocks
    with pytest.raises(TypeError):
        scan.blocks[3] = b""
    assert scan.errors == ("note",)


def test_memory_reassembly_zero_fills_gaps():
    scan = _decrypted({0: b"\xAA" * 16, 2: b"\xBB" * 16})
    memory = scan.memory()
    assert len(memory) == 48
    assert memory[16:32] == bytes(16)
    assert memory[32:48] == b"\xBB" * 16
    assert scan.memory(length=8) == b"\xAA" * 8
    assert _decrypted({}).memory() == b""


def test_as_dict_export():
    exported = _decrypted({1: bytes.fromhex("00FF") + bytes(14)}).as_dict()
    assert exported["uid"] == "01020304"
    assert exported["scanResult"] == "SUCCESS"
    assert exported["blocks"]["1"].startswith("00FF")
    assert exported["authenticatedSectors"] == [0]
    assert exported["timestamp"].startswith("2025-01-01")
