# tests/keys/test_derivation.py
import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from spool_rfid import constants as const
from spool_rfid.core.exceptions import KeyDerivationError
from spool_rfid.keys import derivation

UID = bytes.fromhex("75886B1D")


def test_derive_keys_shape():
    keys = derivation.derive_keys(UID)
    assert len(keys) == const.DERIVED_KEY_COUNT
    assert all(isinstance(k, bytes) and len(k) == const.KEY_LENGTH for k in keys)


def test_derive_keys_matches_hkdf_parameters():
    expected = HKDF(
        algorithm=hashes.SHA256(),
        length=96,
        salt=bytes.fromhex("9a759cf2c4f7caff222cb9769b41bc96"),
        info=b"RFID-A\x00",
    ).derive(UID)
    assert b"".join(derivation.derive_keys(UID)) == expected


def test_derive_keys_deterministic_and_uid_specific():
    assert derivation.derive_keys(UID) == derivation.derive_keys(UID)
    assert derivation.derive_keys(UID) != derivation.derive_keys(bytes.fromhex("75886B1E"))


def test_derive_keys_accepts_bytearray():
    assert derivation.derive_keys(bytearray(UID)) == derivation.derive_keys(UID)


@pytest.mark.parametrize("uid", [b"", b"\x01", bytes.fromhex("AABBCC")])
def test_derive_keys_rejects_short_uid(uid):
    with pytest.raises(KeyDerivationError) as exc_info:
        derivation.derive_keys(uid)
    assert "at least 4 bytes" in str(exc_info.value)


def test_candidate_keys_order_and_labels():
    candidates = derivation.candidate_keys(UID)
    derived = derivation.derive_keys(UID)

    assert [c.key for c in candidates[:16]] == derived
    assert [c.label for c in candidates[:3]] == ["derived-0", "derived-1", "derived-2"]
    fallback = candidates[16:]
    assert [c.key for c in fallback] == list(const.FALLBACK_KEYS)
    assert fallback[0].label == "fallback-FFFFFFFFFFFF"


def test_candidate_keys_deterministic():
    assert derivation.candidate_keys(UID) == derivation.candidate_keys(UID)


def test_key_cache_hits_and_clear():
    derivation.derive_keys(UID)
    derivation.derive_keys(UID)
    info = derivation.key_cache_info()
    assert info.hits >= 1
    assert info.currsize == 1
    assert info.maxsize == const.KEY_CACHE_SIZE

    derivation.clear_key_cache()
    assert derivation.key_cache_info().currsize == 0


def test_returned_list_is_a_copy():
    keys = derivation.derive_keys(UID)
    keys.clear()
    assert len(derivation.derive_keys(UID)) == const.DERIVED_KEY_COUNT
