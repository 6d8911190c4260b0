# spool_rfid/keys/derivation.py

"""
UID to candidate key derivation for MIFARE Classic filament tags.

Vendor sector keys are produced with HKDF-SHA256 (RFC 5869): the vendor master
key is the salt, the tag UID is the input keying material, and a fixed context
string is the info parameter. Well-known transport keys follow the derived keys
so tags written by third-party tools still open.
"""

import functools
import logging
from typing import List, Tuple

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from spool_rfid import constants as const
from spool_rfid.core.exceptions import KeyDerivationError
from spool_rfid.core.models import CandidateKey

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=const.KEY_CACHE_SIZE)
def _derive_cached(uid: bytes) -> Tuple[bytes, ...]:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=const.DERIVED_KEY_COUNT * const.KEY_LENGTH,
        salt=const.KDF_MASTER_KEY,
        info=const.KDF_CONTEXT,
    )
    output = hkdf.derive(uid)
    keys = tuple(output[i:i + const.KEY_LENGTH] for i in range(0, len(output), const.KEY_LENGTH))
    logger.debug(f"Derived {len(keys)} keys for UID {uid.hex().upper()}")
    return keys


def derive_keys(uid: bytes) -> List[bytes]:
    """
    Derives the sixteen vendor sector keys for a tag UID.

    Args:
        uid: Tag UID, at least 4 bytes.

    Returns:
        List of 6-byte keys; index N is the key the vendor assigns to sector N.

    Raises:
        KeyDerivationError: If the UID is too short.
    """
    if not isinstance(uid, (bytes, bytearray)) or len(uid) < const.MIN_UID_LENGTH:
        raise KeyDerivationError(bytes(uid or b''), f"UID must be at least {const.MIN_UID_LENGTH} bytes.")
    return list(_derive_cached(bytes(uid)))


def candidate_keys(uid: bytes) -> List[CandidateKey]:
    """
    Returns the ordered candidate list for a UID: derived keys first, then
    the well-known fallback keys. Same UID always yields the same list.
    """
    candidates = [CandidateKey(key, f"derived-{i}") for i, key in enumerate(derive_keys(uid))]
    derived = {c.key for c in candidates}
    for key in const.FALLBACK_KEYS:
        if key not in derived:
            candidates.append(CandidateKey(key, f"fallback-{key.hex().upper()}"))
    return candidates


def clear_key_cache():
    """Drops all memoized derivations."""
    _derive_cached.cache_clear()


def key_cache_info():
    """Returns the functools cache statistics (hits, misses, maxsize, currsize)."""
    return _derive_cached.cache_info()
