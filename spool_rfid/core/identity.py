# spool_rfid/core/identity.py

"""
Compound Identity Builder.

An identity is the first 16 hex characters of the SHA-256 of an ordered
sequence of (name, value) pairs rendered as 'name:value' and joined with '|'.
Backslash, ':' and '|' inside names or values are escaped so distinct pair
sequences never share a canonical string.

Order matters: (type, tray)(trayUid, X) and (trayUid, X)(type, tray) are
different identities. Each entity kind therefore always builds its pairs
through the recipe functions below, never ad hoc.
"""

import hashlib
import logging
from typing import Iterable, List, Sequence, Tuple

from spool_rfid import constants as const
from spool_rfid.core.exceptions import IdentityError

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]

_SPECIAL = (const.IDENTITY_ESCAPE, const.IDENTITY_NAME_SEPARATOR, const.IDENTITY_PAIR_SEPARATOR)


def _escape(text: str) -> str:
    for ch in _SPECIAL:
        text = text.replace(ch, const.IDENTITY_ESCAPE + ch)
    return text


def canonical_form(pairs: Sequence[Pair]) -> str:
    """
    Renders an ordered pair sequence as its canonical string.

    Raises:
        IdentityError: For an empty sequence or non-string names/values.
    """
    pairs = list(pairs)
    if not pairs:
        raise IdentityError("Cannot build an identity from an empty pair sequence.")
    rendered: List[str] = []
    for pair in pairs:
        if len(pair) != 2 or not all(isinstance(part, str) for part in pair):
            raise IdentityError(f"Identity pairs must be (str, str), got {pair!r}")
        name, value = pair
        rendered.append(f"{_escape(name)}{const.IDENTITY_NAME_SEPARATOR}{_escape(value)}")
    return const.IDENTITY_PAIR_SEPARATOR.join(rendered)


def build_id(pairs: Iterable[Pair]) -> str:
    """Returns the 16-character lowercase hex identity of an ordered pair sequence."""
    canonical = canonical_form(list(pairs))
    identity = hashlib.sha256(canonical.encode('utf-8')).hexdigest()[:const.IDENTITY_LENGTH]
    logger.debug(f"Identity {identity} <- {canonical}")
    return identity


# --- Entity recipes ---
# Name order within each recipe is fixed; changing it changes every stored identity.

def tag_id(tag_uid: str) -> str:
    return build_id([("type", "tag"), ("tagUid", tag_uid)])


def tray_id(tray_uid: str) -> str:
    return build_id([("type", "tray"), ("trayUid", tray_uid)])


def filament_id(tray_uid: str, material: str) -> str:
    return build_id([("type", "filament"), ("trayUid", tray_uid), ("material", material)])


def core_id(tray_uid: str) -> str:
    return build_id([("type", "core"), ("trayUid", tray_uid)])


def spool_id(tray_uid: str) -> str:
    return build_id([("type", "spool"), ("trayUid", tray_uid)])


def inventory_id(filament_identity: str) -> str:
    return build_id([("type", "inventory"), ("tracks", filament_identity)])


def identifier_id(id_type: str, value: str) -> str:
    """Identity of an identifier node such as a tag UID or tray UID value."""
    return build_id([("idType", id_type), ("value", value)])
