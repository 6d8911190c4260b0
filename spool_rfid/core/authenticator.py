# spool_rfid/core/authenticator.py

"""
Sector Authenticator.

Turns a RawScan into a DecryptedScan: derives the candidate keys for the tag
UID, tries them sector by sector and classifies the overall outcome. No
catalog lookups happen here, and a failed scan is never retried.
"""

import datetime
import logging
from typing import Callable, Dict, List, Optional, Sequence

from spool_rfid import constants as const
from spool_rfid.access.base import BaseSectorAccess
from spool_rfid.access.dump import DumpSectorAccess
from spool_rfid.core.models import (AuthenticationOutcome, CandidateKey, DecryptedScan, RawScan,
                                    first_block_of_sector)
from spool_rfid.core.status import KeySlot, ScanResult
from spool_rfid.keys.derivation import candidate_keys as derive_candidate_keys

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime.datetime]


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _try_sector(access: BaseSectorAccess, sector: int, candidates: Sequence[CandidateKey]) -> Optional[str]:
    """Returns '<label>/<slot>' of the first candidate opening the sector, or None."""
    for candidate in candidates:
        for slot in (KeySlot.A, KeySlot.B):
            if access.authenticate(sector, candidate.key, slot):
                return f"{candidate.label}/{slot}"
    return None


def classify(authenticated_count: int) -> ScanResult:
    """Maps the number of authenticated sectors to a ScanResult."""
    if authenticated_count == 0:
        return ScanResult.AUTHENTICATION_FAILED
    if authenticated_count < const.MIN_AUTHENTICATED_SECTORS:
        return ScanResult.INSUFFICIENT_DATA
    return ScanResult.SUCCESS


def authenticate(raw_scan: RawScan,
                 access: Optional[BaseSectorAccess] = None,
                 candidate_keys: Optional[Sequence[CandidateKey]] = None,
                 clock: Optional[Clock] = None) -> DecryptedScan:
    """
    Authenticates every sector of a raw scan and collects the readable blocks.

    Args:
        raw_scan: The physical read to authenticate.
        access: Sector access to use. Defaults to DumpSectorAccess over the
                raw scan's memory image.
        candidate_keys: Ordered keys to try. Defaults to the keys derived
                        from the scan UID.
        clock: Callable returning the capture timestamp. Defaults to UTC now.

    Returns:
        A DecryptedScan classified as SUCCESS, INSUFFICIENT_DATA or
        AUTHENTICATION_FAILED. Never PARSING_FAILED.
    """
    timestamp = (clock or _utc_now)()
    if access is None:
        access = DumpSectorAccess(raw_scan)
    if access.sector_count != raw_scan.sector_count:
        logger.warning(f"Sector access reports {access.sector_count} sectors, scan declares "
                       f"{raw_scan.sector_count}. Using the scan's count.")

    all_sectors = range(raw_scan.sector_count)
    authenticated: List[int] = []
    failed: List[int] = []
    key_labels: Dict[int, str] = {}
    blocks: Dict[int, bytes] = {}
    errors: List[str] = []

    if not raw_scan.tag_technology.is_sector_protected:
        keys: List[CandidateKey] = []
        logger.debug(f"Technology '{raw_scan.technology}' has no sector protection; all sectors readable.")
        for sector in all_sectors:
            authenticated.append(sector)
            key_labels[sector] = const.UNPROTECTED_KEY_LABEL
    else:
        keys = list(candidate_keys) if candidate_keys is not None else derive_candidate_keys(raw_scan.uid)
        for sector in all_sectors:
            label = _try_sector(access, sector, keys)
            if label is None:
                failed.append(sector)
                errors.append(f"Failed to authenticate sector {sector} with any of {len(keys)} keys")
                logger.debug(f"Sector {sector}: no candidate key succeeded")
            else:
                authenticated.append(sector)
                key_labels[sector] = label
                logger.debug(f"Sector {sector}: authenticated with {label}")

    for sector in authenticated:
        first = first_block_of_sector(sector)
        for offset, data in enumerate(access.read_sector(sector)):
            blocks[first + offset] = bytes(data)

    result = classify(len(authenticated))
    if result is ScanResult.AUTHENTICATION_FAILED:
        errors.append("Complete authentication failure - no sectors authenticated")
    elif result is ScanResult.INSUFFICIENT_DATA:
        errors.append(f"Insufficient data - {len(authenticated)} of {raw_scan.sector_count} sectors "
                      f"authenticated, at least {const.MIN_AUTHENTICATED_SECTORS} required")

    logger.info(f"Scan {raw_scan.uid_hex}: {len(authenticated)}/{raw_scan.sector_count} sectors "
                f"authenticated, result {result}")

    outcome = AuthenticationOutcome(
        candidate_keys=tuple(keys),
        authenticated_sectors=frozenset(authenticated),
        failed_sectors=frozenset(failed),
        key_labels=key_labels,
    )
    return DecryptedScan(
        uid=raw_scan.uid,
        timestamp=timestamp,
        technology=raw_scan.technology,
        scan_result=result,
        blocks=blocks,
        authentication=outcome,
        errors=tuple(errors),
    )
