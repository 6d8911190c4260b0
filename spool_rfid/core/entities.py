# spool_rfid/core/entities.py

"""
Plans the inventory-graph entities and edges implied by one scan.

Entity ids are compound identities, so planning the same physical spool
twice yields the same ids and the caller's persistence layer can merge
instead of duplicating. Only the scan occurrence itself is unique per scan.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from spool_rfid.core import identity
from spool_rfid.core.models import DecryptedScan, InterpretationResult

logger = logging.getLogger(__name__)

# --- Entity kinds ---
KIND_TAG = "tag"
KIND_IDENTIFIER = "identifier"
KIND_TRAY = "tray"
KIND_FILAMENT = "filament"
KIND_CORE = "core"
KIND_SPOOL = "spool"
KIND_INVENTORY = "inventory"
KIND_SCAN = "scan"

# --- Identifier types ---
ID_TYPE_TAG_UID = "rfid_hardware"
ID_TYPE_TRAY_UID = "consumable_unit"

# --- Edge kinds ---
EDGE_IDENTIFIED_BY = "identified_by"
EDGE_ATTACHED_TO = "attached_to"
EDGE_CONTAINS = "contains"
EDGE_SCANNED = "scanned"
EDGE_TRACKS = "tracks"


@dataclass(frozen=True)
class EntityRef:
    kind: str
    id: str
    label: str
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))


@dataclass(frozen=True)
class EdgeRef:
    kind: str
    source: str
    target: str
    directional: bool = True


@dataclass(frozen=True)
class EntityPlan:
    entities: Tuple[EntityRef, ...]
    edges: Tuple[EdgeRef, ...]

    def by_kind(self, kind: str) -> List[EntityRef]:
        return [e for e in self.entities if e.kind == kind]

    def first(self, kind: str) -> Optional[EntityRef]:
        matches = self.by_kind(kind)
        return matches[0] if matches else None

    def ids(self) -> List[str]:
        return [e.id for e in self.entities]


def _result_properties(result: InterpretationResult) -> Dict[str, Any]:
    return {k: v for k, v in {
        "sku": result.sku,
        "format": result.tag_format.name,
        "manufacturer": result.manufacturer,
        "materialId": result.material_id,
        "materialName": result.material_name,
        "colorName": result.color_name,
        "colorHex": result.color_hex,
        "weightG": result.spool_weight_g,
        "diameterMm": result.filament_diameter_mm,
        "lengthM": result.filament_length_m,
    }.items() if v is not None}


def build_scan_entities(result: Optional[InterpretationResult], decrypted: DecryptedScan) -> EntityPlan:
    """
    Builds the entity plan for a scan.

    The tag, its UID identifier and the scan occurrence are always planned.
    Tray, tray identifier, filament, core, spool and inventory entities are
    added only when the interpretation carries a tray UID.
    """
    uid = decrypted.uid_hex
    entities: List[EntityRef] = []
    edges: List[EdgeRef] = []

    tag = EntityRef(KIND_TAG, identity.tag_id(uid), f"RFID Tag {uid}",
                    {"technology": decrypted.technology, "uid": uid})
    tag_ident = EntityRef(KIND_IDENTIFIER, identity.identifier_id(ID_TYPE_TAG_UID, uid), uid,
                          {"idType": ID_TYPE_TAG_UID, "value": uid, "format": "hex"})
    scan_id = identity.build_id([("type", KIND_SCAN), ("tagUid", uid),
                                 ("timestamp", decrypted.timestamp.isoformat())])
    scan = EntityRef(KIND_SCAN, scan_id, f"Scan of {uid}",
                     {"timestamp": decrypted.timestamp.isoformat(), "result": decrypted.scan_result.name})
    entities += [tag, tag_ident, scan]
    edges += [EdgeRef(EDGE_IDENTIFIED_BY, tag.id, tag_ident.id),
              EdgeRef(EDGE_SCANNED, scan.id, tag.id)]

    if result is None or not result.tray_uid:
        logger.debug(f"Entity plan for {uid}: tag only ({len(entities)} entities)")
        return EntityPlan(tuple(entities), tuple(edges))

    tray_uid = result.tray_uid
    props = _result_properties(result)
    tray = EntityRef(KIND_TRAY, identity.tray_id(tray_uid), f"Tray {tray_uid}", {"trayUid": tray_uid})
    tray_ident = EntityRef(KIND_IDENTIFIER, identity.identifier_id(ID_TYPE_TRAY_UID, tray_uid), tray_uid,
                           {"idType": ID_TYPE_TRAY_UID, "value": tray_uid})
    filament = EntityRef(KIND_FILAMENT, identity.filament_id(tray_uid, result.material_id),
                         f"{result.material_name} {result.color_name}", props)
    core = EntityRef(KIND_CORE, identity.core_id(tray_uid), f"Core {tray_uid}", {"trayUid": tray_uid})
    spool = EntityRef(KIND_SPOOL, identity.spool_id(tray_uid), f"Spool {tray_uid}",
                      {"trayUid": tray_uid, "widthMm": result.spool_width_mm})
    inventory = EntityRef(KIND_INVENTORY, identity.inventory_id(filament.id), f"Inventory {result.sku}",
                          {"sku": result.sku})
    entities += [tray, tray_ident, filament, core, spool, inventory]
    edges += [
        EdgeRef(EDGE_IDENTIFIED_BY, tray.id, tray_ident.id),
        EdgeRef(EDGE_ATTACHED_TO, tag.id, tray.id),
        EdgeRef(EDGE_CONTAINS, tray.id, filament.id),
        EdgeRef(EDGE_CONTAINS, tray.id, core.id),
        EdgeRef(EDGE_CONTAINS, tray.id, spool.id),
        EdgeRef(EDGE_ATTACHED_TO, filament.id, core.id, directional=False),
        EdgeRef(EDGE_TRACKS, inventory.id, filament.id),
    ]
    logger.debug(f"Entity plan for {uid}: {len(entities)} entities, {len(edges)} edges")
    return EntityPlan(tuple(entities), tuple(edges))
