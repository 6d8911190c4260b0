# spool_rfid/catalog/tables.py

"""
Immutable catalog records and code tables.

Every lookup is an exact string match. An unknown code resolves to None;
callers that need a display string for it ask for a placeholder explicitly.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

from spool_rfid.core.exceptions import CatalogError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    code: str
    name: str
    description: str = ""


class CatalogTable:
    """
    Read-only mapping of short vendor codes to CatalogEntry records.

    Args:
        kind: Human label for the table (e.g. "material"), used in placeholders and logs.
        entries: Iterable of CatalogEntry.
    """

    def __init__(self, kind: str, entries: Iterable[CatalogEntry] = ()):
        self.kind = kind
        self._entries: Mapping[str, CatalogEntry] = MappingProxyType({e.code: e for e in entries})

    @classmethod
    def from_json(cls, kind: str, raw: Any) -> "CatalogTable":
        """
        Builds a table from `{code: {"name": .., "description": ..}}`.

        Raises:
            CatalogError: If the structure is not a mapping of mappings with a name.
        """
        if raw is None:
            return cls(kind)
        if not isinstance(raw, dict):
            raise CatalogError(f"'{kind}' table must be an object, got {type(raw).__name__}")
        entries = []
        for code, info in raw.items():
            if not isinstance(info, dict) or not isinstance(info.get("name"), str):
                raise CatalogError(f"'{kind}' entry '{code}' must be an object with a 'name' string")
            entries.append(CatalogEntry(code=str(code), name=info["name"],
                                        description=str(info.get("description", ""))))
        return cls(kind, entries)

    def resolve(self, code: str) -> Optional[CatalogEntry]:
        """Exact-match lookup. Never raises; unknown or non-string codes yield None."""
        if not isinstance(code, str):
            return None
        return self._entries.get(code)

    def is_known(self, code: str) -> bool:
        return self.resolve(code) is not None

    def all_codes(self) -> FrozenSet[str]:
        return frozenset(self._entries)

    def placeholder(self, code: str) -> CatalogEntry:
        """Entry used for display when a code is unknown. Never used for interpretation."""
        return CatalogEntry(code=code, name=f"Unknown {self.kind} ({code})", description="")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, code) -> bool:
        return self.is_known(code)

    def __repr__(self) -> str:
        return f"<CatalogTable {self.kind}: {len(self)} codes>"


@dataclass(frozen=True)
class ProductRecord:
    """One retail product keyed by its full tag code (e.g. 'GFA00:A00-K0')."""
    rfid_code: str
    sku: str
    material: str
    color: str
    hex: Optional[str] = None

    @property
    def material_id(self) -> str:
        return self.rfid_code.split(":", 1)[0]

    @property
    def variant_id(self) -> str:
        return self.rfid_code.split(":", 1)[1] if ":" in self.rfid_code else ""


@dataclass(frozen=True)
class CatalogSnapshot:
    """
    A complete, immutable set of catalog tables as loaded at one point in time.

    Interpreters receive a snapshot and never see a refresh in progress.
    """
    version: int = 0
    last_updated: str = ""
    materials: CatalogTable = field(default_factory=lambda: CatalogTable("material"))
    series: CatalogTable = field(default_factory=lambda: CatalogTable("series"))
    colors: CatalogTable = field(default_factory=lambda: CatalogTable("color"))
    creality_materials: CatalogTable = field(default_factory=lambda: CatalogTable("Creality material"))
    creality_suppliers: CatalogTable = field(default_factory=lambda: CatalogTable("Creality supplier"))
    open_materials: CatalogTable = field(default_factory=lambda: CatalogTable("open material"))
    products: Mapping[str, ProductRecord] = field(default_factory=dict)
    source: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "products", MappingProxyType(dict(self.products)))

    @classmethod
    def empty(cls, source: Optional[str] = None) -> "CatalogSnapshot":
        return cls(source=source)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[str] = None) -> "CatalogSnapshot":
        """
        Parses the catalog JSON document.

        Raises:
            CatalogError: On structural problems (wrong types, missing product keys).
        """
        if not isinstance(data, dict):
            raise CatalogError(f"Catalog root must be an object, got {type(data).__name__}")

        materials = CatalogTable.from_json("material", data.get("materials"))
        series = CatalogTable.from_json("series", data.get("series"))
        colors = CatalogTable.from_json("color", data.get("colors"))

        products: Dict[str, ProductRecord] = {}
        raw_products = data.get("products")
        if raw_products is None:
            raw_products = []
        if not isinstance(raw_products, list):
            raise CatalogError("'products' must be an array")
        for item in raw_products:
            if not isinstance(item, dict):
                raise CatalogError(f"Product entry must be an object, got {type(item).__name__}")
            missing = [k for k in ("rfidCode", "sku", "material", "color") if not item.get(k)]
            if missing:
                raise CatalogError(f"Product entry {item} missing required keys: {missing}")
            wrong_type = [k for k in ("rfidCode", "material", "color") if not isinstance(item[k], str)]
            if not isinstance(item["sku"], (str, int)) or isinstance(item["sku"], bool):
                wrong_type.append("sku")
            if item.get("hex") is not None and not isinstance(item["hex"], str):
                wrong_type.append("hex")
            if wrong_type:
                raise CatalogError(f"Product entry {item} has non-string values for: {wrong_type}")
            record = ProductRecord(rfid_code=item["rfidCode"], sku=str(item["sku"]),
                                   material=item["material"], color=item["color"], hex=item.get("hex"))
            if record.rfid_code in products:
                logger.warning(f"Duplicate product rfidCode '{record.rfid_code}'; keeping the last entry.")
            products[record.rfid_code] = record

            series_code, _, color_code = record.variant_id.partition("-")
            if not (materials.is_known(record.material_id) and series.is_known(series_code)
                    and colors.is_known(color_code)):
                logger.warning(f"Product {record.sku} has rfidCode '{record.rfid_code}' with codes "
                               f"missing from the code tables.")

        try:
            version = int(data.get("version", 0))
        except (TypeError, ValueError) as e:
            raise CatalogError(f"'version' must be an integer: {e}") from e

        return cls(
            version=version,
            last_updated=str(data.get("lastUpdated", "")),
            materials=materials,
            series=series,
            colors=colors,
            creality_materials=CatalogTable.from_json("Creality material", data.get("crealityMaterials")),
            creality_suppliers=CatalogTable.from_json("Creality supplier", data.get("crealitySuppliers")),
            open_materials=CatalogTable.from_json("open material", data.get("openMaterials")),
            products=products,
            source=source,
        )

    def product_for(self, rfid_code: str) -> Optional[ProductRecord]:
        """Exact-match product lookup by full tag code."""
        if not isinstance(rfid_code, str):
            return None
        return self.products.get(rfid_code)

    def __repr__(self) -> str:
        return (f"<CatalogSnapshot v{self.version} ({self.last_updated}) materials={len(self.materials)} "
                f"series={len(self.series)} colors={len(self.colors)} products={len(self.products)}>")
