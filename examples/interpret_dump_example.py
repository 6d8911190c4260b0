# examples/interpret_dump_example.py
import json
import logging
import sys

from spool_rfid import Interpreter, build_scan_entities, load_dump
from spool_rfid.core.status import ScanResult

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main(path: str) -> int:
    # --- Load a captured tag image (.bin or Proxmark .json) ---
    raw_scan = load_dump(path)
    logger.info(f"Loaded UID {raw_scan.uid_hex} with {raw_scan.sector_count} sectors")

    # --- Authenticate and interpret against the bundled catalog ---
    interpreter = Interpreter()
    report = interpreter.process(raw_scan)
    decrypted = report.decrypted

    print(f"Scan result: {report.scan_result}")
    print(f"Authenticated sectors: {sorted(decrypted.authentication.authenticated_sectors)}")
    for error in decrypted.errors:
        print(f"  ! {error}")

    if report.scan_result is not ScanResult.SUCCESS:
        return 1
    if report.result is None:
        print(f"Format {report.tag_format} recognised, but no exact catalog match.")
        return 2

    result = report.result
    print(f"SKU {result.sku}: {result.material_name} / {result.color_name} ({result.color_hex})")

    # --- Graph entities for the caller's persistence layer ---
    plan = build_scan_entities(result, decrypted)
    print(json.dumps([{"kind": e.kind, "id": e.id, "label": e.label} for e in plan.entities], indent=2))
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python interpret_dump_example.py <dump.bin|dump.json>")
        sys.exit(64)
    sys.exit(main(sys.argv[1]))
