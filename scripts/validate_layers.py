#!/usr/bin/env python3
"""
Validate layer data before analysis.
Reports which exposure layers and fire seasons are present in the data directory.
"""
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from wildfire_impact.config import DATA_DIR
from wildfire_impact.validation import validate_fire_sources, validate_layer_sources


def main() -> int:
    data_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else DATA_DIR
    print(f"Validating layers in {data_dir}...")

    layers = validate_layer_sources(data_dir)
    print(f"Layers: {'VALID' if layers['valid'] else 'INCOMPLETE'}")
    print(f"  Found: {layers['found']}/{layers['count']}")
    if layers["missing"]:
        print(f"  Missing (analysed as empty): {', '.join(layers['missing'])}")
    if layers["missing_crs"]:
        print(f"  Missing CRS (assumed WGS84): {', '.join(layers['missing_crs'])}")
    for problem in layers["unreadable"]:
        print(f"  Unreadable: {problem}")

    fires = validate_fire_sources(data_dir)
    print(f"Fire seasons: {'VALID' if fires['valid'] else 'NONE FOUND'}")
    for year, present in fires["years"].items():
        print(f"  {year}: {'present' if present else 'missing'}")

    if not fires["valid"]:
        return 1
    print("Layer data usable.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
