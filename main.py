#!/usr/bin/env python3
"""
Wildfire Impact Analysis
========================
Buffer a burned-area polygon, count exposed population and infrastructure,
and print the advisory for emergency management.

Usage:
    python main.py                          # first 2026 fire, 1 km buffer
    python main.py --year 2023 --index 4    # fifth polygon of the 2023 fires
    python main.py --radius-km 2 --json
"""
import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from wildfire_impact.config import (
    BUFFER_RADIUS_KM,
    DATA_DIR,
    FIRE_SOURCES,
    MODE_CITIZEN,
    MODE_MANAGEMENT,
    POPULATION_ALERT_THRESHOLD,
)
from wildfire_impact.catalog import load_catalog, load_fire_features
from wildfire_impact.classifier import RiskClassifier
from wildfire_impact.controller import SelectionController
from wildfire_impact.result import format_summary
from wildfire_impact.validation import (
    validate_buffer,
    validate_fire_sources,
    validate_layer_sources,
)


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Wildfire impact analysis: buffer a fire polygon and aggregate exposure",
    )
    p.add_argument(
        "--data-dir", type=Path, default=DATA_DIR,
        help=f"Directory with the GeoJSON layers (default: {DATA_DIR})",
    )
    p.add_argument(
        "--year", type=int, default=FIRE_SOURCES[0][0],
        choices=[year for year, _ in FIRE_SOURCES],
        help="Fire season to select from (default: %(default)s)",
    )
    p.add_argument(
        "--index", type=int, default=0,
        help="Index of the fire polygon within that season (default: 0)",
    )
    p.add_argument(
        "--radius-km", type=float, default=BUFFER_RADIUS_KM,
        help=f"Impact buffer radius in kilometers (default: {BUFFER_RADIUS_KM})",
    )
    p.add_argument(
        "--population-threshold", type=int, default=POPULATION_ALERT_THRESHOLD,
        help=f"Affected population above which a major alert is raised "
             f"(default: {POPULATION_ALERT_THRESHOLD})",
    )
    p.add_argument(
        "--mode", choices=[MODE_MANAGEMENT, MODE_CITIZEN], default=MODE_MANAGEMENT,
        help="Operating mode; selections are ignored in citizen mode",
    )
    p.add_argument(
        "--buffer-out", type=Path, default=None,
        help="Write the impact buffer to this GeoJSON file",
    )
    p.add_argument("--json", action="store_true", help="Print the result as JSON")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    print("=" * 60)
    print("Wildfire Impact Analysis")
    print("=" * 60)
    print(f"  Data:      {args.data_dir}")
    print(f"  Fire:      {args.year} #{args.index}")
    print(f"  Buffer:    {args.radius_km} km")
    print(f"  Threshold: {args.population_threshold} people")

    # ── 1) Validate layer sources ──────────────────────────────
    print("\n[1/4] Validating layer sources...")
    layers_result = validate_layer_sources(args.data_dir)
    print(f"  Layers: {layers_result['found']}/{layers_result['count']} found")
    for name in layers_result["missing"]:
        print(f"    missing: {name}")
    for name in layers_result["missing_crs"]:
        print(f"    no CRS (assuming WGS84): {name}")
    fires_result = validate_fire_sources(args.data_dir)
    if not fires_result["valid"]:
        print("ERROR: no fire polygons found")
        return 1

    # ── 2) Load catalog and fires ──────────────────────────────
    print("\n[2/4] Loading layers...")
    catalog = load_catalog(args.data_dir)
    fires = load_fire_features(args.data_dir)
    candidates = fires.get(args.year, ())
    if not 0 <= args.index < len(candidates):
        print(f"ERROR: {args.year} has {len(candidates)} fire polygons, index {args.index} out of range")
        return 1

    # ── 3) Analyze selection ───────────────────────────────────
    print("\n[3/4] Analyzing selection...")
    controller = SelectionController(
        catalog,
        classifier=RiskClassifier(args.population_threshold),
        radius_km=args.radius_km,
        mode=args.mode,
    )
    result = controller.on_fire_feature_selected(candidates[args.index], args.year)
    if result is None:
        print("ERROR: no analysis produced (citizen mode or buffer failure)")
        return 1

    # ── 4) Buffer output ───────────────────────────────────────
    print("\n[4/4] Buffer geometry...")
    buffer_check = validate_buffer(controller.buffer)
    print(f"  {'✓' if buffer_check['valid'] else '✗'} Buffer: "
          f"{buffer_check.get('min_radius_m', 0):.0f}-{buffer_check.get('max_radius_m', 0):.0f} m "
          f"from fire edge")
    if args.buffer_out:
        args.buffer_out.parent.mkdir(parents=True, exist_ok=True)
        controller.buffer.to_frame().to_file(args.buffer_out, driver="GeoJSON")
        print(f"  Buffer written: {args.buffer_out}")

    # ── Summary ────────────────────────────────────────────────
    print("\n" + "=" * 60)
    print("IMPACT SUMMARY")
    print("=" * 60)
    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        for line in format_summary(result):
            print(line)
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
