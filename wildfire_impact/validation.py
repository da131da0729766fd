"""Validation: layer sources and buffer geometry."""
from pathlib import Path
from typing import Iterable, Optional

import geopandas as gpd
from shapely.geometry import Point

from .buffering import BufferGeometry
from .catalog import LayerSpec, default_specs
from .config import FIRE_SOURCES, WGS84
from .utils import km_to_meters


def validate_layer_sources(data_dir: Path, specs: Optional[Iterable[LayerSpec]] = None) -> dict:
    """Check which declared layer files exist, are readable and carry a CRS.

    Missing layers do not make the catalog unusable; `valid` only reports
    whether every declared layer is present and georeferenced.
    """
    specs = tuple(specs) if specs is not None else default_specs()
    data_dir = Path(data_dir)
    missing = []
    missing_crs = []
    unreadable = []
    found = 0
    for spec in specs:
        path = data_dir / spec.source
        if not path.exists():
            missing.append(spec.source)
            continue
        try:
            gdf = gpd.read_file(path)
        except Exception as e:
            unreadable.append(f"{spec.source}: {e}")
            continue
        found += 1
        if gdf.crs is None:
            missing_crs.append(spec.source)
    return {
        "valid": not missing and not missing_crs and not unreadable,
        "count": len(specs),
        "found": found,
        "missing": missing,
        "missing_crs": missing_crs,
        "unreadable": unreadable,
    }


def validate_fire_sources(data_dir: Path, sources=FIRE_SOURCES) -> dict:
    """Map each fire year to whether its polygons file exists."""
    data_dir = Path(data_dir)
    years = {year: (data_dir / filename).exists() for year, filename in sources}
    return {"valid": any(years.values()), "years": years}


def validate_buffer(buffer: BufferGeometry, tolerance_m: float = 5.0) -> dict:
    """Check the buffer is valid and its boundary sits radius_km from the source.

    Distances are measured in the projected CRS the buffer was built in.
    Boundary vertices of a round buffer lie on the offset curve, so each
    should be within tolerance of the expected radius.
    """
    expected_m = km_to_meters(buffer.radius_km)
    frame = gpd.GeoSeries([buffer.geometry, buffer.source.geometry], crs=WGS84)
    projected = frame.to_crs(buffer.projected_crs)
    buffer_proj, source_proj = projected.iloc[0], projected.iloc[1]

    rings = [buffer_proj] if buffer_proj.geom_type == "Polygon" else list(buffer_proj.geoms)
    distances = [
        source_proj.distance(Point(xy))
        for poly in rings
        for xy in poly.exterior.coords
    ]
    if not distances:
        return {"valid": False, "expected_radius_m": expected_m}
    min_m = min(distances)
    max_m = max(distances)
    radius_diff = max(abs(min_m - expected_m), abs(max_m - expected_m))
    return {
        "valid": bool(buffer.geometry.is_valid) and radius_diff < tolerance_m,
        "expected_radius_m": expected_m,
        "min_radius_m": round(min_m, 2),
        "max_radius_m": round(max_m, 2),
        "radius_diff": round(radius_diff, 2),
        "crs": buffer.projected_crs,
    }
