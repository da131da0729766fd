"""Impact buffer construction around a selected fire polygon."""
from dataclasses import dataclass
import logging
from typing import Any

import geopandas as gpd
from pyproj.exceptions import CRSError
from shapely.errors import ShapelyError
from shapely.geometry import mapping
from shapely.validation import make_valid

from .config import BUFFER_QUAD_SEGS, BUFFER_RADIUS_KM, WGS84
from .features import Feature
from .utils import is_geographic, is_positive_number, km_to_meters

logger = logging.getLogger(__name__)


class GeometryError(ValueError):
    """Buffer construction failed: degenerate input or a geometry library fault."""


@dataclass(frozen=True)
class BufferGeometry:
    """Buffer polygon in WGS84, plus what it was built from."""

    geometry: Any
    radius_km: float
    projected_crs: Any
    source: Feature

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """(minx, miny, maxx, maxy) for fitting a map view."""
        return tuple(self.geometry.bounds)

    def to_geojson(self) -> dict:
        return {
            "type": "Feature",
            "geometry": mapping(self.geometry),
            "properties": {"radius_km": self.radius_km},
        }

    def to_frame(self) -> gpd.GeoDataFrame:
        return gpd.GeoDataFrame(
            {"radius_km": [self.radius_km]}, geometry=[self.geometry], crs=WGS84,
        )


class GeometryBufferService:
    """Expand a feature's geometry outward by a metric radius.

    The geometry is buffered in its local UTM zone so the radius is in
    meters, then brought back to the source CRS.
    """

    def __init__(self, crs=WGS84, quad_segs: int = BUFFER_QUAD_SEGS):
        self.crs = crs
        self.quad_segs = quad_segs

    def buffer(self, feature: Feature, radius_km: float = BUFFER_RADIUS_KM) -> BufferGeometry:
        if not is_positive_number(radius_km):
            raise GeometryError(f"Buffer radius must be a positive number, got {radius_km!r}")
        if feature is None or feature.is_empty:
            raise GeometryError("Feature has no geometry to buffer")

        geom = feature.geometry
        try:
            if not geom.is_valid:
                geom = make_valid(geom)
                if geom.is_empty:
                    raise GeometryError("Feature geometry is invalid and cannot be repaired")
            series = gpd.GeoSeries([geom], crs=self.crs)
            utm_crs = series.estimate_utm_crs()
            projected = series.to_crs(utm_crs)
            # UTM axes are always meters
            distance = km_to_meters(radius_km)
            buffered = projected.buffer(distance, self.quad_segs).to_crs(self.crs)
            result = buffered.iloc[0]
        except GeometryError:
            raise
        except (ShapelyError, CRSError, RuntimeError, ValueError) as e:
            raise GeometryError(f"Buffer construction failed: {e}") from e

        if result is None or result.is_empty:
            raise GeometryError("Buffer construction produced an empty geometry")
        if is_geographic(self.crs) and _spans_antimeridian(geom, result):
            raise GeometryError("Buffer crosses the antimeridian and would wrap around the globe")

        logger.debug("Buffer built: %.3f km in %s", radius_km, utm_crs)
        return BufferGeometry(
            geometry=result,
            radius_km=float(radius_km),
            projected_crs=utm_crs,
            source=feature,
        )


def _spans_antimeridian(source, buffered) -> bool:
    """True when reprojecting back to degrees split the buffer across +/-180.

    A buffer of a few kilometers cannot legitimately be more than half the
    globe wider than its source.
    """
    source_width = source.bounds[2] - source.bounds[0]
    buffered_width = buffered.bounds[2] - buffered.bounds[0]
    return buffered_width - source_width > 180.0
