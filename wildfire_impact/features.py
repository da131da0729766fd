"""Features: a geometry plus read-only attributes."""
from dataclasses import dataclass, field
import math
from types import MappingProxyType
from typing import Any, Mapping

from shapely.geometry import shape


def coerce_int(value) -> int:
    """Coerce an attribute value to int, 0 when absent or unparsable.

    Floats truncate toward zero; numeric strings are parsed the same way.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            value = float(text)
        except ValueError:
            return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number)


@dataclass(frozen=True)
class Feature:
    """Immutable geometry + attributes pair, as loaded from a layer."""

    geometry: Any
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    def int_attribute(self, name: str) -> int:
        return coerce_int(self.attributes.get(name))

    @property
    def is_empty(self) -> bool:
        return self.geometry is None or self.geometry.is_empty

    @classmethod
    def from_geojson(cls, obj: Mapping[str, Any]) -> "Feature":
        """Build a Feature from a GeoJSON Feature mapping."""
        geom = obj.get("geometry")
        return cls(
            geometry=shape(geom) if geom else None,
            attributes=obj.get("properties") or {},
        )


def features_from_frame(gdf) -> tuple[Feature, ...]:
    """Convert GeoDataFrame rows to Features, in row order."""
    geom_col = gdf.geometry.name
    features = []
    for row in gdf.itertuples(index=False, name=None):
        values = dict(zip(gdf.columns, row))
        geometry = values.pop(geom_col, None)
        features.append(Feature(geometry, values))
    return tuple(features)
