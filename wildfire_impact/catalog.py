"""Layer catalog: the fixed, ordered set of exposure layers."""
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional

import geopandas as gpd

from .config import CLASSIFICATIONS, FIRE_SOURCES, LAYER_SOURCES, WGS84
from .features import Feature, features_from_frame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayerSpec:
    """Declaration of one cataloged layer."""

    key: str
    display_name: str
    classification: str
    source: str
    population_weighted: bool = False

    def __post_init__(self):
        if not self.display_name or not self.display_name.strip():
            raise ValueError(f"Layer {self.key!r} needs a display name")
        if self.classification not in CLASSIFICATIONS:
            raise ValueError(
                f"Layer {self.key!r} classification must be one of {CLASSIFICATIONS}, "
                f"got {self.classification!r}"
            )


@dataclass(frozen=True)
class Layer:
    spec: LayerSpec
    features: tuple[Feature, ...] = ()
    available: bool = True

    @property
    def key(self) -> str:
        return self.spec.key

    @property
    def name(self) -> str:
        return self.spec.display_name

    @property
    def classification(self) -> str:
        return self.spec.classification

    def __len__(self) -> int:
        return len(self.features)

    @classmethod
    def missing(cls, spec: LayerSpec) -> "Layer":
        """Empty stand-in for a layer whose data could not be loaded."""
        return cls(spec, (), available=False)


def default_specs() -> tuple[LayerSpec, ...]:
    """Layer declarations from config, in risk-list order."""
    return tuple(LayerSpec(*entry) for entry in LAYER_SOURCES)


class LayerCatalog:
    """Read-only, ordered registry of layers.

    Missing data sources are kept as empty, unavailable layers so consumers
    never have to check for existence.
    """

    def __init__(self, layers: Iterable[Layer]):
        self._layers = tuple(layers)
        keys = [layer.key for layer in self._layers]
        if len(set(keys)) != len(keys):
            raise ValueError(f"Duplicate layer keys in catalog: {keys}")
        weighted = [layer.key for layer in self._layers if layer.spec.population_weighted]
        if len(weighted) > 1:
            raise ValueError(f"Only one population layer allowed, got {weighted}")

    def layers(self) -> tuple[Layer, ...]:
        return self._layers

    def get(self, key: str) -> Optional[Layer]:
        for layer in self._layers:
            if layer.key == key:
                return layer
        return None

    def population_layer(self) -> Optional[Layer]:
        for layer in self._layers:
            if layer.spec.population_weighted:
                return layer
        return None

    def infrastructure_layers(self) -> tuple[Layer, ...]:
        return tuple(l for l in self._layers if not l.spec.population_weighted)

    def missing_keys(self) -> list[str]:
        return [layer.key for layer in self._layers if not layer.available]

    def __iter__(self):
        return iter(self._layers)

    def __len__(self) -> int:
        return len(self._layers)

    @classmethod
    def from_frames(
        cls,
        specs: Iterable[LayerSpec],
        frames: Mapping[str, Optional[gpd.GeoDataFrame]],
    ) -> "LayerCatalog":
        """Build a catalog from in-memory GeoDataFrames keyed by layer key."""
        layers = []
        for spec in specs:
            gdf = frames.get(spec.key)
            if gdf is None:
                layers.append(Layer.missing(spec))
                continue
            layers.append(Layer(spec, features_from_frame(_to_wgs84(gdf))))
        return cls(layers)


def _to_wgs84(gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    if gdf.crs is None:
        return gdf.set_crs(WGS84)
    return gdf.to_crs(WGS84)


def read_layer_frame(path: Path) -> Optional[gpd.GeoDataFrame]:
    """Read one layer file; None when absent or unreadable."""
    if not path.exists():
        logger.warning("Layer source not found: %s", path)
        return None
    try:
        gdf = gpd.read_file(path)
    except Exception as e:
        logger.warning("Could not read layer %s: %s", path.name, e)
        return None
    if gdf.crs is None:
        logger.warning("%s has no CRS; assuming %s", path.name, WGS84)
    return _to_wgs84(gdf)


def load_catalog(data_dir: Path, specs: Optional[Iterable[LayerSpec]] = None) -> LayerCatalog:
    """Load every declared layer from data_dir. A missing layer never aborts the rest."""
    specs = tuple(specs) if specs is not None else default_specs()
    frames = {spec.key: read_layer_frame(Path(data_dir) / spec.source) for spec in specs}
    catalog = LayerCatalog.from_frames(specs, frames)
    for layer in catalog:
        if layer.available:
            logger.info("  %s: %d features", layer.name, len(layer))
        else:
            logger.info("  %s: not available", layer.name)
    return catalog


def load_fire_features(data_dir: Path, sources=FIRE_SOURCES) -> dict[int, tuple[Feature, ...]]:
    """Load selectable fire polygons per year; absent years map to no features."""
    fires = {}
    for year, filename in sources:
        gdf = read_layer_frame(Path(data_dir) / filename)
        fires[year] = features_from_frame(gdf) if gdf is not None else ()
    return fires
