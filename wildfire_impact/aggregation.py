"""Intersection counts and population sums inside an impact buffer."""
from dataclasses import dataclass
import logging

from shapely.errors import ShapelyError
from shapely.prepared import prep

from .buffering import BufferGeometry
from .catalog import Layer, LayerCatalog
from .config import HOUSEHOLD_FIELD, POPULATION_FIELD

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregateEntry:
    key: str
    name: str
    count: int
    classification: str


@dataclass(frozen=True)
class PopulationTotals:
    population: int = 0
    households: int = 0


@dataclass(frozen=True)
class Aggregate:
    totals: PopulationTotals
    entries: tuple[AggregateEntry, ...]


class IntersectionAggregator:
    """Scan every cataloged layer against a buffer polygon.

    Each feature is tested once. Population features contribute their
    person/household attributes; all other layers contribute a count and
    appear in the entries only when that count is non-zero.
    """

    def __init__(self, population_field: str = POPULATION_FIELD,
                 household_field: str = HOUSEHOLD_FIELD):
        self.population_field = population_field
        self.household_field = household_field

    def aggregate(self, buffer: BufferGeometry, catalog: LayerCatalog) -> Aggregate:
        area = prep(buffer.geometry)
        population = 0
        households = 0
        entries = []

        for layer in catalog.layers():
            hits = self._intersecting(area, layer)
            if layer.spec.population_weighted:
                for feature in hits:
                    population += feature.int_attribute(self.population_field)
                    households += feature.int_attribute(self.household_field)
            elif hits:
                entries.append(AggregateEntry(
                    key=layer.key,
                    name=layer.name,
                    count=len(hits),
                    classification=layer.classification,
                ))

        return Aggregate(PopulationTotals(population, households), tuple(entries))

    def _intersecting(self, area, layer: Layer) -> list:
        hits = []
        for i, feature in enumerate(layer.features):
            if feature.is_empty:
                continue
            try:
                if area.intersects(feature.geometry):
                    hits.append(feature)
            except ShapelyError as e:
                logger.warning("%s feature %d skipped: %s", layer.name, i, e)
        return hits
