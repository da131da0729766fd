"""Selection controller: owns the current fire selection and analysis slot."""
from dataclasses import dataclass
from enum import Enum
import logging
import threading
from typing import Callable, Optional

from .aggregation import IntersectionAggregator
from .buffering import BufferGeometry, GeometryBufferService, GeometryError
from .catalog import LayerCatalog
from .classifier import RiskClassifier
from .config import BUFFER_RADIUS_KM, MODE_CITIZEN, MODE_MANAGEMENT
from .features import Feature
from .result import AnalysisResult

logger = logging.getLogger(__name__)


class OperatingMode(Enum):
    MANAGEMENT = MODE_MANAGEMENT
    CITIZEN = MODE_CITIZEN


class ControllerState(Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    READY = "ready"


@dataclass(frozen=True)
class SelectedFire:
    feature: Feature
    year: int


AnalysisListener = Callable[[AnalysisResult], None]
BufferListener = Callable[[Optional[BufferGeometry], Optional[BufferGeometry]], None]


class SelectionController:
    """Drive buffer -> aggregate -> classify for each fire selection.

    Selections are only honored in management mode. The last selection
    wins: a selection made while a cycle is still running (for example from
    inside a listener) supersedes it and the older cycle emits nothing more.
    A failed cycle, whether from the buffer, the aggregation or a listener,
    is logged and leaves the previous result, selection and buffer in place.
    """

    def __init__(
        self,
        catalog: LayerCatalog,
        buffer_service: Optional[GeometryBufferService] = None,
        aggregator: Optional[IntersectionAggregator] = None,
        classifier: Optional[RiskClassifier] = None,
        radius_km: float = BUFFER_RADIUS_KM,
        mode=None,
        on_analysis_ready: Optional[AnalysisListener] = None,
        on_buffer_geometry_changed: Optional[BufferListener] = None,
    ):
        self.catalog = catalog
        self.buffer_service = buffer_service or GeometryBufferService()
        self.aggregator = aggregator or IntersectionAggregator()
        self.classifier = classifier or RiskClassifier()
        self.radius_km = radius_km
        self.on_analysis_ready = on_analysis_ready
        self.on_buffer_geometry_changed = on_buffer_geometry_changed

        self._lock = threading.RLock()
        self._generation = 0
        self.mode: Optional[OperatingMode] = _as_mode(mode)
        self.state = ControllerState.IDLE
        self.selected_fire: Optional[SelectedFire] = None
        self.buffer: Optional[BufferGeometry] = None
        self.current_result: Optional[AnalysisResult] = None

    def set_mode(self, mode) -> None:
        """Switch operating mode; leaving management drops the selection and buffer."""
        with self._lock:
            self.mode = _as_mode(mode)
            if self.mode is not OperatingMode.MANAGEMENT:
                self._clear_selection()

    def on_fire_feature_selected(self, feature: Feature, year: int) -> Optional[AnalysisResult]:
        with self._lock:
            if self.mode is not OperatingMode.MANAGEMENT:
                logger.debug("Fire selection ignored in %s mode", self.mode)
                return None

            self._generation += 1
            generation = self._generation
            self.state = ControllerState.ANALYZING

            try:
                buffer = self.buffer_service.buffer(feature, self.radius_km)
            except GeometryError as e:
                logger.error("Impact buffer for %s fire failed: %s", year, e)
                if generation == self._generation:
                    self.state = ControllerState.IDLE
                return None

            previous_fire = self.selected_fire
            previous = self.buffer
            self.selected_fire = SelectedFire(feature, year)
            self.buffer = buffer
            try:
                if self.on_buffer_geometry_changed is not None:
                    self.on_buffer_geometry_changed(previous, buffer)
                if generation != self._generation:
                    return None

                aggregate = self.aggregator.aggregate(buffer, self.catalog)
                advisory = self.classifier.classify(aggregate.totals, aggregate.entries)
            except Exception:
                logger.exception("Analysis of %s fire aborted", year)
                if generation == self._generation:
                    self.selected_fire = previous_fire
                    self.buffer = previous
                    self.state = ControllerState.IDLE
                return None

            result = AnalysisResult(
                affected_population=aggregate.totals.population,
                affected_households=aggregate.totals.households,
                infrastructure=aggregate.entries,
                advisory=advisory,
                fire_year=year,
                radius_km=buffer.radius_km,
            )
            self.current_result = result
            self.state = ControllerState.READY
            logger.info(
                "Fire %s: %d people, %d households, %d infrastructure layers, %s",
                year, result.affected_population, result.affected_households,
                len(result.infrastructure), advisory.name,
            )
            if self.on_analysis_ready is not None:
                try:
                    self.on_analysis_ready(result)
                except Exception:
                    logger.exception("Analysis listener failed for %s fire", year)
            return result

    def _clear_selection(self) -> None:
        self._generation += 1
        previous = self.buffer
        self.selected_fire = None
        self.buffer = None
        self.state = ControllerState.IDLE
        if previous is not None and self.on_buffer_geometry_changed is not None:
            self.on_buffer_geometry_changed(previous, None)


def _as_mode(mode) -> Optional[OperatingMode]:
    if mode is None or isinstance(mode, OperatingMode):
        return mode
    return OperatingMode(mode)
