"""Selection controller state machine tests."""
import logging
import pytest
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
import sys
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import geopandas as gpd
from shapely.geometry import LineString, Point, Polygon, box

from wildfire_impact.aggregation import AggregateEntry
from wildfire_impact.catalog import LayerCatalog, default_specs
from wildfire_impact.classifier import AdvisoryState, RiskClassifier
from wildfire_impact.controller import (
    ControllerState,
    OperatingMode,
    SelectedFire,
    SelectionController,
)
from wildfire_impact.features import Feature


def _frame(geometries, **columns):
    return gpd.GeoDataFrame(columns, geometry=geometries, crs="EPSG:4326")


@pytest.fixture
def catalog():
    """Exposure layers around a fire near Valparaiso; roads lie far away."""
    return LayerCatalog.from_frames(default_specs(), {
        "population": _frame(
            [Point(-71.495, -33.045), Point(-71.485, -33.045), Point(-71.30, -33.0)],
            n_per=[300, "250", 9000],
            n_hog=[90, "80", 3000],
        ),
        "schools": _frame([Point(-71.495, -33.046), Point(-71.486, -33.044), Point(-71.503, -33.045)]),
        "roads": _frame([LineString([(-71.30, -33.0), (-71.20, -33.0)])]),
        "substations": _frame([Point(-71.488, -33.041)]),
    })


@pytest.fixture
def fire_a():
    return Feature(box(-71.50, -33.05, -71.49, -33.04), {"id": "A"})


@pytest.fixture
def fire_b():
    return Feature(box(-71.31, -33.01, -71.30, -33.00), {"id": "B"})


class Recorder:
    def __init__(self):
        self.results = []
        self.buffers = []

    def on_analysis_ready(self, result):
        self.results.append(result)

    def on_buffer_geometry_changed(self, previous, next_):
        self.buffers.append((previous, next_))


def _controller(catalog, recorder, mode=OperatingMode.MANAGEMENT, **kwargs):
    return SelectionController(
        catalog,
        mode=mode,
        on_analysis_ready=recorder.on_analysis_ready,
        on_buffer_geometry_changed=recorder.on_buffer_geometry_changed,
        **kwargs,
    )


def test_successful_selection(catalog, fire_a):
    """A management-mode selection buffers, aggregates, classifies and emits once."""
    recorder = Recorder()
    controller = _controller(catalog, recorder)
    assert controller.state is ControllerState.IDLE

    result = controller.on_fire_feature_selected(fire_a, 2026)

    assert controller.state is ControllerState.READY
    assert controller.current_result is result
    assert controller.selected_fire == SelectedFire(fire_a, 2026)
    assert recorder.results == [result]
    assert len(recorder.buffers) == 1
    previous, new = recorder.buffers[0]
    assert previous is None
    assert new is controller.buffer

    assert result.affected_population == 550
    assert result.affected_households == 170
    assert result.infrastructure == (
        AggregateEntry("schools", "Escuelas", 3, "critical"),
        AggregateEntry("substations", "Subestaciones Eléc.", 1, "critical"),
    )
    assert result.advisory is AdvisoryState.INFRASTRUCTURE_POWER_ALERT
    assert result.fire_year == 2026
    assert result.radius_km == 1.0


def test_citizen_mode_ignores_selection(catalog, fire_a):
    """Citizen mode is a no-op: no state change and nothing emitted."""
    recorder = Recorder()
    controller = _controller(catalog, recorder, mode="ciudadania")
    assert controller.on_fire_feature_selected(fire_a, 2026) is None
    assert controller.state is ControllerState.IDLE
    assert controller.current_result is None
    assert controller.buffer is None
    assert recorder.results == []
    assert recorder.buffers == []


def test_no_mode_ignores_selection(catalog, fire_a):
    """Before a mode is chosen, selections are ignored."""
    recorder = Recorder()
    controller = _controller(catalog, recorder, mode=None)
    assert controller.on_fire_feature_selected(fire_a, 2026) is None
    assert controller.state is ControllerState.IDLE


def test_new_selection_replaces_buffer(catalog, fire_a, fire_b):
    """A second selection hands the old buffer to the renderer for removal."""
    recorder = Recorder()
    controller = _controller(catalog, recorder)
    first = controller.on_fire_feature_selected(fire_a, 2026)
    buffer_a = controller.buffer
    second = controller.on_fire_feature_selected(fire_b, 2023)

    assert recorder.results == [first, second]
    assert recorder.buffers[1][0] is buffer_a
    assert recorder.buffers[1][1] is controller.buffer
    assert controller.current_result is second
    assert controller.selected_fire.year == 2023
    # fire B sits on the far population point and the road
    assert second.affected_population == 9000
    assert [e.key for e in second.infrastructure] == ["roads"]
    assert second.advisory is AdvisoryState.MAJOR_POPULATION_ALERT


def test_reentrant_selection_last_wins(catalog, fire_a, fire_b):
    """Selecting B while A is mid-cycle emits only B's result."""
    recorder = Recorder()
    controller = None

    def on_buffer(previous, next_):
        recorder.on_buffer_geometry_changed(previous, next_)
        if next_ is not None and next_.source is fire_a:
            controller.on_fire_feature_selected(fire_b, 2023)

    controller = SelectionController(
        catalog,
        mode=OperatingMode.MANAGEMENT,
        on_analysis_ready=recorder.on_analysis_ready,
        on_buffer_geometry_changed=on_buffer,
    )
    assert controller.on_fire_feature_selected(fire_a, 2026) is None

    assert len(recorder.results) == 1
    assert recorder.results[0].fire_year == 2023
    assert controller.current_result is recorder.results[0]
    assert controller.selected_fire.feature is fire_b
    assert controller.buffer.source is fire_b
    assert controller.state is ControllerState.READY


def test_geometry_failure_keeps_previous_result(catalog, fire_a, caplog):
    """A degenerate fire is logged and leaves the earlier analysis in place."""
    recorder = Recorder()
    controller = _controller(catalog, recorder)
    good = controller.on_fire_feature_selected(fire_a, 2026)
    buffer_a = controller.buffer

    with caplog.at_level(logging.ERROR, logger="wildfire_impact.controller"):
        assert controller.on_fire_feature_selected(Feature(Polygon()), 2017) is None

    assert controller.state is ControllerState.IDLE
    assert controller.current_result is good
    assert controller.buffer is buffer_a
    assert controller.selected_fire.feature is fire_a
    assert recorder.results == [good]
    assert len(recorder.buffers) == 1
    assert "2017" in caplog.text


def test_failure_from_idle_produces_nothing(catalog):
    """A failed first selection leaves the controller idle with no result."""
    recorder = Recorder()
    controller = _controller(catalog, recorder)
    assert controller.on_fire_feature_selected(Feature(None), 2026) is None
    assert controller.state is ControllerState.IDLE
    assert controller.current_result is None
    assert recorder.results == []


def test_leaving_management_clears_selection(catalog, fire_a):
    """Switching to citizen mode drops the selection and removes the buffer."""
    recorder = Recorder()
    controller = _controller(catalog, recorder)
    controller.on_fire_feature_selected(fire_a, 2026)
    buffer_a = controller.buffer

    controller.set_mode("ciudadania")

    assert controller.mode is OperatingMode.CITIZEN
    assert controller.state is ControllerState.IDLE
    assert controller.selected_fire is None
    assert controller.buffer is None
    assert recorder.buffers[-1] == (buffer_a, None)
    assert controller.on_fire_feature_selected(fire_a, 2026) is None
    assert len(recorder.results) == 1


def test_set_mode_management_enables_selection(catalog, fire_a):
    """Entering management mode later makes selections count."""
    recorder = Recorder()
    controller = _controller(catalog, recorder, mode=None)
    controller.set_mode("gestion")
    assert controller.mode is OperatingMode.MANAGEMENT
    assert controller.on_fire_feature_selected(fire_a, 2026) is not None


def test_unknown_mode_rejected(catalog):
    """Modes other than gestion and ciudadania are refused."""
    with pytest.raises(ValueError):
        SelectionController(catalog, mode="visitante")


def test_radius_and_threshold_are_configurable(catalog, fire_a):
    """Radius and alert threshold come from the controller and classifier."""
    recorder = Recorder()
    controller = _controller(
        catalog, recorder,
        radius_km=0.1,
        classifier=RiskClassifier(population_threshold=200),
    )
    result = controller.on_fire_feature_selected(fire_a, 2026)
    assert result.radius_km == 0.1
    # only the population point inside the fire remains within 100 m
    assert result.affected_population == 300
    assert result.advisory is AdvisoryState.MAJOR_POPULATION_ALERT


def test_works_without_listeners(catalog, fire_a):
    """Listeners are optional."""
    controller = SelectionController(catalog, mode="gestion")
    assert controller.on_fire_feature_selected(fire_a, 2026) is not None
    assert controller.state is ControllerState.READY


def test_failing_buffer_listener_restores_previous_state(catalog, fire_a, fire_b, caplog):
    """A renderer that raises aborts the cycle without leaving it half-applied."""
    recorder = Recorder()
    controller = _controller(catalog, recorder)
    good = controller.on_fire_feature_selected(fire_a, 2026)
    buffer_a = controller.buffer

    def renderer_down(previous, next_):
        raise RuntimeError("renderer down")

    controller.on_buffer_geometry_changed = renderer_down
    with caplog.at_level(logging.ERROR, logger="wildfire_impact.controller"):
        assert controller.on_fire_feature_selected(fire_b, 2023) is None

    assert controller.state is ControllerState.IDLE
    assert controller.current_result is good
    assert controller.buffer is buffer_a
    assert controller.selected_fire.feature is fire_a
    assert recorder.results == [good]
    assert "renderer down" in caplog.text


def test_failing_aggregator_returns_to_idle(catalog, fire_a):
    """An aggregation fault produces no result and no stuck ANALYZING state."""
    class BrokenAggregator:
        def aggregate(self, buffer, catalog):
            raise RuntimeError("layer scan failed")

    recorder = Recorder()
    controller = _controller(catalog, recorder, aggregator=BrokenAggregator())
    assert controller.on_fire_feature_selected(fire_a, 2026) is None
    assert controller.state is ControllerState.IDLE
    assert controller.current_result is None
    assert controller.buffer is None
    assert controller.selected_fire is None
    assert recorder.results == []


def test_failing_result_listener_keeps_result(catalog, fire_a, caplog):
    """The result is kept and returned even when the presentation listener raises."""
    def presentation_down(result):
        raise RuntimeError("dashboard down")

    controller = SelectionController(catalog, mode="gestion", on_analysis_ready=presentation_down)
    with caplog.at_level(logging.ERROR, logger="wildfire_impact.controller"):
        result = controller.on_fire_feature_selected(fire_a, 2026)

    assert result is not None
    assert controller.current_result is result
    assert controller.state is ControllerState.READY
    assert "dashboard down" in caplog.text
