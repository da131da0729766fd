"""Advisory classification of an aggregate as an ordered rule table."""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from .aggregation import AggregateEntry, PopulationTotals
from .config import POPULATION_ALERT_THRESHOLD, SUBSTATION_KEY


class AdvisoryState(Enum):
    MAJOR_POPULATION_ALERT = "major_population_alert"
    INFRASTRUCTURE_POWER_ALERT = "infrastructure_power_alert"
    LOW_DENSITY_MONITOR = "low_density_monitor"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    AdvisoryState.MAJOR_POPULATION_ALERT: (
        "ALERTA MAYOR: Zona densamente poblada. Priorizar evacuación y protección "
        "de vidas humanas. Requerimiento alto de carros bomba."
    ),
    AdvisoryState.INFRASTRUCTURE_POWER_ALERT: (
        "ALERTA INFRAESTRUCTURA: Riesgo de corte de suministro eléctrico. "
        "Coordinar con empresas de energía."
    ),
    AdvisoryState.LOW_DENSITY_MONITOR: (
        "Zona de baja densidad. Monitorizar avance del fuego y proteger puntos aislados."
    ),
}

Predicate = Callable[[PopulationTotals, Sequence[AggregateEntry]], bool]


@dataclass(frozen=True)
class AdvisoryRule:
    priority: int
    predicate: Predicate
    outcome: AdvisoryState


def has_substation(entries: Sequence[AggregateEntry]) -> bool:
    """True when an electrical substation layer is among the entries."""
    return any(entry.key == SUBSTATION_KEY for entry in entries)


def default_rules(population_threshold: int = POPULATION_ALERT_THRESHOLD) -> tuple[AdvisoryRule, ...]:
    """Population, then power, then the monitoring fallback."""
    return (
        AdvisoryRule(1, lambda totals, entries: totals.population > population_threshold,
                     AdvisoryState.MAJOR_POPULATION_ALERT),
        AdvisoryRule(2, lambda totals, entries: has_substation(entries),
                     AdvisoryState.INFRASTRUCTURE_POWER_ALERT),
        AdvisoryRule(3, lambda totals, entries: True,
                     AdvisoryState.LOW_DENSITY_MONITOR),
    )


class RiskClassifier:
    """First matching rule, by ascending priority, decides the advisory."""

    def __init__(self, population_threshold: int = POPULATION_ALERT_THRESHOLD,
                 rules: Optional[Sequence[AdvisoryRule]] = None):
        self.population_threshold = population_threshold
        if rules is None:
            rules = default_rules(population_threshold)
        self.rules = tuple(sorted(rules, key=lambda r: r.priority))

    def classify(self, totals: PopulationTotals,
                 entries: Sequence[AggregateEntry]) -> AdvisoryState:
        for rule in self.rules:
            if rule.predicate(totals, entries):
                return rule.outcome
        return AdvisoryState.LOW_DENSITY_MONITOR


def classify(totals: PopulationTotals, entries: Sequence[AggregateEntry]) -> AdvisoryState:
    """Classify with the default thresholds and rule table."""
    return RiskClassifier().classify(totals, entries)
