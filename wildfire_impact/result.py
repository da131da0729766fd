"""Analysis result record handed to presentation."""
from dataclasses import dataclass
from typing import Optional

from .aggregation import AggregateEntry
from .classifier import AdvisoryState
from .config import CRITICAL

NO_INFRASTRUCTURE_TEXT = "Sin infraestructura crítica detectada"


@dataclass(frozen=True)
class AnalysisResult:
    affected_population: int
    affected_households: int
    infrastructure: tuple[AggregateEntry, ...]
    advisory: AdvisoryState
    fire_year: Optional[int] = None
    radius_km: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "fire_year": self.fire_year,
            "radius_km": self.radius_km,
            "affected_population": self.affected_population,
            "affected_households": self.affected_households,
            "infrastructure": [
                {"name": e.name, "count": e.count, "classification": e.classification}
                for e in self.infrastructure
            ],
            "advisory": self.advisory.name,
            "advisory_text": self.advisory.message,
        }


def format_summary(result: AnalysisResult) -> list[str]:
    """Text lines for the population stats, risk list and advisory."""
    lines = [
        f"  Affected population: {result.affected_population:,}",
        f"  Affected households: {result.affected_households:,}",
        "  Infrastructure at risk:",
    ]
    if not result.infrastructure:
        lines.append(f"    {NO_INFRASTRUCTURE_TEXT}")
    for entry in result.infrastructure:
        badge = "!!" if entry.classification == CRITICAL else " !"
        lines.append(f"    [{badge}] {entry.name}: {entry.count}")
    lines.append(f"  Advisory ({result.advisory.name}):")
    lines.append(f"    {result.advisory.message}")
    return lines
