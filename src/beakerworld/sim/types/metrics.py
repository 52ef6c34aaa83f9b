from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    resources: int
    births: int
    deaths: int
    average_energy: float
    heat_counts: List[int] = field(default_factory=list)
    heat_average_radius: List[float] = field(default_factory=list)
    deaths_by_cause: Dict[str, int] = field(default_factory=dict)
    tick_duration_ms: float = 0.0
