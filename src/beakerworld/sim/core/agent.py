from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

Program = Tuple[str, ...]

# Records carry this id until a PopulationStore assigns a stable one.
UNASSIGNED = -1


@dataclass(slots=True)
class ExecutionCore:
    """Transient behavior-engine state; a newborn always starts from a fresh core."""

    pointer: int = 0
    cycles: int = 0


@dataclass(slots=True)
class Agent:
    handle: int
    energy: float
    heat: int
    facing: float = 0.0
    program: Program = ()
    core: ExecutionCore = field(default_factory=ExecutionCore)
    generation: int = 0
    parent_id: int | None = None
    born_tick: int = 0
    id: int = UNASSIGNED


@dataclass(slots=True)
class Resource:
    handle: int
    times_consumed: int = 0
    id: int = UNASSIGNED
