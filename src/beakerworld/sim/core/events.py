"""Per-tick intents and the registries that keep them idempotent.

Discovery (the behavior and bookkeeping phases) only records intents here. The
tick controller drains the queue once discovery is complete, which is the only
point where agents and resources are removed or created.

The pending registries are the idempotency gates:

* ``pending_kill``: an agent id enters at most once per tick; only the first
  ``mark_kill`` enqueues a ``Kill``.
* ``pending_consume``: the first claimant of a resource wins for the tick.
* ``pending_birth``: ids queued to reproduce. ``mark_kill`` withdraws an id from
  it, so a ``Birth`` drained after the agent's ``Kill`` is dropped.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, Iterator, Set, Union


class DeathCause(str, Enum):
    STARVATION = "starvation"
    PREDATION = "predation"
    EVICTION = "eviction"


@dataclass(frozen=True, slots=True)
class Kill:
    agent_id: int
    cause: DeathCause


@dataclass(frozen=True, slots=True)
class Consume:
    resource_id: int
    claimant_id: int


@dataclass(frozen=True, slots=True)
class Birth:
    agent_id: int
    cost: float = 0.0


Event = Union[Kill, Consume, Birth]


class EventQueue:
    def __init__(self) -> None:
        self._events: Deque[Event] = deque()
        self.pending_kill: Set[int] = set()
        self.pending_birth: Set[int] = set()
        self.pending_consume: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    def is_pending_kill(self, agent_id: int) -> bool:
        return agent_id in self.pending_kill

    def is_claimed(self, resource_id: int) -> bool:
        return resource_id in self.pending_consume

    def mark_kill(self, agent_id: int, cause: DeathCause) -> bool:
        if agent_id in self.pending_kill:
            return False
        self.pending_kill.add(agent_id)
        self.pending_birth.discard(agent_id)
        self._events.append(Kill(agent_id, cause))
        return True

    def claim_resource(self, resource_id: int, claimant_id: int) -> bool:
        if resource_id in self.pending_consume:
            return False
        self.pending_consume[resource_id] = claimant_id
        self._events.append(Consume(resource_id, claimant_id))
        return True

    def mark_birth(self, agent_id: int, cost: float = 0.0) -> bool:
        if agent_id in self.pending_kill or agent_id in self.pending_birth:
            return False
        self.pending_birth.add(agent_id)
        self._events.append(Birth(agent_id, cost))
        return True

    def drain(self) -> Iterator[Event]:
        """Yield events strictly FIFO, including any appended while draining."""
        events = self._events
        while events:
            yield events.popleft()

    def reset(self) -> None:
        self._events.clear()
        self.pending_kill.clear()
        self.pending_birth.clear()
        self.pending_consume.clear()
