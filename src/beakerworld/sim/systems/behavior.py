from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, Protocol

from pygame.math import Vector2

from ..core.agent import Agent, Program
from ..core.config import ProgramConfig
from ..core.rng import DeterministicRng

if TYPE_CHECKING:
    from ..core.world import World

SPIN_DEGREES = 5.0
STEP_LENGTH = 1.0

INSTRUCTIONS = ("vroom", "spin_left", "spin_right", "consume", "nop")


class BehaviorEngine(Protocol):
    def execute(self, world: World, agent_id: int, cycle_budget: int) -> None:
        ...


def random_program(rng: DeterministicRng, config: ProgramConfig) -> Program:
    span = config.max_program_length - config.min_program_length + 1
    length = config.min_program_length + rng.next_int(span)
    return tuple(INSTRUCTIONS[rng.next_int(len(INSTRUCTIONS))] for _ in range(length))


def heading_vector(facing: float, length: float = 1.0) -> Vector2:
    vector = Vector2()
    vector.from_polar((length, facing))
    return vector


def _vroom(world: World, agent: Agent) -> None:
    world._surface.translate_wrap(agent.handle, heading_vector(agent.facing, STEP_LENGTH))


def _spin_left(world: World, agent: Agent) -> None:
    agent.facing = (agent.facing + SPIN_DEGREES) % 360.0


def _spin_right(world: World, agent: Agent) -> None:
    agent.facing = (agent.facing - SPIN_DEGREES) % 360.0


def _consume(world: World, agent: Agent) -> None:
    world.consume(agent.id)


def _nop(world: World, agent: Agent) -> None:
    pass


class ScriptedBehavior:
    """Runs an agent's program round-robin, one instruction per cycle.

    The execution pointer lives on ``agent.core`` and carries over between
    ticks, so a program longer than the cycle budget resumes where it stopped.
    """

    def __init__(self) -> None:
        self._ops: Dict[str, Callable[[World, Agent], None]] = {
            "vroom": _vroom,
            "spin_left": _spin_left,
            "spin_right": _spin_right,
            "consume": _consume,
            "nop": _nop,
        }

    def execute(self, world: World, agent_id: int, cycle_budget: int) -> None:
        agent = world.agents.get(agent_id)
        program = agent.program
        if not program:
            return
        core = agent.core
        for _ in range(cycle_budget):
            instruction = program[core.pointer % len(program)]
            core.pointer = (core.pointer + 1) % len(program)
            core.cycles += 1
            self._ops[instruction](world, agent)
