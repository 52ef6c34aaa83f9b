from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from pygame.math import Vector2

from .errors import SurfaceError


class BodyKind(str, Enum):
    AGENT = "agent"
    RESOURCE = "resource"


class PairKind(str, Enum):
    AGENT_AGENT = "agent-agent"
    AGENT_RESOURCE = "agent-resource"
    RESOURCE_RESOURCE = "resource-resource"
    RESOURCE_AGENT = "resource-agent"

    @classmethod
    def of(cls, first: BodyKind, second: BodyKind) -> "PairKind":
        return _PAIR_KINDS[(first, second)]


_PAIR_KINDS = {
    (BodyKind.AGENT, BodyKind.AGENT): PairKind.AGENT_AGENT,
    (BodyKind.AGENT, BodyKind.RESOURCE): PairKind.AGENT_RESOURCE,
    (BodyKind.RESOURCE, BodyKind.RESOURCE): PairKind.RESOURCE_RESOURCE,
    (BodyKind.RESOURCE, BodyKind.AGENT): PairKind.RESOURCE_AGENT,
}


@dataclass(slots=True)
class _Body:
    kind: BodyKind
    owner_id: int
    center: Vector2
    radius: float
    cell: Tuple[int, int]


class Surface:
    """Circle bodies on a bounded plane, bucketed into square cells for overlap queries.

    Bodies are addressed by transient integer handles. Handles of removed bodies
    are handed out again, so callers must not keep a handle past the owner's
    removal.
    """

    def __init__(self, width: float, height: float, cell_size: float) -> None:
        self._width = width
        self._height = height
        self._cell_size = cell_size
        self._bodies: Dict[int, _Body] = {}
        self._cells: Dict[Tuple[int, int], List[int]] = {}
        self._free_handles: List[int] = []
        self._next_handle = 0
        self._max_radius = 0.0

    def __len__(self) -> int:
        return len(self._bodies)

    def __contains__(self, handle: object) -> bool:
        return handle in self._bodies

    def add_body(self, kind: BodyKind, owner_id: int, center: Vector2, radius: float) -> int:
        if self._free_handles:
            handle = self._free_handles.pop()
        else:
            handle = self._next_handle
            self._next_handle += 1
        center = Vector2(center)
        cell = self._cell_key(center)
        self._bodies[handle] = _Body(kind, owner_id, center, radius, cell)
        self._cells.setdefault(cell, []).append(handle)
        if radius > self._max_radius:
            self._max_radius = radius
        return handle

    def remove_body(self, handle: int) -> None:
        body = self._bodies.pop(handle, None)
        if body is None:
            raise SurfaceError(f"no body with handle {handle}")
        self._cells[body.cell].remove(handle)
        self._free_handles.append(handle)

    def owner(self, handle: int) -> Tuple[BodyKind, int]:
        body = self._body(handle)
        return body.kind, body.owner_id

    def get_radius(self, handle: int) -> float:
        return self._body(handle).radius

    def get_center(self, handle: int) -> Vector2:
        return Vector2(self._body(handle).center)

    def set_center(self, handle: int, center: Vector2) -> None:
        body = self._body(handle)
        body.center.update(center.x, center.y)
        self._rebucket(handle, body)

    def translate_wrap(self, handle: int, offset: Vector2) -> None:
        body = self._body(handle)
        body.center.update(
            (body.center.x + offset.x) % self._width,
            (body.center.y + offset.y) % self._height,
        )
        self._rebucket(handle, body)

    def find_overlap(self, handle: int) -> List[Tuple[int, PairKind]]:
        """Bodies whose circles intersect ``handle``'s, ordered by handle.

        Each entry carries the pair kind seen from the queried body, so an agent
        querying a resource yields ``AGENT_RESOURCE`` and never the reverse.
        """
        body = self._body(handle)
        reach = body.radius + self._max_radius
        cell_range = int(math.ceil(reach / self._cell_size))
        base_x, base_y = body.cell
        pos_x = body.center.x
        pos_y = body.center.y

        found: List[int] = []
        cells = self._cells
        for dx in range(-cell_range, cell_range + 1):
            for dy in range(-cell_range, cell_range + 1):
                bucket = cells.get((base_x + dx, base_y + dy))
                if not bucket:
                    continue
                for other_handle in bucket:
                    if other_handle == handle:
                        continue
                    other = self._bodies[other_handle]
                    offset_x = other.center.x - pos_x
                    offset_y = other.center.y - pos_y
                    limit = body.radius + other.radius
                    if offset_x * offset_x + offset_y * offset_y < limit * limit:
                        found.append(other_handle)
        found.sort()
        return [(other_handle, PairKind.of(body.kind, self._bodies[other_handle].kind)) for other_handle in found]

    def clear(self) -> None:
        self._bodies.clear()
        self._cells.clear()
        self._free_handles.clear()
        self._next_handle = 0
        self._max_radius = 0.0

    def _body(self, handle: int) -> _Body:
        body = self._bodies.get(handle)
        if body is None:
            raise SurfaceError(f"no body with handle {handle}")
        return body

    def _rebucket(self, handle: int, body: _Body) -> None:
        cell = self._cell_key(body.center)
        if cell == body.cell:
            return
        self._cells[body.cell].remove(handle)
        self._cells.setdefault(cell, []).append(handle)
        body.cell = cell

    def _cell_key(self, position: Vector2) -> Tuple[int, int]:
        return (int(position.x // self._cell_size), int(position.y // self._cell_size))
