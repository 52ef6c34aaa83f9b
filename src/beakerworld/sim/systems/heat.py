from __future__ import annotations

import math
from dataclasses import dataclass


def heat_class(radius: float, min_radius: float, max_radius: float, num_buckets: int) -> int:
    """Map a radius onto one of ``num_buckets`` equal-width bands of ``[min_radius, max_radius]``.

    Radii at or below ``min_radius`` land in band 0 and radii at or above
    ``max_radius`` in the last band. A radius sitting exactly on an interior
    band edge belongs to the lower band.
    """
    if radius <= min_radius:
        return 0
    if radius >= max_radius:
        return num_buckets - 1
    width = (max_radius - min_radius) / num_buckets
    band = int(math.ceil((radius - min_radius) / width)) - 1
    return max(0, min(num_buckets - 1, band))


@dataclass(frozen=True, slots=True)
class HeatScale:
    min_radius: float
    max_radius: float
    buckets: int

    def __call__(self, radius: float) -> int:
        return heat_class(radius, self.min_radius, self.max_radius, self.buckets)

    @property
    def resource_heat(self) -> int:
        # Resources sit one band past the agent bands.
        return self.buckets
