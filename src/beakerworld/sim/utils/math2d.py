from __future__ import annotations


def _clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))


def _safe_mean(total: float, count: int) -> float:
    return 0.0 if count == 0 else total / count
