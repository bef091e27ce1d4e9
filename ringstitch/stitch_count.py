"""Next-ring stitch counts and where the increases/decreases go."""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from .magic_ring import round_half_up
from .types import SpacingMode, StitchAction, StitchPlan

logger = logging.getLogger(__name__)

_EPS = 1e-6


def _circular_gap(a: int, b: int, size: int) -> int:
    d = abs(a - b)
    return min(d, size - d)


def _far_enough(idx: int, chosen: Sequence[int], size: int, min_gap: int) -> bool:
    return all(_circular_gap(idx, other, size) >= min_gap for other in chosen)


def _rng(seed: int) -> np.random.Generator:
    return np.random.Generator(np.random.Philox(key=int(seed) & 0xFFFFFFFFFFFFFFFF))


def _jagged_indices(count: int, size: int, seed: int) -> List[int]:
    rng = _rng(seed)
    base_gap = size / count
    jitter = max(0, int(math.floor(base_gap * 0.4)))
    min_gap = max(1, int(math.floor(base_gap * 0.5)))
    search_max = max(1, int(math.floor(base_gap)))

    chosen: List[int] = []
    for k in range(count):
        base = int(math.floor(k * base_gap))
        offset = int(rng.integers(-jitter, jitter + 1)) if jitter > 0 else 0
        j = (base + offset) % size
        if not _far_enough(j, chosen, size, min_gap):
            for step in range(1, search_max + 1):
                forward = (j + step) % size
                if _far_enough(forward, chosen, size, min_gap):
                    j = forward
                    break
                backward = (j - step) % size
                if _far_enough(backward, chosen, size, min_gap):
                    j = backward
                    break
        if _far_enough(j, chosen, size, min_gap):
            chosen.append(j)
            continue
        even = (k * size) // count
        if _far_enough(even, chosen, size, min_gap):
            chosen.append(even)

    # Fill whatever the gap rules refused with the most isolated free slots.
    while len(chosen) < count:
        best, best_score = -1, -1
        for j in range(size):
            if j in chosen:
                continue
            score = min((_circular_gap(j, other, size) for other in chosen), default=size)
            if score > best_score:
                best, best_score = j, score
        if best < 0:
            break
        chosen.append(best)
    return chosen


def place_actions(
    count: int,
    size: int,
    spacing_mode: SpacingMode = "even",
    seed: int = 0,
) -> List[int]:
    """Indices in ``0..size-1`` that receive one of ``count`` actions.

    ``count`` is clamped to ``size`` so every stitch carries at most one action.
    """

    if count <= 0 or size <= 0:
        return []
    count = min(count, size)
    if spacing_mode == "even" or count == 1:
        return [(k * size) // count for k in range(count)]
    return _jagged_indices(count, size, seed)


def count_next_stitches(
    current_count: int,
    current_circumference: float,
    next_circumference: float,
    width: float,
    increase_factor: float = 1.0,
    decrease_factor: float = 1.0,
    spacing_mode: SpacingMode = "even",
    seed: int = 0,
) -> StitchPlan:
    """Plan the transition from a ring of ``current_count`` stitches to the next one.

    The next ring gets as many stitches as fit its circumference at ``width``,
    scaled by ``increase_factor`` when the shape grows and ``decrease_factor``
    when it shrinks. The difference is spread over the current stitches either
    evenly or with seeded jitter (``"jagged"``).

    A ring more than twice as long as the current one cannot be reached in a
    single round; the plan then increases in every stitch and is marked
    ``saturated``.
    """

    current = max(1, int(round(current_count)))
    c0 = max(_EPS, float(current_circumference or 0.0))
    c1 = max(_EPS, float(next_circumference or 0.0))
    w = max(_EPS, float(width or 0.0))

    factor = increase_factor if c1 >= c0 else decrease_factor
    desired = max(1, round_half_up((c1 / w) * factor))
    delta = desired - current

    actions: List[StitchAction] = ["carry"] * current
    saturated = False
    if delta > current:
        logger.debug("Increase of %d exceeds %d stitches; capping at one per stitch", delta, current)
        delta = current
        saturated = True

    if delta > 0:
        for idx in place_actions(delta, current, spacing_mode, seed):
            actions[idx] = "increase"
    elif delta < 0:
        for idx in place_actions(-delta, current, spacing_mode, seed):
            actions[idx] = "decrease"

    increases = actions.count("increase")
    decreases = actions.count("decrease")
    return StitchPlan(
        actions=tuple(actions),
        current_count=current,
        next_count=current + increases - decreases,
        saturated=saturated,
    )


def step_seed(key: Optional[float]) -> int:
    """Seed of the jagged placement for the ring at ``key``."""

    if key is None or not math.isfinite(key):
        return 0
    return int(math.floor(key * 1000))


__all__ = ["count_next_stitches", "place_actions", "step_seed"]
