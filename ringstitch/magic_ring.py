"""Magic ring: the stitch count and plane the chain starts from."""

from __future__ import annotations

import logging
import math
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .geometry import Coord, axial_offset, mean_axis_distance, normalized, polyline_centroid, to_vec3, vec
from .nodes import distribute_nodes
from .types import Handedness, MagicRing, Node, ScaffoldSegment

logger = logging.getLogger(__name__)

MIN_MAGIC_RING_STITCHES = 3
_RADIUS_EPS = 1e-6
_WIDTH_EPS = 1e-6
_MIN_RING_POINTS = 3


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _sample_radius(radius_at: Optional[Callable[[float], float]], key: float) -> float:
    if radius_at is None:
        return 0.0
    try:
        sampled = float(radius_at(key))
    except (ArithmeticError, TypeError, ValueError) as exc:
        logger.warning("Radius sampler failed at key=%s: %s", key, exc)
        return 0.0
    if not math.isfinite(sampled):
        return 0.0
    return max(0.0, sampled)


def compute_magic_ring(
    first_key: Optional[float],
    radius_at: Optional[Callable[[float], float]],
    start_center: Sequence[float] = (0.0, 0.0, 0.0),
    normal: Sequence[float] = (0.0, 1.0, 0.0),
    gauge_width: float = 1.0,
) -> MagicRing:
    """Stitch count of the ring closed at the start pole.

    The radius sampled at ``first_key`` is turned into a circumference and
    divided by the gauge width, never going below three stitches. A zero radius
    is replaced by a negligible epsilon so the count stays defined.
    """

    key = 0.0 if first_key is None else float(first_key)
    radius = _sample_radius(radius_at, key)
    if radius <= 0.0:
        logger.debug("Magic ring radius at key=%s is degenerate; using epsilon", key)
        radius = _RADIUS_EPS

    width = max(_WIDTH_EPS, float(gauge_width or 0.0))
    circumference = 2.0 * math.pi * radius
    stitch_count = max(MIN_MAGIC_RING_STITCHES, round_half_up(circumference / width))

    n = normalized(np.asarray(normal, dtype=float), fallback=np.array([0.0, 1.0, 0.0]))
    return MagicRing(
        stitch_count=stitch_count,
        center=to_vec3(vec(start_center)),
        normal=to_vec3(n),
        radius=radius,
    )


def magic_ring_radius(stitch_count: int, gauge_width: float, tighten_factor: float = 0.8) -> float:
    factor = min(2.0, max(0.1, float(tighten_factor or 0.8)))
    width = max(_WIDTH_EPS, float(gauge_width or 0.0))
    return stitch_count * width * factor / (2.0 * math.pi)


def magic_ring_placement(
    magic_ring: MagicRing,
    gauge_width: float,
    tighten_factor: float = 0.8,
    first_ring: Optional[Sequence[Sequence[float]]] = None,
) -> Tuple[Coord, float]:
    """Center and radius the magic ring stitches are laid out on.

    With a first ring of at least three points the stitches sit on that ring:
    the center is the start pole moved along the normal to the ring's height and
    the radius is the ring's mean distance to the axis. Otherwise they stay on
    the start pole's plane at the tightened gauge radius.
    """

    center = vec(magic_ring.center)
    normal = vec(magic_ring.normal)
    if first_ring is not None and len(first_ring) >= _MIN_RING_POINTS:
        centroid = polyline_centroid(first_ring)
        radius = mean_axis_distance(first_ring, center, normal)
        if centroid is not None and math.isfinite(radius) and radius > _RADIUS_EPS:
            return center + normal * axial_offset(centroid, center, normal), radius
        logger.debug("First ring is degenerate; keeping the magic ring on the pole plane")
    return center, magic_ring_radius(magic_ring.stitch_count, gauge_width, tighten_factor)


def magic_ring_nodes(
    magic_ring: MagicRing,
    gauge_width: float,
    handedness: Handedness = "right",
    tighten_factor: float = 0.8,
    first_ring: Optional[Sequence[Sequence[float]]] = None,
) -> List[Node]:
    """Place the magic ring stitches, on ``first_ring`` when one is given."""

    center, radius = magic_ring_placement(magic_ring, gauge_width, tighten_factor, first_ring)
    return distribute_nodes(
        magic_ring.stitch_count,
        center,
        magic_ring.normal,
        radius,
        handedness=handedness,
    )


def magic_ring_spokes(
    magic_ring: MagicRing,
    nodes: Sequence[Node],
    object_id: Optional[str] = None,
) -> List[ScaffoldSegment]:
    """One segment from the start pole to each magic ring stitch."""

    return [
        ScaffoldSegment(
            a=magic_ring.center,
            b=node.position,
            source=i,
            target=i,
            label="P→0",
            object_id=object_id,
        )
        for i, node in enumerate(nodes)
    ]


__all__ = [
    "MIN_MAGIC_RING_STITCHES",
    "compute_magic_ring",
    "magic_ring_nodes",
    "magic_ring_placement",
    "magic_ring_radius",
    "magic_ring_spokes",
    "round_half_up",
]
