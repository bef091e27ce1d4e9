"""Stable per-ring anchor points measured against one fixed facing plane."""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .geometry import (
    Coord,
    axial_offset,
    nearest_point_on_polyline,
    normalized,
    plane_crossings,
    polyline_centroid,
    polyline_mid,
    polyline_perimeter,
    reject,
    squared_distance,
    to_vec3,
    vec,
)
from .logging_utils import apply_debug_logging
from .types import FacingFrame, LabeledLayer, Vec3

logger = logging.getLogger(__name__)

_UP = np.array([0.0, 1.0, 0.0])
_RIGHT = np.array([1.0, 0.0, 0.0])
_DEGENERATE_SQ = 1e-10

SIDEWAYS_WINDOW = 0.4


def stable_perpendicular(axis: Coord) -> Coord:
    """+Y flattened onto the plane across ``axis`` (+X when the axis is near vertical)."""

    up = _UP if abs(float(np.dot(_UP, axis))) <= 0.9 else _RIGHT
    return normalized(reject(up, axis), fallback=_RIGHT)


def build_facing_frame(
    axis: Sequence[float],
    first_layer: Optional[LabeledLayer],
    start_pole: Sequence[float],
    azimuth_deg: Optional[float] = None,
) -> FacingFrame:
    """Cutting plane through ``start_pole`` containing the axis.

    ``forward`` is the explicit azimuth when given, otherwise the direction
    from the pole towards the first ring's centroid across the axis.
    """

    ax = normalized(np.asarray(axis, dtype=float), fallback=_UP)
    origin = vec(start_pole)
    base = stable_perpendicular(ax)

    if azimuth_deg is not None:
        angle = math.radians(azimuth_deg)
        forward = base * math.cos(angle) + np.cross(ax, base) * math.sin(angle)
    else:
        centroid = polyline_centroid(first_layer.primary) if first_layer is not None else None
        toward = (centroid if centroid is not None else origin) - origin
        proj = reject(toward, ax)
        if float(np.dot(proj, proj)) < _DEGENERATE_SQ:
            logger.debug("Facing direction degenerate; using stable perpendicular")
            forward = base
        else:
            forward = proj / float(np.linalg.norm(proj))

    plane_normal = normalized(np.cross(ax, forward), fallback=stable_perpendicular(forward))
    return FacingFrame(
        axis=to_vec3(ax),
        forward=to_vec3(forward),
        plane_normal=to_vec3(plane_normal),
        origin=to_vec3(origin),
    )


def pick_stable_anchor(
    layer: LabeledLayer, frame: FacingFrame, previous: Optional[Sequence[float]] = None
) -> Optional[Vec3]:
    """Point where the ring crosses the frame plane.

    With several crossings the one nearest ``previous`` wins, or the one furthest
    along ``forward`` for the first ring. A ring that never reaches the plane
    gives its vertex furthest along ``forward``.
    """

    poly = layer.primary
    if len(poly) < 2:
        return None
    origin = vec(frame.origin)
    forward = vec(frame.forward)
    hits = plane_crossings(poly, origin, frame.plane_normal, closed=True)
    if hits:
        if previous is not None:
            best = min(hits, key=lambda p: squared_distance(p, previous))
        else:
            best = max(hits, key=lambda p: float(np.dot(p - origin, forward)))
        return to_vec3(best)
    pts = np.asarray(poly, dtype=float)
    scores = (pts - origin) @ forward
    return to_vec3(pts[int(np.argmax(scores))])


def anchor_step(
    state: Optional[Vec3], layer: LabeledLayer, frame: FacingFrame
) -> Tuple[Optional[Vec3], Optional[Vec3]]:
    """One fold step: ``(previous anchor, ring) -> (new state, anchor)``."""

    anchor = pick_stable_anchor(layer, frame, state)
    # Dormant: pick_stable_anchor already returns a vertex for every ring of 2+ points.
    if anchor is None and state is not None:
        nearest = nearest_point_on_polyline(layer.primary, state)
        anchor = to_vec3(nearest) if nearest is not None else None
    if anchor is None:
        mid = polyline_mid(layer.primary)
        anchor = to_vec3(mid) if mid is not None else None
    if anchor is None:
        logger.debug("No anchor for ring s=%d", layer.s_index)
    return (anchor if anchor is not None else state), anchor


def stabilize_anchors(
    layers: Sequence[LabeledLayer],
    frame: FacingFrame,
    seed_anchor: Optional[Sequence[float]] = None,
) -> List[Optional[Vec3]]:
    """Anchors for ``layers`` in order, each one chosen relative to the last."""

    state: Optional[Vec3] = to_vec3(vec(seed_anchor)) if seed_anchor is not None else None
    anchors: List[Optional[Vec3]] = []
    for layer in layers:
        state, anchor = anchor_step(state, layer, frame)
        anchors.append(anchor)
    return anchors


def _distance_to_ring(layer: LabeledLayer, point: Coord) -> float:
    nearest = nearest_point_on_polyline(layer.primary, point)
    return math.inf if nearest is None else float(np.linalg.norm(nearest - point))


def sideways_order(
    layers: Sequence[LabeledLayer],
    start_pole: Sequence[float],
    end_pole: Sequence[float],
    axis: Sequence[float],
) -> List[LabeledLayer]:
    """Rings of a lying-down stack ordered from the start pole.

    The first ring is the smallest one near the start pole (within 40% of the
    pole span along the axis), or the physically nearest ring when none is.
    The rest follow by their position along the axis.
    """

    if not layers:
        return []
    ax = normalized(np.asarray(axis, dtype=float), fallback=_UP)
    start = vec(start_pole)
    span = abs(axial_offset(end_pole, start, ax)) or 1.0

    first_idx = -1
    best_perimeter = math.inf
    for idx, layer in enumerate(layers):
        mid = polyline_mid(layer.primary)
        if mid is None or len(layer.primary) < 2:
            continue
        t = max(0.0, axial_offset(mid, start, ax))
        if t > span * SIDEWAYS_WINDOW:
            continue
        perimeter = polyline_perimeter(layer.primary)
        if perimeter < best_perimeter:
            best_perimeter = perimeter
            first_idx = idx

    if first_idx < 0:
        logger.debug("No ring within the start window; using the nearest ring")
        distances = [_distance_to_ring(layer, start) for layer in layers]
        first_idx = int(np.argmin(distances))

    def _axial(layer: LabeledLayer) -> float:
        mid = polyline_mid(layer.primary)
        return axial_offset(mid if mid is not None else start, start, ax)

    others = sorted((layer for idx, layer in enumerate(layers) if idx != first_idx), key=_axial)
    return [layers[first_idx], *others]


def choose_start_pole(
    layers: Sequence[LabeledLayer],
    pole_a: Sequence[float],
    pole_b: Sequence[float],
    axis: Sequence[float],
    azimuth_deg: Optional[float] = None,
) -> Tuple[Vec3, Vec3]:
    """``(start, end)``: the pole whose own first anchor lands nearest to it starts."""

    a, b = to_vec3(vec(pole_a)), to_vec3(vec(pole_b))
    if not layers:
        return a, b
    first = layers[0]
    anchor_a = pick_stable_anchor(first, build_facing_frame(axis, first, a, azimuth_deg))
    anchor_b = pick_stable_anchor(first, build_facing_frame(axis, first, b, azimuth_deg))
    d_a = math.sqrt(squared_distance(anchor_a, a)) if anchor_a is not None else math.inf
    d_b = math.sqrt(squared_distance(anchor_b, b)) if anchor_b is not None else math.inf
    return (a, b) if d_a <= d_b else (b, a)


__all__ = [
    "SIDEWAYS_WINDOW",
    "anchor_step",
    "build_facing_frame",
    "choose_start_pole",
    "pick_stable_anchor",
    "sideways_order",
    "stabilize_anchors",
    "stable_perpendicular",
]


apply_debug_logging(globals(), logger=logger)
