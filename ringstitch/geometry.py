"""Vector and polyline helpers shared by the stitch and anchor pipelines."""

from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .types import Vec3

Coord = np.ndarray

_EPS = 1e-12
_PLANE_EPS = 1e-9

_UP = np.array([0.0, 1.0, 0.0])
_RIGHT = np.array([1.0, 0.0, 0.0])


def vec(value: Sequence[float]) -> Coord:
    arr = np.asarray(value, dtype=float)
    if arr.shape != (3,):
        raise ValueError("coordinate must be length-3")
    return arr


def to_vec3(arr: Coord) -> Vec3:
    return (float(arr[0]), float(arr[1]), float(arr[2]))


def normalized(v: Coord, fallback: Optional[Coord] = None) -> Optional[Coord]:
    norm = float(np.linalg.norm(v))
    if norm <= _EPS:
        return None if fallback is None else np.asarray(fallback, dtype=float)
    return np.asarray(v, dtype=float) / norm


def axis_between(start: Sequence[float], end: Optional[Sequence[float]]) -> Coord:
    """Unit vector from ``start`` to ``end``; +Y when undefined."""

    if end is None:
        return _UP.copy()
    return normalized(vec(end) - vec(start), fallback=_UP)


def reject(v: Coord, axis: Coord) -> Coord:
    """Component of ``v`` perpendicular to unit ``axis``."""

    return v - axis * float(np.dot(v, axis))


def in_plane_basis(axis: Sequence[float]) -> Tuple[Coord, Coord]:
    """Deterministic orthonormal ``(u, v)`` spanning the plane perpendicular to ``axis``.

    ``u`` is seeded from +Y unless the axis is close to vertical, in which case
    +X is used, so the basis never degenerates.
    """

    n = normalized(np.asarray(axis, dtype=float), fallback=_UP)
    seed = _UP if abs(float(n[1])) < 0.9 else _RIGHT
    u = normalized(reject(seed, n))
    if u is None:  # pragma: no cover - seed choice keeps this unreachable
        u = normalized(reject(_RIGHT, n), fallback=_RIGHT)
    v = np.cross(n, u)
    return u, v


def as_array(polyline: Sequence[Sequence[float]]) -> Coord:
    if len(polyline) == 0:
        return np.zeros((0, 3))
    return np.asarray(polyline, dtype=float).reshape(-1, 3)


def polyline_mid(polyline: Sequence[Sequence[float]]) -> Optional[Coord]:
    if len(polyline) == 0:
        return None
    return vec(polyline[len(polyline) // 2])


def polyline_centroid(polyline: Sequence[Sequence[float]]) -> Optional[Coord]:
    if len(polyline) == 0:
        return None
    return as_array(polyline).mean(axis=0)


def polyline_perimeter(polyline: Sequence[Sequence[float]], *, closed: bool = True) -> float:
    pts = as_array(polyline)
    if pts.shape[0] < 2:
        return math.inf
    total = float(np.linalg.norm(np.diff(pts, axis=0), axis=1).sum())
    if closed:
        total += float(np.linalg.norm(pts[0] - pts[-1]))
    return total


def _edges(pts: Coord, closed: bool) -> List[Tuple[Coord, Coord]]:
    count = pts.shape[0]
    edges = [(pts[i], pts[i + 1]) for i in range(count - 1)]
    if closed and count > 2 and float(np.linalg.norm(pts[0] - pts[-1])) > _EPS:
        edges.append((pts[-1], pts[0]))
    return edges


def nearest_point_on_polyline(
    polyline: Sequence[Sequence[float]], ref: Sequence[float], *, closed: bool = True
) -> Optional[Coord]:
    pts = as_array(polyline)
    if pts.shape[0] < 2:
        return None
    r = vec(ref)
    best: Optional[Coord] = None
    best_d2 = math.inf
    for a, b in _edges(pts, closed):
        ab = b - a
        denom = max(float(np.dot(ab, ab)), _EPS)
        t = min(max(float(np.dot(r - a, ab)) / denom, 0.0), 1.0)
        p = a + ab * t
        d2 = float(np.dot(p - r, p - r))
        if d2 < best_d2:
            best_d2 = d2
            best = p
    return best


def plane_crossings(
    polyline: Sequence[Sequence[float]],
    plane_point: Sequence[float],
    plane_normal: Sequence[float],
    *,
    closed: bool = True,
    eps: float = _PLANE_EPS,
) -> List[Coord]:
    """Points where the polyline meets the plane, in polyline order."""

    pts = as_array(polyline)
    if pts.shape[0] < 2:
        return []
    n = normalized(np.asarray(plane_normal, dtype=float))
    if n is None:
        return []
    p0 = vec(plane_point)
    hits: List[Coord] = []
    for a, b in _edges(pts, closed):
        da = float(np.dot(n, a - p0))
        db = float(np.dot(n, b - p0))
        if abs(da) < eps:
            hits.append(a.copy())
            continue
        if abs(db) < eps:
            continue
        if (da > 0.0) != (db > 0.0):
            t = da / (da - db)
            hits.append(a + (b - a) * t)
    last = pts[-1]
    if not closed or pts.shape[0] == 2:
        if abs(float(np.dot(n, last - p0))) < eps:
            hits.append(last.copy())
    return hits


def axial_offset(point: Sequence[float], origin: Sequence[float], axis: Coord) -> float:
    return float(np.dot(vec(point) - vec(origin), axis))


def mean_axis_distance(polyline: Sequence[Sequence[float]], origin: Sequence[float], axis: Coord) -> float:
    """Average perpendicular distance of the polyline vertices to the axis line."""

    pts = as_array(polyline)
    if pts.shape[0] == 0:
        return 0.0
    rel = pts - vec(origin)
    perp = rel - np.outer(rel @ axis, axis)
    return float(np.linalg.norm(perp, axis=1).mean())


def squared_distance(a: Sequence[float], b: Sequence[float]) -> float:
    d = vec(a) - vec(b)
    return float(np.dot(d, d))


__all__ = [
    "as_array",
    "axial_offset",
    "axis_between",
    "in_plane_basis",
    "mean_axis_distance",
    "nearest_point_on_polyline",
    "normalized",
    "plane_crossings",
    "polyline_centroid",
    "polyline_mid",
    "polyline_perimeter",
    "reject",
    "squared_distance",
    "to_vec3",
    "vec",
]
