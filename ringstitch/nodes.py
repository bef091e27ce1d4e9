"""Even placement of a ring's stitch nodes."""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple

import numpy as np

from .geometry import Coord, in_plane_basis, normalized, to_vec3, vec
from .types import Handedness, Node

_UP = np.array([0.0, 1.0, 0.0])


def ring_basis(axis: Sequence[float]) -> Tuple[Coord, Coord, Coord]:
    """``(n, u, v)``: unit axis plus the in-plane basis nodes are laid out on."""

    n = normalized(np.asarray(axis, dtype=float), fallback=_UP)
    u, v = in_plane_basis(n)
    return n, u, v


def distribute_nodes(
    count: int,
    center: Sequence[float],
    axis: Sequence[float],
    radius: float,
    handedness: Handedness = "right",
) -> List[Node]:
    """``count`` nodes evenly spaced by angle on the circle around ``center``.

    Left-handed rings run counter-clockwise (positive angles) about the axis,
    right-handed rings clockwise.
    """

    total = max(1, int(round(count)))
    _, u, v = ring_basis(axis)
    c = vec(center)
    step = (1.0 if handedness == "left" else -1.0) * (2.0 * math.pi / total)
    nodes: List[Node] = []
    for i in range(total):
        theta = i * step
        p = c + u * (radius * math.cos(theta)) + v * (radius * math.sin(theta))
        nodes.append(Node(position=to_vec3(p), theta=theta))
    return nodes


def node_azimuths(nodes: Sequence[Node], center: Sequence[float], axis: Sequence[float]) -> List[float]:
    """Angle of each node around ``axis`` measured in the :func:`ring_basis` frame."""

    _, u, v = ring_basis(axis)
    c = vec(center)
    out: List[float] = []
    for node in nodes:
        d = vec(node.position) - c
        out.append(math.atan2(float(np.dot(d, v)), float(np.dot(d, u))))
    return out


def ring_spacing(nodes: Sequence[Node]) -> float:
    """Mean distance between consecutive nodes around the closed ring."""

    if len(nodes) < 2:
        return 0.0
    pts = np.asarray([node.position for node in nodes], dtype=float)
    gaps = np.linalg.norm(pts - np.roll(pts, -1, axis=0), axis=1)
    return float(gaps.mean())


__all__ = ["distribute_nodes", "node_azimuths", "ring_basis", "ring_spacing"]
