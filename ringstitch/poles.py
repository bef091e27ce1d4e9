"""Start/end role assignment for pole markers."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from .geometry import polyline_mid, squared_distance, to_vec3
from .types import Pole, Ring, Vec3

logger = logging.getLogger(__name__)


def _first_ring_mid(rings: Sequence[Ring]) -> Optional[Vec3]:
    if not rings:
        return None
    first = min(rings, key=lambda ring: ring.key)
    mid = polyline_mid(first.primary)
    return to_vec3(mid) if mid is not None else None


def _farthest_pair(poles: Sequence[Pole]) -> Tuple[int, int]:
    best_i, best_j, best_d = 0, 1, -1.0
    for i in range(len(poles)):
        for j in range(i + 1, len(poles)):
            d = squared_distance(poles[i].position, poles[j].position)
            if d > best_d:
                best_i, best_j, best_d = i, j, d
    return best_i, best_j


def _complete_partial_roles(poles: List[Pole]) -> List[Pole]:
    start_idx = next((i for i, p in enumerate(poles) if p.role == "start"), None)
    end_idx = next((i for i, p in enumerate(poles) if p.role == "end"), None)
    if start_idx is not None and end_idx is None:
        other = next((i for i in range(len(poles)) if i != start_idx), None)
        if other is not None:
            poles[other] = replace(poles[other], role="end")
    elif end_idx is not None and start_idx is None:
        other = next((i for i in range(len(poles)) if i != end_idx), None)
        if other is not None:
            poles[other] = replace(poles[other], role="start")
    return poles


def resolve_pole_roles(poles: Sequence[Pole], rings: Sequence[Ring] = ()) -> List[Pole]:
    """Return copies of ``poles`` with ``start``/``end`` roles filled in where possible."""

    resolved = list(poles)
    if not resolved:
        return resolved

    if len(resolved) == 1:
        if resolved[0].role is None:
            resolved[0] = replace(resolved[0], role="start")
        return resolved

    if any(p.role in ("start", "end") for p in resolved):
        return _complete_partial_roles(resolved)

    i, j = _farthest_pair(resolved)
    first_mid = _first_ring_mid(rings)
    if first_mid is not None:
        d_i = squared_distance(resolved[i].position, first_mid)
        d_j = squared_distance(resolved[j].position, first_mid)
        start, end = (i, j) if d_i <= d_j else (j, i)
    else:
        logger.debug("No ring midpoint available; first of farthest pair becomes start")
        start, end = i, j

    out: List[Pole] = []
    for idx, pole in enumerate(resolved):
        if idx == start:
            out.append(replace(pole, role="start"))
        elif idx == end:
            out.append(replace(pole, role="end"))
        else:
            out.append(replace(pole, role=None))
    return out


def poles_for_object(poles: Sequence[Pole], object_id: Optional[str]) -> List[Pole]:
    """Markers belonging to ``object_id``; untagged markers match every object."""

    return [p for p in poles if p.object_id is None or object_id is None or p.object_id == object_id]


def find_role(poles: Sequence[Pole], role: str) -> Optional[Vec3]:
    return next((p.position for p in poles if p.role == role), None)


def pole_positions(poles: Sequence[Pole]) -> Tuple[Optional[Vec3], Optional[Vec3]]:
    """``(start, end)`` positions, falling back to marker order for missing roles."""

    start = find_role(poles, "start")
    end = find_role(poles, "end")
    rest = [p.position for p in poles if p.role not in ("start", "end")]
    if start is None and rest:
        start = rest.pop(0)
    if end is None and rest:
        end = rest.pop(0)
    return start, end


__all__ = ["find_role", "pole_positions", "poles_for_object", "resolve_pole_roles"]
