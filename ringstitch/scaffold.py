"""Segments joining one ring of stitches to the next."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Sequence

import numpy as np
from scipy.spatial.distance import cdist

from .types import Node, ScaffoldResult, ScaffoldSegment, StitchPlan

logger = logging.getLogger(__name__)


def build_scaffold_segments(
    current_nodes: Sequence[Node],
    next_nodes: Sequence[Node],
    plan: Optional[StitchPlan],
    object_id: Optional[str] = None,
    label: Optional[str] = None,
) -> ScaffoldResult:
    """Connect ``current_nodes`` to ``next_nodes`` following ``plan``.

    A single pointer walks the next ring. Carries take one target and move on,
    increases take two, decreases take the current target without moving so the
    following stitch lands on the same node.
    """

    result = ScaffoldResult()
    size = len(next_nodes)
    if not current_nodes or not size:
        return result

    actions = plan.actions if plan is not None else ()
    k = 0
    for j, node in enumerate(current_nodes):
        action = actions[j] if j < len(actions) else "carry"
        if action == "increase":
            targets = [k % size, (k + 1) % size]
            k += 2
        elif action == "decrease":
            targets = [k % size]
        else:
            targets = [k % size]
            k += 1
        children = result.child_map.setdefault(j, [])
        for t in targets:
            children.append(t)
            result.segments.append(
                ScaffoldSegment(
                    a=node.position,
                    b=next_nodes[t].position,
                    source=j,
                    target=t,
                    label=label,
                    object_id=object_id,
                )
            )
    return result


def enforce_continuity(
    previous: Sequence[ScaffoldSegment], current: Sequence[ScaffoldSegment]
) -> List[ScaffoldSegment]:
    """Snap each current segment's start onto the nearest unused end of ``previous``."""

    if not previous or not current:
        return list(current)

    ends = np.asarray([segment.b for segment in previous], dtype=float)
    starts = np.asarray([segment.a for segment in current], dtype=float)
    d2 = cdist(starts, ends, metric="sqeuclidean")

    used = np.zeros(len(previous), dtype=bool)
    out: List[ScaffoldSegment] = []
    for i, segment in enumerate(current):
        row = np.where(used, np.inf, d2[i])
        best = int(np.argmin(row))
        if not np.isfinite(row[best]):
            out.append(segment)
            continue
        used[best] = True
        out.append(replace(segment, a=previous[best].b))
    snapped = int(used.sum())
    if snapped < len(current):
        logger.debug("Continuity matched %d of %d segment starts", snapped, len(current))
    return out


__all__ = ["build_scaffold_segments", "enforce_continuity"]
