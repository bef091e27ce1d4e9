"""Round-by-round stitch planning from the start pole to the end pole."""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .config import PlannerConfig
from .geometry import (
    Coord,
    axial_offset,
    axis_between,
    mean_axis_distance,
    polyline_centroid,
    to_vec3,
    vec,
)
from .layers import UNKNOWN_OBJECT, group_by_object, label_layers, plannable_rings
from .logging_utils import apply_debug_logging
from .magic_ring import compute_magic_ring, magic_ring_nodes, magic_ring_placement, magic_ring_spokes
from .nodes import distribute_nodes, ring_spacing
from .poles import pole_positions, poles_for_object, resolve_pole_roles
from .scaffold import build_scaffold_segments, enforce_continuity
from .stitch_count import count_next_stitches, step_seed
from .types import ChainPlan, ChainStep, LabeledLayer, Node, ObjectPlan, Pole, Ring, ScaffoldSegment

logger = logging.getLogger(__name__)

_RADIUS_EPS = 1e-9


def ring_center_and_radius(layer: LabeledLayer, start: Coord, axis: Coord) -> Tuple[Coord, float]:
    """Center on the pole axis at the ring's height, and its mean distance to the axis."""

    centroid = polyline_centroid(layer.primary)
    if centroid is None:
        return start.copy(), 0.0
    center = start + axis * axial_offset(centroid, start, axis)
    return center, mean_axis_distance(layer.primary, start, axis)


def _hold(layer: LabeledLayer, current: List[Node], radius: float, reason: str) -> ChainStep:
    logger.warning("Holding round at key=%s (s=%d): %s", layer.key, layer.s_index, reason)
    return ChainStep(
        key=layer.key,
        s_index=layer.s_index,
        status="need_split",
        plan=None,
        segments=[],
        child_map={},
        next_nodes=list(current),
        from_count=len(current),
        to_count=len(current),
        radius=radius,
        spacing=ring_spacing(current),
    )


def plan_chain(
    layers: Sequence[LabeledLayer],
    start: Sequence[float],
    end: Optional[Sequence[float]],
    seed_nodes: Sequence[Node],
    seed_radius: float,
    config: Optional[PlannerConfig] = None,
    object_id: Optional[str] = None,
    spokes: Sequence[ScaffoldSegment] = (),
) -> ChainPlan:
    """Walk ``layers`` in order, planning each round from the previous one.

    The current ring starts as ``seed_nodes``. Rounds that cannot be built are
    kept in the plan with status ``need_split`` and leave the current ring as it
    was, so the next usable ring is planned from the last good one.
    """

    cfg = config or PlannerConfig()
    origin = vec(start)
    axis = axis_between(origin, end)
    plan = ChainPlan(
        object_id=object_id or UNKNOWN_OBJECT,
        axis=to_vec3(axis),
        seed_nodes=list(seed_nodes),
        spokes=list(spokes),
    )

    current: List[Node] = list(seed_nodes)
    current_radius = float(seed_radius)
    previous_segments: List[ScaffoldSegment] = []

    for index, layer in enumerate(layers):
        if not layer.ring.usable:
            plan.steps.append(_hold(layer, current, current_radius, "no usable polyline"))
            continue
        if not current:
            plan.steps.append(_hold(layer, current, current_radius, "no current stitches"))
            continue
        center, radius = ring_center_and_radius(layer, origin, axis)
        if not math.isfinite(radius) or radius <= _RADIUS_EPS:
            plan.steps.append(_hold(layer, current, current_radius, "degenerate radius"))
            continue

        stitch_plan = count_next_stitches(
            len(current),
            2.0 * math.pi * current_radius,
            2.0 * math.pi * radius,
            cfg.gauge_width,
            increase_factor=cfg.increase_factor,
            decrease_factor=cfg.decrease_factor,
            spacing_mode=cfg.spacing_mode,
            seed=step_seed(layer.key),
        )
        next_nodes = distribute_nodes(stitch_plan.next_count, center, axis, radius, cfg.handedness)
        scaffold = build_scaffold_segments(
            current,
            next_nodes,
            stitch_plan,
            object_id=plan.object_id,
            label=f"{index}→{index + 1}",
        )
        segments = enforce_continuity(previous_segments, scaffold.segments)

        status = "saturated" if stitch_plan.saturated else "ok"
        logger.debug(
            "Round %d key=%.4g: %d -> %d (inc=%d dec=%d) status=%s",
            index + 1,
            layer.key,
            stitch_plan.current_count,
            stitch_plan.next_count,
            len(stitch_plan.increases),
            len(stitch_plan.decreases),
            status,
        )
        plan.steps.append(
            ChainStep(
                key=layer.key,
                s_index=layer.s_index,
                status=status,
                plan=stitch_plan,
                segments=segments,
                child_map=scaffold.child_map,
                next_nodes=next_nodes,
                from_count=stitch_plan.current_count,
                to_count=stitch_plan.next_count,
                radius=radius,
                spacing=ring_spacing(next_nodes),
            )
        )
        current = next_nodes
        current_radius = radius
        previous_segments = segments

    return plan


def radius_sampler(
    layers: Sequence[LabeledLayer], start: Coord, axis: Coord
) -> Callable[[float], float]:
    """Radius of the ring whose key is nearest the requested key."""

    radii = [(layer.key, ring_center_and_radius(layer, start, axis)[1]) for layer in layers]

    def _sample(key: float) -> float:
        if not radii:
            return 0.0
        return min(radii, key=lambda item: abs(item[0] - key))[1]

    return _sample


def _fallback_start(layers: Sequence[LabeledLayer]) -> Optional[Coord]:
    for layer in layers:
        centroid = polyline_centroid(layer.primary)
        if centroid is not None:
            return centroid
    return None


def plan_object(
    rings: Sequence[Ring],
    poles: Sequence[Pole] = (),
    config: Optional[PlannerConfig] = None,
    object_id: Optional[str] = None,
) -> ObjectPlan:
    """Resolve poles, order the rings and plan every round of one object.

    The first plannable ring is worked as the magic ring: its stitches sit on
    that ring, joined to the start pole by one spoke each. The remaining rings
    become the rounds of the chain.
    """

    cfg = config or PlannerConfig()
    oid = object_id or (rings[0].object_id if rings else UNKNOWN_OBJECT)
    resolved = resolve_pole_roles(poles, rings)
    labeled = label_layers(rings, resolved)
    plannable = plannable_rings(labeled)
    notes: List[str] = []

    start, end = pole_positions(resolved)
    origin: Optional[Coord] = vec(start) if start is not None else _fallback_start(plannable)
    if start is None:
        notes.append("no start pole; using first ring centroid")
    if end is None:
        notes.append("no end pole; axis defaults to +Y")
    if origin is None:
        notes.append("nothing to plan")
        logger.warning("Object %s has no plannable rings and no poles", oid)
        return ObjectPlan(object_id=oid, poles=resolved, layers=labeled, magic_ring=None, chain=None, notes=notes)

    axis = axis_between(origin, end)
    first_key = plannable[0].key if plannable else None
    magic = compute_magic_ring(
        first_key,
        radius_sampler(plannable, origin, axis),
        start_center=origin,
        normal=axis,
        gauge_width=cfg.gauge_width,
    )
    first_ring = plannable[0].primary if plannable else None
    _, seed_radius = magic_ring_placement(magic, cfg.gauge_width, cfg.tighten_factor, first_ring)
    seed_nodes = magic_ring_nodes(magic, cfg.gauge_width, cfg.handedness, cfg.tighten_factor, first_ring)

    chain = plan_chain(
        plannable[1:],
        origin,
        end,
        seed_nodes,
        seed_radius,
        config=cfg,
        object_id=oid,
        spokes=magic_ring_spokes(magic, seed_nodes, oid),
    )
    logger.info(
        "Planned object %s: magic ring %d, %d rounds, %d segments, %d held",
        oid,
        magic.stitch_count,
        len(chain.steps),
        len(chain.chain_segments),
        len(chain.pending_splits),
    )
    return ObjectPlan(
        object_id=oid,
        poles=resolved,
        layers=labeled,
        magic_ring=magic,
        chain=chain,
        notes=notes,
    )


def plan_scene(
    rings: Sequence[Ring],
    poles: Sequence[Pole] = (),
    config: Optional[PlannerConfig] = None,
) -> Dict[str, ObjectPlan]:
    """Plan every object of a scene independently."""

    groups = group_by_object(rings)
    logger.info("Planning %d object(s) from %d ring(s)", len(groups), len(rings))
    return {
        object_id: plan_object(group, poles_for_object(poles, object_id), config, object_id=object_id)
        for object_id, group in groups.items()
    }


__all__ = [
    "plan_chain",
    "plan_object",
    "plan_scene",
    "radius_sampler",
    "ring_center_and_radius",
]


apply_debug_logging(globals(), logger=logger)
