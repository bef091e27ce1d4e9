"""Ordering and labelling of an object's ring stack."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple, TypeVar, Union

import numpy as np

from .geometry import axial_offset, normalized, polyline_mid, squared_distance, to_vec3, vec
from .poles import find_role, poles_for_object
from .types import LabeledLayer, Pole, Ring, Vec3

logger = logging.getLogger(__name__)

UNKNOWN_OBJECT = "unknown"

T = TypeVar("T", Ring, LabeledLayer)


def sort_layers_by_key(rings: Sequence[Ring]) -> List[Ring]:
    return sorted(rings, key=lambda ring: ring.key)


def _mid(ring: Ring) -> Optional[Vec3]:
    mid = polyline_mid(ring.primary)
    return to_vec3(mid) if mid is not None else None


def label_layers(rings: Sequence[Ring], poles: Sequence[Pole] = ()) -> List[LabeledLayer]:
    """Order ``rings`` from the start pole and attach ``s_index``/``e_index``/``t01``."""

    ordered = sort_layers_by_key(rings)
    if not ordered:
        return []

    start = find_role(poles, "start")
    if start is not None:
        first_mid = _mid(ordered[0])
        last_mid = _mid(ordered[-1])
        if first_mid is not None and last_mid is not None:
            if squared_distance(first_mid, start) > squared_distance(last_mid, start):
                ordered.reverse()

    count = len(ordered)
    return [
        LabeledLayer(
            ring=ring,
            s_index=idx,
            e_index=count - 1 - idx,
            t01=idx / (count - 1) if count > 1 else 0.0,
        )
        for idx, ring in enumerate(ordered)
    ]


def group_by_object(items: Sequence[T]) -> Dict[str, List[T]]:
    groups: Dict[str, List[T]] = {}
    for item in items:
        groups.setdefault(item.object_id or UNKNOWN_OBJECT, []).append(item)
    return groups


def label_layers_by_object(
    rings: Sequence[Ring], poles: Sequence[Pole]
) -> Tuple[List[LabeledLayer], Dict[str, Dict[str, object]]]:
    """Label every object's rings with that object's own poles."""

    labeled: List[LabeledLayer] = []
    meta: Dict[str, Dict[str, object]] = {}
    for object_id, group in group_by_object(rings).items():
        own = poles_for_object(poles, object_id)
        group_labeled = label_layers(group, own)
        labeled.extend(group_labeled)
        meta[object_id] = {
            "count": len(group_labeled),
            "has_start": find_role(own, "start") is not None,
            "has_end": find_role(own, "end") is not None,
        }
    return labeled, meta


def _primary(layer: Union[Ring, LabeledLayer]):
    return layer.primary


def _is_chain_start(layer: Union[Ring, LabeledLayer]) -> bool:
    ring = layer.ring if isinstance(layer, LabeledLayer) else layer
    return ring.is_chain_start


def filter_measurable_layers(
    layers: Sequence[T],
    *,
    allow_loose_first: bool = True,
    force_include_index: Optional[int] = 0,
) -> List[T]:
    """Drop chain-start fragments and rings too sparse to carry an anchor."""

    out: List[T] = []
    for idx, layer in enumerate(layers):
        if _is_chain_start(layer):
            continue
        size = len(_primary(layer))
        if size >= 4:
            out.append(layer)
        elif size >= 2 and ((allow_loose_first and idx == 0) or idx == force_include_index):
            out.append(layer)
    return out


def plannable_rings(layers: Sequence[T]) -> List[T]:
    kept = [layer for layer in layers if not _is_chain_start(layer)]
    dropped = len(layers) - len(kept)
    if dropped:
        logger.debug("Excluded %d chain-start fragment(s) from stitch planning", dropped)
    return kept


def order_layers_along_axis(layers: Sequence[T], origin: Sequence[float], axis: Sequence[float]) -> List[T]:
    """Sort ``layers`` by the axial position of their middle vertex."""

    ax = normalized(np.asarray(axis, dtype=float), fallback=np.array([0.0, 1.0, 0.0]))
    o = vec(origin)

    def _key(layer: T) -> float:
        mid = polyline_mid(_primary(layer))
        return axial_offset(mid if mid is not None else np.zeros(3), o, ax)

    return sorted(layers, key=_key)


__all__ = [
    "UNKNOWN_OBJECT",
    "filter_measurable_layers",
    "group_by_object",
    "label_layers",
    "label_layers_by_object",
    "order_layers_along_axis",
    "plannable_rings",
    "sort_layers_by_key",
]
