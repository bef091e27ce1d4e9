"""Pole-to-pole measurement segments built on stabilized anchors."""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from .anchors import build_facing_frame, choose_start_pole, sideways_order, stabilize_anchors
from .config import MeasureOptions
from .geometry import axis_between, squared_distance, to_vec3, vec
from .layers import UNKNOWN_OBJECT, filter_measurable_layers, group_by_object, label_layers
from .poles import pole_positions, poles_for_object, resolve_pole_roles
from .types import (
    AnchorStrategy,
    LabeledLayer,
    MeasurementSegment,
    ObjectMeasurement,
    Pole,
    Ring,
    Vec3,
)

logger = logging.getLogger(__name__)

SIDEWAYS_THRESHOLD = 0.5


def _segment(
    object_id: str,
    label: str,
    a: Sequence[float],
    b: Sequence[float],
    axis: np.ndarray,
    projected: bool,
) -> MeasurementSegment:
    delta = vec(b) - vec(a)
    value = abs(float(np.dot(axis, delta))) if projected else float(np.linalg.norm(delta))
    return MeasurementSegment(
        object_id=object_id,
        label=label,
        value=value,
        a=to_vec3(vec(a)),
        b=to_vec3(vec(b)),
    )


def _ring_segments(
    object_id: str,
    anchors: Sequence[Optional[Vec3]],
    labels: Sequence[str],
    axis: np.ndarray,
    projected: bool,
    stride: int,
) -> List[MeasurementSegment]:
    out: List[MeasurementSegment] = []
    for i in range(0, len(anchors) - 1, max(1, stride)):
        a, b = anchors[i], anchors[i + 1]
        if a is None or b is None:
            continue
        out.append(_segment(object_id, f"{labels[i]}→{labels[i + 1]}", a, b, axis, projected))
    return out


def _projection_default(layers: Sequence[LabeledLayer], options: MeasureOptions) -> bool:
    if options.project_along_axis is not None:
        return options.project_along_axis
    object_type = layers[0].object_type if layers else "generic"
    return object_type != "sphere"


def _object_id(layers: Sequence[LabeledLayer]) -> str:
    return layers[0].object_id if layers else UNKNOWN_OBJECT


def generic_segments(
    layers: Sequence[LabeledLayer],
    start_pole: Optional[Sequence[float]],
    end_pole: Optional[Sequence[float]],
    options: Optional[MeasureOptions] = None,
) -> ObjectMeasurement:
    """Anchors in stack order with ring labels taken from ``s_index``."""

    opts = options or MeasureOptions()
    oid = _object_id(layers)
    projected = _projection_default(layers, opts)
    if start_pole is None or not layers:
        return ObjectMeasurement(oid, "generic", [], [], projected)

    axis = axis_between(start_pole, end_pole)
    frame = build_facing_frame(axis, layers[0], start_pole, opts.azimuth_deg)
    anchors = stabilize_anchors(layers, frame)

    segments: List[MeasurementSegment] = []
    if opts.include_poles and anchors[0] is not None:
        segments.append(_segment(oid, "P→0", start_pole, anchors[0], axis, projected))
    labels = [str(layer.s_index) for layer in layers]
    segments.extend(_ring_segments(oid, anchors, labels, axis, projected, opts.measure_every))
    last = anchors[-1]
    if opts.include_poles and end_pole is not None and last is not None:
        if math.sqrt(squared_distance(last, end_pole)) < opts.snap_pole_epsilon:
            logger.debug("Last anchor of %s lies on the end pole", oid)
        segments.append(_segment(oid, f"{labels[-1]}→P", last, end_pole, axis, projected))
    return ObjectMeasurement(oid, "generic", segments, anchors, projected)


def sideways_segments(
    layers: Sequence[LabeledLayer],
    start_pole: Sequence[float],
    end_pole: Sequence[float],
    options: Optional[MeasureOptions] = None,
) -> ObjectMeasurement:
    """Measurement along a stack lying across the vertical, labelled by position."""

    opts = options or MeasureOptions()
    oid = _object_id(layers)
    projected = _projection_default(layers, opts)
    if not layers:
        return ObjectMeasurement(oid, "sideways", [], [], projected)

    axis = axis_between(start_pole, end_pole)
    ordered = sideways_order(layers, start_pole, end_pole, axis)
    frame = build_facing_frame(axis, ordered[0], start_pole, opts.azimuth_deg)
    anchors = stabilize_anchors(ordered, frame, seed_anchor=start_pole)

    last_idx = len(anchors) - 1
    last = anchors[last_idx]
    if last is not None and math.sqrt(squared_distance(last, end_pole)) < opts.snap_pole_epsilon:
        anchors[last_idx] = to_vec3(vec(end_pole))

    segments: List[MeasurementSegment] = []
    if opts.include_poles and anchors[0] is not None:
        segments.append(_segment(oid, "P→0", start_pole, anchors[0], axis, projected))
    labels = [str(i) for i in range(len(ordered))]
    segments.extend(_ring_segments(oid, anchors, labels, axis, projected, opts.measure_every))
    if opts.include_poles and anchors[last_idx] is not None:
        segments.append(_segment(oid, f"{last_idx}→P", anchors[last_idx], end_pole, axis, projected))
    return ObjectMeasurement(oid, "sideways", segments, anchors, projected)


def sphere_segments(
    layers: Sequence[LabeledLayer],
    pole_a: Sequence[float],
    pole_b: Sequence[float],
    options: Optional[MeasureOptions] = None,
) -> ObjectMeasurement:
    """Sphere stacks: the start pole is whichever pole the first ring's anchor faces."""

    opts = options or MeasureOptions()
    oid = _object_id(layers)
    projected = _projection_default(layers, opts)
    if not layers:
        return ObjectMeasurement(oid, "sphere", [], [], projected)

    axis = axis_between(pole_a, pole_b)
    start, end = choose_start_pole(layers, pole_a, pole_b, axis, opts.azimuth_deg)
    frame = build_facing_frame(axis, layers[0], start, opts.azimuth_deg)
    anchors = stabilize_anchors(layers, frame)
    last = anchors[-1]
    if last is not None and math.sqrt(squared_distance(last, end)) < opts.snap_pole_epsilon:
        anchors[-1] = to_vec3(vec(end))

    segments: List[MeasurementSegment] = []
    if opts.include_poles and anchors[0] is not None:
        segments.append(_segment(oid, "P→0", start, anchors[0], axis, projected))
    labels = [str(layer.s_index) for layer in layers]
    segments.extend(_ring_segments(oid, anchors, labels, axis, projected, opts.measure_every))
    if opts.include_poles and anchors[-1] is not None:
        segments.append(_segment(oid, f"{labels[-1]}→P", anchors[-1], end, axis, projected))
    return ObjectMeasurement(oid, "sphere", segments, anchors, projected)


def select_strategy(
    layers: Sequence[LabeledLayer],
    start_pole: Optional[Sequence[float]],
    end_pole: Optional[Sequence[float]],
) -> AnchorStrategy:
    if start_pole is None or end_pole is None:
        return "generic"
    if layers and layers[0].object_type == "sphere":
        return "sphere"
    axis = axis_between(start_pole, end_pole)
    if abs(float(axis[1])) < SIDEWAYS_THRESHOLD:
        return "sideways"
    return "generic"


def measure_object(
    layers: Sequence[LabeledLayer],
    poles: Sequence[Pole],
    options: Optional[MeasureOptions] = None,
) -> ObjectMeasurement:
    """Measure one object with the strategy matching its type and pole axis."""

    start, end = pole_positions(poles)
    strategy = select_strategy(layers, start, end)
    logger.debug("Measuring %s with %s strategy", _object_id(layers), strategy)
    if strategy == "sphere":
        return sphere_segments(layers, start, end, options)
    if strategy == "sideways":
        return sideways_segments(layers, start, end, options)
    return generic_segments(layers, start, end, options)


def measure_scene(
    rings: Sequence[Ring],
    poles: Sequence[Pole] = (),
    options: Optional[MeasureOptions] = None,
) -> Dict[str, ObjectMeasurement]:
    """Label, filter and measure every object in ``rings``."""

    opts = options or MeasureOptions()
    groups = group_by_object(rings)
    logger.info("Measuring %d object(s)", len(groups))
    results: Dict[str, ObjectMeasurement] = {}
    for object_id, group in groups.items():
        own = resolve_pole_roles(poles_for_object(poles, object_id), group)
        layers = filter_measurable_layers(label_layers(group, own))
        if not layers:
            logger.warning("Object %s has no measurable rings", object_id)
            continue
        results[object_id] = measure_object(layers, own, opts)
    return results


def summarize_measurements(measurements: Dict[str, ObjectMeasurement]) -> Dict[str, Dict[str, object]]:
    return {
        object_id: {
            "strategy": result.strategy,
            "projected": result.projected,
            "segments": len(result.segments),
            "total": result.total,
        }
        for object_id, result in measurements.items()
    }


__all__ = [
    "generic_segments",
    "measure_object",
    "measure_scene",
    "select_strategy",
    "sideways_segments",
    "sphere_segments",
    "summarize_measurements",
]
