from .types import (
    ChainPlan,
    ChainStep,
    FacingFrame,
    LabeledLayer,
    MagicRing,
    MeasurementSegment,
    Node,
    ObjectMeasurement,
    ObjectPlan,
    Pole,
    Ring,
    ScaffoldResult,
    ScaffoldSegment,
    StitchPlan,
)
from .config import ConfigError, MeasureOptions, PlannerConfig, StitchGauge, gauge_from_yarn_size
from .poles import resolve_pole_roles, poles_for_object, pole_positions
from .layers import (
    sort_layers_by_key,
    label_layers,
    label_layers_by_object,
    group_by_object,
    filter_measurable_layers,
    plannable_rings,
    order_layers_along_axis,
)
from .magic_ring import compute_magic_ring, magic_ring_nodes, magic_ring_placement, magic_ring_spokes
from .stitch_count import count_next_stitches, place_actions
from .nodes import distribute_nodes, node_azimuths, ring_basis
from .scaffold import build_scaffold_segments, enforce_continuity
from .chain import plan_chain, plan_object, plan_scene
from .anchors import build_facing_frame, pick_stable_anchor, stabilize_anchors
from .measurements import (
    generic_segments,
    sideways_segments,
    sphere_segments,
    measure_object,
    measure_scene,
    summarize_measurements,
)
from .ingest import IngestError, Scene, coerce_point, coerce_pole, coerce_ring, load_scene
from .pattern import describe_plan, format_pattern

__all__ = [
    'ChainPlan',
    'ChainStep',
    'FacingFrame',
    'LabeledLayer',
    'MagicRing',
    'MeasurementSegment',
    'Node',
    'ObjectMeasurement',
    'ObjectPlan',
    'Pole',
    'Ring',
    'ScaffoldResult',
    'ScaffoldSegment',
    'StitchPlan',
    'ConfigError',
    'MeasureOptions',
    'PlannerConfig',
    'StitchGauge',
    'gauge_from_yarn_size',
    'resolve_pole_roles',
    'poles_for_object',
    'pole_positions',
    'sort_layers_by_key',
    'label_layers',
    'label_layers_by_object',
    'group_by_object',
    'filter_measurable_layers',
    'plannable_rings',
    'order_layers_along_axis',
    'compute_magic_ring',
    'magic_ring_nodes',
    'magic_ring_placement',
    'magic_ring_spokes',
    'count_next_stitches',
    'place_actions',
    'distribute_nodes',
    'node_azimuths',
    'ring_basis',
    'build_scaffold_segments',
    'enforce_continuity',
    'plan_chain',
    'plan_object',
    'plan_scene',
    'build_facing_frame',
    'pick_stable_anchor',
    'stabilize_anchors',
    'generic_segments',
    'sideways_segments',
    'sphere_segments',
    'measure_object',
    'measure_scene',
    'summarize_measurements',
    'IngestError',
    'Scene',
    'coerce_point',
    'coerce_pole',
    'coerce_ring',
    'load_scene',
    'describe_plan',
    'format_pattern',
]
