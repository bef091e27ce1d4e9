"""Core records shared by the planning and measurement pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

Vec3 = Tuple[float, float, float]
Polyline = Tuple[Vec3, ...]

PoleRole = Literal["start", "end"]
StitchAction = Literal["carry", "increase", "decrease"]
SpacingMode = Literal["even", "jagged"]
Handedness = Literal["left", "right"]
StepStatus = Literal["ok", "saturated", "need_split"]
AnchorStrategy = Literal["generic", "sideways", "sphere"]

CHAIN_START_KIND = "chain-start"


@dataclass(frozen=True)
class Ring:
    """One sliced cross-section of an object."""

    object_id: str
    key: float
    polylines: Tuple[Polyline, ...]
    object_type: str = "generic"
    source_kind: Optional[str] = None

    @property
    def primary(self) -> Polyline:
        return self.polylines[0] if self.polylines else ()

    @property
    def is_chain_start(self) -> bool:
        return self.source_kind == CHAIN_START_KIND

    @property
    def usable(self) -> bool:
        return len(self.primary) >= 2


@dataclass(frozen=True)
class Pole:
    position: Vec3
    role: Optional[PoleRole] = None
    object_id: Optional[str] = None


@dataclass(frozen=True)
class LabeledLayer:
    """A ring with its ordinal position between the start and end poles."""

    ring: Ring
    s_index: int
    e_index: int
    t01: float

    @property
    def object_id(self) -> str:
        return self.ring.object_id

    @property
    def object_type(self) -> str:
        return self.ring.object_type

    @property
    def key(self) -> float:
        return self.ring.key

    @property
    def primary(self) -> Polyline:
        return self.ring.primary


@dataclass(frozen=True)
class Node:
    position: Vec3
    theta: float


@dataclass(frozen=True)
class StitchPlan:
    """Per-stitch actions turning ``current_count`` stitches into ``next_count``."""

    actions: Tuple[StitchAction, ...]
    current_count: int
    next_count: int
    saturated: bool = False

    @property
    def increases(self) -> List[int]:
        return [idx for idx, action in enumerate(self.actions) if action == "increase"]

    @property
    def decreases(self) -> List[int]:
        return [idx for idx, action in enumerate(self.actions) if action == "decrease"]


@dataclass(frozen=True)
class ScaffoldSegment:
    a: Vec3
    b: Vec3
    source: int
    target: int
    label: Optional[str] = None
    object_id: Optional[str] = None


@dataclass(frozen=True)
class MeasurementSegment:
    object_id: str
    label: str
    value: float
    a: Vec3
    b: Vec3


@dataclass(frozen=True)
class FacingFrame:
    """Fixed cutting plane used to place anchors along one ring stack."""

    axis: Vec3
    forward: Vec3
    plane_normal: Vec3
    origin: Vec3


@dataclass(frozen=True)
class MagicRing:
    stitch_count: int
    center: Vec3
    normal: Vec3
    radius: float


@dataclass
class ScaffoldResult:
    segments: List[ScaffoldSegment] = field(default_factory=list)
    child_map: Dict[int, List[int]] = field(default_factory=dict)


@dataclass
class ChainStep:
    """Outcome of one ring-to-ring transition."""

    key: float
    s_index: int
    status: StepStatus
    plan: Optional[StitchPlan]
    segments: List[ScaffoldSegment]
    child_map: Dict[int, List[int]]
    next_nodes: List[Node]
    from_count: int
    to_count: int
    radius: float
    spacing: float = 0.0

    @property
    def increases(self) -> List[int]:
        return self.plan.increases if self.plan is not None else []

    @property
    def decreases(self) -> List[int]:
        return self.plan.decreases if self.plan is not None else []


@dataclass
class ChainPlan:
    object_id: str
    axis: Vec3
    seed_nodes: List[Node]
    steps: List[ChainStep] = field(default_factory=list)
    spokes: List[ScaffoldSegment] = field(default_factory=list)

    @property
    def chain_segments(self) -> List[ScaffoldSegment]:
        return [segment for step in self.steps for segment in step.segments]

    @property
    def counts_per_layer(self) -> List[Tuple[float, int]]:
        counts: List[Tuple[float, int]] = [(0.0, len(self.seed_nodes))]
        counts.extend((step.key, step.to_count) for step in self.steps)
        return counts

    @property
    def transition_ops(self) -> List[Dict[str, object]]:
        return [
            {
                "key": step.key,
                "incs": len(step.increases),
                "decs": len(step.decreases),
                "from": step.from_count,
                "to": step.to_count,
                "status": step.status,
            }
            for step in self.steps
        ]

    @property
    def child_maps(self) -> List[Dict[str, object]]:
        return [
            {
                "key": step.key,
                "fromCount": step.from_count,
                "toCount": step.to_count,
                "map": {parent: list(children) for parent, children in step.child_map.items()},
            }
            for step in self.steps
        ]

    @property
    def spacing_per_layer(self) -> List[Tuple[float, float]]:
        return [(step.key, step.spacing) for step in self.steps]

    @property
    def pending_splits(self) -> List[float]:
        return [step.key for step in self.steps if step.status == "need_split"]


@dataclass
class ObjectPlan:
    object_id: str
    poles: List[Pole]
    layers: List[LabeledLayer]
    magic_ring: Optional[MagicRing]
    chain: Optional[ChainPlan]
    notes: List[str] = field(default_factory=list)


@dataclass
class ObjectMeasurement:
    object_id: str
    strategy: AnchorStrategy
    segments: List[MeasurementSegment]
    anchors: List[Optional[Vec3]]
    projected: bool

    @property
    def total(self) -> float:
        return float(sum(segment.value for segment in self.segments))


__all__ = [
    "AnchorStrategy",
    "CHAIN_START_KIND",
    "ChainPlan",
    "ChainStep",
    "FacingFrame",
    "Handedness",
    "LabeledLayer",
    "MagicRing",
    "MeasurementSegment",
    "Node",
    "ObjectMeasurement",
    "ObjectPlan",
    "Pole",
    "PoleRole",
    "Polyline",
    "Ring",
    "ScaffoldResult",
    "ScaffoldSegment",
    "SpacingMode",
    "StepStatus",
    "StitchAction",
    "StitchPlan",
    "Vec3",
]
