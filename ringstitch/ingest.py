"""Scene documents: raw JSON rings and pole markers turned into records."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .types import Pole, Polyline, Ring, Vec3

logger = logging.getLogger(__name__)


class IngestError(Exception):
    """Raised when a scene document cannot be read at all."""


@dataclass
class Scene:
    rings: List[Ring] = field(default_factory=list)
    poles: List[Pole] = field(default_factory=list)
    settings: Dict[str, Any] = field(default_factory=dict)
    source: Optional[str] = None

    @property
    def object_ids(self) -> List[str]:
        seen: List[str] = []
        for ring in self.rings:
            if ring.object_id not in seen:
                seen.append(ring.object_id)
        return seen


def coerce_point(value: Any) -> Optional[Vec3]:
    """``[x, y, z]`` or ``{"x", "y", "z"}`` as a float triple, else ``None``."""

    if isinstance(value, Mapping):
        value = [value.get("x"), value.get("y"), value.get("z")]
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)) or len(value) != 3:
        return None
    try:
        point = tuple(float(v) for v in value)
    except (TypeError, ValueError):
        return None
    if not all(math.isfinite(v) for v in point):
        return None
    return point  # type: ignore[return-value]


def coerce_pole(entry: Any, object_id: Optional[str] = None) -> Optional[Pole]:
    """Accept a bare point or a ``{"p"|"pos", "role", "objectId"}`` marker."""

    if isinstance(entry, Mapping):
        position = coerce_point(entry.get("p", entry.get("pos")))
        role = entry.get("role")
        if role not in ("start", "end"):
            role = None
        owner = entry.get("objectId", object_id)
        if position is None:
            return None
        return Pole(position=position, role=role, object_id=None if owner is None else str(owner))
    position = coerce_point(entry)
    if position is None:
        return None
    return Pole(position=position, object_id=object_id)


def _coerce_polyline(raw: Any) -> Optional[Polyline]:
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        return None
    points = [coerce_point(p) for p in raw]
    if any(p is None for p in points):
        return None
    return tuple(points)  # type: ignore[arg-type]


def coerce_ring(entry: Any) -> Optional[Ring]:
    """Build a :class:`Ring` from a layer entry; ``None`` when it is malformed."""

    if not isinstance(entry, Mapping):
        return None
    raw_key = entry.get("key", entry.get("y"))
    try:
        key = float(raw_key)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(key):
        return None

    raw_polylines = entry.get("polylines")
    if raw_polylines is None and "points" in entry:
        raw_polylines = [entry["points"]]
    if not isinstance(raw_polylines, Sequence) or isinstance(raw_polylines, (str, bytes)):
        return None
    polylines = []
    for raw in raw_polylines:
        poly = _coerce_polyline(raw)
        if poly is None:
            return None
        polylines.append(poly)

    debug = entry.get("debugSource")
    source_kind = debug.get("kind") if isinstance(debug, Mapping) else None
    return Ring(
        object_id=str(entry.get("objectId", "unknown")),
        key=key,
        polylines=tuple(polylines),
        object_type=str(entry.get("objectType", "generic")),
        source_kind=source_kind,
    )


def _entries(document: Mapping[str, Any], name: str) -> Sequence[Any]:
    entries = document.get(name) or []
    if isinstance(entries, (str, bytes)) or not isinstance(entries, Sequence):
        raise IngestError(f"\"{name}\" must be a list, got {type(entries).__name__}")
    return entries


def scene_from_dict(document: Mapping[str, Any], source: Optional[str] = None) -> Scene:
    if not isinstance(document, Mapping):
        raise IngestError("scene document must be a JSON object")

    scene = Scene(source=source)
    for idx, entry in enumerate(_entries(document, "rings")):
        ring = coerce_ring(entry)
        if ring is None:
            logger.warning("Skipping malformed ring #%d", idx)
            continue
        scene.rings.append(ring)
    for idx, entry in enumerate(_entries(document, "poles")):
        pole = coerce_pole(entry)
        if pole is None:
            logger.warning("Skipping malformed pole #%d", idx)
            continue
        scene.poles.append(pole)
    settings = document.get("settings") or {}
    if isinstance(settings, Mapping):
        scene.settings = dict(settings)
    else:
        logger.warning("Ignoring settings of type %s", type(settings).__name__)
    return scene


def load_scene(path: Union[str, Path]) -> Scene:
    """Read a scene JSON file."""

    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise IngestError(f"cannot read {p}: {exc}") from exc
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise IngestError(f"{p}: invalid JSON ({exc.msg} at line {exc.lineno})") from exc
    scene = scene_from_dict(document, source=str(p))
    logger.info("Loaded %d ring(s) and %d pole(s) from %s", len(scene.rings), len(scene.poles), p)
    return scene


__all__ = [
    "IngestError",
    "Scene",
    "coerce_point",
    "coerce_pole",
    "coerce_ring",
    "load_scene",
    "scene_from_dict",
]
