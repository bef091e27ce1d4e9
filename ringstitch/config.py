"""Configuration records for the stitch planner and measurement pipeline."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

BASE_SIZE_LEVEL = 4


class ConfigError(ValueError):
    """Raised when a configuration value is out of range."""


@dataclass(frozen=True)
class StitchProfile:
    name: str
    width_mul: float
    height_mul: float
    depth_mul: float


STITCH_PROFILES: Dict[str, StitchProfile] = {
    "sc": StitchProfile("single crochet", 0.8, 0.6, 0.5),
    "hdc": StitchProfile("half double", 1.0, 1.3, 0.5),
    "dc": StitchProfile("double crochet", 1.0, 1.6, 0.5),
    "tc": StitchProfile("treble crochet", 1.0, 2.0, 0.5),
    "inc": StitchProfile("increase", 1.4, 1.0, 0.5),
    "dec": StitchProfile("decrease", 0.7, 1.0, 0.5),
    "slst": StitchProfile("slip stitch", 0.7, 0.3, 0.5),
    "mr": StitchProfile("magic ring", 1.0, 0.7, 0.5),
}


@dataclass(frozen=True)
class StitchGauge:
    width: float
    height: float
    depth: float
    profile: str = "mr"


def level_to_scale(level: float) -> float:
    clamped = max(1, min(9, int(round(level))))
    return clamped / BASE_SIZE_LEVEL


def gauge_from_yarn_size(size_level: float = BASE_SIZE_LEVEL, stitch_type: str = "mr") -> StitchGauge:
    """Stitch dimensions for a 1..9 yarn size level (4 is the 1.0 baseline)."""

    profile = STITCH_PROFILES.get(stitch_type, STITCH_PROFILES["mr"])
    scale = level_to_scale(size_level)
    return StitchGauge(
        width=scale * profile.width_mul,
        height=scale * profile.height_mul,
        depth=scale * profile.depth_mul,
        profile=stitch_type if stitch_type in STITCH_PROFILES else "mr",
    )


@dataclass
class PlannerConfig:
    """Knobs of the stitch-count and scaffold planner."""

    gauge_width: float = 1.0
    increase_factor: float = 1.0
    decrease_factor: float = 1.0
    spacing_mode: str = "even"
    handedness: str = "right"
    tighten_factor: float = 0.8

    def __post_init__(self) -> None:
        if not math.isfinite(self.gauge_width) or self.gauge_width <= 0.0:
            raise ConfigError(f"gauge_width must be positive (got {self.gauge_width})")
        for name in ("increase_factor", "decrease_factor"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0.0:
                raise ConfigError(f"{name} must be positive (got {value})")
        if self.spacing_mode not in ("even", "jagged"):
            raise ConfigError(f"spacing_mode must be even|jagged (got {self.spacing_mode!r})")
        if self.handedness not in ("left", "right"):
            raise ConfigError(f"handedness must be left|right (got {self.handedness!r})")

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "PlannerConfig":
        """Build a config from camelCase editor settings.

        ``targetSpacing`` wins over ``yarnSizeLevel`` for the gauge width.
        """

        width = settings.get("targetSpacing")
        if width is None:
            gauge = gauge_from_yarn_size(
                settings.get("yarnSizeLevel", BASE_SIZE_LEVEL),
                settings.get("magicRingStitchType", "mr"),
            )
            width = gauge.width
        return cls(
            gauge_width=float(width),
            increase_factor=float(settings.get("increaseFactor", 1.0)),
            decrease_factor=float(settings.get("decreaseFactor", 1.0)),
            spacing_mode=str(settings.get("planSpacingMode", "even")),
            handedness=str(settings.get("handedness", "right")),
            tighten_factor=float(settings.get("tightenFactor", 0.8)),
        )


@dataclass
class MeasureOptions:
    """Options of the anchor/measurement pipeline."""

    azimuth_deg: Optional[float] = None
    snap_pole_epsilon: float = 0.05
    measure_every: int = 1
    project_along_axis: Optional[bool] = None
    include_poles: bool = True

    def __post_init__(self) -> None:
        if self.measure_every < 1:
            raise ConfigError(f"measure_every must be >= 1 (got {self.measure_every})")
        if self.snap_pole_epsilon < 0.0:
            raise ConfigError("snap_pole_epsilon must be non-negative")
        if self.azimuth_deg is not None and not math.isfinite(self.azimuth_deg):
            raise ConfigError("azimuth_deg must be finite")

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "MeasureOptions":
        azimuth = settings.get("azimuthDeg")
        project = settings.get("projectAlongAxis")
        return cls(
            azimuth_deg=None if azimuth is None else float(azimuth),
            snap_pole_epsilon=float(settings.get("snapPoleEpsilon", 0.05)),
            measure_every=max(1, int(settings.get("measureEvery", 1))),
            project_along_axis=None if project is None else bool(project),
            include_poles=not bool(settings.get("ignorePoles", False)),
        )


__all__ = [
    "BASE_SIZE_LEVEL",
    "ConfigError",
    "MeasureOptions",
    "PlannerConfig",
    "STITCH_PROFILES",
    "StitchGauge",
    "StitchProfile",
    "gauge_from_yarn_size",
    "level_to_scale",
]
