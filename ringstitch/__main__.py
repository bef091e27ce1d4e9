import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from ringstitch import (
    ConfigError,
    IngestError,
    MeasureOptions,
    PlannerConfig,
    format_pattern,
    gauge_from_yarn_size,
    load_scene,
    measure_scene,
    plan_scene,
    summarize_measurements,
)
from ringstitch.pattern import pattern_lines

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _planner_config(settings: Dict[str, Any], args: argparse.Namespace) -> PlannerConfig:
    try:
        config = PlannerConfig.from_settings(settings)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid planner settings: {exc}") from exc
    overrides: Dict[str, Any] = {}
    if args.gauge_width is not None:
        overrides["gauge_width"] = args.gauge_width
    elif args.yarn_size is not None:
        overrides["gauge_width"] = gauge_from_yarn_size(args.yarn_size).width
    if args.spacing_mode is not None:
        overrides["spacing_mode"] = args.spacing_mode
    if args.handedness is not None:
        overrides["handedness"] = args.handedness
    return replace(config, **overrides) if overrides else config


def _measure_options(settings: Dict[str, Any], args: argparse.Namespace) -> MeasureOptions:
    try:
        options = MeasureOptions.from_settings(settings)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid measurement settings: {exc}") from exc
    overrides: Dict[str, Any] = {}
    if args.azimuth is not None:
        overrides["azimuth_deg"] = args.azimuth
    if args.measure_every is not None:
        overrides["measure_every"] = args.measure_every
    return replace(options, **overrides) if overrides else options


def _plan_summary(plans, measurements) -> Dict[str, Any]:
    totals = summarize_measurements(measurements)
    objects: Dict[str, Any] = {}
    for object_id, plan in plans.items():
        entry: Dict[str, Any] = {
            "magicRing": plan.magic_ring.stitch_count if plan.magic_ring else None,
            "pattern": pattern_lines(plan),
            "notes": list(plan.notes),
        }
        if plan.chain is not None:
            entry["spokes"] = len(plan.chain.spokes)
            entry["countsPerLayer"] = [list(item) for item in plan.chain.counts_per_layer]
            entry["transitionOps"] = plan.chain.transition_ops
            entry["childMaps"] = plan.chain.child_maps
            entry["pendingSplits"] = plan.chain.pending_splits
        if object_id in totals:
            entry["measurement"] = totals[object_id]
        objects[object_id] = entry
    return {"objects": objects}


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Plan crochet rounds for a sliced ring stack")
    parser.add_argument("path", help="Path to the scene JSON file")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--gauge-width",
        type=float,
        help="Stitch width in scene units (overrides the scene settings)",
    )
    parser.add_argument(
        "--yarn-size",
        type=int,
        help="Yarn size level 1..9 used to derive the stitch width",
    )
    parser.add_argument(
        "--spacing-mode",
        choices=["even", "jagged"],
        help="Placement of increases and decreases",
    )
    parser.add_argument(
        "--handedness",
        choices=["left", "right"],
        help="Working direction around each round",
    )
    parser.add_argument(
        "--azimuth",
        type=float,
        help="Fixed azimuth in degrees for measurement anchors",
    )
    parser.add_argument(
        "--measure-every",
        type=int,
        help="Measure every N-th ring pair (default: 1)",
    )
    parser.add_argument(
        "--no-measure",
        action="store_true",
        help="Skip the measurement pass",
    )
    parser.add_argument(
        "--json-output",
        help="Write the plan summary as JSON to the given path",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    try:
        scene = load_scene(args.path)
        config = _planner_config(scene.settings, args)
        options = _measure_options(scene.settings, args)
    except (IngestError, ConfigError) as exc:
        logger.error("%s", exc)
        raise SystemExit(1)

    if not scene.rings:
        logger.error("Scene contains no usable rings")
        raise SystemExit(1)

    plans = plan_scene(scene.rings, scene.poles, config)
    measurements = {} if args.no_measure else measure_scene(scene.rings, scene.poles, options)

    for object_id, plan in plans.items():
        print(format_pattern(plan))
        result = measurements.get(object_id)
        if result is not None:
            kind = "projected" if result.projected else "straight"
            print(f"  length ({result.strategy}, {kind}): {result.total:.3f}")

    if args.json_output:
        output_path = Path(args.json_output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(_plan_summary(plans, measurements), indent=2), encoding="utf-8")
        logger.info("Plan summary written to %s", output_path)


if __name__ == "__main__":
    main()
