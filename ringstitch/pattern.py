"""Written crochet pattern for a planned object."""

from __future__ import annotations

from itertools import groupby
from typing import List, Optional

from .types import ChainStep, ObjectPlan, StitchPlan

ABBREVIATIONS = {
    "carry": "sc",
    "increase": "inc",
    "decrease": "dec",
}


def _run(action: str, length: int) -> str:
    abbr = ABBREVIATIONS.get(action, action)
    if length == 1:
        return abbr
    if action == "carry":
        return f"{abbr} {length}"
    return f"{abbr} x{length}"


def describe_plan(plan: Optional[StitchPlan]) -> str:
    """Compress a round's actions into runs, e.g. ``"sc 2, inc, sc 2, inc"``."""

    if plan is None or not plan.actions:
        return ""
    return ", ".join(_run(action, len(list(items))) for action, items in groupby(plan.actions))


def _round_line(number: int, step: ChainStep) -> str:
    if step.status == "need_split":
        return f"R{number}: hold [{step.to_count}] (needs split at key {step.key:g})"
    line = f"R{number}: {describe_plan(step.plan)} [{step.to_count}]"
    if step.status == "saturated":
        line += " (saturated)"
    return line


def pattern_lines(object_plan: ObjectPlan) -> List[str]:
    lines: List[str] = []
    if object_plan.magic_ring is None:
        return lines
    count = object_plan.magic_ring.stitch_count
    lines.append(f"R1: MR {count} [{count}]")
    if object_plan.chain is not None:
        for offset, step in enumerate(object_plan.chain.steps):
            lines.append(_round_line(offset + 2, step))
    return lines


def format_pattern(object_plan: ObjectPlan) -> str:
    """One line per round headed by the object id."""

    lines = [f"{object_plan.object_id}:"]
    lines.extend(f"  {line}" for line in pattern_lines(object_plan))
    for note in object_plan.notes:
        lines.append(f"  note: {note}")
    return "\n".join(lines)


__all__ = ["ABBREVIATIONS", "describe_plan", "format_pattern", "pattern_lines"]
