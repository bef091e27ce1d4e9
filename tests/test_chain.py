import logging
import math

import pytest

from ringstitch import (
    PlannerConfig,
    Pole,
    Ring,
    label_layers,
    plan_chain,
    plan_object,
    plan_scene,
)


def _circle(y, radius, n=24, object_id="cone", source_kind=None):
    points = tuple(
        (radius * math.cos(2 * math.pi * i / n), float(y), radius * math.sin(2 * math.pi * i / n))
        for i in range(n)
    )
    return Ring(object_id=object_id, key=float(y), polylines=(points,), source_kind=source_kind)


def _cone(object_id="cone", heights=(1, 2, 3, 4, 5)):
    return [_circle(y, 0.6 + 0.4 * y, object_id=object_id) for y in heights]


def _poles(object_id=None):
    return [
        Pole((0.0, 0.0, 0.0), role="start", object_id=object_id),
        Pole((0.0, 6.0, 0.0), role="end", object_id=object_id),
    ]


def _rounded(point):
    return tuple(round(c, 9) for c in point)


def test_plan_object_builds_magic_ring_and_rounds():
    plan = plan_object(_cone(), _poles(), PlannerConfig(gauge_width=0.5))

    assert plan.magic_ring is not None
    assert plan.magic_ring.stitch_count >= 3
    assert len(plan.chain.steps) == 4
    assert [step.key for step in plan.chain.steps] == [2.0, 3.0, 4.0, 5.0]
    assert plan.notes == []


def test_magic_ring_stitches_sit_on_the_first_ring():
    plan = plan_object(_cone(), _poles(), PlannerConfig(gauge_width=0.5)).chain

    assert len(plan.seed_nodes) == 13
    for node in plan.seed_nodes:
        x, y, z = node.position
        assert y == pytest.approx(1.0)
        assert math.hypot(x, z) == pytest.approx(1.0)


def test_spokes_join_the_start_pole_to_each_magic_ring_stitch():
    plan = plan_object(_cone(), _poles(), PlannerConfig(gauge_width=0.5)).chain

    assert len(plan.spokes) == len(plan.seed_nodes)
    assert all(spoke.a == (0.0, 0.0, 0.0) for spoke in plan.spokes)
    assert [spoke.b for spoke in plan.spokes] == [node.position for node in plan.seed_nodes]
    assert {spoke.label for spoke in plan.spokes} == {"P→0"}


def test_every_step_keeps_count_invariant_and_has_no_orphans():
    plan = plan_object(_cone(), _poles(), PlannerConfig(gauge_width=0.5)).chain

    previous_count = len(plan.seed_nodes)
    for step in plan.steps:
        assert step.status in ("ok", "saturated")
        assert step.from_count == previous_count
        assert step.to_count == step.from_count + len(step.increases) - len(step.decreases)
        assert {s.source for s in step.segments} == set(range(step.from_count))
        assert {s.target for s in step.segments} == set(range(step.to_count))
        previous_count = step.to_count


def test_segments_start_on_previous_ring_nodes():
    plan = plan_object(_cone(), _poles(), PlannerConfig(gauge_width=0.5)).chain

    previous_nodes = plan.seed_nodes
    for step in plan.steps:
        allowed = {_rounded(node.position) for node in previous_nodes}
        assert all(_rounded(s.a) in allowed for s in step.segments)
        previous_nodes = step.next_nodes


def test_saturated_step_still_advances():
    # a tiny magic ring followed by a wide ring cannot grow in one round
    rings = [_circle(1, 0.2), _circle(2, 3.0)]

    plan = plan_object(rings, [Pole((0.0, 0.0, 0.0), role="start")], PlannerConfig(gauge_width=0.5)).chain

    (step,) = plan.steps
    assert step.status == "saturated"
    assert step.to_count == 2 * step.from_count
    assert len(step.next_nodes) == step.to_count


def test_unusable_ring_holds_current_nodes():
    broken = Ring(object_id="cone", key=3.0, polylines=(((0.0, 3.0, 0.0),),))
    rings = [_circle(1, 1.0), _circle(2, 1.4), broken, _circle(4, 2.2)]

    plan = plan_object(rings, _poles(), PlannerConfig(gauge_width=0.5)).chain

    held = plan.steps[1]
    assert held.status == "need_split"
    assert held.segments == []
    assert held.next_nodes == plan.steps[0].next_nodes
    assert held.to_count == held.from_count == plan.steps[0].to_count
    assert plan.steps[2].from_count == plan.steps[0].to_count
    assert plan.pending_splits == [3.0]


def test_plan_chain_without_seed_nodes_holds_every_step():
    layers = label_layers([_circle(1, 1.0, object_id="x"), _circle(2, 1.2, object_id="x")])

    plan = plan_chain(layers, (0.0, 0.0, 0.0), (0.0, 3.0, 0.0), [], 0.0, object_id="x")

    assert [step.status for step in plan.steps] == ["need_split", "need_split"]
    assert plan.chain_segments == []


def test_aggregates_line_up_with_steps():
    plan = plan_object(_cone(), _poles(), PlannerConfig(gauge_width=0.5)).chain

    assert len(plan.counts_per_layer) == len(plan.steps) + 1
    assert plan.counts_per_layer[0] == (0.0, len(plan.seed_nodes))
    assert [op["to"] for op in plan.transition_ops] == [step.to_count for step in plan.steps]
    assert [entry["toCount"] for entry in plan.child_maps] == [step.to_count for step in plan.steps]
    assert len(plan.chain_segments) == sum(len(step.segments) for step in plan.steps)
    assert all(spacing > 0 for _, spacing in plan.spacing_per_layer)


def test_segment_labels_name_the_round_transition():
    plan = plan_object(_cone(), _poles(), PlannerConfig(gauge_width=0.5)).chain

    assert {s.label for s in plan.steps[0].segments} == {"0→1"}
    assert {s.label for s in plan.steps[2].segments} == {"2→3"}


def test_chain_start_rings_are_not_planned():
    rings = _cone() + [_circle(2.5, 1.6, source_kind="chain-start")]

    plan = plan_object(rings, _poles(), PlannerConfig(gauge_width=0.5))

    assert 2.5 not in [step.key for step in plan.chain.steps]
    assert any(layer.key == 2.5 for layer in plan.layers)


def test_jagged_plans_are_reproducible():
    config = PlannerConfig(gauge_width=0.3, spacing_mode="jagged")

    first = plan_object(_cone(), _poles(), config).chain
    second = plan_object(_cone(), _poles(), config).chain

    assert first.transition_ops == second.transition_ops
    assert [s.actions for s in (step.plan for step in first.steps)] == [
        s.actions for s in (step.plan for step in second.steps)
    ]


def test_start_pole_at_top_reverses_the_stack():
    poles = [Pole((0.0, 6.0, 0.0), role="start"), Pole((0.0, 0.0, 0.0), role="end")]

    plan = plan_object(_cone(), poles, PlannerConfig(gauge_width=0.5))

    assert [step.key for step in plan.chain.steps] == [4.0, 3.0, 2.0, 1.0]


def test_missing_poles_are_noted():
    plan = plan_object(_cone(), [], PlannerConfig(gauge_width=0.5))

    assert plan.chain is not None
    assert any("start pole" in note for note in plan.notes)


def test_plan_scene_plans_each_object():
    rings = _cone("a") + _cone("b", heights=(1, 2))
    poles = _poles("a") + _poles("b")

    plans = plan_scene(rings, poles, PlannerConfig(gauge_width=0.5))

    assert set(plans) == {"a", "b"}
    assert len(plans["a"].chain.steps) == 4
    assert len(plans["b"].chain.steps) == 1


def test_debug_logging_traces_pipeline_calls(caplog):
    with caplog.at_level(logging.DEBUG, logger="ringstitch.chain"):
        plan_object(_cone(), _poles(), PlannerConfig(gauge_width=0.5))

    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("-> plan_chain(") for message in messages)
    assert any(message.startswith("<- plan_object") for message in messages)
