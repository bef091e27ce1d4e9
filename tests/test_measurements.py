import logging
import math

import pytest

from ringstitch import (
    MeasureOptions,
    Pole,
    Ring,
    generic_segments,
    label_layers,
    measure_object,
    measure_scene,
    sideways_segments,
    sphere_segments,
    summarize_measurements,
)
from ringstitch.measurements import select_strategy


def _circle_y(y, radius=1.0, n=16, object_id="obj", object_type="generic", source_kind=None):
    points = tuple(
        (radius * math.cos(2 * math.pi * i / n), float(y), radius * math.sin(2 * math.pi * i / n))
        for i in range(n)
    )
    return Ring(
        object_id=object_id,
        key=float(y),
        polylines=(points,),
        object_type=object_type,
        source_kind=source_kind,
    )


def _circle_x(x, radius=1.0, n=16, object_id="side"):
    points = tuple(
        (float(x), radius * math.cos(2 * math.pi * i / n), radius * math.sin(2 * math.pi * i / n))
        for i in range(n)
    )
    return Ring(object_id=object_id, key=float(x), polylines=(points,))


def _column():
    return label_layers([_circle_y(y) for y in (1, 2, 3)])


def _sphere_rings():
    return [
        _circle_y(y, radius=math.sqrt(4.0 - y * y), object_id="ball", object_type="sphere")
        for y in (-1.0, 0.0, 1.0)
    ]


def test_generic_segments_use_projected_distances():
    result = generic_segments(_column(), (0.0, 0.0, 0.0), (0.0, 4.0, 0.0))

    assert result.strategy == "generic"
    assert result.projected
    assert [s.label for s in result.segments] == ["P→0", "0→1", "1→2", "2→P"]
    assert [s.value for s in result.segments] == pytest.approx([1.0, 1.0, 1.0, 1.0])
    assert result.total == pytest.approx(4.0)
    assert result.anchors[0] == pytest.approx((1.0, 1.0, 0.0))


def test_generic_segments_reach_end_pole_whether_or_not_close():
    near = generic_segments(_column(), (0.0, 0.0, 0.0), (1.0, 3.01, 0.0))
    far = generic_segments(_column(), (0.0, 0.0, 0.0), (0.0, 9.0, 0.0))

    assert near.segments[-1].label == "2→P"
    assert far.segments[-1].label == "2→P"
    assert far.segments[-1].b == (0.0, 9.0, 0.0)


def test_measure_every_strides_over_ring_pairs():
    layers = label_layers([_circle_y(y) for y in (1, 2, 3, 4, 5)])

    result = generic_segments(layers, (0.0, 0.0, 0.0), (0.0, 6.0, 0.0), MeasureOptions(measure_every=2))

    assert [s.label for s in result.segments] == ["P→0", "0→1", "2→3", "4→P"]


def test_poles_can_be_left_out():
    result = generic_segments(_column(), (0.0, 0.0, 0.0), (0.0, 4.0, 0.0), MeasureOptions(include_poles=False))

    assert [s.label for s in result.segments] == ["0→1", "1→2"]


def test_generic_without_start_pole_measures_nothing():
    result = generic_segments(_column(), None, None)

    assert result.segments == []


def test_straight_distance_when_projection_disabled():
    result = generic_segments(
        _column(), (0.0, 0.0, 0.0), (0.0, 4.0, 0.0), MeasureOptions(project_along_axis=False)
    )

    assert not result.projected
    assert result.segments[0].value == pytest.approx(math.sqrt(2.0))


def test_sphere_segments_use_straight_distances():
    layers = label_layers(_sphere_rings())

    result = sphere_segments(layers, (0.0, 2.0, 0.0), (0.0, -2.0, 0.0))

    assert result.strategy == "sphere"
    assert not result.projected
    assert len(result.segments) == 4
    assert result.segments[0].a == (0.0, -2.0, 0.0)
    assert result.segments[0].value == pytest.approx(2.0)
    assert result.total > 4.0


def test_sideways_segments_follow_the_lying_stack():
    layers = label_layers([_circle_x(3.0), _circle_x(1.0), _circle_x(2.0)])

    result = sideways_segments(layers, (0.0, 0.0, 0.0), (4.0, 0.0, 0.0))

    assert result.strategy == "sideways"
    assert [s.label for s in result.segments] == ["P→0", "0→1", "1→2", "2→P"]
    assert [s.value for s in result.segments] == pytest.approx([1.0, 1.0, 1.0, 1.0])


def test_sideways_snaps_last_anchor_onto_end_pole():
    layers = label_layers([_circle_x(1.0), _circle_x(2.0)])
    end = (2.0, 1.0, 0.01)

    result = sideways_segments(layers, (0.0, 1.0, 0.0), end, MeasureOptions(snap_pole_epsilon=0.05))

    assert result.anchors[-1] == end
    assert result.segments[-1].value == pytest.approx(0.0)


def test_sphere_snaps_last_anchor_onto_end_pole():
    rings = _sphere_rings() + [
        _circle_y(1.999, radius=math.sqrt(4.0 - 1.999 ** 2), object_id="ball", object_type="sphere")
    ]

    result = sphere_segments(
        label_layers(rings), (0.0, -2.0, 0.0), (0.0, 2.0, 0.0), MeasureOptions(snap_pole_epsilon=0.1)
    )

    assert result.anchors[-1] == (0.0, 2.0, 0.0)
    assert result.segments[-1].label == "3→P"
    assert result.segments[-1].value == pytest.approx(0.0)


def test_strategy_selection():
    column = _column()
    ball = label_layers(_sphere_rings())

    assert select_strategy(column, (0.0, 0.0, 0.0), (0.0, 4.0, 0.0)) == "generic"
    assert select_strategy(column, (0.0, 0.0, 0.0), (4.0, 1.0, 0.0)) == "sideways"
    assert select_strategy(ball, (0.0, -2.0, 0.0), (0.0, 2.0, 0.0)) == "sphere"
    assert select_strategy(ball, (0.0, -2.0, 0.0), None) == "generic"


def test_measure_object_dispatches_on_poles():
    layers = label_layers([_circle_x(1.0), _circle_x(2.0), _circle_x(3.0)])
    poles = [Pole((0.0, 0.0, 0.0), role="start"), Pole((4.0, 0.0, 0.0), role="end")]

    result = measure_object(layers, poles)

    assert result.strategy == "sideways"


def test_measure_scene_groups_objects_and_skips_empty_ones(caplog):
    rings = (
        [_circle_y(y, object_id="col") for y in (1, 2, 3)]
        + _sphere_rings()
        + [_circle_y(5, object_id="stub", source_kind="chain-start")]
    )
    poles = [
        Pole((0.0, 0.0, 0.0), object_id="col"),
        Pole((0.0, 4.0, 0.0), object_id="col"),
        Pole((0.0, 2.0, 0.0), object_id="ball"),
        Pole((0.0, -2.0, 0.0), object_id="ball"),
    ]

    with caplog.at_level(logging.WARNING, logger="ringstitch.measurements"):
        results = measure_scene(rings, poles)

    assert set(results) == {"col", "ball"}
    assert results["col"].strategy == "generic"
    assert results["ball"].strategy == "sphere"
    assert any("stub" in record.getMessage() for record in caplog.records)

    summary = summarize_measurements(results)
    assert summary["col"]["total"] == pytest.approx(4.0)
    assert summary["col"]["segments"] == 4


def test_measurements_are_repeatable():
    rings = [_circle_y(y, radius=1.0 + 0.2 * y) for y in (1, 2, 3, 4)]
    poles = [Pole((0.0, 0.0, 0.0)), Pole((0.0, 5.0, 0.0))]
    options = MeasureOptions(azimuth_deg=45.0)

    first = measure_scene(rings, poles, options)
    second = measure_scene(rings, poles, options)

    assert first["obj"].anchors == second["obj"].anchors
    assert first["obj"].segments == second["obj"].segments
