import math

import pytest

from ringstitch import (
    Pole,
    Ring,
    filter_measurable_layers,
    label_layers,
    label_layers_by_object,
    order_layers_along_axis,
    plannable_rings,
    sort_layers_by_key,
)


def _circle(y, radius=1.0, n=16, object_id="obj", source_kind=None):
    points = tuple(
        (radius * math.cos(2 * math.pi * i / n), float(y), radius * math.sin(2 * math.pi * i / n))
        for i in range(n)
    )
    return Ring(object_id=object_id, key=float(y), polylines=(points,), source_kind=source_kind)


def test_sort_layers_by_key():
    rings = [_circle(3), _circle(1), _circle(2)]

    assert [r.key for r in sort_layers_by_key(rings)] == [1.0, 2.0, 3.0]


def test_labels_follow_key_order_without_poles():
    layers = label_layers([_circle(3), _circle(1), _circle(2)])

    assert [layer.key for layer in layers] == [1.0, 2.0, 3.0]
    assert [layer.s_index for layer in layers] == [0, 1, 2]
    assert [layer.e_index for layer in layers] == [2, 1, 0]
    assert [layer.t01 for layer in layers] == pytest.approx([0.0, 0.5, 1.0])


def test_labels_reverse_when_start_pole_is_near_last_ring():
    poles = [Pole((0.0, 3.5, 0.0), role="start"), Pole((0.0, 0.0, 0.0), role="end")]

    layers = label_layers([_circle(1), _circle(2), _circle(3)], poles)

    assert [layer.key for layer in layers] == [3.0, 2.0, 1.0]
    assert [layer.s_index for layer in layers] == [0, 1, 2]


def test_s_index_is_contiguous_and_t01_monotonic():
    rings = [_circle(y) for y in (5, 0.5, 2, 8, 3.25, 1)]
    poles = [Pole((0.0, 9.0, 0.0), role="start")]

    layers = label_layers(rings, poles)

    assert sorted(layer.s_index for layer in layers) == list(range(len(rings)))
    t_values = [layer.t01 for layer in sorted(layers, key=lambda layer: layer.s_index)]
    assert t_values == sorted(t_values)
    assert t_values[0] == 0.0 and t_values[-1] == 1.0


def test_single_ring_has_zero_t01():
    (layer,) = label_layers([_circle(2)])

    assert layer.t01 == 0.0
    assert layer.e_index == 0


def test_label_layers_by_object_uses_each_objects_poles():
    rings = [_circle(1, object_id="a"), _circle(2, object_id="a"), _circle(1, object_id="b")]
    poles = [
        Pole((0.0, 3.0, 0.0), role="start", object_id="a"),
        Pole((0.0, 0.0, 0.0), role="end", object_id="a"),
    ]

    labeled, meta = label_layers_by_object(rings, poles)

    a_layers = [layer for layer in labeled if layer.object_id == "a"]
    assert [layer.key for layer in a_layers] == [2.0, 1.0]
    assert meta["a"] == {"count": 2, "has_start": True, "has_end": True}
    assert meta["b"] == {"count": 1, "has_start": False, "has_end": False}


def test_filter_measurable_layers_drops_chain_start_and_sparse_rings():
    sparse = Ring("obj", 3.0, (((0.0, 3.0, 0.0), (1.0, 3.0, 0.0), (1.0, 3.0, 1.0)),))
    first_sparse = Ring("obj", 0.0, (((0.0, 0.0, 0.0), (1.0, 0.0, 0.0)),))
    rings = [first_sparse, _circle(1), _circle(2, source_kind="chain-start"), sparse]

    layers = filter_measurable_layers(label_layers(rings))

    assert [layer.key for layer in layers] == [0.0, 1.0]


def test_filter_measurable_layers_without_loose_first():
    first_sparse = Ring("obj", 0.0, (((0.0, 0.0, 0.0), (1.0, 0.0, 0.0)),))
    layers = label_layers([first_sparse, _circle(1)])

    kept = filter_measurable_layers(layers, allow_loose_first=False, force_include_index=None)

    assert [layer.key for layer in kept] == [1.0]


def test_plannable_rings_excludes_chain_start():
    rings = [_circle(1), _circle(2, source_kind="chain-start"), _circle(3)]

    assert [r.key for r in plannable_rings(rings)] == [1.0, 3.0]


def test_order_layers_along_axis_uses_mid_vertex_projection():
    rings = [_circle(3), _circle(-1), _circle(2)]

    ordered = order_layers_along_axis(rings, (0.0, 0.0, 0.0), (0.0, -1.0, 0.0))

    assert [r.key for r in ordered] == [3.0, 2.0, -1.0]
