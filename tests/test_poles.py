import math

from ringstitch import Pole, Ring, pole_positions, poles_for_object, resolve_pole_roles


def _circle(y, radius=1.0, n=16, object_id="obj"):
    points = tuple(
        (radius * math.cos(2 * math.pi * i / n), float(y), radius * math.sin(2 * math.pi * i / n))
        for i in range(n)
    )
    return Ring(object_id=object_id, key=float(y), polylines=(points,))


def test_single_pole_becomes_start():
    resolved = resolve_pole_roles([Pole((0.0, 0.0, 0.0))])

    assert [p.role for p in resolved] == ["start"]


def test_empty_input_returns_empty_list():
    assert resolve_pole_roles([]) == []


def test_two_unlabeled_poles_start_is_nearer_first_ring():
    top = Pole((0.0, 10.0, 0.0))
    bottom = Pole((0.0, 0.0, 0.0))

    resolved = resolve_pole_roles([top, bottom], [_circle(1.0)])

    assert resolved[0].role == "end"
    assert resolved[1].role == "start"
    # inputs are left untouched
    assert top.role is None and bottom.role is None


def test_first_ring_is_chosen_by_key_not_list_order():
    rings = [_circle(9.0), _circle(1.0)]

    resolved = resolve_pole_roles([Pole((0.0, 10.0, 0.0)), Pole((0.0, 0.0, 0.0))], rings)

    assert [p.role for p in resolved] == ["end", "start"]


def test_known_start_fills_end_on_other_pole():
    resolved = resolve_pole_roles([Pole((0.0, 0.0, 0.0)), Pole((0.0, 5.0, 0.0), role="start")])

    assert [p.role for p in resolved] == ["end", "start"]


def test_known_end_fills_start_on_other_pole():
    resolved = resolve_pole_roles([Pole((0.0, 0.0, 0.0), role="end"), Pole((0.0, 5.0, 0.0))])

    assert [p.role for p in resolved] == ["end", "start"]


def test_farthest_pair_without_rings_and_extra_pole_cleared():
    poles = [
        Pole((0.0, 0.0, 0.0)),
        Pole((0.0, 1.0, 0.0)),
        Pole((0.0, 10.0, 0.0)),
    ]

    resolved = resolve_pole_roles(poles)

    assert [p.role for p in resolved] == ["start", None, "end"]


def test_poles_for_object_includes_untagged_markers():
    poles = [
        Pole((0.0, 0.0, 0.0), object_id="a"),
        Pole((0.0, 1.0, 0.0), object_id="b"),
        Pole((0.0, 2.0, 0.0)),
    ]

    selected = poles_for_object(poles, "a")

    assert [p.position for p in selected] == [(0.0, 0.0, 0.0), (0.0, 2.0, 0.0)]


def test_pole_positions_falls_back_to_marker_order():
    poles = [Pole((1.0, 0.0, 0.0)), Pole((2.0, 0.0, 0.0), role="end")]

    start, end = pole_positions(poles)

    assert start == (1.0, 0.0, 0.0)
    assert end == (2.0, 0.0, 0.0)


def test_pole_positions_empty():
    assert pole_positions([]) == (None, None)
