"""Example pipeline: plan the rounds of a crocheted cone and measure its height."""

import math

from ringstitch import MeasureOptions, PlannerConfig, Pole, Ring, format_pattern, measure_scene, plan_object


def _circle(y, radius, n=32):
    points = tuple(
        (radius * math.cos(2 * math.pi * i / n), y, radius * math.sin(2 * math.pi * i / n))
        for i in range(n)
    )
    return Ring(object_id="cone", key=y, polylines=(points,), object_type="cone")


def main() -> None:
    rings = [_circle(0.5 * k, 0.3 + 0.25 * k) for k in range(1, 9)]
    poles = [Pole((0.0, 0.0, 0.0)), Pole((0.0, 5.0, 0.0))]

    plan = plan_object(rings, poles, PlannerConfig(gauge_width=0.4, spacing_mode="jagged"))
    print(format_pattern(plan))

    measurements = measure_scene(rings, poles, MeasureOptions(azimuth_deg=0.0))
    for segment in measurements["cone"].segments:
        print(f"{segment.label}: {segment.value:.3f}")
    print(f"total: {measurements['cone'].total:.3f}")


if __name__ == "__main__":
    main()
