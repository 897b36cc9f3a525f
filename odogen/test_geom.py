# Geometry kernel checks: angle wrapping, Bezier endpoints, fallbacks.
import math
from .geom import (
    bezier_length, bezier_point, bezier_tangent_deg, default_arc_control,
    line_intersection, normalize_angle_deg, refine_polyline, round_half_up,
    smooth_field_path,
)


def test_normalize_range_and_period():
    for d in range(-1080, 1081, 7):
        r = normalize_angle_deg(d)
        assert -180.0 < r <= 180.0, f"{d} -> {r} out of range"
        assert abs(normalize_angle_deg(d + 360) - r) < 1e-9, f"{d} not periodic"
    assert normalize_angle_deg(180) == 180.0
    assert normalize_angle_deg(-180) == 180.0
    assert normalize_angle_deg(540) == 180.0
    assert normalize_angle_deg(-190) == 170.0


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    assert round_half_up(-0.0) == 0
    assert round_half_up(89.6) == 90


def test_bezier_endpoints_exact():
    p0, p1, p2 = (0.3, -1.1), (2.0, 5.0), (1.7, 0.4)
    assert bezier_point(0.0, p0, p1, p2) == p0
    assert bezier_point(1.0, p0, p1, p2) == p2
    assert bezier_point(-0.2, p0, p1, p2) == p0
    assert bezier_point(1.5, p0, p1, p2) == p2


def test_bezier_straight_line():
    # control on the chord: length equals chord, tangent follows the chord
    p0, p1, p2 = (0.0, 0.0), (1.0, 1.0), (2.0, 2.0)
    assert abs(bezier_length(p0, p1, p2) - math.hypot(2.0, 2.0)) < 1e-9
    assert abs(bezier_tangent_deg(0.5, p0, p1, p2) - 45.0) < 1e-9


def test_default_control_left_of_chord():
    c = default_arc_control((0.0, 0.0), (2.0, 0.0))
    assert abs(c.x - 1.0) < 1e-9
    assert abs(c.y - 0.6) < 1e-9
    # deterministic: recomputing from the same endpoints gives the same point
    assert default_arc_control((0.0, 0.0), (2.0, 0.0)) == c


def test_default_control_coincident_is_midpoint():
    c = default_arc_control((1.0, 1.0), (1.0, 1.0))
    assert (c.x, c.y) == (1.0, 1.0)


def test_line_intersection():
    p = line_intersection((0.0, 0.0), (1.0, 0.0), (1.0, -1.0), (0.0, 1.0))
    assert p is not None
    assert abs(p.x - 1.0) < 1e-9 and abs(p.y) < 1e-9
    assert line_intersection((0.0, 0.0), (1.0, 1.0), (0.0, 1.0), (2.0, 2.0)) is None


def test_smooth_keeps_endpoints():
    pts = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)]
    out = smooth_field_path(pts)
    assert out[0] == (0.0, 0.0)
    assert out[-1] == (1.0, 1.0)
    assert len(out) > len(pts)
    assert smooth_field_path([(0.0, 0.0)]) == []


def test_smooth_collapses_repeats():
    out = smooth_field_path([(0.0, 0.0), (0.0, 0.0), (1.0, 0.0), (1.0, 0.0), (1.0, 1.0)])
    assert out[0] == (0.0, 0.0)
    assert out[-1] == (1.0, 1.0)
    for a, b in zip(out, out[1:]):
        assert math.hypot(b.x - a.x, b.y - a.y) > 1e-6, (a, b)


def test_refine_fills_long_gaps():
    out = refine_polyline([(0.0, 0.0), (1.0, 0.0)], max_gap=0.5, step=0.2)
    assert out[0] == (0.0, 0.0) and out[-1] == (1.0, 0.0)
    gaps = [b.x - a.x for a, b in zip(out, out[1:])]
    assert max(gaps) <= 0.2 + 1e-9


def run():
    test_normalize_range_and_period()
    test_round_half_up()
    test_bezier_endpoints_exact()
    test_bezier_straight_line()
    test_default_control_left_of_chord()
    test_default_control_coincident_is_midpoint()
    test_line_intersection()
    test_smooth_keeps_endpoints()
    test_smooth_collapses_repeats()
    test_refine_fills_long_gaps()


if __name__ == "__main__":
    run()
