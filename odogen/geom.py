# odogen/geom.py
"""
Geometry kernel shared by drawing, code generation and simulation.

Everything here is stateless. Points are ``(x, y)`` pairs in metres and
anything indexable works; ``Point``/``Pose`` are the named forms the model
hands out. Degenerate input (coincident points, parallel lines) is resolved
with documented fallbacks instead of raising.
"""

from __future__ import annotations

import math
from typing import List, NamedTuple, Optional, Sequence

EPS = 1e-6


class Point(NamedTuple):
    x: float
    y: float


class Pose(NamedTuple):
    x: float
    y: float
    h: float = 0.0


def deg(r: float) -> float:
    return r * 180.0 / math.pi


def rad(d: float) -> float:
    return d * math.pi / 180.0


def round_half_up(v: float) -> int:
    """Round .5 away from -inf, the way generated programs expect (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(v + 0.5))


def normalize_angle_deg(d: float) -> float:
    """Reduce an angle to (-180, 180]."""
    r = math.fmod(float(d), 360.0)
    if r > 180.0:
        r -= 360.0
    elif r <= -180.0:
        r += 360.0
    return r


def distance(p0, p1) -> float:
    return math.hypot(p1[0] - p0[0], p1[1] - p0[1])


def bearing_deg(p0, p1) -> float:
    """Direction of travel from p0 to p1 in degrees, math frame."""
    return deg(math.atan2(p1[1] - p0[1], p1[0] - p0[0]))


def line_intersection(p0, d0, p1, d1) -> Optional[Point]:
    """
    Intersect the lines ``p0 + s*d0`` and ``p1 + t*d1``.

    Returns None when the directions are parallel (|cross| < 1e-6).
    """
    cross = d0[0] * d1[1] - d0[1] * d1[0]
    if abs(cross) < EPS:
        return None
    dx = p1[0] - p0[0]
    dy = p1[1] - p0[1]
    s = (dx * d1[1] - dy * d1[0]) / cross
    return Point(p0[0] + s * d0[0], p0[1] + s * d0[1])


def default_arc_control(prev, end) -> Point:
    """
    Control point for an arc with no explicit one: the chord midpoint pushed
    out to the left of the chord by 30% of its length. Coincident endpoints
    give the midpoint.
    """
    dx = end[0] - prev[0]
    dy = end[1] - prev[1]
    mid_x = (prev[0] + end[0]) / 2.0
    mid_y = (prev[1] + end[1]) / 2.0
    dist = math.hypot(dx, dy)
    if dist < EPS:
        return Point(mid_x, mid_y)
    perp = math.atan2(dy, dx) + math.pi / 2.0
    off = dist * 0.3
    return Point(mid_x + math.cos(perp) * off, mid_y + math.sin(perp) * off)


def bezier_point(t: float, p0, p1, p2) -> Point:
    """Quadratic Bezier at parameter t in [0, 1]."""
    if t <= 0.0:
        return Point(float(p0[0]), float(p0[1]))
    if t >= 1.0:
        return Point(float(p2[0]), float(p2[1]))
    mt = 1.0 - t
    a, b, c = mt * mt, 2.0 * mt * t, t * t
    return Point(a * p0[0] + b * p1[0] + c * p2[0],
                 a * p0[1] + b * p1[1] + c * p2[1])


def bezier_tangent_deg(t: float, p0, p1, p2) -> float:
    """Direction of the first derivative at t, in degrees."""
    mt = 1.0 - t
    dx = 2.0 * mt * (p1[0] - p0[0]) + 2.0 * t * (p2[0] - p1[0])
    dy = 2.0 * mt * (p1[1] - p0[1]) + 2.0 * t * (p2[1] - p1[1])
    return deg(math.atan2(dy, dx))


def bezier_length(p0, p1, p2, steps: int = 10) -> float:
    """Curve length approximated by summing chords over equal parameter steps."""
    total = 0.0
    last = p0
    for s in range(1, steps + 1):
        pt = bezier_point(s / steps, p0, p1, p2)
        total += distance(last, pt)
        last = pt
    return total


def _collapse(points: List[Point]) -> List[Point]:
    out: List[Point] = []
    for p in points:
        if out and distance(out[-1], p) <= EPS:
            continue
        out.append(p)
    return out


def smooth_field_path(points: Sequence) -> List[Point]:
    """
    Two passes of Chaikin corner cutting. Every consecutive pair is replaced by
    its 1/4 and 3/4 interpolants, endpoints are kept, and near-duplicate
    neighbours are collapsed after each pass.
    """
    pts = [Point(float(p[0]), float(p[1])) for p in points]
    if len(pts) < 2:
        return []
    for _ in range(2):
        new_pts = [pts[0]]
        for p0, p1 in zip(pts, pts[1:]):
            new_pts.append(Point(0.75 * p0.x + 0.25 * p1.x, 0.75 * p0.y + 0.25 * p1.y))
            new_pts.append(Point(0.25 * p0.x + 0.75 * p1.x, 0.25 * p0.y + 0.75 * p1.y))
        new_pts.append(pts[-1])
        pts = _collapse(new_pts)
    return pts


def refine_polyline(points: Sequence, max_gap: float = 0.5, step: float = 0.2) -> List[Point]:
    """Insert evenly spaced samples into gaps longer than max_gap."""
    out: List[Point] = []
    for i, p in enumerate(points):
        out.append(Point(float(p[0]), float(p[1])))
        if i == len(points) - 1:
            break
        q = points[i + 1]
        d = distance(p, q)
        if d > max_gap:
            n = int(math.ceil(d / step))
            for k in range(1, n):
                f = k / n
                out.append(Point(p[0] + (q[0] - p[0]) * f, p[1] + (q[1] - p[1]) * f))
    return out
