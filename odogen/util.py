# odogen/util.py
import math

from .config import FIELD_METERS, PPM, WINDOW_HEIGHT
from .geom import Point

HANDLE_RADIUS_PX = 18


def to_pixels(mx: float, my: float):
    """Field metres (origin at field centre, +y up) to window pixels."""
    return ((mx + FIELD_METERS / 2.0) * PPM,
            WINDOW_HEIGHT - (my + FIELD_METERS / 2.0) * PPM)


def to_meters(px: float, py: float) -> Point:
    """Window pixels to field metres."""
    return Point(px / PPM - FIELD_METERS / 2.0,
                 (WINDOW_HEIGHT - py) / PPM - FIELD_METERS / 2.0)


def handle_pos_px(x: float, y: float, h: float):
    """Screen position of a heading handle for a pose."""
    px, py = to_pixels(x, y)
    return (px + math.cos(h) * HANDLE_RADIUS_PX, py + math.sin(h) * HANDLE_RADIUS_PX)


def heading_from_handle(x: float, y: float, mouse_px):
    """Internal heading (radians) for a handle dragged to mouse_px."""
    px, py = to_pixels(x, y)
    return math.atan2(mouse_px[1] - py, mouse_px[0] - px)


def nearest_index(points_px, mouse_px, radius_px: float):
    """Index of the closest point within radius, or None."""
    best, best_i = radius_px * radius_px, None
    for i, (x, y) in enumerate(points_px):
        d2 = (x - mouse_px[0]) ** 2 + (y - mouse_px[1]) ** 2
        if d2 < best:
            best, best_i = d2, i
    return best_i


def pick_target(session, mouse_px, radius_px: float):
    """
    What a click grabs: ("start"|"start_h"|"wp"|"heading"|"control"|"select", index).

    Action waypoints only come back as "select"; their position belongs to
    their marker, so they are never drag targets.
    """
    s = session.start
    if nearest_index([to_pixels(s.x, s.y)], mouse_px, radius_px) is not None:
        return "start", None
    for i, wp in enumerate(session.waypoints):
        hit = nearest_index([to_pixels(wp.x, wp.y)], mouse_px, radius_px) is not None
        if wp.kind == "action":
            if hit:
                return "select", i
            continue
        if hit:
            return "wp", i
        if wp.kind == "arc" and session.mode == "robot":
            c = session.effective_arc_control(i)
            if nearest_index([to_pixels(c.x, c.y)], mouse_px, radius_px) is not None:
                return "control", i
        if nearest_index([handle_pos_px(wp.x, wp.y, wp.h)], mouse_px, radius_px) is not None:
            return "heading", i
    if nearest_index([handle_pos_px(s.x, s.y, s.h)], mouse_px, radius_px) is not None:
        return "start_h", None
    return None, None


class DragGesture:
    """One press-move-release on a pick target. Snapshots on the first move only."""

    def __init__(self, session, target: str, index=None):
        self.session = session
        self.target = target
        self.index = index
        self.moved = False

    def move(self, mouse_px):
        if not self.moved:
            self.session.begin_drag()
            self.moved = True
        session, idx = self.session, self.index
        m = to_meters(*mouse_px)
        if self.target == "wp":
            session.drag_waypoint(idx, m.x, m.y)
        elif self.target == "heading":
            wp = session.waypoints[idx]
            session.drag_heading(idx, heading_from_handle(wp.x, wp.y, mouse_px))
        elif self.target == "control":
            session.drag_arc_control(idx, m)
        elif self.target == "start":
            session.drag_start(m.x, m.y)
        elif self.target == "start_h":
            session.drag_start_heading(heading_from_handle(session.start.x, session.start.y, mouse_px))
