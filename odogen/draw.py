# odogen/draw.py

from __future__ import annotations

import math, pygame

from .config import (
    GRID_COLOR, START_COLOR, DRIVE_COLOR, STRAFE_COLOR, ARC_COLOR, ACTION_COLOR,
    HANDLE_COLOR, CONTROL_COLOR, ROBOT_COLOR, ARROW_COLOR, TEXT_COLOR, SELECTED,
)
from .geom import bezier_point
from .util import to_pixels, handle_pos_px

KIND_COLORS = {"drive": DRIVE_COLOR, "strafe": STRAFE_COLOR, "arc": ARC_COLOR}
PREVIEW_COLOR = (16, 185, 129)
STATUS_TEXT = (220, 220, 220)


def draw_grid(surface, grid_size_px):
    """Draw field grid lines."""
    w, h = surface.get_width(), surface.get_height()
    for x in range(0, w, int(grid_size_px)):
        pygame.draw.line(surface, GRID_COLOR, (x, 0), (x, h))
    for y in range(0, h, int(grid_size_px)):
        pygame.draw.line(surface, GRID_COLOR, (0, y), (w, y))


def _diamond(surface, color, pos, r=7, width=0):
    x, y = pos
    pygame.draw.polygon(surface, color, [(x, y - r), (x + r, y), (x, y + r), (x - r, y)], width)


def draw_robot(surface, pos_m, heading_deg):
    """Draw the simulated robot and its heading (program degrees, CCW+)."""
    px, py = to_pixels(*pos_m)
    pygame.draw.circle(surface, ROBOT_COLOR, (int(px), int(py)), 8)
    rad = math.radians(heading_deg)
    tip = (px + math.cos(rad) * 18, py - math.sin(rad) * 18)
    pygame.draw.line(surface, ARROW_COLOR, (px, py), tip, 2)


def draw_preview(surface, points_m):
    """Draw the planned motion polyline."""
    if len(points_m) < 2:
        return
    pts = [to_pixels(p[0], p[1]) for p in points_m]
    pygame.draw.lines(surface, PREVIEW_COLOR, False, pts, 3)


def draw_session(surface, session, font):
    """Draw start, segments, waypoints, handles and markers."""
    s = session.start
    spos = to_pixels(s.x, s.y)
    pygame.draw.circle(surface, START_COLOR, spos, 8)
    pygame.draw.line(surface, START_COLOR, spos, handle_pos_px(s.x, s.y, s.h))
    pygame.draw.circle(surface, (6, 95, 70), handle_pos_px(s.x, s.y, s.h), 6)

    for prev, wp, idx in session.segments():
        a = to_pixels(prev.x, prev.y)
        b = to_pixels(wp.x, wp.y)
        color = KIND_COLORS.get(wp.kind, DRIVE_COLOR)
        if wp.kind == "arc" and session.mode == "robot":
            ctl = session.effective_arc_control(idx)
            curve = [to_pixels(*bezier_point(k / 24.0, (prev.x, prev.y), ctl, (wp.x, wp.y))) for k in range(25)]
            pygame.draw.lines(surface, color, False, curve, 2)
            cpx = to_pixels(ctl.x, ctl.y)
            pygame.draw.line(surface, CONTROL_COLOR, b, cpx, 2)
            pygame.draw.circle(surface, CONTROL_COLOR, cpx, 8)
        else:
            pygame.draw.line(surface, color, a, b, 2)

    for i, wp in enumerate(session.waypoints):
        pos = to_pixels(wp.x, wp.y)
        if i == session.selection:
            pygame.draw.circle(surface, SELECTED, pos, 12, 2)
        if wp.kind == "action":
            _diamond(surface, ACTION_COLOR, pos)
            m = session.marker(wp.marker_id)
            if m is not None:
                surface.blit(font.render(m.name, True, TEXT_COLOR), (pos[0] + 10, pos[1] - 6))
            continue
        pygame.draw.circle(surface, KIND_COLORS.get(wp.kind, DRIVE_COLOR), pos, 6)
        if session.mode == "robot":
            hp = handle_pos_px(wp.x, wp.y, wp.h)
            pygame.draw.line(surface, HANDLE_COLOR, pos, hp)
            pygame.draw.circle(surface, (180, 83, 9), hp, 6)

    for m in session.markers:
        _diamond(surface, ACTION_COLOR, to_pixels(m.x, m.y), width=1)


def draw_status(surface, lines, font):
    """Status strip along the top edge, one text line per entry."""
    rows = [font.render(s, True, STATUS_TEXT) for s in lines]
    height = sum(r.get_height() for r in rows) + 8
    strip = pygame.Surface((surface.get_width(), height), pygame.SRCALPHA)
    strip.fill((0, 0, 0, 170))
    surface.blit(strip, (0, 0))
    y = 4
    for r in rows:
        surface.blit(r, (8, y))
        y += r.get_height()
