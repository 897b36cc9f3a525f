# odogen/sim.py
"""
Kinematic replay of a session.

``build_plan`` freezes the session into segments, ``step`` advances a
``SimState`` by one time increment and is pure, and ``Simulator`` is the thin
runner a host loop drives with ``tick(dt_ms)``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Dict, List, NamedTuple, Optional, Tuple

from .config import sim_flat
from .geom import (
    Point, bearing_deg, bezier_point, deg, distance, normalize_angle_deg,
    refine_polyline, round_half_up, smooth_field_path,
)

TURN_SNAP_DEG = 0.5
HEADING_EPS_DEG = 1e-4
MOTION_PHASES = ("drive", "strafe", "arc")


@dataclass(frozen=True)
class Segment:
    a: Point
    b: Point
    kind: str
    length: float
    bearing: float          # deg, direction of the chord
    control: Optional[Point]
    start_heading: float    # deg, program convention
    end_heading: float      # deg, heading carried by the arriving waypoint


@dataclass(frozen=True)
class SimPlan:
    mode: str
    start: Point
    start_heading: float
    segments: Tuple[Segment, ...]
    field_points: Tuple[Point, ...]
    drive_speed: float      # m/s, multiplier applied
    turn_rate: float        # deg/s, multiplier applied


@dataclass(frozen=True)
class SimState:
    x: float
    y: float
    heading: float
    phase: str = "turn"
    seg: int = 0
    progress: float = 0.0
    index: int = 0
    running: bool = True
    t_ms: float = 0.0
    traveled: float = 0.0


class SimFrame(NamedTuple):
    t_ms: float
    x: float
    y: float
    heading: float
    phase: str
    seg: int


def build_plan(session, cfg: Optional[dict] = None) -> SimPlan:
    opts = sim_flat(cfg or {})
    mult = float(opts["speed_multiplier"])
    segments = []
    for prev, wp, idx in session.segments():
        a, b = Point(prev.x, prev.y), Point(wp.x, wp.y)
        control = session.effective_arc_control(idx) if wp.kind == "arc" else None
        segments.append(Segment(
            a=a, b=b, kind=wp.kind,
            length=distance(a, b),
            bearing=bearing_deg(a, b),
            control=control,
            start_heading=deg(-prev.h),
            end_heading=deg(-wp.h),
        ))
    field_points = ()
    if session.mode == "field":
        pts = [session.start] + [(wp.x, wp.y) for wp in session.geometric_waypoints()]
        field_points = tuple(refine_polyline(smooth_field_path(pts)))
    return SimPlan(
        mode=session.mode,
        start=Point(session.start.x, session.start.y),
        start_heading=deg(-session.start.h),
        segments=tuple(segments),
        field_points=field_points,
        drive_speed=float(opts["drive_speed_mps"]) * mult,
        turn_rate=float(opts["turn_speed_dps"]) * mult,
    )


def initial_state(plan: SimPlan) -> SimState:
    if plan.mode == "field":
        has_work = len(plan.field_points) >= 2
        phase = "field"
    else:
        has_work = len(plan.segments) > 0
        phase = "turn"
    return SimState(plan.start.x, plan.start.y, plan.start_heading,
                    phase=phase if has_work else "done", running=has_work)


def preview_points(plan: SimPlan) -> List[Point]:
    """Polyline of the planned motion, for drawing."""
    if plan.mode == "field":
        return list(plan.field_points)
    pts: List[Point] = []
    for s in plan.segments:
        if s.kind == "arc":
            pts.extend(bezier_point(k / 20.0, s.a, s.control, s.b) for k in range(21))
        else:
            pts.extend((s.a, s.b))
    return pts


def _rotate(heading: float, target: float, max_step: float) -> Tuple[float, bool]:
    """Turn toward target along the shortest path; True once snapped."""
    diff = normalize_angle_deg(target - heading)
    if abs(diff) <= TURN_SNAP_DEG:
        return target, True
    return normalize_angle_deg(heading + math.copysign(min(max_step, abs(diff)), diff)), False


def _finish(state: SimState) -> SimState:
    return replace(state, phase="done", running=False)


def _next_segment(plan: SimPlan, state: SimState) -> SimState:
    seg = state.seg + 1
    if seg >= len(plan.segments):
        return _finish(replace(state, seg=seg))
    return replace(state, seg=seg, phase="turn", progress=0.0)


def _arrive(plan: SimPlan, state: SimState, seg: Segment) -> SimState:
    wp_h = seg.end_heading
    if abs(wp_h) > HEADING_EPS_DEG and abs(normalize_angle_deg(wp_h - state.heading)) > TURN_SNAP_DEG:
        return replace(state, phase="wpTurn")
    return _next_segment(plan, state)


def _step_field(plan: SimPlan, state: SimState, dt_s: float) -> SimState:
    pts = plan.field_points
    if state.index >= len(pts) - 1:
        return _finish(state)
    target = pts[state.index + 1]
    dx, dy = target.x - state.x, target.y - state.y
    dist = math.hypot(dx, dy)
    travel = plan.drive_speed * dt_s
    heading = deg(math.atan2(dy, dx)) if dist > 0.0 else state.heading
    if dist <= travel:
        state = replace(state, x=target.x, y=target.y, index=state.index + 1,
                        heading=heading, traveled=state.traveled + dist)
    else:
        state = replace(state, x=state.x + dx / dist * travel, y=state.y + dy / dist * travel,
                        heading=heading, traveled=state.traveled + travel)
    if state.index >= len(pts) - 1:
        return _finish(state)
    return state


def _step_robot(plan: SimPlan, state: SimState, dt_s: float) -> SimState:
    if state.seg >= len(plan.segments):
        return _finish(state)
    seg = plan.segments[state.seg]
    max_turn = plan.turn_rate * dt_s

    if state.phase == "turn":
        heading, snapped = _rotate(state.heading, normalize_angle_deg(seg.bearing), max_turn)
        if not snapped:
            return replace(state, heading=heading)
        if seg.kind == "strafe":
            heading = normalize_angle_deg(round_half_up(heading / 90.0) * 90.0)
        return replace(state, heading=heading, phase=seg.kind, progress=0.0)

    if state.phase == "wpTurn":
        heading, snapped = _rotate(state.heading, normalize_angle_deg(seg.end_heading), max_turn)
        state = replace(state, heading=heading)
        return _next_segment(plan, state) if snapped else state

    # drive / strafe / arc share the progress fraction along the chord
    travel = plan.drive_speed * dt_s
    progress = state.progress + travel
    frac = 1.0 if seg.length <= 1e-9 else min(1.0, progress / seg.length)
    if state.phase == "arc":
        pos = bezier_point(frac, seg.a, seg.control, seg.b)
        heading = normalize_angle_deg(seg.start_heading + (seg.end_heading - seg.start_heading) * frac)
    else:
        pos = Point(seg.a.x + (seg.b.x - seg.a.x) * frac, seg.a.y + (seg.b.y - seg.a.y) * frac)
        heading = seg.bearing if state.phase == "drive" else state.heading
    state = replace(state, x=pos.x, y=pos.y, heading=heading, progress=progress,
                    traveled=state.traveled + travel)
    if frac >= 1.0:
        return _arrive(plan, state, seg)
    return state


def step(plan: SimPlan, state: SimState, dt_ms: float) -> Tuple[SimState, bool]:
    """Advance one increment. Returns (new_state, done)."""
    if not state.running:
        return state, True
    dt_s = float(dt_ms) / 1000.0
    if plan.mode == "field":
        new = _step_field(plan, state, dt_s)
    else:
        new = _step_robot(plan, state, dt_s)
    new = replace(new, t_ms=state.t_ms + float(dt_ms))
    return new, not new.running


class Simulator:
    """One run at a time, stepped by an external clock."""

    def __init__(self, cfg: Optional[dict] = None):
        self.cfg = cfg or {}
        self.plan: Optional[SimPlan] = None
        self.state: Optional[SimState] = None
        self.trace: List[SimFrame] = []

    @property
    def running(self) -> bool:
        return self.state is not None and self.state.running

    @property
    def step_ms(self) -> float:
        return float(sim_flat(self.cfg)["step_ms"])

    def start(self, session) -> bool:
        """Begin a run; ignored (False) while another one is active."""
        if self.running:
            return False
        self.plan = build_plan(session, self.cfg)
        self.state = initial_state(self.plan)
        s = self.state
        self.trace = [SimFrame(0.0, s.x, s.y, s.heading, s.phase, s.seg)]
        return self.state.running

    def tick(self, dt_ms: Optional[float] = None) -> bool:
        """Apply one increment; True when the run is over."""
        if self.plan is None or self.state is None:
            return True
        before = self.state
        self.state, done = step(self.plan, before, self.step_ms if dt_ms is None else dt_ms)
        if self.state is not before:
            s = self.state
            self.trace.append(SimFrame(s.t_ms, s.x, s.y, s.heading, before.phase, before.seg))
        return done

    def halt(self):
        if self.state is not None:
            self.state = replace(self.state, running=False)

    def run(self, session, dt_ms: Optional[float] = None, max_steps: int = 1_000_000) -> List[SimFrame]:
        """Run to completion and return the trace."""
        if not self.start(session):
            return list(self.trace)
        for _ in range(max_steps):
            if self.tick(dt_ms):
                break
        return list(self.trace)


def phase_visits(trace: List[SimFrame]) -> Dict[str, int]:
    """How many times each phase was entered, counting runs of (segment, phase)."""
    counts: Dict[str, int] = {}
    last = None
    for f in trace[1:]:
        key = (f.seg, f.phase)
        if key != last:
            counts[f.phase] = counts.get(f.phase, 0) + 1
            last = key
    return counts
