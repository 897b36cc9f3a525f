# odogen/model.py
"""
Path model: start pose, ordered waypoints, markers, selection and a bounded
undo history, all owned by one ``Session`` object.

Structural edits snapshot first. Interactive drags call ``begin_drag()``
once and then use the ``drag_*`` setters, which do not snapshot.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field, asdict
from typing import ClassVar, Dict, List, Optional, Tuple, Union

from .geom import Point, Pose, default_arc_control, distance

HISTORY_LIMIT = 20
DEFAULT_SPEED = 0.8
MOTION_KINDS = ("drive", "strafe", "arc")


@dataclass
class DriveWaypoint:
    kind: ClassVar[str] = "drive"
    x: float
    y: float
    h: float = 0.0
    speed: float = DEFAULT_SPEED


@dataclass
class StrafeWaypoint:
    kind: ClassVar[str] = "strafe"
    x: float
    y: float
    h: float = 0.0
    speed: float = DEFAULT_SPEED


@dataclass
class ArcWaypoint:
    kind: ClassVar[str] = "arc"
    x: float
    y: float
    h: float = 0.0
    speed: float = DEFAULT_SPEED
    control: Optional[Point] = None


@dataclass
class ActionWaypoint:
    kind: ClassVar[str] = "action"
    x: float
    y: float
    marker_id: int
    h: float = 0.0


Waypoint = Union[DriveWaypoint, StrafeWaypoint, ArcWaypoint, ActionWaypoint]
_MOTION_TYPES = {"drive": DriveWaypoint, "strafe": StrafeWaypoint, "arc": ArcWaypoint}


@dataclass
class Marker:
    id: int
    x: float
    y: float
    name: str
    args: str = ""


def make_waypoint(kind: str, x: float, y: float, h: float = 0.0, speed: float = DEFAULT_SPEED,
                  control=None) -> Waypoint:
    """Build a motion waypoint of the given kind."""
    if kind not in _MOTION_TYPES:
        raise ValueError(f"unknown waypoint kind {kind!r}")
    if kind == "arc":
        ctl = None if control is None else Point(float(control[0]), float(control[1]))
        return ArcWaypoint(float(x), float(y), float(h), float(speed), ctl)
    return _MOTION_TYPES[kind](float(x), float(y), float(h), float(speed))


def is_action(wp) -> bool:
    return wp.kind == "action"


@dataclass
class Session:
    start: Pose = field(default_factory=lambda: Pose(0.0, 0.0, 0.0))
    waypoints: List[Waypoint] = field(default_factory=list)
    markers: List[Marker] = field(default_factory=list)
    selection: Optional[int] = None
    mode: str = "robot"
    next_marker_id: int = 1
    history: List[dict] = field(default_factory=list, repr=False)

    # ---- history ----

    def snapshot(self) -> dict:
        """Deep copy of the undoable state."""
        return {
            "start": self.start,
            "waypoints": copy.deepcopy(self.waypoints),
            "markers": copy.deepcopy(self.markers),
            "selection": self.selection,
        }

    def save_state(self):
        """Push a snapshot, evicting the oldest past the limit."""
        self.history.append(self.snapshot())
        if len(self.history) > HISTORY_LIMIT:
            self.history.pop(0)

    def undo(self) -> bool:
        if not self.history:
            return False
        state = self.history.pop()
        self.start = state["start"]
        self.waypoints = state["waypoints"]
        self.markers = state["markers"]
        self.selection = state["selection"]
        return True

    # ---- queries ----

    def marker(self, marker_id: int) -> Optional[Marker]:
        for m in self.markers:
            if m.id == marker_id:
                return m
        return None

    def geometric_waypoints(self) -> List[Waypoint]:
        return [wp for wp in self.waypoints if not is_action(wp)]

    def segments(self) -> List[Tuple[Pose, Waypoint, int]]:
        """(previous geometric pose, waypoint, waypoint index) for every motion waypoint."""
        out = []
        prev = self.start
        for i, wp in enumerate(self.waypoints):
            if is_action(wp):
                continue
            out.append((prev, wp, i))
            prev = Pose(wp.x, wp.y, wp.h)
        return out

    def previous_geometric(self, index: int) -> Pose:
        for j in range(index - 1, -1, -1):
            wp = self.waypoints[j]
            if not is_action(wp):
                return Pose(wp.x, wp.y, wp.h)
        return self.start

    def effective_arc_control(self, index: int) -> Optional[Point]:
        """Explicit control point of an arc waypoint, or the derived default."""
        wp = self.waypoints[index]
        if wp.kind != "arc":
            return None
        if wp.control is not None:
            return wp.control
        return default_arc_control(self.previous_geometric(index), (wp.x, wp.y))

    def _action_insert_index(self) -> int:
        for j in range(len(self.waypoints) - 1, -1, -1):
            if not is_action(self.waypoints[j]):
                return j + 1
        return 0

    def _check_index(self, index: int):
        if not 0 <= index < len(self.waypoints):
            raise IndexError(f"waypoint index {index} out of range")

    # ---- structural edits ----

    def add_waypoint(self, pose, kind: str = "drive", speed: float = DEFAULT_SPEED) -> int:
        if kind == "action":
            raise ValueError("action waypoints are added through markers")
        wp = make_waypoint(kind, pose[0], pose[1], pose[2] if len(pose) > 2 else 0.0, speed)
        self.save_state()
        self.waypoints.append(wp)
        self.selection = len(self.waypoints) - 1
        return self.selection

    def move_waypoint(self, index: int, pose):
        self._check_index(index)
        self.save_state()
        wp = self.waypoints[index]
        wp.x, wp.y = float(pose[0]), float(pose[1])
        if len(pose) > 2 and pose[2] is not None:
            wp.h = float(pose[2])
        if wp.kind == "arc":
            wp.control = None

    def retype_waypoint(self, index: int, kind: str):
        self._check_index(index)
        old = self.waypoints[index]
        if is_action(old):
            raise ValueError("action waypoints cannot be retyped")
        if kind not in MOTION_KINDS:
            raise ValueError(f"unknown waypoint kind {kind!r}")
        self.save_state()
        if self.mode == "field" and kind == "arc":
            self.mode = "robot"
        self.waypoints[index] = make_waypoint(kind, old.x, old.y, old.h, old.speed)

    def set_speed(self, index: int, speed: float):
        self._check_index(index)
        wp = self.waypoints[index]
        if is_action(wp):
            raise ValueError("action waypoints have no speed")
        self.save_state()
        wp.speed = float(speed)

    def delete_waypoint(self, index: int):
        self._check_index(index)
        self.save_state()
        del self.waypoints[index]
        if self.selection is not None:
            if self.selection == index:
                self.selection = None
            elif self.selection > index:
                self.selection -= 1

    def set_start(self, pose):
        self.save_state()
        self.start = Pose(float(pose[0]), float(pose[1]), float(pose[2]) if len(pose) > 2 else 0.0)

    def set_mode(self, mode: str):
        if mode not in ("robot", "field"):
            raise ValueError(f"unknown mode {mode!r}")
        self.mode = mode

    def select(self, index: Optional[int]):
        if index is not None:
            self._check_index(index)
        self.selection = index

    def clear(self):
        self.save_state()
        self.waypoints = []
        self.markers = []
        self.start = Pose(0.0, 0.0, 0.0)
        self.selection = None

    def add_action(self, marker_id: int) -> int:
        """Insert an action for an existing marker after the last real move."""
        m = self.marker(marker_id)
        if m is None:
            raise KeyError(f"no marker with id {marker_id}")
        self.save_state()
        return self._insert_action(m)

    def _insert_action(self, m: Marker) -> int:
        at = self._action_insert_index()
        self.waypoints.insert(at, ActionWaypoint(m.x, m.y, m.id))
        if self.selection is not None and self.selection >= at:
            self.selection += 1
        return at

    def add_or_reuse_marker(self, point, name: str, args: str = "", tolerance: float = 0.025) -> Marker:
        """
        Attach an action at ``point``. A marker with the same name inside
        ``tolerance`` metres is reused; otherwise a new one is allocated.
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("marker name must not be empty")
        self.save_state()
        found = None
        for m in self.markers:
            if m.name == name and distance((m.x, m.y), point) < tolerance:
                found = m
                break
        if found is None:
            found = Marker(self.next_marker_id, float(point[0]), float(point[1]), name,
                           (args or "").strip())
            self.next_marker_id += 1
            self.markers.append(found)
        self._insert_action(found)
        return found

    # ---- drag edits (caller snapshots once with begin_drag) ----

    def begin_drag(self):
        self.save_state()

    def drag_waypoint(self, index: int, x: float, y: float):
        wp = self.waypoints[index]
        wp.x, wp.y = float(x), float(y)
        if wp.kind == "arc":
            wp.control = None

    def drag_heading(self, index: int, h: float):
        self.waypoints[index].h = float(h)

    def drag_arc_control(self, index: int, point):
        wp = self.waypoints[index]
        if wp.kind != "arc":
            raise ValueError("only arc waypoints have a control point")
        wp.control = Point(float(point[0]), float(point[1]))
        wp.h = math.atan2(wp.y - wp.control.y, wp.x - wp.control.x)

    def drag_start(self, x: float, y: float):
        self.start = Pose(float(x), float(y), self.start.h)

    def drag_start_heading(self, h: float):
        self.start = Pose(self.start.x, self.start.y, float(h))

    # ---- serialization ----

    def to_dict(self) -> dict:
        wps = []
        for wp in self.waypoints:
            d = asdict(wp)
            d["kind"] = wp.kind
            if d.get("control") is not None:
                d["control"] = list(d["control"])
            wps.append(d)
        return {
            "start": {"x": self.start.x, "y": self.start.y, "h": self.start.h},
            "waypoints": wps,
            "markers": [asdict(m) for m in self.markers],
            "next_marker_id": self.next_marker_id,
            "mode": self.mode,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Session":
        s = data.get("start", {})
        session = cls(start=Pose(float(s.get("x", 0.0)), float(s.get("y", 0.0)), float(s.get("h", 0.0))))
        session.mode = data.get("mode", "robot")
        for m in data.get("markers", []):
            session.markers.append(Marker(int(m["id"]), float(m["x"]), float(m["y"]),
                                          str(m["name"]), str(m.get("args", ""))))
        for w in data.get("waypoints", []):
            kind = w.get("kind", "drive")
            if kind == "action":
                session.waypoints.append(ActionWaypoint(float(w["x"]), float(w["y"]),
                                                        int(w["marker_id"]), float(w.get("h", 0.0))))
            else:
                session.waypoints.append(make_waypoint(kind, w["x"], w["y"], w.get("h", 0.0),
                                                       w.get("speed", DEFAULT_SPEED), w.get("control")))
        top = max([m.id for m in session.markers], default=0)
        session.next_marker_id = max(int(data.get("next_marker_id", 1)), top + 1)
        return session
