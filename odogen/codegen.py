# odogen/codegen.py
"""
Code generation for the two program dialects.

Field-oriented output is an absolute pose list plus percentage markers.
Robot-oriented output is a relative turn/drive/strafe/arc command list.
Both only read the session.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from .config import codegen_flat
from .geom import (
    bearing_deg, bezier_length, bezier_tangent_deg, deg, distance,
    normalize_angle_deg, round_half_up,
)
from .model import is_action

ARC_INDENT = " " * 16
HEADING_EPS_RAD = 1e-4
WAYPOINT_TURN_TOL_DEG = 1.0

TEMPLATES = {
    "field": {
        "pose": "    waypoints.add(new Pose2d({X_CM}, {Y_CM}, Rotation2d.fromDegrees({HEADING_DEG})));",
        "marker_open": "    markers.add(new PathMarker({PERCENT}, () -> {{",
        "marker_telemetry": '        telemetry.addData("Marker", "{PERCENT}% - {NAME}");',
        "marker_update": "        telemetry.update();",
        "marker_call": "        {NAME}({ARGS});",
        "marker_close": "    }}));",
    },
    "robot": {
        "turn": "turnPID({HEADING_DEG});",
        "turn_start": "turnPID(0); // face start heading",
        "turn_snap": "turnPID({HEADING_DEG}); // snap to waypoint heading",
        "turn_waypoint": "turnPID({HEADING_DEG}); // waypoint heading",
        "drive": "drivePID({DIST_M}, {HEADING_DEG});",
        "strafe": "strafePID({DIST_M}, {HEADING_DEG});",
        "arc_open": "arc({DIST_M}, {SPEED}, t -> t",
        "arc_sample": ARC_INDENT + ".at({T}, {HEADING_DEG})",
        "arc_close": "        );",
        "action_comment": "// Action: {NAME}",
        "action": "{NAME}({ARGS});",
    },
}


def _program_heading(h_rad: float) -> int:
    """Internal heading (radians) to the program's negated whole degrees."""
    return round_half_up(deg(-h_rad))


def _fixed(v: float, places: int) -> str:
    """
    Fixed-point text with exact ties rounded away from zero (6.25 -> "6.3",
    -6.25 -> "-6.3"). The binary value is rounded as is, so 0.15 stays "0.1".
    """
    if v == 0:
        v = 0.0
    q = Decimal(1).scaleb(-places)
    return str(Decimal(v).quantize(q, rounding=ROUND_HALF_UP))


def _cm(v: float) -> str:
    return _fixed(v * 100.0, 1)


def _emit(lines: List[str], dialect: str, key: str, **tokens):
    lines.append(TEMPLATES[dialect][key].format(**tokens))


def action_percentages(session) -> List[tuple]:
    """(percent, marker) for every action, percent of real waypoints reached."""
    total = len(session.geometric_waypoints())
    seen = 0
    out = []
    for wp in session.waypoints:
        if not is_action(wp):
            seen += 1
            continue
        m = session.marker(wp.marker_id)
        if m is None:
            continue
        pct = (seen / total) * 100.0 if total else 0.0
        out.append((pct, m))
    return out


def generate_field_oriented(session) -> str:
    lines = ["private List<Pose2d> createPath() {",
             "    List<Pose2d> waypoints = new ArrayList<>();",
             "",
             "    // Start pose"]
    s = session.start
    _emit(lines, "field", "pose", X_CM=_cm(s.x), Y_CM=_cm(s.y), HEADING_DEG=_program_heading(s.h))
    lines.append("")
    for wp in session.geometric_waypoints():
        _emit(lines, "field", "pose", X_CM=_cm(wp.x), Y_CM=_cm(wp.y), HEADING_DEG=_program_heading(wp.h))
    lines += ["", "    return waypoints;", "}", ""]

    markers = action_percentages(session)
    lines.append("private List<PathMarker> createMarkers() {")
    if not markers:
        lines += ["    return new ArrayList<>();", "}"]
        return "\n".join(lines) + "\n"

    lines += ["    List<PathMarker> markers = new ArrayList<>();", ""]
    for pct, m in markers:
        pct_s = _fixed(pct, 1)
        _emit(lines, "field", "marker_open", PERCENT=pct_s)
        _emit(lines, "field", "marker_telemetry", PERCENT=pct_s, NAME=m.name)
        _emit(lines, "field", "marker_update")
        _emit(lines, "field", "marker_call", NAME=m.name, ARGS=m.args or "")
        _emit(lines, "field", "marker_close")
        lines.append("")
    lines += ["    return markers;", "}"]
    return "\n".join(lines) + "\n"


def _arc_lines(lines, p0, control, wp, samples: int):
    length = bezier_length(p0, control, (wp.x, wp.y))
    _emit(lines, "robot", "arc_open", DIST_M=_fixed(length, 2), SPEED=_fixed(wp.speed, 2))
    _emit(lines, "robot", "arc_sample", T="0.0", HEADING_DEG=0)
    for s in range(1, samples):
        t = s / samples
        h = bezier_tangent_deg(t, p0, control, (wp.x, wp.y))
        _emit(lines, "robot", "arc_sample", T=_fixed(t, 2), HEADING_DEG=round_half_up(h))
    _emit(lines, "robot", "arc_sample", T="1.0", HEADING_DEG=_program_heading(wp.h))
    _emit(lines, "robot", "arc_close")


def generate_robot_oriented(session, arc_samples: int = 5) -> str:
    lines = ["// Robot-Oriented Path",
             "// Start: x=0.00 y=0.00 h=0deg (always relative to origin)",
             ""]
    _emit(lines, "robot", "turn_start")

    prev = session.start
    for i, wp in enumerate(session.waypoints):
        if is_action(wp):
            m = session.marker(wp.marker_id)
            if m is None:
                continue
            lines.append("")
            _emit(lines, "robot", "action_comment", NAME=m.name)
            _emit(lines, "robot", "action", NAME=m.name, ARGS=m.args or "")
            continue

        dist = distance(prev, (wp.x, wp.y))
        if dist < 1e-6:
            if abs(wp.h) > HEADING_EPS_RAD:
                _emit(lines, "robot", "turn_snap", HEADING_DEG=_program_heading(wp.h))
            prev = (wp.x, wp.y)
            continue

        seg_deg = bearing_deg(prev, (wp.x, wp.y))
        seg_i = round_half_up(seg_deg)
        if wp.kind == "arc":
            _arc_lines(lines, prev, session.effective_arc_control(i), wp, arc_samples)
        elif wp.kind == "strafe":
            _emit(lines, "robot", "strafe", DIST_M=_fixed(dist, 2), HEADING_DEG=seg_i)
        else:
            _emit(lines, "robot", "turn", HEADING_DEG=seg_i)
            _emit(lines, "robot", "drive", DIST_M=_fixed(dist, 2), HEADING_DEG=seg_i)

        if wp.kind != "arc" and abs(wp.h) > HEADING_EPS_RAD:
            wh = deg(-wp.h)
            if abs(normalize_angle_deg(wh - seg_deg)) > WAYPOINT_TURN_TOL_DEG:
                _emit(lines, "robot", "turn_waypoint", HEADING_DEG=round_half_up(wh))
        prev = (wp.x, wp.y)

    return "\n".join(lines) + "\n"


def generate(session, cfg: Optional[dict] = None) -> str:
    """Generate program text for the session's current mode."""
    opts = codegen_flat(cfg or {})
    if session.mode == "field":
        return generate_field_oriented(session)
    return generate_robot_oriented(session, int(opts["arc_samples"]))
