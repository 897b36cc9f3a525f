# odogen/decoder.py
"""
Reverse parser for generated programs.

Decoding runs in two stages: ``sniff_format`` picks a grammar, then the
grammar's scanner builds a scratch ``Session``. ``decode_into`` only touches
the live session once a scanner has finished, so a failure in either stage
leaves the previous path in place.
"""

from __future__ import annotations

import math
import re
from typing import List, Optional, Tuple

from .errors import DecodeError, NoWaypointsDecoded, UnrecognizedFormat
from .geom import Pose, rad
from .model import DEFAULT_SPEED, ActionWaypoint, Marker, Session, make_waypoint

NUM = r"(-?\d+\.?\d*)"

FIELD_TOKENS = ("Pose2d", "ArrayList")
ROBOT_TOKENS = ("drivePID", "strafePID", "turnPID", "arc(")
ROBOT_KEYWORDS = {"turnPID", "drivePID", "strafePID", "arc"}

POSE_RE = re.compile(
    r"new\s+Pose2d\(" + NUM + r",\s*" + NUM + r",.*?"
    r"(?:Rotation2d\.fromDegrees\(" + NUM + r"\)|new\s+Rotation2d\(" + NUM + r"\))\)"
)
MARKER_RE = re.compile(r"new\s+PathMarker\(\s*" + NUM + r"\s*,\s*\(\)\s*->\s*\{(.*?)\}\s*\)\s*\)\s*;", re.S)
TELEMETRY_NAME_RE = re.compile(r'"Marker"\s*,\s*"[^"]*%\s*-\s*([^"]+)"')
CALL_RE = re.compile(r"^\s*([A-Za-z_]\w*)\s*\((.*)\)\s*;?\s*(?://.*)?$")

TURN_RE = re.compile(r"turnPID\s*\(\s*" + NUM + r"\s*\)")
DRIVE_RE = re.compile(r"drivePID\s*\(\s*" + NUM + r"\s*,\s*" + NUM + r"\s*\)")
STRAFE_RE = re.compile(r"strafePID\s*\(\s*" + NUM + r"\s*,\s*" + NUM + r"\s*\)")
ARC_RE = re.compile(r"(?<![\w.])arc\s*\(\s*" + NUM + r"\s*,\s*" + NUM + r"\s*,")
AT_RE = re.compile(r"\.at\s*\(\s*" + NUM + r"\s*,\s*" + NUM + r"\s*\)")


def sniff_format(text: str) -> str:
    """Return "field" or "robot", or raise UnrecognizedFormat."""
    if not text or not text.strip():
        raise UnrecognizedFormat("no program text to decode")
    if any(tok in text for tok in FIELD_TOKENS):
        return "field"
    if any(tok in text for tok in ROBOT_TOKENS):
        return "robot"
    raise UnrecognizedFormat(
        "unable to detect code format; expected field-oriented (Pose2d list) "
        "or robot-oriented (turnPID/drivePID/strafePID/arc) code"
    )


def _scratch(prior: Session) -> Session:
    scratch = Session(start=prior.start, mode=prior.mode)
    scratch.next_marker_id = prior.next_marker_id
    return scratch


def _marker_for(scratch: Session, name: str, args: str, x: float, y: float) -> Marker:
    for m in scratch.markers:
        if m.name == name and m.args == args:
            return m
    m = Marker(scratch.next_marker_id, x, y, name, args)
    scratch.next_marker_id += 1
    scratch.markers.append(m)
    return m


# ---- field-oriented ----

def _field_marker(body: str) -> Optional[Tuple[str, str]]:
    """(name, args) of the action a PathMarker lambda runs."""
    for line in body.splitlines():
        line = line.strip()
        if not line or line.startswith("telemetry"):
            continue
        m = CALL_RE.match(line)
        if m:
            return m.group(1), m.group(2).strip()
    m = TELEMETRY_NAME_RE.search(body)
    if m:
        return m.group(1).strip(), ""
    return None


def parse_field_oriented(text: str, prior: Session) -> Session:
    scratch = _scratch(prior)
    poses = []
    for m in POSE_RE.finditer(text):
        angle = m.group(3) if m.group(3) is not None else m.group(4)
        poses.append((float(m.group(1)) / 100.0, float(m.group(2)) / 100.0,
                      rad(-float(angle or 0.0))))

    if poses:
        x, y, h = poses[0]
        if len(poses) > 1 and not (x == 0.0 and y == 0.0 and h == 0.0):
            scratch.start = Pose(x, y, h)
    real = [make_waypoint("drive", x, y, h, DEFAULT_SPEED) for (x, y, h) in poses[1:]]

    # actions hang after the waypoint their percentage points at
    buckets: List[List[ActionWaypoint]] = [[] for _ in range(len(real) + 1)]
    for m in MARKER_RE.finditer(text):
        action = _field_marker(m.group(2))
        if action is None:
            continue
        k = int(math.floor(float(m.group(1)) / 100.0 * len(real) + 0.5))
        k = max(0, min(len(real), k))
        at = scratch.start if k == 0 else real[k - 1]
        marker = _marker_for(scratch, action[0], action[1], at.x, at.y)
        buckets[k].append(ActionWaypoint(marker.x, marker.y, marker.id))

    scratch.waypoints = list(buckets[0])
    for wp, after in zip(real, buckets[1:]):
        scratch.waypoints.append(wp)
        scratch.waypoints.extend(after)
    return scratch


# ---- robot-oriented ----

def parse_robot_oriented(text: str, prior: Session) -> Session:
    scratch = _scratch(prior)
    cur_x, cur_y = scratch.start.x, scratch.start.y
    heading_deg = 0.0

    lines = [ln.strip() for ln in text.split("\n") if ln.strip()]
    i = 0
    while i < len(lines):
        line = lines[i]
        i += 1
        if line.startswith("//"):
            continue

        m = TURN_RE.search(line)
        if m:
            heading_deg = float(m.group(1))
            continue

        kind, m = "drive", DRIVE_RE.search(line)
        if not m:
            kind, m = "strafe", STRAFE_RE.search(line)
        if m:
            dist, bearing = float(m.group(1)), float(m.group(2))
            cur_x += dist * math.cos(rad(bearing))
            cur_y += dist * math.sin(rad(bearing))
            scratch.waypoints.append(make_waypoint(kind, cur_x, cur_y, rad(-bearing)))
            heading_deg = bearing
            continue

        m = ARC_RE.search(line)
        if m:
            length, speed = float(m.group(1)), float(m.group(2))
            body = [line]
            if ");" not in line:
                while i < len(lines) and ");" not in lines[i]:
                    body.append(lines[i])
                    i += 1
                if i < len(lines):
                    body.append(lines[i])
                    i += 1
            samples = AT_RE.findall("\n".join(body))
            start_h = end_h = 0.0
            if len(samples) >= 2:
                start_h = float(samples[0][1])
                end_h = float(samples[-1][1])
            cur_x += length * math.cos(rad(start_h))
            cur_y += length * math.sin(rad(start_h))
            scratch.waypoints.append(make_waypoint("arc", cur_x, cur_y, rad(-end_h), speed))
            heading_deg = end_h
            continue

        m = CALL_RE.match(line)
        if m and m.group(1) not in ROBOT_KEYWORDS:
            marker = _marker_for(scratch, m.group(1), m.group(2).strip(), cur_x, cur_y)
            scratch.waypoints.append(ActionWaypoint(marker.x, marker.y, marker.id))
    return scratch


PARSERS = {
    "field": parse_field_oriented,
    "robot": parse_robot_oriented,
}


def decode(text: str, prior: Optional[Session] = None) -> Tuple[str, Session]:
    """Sniff and scan without touching any live session."""
    fmt = sniff_format(text)
    try:
        scratch = PARSERS[fmt](text, prior or Session())
    except (ValueError, IndexError) as e:
        raise DecodeError(f"failed to decode {fmt}-oriented code: {e}") from e
    return fmt, scratch


def decode_into(session: Session, text: str) -> str:
    """
    Replace the session's path with the one decoded from ``text``.

    Returns the detected format. Raises UnrecognizedFormat or DecodeError with
    the session untouched, or NoWaypointsDecoded after committing an empty
    path (undo restores the previous one).
    """
    fmt, scratch = decode(text, session)
    session.save_state()
    session.start = scratch.start
    session.waypoints = scratch.waypoints
    session.markers = scratch.markers
    session.next_marker_id = scratch.next_marker_id
    session.selection = 0 if scratch.waypoints else None
    session.mode = fmt
    if not session.geometric_waypoints():
        raise NoWaypointsDecoded(f"no waypoints found in the {fmt}-oriented code")
    return fmt
