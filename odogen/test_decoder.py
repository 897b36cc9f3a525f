# Reverse-parser checks: format sniffing, round trips, all-or-nothing commits.
import math
from .codegen import generate_field_oriented, generate_robot_oriented
from .decoder import decode, decode_into, sniff_format
from .errors import DecodeError, NoWaypointsDecoded, UnrecognizedFormat
from .geom import Pose
from .model import Session


def _ang_err(a, b):
    return abs(((a - b + math.pi) % (2 * math.pi)) - math.pi)


def test_sniff():
    assert sniff_format("List<Pose2d> p = new ArrayList<>();") == "field"
    assert sniff_format("turnPID(0);\ndrivePID(1.00, 0);") == "robot"
    for bad in ("", "   \n", "hello world"):
        try:
            sniff_format(bad)
        except UnrecognizedFormat:
            continue
        raise AssertionError(f"{bad!r} should not be recognized")


def test_unrecognized_leaves_session_alone():
    s = Session()
    s.add_waypoint(Pose(1.0, 2.0, 0.0))
    before = s.to_dict()
    depth = len(s.history)
    try:
        decode_into(s, "print('not a path')")
    except UnrecognizedFormat:
        pass
    else:
        raise AssertionError("expected UnrecognizedFormat")
    assert s.to_dict() == before
    assert len(s.history) == depth


def test_robot_drive_scenario():
    s = Session()
    fmt = decode_into(s, "turnPID(90);\ndrivePID(2.00, 90);\n")
    assert fmt == "robot"
    assert len(s.waypoints) == 1
    wp = s.waypoints[0]
    assert wp.kind == "drive"
    assert abs(wp.x) < 1e-9 and abs(wp.y - 2.0) < 1e-9
    assert abs(wp.h + math.pi / 2) < 1e-9
    assert s.selection == 0


def test_robot_cursor_starts_at_existing_start():
    s = Session(start=Pose(0.5, 0.5, 0.0))
    decode_into(s, "drivePID(1.00, 0);\nstrafePID(1.00, 90);")
    assert [wp.kind for wp in s.waypoints] == ["drive", "strafe"]
    assert abs(s.waypoints[1].x - 1.5) < 1e-9
    assert abs(s.waypoints[1].y - 1.5) < 1e-9
    assert s.start == Pose(0.5, 0.5, 0.0)


def test_robot_round_trip_with_actions():
    s = Session()
    s.add_waypoint(Pose(1.0, 0.0, 0.0))
    s.add_or_reuse_marker((1.0, 0.0), "intake", "1")
    s.add_waypoint(Pose(1.0, 1.0, 0.0), "strafe")
    text = generate_robot_oriented(s)

    back = Session()
    decode_into(back, text)
    assert [wp.kind for wp in back.waypoints] == ["drive", "action", "strafe"]
    for a, b in zip(s.geometric_waypoints(), back.geometric_waypoints()):
        assert abs(a.x - b.x) < 1e-2 and abs(a.y - b.y) < 1e-2
    m = back.marker(back.waypoints[1].marker_id)
    assert (m.name, m.args) == ("intake", "1")


def test_robot_arc_consumes_block():
    text = "\n".join([
        "turnPID(0);",
        "arc(1.20, 0.60, t -> t",
        "                .at(0.0, 0)",
        "                .at(0.50, 30)",
        "                .at(1.0, -90)",
        "        );",
        "drivePID(1.00, 0);",
    ])
    s = Session()
    decode_into(s, text)
    assert [wp.kind for wp in s.waypoints] == ["arc", "drive"]
    arc = s.waypoints[0]
    assert abs(arc.x - 1.2) < 1e-9 and abs(arc.y) < 1e-9
    assert abs(arc.speed - 0.6) < 1e-9
    assert abs(arc.h - math.pi / 2) < 1e-9
    assert arc.control is None
    assert abs(s.waypoints[1].x - 2.2) < 1e-9


def test_field_round_trip():
    s = Session(start=Pose(0.5, -0.3, 0.2))
    s.add_waypoint(Pose(1.234, 0.4, -0.5))
    s.add_or_reuse_marker((1.234, 0.4), "intake", "1, true")
    s.add_waypoint(Pose(-1.8, 1.1, 2.5))
    text = generate_field_oriented(s)

    back = Session()
    assert decode_into(back, text) == "field"
    assert back.mode == "field"
    assert abs(back.start.x - 0.5) < 1e-3 and abs(back.start.y + 0.3) < 1e-3
    assert _ang_err(back.start.h, 0.2) < math.radians(1.0)
    assert [wp.kind for wp in back.waypoints] == ["drive", "action", "drive"]
    for a, b in zip(s.geometric_waypoints(), back.geometric_waypoints()):
        assert abs(a.x - b.x) < 1e-3 and abs(a.y - b.y) < 1e-3
        assert _ang_err(a.h, b.h) < math.radians(1.0)
    m = back.marker(back.waypoints[1].marker_id)
    assert (m.name, m.args) == ("intake", "1, true")


def test_field_origin_start_keeps_prior():
    text = "\n".join([
        "new Pose2d(0.0, 0.0, Rotation2d.fromDegrees(0))",
        "new Pose2d(100.0, 50.0, Rotation2d.fromDegrees(0))",
    ])
    s = Session(start=Pose(0.4, 0.4, 0.1))
    decode_into(s, text)
    assert s.start == Pose(0.4, 0.4, 0.1)
    assert len(s.waypoints) == 1


def test_field_single_pose_keeps_prior_start():
    s = Session(start=Pose(0.4, -0.2, 0.1))
    s.add_waypoint(Pose(1.0, 0.0, 0.0))
    try:
        decode_into(s, "waypoints.add(new Pose2d(120.0, 80.0, Rotation2d.fromDegrees(45)));")
    except NoWaypointsDecoded:
        pass
    else:
        raise AssertionError("expected NoWaypointsDecoded")
    assert s.start == Pose(0.4, -0.2, 0.1)
    assert s.waypoints == []


def test_no_waypoints_commits_empty_path():
    s = Session()
    s.add_waypoint(Pose(1.0, 0.0, 0.0))
    try:
        decode_into(s, "turnPID(45);")
    except NoWaypointsDecoded:
        pass
    else:
        raise AssertionError("expected NoWaypointsDecoded")
    assert s.waypoints == []
    assert s.undo()
    assert len(s.waypoints) == 1


def test_errors_share_a_base():
    assert issubclass(UnrecognizedFormat, DecodeError)
    assert issubclass(NoWaypointsDecoded, DecodeError)


def test_decode_is_repeatable():
    s = Session()
    text = "drivePID(1.00, 0);\ngrab();"
    decode_into(s, text)
    first = [(wp.kind, wp.x, wp.y) for wp in s.waypoints]
    decode_into(s, text)
    assert [(wp.kind, wp.x, wp.y) for wp in s.waypoints] == first
    assert len(s.markers) == 1
    fmt, scratch = decode(text)
    assert fmt == "robot" and len(scratch.waypoints) == 2


def run():
    test_sniff()
    test_unrecognized_leaves_session_alone()
    test_robot_drive_scenario()
    test_robot_cursor_starts_at_existing_start()
    test_robot_round_trip_with_actions()
    test_robot_arc_consumes_block()
    test_field_round_trip()
    test_field_origin_start_keeps_prior()
    test_field_single_pose_keeps_prior_start()
    test_no_waypoints_commits_empty_path()
    test_errors_share_a_base()
    test_decode_is_repeatable()


if __name__ == "__main__":
    run()
