# Path model checks: undo history, arc control lifecycle, action insertion.
import math
from .geom import Pose, default_arc_control
from .model import HISTORY_LIMIT, Session


def _session(*points, kind="drive"):
    s = Session()
    for p in points:
        s.add_waypoint(Pose(p[0], p[1], 0.0), kind)
    return s


def test_history_is_bounded_fifo():
    s = Session()
    for i in range(25):
        s.add_waypoint(Pose(float(i), 0.0, 0.0))
    assert len(s.history) == HISTORY_LIMIT
    # oldest five snapshots were evicted
    assert len(s.history[0]["waypoints"]) == 5
    undone = 0
    while s.undo():
        undone += 1
    assert undone == HISTORY_LIMIT
    assert len(s.waypoints) == 5


def test_undo_empty_is_noop():
    s = Session()
    assert s.undo() is False
    assert s.waypoints == [] and s.start == Pose(0.0, 0.0, 0.0)


def test_undo_restores_snapshot():
    s = _session((1.0, 0.0))
    s.move_waypoint(0, (2.0, 3.0))
    assert (s.waypoints[0].x, s.waypoints[0].y) == (2.0, 3.0)
    assert s.undo()
    assert (s.waypoints[0].x, s.waypoints[0].y) == (1.0, 0.0)


def test_move_clears_arc_control():
    s = _session((1.0, 0.0), kind="arc")
    s.begin_drag()
    s.drag_arc_control(0, (0.5, 1.0))
    assert s.waypoints[0].control == (0.5, 1.0)
    s.move_waypoint(0, (2.0, 0.0))
    assert s.waypoints[0].control is None
    assert s.effective_arc_control(0) == default_arc_control((0.0, 0.0), (2.0, 0.0))


def test_control_follows_previous_point():
    s = _session((1.0, 0.0))
    s.add_waypoint(Pose(2.0, 1.0, 0.0), "arc")
    before = s.effective_arc_control(1)
    s.move_waypoint(0, (1.0, -1.0))
    after = s.effective_arc_control(1)
    assert before != after
    assert after == default_arc_control((1.0, -1.0), (2.0, 1.0))


def test_drag_control_sets_heading():
    s = _session((1.0, 0.0), kind="arc")
    s.drag_arc_control(0, (0.0, 0.0))
    assert abs(s.waypoints[0].h) < 1e-9
    s.drag_arc_control(0, (1.0, -1.0))
    assert abs(s.waypoints[0].h - math.pi / 2) < 1e-9


def test_retype_drops_and_defers_control():
    s = _session((1.0, 0.0), kind="arc")
    s.drag_arc_control(0, (0.5, 0.5))
    s.retype_waypoint(0, "drive")
    assert s.waypoints[0].kind == "drive"
    assert not hasattr(s.waypoints[0], "control")
    s.retype_waypoint(0, "arc")
    assert s.waypoints[0].control is None


def test_retype_to_arc_leaves_field_mode():
    s = _session((1.0, 0.0))
    s.set_mode("field")
    s.retype_waypoint(0, "arc")
    assert s.mode == "robot"


def test_delete_updates_selection():
    s = _session((1.0, 0.0), (2.0, 0.0), (3.0, 0.0))
    s.select(2)
    s.delete_waypoint(0)
    assert s.selection == 1
    s.delete_waypoint(1)
    assert s.selection is None
    try:
        s.delete_waypoint(5)
    except IndexError:
        pass
    else:
        raise AssertionError("out of range delete should raise")


def test_actions_trail_last_real_move():
    s = _session((1.0, 0.0))
    s.add_or_reuse_marker((1.0, 0.0), "intake", "1")
    s.add_waypoint(Pose(2.0, 0.0, 0.0))
    s.add_or_reuse_marker((2.0, 0.0), "score")
    s.add_or_reuse_marker((2.0, 0.0), "lift")
    kinds = [wp.kind for wp in s.waypoints]
    assert kinds == ["drive", "action", "drive", "action", "action"]
    names = [s.marker(wp.marker_id).name for wp in s.waypoints if wp.kind == "action"]
    assert names == ["intake", "lift", "score"]


def test_marker_reuse_within_tolerance():
    s = _session((1.0, 0.0))
    a = s.add_or_reuse_marker((1.0, 0.0), "grab", tolerance=0.05)
    b = s.add_or_reuse_marker((1.01, 0.0), "grab", tolerance=0.05)
    c = s.add_or_reuse_marker((1.5, 0.0), "grab", tolerance=0.05)
    d = s.add_or_reuse_marker((1.0, 0.0), "drop", tolerance=0.05)
    assert a.id == b.id
    assert len({a.id, c.id, d.id}) == 3
    assert len(s.markers) == 3
    assert sum(1 for wp in s.waypoints if wp.kind == "action") == 4


def test_marker_survives_waypoint_delete():
    s = _session((1.0, 0.0))
    s.add_or_reuse_marker((1.0, 0.0), "grab")
    s.delete_waypoint(1)
    assert [m.name for m in s.markers] == ["grab"]


def test_empty_marker_name_rejected():
    s = Session()
    try:
        s.add_or_reuse_marker((0.0, 0.0), "   ")
    except ValueError:
        pass
    else:
        raise AssertionError("blank marker name should be rejected")
    assert s.markers == [] and s.history == []


def test_dict_round_trip():
    s = _session((1.0, 0.0))
    s.add_waypoint(Pose(2.0, 1.0, 0.3), "arc", 0.5)
    s.drag_arc_control(1, (1.5, 1.5))
    s.add_or_reuse_marker((2.0, 1.0), "grab", "2, true")
    s.set_start(Pose(0.1, 0.2, 0.3))
    back = Session.from_dict(s.to_dict())
    assert back.start == s.start
    assert back.waypoints == s.waypoints
    assert back.markers == s.markers
    assert back.next_marker_id == s.next_marker_id


def run():
    test_history_is_bounded_fifo()
    test_undo_empty_is_noop()
    test_undo_restores_snapshot()
    test_move_clears_arc_control()
    test_control_follows_previous_point()
    test_drag_control_sets_heading()
    test_retype_drops_and_defers_control()
    test_retype_to_arc_leaves_field_mode()
    test_delete_updates_selection()
    test_actions_trail_last_real_move()
    test_marker_reuse_within_tolerance()
    test_marker_survives_waypoint_delete()
    test_empty_marker_name_rejected()
    test_dict_round_trip()


if __name__ == "__main__":
    run()
