"""Environment and self checks for Odogen."""

import platform
import sys
import tempfile
from pathlib import Path

MIN_PYTHON = (3, 8)


def _mark(ok: bool, required: bool = True) -> str:
    if ok:
        return "PASS"
    return "FAIL" if required else "WARN"


def _has_module(name: str) -> bool:
    try:
        __import__(name)
    except ImportError:
        return False
    return True


def _config_writable() -> bool:
    from odogen.config import default_config_path
    folder = Path(default_config_path()).parent
    try:
        with tempfile.NamedTemporaryFile(dir=folder, prefix=".odogen_", delete=True):
            pass
    except OSError:
        return False
    return True


def _codec_round_trip() -> bool:
    """Generate both dialects for a small path and decode them back."""
    from odogen.codegen import generate_field_oriented, generate_robot_oriented
    from odogen.decoder import decode
    from odogen.geom import Pose
    from odogen.model import Session

    session = Session()
    session.add_waypoint(Pose(1.0, 0.0, 0.0))
    session.add_waypoint(Pose(1.0, 1.0, 0.0), "strafe")
    for text in (generate_robot_oriented(session), generate_field_oriented(session)):
        _, back = decode(text, Session())
        got = [(round(w.x, 2), round(w.y, 2)) for w in back.geometric_waypoints()]
        if got != [(1.0, 0.0), (1.0, 1.0)]:
            return False
    return True


def _sim_completes() -> bool:
    from odogen.geom import Pose
    from odogen.model import Session
    from odogen.sim import Simulator

    session = Session()
    session.add_waypoint(Pose(0.5, 0.0, 0.0))
    sim = Simulator()
    sim.run(session, max_steps=10_000)
    return sim.state is not None and sim.state.phase == "done"


CHECKS = [
    # label, callable, required
    ("pygame available", lambda: _has_module("pygame"), True),
    ("tkinter available (file and action dialogs)", lambda: _has_module("tkinter"), False),
    ("config folder writable", _config_writable, True),
    ("program codec round trip", _codec_round_trip, True),
    ("simulator runs to completion", _sim_completes, True),
]


def main() -> int:
    print("Odogen Doctor")
    print(f"- OS: {platform.system()} {platform.release()}")
    print(f"- Python: {platform.python_version()} ({sys.executable})")
    if sys.version_info < MIN_PYTHON:
        print(f"[FAIL] Python >= {MIN_PYTHON[0]}.{MIN_PYTHON[1]}")
        return 1

    failed = 0
    for label, check, required in CHECKS:
        try:
            ok = bool(check())
        except Exception as e:  # report and keep checking
            print(f"       {label}: {type(e).__name__}: {e}")
            ok = False
        print(f"[{_mark(ok, required)}] {label}")
        if required and not ok:
            failed += 1

    if failed:
        print(f"{failed} check(s) failed.")
        return 1
    print("All checks passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
