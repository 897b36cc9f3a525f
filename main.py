# main.py
import os, sys

# Ensure SDL picks a usable video driver (helps when run from terminals that default to headless)
if os.name == "nt" and not os.environ.get("SDL_VIDEODRIVER"):
    os.environ["SDL_VIDEODRIVER"] = "windows"

import pygame

from odogen.config import (
    WINDOW_WIDTH, WINDOW_HEIGHT, GRID_SIZE_PX, BG_COLOR,
    load_config, save_config, set_option, codegen_flat, sim_flat, markers_flat,
)
from odogen.codegen import generate
from odogen.decoder import decode_into
from odogen.draw import draw_grid, draw_session, draw_preview, draw_robot, draw_status
from odogen.errors import DecodeError, InvalidConfiguration, NoWaypointsDecoded
from odogen.geom import Pose
from odogen.model import Session
from odogen.sim import Simulator, build_plan, preview_points
from odogen.storage import save_routine, load_routine, read_program, export_program, export_log
from odogen.util import DragGesture, pick_target, to_meters

APP_TITLE = "ODOGEN PATH GENERATOR"
PICK_RADIUS_PX = 10

CONTROLS = [
    ("LeftClick", "Select/drag waypoint, handle or control point,\nor add a waypoint"),
    ("A + LeftClick", "Add action marker (or reuse one nearby)"),
    ("1 / 2 / 3", "Retype selected: drive / strafe / arc"),
    ("M", "Toggle robot / field mode"),
    ("SPACE", "Start / halt simulation"),
    ("+ / -", "Simulation speed"),
    ("[ / ]", "Arc heading samples"),
    ("Delete", "Delete selected waypoint"),
    ("CTRL+Z", "Undo"),
    ("S / L", "Save / Load routine"),
    ("C / D", "Export / Decode program"),
    ("O", "Export log"),
]

log_lines = []


def log(msg):
    log_lines.append(msg)
    print(msg)


def _ask_action():
    from tkinter import simpledialog
    import tkinter as tk
    root = tk.Tk()
    root.withdraw()
    try:
        name = simpledialog.askstring("Add action", "Action name:", initialvalue="customAction", parent=root)
        if not name or not name.strip():
            return None, None
        args = simpledialog.askstring("Add action", "Arguments (comma separated, optional):", parent=root)
        return name.strip(), (args or "").strip()
    finally:
        root.destroy()


def _bump_option(cfg, section, key, value):
    try:
        set_option(cfg, section, key, value)
        log(f"{section}.{key} = {value}")
    except InvalidConfiguration as e:
        log(f"Rejected {section}.{key}: {e}")


def _decode_file(session, text):
    try:
        fmt = decode_into(session, text)
        log(f"Decoded {fmt}-oriented code: {len(session.waypoints)} waypoints")
    except NoWaypointsDecoded as e:
        log(f"Decode: {e} (CTRL+Z restores the previous path)")
    except DecodeError as e:
        log(f"Decode failed: {e}")


def _initial_session(argv, cfg):
    if len(argv) < 2:
        session = Session()
        session.set_mode(codegen_flat(cfg)["mode"])
        return session
    path = argv[1]
    if path.lower().endswith(".json"):
        return load_routine(path)
    session = Session()
    with open(path, "r", encoding="utf-8") as f:
        _decode_file(session, f.read())
    return session


def main():
    cfg = load_config()
    session = _initial_session(sys.argv, cfg)
    print(APP_TITLE)
    for key, desc in CONTROLS:
        print(f"  {key:<16} {desc.replace(chr(10), ' ')}")
    sim = Simulator(cfg)

    pygame.init()
    screen = pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT))
    pygame.display.set_caption(APP_TITLE)
    font = pygame.font.SysFont("Consolas", 14)
    clock = pygame.time.Clock()

    drag = None
    running = True
    while running:
        clock.tick(60)
        mods = pygame.key.get_mods()
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_SPACE:
                    if sim.running:
                        sim.halt()
                        log("Simulation halted")
                    elif sim.start(session):
                        log(f"Simulation started ({session.mode} mode)")
                elif event.key == pygame.K_z and mods & pygame.KMOD_CTRL:
                    session.undo()
                elif event.key == pygame.K_m:
                    session.set_mode("field" if session.mode == "robot" else "robot")
                elif event.key in (pygame.K_1, pygame.K_2, pygame.K_3) and session.selection is not None:
                    kind = {pygame.K_1: "drive", pygame.K_2: "strafe", pygame.K_3: "arc"}[event.key]
                    if session.waypoints[session.selection].kind != "action":
                        session.retype_waypoint(session.selection, kind)
                elif event.key in (pygame.K_DELETE, pygame.K_BACKSPACE) and session.selection is not None:
                    session.delete_waypoint(session.selection)
                elif event.key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_MINUS):
                    step = 0.5 if event.key != pygame.K_MINUS else -0.5
                    _bump_option(cfg, "sim", "speed_multiplier", sim_flat(cfg)["speed_multiplier"] + step)
                elif event.key in (pygame.K_LEFTBRACKET, pygame.K_RIGHTBRACKET):
                    step = 1 if event.key == pygame.K_RIGHTBRACKET else -1
                    _bump_option(cfg, "codegen", "arc_samples", codegen_flat(cfg)["arc_samples"] + step)
                elif event.key == pygame.K_s:
                    path = save_routine(session)
                    if path:
                        log(f"Saved routine to {path}")
                elif event.key == pygame.K_l:
                    loaded = load_routine()
                    if loaded is not None:
                        session = loaded
                        log("Loaded routine")
                elif event.key == pygame.K_c:
                    export_program(generate(session, cfg))
                elif event.key == pygame.K_d:
                    text = read_program()
                    if text is not None:
                        _decode_file(session, text)
                elif event.key == pygame.K_o:
                    export_log(log_lines)

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1 and not sim.running:
                if pygame.key.get_pressed()[pygame.K_a]:
                    name, args = _ask_action()
                    if name:
                        tol = markers_flat(cfg)["reuse_tolerance_m"]
                        session.add_or_reuse_marker(to_meters(*event.pos), name, args, tol)
                    continue
                target, idx = pick_target(session, event.pos, PICK_RADIUS_PX)
                if target is None:
                    m = to_meters(*event.pos)
                    session.add_waypoint(Pose(m.x, m.y, 0.0), "drive", codegen_flat(cfg)["default_speed"])
                    continue
                if target in ("wp", "select"):
                    session.select(idx)
                if target != "select":
                    drag = DragGesture(session, target, idx)

            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                drag = None

            elif event.type == pygame.MOUSEMOTION and drag is not None:
                drag.move(event.pos)

        if sim.running:
            if sim.tick(sim.step_ms):
                log(f"Simulation finished after {sim.state.t_ms / 1000.0:.2f} s")

        screen.fill(BG_COLOR)
        draw_grid(screen, GRID_SIZE_PX)
        draw_session(screen, session, font)
        if session.mode == "field" or sim.running:
            draw_preview(screen, preview_points(sim.plan if sim.running else build_plan(session, cfg)))
        if sim.state is not None and (sim.running or sim.state.phase == "done"):
            draw_robot(screen, (sim.state.x, sim.state.y), sim.state.heading)
        draw_status(screen, [
            f"mode: {session.mode}   sim x{sim_flat(cfg)['speed_multiplier']:.1f}   "
            f"arc samples: {codegen_flat(cfg)['arc_samples']}",
        ], font)
        pygame.display.flip()

    save_config(cfg)
    pygame.quit()


if __name__ == "__main__":
    main()
