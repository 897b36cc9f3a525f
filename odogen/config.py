# odogen/config.py
from __future__ import annotations
import copy, json, os
from typing import Optional

from .errors import InvalidConfiguration

# Field and window
FIELD_METERS  = 3.6576
WINDOW_WIDTH  = 720
WINDOW_HEIGHT = 720
PPM           = WINDOW_WIDTH / FIELD_METERS
GRID_SIZE_PX  = WINDOW_WIDTH / 6

# Colors (RGB)
BG_COLOR      = (30, 30, 30)
GRID_COLOR    = (50, 50, 50)
START_COLOR   = (16, 185, 129)
DRIVE_COLOR   = (59, 130, 246)
STRAFE_COLOR  = (234, 179, 8)
ARC_COLOR     = (6, 182, 212)
ACTION_COLOR  = (167, 139, 250)
HANDLE_COLOR  = (245, 158, 11)
CONTROL_COLOR = (236, 72, 153)
ROBOT_COLOR   = (239, 68, 68)
ARROW_COLOR   = (255, 255, 255)
TEXT_COLOR    = (255, 255, 255)
SELECTED      = (16, 185, 129)

CONFIG_FILENAME = "config.json"

DEFAULT_CONFIG = {
    "codegen": {
        "mode":          {"value": "robot"},
        "arc_samples":   {"value": 5},
        "default_speed": {"value": 0.8},
    },
    "sim": {
        "speed_multiplier": {"value": 1.0},
        "step_ms":          {"value": 16},
        "drive_speed_mps":  {"value": 0.8},
        "turn_speed_dps":   {"value": 120.0},
    },
    "markers": {
        "reuse_tolerance_m": {"value": 5.0 / PPM},
    },
}


def _positive_int_min2(raw):
    try:
        v = int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"expected an integer, got {raw!r}")
    if v < 2:
        raise InvalidConfiguration(f"must be at least 2, got {v}")
    return v


def _positive_float(raw):
    try:
        v = float(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"expected a number, got {raw!r}")
    if not v > 0.0 or v == float("inf"):
        raise InvalidConfiguration(f"must be a positive number, got {raw!r}")
    return v


def _unit_float(raw):
    v = _positive_float(raw)
    if v > 1.0:
        raise InvalidConfiguration(f"must be within (0, 1], got {v}")
    return v


def _mode(raw):
    v = str(raw).strip().lower()
    if v not in ("robot", "field"):
        raise InvalidConfiguration(f"mode must be 'robot' or 'field', got {raw!r}")
    return v


# section -> key -> validator
VALIDATORS = {
    "codegen": {
        "mode": _mode,
        "arc_samples": _positive_int_min2,
        "default_speed": _unit_float,
    },
    "sim": {
        "speed_multiplier": _positive_float,
        "step_ms": _positive_float,
        "drive_speed_mps": _positive_float,
        "turn_speed_dps": _positive_float,
    },
    "markers": {
        "reuse_tolerance_m": _positive_float,
    },
}


def _flatten(section: dict) -> dict:
    """Extract 'value' from nested dict structure."""
    flat = {}
    for k, v in section.items():
        flat[k] = v.get("value", v) if isinstance(v, dict) and "value" in v else v
    return flat


def _load_json(path: str) -> Optional[dict]:
    """Load JSON file, return None on failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        print(f"Warning: could not read config {path}: {e}")
        return None


def _save_json(path: str, data: dict) -> None:
    """Save JSON file, creating the parent directory."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def default_config_path() -> str:
    here = os.path.dirname(__file__)
    return os.path.normpath(os.path.join(here, os.pardir, CONFIG_FILENAME))


def default_config() -> dict:
    return copy.deepcopy(DEFAULT_CONFIG)


def _merge_defaults(data: dict) -> dict:
    """Fill sections/keys missing from a loaded file; drop invalid leaves."""
    cfg = default_config()
    for section, keys in VALIDATORS.items():
        loaded = data.get(section, {}) if isinstance(data, dict) else {}
        if not isinstance(loaded, dict):
            continue
        for key, check in keys.items():
            if key not in loaded:
                continue
            raw = loaded[key]
            raw = raw.get("value") if isinstance(raw, dict) else raw
            try:
                cfg[section][key] = {"value": check(raw)}
            except InvalidConfiguration as e:
                print(f"Warning: ignoring {section}.{key} from config: {e}")
    return cfg


def load_config(path: Optional[str] = None) -> dict:
    """Load config from the repo root, create default if missing."""
    path = path or default_config_path()
    data = _load_json(path)
    if data is None:
        data = default_config()
        try:
            _save_json(path, data)
        except OSError as e:
            print(f"Warning: could not write default config {path}: {e}")
        return data
    return _merge_defaults(data)


def save_config(cfg: dict, path: Optional[str] = None) -> bool:
    """Save config dictionary, return False if it could not be written."""
    path = path or default_config_path()
    try:
        _save_json(path, cfg)
        print(f"Config saved to {path}")
        return True
    except OSError as e:
        print(f"Failed to save config: {e}")
        return False


def set_option(cfg: dict, section: str, key: str, raw):
    """
    Validate and store one option. Raises InvalidConfiguration and leaves
    the previous value untouched when the value is rejected.
    """
    try:
        check = VALIDATORS[section][key]
    except KeyError:
        raise InvalidConfiguration(f"unknown option {section}.{key}")
    value = check(raw)
    cfg.setdefault(section, {})[key] = {"value": value}
    return value


def codegen_flat(cfg: dict) -> dict:
    """Flatten codegen section."""
    return {**_flatten(DEFAULT_CONFIG["codegen"]), **_flatten(cfg.get("codegen", {}))}


def sim_flat(cfg: dict) -> dict:
    """Flatten sim section."""
    return {**_flatten(DEFAULT_CONFIG["sim"]), **_flatten(cfg.get("sim", {}))}


def markers_flat(cfg: dict) -> dict:
    """Flatten markers section."""
    return {**_flatten(DEFAULT_CONFIG["markers"]), **_flatten(cfg.get("markers", {}))}
