"""Robot path model, program codec and simulator."""

from .errors import (
    OdogenError, DecodeError, UnrecognizedFormat, NoWaypointsDecoded, InvalidConfiguration,
)
from .geom import Point, Pose
from .model import Session, Marker
from .codegen import generate, generate_field_oriented, generate_robot_oriented
from .decoder import decode, decode_into, sniff_format
from .sim import Simulator, build_plan, initial_state, step

__version__ = "1.0.0"
