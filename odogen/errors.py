# odogen/errors.py
"""Exceptions raised by the path model, codec and configuration layer."""


class OdogenError(Exception):
    """Base class for everything odogen raises on purpose."""


class DecodeError(OdogenError):
    """Program text could not be turned back into a path."""


class UnrecognizedFormat(DecodeError):
    """Neither the field-oriented nor the robot-oriented grammar matched."""


class NoWaypointsDecoded(DecodeError):
    """The format was recognized but nothing usable came out of it.

    By the time this is raised the previous path has already been replaced
    with the (empty) decoded one; ``Session.undo()`` brings it back.
    """


class InvalidConfiguration(OdogenError, ValueError):
    """A configuration value was rejected; the previous value is kept."""
