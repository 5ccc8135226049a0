"""Exceptions raised by the planar subdivision engine."""


class VoronoiError(Exception):
    """Base class for all diagram generation errors."""


class GeometryError(VoronoiError):
    """
    Raised when the input geometry cannot produce a valid subdivision.

    Individual degenerate triangles and malformed cells are recorded and
    excluded while building; this is raised only when nothing usable
    survives (collinear or under-populated site sets).
    """


class InvalidArgumentError(VoronoiError, ValueError):
    """Raised for invalid generation parameters before any work starts."""
