"""Geometry primitives for the planar subdivision engine."""

import math
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

# Relative tolerance for the bisector determinant in the circumcenter solve
DETERMINANT_TOLERANCE = 1e-12


class Point(NamedTuple):
    """Immutable 2D point/vector. Equality and hashing use exact coordinates."""
    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> "Point":
        return Point(self.x * factor, self.y * factor)

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> "Point":
        return Point(self.x / divisor, self.y / divisor)

    def cross(self, other: "Point") -> float:
        """Z component of the 2D cross product."""
        return self.x * other.y - self.y * other.x

    def dot(self, other: "Point") -> float:
        return self.x * other.x + self.y * other.y

    def perpendicular(self) -> "Point":
        """Vector rotated 90 degrees counter-clockwise."""
        return Point(-self.y, self.x)

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def distance_squared(self, other: "Point") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)


class Rectangle(NamedTuple):
    """Axis-aligned rectangle given by its minimum and maximum corners."""
    x_min: float
    y_min: float
    x_max: float
    y_max: float

    @classmethod
    def from_size(cls, width: float, height: float,
                  x: float = 0.0, y: float = 0.0) -> "Rectangle":
        return cls(x, y, x + width, y + height)

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    @property
    def center(self) -> Point:
        return Point((self.x_min + self.x_max) / 2, (self.y_min + self.y_max) / 2)

    def diagonal(self) -> float:
        return math.hypot(self.width, self.height)

    def contains(self, point: Point, tolerance: float = 0.0) -> bool:
        """Check if point lies inside or on the rectangle, within tolerance."""
        return (self.x_min - tolerance <= point.x <= self.x_max + tolerance and
                self.y_min - tolerance <= point.y <= self.y_max + tolerance)

    def corners(self) -> List[Point]:
        """Corners in counter-clockwise order starting at (x_min, y_min)."""
        return [
            Point(self.x_min, self.y_min),
            Point(self.x_max, self.y_min),
            Point(self.x_max, self.y_max),
            Point(self.x_min, self.y_max),
        ]


class Edge:
    """
    Undirected edge between two points.

    An edge equals its own reversal, which is what the triangulator relies
    on when counting how many cavity triangles share a side.
    """

    __slots__ = ("start", "end")

    def __init__(self, start: Point, end: Point):
        self.start = start
        self.end = end

    def __eq__(self, other) -> bool:
        if not isinstance(other, Edge):
            return NotImplemented
        return ((self.start == other.start and self.end == other.end) or
                (self.start == other.end and self.end == other.start))

    def __hash__(self) -> int:
        return hash(frozenset((self.start, self.end)))

    def __repr__(self) -> str:
        return f"Edge({self.start}, {self.end})"


class Triangle:
    """
    Triangle with a memoized circumcircle.

    The circumcenter is the intersection of the perpendicular bisectors of
    AB and BC. When those bisectors are parallel the triangle is flagged
    degenerate and has no circumcenter.
    """

    __slots__ = ("vertices", "_circumcenter", "_radius_squared", "_solved")

    def __init__(self, a: Point, b: Point, c: Point):
        self.vertices: Tuple[Point, Point, Point] = (a, b, c)
        self._circumcenter: Optional[Point] = None
        self._radius_squared: Optional[float] = None
        self._solved = False

    def edges(self) -> List[Edge]:
        a, b, c = self.vertices
        return [Edge(a, b), Edge(b, c), Edge(c, a)]

    def contains_vertex(self, vertex: Point) -> bool:
        return vertex in self.vertices

    def has_any_vertex(self, vertices: Iterable[Point]) -> bool:
        return any(v in self.vertices for v in vertices)

    def _solve(self) -> None:
        self._solved = True
        a, b, c = self.vertices

        mid_ab = (a + b) / 2
        mid_bc = (b + c) / 2
        perp_ab = (b - a).perpendicular()
        perp_bc = (c - b).perpendicular()

        det = perp_ab.cross(perp_bc)
        if abs(det) <= DETERMINANT_TOLERANCE * perp_ab.length() * perp_bc.length():
            return

        t = (mid_bc - mid_ab).cross(perp_bc) / det
        center = mid_ab + perp_ab * t
        if not center.is_finite():
            return

        radius_squared = a.distance_squared(center)
        if not math.isfinite(radius_squared):
            return

        self._circumcenter = center
        self._radius_squared = radius_squared

    @property
    def circumcenter(self) -> Optional[Point]:
        """Circumcenter, or None for a degenerate triangle."""
        if not self._solved:
            self._solve()
        return self._circumcenter

    @property
    def circumradius_squared(self) -> Optional[float]:
        if not self._solved:
            self._solve()
        return self._radius_squared

    @property
    def is_degenerate(self) -> bool:
        return self.circumcenter is None

    def circumcircle_contains(self, point: Point) -> bool:
        """
        Check if point lies inside or exactly on the circumcircle.

        Degenerate triangles contain nothing.
        """
        center = self.circumcenter
        if center is None:
            return False
        return point.distance_squared(center) <= self._radius_squared

    def __repr__(self) -> str:
        a, b, c = self.vertices
        return f"Triangle({a}, {b}, {c})"


def polygon_area(vertices: Sequence[Point]) -> float:
    """Signed polygon area (positive for counter-clockwise order)."""
    if len(vertices) < 3:
        return 0.0
    coords = np.asarray(vertices, dtype=float)
    x = coords[:, 0]
    y = coords[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))


def polygon_centroid(vertices: Sequence[Point]) -> Point:
    """
    Compute the area centroid of a polygon using the shoelace formula.

    Falls back to the vertex mean for polygons with fewer than 3 vertices
    or (near) zero area.

    Args:
        vertices: Ordered polygon vertices

    Returns:
        Centroid point
    """
    if len(vertices) == 0:
        raise ValueError("Cannot compute centroid of an empty polygon")

    coords = np.asarray(vertices, dtype=float)
    if len(coords) < 3:
        mean = coords.mean(axis=0)
        return Point(float(mean[0]), float(mean[1]))

    x = coords[:, 0]
    y = coords[:, 1]
    x_next = np.roll(x, -1)
    y_next = np.roll(y, -1)
    cross = x * y_next - x_next * y
    area = cross.sum() * 0.5

    if abs(area) < 1e-10:
        mean = coords.mean(axis=0)
        return Point(float(mean[0]), float(mean[1]))

    cx = float(((x + x_next) * cross).sum() / (6.0 * area))
    cy = float(((y + y_next) * cross).sum() / (6.0 * area))
    return Point(cx, cy)


def is_simple_polygon(vertices: Sequence[Point]) -> bool:
    """Check that no two non-adjacent polygon sides intersect."""
    n = len(vertices)
    if n < 4:
        return True

    def _segments_cross(p1, p2, q1, q2) -> bool:
        d1 = (p2 - p1).cross(q1 - p1)
        d2 = (p2 - p1).cross(q2 - p1)
        d3 = (q2 - q1).cross(p1 - q1)
        d4 = (q2 - q1).cross(p2 - q1)
        return d1 * d2 < 0 and d3 * d4 < 0

    for i in range(n):
        a1, a2 = vertices[i], vertices[(i + 1) % n]
        for j in range(i + 2, n):
            if i == 0 and j == n - 1:
                continue
            if _segments_cross(a1, a2, vertices[j], vertices[(j + 1) % n]):
                return False
    return True
