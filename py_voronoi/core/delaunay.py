"""
Delaunay triangulation using the Bowyer-Watson incremental algorithm.

Points are inserted one at a time, in input order, into a triangulation
seeded with a synthetic super-triangle. Each insertion removes every
triangle whose circumcircle contains the new point and re-triangulates the
resulting cavity around it.

A finite super-triangle can leave flat Delaunay triangles along the convex
hull unbuilt, because their huge circumcircles reach a super vertex. Those
hull pockets are filled back in once the super vertices are stripped.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np
import structlog
from scipy.spatial import cKDTree

from .errors import GeometryError
from .geometry import Edge, Point, Triangle

logger = structlog.get_logger()

# Super-triangle inflation relative to the larger bounding-box dimension
SUPER_TRIANGLE_SCALE = 10.0

# Boundary turns flatter than this (relative to the side lengths) are straight
REFLEX_TOLERANCE = 1e-12


@dataclass
class Triangulation:
    """Result of a Delaunay triangulation."""
    points: List[Point]                  # input points, in input order
    triangles: List[Triangle]            # surviving Delaunay triangles
    super_triangle: Triangle
    skipped_indices: List[int] = field(default_factory=list)  # duplicate inputs
    degenerate_count: int = 0            # degenerate triangles left out
    restored_count: int = 0              # hull triangles filled back in

    def __post_init__(self):
        # Keys are the input values themselves, never recomputed coordinates
        self._index: Dict[Point, int] = {}
        for i, p in enumerate(self.points):
            self._index.setdefault(p, i)

    def index_of(self, point: Point) -> int:
        """Input index of a triangle vertex."""
        return self._index[point]

    def triangle_indices(self, triangle: Triangle) -> Tuple[int, int, int]:
        a, b, c = triangle.vertices
        return self.index_of(a), self.index_of(b), self.index_of(c)


def create_super_triangle(points: Sequence[Point]) -> Triangle:
    """
    Create a triangle enclosing the bounding box of all points.

    The box is inflated by SUPER_TRIANGLE_SCALE times its larger dimension
    so every insertion lands well inside.
    """
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)

    dx = max_x - min_x
    dy = max_y - min_y
    delta = max(dx, dy) * SUPER_TRIANGLE_SCALE
    if delta == 0:
        delta = SUPER_TRIANGLE_SCALE

    p1 = Point(min_x - delta, min_y - delta)
    p2 = Point(max_x + delta, min_y - delta)
    p3 = Point(min_x + dx / 2, max_y + delta)
    return Triangle(p1, p2, p3)


def find_hole_boundary(bad_triangles: Iterable[Triangle]) -> List[Edge]:
    """
    Find the boundary of the cavity left by removing bad triangles.

    An edge shared by two bad triangles is interior to the cavity; an edge
    seen exactly once borders it. Boundary edges keep first-seen order.
    """
    counts: Dict[Edge, int] = {}
    for triangle in bad_triangles:
        for edge in triangle.edges():
            counts[edge] = counts.get(edge, 0) + 1
    return [edge for edge, count in counts.items() if count == 1]


def discard_degenerate(triangles: Iterable[Triangle]) -> Tuple[List[Triangle], int]:
    """Split off degenerate triangles, returning the rest and how many were dropped."""
    kept = []
    dropped = 0
    for t in triangles:
        if t.is_degenerate:
            dropped += 1
        else:
            kept.append(t)
    return kept, dropped


def _counter_clockwise(triangle: Triangle) -> Tuple[Point, Point, Point]:
    a, b, c = triangle.vertices
    if (b - a).cross(c - a) < 0:
        return a, c, b
    return a, b, c


def _boundary_links(triangles: Iterable[Triangle]
                    ) -> Tuple[Dict[Point, List[Point]], Dict[Point, List[Point]]]:
    """Successors and predecessors along the counter-clockwise outer boundary."""
    directed = set()
    for t in triangles:
        a, b, c = _counter_clockwise(t)
        directed.update(((a, b), (b, c), (c, a)))

    successors: Dict[Point, List[Point]] = {}
    predecessors: Dict[Point, List[Point]] = {}
    for start, end in directed:
        if (end, start) not in directed:
            successors.setdefault(start, []).append(end)
            predecessors.setdefault(end, []).append(start)
    return successors, predecessors


def fill_hull_pockets(triangles: List[Triangle],
                      points: Sequence[Point]) -> List[Triangle]:
    """
    Rebuild Delaunay triangles missing along the convex hull.

    Walks the triangulation boundary and, at every reflex vertex v with
    neighbors p and n, adds the ear (p, v, n) when no other point lies
    strictly inside its circumcircle. Repeats until no ear qualifies, which
    leaves a convex boundary for points in general position.

    Args:
        triangles: Delaunay triangles with super vertices stripped
        points: Distinct input points

    Returns:
        The added triangles
    """
    if not triangles:
        return []

    index = {p: i for i, p in enumerate(points)}
    tree = cKDTree(np.asarray(points, dtype=float))
    added: List[Triangle] = []

    # A triangulation of n points never has more than 2n triangles
    while len(added) < 2 * len(points):
        successors, predecessors = _boundary_links(triangles + added)
        ear = None

        for v in sorted(successors):
            nexts = successors[v]
            prevs = predecessors.get(v, [])
            if len(nexts) != 1 or len(prevs) != 1:
                continue
            p, n = prevs[0], nexts[0]

            incoming = v - p
            outgoing = n - v
            turn = incoming.cross(outgoing)
            if turn >= -REFLEX_TOLERANCE * incoming.length() * outgoing.length():
                continue

            candidate = Triangle(p, n, v)
            if candidate.is_degenerate:
                continue

            center = candidate.circumcenter
            radius = math.sqrt(candidate.circumradius_squared)
            own = {index[p], index[v], index[n]}
            inside = tree.query_ball_point([center.x, center.y], radius * (1 - 1e-9))
            if all(i in own for i in inside):
                ear = candidate
                break

        if ear is None:
            break
        added.append(ear)

    return added


def _unique_points(points: Iterable) -> Tuple[List[Point], List[int], List[int]]:
    """Split input into all points, indices of first occurrences and duplicates."""
    all_points: List[Point] = []
    unique_indices: List[int] = []
    skipped: List[int] = []
    seen = set()
    for i, (x, y) in enumerate(points):
        p = Point(float(x), float(y))
        all_points.append(p)
        if p in seen:
            skipped.append(i)
            continue
        seen.add(p)
        unique_indices.append(i)
    return all_points, unique_indices, skipped


def triangulate(points: Iterable) -> Triangulation:
    """
    Compute the Delaunay triangulation of a point set.

    Args:
        points: Iterable of (x, y) pairs

    Returns:
        Triangulation holding the surviving triangles

    Raises:
        GeometryError: If fewer than 3 distinct points are given or no
            triangle survives (fully collinear input)
    """
    all_points, unique_indices, skipped = _unique_points(points)

    if skipped:
        logger.warning("Skipping duplicate points", count=len(skipped))

    if len(unique_indices) < 3:
        raise GeometryError(
            f"At least 3 distinct points are required, got {len(unique_indices)}"
        )

    unique_points = [all_points[i] for i in unique_indices]
    super_triangle = create_super_triangle(unique_points)
    triangles: List[Triangle] = [super_triangle]

    for point in unique_points:
        bad_triangles = [t for t in triangles if t.circumcircle_contains(point)]
        if not bad_triangles:
            # Only reachable when degenerate triangles cover the point
            logger.warning("Point not inside any circumcircle", x=point.x, y=point.y)
            continue

        boundary = find_hole_boundary(bad_triangles)

        bad_ids = {id(t) for t in bad_triangles}
        triangles = [t for t in triangles if id(t) not in bad_ids]

        for edge in boundary:
            triangles.append(Triangle(edge.start, edge.end, point))

    super_vertices = super_triangle.vertices
    survivors = [t for t in triangles if not t.has_any_vertex(super_vertices)]

    survivors, degenerate = discard_degenerate(survivors)
    if degenerate:
        logger.warning("Excluding degenerate triangles", count=degenerate)

    restored = fill_hull_pockets(survivors, unique_points)
    if restored:
        logger.debug("Restored hull triangles", count=len(restored))
        survivors.extend(restored)

    if not survivors:
        raise GeometryError(
            "Triangulation produced no triangles; input points are collinear"
        )

    logger.info("Triangulation complete",
                points=len(unique_points),
                triangles=len(survivors),
                degenerate=degenerate,
                restored=len(restored))

    return Triangulation(
        points=all_points,
        triangles=survivors,
        super_triangle=super_triangle,
        skipped_indices=skipped,
        degenerate_count=degenerate,
        restored_count=len(restored),
    )
