"""
Voronoi cell construction from a Delaunay triangulation.

Each triangle circumcenter is a Voronoi vertex shared by the cells of the
triangle's three sites. Sites on the convex hull have unbounded cells;
those are closed here with far points placed along their outward rays so
the boundary clipper can cut them down to the domain.
"""

from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Sequence, Tuple

import numpy as np
import structlog

from .delaunay import Triangulation
from .geometry import Point, Rectangle, Triangle

logger = structlog.get_logger()

# Vertices closer than this fraction of the domain diagonal are merged
MERGE_TOLERANCE = 1e-9

EdgeKey = Tuple[int, int]


class HullRay(NamedTuple):
    """Unbounded Voronoi edge dual to a convex hull edge of the triangulation."""
    origin: Point       # circumcenter of the single incident triangle
    direction: Point    # unit vector pointing away from the triangulation
    sites: EdgeKey


@dataclass
class CellBuildResult:
    """Ordered (unclipped) cell polygons keyed by site index."""
    polygons: Dict[int, List[Point]]
    incidence: Dict[EdgeKey, List[Triangle]]
    rays: Dict[EdgeKey, HullRay]
    far_distance: float
    hull_sites: set = field(default_factory=set)
    errors: List[str] = field(default_factory=list)


def edge_key(i: int, j: int) -> EdgeKey:
    return (i, j) if i < j else (j, i)


def build_edge_incidence(triangulation: Triangulation) -> Dict[EdgeKey, List[Triangle]]:
    """
    Map every Delaunay edge (as a sorted pair of site indices) to its triangles.

    Interior edges have two incident triangles, hull edges one.
    """
    incidence: Dict[EdgeKey, List[Triangle]] = {}
    for triangle in triangulation.triangles:
        a, b, c = triangulation.triangle_indices(triangle)
        for key in (edge_key(a, b), edge_key(b, c), edge_key(c, a)):
            incidence.setdefault(key, []).append(triangle)
    return incidence


def build_hull_rays(triangulation: Triangulation,
                    incidence: Dict[EdgeKey, List[Triangle]]) -> Dict[EdgeKey, HullRay]:
    """
    Compute the outward Voronoi ray for every hull edge.

    The ray starts at the circumcenter of the edge's only triangle and runs
    along the edge's perpendicular, away from the opposite vertex.
    """
    rays: Dict[EdgeKey, HullRay] = {}
    points = triangulation.points

    for key, triangles in incidence.items():
        if len(triangles) != 1:
            continue
        triangle = triangles[0]
        i, j = key
        a, b = points[i], points[j]
        opposite = next(v for v in triangle.vertices if v != a and v != b)

        normal = (b - a).perpendicular()
        if normal.dot(opposite - a) > 0:
            normal = normal * -1.0
        direction = normal / normal.length()

        rays[key] = HullRay(triangle.circumcenter, direction, key)

    return rays


def collect_cell_vertices(triangulation: Triangulation) -> Dict[int, List[Point]]:
    """
    Collect each triangle's circumcenter into the raw vertex list of its sites.

    Sites are keyed by index; sites without any incident triangle get no
    entry.
    """
    raw: Dict[int, List[Point]] = {}
    for triangle in triangulation.triangles:
        center = triangle.circumcenter
        for site_index in triangulation.triangle_indices(triangle):
            raw.setdefault(site_index, []).append(center)
    return dict(sorted(raw.items()))


def far_distance(bounds: Rectangle, points: Sequence[Point]) -> float:
    """Distance along hull rays that safely clears the domain and every point."""
    center = bounds.center
    extent = bounds.diagonal()
    for p in points:
        extent = max(extent, (p - center).length())
    return 4.0 * extent + bounds.diagonal()


def merge_close_vertices(vertices: Sequence[Point], tolerance: float) -> List[Point]:
    """Drop vertices within tolerance of an earlier vertex."""
    tolerance_squared = tolerance * tolerance
    merged: List[Point] = []
    for v in vertices:
        if all(v.distance_squared(m) > tolerance_squared for m in merged):
            merged.append(v)
    return merged


def order_vertices(vertices: Sequence[Point]) -> List[Point]:
    """
    Order vertices counter-clockwise by angle around their mean.

    For vertices in convex position this yields a simple polygon.
    """
    if len(vertices) < 3:
        return list(vertices)

    coords = np.asarray(vertices, dtype=float)
    center = coords.mean(axis=0)
    angles = np.arctan2(coords[:, 1] - center[1], coords[:, 0] - center[0])
    order = np.argsort(angles, kind="stable")
    return [vertices[i] for i in order]


def _closing_points(rays: List[HullRay], distance: float) -> List[Point]:
    """Far points that close an unbounded cell along its rays."""
    points = [ray.origin + ray.direction * distance for ray in rays]

    if len(rays) == 2:
        first, second = rays
        bisector = first.direction + second.direction
        length = bisector.length()
        if length > 1e-12:
            middle = (first.origin + second.origin) / 2
            points.append(middle + bisector * (distance / length))
    elif len(rays) > 2:
        logger.warning("Hull site has more than two rays", rays=len(rays))

    return points


def build_cells(triangulation: Triangulation, bounds: Rectangle) -> CellBuildResult:
    """
    Build ordered, closed cell polygons for every site touched by a triangle.

    A cell not on the hull that ends up with fewer than 3 distinct vertices
    cannot be bounded; it is recorded as a geometry error and excluded.

    Args:
        triangulation: Delaunay triangulation of the sites
        bounds: Domain rectangle, used to size the hull closure

    Returns:
        CellBuildResult with polygons keyed by site index
    """
    incidence = build_edge_incidence(triangulation)
    rays = build_hull_rays(triangulation, incidence)

    centers = [t.circumcenter for t in triangulation.triangles]
    distance = far_distance(bounds, centers + list(triangulation.points))
    tolerance = MERGE_TOLERANCE * max(bounds.diagonal(), 1.0)

    rays_by_site: Dict[int, List[HullRay]] = {}
    for key, ray in rays.items():
        for site_index in key:
            rays_by_site.setdefault(site_index, []).append(ray)

    polygons: Dict[int, List[Point]] = {}
    errors: List[str] = []

    for site_index, raw in collect_cell_vertices(triangulation).items():
        vertices = merge_close_vertices(raw, tolerance)

        site_rays = rays_by_site.get(site_index)
        if site_rays:
            vertices.extend(_closing_points(site_rays, distance))

        if len(vertices) < 3:
            kind = "Open" if site_rays else "Bounded"
            message = (f"{kind} cell for site {site_index} has "
                       f"{len(vertices)} distinct vertices")
            logger.warning("Excluding malformed cell", site=site_index,
                           vertices=len(vertices))
            errors.append(message)
            continue

        polygons[site_index] = order_vertices(vertices)

    logger.info("Cells built", cells=len(polygons), hull_sites=len(rays_by_site),
                excluded=len(errors))

    return CellBuildResult(
        polygons=polygons,
        incidence=incidence,
        rays=rays,
        far_distance=distance,
        hull_sites=set(rays_by_site),
        errors=errors,
    )
