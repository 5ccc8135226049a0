"""
Adjacency resolution between Voronoi cells.

Every Delaunay edge is dual to one Voronoi edge: the segment joining the
circumcenters of its two triangles, or for a hull edge the outward ray from
its single triangle's circumcenter. Two cells are neighbors when that dual
edge, clipped to the domain, has non-zero length.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Set

import structlog

from .cell_builder import CellBuildResult
from .clipping import clip_segment_to_rect
from .geometry import Point, Rectangle

logger = structlog.get_logger()

# Right cell index of an edge on the domain boundary
BOUNDARY_CELL = -1

# Clipped dual edges shorter than this fraction of the domain diagonal are dropped
MIN_EDGE_LENGTH = 1e-9


@dataclass
class DualEdge:
    """Clipped Voronoi edge between two cells."""
    left_cell: int
    right_cell: int
    start: Point
    end: Point


class Adjacency:
    """Symmetric, deduplicated neighbor sets keyed by cell index."""

    def __init__(self, cell_count: int = 0):
        self._neighbors: Dict[int, Set[int]] = {i: set() for i in range(cell_count)}

    def link(self, a: int, b: int) -> None:
        """Record a and b as neighbors of each other."""
        if a == b:
            return
        self._neighbors.setdefault(a, set()).add(b)
        self._neighbors.setdefault(b, set()).add(a)

    def neighbors(self, cell_index: int) -> List[int]:
        return sorted(self._neighbors.get(cell_index, ()))

    def __contains__(self, pair) -> bool:
        a, b = pair
        return b in self._neighbors.get(a, ())


def resolve_dual_edges(build: CellBuildResult,
                       cell_of_site: Mapping[int, int],
                       bounds: Rectangle) -> List[DualEdge]:
    """
    Derive the clipped Voronoi edge for every Delaunay edge.

    Args:
        build: Cell builder output (edge incidence and hull rays)
        cell_of_site: Cell index for every site that produced a cell
        bounds: Domain rectangle

    Returns:
        Dual edges in Delaunay edge order, skipping edges that clip away or
        collapse to a point
    """
    min_length = MIN_EDGE_LENGTH * max(bounds.diagonal(), 1.0)
    dual_edges: List[DualEdge] = []
    collapsed = 0

    for key, triangles in build.incidence.items():
        i, j = key
        if i not in cell_of_site or j not in cell_of_site:
            continue

        if len(triangles) == 1:
            ray = build.rays[key]
            start = ray.origin
            end = ray.origin + ray.direction * build.far_distance
        else:
            if len(triangles) > 2:
                logger.warning("Delaunay edge shared by more than two triangles",
                               sites=key, triangles=len(triangles))
            start = triangles[0].circumcenter
            end = triangles[1].circumcenter

        clipped = clip_segment_to_rect(start, end, bounds)
        if clipped is None:
            continue
        start, end = clipped
        if (end - start).length() <= min_length:
            collapsed += 1
            continue

        dual_edges.append(DualEdge(cell_of_site[i], cell_of_site[j], start, end))

    logger.debug("Dual edges resolved", edges=len(dual_edges), collapsed=collapsed)
    return dual_edges


def build_adjacency(dual_edges: List[DualEdge], cell_count: int) -> Adjacency:
    adjacency = Adjacency(cell_count)
    for edge in dual_edges:
        adjacency.link(edge.left_cell, edge.right_cell)
    return adjacency


def neighbors_from_edges(diagram, cell_index: int) -> List[int]:
    """
    Neighbor cell indices derived from a cell's incident edges.

    Boundary edges and the cell itself are excluded. Agrees with the
    diagram's stored neighbor lists.
    """
    cell = diagram.cells[cell_index]
    neighbors = set()
    for edge_index in cell.edge_indices:
        edge = diagram.edges[edge_index]
        for other in (edge.left_cell_index, edge.right_cell_index):
            if other != BOUNDARY_CELL and other != cell_index:
                neighbors.add(other)
    return sorted(neighbors)
