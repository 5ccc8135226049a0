"""Voronoi diagram generation and the diagram aggregate."""

import math
import numbers
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import structlog
from scipy.spatial import cKDTree

from ..config import settings
from .adjacency import BOUNDARY_CELL, build_adjacency, resolve_dual_edges
from .alea_prng import AleaPRNG
from .cell_builder import build_cells
from .clipping import (
    boundary_segments,
    clamp_to_rect,
    clip_polygon_to_rect,
    remove_consecutive_duplicates,
)
from .delaunay import triangulate
from .errors import InvalidArgumentError
from .geometry import Point, Rectangle, is_simple_polygon, polygon_centroid

logger = structlog.get_logger()

# Clipped vertices closer than this fraction of the domain diagonal are merged
VERTEX_TOLERANCE = 1e-9


@dataclass
class VoronoiCell:
    """A single Voronoi cell."""
    index: int
    site_index: int                  # index into VoronoiDiagram.sites
    site: Point
    vertices: List[Point] = field(default_factory=list)   # clipped, counter-clockwise
    neighbors: List[int] = field(default_factory=list)    # indices into VoronoiDiagram.cells
    edge_indices: List[int] = field(default_factory=list)  # indices into VoronoiDiagram.edges
    is_border: bool = False          # polygon touches the domain boundary

    @property
    def is_empty(self) -> bool:
        """True when the cell was clipped away entirely."""
        return len(self.vertices) < 3

    @property
    def centroid(self) -> Point:
        """Area centroid of the clipped polygon; the site for empty cells."""
        if self.is_empty:
            return self.site
        return polygon_centroid(self.vertices)


@dataclass
class VoronoiEdge:
    """A Voronoi edge between two cells, or between a cell and the boundary."""
    index: int
    start: Point
    end: Point
    left_cell_index: int
    right_cell_index: int = BOUNDARY_CELL

    @property
    def is_boundary(self) -> bool:
        return self.right_cell_index == BOUNDARY_CELL

    @property
    def length(self) -> float:
        return (self.end - self.start).length()


def validate_bounds(bounds: Rectangle) -> None:
    if not all(math.isfinite(v) for v in bounds):
        raise InvalidArgumentError(f"Bounds must be finite, got {bounds}")
    if bounds.width <= 0 or bounds.height <= 0:
        raise InvalidArgumentError(
            f"Bounds must have positive width and height, got {bounds.width}x{bounds.height}"
        )


def validate_parameters(bounds: Rectangle, site_count: int,
                        relaxation_iterations: int = 0) -> None:
    """
    Check generation parameters before any work is done.

    Raises:
        InvalidArgumentError: On a bad site count, bounds or iteration count
    """
    if isinstance(site_count, bool) or not isinstance(site_count, numbers.Integral):
        raise InvalidArgumentError(f"Site count must be an integer, got {site_count!r}")
    if site_count < 3:
        raise InvalidArgumentError(f"At least 3 sites are required, got {site_count}")
    if site_count > settings.max_site_count:
        raise InvalidArgumentError(
            f"Site count {site_count} exceeds the maximum of {settings.max_site_count}"
        )
    if relaxation_iterations < 0:
        raise InvalidArgumentError(
            f"Relaxation iterations must be non-negative, got {relaxation_iterations}"
        )
    validate_bounds(bounds)


def generate_sites(bounds: Rectangle, site_count: int, seed: int) -> List[Point]:
    """
    Draw sites uniformly inside bounds from a seeded Alea generator.

    The same seed always reproduces the same sites.
    """
    prng = AleaPRNG(seed)
    return [prng.point_in(bounds) for _ in range(site_count)]


def clip_cell_polygons(polygons: Dict[int, List[Point]], bounds: Rectangle
                       ) -> Tuple[Dict[int, List[Point]], List[str]]:
    """
    Clip cell polygons to bounds and screen out self-intersecting results.

    Cells clipped away entirely map to an empty list. Cells whose clipped
    polygon is not simple are left out and reported.

    Args:
        polygons: Ordered cell polygons keyed by site index
        bounds: Domain rectangle

    Returns:
        Tuple of (clipped polygons keyed by site index, error messages)
    """
    tolerance = VERTEX_TOLERANCE * bounds.diagonal()
    clipped_polygons: Dict[int, List[Point]] = {}
    errors: List[str] = []

    for site_index, polygon in polygons.items():
        clipped = clip_polygon_to_rect(polygon, bounds)
        clipped = [clamp_to_rect(p, bounds) for p in clipped]
        clipped = remove_consecutive_duplicates(clipped, tolerance)

        if len(clipped) < 3:
            clipped = []
        elif not is_simple_polygon(clipped):
            logger.warning("Excluding self-intersecting cell", site=site_index,
                           vertices=len(clipped))
            errors.append(f"Clipped cell for site {site_index} is self-intersecting")
            continue

        clipped_polygons[site_index] = clipped

    return clipped_polygons, errors


def _build_components(bounds: Rectangle, sites: List[Point]
                      ) -> Tuple[List[VoronoiCell], List[VoronoiEdge], List[str]]:
    """
    Run the full pipeline into fresh collections.

    sites -> triangulation -> cell vertices -> ordering -> clipping ->
    adjacency -> boundary edges.
    """
    triangulation = triangulate(sites)
    build = build_cells(triangulation, bounds)
    clipped_polygons, clip_errors = clip_cell_polygons(build.polygons, bounds)
    tolerance = VERTEX_TOLERANCE * bounds.diagonal()

    cells: List[VoronoiCell] = []
    cell_of_site: Dict[int, int] = {}
    for site_index in clipped_polygons:
        cell_of_site[site_index] = len(cells)
        cells.append(VoronoiCell(index=len(cells), site_index=site_index,
                                 site=triangulation.points[site_index]))

    dual_edges = resolve_dual_edges(build, cell_of_site, bounds)
    adjacency = build_adjacency(dual_edges, len(cells))

    edges: List[VoronoiEdge] = []
    for dual in dual_edges:
        edge = VoronoiEdge(len(edges), dual.start, dual.end, dual.left_cell, dual.right_cell)
        edges.append(edge)
        cells[dual.left_cell].edge_indices.append(edge.index)
        cells[dual.right_cell].edge_indices.append(edge.index)

    empty = 0
    for cell in cells:
        cell.neighbors = adjacency.neighbors(cell.index)

        clipped = clipped_polygons[cell.site_index]
        if not clipped:
            empty += 1
            continue
        cell.vertices = clipped

        for start, end in boundary_segments(clipped, bounds, tolerance):
            edge = VoronoiEdge(len(edges), start, end, cell.index, BOUNDARY_CELL)
            edges.append(edge)
            cell.edge_indices.append(edge.index)
            cell.is_border = True

    if empty:
        logger.info("Cells clipped away entirely", count=empty)

    return cells, edges, build.errors + clip_errors


def relax_sites(sites: List[Point], bounds: Rectangle, iterations: int) -> List[Point]:
    """
    Apply Lloyd's relaxation to improve site distribution.

    Moves each site to the centroid of its clipped cell, clamped to bounds.
    Sites without a cell stay where they are.

    Args:
        sites: Sites to relax
        bounds: Domain rectangle
        iterations: Number of relaxation passes

    Returns:
        Relaxed site coordinates
    """
    logger.info("Starting Lloyd's relaxation", iterations=iterations)

    sites = list(sites)
    for iteration in range(iterations):
        cells, _, _ = _build_components(bounds, sites)
        for cell in cells:
            if not cell.is_empty:
                sites[cell.site_index] = clamp_to_rect(cell.centroid, bounds)
        logger.debug("Relaxation iteration complete", iteration=iteration + 1)

    return sites


class VoronoiDiagram:
    """
    Voronoi diagram over a rectangular domain.

    Owns index-stable sequences of sites, cells and edges. Generation is a
    destructive full rebuild: everything is built into fresh collections
    and swapped in only once every step succeeded.
    """

    def __init__(self, bounds: Optional[Rectangle] = None):
        if bounds is None:
            bounds = Rectangle.from_size(settings.default_width, settings.default_height)
        self.bounds = bounds
        self.sites: List[Point] = []
        self.cells: List[VoronoiCell] = []
        self.edges: List[VoronoiEdge] = []
        self.seed: Optional[int] = None
        self.relaxation_iterations = 0
        self.initialized = False
        self.geometry_errors: List[str] = []
        self.reset_caches()

    # Construction

    def reset_caches(self) -> None:
        """Drop lazy lookups; call whenever sites, cells or edges change."""
        self._site_to_cell: Optional[Dict[int, VoronoiCell]] = None
        self._edge_lookup: Optional[Dict[Tuple[int, int], VoronoiEdge]] = None
        self._site_tree: Optional[cKDTree] = None

    def add_site(self, site: Point) -> int:
        self.sites.append(site)
        self.reset_caches()
        return len(self.sites) - 1

    def add_cell(self, cell: VoronoiCell) -> None:
        self.cells.append(cell)
        self.reset_caches()

    def add_edge(self, edge: VoronoiEdge) -> None:
        self.edges.append(edge)
        self.reset_caches()

    def clear(self) -> None:
        """Empty all sequences and mark the diagram uninitialized."""
        self.sites = []
        self.cells = []
        self.edges = []
        self.geometry_errors = []
        self.seed = None
        self.initialized = False
        self.reset_caches()

    def generate(self, site_count: int, seed: int,
                 relaxation_iterations: Optional[int] = None) -> "VoronoiDiagram":
        """
        Rebuild the diagram from site_count seeded random sites.

        Raises:
            InvalidArgumentError: Before any work, on bad parameters
            GeometryError: If the sites cannot be triangulated
        """
        if relaxation_iterations is None:
            relaxation_iterations = settings.relaxation_iterations
        validate_parameters(self.bounds, site_count, relaxation_iterations)

        logger.info("Generating Voronoi diagram",
                    width=self.bounds.width, height=self.bounds.height,
                    site_count=site_count, seed=seed)

        sites = generate_sites(self.bounds, site_count, seed)
        if relaxation_iterations:
            sites = relax_sites(sites, self.bounds, relaxation_iterations)

        self._rebuild(sites)
        self.seed = seed
        self.relaxation_iterations = relaxation_iterations
        return self

    def build(self, sites: Iterable) -> "VoronoiDiagram":
        """
        Rebuild the diagram from an explicit site list.

        Raises:
            InvalidArgumentError: On bad bounds or fewer than 3 sites
            GeometryError: If the sites cannot be triangulated
        """
        sites = [Point(float(x), float(y)) for x, y in sites]
        validate_bounds(self.bounds)
        if len(sites) < 3:
            raise InvalidArgumentError(f"At least 3 sites are required, got {len(sites)}")

        self._rebuild(sites)
        self.seed = None
        return self

    def _rebuild(self, sites: List[Point]) -> None:
        cells, edges, errors = _build_components(self.bounds, sites)

        self.clear()
        for site in sites:
            self.add_site(site)
        for cell in cells:
            self.add_cell(cell)
        for edge in edges:
            self.add_edge(edge)
        self.geometry_errors = errors
        self.initialized = True

        logger.info("Voronoi diagram generated", **self.summary())

    def should_regenerate(self, bounds: Rectangle, site_count: int, seed: int,
                          relaxation_iterations: int = 0) -> bool:
        """Check if the diagram must be rebuilt for these parameters."""
        return not (self.initialized and
                    self.seed is not None and
                    self.bounds == bounds and
                    self.site_count == site_count and
                    self.seed == seed and
                    self.relaxation_iterations == relaxation_iterations)

    # Queries

    @property
    def site_count(self) -> int:
        return len(self.sites)

    @property
    def cell_count(self) -> int:
        return len(self.cells)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def get_cell(self, cell_index: int) -> VoronoiCell:
        return self.cells[cell_index]

    def get_cell_by_site(self, site_index: int) -> Optional[VoronoiCell]:
        """Cell built around a site, or None if the site produced no cell."""
        if self._site_to_cell is None:
            self._site_to_cell = {cell.site_index: cell for cell in self.cells}
        return self._site_to_cell.get(site_index)

    def get_edge_between(self, cell_a: int, cell_b: int) -> Optional[VoronoiEdge]:
        """Edge shared by two cells, or None if they are not neighbors."""
        if self._edge_lookup is None:
            self._edge_lookup = {}
            for edge in self.edges:
                if not edge.is_boundary:
                    key = tuple(sorted((edge.left_cell_index, edge.right_cell_index)))
                    self._edge_lookup[key] = edge
        return self._edge_lookup.get(tuple(sorted((cell_a, cell_b))))

    def get_neighbors(self, cell_index: int) -> List[int]:
        return list(self.cells[cell_index].neighbors)

    def find_cell(self, x: float, y: float) -> Optional[VoronoiCell]:
        """
        Find the cell containing a point by nearest-site lookup.

        Returns None for an empty diagram.
        """
        if not self.cells:
            return None
        if self._site_tree is None:
            self._site_tree = cKDTree(np.array([cell.site for cell in self.cells]))
        _, index = self._site_tree.query([x, y])
        return self.cells[int(index)]

    def as_arrays(self) -> Dict[str, np.ndarray]:
        """Sites and per-cell data as numpy arrays for external consumers."""
        return {
            "sites": np.array(self.sites, dtype=float).reshape(-1, 2),
            "cell_sites": np.array([c.site_index for c in self.cells], dtype=np.int64),
            "cell_centroids": np.array([c.centroid for c in self.cells],
                                       dtype=float).reshape(-1, 2),
            "border_flags": np.array([c.is_border for c in self.cells], dtype=np.uint8),
        }

    def summary(self) -> Dict[str, int]:
        return {
            "sites": self.site_count,
            "cells": self.cell_count,
            "edges": self.edge_count,
            "boundary_edges": sum(1 for e in self.edges if e.is_boundary),
            "geometry_errors": len(self.geometry_errors),
        }


def generate_voronoi_diagram(bounds: Rectangle, site_count: int, seed: int,
                             relaxation_iterations: Optional[int] = None) -> VoronoiDiagram:
    """
    Generate a complete Voronoi diagram.

    Args:
        bounds: Domain rectangle with positive width and height
        site_count: Number of sites to draw (at least 3)
        seed: Seed for site placement
        relaxation_iterations: Lloyd relaxation passes; defaults to settings

    Returns:
        Initialized VoronoiDiagram
    """
    return VoronoiDiagram(bounds).generate(site_count, seed, relaxation_iterations)


def build_voronoi_diagram(bounds: Rectangle, sites: Iterable) -> VoronoiDiagram:
    """Build a diagram from explicit sites."""
    return VoronoiDiagram(bounds).build(sites)


def generate_or_reuse_diagram(existing: Optional[VoronoiDiagram], bounds: Rectangle,
                              site_count: int, seed: int,
                              relaxation_iterations: int = 0) -> VoronoiDiagram:
    """
    Generate a new diagram or reuse an existing one built with the same parameters.
    """
    if existing is None or existing.should_regenerate(bounds, site_count, seed,
                                                      relaxation_iterations):
        logger.info("Generating new diagram")
        return generate_voronoi_diagram(bounds, site_count, seed, relaxation_iterations)

    logger.info("Reusing existing diagram", seed=existing.seed, cells=existing.cell_count)
    return existing
