"""
Core planar subdivision functionality.
"""

from .geometry import Point, Rectangle, Edge, Triangle, polygon_area, polygon_centroid
from .errors import VoronoiError, GeometryError, InvalidArgumentError
from .delaunay import Triangulation, triangulate
from .clipping import clip_polygon_to_rect, clip_segment_to_rect
from .adjacency import BOUNDARY_CELL, neighbors_from_edges
from .voronoi_diagram import (
    VoronoiCell, VoronoiEdge, VoronoiDiagram,
    generate_voronoi_diagram, build_voronoi_diagram, generate_or_reuse_diagram,
    generate_sites, relax_sites,
)
from .cell_coloring import color_cells

__all__ = ['Point', 'Rectangle', 'Edge', 'Triangle', 'polygon_area', 'polygon_centroid',
           'VoronoiError', 'GeometryError', 'InvalidArgumentError',
           'Triangulation', 'triangulate',
           'clip_polygon_to_rect', 'clip_segment_to_rect',
           'BOUNDARY_CELL', 'neighbors_from_edges',
           'VoronoiCell', 'VoronoiEdge', 'VoronoiDiagram',
           'generate_voronoi_diagram', 'build_voronoi_diagram', 'generate_or_reuse_diagram',
           'generate_sites', 'relax_sites', 'color_cells']
