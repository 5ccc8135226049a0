"""
Planar subdivision engine: Delaunay triangulation and clipped Voronoi diagrams.
"""

from .core import (
    Point, Rectangle, VoronoiDiagram, VoronoiCell, VoronoiEdge,
    GeometryError, InvalidArgumentError,
    generate_voronoi_diagram, build_voronoi_diagram,
)

__version__ = "0.1.0"

__all__ = ['Point', 'Rectangle', 'VoronoiDiagram', 'VoronoiCell', 'VoronoiEdge',
           'GeometryError', 'InvalidArgumentError',
           'generate_voronoi_diagram', 'build_voronoi_diagram']
