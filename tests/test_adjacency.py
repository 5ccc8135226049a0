"""Tests for adjacency resolution."""

import pytest

from py_voronoi.core.adjacency import (
    BOUNDARY_CELL, Adjacency, build_adjacency, neighbors_from_edges, resolve_dual_edges,
)
from py_voronoi.core.cell_builder import build_cells
from py_voronoi.core.delaunay import triangulate
from py_voronoi.core.geometry import Rectangle
from py_voronoi.core.voronoi_diagram import build_voronoi_diagram, generate_voronoi_diagram

BOUNDS = Rectangle(0, 0, 100, 100)


class TestAdjacencyStore:
    """Test the symmetric neighbor store."""

    def test_link_is_symmetric(self):
        adjacency = Adjacency(3)
        adjacency.link(0, 2)

        assert adjacency.neighbors(0) == [2]
        assert adjacency.neighbors(2) == [0]
        assert adjacency.neighbors(1) == []
        assert (0, 2) in adjacency and (2, 0) in adjacency
        assert (0, 1) not in adjacency

    def test_duplicates_and_self_links_ignored(self):
        adjacency = Adjacency(2)
        adjacency.link(0, 1)
        adjacency.link(1, 0)
        adjacency.link(1, 1)

        assert adjacency.neighbors(0) == [1]
        assert adjacency.neighbors(1) == [0]


class TestDualEdges:
    """Test dual edge derivation from the triangulation."""

    def test_cocircular_square_has_no_diagonal_adjacency(self):
        sites = [(10, 10), (10, 90), (90, 10), (90, 90)]
        build = build_cells(triangulate(sites), BOUNDS)
        cell_of_site = {site: site for site in build.polygons}

        dual_edges = resolve_dual_edges(build, cell_of_site, BOUNDS)
        adjacency = build_adjacency(dual_edges, 4)

        assert len(dual_edges) == 4
        assert (0, 3) not in adjacency
        assert (1, 2) not in adjacency
        assert adjacency.neighbors(0) == [1, 2]
        assert adjacency.neighbors(3) == [1, 2]

    def test_dual_edges_are_perpendicular_bisectors(self):
        sites = [(20, 30), (70, 25), (45, 80), (50, 45)]
        triangulation = triangulate(sites)
        build = build_cells(triangulation, BOUNDS)
        cell_of_site = {site: site for site in build.polygons}

        for edge in resolve_dual_edges(build, cell_of_site, BOUNDS):
            a = triangulation.points[edge.left_cell]
            b = triangulation.points[edge.right_cell]
            for p in (edge.start, edge.end):
                assert p.distance_squared(a) == pytest.approx(p.distance_squared(b))
                assert BOUNDS.contains(p)

    def test_sites_without_cells_are_skipped(self):
        sites = [(20, 20), (80, 20), (50, 80), (50, 40)]
        build = build_cells(triangulate(sites), BOUNDS)
        cell_of_site = {0: 0, 1: 1, 2: 2}

        for edge in resolve_dual_edges(build, cell_of_site, BOUNDS):
            assert 3 not in (edge.left_cell, edge.right_cell)


class TestDiagramAdjacency:
    """Test adjacency invariants on generated diagrams."""

    @pytest.mark.parametrize("seed", [5, 17, 2024])
    def test_symmetry(self, seed):
        diagram = generate_voronoi_diagram(BOUNDS, 120, seed)

        for cell in diagram.cells:
            for neighbor in cell.neighbors:
                assert cell.index in diagram.cells[neighbor].neighbors, \
                    f"Cell {cell.index} lists {neighbor} as neighbor, but not vice versa"

    def test_no_duplicate_or_self_neighbors(self):
        diagram = generate_voronoi_diagram(BOUNDS, 120, 8)

        for cell in diagram.cells:
            assert len(cell.neighbors) == len(set(cell.neighbors))
            assert cell.index not in cell.neighbors

    def test_edges_agree_with_neighbors(self):
        diagram = generate_voronoi_diagram(BOUNDS, 120, 31)

        for cell in diagram.cells:
            assert neighbors_from_edges(diagram, cell.index) == cell.neighbors

    def test_interior_edges_reference_valid_distinct_cells(self):
        diagram = generate_voronoi_diagram(BOUNDS, 120, 64)

        for edge in diagram.edges:
            assert 0 <= edge.left_cell_index < diagram.cell_count
            if edge.right_cell_index != BOUNDARY_CELL:
                assert 0 <= edge.right_cell_index < diagram.cell_count
                assert edge.left_cell_index != edge.right_cell_index

    def test_neighbors_share_an_edge(self):
        diagram = build_voronoi_diagram(BOUNDS, [(25, 25), (75, 25), (50, 75)])

        for cell in diagram.cells:
            assert len(cell.neighbors) == 2
            for neighbor in cell.neighbors:
                edge = diagram.get_edge_between(cell.index, neighbor)
                assert edge is not None
                assert edge.length > 0
