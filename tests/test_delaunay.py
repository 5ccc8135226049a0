"""Tests for Bowyer-Watson Delaunay triangulation."""

import numpy as np
import pytest
from scipy.spatial import Delaunay

from py_voronoi.core.delaunay import (
    create_super_triangle, discard_degenerate, fill_hull_pockets, find_hole_boundary,
    triangulate,
)
from py_voronoi.core.errors import GeometryError
from py_voronoi.core.geometry import Edge, Point, Rectangle, Triangle
from py_voronoi.core.voronoi_diagram import generate_sites


def _random_sites(count, seed=7, size=100.0):
    return generate_sites(Rectangle(0, 0, size, size), count, seed)


def _index_sets(triangulation):
    return {frozenset(triangulation.triangle_indices(t)) for t in triangulation.triangles}


class TestSuperTriangle:
    """Test super-triangle construction."""

    def test_encloses_all_points(self):
        points = _random_sites(50)
        super_triangle = create_super_triangle(points)
        a, b, c = super_triangle.vertices

        for p in points:
            signs = [(b - a).cross(p - a), (c - b).cross(p - b), (a - c).cross(p - c)]
            assert all(s > 0 for s in signs) or all(s < 0 for s in signs)

    def test_inflated_by_ten_times_extent(self):
        points = [Point(0, 0), Point(100, 0), Point(50, 40)]
        a, b, c = create_super_triangle(points).vertices
        assert a == Point(-1000, -1000)
        assert b == Point(1100, -1000)
        assert c == Point(50, 1040)


class TestHoleBoundary:
    """Test cavity boundary extraction."""

    def test_shared_edge_is_interior(self):
        a, b, c, d = Point(0, 0), Point(1, 0), Point(0, 1), Point(1, 1)
        boundary = find_hole_boundary([Triangle(a, b, c), Triangle(b, d, c)])

        assert len(boundary) == 4
        assert Edge(b, c) not in boundary
        assert set(boundary) == {Edge(a, b), Edge(c, a), Edge(b, d), Edge(d, c)}

    def test_single_triangle_boundary(self):
        t = Triangle(Point(0, 0), Point(1, 0), Point(0, 1))
        assert find_hole_boundary([t]) == t.edges()


class TestTriangulate:
    """Test the triangulator on small and random inputs."""

    def test_three_points(self):
        result = triangulate([(0, 0), (10, 0), (5, 10)])
        assert len(result.triangles) == 1
        assert _index_sets(result) == {frozenset({0, 1, 2})}

    def test_square(self):
        result = triangulate([(10, 10), (10, 90), (90, 10), (90, 90)])
        assert len(result.triangles) == 2
        for indices in _index_sets(result):
            assert len(indices) == 3
        assert set().union(*_index_sets(result)) == {0, 1, 2, 3}

    def test_no_super_vertices_survive(self):
        result = triangulate(_random_sites(80))
        super_vertices = result.super_triangle.vertices
        for t in result.triangles:
            assert not t.has_any_vertex(super_vertices)

    def test_no_degenerate_triangles_returned(self):
        result = triangulate(_random_sites(80))
        assert all(not t.is_degenerate for t in result.triangles)
        for t in result.triangles:
            assert t.circumcenter.is_finite()

    @pytest.mark.parametrize("seed", [1, 42, 1234])
    def test_empty_circumcircle_property(self, seed):
        points = _random_sites(60, seed=seed)
        result = triangulate(points)

        for t in result.triangles:
            center = t.circumcenter
            radius_squared = t.circumradius_squared
            for p in points:
                if t.contains_vertex(p):
                    continue
                assert p.distance_squared(center) >= radius_squared * (1 - 1e-9)

    @pytest.mark.parametrize("count,seed", [(100, 99), (200, 20), (200, 22), (150, 5)])
    def test_matches_scipy_delaunay(self, count, seed):
        points = _random_sites(count, seed=seed)
        result = triangulate(points)

        reference = {frozenset(s) for s in Delaunay(np.array(points)).simplices.tolist()}
        assert _index_sets(result) == reference

    @pytest.mark.parametrize("seed", [20, 22, 31])
    def test_boundary_is_convex_hull(self, seed):
        points = _random_sites(200, seed=seed)
        result = triangulate(points)

        edge_counts = {}
        for indices in _index_sets(result):
            a, b, c = sorted(indices)
            for edge in ((a, b), (b, c), (a, c)):
                edge_counts[edge] = edge_counts.get(edge, 0) + 1
        boundary = {edge for edge, count in edge_counts.items() if count == 1}

        hull = {tuple(sorted(e)) for e in Delaunay(np.array(points)).convex_hull.tolist()}
        assert boundary == hull

    def test_deterministic(self):
        points = _random_sites(40, seed=3)
        first = [t.vertices for t in triangulate(points).triangles]
        second = [t.vertices for t in triangulate(points).triangles]
        assert first == second

    def test_duplicate_points_skipped(self):
        result = triangulate([(0, 0), (10, 0), (5, 10), (10, 0), (6, 3)])

        assert result.skipped_indices == [3]
        assert all(3 not in indices for indices in _index_sets(result))
        assert result.index_of(Point(10.0, 0.0)) == 1

    def test_collinear_points_raise(self):
        with pytest.raises(GeometryError):
            triangulate([(0, 0), (50, 0), (100, 0)])

    def test_collinear_never_yields_nan(self):
        try:
            result = triangulate([(0, 0), (25, 25), (50, 50), (75, 75)])
        except GeometryError:
            return
        for t in result.triangles:
            assert t.circumcenter.is_finite()

    @pytest.mark.parametrize("points", [
        [],
        [(1, 1)],
        [(1, 1), (2, 2)],
        [(1, 1), (1, 1), (2, 2)],
    ])
    def test_too_few_distinct_points_raise(self, points):
        with pytest.raises(GeometryError):
            triangulate(points)


class TestHullPockets:
    """Test recovery of flat hull triangles the super-triangle hides."""

    # The middle site sits just inside the chord between the outer two, so
    # the hull triangle over that chord has a circumcircle reaching a super
    # vertex.
    SITES = [(0, 0), (100, 0), (50, 0.5), (50, 60)]

    def test_flat_hull_triangle_restored(self):
        result = triangulate(self.SITES)

        assert result.restored_count == 1
        assert _index_sets(result) == {
            frozenset({0, 1, 2}), frozenset({0, 2, 3}), frozenset({1, 2, 3}),
        }

    def test_fill_restores_removed_hull_triangle(self):
        points = _random_sites(60, seed=8)
        result = triangulate(points)

        edge_counts = {}
        for t in result.triangles:
            for edge in t.edges():
                edge_counts[edge] = edge_counts.get(edge, 0) + 1
        hull_edges = [e for e, count in edge_counts.items() if count == 1]
        hull_vertices = {v for e in hull_edges for v in (e.start, e.end)}
        removable = next(t for t in result.triangles
                         if sum(e in hull_edges for e in t.edges()) == 1
                         and not all(v in hull_vertices for v in t.vertices))

        remaining = [t for t in result.triangles if t is not removable]
        restored = fill_hull_pockets(remaining, points)

        assert len(restored) == 1
        assert set(restored[0].vertices) == set(removable.vertices)

    def test_convex_triangulation_left_alone(self):
        points = [Point(0, 0), Point(10, 0), Point(10, 10), Point(0, 10), Point(4, 6)]
        result = triangulate(points)
        assert fill_hull_pockets(result.triangles, points) == []

    def test_collinear_hull_points_not_filled(self):
        points = [Point(0, 0), Point(50, 0), Point(100, 0), Point(50, 50)]
        result = triangulate(points)

        assert len(result.triangles) == 2
        assert all(not t.is_degenerate for t in result.triangles)


class TestDegenerateTriangles:
    """Test that degenerate triangles are counted and left out."""

    def test_discard_degenerate(self):
        good = Triangle(Point(0, 0), Point(10, 0), Point(0, 10))
        flat = Triangle(Point(0, 0), Point(50, 0), Point(100, 0))
        sliver = Triangle(Point(0, 0), Point(1e6, 0), Point(2e6, 1e-9))

        kept, dropped = discard_degenerate([good, flat, sliver])

        assert kept == [good]
        assert dropped == 2

    def test_general_position_has_no_degenerates(self):
        result = triangulate(_random_sites(80))
        assert result.degenerate_count == 0

    def test_near_collinear_input_never_yields_nan(self):
        points = [(0, 0), (25, 1e-9), (50, 0), (75, 1e-9), (100, 0), (50, 30)]
        result = triangulate(points)

        assert result.triangles
        for t in result.triangles:
            assert not t.is_degenerate
            assert t.circumcenter.is_finite()
