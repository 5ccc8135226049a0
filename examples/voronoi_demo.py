#!/usr/bin/env python3
"""
Demonstration of Voronoi diagram generation.

Shows:
1. Seeded generation and the cell/edge counts it produces
2. Neighbor and edge queries
3. Diagram reuse logic
4. Lloyd's relaxation
5. Cell coloring
"""

import numpy as np
from scipy.spatial import distance_matrix

from py_voronoi import Rectangle, generate_voronoi_diagram
from py_voronoi.core import color_cells, generate_or_reuse_diagram
from py_voronoi.utils import configure_logging


def avg_nearest_neighbor(points):
    dist_matrix = distance_matrix(points, points)
    np.fill_diagonal(dist_matrix, np.inf)
    return np.mean(np.min(dist_matrix, axis=1))


def main():
    configure_logging()
    bounds = Rectangle(0, 0, 400, 300)

    print("=== Voronoi Diagram Demo ===\n")

    # 1. Generate
    print("1. Generating diagram...")
    diagram = generate_voronoi_diagram(bounds, 200, seed=1234)
    for key, value in diagram.summary().items():
        print(f"   - {key}: {value}")

    # 2. Queries
    print("\n2. Querying cells...")
    cell = diagram.find_cell(200, 150)
    print(f"   - Cell at (200, 150): {cell.index} (site {cell.site_index})")
    print(f"   - Neighbors: {diagram.get_neighbors(cell.index)}")
    for neighbor in cell.neighbors[:3]:
        edge = diagram.get_edge_between(cell.index, neighbor)
        print(f"   - Edge to {neighbor}: length {edge.length:.2f}")
    border = sum(1 for c in diagram.cells if c.is_border)
    print(f"   - Border cells: {border}")

    # 3. Reuse
    print("\n3. Testing diagram reuse logic...")
    same = generate_or_reuse_diagram(diagram, bounds, 200, seed=1234)
    print(f"   - Same parameters reused: {same is diagram}")
    other = generate_or_reuse_diagram(diagram, bounds, 200, seed=99)
    print(f"   - Different seed regenerated: {other is not diagram}")

    # 4. Relaxation
    print("\n4. Comparing with and without Lloyd's relaxation...")
    relaxed = generate_voronoi_diagram(bounds, 200, seed=1234, relaxation_iterations=2)
    ann_unrelaxed = avg_nearest_neighbor(diagram.as_arrays()["sites"])
    ann_relaxed = avg_nearest_neighbor(relaxed.as_arrays()["sites"])
    print(f"   - Avg nearest neighbor (unrelaxed): {ann_unrelaxed:.2f}")
    print(f"   - Avg nearest neighbor (relaxed): {ann_relaxed:.2f}")

    # 5. Coloring
    print("\n5. Coloring cells...")
    colors = color_cells(diagram)
    print(f"   - Colors used: {len(set(colors.values()))}")

    print("\n=== Demo Complete ===")


if __name__ == "__main__":
    main()
