"""Greedy coloring of Voronoi cells over their adjacency graph."""

from typing import Dict, List

import structlog

from .errors import InvalidArgumentError

logger = structlog.get_logger()

# Greedy coloring of a planar graph in index order rarely needs more than this
DEFAULT_PALETTE_SIZE = 7


def color_cells(diagram, palette_size: int = DEFAULT_PALETTE_SIZE) -> Dict[int, int]:
    """
    Assign a palette index to every cell so neighbors differ where possible.

    Cells are visited in index order and take the first palette index none
    of their already-colored neighbors use. When every index is taken the
    cell falls back to index 0 and the resulting conflicts are logged.

    Args:
        diagram: Generated VoronoiDiagram
        palette_size: Number of available colors

    Returns:
        Mapping from cell index to palette index
    """
    if palette_size < 1:
        raise InvalidArgumentError(f"Palette size must be positive, got {palette_size}")

    colors: Dict[int, int] = {}

    for cell in diagram.cells:
        taken = {colors[n] for n in cell.neighbors if n in colors}
        chosen = next((c for c in range(palette_size) if c not in taken), None)
        if chosen is None:
            chosen = 0
        colors[cell.index] = chosen

    conflicts = color_conflicts(diagram, colors)
    if conflicts:
        logger.warning("Palette too small for a proper coloring",
                       palette_size=palette_size, conflicts=len(conflicts))

    return colors


def color_conflicts(diagram, colors: Dict[int, int]) -> List[tuple]:
    """Neighbor pairs (a < b) sharing a color."""
    conflicts = []
    for cell in diagram.cells:
        for neighbor in cell.neighbors:
            if cell.index < neighbor and colors[cell.index] == colors[neighbor]:
                conflicts.append((cell.index, neighbor))
    return conflicts
