"""
Clipping of cell polygons and edges against the domain rectangle.

Polygons are clipped with Sutherland-Hodgman, one pass per rectangle side;
single segments (dual edges) are clipped with Cohen-Sutherland.
"""

from typing import Callable, List, Optional, Sequence, Tuple

from .geometry import Point, Rectangle

Segment = Tuple[Point, Point]


def _clip_passes(bounds: Rectangle) -> List[Tuple[Callable[[Point], bool],
                                                  Callable[[Point, Point], Point]]]:
    """Inside test and intersection for each pass: left, top, right, bottom."""

    def at_x(x: float) -> Callable[[Point, Point], Point]:
        def intersect(p1: Point, p2: Point) -> Point:
            y = p1.y + (p2.y - p1.y) * (x - p1.x) / (p2.x - p1.x)
            return Point(x, y)
        return intersect

    def at_y(y: float) -> Callable[[Point, Point], Point]:
        def intersect(p1: Point, p2: Point) -> Point:
            x = p1.x + (p2.x - p1.x) * (y - p1.y) / (p2.y - p1.y)
            return Point(x, y)
        return intersect

    return [
        (lambda p: p.x >= bounds.x_min, at_x(bounds.x_min)),  # left
        (lambda p: p.y <= bounds.y_max, at_y(bounds.y_max)),  # top
        (lambda p: p.x <= bounds.x_max, at_x(bounds.x_max)),  # right
        (lambda p: p.y >= bounds.y_min, at_y(bounds.y_min)),  # bottom
    ]


def clip_polygon_to_rect(polygon: Sequence[Point], bounds: Rectangle) -> List[Point]:
    """
    Clip a polygon to a rectangle using the Sutherland-Hodgman algorithm.

    A polygon entirely outside the rectangle clips to an empty list.

    Args:
        polygon: Ordered polygon vertices
        bounds: Clipping rectangle

    Returns:
        Clipped polygon vertices, in the same winding order
    """
    output = list(polygon)

    for inside, intersect in _clip_passes(bounds):
        if not output:
            break
        vertices = output
        output = []

        s = vertices[-1]
        for e in vertices:
            if inside(e):
                if not inside(s):
                    output.append(intersect(s, e))
                output.append(e)
            elif inside(s):
                output.append(intersect(s, e))
            s = e

    return output


# Cohen-Sutherland outcodes
_INSIDE, _LEFT, _RIGHT, _BOTTOM, _TOP = 0, 1, 2, 4, 8


def _outcode(p: Point, bounds: Rectangle) -> int:
    code = _INSIDE
    if p.x < bounds.x_min:
        code |= _LEFT
    elif p.x > bounds.x_max:
        code |= _RIGHT
    if p.y < bounds.y_min:
        code |= _BOTTOM
    elif p.y > bounds.y_max:
        code |= _TOP
    return code


def clip_segment_to_rect(start: Point, end: Point,
                         bounds: Rectangle) -> Optional[Segment]:
    """
    Clip a segment to a rectangle using the Cohen-Sutherland algorithm.

    Returns:
        The clipped (start, end) pair, or None if the segment misses the
        rectangle
    """
    code1 = _outcode(start, bounds)
    code2 = _outcode(end, bounds)

    while True:
        if not (code1 | code2):
            return start, end
        if code1 & code2:
            return None

        code_out = code1 if code1 else code2
        dx = end.x - start.x
        dy = end.y - start.y

        if code_out & _TOP:
            x = start.x + dx * (bounds.y_max - start.y) / dy
            y = bounds.y_max
        elif code_out & _BOTTOM:
            x = start.x + dx * (bounds.y_min - start.y) / dy
            y = bounds.y_min
        elif code_out & _RIGHT:
            y = start.y + dy * (bounds.x_max - start.x) / dx
            x = bounds.x_max
        else:
            y = start.y + dy * (bounds.x_min - start.x) / dx
            x = bounds.x_min

        clipped = Point(x, y)
        if code_out == code1:
            start = clipped
            code1 = _outcode(start, bounds)
        else:
            end = clipped
            code2 = _outcode(end, bounds)


def clamp_to_rect(point: Point, bounds: Rectangle) -> Point:
    return Point(min(max(point.x, bounds.x_min), bounds.x_max),
                 min(max(point.y, bounds.y_min), bounds.y_max))


def remove_consecutive_duplicates(polygon: Sequence[Point],
                                  tolerance: float) -> List[Point]:
    """Drop vertices equal (within tolerance) to their predecessor, wrapping around."""
    tolerance_squared = tolerance * tolerance
    cleaned: List[Point] = []
    for p in polygon:
        if not cleaned or p.distance_squared(cleaned[-1]) > tolerance_squared:
            cleaned.append(p)
    while len(cleaned) > 1 and cleaned[0].distance_squared(cleaned[-1]) <= tolerance_squared:
        cleaned.pop()
    return cleaned


def _shared_side(p: Point, q: Point, bounds: Rectangle, tolerance: float) -> bool:
    return ((abs(p.x - bounds.x_min) <= tolerance and abs(q.x - bounds.x_min) <= tolerance) or
            (abs(p.x - bounds.x_max) <= tolerance and abs(q.x - bounds.x_max) <= tolerance) or
            (abs(p.y - bounds.y_min) <= tolerance and abs(q.y - bounds.y_min) <= tolerance) or
            (abs(p.y - bounds.y_max) <= tolerance and abs(q.y - bounds.y_max) <= tolerance))


def boundary_segments(polygon: Sequence[Point], bounds: Rectangle,
                      tolerance: float = 1e-9) -> List[Segment]:
    """
    Find the sides of a clipped polygon that lie along the rectangle border.

    Args:
        polygon: Clipped polygon vertices
        bounds: Clipping rectangle
        tolerance: Distance from a side still treated as on it

    Returns:
        List of (start, end) segments in polygon order
    """
    n = len(polygon)
    if n < 2:
        return []

    segments = []
    for i in range(n):
        p = polygon[i]
        q = polygon[(i + 1) % n]
        if p != q and _shared_side(p, q, bounds, tolerance):
            segments.append((p, q))
    return segments
