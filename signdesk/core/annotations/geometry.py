"""
Pure geometry used by the markup tools.

All coordinates are page pixels (the raster space of the rendered page).
"""
import math
from typing import Tuple

Point = Tuple[float, float]
Segment = Tuple[Point, Point]


def ellipse_params(radius_x: float, radius_y: float) -> Tuple[float, float, float]:
    """
    Express an ellipse as a circle radius plus independent axis scales.

    Args:
        radius_x: Horizontal semi-axis
        radius_y: Vertical semi-axis

    Returns:
        Tuple of (radius, scale_x, scale_y) where radius = max(rx, ry)
    """
    radius = max(radius_x, radius_y)
    if radius == 0:
        return 0.0, 1.0, 1.0
    return radius, radius_x / radius, radius_y / radius


def circle_from_drag(anchor: Point, current: Point) -> Tuple[float, float, float, float, float]:
    """
    Build the circle spanned by a drag from ``anchor`` to ``current``.

    The drag box is the ellipse's bounding box: rx = |dx|/2, ry = |dy|/2,
    centered halfway between the two points.

    Returns:
        Tuple of (center_x, center_y, radius, scale_x, scale_y)
    """
    dx = current[0] - anchor[0]
    dy = current[1] - anchor[1]
    radius, scale_x, scale_y = ellipse_params(abs(dx) / 2, abs(dy) / 2)
    return anchor[0] + dx / 2, anchor[1] + dy / 2, radius, scale_x, scale_y


def arrow_head_segments(start: Point, tip: Point, length: float = 15.0,
                        spread_deg: float = 30.0) -> Tuple[Segment, Segment]:
    """
    Compute the two head segments of an arrow drawn from ``start`` to ``tip``.

    Each segment starts at the tip and runs ``length`` pixels back along
    the line, rotated by +/- ``spread_deg`` from the reversed direction.
    """
    angle = math.atan2(tip[1] - start[1], tip[0] - start[0])
    spread = math.radians(spread_deg)

    left = (
        tip[0] - length * math.cos(angle - spread),
        tip[1] - length * math.sin(angle - spread),
    )
    right = (
        tip[0] - length * math.cos(angle + spread),
        tip[1] - length * math.sin(angle + spread),
    )
    return (tip, left), (tip, right)


def point_near_segment(px: float, py: float, x1: float, y1: float,
                       x2: float, y2: float, tolerance: float) -> bool:
    """Check if a point lies within ``tolerance`` of a line segment."""
    line_length_sq = (x2 - x1) ** 2 + (y2 - y1) ** 2

    if line_length_sq == 0:
        return math.hypot(px - x1, py - y1) <= tolerance

    # Projection parameter clamped to the segment
    t = max(0.0, min(1.0, ((px - x1) * (x2 - x1) + (py - y1) * (y2 - y1)) / line_length_sq))
    nearest_x = x1 + t * (x2 - x1)
    nearest_y = y1 + t * (y2 - y1)
    return math.hypot(px - nearest_x, py - nearest_y) <= tolerance


def hit_tolerance(stroke_width: float) -> float:
    """Pick radius around a stroke that still counts as a hit."""
    return max(stroke_width / 2.0 + 2.0, 5.0)
