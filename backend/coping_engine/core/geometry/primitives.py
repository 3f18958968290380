"""Plane geometry used by the coping engine.

Coordinates are pool-local millimeters with the canvas convention:
+x runs east, +y runs south.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from shapely.geometry import LineString, LinearRing, Point as ShapelyPoint, Polygon
from shapely.geometry.polygon import orient

from coping_engine.core.constants import CORNER_ANGLE_THRESHOLD_DEG

logger = logging.getLogger(__name__)

_EPSILON = 1e-9

# Long enough to cross any site drawn on the canvas (10 km)
_RAY_LENGTH_MM = 10_000_000.0


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)

    def translated(self, dx: float, dy: float) -> "Point":
        return Point(self.x + dx, self.y + dy)


def as_point(p: Point | Sequence[float] | dict) -> Point:
    """Coerce a Point, an (x, y) pair or an {x, y} dict into a Point."""
    if isinstance(p, Point):
        return p
    if isinstance(p, dict):
        return Point(float(p["x"]), float(p["y"]))
    return Point(float(p[0]), float(p[1]))


def as_points(points: Iterable) -> list[Point]:
    return [as_point(p) for p in points]


def distance(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def bounding_box(points: Sequence[Point]) -> tuple[float, float, float, float]:
    """Return (minx, miny, maxx, maxy); all zeros for an empty sequence."""
    if not points:
        return (0.0, 0.0, 0.0, 0.0)
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return (min(xs), min(ys), max(xs), max(ys))


def point_in_polygon(p: Point, polygon: Sequence[Point]) -> bool:
    """Even-odd ray casting test.

    Horizontal edges would divide by zero; their dy is nudged to epsilon
    instead (the straddle test already excludes them from counting).
    """
    inside = False
    n = len(polygon)
    if n < 3:
        return False

    j = n - 1
    for i in range(n):
        xi, yi = polygon[i].x, polygon[i].y
        xj, yj = polygon[j].x, polygon[j].y

        if (yi > p.y) != (yj > p.y):
            dy = yj - yi
            if abs(dy) < _EPSILON:
                dy = _EPSILON
            x_cross = (xj - xi) * (p.y - yi) / dy + xi
            if p.x < x_cross:
                inside = not inside
        j = i

    return inside


def to_shapely_polygon(points: Sequence[Point]) -> Polygon:
    return Polygon([p.as_tuple() for p in points])


def polygon_perimeter(points: Sequence[Point]) -> float:
    """Closed-ring length in mm (the closing edge is implied)."""
    if len(points) < 2:
        return 0.0
    if len(points) == 2:
        return 2 * distance(points[0], points[1])
    return LinearRing([p.as_tuple() for p in points]).length


def polygon_area(points: Sequence[Point]) -> float:
    """Unsigned area in mm²."""
    if len(points) < 3:
        return 0.0
    return to_shapely_polygon(points).area


def turning_angle(prev: Point, curr: Point, nxt: Point) -> float:
    """Absolute change of heading at ``curr``, in radians within [0, pi]."""
    a1 = math.atan2(curr.y - prev.y, curr.x - prev.x)
    a2 = math.atan2(nxt.y - curr.y, nxt.x - curr.x)
    diff = abs(a2 - a1) % (2 * math.pi)
    if diff > math.pi:
        diff = 2 * math.pi - diff
    return diff


@dataclass(frozen=True)
class CornerDetection:
    corners: tuple[Point, ...]
    exact: bool  # False when the first-four-points fallback was used


def detect_corners(
    outline: Sequence[Point],
    threshold_deg: float = CORNER_ANGLE_THRESHOLD_DEG,
) -> CornerDetection:
    """Find the four corners of a pool outline.

    A 4-vertex outline is its own corners. Otherwise every vertex that turns
    by more than ``threshold_deg`` is a corner; when that does not yield
    exactly four, the first four outline points are used.
    """
    if len(outline) == 4:
        return CornerDetection(tuple(outline), exact=True)

    threshold = math.radians(threshold_deg)
    found: list[Point] = []
    n = len(outline)
    for i in range(n):
        prev = outline[(i - 1) % n]
        curr = outline[i]
        nxt = outline[(i + 1) % n]
        if turning_angle(prev, curr, nxt) > threshold:
            found.append(curr)

    if len(found) == 4:
        return CornerDetection(tuple(found), exact=True)

    logger.warning(
        "Detected %d corners on a %d-point outline; falling back to the first four points",
        len(found), n,
    )
    return CornerDetection(tuple(outline[:4]), exact=False)


def find_corners(outline: Sequence[Point]) -> list[Point]:
    return list(detect_corners(outline).corners)


def order_corners(corners: Sequence[Point]) -> list[Point]:
    """Corners clockwise on the canvas (y down), starting at the north-west one.

    Clockwise with y down is a positive signed area in shapely's terms. The
    north-west corner is the one with the smallest ``x + y``; ties go to the
    northernmost.
    """
    ring = orient(Polygon([p.as_tuple() for p in corners]), sign=1.0)
    ordered = [Point(x, y) for x, y in ring.exterior.coords[:-1]]
    start = min(range(len(ordered)), key=lambda i: (ordered[i].x + ordered[i].y, ordered[i].y))
    return ordered[start:] + ordered[:start]


CORNER_ROTATIONS = {
    "NW": 0.0,
    "NE": 90.0,
    "SE": 180.0,
    "SW": 270.0,
}


def corner_rotation(label: str) -> float:
    """Rotation that lines a corner paver up with the waterline at that corner."""
    try:
        return CORNER_ROTATIONS[label]
    except KeyError:
        raise ValueError(f"Unknown corner '{label}'. Valid: {sorted(CORNER_ROTATIONS)}") from None


def ray_distance(
    origin: Point,
    direction: tuple[float, float],
    polygon: Sequence[Point],
) -> float:
    """Distance from ``origin`` along ``direction`` to the polygon's ring.

    Returns ``math.inf`` when the ray never meets the ring.
    """
    dx, dy = direction
    length = math.hypot(dx, dy)
    if length == 0 or len(polygon) < 3:
        return math.inf

    end = (origin.x + dx / length * _RAY_LENGTH_MM, origin.y + dy / length * _RAY_LENGTH_MM)
    ray = LineString([origin.as_tuple(), end])
    ring = LinearRing([p.as_tuple() for p in polygon])

    hit = ray.intersection(ring)
    if hit.is_empty:
        return math.inf
    return ShapelyPoint(origin.as_tuple()).distance(hit)
