"""Boundary clamp and final boundary guard for coping extension.

Two layers keep extension rows clear of houses, fences and property lines:

  1. While dragging, rays cast from the dragged row's outer edge find the
     nearest boundary and the drag distance is clamped short of it.
  2. On commit, every generated paver is checked against every boundary and
     any paver that strays outside the permitted region is dropped.

The first layer sizes the rows; the second only catches what the rays miss
(e.g. a boundary vertex poking between two ray origins).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

from coping_engine.core.constants import BOUNDARY_SAFETY_MARGIN_MM
from coping_engine.core.geometry.primitives import (
    Point,
    as_points,
    point_in_polygon,
    ray_distance,
    to_shapely_polygon,
)
from coping_engine.core.layout.paver import Edge, Paver

logger = logging.getLogger(__name__)


class BoundaryKind(str, Enum):
    PROPERTY = "property"  # pavers must stay inside
    OBSTACLE = "obstacle"  # pavers must stay outside


@dataclass(frozen=True)
class BoundaryPolygon:
    """A closed outline supplied by the host canvas (house, fence, lot line)."""

    points: tuple[Point, ...]
    id: str = "boundary"
    kind: BoundaryKind | None = None  # None: infer from the row being extended

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", tuple(as_points(self.points)))
        if len(self.points) < 3:
            raise ValueError(
                f"Boundary '{self.id}' needs at least 3 vertices, got {len(self.points)}"
            )

    def resolved_kind(self, reference: Sequence[Paver]) -> BoundaryKind:
        """Property if the reference row sits inside this outline, else obstacle."""
        if self.kind is not None:
            return self.kind
        if not reference:
            return BoundaryKind.PROPERTY
        centroid = reference[0].footprint().centroid
        inside = point_in_polygon(Point(centroid.x, centroid.y), self.points)
        return BoundaryKind.PROPERTY if inside else BoundaryKind.OBSTACLE


@dataclass(frozen=True)
class BoundaryHit:
    boundary_id: str
    distance: float


@dataclass(frozen=True)
class BoundaryFilterResult:
    valid_pavers: tuple[Paver, ...] = ()
    truncated: bool = False
    boundary_id: str | None = None
    dropped_ids: tuple[str, ...] = field(default_factory=tuple)


def outer_edge_origins(paver: Paver, direction: Edge) -> list[Point]:
    """Both outer corners and the midpoint of the paver's outer edge."""
    minx, miny, maxx, maxy = paver.bounds()
    dx, dy = direction.outward

    if dx > 0:
        a, b = Point(maxx, miny), Point(maxx, maxy)
    elif dx < 0:
        a, b = Point(minx, miny), Point(minx, maxy)
    elif dy > 0:
        a, b = Point(minx, maxy), Point(maxx, maxy)
    else:
        a, b = Point(minx, miny), Point(maxx, miny)

    mid = Point((a.x + b.x) / 2, (a.y + b.y) / 2)
    return [a, mid, b]


def boundary_distance(
    pavers: Sequence[Paver],
    directions: Sequence[Edge],
    boundaries: Iterable[BoundaryPolygon],
) -> BoundaryHit | None:
    """Nearest boundary in front of the dragged row, or None when clear.

    ``directions`` pairs with ``pavers``; each paver casts along its own
    extension direction.
    """
    nearest: BoundaryHit | None = None
    for boundary in boundaries:
        for paver, direction in zip(pavers, directions):
            for origin in outer_edge_origins(paver, direction):
                d = ray_distance(origin, direction.outward, boundary.points)
                if math.isinf(d):
                    continue
                if nearest is None or d < nearest.distance:
                    nearest = BoundaryHit(boundary_id=boundary.id, distance=d)
    return nearest


def clamp_drag_distance(
    requested: float,
    boundary_dist: float | None,
    margin: float = BOUNDARY_SAFETY_MARGIN_MM,
) -> float:
    """Limit a drag so the rows stop ``margin`` short of the boundary."""
    if boundary_dist is None or math.isinf(boundary_dist):
        return requested
    return max(0.0, min(requested, boundary_dist - margin))


def paver_permitted(paver: Paver, boundary: BoundaryPolygon, kind: BoundaryKind) -> bool:
    """Corner ray-cast test plus shapely edge test against one boundary."""
    corners = paver.corners()
    region = to_shapely_polygon(boundary.points)
    footprint = paver.footprint()

    if kind is BoundaryKind.PROPERTY:
        if not all(point_in_polygon(c, boundary.points) for c in corners):
            return False
        return region.covers(footprint)

    if any(point_in_polygon(c, boundary.points) for c in corners):
        return False
    # Touching along an edge is fine, overlapping is not
    return not (footprint.intersects(region) and footprint.intersection(region).area > 0)


def filter_pavers(
    pavers: Sequence[Paver],
    boundaries: Iterable[BoundaryPolygon],
    reference: Sequence[Paver],
) -> BoundaryFilterResult:
    """Drop every paver that crosses a boundary. Pavers are never resized.

    ``reference`` is the row the pavers were extended from; it decides which
    side of an un-typed boundary is permitted.
    """
    resolved = [(b, b.resolved_kind(reference)) for b in boundaries]
    if not resolved:
        return BoundaryFilterResult(valid_pavers=tuple(pavers))

    valid: list[Paver] = []
    dropped: list[str] = []
    first_hit: str | None = None

    for paver in pavers:
        blocked_by = next(
            (b.id for b, kind in resolved if not paver_permitted(paver, b, kind)),
            None,
        )
        if blocked_by is None:
            valid.append(paver)
            continue
        dropped.append(paver.id)
        if first_hit is None:
            first_hit = blocked_by

    if dropped:
        logger.warning(
            "Boundary '%s' truncated extension: dropped %d of %d pavers",
            first_hit, len(dropped), len(pavers),
        )

    return BoundaryFilterResult(
        valid_pavers=tuple(valid),
        truncated=bool(dropped),
        boundary_id=first_hit,
        dropped_ids=tuple(dropped),
    )
