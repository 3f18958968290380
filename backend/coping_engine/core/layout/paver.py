"""Paver value records and edge geometry."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum

from shapely.affinity import rotate, translate
from shapely.geometry import Polygon, box

from coping_engine.core.geometry.primitives import Point


class PaverCategory(str, Enum):
    CORNER = "corner"
    FULL = "full"
    STRIPE = "stripe"


class Edge(str, Enum):
    """Logical side of the coping ring.

    The compass names label the generated ring; the pool names label the
    interactive editor. Each compass edge shares its outward direction with
    one pool edge.
    """

    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"
    LEFT_SIDE = "leftSide"
    RIGHT_SIDE = "rightSide"
    SHALLOW_END = "shallowEnd"
    DEEP_END = "deepEnd"

    @property
    def outward(self) -> tuple[float, float]:
        """Unit vector pointing away from the pool across this edge."""
        return _OUTWARD[self]

    @property
    def is_side(self) -> bool:
        """Sides run along x, so their rows stack in y."""
        return self.outward[0] == 0


_OUTWARD: dict[Edge, tuple[float, float]] = {
    Edge.NORTH: (0.0, -1.0),
    Edge.LEFT_SIDE: (0.0, -1.0),
    Edge.SOUTH: (0.0, 1.0),
    Edge.RIGHT_SIDE: (0.0, 1.0),
    Edge.WEST: (-1.0, 0.0),
    Edge.SHALLOW_END: (-1.0, 0.0),
    Edge.EAST: (1.0, 0.0),
    Edge.DEEP_END: (1.0, 0.0),
}


@dataclass(frozen=True)
class PaverSize:
    width: float
    height: float

    @property
    def area_mm2(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class Paver:
    """One placed paver.

    ``position`` is the anchor the footprint rotates about: the footprint is
    the rectangle [0, width] x [0, height] turned by ``rotation`` degrees.
    """

    id: str
    position: Point
    size: PaverSize
    rotation: float
    category: PaverCategory
    edge: Edge
    row_index: int = 0
    column_index: int = 0
    is_corner: bool = False
    extension_direction: Edge | None = None
    is_partial: bool = False
    cut_width: float | None = None
    original_size: PaverSize | None = None

    @property
    def width(self) -> float:
        return self.size.width

    @property
    def height(self) -> float:
        return self.size.height

    @property
    def area_mm2(self) -> float:
        return self.size.area_mm2

    def footprint(self) -> Polygon:
        rect = box(0.0, 0.0, self.size.width, self.size.height)
        turned = rotate(rect, self.rotation, origin=(0.0, 0.0), use_radians=False)
        return translate(turned, xoff=self.position.x, yoff=self.position.y)

    def corners(self) -> list[Point]:
        coords = list(self.footprint().exterior.coords)[:-1]
        return [Point(x, y) for x, y in coords]

    def bounds(self) -> tuple[float, float, float, float]:
        return self.footprint().bounds

    def extent(self) -> tuple[float, float]:
        """Axis-aligned (x, y) size of the footprint."""
        minx, miny, maxx, maxy = self.bounds()
        return (maxx - minx, maxy - miny)

    def translated(self, dx: float, dy: float) -> "Paver":
        return replace(self, position=self.position.translated(dx, dy))


def quarter_turns(rotation: float) -> int | None:
    """Number of quarter turns for axis-aligned rotations, else None."""
    turns = rotation / 90.0
    nearest = round(turns)
    if not math.isclose(turns, nearest, abs_tol=1e-9):
        return None
    return int(nearest) % 4


def anchor_for_bounds(minx: float, miny: float, size: PaverSize, rotation: float) -> Point:
    """Anchor that puts a quarter-turned footprint's lower corner at (minx, miny)."""
    w, h = size.width, size.height
    offsets = {
        0: (0.0, 0.0),
        1: (-h, 0.0),
        2: (-w, -h),
        3: (0.0, -w),
    }
    ox, oy = offsets[quarter_turns(rotation) or 0]
    return Point(minx - ox, miny - oy)
