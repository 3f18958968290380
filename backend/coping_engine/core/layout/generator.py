"""Corner-first coping layout.

Methodology:
  1. Place the 4 corner pavers first, aligned with the waterline
  2. Walk full pavers from each corner toward the middle of every side
  3. Fill the residual middle gap with two equal stripe cuts
  4. Grout joints are always GROUT_WIDTH_MM
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable

from coping_engine.core.constants import GROUT_WIDTH_MM, min_center_cut
from coping_engine.core.geometry.primitives import (
    Point,
    as_points,
    corner_rotation,
    detect_corners,
    distance,
    order_corners,
    polygon_perimeter,
)
from coping_engine.core.geometry.validation import (
    ValidationSeverity,
    issue_messages,
    validate_outline,
)
from coping_engine.core.layout.paver import Edge, Paver, PaverCategory, PaverSize
from coping_engine.utils.units import area_mm2_to_m2, length_mm_to_m

logger = logging.getLogger(__name__)

CORNER_LABELS = ("NW", "NE", "SE", "SW")

# Side i runs from corner i to corner i+1, corners ordered by order_corners
SIDE_EDGES = (Edge.NORTH, Edge.EAST, Edge.SOUTH, Edge.WEST)


class CopingOption(str, Enum):
    NONE = "none"
    SQUARE_400 = "400x400"
    LONG_Y_400x600 = "400x600"
    LONG_X_600x400 = "600x400"


CORNER_SIZE = PaverSize(400, 400)

OPTION_FULL_SIZES: dict[CopingOption, PaverSize] = {
    CopingOption.SQUARE_400: PaverSize(400, 400),
    CopingOption.LONG_Y_400x600: PaverSize(400, 600),
    CopingOption.LONG_X_600x400: PaverSize(600, 400),
}


@dataclass(frozen=True)
class SideMeasurement:
    full_pavers: int
    stripe_width: float


@dataclass(frozen=True)
class Measurements:
    total_pavers: int = 0
    corner_pavers: int = 0
    full_pavers: int = 0
    stripe_pavers: int = 0
    sides: dict[str, SideMeasurement] = field(default_factory=dict)
    total_area_m2: float = 0.0
    perimeter_m: float = 0.0


@dataclass(frozen=True)
class LayoutValidation:
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class CopingLayout:
    corner_pavers: tuple[Paver, ...] = ()
    full_pavers: tuple[Paver, ...] = ()
    stripe_pavers: tuple[Paver, ...] = ()
    measurements: Measurements = field(default_factory=Measurements)
    validation: LayoutValidation = field(default_factory=LayoutValidation)
    corner_size: PaverSize | None = None
    full_size: PaverSize | None = None
    grout_width: float = GROUT_WIDTH_MM

    @property
    def pavers(self) -> list[Paver]:
        return [*self.corner_pavers, *self.full_pavers, *self.stripe_pavers]

    @property
    def is_valid(self) -> bool:
        return self.validation.is_valid


@dataclass
class _SideRun:
    """Working state for one side while it is being laid."""

    edge: Edge
    start: Point
    end: Point
    start_count: int = 0
    end_count: int = 0
    stripe_width: float = 0.0


def generate_layout(
    outline: Iterable,
    corner_size: PaverSize,
    full_size: PaverSize,
) -> CopingLayout:
    """Lay a coping ring around ``outline``.

    Never raises for bad geometry: a degenerate outline yields an empty
    layout whose validation carries the reason.
    """
    checked = validate_outline(as_points(outline))
    errors = issue_messages(checked.issues, ValidationSeverity.ERROR)
    warnings = issue_messages(checked.issues, ValidationSeverity.WARNING)

    for label, size in (("corner", corner_size), ("full", full_size)):
        if not (_positive(size.width) and _positive(size.height)):
            errors.append(f"Invalid {label} paver size {size.width}x{size.height}mm")

    if errors:
        logger.warning("Refusing coping layout: %s", "; ".join(errors))
        return _empty_layout(errors, warnings, corner_size, full_size)

    outline_pts = checked.points
    detection = detect_corners(outline_pts)
    corners = list(detection.corners)
    if len({p.as_tuple() for p in corners}) < 4:
        errors.append(
            f"Outline has {len(outline_pts)} distinct vertices; four corners are needed for coping"
        )
        return _empty_layout(errors, warnings, corner_size, full_size)
    if not detection.exact:
        warnings.append(
            "Could not detect exactly 4 corners; using the first 4 outline points"
        )
    corners = order_corners(corners)

    corner_pavers = tuple(
        Paver(
            id=f"corner-{label}",
            position=corner,
            size=corner_size,
            rotation=corner_rotation(label),
            category=PaverCategory.CORNER,
            edge=SIDE_EDGES[i],
            row_index=0,
            column_index=0,
            is_corner=True,
        )
        for i, (label, corner) in enumerate(zip(CORNER_LABELS, corners))
    )

    full: list[Paver] = []
    stripes: list[Paver] = []
    sides: dict[str, SideMeasurement] = {}

    for i, edge in enumerate(SIDE_EDGES):
        run = _SideRun(edge=edge, start=corners[i], end=corners[(i + 1) % 4])
        side_full, side_stripes, side_warnings = _lay_side(run, corner_size, full_size)
        full.extend(side_full)
        stripes.extend(side_stripes)
        warnings.extend(side_warnings)
        sides[edge.value] = SideMeasurement(
            full_pavers=run.start_count + run.end_count,
            stripe_width=run.stripe_width,
        )

    all_pavers = [*corner_pavers, *full, *stripes]
    total_area = sum(p.area_mm2 for p in all_pavers)

    measurements = Measurements(
        total_pavers=len(all_pavers),
        corner_pavers=len(corner_pavers),
        full_pavers=len(full),
        stripe_pavers=len(stripes),
        sides=sides,
        total_area_m2=area_mm2_to_m2(total_area),
        perimeter_m=length_mm_to_m(polygon_perimeter(outline_pts)),
    )

    logger.debug(
        "Coping layout: %d pavers (%d full, %d stripe), %.2f m2",
        measurements.total_pavers, measurements.full_pavers,
        measurements.stripe_pavers, measurements.total_area_m2,
    )

    return CopingLayout(
        corner_pavers=corner_pavers,
        full_pavers=tuple(full),
        stripe_pavers=tuple(stripes),
        measurements=measurements,
        validation=LayoutValidation(errors=(), warnings=tuple(warnings)),
        corner_size=corner_size,
        full_size=full_size,
    )


def generate_for_option(
    outline: Iterable,
    option: CopingOption | str,
) -> CopingLayout | None:
    """Lay coping for a named option. All options use 400x400 corners.

    Returns None for ``none``.
    """
    option = CopingOption(option)
    if option is CopingOption.NONE:
        return None
    return generate_layout(outline, CORNER_SIZE, OPTION_FULL_SIZES[option])


def _lay_side(
    run: _SideRun,
    corner_size: PaverSize,
    full_size: PaverSize,
) -> tuple[list[Paver], list[Paver], list[str]]:
    warnings: list[str] = []
    side_length = distance(run.start, run.end)
    angle = math.atan2(run.end.y - run.start.y, run.end.x - run.start.x)
    ux, uy = math.cos(angle), math.sin(angle)
    rotation = math.degrees(angle) % 360.0
    step = full_size.width + GROUT_WIDTH_MM
    name = run.edge.value

    def along(offset: float) -> Point:
        return Point(run.start.x + ux * offset, run.start.y + uy * offset)

    start_run: list[Paver] = []
    from_start = corner_size.width + GROUT_WIDTH_MM
    while from_start + full_size.width + GROUT_WIDTH_MM < side_length / 2:
        start_run.append(Paver(
            id=f"full-{name}-start-{len(start_run)}",
            position=along(from_start),
            size=full_size,
            rotation=rotation,
            category=PaverCategory.FULL,
            edge=run.edge,
        ))
        from_start += step

    # Mirror of the start run; each paver is anchored at its near-centre end
    end_run: list[Paver] = []
    from_end = corner_size.width + GROUT_WIDTH_MM
    while from_end + full_size.width + GROUT_WIDTH_MM < side_length / 2:
        end_run.append(Paver(
            id=f"full-{name}-end-{len(end_run)}",
            position=along(side_length - from_end - full_size.width),
            size=full_size,
            rotation=rotation,
            category=PaverCategory.FULL,
            edge=run.edge,
        ))
        from_end += step

    gap = side_length - from_start - from_end
    stripe_width = (gap - GROUT_WIDTH_MM) / 2
    if stripe_width < 0:
        warnings.append(
            f"Side {name} is too short for its corners ({side_length:.0f}mm); "
            f"stripe width {stripe_width:.1f}mm clamped to 0"
        )
        logger.warning("Clamped negative stripe width on %s side (%.1fmm)", name, stripe_width)
        stripe_width = 0.0
    elif stripe_width < min_center_cut(full_size.width):
        warnings.append(
            f"Stripe cut on {name} side is {stripe_width:.1f}mm, below the "
            f"{min_center_cut(full_size.width):.0f}mm minimum for {full_size.width:.0f}mm pavers"
        )

    stripe_size = PaverSize(stripe_width, full_size.height)
    stripes = [
        Paver(
            id=f"stripe-{name}-{pair + 1}",
            position=along(from_start + pair * (stripe_width + GROUT_WIDTH_MM)),
            size=stripe_size,
            rotation=rotation,
            category=PaverCategory.STRIPE,
            edge=run.edge,
            cut_width=stripe_width,
            original_size=full_size,
        )
        for pair in range(2)
    ]

    # Columns count along the side: corner is 0, then start run, stripes, end run
    ordered = [*start_run, *stripes, *reversed(end_run)]
    numbered = [replace(p, column_index=col) for col, p in enumerate(ordered, start=1)]
    by_id = {p.id: p for p in numbered}

    run.start_count = len(start_run)
    run.end_count = len(end_run)
    run.stripe_width = stripe_width

    full = [by_id[p.id] for p in (*start_run, *end_run)]
    return full, [by_id[p.id] for p in stripes], warnings


def _positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


def _empty_layout(
    errors: list[str],
    warnings: list[str],
    corner_size: PaverSize,
    full_size: PaverSize,
) -> CopingLayout:
    return CopingLayout(
        validation=LayoutValidation(errors=tuple(errors), warnings=tuple(warnings)),
        corner_size=corner_size,
        full_size=full_size,
    )
