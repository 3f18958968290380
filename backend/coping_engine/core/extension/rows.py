"""Extension rows: grow the coping ring one coherent row at a time.

A drag on a selected row is turned into whole rows of the selected pavers,
plus, when a boundary stops the drag, one continuous cut row whose depth is
whatever space is left. Cut rows are never rounded to paver multiples, so
the ring fits an irregular boundary without a stepped edge.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Iterable, Mapping, Sequence

from coping_engine.core.constants import (
    BOUNDARY_SAFETY_MARGIN_MM,
    GROUT_WIDTH_MM,
    MIN_BOUNDARY_CUT_ROW_MM,
)
from coping_engine.core.extension.boundary import (
    BoundaryPolygon,
    boundary_distance,
    clamp_drag_distance,
)
from coping_engine.core.layout.paver import (
    Edge,
    Paver,
    PaverCategory,
    PaverSize,
    anchor_for_bounds,
    quarter_turns,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RowPlan:
    full_rows_to_add: int = 0
    has_cut_row: bool = False
    cut_row_depth: float | None = None


@dataclass(frozen=True)
class ExtensionResult:
    full_rows_to_add: int = 0
    has_cut_row: bool = False
    cut_row_depth: float | None = None
    new_pavers: tuple[Paver, ...] = ()
    requested_distance: float = 0.0
    clamped_distance: float = 0.0
    boundary_distance: float | None = None
    boundary_id: str | None = None
    reached_boundary: bool = False
    direction: Edge | None = None


def can_extend(
    selection: Sequence[Paver],
    corner_overrides: Mapping[str, Edge] | None = None,
) -> bool:
    """A selection extends only as one row: same edge, same row index, one direction.

    A corner turned by an override no longer shares its row's direction, so it
    extends on its own.
    """
    if not selection:
        return False
    if len(selection) == 1:
        return True
    first = selection[0]
    direction = extension_direction(first, corner_overrides)
    return all(
        p.edge == first.edge
        and p.row_index == first.row_index
        and extension_direction(p, corner_overrides) is direction
        for p in selection
    )


def extension_direction(
    paver: Paver,
    corner_overrides: Mapping[str, Edge] | None = None,
) -> Edge:
    """Direction a paver grows in.

    Rows keep the direction they were created with; a corner paver uses the
    direction the user picked for it; everything else grows across its edge.
    """
    if paver.extension_direction is not None:
        return paver.extension_direction
    if paver.is_corner and corner_overrides and paver.id in corner_overrides:
        return Edge(corner_overrides[paver.id])
    return paver.edge


def row_depth(
    selection: Sequence[Paver],
    corner_overrides: Mapping[str, Edge] | None = None,
) -> float:
    """Depth of one row: paver height on sides, paver width on ends.

    Measured on the footprint so a quarter-turned paver reports the extent
    that actually stacks.
    """
    if not selection:
        return 0.0
    first = selection[0]
    direction = extension_direction(first, corner_overrides)
    extent_x, extent_y = first.extent()
    return extent_y if direction.is_side else extent_x


def rows_from_drag_distance(
    drag_distance: float,
    depth: float,
    boundary_reached: bool,
    min_cut_row: float = MIN_BOUNDARY_CUT_ROW_MM,
) -> RowPlan:
    """Map a drag distance to whole rows plus an optional boundary cut row."""
    if drag_distance <= 0 or depth <= 0:
        return RowPlan()

    full_rows = int(math.floor(drag_distance / depth))
    if not boundary_reached:
        return RowPlan(full_rows_to_add=full_rows)

    remaining = drag_distance - full_rows * depth
    if remaining - GROUT_WIDTH_MM >= min_cut_row:
        return RowPlan(full_rows, True, remaining - GROUT_WIDTH_MM)

    # Too thin: give up the last full row and try one deeper cut instead
    if full_rows > 0:
        full_rows -= 1
        remaining += depth
        if remaining - GROUT_WIDTH_MM >= min_cut_row:
            return RowPlan(full_rows, True, remaining - GROUT_WIDTH_MM)
        full_rows += 1

    return RowPlan(full_rows_to_add=full_rows)


def build_row_pavers(
    selection: Sequence[Paver],
    plan: RowPlan,
    depth: float,
    corner_overrides: Mapping[str, Edge] | None = None,
    inward: bool = False,
) -> list[Paver]:
    """Place the planned rows next to every selected paver.

    Row k sits k row-depths beyond its source paver. The cut row sits right
    after the last full row and only its depth differs.
    """
    new_pavers: list[Paver] = []
    sign = -1 if inward else 1

    for k in range(1, plan.full_rows_to_add + 1):
        for paver in selection:
            direction = extension_direction(paver, corner_overrides)
            dx, dy = direction.outward
            row_index = paver.row_index + sign * k
            new_pavers.append(replace(
                paver.translated(sign * dx * k * depth, sign * dy * k * depth),
                id=f"ext-{paver.id}-row{row_index}",
                category=_row_category(paver),
                row_index=row_index,
                is_corner=False,
                is_partial=False,
                extension_direction=direction,
            ))

    if plan.has_cut_row and plan.cut_row_depth and plan.cut_row_depth > 0 and not inward:
        for paver in selection:
            direction = extension_direction(paver, corner_overrides)
            new_pavers.append(_cut_row_paver(
                paver, direction, plan.full_rows_to_add, depth, plan.cut_row_depth,
            ))

    return new_pavers


def calculate_extension(
    selection: Sequence[Paver],
    drag_distance: float,
    corner_overrides: Mapping[str, Edge] | None = None,
    boundaries: Iterable[BoundaryPolygon] = (),
    min_cut_row: float = MIN_BOUNDARY_CUT_ROW_MM,
    safety_margin: float = BOUNDARY_SAFETY_MARGIN_MM,
) -> ExtensionResult:
    """Rows for a drag of ``drag_distance`` mm on ``selection``.

    Positive distances grow outward and respect boundaries; negative
    distances add rows back toward the waterline (never past row 0).
    """
    if not can_extend(selection, corner_overrides):
        return ExtensionResult(requested_distance=drag_distance)

    depth = row_depth(selection, corner_overrides)
    if not math.isfinite(depth) or depth <= 0:
        logger.warning("Invalid row depth %r for selection %s; extension aborted",
                       depth, [p.id for p in selection])
        return ExtensionResult(requested_distance=drag_distance)
    if not math.isfinite(drag_distance):
        logger.warning("Non-finite drag distance %r; extension aborted", drag_distance)
        return ExtensionResult(requested_distance=drag_distance)

    direction = extension_direction(selection[0], corner_overrides)

    if drag_distance < 0:
        rows = int(math.floor(-drag_distance / depth))
        rows = min(rows, min(p.row_index for p in selection))
        plan = RowPlan(full_rows_to_add=rows)
        new_pavers = build_row_pavers(selection, plan, depth, corner_overrides, inward=True)
        return ExtensionResult(
            full_rows_to_add=-rows,
            new_pavers=tuple(new_pavers),
            requested_distance=drag_distance,
            clamped_distance=-rows * depth,
            direction=direction,
        )

    directions = [extension_direction(p, corner_overrides) for p in selection]
    hit = boundary_distance(selection, directions, boundaries) if drag_distance > 0 else None

    clamped = clamp_drag_distance(drag_distance, hit.distance if hit else None, safety_margin)
    reached = hit is not None and drag_distance >= hit.distance - safety_margin

    plan = rows_from_drag_distance(clamped, depth, reached, min_cut_row)
    new_pavers = build_row_pavers(selection, plan, depth, corner_overrides)

    logger.debug(
        "Extension on %s: depth=%.1f drag=%.1f clamped=%.1f rows=%d cut=%s",
        direction.value, depth, drag_distance, clamped,
        plan.full_rows_to_add, plan.cut_row_depth,
    )

    return ExtensionResult(
        full_rows_to_add=plan.full_rows_to_add,
        has_cut_row=plan.has_cut_row,
        cut_row_depth=plan.cut_row_depth,
        new_pavers=tuple(new_pavers),
        requested_distance=drag_distance,
        clamped_distance=clamped,
        boundary_distance=hit.distance if hit else None,
        boundary_id=hit.boundary_id if hit else None,
        reached_boundary=reached,
        direction=direction,
    )


def _row_category(paver: Paver) -> PaverCategory:
    return PaverCategory.FULL if paver.category is PaverCategory.CORNER else paver.category


def _cut_row_paver(
    paver: Paver,
    direction: Edge,
    full_rows: int,
    depth: float,
    cut_depth: float,
) -> Paver:
    """Source paver resized to ``cut_depth`` and moved beyond the last full row."""
    minx, miny, maxx, maxy = paver.bounds()
    dx, dy = direction.outward
    along_x = not direction.is_side

    turns = quarter_turns(paver.rotation)
    if turns is None:
        # Off-axis source: lay the cut as its axis-aligned bounding box
        rotation = 0.0
        width, height = maxx - minx, maxy - miny
        width_on_x = True
    else:
        rotation = paver.rotation
        width, height = paver.size.width, paver.size.height
        width_on_x = turns % 2 == 0

    if along_x == width_on_x:
        width = cut_depth
    else:
        height = cut_depth
    size = PaverSize(width, height)

    base_min = minx if along_x else miny
    sign = dx if along_x else dy
    if sign > 0:
        start = base_min + (full_rows + 1) * depth
    else:
        start = base_min - full_rows * depth - cut_depth

    if along_x:
        position = anchor_for_bounds(start, miny, size, rotation)
    else:
        position = anchor_for_bounds(minx, start, size, rotation)

    row_index = paver.row_index + full_rows + 1
    return replace(
        paver,
        id=f"ext-{paver.id}-row{row_index}",
        position=position,
        size=size,
        rotation=rotation,
        category=_row_category(paver),
        row_index=row_index,
        is_corner=False,
        is_partial=True,
        extension_direction=direction,
        original_size=paver.size,
    )
