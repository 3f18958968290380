"""Bridge between engine pavers and the persisted layout shape."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from coping_engine.core.constants import GROUT_WIDTH_MM
from coping_engine.core.geometry.primitives import Point
from coping_engine.core.layout.generator import CopingLayout
from coping_engine.core.layout.paver import Edge, Paver, PaverCategory, PaverSize
from coping_engine.core.selection.controller import merge_pavers
from coping_engine.models.schemas import (
    Coordinate,
    Dimensions,
    LayoutMetadata,
    LayoutValidationModel,
    PersistedLayout,
    PersistedPaver,
)
from coping_engine.utils.units import area_mm2_to_m2

# Stripes are stored as cuts taken from a full paver
CATEGORY_TO_TYPE = {
    PaverCategory.CORNER: "corner",
    PaverCategory.FULL: "full",
    PaverCategory.STRIPE: "stripe_cut",
}
TYPE_TO_CATEGORY = {v: k for k, v in CATEGORY_TO_TYPE.items()}


def paver_to_persisted(paver: Paver) -> PersistedPaver:
    original = paver.original_size or paver.size
    return PersistedPaver(
        id=paver.id,
        position=Coordinate(x=paver.position.x, y=paver.position.y),
        dimensions=Dimensions(width=paver.size.width, height=paver.size.height),
        rotation=paver.rotation,
        type=CATEGORY_TO_TYPE[paver.category],
        original_size=Dimensions(width=original.width, height=original.height),
        cut_width=paver.cut_width,
        edge=paver.edge,
        row_index=paver.row_index,
        column_index=paver.column_index,
        is_corner=paver.is_corner,
        is_partial=paver.is_partial,
        extension_direction=paver.extension_direction,
    )


def persisted_to_paver(item: PersistedPaver) -> Paver:
    """Rebuild a paver. Layouts saved without edge data land on the north edge."""
    category = TYPE_TO_CATEGORY[item.type]
    size = PaverSize(item.dimensions.width, item.dimensions.height)
    original = PaverSize(item.original_size.width, item.original_size.height)
    return Paver(
        id=item.id,
        position=Point(item.position.x, item.position.y),
        size=size,
        rotation=item.rotation,
        category=category,
        edge=item.edge or Edge.NORTH,
        row_index=item.row_index or 0,
        column_index=item.column_index or 0,
        is_corner=item.is_corner if item.is_corner is not None else category is PaverCategory.CORNER,
        extension_direction=item.extension_direction,
        is_partial=bool(item.is_partial),
        cut_width=item.cut_width,
        original_size=None if original == size else original,
    )


def persisted_to_pavers(data: PersistedLayout | Iterable[PersistedPaver]) -> list[Paver]:
    items = data.pavers if isinstance(data, PersistedLayout) else data
    return [persisted_to_paver(item) for item in items]


def layout_to_persisted(
    layout: CopingLayout,
    extra_pavers: Iterable[Paver] = (),
    generated_at: datetime | None = None,
) -> PersistedLayout:
    """Persisted shape of a layout plus any committed extension rows.

    Counts and area are taken from the final paver list, so
    ``metadata.total_pavers`` always matches ``len(pavers)``.
    """
    pavers = merge_pavers(layout.pavers, extra_pavers)
    return pavers_to_persisted(
        pavers,
        is_valid=layout.validation.is_valid,
        errors=layout.validation.errors,
        warnings=layout.validation.warnings,
        grout_width=layout.grout_width,
        generated_at=generated_at,
    )


def pavers_to_persisted(
    pavers: Iterable[Paver],
    is_valid: bool = True,
    errors: Iterable[str] = (),
    warnings: Iterable[str] = (),
    grout_width: float = GROUT_WIDTH_MM,
    generated_at: datetime | None = None,
) -> PersistedLayout:
    pavers = list(pavers)
    counts = {category: 0 for category in PaverCategory}
    for paver in pavers:
        counts[paver.category] += 1

    stamp = generated_at or datetime.now(timezone.utc)
    return PersistedLayout(
        pavers=[paver_to_persisted(p) for p in pavers],
        metadata=LayoutMetadata(
            total_pavers=len(pavers),
            corner_pavers=counts[PaverCategory.CORNER],
            full_pavers=counts[PaverCategory.FULL],
            stripe_pavers=counts[PaverCategory.STRIPE],
            total_area_m2=area_mm2_to_m2(sum(p.area_mm2 for p in pavers)),
            grout_width_mm=grout_width,
        ),
        validation=LayoutValidationModel(
            is_valid=is_valid,
            errors=list(errors),
            warnings=list(warnings),
        ),
        generated_at=stamp.isoformat(),
    )
