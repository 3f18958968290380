"""Layout endpoints: lay a coping ring around a pool outline."""

from fastapi import APIRouter

from coping_engine.core.geometry.primitives import Point
from coping_engine.core.layout.generator import (
    CORNER_SIZE,
    OPTION_FULL_SIZES,
    CopingLayout,
    CopingOption,
    generate_layout,
)
from coping_engine.core.layout.paver import PaverSize
from coping_engine.models.layout_model import layout_to_persisted
from coping_engine.models.schemas import Dimensions, GenerateRequest, PersistedLayout
from coping_engine.utils.units import to_mm

router = APIRouter(tags=["layout"])


def _size_mm(dims: Dimensions, unit: str) -> PaverSize:
    return PaverSize(to_mm(dims.width, unit), to_mm(dims.height, unit))


@router.post("/coping/generate", response_model=PersistedLayout)
async def generate_coping(req: GenerateRequest):
    """Generate a coping layout. Bad outlines come back with is_valid=false."""
    outline = [Point(to_mm(c.x, req.unit), to_mm(c.y, req.unit)) for c in req.outline]

    if req.corner_size is not None and req.full_size is not None:
        layout = generate_layout(
            outline,
            _size_mm(req.corner_size, req.unit),
            _size_mm(req.full_size, req.unit),
        )
    elif req.option is CopingOption.NONE:
        layout = CopingLayout()
    else:
        layout = generate_layout(outline, CORNER_SIZE, OPTION_FULL_SIZES[req.option])

    return layout_to_persisted(layout)
