"""Export endpoints: generate DXF files for download."""

import io

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from coping_engine.core.exporter.dxf_writer import export_layout
from coping_engine.models.layout_model import persisted_to_pavers
from coping_engine.models.schemas import ExportRequest

router = APIRouter(tags=["export"])


@router.post("/export/dxf")
async def export_dxf(req: ExportRequest):
    """Render a persisted layout (plus waterline and boundaries) as a DXF download."""
    dxf_bytes = export_layout(
        persisted_to_pavers(req.layout),
        outline=[(c.x, c.y) for c in req.outline],
        boundaries=[(b.id, [(c.x, c.y) for c in b.points]) for b in req.boundaries],
        unit=req.unit,
    )

    return StreamingResponse(
        io.BytesIO(dxf_bytes),
        media_type="application/dxf",
        headers={"Content-Disposition": 'attachment; filename="coping.dxf"'},
    )
