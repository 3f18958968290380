"""Extension endpoints: preview and commit a row drag on selected pavers."""

from fastapi import APIRouter, HTTPException

from coping_engine.config import settings
from coping_engine.core.extension.boundary import BoundaryPolygon
from coping_engine.core.extension.drag import drag_end, drag_move, start_drag
from coping_engine.core.geometry.primitives import Point
from coping_engine.core.selection.controller import (
    CornerDirectionRequired,
    SelectionNotExtendable,
    SelectionState,
)
from coping_engine.models.layout_model import paver_to_persisted, persisted_to_pavers
from coping_engine.models.schemas import CommitResponse, ExtendRequest, ExtensionResponse

router = APIRouter(tags=["extend"])


def _drag(req: ExtendRequest):
    """Open a drag session for the request and move it to the requested distance."""
    pavers = persisted_to_pavers(req.pavers)
    known = {p.id for p in pavers}
    missing = [pid for pid in req.selected_ids if pid not in known]
    if missing:
        raise HTTPException(422, detail=[{"message": f"Unknown paver id '{pid}'"} for pid in missing])

    state = SelectionState(
        selected_ids=frozenset(req.selected_ids),
        corner_direction_overrides=dict(req.corner_overrides),
    )
    boundaries = [
        BoundaryPolygon(
            points=tuple(Point(c.x, c.y) for c in b.points),
            id=b.id,
            kind=b.kind,
        )
        for b in req.boundaries
    ]

    try:
        session = start_drag(
            state,
            pavers,
            boundaries,
            min_cut_row=settings.min_boundary_cut_row_mm,
            safety_margin=settings.boundary_safety_margin_mm,
        )
    except CornerDirectionRequired as e:
        raise HTTPException(409, detail={"message": str(e), "paver_id": e.paver_id})
    except SelectionNotExtendable as e:
        raise HTTPException(409, detail={"message": str(e)})

    return drag_move(session, req.drag_distance), pavers


@router.post("/coping/extend/preview", response_model=ExtensionResponse)
async def preview_extension(req: ExtendRequest):
    """Rows the selection would gain from the drag, before the boundary filter."""
    session, _ = _drag(req)
    result = session.preview
    return ExtensionResponse(
        full_rows_to_add=result.full_rows_to_add,
        has_cut_row=result.has_cut_row,
        cut_row_depth=result.cut_row_depth,
        new_pavers=[paver_to_persisted(p) for p in result.new_pavers],
        requested_distance=result.requested_distance,
        clamped_distance=result.clamped_distance,
        boundary_distance=result.boundary_distance,
        boundary_id=result.boundary_id,
        reached_boundary=result.reached_boundary,
        direction=result.direction,
    )


@router.post("/coping/extend/commit", response_model=CommitResponse)
async def commit_extension(req: ExtendRequest):
    """Apply the drag: base pavers plus the rows that survive the boundary filter."""
    session, pavers = _drag(req)
    commit = drag_end(session, pavers)
    return CommitResponse(
        pavers=[paver_to_persisted(p) for p in commit.pavers],
        added_ids=[p.id for p in commit.added],
        dropped_ids=list(commit.dropped_ids),
        truncated=commit.truncated,
        boundary_id=commit.boundary_id,
    )
