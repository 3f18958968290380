"""One drag gesture on a selected row: start, move, end or cancel."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from coping_engine.core.constants import BOUNDARY_SAFETY_MARGIN_MM, MIN_BOUNDARY_CUT_ROW_MM
from coping_engine.core.extension.boundary import BoundaryPolygon, filter_pavers
from coping_engine.core.extension.rows import ExtensionResult
from coping_engine.core.layout.paver import Paver
from coping_engine.core.selection.controller import (
    SelectionState,
    append_extensions,
    commit_extensions,
    request_extension,
    selected_pavers,
)


@dataclass(frozen=True)
class DragSession:
    """Snapshot of everything a gesture reads, plus its latest preview."""

    state: SelectionState
    pavers: tuple[Paver, ...]
    selection: tuple[Paver, ...]
    boundaries: tuple[BoundaryPolygon, ...] = ()
    distance: float = 0.0
    preview: ExtensionResult | None = None
    min_cut_row: float = MIN_BOUNDARY_CUT_ROW_MM
    safety_margin: float = BOUNDARY_SAFETY_MARGIN_MM


@dataclass(frozen=True)
class DragCommit:
    pavers: tuple[Paver, ...]
    added: tuple[Paver, ...]
    dropped_ids: tuple[str, ...]
    truncated: bool
    boundary_id: str | None
    state: SelectionState


def start_drag(
    state: SelectionState,
    pavers: Sequence[Paver],
    boundaries: Iterable[BoundaryPolygon] = (),
    min_cut_row: float = MIN_BOUNDARY_CUT_ROW_MM,
    safety_margin: float = BOUNDARY_SAFETY_MARGIN_MM,
) -> DragSession:
    """Open a gesture. Fails up front if the selection cannot extend.

    Raises the same errors as :func:`request_extension`.
    """
    pavers = tuple(pavers)
    boundaries = tuple(boundaries)
    # Zero-distance request validates the selection and corner direction
    preview = request_extension(state, pavers, 0.0, boundaries, min_cut_row, safety_margin)
    return DragSession(
        state=state,
        pavers=pavers,
        selection=tuple(selected_pavers(state, pavers)),
        boundaries=boundaries,
        preview=preview,
        min_cut_row=min_cut_row,
        safety_margin=safety_margin,
    )


def drag_move(session: DragSession, distance: float) -> DragSession:
    """Recompute the preview for ``distance`` from the gesture's snapshot."""
    preview = request_extension(
        session.state,
        session.pavers,
        distance,
        session.boundaries,
        session.min_cut_row,
        session.safety_margin,
    )
    return replace(session, distance=distance, preview=preview)


def drag_end(session: DragSession, pavers: Sequence[Paver] | None = None) -> DragCommit:
    """Commit the last preview as one replacement list.

    The final boundary check runs here; rows that cross a boundary are
    dropped and the commit reports ``truncated``.
    """
    base = tuple(pavers) if pavers is not None else session.pavers
    new_rows = session.preview.new_pavers if session.preview else ()

    checked = filter_pavers(new_rows, session.boundaries, session.selection)
    queued = append_extensions(session.state, checked.valid_pavers)
    merged, state = commit_extensions(base, queued)

    return DragCommit(
        pavers=tuple(merged),
        added=checked.valid_pavers,
        dropped_ids=checked.dropped_ids,
        truncated=checked.truncated,
        boundary_id=checked.boundary_id,
        state=state,
    )


def cancel_drag(session: DragSession) -> SelectionState:
    """Drop the preview; the state is exactly what the gesture started from."""
    return session.state
