"""Paver selection state and the transforms that drive extension.

The controller never mutates: every call takes a SelectionState and returns a
new one. The caller owns the state for the lifetime of one loaded layout.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping, Sequence

from coping_engine.core.constants import BOUNDARY_SAFETY_MARGIN_MM, MIN_BOUNDARY_CUT_ROW_MM
from coping_engine.core.extension.boundary import BoundaryPolygon
from coping_engine.core.extension.rows import (
    ExtensionResult,
    calculate_extension,
    can_extend,
)
from coping_engine.core.layout.paver import Edge, Paver


class CornerDirectionRequired(ValueError):
    """A lone corner paver was asked to extend before a direction was chosen."""

    def __init__(self, paver_id: str):
        self.paver_id = paver_id
        super().__init__(
            f"Corner paver '{paver_id}' touches two edges; choose an extension direction first"
        )


class SelectionNotExtendable(ValueError):
    """The selection is empty or spans more than one edge or row."""


@dataclass(frozen=True)
class SelectionState:
    selected_ids: frozenset[str] = field(default_factory=frozenset)
    extension_pavers: tuple[Paver, ...] = ()
    corner_direction_overrides: Mapping[str, Edge] = field(default_factory=dict)


def toggle_selection(paver_id: str, current: Iterable[str], multi_select: bool) -> frozenset[str]:
    """Multi-select flips membership of ``paver_id``; otherwise it becomes the only one."""
    if not multi_select:
        return frozenset({paver_id})
    ids = set(current)
    if paver_id in ids:
        ids.remove(paver_id)
    else:
        ids.add(paver_id)
    return frozenset(ids)


def select(state: SelectionState, paver_id: str, multi_select: bool = False) -> SelectionState:
    return replace(
        state, selected_ids=toggle_selection(paver_id, state.selected_ids, multi_select)
    )


def clear_selection(state: SelectionState) -> SelectionState:
    """Deselect everything. Queued rows and corner directions are discarded with it."""
    return replace(state, selected_ids=frozenset(), extension_pavers=(), corner_direction_overrides={})


def selected_pavers(state: SelectionState, pavers: Iterable[Paver]) -> list[Paver]:
    """Selected pavers in layout order. Pending extension rows are selectable too."""
    seen: set[str] = set()
    found: list[Paver] = []
    for paver in (*pavers, *state.extension_pavers):
        if paver.id in state.selected_ids and paver.id not in seen:
            seen.add(paver.id)
            found.append(paver)
    return found


def needs_corner_direction(state: SelectionState, pavers: Iterable[Paver]) -> bool:
    selection = selected_pavers(state, pavers)
    if len(selection) != 1:
        return False
    paver = selection[0]
    return (
        paver.is_corner
        and paver.extension_direction is None
        and paver.id not in state.corner_direction_overrides
    )


def set_corner_direction(state: SelectionState, paver_id: str, edge: Edge | str) -> SelectionState:
    overrides = dict(state.corner_direction_overrides)
    overrides[paver_id] = Edge(edge)
    return replace(state, corner_direction_overrides=overrides)


def request_extension(
    state: SelectionState,
    pavers: Sequence[Paver],
    drag_distance: float,
    boundaries: Iterable[BoundaryPolygon] = (),
    min_cut_row: float = MIN_BOUNDARY_CUT_ROW_MM,
    safety_margin: float = BOUNDARY_SAFETY_MARGIN_MM,
) -> ExtensionResult:
    """Rows the current selection would gain from a drag. Nothing is stored.

    Raises:
        CornerDirectionRequired: the selection is a lone corner without an override.
        SelectionNotExtendable: the selection is empty or not one coherent row.
    """
    selection = selected_pavers(state, pavers)
    if not can_extend(selection, state.corner_direction_overrides):
        raise SelectionNotExtendable(
            "Select pavers from a single edge, row and direction to extend"
            if selection else "Nothing selected"
        )
    if needs_corner_direction(state, pavers):
        raise CornerDirectionRequired(selection[0].id)

    return calculate_extension(
        selection,
        drag_distance,
        state.corner_direction_overrides,
        boundaries,
        min_cut_row=min_cut_row,
        safety_margin=safety_margin,
    )


def append_extensions(state: SelectionState, new_pavers: Iterable[Paver]) -> SelectionState:
    """Queue rows on the state. A row with an id already queued replaces it."""
    return replace(state, extension_pavers=tuple(merge_pavers(state.extension_pavers, new_pavers)))


def commit_extensions(
    pavers: Sequence[Paver],
    state: SelectionState,
) -> tuple[list[Paver], SelectionState]:
    """Fold queued rows into the layout and empty the queue."""
    merged = merge_pavers(pavers, state.extension_pavers)
    return merged, replace(state, extension_pavers=())


def merge_pavers(base: Iterable[Paver], added: Iterable[Paver]) -> list[Paver]:
    """``base`` followed by ``added``; same-id pavers are replaced in place."""
    merged: dict[str, Paver] = {p.id: p for p in base}
    for paver in added:
        merged[paver.id] = paver
    return list(merged.values())
