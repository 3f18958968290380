"""Pydantic schemas for API request/response validation and the persisted layout."""

from __future__ import annotations

import math
from typing import Literal

from pydantic import BaseModel, field_validator

from coping_engine.core.extension.boundary import BoundaryKind
from coping_engine.core.layout.generator import CopingOption
from coping_engine.core.layout.paver import Edge
from coping_engine.utils.units import VALID_UNITS


class Coordinate(BaseModel):
    x: float
    y: float

    @field_validator("x", "y")
    @classmethod
    def must_be_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("Coordinate must be a finite number")
        return v


class Dimensions(BaseModel):
    width: float
    height: float

    @field_validator("width", "height")
    @classmethod
    def must_be_non_negative(cls, v: float) -> float:
        if not math.isfinite(v) or v < 0:
            raise ValueError("Paver dimensions must be finite and not negative")
        return v


class PersistedPaver(BaseModel):
    id: str
    position: Coordinate
    dimensions: Dimensions
    rotation: float = 0.0
    type: Literal["corner", "full", "stripe_cut"]
    original_size: Dimensions
    cut_width: float | None = None
    edge: Edge | None = None
    row_index: int | None = None
    column_index: int | None = None
    is_corner: bool | None = None
    is_partial: bool | None = None
    extension_direction: Edge | None = None


class LayoutMetadata(BaseModel):
    total_pavers: int
    corner_pavers: int
    full_pavers: int
    stripe_pavers: int
    total_area_m2: float
    grout_width_mm: float


class LayoutValidationModel(BaseModel):
    is_valid: bool
    errors: list[str] = []
    warnings: list[str] = []


class PersistedLayout(BaseModel):
    pavers: list[PersistedPaver]
    metadata: LayoutMetadata
    validation: LayoutValidationModel
    generated_at: str


class BoundaryInput(BaseModel):
    id: str = "boundary"
    points: list[Coordinate]
    kind: BoundaryKind | None = None

    @field_validator("points")
    @classmethod
    def must_be_polygon(cls, v: list[Coordinate]) -> list[Coordinate]:
        if len(v) < 3:
            raise ValueError("Boundary needs at least 3 points")
        return v


class GenerateRequest(BaseModel):
    outline: list[Coordinate]
    option: CopingOption = CopingOption.SQUARE_400
    corner_size: Dimensions | None = None
    full_size: Dimensions | None = None  # both sizes given: overrides ``option``
    unit: str = "mm"

    @field_validator("unit")
    @classmethod
    def known_unit(cls, v: str) -> str:
        if v not in VALID_UNITS:
            raise ValueError(f"Unknown unit '{v}'")
        return v


class ExtendRequest(BaseModel):
    pavers: list[PersistedPaver]
    selected_ids: list[str]
    drag_distance: float
    corner_overrides: dict[str, Edge] = {}
    boundaries: list[BoundaryInput] = []

    @field_validator("drag_distance")
    @classmethod
    def must_be_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("Drag distance must be a finite number")
        return v


class ExtensionResponse(BaseModel):
    full_rows_to_add: int
    has_cut_row: bool
    cut_row_depth: float | None = None
    new_pavers: list[PersistedPaver]
    requested_distance: float
    clamped_distance: float
    boundary_distance: float | None = None
    boundary_id: str | None = None
    reached_boundary: bool = False
    direction: Edge | None = None


class CommitResponse(BaseModel):
    pavers: list[PersistedPaver]
    added_ids: list[str]
    dropped_ids: list[str]
    truncated: bool
    boundary_id: str | None = None


class ExportRequest(BaseModel):
    layout: PersistedLayout
    outline: list[Coordinate] = []
    boundaries: list[BoundaryInput] = []
    unit: str = "mm"

    @field_validator("unit")
    @classmethod
    def known_unit(cls, v: str) -> str:
        if v not in VALID_UNITS:
            raise ValueError(f"Unknown unit '{v}'")
        return v
