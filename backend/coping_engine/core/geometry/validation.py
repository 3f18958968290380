"""Outline and polygon validation.

Bad geometry is caught here, before layout work starts, and reported as
structured issues instead of exceptions so a render loop never sees a
traceback.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, auto

from shapely.validation import explain_validity

from coping_engine.core.geometry.primitives import Point, to_shapely_polygon


class ValidationSeverity(Enum):
    ERROR = auto()    # blocks processing
    WARNING = auto()  # processing continues, result may be approximate
    INFO = auto()     # informational only


@dataclass
class GeometryIssue:
    severity: ValidationSeverity
    code: str
    message: str
    location: tuple[float, float] | None = None


@dataclass
class ValidationResult:
    points: list[Point]
    issues: list[GeometryIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not any(i.severity == ValidationSeverity.ERROR for i in self.issues)

    @property
    def errors(self) -> list[GeometryIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    @property
    def warnings(self) -> list[GeometryIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]


# ── 1. Coordinate-level validation ──────────────────────────────────────

def validate_coordinates(points: list[Point]) -> list[GeometryIssue]:
    """Check a raw point list for problems before any layout is attempted."""
    issues: list[GeometryIssue] = []

    if len(points) < 3:
        issues.append(GeometryIssue(
            ValidationSeverity.ERROR,
            "TOO_FEW_POINTS",
            f"Need at least 3 points for a pool outline, got {len(points)}",
        ))
        return issues

    for i, p in enumerate(points):
        if not (math.isfinite(p.x) and math.isfinite(p.y)):
            issues.append(GeometryIssue(
                ValidationSeverity.ERROR,
                "NON_FINITE_COORD",
                f"Point {i} has non-finite coordinate ({p.x}, {p.y})",
                location=(p.x if math.isfinite(p.x) else 0, p.y if math.isfinite(p.y) else 0),
            ))
    if any(i.code == "NON_FINITE_COORD" for i in issues):
        return issues

    for i in range(len(points) - 1):
        if _points_equal(points[i], points[i + 1]):
            issues.append(GeometryIssue(
                ValidationSeverity.WARNING,
                "CONSECUTIVE_DUPLICATE",
                f"Points {i} and {i+1} are identical at ({points[i].x}, {points[i].y})",
                location=points[i].as_tuple(),
            ))

    unique = close_free(deduplicate_consecutive(points))
    if len(unique) < 3:
        issues.append(GeometryIssue(
            ValidationSeverity.ERROR,
            "DEGENERATE_AFTER_DEDUP",
            f"Only {len(unique)} distinct points, cannot form an outline",
        ))
    elif _all_collinear(unique):
        issues.append(GeometryIssue(
            ValidationSeverity.ERROR,
            "ALL_COLLINEAR",
            "All points are collinear, outline would have zero area",
        ))

    return issues


# ── 2. Full outline validation ─────────────────────────────────────────

def validate_outline(points: list[Point]) -> ValidationResult:
    """Validate a pool outline and return its cleaned, open vertex list.

    Consecutive duplicates and a repeated closing vertex are removed; a
    self-intersecting outline is kept but flagged.
    """
    issues = validate_coordinates(points)
    if any(i.severity == ValidationSeverity.ERROR for i in issues):
        return ValidationResult(points=[], issues=issues)

    clean = close_free(deduplicate_consecutive(points))
    if len(clean) < len(points) and _points_equal(points[0], points[-1]):
        issues.append(GeometryIssue(
            ValidationSeverity.INFO,
            "EXPLICIT_CLOSE",
            "Dropped repeated closing vertex; outlines are closed implicitly",
        ))

    poly = to_shapely_polygon(clean)
    if not poly.is_valid:
        issues.append(GeometryIssue(
            ValidationSeverity.WARNING,
            "INVALID_GEOMETRY",
            f"Outline is not a simple polygon: {explain_validity(poly)}",
        ))

    return ValidationResult(points=clean, issues=issues)


def issue_messages(issues: list[GeometryIssue], severity: ValidationSeverity) -> list[str]:
    return [i.message for i in issues if i.severity == severity]


# ── Helpers ─────────────────────────────────────────────────────────────

def _points_equal(a: Point, b: Point, eps: float = 1e-9) -> bool:
    return abs(a.x - b.x) < eps and abs(a.y - b.y) < eps


def deduplicate_consecutive(points: list[Point]) -> list[Point]:
    if not points:
        return []
    result = [points[0]]
    for p in points[1:]:
        if not _points_equal(p, result[-1]):
            result.append(p)
    return result


def close_free(points: list[Point]) -> list[Point]:
    """Drop a trailing vertex that repeats the first one."""
    if len(points) > 1 and _points_equal(points[0], points[-1]):
        return points[:-1]
    return points


def _all_collinear(points: list[Point]) -> bool:
    """Check if all points lie on a single line using cross product."""
    if len(points) < 3:
        return True
    x0, y0 = points[0].x, points[0].y
    x1, y1 = points[1].x, points[1].y
    for p in points[2:]:
        cross = (x1 - x0) * (p.y - y0) - (y1 - y0) * (p.x - x0)
        if abs(cross) > 1e-6:
            return False
    return True
