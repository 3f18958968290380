"""Tests for outline validation and cleanup."""

from coping_engine.core.geometry.primitives import Point
from coping_engine.core.geometry.validation import (
    ValidationSeverity,
    deduplicate_consecutive,
    validate_coordinates,
    validate_outline,
)


def pts(*coords):
    return [Point(x, y) for x, y in coords]


class TestValidateCoordinates:
    def test_valid_rectangle(self):
        issues = validate_coordinates(pts((0, 0), (1000, 0), (1000, 500), (0, 500)))
        errors = [i for i in issues if i.severity == ValidationSeverity.ERROR]
        assert len(errors) == 0

    def test_too_few_points(self):
        issues = validate_coordinates(pts((0, 0), (1000, 0)))
        assert any(i.code == "TOO_FEW_POINTS" for i in issues)

    def test_nan_coordinate(self):
        issues = validate_coordinates(pts((0, 0), (float("nan"), 100), (500, 1000)))
        assert any(i.code == "NON_FINITE_COORD" for i in issues)

    def test_inf_coordinate(self):
        issues = validate_coordinates(pts((0, 0), (float("inf"), 100), (500, 1000)))
        assert any(i.code == "NON_FINITE_COORD" for i in issues)

    def test_consecutive_duplicates(self):
        issues = validate_coordinates(pts((0, 0), (0, 0), (1000, 0), (500, 1000)))
        dup = [i for i in issues if i.code == "CONSECUTIVE_DUPLICATE"]
        assert dup and dup[0].severity == ValidationSeverity.WARNING

    def test_degenerate_after_dedup(self):
        issues = validate_coordinates(pts((0, 0), (0, 0), (1000, 0), (1000, 0)))
        assert any(i.code == "DEGENERATE_AFTER_DEDUP" for i in issues)

    def test_all_collinear(self):
        issues = validate_coordinates(pts((0, 0), (100, 0), (200, 0), (300, 0)))
        assert any(i.code == "ALL_COLLINEAR" for i in issues)

    def test_not_collinear(self):
        issues = validate_coordinates(pts((0, 0), (100, 0), (100, 100)))
        assert not any(i.code == "ALL_COLLINEAR" for i in issues)


class TestValidateOutline:
    def test_explicit_close_is_dropped(self):
        result = validate_outline(pts((0, 0), (1000, 0), (1000, 500), (0, 500), (0, 0)))
        assert result.valid
        assert len(result.points) == 4
        assert any(i.code == "EXPLICIT_CLOSE" for i in result.issues)

    def test_error_returns_no_points(self):
        result = validate_outline(pts((0, 0), (1, 1)))
        assert not result.valid
        assert result.points == []
        assert len(result.errors) == 1

    def test_self_intersecting_is_flagged(self):
        bowtie = pts((0, 0), (1000, 1000), (1000, 0), (0, 1000))
        result = validate_outline(bowtie)
        assert result.valid
        assert any(i.code == "INVALID_GEOMETRY" for i in result.warnings)


class TestDeduplicate:
    def test_removes_runs(self):
        out = deduplicate_consecutive(pts((0, 0), (0, 0), (0, 0), (5, 5)))
        assert out == pts((0, 0), (5, 5))

    def test_empty(self):
        assert deduplicate_consecutive([]) == []
