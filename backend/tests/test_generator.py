"""Tests for the corner-first coping layout."""

import itertools
from datetime import datetime, timezone

import pytest

from coping_engine.core.extension.rows import calculate_extension
from coping_engine.core.geometry.primitives import Point
from coping_engine.core.layout.generator import (
    CORNER_SIZE,
    CopingOption,
    generate_for_option,
    generate_layout,
)
from coping_engine.core.layout.paver import Edge, PaverCategory, PaverSize
from coping_engine.models.layout_model import layout_to_persisted

RECT = [(0, 0), (7000, 0), (7000, 3000), (0, 3000)]
SQUARE = PaverSize(400, 400)


def by_id(layout):
    return {p.id: p for p in layout.pavers}


class TestRectangleLayout:
    def setup_method(self):
        self.layout = generate_layout(RECT, CORNER_SIZE, SQUARE)

    def test_valid_without_warnings(self):
        assert self.layout.is_valid
        assert self.layout.validation.errors == ()
        assert self.layout.validation.warnings == ()

    def test_counts(self):
        m = self.layout.measurements
        assert m.corner_pavers == 4
        assert m.full_pavers == 36
        assert m.stripe_pavers == 8
        assert m.total_pavers == 48
        assert m.total_pavers == len(self.layout.pavers)

    def test_per_side(self):
        sides = self.layout.measurements.sides
        assert sides["north"].full_pavers == 14
        assert sides["south"].full_pavers == 14
        assert sides["east"].full_pavers == 4
        assert sides["west"].full_pavers == 4
        assert sides["north"].stripe_width == pytest.approx(257.5)
        assert sides["east"].stripe_width == pytest.approx(282.5)

    def test_stripes_come_in_equal_pairs(self):
        pavers = by_id(self.layout)
        for edge in ("north", "east", "south", "west"):
            a = pavers[f"stripe-{edge}-1"]
            b = pavers[f"stripe-{edge}-2"]
            assert a.width == pytest.approx(b.width)
            assert a.cut_width == pytest.approx(a.width)
            assert a.original_size == SQUARE

    def test_totals(self):
        m = self.layout.measurements
        assert m.perimeter_m == pytest.approx(20.0)
        assert m.total_area_m2 == pytest.approx(7.264)

    def test_corners(self):
        pavers = by_id(self.layout)
        nw = pavers["corner-NW"]
        assert nw.is_corner
        assert nw.category is PaverCategory.CORNER
        assert nw.edge is Edge.NORTH
        assert nw.bounds() == pytest.approx((0, 0, 400, 400))
        assert pavers["corner-SE"].bounds() == pytest.approx((6600, 2600, 7000, 3000))

    def test_full_paver_positions(self):
        pavers = by_id(self.layout)
        assert pavers["full-north-start-0"].bounds() == pytest.approx((405, 0, 805, 400))
        assert pavers["full-north-end-0"].bounds() == pytest.approx((6195, 0, 6595, 400))
        assert pavers["full-east-start-0"].bounds() == pytest.approx((6600, 405, 7000, 805))

    def test_stripes_fill_the_middle_gap(self):
        pavers = by_id(self.layout)
        left = pavers["full-north-start-6"].bounds()[2]
        right = pavers["full-north-end-6"].bounds()[0]
        s1 = pavers["stripe-north-1"].bounds()
        s2 = pavers["stripe-north-2"].bounds()
        assert s1[0] == pytest.approx(left + 5)
        assert s2[0] == pytest.approx(s1[2] + 5)
        assert right == pytest.approx(s2[2] + 5)

    def test_column_indexes_run_along_the_side(self):
        pavers = by_id(self.layout)
        assert pavers["corner-NW"].column_index == 0
        assert pavers["full-north-start-0"].column_index == 1
        assert pavers["stripe-north-1"].column_index == 8
        assert pavers["stripe-north-2"].column_index == 9
        assert pavers["full-north-end-0"].column_index == 16

    def test_all_at_waterline_row(self):
        assert all(p.row_index == 0 for p in self.layout.pavers)

    def test_no_overlaps(self):
        for a, b in itertools.combinations(self.layout.pavers, 2):
            assert a.footprint().intersection(b.footprint()).area < 1e-6, (a.id, b.id)

    def test_all_inside_outline(self):
        for p in self.layout.pavers:
            minx, miny, maxx, maxy = p.bounds()
            assert minx >= -1e-6 and miny >= -1e-6
            assert maxx <= 7000 + 1e-6 and maxy <= 3000 + 1e-6


class TestStripeWarnings:
    def test_narrow_stripe_warns(self):
        layout = generate_layout([(0, 0), (7000, 0), (7000, 2000), (0, 2000)], CORNER_SIZE, SQUARE)
        assert layout.is_valid
        assert layout.measurements.sides["east"].stripe_width == pytest.approx(187.5)
        assert any("below" in w for w in layout.validation.warnings)

    def test_negative_stripe_clamped(self):
        layout = generate_layout([(0, 0), (7000, 0), (7000, 600), (0, 600)], CORNER_SIZE, SQUARE)
        assert layout.measurements.sides["east"].stripe_width == 0.0
        assert any("clamped" in w for w in layout.validation.warnings)

    def test_long_paver_minimum_is_half_its_length(self):
        layout = generate_for_option(RECT, CopingOption.LONG_X_600x400)
        assert layout.measurements.sides["north"].stripe_width == pytest.approx(67.5)
        assert any("300mm minimum" in w for w in layout.validation.warnings)


class TestInvalidOutlines:
    def test_too_few_points(self):
        layout = generate_layout([(0, 0), (1000, 0)], CORNER_SIZE, SQUARE)
        assert not layout.is_valid
        assert layout.pavers == []
        assert layout.measurements.total_pavers == 0

    def test_non_finite(self):
        layout = generate_layout([(0, 0), (float("nan"), 0), (1000, 1000), (0, 1000)], CORNER_SIZE, SQUARE)
        assert not layout.is_valid
        assert layout.pavers == []

    def test_collinear(self):
        layout = generate_layout([(0, 0), (1000, 0), (2000, 0), (3000, 0)], CORNER_SIZE, SQUARE)
        assert not layout.is_valid

    def test_triangle_has_too_few_corners(self):
        layout = generate_layout([(0, 0), (4000, 0), (2000, 3000)], CORNER_SIZE, SQUARE)
        assert not layout.is_valid
        assert any("four corners" in e for e in layout.validation.errors)

    def test_bad_paver_size(self):
        layout = generate_layout(RECT, CORNER_SIZE, PaverSize(0, 400))
        assert not layout.is_valid
        assert any("Invalid full paver size" in e for e in layout.validation.errors)


class TestOptions:
    def test_none(self):
        assert generate_for_option(RECT, "none") is None

    def test_option_sizes(self):
        layout = generate_for_option(RECT, "400x600")
        assert layout.corner_size == PaverSize(400, 400)
        assert layout.full_size == PaverSize(400, 600)

    def test_unknown_option(self):
        with pytest.raises(ValueError):
            generate_for_option(RECT, "500x500")

    def test_fallback_corners_warn(self):
        outline = [Point(0, 0), Point(7000, 0), Point(7000, 3000), Point(3500, 5000), Point(0, 3000)]
        layout = generate_layout(outline, CORNER_SIZE, SQUARE)
        assert any("exactly 4 corners" in w for w in layout.validation.warnings)


class TestVertexOrder:
    @pytest.mark.parametrize("outline", [
        [(7000, 0), (7000, 3000), (0, 3000), (0, 0)],
        [(0, 0), (0, 3000), (7000, 3000), (7000, 0)],
        [(7000, 3000), (7000, 0), (0, 0), (0, 3000)],
    ])
    def test_same_ring_for_any_start_or_winding(self, outline):
        expected = by_id(generate_layout(RECT, CORNER_SIZE, SQUARE))
        pavers = by_id(generate_layout(outline, CORNER_SIZE, SQUARE))
        assert pavers.keys() == expected.keys()
        for pid, paver in pavers.items():
            assert paver.edge is expected[pid].edge
            assert paver.bounds() == pytest.approx(expected[pid].bounds()), pid

    @pytest.mark.parametrize("outline", [
        [(7000, 0), (7000, 3000), (0, 3000), (0, 0)],
        [(0, 0), (0, 3000), (7000, 3000), (7000, 0)],
    ])
    def test_first_row_moves_away_from_pool(self, outline):
        pavers = by_id(generate_layout(outline, CORNER_SIZE, SQUARE))
        north = calculate_extension([pavers["full-north-start-0"]], 400).new_pavers[0]
        east = calculate_extension([pavers["full-east-start-0"]], 400).new_pavers[0]
        assert north.bounds() == pytest.approx((405, -400, 805, 0))
        assert east.bounds() == pytest.approx((7000, 405, 7400, 805))


class TestRepeatability:
    def test_identical_inputs_give_identical_layouts(self):
        first = generate_layout(RECT, CORNER_SIZE, SQUARE)
        second = generate_layout(RECT, CORNER_SIZE, SQUARE)
        assert first.pavers == second.pavers

        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert (
            layout_to_persisted(first, generated_at=stamp).model_dump_json()
            == layout_to_persisted(second, generated_at=stamp).model_dump_json()
        )
