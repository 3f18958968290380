"""Tests for extension row planning and placement."""

import pytest

from coping_engine.core.extension.boundary import BoundaryPolygon
from coping_engine.core.extension.rows import (
    RowPlan,
    build_row_pavers,
    calculate_extension,
    can_extend,
    extension_direction,
    row_depth,
    rows_from_drag_distance,
)
from coping_engine.core.geometry.primitives import Point
from coping_engine.core.layout.paver import Edge, Paver, PaverCategory, PaverSize

SQUARE = PaverSize(400, 400)


def make_paver(pid="p1", x=1000.0, y=0.0, edge=Edge.LEFT_SIDE, size=SQUARE, rotation=0.0, **kw):
    return Paver(
        id=pid,
        position=Point(x, y),
        size=size,
        rotation=rotation,
        category=kw.pop("category", PaverCategory.FULL),
        edge=edge,
        **kw,
    )


def property_line(y_top=-625.0):
    """A lot that ends ``-y_top`` mm beyond the waterline on the left side."""
    return BoundaryPolygon(
        points=((-5000, y_top), (12000, y_top), (12000, 8000), (-5000, 8000)),
        id="lot",
    )


class TestCanExtend:
    def test_empty(self):
        assert not can_extend([])

    def test_single(self):
        assert can_extend([make_paver()])

    def test_same_edge_and_row(self):
        assert can_extend([make_paver("a"), make_paver("b", x=1405)])

    def test_mixed_edges(self):
        assert not can_extend([make_paver("a"), make_paver("b", edge=Edge.DEEP_END)])

    def test_mixed_rows(self):
        assert not can_extend([make_paver("a"), make_paver("b", y=-400, row_index=1)])

    def test_turned_corner_leaves_its_row(self):
        corner = make_paver("corner-NW", x=0, category=PaverCategory.CORNER, edge=Edge.NORTH, is_corner=True)
        row = [corner, make_paver("n1", x=405, edge=Edge.NORTH)]
        assert can_extend(row)
        assert not can_extend(row, {"corner-NW": Edge.WEST})
        assert calculate_extension(row, 400, {"corner-NW": Edge.WEST}).new_pavers == ()


class TestExtensionDirection:
    def test_defaults_to_edge(self):
        assert extension_direction(make_paver()) is Edge.LEFT_SIDE

    def test_existing_direction_wins(self):
        p = make_paver(extension_direction=Edge.SHALLOW_END)
        assert extension_direction(p, {"p1": Edge.DEEP_END}) is Edge.SHALLOW_END

    def test_corner_override(self):
        corner = make_paver("corner-NW", x=0, category=PaverCategory.CORNER, edge=Edge.NORTH, is_corner=True)
        assert extension_direction(corner, {"corner-NW": Edge.WEST}) is Edge.WEST
        assert extension_direction(corner, {}) is Edge.NORTH

    def test_override_ignored_for_non_corners(self):
        assert extension_direction(make_paver(), {"p1": Edge.DEEP_END}) is Edge.LEFT_SIDE


class TestRowDepth:
    def test_side_uses_height(self):
        assert row_depth([make_paver(size=PaverSize(600, 400))]) == pytest.approx(400)

    def test_end_uses_width(self):
        assert row_depth([make_paver(edge=Edge.DEEP_END, size=PaverSize(600, 400))]) == pytest.approx(600)

    def test_quarter_turned_paver(self):
        p = make_paver(x=7000, y=405, edge=Edge.EAST, size=PaverSize(400, 600), rotation=90)
        assert row_depth([p]) == pytest.approx(600)

    def test_empty(self):
        assert row_depth([]) == 0.0


class TestRowsFromDragDistance:
    def test_whole_rows_only_without_boundary(self):
        assert rows_from_drag_distance(850, 400, False) == RowPlan(2, False, None)

    def test_cut_row_at_boundary(self):
        plan = rows_from_drag_distance(623, 400, True)
        assert plan.full_rows_to_add == 1
        assert plan.has_cut_row
        assert plan.cut_row_depth == pytest.approx(218)

    def test_thin_remainder_borrows_a_row(self):
        plan = rows_from_drag_distance(805, 400, True)
        assert plan.full_rows_to_add == 1
        assert plan.cut_row_depth == pytest.approx(400)

    def test_too_thin_without_rows_to_borrow(self):
        assert rows_from_drag_distance(90, 400, True) == RowPlan()

    def test_cut_depth_is_not_quantized(self):
        plan = rows_from_drag_distance(537.3, 400, True)
        assert plan.cut_row_depth == pytest.approx(132.3)

    def test_zero_and_negative(self):
        assert rows_from_drag_distance(0, 400, False) == RowPlan()
        assert rows_from_drag_distance(-50, 400, True) == RowPlan()

    def test_custom_minimum_borrows_the_only_row(self):
        plan = rows_from_drag_distance(623, 400, True, min_cut_row=250)
        assert plan.full_rows_to_add == 0
        assert plan.cut_row_depth == pytest.approx(618)


class TestCalculateExtension:
    def test_two_rows_without_boundary(self):
        result = calculate_extension([make_paver()], 850)
        assert result.full_rows_to_add == 2
        assert not result.has_cut_row
        assert not result.reached_boundary
        ids = [p.id for p in result.new_pavers]
        assert ids == ["ext-p1-row1", "ext-p1-row2"]
        assert result.new_pavers[0].bounds() == pytest.approx((1000, -400, 1400, 0))
        assert result.new_pavers[1].bounds() == pytest.approx((1000, -800, 1400, -400))

    def test_new_rows_keep_size_and_record_direction(self):
        result = calculate_extension([make_paver(size=PaverSize(600, 400))], 400)
        row = result.new_pavers[0]
        assert row.size == PaverSize(600, 400)
        assert row.extension_direction is Edge.LEFT_SIDE
        assert row.row_index == 1
        assert not row.is_corner
        assert not row.is_partial

    def test_boundary_clamps_and_adds_cut_row(self):
        result = calculate_extension([make_paver()], 850, boundaries=[property_line()])
        assert result.boundary_distance == pytest.approx(625)
        assert result.boundary_id == "lot"
        assert result.clamped_distance == pytest.approx(623)
        assert result.reached_boundary
        assert result.full_rows_to_add == 1
        assert result.cut_row_depth == pytest.approx(218)

        cut = result.new_pavers[-1]
        assert cut.id == "ext-p1-row2"
        assert cut.is_partial
        assert cut.size.width == pytest.approx(400)
        assert cut.size.height == pytest.approx(218)
        assert cut.original_size == SQUARE
        assert cut.bounds() == pytest.approx((1000, -618, 1400, -400))

    def test_short_drag_does_not_reach_boundary(self):
        result = calculate_extension([make_paver()], 450, boundaries=[property_line()])
        assert not result.reached_boundary
        assert result.full_rows_to_add == 1
        assert not result.has_cut_row

    def test_deep_end_cut_row(self):
        p = make_paver(x=7000, y=1000, edge=Edge.DEEP_END)
        lot = BoundaryPolygon(points=((0, -5000), (8025, -5000), (8025, 5000), (0, 5000)), id="fence")
        result = calculate_extension([p], 2000, boundaries=[lot])
        assert result.clamped_distance == pytest.approx(623)
        assert result.new_pavers[0].bounds() == pytest.approx((7400, 1000, 7800, 1400))
        assert result.new_pavers[-1].bounds() == pytest.approx((7800, 1000, 8018, 1400))

    def test_quarter_turned_cut_row(self):
        p = make_paver(x=7000, y=405, edge=Edge.EAST, rotation=90)
        lot = BoundaryPolygon(points=((0, -5000), (7625, -5000), (7625, 5000), (0, 5000)))
        result = calculate_extension([p], 1000, boundaries=[lot])
        assert result.new_pavers[0].bounds() == pytest.approx((7000, 405, 7400, 805))
        cut = result.new_pavers[-1]
        assert cut.rotation == 90
        assert cut.bounds() == pytest.approx((7400, 405, 7618, 805))

    def test_corner_with_override(self):
        corner = make_paver("corner-NW", x=0, y=0, category=PaverCategory.CORNER,
                            edge=Edge.NORTH, is_corner=True)
        result = calculate_extension([corner], 400, {"corner-NW": Edge.WEST})
        row = result.new_pavers[0]
        assert result.direction is Edge.WEST
        assert row.bounds() == pytest.approx((-400, 0, 0, 400))
        assert row.category is PaverCategory.FULL
        assert row.extension_direction is Edge.WEST

    def test_extending_an_extension_row(self):
        first = calculate_extension([make_paver()], 400).new_pavers[0]
        second = calculate_extension([first], 400).new_pavers[0]
        assert second.row_index == 2
        assert second.id == "ext-ext-p1-row1-row2"
        assert second.bounds() == pytest.approx((1000, -800, 1400, -400))

    def test_whole_row_moves_together(self):
        row = [make_paver("a"), make_paver("b", x=1405)]
        result = calculate_extension(row, 800)
        assert len(result.new_pavers) == 4
        assert {p.row_index for p in result.new_pavers} == {1, 2}

    def test_inward_rows_stop_at_waterline(self):
        outer = make_paver("p3", y=-800, row_index=2, extension_direction=Edge.LEFT_SIDE)
        result = calculate_extension([outer], -450)
        assert result.full_rows_to_add == -1
        assert result.new_pavers[0].row_index == 1
        assert result.new_pavers[0].bounds() == pytest.approx((1000, -400, 1400, 0))

        assert calculate_extension([make_paver()], -1000).new_pavers == ()

    def test_invalid_depth_aborts(self):
        result = calculate_extension([make_paver(size=PaverSize(400, 0))], 850)
        assert result.full_rows_to_add == 0
        assert result.new_pavers == ()

    def test_non_extendable_selection(self):
        result = calculate_extension([make_paver("a"), make_paver("b", edge=Edge.DEEP_END)], 850)
        assert result.new_pavers == ()

    def test_build_row_pavers_directly(self):
        pavers = build_row_pavers([make_paver()], RowPlan(1, True, 150.0), 400)
        assert [p.id for p in pavers] == ["ext-p1-row1", "ext-p1-row2"]
        assert pavers[1].bounds() == pytest.approx((1000, -550, 1400, -400))
