"""Unit tests for rectangle helpers."""
from __future__ import annotations

import math

import pytest

from wirelens.vision.geometry import BoundingBox, clamp_unit, union_bounds


def test_bounding_box_from_mapping_variants() -> None:
    by_size = BoundingBox.from_mapping({"x": 1, "y": 2, "width": 10, "height": 20})
    by_edges = BoundingBox.from_mapping({"left": 1, "top": 2, "right": 11, "bottom": 22})
    by_corners = BoundingBox.from_mapping({"x0": 1, "y0": 2, "x1": 11, "y1": 22})

    assert by_size == by_edges == by_corners
    assert by_size.x2 == 11
    assert by_size.y2 == 22
    assert by_size.area == 200


@pytest.mark.parametrize(
    "mapping",
    [
        {},
        {"x": 0, "y": 0, "width": 10},
        {"x": 0, "y": 0, "width": -1, "height": 5},
    ],
)
def test_bounding_box_from_mapping_rejects_incomplete(mapping) -> None:
    with pytest.raises(ValueError):
        BoundingBox.from_mapping(mapping)


def test_aspect_ratio_edge_cases() -> None:
    assert BoundingBox(0, 0, 100, 50).aspect_ratio == 2
    assert BoundingBox(0, 0, 10, 0).aspect_ratio == math.inf
    assert BoundingBox(0, 0, 0, 0).aspect_ratio == 0


def test_overlap_ratio_uses_smaller_area_in_both_orders() -> None:
    button = BoundingBox(0, 0, 200, 40)
    label = BoundingBox(20, 10, 50, 20)

    # A label fully inside a large button counts as full containment either way.
    assert button.overlap_ratio(label) == 1.0
    assert label.overlap_ratio(button) == 1.0

    left = BoundingBox(0, 0, 100, 100)
    shifted = BoundingBox(50, 0, 10, 100)
    assert left.overlap_ratio(shifted) == shifted.overlap_ratio(left) == 1.0

    wide = BoundingBox(0, 0, 100, 10)
    partial = BoundingBox(90, 0, 100, 10)
    assert math.isclose(wide.overlap_ratio(partial), 0.1)
    assert math.isclose(partial.overlap_ratio(wide), 0.1)

    large = BoundingBox(0, 0, 100, 100)
    corner = BoundingBox(80, 80, 50, 50)
    assert math.isclose(large.overlap_ratio(corner), 0.16)
    assert math.isclose(corner.overlap_ratio(large), 0.16)


def test_overlap_ratio_bounds() -> None:
    boxes = [
        BoundingBox(0, 0, 10, 10),
        BoundingBox(5, 5, 10, 10),
        BoundingBox(100, 100, 1, 1),
        BoundingBox(0, 0, 0, 0),
        BoundingBox(2, 2, 500, 3),
    ]
    for first in boxes:
        for second in boxes:
            assert 0.0 <= first.overlap_ratio(second) <= 1.0

    assert BoundingBox(0, 0, 10, 10).overlap_ratio(BoundingBox(10, 0, 10, 10)) == 0.0
    assert BoundingBox(0, 0, 0, 0).overlap_ratio(BoundingBox(0, 0, 10, 10)) == 0.0


def test_rounded_and_distance() -> None:
    box = BoundingBox(10.26, 4.04, 99.96, 20.0)
    assert box.rounded(1) == BoundingBox(10.3, 4.0, 100.0, 20.0)
    assert BoundingBox(0, 0, 1, 1).origin_distance(BoundingBox(3, 4, 1, 1)) == 5.0


def test_union_bounds_and_clamp() -> None:
    union = union_bounds([BoundingBox(10, 10, 10, 10), BoundingBox(0, 30, 5, 5)])
    assert union == BoundingBox(0, 10, 20, 25)

    with pytest.raises(ValueError):
        union_bounds([])

    assert clamp_unit(1.7) == 1.0
    assert clamp_unit(-0.2) == 0.0
    assert clamp_unit(float("nan")) == 0.0
