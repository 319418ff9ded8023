"""Tests for merging per-image results into a project result."""
from __future__ import annotations

from dataclasses import replace

import pytest

from wirelens.analysis.classifier import to_wireframe_element
from wirelens.analysis.merger import merge_results, remove_duplicate_elements
from wirelens.analysis.results import (
    ComponentRelationship,
    EnhancedLayout,
    WireframeComponent,
    WireframeDocument,
    empty_image_result,
    empty_project_result,
)
from wirelens.vision.geometry import BoundingBox
from wirelens.vision.models import RawElement


def _card(x: float, y: float, width: float = 100, height: float = 100, image_index: int = 0):
    bounds = BoundingBox(x, y, width, height)
    element = to_wireframe_element(RawElement("container", bounds, area=bounds.area))
    return replace(element, image_index=image_index)


def _result(index: int, elements=(), confidence: float = 0.5, layout_confidence: float = 0.0, components: int = 0):
    document = WireframeDocument(
        components=tuple(
            WireframeComponent(id=f"component-{index}{n:08d}", type="card-container", bounds=BoundingBox(0, 0, 1, 1))
            for n in range(components)
        ),
        relationships=(ComponentRelationship(source=0, target=1, type="adjacent", strength=0.9),) if components > 1 else (),
        layout="unknown",
    )
    return replace(
        empty_image_result(index, {"name": f"shot-{index}.png"}),
        elements=tuple(elements),
        confidence=confidence,
        layout=EnhancedLayout(structure=f"layout-{index}", confidence=layout_confidence),
        wireframe=document,
    )


def test_no_results_is_the_empty_project() -> None:
    assert merge_results([]) == empty_project_result()


def test_overlapping_elements_from_two_images_collapse() -> None:
    first = _result(0, [_card(0, 0)])
    second = _result(1, [_card(10, 0, image_index=1)])

    project = merge_results([first, second])

    assert project.image_count == 2
    assert len(project.elements) == 1
    assert project.elements[0].image_index == 0


def test_single_result_is_wrapped_without_deduplication() -> None:
    only = _result(0, [_card(0, 0), _card(5, 5)], confidence=0.7)

    project = merge_results([only])

    assert project.image_count == 1
    assert project.elements == only.elements
    assert project.layout == only.layout
    assert project.wireframe == only.wireframe
    assert project.confidence == 0.7
    assert project.per_image_results == (only,)


def test_remove_duplicates_is_idempotent_and_order_preserving() -> None:
    elements = [_card(0, 0), _card(5, 5), _card(300, 0), _card(305, 0), _card(600, 600)]

    once = remove_duplicate_elements(elements)
    twice = remove_duplicate_elements(once)

    assert once == twice
    assert once == (elements[0], elements[2], elements[4])


def test_duplicate_threshold_is_strict() -> None:
    # 70% overlap exactly is kept; only more than 70% counts as a duplicate.
    elements = [_card(0, 0), _card(30, 0)]
    assert len(remove_duplicate_elements(elements)) == 2
    assert len(remove_duplicate_elements(elements, threshold=0.5)) == 1


def test_best_layout_and_mean_confidence() -> None:
    results = [
        _result(0, confidence=0.2, layout_confidence=0.4),
        _result(1, confidence=0.6, layout_confidence=0.9),
        _result(2, confidence=0.4, layout_confidence=0.9),
    ]

    project = merge_results(results)

    assert project.layout.structure == "layout-1"
    assert project.confidence == pytest.approx(0.4)
    assert project.per_image_results == tuple(results)


def test_wireframes_concatenate_with_offset_relationships() -> None:
    project = merge_results([_result(0, components=2), _result(1, components=3)])

    wireframe = project.wireframe
    assert wireframe.layout == "complex"
    assert len(wireframe.components) == 5
    assert [(rel.source, rel.target) for rel in wireframe.relationships] == [(0, 1), (2, 3)]
    assert wireframe.to_dict()["relationships"][1]["from"] == 2
