"""Fold per-image results into one project-level result."""
from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from .classifier import WireframeElement
from .results import (
    ComponentRelationship,
    EnhancedLayout,
    PerImageResult,
    ProjectResult,
    WireframeComponent,
    WireframeDocument,
    empty_project_result,
)

logger = logging.getLogger(__name__)

__all__ = ["DUPLICATE_OVERLAP_THRESHOLD", "merge_results", "remove_duplicate_elements"]

DUPLICATE_OVERLAP_THRESHOLD = 0.7


def remove_duplicate_elements(
    elements: Sequence[WireframeElement],
    threshold: float = DUPLICATE_OVERLAP_THRESHOLD,
) -> Tuple[WireframeElement, ...]:
    """Keep elements in order, dropping any that overlap a kept one by more than ``threshold``."""

    kept: List[WireframeElement] = []
    for element in elements:
        if any(element.bounds.overlap_ratio(other.bounds) > threshold for other in kept):
            continue
        kept.append(element)
    return tuple(kept)


def _best_layout(results: Sequence[PerImageResult]) -> EnhancedLayout:
    best = results[0].layout
    for result in results[1:]:
        if result.layout.confidence > best.confidence:
            best = result.layout
    return best


def _merge_wireframes(results: Sequence[PerImageResult]) -> WireframeDocument:
    components: List[WireframeComponent] = []
    relationships: List[ComponentRelationship] = []
    for result in results:
        offset = len(components)
        components.extend(result.wireframe.components)
        relationships.extend(
            ComponentRelationship(
                source=relationship.source + offset,
                target=relationship.target + offset,
                type=relationship.type,
                strength=relationship.strength,
            )
            for relationship in result.wireframe.relationships
        )
    return WireframeDocument(components=tuple(components), relationships=tuple(relationships), layout="complex")


def merge_results(results: Sequence[PerImageResult]) -> ProjectResult:
    """Combine per-image results, in image order, into a ``ProjectResult``."""

    if not results:
        return empty_project_result()

    if len(results) == 1:
        only = results[0]
        return ProjectResult(
            image_count=1,
            elements=only.elements,
            layout=only.layout,
            wireframe=only.wireframe,
            confidence=only.confidence,
            per_image_results=(only,),
        )

    all_elements = [element for result in results for element in result.elements]
    elements = remove_duplicate_elements(all_elements)
    logger.debug(
        f"Merged {len(results)} images: {len(all_elements)} elements, "
        f"{len(all_elements) - len(elements)} duplicates removed"
    )

    return ProjectResult(
        image_count=len(results),
        elements=elements,
        layout=_best_layout(results),
        wireframe=_merge_wireframes(results),
        confidence=sum(result.confidence for result in results) / len(results),
        per_image_results=tuple(results),
    )
