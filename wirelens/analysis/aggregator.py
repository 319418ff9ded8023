"""Per-image analysis: preprocess once, run both strategies, merge their views."""
from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from wirelens.vision.geometry import clamp_unit
from wirelens.vision.models import LayoutHint, PreprocessResult
from wirelens.vision.preprocessor import (
    PreprocessorPayload,
    VisionPreprocessor,
    decode_image_payload,
    read_image_metadata,
)
from wirelens.workflow.config import Settings, get_settings

from .classifier import WireframeElement, component_properties
from .errors import AggregateFailure, AnalysisError, ClassificationAnomaly, PreprocessorFailure
from .results import (
    ComponentRelationship,
    EnhancedLayout,
    GridSystem,
    PerImageResult,
    WireframeComponent,
    WireframeDocument,
    empty_image_result,
)
from .spatial import SpatialAnalysis, analyze_spatial, build_visual_hierarchy, compute_relationships
from .wireframe import WireframeAnalysis, analyze_wireframe

logger = logging.getLogger(__name__)

__all__ = [
    "DOCUMENT_RELATIONSHIP_THRESHOLD",
    "ImageAggregator",
    "analyze_semantic_structure",
    "build_wireframe_document",
    "detect_grid_system",
    "enhance_layout",
    "find_common_column_positions",
    "infer_responsive_breakpoints",
    "merge_strategy_elements",
    "overall_confidence",
]

DOCUMENT_RELATIONSHIP_THRESHOLD = 0.5
COLUMN_TOLERANCE = 10


def merge_strategy_elements(
    wireframe: WireframeAnalysis,
    spatial: SpatialAnalysis,
    *,
    image_index: Optional[int] = None,
) -> Tuple[WireframeElement, ...]:
    """Combine the semantic types of one strategy with the geometry of the other.

    Each classified element takes the refined bounds computed for the same
    source element, then the merged set is ranked to fill in hierarchy level
    and visual importance.
    """

    precise = {item.source_index: item for item in spatial.precise_elements}
    merged: List[WireframeElement] = []
    for element in wireframe.wireframe_elements:
        refined = precise.get(element.source_index)
        bounds = refined.bounds if refined is not None else element.bounds
        merged.append(replace(element, bounds=bounds, image_index=image_index))

    hierarchy = build_visual_hierarchy(merged)
    ranking: Dict[int, Tuple[int, float]] = {}
    for level, tier in enumerate(hierarchy.tiers, start=1):
        for ranked in tier:
            ranking[ranked.element.source_index] = (level, ranked.importance)

    return tuple(
        replace(
            element,
            hierarchy_level=ranking[element.source_index][0],
            visual_importance=ranking[element.source_index][1],
        )
        for element in merged
    )


def analyze_semantic_structure(elements: Sequence[WireframeElement]) -> Dict[str, Tuple[WireframeElement, ...]]:
    """Split elements into page regions by position; regions may overlap."""

    return {
        "header": tuple(e for e in elements if e.bounds.y < 100),
        "main": tuple(e for e in elements if 100 <= e.bounds.y < 600),
        "footer": tuple(e for e in elements if e.bounds.y >= 600),
        "sidebar": tuple(e for e in elements if e.bounds.x < 200),
    }


def infer_responsive_breakpoints(elements: Sequence[WireframeElement]) -> Tuple[str, ...]:
    max_extent = max((e.bounds.x2 for e in elements), default=0.0)
    if max_extent > 1200:
        return ("xl", "lg", "md", "sm")
    if max_extent > 768:
        return ("lg", "md", "sm")
    return ("md", "sm")


def find_common_column_positions(elements: Sequence[WireframeElement]) -> List[float]:
    """Distinct x-starts shared (within 10px) with at least one other element."""

    positions = sorted(e.bounds.x for e in elements)
    return [
        position
        for position in sorted(set(positions))
        if sum(1 for x in positions if abs(x - position) < COLUMN_TOLERANCE) > 1
    ]


def detect_grid_system(elements: Sequence[WireframeElement]) -> GridSystem:
    columns = find_common_column_positions(elements)
    if len(columns) == 12:
        return GridSystem(type="bootstrap", columns=12)
    if len(columns) >= 6:
        return GridSystem(type="custom", columns=len(columns))
    return GridSystem(type="flexbox", columns="auto")


def enhance_layout(
    layout: LayoutHint,
    pattern: str,
    elements: Sequence[WireframeElement],
) -> EnhancedLayout:
    return EnhancedLayout(
        structure=layout.structure,
        pattern=pattern,
        grid=layout.grid,
        confidence=layout.confidence,
        semantic_structure=analyze_semantic_structure(elements),
        responsive_breakpoints=infer_responsive_breakpoints(elements),
        grid_system=detect_grid_system(elements),
    )


def _component_id() -> str:
    return f"component-{uuid.uuid4().hex[:9]}"


def build_wireframe_document(
    elements: Sequence[WireframeElement],
    layout: LayoutHint,
) -> WireframeDocument:
    """Describe the elements as components plus their strongest links."""

    components = tuple(
        WireframeComponent(
            id=_component_id(),
            type=element.wireframe_type.value,
            bounds=element.bounds,
            properties=component_properties(element.wireframe_type, element.bounds),
        )
        for element in elements
    )
    relationships = tuple(
        ComponentRelationship(
            source=relationship.first,
            target=relationship.second,
            type=relationship.type,
            strength=relationship.strength,
        )
        for relationship in compute_relationships(elements, threshold=DOCUMENT_RELATIONSHIP_THRESHOLD)
    )
    return WireframeDocument(
        components=components,
        relationships=relationships,
        layout=layout.structure,
        grid=layout.grid,
    )


def overall_confidence(
    cv_result: PreprocessResult,
    wireframe: WireframeAnalysis,
    spatial: SpatialAnalysis,
) -> float:
    return clamp_unit(cv_result.confidence * 0.4 + wireframe.confidence * 0.3 + spatial.confidence * 0.3)


class ImageAggregator:
    """Analyse single images against a shared vision preprocessor."""

    def __init__(self, preprocessor: VisionPreprocessor, *, settings: Optional[Settings] = None) -> None:
        self.preprocessor = preprocessor
        self.settings = settings or get_settings()

    async def analyze_image(self, image: Mapping[str, Any], index: int) -> PerImageResult:
        """Analyse one image; failures degrade to the empty image result."""

        try:
            result = await self._analyze(image, index)
        except AnalysisError as exc:
            logger.warning(f"Image {index}: {type(exc).__name__}: {exc}")
            return empty_image_result(index, image, error=f"{type(exc).__name__}: {exc}")
        except Exception as exc:
            failure = AggregateFailure(f"{type(exc).__name__}: {exc}", image_index=index)
            logger.exception(f"Image {index}: unexpected analysis failure")
            return empty_image_result(index, image, error=f"{type(failure).__name__}: {failure}")

        logger.debug(
            f"Image {index}: {len(result.elements)} elements, "
            f"layout={result.layout.pattern}, confidence={result.confidence:.2f}"
        )
        return result

    async def _analyze(self, image: Mapping[str, Any], index: int) -> PerImageResult:
        try:
            image_bytes = decode_image_payload(image)
        except ValueError as exc:
            raise AggregateFailure(f"could not decode image: {exc}", image_index=index) from exc

        payload = await self._preprocess(image_bytes, index)

        try:
            cv_result = PreprocessResult.from_dict(payload)
        except (TypeError, ValueError) as exc:
            raise ClassificationAnomaly(str(exc), image_index=index) from exc

        if not cv_result.metadata.has_dimensions:
            cv_result = self._backfill_metadata(cv_result, image_bytes, index)

        wireframe, spatial = await asyncio.gather(
            asyncio.to_thread(analyze_wireframe, cv_result.elements, cv_result.text_blocks, cv_result.layout),
            asyncio.to_thread(analyze_spatial, cv_result.elements, cv_result.colors, cv_result.metadata),
        )

        elements = merge_strategy_elements(wireframe, spatial, image_index=index)

        return PerImageResult(
            image_index=index,
            original_image=image,
            cv_analysis=cv_result,
            wireframe_analysis=wireframe,
            spatial_analysis=spatial,
            elements=elements,
            layout=enhance_layout(cv_result.layout, wireframe.layout_structure, elements),
            wireframe=build_wireframe_document(elements, cv_result.layout),
            confidence=overall_confidence(cv_result, wireframe, spatial),
        )

    async def _preprocess(self, image_bytes: bytes, index: int) -> PreprocessorPayload:
        timeout = self.settings.preprocess_timeout
        try:
            if timeout is None:
                return await self.preprocessor.preprocess(image_bytes)
            return await asyncio.wait_for(self.preprocessor.preprocess(image_bytes), timeout)
        except asyncio.TimeoutError as exc:
            raise PreprocessorFailure(f"preprocessor timed out after {timeout}s", image_index=index) from exc
        except Exception as exc:
            raise PreprocessorFailure(
                f"preprocessor failed: {exc}",
                image_index=index,
                data={"exception": type(exc).__name__},
            ) from exc

    @staticmethod
    def _backfill_metadata(cv_result: PreprocessResult, image_bytes: bytes, index: int) -> PreprocessResult:
        try:
            metadata = read_image_metadata(image_bytes)
        except ValueError as exc:
            logger.debug(f"Image {index}: metadata read failed ({exc}); keeping preprocessor metadata")
            return cv_result
        return replace(cv_result, metadata=metadata)
