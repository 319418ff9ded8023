"""Result structures handed to rendering and code-generation consumers.

Every public entry point returns one of these shapes, including on failure,
so callers never have to null-check.  ``empty_image_result`` and
``empty_project_result`` define the degraded forms.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from wirelens.vision.geometry import BoundingBox
from wirelens.vision.models import GridInfo, PreprocessResult

from .classifier import WireframeElement
from .spatial import SpatialAnalysis
from .wireframe import WireframeAnalysis

__all__ = [
    "ComponentRelationship",
    "EnhancedLayout",
    "GridSystem",
    "PerImageResult",
    "ProjectResult",
    "WireframeComponent",
    "WireframeDocument",
    "empty_image_result",
    "empty_project_result",
]


@dataclass(frozen=True, slots=True)
class WireframeComponent:
    id: str
    type: str
    bounds: BoundingBox
    properties: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "bounds": self.bounds.to_dict(),
            "properties": dict(self.properties),
        }


@dataclass(frozen=True, slots=True)
class ComponentRelationship:
    """Link between two components, by position in the document's component list."""

    source: int
    target: int
    type: str
    strength: float

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.source, "to": self.target, "type": self.type, "strength": round(self.strength, 4)}


@dataclass(frozen=True, slots=True)
class WireframeDocument:
    components: Tuple[WireframeComponent, ...] = ()
    relationships: Tuple[ComponentRelationship, ...] = ()
    layout: str = "unknown"
    grid: Optional[GridInfo] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "components": [component.to_dict() for component in self.components],
            "layout": self.layout,
            "relationships": [relationship.to_dict() for relationship in self.relationships],
        }
        if self.grid is not None:
            data["grid"] = self.grid.to_dict()
        return data


@dataclass(frozen=True, slots=True)
class GridSystem:
    type: str
    columns: Union[int, str]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "columns": self.columns}


@dataclass(frozen=True, slots=True)
class EnhancedLayout:
    """Preprocessor layout hint enriched with what the analysis inferred."""

    structure: str = "unknown"
    pattern: str = "unknown"
    grid: Optional[GridInfo] = None
    confidence: float = 0.0
    semantic_structure: Mapping[str, Tuple[WireframeElement, ...]] = field(default_factory=dict)
    responsive_breakpoints: Tuple[str, ...] = ()
    grid_system: Optional[GridSystem] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "structure": self.structure,
            "pattern": self.pattern,
            "confidence": self.confidence,
        }
        if self.grid is not None:
            data["grid"] = self.grid.to_dict()
        if self.semantic_structure:
            data["semanticStructure"] = {
                region: [element.to_dict() for element in elements]
                for region, elements in self.semantic_structure.items()
            }
        if self.responsive_breakpoints:
            data["responsiveBreakpoints"] = list(self.responsive_breakpoints)
        if self.grid_system is not None:
            data["gridSystem"] = self.grid_system.to_dict()
        return data


@dataclass(frozen=True, slots=True)
class PerImageResult:
    image_index: int
    original_image: Mapping[str, Any]
    cv_analysis: PreprocessResult
    wireframe_analysis: WireframeAnalysis
    spatial_analysis: SpatialAnalysis
    elements: Tuple[WireframeElement, ...]
    layout: EnhancedLayout
    wireframe: WireframeDocument
    confidence: float
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        """True for the degraded result substituted after an analysis failure."""
        return self.error is not None

    def to_dict(self, *, include_image_data: bool = False) -> Dict[str, Any]:
        original = dict(self.original_image)
        if not include_image_data:
            original.pop("data", None)
        return {
            "imageIndex": self.image_index,
            "originalImage": original,
            "cvAnalysis": self.cv_analysis.to_dict(),
            "wireframeAnalysis": self.wireframe_analysis.to_dict(),
            "spatialAnalysis": self.spatial_analysis.to_dict(),
            "elements": [element.to_dict() for element in self.elements],
            "layout": self.layout.to_dict(),
            "wireframe": self.wireframe.to_dict(),
            "confidence": self.confidence,
            **({"error": self.error} if self.error is not None else {}),
        }


@dataclass(frozen=True, slots=True)
class ProjectResult:
    image_count: int = 0
    elements: Tuple[WireframeElement, ...] = ()
    layout: EnhancedLayout = field(default_factory=lambda: EnhancedLayout(grid=GridInfo(columns=1, rows=1)))
    wireframe: WireframeDocument = field(default_factory=WireframeDocument)
    confidence: float = 0.0
    per_image_results: Tuple[PerImageResult, ...] = ()

    def to_dict(self, *, include_image_data: bool = False) -> Dict[str, Any]:
        return {
            "imageCount": self.image_count,
            "elements": [element.to_dict() for element in self.elements],
            "layout": self.layout.to_dict(),
            "wireframe": self.wireframe.to_dict(),
            "confidence": self.confidence,
            "individualResults": [
                result.to_dict(include_image_data=include_image_data) for result in self.per_image_results
            ],
        }


def empty_project_result() -> ProjectResult:
    """Result for an empty batch, or one where nothing could be analysed."""

    return ProjectResult(
        image_count=0,
        elements=(),
        layout=EnhancedLayout(structure="unknown", grid=GridInfo(columns=1, rows=1)),
        wireframe=WireframeDocument(),
        confidence=0.0,
        per_image_results=(),
    )


def empty_image_result(
    index: int,
    image: Optional[Mapping[str, Any]] = None,
    *,
    error: Optional[str] = None,
) -> PerImageResult:
    """Degraded result for an image whose analysis failed."""

    return PerImageResult(
        image_index=index,
        original_image=image if isinstance(image, Mapping) else {},
        cv_analysis=PreprocessResult(),
        wireframe_analysis=WireframeAnalysis(),
        spatial_analysis=SpatialAnalysis(),
        elements=(),
        layout=EnhancedLayout(structure="unknown"),
        wireframe=WireframeDocument(),
        confidence=0.0,
        error=error,
    )
