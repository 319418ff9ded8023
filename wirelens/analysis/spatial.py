"""Spatial and hierarchy analysis over a single image's detected regions.

Where the wireframe strategy reasons about semantic roles, this one reasons
about geometry: precise positions, how close elements sit to each other,
which ones dominate visually, what the palette suggests and which responsive
breakpoints the canvas width implies.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Mapping, Protocol, Sequence, Tuple, TypeVar

from wirelens.vision.geometry import BoundingBox, clamp_unit
from wirelens.vision.models import Color, ImageMetadata, RawElement

from .classifier import importance_weight

logger = logging.getLogger(__name__)

__all__ = [
    "GRID_SIZES",
    "RELATIONSHIP_THRESHOLD",
    "Breakpoint",
    "ColorSemantics",
    "PreciseElement",
    "RankedElement",
    "SpatialAnalysis",
    "SpatialRelationship",
    "VisualHierarchy",
    "analyze_spatial",
    "build_visual_hierarchy",
    "calculate_relationship",
    "compute_relationships",
    "detect_responsive_breakpoints",
    "find_color_usage",
    "infer_color_semantics",
    "map_colors",
    "refine_element",
    "spatial_confidence",
    "visual_importance",
]

GRID_SIZES = (8, 12, 16, 24)
RELATIONSHIP_THRESHOLD = 0.3
DEFAULT_MARGIN = 8.0


class Placed(Protocol):
    @property
    def bounds(self) -> BoundingBox: ...

    @property
    def area(self) -> float: ...


T = TypeVar("T", bound=Placed)


@dataclass(frozen=True, slots=True)
class PreciseElement:
    """A raw element with refined geometry."""

    element: RawElement
    bounds: BoundingBox
    grid_alignment: Mapping[str, Mapping[str, bool]]
    margin: float
    padding: float
    source_index: int

    @property
    def area(self) -> float:
        return self.element.area

    @property
    def kind(self) -> str:
        return self.element.kind

    def to_dict(self) -> Dict[str, Any]:
        data = self.element.to_dict()
        data["precisePosition"] = self.bounds.to_dict()
        data["subPixelAlignment"] = {grid: dict(flags) for grid, flags in self.grid_alignment.items()}
        data["marginEstimate"] = dict.fromkeys(("top", "right", "bottom", "left"), self.margin)
        data["paddingEstimate"] = dict.fromkeys(("top", "right", "bottom", "left"), self.padding)
        return data


@dataclass(frozen=True, slots=True)
class SpatialRelationship:
    """Relationship between two elements, referenced by position (first < second)."""

    first: int
    second: int
    type: str
    distance: float
    strength: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "element1": self.first,
            "element2": self.second,
            "type": self.type,
            "distance": round(self.distance, 3),
            "strength": round(self.strength, 4),
        }


@dataclass(frozen=True)
class RankedElement(Generic[T]):
    element: T
    importance: float


@dataclass(frozen=True)
class VisualHierarchy(Generic[T]):
    """Elements split into three importance tiers."""

    primary: Tuple[RankedElement[T], ...] = ()
    secondary: Tuple[RankedElement[T], ...] = ()
    tertiary: Tuple[RankedElement[T], ...] = ()

    @property
    def tiers(self) -> Tuple[Tuple[RankedElement[T], ...], ...]:
        return (self.primary, self.secondary, self.tertiary)

    @property
    def levels(self) -> List[Tuple[int, Tuple[RankedElement[T], ...]]]:
        """Non-empty tiers with their 1-based level number."""
        return [(level, tier) for level, tier in enumerate(self.tiers, start=1) if tier]

    def __len__(self) -> int:
        return sum(len(tier) for tier in self.tiers)

    def to_dict(self) -> Dict[str, Any]:
        def _dump(tier: Tuple[RankedElement[T], ...]) -> List[Dict[str, Any]]:
            dumped = []
            for ranked in tier:
                data = ranked.element.to_dict()  # type: ignore[attr-defined]
                data["visualImportance"] = round(ranked.importance, 4)
                dumped.append(data)
            return dumped

        return {
            "levels": [{"level": level, "count": len(tier)} for level, tier in self.levels],
            "primaryElements": _dump(self.primary),
            "secondaryElements": _dump(self.secondary),
            "tertiaryElements": _dump(self.tertiary),
        }


@dataclass(frozen=True, slots=True)
class ColorSemantics:
    semantic: str
    role: str
    usage: Tuple[str, ...]
    frequency: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "semantic": self.semantic,
            "role": self.role,
            "usage": list(self.usage),
            "frequency": self.frequency,
        }


@dataclass(frozen=True, slots=True)
class Breakpoint:
    name: str
    width: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "width": self.width}


@dataclass(frozen=True, slots=True)
class SpatialAnalysis:
    precise_elements: Tuple[PreciseElement, ...] = ()
    spatial_relationships: Tuple[SpatialRelationship, ...] = ()
    visual_hierarchy: VisualHierarchy[PreciseElement] = VisualHierarchy()
    color_mapping: Mapping[str, ColorSemantics] = field(default_factory=dict)
    responsive_breakpoints: Tuple[Breakpoint, ...] = ()
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "preciseElements": [element.to_dict() for element in self.precise_elements],
            "spatialRelationships": [rel.to_dict() for rel in self.spatial_relationships],
            "visualHierarchy": self.visual_hierarchy.to_dict(),
            "colorMapping": {hex_value: sem.to_dict() for hex_value, sem in self.color_mapping.items()},
            "responsiveBreakpoints": [bp.to_dict() for bp in self.responsive_breakpoints],
            "confidence": self.confidence,
        }


# ---------------------------------------------------------------------------
# Precise positioning
# ---------------------------------------------------------------------------
def _grid_alignment(bounds: BoundingBox) -> Dict[str, Dict[str, bool]]:
    return {
        f"grid-{grid}": {
            "x": bounds.x % grid == 0,
            "y": bounds.y % grid == 0,
            "width": bounds.width % grid == 0,
            "height": bounds.height % grid == 0,
        }
        for grid in GRID_SIZES
    }


def refine_element(element: RawElement, source_index: int = -1) -> PreciseElement:
    bounds = element.bounds
    return PreciseElement(
        element=element,
        bounds=bounds.rounded(1),
        grid_alignment=_grid_alignment(bounds),
        margin=DEFAULT_MARGIN,
        padding=max(4.0, min(bounds.width, bounds.height) * 0.05),
        source_index=source_index,
    )


# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------
def calculate_relationship(first: Placed, second: Placed, *, indices: Tuple[int, int] = (0, 1)) -> SpatialRelationship:
    distance = first.bounds.origin_distance(second.bounds)
    average_area = (first.area + second.area) / 2

    relationship_type = "distant"
    strength = 0.0
    if average_area > 0:
        normalized = distance / math.sqrt(average_area)
        if normalized < 2:
            relationship_type = "adjacent"
            strength = 1 - normalized / 2
        elif normalized < 5:
            relationship_type = "nearby"
            strength = 1 - normalized / 5

    return SpatialRelationship(
        first=indices[0],
        second=indices[1],
        type=relationship_type,
        distance=distance,
        strength=strength,
    )


def compute_relationships(
    elements: Sequence[Placed],
    *,
    threshold: float = RELATIONSHIP_THRESHOLD,
) -> Tuple[SpatialRelationship, ...]:
    """Relationships stronger than ``threshold``, strongest first.

    Each unordered pair is evaluated exactly once.
    """

    relationships: List[SpatialRelationship] = []
    for i in range(len(elements)):
        for j in range(i + 1, len(elements)):
            relationship = calculate_relationship(elements[i], elements[j], indices=(i, j))
            if relationship.strength > threshold:
                relationships.append(relationship)

    relationships.sort(key=lambda rel: rel.strength, reverse=True)
    return tuple(relationships)


# ---------------------------------------------------------------------------
# Visual hierarchy
# ---------------------------------------------------------------------------
def visual_importance(bounds: BoundingBox, area: float, type_name: Any) -> float:
    importance = math.log(max(area, 1.0)) * 0.3
    importance += ((1000 - bounds.x - bounds.y) / 1000) * 0.2
    importance += importance_weight(type_name) * 0.5
    return importance


def _type_name(element: Any) -> Any:
    wireframe_type = getattr(element, "wireframe_type", None)
    if wireframe_type is not None:
        return wireframe_type
    return getattr(element, "kind", None)


def build_visual_hierarchy(
    elements: Sequence[T],
    *,
    type_of: Callable[[T], Any] = _type_name,
) -> VisualHierarchy[T]:
    """Rank ``elements`` by visual importance and split them 20/40/40.

    Tier boundaries use ceiling rounding, so the primary tier is never empty
    for a non-empty input and the three tiers always partition it.
    """

    scored = [
        RankedElement(element=element, importance=visual_importance(element.bounds, element.area, type_of(element)))
        for element in elements
    ]
    scored.sort(key=lambda ranked: ranked.importance, reverse=True)

    total = len(scored)
    primary_end = math.ceil(total * 0.2)
    secondary_end = math.ceil(total * 0.6)

    return VisualHierarchy(
        primary=tuple(scored[:primary_end]),
        secondary=tuple(scored[primary_end:secondary_end]),
        tertiary=tuple(scored[secondary_end:]),
    )


# ---------------------------------------------------------------------------
# Colours
# ---------------------------------------------------------------------------
def infer_color_semantics(color: Color) -> Tuple[str, str]:
    r, g, b = color.r, color.g, color.b

    if r > 200 and g < 100 and b < 100:
        return "error", "alert"
    if r < 100 and g > 200 and b < 100:
        return "success", "confirmation"
    if r < 100 and g < 100 and b > 200:
        return "info", "navigation"
    if r > 240 and g > 240 and b > 240:
        return "background", "neutral"
    if r < 50 and g < 50 and b < 50:
        return "text", "content"
    return "accent", "decoration"


def find_color_usage(color: Color) -> Tuple[str, ...]:
    """Usage labels from frequency alone; frequencies in [0.1, 0.3] get none."""

    usage: List[str] = []
    if color.frequency > 0.3:
        usage.append("background")
    if color.frequency < 0.1:
        usage.append("accent")
    return tuple(usage)


def map_colors(colors: Sequence[Color]) -> Dict[str, ColorSemantics]:
    mapping: Dict[str, ColorSemantics] = {}
    for color in colors:
        semantic, role = infer_color_semantics(color)
        mapping[color.hex] = ColorSemantics(
            semantic=semantic,
            role=role,
            usage=find_color_usage(color),
            frequency=color.frequency,
        )
    return mapping


# ---------------------------------------------------------------------------
# Breakpoints
# ---------------------------------------------------------------------------
def detect_responsive_breakpoints(metadata: ImageMetadata) -> Tuple[Breakpoint, ...]:
    breakpoints: List[Breakpoint] = []
    width = metadata.width

    if width >= 1200:
        breakpoints.append(Breakpoint("xl", 1200))
    if width >= 992:
        breakpoints.append(Breakpoint("lg", 992))
    if width >= 768:
        breakpoints.append(Breakpoint("md", 768))
    breakpoints.append(Breakpoint("sm", 576))

    return tuple(breakpoints)


def spatial_confidence(
    precise_count: int,
    relationship_count: int,
    color_count: int,
    hierarchy: VisualHierarchy[Any],
) -> float:
    confidence = (
        min(precise_count / 10, 1.0) * 0.3
        + min(relationship_count / 20, 1.0) * 0.3
        + min(color_count / 8, 1.0) * 0.2
        + (1.0 if hierarchy.levels else 0.0) * 0.2
    )
    return clamp_unit(confidence)


def analyze_spatial(
    elements: Sequence[RawElement],
    colors: Sequence[Color] = (),
    metadata: ImageMetadata = ImageMetadata(),
) -> SpatialAnalysis:
    """Run the spatial/hierarchy strategy over one image's raw elements."""

    precise = tuple(refine_element(element, index) for index, element in enumerate(elements))
    relationships = compute_relationships(precise)
    hierarchy = build_visual_hierarchy(precise)
    color_mapping = map_colors(colors)
    breakpoints = detect_responsive_breakpoints(metadata)
    confidence = spatial_confidence(len(precise), len(relationships), len(color_mapping), hierarchy)

    logger.debug(
        f"Spatial analysis: {len(precise)} elements, {len(relationships)} relationships, "
        f"{len(color_mapping)} colours, breakpoints={[bp.name for bp in breakpoints]}"
    )

    return SpatialAnalysis(
        precise_elements=precise,
        spatial_relationships=relationships,
        visual_hierarchy=hierarchy,
        color_mapping=color_mapping,
        responsive_breakpoints=breakpoints,
        confidence=confidence,
    )
