"""Map raw detected regions onto semantic wireframe element types."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from wirelens.vision.geometry import BoundingBox
from wirelens.vision.models import RawElement, TextBlock

__all__ = [
    "TEXT_OVERLAP_THRESHOLD",
    "TypeProfile",
    "WireframeElement",
    "WireframeType",
    "base_priority",
    "calculate_priority",
    "classify",
    "component_properties",
    "contains_text",
    "importance_weight",
    "profile_for",
    "style_hints",
    "tag_for",
    "to_wireframe_element",
]

TEXT_OVERLAP_THRESHOLD = 0.3


class WireframeType(str, enum.Enum):
    BUTTON = "button"
    PLACEHOLDER_BUTTON = "placeholder-button"
    INPUT_FIELD = "input-field"
    TEXT_LABEL = "text-label"
    TEXT_HEADING = "text-heading"
    TEXT_CONTENT = "text-content"
    CONTENT_SECTION = "content-section"
    HORIZONTAL_CONTAINER = "horizontal-container"
    VERTICAL_CONTAINER = "vertical-container"
    CARD_CONTAINER = "card-container"
    ICON_PLACEHOLDER = "icon-placeholder"
    AVATAR_PLACEHOLDER = "avatar-placeholder"
    DIVIDER = "divider"
    SIDEBAR = "sidebar"

    def __str__(self) -> str:
        return self.value


PropertyHandler = Callable[[BoundingBox], Dict[str, Any]]


def _no_properties(bounds: BoundingBox) -> Dict[str, Any]:
    return {}


def _button_properties(bounds: BoundingBox) -> Dict[str, Any]:
    return {"variant": "primary", "size": "large" if bounds.width > 100 else "medium"}


def _input_properties(bounds: BoundingBox) -> Dict[str, Any]:
    return {"type": "text", "placeholder": "Enter text..."}


def _text_properties(bounds: BoundingBox) -> Dict[str, Any]:
    return {"content": "Sample text content"}


@dataclass(frozen=True, slots=True)
class TypeProfile:
    """Per-type rendering policy: markup tag, ordering and document defaults."""

    tag: str
    priority: float
    importance: float
    properties: PropertyHandler = _no_properties


DEFAULT_TAG = "div"
DEFAULT_PRIORITY = 5.0
DEFAULT_IMPORTANCE = 0.3

# One row per wireframe type; adding a type means one row here plus, when it
# needs document defaults, one property handler above.
_PROFILES: Dict[WireframeType, TypeProfile] = {
    WireframeType.BUTTON: TypeProfile("button", 9, 0.7, _button_properties),
    WireframeType.PLACEHOLDER_BUTTON: TypeProfile("button", DEFAULT_PRIORITY, DEFAULT_IMPORTANCE),
    WireframeType.INPUT_FIELD: TypeProfile("input", 8, 0.5, _input_properties),
    WireframeType.TEXT_LABEL: TypeProfile("label", 7, DEFAULT_IMPORTANCE, _text_properties),
    WireframeType.TEXT_HEADING: TypeProfile("h2", 10, 0.8, _text_properties),
    WireframeType.TEXT_CONTENT: TypeProfile("p", 6, 0.4, _text_properties),
    WireframeType.CONTENT_SECTION: TypeProfile("section", 5, 0.6),
    WireframeType.HORIZONTAL_CONTAINER: TypeProfile("div", 3, DEFAULT_IMPORTANCE),
    WireframeType.VERTICAL_CONTAINER: TypeProfile("div", 3, DEFAULT_IMPORTANCE),
    WireframeType.CARD_CONTAINER: TypeProfile("div", 4, DEFAULT_IMPORTANCE),
    WireframeType.ICON_PLACEHOLDER: TypeProfile("i", 2, DEFAULT_IMPORTANCE),
    WireframeType.AVATAR_PLACEHOLDER: TypeProfile("img", DEFAULT_PRIORITY, DEFAULT_IMPORTANCE),
    WireframeType.DIVIDER: TypeProfile("hr", 1, DEFAULT_IMPORTANCE),
    WireframeType.SIDEBAR: TypeProfile("aside", DEFAULT_PRIORITY, DEFAULT_IMPORTANCE),
}

_FALLBACK_PROFILE = TypeProfile(DEFAULT_TAG, DEFAULT_PRIORITY, DEFAULT_IMPORTANCE)


def profile_for(wireframe_type: Any) -> TypeProfile:
    """Return the profile for a type or type name; unknown names get defaults."""

    try:
        return _PROFILES[WireframeType(wireframe_type)]
    except ValueError:
        return _FALLBACK_PROFILE


def tag_for(wireframe_type: Any) -> str:
    return profile_for(wireframe_type).tag


def base_priority(wireframe_type: Any) -> float:
    return float(profile_for(wireframe_type).priority)


def importance_weight(wireframe_type: Any) -> float:
    return profile_for(wireframe_type).importance


def component_properties(wireframe_type: Any, bounds: BoundingBox) -> Dict[str, Any]:
    return profile_for(wireframe_type).properties(bounds)


@dataclass(frozen=True, slots=True)
class WireframeElement:
    """A raw element together with the semantic role assigned to it."""

    kind: str
    bounds: BoundingBox
    wireframe_type: WireframeType
    tag: str
    style_hints: Tuple[str, ...]
    priority: float
    area: float = 0.0
    confidence: float = 0.0
    properties: Mapping[str, Any] = field(default_factory=dict)
    source_index: int = -1
    hierarchy_level: Optional[int] = None
    visual_importance: Optional[float] = None
    image_index: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.kind,
            "wireframeType": self.wireframe_type.value,
            "htmlTag": self.tag,
            "cssClasses": list(self.style_hints),
            "priority": round(self.priority, 4),
            "bounds": self.bounds.to_dict(),
            "area": self.area,
            "confidence": self.confidence,
            "properties": dict(self.properties),
            "sourceIndex": self.source_index,
        }
        if self.hierarchy_level is not None:
            data["hierarchyLevel"] = self.hierarchy_level
        if self.visual_importance is not None:
            data["visualImportance"] = round(self.visual_importance, 4)
        if self.image_index is not None:
            data["imageIndex"] = self.image_index
        return data


def contains_text(bounds: BoundingBox, text_blocks: Iterable[TextBlock]) -> bool:
    """True when ``bounds`` overlaps some text block by at least 30%."""

    return any(bounds.overlap_ratio(block.bounds) >= TEXT_OVERLAP_THRESHOLD for block in text_blocks)


def classify(element: RawElement, text_blocks: Sequence[TextBlock] = ()) -> Optional[WireframeType]:
    """Assign a wireframe type to ``element``; ``None`` when nothing fits.

    Rules are evaluated in order and the first match wins.
    """

    kind = element.kind
    bounds = element.bounds
    width, height = bounds.width, bounds.height
    aspect = bounds.aspect_ratio

    if kind == "button" or (1.5 < aspect < 6 and height < 60):
        if contains_text(bounds, text_blocks):
            return WireframeType.BUTTON
        return WireframeType.PLACEHOLDER_BUTTON

    if kind == "input-field" or (aspect > 2 and height < 50 and element.properties.get("isEmpty")):
        return WireframeType.INPUT_FIELD

    if kind in ("text-region", "text-block"):
        if height < 30:
            return WireframeType.TEXT_LABEL
        if height > 100:
            return WireframeType.TEXT_CONTENT
        return WireframeType.TEXT_HEADING

    if kind == "container":
        if width > 300 and height > 200:
            return WireframeType.CONTENT_SECTION
        if aspect > 2:
            return WireframeType.HORIZONTAL_CONTAINER
        if aspect < 0.5:
            return WireframeType.VERTICAL_CONTAINER
        return WireframeType.CARD_CONTAINER

    if kind == "circular-element":
        return WireframeType.ICON_PLACEHOLDER if width < 50 else WireframeType.AVATAR_PLACEHOLDER

    if kind == "horizontal-separator":
        return WireframeType.DIVIDER
    if kind == "vertical-separator":
        return WireframeType.SIDEBAR

    return None


def style_hints(wireframe_type: WireframeType, bounds: BoundingBox) -> Tuple[str, ...]:
    hints = [f"ui-{wireframe_type.value}"]

    if bounds.width > 400:
        hints.append("large-width")
    if bounds.height > 200:
        hints.append("large-height")
    if bounds.width < 100:
        hints.append("small-width")
    if bounds.height < 50:
        hints.append("small-height")

    if bounds.x < 50:
        hints.append("left-aligned")
    if bounds.y < 50:
        hints.append("top-aligned")

    return tuple(hints)


def calculate_priority(element: RawElement, wireframe_type: WireframeType) -> float:
    """Render priority; larger and more confident elements get a small boost."""

    size_factor = (element.area / 10000) * 0.1
    confidence_factor = element.confidence * 0.2
    return min(10.0, base_priority(wireframe_type) + size_factor + confidence_factor)


def to_wireframe_element(
    element: RawElement,
    text_blocks: Sequence[TextBlock] = (),
    *,
    source_index: int = -1,
) -> Optional[WireframeElement]:
    """Classify ``element`` and attach tag, style hints and priority."""

    wireframe_type = classify(element, text_blocks)
    if wireframe_type is None:
        return None

    return WireframeElement(
        kind=element.kind,
        bounds=element.bounds,
        wireframe_type=wireframe_type,
        tag=tag_for(wireframe_type),
        style_hints=style_hints(wireframe_type, element.bounds),
        priority=calculate_priority(element, wireframe_type),
        area=element.area,
        confidence=element.confidence,
        properties=dict(element.properties),
        source_index=source_index,
    )
