"""Wireframe-pattern analysis over a single image's detected regions.

This strategy works the way a designer reads a mockup: classify every region,
then look for the page-level arrangement (sidebar, header, card grid),
navigation strips, groups of related content and the controls a user can
interact with.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from wirelens.vision.geometry import BoundingBox, clamp_unit, union_bounds
from wirelens.vision.models import LayoutHint, RawElement, TextBlock

from .classifier import WireframeElement, WireframeType, to_wireframe_element

logger = logging.getLogger(__name__)

__all__ = [
    "CONTENT_TYPES",
    "INTERACTIVE_TYPES",
    "ContentBlock",
    "InteractiveElement",
    "NavigationGroup",
    "WireframeAnalysis",
    "analyze_wireframe",
    "detect_layout_pattern",
    "detect_navigation",
    "group_content_blocks",
    "identify_interactive_elements",
    "wireframe_confidence",
]

CONTENT_TYPES = frozenset(
    {
        WireframeType.TEXT_HEADING,
        WireframeType.TEXT_CONTENT,
        WireframeType.TEXT_LABEL,
        WireframeType.CARD_CONTAINER,
        WireframeType.CONTENT_SECTION,
    }
)
INTERACTIVE_TYPES = frozenset(
    {WireframeType.BUTTON, WireframeType.PLACEHOLDER_BUTTON, WireframeType.INPUT_FIELD}
)


@dataclass(frozen=True, slots=True)
class NavigationGroup:
    type: str
    position: str
    elements: Tuple[WireframeElement, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "position": self.position,
            "elements": [element.to_dict() for element in self.elements],
        }


@dataclass(frozen=True, slots=True)
class ContentBlock:
    """A content element plus the nearby elements it absorbed."""

    main: WireframeElement
    related: Tuple[WireframeElement, ...]
    bounds: BoundingBox

    @property
    def members(self) -> Tuple[WireframeElement, ...]:
        return (self.main, *self.related)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "content-block",
            "mainElement": self.main.to_dict(),
            "relatedElements": [element.to_dict() for element in self.related],
            "bounds": self.bounds.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class InteractiveElement:
    element: WireframeElement
    interaction: str
    event_handlers: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        data = self.element.to_dict()
        data["interactionType"] = self.interaction
        data["eventHandlers"] = list(self.event_handlers)
        return data


@dataclass(frozen=True, slots=True)
class WireframeAnalysis:
    wireframe_elements: Tuple[WireframeElement, ...] = ()
    layout_structure: str = "unknown"
    navigation_elements: Tuple[NavigationGroup, ...] = ()
    content_blocks: Tuple[ContentBlock, ...] = ()
    interactive_elements: Tuple[InteractiveElement, ...] = ()
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wireframeElements": [element.to_dict() for element in self.wireframe_elements],
            "layoutStructure": self.layout_structure,
            "navigationElements": [group.to_dict() for group in self.navigation_elements],
            "contentBlocks": [block.to_dict() for block in self.content_blocks],
            "interactiveElements": [item.to_dict() for item in self.interactive_elements],
            "confidence": self.confidence,
        }


def detect_layout_pattern(
    elements: Sequence[WireframeElement],
    layout: Optional[LayoutHint] = None,
) -> str:
    """Name the page arrangement; the first matching pattern wins."""

    if not elements:
        return "empty"

    grid = layout.grid if layout is not None else None
    columns = grid.columns if grid is not None else 0
    rows = grid.rows if grid is not None else 0

    has_header = any(
        element.bounds.y < 100 and "heading" in element.wireframe_type.value for element in elements
    )
    has_sidebar = any(
        element.wireframe_type is WireframeType.SIDEBAR or element.bounds.x < 100 for element in elements
    )
    card_count = sum(1 for element in elements if element.wireframe_type is WireframeType.CARD_CONTAINER)

    if has_sidebar and has_header:
        return "dashboard-layout"
    if card_count > 2 and columns > 2:
        return "card-grid-layout"
    if has_header and rows > 2:
        return "content-layout"
    if has_sidebar:
        return "sidebar-layout"
    if columns > 2:
        return "column-layout"
    return "simple-layout"


def detect_navigation(elements: Sequence[WireframeElement]) -> Tuple[NavigationGroup, ...]:
    groups: List[NavigationGroup] = []

    top = tuple(
        element
        for element in elements
        if element.bounds.y < 80
        and (element.wireframe_type is WireframeType.BUTTON or "text" in element.wireframe_type.value)
    )
    if len(top) > 2:
        groups.append(NavigationGroup(type="top-navigation", position="header", elements=top))

    side = tuple(
        element
        for element in elements
        if element.bounds.x < 150 and element.wireframe_type is WireframeType.SIDEBAR
    )
    if side:
        groups.append(NavigationGroup(type="side-navigation", position="sidebar", elements=side))

    return tuple(groups)


def _are_related(first: WireframeElement, second: WireframeElement) -> bool:
    distance = first.bounds.origin_distance(second.bounds)
    max_dimension = max(
        first.bounds.width,
        first.bounds.height,
        second.bounds.width,
        second.bounds.height,
    )
    return distance < max_dimension * 1.5


def group_content_blocks(elements: Sequence[WireframeElement]) -> Tuple[ContentBlock, ...]:
    """Greedily group content elements with their unclaimed neighbours.

    Folds over element positions carrying ``(remaining, blocks)``; an element
    leaves ``remaining`` as soon as a block claims it, so every element ends up
    in at most one block.
    """

    remaining: Tuple[int, ...] = tuple(range(len(elements)))
    blocks: List[ContentBlock] = []

    for index, element in enumerate(elements):
        if index not in remaining or element.wireframe_type not in CONTENT_TYPES:
            continue

        related = tuple(
            other
            for other in remaining
            if other != index and _are_related(element, elements[other])
        )
        claimed = set(related)
        claimed.add(index)
        remaining = tuple(other for other in remaining if other not in claimed)

        members = tuple(elements[other] for other in related)
        bounds = union_bounds([element.bounds, *(m.bounds for m in members)]) if members else element.bounds
        blocks.append(ContentBlock(main=element, related=members, bounds=bounds))

    blocks.sort(key=lambda block: block.bounds.y)
    return tuple(blocks)


def _interaction_for(element: WireframeElement) -> Tuple[str, Tuple[str, ...]]:
    type_name = element.wireframe_type.value
    if "button" in type_name:
        return "click", ("onClick",)
    if element.wireframe_type is WireframeType.INPUT_FIELD:
        return "input", ("onChange", "onFocus", "onBlur")
    return "hover", ()


def identify_interactive_elements(elements: Sequence[WireframeElement]) -> Tuple[InteractiveElement, ...]:
    items: List[InteractiveElement] = []
    for element in elements:
        if element.wireframe_type not in INTERACTIVE_TYPES:
            continue
        interaction, handlers = _interaction_for(element)
        items.append(InteractiveElement(element=element, interaction=interaction, event_handlers=handlers))
    return tuple(items)


def wireframe_confidence(element_count: int, layout_structure: str, interactive_count: int) -> float:
    layout_credit = 0.0 if layout_structure in ("unknown", "empty") else 1.0
    confidence = (
        min(element_count / 10, 1.0) * 0.4
        + layout_credit * 0.3
        + min(interactive_count / 5, 1.0) * 0.3
    )
    return clamp_unit(confidence)


def analyze_wireframe(
    elements: Sequence[RawElement],
    text_blocks: Sequence[TextBlock] = (),
    layout: Optional[LayoutHint] = None,
) -> WireframeAnalysis:
    """Run the wireframe-pattern strategy over one image's raw elements."""

    wireframe_elements = tuple(
        classified
        for index, element in enumerate(elements)
        if (classified := to_wireframe_element(element, text_blocks, source_index=index)) is not None
    )

    layout_structure = detect_layout_pattern(wireframe_elements, layout)
    navigation = detect_navigation(wireframe_elements)
    blocks = group_content_blocks(wireframe_elements)
    interactive = identify_interactive_elements(wireframe_elements)
    confidence = wireframe_confidence(len(wireframe_elements), layout_structure, len(interactive))

    logger.debug(
        f"Wireframe analysis: {len(wireframe_elements)}/{len(elements)} classified, "
        f"layout={layout_structure}, blocks={len(blocks)}, interactive={len(interactive)}"
    )

    return WireframeAnalysis(
        wireframe_elements=wireframe_elements,
        layout_structure=layout_structure,
        navigation_elements=navigation,
        content_blocks=blocks,
        interactive_elements=interactive,
        confidence=confidence,
    )
