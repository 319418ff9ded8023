"""Typed view of the payload produced by a vision preprocessor.

Preprocessors hand back loosely typed mappings (usually decoded JSON).  The
classes below normalise that payload once, at the boundary, so the analysis
stages can rely on concrete attributes instead of defensive ``dict.get``
chains.  Every ``from_dict`` raises :class:`ValueError` on malformed input.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .geometry import BoundingBox, clamp_unit

logger = logging.getLogger(__name__)

__all__ = [
    "Color",
    "GridInfo",
    "ImageMetadata",
    "LayoutHint",
    "PreprocessResult",
    "RawElement",
    "TextBlock",
]


def _unit_confidence(value: Any) -> float:
    confidence = float(value or 0.0)
    # detectors and OCR engines commonly report confidence on a 0-100 scale
    if confidence > 1.0:
        confidence /= 100.0
    return clamp_unit(confidence)


def _coerce_bounds(payload: Mapping[str, Any], *keys: str) -> BoundingBox:
    for key in keys:
        data = payload.get(key)
        if data:
            if isinstance(data, BoundingBox):
                return data
            if not isinstance(data, Mapping):
                raise ValueError(f"{key!r} must be a mapping, got {type(data).__name__}")
            return BoundingBox.from_mapping(data)
    raise ValueError(f"payload must include one of {', '.join(repr(k) for k in keys)}")


@dataclass(frozen=True, slots=True)
class RawElement:
    """Unclassified region reported by the preprocessor."""

    kind: str
    bounds: BoundingBox
    properties: Mapping[str, Any] = field(default_factory=dict)
    area: float = 0.0
    confidence: float = 0.0

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RawElement":
        bounds = _coerce_bounds(payload, "bounds", "bbox")
        kind = payload.get("type", payload.get("kind")) or "unclassified"

        area = payload.get("area")
        area = bounds.area if area is None else float(area)
        if area < 0:
            raise ValueError("element area must be non-negative")

        try:
            confidence = _unit_confidence(payload.get("confidence"))
        except (TypeError, ValueError) as exc:
            raise ValueError("confidence must be numeric") from exc

        return cls(
            kind=str(kind),
            bounds=bounds,
            properties=dict(payload.get("properties") or {}),
            area=area,
            confidence=confidence,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "bounds": self.bounds.to_dict(),
            "properties": dict(self.properties),
            "area": self.area,
            "confidence": self.confidence,
        }


@dataclass(frozen=True, slots=True)
class TextBlock:
    """Recognised text region."""

    bounds: BoundingBox
    text: str = ""
    confidence: float = 0.0

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TextBlock":
        return cls(
            bounds=_coerce_bounds(payload, "bbox", "bounds"),
            text=str(payload.get("text") or ""),
            confidence=_unit_confidence(payload.get("confidence")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"bounds": self.bounds.to_dict(), "text": self.text, "confidence": self.confidence}


@dataclass(frozen=True, slots=True)
class Color:
    """Dominant colour with its share of the image."""

    r: int
    g: int
    b: int
    hex: str
    frequency: float = 0.0

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Color":
        try:
            r, g, b = (int(payload[channel]) for channel in ("r", "g", "b"))
        except KeyError as exc:
            raise ValueError(f"colour is missing channel {exc.args[0]!r}") from exc
        hex_value = payload.get("hex") or f"#{r:02x}{g:02x}{b:02x}"
        return cls(
            r=r,
            g=g,
            b=b,
            hex=str(hex_value).lower(),
            frequency=clamp_unit(float(payload.get("frequency") or 0.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"r": self.r, "g": self.g, "b": self.b, "hex": self.hex, "frequency": self.frequency}


@dataclass(frozen=True, slots=True)
class GridInfo:
    columns: int = 1
    rows: int = 1

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> Optional["GridInfo"]:
        if not payload:
            return None
        return cls(columns=int(payload.get("columns") or 1), rows=int(payload.get("rows") or 1))

    def to_dict(self) -> Dict[str, int]:
        return {"columns": self.columns, "rows": self.rows}


@dataclass(frozen=True, slots=True)
class LayoutHint:
    """Coarse layout guess made by the preprocessor itself."""

    structure: str = "unknown"
    grid: Optional[GridInfo] = None
    confidence: float = 0.0

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "LayoutHint":
        if not payload:
            return cls()
        return cls(
            structure=str(payload.get("structure") or "unknown"),
            grid=GridInfo.from_dict(payload.get("grid")),
            confidence=clamp_unit(float(payload.get("confidence") or 0.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"structure": self.structure, "confidence": self.confidence}
        if self.grid is not None:
            data["grid"] = self.grid.to_dict()
        return data


@dataclass(frozen=True, slots=True)
class ImageMetadata:
    width: int = 0
    height: int = 0
    format: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "ImageMetadata":
        if not payload:
            return cls()
        return cls(
            width=int(payload.get("width") or 0),
            height=int(payload.get("height") or 0),
            format=payload.get("format"),
        )

    @property
    def has_dimensions(self) -> bool:
        return self.width > 0 and self.height > 0

    def to_dict(self) -> Dict[str, Any]:
        return {"width": self.width, "height": self.height, "format": self.format}


@dataclass(frozen=True, slots=True)
class PreprocessResult:
    """Everything a preprocessor reports for a single image."""

    elements: Tuple[RawElement, ...] = ()
    text_blocks: Tuple[TextBlock, ...] = ()
    colors: Tuple[Color, ...] = ()
    layout: LayoutHint = field(default_factory=LayoutHint)
    metadata: ImageMetadata = field(default_factory=ImageMetadata)
    confidence: float = 0.0

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "PreprocessResult":
        """Normalise a raw preprocessor payload.

        ``text`` may be either ``{"blocks": [...]}`` or a bare list of
        blocks.  Blocks without a bounding box carry no position and are
        skipped, matching how OCR engines report page-level text.  Malformed
        text blocks and colours are dropped as well; a malformed element
        raises :class:`ValueError`.
        """

        if isinstance(payload, PreprocessResult):
            return payload
        if not isinstance(payload, Mapping):
            raise ValueError(f"preprocessor returned {type(payload).__name__}, expected a mapping")

        elements: List[RawElement] = []
        for index, item in enumerate(payload.get("elements") or []):
            if not isinstance(item, Mapping):
                raise ValueError(f"element {index} is malformed: expected a mapping")
            try:
                elements.append(RawElement.from_dict(item))
            except (TypeError, ValueError) as exc:
                raise ValueError(f"element {index} is malformed: {exc}") from exc

        text = payload.get("text") or {}
        if isinstance(text, Mapping):
            raw_blocks: Sequence[Any] = text.get("blocks") or []
        else:
            raw_blocks = text
        blocks: List[TextBlock] = []
        for index, block in enumerate(raw_blocks):
            if not isinstance(block, Mapping) or not (block.get("bbox") or block.get("bounds")):
                continue
            try:
                blocks.append(TextBlock.from_dict(block))
            except (TypeError, ValueError) as exc:
                logger.debug(f"Skipping malformed text block {index}: {exc}")

        colors: List[Color] = []
        for index, color in enumerate(payload.get("colors") or []):
            try:
                colors.append(Color.from_dict(color))
            except (TypeError, ValueError) as exc:
                logger.debug(f"Skipping malformed colour {index}: {exc}")

        return cls(
            elements=tuple(elements),
            text_blocks=tuple(blocks),
            colors=tuple(colors),
            layout=LayoutHint.from_dict(payload.get("layout")),
            metadata=ImageMetadata.from_dict(payload.get("metadata")),
            confidence=clamp_unit(float(payload.get("confidence") or 0.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "elements": [element.to_dict() for element in self.elements],
            "text": {"blocks": [block.to_dict() for block in self.text_blocks]},
            "colors": [color.to_dict() for color in self.colors],
            "layout": self.layout.to_dict(),
            "metadata": self.metadata.to_dict(),
            "confidence": self.confidence,
        }
