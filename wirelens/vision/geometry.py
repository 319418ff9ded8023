"""Rectangle helpers shared by the classification and merge stages."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Pixel-space rectangle anchored at its top-left corner."""

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("bounding box dimensions must be non-negative")

    @property
    def x2(self) -> float:
        """Right edge coordinate."""
        return self.x + self.width

    @property
    def y2(self) -> float:
        """Bottom edge coordinate."""
        return self.y + self.height

    @property
    def area(self) -> float:
        """Box area."""
        return self.width * self.height

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height; ``inf`` for zero-height boxes with a width."""
        if self.height:
            return self.width / self.height
        return math.inf if self.width else 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BoundingBox":
        """Construct a bounding box from a mapping of coordinates.

        Accepts ``x/y`` or ``left/top`` with ``width/height`` or
        ``right/bottom``, as well as the OCR corner form ``x0/y0/x1/y1``.
        """

        if not data:
            raise ValueError("bounding box mapping cannot be empty")

        if "x0" in data and "x1" in data:
            left = float(data["x0"])
            top = float(data.get("y0", 0.0))
            right = data.get("x1")
            bottom = data.get("y1")
            width = None
            height = None
        else:
            left = float(data.get("x", data.get("left", 0.0)))
            top = float(data.get("y", data.get("top", 0.0)))
            width = data.get("width")
            height = data.get("height")
            right = data.get("right")
            bottom = data.get("bottom")

        if width is None and right is not None:
            width = float(right) - left
        if height is None and bottom is not None:
            height = float(bottom) - top

        if width is None or height is None:
            raise ValueError("bounding box mapping must include width/height or right/bottom")

        return cls(x=left, y=top, width=float(width), height=float(height))

    def overlap_ratio(self, other: "BoundingBox") -> float:
        """Intersection area divided by the smaller of the two areas.

        This measures how much of the smaller box is covered, so a small label
        sitting fully inside a large button scores 1.0 where IoU would score
        far less.  The result does not depend on argument order.  Callers rely
        on it for text containment and duplicate detection alike.
        """

        left = max(self.x, other.x)
        top = max(self.y, other.y)
        right = min(self.x2, other.x2)
        bottom = min(self.y2, other.y2)

        if right <= left or bottom <= top:
            return 0.0

        intersection = (right - left) * (bottom - top)
        smaller = min(self.area, other.area)
        if smaller <= 0:
            return 0.0
        return min(1.0, intersection / smaller)

    def origin_distance(self, other: "BoundingBox") -> float:
        """Euclidean distance between the two top-left corners."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def rounded(self, digits: int = 1) -> "BoundingBox":
        """Return a copy with every coordinate rounded to ``digits`` decimals."""

        return BoundingBox(
            x=round(self.x, digits),
            y=round(self.y, digits),
            width=round(self.width, digits),
            height=round(self.height, digits),
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


def union_bounds(boxes: Iterable[BoundingBox]) -> BoundingBox:
    """Smallest box enclosing every box in ``boxes``."""

    items = list(boxes)
    if not items:
        raise ValueError("union_bounds requires at least one box")

    left = min(box.x for box in items)
    top = min(box.y for box in items)
    right = max(box.x2 for box in items)
    bottom = max(box.y2 for box in items)
    return BoundingBox(x=left, y=top, width=right - left, height=bottom - top)


def clamp_unit(value: float) -> float:
    """Clamp ``value`` into ``[0, 1]``; NaN collapses to 0."""

    if value != value:  # NaN
        return 0.0
    return max(0.0, min(1.0, float(value)))
