"""Geometry, preprocessor payload models and the preprocessor boundary."""

from .geometry import BoundingBox, clamp_unit, union_bounds
from .models import (
    Color,
    GridInfo,
    ImageMetadata,
    LayoutHint,
    PreprocessResult,
    RawElement,
    TextBlock,
)
from .preprocessor import (
    PreprocessorPayload,
    ReplayPreprocessor,
    VisionPreprocessor,
    decode_image_payload,
    fingerprint,
    load_preprocessor,
    read_image_metadata,
)

__all__ = [
    "BoundingBox",
    "clamp_unit",
    "union_bounds",
    "Color",
    "GridInfo",
    "ImageMetadata",
    "LayoutHint",
    "PreprocessResult",
    "RawElement",
    "TextBlock",
    "PreprocessorPayload",
    "ReplayPreprocessor",
    "VisionPreprocessor",
    "decode_image_payload",
    "fingerprint",
    "load_preprocessor",
    "read_image_metadata",
]
