"""Boundary with the upstream vision preprocessor.

The preprocessor (region detection, OCR, palette extraction) is an external
collaborator.  This module defines the protocol it must satisfy plus the
helpers the pipeline needs around it: decoding base64 image payloads, reading
image dimensions with Pillow, and a replay implementation that serves
pre-computed payloads.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import importlib
import inspect
import logging
from io import BytesIO
from typing import Any, Dict, Mapping, Optional, Protocol, Union, runtime_checkable

from PIL import Image, UnidentifiedImageError

from .models import ImageMetadata, PreprocessResult

logger = logging.getLogger(__name__)

__all__ = [
    "PreprocessorPayload",
    "ReplayPreprocessor",
    "VisionPreprocessor",
    "decode_image_payload",
    "fingerprint",
    "load_preprocessor",
    "read_image_metadata",
]

PreprocessorPayload = Union[Mapping[str, Any], PreprocessResult]


@runtime_checkable
class VisionPreprocessor(Protocol):
    """Protocol for vision preprocessors.

    Implementations must tolerate concurrent ``preprocess`` calls; the
    pipeline issues one per image without serialising them.
    """

    async def preprocess(self, image_bytes: bytes) -> PreprocessorPayload:
        """Detect regions, text and colours in ``image_bytes``."""
        ...

    async def teardown(self) -> None:
        """Release resources once the batch has finished."""
        ...


def decode_image_payload(image: Mapping[str, Any]) -> bytes:
    """Return the decoded bytes of an input image mapping.

    The ``data`` field holds base64 text, optionally wrapped in a
    ``data:<mime>;base64,`` URL.
    """

    data = image.get("data") if isinstance(image, Mapping) else None
    if not isinstance(data, str) or not data:
        raise ValueError("image payload did not include base64 data")

    if data.startswith("data:"):
        header, _, data = data.partition(",")
        if ";base64" not in header:
            raise ValueError("data URL images must be base64 encoded")

    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"image data is not valid base64: {exc}") from exc


def read_image_metadata(image_bytes: bytes) -> ImageMetadata:
    """Read pixel dimensions and format without decoding the full raster."""

    try:
        with Image.open(BytesIO(image_bytes)) as image:
            width, height = image.size
            image_format = image.format
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"unable to read image header: {exc}") from exc
    return ImageMetadata(width=width, height=height, format=image_format.lower() if image_format else None)


def fingerprint(image_bytes: bytes) -> str:
    """Stable content key for an image."""
    return hashlib.sha256(image_bytes).hexdigest()


class ReplayPreprocessor:
    """Serve pre-computed preprocessor payloads keyed by image content.

    Useful when detection ran elsewhere (a GPU worker, a previous batch) and
    only the analysis stages need to run locally.
    """

    def __init__(self, payloads: Optional[Mapping[str, PreprocessorPayload]] = None) -> None:
        self._payloads: Dict[str, PreprocessorPayload] = dict(payloads or {})
        self.calls = 0
        self.closed = False

    def register(self, image_bytes: bytes, payload: PreprocessorPayload) -> str:
        key = fingerprint(image_bytes)
        self._payloads[key] = payload
        return key

    async def preprocess(self, image_bytes: bytes) -> PreprocessorPayload:
        self.calls += 1
        key = fingerprint(image_bytes)
        try:
            return self._payloads[key]
        except KeyError:
            raise LookupError(f"no recorded preprocessor output for image {key[:12]}") from None

    async def teardown(self) -> None:
        self.closed = True
        logger.debug(f"ReplayPreprocessor served {self.calls} request(s)")


def load_preprocessor(target: str) -> VisionPreprocessor:
    """Import ``module:attribute`` and return a preprocessor instance.

    The attribute may be an instance, a class, or a zero-argument factory.
    """

    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"preprocessor target must look like 'module:attribute', got {target!r}")

    module = importlib.import_module(module_name)
    try:
        obj = getattr(module, attribute)
    except AttributeError as exc:
        raise ValueError(f"module {module_name!r} has no attribute {attribute!r}") from exc

    if inspect.isclass(obj) or (callable(obj) and not isinstance(obj, VisionPreprocessor)):
        obj = obj()

    if not isinstance(obj, VisionPreprocessor):
        raise TypeError(f"{target!r} does not provide preprocess()/teardown()")
    return obj
