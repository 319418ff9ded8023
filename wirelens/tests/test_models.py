"""Tests for preprocessor payload normalisation and the preprocessor boundary."""
from __future__ import annotations

import base64
import sys
import types
from io import BytesIO

import pytest
from PIL import Image

from wirelens.vision.geometry import BoundingBox
from wirelens.vision.models import Color, PreprocessResult, RawElement
from wirelens.vision.preprocessor import (
    ReplayPreprocessor,
    VisionPreprocessor,
    decode_image_payload,
    fingerprint,
    load_preprocessor,
    read_image_metadata,
)


def _make_png_bytes(width: int = 8, height: int = 4) -> bytes:
    image = Image.new("RGB", (width, height), color="white")
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def test_raw_element_from_dict_defaults() -> None:
    element = RawElement.from_dict({"type": "button", "bounds": {"x": 1, "y": 2, "width": 30, "height": 10}})
    assert element.kind == "button"
    assert element.area == 300
    assert element.confidence == 0.0

    unnamed = RawElement.from_dict({"bbox": {"x0": 0, "y0": 0, "x1": 5, "y1": 5}, "confidence": 85})
    assert unnamed.kind == "unclassified"
    assert unnamed.confidence == pytest.approx(0.85)

    certain = RawElement.from_dict({"type": "button", "bounds": {"x": 0, "y": 0, "width": 5, "height": 5}, "confidence": 1})
    assert certain.confidence == 1.0


def test_raw_element_rejects_negative_area() -> None:
    with pytest.raises(ValueError):
        RawElement.from_dict({"type": "button", "bounds": {"x": 0, "y": 0, "width": 1, "height": 1}, "area": -5})


def test_preprocess_result_from_dict_normalises_payload() -> None:
    payload = {
        "elements": [
            {"type": "container", "bounds": {"x": 0, "y": 0, "width": 500, "height": 300}, "confidence": 0.8},
        ],
        "text": {
            "blocks": [
                {"text": "Title", "bbox": {"x0": 10, "y0": 10, "x1": 90, "y1": 30}, "confidence": 92},
                {"text": "page-level text without position"},
            ]
        },
        "colors": [{"r": 255, "g": 0, "b": 0, "frequency": 0.05}],
        "layout": {"grid": {"columns": 3, "rows": 2}, "confidence": 0.6},
        "metadata": {"width": 1280, "height": 720},
        "confidence": 0.75,
    }

    result = PreprocessResult.from_dict(payload)

    assert len(result.elements) == 1
    assert len(result.text_blocks) == 1
    assert result.text_blocks[0].confidence == pytest.approx(0.92)
    assert result.colors == (Color(r=255, g=0, b=0, hex="#ff0000", frequency=0.05),)
    assert result.layout.grid.columns == 3
    assert result.layout.structure == "unknown"
    assert result.metadata.has_dimensions
    assert result.confidence == 0.75
    assert PreprocessResult.from_dict(result) is result


def test_preprocess_result_accepts_text_block_list() -> None:
    result = PreprocessResult.from_dict({"text": [{"text": "a", "bounds": {"x": 0, "y": 0, "width": 4, "height": 4}}]})
    assert result.text_blocks[0].bounds == BoundingBox(0, 0, 4, 4)


@pytest.mark.parametrize(
    "elements",
    [
        [{"type": "button"}],
        [{"type": "button", "bounds": {"x": 0, "y": 0, "width": -3, "height": 4}}],
        ["not-a-mapping"],
    ],
)
def test_preprocess_result_flags_malformed_element(elements) -> None:
    with pytest.raises(ValueError, match="element 0 is malformed"):
        PreprocessResult.from_dict({"elements": elements})


def test_preprocess_result_skips_malformed_text_blocks_and_colours() -> None:
    payload = {
        "elements": [
            {"type": "container", "bounds": {"x": 0, "y": 0, "width": 500, "height": 300}},
            {"type": "button", "bounds": {"x": 20, "y": 20, "width": 120, "height": 40}},
        ],
        "text": {
            "blocks": [
                {"text": "half a box", "bbox": {"x0": 10, "y0": 10}},
                {"text": "inverted", "bbox": {"x0": 90, "y0": 10, "x1": 10, "y1": 30}},
                {"text": "Sign in", "bbox": {"x0": 25, "y0": 25, "x1": 100, "y1": 50}, "confidence": 0.9},
            ]
        },
        "colors": [
            {"hex": "#ffffff", "frequency": 0.5},
            "#000000",
            {"r": 0, "g": 0, "b": 255, "frequency": 0.2},
        ],
    }

    result = PreprocessResult.from_dict(payload)

    assert [element.kind for element in result.elements] == ["container", "button"]
    assert [block.text for block in result.text_blocks] == ["Sign in"]
    assert [color.hex for color in result.colors] == ["#0000ff"]


def test_preprocess_result_rejects_non_mapping() -> None:
    with pytest.raises(ValueError):
        PreprocessResult.from_dict(["elements"])


def test_decode_image_payload_plain_and_data_url() -> None:
    png = _make_png_bytes()
    encoded = base64.b64encode(png).decode("ascii")

    assert decode_image_payload({"data": encoded}) == png
    assert decode_image_payload({"data": f"data:image/png;base64,{encoded}"}) == png


@pytest.mark.parametrize("image", [{}, {"data": ""}, {"data": "@@not base64@@"}, {"data": "data:text/plain,hello"}])
def test_decode_image_payload_rejects_bad_input(image) -> None:
    with pytest.raises(ValueError):
        decode_image_payload(image)


def test_read_image_metadata() -> None:
    metadata = read_image_metadata(_make_png_bytes(64, 32))
    assert (metadata.width, metadata.height, metadata.format) == (64, 32, "png")

    with pytest.raises(ValueError):
        read_image_metadata(b"definitely not an image")


@pytest.mark.asyncio
async def test_replay_preprocessor_serves_registered_payloads() -> None:
    png = _make_png_bytes()
    replay = ReplayPreprocessor()
    key = replay.register(png, {"elements": [], "confidence": 0.5})

    assert key == fingerprint(png)
    assert isinstance(replay, VisionPreprocessor)
    assert await replay.preprocess(png) == {"elements": [], "confidence": 0.5}

    with pytest.raises(LookupError):
        await replay.preprocess(b"other")

    await replay.teardown()
    assert replay.calls == 2
    assert replay.closed


def test_load_preprocessor_from_module_attribute(monkeypatch) -> None:
    module = types.ModuleType("wirelens_fake_preprocessors")
    module.Replay = ReplayPreprocessor
    module.not_a_preprocessor = object()
    monkeypatch.setitem(sys.modules, "wirelens_fake_preprocessors", module)

    loaded = load_preprocessor("wirelens_fake_preprocessors:Replay")
    assert isinstance(loaded, ReplayPreprocessor)

    with pytest.raises(TypeError):
        load_preprocessor("wirelens_fake_preprocessors:not_a_preprocessor")
    with pytest.raises(ValueError):
        load_preprocessor("wirelens_fake_preprocessors:missing")
    with pytest.raises(ValueError):
        load_preprocessor("no-colon")
