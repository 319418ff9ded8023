"""Batch entry point: analyse a set of screenshots as one project."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Mapping, Optional, Sequence

from wirelens.analysis.aggregator import ImageAggregator
from wirelens.analysis.merger import merge_results
from wirelens.analysis.results import PerImageResult, ProjectResult, empty_project_result
from wirelens.vision.preprocessor import VisionPreprocessor

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

__all__ = ["analyze_batch", "analyze_batch_sync"]


async def analyze_batch(
    images: Sequence[Mapping[str, Any]],
    preprocessor: VisionPreprocessor,
    *,
    settings: Optional[Settings] = None,
) -> ProjectResult:
    """Analyse ``images`` concurrently and merge them into one ``ProjectResult``.

    Per-image failures degrade that image only.  The preprocessor is torn down
    exactly once when the batch ends, including on cancellation.
    """

    settings = settings or get_settings()
    aggregator = ImageAggregator(preprocessor, settings=settings)
    semaphore = asyncio.Semaphore(settings.max_concurrency)
    started = time.perf_counter()

    async def _bounded(image: Mapping[str, Any], index: int) -> PerImageResult:
        async with semaphore:
            return await aggregator.analyze_image(image, index)

    try:
        results = await asyncio.gather(*(_bounded(image, index) for index, image in enumerate(images)))
        project = merge_results(results)
    except Exception as exc:
        logger.exception(f"Batch analysis of {len(images)} images failed: {exc}")
        return empty_project_result()
    finally:
        try:
            await preprocessor.teardown()
        except Exception as teardown_error:
            logger.warning(f"Error during preprocessor teardown: {teardown_error}")

    failed = sum(1 for result in results if result.failed)
    logger.info(
        f"Analysed {len(images)} images in {time.perf_counter() - started:.2f}s "
        f"({failed} failed, {len(project.elements)} elements, confidence={project.confidence:.2f})"
    )
    return project


def analyze_batch_sync(
    images: Sequence[Mapping[str, Any]],
    preprocessor: VisionPreprocessor,
    *,
    settings: Optional[Settings] = None,
) -> ProjectResult:
    """Blocking wrapper around :func:`analyze_batch` for scripts and the CLI."""

    return asyncio.run(analyze_batch(images, preprocessor, settings=settings))
