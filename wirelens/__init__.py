"""Wirelens: wireframe structure from UI screenshots."""

from .analysis import (
	AnalysisError,
	ImageAggregator,
	PerImageResult,
	ProjectResult,
	WireframeElement,
	WireframeType,
	empty_image_result,
	empty_project_result,
	merge_results,
)

from .vision import (
	BoundingBox,
	PreprocessResult,
	ReplayPreprocessor,
	VisionPreprocessor,
)

from .workflow.pipeline import analyze_batch, analyze_batch_sync

__all__ = [
	"AnalysisError",
	"ImageAggregator",
	"PerImageResult",
	"ProjectResult",
	"WireframeElement",
	"WireframeType",
	"empty_image_result",
	"empty_project_result",
	"merge_results",
	# Vision boundary
	"BoundingBox",
	"PreprocessResult",
	"ReplayPreprocessor",
	"VisionPreprocessor",
	# Batch entry points
	"analyze_batch",
	"analyze_batch_sync",
]
