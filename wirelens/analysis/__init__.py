"""Two-strategy analysis of preprocessed screenshots."""

from .aggregator import ImageAggregator
from .classifier import WireframeElement, WireframeType, classify, to_wireframe_element
from .errors import AggregateFailure, AnalysisError, ClassificationAnomaly, PreprocessorFailure
from .merger import merge_results, remove_duplicate_elements
from .results import (
    PerImageResult,
    ProjectResult,
    WireframeDocument,
    empty_image_result,
    empty_project_result,
)
from .spatial import SpatialAnalysis, analyze_spatial
from .wireframe import WireframeAnalysis, analyze_wireframe

__all__ = [
    "ImageAggregator",
    "WireframeElement",
    "WireframeType",
    "classify",
    "to_wireframe_element",
    "AggregateFailure",
    "AnalysisError",
    "ClassificationAnomaly",
    "PreprocessorFailure",
    "merge_results",
    "remove_duplicate_elements",
    "PerImageResult",
    "ProjectResult",
    "WireframeDocument",
    "empty_image_result",
    "empty_project_result",
    "SpatialAnalysis",
    "analyze_spatial",
    "WireframeAnalysis",
    "analyze_wireframe",
]
