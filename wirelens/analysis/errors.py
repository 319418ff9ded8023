from __future__ import annotations

from typing import Any, Dict, Optional


class AnalysisError(RuntimeError):
    """Base class for failures inside a single image's analysis."""

    def __init__(
        self,
        message: str,
        *,
        image_index: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.image_index = image_index
        self.data = data or {}


class PreprocessorFailure(AnalysisError):
    """Raised when the vision preprocessor call fails or times out."""


class ClassificationAnomaly(AnalysisError):
    """Raised when the preprocessor output contains a malformed element."""


class AggregateFailure(AnalysisError):
    """Raised for any other unexpected failure while analysing one image."""
