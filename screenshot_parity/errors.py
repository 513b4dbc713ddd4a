"""Exceptions raised by the comparison pipeline."""

from __future__ import annotations


class ComparisonError(Exception):
    """Base class for failures that abort a comparison."""


class DecodeError(ComparisonError):
    """Raised when an input image cannot be decoded."""


class DimensionError(ComparisonError):
    """Raised for zero-sized images or buffers of mismatched size."""

    def __init__(self, message: str, size: tuple[int, int] | None = None) -> None:
        super().__init__(message)
        self.size = size


class ProcessingError(ComparisonError):
    """Raised when differencing, clustering or compositing fails unexpectedly."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage} failed: {message}")
        self.stage = stage


class ComparisonNotFoundError(ComparisonError, LookupError):
    """Raised when a persisted comparison id does not exist."""

    def __init__(self, comparison_id: str) -> None:
        super().__init__(f"Comparison not found: {comparison_id}")
        self.comparison_id = comparison_id
