"""
RAG Service Exceptions

This module defines the error taxonomy of the document QA pipeline. Fatal
errors abort a job, per-question errors are converted into degraded answers
by the orchestrator.
"""

from typing import Any, Dict, Optional


class RAGServiceError(Exception):
    """Base exception for all pipeline errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ExtractionError(RAGServiceError):
    """Document could not be downloaded or turned into text. Fatal to the job."""


class EmbeddingError(RAGServiceError):
    """Embedding provider failed. Skippable per chunk, fatal for a query."""


class EmptyIndexError(RAGServiceError):
    """Search was attempted on an index holding no vectors"""

    def __init__(self, message: str = "No documents indexed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class GenerationError(RAGServiceError):
    """Language model was unavailable or returned an unusable completion"""


class DimensionMismatchError(RAGServiceError):
    """Two vectors of different length were compared"""

    def __init__(self, left: int, right: int):
        super().__init__(
            "Vector dimensions must match",
            details={'left_dimension': left, 'right_dimension': right}
        )


__all__ = [
    'RAGServiceError',
    'ExtractionError',
    'EmbeddingError',
    'EmptyIndexError',
    'GenerationError',
    'DimensionMismatchError'
]
