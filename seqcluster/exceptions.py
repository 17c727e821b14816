"""
Exception hierarchy for SeqCluster.

Exception Hierarchy:
    SeqClusterError (base)
    ├── ValidationError            bad or missing request input
    ├── DimensionMismatchError     vectors of unequal length
    ├── CollaboratorError          embedding service unavailable / bad reply
    ├── EmptyInputError            nothing left to cluster
    └── InternalComputationError   unexpected failure inside the numeric stages

Usage:
    from seqcluster.exceptions import CollaboratorError, ValidationError

    try:
        result = run_clustering(sequence=seq, embedding_source=client)
    except CollaboratorError as e:
        logger.error(f"Embedding service failed: {e}")
"""

from typing import Any, Dict, Optional


class SeqClusterError(Exception):
    """Base exception for all SeqCluster errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {type(self.cause).__name__}: {self.cause})"
        return self.message


class ValidationError(SeqClusterError):
    """Malformed or insufficient request input."""
    pass


class DimensionMismatchError(SeqClusterError):
    """Vectors in one batch do not share the same length."""

    def __init__(
        self,
        message: str,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
        **kwargs
    ):
        details = kwargs.pop("details", None) or {}
        if expected is not None:
            details["expected"] = expected
        if actual is not None:
            details["actual"] = actual
        super().__init__(message, details=details, **kwargs)
        self.expected = expected
        self.actual = actual


class CollaboratorError(SeqClusterError):
    """The embedding service failed or returned an unexpected shape."""

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        details = kwargs.pop("details", None) or {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details=details, **kwargs)
        self.status_code = status_code


class EmptyInputError(SeqClusterError):
    """The resolved vector batch has no rows."""
    pass


class InternalComputationError(SeqClusterError):
    """Unexpected failure in normalization, PCA, clustering or aggregation."""
    pass
