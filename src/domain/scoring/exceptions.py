"""Domain exceptions for the scoring committee."""

from typing import Any, Dict, List, Optional


class ScoringDomainError(Exception):
    """Base exception for scoring domain."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ScoringDomainError):
    """Raised when a domain object is malformed."""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.field_name = field_name


class InvalidPayload(ScoringDomainError):
    """Raised when an attempt payload fails task-specific validation."""

    def __init__(self, message: str, task: Optional[str] = None):
        super().__init__(message, {"task": task} if task else None)
        self.task = task


class UnsupportedTask(ScoringDomainError):
    """Raised when no prompt template exists for a task type."""

    def __init__(self, message: str, task: Optional[str] = None):
        super().__init__(message, {"task": task} if task else None)
        self.task = task


class ScorerError(ScoringDomainError):
    """Base exception for a single scorer backend failure."""

    def __init__(
        self,
        message: str,
        model_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.model_name = model_name


class BackendUnreachable(ScorerError):
    """Raised when the scorer backend cannot be reached or times out."""

    pass


class InvalidResponseFormat(ScorerError):
    """Raised when the backend response does not match the judgment schema."""

    pass


class BackendRejected(ScorerError):
    """Raised when the backend answers with a non-success status."""

    def __init__(
        self,
        message: str,
        model_name: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, model_name, details)
        self.status_code = status_code


class AllScorersFailed(ScoringDomainError):
    """Raised when every scorer in the committee failed."""

    def __init__(self, failures: List[Any]):
        self.failures = list(failures)
        self.error_summaries = [failure.summary() for failure in self.failures]
        super().__init__(
            f"All scorers failed: {', '.join(self.error_summaries)}",
            {"failures": self.error_summaries},
        )
