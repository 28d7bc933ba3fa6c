from typing import Any, List, Optional


class LeadScoringError(Exception):
    status_code = 500

    def __init__(self, message: str, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class ValidationError(LeadScoringError):
    """Offer or lead input rejected before it reaches the pipeline."""

    status_code = 400


class PreconditionError(LeadScoringError):
    """Scoring was triggered without an offer or without leads."""

    status_code = 400


class NotFoundError(LeadScoringError):
    status_code = 404


class RepositoryError(LeadScoringError):
    status_code = 500


class ClassifierUnavailable(LeadScoringError):
    """Raised inside the classifier only; converted to the low-intent fallback."""
