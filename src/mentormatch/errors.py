"""Exceptions raised by the matching engine."""

from __future__ import annotations


class MatchingError(Exception):
    """Base class for matching engine errors."""


class ConfigurationError(MatchingError):
    """Usage rejected before any state was touched.

    ``reason`` is shown verbatim to the administrator.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class SelectionError(ConfigurationError):
    """A selection references a mentee or mentor it may not use."""


class ModelStateError(ConfigurationError):
    """Illegal lifecycle transition on a matching model."""


class NotReadyError(ConfigurationError):
    """The cohort does not pass the readiness gate."""

    def __init__(self, issues: list[str]) -> None:
        super().__init__("Cohort is not ready for matching: " + "; ".join(issues))
        self.issues = list(issues)


class ModelNotFoundError(MatchingError):
    def __init__(self, model_id: str) -> None:
        super().__init__(f"Matching model not found: {model_id}")
        self.model_id = model_id


class CohortNotFoundError(MatchingError):
    def __init__(self, cohort_id: str) -> None:
        super().__init__(f"Cohort not found: {cohort_id}")
        self.cohort_id = cohort_id


__all__ = [
    "CohortNotFoundError",
    "ConfigurationError",
    "MatchingError",
    "ModelNotFoundError",
    "ModelStateError",
    "NotReadyError",
    "SelectionError",
]
