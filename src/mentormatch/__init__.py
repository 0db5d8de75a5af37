"""Mentor–mentee matching engine package."""

from .capacity import CapacityLedger, effective_remaining_capacity
from .cohorts import cohort_stats, is_ready_for_matching, to_mentor_centric
from .config import AppConfig, load_config
from .errors import (
    CohortNotFoundError,
    ConfigurationError,
    MatchingError,
    ModelNotFoundError,
    ModelStateError,
    NotReadyError,
    SelectionError,
)
from .manual_board import ManualBoard
from .model_store import MatchingModelStore
from .models import (
    Cohort,
    CohortMatchRecord,
    ManualMatch,
    ManualMatchingOutput,
    MatchCandidate,
    MatchingFilters,
    MatchingHistoryEntry,
    MatchingModel,
    MatchingWeights,
    MatchResult,
    MenteeProfile,
    MentorProfile,
    ScoreBreakdown,
)
from .reconciler import (
    apply_manual_selections,
    clear_pending,
    commit_manual_board,
    continue_selection,
    propose_batch,
)
from .recommendations import RecommendationGenerator
from .repository import InMemoryCohortRepository
from .scoring import Scorer, score
from .session import MatchingSession

__all__ = [
    "AppConfig",
    "CapacityLedger",
    "Cohort",
    "CohortMatchRecord",
    "CohortNotFoundError",
    "ConfigurationError",
    "InMemoryCohortRepository",
    "ManualBoard",
    "ManualMatch",
    "ManualMatchingOutput",
    "MatchCandidate",
    "MatchResult",
    "MatchingError",
    "MatchingFilters",
    "MatchingHistoryEntry",
    "MatchingModel",
    "MatchingModelStore",
    "MatchingSession",
    "MatchingWeights",
    "MenteeProfile",
    "MentorProfile",
    "ModelNotFoundError",
    "ModelStateError",
    "NotReadyError",
    "RecommendationGenerator",
    "ScoreBreakdown",
    "Scorer",
    "SelectionError",
    "apply_manual_selections",
    "clear_pending",
    "cohort_stats",
    "commit_manual_board",
    "continue_selection",
    "effective_remaining_capacity",
    "is_ready_for_matching",
    "load_config",
    "propose_batch",
    "score",
    "to_mentor_centric",
]
