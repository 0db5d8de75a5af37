"""Ranked mentor recommendations for every mentee of a cohort."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from .capacity import effective_remaining_capacity
from .models import (
    Assignment,
    MatchCandidate,
    MatchingFilters,
    MatchingMode,
    MatchingModel,
    MatchingRun,
    MatchingStats,
    MatchingWeights,
    MatchResult,
    MenteeProfile,
    MentorProfile,
)
from .scoring import Scorer
from .timezones import timezone_distance

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 3


class RecommendationGenerator:
    """Applies hard filters, scores every remaining pair and keeps the top N."""

    def __init__(
        self,
        weights: MatchingWeights | None = None,
        filters: MatchingFilters | None = None,
        *,
        top_n: int = DEFAULT_TOP_N,
        scorer: Scorer | None = None,
    ) -> None:
        self.weights = weights or MatchingWeights()
        self.filters = filters or MatchingFilters()
        self.top_n = top_n
        self.scorer = scorer or Scorer()

    @classmethod
    def from_model(cls, model: MatchingModel, **kwargs) -> "RecommendationGenerator":
        return cls(model.weights, model.filters, **kwargs)

    def generate(
        self,
        mentees: Sequence[MenteeProfile],
        mentors: Sequence[MentorProfile],
        *,
        approved: Sequence[Assignment] = (),
        pending: Sequence[Assignment] = (),
    ) -> List[MatchResult]:
        """Return one :class:`MatchResult` per mentee, in input order.

        Args:
            mentees: Mentees to find mentors for.
            mentors: Candidate mentors.
            approved: Assignments already approved in the cohort.
            pending: Manual selections in flight but not yet committed.

        Returns:
            Results whose ``recommendations`` hold at most ``top_n``
            candidates, highest ``total_score`` first. Mentees without any
            eligible mentor still get a result with an empty list.
        """

        results, _ = self._generate(mentees, mentors, approved, pending)
        return results

    def run(
        self,
        mentees: Sequence[MenteeProfile],
        mentors: Sequence[MentorProfile],
        *,
        approved: Sequence[Assignment] = (),
        pending: Sequence[Assignment] = (),
    ) -> MatchingRun:
        """Like :meth:`generate` but also reports run statistics."""

        results, eligible_pairs = self._generate(mentees, mentors, approved, pending)
        stats = MatchingStats(
            mentees_total=len(mentees),
            mentors_total=len(mentors),
            pairs_evaluated=len(mentees) * len(mentors),
            after_filters=eligible_pairs,
        )
        logger.info(
            "Matching run: %d mentees x %d mentors, %d pairs after filters",
            stats.mentees_total,
            stats.mentors_total,
            stats.after_filters,
        )
        return MatchingRun(mode=MatchingMode.TOP_N, stats=stats, results=results)

    def _generate(
        self,
        mentees: Sequence[MenteeProfile],
        mentors: Sequence[MentorProfile],
        approved: Sequence[Assignment],
        pending: Sequence[Assignment],
    ) -> Tuple[List[MatchResult], int]:
        approved = list(approved)
        pending = list(pending)
        results: List[MatchResult] = []
        eligible_pairs = 0

        for mentee in mentees:
            candidates = []
            for mentor in mentors:
                # Derived from the assignment sets for every pair on purpose.
                remaining = effective_remaining_capacity(mentor, approved, pending)
                if not self._passes_filters(mentee, mentor, remaining):
                    continue
                breakdown = self.scorer.score(
                    mentee, mentor, self.weights, remaining_capacity=remaining
                )
                candidates.append(
                    MatchCandidate(
                        mentor_id=mentor.id, mentor_name=mentor.display_name, score=breakdown
                    )
                )
            eligible_pairs += len(candidates)
            candidates.sort(key=lambda candidate: (-candidate.score.total_score, candidate.mentor_id))
            results.append(
                MatchResult(
                    mentee_id=mentee.id,
                    mentee_name=mentee.display_name,
                    recommendations=candidates[: max(0, self.top_n)],
                )
            )
        return results, eligible_pairs

    def _passes_filters(
        self, mentee: MenteeProfile, mentor: MentorProfile, remaining: int
    ) -> bool:
        distance: Optional[float] = timezone_distance(mentee.timezone, mentor.timezone)
        if distance is not None and distance > self.filters.max_timezone_difference:
            logger.debug(
                "Excluded %s for %s: timezone difference %.1fh", mentor.id, mentee.id, distance
            )
            return False
        if self.filters.require_available_capacity and remaining <= 0:
            logger.debug("Excluded %s for %s: no remaining capacity", mentor.id, mentee.id)
            return False
        return True


__all__ = ["DEFAULT_TOP_N", "RecommendationGenerator"]
