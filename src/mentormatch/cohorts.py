"""Read-only views over a cohort consumed by the dashboard."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from .models import (
    Cohort,
    CohortMatchRecord,
    CohortStats,
    MatchingHistoryEntry,
    MatchingMode,
    MatchingStats,
    MatchResult,
    MentorProfile,
    Readiness,
    ScoreBreakdown,
)


def is_ready_for_matching(cohort: Cohort) -> Readiness:
    """Default readiness gate: mentees, mentors and enough capacity."""

    issues = []
    if not cohort.mentees:
        issues.append("No mentees in cohort")
    if not cohort.mentors:
        issues.append("No mentors in cohort")

    total_capacity = sum(mentor.capacity_remaining for mentor in cohort.mentors)
    if cohort.mentors and total_capacity == 0:
        issues.append("No available mentor capacity")
    elif total_capacity < len(cohort.mentees):
        issues.append(
            f"Insufficient capacity: {total_capacity} slots for {len(cohort.mentees)} mentees"
        )
    return Readiness(is_ready=not issues, issues=issues)


def cohort_stats(cohort: Cohort) -> CohortStats:
    return CohortStats(
        total_mentees=len(cohort.mentees),
        total_mentors=len(cohort.mentors),
        total_capacity=sum(mentor.capacity_remaining for mentor in cohort.mentors),
        matches_created=len(cohort.matches.results),
        matches_approved=len(cohort.matches.approved()),
    )


def history_entry(
    results: Sequence[MatchResult],
    mode: Optional[MatchingMode],
    stats: Optional[MatchingStats],
    *,
    launched: bool,
    timestamp: Optional[datetime] = None,
) -> MatchingHistoryEntry:
    """Summarise a run or a saved record for the cohort's matching history.

    ``average_score`` is the mean top-candidate score over results that
    have at least one recommendation.
    """

    top_scores = [
        result.recommendations[0].score.total_score
        for result in results
        if result.recommendations
    ]
    entry = dict(
        id=f"match_{uuid.uuid4().hex[:12]}",
        mode=mode or MatchingMode.TOP_N,
        stats=stats,
        launched=launched,
        matches_count=len(results),
        average_score=round(sum(top_scores) / len(top_scores), 2) if top_scores else 0.0,
    )
    if timestamp is not None:
        entry["timestamp"] = timestamp
    return MatchingHistoryEntry(**entry)


class PotentialMentee(BaseModel):
    mentee_id: str
    mentee_name: str
    score: ScoreBreakdown
    rank_for_this_mentee: int = Field(..., ge=1, description="1 is the mentee's top choice")


class MentorCentricMatch(BaseModel):
    mentor_id: str
    mentor_name: str
    mentor_role: Optional[str] = None
    timezone: Optional[str] = None
    capacity_remaining: int = 0
    potential_mentees: List[PotentialMentee] = Field(default_factory=list)


def to_mentor_centric(
    record: CohortMatchRecord, mentors: Sequence[MentorProfile]
) -> List[MentorCentricMatch]:
    """Pivot per-mentee recommendations into per-mentor candidate lists.

    Mentors are ordered by number of potential mentees, most first; each
    mentor's mentees are ordered by score.
    """

    by_mentor: Dict[str, MentorCentricMatch] = {
        mentor.id: MentorCentricMatch(
            mentor_id=mentor.id,
            mentor_name=mentor.display_name,
            mentor_role=mentor.role or None,
            timezone=mentor.timezone,
            capacity_remaining=mentor.capacity_remaining,
        )
        for mentor in mentors
    }
    for result in record.results:
        for rank, candidate in enumerate(result.recommendations, start=1):
            entry = by_mentor.get(candidate.mentor_id)
            if entry is None:
                entry = MentorCentricMatch(
                    mentor_id=candidate.mentor_id,
                    mentor_name=candidate.mentor_name or candidate.mentor_id,
                )
                by_mentor[candidate.mentor_id] = entry
            entry.potential_mentees.append(
                PotentialMentee(
                    mentee_id=result.mentee_id,
                    mentee_name=result.mentee_name or result.mentee_id,
                    score=candidate.score,
                    rank_for_this_mentee=rank,
                )
            )

    for entry in by_mentor.values():
        entry.potential_mentees.sort(key=lambda m: m.score.total_score, reverse=True)
    return sorted(by_mentor.values(), key=lambda e: len(e.potential_mentees), reverse=True)


__all__ = [
    "MentorCentricMatch",
    "PotentialMentee",
    "cohort_stats",
    "history_entry",
    "is_ready_for_matching",
    "to_mentor_centric",
]
