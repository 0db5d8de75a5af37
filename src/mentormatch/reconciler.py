"""Merging recommendations, approvals and manual pairings into one record.

Every operation validates its input first, then builds and returns a new
:class:`CohortMatchRecord`. Records passed in are never modified.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Union

from .capacity import (
    approved_assignments,
    capacity_warnings,
    effective_remaining_capacity,
    selection_assignments,
)
from .errors import SelectionError
from .models import (
    CapacityWarning,
    CohortMatchRecord,
    ManualMatchingOutput,
    MatchingRun,
    MatchResult,
    MenteeProfile,
    MentorProfile,
    ProposedAssignment,
)

logger = logging.getLogger(__name__)

PendingInput = Union[MatchingRun, Sequence[MatchResult]]


@dataclass
class CommitOutcome:
    """Result of committing a manual matching board."""

    record: CohortMatchRecord
    manual_matches: ManualMatchingOutput
    warnings: List[CapacityWarning] = field(default_factory=list)

    @property
    def committed(self) -> bool:
        return self.manual_matches.finalized


def apply_manual_selections(
    record: CohortMatchRecord,
    pending: PendingInput,
    selections: Mapping[str, str],
    comments: Optional[Mapping[str, str]] = None,
) -> CohortMatchRecord:
    """Approve the chosen mentor for each selected mentee.

    Args:
        record: Current cohort match record.
        pending: Results being worked on, either a fresh run or the subset
            returned by :func:`continue_selection`.
        selections: ``mentee_id -> mentor_id``. Each mentor must be one of
            that mentee's recommendations.
        comments: Optional ``mentee_id -> comment`` stored on the assignment.

    Returns:
        A new record holding previously approved results that are not part
        of ``pending``, followed by every pending result. Selected results
        are approved; unselected results keep an existing approval and
        otherwise stay pending.

    Raises:
        SelectionError: A selection names a mentee outside ``pending`` or a
            mentor outside that mentee's recommendations.
    """

    pending_results = list(pending.results if isinstance(pending, MatchingRun) else pending)
    by_mentee = {result.mentee_id: result for result in pending_results}
    comments = comments or {}

    for mentee_id, mentor_id in selections.items():
        result = by_mentee.get(mentee_id)
        if result is None:
            raise SelectionError(f"Mentee {mentee_id} is not among the pending results")
        if result.find_candidate(mentor_id) is None:
            raise SelectionError(
                f"Mentor {mentor_id} is not among the recommendations for mentee {mentee_id}"
            )

    # Unselected mentees keep any approval they already hold.
    previous = {result.mentee_id: result.proposed_assignment for result in record.approved()}

    updated = []
    for result in pending_results:
        mentor_id = selections.get(result.mentee_id)
        assignment = result.proposed_assignment or previous.get(result.mentee_id)
        if assignment is not None:
            assignment = assignment.model_copy()
        if mentor_id is not None:
            candidate = result.find_candidate(mentor_id)
            assignment = ProposedAssignment(
                mentor_id=candidate.mentor_id,
                mentor_name=candidate.mentor_name,
                comment=comments.get(result.mentee_id) or None,
            )
        updated.append(result.model_copy(deep=True, update={"proposed_assignment": assignment}))

    kept = [
        result.model_copy(deep=True)
        for result in record.approved()
        if result.mentee_id not in by_mentee
    ]

    if isinstance(pending, MatchingRun):
        metadata = dict(mode=pending.mode, stats=pending.stats, generated_at=pending.generated_at)
    else:
        metadata = dict(mode=record.mode, stats=record.stats, generated_at=record.generated_at)

    logger.info(
        "Approved %d of %d pending results, %d earlier approvals kept",
        len(selections),
        len(pending_results),
        len(kept),
    )
    return CohortMatchRecord(results=[*kept, *updated], **metadata)


def clear_pending(record: CohortMatchRecord) -> CohortMatchRecord:
    """Drop every pending result; only approved results remain."""

    approved = [result.model_copy(deep=True) for result in record.approved()]
    logger.info("Cleared %d pending results", len(record.results) - len(approved))
    return record.model_copy(deep=True, update={"results": approved})


def continue_selection(record: CohortMatchRecord) -> List[MatchResult]:
    """Return copies of the pending results for further manual selection."""

    return [result.model_copy(deep=True) for result in record.pending()]


def propose_batch(
    pending: Sequence[MatchResult],
    mentors: Sequence[MentorProfile],
    record: Optional[CohortMatchRecord] = None,
) -> Dict[str, str]:
    """Greedy one-mentor-per-mentee proposal honouring remaining capacity.

    Mentees are served in order; each gets its highest ranked candidate that
    still has capacity once earlier proposals are counted. The returned map
    can be passed straight to :func:`apply_manual_selections`.
    """

    mentor_by_id = {mentor.id: mentor for mentor in mentors}
    approved = approved_assignments(record)
    selections: Dict[str, str] = {}
    for result in pending:
        if result.is_approved:
            continue
        for candidate in result.recommendations:
            mentor = mentor_by_id.get(candidate.mentor_id)
            if mentor is None:
                continue
            remaining = effective_remaining_capacity(
                mentor, approved, selection_assignments(selections)
            )
            if remaining > 0:
                selections[result.mentee_id] = candidate.mentor_id
                break
    return selections


def commit_manual_board(
    record: CohortMatchRecord,
    output: ManualMatchingOutput,
    mentors: Sequence[MentorProfile],
    mentees: Sequence[MenteeProfile] = (),
) -> CommitOutcome:
    """Merge manual pairings into the record once the board is finalized.

    A draft (``finalized=False``) is returned as-is for storage and leaves the
    record untouched. A finalized board approves each pair, creating a result
    for mentees that never had one, and reports mentors pushed over capacity.
    Over-capacity pairs are still committed.
    """

    mentor_by_id = {mentor.id: mentor for mentor in mentors}
    mentee_by_id = {mentee.id: mentee for mentee in mentees}
    seen = set()
    for match in output.matches:
        if match.mentor_id not in mentor_by_id:
            raise SelectionError(f"Mentor {match.mentor_id} is not part of this cohort")
        if match.mentee_id in seen:
            raise SelectionError(f"Mentee {match.mentee_id} is paired more than once")
        seen.add(match.mentee_id)

    if not output.finalized:
        logger.info("Saved manual matching draft with %d pairs", len(output.matches))
        return CommitOutcome(record=record.model_copy(deep=True), manual_matches=output)

    assignments = {}
    for match in output.matches:
        assignments[match.mentee_id] = ProposedAssignment(
            mentor_id=match.mentor_id,
            mentor_name=match.mentor_name or mentor_by_id[match.mentor_id].display_name,
            comment=match.notes,
        )

    results = []
    for result in record.results:
        if result.mentee_id in assignments:
            update = {"proposed_assignment": assignments.pop(result.mentee_id)}
            results.append(result.model_copy(deep=True, update=update))
        else:
            results.append(result.model_copy(deep=True))
    for match in output.matches:
        if match.mentee_id in assignments:
            mentee = mentee_by_id.get(match.mentee_id)
            results.append(
                MatchResult(
                    mentee_id=match.mentee_id,
                    mentee_name=match.mentee_name or (mentee.display_name if mentee else None),
                    proposed_assignment=assignments.pop(match.mentee_id),
                )
            )

    updated = record.model_copy(deep=True, update={"results": results})
    warnings = capacity_warnings(mentors, approved_assignments(updated))
    logger.info(
        "Committed %d manual pairs with %d capacity warning(s)",
        len(output.matches),
        len(warnings),
    )
    return CommitOutcome(record=updated, manual_matches=output, warnings=warnings)


__all__ = [
    "CommitOutcome",
    "apply_manual_selections",
    "clear_pending",
    "commit_manual_board",
    "continue_selection",
    "propose_batch",
]
