"""Mentor capacity bookkeeping.

Every figure is derived from the assignment sets passed in at call time.
Nothing here keeps a running counter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .models import (
    Assignment,
    CapacityWarning,
    CohortMatchRecord,
    ManualMatchingOutput,
    MentorProfile,
)

logger = logging.getLogger(__name__)


def raw_remaining_capacity(
    mentor: MentorProfile,
    approved: Iterable[Assignment] = (),
    pending: Iterable[Assignment] = (),
) -> int:
    """Nominal capacity minus approved and pending assignments; may be negative."""

    approved = list(approved)
    approved_mentees = {a.mentee_id for a in approved if a.mentor_id == mentor.id}
    # A mentee already approved to this mentor is not counted twice when the
    # same pairing is also in flight.
    pending_mentees = {
        a.mentee_id
        for a in pending
        if a.mentor_id == mentor.id and a.mentee_id not in approved_mentees
    }
    return mentor.capacity_remaining - len(approved_mentees) - len(pending_mentees)


def effective_remaining_capacity(
    mentor: MentorProfile,
    approved: Iterable[Assignment] = (),
    pending: Iterable[Assignment] = (),
) -> int:
    """Remaining capacity as shown to callers, never below zero."""

    return max(0, raw_remaining_capacity(mentor, approved, pending))


def is_over_capacity(
    mentor: MentorProfile,
    approved: Iterable[Assignment] = (),
    pending: Iterable[Assignment] = (),
) -> bool:
    return raw_remaining_capacity(mentor, approved, pending) < 0


def capacity_warnings(
    mentors: Sequence[MentorProfile],
    approved: Iterable[Assignment] = (),
    pending: Iterable[Assignment] = (),
) -> List[CapacityWarning]:
    """Return one warning per mentor whose assignments exceed nominal capacity."""

    approved = list(approved)
    pending = list(pending)
    warnings = []
    for mentor in mentors:
        raw = raw_remaining_capacity(mentor, approved, pending)
        if raw < 0:
            warning = CapacityWarning(
                mentor_id=mentor.id,
                mentor_name=mentor.name,
                nominal_capacity=mentor.capacity_remaining,
                assigned=mentor.capacity_remaining - raw,
            )
            logger.warning(warning.message)
            warnings.append(warning)
    return warnings


def approved_assignments(record: Optional[CohortMatchRecord]) -> List[Assignment]:
    """Assignments implied by the approved results of a match record."""

    if record is None:
        return []
    return [
        Assignment(mentee_id=result.mentee_id, mentor_id=result.proposed_assignment.mentor_id)
        for result in record.results
        if result.proposed_assignment is not None
    ]


def manual_assignments(output: Optional[ManualMatchingOutput]) -> List[Assignment]:
    """Assignments implied by the pairs on a manual matching board."""

    if output is None:
        return []
    return [Assignment(mentee_id=m.mentee_id, mentor_id=m.mentor_id) for m in output.matches]


def selection_assignments(selections: Dict[str, str]) -> List[Assignment]:
    return [
        Assignment(mentee_id=mentee_id, mentor_id=mentor_id)
        for mentee_id, mentor_id in selections.items()
    ]


@dataclass(frozen=True)
class CapacityLedger:
    """Read-only view over mentors and the current assignment sets.

    Build a new ledger whenever the sets change; each query recomputes from
    the stored assignments.
    """

    mentors: Sequence[MentorProfile]
    approved: Sequence[Assignment] = field(default_factory=tuple)
    pending: Sequence[Assignment] = field(default_factory=tuple)

    def remaining(self, mentor_id: str) -> int:
        return effective_remaining_capacity(self._mentor(mentor_id), self.approved, self.pending)

    def raw_remaining(self, mentor_id: str) -> int:
        return raw_remaining_capacity(self._mentor(mentor_id), self.approved, self.pending)

    def snapshot(self) -> Dict[str, int]:
        return {
            mentor.id: effective_remaining_capacity(mentor, self.approved, self.pending)
            for mentor in self.mentors
        }

    def warnings(self) -> List[CapacityWarning]:
        return capacity_warnings(self.mentors, self.approved, self.pending)

    def _mentor(self, mentor_id: str) -> MentorProfile:
        for mentor in self.mentors:
            if mentor.id == mentor_id:
                return mentor
        raise KeyError(mentor_id)


__all__ = [
    "CapacityLedger",
    "approved_assignments",
    "capacity_warnings",
    "effective_remaining_capacity",
    "is_over_capacity",
    "manual_assignments",
    "raw_remaining_capacity",
    "selection_assignments",
]
