"""Working state of the free-form manual pairing board."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence

from .capacity import manual_assignments, raw_remaining_capacity
from .errors import SelectionError
from .models import (
    Assignment,
    ManualMatch,
    ManualMatchingOutput,
    MenteeProfile,
    MentorProfile,
    utcnow,
)

logger = logging.getLogger(__name__)


class ManualBoard:
    """Editable set of administrator-authored pairs.

    Any change to the pairs clears ``finalized`` until the board is saved
    again with ``finalized=True``.
    """

    def __init__(
        self,
        mentees: Sequence[MenteeProfile],
        mentors: Sequence[MentorProfile],
        existing: Optional[ManualMatchingOutput] = None,
        *,
        approved: Sequence[Assignment] = (),
        clock: Callable = utcnow,
    ) -> None:
        self._mentees: Dict[str, MenteeProfile] = {mentee.id: mentee for mentee in mentees}
        self._mentors: Dict[str, MentorProfile] = {mentor.id: mentor for mentor in mentors}
        self._approved = list(approved)
        self._clock = clock
        self._pairs: List[ManualMatch] = (
            [match.model_copy(deep=True) for match in existing.matches] if existing else []
        )
        self._created_at = existing.created_at if existing else clock()
        self.finalized = existing.finalized if existing else False

    @property
    def pairs(self) -> List[ManualMatch]:
        return [pair.model_copy() for pair in self._pairs]

    def unmatched_mentees(self) -> List[MenteeProfile]:
        paired = {pair.mentee_id for pair in self._pairs}
        return [mentee for mentee_id, mentee in self._mentees.items() if mentee_id not in paired]

    def add_pair(
        self,
        mentee_id: str,
        mentor_id: str,
        *,
        confidence: int = 3,
        notes: Optional[str] = None,
    ) -> ManualMatch:
        mentee = self._mentees.get(mentee_id)
        if mentee is None:
            raise SelectionError(f"Mentee {mentee_id} is not part of this cohort")
        mentor = self._mentors.get(mentor_id)
        if mentor is None:
            raise SelectionError(f"Mentor {mentor_id} is not part of this cohort")
        if any(pair.mentee_id == mentee_id for pair in self._pairs):
            raise SelectionError(f"Mentee {mentee_id} is already paired")

        pair = ManualMatch(
            mentee_id=mentee.id,
            mentee_name=mentee.display_name,
            mentor_id=mentor.id,
            mentor_name=mentor.display_name,
            confidence=confidence,
            notes=notes,
            created_at=self._clock(),
        )
        self._pairs.append(pair)
        self.finalized = False
        if self.effective_capacity(mentor_id) < 0:
            logger.warning("Manual pair pushes %s over capacity", mentor_id)
        return pair

    def remove_pair(self, mentee_id: str) -> None:
        remaining = [pair for pair in self._pairs if pair.mentee_id != mentee_id]
        if len(remaining) == len(self._pairs):
            raise SelectionError(f"Mentee {mentee_id} has no manual pair")
        self._pairs = remaining
        self.finalized = False

    def edit_pair(
        self,
        mentee_id: str,
        *,
        confidence: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> ManualMatch:
        for index, pair in enumerate(self._pairs):
            if pair.mentee_id != mentee_id:
                continue
            data = pair.model_dump()
            if confidence is not None:
                data["confidence"] = confidence
            if notes is not None:
                data["notes"] = notes
            # Re-validate so confidence stays within 1..5.
            updated = ManualMatch(**data)
            self._pairs[index] = updated
            self.finalized = False
            return updated
        raise SelectionError(f"Mentee {mentee_id} has no manual pair")

    def effective_capacity(self, mentor_id: str) -> int:
        """Remaining slots after approved and manual pairs; negative when overbooked."""

        mentor = self._mentors[mentor_id]
        return raw_remaining_capacity(mentor, self._approved, manual_assignments(self._output()))

    def save(self, finalized: bool) -> ManualMatchingOutput:
        self.finalized = finalized
        output = self._output()
        logger.info(
            "Manual board %s with %d pairs", "finalized" if finalized else "saved", len(self._pairs)
        )
        return output

    def _output(self) -> ManualMatchingOutput:
        return ManualMatchingOutput(
            matches=self.pairs,
            created_at=self._created_at,
            updated_at=self._clock(),
            finalized=self.finalized,
        )


__all__ = ["ManualBoard"]
