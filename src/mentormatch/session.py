"""One administrator's interactive matching session over a cohort."""

from __future__ import annotations

import logging
from typing import Callable, Collection, Dict, List, Mapping, Optional, Union

from .capacity import (
    CapacityLedger,
    approved_assignments,
    manual_assignments,
    selection_assignments,
)
from .cohorts import history_entry, is_ready_for_matching
from .errors import ConfigurationError, NotReadyError
from .models import (
    Assignment,
    Cohort,
    CohortMatchRecord,
    ManualMatchingOutput,
    MatchingHistoryEntry,
    MatchingMode,
    MatchingRun,
    MatchResult,
    Readiness,
)
from .reconciler import (
    CommitOutcome,
    apply_manual_selections,
    clear_pending,
    commit_manual_board,
    continue_selection,
    propose_batch,
)
from .recommendations import RecommendationGenerator

logger = logging.getLogger(__name__)

SaveMatches = Callable[[str, CohortMatchRecord], Cohort]
SaveManualMatches = Callable[[str, ManualMatchingOutput], Cohort]
SaveHistory = Callable[[str, MatchingHistoryEntry], Cohort]
ReadinessCheck = Callable[[Cohort], Readiness]


class MatchingSession:
    """Drives a matching run from recommendation to approval.

    Writes go through ``save_matches`` as a full record replace. The session
    only adopts the cohort returned by a successful save, so a failed save
    leaves both the session and the cohort it was given unchanged.

    Every run and every saved set of matches is summarised in the cohort's
    ``matching_history``, through ``save_history`` when one is given.
    """

    def __init__(
        self,
        cohort: Cohort,
        save_matches: SaveMatches,
        *,
        save_manual_matches: Optional[SaveManualMatches] = None,
        save_history: Optional[SaveHistory] = None,
        readiness: ReadinessCheck = is_ready_for_matching,
    ) -> None:
        self.cohort = cohort
        self._save_matches = save_matches
        self._save_manual_matches = save_manual_matches
        self._save_history = save_history
        self._readiness = readiness
        self._pending: Optional[Union[MatchingRun, List[MatchResult]]] = None

    @property
    def pending(self) -> List[MatchResult]:
        if self._pending is None:
            return []
        if isinstance(self._pending, MatchingRun):
            return list(self._pending.results)
        return list(self._pending)

    @property
    def in_progress(self) -> bool:
        return self._pending is not None

    def start_run(self, generator: RecommendationGenerator) -> MatchingRun:
        """Generate recommendations for every mentee without an approved mentor.

        The match record is not written; the run is held until approved or
        abandoned and is only added to the history as not launched.
        """

        readiness = self._readiness(self.cohort)
        if not readiness.is_ready:
            raise NotReadyError(readiness.issues)

        approved_ids = {result.mentee_id for result in self.cohort.matches.approved()}
        mentees = [mentee for mentee in self.cohort.mentees if mentee.id not in approved_ids]
        run = generator.run(
            mentees,
            self.cohort.mentors,
            approved=approved_assignments(self.cohort.matches),
            pending=self._draft_assignments(),
        )
        self._pending = run
        self._record_history(
            history_entry(
                run.results, run.mode, run.stats, launched=False, timestamp=run.generated_at
            )
        )
        return run

    def continue_selection(self) -> List[MatchResult]:
        """Resume selection on the cohort's stored pending results."""

        self._pending = continue_selection(self.cohort.matches)
        return self.pending

    def abandon(self) -> None:
        """Drop the in-flight run. The cohort record is left as it was."""

        if self._pending is not None:
            logger.info("Abandoned matching run for cohort %s", self.cohort.id)
        self._pending = None

    def remaining_capacity(self, selections: Optional[Mapping[str, str]] = None) -> Dict[str, int]:
        """Effective remaining capacity per mentor given in-flight selections."""

        ledger = CapacityLedger(
            mentors=self.cohort.mentors,
            approved=approved_assignments(self.cohort.matches),
            pending=[*selection_assignments(dict(selections or {})), *self._draft_assignments()],
        )
        return ledger.snapshot()

    def propose_batch(self) -> Dict[str, str]:
        """Greedy best-available selection for the in-flight results."""

        self._require_pending()
        return propose_batch(self.pending, self.cohort.mentors, self.cohort.matches)

    def approve(
        self,
        selections: Mapping[str, str],
        comments: Optional[Mapping[str, str]] = None,
    ) -> Cohort:
        """Approve selections from the in-flight results and persist the record."""

        self._require_pending()
        record = apply_manual_selections(self.cohort.matches, self._pending, selections, comments)
        self._save(record)
        self._pending = None
        self._record_history(
            history_entry(record.results, record.mode, record.stats, launched=True)
        )
        return self.cohort

    def clear_pending(self) -> Cohort:
        """Persist a record holding only the approved results."""

        return self._save(clear_pending(self.cohort.matches))

    def commit_manual_board(self, output: ManualMatchingOutput) -> CommitOutcome:
        """Store a manual board; a finalized board is merged into the record.

        The board is stored before the record. If the record save then fails,
        the board is already final and no longer counts as pending capacity,
        so committing it again is safe.
        """

        outcome = commit_manual_board(
            self.cohort.matches, output, self.cohort.mentors, self.cohort.mentees
        )
        if self._save_manual_matches is not None:
            self.cohort = self._save_manual_matches(self.cohort.id, output)
        else:
            self.cohort = self.cohort.model_copy(update={"manual_matches": output})

        if outcome.committed:
            self._save(outcome.record)
            self._drop_from_pending({match.mentee_id for match in output.matches})
            self._record_history(
                history_entry(
                    outcome.record.results,
                    MatchingMode.MANUAL,
                    outcome.record.stats,
                    launched=True,
                )
            )
        return outcome

    def _save(self, record: CohortMatchRecord) -> Cohort:
        # Failures from the persistence collaborator propagate unchanged.
        cohort = self._save_matches(self.cohort.id, record)
        self.cohort = cohort
        logger.info(
            "Saved %d results (%d approved) for cohort %s",
            len(record.results),
            len(record.approved()),
            cohort.id,
        )
        return cohort

    def _record_history(self, entry: MatchingHistoryEntry) -> None:
        if self._save_history is not None:
            self.cohort = self._save_history(self.cohort.id, entry)
        else:
            history = [*self.cohort.matching_history, entry]
            self.cohort = self.cohort.model_copy(update={"matching_history": history})

    def _drop_from_pending(self, mentee_ids: Collection[str]) -> None:
        if self._pending is None:
            return
        if isinstance(self._pending, MatchingRun):
            results = [r for r in self._pending.results if r.mentee_id not in mentee_ids]
            self._pending = self._pending.model_copy(update={"results": results})
        else:
            self._pending = [r for r in self._pending if r.mentee_id not in mentee_ids]

    def _require_pending(self) -> None:
        if self._pending is None:
            raise ConfigurationError("No matching run in progress")

    def _draft_assignments(self) -> List[Assignment]:
        draft = self.cohort.manual_matches
        if draft is None or draft.finalized:
            return []
        return manual_assignments(draft)


__all__ = ["MatchingSession"]
