"""In-memory cohort storage implementing the save boundary used by sessions."""

from __future__ import annotations

import logging
from typing import Dict, List

from .errors import CohortNotFoundError
from .models import Cohort, CohortMatchRecord, ManualMatchingOutput, MatchingHistoryEntry

logger = logging.getLogger(__name__)


class InMemoryCohortRepository:
    """Stores cohorts by id and returns copies, never shared instances.

    Match records are replaced whole, so a reader never sees a half-applied
    update.
    """

    def __init__(self) -> None:
        self._cohorts: Dict[str, Cohort] = {}

    def add(self, cohort: Cohort) -> Cohort:
        self._cohorts[cohort.id] = cohort.model_copy(deep=True)
        return self.get(cohort.id)

    def get(self, cohort_id: str) -> Cohort:
        try:
            return self._cohorts[cohort_id].model_copy(deep=True)
        except KeyError:
            raise CohortNotFoundError(cohort_id) from None

    def list(self) -> List[Cohort]:
        return [cohort.model_copy(deep=True) for cohort in self._cohorts.values()]

    def save_matches(self, cohort_id: str, record: CohortMatchRecord) -> Cohort:
        cohort = self.get(cohort_id)
        self._cohorts[cohort_id] = cohort.model_copy(update={"matches": record.model_copy(deep=True)})
        logger.debug("Replaced match record for cohort %s", cohort_id)
        return self.get(cohort_id)

    def save_manual_matches(self, cohort_id: str, output: ManualMatchingOutput) -> Cohort:
        cohort = self.get(cohort_id)
        self._cohorts[cohort_id] = cohort.model_copy(
            update={"manual_matches": output.model_copy(deep=True)}
        )
        return self.get(cohort_id)

    def append_history(self, cohort_id: str, entry: MatchingHistoryEntry) -> Cohort:
        cohort = self.get(cohort_id)
        history = [*cohort.matching_history, entry.model_copy()]
        self._cohorts[cohort_id] = cohort.model_copy(update={"matching_history": history})
        return self.get(cohort_id)


__all__ = ["InMemoryCohortRepository"]
