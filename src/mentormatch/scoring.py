"""Pairwise scoring of a mentee against a mentor."""

from __future__ import annotations

import re
from enum import Enum
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .clusters import cluster_for, same_cluster
from .models import (
    CapabilityProfile,
    LegacyProfile,
    MatchingWeights,
    MenteeProfile,
    MentorProfile,
    ScoreBreakdown,
    ScoreFeatures,
    resolve_capabilities,
)
from .timezones import timezone_distance

SimilarityFn = Callable[[MenteeProfile, MentorProfile], Optional[float]]

# Declaration order doubles as the tie-break order for reasons.
COMPONENTS: Tuple[str, ...] = ("capability", "semantic", "domain", "seniority", "timezone")

SENIORITY_SCORES = {
    "IC1": 1,
    "IC2": 2,
    "IC3": 3,
    "IC4": 4,
    "IC5": 5,
    "M1": 6,
    "M2": 7,
}

EXPERIENCE_BANDS = {
    "0-2": "IC1",
    "3-5": "IC2",
    "6-10": "IC3",
    "10+": "IC4",
}

DEFAULT_MENTEE_BAND = "IC2"
DEFAULT_MENTOR_BAND = "IC3"

TIMEZONE_BONUS_HOURS = 2.0

EXACT_PRIMARY = 1.0
EXACT_SECONDARY = 0.8
CLUSTER_PRIMARY = 0.55
CLUSTER_SECONDARY = 0.40

_WORD_PATTERN = re.compile(r"[a-z0-9]+")


class CapacityPenalty(str, Enum):
    """How the penalty feature is derived from remaining capacity."""

    LAST_SLOT = "last_slot"
    PROPORTIONAL = "proportional"


class PenaltyMode(str, Enum):
    """How the penalty combines with the positive components."""

    SUBTRACTIVE = "subtractive"
    MULTIPLICATIVE = "multiplicative"


class Scorer:
    """Scores a mentee against a mentor using weighted components.

    Scoring is side-effect free; one instance may be shared across threads.
    """

    def __init__(
        self,
        *,
        similarity: Optional[SimilarityFn] = None,
        penalty: CapacityPenalty = CapacityPenalty.LAST_SLOT,
        mode: PenaltyMode = PenaltyMode.SUBTRACTIVE,
    ) -> None:
        self.similarity = similarity or keyword_similarity
        self.penalty = CapacityPenalty(penalty)
        self.mode = PenaltyMode(mode)

    def score(
        self,
        mentee: MenteeProfile,
        mentor: MentorProfile,
        weights: MatchingWeights,
        *,
        remaining_capacity: Optional[int] = None,
    ) -> ScoreBreakdown:
        """Score one pair.

        Args:
            mentee: Profile of the mentee.
            mentor: Profile of the candidate mentor.
            weights: Component weights.
            remaining_capacity: Effective remaining capacity of the mentor.
                Defaults to the mentor's nominal capacity.

        Returns:
            A :class:`ScoreBreakdown` with weighted contributions, the
            clamped total and ordered reasons.
        """

        remaining = mentor.capacity_remaining if remaining_capacity is None else remaining_capacity
        capability, shared = self._capability_score(mentee.skills, mentor.skills)
        distance = timezone_distance(mentee.timezone, mentor.timezone)

        features = ScoreFeatures(
            capability=capability,
            semantic=_clamp01(self.similarity(mentee, mentor)),
            domain=self._domain_score(mentee.skills, mentor.skills),
            seniority=self._seniority_score(mentee, mentor),
            timezone=self._timezone_score(distance),
            capacity_penalty=self._penalty_score(remaining),
        )

        points = {
            component: round(getattr(weights, component) * getattr(features, component), 4)
            for component in COMPONENTS
        }
        positive = sum(points.values())
        if self.mode is PenaltyMode.MULTIPLICATIVE:
            factor = 1.0 - (weights.capacity_penalty / 100.0) * features.capacity_penalty
            penalty_points = positive - positive * factor
        else:
            penalty_points = weights.capacity_penalty * features.capacity_penalty
        total = max(0.0, positive - penalty_points)

        return ScoreBreakdown(
            features=features,
            capacity_penalty=round(penalty_points, 4),
            total_score=round(total, 2),
            reasons=_reasons(points, features, shared, mentee),
            risks=_risks(features, distance),
            **points,
        )

    def _capability_score(
        self,
        mentee_skills: Union[LegacyProfile, CapabilityProfile],
        mentor_skills: Union[LegacyProfile, CapabilityProfile],
    ) -> Tuple[float, List[str]]:
        mentor_names = _normalized_set(resolve_capabilities(mentor_skills))
        shared = [
            name for name in resolve_capabilities(mentee_skills) if name.lower() in mentor_names
        ]

        if isinstance(mentee_skills, CapabilityProfile) and isinstance(
            mentor_skills, CapabilityProfile
        ):
            primary = _capability_match(mentee_skills.primary.name, mentor_skills)
            if not mentee_skills.secondary:
                return primary, shared
            secondary = max(
                _capability_match(capability.name, mentor_skills)
                for capability in mentee_skills.secondary
            )
            return min(1.0, 0.75 * primary + 0.25 * secondary), shared

        # Mixed or legacy variants fall back to set overlap of the names.
        mentee_names = _normalized_set(resolve_capabilities(mentee_skills))
        if not mentee_names or not mentor_names:
            return 0.0, shared
        return len(mentee_names & mentor_names) / len(mentee_names | mentor_names), shared

    def _domain_score(
        self,
        mentee_skills: Union[LegacyProfile, CapabilityProfile],
        mentor_skills: Union[LegacyProfile, CapabilityProfile],
    ) -> float:
        if not isinstance(mentee_skills, CapabilityProfile) or not isinstance(
            mentor_skills, CapabilityProfile
        ):
            return 0.0
        mentee_tokens = _tokens(cap.detail for cap in mentee_skills.all_capabilities)
        mentor_tokens = _tokens(cap.detail for cap in mentor_skills.all_capabilities)
        if not mentee_tokens or not mentor_tokens:
            return 0.0
        return len(mentee_tokens & mentor_tokens) / len(mentee_tokens | mentor_tokens)

    def _seniority_score(self, mentee: MenteeProfile, mentor: MentorProfile) -> float:
        mentee_level = SENIORITY_SCORES[seniority_band(mentee, DEFAULT_MENTEE_BAND)]
        mentor_level = SENIORITY_SCORES[seniority_band(mentor, DEFAULT_MENTOR_BAND)]
        if mentor_level >= mentee_level:
            return 1.0 - min((mentor_level - mentee_level) / 6, 1.0)
        return 0.5

    def _timezone_score(self, distance: Optional[float]) -> float:
        if distance is None:
            return 0.0
        return 1.0 if distance <= TIMEZONE_BONUS_HOURS else 0.0

    def _penalty_score(self, remaining: int) -> float:
        if remaining <= 0:
            return 1.0
        if self.penalty is CapacityPenalty.PROPORTIONAL:
            return 1.0 / remaining
        return 1.0 if remaining == 1 else 0.0


def score(
    mentee: MenteeProfile,
    mentor: MentorProfile,
    weights: MatchingWeights,
    *,
    remaining_capacity: Optional[int] = None,
    similarity: Optional[SimilarityFn] = None,
    penalty: CapacityPenalty = CapacityPenalty.LAST_SLOT,
    mode: PenaltyMode = PenaltyMode.SUBTRACTIVE,
) -> ScoreBreakdown:
    """Score one pair; shorthand for ``Scorer(...).score(...)``."""

    scorer = Scorer(similarity=similarity, penalty=penalty, mode=mode)
    return scorer.score(mentee, mentor, weights, remaining_capacity=remaining_capacity)


def seniority_band(profile: Union[MenteeProfile, MentorProfile], default: str) -> str:
    """Resolve a participant's band from explicit band, job grade or experience."""

    for candidate in (profile.seniority_band, profile.job_grade):
        if candidate and candidate.strip().upper() in SENIORITY_SCORES:
            return candidate.strip().upper()
    if profile.experience_band:
        key = profile.experience_band.strip().replace("–", "-").replace(" ", "")
        if key in EXPERIENCE_BANDS:
            return EXPERIENCE_BANDS[key]
    return default


def keyword_similarity(mentee: MenteeProfile, mentor: MentorProfile) -> float:
    """Word overlap between mentee goals and mentor bio plus topics."""

    mentee_text = (mentee.goals_text or "").lower()
    mentee_words = {word for word in _WORD_PATTERN.findall(mentee_text) if len(word) > 3}
    mentor_text = " ".join([mentor.bio_text or "", *mentor.capabilities]).lower()
    mentor_words = {word for word in _WORD_PATTERN.findall(mentor_text) if len(word) > 3}
    if not mentee_words or not mentor_words:
        return 0.0
    return len(mentee_words & mentor_words) / len(mentee_words | mentor_words)


def precomputed_similarity(
    matrix: Mapping[Tuple[str, str], float], fallback: Optional[SimilarityFn] = None
) -> SimilarityFn:
    """Similarity backed by externally computed scores keyed by (mentee_id, mentor_id)."""

    def _lookup(mentee: MenteeProfile, mentor: MentorProfile) -> Optional[float]:
        value = matrix.get((mentee.id, mentor.id))
        if value is None and fallback is not None:
            return fallback(mentee, mentor)
        return value

    return _lookup


def _capability_match(name: str, mentor_skills: CapabilityProfile) -> float:
    key = name.strip().lower()
    if key == mentor_skills.primary.name.lower():
        return EXACT_PRIMARY
    if any(key == capability.name.lower() for capability in mentor_skills.secondary):
        return EXACT_SECONDARY
    if same_cluster(name, mentor_skills.primary.name):
        return CLUSTER_PRIMARY
    if any(same_cluster(name, capability.name) for capability in mentor_skills.secondary):
        return CLUSTER_SECONDARY
    return 0.0


def _reasons(
    points: Mapping[str, float],
    features: ScoreFeatures,
    shared: Sequence[str],
    mentee: MenteeProfile,
) -> List[str]:
    contributing = [component for component in COMPONENTS if points[component] > 0]
    # sorted() is stable, so equal contributions keep declaration order.
    contributing = sorted(contributing, key=lambda component: points[component], reverse=True)

    reasons = []
    for component in contributing:
        if component == "capability":
            if shared:
                reasons.append("Shared capabilities: " + ", ".join(shared))
            else:
                cluster = cluster_for(mentee.capabilities[0]) if mentee.capabilities else None
                reasons.append(f"Related capabilities ({cluster})" if cluster else "Related capabilities")
        elif component == "semantic":
            reasons.append("Aligned goals and expertise")
        elif component == "domain":
            reasons.append("Overlapping domain experience")
        elif component == "seniority":
            if features.seniority >= 0.7:
                reasons.append("Appropriate seniority gap")
            else:
                reasons.append("Seniority fit")
        elif component == "timezone":
            reasons.append("Compatible timezone")
    return reasons


def _risks(features: ScoreFeatures, distance: Optional[float]) -> List[str]:
    risks = []
    if features.capacity_penalty > 0:
        risks.append("Limited mentor capacity")
    if features.capability < 0.2:
        risks.append("Limited topic overlap")
    if distance is not None and distance > TIMEZONE_BONUS_HOURS:
        risks.append("Timezone difference")
    return risks


def _clamp01(value: Optional[float]) -> float:
    if value is None:
        return 0.0
    return max(0.0, min(1.0, float(value)))


def _tokens(texts: Iterable[Optional[str]]) -> set[str]:
    return {
        word
        for text in texts
        if text
        for word in _WORD_PATTERN.findall(text.lower())
        if len(word) > 2
    }


def _normalized_set(values: Iterable[str]) -> set[str]:
    return {value.strip().lower() for value in values if value and value.strip()}


__all__ = [
    "COMPONENTS",
    "CapacityPenalty",
    "PenaltyMode",
    "Scorer",
    "SimilarityFn",
    "keyword_similarity",
    "precomputed_similarity",
    "score",
    "seniority_band",
]
