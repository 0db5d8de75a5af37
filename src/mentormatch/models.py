"""Data models for the mentormatch matching engine."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _strip_and_dedupe(values: Optional[List[str]]) -> Optional[List[str]]:
    if values is None or not isinstance(values, list):
        return values
    seen = set()
    ordered_unique = []
    for item in values:
        normalized = item.strip() if isinstance(item, str) else item
        if isinstance(normalized, str) and normalized:
            key = normalized.lower()
            if key not in seen:
                ordered_unique.append(normalized)
                seen.add(key)
    return ordered_unique


# ---------------------------------------------------------------------------
# Participant profiles
# ---------------------------------------------------------------------------


class Capability(BaseModel):
    """A single capability a participant wants to build or can mentor in."""

    name: str = Field(..., min_length=1, description="Capability name from the survey list")
    detail: Optional[str] = Field(
        default=None, description="Free-text detail about the capability's domain"
    )
    proficiency: Optional[int] = Field(
        default=None, ge=1, le=5, description="Self-rated proficiency from 1 to 5"
    )

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip()


class LegacyProfile(BaseModel):
    """Profiles from the first intake survey: a flat list of topics."""

    kind: Literal["legacy"] = "legacy"
    topics: List[str] = Field(default_factory=list)

    @field_validator("topics", mode="before")
    @classmethod
    def _clean_topics(cls, values: Optional[List[str]]) -> Optional[List[str]]:
        return _strip_and_dedupe(values)


class CapabilityProfile(BaseModel):
    """Profiles from the capability survey: one primary plus secondaries."""

    kind: Literal["capability"] = "capability"
    primary: Capability
    secondary: List[Capability] = Field(default_factory=list)

    @property
    def all_capabilities(self) -> List[Capability]:
        return [self.primary, *self.secondary]


SkillProfile = Annotated[Union[LegacyProfile, CapabilityProfile], Field(discriminator="kind")]


def resolve_capabilities(profile: Union[LegacyProfile, CapabilityProfile]) -> List[str]:
    """Return the ordered capability/topic names for either profile variant."""

    if isinstance(profile, CapabilityProfile):
        return _strip_and_dedupe([cap.name for cap in profile.all_capabilities]) or []
    return list(profile.topics)


class _Participant(BaseModel):
    id: str = Field(..., min_length=1, description="Unique identifier for the participant")
    name: Optional[str] = Field(default=None, description="Display name")
    role: str = Field(default="", description="Job title")
    skills: SkillProfile = Field(default_factory=LegacyProfile)
    timezone: Optional[str] = Field(
        default=None,
        description="Location/timezone label, e.g. 'Central Europe (CET)' or '+2'",
    )
    experience_band: Optional[str] = Field(default=None, description="e.g. '3–5', '10+'")
    seniority_band: Optional[str] = Field(default=None, description="e.g. 'IC3', 'M1'")
    department: Optional[str] = None
    job_grade: Optional[str] = None
    languages: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _resolve_skill_variant(cls, data: Any) -> Any:
        # Intake records arrive either with legacy ``topics`` or with the
        # flat ``primary_capability`` columns; both become a tagged profile.
        if not isinstance(data, dict) or "skills" in data:
            return data
        data = dict(data)
        if data.get("primary_capability"):
            secondary = data.pop("secondary_capabilities", None) or []
            if isinstance(secondary, str):
                secondary = [secondary]
            secondary_detail = data.pop("secondary_capability_detail", None)
            secondary_proficiency = data.pop("secondary_proficiency", None)
            data["skills"] = {
                "kind": "capability",
                "primary": {
                    "name": data.pop("primary_capability"),
                    "detail": data.pop("primary_capability_detail", None),
                    "proficiency": data.pop("primary_proficiency", None),
                },
                "secondary": [
                    {
                        "name": name,
                        "detail": secondary_detail,
                        "proficiency": secondary_proficiency,
                    }
                    for name in secondary
                    if name
                ],
            }
            data.pop("topics", None)
        elif "topics" in data:
            data["skills"] = {"kind": "legacy", "topics": data.pop("topics") or []}
        return data

    @field_validator("timezone", mode="before")
    @classmethod
    def _coerce_timezone(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return f"{value:+g}"
        if isinstance(value, str):
            return value.strip() or None
        return value

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def capabilities(self) -> List[str]:
        return resolve_capabilities(self.skills)


class MenteeProfile(_Participant):
    """A participant looking for a mentor."""

    goals_text: Optional[str] = Field(
        default=None, description="Combined motivation, goals and expectations"
    )


class MentorProfile(_Participant):
    """A participant offering mentoring."""

    bio_text: Optional[str] = Field(
        default=None, description="Combined motivation, expectations and experience"
    )
    capacity_remaining: int = Field(
        0, ge=0, description="Nominal number of mentees this mentor can take"
    )


# ---------------------------------------------------------------------------
# Matching configuration
# ---------------------------------------------------------------------------


class MatchingWeights(BaseModel):
    """Percentage-like weights applied to each scoring component.

    The positive weights are not required to sum to 100. The capacity
    penalty weight is always subtracted.
    """

    model_config = ConfigDict(extra="forbid")

    capability: float = Field(45, ge=0, le=100)
    semantic: float = Field(30, ge=0, le=100)
    domain: float = Field(5, ge=0, le=100)
    seniority: float = Field(10, ge=0, le=100)
    timezone: float = Field(5, ge=0, le=100)
    capacity_penalty: float = Field(10, ge=0, le=100)

    @property
    def positive_total(self) -> float:
        return self.capability + self.semantic + self.domain + self.seniority + self.timezone


class MatchingFilters(BaseModel):
    """Hard constraints applied before scoring."""

    model_config = ConfigDict(extra="forbid")

    max_timezone_difference: int = Field(6, ge=0, description="Maximum offset difference in hours")
    require_available_capacity: bool = Field(
        True, description="Exclude mentors whose effective remaining capacity is zero"
    )


class ModelStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class MatchingModel(BaseModel):
    """A named, versioned matching configuration."""

    id: str
    name: str = Field(..., min_length=1)
    version: int = Field(1, ge=1)
    status: ModelStatus = ModelStatus.DRAFT
    is_default: bool = False
    weights: MatchingWeights = Field(default_factory=MatchingWeights)
    filters: MatchingFilters = Field(default_factory=MatchingFilters)
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Scores and results
# ---------------------------------------------------------------------------


class ScoreFeatures(BaseModel):
    """Raw component values, each between 0 and 1."""

    capability: float = 0.0
    semantic: float = 0.0
    domain: float = 0.0
    seniority: float = 0.0
    timezone: float = 0.0
    capacity_penalty: float = 0.0


class ScoreBreakdown(BaseModel):
    """Weighted contributions for one mentee/mentor pair."""

    features: ScoreFeatures
    capability: float
    semantic: float
    domain: float
    seniority: float
    timezone: float
    capacity_penalty: float
    total_score: float = Field(..., ge=0)
    reasons: List[str] = Field(default_factory=list)
    risks: List[str] = Field(default_factory=list)


class MatchCandidate(BaseModel):
    mentor_id: str
    mentor_name: Optional[str] = None
    score: ScoreBreakdown


class ProposedAssignment(BaseModel):
    mentor_id: str
    mentor_name: Optional[str] = None
    comment: Optional[str] = None


class MatchResult(BaseModel):
    """Ranked candidates for one mentee, plus the approved mentor if any."""

    mentee_id: str
    mentee_name: Optional[str] = None
    recommendations: List[MatchCandidate] = Field(default_factory=list)
    proposed_assignment: Optional[ProposedAssignment] = None

    @property
    def is_approved(self) -> bool:
        return self.proposed_assignment is not None

    def find_candidate(self, mentor_id: str) -> Optional[MatchCandidate]:
        for candidate in self.recommendations:
            if candidate.mentor_id == mentor_id:
                return candidate
        return None


class MatchingMode(str, Enum):
    TOP_N = "top_n_per_mentee"
    BATCH = "batch"
    MANUAL = "manual"


class MatchingStats(BaseModel):
    mentees_total: int = 0
    mentors_total: int = 0
    pairs_evaluated: int = 0
    after_filters: int = 0


class CohortMatchRecord(BaseModel):
    """Authoritative per-cohort set of approved and pending results."""

    results: List[MatchResult] = Field(default_factory=list)
    mode: Optional[MatchingMode] = None
    stats: Optional[MatchingStats] = None
    generated_at: Optional[datetime] = None

    @field_validator("results")
    @classmethod
    def _one_result_per_mentee(cls, results: List[MatchResult]) -> List[MatchResult]:
        seen = set()
        for result in results:
            if result.mentee_id in seen:
                raise ValueError(f"duplicate result for mentee {result.mentee_id}")
            seen.add(result.mentee_id)
        return results

    def approved(self) -> List[MatchResult]:
        return [result for result in self.results if result.is_approved]

    def pending(self) -> List[MatchResult]:
        return [result for result in self.results if not result.is_approved]


class MatchingRun(BaseModel):
    """Output of a single recommendation run, before any approval."""

    mode: MatchingMode = MatchingMode.TOP_N
    stats: MatchingStats
    results: List[MatchResult]
    generated_at: datetime = Field(default_factory=utcnow)

    def to_record(self) -> CohortMatchRecord:
        return CohortMatchRecord(
            results=self.results,
            mode=self.mode,
            stats=self.stats,
            generated_at=self.generated_at,
        )


# ---------------------------------------------------------------------------
# Manual pairing
# ---------------------------------------------------------------------------


class ManualMatch(BaseModel):
    """A pairing authored by an administrator outside the scored flow."""

    mentee_id: str
    mentee_name: Optional[str] = None
    mentor_id: str
    mentor_name: Optional[str] = None
    confidence: int = Field(3, ge=1, le=5, description="Administrator gut-feel score")
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("notes", mode="before")
    @classmethod
    def _blank_notes(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str):
            return value.strip() or None
        return value


class ManualMatchingOutput(BaseModel):
    matches: List[ManualMatch] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    finalized: bool = False


# ---------------------------------------------------------------------------
# Capacity bookkeeping
# ---------------------------------------------------------------------------


class Assignment(BaseModel):
    """A mentee counted against a mentor's capacity."""

    model_config = ConfigDict(frozen=True)

    mentee_id: str
    mentor_id: str


class CapacityWarning(BaseModel):
    mentor_id: str
    mentor_name: Optional[str] = None
    nominal_capacity: int
    assigned: int

    @property
    def overrun(self) -> int:
        return self.assigned - self.nominal_capacity

    @property
    def message(self) -> str:
        name = self.mentor_name or self.mentor_id
        return (
            f"{name} is over capacity: {self.assigned} assigned for "
            f"{self.nominal_capacity} slot(s)"
        )


# ---------------------------------------------------------------------------
# Cohort aggregate
# ---------------------------------------------------------------------------


class CohortStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class MatchingHistoryEntry(BaseModel):
    """Summary of one matching run or one saved set of matches."""

    id: str
    timestamp: datetime = Field(default_factory=utcnow)
    mode: MatchingMode
    stats: Optional[MatchingStats] = None
    launched: bool = Field(False, description="Whether the matches were approved and saved")
    matches_count: int = 0
    average_score: float = Field(0.0, description="Mean top-candidate score over scored results")


class Cohort(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    status: CohortStatus = CohortStatus.DRAFT
    mentees: List[MenteeProfile] = Field(default_factory=list)
    mentors: List[MentorProfile] = Field(default_factory=list)
    matches: CohortMatchRecord = Field(default_factory=CohortMatchRecord)
    manual_matches: Optional[ManualMatchingOutput] = None
    matching_history: List[MatchingHistoryEntry] = Field(default_factory=list)
    session_thresholds: Dict[str, Any] = Field(default_factory=dict)

    def mentor_lookup(self) -> Dict[str, MentorProfile]:
        return {mentor.id: mentor for mentor in self.mentors}


class CohortStats(BaseModel):
    total_mentees: int
    total_mentors: int
    total_capacity: int
    matches_created: int
    matches_approved: int


class Readiness(BaseModel):
    is_ready: bool
    issues: List[str] = Field(default_factory=list)


__all__ = [
    "Assignment",
    "Capability",
    "CapabilityProfile",
    "CapacityWarning",
    "Cohort",
    "CohortMatchRecord",
    "CohortStats",
    "CohortStatus",
    "LegacyProfile",
    "ManualMatch",
    "ManualMatchingOutput",
    "MatchCandidate",
    "MatchResult",
    "MatchingFilters",
    "MatchingHistoryEntry",
    "MatchingMode",
    "MatchingModel",
    "MatchingRun",
    "MatchingStats",
    "MatchingWeights",
    "MenteeProfile",
    "MentorProfile",
    "ModelStatus",
    "ProposedAssignment",
    "Readiness",
    "ScoreBreakdown",
    "ScoreFeatures",
    "SkillProfile",
    "resolve_capabilities",
    "utcnow",
]
