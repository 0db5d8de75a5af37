"""Tests for pairwise scoring."""

from __future__ import annotations

import pytest

from mentormatch.models import (
    CapabilityProfile,
    LegacyProfile,
    MatchingWeights,
    MenteeProfile,
    MentorProfile,
)
from mentormatch.scoring import (
    CapacityPenalty,
    PenaltyMode,
    Scorer,
    keyword_similarity,
    precomputed_similarity,
    score,
    seniority_band,
)


def _sample_mentee(**overrides):
    data = dict(
        id="m1",
        name="Mia Mentee",
        topics=["SQL", "Leadership"],
        timezone="+2",
        goals_text="Improve stakeholder communication and leadership skills",
    )
    data.update(overrides)
    return MenteeProfile(**data)


def _sample_mentor(**overrides):
    data = dict(
        id="a",
        name="Ada Mentor",
        topics=["SQL"],
        timezone="+2",
        capacity_remaining=3,
        bio_text="Led data teams, coached leadership and communication",
    )
    data.update(overrides)
    return MentorProfile(**data)


def _capability_only() -> MatchingWeights:
    return MatchingWeights(
        capability=100, semantic=0, domain=0, seniority=0, timezone=0, capacity_penalty=0
    )


def test_intake_topics_become_legacy_profile() -> None:
    mentee = _sample_mentee(topics=[" SQL ", "sql", "Leadership", ""])

    assert isinstance(mentee.skills, LegacyProfile)
    assert mentee.capabilities == ["SQL", "Leadership"]


def test_intake_capability_columns_become_capability_profile() -> None:
    mentor = MentorProfile(
        id="a",
        primary_capability="Strategic Communication",
        primary_capability_detail="Board reporting",
        primary_proficiency=4,
        secondary_capabilities=["Empathy", "Managing Up"],
        capacity_remaining=2,
    )

    assert isinstance(mentor.skills, CapabilityProfile)
    assert mentor.skills.primary.proficiency == 4
    assert mentor.capabilities == ["Strategic Communication", "Empathy", "Managing Up"]


def test_numeric_timezone_is_normalised() -> None:
    assert _sample_mentee(timezone=2).timezone == "+2"
    assert _sample_mentee(timezone=-5).timezone == "-5"
    assert _sample_mentee(timezone="  ").timezone is None


def test_score_is_deterministic() -> None:
    mentee = _sample_mentee()
    mentor = _sample_mentor()

    first = score(mentee, mentor, MatchingWeights())
    second = score(mentee, mentor, MatchingWeights())

    assert first == second


def test_capability_overlap_uses_jaccard_for_topics() -> None:
    breakdown = score(_sample_mentee(), _sample_mentor(), _capability_only())

    assert breakdown.features.capability == pytest.approx(0.5)
    assert breakdown.capability == pytest.approx(50.0)
    assert breakdown.total_score == pytest.approx(50.0)
    assert breakdown.reasons == ["Shared capabilities: SQL"]


def test_zero_weights_give_zero_total_and_no_reasons() -> None:
    weights = MatchingWeights(
        capability=0, semantic=0, domain=0, seniority=0, timezone=0, capacity_penalty=0
    )

    breakdown = score(_sample_mentee(), _sample_mentor(), weights)

    assert breakdown.total_score == 0
    assert breakdown.reasons == []


def test_total_never_negative() -> None:
    weights = MatchingWeights(
        capability=1, semantic=0, domain=0, seniority=0, timezone=0, capacity_penalty=100
    )

    breakdown = score(_sample_mentee(), _sample_mentor(capacity_remaining=1), weights)

    assert breakdown.capacity_penalty == pytest.approx(100.0)
    assert breakdown.total_score == 0


def test_reasons_follow_contribution_order() -> None:
    weights = MatchingWeights(
        capability=10, semantic=0, domain=0, seniority=40, timezone=20, capacity_penalty=0
    )

    breakdown = score(_sample_mentee(), _sample_mentor(), weights)

    # seniority IC2 -> IC3 = 40 * 5/6, timezone 20, capability 10 * 0.5
    assert breakdown.reasons == [
        "Appropriate seniority gap",
        "Compatible timezone",
        "Shared capabilities: SQL",
    ]


def test_equal_contributions_keep_component_order() -> None:
    weights = MatchingWeights(
        capability=10, semantic=0, domain=0, seniority=0, timezone=10, capacity_penalty=0
    )
    mentee = _sample_mentee(topics=["SQL"])

    breakdown = score(mentee, _sample_mentor(), weights)

    assert breakdown.capability == breakdown.timezone == pytest.approx(10.0)
    assert breakdown.reasons == ["Shared capabilities: SQL", "Compatible timezone"]


def test_last_slot_penalty_only_applies_to_final_slot() -> None:
    weights = MatchingWeights()
    mentee = _sample_mentee()

    roomy = score(mentee, _sample_mentor(capacity_remaining=3), weights)
    last = score(mentee, _sample_mentor(capacity_remaining=1), weights)

    assert roomy.features.capacity_penalty == 0
    assert last.features.capacity_penalty == 1
    assert roomy.total_score - last.total_score == pytest.approx(10.0, abs=0.01)
    assert "Limited mentor capacity" in last.risks


def test_proportional_penalty_scales_with_remaining_capacity() -> None:
    scorer = Scorer(penalty=CapacityPenalty.PROPORTIONAL)

    breakdown = scorer.score(
        _sample_mentee(), _sample_mentor(), MatchingWeights(), remaining_capacity=4
    )

    assert breakdown.features.capacity_penalty == pytest.approx(0.25)
    assert breakdown.capacity_penalty == pytest.approx(2.5)


def test_multiplicative_penalty_scales_positive_total() -> None:
    weights = _capability_only().model_copy(update={"capacity_penalty": 50})
    scorer = Scorer(mode=PenaltyMode.MULTIPLICATIVE)

    breakdown = scorer.score(_sample_mentee(), _sample_mentor(), weights, remaining_capacity=1)

    assert breakdown.total_score == pytest.approx(25.0)


def test_remaining_capacity_override_is_used() -> None:
    mentor = _sample_mentor(capacity_remaining=5)

    breakdown = score(_sample_mentee(), mentor, MatchingWeights(), remaining_capacity=0)

    assert breakdown.features.capacity_penalty == 1


def test_capability_profiles_use_cluster_matching() -> None:
    mentee = _sample_mentee(
        topics=None,
        primary_capability="Active Listening",
        secondary_capabilities=["Empathy"],
    )
    mentor = _sample_mentor(
        topics=None,
        primary_capability="Strategic Communication",
        secondary_capabilities=["Empathy"],
    )

    breakdown = score(mentee, mentor, _capability_only())

    # primary shares a cluster with mentor's primary, secondary is an exact secondary.
    assert breakdown.features.capability == pytest.approx(0.75 * 0.55 + 0.25 * 0.8)
    assert breakdown.reasons[0] == "Shared capabilities: Empathy"


def test_exact_primary_match_scores_full() -> None:
    mentee = _sample_mentee(primary_capability="Empathy")
    mentor = _sample_mentor(primary_capability="Empathy")

    breakdown = score(mentee, mentor, _capability_only())

    assert breakdown.features.capability == pytest.approx(1.0)


def test_cluster_only_match_reports_cluster_reason() -> None:
    mentee = _sample_mentee(primary_capability="Active Listening")
    mentor = _sample_mentor(primary_capability="Assertiveness")

    breakdown = score(mentee, mentor, _capability_only())

    assert breakdown.features.capability == pytest.approx(0.55)
    assert breakdown.reasons == ["Related capabilities (Communication)"]


def test_domain_uses_capability_details() -> None:
    weights = MatchingWeights(
        capability=0, semantic=0, domain=100, seniority=0, timezone=0, capacity_penalty=0
    )
    mentee = _sample_mentee(
        primary_capability="Empathy", primary_capability_detail="healthcare startups"
    )
    mentor = _sample_mentor(
        primary_capability="Empathy", primary_capability_detail="healthcare consulting"
    )

    breakdown = score(mentee, mentor, weights)

    assert breakdown.features.domain == pytest.approx(1 / 3)
    assert breakdown.reasons == ["Overlapping domain experience"]


def test_seniority_band_resolution() -> None:
    assert seniority_band(_sample_mentee(seniority_band="ic4"), "IC2") == "IC4"
    assert seniority_band(_sample_mentee(job_grade="M1"), "IC2") == "M1"
    assert seniority_band(_sample_mentee(experience_band="3–5"), "IC1") == "IC2"
    assert seniority_band(_sample_mentee(), "IC2") == "IC2"


def test_junior_mentor_gets_partial_seniority() -> None:
    weights = MatchingWeights(
        capability=0, semantic=0, domain=0, seniority=100, timezone=0, capacity_penalty=0
    )

    breakdown = score(
        _sample_mentee(seniority_band="IC5"), _sample_mentor(seniority_band="IC2"), weights
    )

    assert breakdown.features.seniority == pytest.approx(0.5)
    assert breakdown.reasons == ["Seniority fit"]


def test_distant_timezone_earns_no_bonus() -> None:
    breakdown = score(_sample_mentee(), _sample_mentor(timezone="+6"), MatchingWeights())

    assert breakdown.features.timezone == 0
    assert "Timezone difference" in breakdown.risks


def test_keyword_similarity_ignores_short_words() -> None:
    mentee = _sample_mentee(goals_text="to be in the SQL")
    mentor = _sample_mentor(bio_text="to be in the", topics=["Leadership"])

    assert keyword_similarity(mentee, mentor) == 0.0


def test_precomputed_similarity_falls_back() -> None:
    similarity = precomputed_similarity({("m1", "a"): 0.9}, fallback=lambda mentee, mentor: 0.1)

    assert similarity(_sample_mentee(), _sample_mentor()) == 0.9
    assert similarity(_sample_mentee(), _sample_mentor(id="b")) == 0.1


def test_injected_similarity_is_clamped() -> None:
    weights = MatchingWeights(
        capability=0, semantic=100, domain=0, seniority=0, timezone=0, capacity_penalty=0
    )
    scorer = Scorer(similarity=lambda mentee, mentor: 1.7)

    breakdown = scorer.score(_sample_mentee(), _sample_mentor(), weights)

    assert breakdown.features.semantic == 1.0
    assert breakdown.semantic == pytest.approx(100.0)
