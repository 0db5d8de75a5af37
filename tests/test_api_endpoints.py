"""Integration tests for the FastAPI endpoints."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import pytest
from fastapi.testclient import TestClient

from app.main import app
from mentormatch.models import MatchingWeights, MenteeProfile, MentorProfile
from mentormatch.scoring import score

client = TestClient(app)


def _mentee_payload(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "id": "M1",
        "name": "Mia Mentee",
        "topics": ["SQL", "Leadership"],
        "timezone": "+2",
        "goals_text": "Grow into a data team lead",
    }
    data.update(overrides)
    return data


def _mentor_payload(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "id": "A",
        "name": "Ada Mentor",
        "topics": ["SQL"],
        "timezone": "+2",
        "capacity_remaining": 1,
        "bio_text": "Data team lead for ten years",
    }
    data.update(overrides)
    return data


def _cohort_payload(cohort_id: str, **overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "id": cohort_id,
        "name": "Spring cohort",
        "mentees": [_mentee_payload(id="M1"), _mentee_payload(id="M2")],
        "mentors": [
            _mentor_payload(id="A", capacity_remaining=2),
            _mentor_payload(id="B", capacity_remaining=2),
        ],
    }
    data.update(overrides)
    return data


def test_health_endpoint_reports_ok() -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_match_endpoint_filters_and_scores() -> None:
    weights = {
        "capability": 100,
        "semantic": 0,
        "domain": 0,
        "seniority": 0,
        "timezone": 0,
        "capacity_penalty": 0,
    }
    mentee_payload = _mentee_payload()
    mentor_a = _mentor_payload(id="A")
    mentor_b = _mentor_payload(
        id="B", topics=["SQL", "Leadership"], timezone="+9", capacity_remaining=5
    )

    response = client.post(
        "/match",
        json={
            "mentees": [mentee_payload],
            "mentors": [mentor_a, mentor_b],
            "weights": weights,
            "filters": {"max_timezone_difference": 4},
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert set(body.keys()) == {"weights", "filters", "stats", "results"}
    assert body["weights"] == MatchingWeights(**weights).model_dump()
    assert body["stats"]["after_filters"] == 1

    [result] = body["results"]
    assert [c["mentor_id"] for c in result["recommendations"]] == ["A"]
    assert result["proposed_assignment"] is None

    expected = score(
        MenteeProfile(**mentee_payload), MentorProfile(**mentor_a), MatchingWeights(**weights)
    )
    assert result["recommendations"][0]["score"]["total_score"] == pytest.approx(
        expected.total_score
    )


def test_match_endpoint_rejects_invalid_weights() -> None:
    response = client.post(
        "/match",
        json={
            "mentees": [_mentee_payload()],
            "mentors": [_mentor_payload()],
            "weights": {"capability": 120},
        },
    )

    assert response.status_code == 422


def test_model_lifecycle() -> None:
    created = client.post("/models", json={"name": "Api model", "weights": {"timezone": 20}})
    assert created.status_code == 201
    model = created.json()
    assert model["status"] == "draft"
    assert model["weights"]["timezone"] == 20

    assert client.post(f"/models/{model['id']}/activate").json()["status"] == "active"
    assert client.post(f"/models/{model['id']}/default").json()["is_default"] is True
    assert client.get("/models/default").json()["id"] == model["id"]

    version = client.post(f"/models/{model['id']}/versions")
    assert version.status_code == 201
    assert version.json()["version"] == 2
    assert version.json()["is_default"] is False

    archived = client.post(f"/models/{model['id']}/archive").json()
    assert archived["status"] == "archived"
    assert archived["is_default"] is False

    conflict = client.post(f"/models/{model['id']}/activate")
    assert conflict.status_code == 409

    patched = client.patch(f"/models/{version.json()['id']}", json={"description": "Tuned"})
    assert patched.json()["description"] == "Tuned"

    assert client.delete(f"/models/{version.json()['id']}").status_code == 204
    assert client.get(f"/models/{version.json()['id']}").status_code == 404


def test_unknown_model_is_not_found() -> None:
    response = client.get("/models/does-not-exist")

    assert response.status_code == 404
    assert response.json()["detail"] == "Matching model not found: does-not-exist"


def test_cohort_matching_flow() -> None:
    assert client.post("/cohorts", json=_cohort_payload("flow")).status_code == 201
    assert client.get("/cohorts/flow/readiness").json() == {"is_ready": True, "issues": []}

    run = client.post("/cohorts/flow/runs", json={})
    assert run.status_code == 200
    assert [r["mentee_id"] for r in run.json()["results"]] == ["M1", "M2"]

    proposal = client.post("/cohorts/flow/batch-proposal").json()
    assert set(proposal) == {"M1", "M2"}

    approved = client.post(
        "/cohorts/flow/selections", json={"selections": {"M1": "A"}, "comments": {"M1": "Ok"}}
    )
    assert approved.status_code == 200
    results = {r["mentee_id"]: r for r in approved.json()["matches"]["results"]}
    assert results["M1"]["proposed_assignment"]["mentor_id"] == "A"
    assert results["M2"]["proposed_assignment"] is None

    assert client.get("/cohorts/flow/capacity").json() == {"A": 1, "B": 2}
    assert client.get("/cohorts/flow/stats").json()["matches_approved"] == 1

    stored_pending = client.get("/cohorts/flow/pending").json()
    assert [r["mentee_id"] for r in stored_pending] == ["M2"]

    view = client.get("/cohorts/flow/mentor-view").json()
    assert {entry["mentor_id"] for entry in view} == {"A", "B"}

    pending = client.post("/cohorts/flow/continue").json()
    assert [r["mentee_id"] for r in pending] == ["M2"]

    cleared = client.post("/cohorts/flow/clear-pending").json()
    assert [r["mentee_id"] for r in cleared["matches"]["results"]] == ["M1"]

    history = client.get("/cohorts/flow").json()["matching_history"]
    assert [entry["launched"] for entry in history] == [False, True]
    assert [entry["mode"] for entry in history] == ["top_n_per_mentee"] * 2
    assert history[1]["matches_count"] == 2


def test_selection_outside_recommendations_is_rejected() -> None:
    client.post("/cohorts", json=_cohort_payload("bad-selection"))
    client.post("/cohorts/bad-selection/runs", json={})

    response = client.post(
        "/cohorts/bad-selection/selections", json={"selections": {"M1": "Z"}}
    )

    assert response.status_code == 400
    assert "Z" in response.json()["detail"]
    assert client.get("/cohorts/bad-selection").json()["matches"]["results"] == []


def test_not_ready_cohort_run_is_rejected() -> None:
    client.post("/cohorts", json=_cohort_payload("empty", mentors=[]))

    response = client.post("/cohorts/empty/runs", json={})

    assert response.status_code == 400
    assert "No mentors in cohort" in response.json()["detail"]


def test_manual_board_commit_warns_on_overrun() -> None:
    client.post(
        "/cohorts",
        json=_cohort_payload("manual", mentors=[_mentor_payload(id="A", capacity_remaining=1)]),
    )

    response = client.post(
        "/cohorts/manual/manual-board",
        json={
            "matches": [
                {"mentee_id": "M1", "mentor_id": "A"},
                {"mentee_id": "M2", "mentor_id": "A"},
            ],
            "finalized": True,
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert len(body["warnings"]) == 1
    assert body["warnings"][0]["mentor_id"] == "A"
    approved = [r for r in body["cohort"]["matches"]["results"] if r["proposed_assignment"]]
    assert len(approved) == 2
    assert body["cohort"]["manual_matches"]["finalized"] is True


def test_unknown_cohort_is_not_found() -> None:
    assert client.get("/cohorts/nope").status_code == 404


def test_misspelled_weight_is_rejected_with_reason() -> None:
    created = client.post("/models", json={"name": "Typo model", "weights": {"capabilty": 50}})

    assert created.status_code == 400
    assert created.json()["detail"] == "Unknown MatchingWeights field(s): capabilty"


def test_match_endpoint_rejects_unknown_weight() -> None:
    response = client.post(
        "/match",
        json={
            "mentees": [_mentee_payload()],
            "mentors": [_mentor_payload()],
            "weights": {"capabilty": 50},
        },
    )

    assert response.status_code == 422
