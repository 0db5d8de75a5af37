"""FastAPI application exposing the mentormatch engine."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from mentormatch.cohorts import (
    MentorCentricMatch,
    cohort_stats,
    is_ready_for_matching,
    to_mentor_centric,
)
from mentormatch.config import configure_logging, load_config
from mentormatch.errors import (
    CohortNotFoundError,
    ConfigurationError,
    ModelNotFoundError,
    ModelStateError,
)
from mentormatch.model_store import MatchingModelStore
from mentormatch.models import (
    CapacityWarning,
    Cohort,
    CohortStats,
    ManualMatchingOutput,
    MatchingFilters,
    MatchingModel,
    MatchingRun,
    MatchingStats,
    MatchingWeights,
    MatchResult,
    MenteeProfile,
    MentorProfile,
    Readiness,
)
from mentormatch.recommendations import RecommendationGenerator
from mentormatch.repository import InMemoryCohortRepository
from mentormatch.scoring import Scorer
from mentormatch.session import MatchingSession

config = load_config()
configure_logging(config.logging)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Mentormatch API",
    description=(
        "Score mentees against mentors with a configurable weighted model and "
        "reconcile approved and manual pairings per cohort."
    ),
    version="0.1.0",
)

_scorer = Scorer(
    penalty=config.matching.scoring.capacity_penalty,
    mode=config.matching.scoring.penalty_mode,
)
_models = MatchingModelStore(
    default_weights=config.matching.default_weights,
    default_filters=config.matching.default_filters,
)
_cohorts = InMemoryCohortRepository()
_sessions: Dict[str, MatchingSession] = {}


# ---------------------------------------------------------------------------
# Request / response bodies
# ---------------------------------------------------------------------------


class MatchRequest(BaseModel):
    mentees: List[MenteeProfile] = Field(..., description="Mentees to evaluate")
    mentors: List[MentorProfile] = Field(..., description="Mentors available for matching")
    top_n: Optional[int] = Field(
        default=None, ge=1, le=20, description="Maximum number of recommendations per mentee"
    )
    model_id: Optional[str] = Field(default=None, description="Matching model to use")
    weights: Optional[MatchingWeights] = Field(
        default=None, description="Override the model's scoring weights"
    )
    filters: Optional[MatchingFilters] = Field(
        default=None, description="Override the model's hard filters"
    )


class MatchResponse(BaseModel):
    weights: MatchingWeights
    filters: MatchingFilters
    stats: MatchingStats
    results: List[MatchResult]


class CreateModelRequest(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    weights: Optional[Dict[str, float]] = None
    filters: Optional[Dict[str, Any]] = None


class UpdateModelRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    weights: Optional[Dict[str, float]] = None
    filters: Optional[Dict[str, Any]] = None


class RunRequest(BaseModel):
    model_id: Optional[str] = None
    top_n: Optional[int] = Field(default=None, ge=1, le=20)


class SelectionRequest(BaseModel):
    selections: Dict[str, str] = Field(..., description="mentee_id -> mentor_id")
    comments: Optional[Dict[str, str]] = None


class CommitResponse(BaseModel):
    cohort: Cohort
    warnings: List[CapacityWarning]


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    status_code = 409 if isinstance(exc, ModelStateError) else 400
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.reason)
    return JSONResponse(status_code=status_code, content={"detail": exc.reason})


@app.exception_handler(ModelNotFoundError)
@app.exception_handler(CohortNotFoundError)
async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _generator(model_id: Optional[str], top_n: Optional[int]) -> RecommendationGenerator:
    model = _models.get(model_id) if model_id else _models.get_default()
    weights = model.weights if model else config.matching.default_weights
    filters = model.filters if model else config.matching.default_filters
    return RecommendationGenerator(
        weights, filters, top_n=top_n or config.matching.top_n, scorer=_scorer
    )


def _session(cohort_id: str) -> MatchingSession:
    session = _sessions.get(cohort_id)
    if session is None or not session.in_progress:
        session = MatchingSession(
            _cohorts.get(cohort_id),
            _cohorts.save_matches,
            save_manual_matches=_cohorts.save_manual_matches,
            save_history=_cohorts.append_history,
        )
        _sessions[cohort_id] = session
    return session


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health", summary="Service health check")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/match", response_model=MatchResponse, summary="Recommend mentors for mentees")
async def match(request: MatchRequest) -> MatchResponse:
    generator = _generator(request.model_id, request.top_n)
    if request.weights is not None:
        generator.weights = request.weights
    if request.filters is not None:
        generator.filters = request.filters

    run = generator.run(request.mentees, request.mentors)
    return MatchResponse(
        weights=generator.weights,
        filters=generator.filters,
        stats=run.stats,
        results=run.results,
    )


@app.get("/models", response_model=List[MatchingModel], summary="List matching models")
async def list_models() -> List[MatchingModel]:
    return _models.list_models()


@app.post("/models", response_model=MatchingModel, status_code=201, summary="Create a draft model")
async def create_model(request: CreateModelRequest) -> MatchingModel:
    return _models.create(
        request.name, request.description, weights=request.weights, filters=request.filters
    )


@app.get("/models/default", response_model=Optional[MatchingModel], summary="Default model")
async def default_model() -> Optional[MatchingModel]:
    return _models.get_default()


@app.get("/models/{model_id}", response_model=MatchingModel)
async def get_model(model_id: str) -> MatchingModel:
    return _models.get(model_id)


@app.patch("/models/{model_id}", response_model=MatchingModel)
async def update_model(model_id: str, request: UpdateModelRequest) -> MatchingModel:
    return _models.update(
        model_id,
        name=request.name,
        description=request.description,
        weights=request.weights,
        filters=request.filters,
    )


@app.post("/models/{model_id}/versions", response_model=MatchingModel, status_code=201)
async def create_model_version(model_id: str) -> MatchingModel:
    return _models.create_new_version(model_id)


@app.post("/models/{model_id}/activate", response_model=MatchingModel)
async def activate_model(model_id: str) -> MatchingModel:
    return _models.activate(model_id)


@app.post("/models/{model_id}/default", response_model=MatchingModel)
async def set_default_model(model_id: str) -> MatchingModel:
    return _models.set_default(model_id)


@app.post("/models/{model_id}/archive", response_model=MatchingModel)
async def archive_model(model_id: str) -> MatchingModel:
    return _models.archive(model_id)


@app.delete("/models/{model_id}", status_code=204)
async def delete_model(model_id: str) -> None:
    _models.delete(model_id)


@app.post("/cohorts", response_model=Cohort, status_code=201, summary="Register a cohort")
async def create_cohort(cohort: Cohort) -> Cohort:
    return _cohorts.add(cohort)


@app.get("/cohorts/{cohort_id}", response_model=Cohort)
async def get_cohort(cohort_id: str) -> Cohort:
    return _cohorts.get(cohort_id)


@app.get("/cohorts/{cohort_id}/readiness", response_model=Readiness)
async def cohort_readiness(cohort_id: str) -> Readiness:
    return is_ready_for_matching(_cohorts.get(cohort_id))


@app.get("/cohorts/{cohort_id}/stats", response_model=CohortStats)
async def get_cohort_stats(cohort_id: str) -> CohortStats:
    return cohort_stats(_cohorts.get(cohort_id))


@app.post("/cohorts/{cohort_id}/runs", response_model=MatchingRun, summary="Start a matching run")
async def start_run(cohort_id: str, request: RunRequest) -> MatchingRun:
    session = _session(cohort_id)
    return session.start_run(_generator(request.model_id, request.top_n))


@app.delete("/cohorts/{cohort_id}/runs", status_code=204, summary="Abandon the current run")
async def abandon_run(cohort_id: str) -> None:
    _session(cohort_id).abandon()


@app.get("/cohorts/{cohort_id}/capacity", response_model=Dict[str, int])
async def remaining_capacity(cohort_id: str) -> Dict[str, int]:
    return _session(cohort_id).remaining_capacity()


@app.post("/cohorts/{cohort_id}/batch-proposal", response_model=Dict[str, str])
async def batch_proposal(cohort_id: str) -> Dict[str, str]:
    return _session(cohort_id).propose_batch()


@app.post("/cohorts/{cohort_id}/selections", response_model=Cohort, summary="Approve selections")
async def approve_selections(cohort_id: str, request: SelectionRequest) -> Cohort:
    return _session(cohort_id).approve(request.selections, request.comments)


@app.post("/cohorts/{cohort_id}/clear-pending", response_model=Cohort)
async def clear_pending_results(cohort_id: str) -> Cohort:
    return _session(cohort_id).clear_pending()


@app.get("/cohorts/{cohort_id}/pending", response_model=List[MatchResult])
async def pending_results(cohort_id: str) -> List[MatchResult]:
    return _cohorts.get(cohort_id).matches.pending()


@app.get("/cohorts/{cohort_id}/mentor-view", response_model=List[MentorCentricMatch])
async def mentor_view(cohort_id: str) -> List[MentorCentricMatch]:
    cohort = _cohorts.get(cohort_id)
    return to_mentor_centric(cohort.matches, cohort.mentors)


@app.post("/cohorts/{cohort_id}/continue", response_model=List[MatchResult])
async def continue_pending_selection(cohort_id: str) -> List[MatchResult]:
    return _session(cohort_id).continue_selection()


@app.post("/cohorts/{cohort_id}/manual-board", response_model=CommitResponse)
async def save_manual_board(cohort_id: str, output: ManualMatchingOutput) -> CommitResponse:
    session = _session(cohort_id)
    outcome = session.commit_manual_board(output)
    return CommitResponse(cohort=session.cohort, warnings=outcome.warnings)


def main() -> None:
    """Run the API server."""
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, log_level=config.logging.level.lower())


if __name__ == "__main__":
    main()
