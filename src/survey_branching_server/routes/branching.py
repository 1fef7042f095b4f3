"""Branching endpoints — the six engine operations over HTTP.

Evaluation endpoints are read-only: they report what a response *would*
trigger without recording anything.  Use ``POST /participations/{id}/answers``
to record an answer and apply its navigation effects.

All endpoints except validate and flow-map require the ``X-User-ID``
header; a participation belonging to another user is reported as not found.
"""

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from survey_branching.engine import BranchingEngine
from survey_branching.models.action import BranchingAction
from survey_branching.models.flow import SurveyFlowState
from survey_branching.models.graph import IntegrityIssue, SurveyFlowMap
from survey_branching.models.result import BranchingEvaluationResult
from survey_branching_db.repository import ParticipationRepository

from survey_branching_server.dependencies import (
    get_branching_engine,
    get_repository,
    get_user_id,
    load_owned_participation,
)

router = APIRouter(prefix="/branching", tags=["branching"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class EvaluateRequest(BaseModel):
    """Body for POST /branching/evaluate."""
    question_id: int
    response_value: str | None = None
    # Supplies saved answers for CrossQuestion conditions
    participation_id: int | None = None


class ProcessResponseRequest(BaseModel):
    """Body for POST /branching/process-response."""
    participation_id: int
    question_id: int
    answer: str | None = None


class ProcessResponseResult(BaseModel):
    action: BranchingAction


class AvailableQuestions(BaseModel):
    participation_id: int
    section_id: int
    available_questions: list[int]


class ValidationResult(BaseModel):
    survey_id: int
    # Rule-level verdict: configuration errors, self-references, cycles
    is_valid: bool
    # Adds target existence checks against the survey structure
    structure_valid: bool
    issues: list[IntegrityIssue]


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/evaluate")
async def evaluate_logic(
    body: EvaluateRequest,
    user_id: str = Depends(get_user_id),
    repo: ParticipationRepository = Depends(get_repository),
    engine: BranchingEngine = Depends(get_branching_engine),
) -> BranchingEvaluationResult:
    """Return every action the response triggers.

    Misconfigured rules yield ``is_error: true`` in the body rather than an
    HTTP error.  A ``participation_id`` must belong to the caller.
    """
    if body.participation_id is not None:
        await load_owned_participation(repo, body.participation_id, user_id)
    return await engine.evaluate_logic(
        body.question_id, body.response_value, body.participation_id
    )


@router.post("/process-response")
async def process_response(
    body: ProcessResponseRequest,
    user_id: str = Depends(get_user_id),
    repo: ParticipationRepository = Depends(get_repository),
    engine: BranchingEngine = Depends(get_branching_engine),
) -> ProcessResponseResult:
    """Return the primary action for a response (``None`` type if no rule matched).

    Raises 400 if the question's logic is misconfigured.
    """
    await load_owned_participation(repo, body.participation_id, user_id)
    action = await engine.process_response(
        body.participation_id, body.question_id, body.answer
    )
    return ProcessResponseResult(action=action)


@router.get("/flow-state/{participation_id}")
async def get_flow_state(
    participation_id: int,
    user_id: str = Depends(get_user_id),
    repo: ParticipationRepository = Depends(get_repository),
    engine: BranchingEngine = Depends(get_branching_engine),
) -> SurveyFlowState:
    """Reconstructed flow state.  404 if the participation does not exist for this user."""
    await load_owned_participation(repo, participation_id, user_id)
    return await engine.get_flow_state(participation_id)


@router.get("/available-questions/{participation_id}/{section_id}")
async def get_available_questions(
    participation_id: int,
    section_id: int,
    user_id: str = Depends(get_user_id),
    repo: ParticipationRepository = Depends(get_repository),
    engine: BranchingEngine = Depends(get_branching_engine),
) -> AvailableQuestions:
    """Visible questions of a section for this user's participation."""
    await load_owned_participation(repo, participation_id, user_id)
    questions = await engine.get_available_questions(participation_id, section_id)
    return AvailableQuestions(
        participation_id=participation_id,
        section_id=section_id,
        available_questions=questions,
    )


@router.get("/validate/{survey_id}")
async def validate_flow_integrity(
    survey_id: int,
    engine: BranchingEngine = Depends(get_branching_engine),
) -> ValidationResult:
    """Integrity verdict plus every issue found.  404 for an unknown survey."""
    is_valid = await engine.validate_flow_integrity(survey_id)
    report = await engine.integrity_report(survey_id)
    return ValidationResult(
        survey_id=survey_id,
        is_valid=is_valid,
        structure_valid=report.is_valid,
        issues=report.issues,
    )


@router.get("/flow-map/{survey_id}", response_model=None)
async def generate_flow_map(
    survey_id: int,
    format: Literal["map", "cytoscape"] = Query("map"),
    engine: BranchingEngine = Depends(get_branching_engine),
) -> SurveyFlowMap | dict[str, Any]:
    """Flow map of a survey; ``?format=cytoscape`` returns graph elements."""
    flow_map = await engine.generate_flow_map(survey_id)
    if format == "cytoscape":
        return flow_map.to_cytoscape()
    return flow_map
