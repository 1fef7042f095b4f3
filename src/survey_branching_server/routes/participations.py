"""Participation endpoints — start a survey run and submit answers.

All endpoints require the ``X-User-ID`` header.  A participation belonging
to another user is reported as not found.

Submitting an answer records it, evaluates the question's logic, and applies
the navigation effects of every resolved action in rule order:

    JumpToSection   → current section becomes the target section
    SkipToQuestion  → current question (and its section) becomes the target
    EndSurvey       → participation completed
    Disqualify      → participation disqualified

Show/hide actions have no stored effect: visibility is recomputed from the
answers whenever the flow state is requested.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from survey_branching.engine import BranchingEngine
from survey_branching.errors import ConfigurationError
from survey_branching.models.action import (
    BranchingAction,
    DisqualifyAction,
    EndSurveyAction,
    JumpToSectionAction,
    SkipToQuestionAction,
)
from survey_branching.models.flow import SurveyFlowState
from survey_branching.ruleset import SurveyStore
from survey_branching.structure import ordered_sections
from survey_branching_db.models.participation import SurveyParticipation
from survey_branching_db.repository import ParticipationRepository

from survey_branching_server.dependencies import (
    get_branching_engine,
    get_repository,
    get_store,
    get_user_id,
    load_owned_participation,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/participations", tags=["participations"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class CreateParticipationRequest(BaseModel):
    """Body for POST /participations."""
    survey_id: int


class SubmitAnswerRequest(BaseModel):
    """Body for POST /participations/{id}/answers."""
    question_id: int
    answer: str


class ParticipationInfo(BaseModel):
    """Public view of a participation row."""
    participation_id: int
    survey_id: int
    status: str
    current_section_id: int | None = None
    current_question_id: int | None = None
    completion_message: str | None = None
    started_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None


class AnswerResult(BaseModel):
    """What happened after an answer was recorded."""
    actions: list[BranchingAction]
    participation: ParticipationInfo
    flow_state: SurveyFlowState


def _to_info(row: SurveyParticipation) -> ParticipationInfo:
    return ParticipationInfo(
        participation_id=row.id,
        survey_id=row.survey_id,
        status=getattr(row.status, "value", row.status),
        current_section_id=row.current_section_id,
        current_question_id=row.current_question_id,
        completion_message=row.completion_message,
        started_at=row.started_at,
        updated_at=row.updated_at,
        completed_at=row.completed_at,
    )


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("", status_code=201)
async def create_participation(
    body: CreateParticipationRequest,
    user_id: str = Depends(get_user_id),
    store: SurveyStore = Depends(get_store),
    repo: ParticipationRepository = Depends(get_repository),
) -> ParticipationInfo:
    """Start a participation at the survey's first section.  404 for an unknown survey."""
    survey = store.get_survey(body.survey_id)
    sections = ordered_sections(survey.sections)
    row = await repo.create_participation(
        survey_id=survey.id,
        user_id=user_id,
        current_section_id=sections[0].id if sections else None,
    )
    logger.info("Participation %s started survey %s for %s", row.id, survey.id, user_id)
    return _to_info(row)


@router.get("/{participation_id}")
async def get_participation(
    participation_id: int,
    user_id: str = Depends(get_user_id),
    repo: ParticipationRepository = Depends(get_repository),
) -> ParticipationInfo:
    """Participation info.  404 if it does not exist for this user."""
    return _to_info(await load_owned_participation(repo, participation_id, user_id))


@router.post("/{participation_id}/answers")
async def submit_answer(
    participation_id: int,
    body: SubmitAnswerRequest,
    user_id: str = Depends(get_user_id),
    store: SurveyStore = Depends(get_store),
    repo: ParticipationRepository = Depends(get_repository),
    engine: BranchingEngine = Depends(get_branching_engine),
) -> AnswerResult:
    """Record an answer, apply its branching effects, return the new flow state.

    Raises 404 for an unknown participation or a question outside its
    survey, 409 if the participation is already finished, and 400 if the
    question's logic is misconfigured (nothing is recorded in that case).
    """
    row = await load_owned_participation(repo, participation_id, user_id)
    if row.is_complete:
        raise ValueError(f"Participation {participation_id} is already finished")
    if store.survey_for_question(body.question_id) != row.survey_id:
        raise ValueError(
            f"Question not found in survey {row.survey_id}: question_id={body.question_id}"
        )

    # Evaluate before writing so a broken rule leaves no partial answer behind.
    result = await engine.evaluate_logic(body.question_id, body.answer, participation_id)
    if result.is_error:
        raise ConfigurationError(
            result.error_message or "Invalid branching logic",
            rule_id=result.metadata.get("rule_id"),
        )

    await repo.record_answer(row, body.question_id, body.answer)
    for action in result.actions:
        await _apply(action, row, repo, store)

    flow_state = await engine.get_flow_state(participation_id)
    return AnswerResult(actions=result.actions, participation=_to_info(row), flow_state=flow_state)


async def _apply(
    action: BranchingAction,
    row: SurveyParticipation,
    repo: ParticipationRepository,
    store: SurveyStore,
) -> None:
    """Persist the navigation effect of one action."""
    if isinstance(action, JumpToSectionAction):
        await repo.move_to_section(row, action.target_section_id)
    elif isinstance(action, SkipToQuestionAction):
        target = store.find_question(action.target_question_id)
        await repo.move_to_question(
            row, action.target_question_id, target.section_id if target else None
        )
    elif isinstance(action, EndSurveyAction):
        await repo.complete(row, action.message)
    elif isinstance(action, DisqualifyAction):
        await repo.disqualify(row, action.message)
    else:
        return
    logger.info("Participation %s applied %s", row.id, action.action_type)
