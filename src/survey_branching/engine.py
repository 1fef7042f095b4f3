"""BranchingEngine — facade binding the branching components to their stores.

Stateless engine pattern: each call fetches what it needs from the
collaborator stores, runs a pure computation, and returns the result.  No
in-memory state is kept between calls, and nothing is written back; applying
an action's side effects (moving sections, completing the participation) is
the caller's job.

Operations:
    evaluate_logic            — actions triggered by one answer
    process_response          — the primary action for one answer
    get_flow_state            — reconstructed position of a participation
    get_available_questions   — visible questions of one section
    validate_flow_integrity   — boolean verdict over a survey's rules
    integrity_report          — every issue found, with structure checks
    generate_flow_map         — presentation graph for authoring tools
"""

from __future__ import annotations

import logging

from survey_branching.errors import ConfigurationError
from survey_branching.flow_map import FlowMapGenerator
from survey_branching.flow_state import FlowStateReconstructor
from survey_branching.integrity import FlowIntegrityValidator
from survey_branching.interfaces import (
    AnswerStore,
    ParticipationStore,
    RuleStore,
    SurveyStructureStore,
)
from survey_branching.models.action import BranchingAction, NoAction
from survey_branching.models.flow import SurveyFlowState
from survey_branching.models.graph import IntegrityReport, SurveyFlowMap
from survey_branching.models.result import BranchingEvaluationResult
from survey_branching.resolver import RuleResolver

logger = logging.getLogger(__name__)


class BranchingEngine:
    """Evaluates survey branching logic against stored data.

    Args:
        rules: source of logic rules
        structure: source of sections and questions
        participations: source of participation records
        answers: source of saved answers
    """

    def __init__(
        self,
        rules: RuleStore,
        structure: SurveyStructureStore,
        participations: ParticipationStore,
        answers: AnswerStore,
    ) -> None:
        self._rules = rules
        self._structure = structure
        self._participations = participations
        self._answers = answers
        self._resolver = RuleResolver()
        self._reconstructor = FlowStateReconstructor(self._resolver)
        self._validator = FlowIntegrityValidator()
        self._flow_map = FlowMapGenerator()

    # ==================================================================
    # Response-time evaluation
    # ==================================================================

    async def evaluate_logic(
        self,
        question_id: int,
        response_value: str | None,
        participation_id: int | None = None,
    ) -> BranchingEvaluationResult:
        """Resolve every action ``response_value`` triggers for ``question_id``.

        When ``participation_id`` is given, its saved answers feed
        CrossQuestion conditions.
        """
        rules = await self._rules.rules_for_question(question_id)
        saved: dict[int, str] = {}
        if participation_id is not None:
            answers = await self._answers.saved_answers(participation_id)
            saved = {a.question_id: a.answer_value for a in answers}
        return self._resolver.evaluate(question_id, response_value, rules, saved)

    async def process_response(
        self, participation_id: int, question_id: int, answer: str | None
    ) -> BranchingAction:
        """Return the primary (first) action for an answer, or a fresh ``NoAction``.

        Raises:
            ConfigurationError: if the question's logic is misconfigured.
        """
        result = await self.evaluate_logic(question_id, answer, participation_id)
        if result.is_error:
            raise ConfigurationError(result.error_message or "Invalid branching logic")

        action = result.primary_action or NoAction()
        if result.has_actions:
            logger.info(
                "Participation %s question %s -> %s (%d action(s))",
                participation_id,
                question_id,
                action.action_type,
                len(result.actions),
            )
        return action

    # ==================================================================
    # Flow state
    # ==================================================================

    async def get_flow_state(self, participation_id: int) -> SurveyFlowState:
        """Reconstruct where a participation stands.

        Raises:
            ParticipationNotFound: if the participation does not exist.
        """
        participation = await self._participations.participation(participation_id)
        answers = await self._answers.saved_answers(participation_id)
        rules = await self._rules.rules_for_survey(participation.survey_id)
        sections = await self._structure.sections_for_survey(participation.survey_id)
        return self._reconstructor.reconstruct(participation, answers, rules, sections)

    async def get_available_questions(
        self, participation_id: int, section_id: int
    ) -> list[int]:
        """Visible question ids of ``section_id`` for this participation."""
        participation = await self._participations.participation(participation_id)
        answers = await self._answers.saved_answers(participation_id)
        rules = await self._rules.rules_for_survey(participation.survey_id)
        sections = await self._structure.sections_for_survey(participation.survey_id)
        return self._reconstructor.available_for_section(section_id, answers, rules, sections)

    # ==================================================================
    # Authoring-time analysis
    # ==================================================================

    async def validate_flow_integrity(self, survey_id: int) -> bool:
        """True if the survey's rules have no configuration error or jump cycle."""
        rules = await self._rules.rules_for_survey(survey_id)
        return self._validator.validate(rules, survey_id=survey_id).is_valid

    async def integrity_report(self, survey_id: int) -> IntegrityReport:
        """Every integrity issue, including target and reachability checks."""
        rules = await self._rules.rules_for_survey(survey_id)
        sections = await self._structure.sections_for_survey(survey_id)
        return self._validator.validate(rules, sections, survey_id=survey_id)

    async def generate_flow_map(self, survey_id: int) -> SurveyFlowMap:
        """Build the presentation graph of a survey.

        Raises:
            SurveyNotFound: if the survey does not exist.
        """
        sections = await self._structure.sections_for_survey(survey_id)
        rules = await self._rules.rules_for_survey(survey_id)
        return self._flow_map.generate(survey_id, sections, rules)
