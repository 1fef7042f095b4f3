"""BranchingEngine async facade tests with an in-memory participation store.

Uses the real SurveyStore (bundled surveys/) for rules and structure, and
MockParticipationRepository for participations and saved answers.  The
engine is stateless, so every test seeds the mock repository directly and
then calls the operation under test.
"""

import pytest

from survey_branching.engine import BranchingEngine
from survey_branching.errors import ConfigurationError, ParticipationNotFound, SurveyNotFound
from survey_branching.interfaces import RuleStore, SurveyStructureStore
from survey_branching.models.action import (
    DisqualifyAction,
    EndSurveyAction,
    JumpToSectionAction,
    NoAction,
    ShowQuestionAction,
)
from survey_branching.models.rule import LogicRule
from survey_branching_db.models.enums import ParticipationStatus

from helpers.factories import answers, rule, section
from helpers.mocks import MockParticipationRow


# =====================================================================
# In-memory rule/structure store for hand-built surveys
# =====================================================================


class InlineSurveyStore(RuleStore, SurveyStructureStore):
    """Serves one survey from lists, for cases the bundled YAML lacks."""

    def __init__(self, survey_id, sections, rules: list[LogicRule]):
        self.survey_id = survey_id
        self.sections = sections
        self.rules = rules

    async def rules_for_question(self, question_id):
        return sorted(
            (r for r in self.rules if r.question_id == question_id), key=lambda r: r.order
        )

    async def rules_for_survey(self, survey_id):
        if survey_id != self.survey_id:
            raise SurveyNotFound(survey_id)
        return list(self.rules)

    async def sections_for_survey(self, survey_id):
        if survey_id != self.survey_id:
            raise SurveyNotFound(survey_id)
        return list(self.sections)


@pytest.fixture
def engine(survey_store, mock_repo):
    return BranchingEngine(survey_store, survey_store, mock_repo, mock_repo)


def _seed(mock_repo, pid=1, survey_id=1, saved=(), **row_fields):
    return mock_repo.add(
        MockParticipationRow(id=pid, survey_id=survey_id, **row_fields),
        saved=answers(*saved),
    )


# =====================================================================
# evaluate_logic / process_response
# =====================================================================


class TestEvaluate:
    """Response-time evaluation against the bundled commuter survey."""

    @pytest.mark.asyncio
    async def test_evaluate_logic_show(self, engine):
        result = await engine.evaluate_logic(1, "Yes")
        assert result.has_actions is True
        assert isinstance(result.actions[0], ShowQuestionAction)
        assert result.actions[0].target_question_id == 2

    @pytest.mark.asyncio
    async def test_evaluate_logic_unknown_question(self, engine):
        """A question without rules yields no actions."""
        result = await engine.evaluate_logic(999, "anything")
        assert result.has_actions is False
        assert result.is_error is False

    @pytest.mark.asyncio
    async def test_evaluate_logic_snake_case_rules(self, engine):
        """Survey 2 rules use snake_case tags and still resolve."""
        result = await engine.evaluate_logic(13, " wishlist ")
        assert isinstance(result.primary_action, EndSurveyAction)

    @pytest.mark.asyncio
    async def test_cross_question_reads_saved_answers(self, engine, mock_repo):
        """Q8 ends the survey when it matches the saved answer to Q4."""
        _seed(mock_repo, saved=[(4, "Blue")])
        result = await engine.evaluate_logic(8, "blue", participation_id=1)
        assert isinstance(result.primary_action, EndSurveyAction)
        assert result.primary_action.message == "Thank you, your answers are consistent."

        without_participation = await engine.evaluate_logic(8, "blue")
        assert without_participation.has_actions is False

    @pytest.mark.asyncio
    async def test_process_response_returns_primary_action(self, engine, mock_repo):
        _seed(mock_repo)
        action = await engine.process_response(1, 3, "16")
        assert isinstance(action, DisqualifyAction)
        assert action.message == "Respondents must be 18 or older."

    @pytest.mark.asyncio
    async def test_process_response_no_match(self, engine, mock_repo):
        _seed(mock_repo)
        assert await engine.process_response(1, 3, "40") == NoAction()

    @pytest.mark.asyncio
    async def test_no_match_actions_are_independent(self, engine, mock_repo):
        """Mutating one no-match result leaves later ones untouched."""
        _seed(mock_repo)
        first = await engine.process_response(1, 3, "40")
        first.metadata["seen"] = True

        second = await engine.process_response(1, 3, "40")
        assert second is not first
        assert second.metadata == {}

    @pytest.mark.asyncio
    async def test_process_response_misconfigured_raises(self, mock_repo):
        store = InlineSurveyStore(
            1, [section(10, [1, 2])], [rule(1, "Between", "1", "ShowQuestion", id=5, target_question_id=2)]
        )
        engine = BranchingEngine(store, store, mock_repo, mock_repo)
        _seed(mock_repo)
        with pytest.raises(ConfigurationError, match="Rule 5"):
            await engine.process_response(1, 1, "3")


# =====================================================================
# Flow state
# =====================================================================


class TestFlowState:
    """get_flow_state / get_available_questions read fresh data every call."""

    @pytest.mark.asyncio
    async def test_flow_state_after_jump(self, engine, mock_repo):
        _seed(mock_repo, saved=[(1, "No")], current_section_id=30)
        state = await engine.get_flow_state(1)

        assert state.participation_id == 1
        assert state.survey_id == 1
        assert state.current_section_id == 30
        assert state.available_questions == [7, 8]
        assert state.completed_questions == [1]
        assert [s.action_taken for s in state.conditional_path] == ["JumpToSection"]
        assert state.is_complete is False

    @pytest.mark.asyncio
    async def test_finished_participation_is_complete(self, engine, mock_repo):
        _seed(mock_repo, status=ParticipationStatus.DISQUALIFIED)
        state = await engine.get_flow_state(1)
        assert state.is_complete is True

    @pytest.mark.asyncio
    async def test_flow_state_unknown_participation(self, engine):
        with pytest.raises(ParticipationNotFound, match="participation_id=42"):
            await engine.get_flow_state(42)

    @pytest.mark.asyncio
    async def test_available_questions(self, engine, mock_repo):
        _seed(mock_repo, saved=[(1, "Yes")])
        assert await engine.get_available_questions(1, 10) == [1, 2, 3, 4]

        mock_repo.answers[1] = answers((1, "Yes"), (6, "2"))
        assert await engine.get_available_questions(1, 20) == [5, 6]

    @pytest.mark.asyncio
    async def test_available_questions_unknown_section(self, engine, mock_repo):
        _seed(mock_repo)
        assert await engine.get_available_questions(1, 999) == []

    @pytest.mark.asyncio
    async def test_no_caching_between_calls(self, engine, mock_repo):
        """Every call goes back to the stores."""
        _seed(mock_repo)
        await engine.get_flow_state(1)
        await engine.get_flow_state(1)
        assert mock_repo.participation_calls == 2
        assert mock_repo.answer_calls == 2


# =====================================================================
# Authoring-time analysis
# =====================================================================


class TestAnalysis:
    """Integrity and flow-map operations."""

    @pytest.mark.asyncio
    async def test_bundled_surveys_valid(self, engine):
        assert await engine.validate_flow_integrity(1) is True
        assert await engine.validate_flow_integrity(2) is True

    @pytest.mark.asyncio
    async def test_cycle_is_invalid(self, mock_repo):
        store = InlineSurveyStore(
            7,
            [section(10, [1, 2], survey_id=7)],
            [
                rule(1, action_type="ShowQuestion", target_question_id=2),
                rule(2, action_type="ShowQuestion", target_question_id=1),
            ],
        )
        engine = BranchingEngine(store, store, mock_repo, mock_repo)
        assert await engine.validate_flow_integrity(7) is False

        report = await engine.integrity_report(7)
        assert report.survey_id == 7
        assert "cycle" in {issue.kind for issue in report.issues}

    @pytest.mark.asyncio
    async def test_unknown_survey(self, engine):
        with pytest.raises(SurveyNotFound):
            await engine.validate_flow_integrity(99)
        with pytest.raises(SurveyNotFound):
            await engine.generate_flow_map(99)

    @pytest.mark.asyncio
    async def test_generate_flow_map(self, engine):
        flow_map = await engine.generate_flow_map(2)
        assert flow_map.survey_id == 2
        assert [p.question_id for p in flow_map.decision_points] == [11, 13, 14]
        assert flow_map.end_points == ["completion", "question-14"]
        assert flow_map.orphaned_questions == []

    @pytest.mark.asyncio
    async def test_jump_action_message(self, engine):
        result = await engine.evaluate_logic(1, "No")
        action = result.primary_action
        assert isinstance(action, JumpToSectionAction)
        assert action.target_section_id == 30
        assert action.message == "Redirecting based on your response..."
