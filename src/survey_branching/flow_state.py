"""FlowStateReconstructor — rebuilds where a participation stands.

Nothing about visibility is stored.  Each call replays the rule resolver over
the participation's saved answers, in the order the answer store returned
them, and derives:

  - which questions of the current section are visible
  - the conditional path (one step per action fired per answer)
  - the completed-question list

Visibility starts from the survey structure: a question that some active
ShowQuestion/ShowQuestions rule targets is conditional and starts hidden;
every other question starts visible.  Show and hide actions then override
that default, later answers overriding earlier ones.

Given the same inputs the reconstruction is identical, including
``last_updated`` (taken from the inputs, never from the clock).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from survey_branching.models.action import (
    HideQuestionAction,
    ShowQuestionAction,
    ShowQuestionsAction,
)
from survey_branching.models.flow import (
    ConditionalPathStep,
    ParticipationRecord,
    SavedAnswer,
    Section,
    SurveyFlowState,
)
from survey_branching.models.rule import LogicRule
from survey_branching.resolver import RuleResolver
from survey_branching.structure import conditional_question_ids, ordered_sections

logger = logging.getLogger(__name__)


@dataclass
class _Replay:
    """Accumulated effects of replaying every saved answer."""

    overrides: dict[int, bool] = field(default_factory=dict)
    path: list[ConditionalPathStep] = field(default_factory=list)


class FlowStateReconstructor:
    """Pure reconstruction of ``SurveyFlowState`` from persisted inputs."""

    def __init__(self, resolver: RuleResolver | None = None) -> None:
        self._resolver = resolver or RuleResolver()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def reconstruct(
        self,
        participation: ParticipationRecord,
        answers: Sequence[SavedAnswer],
        rules: Sequence[LogicRule],
        sections: Sequence[Section],
    ) -> SurveyFlowState:
        """Build the flow state for one participation.

        Args:
            participation: current section/question and completion flag
            answers: saved answers, in answer-store order
            rules: every rule of the participation's survey
            sections: the survey's sections with their questions

        Returns:
            The reconstructed ``SurveyFlowState``.
        """
        replay = self._replay(answers, rules)
        conditional = conditional_question_ids(rules)

        section = self._current_section(participation, sections)
        available = (
            self._visible(section, conditional, replay.overrides) if section else []
        )

        return SurveyFlowState(
            participation_id=participation.participation_id,
            survey_id=participation.survey_id,
            current_section_id=section.id if section else participation.current_section_id,
            current_question_id=participation.current_question_id,
            completed_questions=self._completed(answers),
            available_questions=available,
            conditional_path=replay.path,
            is_complete=participation.is_complete,
            last_updated=self._last_updated(participation, answers),
        )

    def available_for_section(
        self,
        section_id: int,
        answers: Sequence[SavedAnswer],
        rules: Sequence[LogicRule],
        sections: Sequence[Section],
    ) -> list[int]:
        """Visible question ids of ``section_id`` given the saved answers.

        Returns an empty list if the section is not part of the survey.
        """
        section = next((s for s in sections if s.id == section_id), None)
        if section is None:
            logger.warning("Section %s not found in survey structure", section_id)
            return []
        replay = self._replay(answers, rules)
        return self._visible(section, conditional_question_ids(rules), replay.overrides)

    # ------------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------------

    def _replay(self, answers: Sequence[SavedAnswer], rules: Sequence[LogicRule]) -> _Replay:
        saved = {a.question_id: a.answer_value for a in answers}
        replay = _Replay()

        for answer in answers:
            result = self._resolver.evaluate(
                answer.question_id, answer.answer_value, rules, saved
            )
            if result.is_error:
                # Misconfigured logic must not break the read side.
                logger.warning(
                    "Skipping replay of question %s: %s",
                    answer.question_id,
                    result.error_message,
                )
                continue

            for action in result.actions:
                if isinstance(action, ShowQuestionAction):
                    replay.overrides[action.target_question_id] = True
                elif isinstance(action, ShowQuestionsAction):
                    for qid in action.target_question_ids:
                        replay.overrides[qid] = True
                elif isinstance(action, HideQuestionAction):
                    replay.overrides[action.target_question_id] = False

                step_meta = dict(action.metadata)
                if action.message:
                    step_meta["message"] = action.message
                for key in ("target_question_id", "target_question_ids", "target_section_id"):
                    value = getattr(action, key, None)
                    if value is not None:
                        step_meta[key] = value
                replay.path.append(
                    ConditionalPathStep(
                        question_id=answer.question_id,
                        response=answer.answer_value,
                        action_taken=action.action_type,
                        timestamp=answer.answered_at,
                        metadata=step_meta,
                    )
                )

        return replay

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _visible(
        section: Section, conditional: set[int], overrides: dict[int, bool]
    ) -> list[int]:
        return [
            qid
            for qid in section.question_ids
            if overrides.get(qid, qid not in conditional)
        ]

    @staticmethod
    def _current_section(
        participation: ParticipationRecord, sections: Sequence[Section]
    ) -> Section | None:
        ordered = ordered_sections(sections)
        if participation.current_section_id is None:
            return ordered[0] if ordered else None
        for section in ordered:
            if section.id == participation.current_section_id:
                return section
        logger.warning(
            "Participation %s points at unknown section %s",
            participation.participation_id,
            participation.current_section_id,
        )
        return None

    @staticmethod
    def _completed(answers: Sequence[SavedAnswer]) -> list[int]:
        seen: dict[int, None] = {}
        for answer in answers:
            seen.setdefault(answer.question_id, None)
        return list(seen)

    @staticmethod
    def _last_updated(
        participation: ParticipationRecord, answers: Sequence[SavedAnswer]
    ) -> datetime | None:
        stamps = [a.answered_at for a in answers if a.answered_at is not None]
        if participation.updated_at is not None:
            stamps.append(participation.updated_at)
        return max(stamps) if stamps else None
