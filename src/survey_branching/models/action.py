"""Branching action models — the resolved effect of a matched rule.

Each action type is its own model carrying only the target fields that make
sense for it:

  - ShowQuestionAction / HideQuestionAction / SkipToQuestionAction:
    ``target_question_id``
  - ShowQuestionsAction: ``target_question_ids``
  - JumpToSectionAction: ``target_section_id``
  - EndSurveyAction / DisqualifyAction: no target (terminal)
  - NoAction: the well-known "no rule matched" value

The discriminated ``BranchingAction`` union uses the ``action_type`` field as
its discriminator so Pydantic can deserialise API payloads directly into the
correct type.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from survey_branching.constants import (
    DEFAULT_DISQUALIFY_MESSAGE,
    DEFAULT_END_SURVEY_MESSAGE,
    DEFAULT_JUMP_MESSAGE,
)
from survey_branching.errors import ConfigurationError
from survey_branching.models.rule import (
    TERMINAL_ACTIONS,
    BranchingActionType,
    LogicRule,
)


class _ActionBase(BaseModel):
    message: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def kind(self) -> BranchingActionType:
        """The action tag as a ``BranchingActionType`` member."""
        return BranchingActionType(self.action_type)

    @property
    def is_terminal(self) -> bool:
        return self.kind in TERMINAL_ACTIONS


class NoAction(_ActionBase):
    """No rule matched."""

    action_type: Literal["None"] = "None"


class ShowQuestionAction(_ActionBase):
    """Make a single question visible."""

    action_type: Literal["ShowQuestion"] = "ShowQuestion"
    target_question_id: int


class HideQuestionAction(_ActionBase):
    """Hide a single question."""

    action_type: Literal["HideQuestion"] = "HideQuestion"
    target_question_id: int


class ShowQuestionsAction(_ActionBase):
    """Make several questions visible at once."""

    action_type: Literal["ShowQuestions"] = "ShowQuestions"
    target_question_ids: list[int]


class JumpToSectionAction(_ActionBase):
    """Move the respondent to another section."""

    action_type: Literal["JumpToSection"] = "JumpToSection"
    target_section_id: int


class SkipToQuestionAction(_ActionBase):
    """Move the respondent directly to a later question."""

    action_type: Literal["SkipToQuestion"] = "SkipToQuestion"
    target_question_id: int


class EndSurveyAction(_ActionBase):
    """Terminate the survey early as completed."""

    action_type: Literal["EndSurvey"] = "EndSurvey"


class DisqualifyAction(_ActionBase):
    """Terminate the survey early as disqualified."""

    action_type: Literal["Disqualify"] = "Disqualify"


# Discriminated union — Pydantic picks the right type based on "action_type".
BranchingAction = Annotated[
    Union[
        NoAction,
        ShowQuestionAction,
        HideQuestionAction,
        ShowQuestionsAction,
        JumpToSectionAction,
        SkipToQuestionAction,
        EndSurveyAction,
        DisqualifyAction,
    ],
    Field(discriminator="action_type"),
]


def _require(value, rule: LogicRule, field_name: str, action_type: BranchingActionType):
    if value is None or value == []:
        raise ConfigurationError(
            f"Rule {rule.id}: {action_type.value} requires {field_name}",
            rule_id=rule.id,
        )
    return value


def build_action(
    rule: LogicRule,
    action_type: BranchingActionType,
    metadata: dict[str, Any] | None = None,
) -> BranchingAction:
    """Translate a matched rule into its action variant.

    Args:
        rule: the matched rule
        action_type: the rule's already-parsed action tag
        metadata: extra metadata to attach to the action

    Returns:
        The action variant for ``action_type``, with the rule's message or
        the default message for jump/end/disqualify.

    Raises:
        ConfigurationError: if the rule lacks the target its action needs.
    """
    meta = dict(metadata or {})
    msg = rule.message

    if action_type is BranchingActionType.SHOW_QUESTION:
        target = _require(rule.target_question_id, rule, "target_question_id", action_type)
        return ShowQuestionAction(target_question_id=target, message=msg, metadata=meta)
    if action_type is BranchingActionType.HIDE_QUESTION:
        target = _require(rule.target_question_id, rule, "target_question_id", action_type)
        return HideQuestionAction(target_question_id=target, message=msg, metadata=meta)
    if action_type is BranchingActionType.SKIP_TO_QUESTION:
        target = _require(rule.target_question_id, rule, "target_question_id", action_type)
        return SkipToQuestionAction(target_question_id=target, message=msg, metadata=meta)
    if action_type is BranchingActionType.SHOW_QUESTIONS:
        targets = _require(rule.target_question_ids, rule, "target_question_ids", action_type)
        return ShowQuestionsAction(
            target_question_ids=list(targets), message=msg, metadata=meta
        )
    if action_type is BranchingActionType.JUMP_TO_SECTION:
        target = _require(rule.target_section_id, rule, "target_section_id", action_type)
        return JumpToSectionAction(
            target_section_id=target, message=msg or DEFAULT_JUMP_MESSAGE, metadata=meta
        )
    if action_type is BranchingActionType.END_SURVEY:
        return EndSurveyAction(message=msg or DEFAULT_END_SURVEY_MESSAGE, metadata=meta)
    if action_type is BranchingActionType.DISQUALIFY:
        return DisqualifyAction(message=msg or DEFAULT_DISQUALIFY_MESSAGE, metadata=meta)

    raise ConfigurationError(
        f"Rule {rule.id}: cannot build action for {action_type.value}", rule_id=rule.id
    )


def action_targets(action: BranchingAction) -> list[int]:
    """Question ids an action points at (empty for section/terminal actions)."""
    if isinstance(action, ShowQuestionsAction):
        return list(action.target_question_ids)
    target = getattr(action, "target_question_id", None)
    return [target] if target is not None else []
