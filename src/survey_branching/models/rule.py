"""Logic rule model and the closed enumerations its string tags parse into.

Rules are authored as data (YAML files, admin tables) with ``condition_type``
and ``action_type`` kept as free text exactly as written.  They are parsed
into the closed ``ConditionType`` / ``BranchingActionType`` enumerations at
evaluation time, so an unknown tag surfaces as a ``ConfigurationError`` for
the rule that carries it rather than failing the whole survey load.

Both spellings seen in rule data are accepted: ``GreaterThan`` and
``greater_than`` parse to the same member.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from survey_branching.errors import ConfigurationError


class LogicType(str, enum.Enum):
    """Authoring classification of a rule.  Informational only."""

    SKIP = "Skip"
    SHOW = "Show"
    HIDE = "Hide"
    END_SURVEY = "EndSurvey"


class ConditionType(str, enum.Enum):
    """How a rule compares the observed answer with its operands."""

    EQUALS = "Equals"
    NOT_EQUALS = "NotEquals"
    CONTAINS = "Contains"
    GREATER_THAN = "GreaterThan"
    LESS_THAN = "LessThan"
    BETWEEN = "Between"
    IN_LIST = "InList"
    REGEX_MATCH = "RegexMatch"
    CROSS_QUESTION = "CrossQuestion"


class BranchingActionType(str, enum.Enum):
    """Effect of a matched rule.  ``NONE`` only appears on the no-action value."""

    NONE = "None"
    SHOW_QUESTION = "ShowQuestion"
    HIDE_QUESTION = "HideQuestion"
    SHOW_QUESTIONS = "ShowQuestions"
    JUMP_TO_SECTION = "JumpToSection"
    SKIP_TO_QUESTION = "SkipToQuestion"
    END_SURVEY = "EndSurvey"
    DISQUALIFY = "Disqualify"


# Terminal actions stop evaluation of the remaining rules for a question.
TERMINAL_ACTIONS: frozenset[BranchingActionType] = frozenset(
    {BranchingActionType.END_SURVEY, BranchingActionType.DISQUALIFY}
)

# Actions whose single target is another question; these form the edges
# checked for self-reference and cycles.
QUESTION_TARGET_ACTIONS: frozenset[BranchingActionType] = frozenset(
    {
        BranchingActionType.SHOW_QUESTION,
        BranchingActionType.HIDE_QUESTION,
        BranchingActionType.SKIP_TO_QUESTION,
    }
)


def _normalise(tag: str) -> str:
    return tag.strip().replace("_", "").replace("-", "").replace(" ", "").lower()


_CONDITION_LOOKUP: dict[str, ConditionType] = {
    _normalise(member.value): member for member in ConditionType
}

# NONE is deliberately absent: a rule must name a real effect.
_ACTION_LOOKUP: dict[str, BranchingActionType] = {
    _normalise(member.value): member
    for member in BranchingActionType
    if member is not BranchingActionType.NONE
}


def parse_condition_type(tag: str | ConditionType | None) -> ConditionType:
    """Parse a stored condition tag into ``ConditionType``.

    Raises:
        ConfigurationError: if the tag is empty or not a known condition.
    """
    if isinstance(tag, ConditionType):
        return tag
    if not tag:
        raise ConfigurationError("Invalid condition type: (empty)")
    try:
        return _CONDITION_LOOKUP[_normalise(tag)]
    except KeyError:
        raise ConfigurationError(f"Invalid condition type: {tag!r}") from None


def parse_action_type(tag: str | BranchingActionType | None) -> BranchingActionType:
    """Parse a stored action tag into ``BranchingActionType``.

    Raises:
        ConfigurationError: if the tag is empty, ``None``, or unknown.
    """
    if isinstance(tag, BranchingActionType) and tag is not BranchingActionType.NONE:
        return tag
    if not tag or isinstance(tag, BranchingActionType):
        raise ConfigurationError(f"Invalid action type: {tag!r}")
    try:
        return _ACTION_LOOKUP[_normalise(tag)]
    except KeyError:
        raise ConfigurationError(f"Invalid action type: {tag!r}") from None


class LogicRule(BaseModel):
    """One configured condition -> action pair attached to a question.

    Operands are string-encoded; numeric literals in YAML are coerced to
    strings so ``condition_value: 3`` and ``condition_value: "3"`` are the
    same rule.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: int
    question_id: int
    logic_type: Optional[str] = None
    condition_type: str
    condition_value: Optional[str] = None
    condition_value2: Optional[str] = None
    action_type: str
    target_question_id: Optional[int] = None
    target_question_ids: list[int] = Field(default_factory=list)
    target_section_id: Optional[int] = None
    order: int = 0
    is_active: bool = True
    message: Optional[str] = None
