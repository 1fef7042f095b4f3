"""Survey structure and flow-state models.

These models define what the engine consumes from its collaborators
(sections, participations, saved answers) and what it returns when asked
where a participation stands.  They are intentionally decoupled from the ORM
models in ``survey_branching_db`` so that API consumers never see database
internals.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from survey_branching.models.rule import LogicRule


# ------------------------------------------------------------------
# Survey structure
# ------------------------------------------------------------------

class Question(BaseModel):
    """A single question inside a section."""

    id: int
    section_id: int
    text: str = ""
    order: int = 0


class Section(BaseModel):
    """An ordered group of questions.

    ``questions`` is kept in display order (ascending ``order``).
    """

    id: int
    survey_id: int
    title: str = ""
    order: int = 0
    questions: list[Question] = Field(default_factory=list)

    @property
    def question_ids(self) -> list[int]:
        return [q.id for q in self.questions]


class SurveyDefinition(BaseModel):
    """A whole survey as authored: structure plus logic rules."""

    id: int
    title: str
    description: str = ""
    sections: list[Section] = Field(default_factory=list)
    rules: list[LogicRule] = Field(default_factory=list)


# ------------------------------------------------------------------
# Collaborator records
# ------------------------------------------------------------------

class ParticipationRecord(BaseModel):
    """What the participation store knows about one respondent's run."""

    participation_id: int
    survey_id: int
    current_section_id: Optional[int] = None
    current_question_id: Optional[int] = None
    is_complete: bool = False
    updated_at: Optional[datetime] = None


class SavedAnswer(BaseModel):
    """One persisted answer, as returned by the answer store."""

    model_config = ConfigDict(from_attributes=True, coerce_numbers_to_str=True)

    question_id: int
    answer_value: str
    answered_at: Optional[datetime] = None


# ------------------------------------------------------------------
# Flow state
# ------------------------------------------------------------------

class ConditionalPathStep(BaseModel):
    """One historical branching event reconstructed from a saved answer."""

    question_id: int
    response: str
    action_taken: str
    timestamp: Optional[datetime] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class SurveyFlowState(BaseModel):
    """Read-side snapshot of a participation's navigable position.

    Recomputed on every request from the participation, its saved answers,
    and the survey's rules.  Never persisted.
    """

    participation_id: int
    survey_id: int
    current_section_id: Optional[int] = None
    current_question_id: Optional[int] = None
    completed_questions: list[int] = Field(default_factory=list)
    available_questions: list[int] = Field(default_factory=list)
    conditional_path: list[ConditionalPathStep] = Field(default_factory=list)
    is_complete: bool = False
    last_updated: Optional[datetime] = None
