"""Abstract collaborator contracts consumed by :class:`BranchingEngine`.

The engine performs no I/O of its own.  Everything it needs is fetched
through these ABCs, which callers implement against their storage of choice.

Reference implementations shipped in this repository::

    SurveyStore             (survey_branching.ruleset)   — RuleStore, SurveyStructureStore
    ParticipationRepository (survey_branching_db)        — ParticipationStore, AnswerStore

Failures raised by implementations (timeouts, connection errors) propagate
through the engine unchanged.
"""

from abc import ABC, abstractmethod

from survey_branching.models.flow import ParticipationRecord, SavedAnswer, Section
from survey_branching.models.rule import LogicRule


class RuleStore(ABC):
    """Source of logic rules."""

    @abstractmethod
    async def rules_for_question(self, question_id: int) -> list[LogicRule]:
        """Rules attached to one question, in ascending ``order``."""
        ...

    @abstractmethod
    async def rules_for_survey(self, survey_id: int) -> list[LogicRule]:
        """Every rule of a survey, active or not.

        Raises
        ------
        SurveyNotFound
            If the survey does not exist.
        """
        ...


class SurveyStructureStore(ABC):
    """Source of a survey's sections and questions."""

    @abstractmethod
    async def sections_for_survey(self, survey_id: int) -> list[Section]:
        """Sections of a survey with their questions in display order.

        Raises
        ------
        SurveyNotFound
            If the survey does not exist.
        """
        ...


class ParticipationStore(ABC):
    """Source of participation records."""

    @abstractmethod
    async def participation(self, participation_id: int) -> ParticipationRecord:
        """Return the participation.

        Raises
        ------
        ParticipationNotFound
            If no participation has this id.
        """
        ...


class AnswerStore(ABC):
    """Source of saved answers."""

    @abstractmethod
    async def saved_answers(self, participation_id: int) -> list[SavedAnswer]:
        """Saved answers of a participation, in the store's own order."""
        ...
