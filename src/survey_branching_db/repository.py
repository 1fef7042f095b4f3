"""Async repository for participations and their saved answers.

``ParticipationRepository`` is bound to one ``AsyncSession`` (one request)
and implements the engine's ``ParticipationStore`` and ``AnswerStore``
contracts on top of it.  Write helpers used by the HTTP layer live here too.

Methods call ``flush()`` but never ``commit()``: the caller owns the
transaction boundary.  Business rules (which action moves where) belong to
the caller as well; the repository only enforces structural invariants via
DB constraints.
"""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from survey_branching.errors import ParticipationNotFound
from survey_branching.interfaces import AnswerStore, ParticipationStore
from survey_branching.models.flow import ParticipationRecord, SavedAnswer
from survey_branching_db.models.enums import ParticipationStatus
from survey_branching_db.models.participation import SurveyAnswer, SurveyParticipation


class ParticipationRepository(ParticipationStore, AnswerStore):
    """Async read/write operations on ``survey_participations`` and ``survey_answers``."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_participation(
        self,
        *,
        survey_id: int,
        user_id: str,
        current_section_id: int | None = None,
    ) -> SurveyParticipation:
        """Insert a new in-progress participation and return it.

        The caller must ``await db.commit()`` to persist.
        """
        row = SurveyParticipation(
            survey_id=survey_id,
            user_id=user_id,
            current_section_id=current_section_id,
            status=ParticipationStatus.IN_PROGRESS,
        )
        self._db.add(row)
        await self._db.flush()  # Populate id and timestamps
        return row

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get(self, participation_id: int) -> SurveyParticipation | None:
        """Fetch a participation row by primary key."""
        return await self._db.get(SurveyParticipation, participation_id)

    async def get_or_raise(self, participation_id: int) -> SurveyParticipation:
        row = await self.get(participation_id)
        if row is None:
            raise ParticipationNotFound(participation_id)
        return row

    async def participation(self, participation_id: int) -> ParticipationRecord:
        row = await self.get_or_raise(participation_id)
        return to_record(row)

    async def saved_answers(self, participation_id: int) -> list[SavedAnswer]:
        """Answers in the order they were given (ties broken by insertion)."""
        stmt = (
            select(SurveyAnswer)
            .where(SurveyAnswer.participation_id == participation_id)
            .order_by(SurveyAnswer.answered_at, SurveyAnswer.id)
        )
        result = await self._db.execute(stmt)
        return [SavedAnswer.model_validate(a) for a in result.scalars().all()]

    # ------------------------------------------------------------------
    # Update — answers & position
    # ------------------------------------------------------------------

    async def record_answer(
        self, participation: SurveyParticipation, question_id: int, value: str
    ) -> SurveyAnswer:
        """Store the answer to ``question_id``, replacing any earlier one.

        Also moves the participation's current question to ``question_id``.
        """
        now = datetime.now(timezone.utc)
        stmt = select(SurveyAnswer).where(
            SurveyAnswer.participation_id == participation.id,
            SurveyAnswer.question_id == question_id,
        )
        answer = (await self._db.execute(stmt)).scalar_one_or_none()
        if answer is None:
            answer = SurveyAnswer(
                participation_id=participation.id,
                question_id=question_id,
                answer_value=value,
                answered_at=now,
            )
            self._db.add(answer)
        else:
            answer.answer_value = value
            answer.answered_at = now

        participation.current_question_id = question_id
        participation.updated_at = now
        await self._db.flush()
        return answer

    async def move_to_section(
        self, participation: SurveyParticipation, section_id: int
    ) -> SurveyParticipation:
        """Point the participation at the start of another section."""
        participation.current_section_id = section_id
        participation.current_question_id = None
        participation.updated_at = datetime.now(timezone.utc)
        await self._db.flush()
        return participation

    async def move_to_question(
        self,
        participation: SurveyParticipation,
        question_id: int,
        section_id: int | None = None,
    ) -> SurveyParticipation:
        """Point the participation at a specific question (and its section)."""
        participation.current_question_id = question_id
        if section_id is not None:
            participation.current_section_id = section_id
        participation.updated_at = datetime.now(timezone.utc)
        await self._db.flush()
        return participation

    # ------------------------------------------------------------------
    # Update — terminal states
    # ------------------------------------------------------------------

    async def complete(
        self, participation: SurveyParticipation, message: str | None = None
    ) -> SurveyParticipation:
        """Mark the participation completed."""
        return await self._finish(participation, ParticipationStatus.COMPLETED, message)

    async def disqualify(
        self, participation: SurveyParticipation, message: str | None = None
    ) -> SurveyParticipation:
        """Mark the participation disqualified."""
        return await self._finish(participation, ParticipationStatus.DISQUALIFIED, message)

    async def _finish(
        self,
        participation: SurveyParticipation,
        status: ParticipationStatus,
        message: str | None,
    ) -> SurveyParticipation:
        # ck_finished_has_timestamp requires completed_at on finished rows
        now = datetime.now(timezone.utc)
        participation.status = status
        participation.completion_message = message
        participation.completed_at = now
        participation.updated_at = now
        await self._db.flush()
        return participation


def to_record(row: SurveyParticipation) -> ParticipationRecord:
    """Map an ORM row to the engine's ``ParticipationRecord``."""
    return ParticipationRecord(
        participation_id=row.id,
        survey_id=row.survey_id,
        current_section_id=row.current_section_id,
        current_question_id=row.current_question_id,
        is_complete=row.is_complete,
        updated_at=row.updated_at,
    )
