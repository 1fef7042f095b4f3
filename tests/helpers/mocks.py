"""In-memory stand-ins for the collaborator stores.

MockParticipationRow mirrors the ``SurveyParticipation`` ORM model without a
SQLAlchemy dependency, and MockParticipationRepository implements the same
async methods as ``ParticipationRepository`` (reads and writes), mutating
rows in place just like the real repository.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from survey_branching.errors import ParticipationNotFound
from survey_branching.interfaces import AnswerStore, ParticipationStore
from survey_branching.models.flow import ParticipationRecord, SavedAnswer
from survey_branching_db.models.enums import ParticipationStatus


@dataclass
class MockParticipationRow:
    """In-memory stand-in for the SurveyParticipation ORM model."""

    id: int
    survey_id: int
    user_id: str = "user1"
    status: ParticipationStatus = ParticipationStatus.IN_PROGRESS
    current_section_id: int | None = None
    current_question_id: int | None = None
    completion_message: str | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None

    @property
    def is_complete(self) -> bool:
        return self.status.is_finished


class MockParticipationRepository(ParticipationStore, AnswerStore):
    """Dict-backed ParticipationRepository replacement."""

    def __init__(self):
        self.rows: dict[int, MockParticipationRow] = {}
        self.answers: dict[int, list[SavedAnswer]] = {}
        self.participation_calls = 0
        self.answer_calls = 0

    # --- Reads (engine contract) ---

    async def participation(self, participation_id):
        self.participation_calls += 1
        row = await self.get_or_raise(participation_id)
        return ParticipationRecord(
            participation_id=row.id,
            survey_id=row.survey_id,
            current_section_id=row.current_section_id,
            current_question_id=row.current_question_id,
            is_complete=row.is_complete,
            updated_at=row.updated_at,
        )

    async def saved_answers(self, participation_id):
        self.answer_calls += 1
        return list(self.answers.get(participation_id, []))

    # --- Reads (HTTP layer) ---

    async def get(self, participation_id):
        return self.rows.get(participation_id)

    async def get_or_raise(self, participation_id):
        row = self.rows.get(participation_id)
        if row is None:
            raise ParticipationNotFound(participation_id)
        return row

    # --- Writes ---

    async def create_participation(self, *, survey_id, user_id, current_section_id=None):
        row = MockParticipationRow(
            id=len(self.rows) + 1,
            survey_id=survey_id,
            user_id=user_id,
            current_section_id=current_section_id,
        )
        self.rows[row.id] = row
        return row

    async def record_answer(self, participation, question_id, value):
        now = datetime.now(timezone.utc)
        saved = [a for a in self.answers.get(participation.id, []) if a.question_id != question_id]
        answer = SavedAnswer(question_id=question_id, answer_value=value, answered_at=now)
        saved.append(answer)
        self.answers[participation.id] = saved
        participation.current_question_id = question_id
        participation.updated_at = now
        return answer

    async def move_to_section(self, participation, section_id):
        participation.current_section_id = section_id
        participation.current_question_id = None
        return participation

    async def move_to_question(self, participation, question_id, section_id=None):
        participation.current_question_id = question_id
        if section_id is not None:
            participation.current_section_id = section_id
        return participation

    async def complete(self, participation, message=None):
        return self._finish(participation, ParticipationStatus.COMPLETED, message)

    async def disqualify(self, participation, message=None):
        return self._finish(participation, ParticipationStatus.DISQUALIFIED, message)

    @staticmethod
    def _finish(participation, status, message):
        now = datetime.now(timezone.utc)
        participation.status = status
        participation.completion_message = message
        participation.completed_at = now
        participation.updated_at = now
        return participation

    # --- Test setup ---

    def add(self, row, saved=()):
        self.rows[row.id] = row
        self.answers[row.id] = list(saved)
        return row
