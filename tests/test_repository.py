"""ParticipationRepository tests against a mocked AsyncSession.

No database is needed: ``add`` is a plain MagicMock, while ``flush``,
``get`` and ``execute`` are AsyncMocks whose return values stand in for
query results.  ORM rows are constructed directly (transient instances).
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from survey_branching.errors import ParticipationNotFound
from survey_branching_db.models.enums import ParticipationStatus
from survey_branching_db.models.participation import SurveyAnswer, SurveyParticipation
from survey_branching_db.repository import ParticipationRepository, to_record


T0 = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_db():
    """AsyncSession stand-in — flush/get/execute are awaitable no-ops."""
    db = MagicMock()
    db.flush = AsyncMock()
    db.get = AsyncMock(return_value=None)
    db.execute = AsyncMock()
    return db


@pytest.fixture
def repo(mock_db):
    return ParticipationRepository(mock_db)


def _row(**fields):
    fields.setdefault("id", 1)
    fields.setdefault("survey_id", 1)
    fields.setdefault("user_id", "u1")
    fields.setdefault("status", ParticipationStatus.IN_PROGRESS)
    fields.setdefault("updated_at", T0)
    return SurveyParticipation(**fields)


def _query_result(*, one=None, many=()):
    result = MagicMock()
    result.scalar_one_or_none.return_value = one
    result.scalars.return_value.all.return_value = list(many)
    return result


# =====================================================================
# Reads
# =====================================================================


class TestReads:
    """Lookups and mapping to engine records."""

    @pytest.mark.asyncio
    async def test_get_or_raise_missing(self, repo):
        with pytest.raises(ParticipationNotFound, match="participation_id=5"):
            await repo.get_or_raise(5)

    @pytest.mark.asyncio
    async def test_participation_record(self, repo, mock_db):
        mock_db.get.return_value = _row(current_section_id=20, current_question_id=6)
        record = await repo.participation(1)

        assert record.participation_id == 1
        assert record.survey_id == 1
        assert record.current_section_id == 20
        assert record.current_question_id == 6
        assert record.is_complete is False
        assert record.updated_at == T0

    def test_to_record_finished_statuses(self):
        """Both completed and disqualified rows count as complete."""
        for status in (ParticipationStatus.COMPLETED, ParticipationStatus.DISQUALIFIED):
            assert to_record(_row(status=status)).is_complete is True, status

    @pytest.mark.asyncio
    async def test_saved_answers(self, repo, mock_db):
        rows = [
            SurveyAnswer(id=1, participation_id=1, question_id=1, answer_value="Yes", answered_at=T0),
            SurveyAnswer(id=2, participation_id=1, question_id=3, answer_value="42", answered_at=T0),
        ]
        mock_db.execute.return_value = _query_result(many=rows)

        saved = await repo.saved_answers(1)
        assert [(a.question_id, a.answer_value) for a in saved] == [(1, "Yes"), (3, "42")]
        assert saved[0].answered_at == T0


# =====================================================================
# Writes
# =====================================================================


class TestWrites:
    """Answer upsert, position moves, and terminal states."""

    @pytest.mark.asyncio
    async def test_create_participation(self, repo, mock_db):
        row = await repo.create_participation(survey_id=2, user_id="u9", current_section_id=40)
        mock_db.add.assert_called_once_with(row)
        mock_db.flush.assert_awaited_once()
        assert row.status == ParticipationStatus.IN_PROGRESS
        assert row.current_section_id == 40

    @pytest.mark.asyncio
    async def test_record_new_answer(self, repo, mock_db):
        participation = _row()
        mock_db.execute.return_value = _query_result(one=None)

        answer = await repo.record_answer(participation, 3, "42")
        mock_db.add.assert_called_once_with(answer)
        assert answer.answer_value == "42"
        assert participation.current_question_id == 3
        assert participation.updated_at > T0

    @pytest.mark.asyncio
    async def test_record_answer_overwrites(self, repo, mock_db):
        """Re-answering a question updates the existing row."""
        existing = SurveyAnswer(
            id=7, participation_id=1, question_id=3, answer_value="16", answered_at=T0
        )
        mock_db.execute.return_value = _query_result(one=existing)

        answer = await repo.record_answer(_row(), 3, "42")
        assert answer is existing
        assert existing.answer_value == "42"
        assert existing.answered_at > T0
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_move_to_section_clears_question(self, repo):
        participation = _row(current_section_id=10, current_question_id=1)
        await repo.move_to_section(participation, 30)
        assert participation.current_section_id == 30
        assert participation.current_question_id is None

    @pytest.mark.asyncio
    async def test_move_to_question(self, repo):
        participation = _row(current_section_id=20, current_question_id=5)
        await repo.move_to_question(participation, 7, section_id=30)
        assert (participation.current_section_id, participation.current_question_id) == (30, 7)

        await repo.move_to_question(participation, 8)
        assert participation.current_section_id == 30, "section unchanged without section_id"

    @pytest.mark.asyncio
    async def test_complete_and_disqualify(self, repo):
        done = await repo.complete(_row(), "Bye")
        assert done.status == ParticipationStatus.COMPLETED
        assert done.completion_message == "Bye"
        assert done.completed_at is not None

        out = await repo.disqualify(_row(id=2))
        assert out.status == ParticipationStatus.DISQUALIFIED
        assert out.is_complete is True
