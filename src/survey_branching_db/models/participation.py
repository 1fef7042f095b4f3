"""Participation and answer ORM models.

A participation is one respondent's run through one survey.  Its answers
live in a child table, one row per answered question; re-answering a
question overwrites the row so the flow state always replays the latest
answer.  Visibility is never stored: it is recomputed from these rows.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from survey_branching_db.models.base import Base
from survey_branching_db.models.enums import ParticipationStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SurveyParticipation(Base):
    """One row per respondent per survey run."""

    __tablename__ = "survey_participations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # --- Identity ---
    survey_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    # External user id (supplied by the gateway in X-User-ID)
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    # --- Position ---
    status: Mapped[ParticipationStatus] = mapped_column(
        String(20),
        nullable=False,
        default=ParticipationStatus.IN_PROGRESS,
    )
    current_section_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_question_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Message shown when the survey ended early (EndSurvey / Disqualify)
    completion_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Timestamps ---
    started_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('in_progress', 'completed', 'disqualified')",
            name="ck_participation_status",
        ),
        # Finished participations must record when they finished
        CheckConstraint(
            "status = 'in_progress' OR completed_at IS NOT NULL",
            name="ck_finished_has_timestamp",
        ),
        Index("ix_participation_user_survey", "user_id", "survey_id"),
    )

    @property
    def is_complete(self) -> bool:
        return ParticipationStatus(self.status).is_finished

    def __repr__(self) -> str:
        return (
            f"<SurveyParticipation(id={self.id}, survey={self.survey_id}, "
            f"user={self.user_id!r}, status={self.status!r})>"
        )


class SurveyAnswer(Base):
    """Latest answer of a participation to one question."""

    __tablename__ = "survey_answers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    participation_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("survey_participations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id: Mapped[int] = mapped_column(Integer, nullable=False)
    answer_value: Mapped[str] = mapped_column(Text, nullable=False)
    answered_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (
        UniqueConstraint("participation_id", "question_id", name="uq_answer_per_question"),
    )

    def __repr__(self) -> str:
        return (
            f"<SurveyAnswer(participation={self.participation_id}, "
            f"question={self.question_id}, value={self.answer_value!r})>"
        )
