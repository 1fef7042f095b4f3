"""Create survey_participations and survey_answers.

Initial schema: one row per participation, one row per answered question.
Visibility and conditional paths are derived at read time and have no
columns of their own.

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import TIMESTAMP

# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "survey_participations",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("survey_id", sa.Integer, nullable=False),
        sa.Column("user_id", sa.Text, nullable=False),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'in_progress'"),
        ),
        sa.Column("current_section_id", sa.Integer, nullable=True),
        sa.Column("current_question_id", sa.Integer, nullable=True),
        sa.Column("completion_message", sa.Text, nullable=True),
        sa.Column("started_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("completed_at", TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('in_progress', 'completed', 'disqualified')",
            name="ck_participation_status",
        ),
        sa.CheckConstraint(
            "status = 'in_progress' OR completed_at IS NOT NULL",
            name="ck_finished_has_timestamp",
        ),
    )
    op.create_index("ix_survey_participations_survey_id", "survey_participations", ["survey_id"])
    op.create_index("ix_survey_participations_user_id", "survey_participations", ["user_id"])
    op.create_index(
        "ix_participation_user_survey", "survey_participations", ["user_id", "survey_id"]
    )

    op.create_table(
        "survey_answers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "participation_id",
            sa.Integer,
            sa.ForeignKey("survey_participations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("question_id", sa.Integer, nullable=False),
        sa.Column("answer_value", sa.Text, nullable=False),
        sa.Column("answered_at", TIMESTAMP(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "participation_id", "question_id", name="uq_answer_per_question"
        ),
    )
    op.create_index(
        "ix_survey_answers_participation_id", "survey_answers", ["participation_id"]
    )


def downgrade() -> None:
    op.drop_table("survey_answers")
    op.drop_table("survey_participations")
