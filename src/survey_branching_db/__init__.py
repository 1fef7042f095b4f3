"""survey_branching_db — PostgreSQL persistence for survey participations.

Provides the ORM models, async engine factory, and the repository that
implements the branching engine's participation and answer stores.
"""

from survey_branching_db.engine import get_engine, get_session_factory
from survey_branching_db.models.enums import ParticipationStatus
from survey_branching_db.models.participation import SurveyAnswer, SurveyParticipation
from survey_branching_db.repository import ParticipationRepository

__all__ = [
    "ParticipationRepository",
    "ParticipationStatus",
    "SurveyAnswer",
    "SurveyParticipation",
    "get_engine",
    "get_session_factory",
]
