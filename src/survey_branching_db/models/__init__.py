"""ORM models for survey_branching_db."""

from survey_branching_db.models.base import Base
from survey_branching_db.models.enums import ParticipationStatus
from survey_branching_db.models.participation import SurveyAnswer, SurveyParticipation

__all__ = ["Base", "ParticipationStatus", "SurveyAnswer", "SurveyParticipation"]
