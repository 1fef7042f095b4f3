"""Database-level enumerations for survey participations."""

import enum


class ParticipationStatus(str, enum.Enum):
    """Lifecycle states of a participation.

    Transitions:
        in_progress -> completed     (last question answered, or EndSurvey fired)
        in_progress -> disqualified  (Disqualify fired)
    """

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DISQUALIFIED = "disqualified"

    @property
    def is_finished(self) -> bool:
        return self is not ParticipationStatus.IN_PROGRESS
