"""Exception taxonomy for the branching SDK.

Two failure kinds exist:

  - **NotFoundError**: a referenced participation or survey does not exist.
    Raised by the collaborator stores and propagated unchanged.
  - **ConfigurationError**: a rule cannot be interpreted (unknown condition
    or action tag, missing operand, bad regex, missing target).

Both subclass the builtin the HTTP layer already maps (``LookupError`` /
``ValueError``), and both carry a "not found" / "invalid" phrase in their
message so the server's message-pattern handler stays consistent.
"""


class BranchingError(Exception):
    """Base class for all branching-engine errors."""


class NotFoundError(BranchingError, LookupError):
    """A referenced entity does not exist."""


class ParticipationNotFound(NotFoundError):
    """No participation with the requested id."""

    def __init__(self, participation_id) -> None:
        self.participation_id = participation_id
        super().__init__(f"Participation not found: participation_id={participation_id}")


class SurveyNotFound(NotFoundError):
    """No survey with the requested id."""

    def __init__(self, survey_id) -> None:
        self.survey_id = survey_id
        super().__init__(f"Survey not found: survey_id={survey_id}")


class ConfigurationError(BranchingError, ValueError):
    """A logic rule is malformed and cannot be evaluated.

    ``rule_id`` is filled in by the resolver when the failing rule is known.
    """

    def __init__(self, message: str, *, rule_id: int | None = None) -> None:
        self.rule_id = rule_id
        super().__init__(message)
