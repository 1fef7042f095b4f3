"""Evaluation result — engine output for one question evaluation."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from survey_branching.models.action import BranchingAction


class BranchingEvaluationResult(BaseModel):
    """Outcome of evaluating one question's rules against an answer.

    ``has_actions`` is true iff ``actions`` is non-empty.  ``is_error`` is set
    only when a rule could not be interpreted; an error result never carries
    actions.
    """

    has_actions: bool = False
    is_error: bool = False
    error_message: Optional[str] = None
    actions: list[BranchingAction] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def success(
        cls, actions: list[BranchingAction], metadata: dict[str, Any] | None = None
    ) -> "BranchingEvaluationResult":
        return cls(
            has_actions=bool(actions),
            actions=list(actions),
            metadata=dict(metadata or {}),
        )

    @classmethod
    def error(
        cls, message: str, metadata: dict[str, Any] | None = None
    ) -> "BranchingEvaluationResult":
        return cls(is_error=True, error_message=message, metadata=dict(metadata or {}))

    @classmethod
    def no_actions(
        cls, metadata: dict[str, Any] | None = None
    ) -> "BranchingEvaluationResult":
        return cls(metadata=dict(metadata or {}))

    @property
    def primary_action(self) -> BranchingAction | None:
        """The first resolved action, or None."""
        return self.actions[0] if self.actions else None
