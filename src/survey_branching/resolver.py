"""RuleResolver — turns one answer plus a question's rules into actions.

Rules for the question are evaluated in ascending ``order`` (ties keep their
input order).  Every matching rule contributes one action, except that a
terminal action (EndSurvey, Disqualify) stops evaluation: no later rule is
looked at, even if it would also match.

A rule that cannot be interpreted fails the whole evaluation: the result is
marked ``is_error`` and carries no actions, because acting on a partial rule
set could show or skip the wrong questions.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from survey_branching.errors import ConfigurationError
from survey_branching.evaluator import ConditionEvaluator
from survey_branching.models.action import BranchingAction, build_action
from survey_branching.models.result import BranchingEvaluationResult
from survey_branching.models.rule import TERMINAL_ACTIONS, LogicRule, parse_action_type

logger = logging.getLogger(__name__)


def active_rules_for(question_id: int, rules: Iterable[LogicRule]) -> list[LogicRule]:
    """Active rules attached to ``question_id``, stably sorted by ``order``."""
    selected = [r for r in rules if r.question_id == question_id and r.is_active]
    return sorted(selected, key=lambda r: r.order)


class RuleResolver:
    """Evaluates a question's rule set against a response."""

    def __init__(self, evaluator: ConditionEvaluator | None = None) -> None:
        self._evaluator = evaluator or ConditionEvaluator()

    def evaluate(
        self,
        question_id: int,
        response_value: str | None,
        rules: Iterable[LogicRule],
        saved_responses: Mapping[int, str] | None = None,
    ) -> BranchingEvaluationResult:
        """Resolve the actions triggered by ``response_value``.

        Args:
            question_id: the answered question
            response_value: the respondent's answer
            rules: candidate rules (may include other questions' rules and
                   inactive rules; both are ignored)
            saved_responses: question id -> saved answer, used by
                             CrossQuestion conditions

        Returns:
            A success result (possibly with no actions), or an error result
            if any evaluated rule is misconfigured.
        """
        ordered = active_rules_for(question_id, rules)
        saved = dict(saved_responses or {})
        meta = {"question_id": question_id, "rules_evaluated": 0}

        if not ordered:
            return BranchingEvaluationResult.no_actions(meta)

        actions: list[BranchingAction] = []
        for rule in ordered:
            meta["rules_evaluated"] += 1
            try:
                matched = self._evaluator.matches_rule(rule, response_value, saved)
                if not matched:
                    continue
                action_type = parse_action_type(rule.action_type)
                action = build_action(
                    rule, action_type, metadata={"rule_id": rule.id, "order": rule.order}
                )
            except ConfigurationError as exc:
                message = str(exc)
                if exc.rule_id is None:
                    message = f"Rule {rule.id}: {message}"
                logger.warning(
                    "Branching evaluation failed for question %s: %s", question_id, message
                )
                meta["rule_id"] = rule.id
                return BranchingEvaluationResult.error(message, meta)

            logger.debug(
                "Rule %s triggered %s for question %s",
                rule.id,
                action_type.value,
                question_id,
            )
            actions.append(action)

            if action_type in TERMINAL_ACTIONS:
                break

        return BranchingEvaluationResult.success(actions, meta)
