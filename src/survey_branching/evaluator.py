"""ConditionEvaluator — decides whether one rule's condition matches an answer.

The evaluator is total over respondent input: free-text answers that do not
parse as numbers simply fail numeric conditions.  It only raises for problems
in the rule itself (missing operand, uncompilable pattern, unknown condition
type), which are reported as ``ConfigurationError``.

Condition reference:
    Equals / NotEquals      — case-insensitive, trimmed string comparison
    Contains                — case-insensitive substring; empty answer never matches
    GreaterThan / LessThan  — numeric; unparseable operands never match
    Between                 — inclusive numeric range [value, value2]
    InList                  — comma-separated, trimmed, case-insensitive membership
    RegexMatch              — ``re.search`` of the pattern in the answer
    CrossQuestion           — answer equals the saved answer of another question
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation

from survey_branching.constants import IN_LIST_SEPARATOR
from survey_branching.errors import ConfigurationError
from survey_branching.models.rule import ConditionType, LogicRule, parse_condition_type

logger = logging.getLogger(__name__)


def _to_number(raw: str | None) -> Decimal | None:
    """Parse a string operand as a finite decimal, or return None."""
    if raw is None:
        return None
    try:
        num = Decimal(raw.strip())
    except (InvalidOperation, ValueError):
        return None
    return num if num.is_finite() else None


def referenced_question_id(rule: LogicRule) -> int:
    """Return the question id a CrossQuestion rule compares against.

    Raises:
        ConfigurationError: if ``condition_value`` is missing or not an integer.
    """
    raw = rule.condition_value
    if raw is None or not raw.strip():
        raise ConfigurationError(
            f"Rule {rule.id}: CrossQuestion requires condition_value", rule_id=rule.id
        )
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationError(
            f"Rule {rule.id}: CrossQuestion condition_value must be a question id, "
            f"got {raw!r}",
            rule_id=rule.id,
        ) from None


class ConditionEvaluator:
    """Evaluates a single rule condition against an observed answer."""

    def matches(
        self,
        condition_type: str | ConditionType,
        condition_value: str | None,
        condition_value2: str | None,
        observed_value: str | None,
        reference_value: str | None = None,
    ) -> bool:
        """Return True if the observed answer satisfies the condition.

        Args:
            condition_type: stored condition tag (e.g. "Equals", "in_list")
            condition_value: primary operand; for CrossQuestion, the id of
                             the referenced question
            condition_value2: upper bound for Between, unused otherwise
            observed_value: the respondent's answer
            reference_value: for CrossQuestion, the referenced question's
                             saved answer (None if it has none)

        Raises:
            ConfigurationError: unknown condition type, missing operand, or
                an uncompilable RegexMatch pattern.
        """
        ctype = parse_condition_type(condition_type)
        if condition_value is None:
            raise ConfigurationError(f"{ctype.value} condition requires condition_value")

        observed = "" if observed_value is None else str(observed_value)

        if ctype is ConditionType.EQUALS:
            return observed.strip().casefold() == condition_value.strip().casefold()

        if ctype is ConditionType.NOT_EQUALS:
            return observed.strip().casefold() != condition_value.strip().casefold()

        if ctype is ConditionType.CONTAINS:
            if not observed:
                return False
            return condition_value.casefold() in observed.casefold()

        # --- Numeric comparisons ---
        if ctype in (ConditionType.GREATER_THAN, ConditionType.LESS_THAN):
            answer, threshold = _to_number(observed), _to_number(condition_value)
            if answer is None or threshold is None:
                return False
            if ctype is ConditionType.GREATER_THAN:
                return answer > threshold
            return answer < threshold

        if ctype is ConditionType.BETWEEN:
            if condition_value2 is None:
                raise ConfigurationError("Between condition requires condition_value2")
            answer = _to_number(observed)
            lo, hi = _to_number(condition_value), _to_number(condition_value2)
            if answer is None or lo is None or hi is None:
                return False
            return lo <= answer <= hi

        # --- Membership / pattern ---
        if ctype is ConditionType.IN_LIST:
            options = {
                item.strip().casefold()
                for item in condition_value.split(IN_LIST_SEPARATOR)
                if item.strip()
            }
            return observed.strip().casefold() in options

        if ctype is ConditionType.REGEX_MATCH:
            try:
                pattern = re.compile(condition_value)
            except re.error as exc:
                raise ConfigurationError(
                    f"Invalid regex pattern {condition_value!r}: {exc}"
                ) from None
            return pattern.search(observed) is not None

        if ctype is ConditionType.CROSS_QUESTION:
            if reference_value is None:
                return False
            return observed.strip().casefold() == str(reference_value).strip().casefold()

        # parse_condition_type only returns known members
        logger.warning("Unhandled condition type: %s", ctype)
        return False

    def matches_rule(
        self,
        rule: LogicRule,
        observed_value: str | None,
        saved_responses: dict[int, str] | None = None,
    ) -> bool:
        """Evaluate ``rule`` against an answer, resolving CrossQuestion lookups.

        ``saved_responses`` maps question id to saved answer value; it is only
        consulted for CrossQuestion rules.
        """
        ctype = parse_condition_type(rule.condition_type)
        reference = None
        if ctype is ConditionType.CROSS_QUESTION:
            ref_qid = referenced_question_id(rule)
            reference = (saved_responses or {}).get(ref_qid)
        return self.matches(
            ctype,
            rule.condition_value,
            rule.condition_value2,
            observed_value,
            reference,
        )
