"""ConditionEvaluator unit tests — every condition type and its edge cases.

Each condition type has at least one positive and one negative case.  Rule
problems (missing operand, bad regex, unknown tag) must raise
ConfigurationError; respondent input never raises.

Condition reference (from evaluator.ConditionEvaluator.matches):
    Equals / NotEquals      — trimmed, case-insensitive comparison
    Contains                — case-insensitive substring, empty answer is False
    GreaterThan / LessThan  — decimal comparison, unparseable is False
    Between                 — inclusive [value, value2]
    InList                  — comma-separated membership
    RegexMatch              — re.search
    CrossQuestion           — equality with another question's saved answer
"""

import pytest

from survey_branching.errors import ConfigurationError
from survey_branching.evaluator import referenced_question_id

from helpers.factories import rule


def _match(evaluator, ctype, value, observed, value2=None, reference=None):
    return evaluator.matches(ctype, value, value2, observed, reference)


# =====================================================================
# String comparisons
# =====================================================================


class TestStringConditions:
    """Equals, NotEquals and Contains."""

    def test_equals_ignores_case_and_whitespace(self, evaluator):
        """Equals trims both sides and compares case-insensitively."""
        assert _match(evaluator, "Equals", "Yes", "  yes ") is True
        assert _match(evaluator, "Equals", "Yes", "No") is False

    def test_not_equals(self, evaluator):
        """NotEquals is the exact negation of Equals."""
        assert _match(evaluator, "NotEquals", "Yes", "No") is True
        assert _match(evaluator, "NotEquals", "Yes", "YES") is False

    def test_equals_missing_answer_is_empty_string(self, evaluator):
        """A None answer behaves like an empty answer."""
        assert _match(evaluator, "Equals", "", None) is True
        assert _match(evaluator, "Equals", "Yes", None) is False

    def test_contains(self, evaluator):
        """Contains is a case-insensitive substring check."""
        assert _match(evaluator, "Contains", "bus", "I take the BUS daily") is True
        assert _match(evaluator, "Contains", "train", "I take the bus") is False

    def test_contains_empty_answer_never_matches(self, evaluator):
        """An empty answer does not contain anything, not even ''."""
        assert _match(evaluator, "Contains", "", "") is False
        assert _match(evaluator, "Contains", "x", None) is False


# =====================================================================
# Numeric comparisons
# =====================================================================


class TestNumericConditions:
    """GreaterThan, LessThan and Between."""

    def test_greater_than(self, evaluator):
        assert _match(evaluator, "GreaterThan", "10", "11") is True
        assert _match(evaluator, "GreaterThan", "10", "10") is False

    def test_less_than(self, evaluator):
        assert _match(evaluator, "LessThan", "18", "17") is True
        assert _match(evaluator, "LessThan", "18", "18") is False

    def test_decimal_values(self, evaluator):
        """Fractional values compare numerically, not lexically."""
        assert _match(evaluator, "GreaterThan", "9.5", "10") is True
        assert _match(evaluator, "LessThan", "0.3", "0.25") is True

    def test_unparseable_answer_is_no_match(self, evaluator):
        """Free text in a numeric question simply fails the condition."""
        assert _match(evaluator, "GreaterThan", "10", "abc") is False
        assert _match(evaluator, "LessThan", "10", "abc") is False
        assert _match(evaluator, "LessThan", "10", "") is False

    def test_non_finite_answer_is_no_match(self, evaluator):
        """NaN and Infinity are not treated as numbers."""
        assert _match(evaluator, "GreaterThan", "10", "Infinity") is False
        assert _match(evaluator, "LessThan", "10", "NaN") is False

    def test_between_is_inclusive(self, evaluator):
        """Both bounds are inside the range."""
        assert _match(evaluator, "Between", "18", "18", value2="65") is True, "lo boundary"
        assert _match(evaluator, "Between", "18", "65", value2="65") is True, "hi boundary"
        assert _match(evaluator, "Between", "18", "40", value2="65") is True, "inside"
        assert _match(evaluator, "Between", "18", "17", value2="65") is False, "below"
        assert _match(evaluator, "Between", "18", "66", value2="65") is False, "above"

    def test_between_missing_upper_bound_raises(self, evaluator):
        with pytest.raises(ConfigurationError, match="condition_value2"):
            _match(evaluator, "Between", "18", "20")

    def test_between_unparseable_bound_is_no_match(self, evaluator):
        assert _match(evaluator, "Between", "low", "20", value2="65") is False


# =====================================================================
# Membership, pattern and cross-question
# =====================================================================


class TestListPatternCrossQuestion:
    """InList, RegexMatch and CrossQuestion."""

    def test_in_list_trims_items(self, evaluator):
        """Items are trimmed and matched case-insensitively."""
        assert _match(evaluator, "InList", "Red, Blue ,Green", "blue") is True
        assert _match(evaluator, "InList", "Red, Blue ,Green", " GREEN ") is True
        assert _match(evaluator, "InList", "Red, Blue ,Green", "Yellow") is False

    def test_in_list_ignores_empty_items(self, evaluator):
        """A trailing comma does not make the empty answer a member."""
        assert _match(evaluator, "InList", "Red,,Blue,", "") is False

    def test_regex_search(self, evaluator):
        """RegexMatch searches anywhere in the answer."""
        assert _match(evaluator, "RegexMatch", r"\d{5}", "zip 10115 Berlin") is True
        assert _match(evaluator, "RegexMatch", r"^\d{5}$", "zip 10115") is False

    def test_invalid_regex_raises(self, evaluator):
        with pytest.raises(ConfigurationError, match="Invalid regex"):
            _match(evaluator, "RegexMatch", "([a-z", "abc")

    def test_cross_question_equal(self, evaluator):
        """CrossQuestion compares with the referenced saved answer."""
        assert _match(evaluator, "CrossQuestion", "4", "Blue", reference="blue") is True
        assert _match(evaluator, "CrossQuestion", "4", "Red", reference="Blue") is False

    def test_cross_question_without_reference(self, evaluator):
        """No saved answer for the referenced question is never a match."""
        assert _match(evaluator, "CrossQuestion", "4", "Blue", reference=None) is False


# =====================================================================
# Tags and configuration errors
# =====================================================================


class TestConfiguration:
    """Tag parsing and rule-level configuration errors."""

    @pytest.mark.parametrize("tag", ["LessThan", "less_than", "LESS-THAN", "less than"])
    def test_tag_spellings(self, evaluator, tag):
        """PascalCase and snake_case tags evaluate identically."""
        assert _match(evaluator, tag, "5", "3") is True

    def test_unknown_condition_type_raises(self, evaluator):
        with pytest.raises(ConfigurationError, match="Invalid condition type"):
            _match(evaluator, "Roughly", "5", "5")

    def test_missing_condition_value_raises(self, evaluator):
        """Every condition type needs a primary operand."""
        with pytest.raises(ConfigurationError, match="requires condition_value"):
            _match(evaluator, "Equals", None, "Yes")

    def test_matches_rule_resolves_cross_question(self, evaluator):
        """matches_rule looks the reference up in saved responses."""
        r = rule(8, "CrossQuestion", "4", "EndSurvey")
        assert evaluator.matches_rule(r, "Blue", {4: "Blue"}) is True
        assert evaluator.matches_rule(r, "Blue", {4: "Red"}) is False
        assert evaluator.matches_rule(r, "Blue", {}) is False
        assert evaluator.matches_rule(r, "Blue", None) is False

    def test_cross_question_reference_must_be_a_question_id(self, evaluator):
        r = rule(8, "CrossQuestion", "colour", "EndSurvey")
        with pytest.raises(ConfigurationError, match="must be a question id") as exc_info:
            evaluator.matches_rule(r, "Blue", {})
        assert exc_info.value.rule_id == r.id

    def test_referenced_question_id(self):
        assert referenced_question_id(rule(8, "CrossQuestion", " 4 ", "EndSurvey")) == 4
        with pytest.raises(ConfigurationError):
            referenced_question_id(rule(8, "CrossQuestion", None, "EndSurvey"))
