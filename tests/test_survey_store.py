"""SurveyStore loading and lookup smoke tests.

Validates that SurveyStore loads every YAML survey from surveys/ correctly
and that the lookup and async store methods return expected results.

Expected contents (from surveys/):
    2 surveys, 13 questions, 9 rules
    survey 1 (commuter_habits): sections 10, 20, 30
    survey 2 (product_feedback): section 40, snake_case rule tags
"""

import textwrap

import pytest

from survey_branching.errors import SurveyNotFound
from survey_branching.integrity import FlowIntegrityValidator
from survey_branching.models.rule import parse_action_type, parse_condition_type
from survey_branching.ruleset import SurveyStore, parse_survey


# =====================================================================
# Loading tests
# =====================================================================


def test_store_loads_all_surveys(survey_store):
    """Both bundled surveys load with their titles."""
    assert sorted(survey_store.surveys) == [1, 2], (
        f"Unexpected survey ids: {sorted(survey_store.surveys)}"
    )
    assert survey_store.get_survey(1).title == "Commuter habits"
    assert survey_store.get_survey(2).title == "Product feedback"


def test_store_counts(survey_store):
    """13 questions and 9 rules across both surveys."""
    questions = sum(
        len(s.questions) for sv in survey_store.surveys.values() for s in sv.sections
    )
    rules = sum(len(sv.rules) for sv in survey_store.surveys.values())
    assert questions == 13, f"Expected 13 questions, got {questions}"
    assert rules == 9, f"Expected 9 rules, got {rules}"


def test_sections_inherit_ids(survey_store):
    """Sections get the survey id and questions their section id."""
    survey = survey_store.get_survey(1)
    assert [s.id for s in survey.sections] == [10, 20, 30]
    for section in survey.sections:
        assert section.survey_id == 1
        for q in section.questions:
            assert q.section_id == section.id, f"Question {q.id} section mismatch"


def test_all_rule_tags_parse(survey_store):
    """Every bundled rule uses parseable tags, PascalCase or snake_case."""
    for survey in survey_store.surveys.values():
        for r in survey.rules:
            parse_condition_type(r.condition_type)
            parse_action_type(r.action_type)


def test_bundled_surveys_are_valid(survey_store):
    """No bundled survey has blocking or reachability issues."""
    validator = FlowIntegrityValidator()
    for survey in survey_store.surveys.values():
        report = validator.validate(survey.rules, survey.sections, survey_id=survey.id)
        assert report.issues == [], f"Survey {survey.id}: {report.issues}"


def test_numeric_yaml_operands_become_strings(survey_store):
    rule = next(r for r in survey_store.get_survey(1).rules if r.id == 4)
    assert rule.condition_value == "0"
    assert rule.condition_value2 == "1"


# =====================================================================
# Lookup tests
# =====================================================================


def test_unknown_survey_raises(survey_store):
    with pytest.raises(SurveyNotFound, match="survey_id=99"):
        survey_store.get_survey(99)


def test_find_question(survey_store):
    q = survey_store.find_question(7)
    assert q is not None
    assert q.section_id == 30
    assert survey_store.survey_for_question(12) == 2
    assert survey_store.find_question(999) is None
    assert survey_store.survey_for_question(999) is None


@pytest.mark.asyncio
async def test_rules_for_question_sorted(survey_store):
    """Question 1 carries two rules, returned in order."""
    rules = await survey_store.rules_for_question(1)
    assert [r.id for r in rules] == [1, 2]
    assert await survey_store.rules_for_question(2) == []
    assert await survey_store.rules_for_question(999) == []


@pytest.mark.asyncio
async def test_rules_and_sections_for_survey(survey_store):
    assert len(await survey_store.rules_for_survey(2)) == 3
    assert [s.id for s in await survey_store.sections_for_survey(2)] == [40]
    with pytest.raises(SurveyNotFound):
        await survey_store.rules_for_survey(99)


# =====================================================================
# Loading errors
# =====================================================================


SURVEY_A = """
id: 1
title: A
sections:
  - id: 1
    order: 1
    questions:
      - {id: 1, text: "one", order: 2}
      - {id: 2, text: "two", order: 1}
"""


def _write(tmp_path, name, body):
    (tmp_path / name).write_text(textwrap.dedent(body), encoding="utf-8")


def test_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        SurveyStore(survey_dir=tmp_path / "nope").load()


def test_duplicate_survey_id(tmp_path):
    _write(tmp_path, "a.yaml", SURVEY_A)
    _write(tmp_path, "b.yaml", "id: 1\ntitle: B\n")
    with pytest.raises(ValueError, match="Survey 1 already exists"):
        SurveyStore(survey_dir=tmp_path).load()


def test_duplicate_question_id(tmp_path):
    _write(tmp_path, "a.yaml", SURVEY_A)
    _write(
        tmp_path,
        "b.yaml",
        "id: 2\ntitle: B\nsections:\n  - id: 5\n    questions:\n      - {id: 2}\n",
    )
    with pytest.raises(ValueError, match="Question 2 already exists in survey 1"):
        SurveyStore(survey_dir=tmp_path).load()


def test_questions_sorted_by_order(tmp_path):
    _write(tmp_path, "a.yaml", SURVEY_A)
    store = SurveyStore(survey_dir=tmp_path)
    store.load()
    assert store.get_survey(1).sections[0].question_ids == [2, 1]
    assert store.get_survey(1).rules == []


def test_parse_survey_defaults():
    survey = parse_survey({"id": 3, "title": "Empty"})
    assert survey.sections == []
    assert survey.rules == []
    assert survey.description == ""
