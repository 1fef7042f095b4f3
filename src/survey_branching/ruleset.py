"""SurveyStore — loads survey definitions from ``surveys/*.yaml`` into typed models.

This is the single source of survey structure and logic rules at runtime.
The store is loaded once at startup; afterwards it is an immutable snapshot
that implements both the rule-store and survey-structure contracts.

Usage::

    store = SurveyStore()           # defaults to surveys/ relative to repo root
    store.load()                    # parse all YAML files

    rules = await store.rules_for_survey(1)
    sections = await store.sections_for_survey(1)

File layout (one survey per file)::

    id: 1
    title: Customer feedback
    sections:
      - id: 10
        title: About you
        order: 1
        questions:
          - {id: 1, text: "Do you own a car?", order: 1}
    rules:
      - {id: 1, question_id: 1, condition_type: Equals, condition_value: "Yes",
         action_type: ShowQuestion, target_question_id: 2}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from survey_branching.constants import DEFAULT_SURVEY_DIR
from survey_branching.errors import SurveyNotFound
from survey_branching.interfaces import RuleStore, SurveyStructureStore
from survey_branching.models.flow import Question, Section, SurveyDefinition
from survey_branching.models.rule import LogicRule

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def parse_survey(raw: dict[str, Any]) -> SurveyDefinition:
    """Build a ``SurveyDefinition`` from a parsed YAML mapping.

    Sections inherit the survey id and questions inherit their section id,
    so authors do not have to repeat them.
    """
    survey_id = raw["id"]
    sections = []
    for sec in raw.get("sections") or []:
        sec = {**sec, "survey_id": sec.get("survey_id", survey_id)}
        sec["questions"] = sorted(
            (
                {**q, "section_id": q.get("section_id", sec["id"])}
                for q in sec.get("questions") or []
            ),
            key=lambda q: q.get("order", 0),
        )
        sections.append(sec)
    return SurveyDefinition(**{**raw, "sections": sections, "rules": raw.get("rules") or []})


# ---------------------------------------------------------------------------
# SurveyStore
# ---------------------------------------------------------------------------

class SurveyStore(RuleStore, SurveyStructureStore):
    """Loads every ``*.yaml`` under the survey directory and serves lookups.

    Attributes populated after :meth:`load`:

        surveys           — dict[survey_id, SurveyDefinition]
    """

    def __init__(self, survey_dir: str | Path | None = None) -> None:
        if survey_dir is None:
            survey_dir = DEFAULT_SURVEY_DIR or find_repo_root() / "surveys"
        self._base = Path(survey_dir)

        # Populated by load()
        self.surveys: dict[int, SurveyDefinition] = {}
        # question id -> owning survey id, for rules_for_question()
        self._question_owner: dict[int, int] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Parse all survey YAML files.  Call once at startup.

        Raises:
            FileNotFoundError: if the survey directory does not exist.
            ValueError: if two surveys share an id or a question id.
        """
        if not self._base.is_dir():
            raise FileNotFoundError(f"Missing survey directory: {self._base}")

        for path in sorted(self._base.glob("*.yaml")):
            survey = parse_survey(load_yaml(path))
            if survey.id in self.surveys:
                raise ValueError(f"Survey {survey.id} already exists (duplicate in {path.name})")
            for section in survey.sections:
                for question in section.questions:
                    owner = self._question_owner.get(question.id)
                    if owner is not None:
                        raise ValueError(
                            f"Question {question.id} already exists in survey {owner} "
                            f"(duplicate in {path.name})"
                        )
                    self._question_owner[question.id] = survey.id
            self.surveys[survey.id] = survey

        logger.info(
            "SurveyStore loaded: %d surveys, %d questions, %d rules",
            len(self.surveys),
            len(self._question_owner),
            sum(len(s.rules) for s in self.surveys.values()),
        )

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def get_survey(self, survey_id: int) -> SurveyDefinition:
        """Return a survey definition.

        Raises:
            SurveyNotFound: if no survey has this id.
        """
        try:
            return self.surveys[survey_id]
        except KeyError:
            raise SurveyNotFound(survey_id) from None

    def survey_for_question(self, question_id: int) -> int | None:
        """Survey id owning ``question_id``, or None for an unknown question."""
        return self._question_owner.get(question_id)

    def find_question(self, question_id: int) -> Question | None:
        """Look up a question across all surveys, or None if unknown."""
        survey_id = self._question_owner.get(question_id)
        if survey_id is None:
            return None
        for section in self.surveys[survey_id].sections:
            for question in section.questions:
                if question.id == question_id:
                    return question
        return None

    # ------------------------------------------------------------------
    # RuleStore / SurveyStructureStore
    # ------------------------------------------------------------------

    async def rules_for_question(self, question_id: int) -> list[LogicRule]:
        survey_id = self._question_owner.get(question_id)
        if survey_id is None:
            return []
        rules = [r for r in self.surveys[survey_id].rules if r.question_id == question_id]
        return sorted(rules, key=lambda r: r.order)

    async def rules_for_survey(self, survey_id: int) -> list[LogicRule]:
        return list(self.get_survey(survey_id).rules)

    async def sections_for_survey(self, survey_id: int) -> list[Section]:
        return list(self.get_survey(survey_id).sections)
