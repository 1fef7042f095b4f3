"""Survey reference endpoints — read-only views of the loaded definitions.

The data comes from the YAML snapshot loaded at startup and needs no
authentication.
"""

from fastapi import APIRouter, Depends

from survey_branching.models.flow import SurveyDefinition
from survey_branching.ruleset import SurveyStore

from survey_branching_server.dependencies import get_store

router = APIRouter(prefix="/surveys", tags=["surveys"])


@router.get("")
def list_surveys(store: SurveyStore = Depends(get_store)) -> list[dict]:
    """Summary of every loaded survey."""
    return [
        {
            "id": survey.id,
            "title": survey.title,
            "description": survey.description,
            "sections": len(survey.sections),
            "questions": sum(len(s.questions) for s in survey.sections),
            "rules": len(survey.rules),
        }
        for survey in store.surveys.values()
    ]


@router.get("/{survey_id}")
def get_survey(survey_id: int, store: SurveyStore = Depends(get_store)) -> SurveyDefinition:
    """Full definition (sections, questions, rules).  404 for an unknown survey."""
    return store.get_survey(survey_id)
