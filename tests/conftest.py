import pytest

from survey_branching.evaluator import ConditionEvaluator
from survey_branching.resolver import RuleResolver
from survey_branching.ruleset import SurveyStore

from helpers.mocks import MockParticipationRepository


@pytest.fixture(scope="session")
def survey_store():
    """Load the bundled surveys/ definitions once for the whole session."""
    store = SurveyStore()
    store.load()
    return store


@pytest.fixture
def evaluator():
    return ConditionEvaluator()


@pytest.fixture
def resolver():
    return RuleResolver()


@pytest.fixture
def mock_repo():
    """Fresh in-memory participation repository for each test."""
    return MockParticipationRepository()
