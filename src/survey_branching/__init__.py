"""survey_branching — conditional-logic engine for multi-section surveys.

Public API:
    BranchingEngine        — async facade over the stores and components below
    SurveyStore            — loads YAML survey definitions (rules + structure)
    ConditionEvaluator     — matches one condition against an answer
    RuleResolver           — turns an answer and a rule set into actions
    FlowStateReconstructor — rebuilds a participation's flow state by replay
    FlowIntegrityValidator — detects malformed rules, self-references, cycles
    FlowMapGenerator       — presentation graph for authoring tools

Collaborator interfaces:
    RuleStore, SurveyStructureStore, ParticipationStore, AnswerStore

Errors:
    BranchingError, NotFoundError, ParticipationNotFound, SurveyNotFound,
    ConfigurationError
"""

from survey_branching.engine import BranchingEngine
from survey_branching.errors import (
    BranchingError,
    ConfigurationError,
    NotFoundError,
    ParticipationNotFound,
    SurveyNotFound,
)
from survey_branching.evaluator import ConditionEvaluator
from survey_branching.flow_map import FlowMapGenerator
from survey_branching.flow_state import FlowStateReconstructor
from survey_branching.integrity import FlowIntegrityValidator
from survey_branching.interfaces import (
    AnswerStore,
    ParticipationStore,
    RuleStore,
    SurveyStructureStore,
)
from survey_branching.resolver import RuleResolver
from survey_branching.ruleset import SurveyStore

__all__ = [
    # Engine & store
    "BranchingEngine",
    "SurveyStore",
    # Components
    "ConditionEvaluator",
    "FlowIntegrityValidator",
    "FlowMapGenerator",
    "FlowStateReconstructor",
    "RuleResolver",
    # Interfaces
    "AnswerStore",
    "ParticipationStore",
    "RuleStore",
    "SurveyStructureStore",
    # Errors
    "BranchingError",
    "ConfigurationError",
    "NotFoundError",
    "ParticipationNotFound",
    "SurveyNotFound",
]
