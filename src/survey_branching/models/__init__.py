"""Public model re-exports for survey_branching.

Consumers should import from ``survey_branching.models`` rather than
reaching into sub-modules directly.
"""

# --- Rules ---
from survey_branching.models.rule import (
    QUESTION_TARGET_ACTIONS,
    TERMINAL_ACTIONS,
    BranchingActionType,
    ConditionType,
    LogicRule,
    LogicType,
    parse_action_type,
    parse_condition_type,
)

# --- Actions ---
from survey_branching.models.action import (
    BranchingAction,
    DisqualifyAction,
    EndSurveyAction,
    HideQuestionAction,
    JumpToSectionAction,
    NoAction,
    ShowQuestionAction,
    ShowQuestionsAction,
    SkipToQuestionAction,
    action_targets,
    build_action,
)

# --- Results ---
from survey_branching.models.result import BranchingEvaluationResult

# --- Structure / flow state ---
from survey_branching.models.flow import (
    ConditionalPathStep,
    ParticipationRecord,
    Question,
    SavedAnswer,
    Section,
    SurveyDefinition,
    SurveyFlowState,
)

# --- Graph ---
from survey_branching.models.graph import (
    TERMINAL_NODE_IDS,
    DecisionPoint,
    FlowEdge,
    FlowNode,
    FlowNodeType,
    IntegrityIssue,
    IntegrityReport,
    SurveyFlowMap,
    question_node_id,
    section_node_id,
)

__all__ = [
    # Rules
    "BranchingActionType",
    "ConditionType",
    "LogicRule",
    "LogicType",
    "QUESTION_TARGET_ACTIONS",
    "TERMINAL_ACTIONS",
    "parse_action_type",
    "parse_condition_type",
    # Actions
    "BranchingAction",
    "DisqualifyAction",
    "EndSurveyAction",
    "HideQuestionAction",
    "JumpToSectionAction",
    "NoAction",
    "ShowQuestionAction",
    "ShowQuestionsAction",
    "SkipToQuestionAction",
    "action_targets",
    "build_action",
    # Results
    "BranchingEvaluationResult",
    # Flow
    "ConditionalPathStep",
    "ParticipationRecord",
    "Question",
    "SavedAnswer",
    "Section",
    "SurveyDefinition",
    "SurveyFlowState",
    # Graph
    "DecisionPoint",
    "FlowEdge",
    "FlowNode",
    "FlowNodeType",
    "IntegrityIssue",
    "IntegrityReport",
    "SurveyFlowMap",
    "TERMINAL_NODE_IDS",
    "question_node_id",
    "section_node_id",
]
