"""FlowMapGenerator — presentation graph of every path through a survey.

The map is a static view of configured logic, not a replay of any
respondent's answers:

  - one node per section and per question, plus terminal ``completion``
    (always) and ``disqualification`` (when any Disqualify rule exists)
  - ``sequence`` edges for natural order (section -> its first question,
    question -> next non-conditional question, last -> completion)
  - one ``rule`` edge per rule target, labelled with a condition summary
  - decision points grouping each question's rules with their actions
  - end points and orphaned (unreachable) questions for authoring warnings
"""

from __future__ import annotations

import logging
from typing import Sequence

from survey_branching.constants import COMPLETION_NODE_ID, DISQUALIFICATION_NODE_ID
from survey_branching.errors import ConfigurationError
from survey_branching.models.action import build_action
from survey_branching.models.flow import Section
from survey_branching.models.graph import (
    DecisionPoint,
    FlowEdge,
    FlowNode,
    FlowNodeType,
    SurveyFlowMap,
    question_node_id,
    section_node_id,
)
from survey_branching.models.rule import (
    BranchingActionType,
    ConditionType,
    LogicRule,
    parse_condition_type,
)
from survey_branching.structure import (
    conditional_question_ids,
    natural_successors,
    ordered_sections,
    parsed_active_rules,
    reachable_questions,
)

logger = logging.getLogger(__name__)


def describe_condition(rule: LogicRule) -> str:
    """Human-readable summary of a rule's condition, e.g. ``"= Yes"``.

    Unknown condition types fall back to the raw tag and operand.
    """
    value = rule.condition_value or ""
    try:
        ctype = parse_condition_type(rule.condition_type)
    except ConfigurationError:
        return f"{rule.condition_type} {value}".strip()

    if ctype is ConditionType.EQUALS:
        return f"= {value}"
    if ctype is ConditionType.NOT_EQUALS:
        return f"!= {value}"
    if ctype is ConditionType.CONTAINS:
        return f"contains '{value}'"
    if ctype is ConditionType.GREATER_THAN:
        return f"> {value}"
    if ctype is ConditionType.LESS_THAN:
        return f"< {value}"
    if ctype is ConditionType.BETWEEN:
        return f"between {value} and {rule.condition_value2 or '?'}"
    if ctype is ConditionType.IN_LIST:
        items = [item.strip() for item in value.split(",") if item.strip()]
        return f"in [{', '.join(items)}]"
    if ctype is ConditionType.REGEX_MATCH:
        return f"matches /{value}/"
    return f"= answer to question {value}"


class FlowMapGenerator:
    """Builds a ``SurveyFlowMap`` from a survey's structure and rules."""

    def generate(
        self,
        survey_id: int,
        sections: Sequence[Section],
        rules: Sequence[LogicRule],
    ) -> SurveyFlowMap:
        sections = ordered_sections(sections)
        parsed = parsed_active_rules(rules)
        conditional = conditional_question_ids(rules)
        successors = natural_successors(sections, conditional)
        uses_disqualify = any(a is BranchingActionType.DISQUALIFY for _, a in parsed)

        flow_map = SurveyFlowMap(survey_id=survey_id)
        self._add_nodes(flow_map, sections, conditional, uses_disqualify)
        self._add_sequence_edges(flow_map, sections, successors)

        # Rules that cannot produce an action are left off the map.
        buildable = []
        for rule, action_type in parsed:
            try:
                action = build_action(rule, action_type)
            except ConfigurationError as exc:
                logger.warning("Flow map for survey %s skips rule: %s", survey_id, exc)
                continue
            buildable.append((rule, action_type, action))

        # Edges must join emitted nodes; dangling targets surface as
        # invalid_target issues in the integrity report instead.
        node_ids = {node.id for node in flow_map.nodes}
        for rule, action_type, _ in buildable:
            for edge in self._rule_edges(rule, action_type):
                if edge.from_node_id in node_ids and edge.to_node_id in node_ids:
                    flow_map.edges.append(edge)
                else:
                    logger.warning(
                        "Flow map for survey %s skips rule %s edge %s -> %s: unknown node",
                        survey_id,
                        rule.id,
                        edge.from_node_id,
                        edge.to_node_id,
                    )

        flow_map.decision_points = self._decision_points(buildable)
        flow_map.end_points = self._end_points(parsed, successors, sections)

        reachable = reachable_questions(rules, sections)
        first_questions = {s.questions[0].id for s in sections if s.questions}
        flow_map.orphaned_questions = [
            q.id
            for section in sections
            for q in section.questions
            if q.id not in reachable and q.id not in first_questions
        ]

        logger.info(
            "Flow map for survey %s: %d nodes, %d edges, %d decision points, %d orphaned",
            survey_id,
            len(flow_map.nodes),
            len(flow_map.edges),
            len(flow_map.decision_points),
            len(flow_map.orphaned_questions),
        )
        return flow_map

    # ------------------------------------------------------------------
    # Nodes & edges
    # ------------------------------------------------------------------

    @staticmethod
    def _add_nodes(
        flow_map: SurveyFlowMap,
        sections: list[Section],
        conditional: set[int],
        uses_disqualify: bool,
    ) -> None:
        for section in sections:
            flow_map.nodes.append(
                FlowNode(
                    id=section_node_id(section.id),
                    type=FlowNodeType.SECTION,
                    label=section.title or f"Section {section.id}",
                    properties={"section_id": section.id, "order": section.order},
                )
            )
            for question in section.questions:
                flow_map.nodes.append(
                    FlowNode(
                        id=question_node_id(question.id),
                        type=FlowNodeType.QUESTION,
                        label=question.text or f"Question {question.id}",
                        properties={
                            "question_id": question.id,
                            "section_id": section.id,
                            "order": question.order,
                            "conditional": question.id in conditional,
                        },
                    )
                )

        flow_map.nodes.append(
            FlowNode(id=COMPLETION_NODE_ID, type=FlowNodeType.END, label="Survey complete")
        )
        if uses_disqualify:
            flow_map.nodes.append(
                FlowNode(id=DISQUALIFICATION_NODE_ID, type=FlowNodeType.END, label="Disqualified")
            )

    @staticmethod
    def _add_sequence_edges(
        flow_map: SurveyFlowMap,
        sections: list[Section],
        successors: dict[int, int | None],
    ) -> None:
        for section in sections:
            if not section.questions:
                continue
            flow_map.edges.append(
                FlowEdge(
                    from_node_id=section_node_id(section.id),
                    to_node_id=question_node_id(section.questions[0].id),
                    label="start",
                    kind="sequence",
                )
            )
            for question in section.questions:
                nxt = successors.get(question.id)
                flow_map.edges.append(
                    FlowEdge(
                        from_node_id=question_node_id(question.id),
                        to_node_id=question_node_id(nxt) if nxt is not None else COMPLETION_NODE_ID,
                        label="next",
                        kind="sequence",
                    )
                )

    @staticmethod
    def _rule_edges(rule: LogicRule, action_type: BranchingActionType) -> list[FlowEdge]:
        source = question_node_id(rule.question_id)
        summary = describe_condition(rule)

        if action_type is BranchingActionType.SHOW_QUESTIONS:
            targets = [question_node_id(q) for q in rule.target_question_ids]
        elif action_type is BranchingActionType.JUMP_TO_SECTION:
            targets = [section_node_id(rule.target_section_id)]
        elif action_type is BranchingActionType.END_SURVEY:
            targets = [COMPLETION_NODE_ID]
        elif action_type is BranchingActionType.DISQUALIFY:
            targets = [DISQUALIFICATION_NODE_ID]
        else:
            targets = [question_node_id(rule.target_question_id)]

        return [
            FlowEdge(
                from_node_id=source,
                to_node_id=target,
                label=summary,
                condition=action_type.value,
                kind="rule",
            )
            for target in targets
        ]

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    @staticmethod
    def _decision_points(buildable) -> list[DecisionPoint]:
        grouped: dict[int, DecisionPoint] = {}
        for rule, _, action in sorted(buildable, key=lambda item: item[0].order):
            point = grouped.setdefault(
                rule.question_id, DecisionPoint(question_id=rule.question_id)
            )
            point.conditions.append(describe_condition(rule))
            point.actions.append(action.model_dump(mode="json"))
        return [grouped[qid] for qid in sorted(grouped)]

    @staticmethod
    def _end_points(parsed, successors: dict[int, int | None], sections) -> list[str]:
        ends: list[str] = []
        kinds = {action_type for _, action_type in parsed}
        if BranchingActionType.END_SURVEY in kinds:
            ends.append(COMPLETION_NODE_ID)
        if BranchingActionType.DISQUALIFY in kinds:
            ends.append(DISQUALIFICATION_NODE_ID)
        for section in sections:
            for question in section.questions:
                if successors.get(question.id) is None:
                    ends.append(question_node_id(question.id))
        return ends
