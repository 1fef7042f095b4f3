"""Flow graph models — presentation graph and integrity report.

``SurveyFlowMap`` is consumed by authoring tools to draw every possible path
through a survey.  ``to_cytoscape()`` emits the ``{"data": {...}}`` element
format understood by Cytoscape.js so the map can be rendered directly in a
browser.

``IntegrityReport`` lists every structural problem the validator found;
``is_valid`` is false as soon as one blocking issue exists.
"""

from __future__ import annotations

import enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from survey_branching.constants import COMPLETION_NODE_ID, DISQUALIFICATION_NODE_ID


def section_node_id(section_id: int) -> str:
    return f"section-{section_id}"


def question_node_id(question_id: int) -> str:
    return f"question-{question_id}"


TERMINAL_NODE_IDS = (COMPLETION_NODE_ID, DISQUALIFICATION_NODE_ID)


class FlowNodeType(str, enum.Enum):
    SECTION = "Section"
    QUESTION = "Question"
    END = "End"


class FlowNode(BaseModel):
    id: str
    type: FlowNodeType
    label: str
    properties: dict[str, Any] = Field(default_factory=dict)


class FlowEdge(BaseModel):
    """A directed edge between two flow nodes.

    ``kind`` is ``sequence`` for natural reading order and ``rule`` for an
    edge produced by a logic rule; only rule edges carry a ``condition``.
    """

    from_node_id: str
    to_node_id: str
    label: str = ""
    condition: Optional[str] = None
    kind: Literal["sequence", "rule"] = "rule"


class DecisionPoint(BaseModel):
    """A question with configured logic, shown statically."""

    question_id: int
    conditions: list[str] = Field(default_factory=list)
    # Plain dicts (serialised actions) keep the map JSON-friendly.
    actions: list[dict[str, Any]] = Field(default_factory=list)


class SurveyFlowMap(BaseModel):
    survey_id: int
    nodes: list[FlowNode] = Field(default_factory=list)
    edges: list[FlowEdge] = Field(default_factory=list)
    decision_points: list[DecisionPoint] = Field(default_factory=list)
    end_points: list[str] = Field(default_factory=list)
    orphaned_questions: list[int] = Field(default_factory=list)

    def to_cytoscape(self) -> dict[str, list[dict[str, Any]]]:
        """Return ``{"nodes": [...], "edges": [...]}`` in Cytoscape element form."""
        orphaned = {question_node_id(qid) for qid in self.orphaned_questions}
        nodes = []
        for node in self.nodes:
            data = {"id": node.id, "label": node.label, "type": node.type.value}
            data.update(node.properties)
            if node.id in orphaned:
                data["orphaned"] = True
            if node.id in self.end_points:
                data["end_point"] = True
            nodes.append({"data": data})

        edges = []
        for i, edge in enumerate(self.edges):
            data = {
                "id": f"e{i}",
                "source": edge.from_node_id,
                "target": edge.to_node_id,
                "label": edge.label,
                "kind": edge.kind,
            }
            if edge.condition is not None:
                data["condition"] = edge.condition
            edges.append({"data": data})

        return {"nodes": nodes, "edges": edges}


# ------------------------------------------------------------------
# Integrity report
# ------------------------------------------------------------------

IssueKind = Literal[
    "self_reference", "cycle", "configuration", "invalid_target", "unreachable"
]


class IntegrityIssue(BaseModel):
    kind: IssueKind
    message: str
    rule_id: Optional[int] = None
    question_id: Optional[int] = None
    blocking: bool = True


class IntegrityReport(BaseModel):
    survey_id: Optional[int] = None
    issues: list[IntegrityIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not any(issue.blocking for issue in self.issues)

    @property
    def blocking_issues(self) -> list[IntegrityIssue]:
        return [issue for issue in self.issues if issue.blocking]

    @property
    def warnings(self) -> list[IntegrityIssue]:
        return [issue for issue in self.issues if not issue.blocking]
