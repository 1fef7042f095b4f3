"""FlowIntegrityValidator — static checks over a survey's whole rule set.

The validator works on an immutable snapshot: the rules are loaded once,
turned into an adjacency map keyed by question id, and checked without
touching the store again.

Blocking issues (``is_valid`` becomes False):
  - a rule that cannot be interpreted (condition/action tag, operand,
    regex, missing target)
  - a self-reference ``q -> q``
  - a cycle among question-target edges (ShowQuestion, HideQuestion,
    SkipToQuestion); section jumps are not part of this graph
  - a target naming a question or section outside the survey (only when the
    survey structure is supplied)

Non-blocking warnings:
  - questions no path reaches (only when the structure is supplied)

Cycles are flagged even when no respondent could ever reach them: a loop in
the configuration is a loop waiting to happen.
"""

from __future__ import annotations

import logging
from typing import Sequence

from survey_branching.errors import ConfigurationError
from survey_branching.evaluator import ConditionEvaluator
from survey_branching.models.action import build_action
from survey_branching.models.flow import Section
from survey_branching.models.graph import IntegrityIssue, IntegrityReport
from survey_branching.models.rule import QUESTION_TARGET_ACTIONS, LogicRule, parse_action_type
from survey_branching.structure import ordered_sections, reachable_questions

logger = logging.getLogger(__name__)


class FlowIntegrityValidator:
    """Detects malformed rules, self-references, and jump cycles."""

    def __init__(self, evaluator: ConditionEvaluator | None = None) -> None:
        self._evaluator = evaluator or ConditionEvaluator()

    def is_valid(self, rules: Sequence[LogicRule]) -> bool:
        """Return False if any blocking issue exists.  Never raises on rule data."""
        return self.validate(rules).is_valid

    def validate(
        self,
        rules: Sequence[LogicRule],
        sections: Sequence[Section] | None = None,
        *,
        survey_id: int | None = None,
    ) -> IntegrityReport:
        """Run every check and collect the findings.

        Args:
            rules: the survey's rules (inactive rules are ignored)
            sections: the survey structure; enables target and reachability
                      checks when given
            survey_id: copied onto the report

        Returns:
            An ``IntegrityReport``; ``report.is_valid`` is the boolean verdict.
        """
        active = [r for r in rules if r.is_active]
        report = IntegrityReport(survey_id=survey_id)

        edges: dict[int, list[int]] = {}
        for rule in active:
            try:
                self._check_rule(rule)
            except ConfigurationError as exc:
                report.issues.append(
                    IntegrityIssue(
                        kind="configuration",
                        message=str(exc),
                        rule_id=rule.id,
                        question_id=rule.question_id,
                    )
                )
                continue

            action_type = parse_action_type(rule.action_type)
            if action_type in QUESTION_TARGET_ACTIONS:
                target = rule.target_question_id
                if target == rule.question_id:
                    report.issues.append(
                        IntegrityIssue(
                            kind="self_reference",
                            message=f"Rule {rule.id}: question {target} targets itself",
                            rule_id=rule.id,
                            question_id=target,
                        )
                    )
                else:
                    edges.setdefault(rule.question_id, []).append(target)

        for cycle in self._find_cycles(edges):
            path = " -> ".join(str(q) for q in cycle)
            report.issues.append(
                IntegrityIssue(
                    kind="cycle",
                    message=f"Circular reference: {path}",
                    question_id=cycle[0],
                )
            )

        if sections is not None:
            report.issues.extend(self._check_targets(active, sections))
            report.issues.extend(self._check_reachability(rules, sections))

        if report.issues:
            logger.warning(
                "Flow integrity issues for survey %s: %s",
                survey_id,
                "; ".join(issue.message for issue in report.issues),
            )
        return report

    # ------------------------------------------------------------------
    # Per-rule checks
    # ------------------------------------------------------------------

    def _check_rule(self, rule: LogicRule) -> None:
        """Raise ``ConfigurationError`` if ``rule`` cannot be evaluated.

        Evaluating the condition against an empty answer exercises every
        operand check (missing values, Between bound, regex compilation,
        CrossQuestion reference) without depending on a real response.
        """
        try:
            self._evaluator.matches_rule(rule, "", {})
            build_action(rule, parse_action_type(rule.action_type))
        except ConfigurationError as exc:
            if exc.rule_id is None:
                raise ConfigurationError(f"Rule {rule.id}: {exc}", rule_id=rule.id) from None
            raise

    # ------------------------------------------------------------------
    # Cycle detection
    # ------------------------------------------------------------------

    @staticmethod
    def _find_cycles(edges: dict[int, list[int]]) -> list[list[int]]:
        """Depth-first search with an explicit path stack; one entry per back-edge.

        Each returned cycle lists the question ids along the loop, closing
        with the repeated start node (e.g. ``[1, 2, 1]``).
        """
        visited: set[int] = set()
        on_stack: set[int] = set()
        stack: list[int] = []
        cycles: list[list[int]] = []

        for root in sorted(edges):
            if root in visited:
                continue
            visited.add(root)
            on_stack.add(root)
            stack.append(root)
            pending = [(root, iter(edges.get(root, [])))]

            while pending:
                node, targets = pending[-1]
                target = next(targets, None)
                if target is None:
                    pending.pop()
                    stack.pop()
                    on_stack.discard(node)
                elif target in on_stack:
                    start = stack.index(target)
                    cycles.append(stack[start:] + [target])
                elif target not in visited:
                    visited.add(target)
                    on_stack.add(target)
                    stack.append(target)
                    pending.append((target, iter(edges.get(target, []))))
        return cycles

    # ------------------------------------------------------------------
    # Structure-aware checks
    # ------------------------------------------------------------------

    @staticmethod
    def _check_targets(
        rules: Sequence[LogicRule], sections: Sequence[Section]
    ) -> list[IntegrityIssue]:
        question_ids = {q.id for s in sections for q in s.questions}
        section_ids = {s.id for s in sections}
        issues = []
        for rule in rules:
            if rule.question_id not in question_ids:
                issues.append(
                    IntegrityIssue(
                        kind="invalid_target",
                        message=f"Rule {rule.id}: question {rule.question_id} is not in the survey",
                        rule_id=rule.id,
                        question_id=rule.question_id,
                    )
                )
            targets = list(rule.target_question_ids)
            if rule.target_question_id is not None:
                targets.append(rule.target_question_id)
            for target in targets:
                if target not in question_ids:
                    issues.append(
                        IntegrityIssue(
                            kind="invalid_target",
                            message=f"Rule {rule.id}: target question {target} does not exist",
                            rule_id=rule.id,
                            question_id=rule.question_id,
                        )
                    )
            if rule.target_section_id is not None and rule.target_section_id not in section_ids:
                issues.append(
                    IntegrityIssue(
                        kind="invalid_target",
                        message=f"Rule {rule.id}: target section {rule.target_section_id} does not exist",
                        rule_id=rule.id,
                        question_id=rule.question_id,
                    )
                )
        return issues

    @staticmethod
    def _check_reachability(
        rules: Sequence[LogicRule], sections: Sequence[Section]
    ) -> list[IntegrityIssue]:
        reachable = reachable_questions(rules, sections)
        return [
            IntegrityIssue(
                kind="unreachable",
                message=f"Question {q.id} cannot be reached",
                question_id=q.id,
                blocking=False,
            )
            for section in ordered_sections(sections)
            for q in section.questions
            if q.id not in reachable
        ]
