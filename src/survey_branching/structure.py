"""Static survey-structure helpers shared by the flow-state, integrity and
flow-map components.

Natural order runs through the sections (ascending ``order``) and their
questions (display order), but skips conditional questions: a question that
an active show rule targets is only entered when that rule fires.  A
conditional question, once shown, continues to the next non-conditional
question.
"""

from __future__ import annotations

from collections import deque
from typing import Sequence

from survey_branching.errors import ConfigurationError
from survey_branching.models.flow import Section
from survey_branching.models.rule import BranchingActionType, LogicRule, parse_action_type

_SHOW_ACTIONS = (BranchingActionType.SHOW_QUESTION, BranchingActionType.SHOW_QUESTIONS)


def ordered_sections(sections: Sequence[Section]) -> list[Section]:
    return sorted(sections, key=lambda s: (s.order, s.id))


def survey_question_order(sections: Sequence[Section]) -> list[int]:
    """Every question id of the survey in natural reading order."""
    return [qid for section in ordered_sections(sections) for qid in section.question_ids]


def parsed_active_rules(
    rules: Sequence[LogicRule],
) -> list[tuple[LogicRule, BranchingActionType]]:
    """Active rules paired with their parsed action type.

    Rules whose action type does not parse are dropped; the integrity
    validator reports them separately.
    """
    parsed = []
    for rule in rules:
        if not rule.is_active:
            continue
        try:
            parsed.append((rule, parse_action_type(rule.action_type)))
        except ConfigurationError:
            continue
    return parsed


def conditional_question_ids(rules: Sequence[LogicRule]) -> set[int]:
    """Question ids only visible once a show rule fires."""
    targets: set[int] = set()
    for rule, action_type in parsed_active_rules(rules):
        if action_type not in _SHOW_ACTIONS:
            continue
        if rule.target_question_id is not None:
            targets.add(rule.target_question_id)
        targets.update(rule.target_question_ids)
    return targets


def natural_successors(
    sections: Sequence[Section], conditional: set[int]
) -> dict[int, int | None]:
    """Map each question to the next non-conditional question, or None at the end."""
    order = survey_question_order(sections)
    successors: dict[int, int | None] = {}
    following: int | None = None
    for qid in reversed(order):
        successors[qid] = following
        if qid not in conditional:
            following = qid
    return successors


def rule_question_targets(
    rule: LogicRule, action_type: BranchingActionType, sections: Sequence[Section]
) -> list[int]:
    """Question ids a rule can move the respondent to.

    Hide rules move nobody anywhere and contribute nothing.  A section jump
    lands on the section's first question.
    """
    if action_type in (BranchingActionType.SHOW_QUESTION, BranchingActionType.SKIP_TO_QUESTION):
        return [rule.target_question_id] if rule.target_question_id is not None else []
    if action_type is BranchingActionType.SHOW_QUESTIONS:
        return list(rule.target_question_ids)
    if action_type is BranchingActionType.JUMP_TO_SECTION:
        for section in sections:
            if section.id == rule.target_section_id and section.questions:
                return [section.questions[0].id]
    return []


def reachable_questions(rules: Sequence[LogicRule], sections: Sequence[Section]) -> set[int]:
    """Questions reachable from any section entry by natural order or rule edges.

    The first question of every section is an entry point.  Traversal is a
    breadth-first walk over natural-order successors plus the targets of
    show, skip and jump rules attached to already-reached questions.
    """
    conditional = conditional_question_ids(rules)
    successors = natural_successors(sections, conditional)

    outgoing: dict[int, list[int]] = {}
    for rule, action_type in parsed_active_rules(rules):
        outgoing.setdefault(rule.question_id, []).extend(
            rule_question_targets(rule, action_type, sections)
        )

    entries = [s.questions[0].id for s in ordered_sections(sections) if s.questions]
    seen: set[int] = set(entries)
    queue = deque(entries)
    while queue:
        qid = queue.popleft()
        nxt = [successors.get(qid)] + outgoing.get(qid, [])
        for target in nxt:
            if target is None or target in seen or target not in successors:
                continue
            seen.add(target)
            queue.append(target)
    return seen
