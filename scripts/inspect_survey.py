#!/usr/bin/env python3
"""Inspect a survey definition offline: integrity, decision points, paths.

Loads ``surveys/*.yaml`` through ``SurveyStore`` (no database needed) and
prints the integrity report and flow map summary as rich tables.  Optionally
replays a list of answers to show which questions each section would show.

Usage::

    # Install deps (first time only)
    pip install -e ".[scripts]"

    # Report on every loaded survey
    python scripts/inspect_survey.py

    # One survey, with a dry-run replay of answers
    python scripts/inspect_survey.py -s 1 --answer 1=Yes --answer 3=42

    # Dump the Cytoscape graph for a browser viewer
    python scripts/inspect_survey.py -s 1 --cytoscape graph.json
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

from rich.console import Console
from rich.table import Table

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))

from survey_branching.flow_map import FlowMapGenerator  # noqa: E402
from survey_branching.flow_state import FlowStateReconstructor  # noqa: E402
from survey_branching.integrity import FlowIntegrityValidator  # noqa: E402
from survey_branching.models.flow import (  # noqa: E402
    ParticipationRecord,
    SavedAnswer,
    SurveyDefinition,
)
from survey_branching.ruleset import SurveyStore  # noqa: E402
from survey_branching.structure import ordered_sections  # noqa: E402


def print_integrity(console: Console, survey: SurveyDefinition) -> None:
    report = FlowIntegrityValidator().validate(
        survey.rules, survey.sections, survey_id=survey.id
    )
    status = "[green]valid[/]" if report.is_valid else "[red]INVALID[/]"
    console.print(f"  Integrity: {status} ({len(report.issues)} issue(s))")
    if not report.issues:
        return

    table = Table(show_lines=False)
    table.add_column("Kind", width=16)
    table.add_column("Rule", width=6)
    table.add_column("Blocking", width=9)
    table.add_column("Message", min_width=40)
    for issue in report.issues:
        table.add_row(
            issue.kind,
            str(issue.rule_id or ""),
            "[red]yes[/]" if issue.blocking else "[yellow]no[/]",
            issue.message,
        )
    console.print(table)


def print_flow_map(console: Console, survey: SurveyDefinition, cytoscape: Path | None) -> None:
    flow_map = FlowMapGenerator().generate(survey.id, survey.sections, survey.rules)

    table = Table(title="Decision points", show_lines=True)
    table.add_column("Question", width=9)
    table.add_column("Conditions", min_width=24)
    table.add_column("Actions", min_width=24)
    for point in flow_map.decision_points:
        table.add_row(
            str(point.question_id),
            "\n".join(point.conditions),
            "\n".join(a["action_type"] for a in point.actions),
        )
    console.print(table)
    console.print(f"  End points: {', '.join(flow_map.end_points) or '-'}")
    console.print(
        f"  Orphaned questions: {', '.join(map(str, flow_map.orphaned_questions)) or '-'}"
    )

    if cytoscape is not None:
        cytoscape.write_text(json.dumps(flow_map.to_cytoscape(), indent=2), encoding="utf-8")
        console.print(f"  [dim]Cytoscape graph written to {cytoscape}[/]")


def print_replay(console: Console, survey: SurveyDefinition, raw_answers: list[str]) -> None:
    start = datetime(2000, 1, 1, tzinfo=timezone.utc)
    answers = []
    for i, raw in enumerate(raw_answers):
        qid, _, value = raw.partition("=")
        answers.append(
            SavedAnswer(
                question_id=int(qid),
                answer_value=value,
                answered_at=start + timedelta(minutes=i),
            )
        )

    reconstructor = FlowStateReconstructor()
    participation = ParticipationRecord(participation_id=0, survey_id=survey.id)
    state = reconstructor.reconstruct(participation, answers, survey.rules, survey.sections)

    console.rule("[bold]Replay")
    for step in state.conditional_path:
        console.print(f"  Q{step.question_id} = {step.response!r} -> {step.action_taken}")
    for section in ordered_sections(survey.sections):
        visible = reconstructor.available_for_section(
            section.id, answers, survey.rules, survey.sections
        )
        console.print(f"  Section {section.id} ({section.title}): {visible}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Inspect survey branching logic offline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-d", "--survey-dir", default=None, help="Survey YAML directory")
    parser.add_argument("-s", "--survey", type=int, default=None, help="Survey id")
    parser.add_argument(
        "--answer",
        action="append",
        default=[],
        metavar="QID=VALUE",
        help="Answer to replay (repeatable, applied in order)",
    )
    parser.add_argument("--cytoscape", type=Path, default=None, help="Write graph JSON here")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    console = Console()

    store = SurveyStore(survey_dir=args.survey_dir)
    store.load()

    surveys = [store.get_survey(args.survey)] if args.survey else list(store.surveys.values())
    invalid = 0
    for survey in surveys:
        console.rule(f"[bold]Survey {survey.id}: {survey.title}")
        print_integrity(console, survey)
        print_flow_map(console, survey, args.cytoscape)
        if args.answer:
            print_replay(console, survey, args.answer)
        if not FlowIntegrityValidator().is_valid(survey.rules):
            invalid += 1

    return 1 if invalid else 0


if __name__ == "__main__":
    sys.exit(main())
