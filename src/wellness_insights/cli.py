#!/usr/bin/env python3
"""
Wellness insights CLI.

Reads an exported JSON file of daily records and prints summaries.

Usage:
    wellness summary data.json --range 30d
    wellness records data.json
    wellness patterns data.json --today 2025-03-01
    wellness insight data.json --json

The file holds either a list of daily records, or an object with
"records", and optionally "checkins" and "goals".
"""

import argparse
import json
import logging
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box
from rich.markup import escape

from .analysis.aggregation import (
    AGGREGATION_STRATEGY,
    aggregate_for_range,
    compare_periods,
    comparison_labels,
    consistency_percent,
    summarize_period,
)
from .analysis.composer import compose_daily_insight
from .analysis.correlation import analyze_stress_day_quality, find_next_day_patterns
from .analysis.lifestyle import analyze_lifestyle_patterns, best_sleep_factors
from .analysis.records import (
    calculate_longest_streak,
    calculate_milestones,
    find_personal_records,
    format_milestone,
)
from .exceptions import InvalidSeriesError, WellnessInsightsError
from .models.goals import Goal, default_goals
from .models.records import DailyRecord, parse_checkins, parse_daily_records
from .utils import parse_date

console = Console()

COMPARED_METRICS = ["steps", "sleepScore", "readinessScore", "hrv", "deepSleep", "restingHR"]


def get_level_color(level: str) -> str:
    """Get rich color for a status level."""
    colors = {
        "good": "green",
        "moderate": "yellow",
        "normal": "cyan",
        "warning": "yellow",
        "low": "red",
        "critical": "red",
        "ok": "green",
    }
    return colors.get(level, "white")


def load_payload(path: Path) -> Dict[str, Any]:
    """Load and validate the input file."""
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)

    if isinstance(raw, list):
        raw = {"records": raw}
    elif not isinstance(raw, dict):
        raise InvalidSeriesError(f"{path} must hold a list of records or an object")

    goals = default_goals()
    for key, overrides in (raw.get("goals") or {}).items():
        base = goals[key].model_dump(by_alias=True) if key in goals else {"metricKey": key}
        base.update(overrides)
        goals[key] = Goal.model_validate(base)

    return {
        "records": parse_daily_records(raw.get("records", [])),
        "checkins": parse_checkins(raw.get("checkins", [])),
        "goals": goals,
    }


def resolve_today(args: argparse.Namespace, records: List[DailyRecord]) -> date:
    """--today if given, else the most recent record's date."""
    if args.today:
        parsed = parse_date(args.today)
        if parsed is None:
            raise WellnessInsightsError(f"Invalid --today value '{args.today}', expected YYYY-MM-DD")
        return parsed
    if records:
        return records[-1].date
    return date.today()


def emit_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def cmd_summary(args: argparse.Namespace, data: Dict[str, Any]) -> None:
    """Period summary with comparison to the previous period."""
    records = data["records"]
    today = resolve_today(args, records)
    days = AGGREGATION_STRATEGY[args.range][1] or max(1, len(records))

    current = [r for r in records if today - timedelta(days=days) < r.date <= today]
    previous = [
        r for r in records
        if today - timedelta(days=days * 2) < r.date <= today - timedelta(days=days)
    ]
    summary = summarize_period(current)
    comparison = compare_periods(current, previous, COMPARED_METRICS)
    buckets = aggregate_for_range(records, args.metric, args.range)

    if args.json:
        emit_json({
            "summary": summary.to_dict(),
            "comparison": {k: v.to_dict() for k, v in comparison.items()},
            "buckets": [b.to_dict() for b in buckets],
            "consistency": consistency_percent(current),
        })
        return

    current_label, previous_label = comparison_labels(args.range)
    console.print()
    console.print(Panel(f"[bold]Wellness Summary[/bold] - {AGGREGATION_STRATEGY[args.range][2]}"))

    table = Table(box=box.ROUNDED)
    table.add_column("Metric", style="cyan")
    table.add_column(current_label, justify="right")
    table.add_column(previous_label, justify="right")
    table.add_column("Change", justify="right")
    for key, result in comparison.items():
        color = "green" if result.improved else ("red" if result.delta else "white")
        table.add_row(
            key,
            f"{result.current:g}",
            f"{result.previous:g}",
            f"[{color}]{result.percent_change:+d}%[/{color}]",
        )
    console.print(table)

    console.print(
        f"Days tracked: {summary.days_tracked}  Workouts: {summary.total_workouts}  "
        f"Step consistency (7d): {consistency_percent(current)}%"
    )

    bucket_table = Table(title=f"{args.metric} by period", box=box.SIMPLE)
    bucket_table.add_column("Period")
    bucket_table.add_column("Mean", justify="right")
    bucket_table.add_column("Days", justify="right")
    for bucket in buckets:
        bucket_table.add_row(
            bucket.label,
            "-" if bucket.mean is None else f"{bucket.mean:g}",
            str(bucket.count),
        )
    console.print(bucket_table)
    console.print()


def cmd_records(args: argparse.Namespace, data: Dict[str, Any]) -> None:
    """Personal records and milestone progress."""
    records = data["records"]
    board = find_personal_records(records)
    streak = calculate_longest_streak(records)
    milestones = calculate_milestones(
        sum(r.steps for r in records if r.steps is not None),
        sum(1 for r in records if r.workout),
        streak.current,
    )

    if args.json:
        emit_json({
            "records": board.to_dict(),
            "milestones": {k: v.to_dict() for k, v in milestones.items()},
        })
        return

    console.print()
    table = Table(title="Personal Records", box=box.ROUNDED)
    table.add_column("Record", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Date")
    for name, best in (
        ("Most steps", board.max_steps),
        ("Highest HRV", board.max_hrv),
        ("Best readiness", board.max_readiness),
        ("Best sleep score", board.max_sleep_score),
        ("Most deep sleep", board.max_deep_sleep),
        ("Best sleep efficiency", board.max_sleep_efficiency),
        ("Lowest resting HR", board.lowest_resting_hr),
    ):
        table.add_row(
            name,
            "-" if best.value is None else f"{best.value:g}",
            best.date.isoformat() if best.date else "-",
        )
    table.add_row("Longest active streak", f"{board.longest_streak.longest} days",
                  board.longest_streak.start_date.isoformat() if board.longest_streak.start_date else "-")
    console.print(table)

    ms_table = Table(title="Milestones", box=box.ROUNDED)
    ms_table.add_column("Ladder", style="cyan")
    ms_table.add_column("Current", justify="right")
    ms_table.add_column("Next", justify="right")
    ms_table.add_column("Progress", justify="right")
    for name, progress in milestones.items():
        ms_table.add_row(
            name,
            f"{progress.current:,}",
            format_milestone(progress.next) if progress.next else "all done",
            f"{progress.progress}%",
        )
    console.print(ms_table)
    console.print()


def cmd_patterns(args: argparse.Namespace, data: Dict[str, Any]) -> None:
    """Next-day and lifestyle patterns."""
    records = data["records"]
    today = resolve_today(args, records)
    next_day = find_next_day_patterns(records)
    stress_quality = analyze_stress_day_quality(records)
    lifestyle = analyze_lifestyle_patterns(data["checkins"], records, today)
    best = best_sleep_factors(data["checkins"], records)

    if args.json:
        emit_json({
            "next_day": [p.to_dict() for p in next_day],
            "stress_day_quality": stress_quality.to_dict() if stress_quality else None,
            "lifestyle": lifestyle.to_dict(),
            "best_sleep_factors": [b.to_dict() for b in best] if best else None,
        })
        return

    console.print()
    console.print(Panel("[bold]Your Patterns[/bold]"))
    if next_day:
        for pattern in next_day:
            console.print(f"  - {pattern.message} [dim]({pattern.sample_size} nights)[/dim]")
    else:
        console.print("[dim]No next-day patterns yet. Keep tracking.[/dim]")

    if stress_quality and stress_quality.significant:
        console.print(f"  - {stress_quality.message}")

    console.print()
    if not lifestyle.has_enough_data:
        console.print(
            f"[yellow]Lifestyle analysis needs {lifestyle.days_needed} more evening check-ins.[/yellow]"
        )
    elif lifestyle.patterns:
        table = Table(title="Lifestyle Factors", box=box.ROUNDED)
        table.add_column("Finding")
        table.add_column("Confidence", justify="right")
        table.add_column("Nights", justify="right")
        for pattern in lifestyle.patterns:
            table.add_row(pattern.human_text, f"{pattern.confidence:.0%}", str(pattern.sample_size))
        console.print(table)
    else:
        console.print("[dim]No lifestyle factor stands out yet.[/dim]")

    if best:
        console.print("[bold]Your best nights usually follow:[/bold]")
        for insight in best:
            console.print(f"  - {insight.factor} ({insight.percentage}%)")
    console.print()


def cmd_insight(args: argparse.Namespace, data: Dict[str, Any]) -> None:
    """Today's composed insight."""
    records = data["records"]
    today = resolve_today(args, records)
    insight = compose_daily_insight(records, data["goals"], today)

    if args.json:
        emit_json(insight.to_dict())
        return

    readiness = insight.readiness_assessment
    priority = insight.top_priority_action
    workout = insight.workout_recommendation
    color = get_level_color(readiness.level)

    console.print()
    score = f" ({readiness.composite_score})" if readiness.composite_score is not None else ""
    console.print(Panel(
        f"[bold {color}]{readiness.label}{score}[/bold {color}]\n{readiness.description}",
        title=f"Readiness - {today.isoformat()}",
    ))
    p_color = get_level_color(priority.severity)
    console.print(Panel(
        f"[bold]{priority.action}[/bold]\n[dim]{priority.reason}[/dim]",
        title=f"[{p_color}]{priority.title}[/{p_color}]",
    ))
    console.print(
        f"Workout: [bold]{workout.label}[/bold] ({workout.duration}) - {', '.join(workout.suggestions)}"
    )

    table = Table(title="Recovery Factors", box=box.SIMPLE)
    table.add_column("Factor", style="cyan")
    table.add_column("Status")
    for key, status in insight.recovery_factor_breakdown.items():
        s_color = get_level_color(status.level)
        table.add_row(key, f"[{s_color}]{status.label}[/{s_color}]")
    console.print(table)

    if insight.secondary_actions:
        console.print("[bold]Also worth attention:[/bold]")
        for action in insight.secondary_actions:
            console.print(f"  - {action.title}: {action.action}")
    console.print()


COMMANDS = {
    "summary": cmd_summary,
    "records": cmd_records,
    "patterns": cmd_patterns,
    "insight": cmd_insight,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wellness",
        description="Wellness insights - patterns from your wearable data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  wellness summary data.json --range 30d --metric sleepScore
  wellness records data.json
  wellness patterns data.json --today 2025-03-01
  wellness insight data.json --json
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("file", type=Path, help="JSON export of daily records")
        p.add_argument("--today", type=str, help="Reference date (YYYY-MM-DD)")
        p.add_argument("--json", action="store_true", help="Print machine-readable JSON")

    summary_p = subparsers.add_parser("summary", help="Summarize a period")
    add_common(summary_p)
    summary_p.add_argument(
        "--range", "-r", choices=list(AGGREGATION_STRATEGY), default="30d", help="Time range"
    )
    summary_p.add_argument("--metric", "-m", default="steps", help="Metric to bucket")

    add_common(subparsers.add_parser("records", help="Show personal records and milestones"))
    add_common(subparsers.add_parser("patterns", help="Show next-day and lifestyle patterns"))
    add_common(subparsers.add_parser("insight", help="Show today's insight"))
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    try:
        data = load_payload(args.file)
        COMMANDS[args.command](args, data)
    except FileNotFoundError:
        console.print(f"[red]File not found: {args.file}[/red]")
        return 1
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {args.file}: {e}[/red]")
        return 1
    except WellnessInsightsError as e:
        if args.json:
            emit_json(e.to_dict())
            return 1
        console.print(f"[red]{escape(e.message)}[/red]")
        if e.details:
            console.print(f"[dim]{escape(json.dumps(e.details, default=str))}[/dim]")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
