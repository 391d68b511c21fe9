"""Advise command - what to practice next and how long it will take.

Detail levels:
- basic: recommendation and time estimates
- extra: plus per-segment success probability and net benefit
- all: plus model coefficients, confidence and benefit/cost breakdown
"""

import json
from typing import Any

import click
from rich.panel import Panel
from rich.table import Table

from runcoach.advisor import UNBOUNDED_TIME, PracticeAdvisor, Recommendation, RecommendationReason
from runcoach.cli.state import CliState, console
from runcoach.foundation.utils.timefmt import format_duration
from runcoach.modeling import Confidence
from runcoach.service import CoachService

_CONFIDENCE_STYLE = {
    Confidence.CONFIDENT: "green",
    Confidence.INSUFFICIENT_DATA: "yellow",
    Confidence.NEGATIVE_LEARNING_RATE: "red",
}


def _seconds(value: float | None) -> float | None:
    """JSON-safe seconds: unbounded estimates become null."""
    if value is None or value >= UNBOUNDED_TIME:
        return None
    return value


@click.command("advise")
@click.argument("run_id")
@click.option("--detail", type=click.Choice(["basic", "extra", "all"]), default="basic",
              help="How much per-segment information to show")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_obj
def advise(state: CliState, run_id: str, detail: str, json_output: bool) -> None:
    """Recommend practicing a segment or going for the full run.

    \b
    Examples:
        runcoach advise celeste/1a
        runcoach advise celeste/1a --detail all
        runcoach advise celeste/1a --json
    """
    with CoachService(
        state.attempt_store(),
        state.duration_store(),
        config=state.config,
        deferred=False,
    ) as service:
        service.on_run_changed(run_id)
        advisor = service.advisor
        recommendation = advisor.get_recommendation()
        expended = service.time_expended()

    if json_output:
        print(json.dumps(_to_json(run_id, advisor, recommendation, expended, detail), indent=2))
        return

    if recommendation is None:
        console.print(f"[yellow]No durations stored for {run_id}[/yellow]")
        console.print("[dim]Set them with: runcoach durations set RUN SEGMENT=SECONDS ...[/dim]")
        return

    _display_recommendation(run_id, advisor, recommendation, expended)
    if detail != "basic":
        _display_segments(advisor, show_all=detail == "all")


def _headline(recommendation: Recommendation) -> str:
    segment = recommendation.segment
    match recommendation.reason:
        case RecommendationReason.NEEDS_DATA:
            return f"Practice [bold]{segment}[/bold] [yellow](collecting data)[/yellow]"
        case RecommendationReason.NOT_IMPROVING:
            return f"Practice [bold]{segment}[/bold] [red](not improving)[/red]"
        case RecommendationReason.NET_BENEFIT:
            saved = format_duration(recommendation.net_benefit_seconds)
            return f"Practice [bold]{segment}[/bold] [green](saves {saved} per attempt)[/green]"
        case _:
            return "[bold green]Go for the full run[/bold green]"


def _display_recommendation(
    run_id: str,
    advisor: PracticeAdvisor,
    recommendation: Recommendation,
    expended: float | None,
) -> None:
    lines = [
        _headline(recommendation),
        "",
        f"Expected time per clean run: {format_duration(advisor.expected_completion_time())}",
        f"Estimate, grinding full runs: {format_duration(recommendation.naive_estimate_seconds)}",
        f"Estimate, practicing smartly: {format_duration(recommendation.smart_estimate_seconds)}",
    ]
    if expended is not None:
        lines.append(f"Time spent so far: {format_duration(expended)}")
    console.print(Panel("\n".join(lines), title=run_id, border_style="blue"))


def _display_segments(advisor: PracticeAdvisor, *, show_all: bool) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Segment")
    table.add_column("Attempts", justify="right")
    table.add_column("P(success)", justify="right")
    table.add_column("Net", justify="right")
    if show_all:
        table.add_column("Benefit", justify="right")
        table.add_column("Cost", justify="right")
        table.add_column("β0", justify="right")
        table.add_column("β1", justify="right")
        table.add_column("Confidence")

    for segment in advisor.order:
        model = advisor.get_segment_model(segment)
        benefit = advisor.get_practice_benefit(segment)
        row = [
            segment,
            str(model.attempt_count),
            f"{advisor.current_prob(segment):.1%}",
            f"{benefit.net:+.1f}s",
        ]
        if show_all:
            style = _CONFIDENCE_STYLE[model.confidence]
            row += [
                f"{benefit.benefit:.1f}s",
                f"{benefit.cost:.1f}s",
                f"{model.beta0:.3f}",
                f"{model.beta1:.4f}",
                f"[{style}]{model.confidence.value}[/{style}]",
            ]
        table.add_row(*row)

    console.print(table)


def _to_json(
    run_id: str,
    advisor: PracticeAdvisor,
    recommendation: Recommendation | None,
    expended: float | None,
    detail: str,
) -> dict[str, Any]:
    if recommendation is None:
        return {"run": run_id, "recommendation": None}

    rec = recommendation.to_dict()
    for key in ("naive_estimate_seconds", "smart_estimate_seconds", "net_benefit_seconds"):
        rec[key] = _seconds(rec[key])

    result: dict[str, Any] = {
        "run": run_id,
        "recommendation": rec,
        "expected_completion_seconds": _seconds(advisor.expected_completion_time()),
        "time_expended_seconds": expended,
    }
    if detail != "basic":
        segments = []
        for segment in advisor.order:
            model = advisor.get_segment_model(segment)
            benefit = advisor.get_practice_benefit(segment)
            entry: dict[str, Any] = {
                "segment": segment,
                "attempts": model.attempt_count,
                "probability": advisor.current_prob(segment),
                "net_benefit_seconds": benefit.net,
            }
            if detail == "all":
                entry.update(model.to_dict())
                entry.update(benefit=benefit.benefit, cost=benefit.cost)
            segments.append(entry)
        result["segments"] = segments
    return result
