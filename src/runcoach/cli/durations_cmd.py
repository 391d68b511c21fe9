"""Durations command group - nominal seconds per segment.

The order segments are given in is the run's traversal order.
"""

import json

import click
from rich.table import Table

from runcoach.cli.error_handler import handle_error
from runcoach.cli.state import CliState, console
from runcoach.foundation.errors import RuncoachError
from runcoach.foundation.utils.timefmt import format_duration


@click.group()
def durations() -> None:
    """Segment order and nominal durations of a run.

    \b
    Examples:
        runcoach durations set celeste/1a a-00=12.5 a-01=8 a-02=20
        runcoach durations show celeste/1a
    """
    pass


def _parse_pair(pair: str) -> tuple[str, float]:
    segment, sep, seconds = pair.rpartition("=")
    if not sep or not segment:
        raise click.BadParameter(f"expected SEGMENT=SECONDS, got {pair!r}", param_hint="SEGMENTS")
    try:
        return segment, float(seconds)
    except ValueError:
        raise click.BadParameter(f"{seconds!r} is not a number", param_hint="SEGMENTS") from None


@durations.command("set")
@click.argument("run_id")
@click.argument("segments", nargs=-1, required=True)
@click.pass_obj
def durations_set(state: CliState, run_id: str, segments: tuple[str, ...]) -> None:
    """Replace the duration table of a run.

    SEGMENTS are SEGMENT=SECONDS pairs in traversal order.
    """
    pairs = [_parse_pair(pair) for pair in segments]
    order = [segment for segment, _ in pairs]
    try:
        state.duration_store().set_segment_durations(run_id, order, dict(pairs))
    except RuncoachError as e:
        handle_error(e)

    total = sum(seconds for _, seconds in pairs)
    console.print(
        f"[green]Stored {len(pairs)} segments for {run_id}[/green] "
        f"[dim](clean run: {format_duration(total)})[/dim]"
    )


@durations.command("show")
@click.argument("run_id")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_obj
def durations_show(state: CliState, run_id: str, json_output: bool) -> None:
    """Show the duration table of a run."""
    table_data = state.duration_store().get_segment_durations(run_id)

    if table_data is None:
        if json_output:
            print(json.dumps(None))
            return
        console.print(f"[yellow]No durations stored for {run_id}[/yellow]")
        return

    if json_output:
        print(json.dumps({"run": run_id, "segments": table_data.to_dict()}, indent=2))
        return

    table = Table(title=run_id, show_header=True, header_style="bold")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Segment")
    table.add_column("Seconds", justify="right")

    for i, segment in enumerate(table_data.order, 1):
        table.add_row(str(i), segment, f"{table_data.durations[segment]:.2f}")

    console.print(table)
