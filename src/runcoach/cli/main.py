"""Main CLI entry point.

    runcoach durations set celeste/1a a-00=12.5 a-01=8 a-02=20
    runcoach record celeste/1a a-01 --failure
    runcoach advise celeste/1a --detail extra
"""

import json
import sys
from pathlib import Path

import click

from runcoach.cli.advise_cmd import advise
from runcoach.cli.durations_cmd import durations
from runcoach.cli.error_handler import handle_error
from runcoach.cli.state import CliState, console
from runcoach.foundation.config import load_config, save_default_config
from runcoach.foundation.errors import RuncoachError
from runcoach.foundation.logging import configure_logging


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--config", "config_path", type=click.Path(dir_okay=False),
              help="Config file (default: .runcoach/config.yaml)")
@click.option("--data-dir", type=click.Path(file_okay=False),
              help="Data directory (default: storage.base_path from config)")
@click.version_option(package_name="runcoach", prog_name="runcoach")
@click.pass_context
def cli(ctx: click.Context, debug: bool, config_path: str | None, data_dir: str | None) -> None:
    """Practice coach for multi-segment runs.

    Records pass/fail outcomes per segment, fits a learning curve to each
    segment and recommends whether to practice a segment or go for the
    full run.

    \b
    Examples:
        runcoach durations set celeste/1a a-00=12.5 a-01=8
        runcoach record celeste/1a a-01 --success
        runcoach advise celeste/1a
    """
    try:
        config = load_config(config_path)
    except RuncoachError as e:
        handle_error(e)

    debug = debug or config.debug
    state = CliState(
        config=config,
        data_dir=Path(data_dir) if data_dir else Path(config.storage.base_path),
    )
    configure_logging(debug=debug, log_dir=state.data_dir / "logs" if debug else None)
    ctx.obj = state


@cli.command("record")
@click.argument("run_id")
@click.argument("segment_id")
@click.option("--success", "outcome", flag_value="success", help="The attempt cleared the segment")
@click.option("--failure", "outcome", flag_value="failure", help="The attempt failed")
@click.pass_obj
def record(state: CliState, run_id: str, segment_id: str, outcome: str | None) -> None:
    """Record one attempt on a segment.

    \b
    Examples:
        runcoach record celeste/1a a-01 --success
        runcoach record celeste/1a a-01 --failure
    """
    if outcome is None:
        raise click.UsageError("Pass --success or --failure")
    success = outcome == "success"

    if not state.config.tracking.enabled:
        console.print("[yellow]Tracking is disabled; outcome not recorded[/yellow]")
        return

    count = state.attempt_store().record(run_id, segment_id, success)
    label = "[green]success[/green]" if success else "[red]failure[/red]"
    console.print(f"Recorded {label} on [bold]{segment_id}[/bold] ({count} attempts)")


@cli.command("clear")
@click.argument("run_id", required=False)
@click.option("--all", "clear_everything", is_flag=True, help="Clear every run")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_obj
def clear(state: CliState, run_id: str | None, clear_everything: bool, yes: bool) -> None:
    """Delete recorded outcomes of a run (or of every run).

    Segment durations are kept.
    """
    if clear_everything == (run_id is not None):
        raise click.UsageError("Pass either RUN_ID or --all")

    store = state.attempt_store()
    if clear_everything:
        if not yes:
            click.confirm("Delete outcomes of every run?", abort=True)
        store.clear_all()
        console.print("[green]Cleared all recorded outcomes[/green]")
        return

    if not yes:
        click.confirm(f"Delete outcomes of {run_id}?", abort=True)
    store.clear_run(run_id)
    console.print(f"[green]Cleared outcomes of {run_id}[/green]")


@cli.command("runs")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_obj
def runs(state: CliState, json_output: bool) -> None:
    """List runs with recorded outcomes."""
    tracked = state.attempt_store().tracked_runs()
    if json_output:
        print(json.dumps(tracked))
        return
    if not tracked:
        console.print("[dim]No runs recorded yet[/dim]")
        return
    for run_id in tracked:
        console.print(f"  {run_id}")


@cli.command("init")
@click.pass_obj
def init(state: CliState) -> None:
    """Write a commented default config file into the data directory."""
    path = save_default_config(state.data_dir / "config.yaml")
    console.print(f"[green]Wrote {path}[/green]")


def main() -> None:
    """Console-script entry point with runcoach error formatting."""
    try:
        cli(standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        console.print("\n[dim]Aborted[/dim]")
        sys.exit(130)
    except RuncoachError as e:
        handle_error(e)


cli.add_command(durations)
cli.add_command(advise)
