"""Typer CLI entrypoint for the IPIndia news scraper."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, ScheduleConfig, ScheduleType, Settings
from .infra import DatabaseManager
from .logging_conf import configure_logging, default_log_dir, tail_log
from .orchestrator import Pipeline, RunResult
from .scheduler import APSchedulerAdapter

app = typer.Typer(
    help="IPIndia news scraper command line tool",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect run logs",
    no_args_is_help=True,
    rich_markup_mode=None,
)
app.add_typer(log_app, name="log")

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    verbose: bool = False


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    return AppState(repository=ConfigRepository(), verbose=verbose)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if not isinstance(state, AppState):
        state = build_state(False)
        ctx.obj = state
    return state


def _render_result_table(result: RunResult) -> Table:
    title = "Dry run result" if result.dry_run else "Run result"
    table = Table(title=title, box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    if result.dry_run:
        table.add_row("Items found", str(result.count or 0))
    else:
        table.add_row("Inserted", str(result.inserted))
        table.add_row("Skipped", str(result.skipped))
    table.add_row("Item errors", str(len(result.errors)))
    return table


def _run_once(settings: Settings) -> RunResult:
    return Pipeline(settings).run()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("run", help="Scrape the news page once.")
def run(
    ctx: typer.Context,
    dry_run: bool = typer.Option(
        True,
        "--dry-run/--live",
        help="Dry run skips every storage read and write.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    state = _get_state(ctx)
    settings = state.repository.load_settings(dry_run=dry_run)
    result = _run_once(settings)
    if as_json:
        console.print_json(json.dumps(result.as_dict()))
    elif result.success:
        console.print(_render_result_table(result))
    if not result.success:
        console.print(f"Scraper failed: {result.error}", style="red")
        raise typer.Exit(code=1)


@app.command("schedule", help="Run the scraper periodically until interrupted.")
def schedule(
    ctx: typer.Context,
    interval: Optional[float] = typer.Option(None, "--interval", help="Interval in seconds."),
    cron: Optional[str] = typer.Option(None, "--cron", help="Crontab expression."),
) -> None:
    state = _get_state(ctx)
    settings = state.repository.load_settings()
    if interval is not None and cron is not None:
        raise typer.BadParameter("Use either --interval or --cron, not both.")
    schedule_config = settings.schedule
    if interval is not None:
        schedule_config = ScheduleConfig(type=ScheduleType.INTERVAL, value=interval)
    elif cron is not None:
        schedule_config = ScheduleConfig(type=ScheduleType.CRON, value=cron)

    adapter = APSchedulerAdapter()
    adapter.schedule(schedule_config, lambda: _run_once(settings))
    adapter.start()
    console.print(f"Scheduler started ({schedule_config.type.value}: {schedule_config.value}).")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        console.print("Stopping scheduler…", style="dim")
    finally:
        adapter.shutdown()


@app.command("serve", help="Serve the HTTP scrape endpoint.")
def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
) -> None:
    from .api import create_app

    state = _get_state(ctx)
    flask_app = create_app(state.repository.load_settings())
    flask_app.run(host=host, port=port)


@app.command("init-db", help="Create the storage tables when missing.")
def init_db(
    ctx: typer.Context,
    seed_source: bool = typer.Option(
        False, "--seed-source", help="Insert the content source row if absent."
    ),
) -> None:
    state = _get_state(ctx)
    settings = state.repository.load_settings()
    manager = DatabaseManager(settings.database)
    try:
        manager.ensure_schema()
        if seed_source:
            created = manager.ensure_content_source(settings.source_keyword)
            message = "created" if created else "already present"
            console.print(f"Content source '{settings.source_keyword}' {message}.")
    finally:
        manager.dispose()
    console.print("Schema ready.", style="green")


@log_app.command("show", help="Show the latest lines of the run log.")
def log_show(
    tail: int = typer.Option(100, "--tail", help="Number of lines to show."),
    errors: bool = typer.Option(False, "--errors", help="Show the error log."),
) -> None:
    path = default_log_dir() / ("error.log" if errors else "scraper.log")
    lines = tail_log(path, tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"{path.name} · last {len(lines)} lines", style="cyan")
    console.print("".join(lines))


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
