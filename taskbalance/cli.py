"""CLI entrypoint for taskbalance."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import click

from taskbalance.core.exceptions import TaskBalanceError

if TYPE_CHECKING:
    from taskbalance.core.factory import TaskFactory

logger = logging.getLogger("taskbalance.cli")


def _setup_logging(verbose: bool = False) -> None:
    """Apply logging configuration from config/default.yaml."""
    from taskbalance.core.config import load_config

    try:
        config = load_config()
        level_name = config.logging.level
        fmt = config.logging.format
    except Exception:
        level_name = "INFO"
        fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format=fmt, stream=sys.stderr)


def _load_factory(config_dir: Optional[Path], env: Optional[str]) -> TaskFactory:
    from taskbalance.core.config import load_config
    from taskbalance.core.factory import TaskFactory

    try:
        config = load_config(config_dir=config_dir, env=env)
    except TaskBalanceError as exc:
        raise click.ClickException(str(exc)) from exc
    logger.debug("Loaded config (config_dir=%s, env=%s)", config_dir or "default", env or "none")
    return TaskFactory(config)


def _format_result(value: object, limit: int = 60) -> str:
    text = repr(value)
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


_SPEC_OPTION = click.option(
    "--spec",
    "spec_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to JSON or YAML task spec.",
)
_CONFIG_DIR_OPTION = click.option(
    "--config-dir",
    required=False,
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding default.yaml and environment overlays.",
)
_ENV_OPTION = click.option("--env", required=False, default=None, help="Optional config overlay environment.")


@click.group()
@click.option("--verbose", is_flag=True, default=False, help="Enable verbose (DEBUG) logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """taskbalance command line interface."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _setup_logging(verbose=verbose)


@cli.command("run")
@_SPEC_OPTION
@click.option("--driver", "driver_name", required=False, default=None, help="Run this driver first instead of drawing by weight.")
@click.option(
    "--runs",
    required=False,
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="How many times to run the task.",
)
@click.option(
    "--out",
    "out_path",
    required=False,
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the attempt log as JSON to this path.",
)
@_CONFIG_DIR_OPTION
@_ENV_OPTION
def run_task(
    spec_path: Path,
    driver_name: Optional[str],
    runs: int,
    out_path: Optional[Path],
    config_dir: Optional[Path],
    env: Optional[str],
) -> None:
    """Run a task and report every driver attempt."""
    factory = _load_factory(config_dir, env)
    try:
        task = factory.from_file(spec_path)
    except TaskBalanceError as exc:
        raise click.ClickException(str(exc)) from exc

    successes = 0
    for run_number in range(1, runs + 1):
        seen = len(task.result_log)
        try:
            task.run(driver_name)
        except TaskBalanceError as exc:
            raise click.ClickException(str(exc)) from exc

        click.echo(f"Run {run_number}/{runs} of '{task.name}':")
        for record in task.results[seen:]:
            icon = click.style("ok", fg="green") if record.success else click.style("FAIL", fg="red")
            line = f"  [{icon}] {record.driver:<20} {record.duration_seconds:.3f}s  {_format_result(record.result)}"
            if record.error:
                line += f"  ({record.error})"
            click.echo(line)
        if task.success:
            successes += 1

    click.echo()
    summary = f"  {successes} of {runs} run(s) succeeded, {len(task.result_log)} attempt(s) logged."
    click.echo(click.style(summary, fg="green" if task.success else "red", bold=True))

    if out_path is not None:
        payload = {
            "task": task.name,
            "runs": runs,
            "succeeded_runs": successes,
            "last_success": task.success,
            "attempts": task.result_log.to_dicts(),
        }
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        click.echo(f"Wrote attempt log to {out_path}")

    if not task.success:
        sys.exit(1)


@cli.command("show")
@_SPEC_OPTION
@_CONFIG_DIR_OPTION
@_ENV_OPTION
def show_task(spec_path: Path, config_dir: Optional[Path], env: Optional[str]) -> None:
    """Print a task's drivers, selection odds and backup order."""
    from taskbalance.balancer.selection import selection_probabilities

    factory = _load_factory(config_dir, env)
    try:
        task = factory.from_file(spec_path)
    except TaskBalanceError as exc:
        raise click.ClickException(str(exc)) from exc

    drivers = list(task.drivers.values())
    odds = selection_probabilities(drivers)

    click.echo(f"Task '{task.name}' ({len(drivers)} driver(s))")
    for driver in drivers:
        flag = " backup" if driver.is_backup else ""
        click.echo(f"  {driver.name:<20} weight={driver.weight:<4} p={odds[driver.name]:.3f}{flag}")

    backups = task.backup_drivers
    click.echo(f"Backup order: {' -> '.join(backups) if backups else '(none)'}")


def main() -> None:
    """Entry point used by `taskbalance` console script."""
    from dotenv import load_dotenv
    load_dotenv(Path.cwd() / ".env")
    cli()


if __name__ == "__main__":
    main()
