"""wsrun CLI - Main entrypoint."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from wsrun import __version__
from wsrun.cli.render import ConsoleObserver, plan_to_dict, print_config, print_plan
from wsrun.cli.utils import OutputFormat, print_output
from wsrun.config.loader import load_settings
from wsrun.exceptions import TaskFailedError, WsrunError
from wsrun.logging import configure_logging
from wsrun.pipeline import build_workspace_plan, execute_plan

# Exit status typer uses for command line usage errors
USAGE_ERROR_EXIT_CODE = 2

app = typer.Typer(
    name="wsrun",
    help="Run a package script across a workspace in dependency order.",
    add_completion=False,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)

# Create console for rich output
console = Console()
err_console = Console(stderr=True)


def _fail(error: Exception) -> NoReturn:
    err_console.print(f"[red]Error: {escape(str(error))}[/red]", soft_wrap=True)
    raise typer.Exit(1)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold blue]wsrun[/bold blue] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.command()
def run(
    script: Annotated[str, typer.Argument(help="Script to run in each package")] = "build",
    jobs: Annotated[
        str | None,
        typer.Option("-j", "--jobs", metavar="N", help="Worker pool size per tier"),
    ] = None,
    no_dev: Annotated[
        bool, typer.Option("--no-dev", help="Ignore devDependencies when ordering")
    ] = False,
    no_peer: Annotated[
        bool, typer.Option("--no-peer", help="Ignore peerDependencies when ordering")
    ] = False,
    only: Annotated[
        list[str] | None,
        typer.Option(
            "--only", "--filter", metavar="GLOB", help="Only packages matching GLOB (repeatable)"
        ),
    ] = None,
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", metavar="GLOB", help="Skip packages matching GLOB (repeatable)"),
    ] = None,
    sequential: Annotated[
        bool, typer.Option("--sequential", help="Run one package at a time")
    ] = False,
    print_only: Annotated[
        bool, typer.Option("--print-only", help="Print the plan without running anything")
    ] = False,
    debug: Annotated[
        bool, typer.Option("--debug", help="Show configuration, plan and command preview")
    ] = False,
    runner: Annotated[
        str | None, typer.Option("--runner", help="Command prefix, default 'bun run'")
    ] = None,
    root: Annotated[
        Path | None, typer.Option("--root", help="Workspace root (default: current directory)")
    ] = None,
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to a wsrun config file")
    ] = None,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", help="Plan output format for --print-only")
    ] = OutputFormat.PRETTY,
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="Log level: debug|info|warning|error")
    ] = None,
    log_format: Annotated[
        str | None, typer.Option("--log-format", help="Log format: console|json|structured|rich")
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Run SCRIPT in every selected workspace package, dependencies first.

    Packages are grouped into tiers; each tier runs on a bounded worker pool
    and the next tier starts only once the previous one has finished.
    """
    try:
        settings = load_settings(
            root=root,
            config_path=config,
            script=script,
            jobs=jobs,
            no_dev=no_dev,
            no_peer=no_peer,
            only=tuple(only or ()),
            exclude=tuple(exclude or ()),
            sequential=sequential,
            print_only=print_only,
            debug=debug,
            runner=runner,
            log_level=log_level,
            log_format=log_format,
        )
    except WsrunError as e:
        _fail(e)

    configure_logging(
        level=settings.logging.level,
        format=settings.logging.format,
        output_file=settings.logging.output_file,
        force_reconfigure=True,
    )

    try:
        workspace_plan = build_workspace_plan(settings)
    except WsrunError as e:
        _fail(e)

    structured = output_format is not OutputFormat.PRETTY
    if settings.debug and not structured:
        print_config(console, settings)
        print_plan(console, workspace_plan)

    if settings.print_only:
        if structured:
            print_output(plan_to_dict(workspace_plan), output_format)
        elif not settings.debug:
            print_plan(console, workspace_plan)
        return

    try:
        report = asyncio.run(execute_plan(workspace_plan, observer=ConsoleObserver(console)))
    except TaskFailedError as e:
        for failure in e.failures[1:]:
            err_console.print(
                f"[red]Also failed in {escape(str(failure.directory))} "
                f"with exit code {failure.exit_code}[/red]"
            )
        _fail(e)

    console.print(
        f"[green]✓[/green] {len(report.outcomes)} package(s) ran '{escape(settings.script)}'"
        + (f", {len(report.skipped)} skipped" if report.skipped else "")
    )


def main() -> None:
    """Console script entrypoint.

    Usage errors (unknown flags, missing values) exit with status 1 rather
    than the command line parser's default of 2.
    """
    try:
        app()
    except SystemExit as e:
        if e.code == USAGE_ERROR_EXIT_CODE:
            raise SystemExit(1) from None
        raise


if __name__ == "__main__":
    main()
