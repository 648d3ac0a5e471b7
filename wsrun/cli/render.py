"""Human-readable rendering of settings, plans and progress."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape

from wsrun.orchestration.events import (
    Event,
    TaskCompleted,
    TaskFailed,
    TaskSkipped,
    TaskStarted,
)

if TYPE_CHECKING:
    from pathlib import Path

    from wsrun.config.models import RunSettings
    from wsrun.pipeline import WorkspacePlan


def plan_directories(workspace_plan: WorkspacePlan) -> list[list[Path]]:
    """Per tier, the directories of packages that define the script."""
    packages = workspace_plan.packages
    return [
        [packages[name].directory for name in sorted(tier) if workspace_plan.runnable(name)]
        for tier in workspace_plan.plan
    ]


def sequential_directories(workspace_plan: WorkspacePlan) -> list[Path]:
    return [directory for tier in plan_directories(workspace_plan) for directory in tier]


def _task_command(directory: Path, settings: RunSettings) -> str:
    return f"(cd {json.dumps(str(directory))} && {settings.runner} {settings.script})"


def command_preview(workspace_plan: WorkspacePlan) -> str:
    """Shell-like preview of what a run would execute.

    Sequential runs chain every task with ``&&``; tiered runs background
    each task of a tier with ``&`` and wait for the tier before the next.
    """
    settings = workspace_plan.settings
    if settings.sequential:
        return " && ".join(
            _task_command(d, settings) for d in sequential_directories(workspace_plan)
        )
    return " && ".join(
        " & ".join(_task_command(d, settings) for d in dirs) + " && wait"
        for dirs in plan_directories(workspace_plan)
        if dirs
    )


def config_lines(settings: RunSettings) -> list[str]:
    return [
        f"Script: {settings.script}",
        f"Mode: {settings.describe_mode()}",
        f"Edges: {settings.edge_options.describe()}",
    ]


def plan_lines(workspace_plan: WorkspacePlan) -> list[str]:
    """Numbered sequential order, or the non-empty tiers with their directories."""
    if workspace_plan.settings.sequential:
        lines = ["Plan (sequential order):"]
        lines.extend(
            f"  {i}. {d}" for i, d in enumerate(sequential_directories(workspace_plan), start=1)
        )
        return lines

    lines = ["Plan (tiers):"]
    for index, dirs in enumerate(plan_directories(workspace_plan), start=1):
        if not dirs:
            continue
        lines.append(f"  Tier {index}:")
        lines.extend(f"    - {d}" for d in dirs)
    return lines


def print_config(console: Console, settings: RunSettings) -> None:
    for line in config_lines(settings):
        console.print(escape(line))
    console.print()


def print_plan(console: Console, workspace_plan: WorkspacePlan) -> None:
    for line in plan_lines(workspace_plan):
        console.print(escape(line), highlight=False, soft_wrap=True)
    if workspace_plan.plan.has_cycle:
        members = ", ".join(sorted(workspace_plan.plan.cycle))
        console.print(
            f"[yellow]⚠ Cycle among: {escape(members)} (no ordering guaranteed)[/yellow]"
        )
    console.print()

    if workspace_plan.settings.sequential:
        console.print("Command preview:")
    else:
        console.print("Command preview (conceptual):")
    # soft_wrap keeps the preview copy-pasteable
    console.print(escape(command_preview(workspace_plan)), soft_wrap=True, highlight=False)


def plan_to_dict(workspace_plan: WorkspacePlan) -> dict[str, Any]:
    """Structured form of the plan for ``--format json|yaml``."""
    settings = workspace_plan.settings
    packages = workspace_plan.packages
    return {
        "mode": str(settings.mode),
        "script": settings.script,
        "runner": settings.runner,
        "jobs": settings.jobs,
        "tiers": [
            [
                {
                    "name": name,
                    "directory": str(packages[name].directory),
                    "runnable": workspace_plan.runnable(name),
                }
                for name in sorted(tier)
            ]
            for tier in workspace_plan.plan
        ],
        "order": [str(d) for d in sequential_directories(workspace_plan)],
        "cycle": sorted(workspace_plan.plan.cycle),
        "skipped": sorted(
            name for name in packages if not workspace_plan.runnable(name)
        ),
    }


class ConsoleObserver:
    """Prints task progress to a rich console."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def __call__(self, event: Event) -> None:
        if isinstance(event, TaskStarted):
            self.console.print(escape(event.log_message()), highlight=False, soft_wrap=True)
        elif isinstance(event, TaskCompleted):
            self.console.print(
                f"[green]✔[/green] {escape(event.name)} "
                f"[dim](exit code {event.exit_code}, {event.duration_ms / 1000:.2f}s)[/dim]",
                highlight=False,
            )
        elif isinstance(event, TaskFailed):
            self.console.print(
                f"[red]{escape(event.log_message())}[/red]", highlight=False, soft_wrap=True
            )
        elif isinstance(event, TaskSkipped):
            self.console.print(f"[dim]{escape(event.log_message())}[/dim]", highlight=False)
