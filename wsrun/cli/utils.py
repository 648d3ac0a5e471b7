"""CLI helper utilities for wsrun."""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

import typer
import yaml
from rich.console import Console

console = Console()


class OutputFormat(StrEnum):
    PRETTY = "pretty"
    JSON = "json"
    YAML = "yaml"


def print_output(obj: Any, fmt: OutputFormat | str = OutputFormat.PRETTY) -> None:
    """Print ``obj`` as JSON, YAML or via rich."""
    if fmt == OutputFormat.JSON:
        typer.echo(json.dumps(obj, default=str, indent=2))
    elif fmt == OutputFormat.YAML:
        typer.echo(yaml.safe_dump(obj, sort_keys=False))
    elif isinstance(obj, (str, int, float)):
        typer.echo(str(obj))
    else:
        console.print(obj)
