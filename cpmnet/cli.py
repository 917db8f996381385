"""Command-line interface for cpmnet."""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import typer

from .config import DuplicatePolicy, SchedulerConfig, UnknownPredecessorPolicy
from .engine import CPMScheduler
from .errors import CPMError
from .loader import load_activities
from .logger import setup_logger
from .mermaid import generate_mermaid_syntax

app = typer.Typer(
    name="cpmnet",
    help="Critical Path Method scheduling for activity networks",
    add_completion=False,
)


class OutputFormat(str, Enum):
    TABLE = "table"
    JSON = "json"
    MERMAID = "mermaid"


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=errors only (default), 1=warnings, 2=stages, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
) -> None:
    """Global options for cpmnet commands."""
    setup_logger(verbose)


@app.command()
def schedule(
    file: Annotated[Path, typer.Argument(help="Activity list as .json or .csv")],
    output_format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Output format")
    ] = OutputFormat.TABLE,
    duplicates: Annotated[
        DuplicatePolicy, typer.Option("--duplicates", help="How to treat repeated activity IDs")
    ] = DuplicatePolicy.ERROR,
    unknown_predecessors: Annotated[
        UnknownPredecessorPolicy,
        typer.Option("--unknown-predecessors", help="How to treat references to missing activities"),
    ] = UnknownPredecessorPolicy.WARN,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Compute earliest/latest times, floats and the critical path."""
    try:
        activities = load_activities(file)
    except (OSError, ValueError) as exc:
        typer.echo(f"Error: could not load {file}: {exc}", err=True)
        raise typer.Exit(1) from None

    config = SchedulerConfig(duplicate_ids=duplicates, unknown_predecessors=unknown_predecessors)
    try:
        result = CPMScheduler(config).calculate(activities)
    except CPMError as exc:
        typer.echo(f"Error: {exc.message}", err=True)
        raise typer.Exit(1) from None

    for warning in result.warnings:
        typer.echo(f"Warning: {warning.message}", err=True)

    if output_format == OutputFormat.JSON:
        text = json.dumps(
            {
                "projectFinish": result.project_finish,
                "activities": result.to_records(),
                "criticalPaths": result.critical_paths,
                "warnings": [w.to_dict() for w in result.warnings],
            },
            indent=2,
        )
    elif output_format == OutputFormat.MERMAID:
        text = generate_mermaid_syntax(result)
    else:
        lines = [result.to_dataframe().to_string(index=False), "", f"Project finish: {result.project_finish}"]
        for path in result.critical_paths:
            lines.append(f"Critical path: {' -> '.join(path)}")
        text = "\n".join(lines)

    if output:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Schedule written to {output}")
    else:
        typer.echo(text)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
