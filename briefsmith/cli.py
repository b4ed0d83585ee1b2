"""Command line entry point for briefsmith."""

import asyncio
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from briefsmith.agents.coordinator import BriefCoordinator
from briefsmith.core.config import settings
from briefsmith.core.schemas import ProjectBrief

console = Console()


def brief_options(func):
    func = click.option("--timeline", default=None, help="Timeline, e.g. '2 weeks'")(func)
    func = click.option("-c", "--constraint", "constraints", multiple=True, help="Constraint (repeatable)")(func)
    func = click.option("-r", "--requirement", "requirements", multiple=True, help="Requirement (repeatable)")(func)
    func = click.argument("description")(func)
    return func


def _brief(description: str, requirements: Tuple[str, ...], constraints: Tuple[str, ...],
           timeline: Optional[str]) -> ProjectBrief:
    return ProjectBrief(description=description, requirements=list(requirements),
                        constraints=list(constraints), timeline=timeline)


@click.group()
@click.version_option(version=settings.VERSION)
def main() -> None:
    """Turn a project brief into technical tasks and backend artifacts."""
    pass


@main.command()
@brief_options
def decompose(description: str, requirements: Tuple[str, ...], constraints: Tuple[str, ...],
              timeline: Optional[str]) -> None:
    """Break DESCRIPTION into technical tasks and print the plan."""
    brief = _brief(description, requirements, constraints, timeline)
    result = asyncio.run(BriefCoordinator().decompose(brief))

    console.print(Panel(result.plan, title=f"Plan ({result.source})"))
    console.print(Panel(result.analysis, title="Analysis"))

    table = Table(title="Tasks")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Type")
    table.add_column("Priority")
    table.add_column("Hours", justify="right")
    for task in result.tasks:
        table.add_row(
            task.id,
            task.title,
            task.type.value,
            task.priority.value,
            f"{task.estimated_hours:g}" if task.estimated_hours else "-",
        )
    console.print(table)


@main.command()
@brief_options
def execute(description: str, requirements: Tuple[str, ...], constraints: Tuple[str, ...],
            timeline: Optional[str]) -> None:
    """Decompose DESCRIPTION and synthesize artifacts for every task."""
    brief = _brief(description, requirements, constraints, timeline)
    result = asyncio.run(BriefCoordinator().execute(brief))

    console.print(Panel(result.summary, title="Summary"))
    console.print(Panel(result.insights, title="Insights"))

    if not result.files:
        console.print("[yellow]No artifacts generated[/yellow]")
        return

    table = Table(title=f"Artifacts ({len(result.files)})")
    table.add_column("Path", style="cyan")
    table.add_column("Type")
    table.add_column("Lines", justify="right")
    for file in result.files:
        table.add_row(file.path, file.type.value, str(file.content.count("\n") + 1))
    console.print(table)


if __name__ == "__main__":
    main()
