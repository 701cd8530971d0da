"""Main CLI entry point for c4link."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from c4link import __version__

console = Console()
err_console = Console(stderr=True)

# Default path (can be overridden with -m or C4LINK_MODEL)
DEFAULT_MODEL = "workspace.yml"


class Context:
    """CLI context object passed to commands."""

    def __init__(self) -> None:
        self.model_path: Path | None = None
        self.verbose: bool = False
        self._model: Any = None

    @property
    def model(self) -> Any:
        """Lazy-load model."""
        if self._model is None:
            from c4link.core.model import Model

            if self.model_path and self.model_path.exists():
                self._model = Model.load(self.model_path)
            else:
                raise click.ClickException(f"Model not found: {self.model_path}")
        return self._model


pass_context = click.make_pass_decorator(Context, ensure=True)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="c4link")
@click.option(
    "-m",
    "--model",
    type=click.Path(exists=False, path_type=Path),
    default=DEFAULT_MODEL,
    envvar="C4LINK_MODEL",
    help="Path to model YAML/JSON file",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@pass_context
def cli(ctx: Context, model: Path, verbose: bool) -> None:
    """
    C4link - Software architecture modeling.

    Inspect, validate and extend C4 models of software systems,
    containers, components and their deployments.
    """
    ctx.model_path = model
    ctx.verbose = verbose
    configure_logging(verbose)


def load_model(ctx: Context) -> Any:
    """Load the model, exiting with status 1 on failure."""
    import yaml
    from pydantic import ValidationError

    from c4link.core.model import ResolutionError

    try:
        return ctx.model
    except (click.ClickException, ResolutionError, ValidationError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise SystemExit(1)


def display_name(element: Any) -> str:
    """Name to show for an element; container instances borrow the container's."""
    from c4link.core.deployment import ContainerInstance

    if isinstance(element, ContainerInstance):
        if element.container is not None:
            return f"{element.container.name} [{element.instance_id}]"
        return f"{element.container_id} [{element.instance_id}]"
    return element.name or "-"


# Import and register subcommands
from c4link.cli.apply import apply
from c4link.cli.validate import validate

cli.add_command(apply)
cli.add_command(validate)


@cli.command()
@pass_context
def info(ctx: Context) -> None:
    """Show model summary."""
    from rich.table import Table

    model = load_model(ctx)

    console.print(f"\n[bold]C4link v{__version__}[/bold]\n")

    console.print("[bold cyan]Model Summary[/bold cyan]")
    console.print(f"  Path: {escape(str(ctx.model_path))}")
    console.print(f"  Total elements: {len(model)}")
    console.print(f"  People: {len(model.people)}")
    console.print(f"  Software systems: {len(model.software_systems)}")
    console.print(f"  Relationships: {len(model.relationships)}")
    console.print(f"  Environments: {escape(', '.join(sorted(model.environments())))}")

    if len(model) > 0:
        table = Table(title="Elements by Type")
        table.add_column("Type", style="cyan")
        table.add_column("Count", justify="right")

        counts: dict[str, int] = {}
        for element in model:
            kind = type(element).__name__
            counts[kind] = counts.get(kind, 0) + 1
        for kind, count in sorted(counts.items()):
            table.add_row(kind, str(count))

        console.print(table)


@cli.command()
@click.option("--tag", "-t", help="Only show elements with this tag")
@pass_context
def elements(ctx: Context, tag: str | None) -> None:
    """List all elements in the model."""
    from rich.table import Table

    model = load_model(ctx)

    table = Table(title="Elements")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Canonical name")
    table.add_column("Tags")

    for element in model:
        if tag and not element.has_tag(tag):
            continue
        table.add_row(
            element.id,
            escape(display_name(element)),
            type(element).__name__,
            escape(element.canonical_name or "-"),
            escape(", ".join(element.tags)),
        )

    console.print(table)


@cli.command()
@click.option(
    "--style",
    type=click.Choice(["Synchronous", "Asynchronous"]),
    help="Only show relationships with this interaction style",
)
@pass_context
def relationships(ctx: Context, style: str | None) -> None:
    """List all relationships in the model."""
    from rich.table import Table

    model = load_model(ctx)

    if len(model.relationships) == 0:
        console.print("[yellow]No relationships declared[/yellow]")
        return

    table = Table(title="Relationships")
    table.add_column("ID", style="dim")
    table.add_column("Source", style="cyan")
    table.add_column("Destination", style="cyan")
    table.add_column("Description")
    table.add_column("Technology")
    table.add_column("Style")

    for relationship in model.relationships:
        if style and relationship.interaction_style.value != style:
            continue
        style_color = "green" if relationship.is_synchronous else "magenta"
        table.add_row(
            relationship.id,
            escape(display_name(relationship.source)),
            escape(display_name(relationship.destination)),
            escape(relationship.description or "-"),
            escape(relationship.technology or "-"),
            f"[{style_color}]{relationship.interaction_style.value}[/{style_color}]",
        )

    console.print(table)


if __name__ == "__main__":
    cli()
