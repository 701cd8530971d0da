"""Apply source-code facts to a model."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from c4link.cli.main import Context, display_name, load_model, pass_context

console = Console()


@click.command()
@click.argument("facts_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the updated model here instead of overwriting the input",
)
@click.option("--dry-run", is_flag=True, help="Show relationships without saving")
@pass_context
def apply(ctx: Context, facts_path: Path, output: Path | None, dry_run: bool) -> None:
    """
    Create relationships from a facts file.

    A facts file lists, per source element, the containers and
    software systems it uses (as produced by a source-code scanner).

    Examples:

        c4link apply facts.yml

        c4link -m workspace.yml apply facts.yml -o workspace.updated.yml
    """
    import yaml
    from pydantic import ValidationError

    from c4link.core.facts import apply_facts, load_facts
    from c4link.core.model import ResolutionError

    model = load_model(ctx)

    try:
        facts = load_facts(facts_path)
        created = apply_facts(model, facts)
    except (ResolutionError, ValidationError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise SystemExit(1)

    for relationship in created:
        console.print(
            f"  [green]+[/green] {escape(display_name(relationship.source))} -> "
            f"{escape(display_name(relationship.destination))}: {escape(relationship.description)}"
        )
    console.print(f"\n[bold]{len(created)} relationships created[/bold]")

    if dry_run:
        return

    target = output or ctx.model_path
    model.save(target)
    console.print(f"Saved model to {escape(str(target))}")
