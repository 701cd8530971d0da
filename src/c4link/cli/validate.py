"""Validation CLI command."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape

from c4link.cli.main import Context, load_model, pass_context

console = Console()


@click.command()
@click.option(
    "--strict",
    is_flag=True,
    help="Fail on warnings",
)
@pass_context
def validate(ctx: Context, strict: bool) -> None:
    """
    Validate a model.

    Checks the document schema, element references and canonical
    name uniqueness, and warns about undocumented elements.

    Examples:

        # Basic validation
        c4link validate

        # Fail on warnings too
        c4link -m workspace.yml validate --strict
    """
    from c4link.core.deployment import ContainerInstance

    errors: list[str] = []
    warnings: list[str] = []

    console.print("[bold]Validating model...[/bold]")
    model = load_model(ctx)
    console.print(f"  [green]✓[/green] Model loaded: {len(model)} elements")

    console.print("[bold]Checking references...[/bold]")
    structural = model.validate()
    for err in structural:
        errors.append(err)
        console.print(f"  [red]✗[/red] {escape(err)}")
    if not structural:
        console.print("  [green]✓[/green] All references valid")

    for element in model:
        if isinstance(element, ContainerInstance):
            continue
        if not element.description:
            warnings.append(f"{element.canonical_name}: no description")

    for relationship in model.relationships:
        if not relationship.description:
            warnings.append(f"Relationship {relationship.id}: no description")

    # Summary
    console.print("\n[bold]Validation Summary[/bold]")
    console.print(f"  Errors: {len(errors)}")
    console.print(f"  Warnings: {len(warnings)}")

    if errors:
        console.print("\n[red bold]Validation failed[/red bold]")
        for err in errors:
            console.print(f"  [red]•[/red] {escape(err)}")
        raise SystemExit(1)

    if warnings and strict:
        console.print("\n[yellow bold]Validation failed (strict mode)[/yellow bold]")
        for warn in warnings:
            console.print(f"  [yellow]•[/yellow] {escape(warn)}")
        raise SystemExit(1)

    if warnings:
        console.print("\n[yellow]Warnings:[/yellow]")
        for warn in warnings:
            console.print(f"  [yellow]•[/yellow] {escape(warn)}")

    console.print("\n[green bold]Validation passed[/green bold]")
