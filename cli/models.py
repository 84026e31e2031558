"""Models command - lists the selectable generation engines"""

import json

import click
from rich import box
from rich.table import Table

from core.models import AVAILABLE_MODELS, DEFAULT_MODEL_ID
from .display import console


@click.command()
@click.option("--type", "-t", "model_type", type=click.Choice(["video", "image", "text", "hybrid"]),
              help="Filter by engine type")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def models_cmd(model_type: str, as_json: bool):
    """List the engine catalogue"""

    models = AVAILABLE_MODELS
    if model_type:
        models = [m for m in models if m.type.value == model_type]

    if as_json:
        click.echo(json.dumps([
            {
                "id": m.id,
                "name": m.name,
                "provider": m.provider,
                "type": m.type.value,
                "requires_key": m.requires_key,
                "default": m.id == DEFAULT_MODEL_ID,
            }
            for m in models
        ], indent=2))
        return

    table = Table(title="Engines", box=box.ROUNDED)
    table.add_column("ID", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Provider")
    table.add_column("Type")
    table.add_column("API Key")

    for m in models:
        name = f"{m.name} [green](default)[/green]" if m.id == DEFAULT_MODEL_ID else m.name
        table.add_row(
            str(m.id),
            name,
            m.provider,
            m.type.value,
            "[yellow]required[/yellow]" if m.requires_key else "[dim]built-in[/dim]",
        )

    console.print(table)
