"""Configuration commands"""

import json
import os

import click
from rich import box
from rich.table import Table

from core.config import API_KEY_ENVS, StudioConfig
from core.providers.base import _mask_secret
from .display import console


@click.group()
def config_cmd():
    """Configuration management"""
    pass


@config_cmd.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show(as_json: bool):
    """Show the effective configuration (API key masked)"""

    config = StudioConfig.from_env()
    key_source = next((name for name in API_KEY_ENVS if os.getenv(name)), None)

    rows = [
        ("Backend", config.backend.value),
        ("API key", f"{_mask_secret(config.api_key)} ({key_source})" if key_source else "Not set"),
        ("Text model", config.text_model),
        ("Image model", config.image_model),
        ("Video model", config.video_model),
        ("Chat model", config.chat_model),
        ("Chat instruction", "custom (STUDIO_CHAT_INSTRUCTION)" if config.chat_instruction else "default"),
        ("Poll interval", f"{config.polling.interval:g}s"),
        ("Poll max attempts", str(config.polling.max_attempts or "unbounded")),
        ("Poll timeout", f"{config.polling.timeout:g}s" if config.polling.timeout else "unbounded"),
        ("Poll backoff", f"x{config.polling.backoff:g} (max {config.polling.max_interval:g}s)"),
        ("Analysis char limit", str(config.limits.analysis_char_limit)),
        ("Extraction char limit", str(config.limits.extraction_char_limit)),
    ]

    if as_json:
        click.echo(json.dumps(dict(rows), indent=2))
        return

    table = Table(title="Configuration", box=box.ROUNDED)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for name, value in rows:
        table.add_row(name, value)
    console.print(table)

    if not config.api_key:
        console.print("\n[yellow]No API key found. Set GEMINI_API_KEY in the environment or a .env file.[/yellow]")
