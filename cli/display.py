"""Shared console, logging setup and renderers for pipeline artifacts"""

import logging
from typing import Sequence

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from core.models import Character, ProjectState, ScriptSegment, Stage, WORKFLOW_STEPS, stage_progress

console = Console()

PROMPT_PREVIEW = 60


def setup_logging(verbose: bool = False):
    """Route core logging through rich; INFO with --verbose, WARNING otherwise"""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _preview(text: str, limit: int = PROMPT_PREVIEW) -> str:
    if not text:
        return "—"
    return text if len(text) <= limit else text[:limit - 3] + "..."


def render_flow(state: ProjectState) -> Text:
    """One-line workflow indicator: done steps green, current step highlighted"""
    done = stage_progress(state.current_stage)
    flow = Text()
    for index, step in enumerate(WORKFLOW_STEPS):
        if index:
            flow.append(" → ", style="dim")
        if index < done:
            flow.append(f"✓ {step.label}", style="green")
        elif step.stage == state.current_stage:
            flow.append(f"● {step.label}", style="bold cyan")
        else:
            flow.append(step.label, style="dim")
    if state.current_stage == Stage.COMPLETE:
        flow.append("  ✓ Complete", style="bold green")
    return flow


def script_table(segments: Sequence[ScriptSegment]) -> Table:
    table = Table(title="Script", box=box.ROUNDED)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Kind", style="cyan")
    table.add_column("Content")
    table.add_column("Visual Prompt", style="dim")
    for index, segment in enumerate(segments, start=1):
        table.add_row(
            str(index),
            segment.kind.value,
            _preview(segment.content, 80),
            _preview(segment.visual_prompt or ""),
        )
    return table


def characters_table(characters: Sequence[Character]) -> Table:
    table = Table(title="Characters", box=box.ROUNDED)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Visual Prompt", style="dim")
    table.add_column("Image")
    for character in characters:
        table.add_row(
            character.id,
            character.name,
            _preview(character.description),
            _preview(character.visual_prompt),
            "[green]✓[/green]" if character.image_url else "[dim]—[/dim]",
        )
    return table
