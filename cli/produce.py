"""Produce command - runs the full text-to-video pipeline"""

import asyncio
import json
import sys
from contextlib import nullcontext
from pathlib import Path
from typing import Optional

import click
from rich.panel import Panel

from core.config import StudioConfig
from core.errors import StudioError
from core.media import download_video
from core.models import DEFAULT_MODEL_ID, ProjectState, Stage
from core.pipeline import PipelineNotice, ProjectPipeline
from core.polling import PollingPolicy
from core.provider_config import BackendFactory
from .display import console, render_flow, script_table, characters_table

MOCK_POLL_INTERVAL = 0.05


def build_pipeline(use_mock: bool) -> ProjectPipeline:
    """Pipeline wired to the configured backend, or to the mock one"""
    config = StudioConfig.from_env()
    if use_mock:
        config.polling = PollingPolicy(interval=MOCK_POLL_INTERVAL, max_attempts=20, timeout=None)
        backend = BackendFactory.create_mock()
    else:
        backend = BackendFactory.create_from_config(config)
    return ProjectPipeline(backend, config)


def _status(message: str, show: bool):
    return console.status(message, spinner="dots") if show else nullcontext()


def print_notice(notice: PipelineNotice):
    style = "red" if notice.level == "error" else "yellow"
    console.print(f"[{style}]✗ {notice.operation}: {notice.message}[/{style}]")


async def _run_production(
    pipeline: ProjectPipeline,
    raw_input: str,
    skip_images: bool,
    download: Optional[str],
    show: bool,
) -> ProjectState:
    if show:
        pipeline.subscribe_notices(print_notice)

    with _status("Script assistant analysing input...", show):
        state = await pipeline.analyze(raw_input)
    if state.current_stage != Stage.ANALYSIS:
        return state
    if show:
        console.print(render_flow(state))
        console.print(f"Detected input type: [cyan]{state.input_type.value}[/cyan]")
        console.print(script_table(state.script))

    with _status("Art assistant extracting characters...", show):
        state = await pipeline.extract_characters()
    if state.current_stage != Stage.CHARACTER_DESIGN:
        return state

    if not skip_images:
        for character in state.characters:
            with _status(f"Drawing {character.name}...", show):
                await pipeline.generate_character_image(character.id)

    state = pipeline.advance_to_visual_dev()
    if show:
        console.print(render_flow(state))
        console.print(characters_table(state.characters))

    with _status("Animator generating video (this can take minutes)...", show):
        state = await pipeline.generate_video()

    if show:
        console.print(render_flow(state))
    if download and state.generated_video_url:
        path = await download_video(state.generated_video_url, download)
        if show:
            console.print(f"[green]Saved video to {path}[/green]")
    return state


@click.command()
@click.option("--text", "-t", help="Novel excerpt, script or idea")
@click.option("--file", "-f", "input_file", type=click.Path(exists=True, dir_okay=False),
              help="Read the input text from a file")
@click.option("--model", "-m", "model_id", type=int, default=DEFAULT_MODEL_ID,
              help="Engine id from 'dimension-studio models'")
@click.option("--skip-images", is_flag=True, help="Skip character concept art")
@click.option("--download", "-d", type=click.Path(dir_okay=False), help="Save the finished video here")
@click.option("--mock", "use_mock", is_flag=True, help="Use the mock backend (no API calls)")
@click.option("--json", "as_json", is_flag=True, help="Output the final project state as JSON")
def produce_cmd(
    text: Optional[str],
    input_file: Optional[str],
    model_id: int,
    skip_images: bool,
    download: Optional[str],
    use_mock: bool,
    as_json: bool,
):
    """
    Run the full pipeline: analysis → characters → concept art → video.

    Examples:

        # Dry run without API keys
        dimension-studio produce -t "A courier races the storm" --mock

        # Live run from a file, saving the video
        dimension-studio produce -f chapter1.txt -d out/chapter1.mp4
    """
    if not text and not input_file:
        raise click.UsageError("Provide --text or --file")
    raw_input = text if text else Path(input_file).read_text(encoding="utf-8")

    pipeline = build_pipeline(use_mock)
    if not as_json:
        console.print(Panel.fit(
            f"[bold blue]Dimension Studio[/bold blue] · backend: {pipeline.backend.name}",
            border_style="blue",
        ))

    try:
        pipeline.select_model(model_id)
        state = asyncio.run(_run_production(pipeline, raw_input, skip_images, download, show=not as_json))
    except StudioError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(state.to_dict(), indent=2, ensure_ascii=False))
    elif state.generated_video_url:
        console.print(f"\n[bold green]Video ready:[/bold green] {state.generated_video_url}")

    sys.exit(0 if state.current_stage == Stage.COMPLETE else 1)
