"""Animate command - image-to-video shortcut that skips script and characters"""

import asyncio
import json
import sys
from typing import Optional

import click

from core.errors import StudioError
from core.media import download_video, load_image_file
from core.models import ProjectState, Stage
from core.pipeline import DEFAULT_VIDEO_PROMPT, ProjectPipeline
from .display import console, render_flow
from .produce import build_pipeline, print_notice


async def _run_animation(pipeline: ProjectPipeline, download: Optional[str], show: bool) -> ProjectState:
    if show:
        pipeline.subscribe_notices(print_notice)
        with console.status("Animator generating video (this can take minutes)...", spinner="dots"):
            state = await pipeline.generate_video_direct()
        console.print(render_flow(state))
    else:
        state = await pipeline.generate_video_direct()

    if download and state.generated_video_url:
        path = await download_video(state.generated_video_url, download)
        if show:
            console.print(f"[green]Saved video to {path}[/green]")
    return state


@click.command()
@click.option("--image", "-i", "image_path", required=True, type=click.Path(exists=True, dir_okay=False),
              help="Image to animate (png, jpg, webp, gif)")
@click.option("--prompt", "-p", help=f"Motion prompt (default: '{DEFAULT_VIDEO_PROMPT}')")
@click.option("--download", "-d", type=click.Path(dir_okay=False), help="Save the finished video here")
@click.option("--mock", "use_mock", is_flag=True, help="Use the mock backend (no API calls)")
@click.option("--json", "as_json", is_flag=True, help="Output the final project state as JSON")
def animate_cmd(image_path: str, prompt: Optional[str], download: Optional[str], use_mock: bool, as_json: bool):
    """
    Turn a single image into a video.

    Examples:

        dimension-studio animate -i portrait.png -p "Slow dolly in, hair in the wind"
    """
    pipeline = build_pipeline(use_mock)

    try:
        pipeline.upload_image(load_image_file(image_path))
        pipeline.set_video_prompt(prompt)
        state = asyncio.run(_run_animation(pipeline, download, show=not as_json))
    except StudioError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if as_json:
        data = state.to_dict()
        data["uploaded_image"] = image_path
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
    elif state.generated_video_url:
        console.print(f"\n[bold green]Video ready:[/bold green] {state.generated_video_url}")

    sys.exit(0 if state.current_stage == Stage.COMPLETE else 1)
