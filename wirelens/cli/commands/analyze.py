"""Analyse screenshots and emit the merged wireframe description."""
from __future__ import annotations

import base64
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from wirelens.analysis.results import ProjectResult
from wirelens.vision.preprocessor import ReplayPreprocessor, VisionPreprocessor, load_preprocessor
from wirelens.workflow.config import Settings
from wirelens.workflow.pipeline import analyze_batch_sync

logger = logging.getLogger(__name__)

# stdout carries the JSON result only
console = Console(stderr=True)


def sidecar_path(image_path: Path, cv_dir: Optional[Path] = None) -> Path:
    """Where the recorded preprocessor output for ``image_path`` lives."""
    if cv_dir is not None:
        return cv_dir / f"{image_path.stem}.json"
    return image_path.with_name(f"{image_path.name}.cv.json")


def _load_images(paths: Tuple[Path, ...]) -> List[Tuple[Dict[str, Any], bytes]]:
    images = []
    for path in paths:
        raw = path.read_bytes()
        image = {
            "data": base64.b64encode(raw).decode("ascii"),
            "name": path.name,
            "path": str(path),
        }
        images.append((image, raw))
    return images


def _replay_preprocessor(
    paths: Tuple[Path, ...],
    images: List[Tuple[Dict[str, Any], bytes]],
    cv_dir: Optional[Path],
) -> ReplayPreprocessor:
    replay = ReplayPreprocessor()
    for path, (_, raw) in zip(paths, images):
        sidecar = sidecar_path(path, cv_dir)
        if not sidecar.exists():
            console.print(f"[yellow]Warning:[/yellow] no preprocessor output for {escape(path.name)} ({escape(str(sidecar))})")
            continue
        try:
            payload = json.loads(sidecar.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise click.ClickException(f"{sidecar} is not valid JSON: {exc}") from exc
        replay.register(raw, payload)
        logger.debug(f"Registered {sidecar} for {path.name}")
    return replay


def _summary_table(project: ProjectResult) -> Table:
    table = Table(
        title=f"Analysed {project.image_count} image(s)",
        show_header=True,
        header_style="bold cyan",
        border_style="cyan",
    )
    table.add_column("#", justify="right")
    table.add_column("Image", style="white")
    table.add_column("Elements", justify="right")
    table.add_column("Layout", style="yellow")
    table.add_column("Confidence", justify="right")
    table.add_column("Status")

    for result in project.per_image_results:
        status = f"[red]failed[/red] {escape(result.error)}" if result.failed else "[green]ok[/green]"
        table.add_row(
            str(result.image_index),
            str(result.original_image.get("name", "-")),
            str(len(result.elements)),
            result.layout.pattern,
            f"{result.confidence:.2f}",
            status,
        )
    return table


@click.command(name="analyze")
@click.argument(
    "images",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--cv-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory holding <image-stem>.json preprocessor outputs",
)
@click.option("--preprocessor", "preprocessor_target", help="Live preprocessor as module:attribute")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write JSON result here")
@click.option("--concurrency", type=int, help="Images analysed at once (overrides WIRELENS_MAX_CONCURRENCY)")
def analyze_command(
    images: Tuple[Path, ...],
    cv_dir: Optional[Path],
    preprocessor_target: Optional[str],
    output: Optional[Path],
    concurrency: Optional[int],
):
    """
    Analyse screenshots of one product into a merged wireframe.

    IMAGES: screenshot files, analysed in the given order.

    Without --preprocessor, each image's recorded preprocessor output is read
    from <image>.cv.json next to it, or <cv-dir>/<image-stem>.json.

    Examples:

      wirelens analyze home.png settings.png -o wireframe.json

      wirelens analyze shots/*.png --cv-dir detections/
    """
    settings = Settings()
    if concurrency is not None:
        settings = replace(settings, max_concurrency=concurrency)
    try:
        settings.validate()
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc

    loaded = _load_images(images)

    preprocessor: VisionPreprocessor
    if preprocessor_target:
        try:
            preprocessor = load_preprocessor(preprocessor_target)
        except (ImportError, ValueError, TypeError) as exc:
            raise click.ClickException(f"could not load preprocessor: {exc}") from exc
    else:
        preprocessor = _replay_preprocessor(images, loaded, cv_dir)

    project = analyze_batch_sync([image for image, _ in loaded], preprocessor, settings=settings)

    console.print(_summary_table(project))
    console.print(
        f"Merged: [bold]{len(project.elements)}[/bold] elements, "
        f"[bold]{len(project.wireframe.components)}[/bold] components, "
        f"confidence [bold]{project.confidence:.2f}[/bold]"
    )

    payload = json.dumps(project.to_dict(), indent=2)
    if output is not None:
        output.write_text(payload, encoding="utf-8")
        console.print(f"[green]✓[/green] Wrote {output}")
    else:
        click.echo(payload)
