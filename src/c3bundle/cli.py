"""Click CLI entry point for the bundle loader."""

from __future__ import annotations

import json
from pathlib import Path

import click

from c3bundle import __version__
from c3bundle.bundle import OBJ_EXTENSION, BundleLoader, triangles_list
from c3bundle.config import LoaderConfig, load_config
from c3bundle.errors import BundleError, ConfigError
from c3bundle.inspection import inspect_bundle, inspect_obj, render_text
from c3bundle.obj_import import load_obj
from c3bundle.warning_policy import parse_code_list


def _build_config(
    config_path: Path | None, warn_as_error: str | None, suppress_warning: str | None
) -> LoaderConfig:
    """Load the optional config file and merge the CLI warning options into it."""
    try:
        config = load_config(config_path) if config_path is not None else LoaderConfig()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    try:
        wae = parse_code_list(warn_as_error) if warn_as_error else frozenset()
        sup = parse_code_list(suppress_warning) if suppress_warning else frozenset()
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    if not wae and not sup:
        return config
    return config.model_copy(
        update={
            "warn_as_error": sorted(set(config.warn_as_error) | wae),
            "suppress": sorted(set(config.suppress) | sup),
        }
    )


@click.group()
@click.version_option(version=__version__, prog_name="c3bundle")
def main() -> None:
    """c3bundle: loader and inspector for C3B/C3T 3D model bundles."""


@main.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--animation",
    "animation_id",
    type=str,
    default="",
    help="Animation clip id to summarize. Defaults to the first clip.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML loader configuration file.",
)
@click.option(
    "--warn-as-error",
    "warn_as_error",
    type=str,
    default=None,
    help="Comma-separated W-codes to treat as errors (e.g. W01,W02).",
)
@click.option(
    "--suppress-warning",
    "suppress_warning",
    type=str,
    default=None,
    help="Comma-separated W-codes to suppress (e.g. W03).",
)
def inspect(
    input_file: Path,
    output_format: str = "text",
    animation_id: str = "",
    config_path: Path | None = None,
    warn_as_error: str | None = None,
    suppress_warning: str | None = None,
) -> None:
    """Summarize the meshes, materials, nodes and animation of a bundle or OBJ file."""
    config = _build_config(config_path, warn_as_error, suppress_warning)

    try:
        if input_file.suffix.lower() == OBJ_EXTENSION:
            payload = inspect_obj(load_obj(input_file), str(input_file))
        else:
            loader = BundleLoader(config)
            if not loader.load(input_file):
                raise loader.last_error
            payload = inspect_bundle(loader, animation_id=animation_id)
    except BundleError as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        click.echo(json.dumps(payload, indent=2))
    else:
        click.echo(render_text(payload), nl=False)


@main.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML loader configuration file.",
)
def triangles(input_file: Path, config_path: Path | None = None) -> None:
    """Print the triangle count and bounds of every indexed submesh."""
    config = _build_config(config_path, None, None)
    try:
        points = triangles_list(input_file, config)
    except BundleError as e:
        raise click.ClickException(str(e))

    click.echo(f"triangles: {len(points) // 3}")
    if len(points):
        lo = ", ".join(f"{float(v):.6g}" for v in points.min(axis=0))
        hi = ", ".join(f"{float(v):.6g}" for v in points.max(axis=0))
        click.echo(f"bounds.min: [{lo}]")
        click.echo(f"bounds.max: [{hi}]")
