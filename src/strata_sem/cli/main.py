"""Command-line tool for inspecting heterogeneity models.

The strata-sem CLI loads one or more YAML model files, then describes the
configured sources, samples them at a location, or exports them on a
geographic grid to HDF5.
"""

import logging
import sys
from pathlib import Path

import click
import numpy as np
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from strata_sem.geometry.spatial import lat_to_theta, lon_to_phi
from strata_sem.io.hdf5 import write_perturbation_grid
from strata_sem.models.base import QUANTITIES
from strata_sem.models.config import ConfigManager

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=verbose)],
        force=True,
    )


def _load(configs: tuple[Path, ...]):
    config = ConfigManager(configs)
    return config, config.build_library()


def _axis(bounds: tuple[float, float], spacing: float) -> np.ndarray:
    start, stop = bounds
    if spacing <= 0:
        raise click.BadParameter(f"spacing must be positive, got {spacing}")
    n = int(np.floor((stop - start) / spacing + 1e-9)) + 1
    return start + spacing * np.arange(max(n, 1))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Verbose output with debug logging")
@click.version_option(version="0.1.0", prog_name="strata-sem")
@click.pass_context
def main(ctx: click.Context, verbose: bool):
    """Inspect 3-D heterogeneity models for spectral-element simulations."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@main.command()
@click.argument("configs", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.pass_context
def describe(ctx: click.Context, configs: tuple[Path, ...]):
    """Print the summary block of every configured source."""
    try:
        _, library = _load(configs)
    except Exception as e:
        console.print(f"\n[bold red]Configuration Error:[/bold red] {e}")
        if ctx.obj["verbose"]:
            console.print_exception()
        sys.exit(1)

    if len(library) == 0:
        console.print("[yellow]No heterogeneity sources configured[/yellow]")
        return
    console.print(library.describe(), highlight=False, markup=False)


@main.command()
@click.argument("configs", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--depth", type=float, required=True, help="Depth in km")
@click.option("--lat", type=float, required=True, help="Latitude in degrees")
@click.option("--lon", type=float, required=True, help="Longitude in degrees")
@click.pass_context
def sample(ctx: click.Context, configs: tuple[Path, ...], depth: float, lat: float, lon: float):
    """Evaluate every source at one location."""
    try:
        config, library = _load(configs)
    except Exception as e:
        console.print(f"\n[bold red]Configuration Error:[/bold red] {e}")
        if ctx.obj["verbose"]:
            console.print_exception()
        sys.exit(1)

    r = config.r_outer - depth * 1e3
    theta = lat_to_theta(lat, depth * 1e3, config.flattening)
    phi = lon_to_phi(lon)

    table = Table(title=f"Perturbations at depth {depth:g} km, lat {lat:g}°, lon {lon:g}°")
    table.add_column("#", justify="right")
    table.add_column("Model")
    table.add_column("Reference")
    table.add_column("In range")
    for name in QUANTITIES:
        table.add_column(name, justify="right")

    for i, source in enumerate(library):
        p = source.evaluate(r, theta, phi)
        table.add_row(
            str(i),
            source.model_name,
            source.reference_type.value,
            "yes" if p.in_range else "no",
            *(f"{v:.4g}" for v in p.as_array()),
        )
    console.print(table)


@main.command()
@click.argument("configs", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--output", "-o", type=click.Path(path_type=Path), required=True, help="Output HDF5 file")
@click.option("--depth-range", nargs=2, type=float, default=(0.0, 700.0), show_default=True)
@click.option("--lat-range", nargs=2, type=float, default=(-90.0, 90.0), show_default=True)
@click.option("--lon-range", nargs=2, type=float, default=(-180.0, 180.0), show_default=True)
@click.option("--depth-spacing", type=float, default=50.0, show_default=True, help="km")
@click.option("--spacing", type=float, default=5.0, show_default=True, help="Lat/lon spacing in degrees")
@click.pass_context
def export(
    ctx: click.Context,
    configs: tuple[Path, ...],
    output: Path,
    depth_range: tuple[float, float],
    lat_range: tuple[float, float],
    lon_range: tuple[float, float],
    depth_spacing: float,
    spacing: float,
):
    """Sample every source on a depth/lat/lon grid and write HDF5."""
    try:
        config, library = _load(configs)
        depths = _axis(depth_range, depth_spacing)
        lats = _axis(lat_range, spacing)
        lons = _axis(lon_range, spacing)

        console.print(
            f"Sampling {len(library)} source(s) on "
            f"{len(depths)} × {len(lats)} × {len(lons)} points...",
            style="dim",
        )
        write_perturbation_grid(
            output,
            library,
            depths,
            lats,
            lons,
            r_outer=config.r_outer,
            flattening=config.flattening,
        )
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if ctx.obj["verbose"]:
            console.print_exception()
        sys.exit(1)

    file_size = output.stat().st_size
    console.print("✓ [bold green]Export complete![/bold green]")
    console.print(f"  Output: {output} ({file_size / 1e3:.1f} kB)")


if __name__ == "__main__":
    main()
